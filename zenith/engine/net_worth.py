"""
Net Worth / History Engine

Net worth is cash plus the market value of every open position.

History is reconstructed backwards from today: record today's value, undo
today's transactions, step back a day, and so on. The walk assumes prices
were constant across the window - there is no historical mark-to-market.

Backward delta per transaction:
    INCOME, INVESTMENT/SELL   -> subtract (they raised net worth going forward)
    EXPENSE, INVESTMENT/BUY   -> add
    TRANSFER-typed rows       -> ignored
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from zenith.engine.positions import market_value
from zenith.models.ledger import (
    Account,
    AssetType,
    InvestmentAsset,
    Transaction,
    TransactionType,
    utc_today,
)


def calculate_net_worth(accounts: Iterable[Account], assets: Iterable[InvestmentAsset]) -> int:
    cash = sum(a.balance for a in accounts)
    invested = sum(market_value(a) for a in assets)
    return cash + invested


def market_value_by_type(assets: Iterable[InvestmentAsset]) -> dict[AssetType, int]:
    """Portfolio breakdown by asset class."""
    totals: dict[AssetType, int] = defaultdict(int)
    for asset in assets:
        totals[asset.type] += market_value(asset)
    return dict(totals)


def backward_delta(txn: Transaction) -> int:
    """What undoing this transaction does to net worth."""
    if txn.type == TransactionType.INCOME or txn.is_sell:
        return -txn.amount
    if txn.type == TransactionType.EXPENSE or txn.is_buy:
        return txn.amount
    return 0


def calculate_history(
    accounts: Sequence[Account],
    assets: Sequence[InvestmentAsset],
    transactions: Iterable[Transaction],
    days: int,
    today: Optional[date] = None,
) -> list[int]:
    """
    Net worth at the end of each of the last `days` days, oldest first.

    The last element is always calculate_net_worth(accounts, assets).
    Transactions dated after today (future installments) are never undone.
    """
    if days < 1:
        return []

    today = today or utc_today()

    by_day: dict[date, int] = defaultdict(int)
    for txn in transactions:
        by_day[txn.date.date()] += backward_delta(txn)

    running = calculate_net_worth(accounts, assets)
    history = []
    for i in range(days):
        history.append(running)
        running += by_day.get(today - timedelta(days=i), 0)

    history.reverse()
    return history
