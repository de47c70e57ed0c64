"""
Dividends and Reinvestment

Upcoming payouts are projected from the feed for tickers the user holds.
Once confirmed, a payout becomes an ordinary INCOME transaction and its
corporate action id is remembered so it is never offered again.

The reinvestment balance is money the portfolio handed back (dividends and
sale proceeds) since the user last said "I reinvested it".
"""

from datetime import date, datetime
from typing import Iterable

from pydantic import BaseModel

from zenith.engine.positions import _qty
from zenith.models.ledger import (
    INVESTMENT_INCOME_CATEGORY,
    CorporateAction,
    CorporateActionType,
    InvestmentAsset,
    Transaction,
    TransactionType,
)
from zenith.money import round_half_up

ACTION_LABELS = {
    CorporateActionType.DIVIDEND: "Dividends",
    CorporateActionType.JCP: "JCP",
    CorporateActionType.YIELD: "Yield",
}


class UpcomingDividend(BaseModel):
    """A projected payout for a held position."""

    id: str
    ticker: str
    type: CorporateActionType
    payment_date: date
    amount: int

    @property
    def label(self) -> str:
        return f"{ACTION_LABELS[self.type]} - {self.ticker}"


def project_dividends(
    assets: Iterable[InvestmentAsset],
    actions: Iterable[CorporateAction],
    processed_ids: Iterable[str] = (),
) -> list[UpcomingDividend]:
    """Payouts for held tickers not yet confirmed, soonest first."""
    held = {a.ticker: a for a in assets if a.quantity > 0}
    processed = set(processed_ids)

    upcoming = [
        UpcomingDividend(
            id=action.id,
            ticker=action.ticker,
            type=action.type,
            payment_date=action.payment_date,
            amount=round_half_up(_qty(held[action.ticker].quantity) * action.amount_per_share),
        )
        for action in actions
        if action.ticker in held and action.id not in processed
    ]
    return sorted(upcoming, key=lambda d: d.payment_date)


def is_reinvestable(txn: Transaction) -> bool:
    return (
        (txn.type == TransactionType.INCOME and txn.category == INVESTMENT_INCOME_CATEGORY)
        or txn.is_sell
    )


def reinvestment_balance(transactions: Iterable[Transaction], reset_date: datetime) -> int:
    """Dividend income plus sale proceeds dated strictly after reset_date."""
    return sum(
        t.amount for t in transactions
        if t.date > reset_date and is_reinvestable(t)
    )
