"""
Investment Position Engine

Weighted-average cost basis, maintained trade by trade:

    BUY  on no position   -> open at the trade price
    BUY  on a position    -> qty += q, avg = round((qty*avg + amount) / new_qty)
    SELL on a position    -> qty -= q (floored at 0), avg unchanged
    quantity reaches 0    -> position removed (cost basis restarts on re-entry)
    any surviving trade   -> current price marked at the trade price
    SELL on no position   -> nothing to update

Reversal (transaction deleted) inverts quantities only. The average price is
never rolled back, and reversing a SELL that closed a position re-opens it
at the sale price - the original cost basis is gone at that point.

Quantities are floats (fractional crypto units); arithmetic on them goes
through Decimal so that 0.1 + 0.2 - 0.3 really is zero.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

import structlog

from zenith.models.ledger import AssetType, InvestmentAsset, Transaction
from zenith.money import divide_cents, round_half_up

logger = structlog.get_logger(__name__)

CATEGORY_ASSET_TYPES = {
    "crypto": AssetType.CRYPTO,
    "reits": AssetType.FII,
    "fiis": AssetType.FII,
    "fixed income": AssetType.FIXED,
}


def asset_type_for_category(category: Optional[str]) -> AssetType:
    """Classify a new position from the investment category it was bought under."""
    if not category:
        return AssetType.STOCK
    return CATEGORY_ASSET_TYPES.get(category.strip().lower(), AssetType.STOCK)


def _qty(value: float) -> Decimal:
    return Decimal(str(value))


def trade_price(txn: Transaction) -> int:
    """Per-unit price of a trade in cents (amount / quantity)."""
    if txn.asset_price is not None:
        return txn.asset_price
    return divide_cents(txn.amount, txn.asset_quantity or 1)


def market_value(asset: InvestmentAsset) -> int:
    """quantity x current price, in cents."""
    return round_half_up(_qty(asset.quantity) * asset.current_price)


def _replace(assets: Sequence[InvestmentAsset], updated: InvestmentAsset) -> list[InvestmentAsset]:
    return [updated if a.id == updated.id else a for a in assets]


def _remove(assets: Sequence[InvestmentAsset], ticker: str) -> list[InvestmentAsset]:
    return [a for a in assets if a.ticker != ticker]


def _find(assets: Sequence[InvestmentAsset], ticker: str) -> Optional[InvestmentAsset]:
    return next((a for a in assets if a.ticker == ticker), None)


def _open_position(txn: Transaction, quantity: Decimal) -> InvestmentAsset:
    price = trade_price(txn)
    return InvestmentAsset(
        ticker=txn.asset_ticker,
        quantity=float(quantity),
        average_price=price,
        current_price=price,
        type=asset_type_for_category(txn.category),
    )


def apply_investment(assets: Sequence[InvestmentAsset], txn: Transaction) -> list[InvestmentAsset]:
    """
    Apply one INVESTMENT transaction to the position list.

    Non-investment transactions are returned unchanged.
    """
    if not (txn.is_buy or txn.is_sell):
        return list(assets)

    qty = _qty(txn.asset_quantity)
    existing = _find(assets, txn.asset_ticker)

    if existing is None:
        if txn.is_buy:
            return list(assets) + [_open_position(txn, qty)]
        logger.warning(
            "sell_without_position",
            transaction_id=txn.id,
            ticker=txn.asset_ticker,
            quantity=txn.asset_quantity,
        )
        return list(assets)

    old_qty = _qty(existing.quantity)
    new_qty = old_qty + qty if txn.is_buy else old_qty - qty

    if new_qty < 0:
        logger.warning(
            "sell_exceeds_position",
            transaction_id=txn.id,
            ticker=txn.asset_ticker,
            held=existing.quantity,
            sold=txn.asset_quantity,
        )
        new_qty = Decimal(0)

    if new_qty == 0:
        logger.info("position_closed", ticker=existing.ticker, transaction_id=txn.id)
        return _remove(assets, existing.ticker)

    new_avg = existing.average_price
    if txn.is_buy:
        new_avg = divide_cents(old_qty * existing.average_price + txn.amount, new_qty)

    # The last trade price becomes the mark until the next refresh
    return _replace(
        assets,
        existing.model_copy(update={
            "quantity": float(new_qty),
            "average_price": new_avg,
            "current_price": trade_price(txn) or existing.current_price,
        }),
    )


def reverse_investment(assets: Sequence[InvestmentAsset], txn: Transaction) -> list[InvestmentAsset]:
    """Undo one INVESTMENT transaction's quantity effect."""
    if not (txn.is_buy or txn.is_sell):
        return list(assets)

    qty = _qty(txn.asset_quantity)
    existing = _find(assets, txn.asset_ticker)

    if existing is None:
        if txn.is_sell:
            # The sale closed the position; its cost basis is unrecoverable
            logger.warning(
                "reopen_closed_position",
                transaction_id=txn.id,
                ticker=txn.asset_ticker,
                average_price=trade_price(txn),
            )
            return list(assets) + [_open_position(txn, qty)]
        logger.warning("reverse_buy_without_position", transaction_id=txn.id, ticker=txn.asset_ticker)
        return list(assets)

    old_qty = _qty(existing.quantity)
    if txn.is_sell:
        new_qty = old_qty + qty
    else:
        new_qty = old_qty - qty
        if new_qty < 0:
            logger.warning(
                "reverse_buy_exceeds_position",
                transaction_id=txn.id,
                ticker=txn.asset_ticker,
                held=existing.quantity,
            )
            new_qty = Decimal(0)

    if new_qty == 0:
        return _remove(assets, existing.ticker)

    return _replace(assets, existing.model_copy(update={"quantity": float(new_qty)}))


def update_price(
    assets: Sequence[InvestmentAsset],
    ticker: str,
    price: int,
    at: datetime,
) -> list[InvestmentAsset]:
    """Set the market price of one position (external refresh)."""
    return [
        a.model_copy(update={"current_price": price, "last_update": at})
        if a.ticker == ticker else a
        for a in assets
    ]
