"""
Entry Builders

Turn a validated TransactionRequest into the Transaction rows it stands for:

    EXPENSE on a card      -> installment plan (1..n uncleared rows)
    EXPENSE on an account  -> one cleared row
    INCOME                 -> one cleared row
    TRANSFER               -> EXPENSE leg + INCOME leg sharing a transfer_id
    INVESTMENT             -> one INVESTMENT row priced at amount / quantity

CRITICAL: callers validate first. These builders assume the ids resolve and
the required fields are present.
"""

from zenith.engine.credit_card import generate_installment_plan
from zenith.models.ledger import (
    TRANSFER_CATEGORY,
    TRANSFER_RECEIVED_CATEGORY,
    AppState,
    AssetType,
    EntryKind,
    InvestmentAction,
    Transaction,
    TransactionRequest,
    TransactionType,
    new_id,
)
from zenith.money import divide_cents

ASSET_TYPE_CATEGORIES = {
    AssetType.STOCK: "Stocks",
    AssetType.FII: "REITs",
    AssetType.CRYPTO: "Crypto",
    AssetType.FIXED: "Fixed Income",
}


def _expense(request: TransactionRequest, state: AppState) -> list[Transaction]:
    category = request.category or "Other"
    card = state.find_card(request.method_id)
    if card is not None:
        return generate_installment_plan(
            card,
            request.amount,
            request.installments,
            request.description,
            category,
            request.date,
        )
    return [Transaction(
        description=request.description,
        amount=request.amount,
        date=request.date,
        type=TransactionType.EXPENSE,
        category=category,
        account_id=request.method_id,
    )]


def _income(request: TransactionRequest) -> list[Transaction]:
    return [Transaction(
        description=request.description,
        amount=request.amount,
        date=request.date,
        type=TransactionType.INCOME,
        category=request.category or "Other",
        account_id=request.method_id,
    )]


def _transfer(request: TransactionRequest, state: AppState) -> list[Transaction]:
    source = state.find_account(request.method_id)
    destination = state.find_account(request.destination_account_id)
    transfer_id = new_id("trf")
    note = f" ({request.description})" if request.description else ""

    return [
        Transaction(
            description=f"Transfer to {destination.name}{note}",
            amount=request.amount,
            date=request.date,
            type=TransactionType.EXPENSE,
            category=TRANSFER_CATEGORY,
            account_id=source.id,
            transfer_id=transfer_id,
        ),
        Transaction(
            description=f"Transfer from {source.name}{note}",
            amount=request.amount,
            date=request.date,
            type=TransactionType.INCOME,
            category=TRANSFER_RECEIVED_CATEGORY,
            account_id=destination.id,
            transfer_id=transfer_id,
        ),
    ]


def _investment(request: TransactionRequest) -> list[Transaction]:
    ticker = request.ticker.strip().upper()
    verb = "Buy" if request.action == InvestmentAction.BUY else "Sell"
    return [Transaction(
        description=request.description or f"{verb} {ticker}",
        amount=request.amount,
        date=request.date,
        type=TransactionType.INVESTMENT,
        investment_type=request.action,
        category=request.category or ASSET_TYPE_CATEGORIES[request.asset_type],
        account_id=request.method_id,
        asset_ticker=ticker,
        asset_quantity=request.quantity,
        asset_price=divide_cents(request.amount, request.quantity),
    )]


def build_transactions(request: TransactionRequest, state: AppState) -> list[Transaction]:
    """Rows for one entry, in the order they are prepended to the log."""
    if request.kind == EntryKind.EXPENSE:
        return _expense(request, state)
    if request.kind == EntryKind.INCOME:
        return _income(request)
    if request.kind == EntryKind.TRANSFER:
        return _transfer(request, state)
    return _investment(request)
