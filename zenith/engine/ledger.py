"""
Ledger Mutation Engine

Pure functions from one AppState snapshot to the next.

apply_transactions  - recompute balances through a BalanceStrategy, update
                      positions for INVESTMENT rows in batch order, prepend
                      the batch to the log.
delete_transaction  - targeted point reversal of one transaction (or both
                      legs of a transfer), then removal from the log.

CRITICAL: after either call returns, every Account.balance equals the fold
of the log for that account. apply and reverse share signed_effect(), which
is what makes the point reversal consistent with the full recomputation.
"""

from typing import Optional, Sequence

import structlog

from zenith.engine.balances import BalanceStrategy, FullRecomputeStrategy, reverse_on_accounts
from zenith.engine.positions import apply_investment, reverse_investment
from zenith.exceptions import DuplicateTransactionError
from zenith.models.ledger import AppState, Transaction

logger = structlog.get_logger(__name__)

DEFAULT_STRATEGY: BalanceStrategy = FullRecomputeStrategy()


def _check_unique(state: AppState, batch: Sequence[Transaction]) -> None:
    seen = {t.id for t in state.transactions}
    for txn in batch:
        if txn.id in seen:
            raise DuplicateTransactionError(txn.id)
        seen.add(txn.id)


def apply_transactions(
    state: AppState,
    new_transactions: Sequence[Transaction],
    strategy: Optional[BalanceStrategy] = None,
) -> AppState:
    """
    Apply a batch of new transactions.

    The batch is prepended as given; dates are not re-sorted.

    Raises:
        DuplicateTransactionError: If an id is already in the log or repeats
            inside the batch. Nothing is applied in that case.
    """
    if not new_transactions:
        return state

    _check_unique(state, new_transactions)
    strategy = strategy or DEFAULT_STRATEGY

    accounts = strategy.apply(state.accounts, state.transactions, new_transactions)

    assets = list(state.assets)
    for txn in new_transactions:
        assets = apply_investment(assets, txn)

    return state.model_copy(update={
        "accounts": accounts,
        "assets": assets,
        "transactions": list(new_transactions) + list(state.transactions),
    })


def transaction_group(state: AppState, transaction_id: str) -> list[Transaction]:
    """
    The rows that are deleted together with transaction_id.

    Transfer legs share a transfer_id and go as a pair; anything else is
    deleted alone. Unknown ids give an empty list.
    """
    txn = state.find_transaction(transaction_id)
    if txn is None:
        return []
    if txn.transfer_id is None:
        return [txn]
    return [t for t in state.transactions if t.transfer_id == txn.transfer_id]


def delete_transaction(state: AppState, transaction_id: str) -> AppState:
    """
    Remove a transaction and reverse its effects.

    Unknown ids are a no-op. Other transactions are not replayed.
    """
    group = transaction_group(state, transaction_id)
    if not group:
        logger.warning("delete_unknown_transaction", transaction_id=transaction_id)
        return state

    accounts = list(state.accounts)
    assets = list(state.assets)
    for txn in group:
        accounts = reverse_on_accounts(accounts, txn)
        assets = reverse_investment(assets, txn)

    removed = {t.id for t in group}
    return state.model_copy(update={
        "accounts": accounts,
        "assets": assets,
        "transactions": [t for t in state.transactions if t.id not in removed],
    })
