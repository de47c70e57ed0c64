"""
Account Balance Rules

One sign rule drives everything that touches Account.balance: the full
recomputation on apply, the incremental strategy, and the point reversal on
delete. Keeping a single signed_effect() is what makes apply and reverse
exact inverses.

    INCOME              +amount
    EXPENSE             -amount
    INVESTMENT / SELL   +amount
    INVESTMENT / BUY    -amount
    TRANSFER            -amount

Card rows (card_id set, no account_id) never move an account balance.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Sequence

import structlog

from zenith.models.ledger import Account, InvestmentAction, Transaction, TransactionType

logger = structlog.get_logger(__name__)


def signed_effect(txn: Transaction) -> int:
    """Signed cash effect of a transaction on its account."""
    if txn.type == TransactionType.INCOME:
        return txn.amount
    if txn.type == TransactionType.INVESTMENT:
        return txn.amount if txn.investment_type == InvestmentAction.SELL else -txn.amount
    return -txn.amount


def account_balance(transactions: Iterable[Transaction], account_id: str) -> int:
    """Fold the log for one account. This is the balance invariant."""
    return sum(signed_effect(t) for t in transactions if t.account_id == account_id)


class BalanceStrategy(ABC):
    """
    How balances are brought up to date when a batch is applied.

    Every strategy must leave balance == account_balance(log, id) for all
    accounts; they differ only in cost.
    """

    @abstractmethod
    def apply(
        self,
        accounts: Sequence[Account],
        existing: Sequence[Transaction],
        batch: Sequence[Transaction],
    ) -> list[Account]:
        """Return accounts with balances reflecting existing + batch."""
        pass


class FullRecomputeStrategy(BalanceStrategy):
    """
    Recompute every balance from scratch over batch ++ existing.

    O(accounts x transactions) per apply, but correct regardless of call
    order or of earlier drift.
    """

    def apply(self, accounts, existing, batch):
        log = list(batch) + list(existing)
        return [
            acc.model_copy(update={"balance": account_balance(log, acc.id)})
            for acc in accounts
        ]


class IncrementalStrategy(BalanceStrategy):
    """Add only the batch's effects to the current balances."""

    def apply(self, accounts, existing, batch):
        deltas: dict[str, int] = {}
        for txn in batch:
            if txn.account_id:
                deltas[txn.account_id] = deltas.get(txn.account_id, 0) + signed_effect(txn)
        return [
            acc.model_copy(update={"balance": acc.balance + deltas[acc.id]})
            if acc.id in deltas else acc
            for acc in accounts
        ]


def reverse_on_accounts(accounts: Sequence[Account], txn: Transaction) -> list[Account]:
    """
    Undo one transaction's cash effect on its linked account.

    A missing account (deleted after the transaction was recorded) is a
    no-op: the row is still removed from the log by the caller.
    """
    if txn.account_id is None:
        return list(accounts)

    if not any(acc.id == txn.account_id for acc in accounts):
        logger.warning(
            "reverse_missing_account",
            transaction_id=txn.id,
            account_id=txn.account_id,
        )
        return list(accounts)

    return [
        acc.model_copy(update={"balance": acc.balance - signed_effect(txn)})
        if acc.id == txn.account_id else acc
        for acc in accounts
    ]
