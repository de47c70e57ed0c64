"""
Ledger Exceptions

DESIGN DECISION: One base class for everything the ledger raises on purpose.
Callers that only want "did the operation fail" catch LedgerError; callers
that need to show field-level feedback catch LedgerValidationError and read
its ValidationResult.

Collaborator errors (market data, AI drafting) are defined here too, but the
LedgerService never lets them escape - they are logged and turned into
"no update".
"""

from typing import Optional

from zenith.models.ledger import ValidationResult


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class LedgerValidationError(LedgerError):
    """Input was rejected before any state mutation."""

    def __init__(self, result: ValidationResult, message: Optional[str] = None):
        self.result = result
        errors = [issue.message for issue in result.issues if issue.severity == "error"]
        super().__init__(message or "; ".join(errors) or "Invalid transaction input")


class DuplicateTransactionError(LedgerError):
    """A transaction id already exists in the log (or twice in one batch)."""

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction already recorded: {transaction_id}")


class NotFoundError(LedgerError):
    """Entity not found in the current snapshot."""
    pass


class GoalNotManualError(LedgerError):
    """Manual deposit/withdraw attempted on a goal whose progress is derived."""
    pass


class InvalidBackupError(LedgerError):
    """Imported document is not a usable ledger backup."""
    pass


class MarketDataError(Exception):
    """Price or dividend feed failed."""
    pass


class DraftingError(Exception):
    """AI transaction drafting failed."""
    pass
