"""
Data Models Package

This package contains all Pydantic models used by Zenith Ledger.
Everything that is persisted or crosses a module boundary conforms to these
schemas.
"""

from zenith.models.ledger import (
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    INVESTMENT_CATEGORIES,
    INVESTMENT_INCOME_CATEGORY,
    OPENING_BALANCE_CATEGORY,
    TRANSFER_CATEGORY,
    TRANSFER_RECEIVED_CATEGORY,
    Account,
    AccountType,
    AppState,
    AssetType,
    CardBrand,
    CorporateAction,
    CorporateActionType,
    CreditCard,
    Currency,
    EntryKind,
    FinancialGoal,
    GoalType,
    Installment,
    InvestmentAction,
    InvestmentAsset,
    NotificationItem,
    NotificationType,
    Transaction,
    TransactionRequest,
    TransactionType,
    UserProfile,
    ValidationIssue,
    ValidationResult,
    ensure_utc,
    new_id,
    utc_now,
    utc_today,
)
from zenith.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Category constants
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "INVESTMENT_CATEGORIES",
    "INVESTMENT_INCOME_CATEGORY",
    "OPENING_BALANCE_CATEGORY",
    "TRANSFER_CATEGORY",
    "TRANSFER_RECEIVED_CATEGORY",
    # Ledger models
    "Account",
    "AccountType",
    "AppState",
    "AssetType",
    "CardBrand",
    "CorporateAction",
    "CorporateActionType",
    "CreditCard",
    "Currency",
    "EntryKind",
    "FinancialGoal",
    "GoalType",
    "Installment",
    "InvestmentAction",
    "InvestmentAsset",
    "NotificationItem",
    "NotificationType",
    "Transaction",
    "TransactionRequest",
    "TransactionType",
    "UserProfile",
    "ValidationIssue",
    "ValidationResult",
    "ensure_utc",
    "new_id",
    "utc_now",
    "utc_today",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
