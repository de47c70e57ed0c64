"""
Audit Models for Zenith Ledger

Every ledger mutation and every collaborator failure is logged.
This provides:
1. Traceability of how balances got where they are
2. Debugging information when a clamp or no-op path was taken
3. Ability to explain "why did my balance change"

DESIGN DECISION: Audit logs are append-only. They are a log, not an undo
stack - nothing replays them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from zenith.models.ledger import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Ledger mutations
    TRANSACTIONS_APPLIED = "transactions_applied"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_REJECTED = "transaction_rejected"

    # Accounts and cards
    ACCOUNT_SAVED = "account_saved"
    ACCOUNT_DELETED = "account_deleted"
    CARD_SAVED = "card_saved"
    CARD_DELETED = "card_deleted"

    # Goals
    GOAL_SAVED = "goal_saved"
    GOAL_DELETED = "goal_deleted"
    GOAL_AMOUNT_UPDATED = "goal_amount_updated"

    # Investments
    DIVIDEND_CONFIRMED = "dividend_confirmed"
    REINVESTMENT_RESET = "reinvestment_reset"
    PRICES_REFRESHED = "prices_refreshed"

    # Backups
    BACKUP_IMPORTED = "backup_imported"
    BACKUP_REJECTED = "backup_rejected"
    BACKUP_EXPORTED = "backup_exported"

    # Drafting
    DRAFT_CREATED = "draft_created"
    DRAFT_FAILED = "draft_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about? Ledger ids are strings ("txn-...", "goal-...")
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'backup')"
    )
    entity_id: Optional[str] = None

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., both legs of a transfer)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transactions_applied(ids, total, correlation_id)
        event = AuditEventBuilder.goal_amount_updated(goal_id, delta, new_amount)
    """

    @staticmethod
    def transactions_applied(
        transaction_ids: list[str],
        total_amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_APPLIED,
            entity_type="transaction",
            entity_id=transaction_ids[0] if len(transaction_ids) == 1 else None,
            correlation_id=correlation_id,
            description=f"{len(transaction_ids)} transaction(s) applied",
            details={
                "transaction_ids": transaction_ids,
                "total_amount": total_amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_ids[0] if transaction_ids else None,
            correlation_id=correlation_id,
            description=f"Deleted {len(transaction_ids)} transaction(s)",
            details={"transaction_ids": transaction_ids},
            is_user_action=True,
        )

    @staticmethod
    def transaction_rejected(
        kind: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"{kind.capitalize()} entry rejected with {len(issues)} issue(s)",
            details={"kind": kind, "issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def entity_saved(event_type: AuditEventType, entity_type: str, entity_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} saved: {name}",
            is_user_action=True,
        )

    @staticmethod
    def entity_deleted(event_type: AuditEventType, entity_type: str, entity_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=f"{entity_type.capitalize()} deleted",
            is_user_action=True,
        )

    @staticmethod
    def goal_amount_updated(goal_id: str, delta: int, new_amount: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_AMOUNT_UPDATED,
            entity_type="goal",
            entity_id=goal_id,
            description="Goal deposit" if delta >= 0 else "Goal withdrawal",
            details={"delta": delta, "saved_amount": new_amount},
            is_user_action=True,
        )

    @staticmethod
    def dividend_confirmed(
        corporate_action_id: str,
        transaction_id: str,
        account_id: str,
        amount: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DIVIDEND_CONFIRMED,
            entity_type="corporate_action",
            entity_id=corporate_action_id,
            description=f"Dividend received into {account_id}",
            details={
                "transaction_id": transaction_id,
                "account_id": account_id,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def reinvestment_reset(reset_at: datetime) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REINVESTMENT_RESET,
            description="Reinvestment counter reset",
            details={"reset_at": reset_at.isoformat()},
            is_user_action=True,
        )

    @staticmethod
    def prices_refreshed(updated: list[str], failed: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRICES_REFRESHED,
            severity=AuditSeverity.WARNING if failed else AuditSeverity.INFO,
            description=f"Prices refreshed for {len(updated)} asset(s), {len(failed)} failed",
            details={"updated": updated, "failed": failed},
        )

    @staticmethod
    def backup_imported(accounts: int, transactions: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_IMPORTED,
            entity_type="backup",
            description="Backup imported",
            details={"accounts": accounts, "transactions": transactions},
            is_user_action=True,
        )

    @staticmethod
    def backup_rejected(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="backup",
            description="Backup rejected",
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def backup_exported(filename: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BACKUP_EXPORTED,
            entity_type="backup",
            entity_id=filename,
            description=f"Backup exported: {filename}",
            is_user_action=True,
        )

    @staticmethod
    def draft_created(kind: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRAFT_CREATED,
            entity_type="draft",
            description=f"AI drafted a {kind.lower()} entry",
        )

    @staticmethod
    def draft_failed(reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRAFT_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="draft",
            description="Could not draft a transaction from text",
            error_message=reason,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
            correlation_id=correlation_id,
        )
