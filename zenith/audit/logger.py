"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged.
This provides:
1. Traceability of how balances got where they are
2. Debugging capability for the clamp and no-op paths
3. A history the user can read back

The audit logger:
- Is synchronous; it runs inside the ledger service's write lock
- Gracefully handles failures (a broken audit store never fails a mutation)
- Supports correlation IDs to trace related events
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

import structlog

from zenith.models.audit import AuditEvent, AuditEventBuilder, AuditEventType, AuditSeverity
from zenith.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An AuditStorageInterface, when one is configured
    """

    def __init__(self, storage: Optional[AuditStorageInterface] = None):
        """
        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("zenith.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_transactions_applied(
        self,
        transaction_ids: list[str],
        total_amount: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transactions_applied(
            transaction_ids=transaction_ids,
            total_amount=total_amount,
            correlation_id=correlation_id,
        ))

    def log_transaction_deleted(
        self,
        transaction_ids: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_deleted(
            transaction_ids=transaction_ids,
            correlation_id=correlation_id,
        ))

    def log_transaction_rejected(
        self,
        kind: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an entry that failed validation."""
        self.log(AuditEventBuilder.transaction_rejected(
            kind=kind,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_entity_saved(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str,
        name: str,
    ) -> None:
        self.log(AuditEventBuilder.entity_saved(event_type, entity_type, entity_id, name))

    def log_entity_deleted(self, event_type: AuditEventType, entity_type: str, entity_id: str) -> None:
        self.log(AuditEventBuilder.entity_deleted(event_type, entity_type, entity_id))

    def log_goal_amount_updated(self, goal_id: str, delta: int, new_amount: int) -> None:
        self.log(AuditEventBuilder.goal_amount_updated(goal_id, delta, new_amount))

    def log_dividend_confirmed(
        self,
        corporate_action_id: str,
        transaction_id: str,
        account_id: str,
        amount: int,
    ) -> None:
        self.log(AuditEventBuilder.dividend_confirmed(
            corporate_action_id=corporate_action_id,
            transaction_id=transaction_id,
            account_id=account_id,
            amount=amount,
        ))

    def log_reinvestment_reset(self, reset_at: datetime) -> None:
        self.log(AuditEventBuilder.reinvestment_reset(reset_at))

    def log_prices_refreshed(self, updated: list[str], failed: list[str]) -> None:
        self.log(AuditEventBuilder.prices_refreshed(updated, failed))

    def log_backup_imported(self, accounts: int, transactions: int) -> None:
        self.log(AuditEventBuilder.backup_imported(accounts, transactions))

    def log_backup_rejected(self, reason: str) -> None:
        self.log(AuditEventBuilder.backup_rejected(reason))

    def log_backup_exported(self, filename: str) -> None:
        self.log(AuditEventBuilder.backup_exported(filename))

    def log_draft_created(self, kind: str) -> None:
        self.log(AuditEventBuilder.draft_created(kind))

    def log_draft_failed(self, reason: str) -> None:
        self.log(AuditEventBuilder.draft_failed(reason))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., recording a transfer).
    Pass it through all subsequent operations.
    """
    return uuid4()
