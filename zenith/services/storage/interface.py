"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the JSON file for a database later
2. Use in-memory storage for testing
3. Keep the ledger service decoupled from where snapshots live

The interface is intentionally tiny. The ledger is one document, so state
storage is load/save of the whole AppState, nothing more.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from zenith.models.audit import AuditEvent
from zenith.models.ledger import AppState


class StateStorageInterface(ABC):
    """
    Abstract interface for ledger snapshot storage.

    Any storage implementation (JSON file, key-value store, etc.)
    must implement these methods.
    """

    @abstractmethod
    def load(self) -> Optional[AppState]:
        """
        Load the persisted snapshot.

        Returns:
            The stored AppState, or None if nothing has been saved yet

        Raises:
            StorageError: If stored data exists but cannot be read
        """
        pass

    @abstractmethod
    def save(self, state: AppState) -> bool:
        """
        Persist a snapshot, replacing the previous one.

        Args:
            state: The snapshot to store

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., both legs of a transfer).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    def get_events_by_entity(self, entity_type: str, entity_id: str) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'transaction', 'goal')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptStateError(StorageError):
    """Stored snapshot exists but is not a readable ledger document."""
    pass
