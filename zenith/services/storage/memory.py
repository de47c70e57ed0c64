"""
In-Memory Storage

Used by tests and by callers that do not want persistence. Behaves like
the file backend: save stores an independent copy, load hands it back.
"""

from typing import Optional
from uuid import UUID

from zenith.models.audit import AuditEvent
from zenith.models.ledger import AppState
from zenith.services.storage.interface import AuditStorageInterface, StateStorageInterface


class InMemoryStateStorage(StateStorageInterface):

    def __init__(self, initial: Optional[AppState] = None):
        self._state = initial
        self.save_count = 0

    def load(self) -> Optional[AppState]:
        return self._state

    def save(self, state: AppState) -> bool:
        # Snapshots are never mutated in place
        self._state = state
        self.save_count += 1
        return True


class InMemoryAuditStorage(AuditStorageInterface):

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        matching = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(matching, key=lambda e: e.timestamp)

    def get_events_by_entity(self, entity_type: str, entity_id: str) -> list[AuditEvent]:
        matching = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(matching, key=lambda e: e.timestamp)

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
