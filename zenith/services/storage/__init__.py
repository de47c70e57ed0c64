"""
Storage Services Package

Provides abstract interfaces and concrete implementations for ledger
snapshots and the audit trail. The JSON file is the default backend.
"""

from zenith.services.storage.backup import (
    backup_filename,
    export_document,
    migrate_document,
    parse_document,
)
from zenith.services.storage.interface import (
    AuditStorageInterface,
    CorruptStateError,
    StateStorageInterface,
    StorageError,
)
from zenith.services.storage.json_file import JsonFileStateStorage
from zenith.services.storage.memory import InMemoryAuditStorage, InMemoryStateStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "StateStorageInterface",
    # Exceptions
    "CorruptStateError",
    "StorageError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryStateStorage",
    "JsonFileStateStorage",
    # Backups
    "backup_filename",
    "export_document",
    "migrate_document",
    "parse_document",
]
