"""Services package."""

from zenith.services.market import (
    MarketDataService,
    SimulatedMarketDataService,
)
from zenith.services.storage import (
    AuditStorageInterface,
    CorruptStateError,
    InMemoryAuditStorage,
    InMemoryStateStorage,
    JsonFileStateStorage,
    StateStorageInterface,
    StorageError,
)

__all__ = [
    # Market data
    "MarketDataService",
    "SimulatedMarketDataService",
    # Storage services
    "AuditStorageInterface",
    "CorruptStateError",
    "InMemoryAuditStorage",
    "InMemoryStateStorage",
    "JsonFileStateStorage",
    "StateStorageInterface",
    "StorageError",
]
