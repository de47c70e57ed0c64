"""Market data services."""

from zenith.services.market.interface import MarketDataService
from zenith.services.market.simulated import (
    BASE_PRICES,
    DEFAULT_PRICE,
    SimulatedMarketDataService,
)

__all__ = [
    "BASE_PRICES",
    "DEFAULT_PRICE",
    "MarketDataService",
    "SimulatedMarketDataService",
]
