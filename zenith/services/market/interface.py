"""
Market Data Interface

The ledger consumes two things from the market: a current price per ticker
and a calendar of upcoming corporate actions. Both are inputs only; nothing
behind this interface touches ledger state.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from zenith.models.ledger import CorporateAction


class MarketDataService(ABC):

    @abstractmethod
    async def fetch_price(self, ticker: str) -> int:
        """
        Current price of one unit, in cents.

        Raises:
            MarketDataError: If no price could be obtained
        """
        pass

    @abstractmethod
    async def fetch_upcoming_dividends(self, today: Optional[date] = None) -> list[CorporateAction]:
        """
        Corporate actions around today (recent and upcoming).

        Raises:
            MarketDataError: If the calendar could not be fetched
        """
        pass
