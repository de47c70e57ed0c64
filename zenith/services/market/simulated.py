"""
Simulated Market Data

DESIGN DECISION: The ledger ships with a simulated feed instead of a real
brokerage API, so it works offline and without keys. Prices are a base
table with a +/-2% random walk per fetch; unknown tickers quote 100.00.
The dividend calendar is fixed relative to today, and its ids embed the
payment date so confirmations stay deduplicated across runs.

Every price fetch goes through the same resilience path a real feed would
need: a per-attempt timeout (asyncio.wait_for) and tenacity retries with
exponential backoff. When all attempts fail the caller gets
MarketDataError and keeps the old price.
"""

import asyncio
import random
from datetime import date, timedelta
from typing import Optional

import structlog
from tenacity import AsyncRetrying, RetryError, stop_after_attempt, wait_exponential

from zenith.config import get_settings
from zenith.exceptions import MarketDataError
from zenith.models.ledger import CorporateAction, CorporateActionType, utc_today
from zenith.money import round_half_up
from zenith.services.market.interface import MarketDataService

logger = structlog.get_logger(__name__)

# Approximate prices in cents
BASE_PRICES = {
    "PETR4": 3650,
    "VALE3": 6020,
    "ITUB4": 3480,
    "BBAS3": 2750,
    "WEGE3": 5210,
    "HGLG11": 16500,
    "MXRF11": 1045,
    "KNRI11": 15890,
    "XPML11": 11590,
    "BTC": 38000000,
    "ETH": 1500000,
    "USDT": 560,
}

DEFAULT_PRICE = 10000
MAX_VARIATION = 0.02

# (ticker, type, cents per share, payment offset days, data-com offset days)
DIVIDEND_CALENDAR = [
    ("MXRF11", CorporateActionType.YIELD, 12, 0, -10),
    ("XPML11", CorporateActionType.YIELD, 92, -1, -8),
    ("PETR4", CorporateActionType.DIVIDEND, 145, 5, -20),
    ("VALE3", CorporateActionType.JCP, 233, 12, -30),
    ("HGLG11", CorporateActionType.YIELD, 110, 15, -15),
    ("ITUB4", CorporateActionType.JCP, 15, 2, -30),
]


class SimulatedMarketDataService(MarketDataService):
    """
    Offline market feed.

    Args:
        rng: Random source for the price walk (seed it in tests)
        timeout_seconds: Per-attempt timeout; defaults to ledger settings
        attempts: Attempts per ticker; defaults to ledger settings
        backoff_min_seconds / backoff_max_seconds: Retry wait bounds
        latency_seconds: Simulated network delay per quote
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        timeout_seconds: Optional[float] = None,
        attempts: Optional[int] = None,
        backoff_min_seconds: float = 2,
        backoff_max_seconds: float = 10,
        latency_seconds: float = 0.0,
    ):
        settings = get_settings().ledger
        self._rng = rng or random.Random()
        self._timeout = timeout_seconds or settings.price_fetch_timeout_seconds
        self._attempts = attempts or settings.price_fetch_attempts
        self._backoff_min = backoff_min_seconds
        self._backoff_max = backoff_max_seconds
        self._latency = latency_seconds

    async def _quote(self, ticker: str) -> int:
        """One simulated quote."""
        if self._latency:
            await asyncio.sleep(self._latency)
        base = BASE_PRICES.get(ticker, DEFAULT_PRICE)
        variation = self._rng.uniform(-MAX_VARIATION, MAX_VARIATION)
        return round_half_up(base * (1 + variation))

    async def fetch_price(self, ticker: str) -> int:
        ticker = ticker.strip().upper()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._attempts),
                wait=wait_exponential(multiplier=1, min=self._backoff_min, max=self._backoff_max),
                reraise=True,
            ):
                with attempt:
                    return await asyncio.wait_for(self._quote(ticker), timeout=self._timeout)
        except (asyncio.TimeoutError, RetryError) as e:
            logger.warning("price_fetch_timeout", ticker=ticker, attempts=self._attempts)
            raise MarketDataError(f"Timed out fetching price for {ticker}") from e
        except MarketDataError:
            raise
        except Exception as e:
            logger.warning("price_fetch_failed", ticker=ticker, error=str(e))
            raise MarketDataError(f"Could not fetch price for {ticker}: {e}") from e

    async def fetch_upcoming_dividends(self, today: Optional[date] = None) -> list[CorporateAction]:
        today = today or utc_today()
        actions = []
        for ticker, action_type, per_share, pay_offset, com_offset in DIVIDEND_CALENDAR:
            payment = today + timedelta(days=pay_offset)
            actions.append(CorporateAction(
                id=f"div-{ticker[:4].lower()}-{payment.isoformat()}",
                ticker=ticker,
                type=action_type,
                amount_per_share=per_share,
                payment_date=payment,
                data_com=today + timedelta(days=com_offset),
            ))
        return actions
