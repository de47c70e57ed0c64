"""Tests for the simulated market feed."""

import asyncio
import random
from datetime import date, timedelta

import pytest

from zenith.exceptions import MarketDataError
from zenith.models.ledger import CorporateActionType
from zenith.services.market import SimulatedMarketDataService
from zenith.services.market.simulated import BASE_PRICES, DEFAULT_PRICE


def fast_service(cls=SimulatedMarketDataService, **kwargs):
    values = {
        "rng": random.Random(7),
        "timeout_seconds": 0.05,
        "attempts": 2,
        "backoff_min_seconds": 0,
        "backoff_max_seconds": 0,
    }
    values.update(kwargs)
    return cls(**values)


class FlakyService(SimulatedMarketDataService):
    """Fails the first `failures` quotes."""

    def __init__(self, failures, **kwargs):
        super().__init__(**kwargs)
        self.failures = failures
        self.calls = 0

    async def _quote(self, ticker):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("feed unavailable")
        return await super()._quote(ticker)


class SlowService(SimulatedMarketDataService):

    async def _quote(self, ticker):
        await asyncio.sleep(1)
        return 1


class TestFetchPrice:

    def test_known_ticker_within_band(self):
        service = fast_service()
        for _ in range(20):
            price = asyncio.run(service.fetch_price("petr4"))
            base = BASE_PRICES["PETR4"]
            assert base * 0.98 - 1 <= price <= base * 1.02 + 1

    def test_unknown_ticker_uses_default(self):
        price = asyncio.run(fast_service().fetch_price("ZZZZ3"))
        assert DEFAULT_PRICE * 0.98 <= price <= DEFAULT_PRICE * 1.02

    def test_seeded_rng_is_deterministic(self):
        first = asyncio.run(fast_service().fetch_price("VALE3"))
        second = asyncio.run(fast_service().fetch_price("VALE3"))
        assert first == second

    def test_retries_transient_failures(self):
        service = fast_service(FlakyService, failures=1)
        assert asyncio.run(service.fetch_price("ITUB4")) > 0
        assert service.calls == 2

    def test_gives_up_after_attempts(self):
        service = fast_service(FlakyService, failures=5)
        with pytest.raises(MarketDataError):
            asyncio.run(service.fetch_price("ITUB4"))
        assert service.calls == 2

    def test_timeout_becomes_market_data_error(self):
        service = fast_service(SlowService, timeout_seconds=0.01)
        with pytest.raises(MarketDataError):
            asyncio.run(service.fetch_price("PETR4"))


class TestDividendCalendar:

    def test_calendar_relative_to_today(self):
        today = date(2024, 5, 1)
        actions = asyncio.run(fast_service().fetch_upcoming_dividends(today))

        by_ticker = {a.ticker: a for a in actions}
        assert by_ticker["MXRF11"].payment_date == today
        assert by_ticker["MXRF11"].type == CorporateActionType.YIELD
        assert by_ticker["PETR4"].payment_date == today + timedelta(days=5)
        assert by_ticker["PETR4"].amount_per_share == 145
        assert by_ticker["PETR4"].id == "div-petr-2024-05-06"

    def test_ids_are_stable_for_the_same_day(self):
        service = fast_service()
        first = asyncio.run(service.fetch_upcoming_dividends(date(2024, 5, 1)))
        second = asyncio.run(service.fetch_upcoming_dividends(date(2024, 5, 1)))
        assert [a.id for a in first] == [a.id for a in second]
