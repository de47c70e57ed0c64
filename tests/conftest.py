"""Shared fixtures: a small ledger with two accounts and one card."""

from datetime import datetime, timezone

import pytest

from zenith.audit import AuditLogger
from zenith.config import LedgerSettings
from zenith.models.ledger import Account, AppState, CreditCard
from zenith.orchestrator import LedgerService
from zenith.services.storage import InMemoryAuditStorage, InMemoryStateStorage


def utc(year, month, day, hour=12):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def checking():
    return Account(id="acc-checking", name="Checking")


@pytest.fixture
def savings():
    return Account(id="acc-savings", name="Savings")


@pytest.fixture
def card():
    return CreditCard(id="card-1", name="Nubank", limit=100000, closing_day=10, due_day=20)


@pytest.fixture
def state(checking, savings, card):
    return AppState(accounts=[checking, savings], credit_cards=[card])


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def state_storage():
    return InMemoryStateStorage()


@pytest.fixture
def service(state, state_storage, audit_storage):
    return LedgerService(
        state=state,
        storage=state_storage,
        audit_logger=AuditLogger(audit_storage),
        settings=LedgerSettings(),
    )
