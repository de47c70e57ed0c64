"""Tests for net worth and the backward history walk."""

from datetime import date, datetime, timezone

from zenith.engine.ledger import apply_transactions
from zenith.engine.net_worth import (
    backward_delta,
    calculate_history,
    calculate_net_worth,
    market_value_by_type,
)
from zenith.models.ledger import (
    Account,
    AssetType,
    InvestmentAction,
    InvestmentAsset,
    Transaction,
    TransactionType,
)

TODAY = date(2024, 5, 10)


def on(day, hour=12):
    return datetime(2024, 5, day, hour, tzinfo=timezone.utc)


class TestNetWorth:

    def test_cash_plus_positions(self):
        accounts = [Account(name="A", balance=1000), Account(name="B", balance=-250)]
        assets = [InvestmentAsset(ticker="PETR4", quantity=10, average_price=1000, current_price=1200)]
        assert calculate_net_worth(accounts, assets) == 12750

    def test_breakdown_by_type(self):
        assets = [
            InvestmentAsset(ticker="PETR4", quantity=10, average_price=1, current_price=100, type=AssetType.STOCK),
            InvestmentAsset(ticker="VALE3", quantity=1, average_price=1, current_price=50, type=AssetType.STOCK),
            InvestmentAsset(ticker="BTC", quantity=0.5, average_price=1, current_price=1000, type=AssetType.CRYPTO),
        ]
        assert market_value_by_type(assets) == {AssetType.STOCK: 1050, AssetType.CRYPTO: 500}


class TestBackwardDelta:

    def test_directions(self):
        def txn(kind, action=None):
            return Transaction(
                amount=100,
                date=on(1),
                type=kind,
                investment_type=action,
                asset_ticker="X" if action else None,
                asset_quantity=1 if action else None,
            )

        assert backward_delta(txn(TransactionType.INCOME)) == -100
        assert backward_delta(txn(TransactionType.EXPENSE)) == 100
        assert backward_delta(txn(TransactionType.INVESTMENT, InvestmentAction.BUY)) == 100
        assert backward_delta(txn(TransactionType.INVESTMENT, InvestmentAction.SELL)) == -100
        assert backward_delta(txn(TransactionType.TRANSFER)) == 0


class TestHistory:

    def test_walk_back(self, state):
        state = apply_transactions(state, [
            Transaction(id="in", amount=1500, date=on(10), type=TransactionType.INCOME, account_id="acc-checking"),
            Transaction(id="out", amount=500, date=on(9), type=TransactionType.EXPENSE, account_id="acc-checking"),
        ])
        history = calculate_history(state.accounts, state.assets, state.transactions, 3, TODAY)
        assert history == [0, -500, 1000]

    def test_length_and_last_value(self, state):
        state = apply_transactions(state, [
            Transaction(id="in", amount=1500, date=on(3), type=TransactionType.INCOME, account_id="acc-checking"),
        ])
        history = calculate_history(state.accounts, state.assets, state.transactions, 7, TODAY)
        assert len(history) == 7
        assert history[-1] == calculate_net_worth(state.accounts, state.assets)

    def test_future_rows_never_undone(self, state):
        future = Transaction(id="f", amount=900, date=on(20), type=TransactionType.EXPENSE, card_id="card-1")
        history = calculate_history(state.accounts, state.assets, [future], 5, TODAY)
        assert history == [0, 0, 0, 0, 0]

    def test_non_positive_days(self, state):
        assert calculate_history(state.accounts, state.assets, [], 0, TODAY) == []
        assert calculate_history(state.accounts, state.assets, [], -3, TODAY) == []

    def test_default_today_is_utc_day(self, state, monkeypatch):
        monkeypatch.setattr("zenith.engine.net_worth.utc_today", lambda: date(2024, 5, 1))
        state = apply_transactions(state, [
            Transaction(id="in", amount=1500, date=on(1, hour=0), type=TransactionType.INCOME, account_id="acc-checking"),
        ])
        assert calculate_history(state.accounts, state.assets, state.transactions, 3) == [0, 0, 1500]
