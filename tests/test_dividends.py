"""Tests for dividend projection and the reinvestment balance."""

from datetime import date, datetime, timezone

from zenith.engine.dividends import project_dividends, reinvestment_balance
from zenith.models.ledger import (
    INVESTMENT_INCOME_CATEGORY,
    CorporateAction,
    CorporateActionType,
    InvestmentAction,
    InvestmentAsset,
    Transaction,
    TransactionType,
)

RESET = datetime(2024, 5, 1, tzinfo=timezone.utc)


def action(action_id, ticker, per_share, payment_day):
    return CorporateAction(
        id=action_id,
        ticker=ticker,
        type=CorporateActionType.DIVIDEND,
        amount_per_share=per_share,
        payment_date=date(2024, 5, payment_day),
        data_com=date(2024, 4, 1),
    )


def row(kind, amount, day, category="Other", action=None):
    return Transaction(
        amount=amount,
        date=datetime(2024, 5, day, tzinfo=timezone.utc),
        type=kind,
        category=category,
        investment_type=action,
        asset_ticker="PETR4" if action else None,
        asset_quantity=1 if action else None,
    )


class TestProjection:

    def test_only_held_unprocessed_sorted(self):
        assets = [
            InvestmentAsset(ticker="PETR4", quantity=100, average_price=1, current_price=1),
            InvestmentAsset(ticker="VALE3", quantity=3, average_price=1, current_price=1),
        ]
        actions = [
            action("a", "VALE3", 233, 20),
            action("b", "PETR4", 145, 10),
            action("c", "ITUB4", 15, 5),
            action("d", "PETR4", 100, 2),
        ]
        upcoming = project_dividends(assets, actions, processed_ids=["d"])
        assert [d.id for d in upcoming] == ["b", "a"]
        assert upcoming[0].amount == 14500
        assert upcoming[1].amount == 699
        assert upcoming[0].label == "Dividends - PETR4"

    def test_fractional_quantity_rounds(self):
        assets = [InvestmentAsset(ticker="PETR4", quantity=0.5, average_price=1, current_price=1)]
        upcoming = project_dividends(assets, [action("a", "PETR4", 15, 10)])
        assert upcoming[0].amount == 8


class TestReinvestmentBalance:

    def test_counts_dividends_and_sales_after_reset(self):
        txns = [
            row(TransactionType.INCOME, 1000, 10, category=INVESTMENT_INCOME_CATEGORY),
            row(TransactionType.INVESTMENT, 5000, 11, action=InvestmentAction.SELL),
            row(TransactionType.INVESTMENT, 7000, 12, action=InvestmentAction.BUY),
            row(TransactionType.INCOME, 9000, 12, category="Salary"),
        ]
        assert reinvestment_balance(txns, RESET) == 6000

    def test_ignores_rows_before_reset(self):
        txns = [
            Transaction(
                amount=1000,
                date=datetime(2024, 4, 30, tzinfo=timezone.utc),
                type=TransactionType.INCOME,
                category=INVESTMENT_INCOME_CATEGORY,
            ),
        ]
        assert reinvestment_balance(txns, RESET) == 0
