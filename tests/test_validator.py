"""Tests for entry validation and the entry builders."""

from datetime import datetime, timedelta, timezone

import pytest

from zenith.engine.entries import build_transactions
from zenith.engine.ledger import apply_transactions
from zenith.models.ledger import (
    TRANSFER_CATEGORY,
    AppState,
    AssetType,
    EntryKind,
    InvestmentAction,
    InvestmentAsset,
    TransactionRequest,
    TransactionType,
)
from zenith.validation.validator import TransactionValidator

WHEN = datetime(2024, 3, 5, 12, tzinfo=timezone.utc)


@pytest.fixture
def validator():
    return TransactionValidator(future_date_tolerance_days=30)


def request(**kwargs):
    values = {
        "kind": EntryKind.EXPENSE,
        "amount": 1000,
        "date": WHEN,
        "description": "Lunch",
        "method_id": "acc-checking",
    }
    values.update(kwargs)
    return TransactionRequest(**values)


def issue_fields(result):
    return {issue.field for issue in result.issues if issue.severity == "error"}


class TestSchemaStage:

    def test_valid_expense(self, validator, state):
        result = validator.validate(request(), state)
        assert result.is_valid
        assert result.issues == []

    def test_missing_fields_reported_together(self, validator, state):
        result = validator.validate(
            TransactionRequest(kind=EntryKind.EXPENSE),
            state,
        )
        assert not result.is_valid
        assert issue_fields(result) == {"amount", "date", "method_id", "description"}

    def test_non_positive_amount(self, validator, state):
        result = validator.validate(request(amount=0), state)
        assert issue_fields(result) == {"amount"}

    def test_no_accounts_configured(self, validator):
        result = validator.validate(request(), AppState())
        assert "accounts" in issue_fields(result)

    def test_card_purchase_needs_no_cash_account(self, validator, card):
        result = validator.validate(request(method_id="card-1", installments=2), AppState(credit_cards=[card]))
        assert result.is_valid

    def test_income_still_needs_an_account(self, validator, card):
        result = validator.validate(
            request(kind=EntryKind.INCOME, method_id="card-1"), AppState(credit_cards=[card])
        )
        assert "accounts" in issue_fields(result)

    def test_naive_date_treated_as_utc(self, validator, state):
        naive = request(date=datetime(2024, 3, 5, 12))
        assert naive.date == WHEN
        assert validator.validate(naive, state).is_valid

    def test_investment_needs_ticker_and_quantity(self, validator, state):
        result = validator.validate(request(kind=EntryKind.INVESTMENT, description=None), state)
        assert issue_fields(result) == {"ticker", "quantity"}

    def test_investment_quantity_positive(self, validator, state):
        result = validator.validate(
            request(kind=EntryKind.INVESTMENT, ticker="PETR4", quantity=0), state
        )
        assert issue_fields(result) == {"quantity"}

    def test_semantic_stage_skipped_on_schema_errors(self, validator, state):
        result = validator.validate(request(amount=None, method_id="nope"), state)
        assert issue_fields(result) == {"amount"}


class TestSemanticStage:

    def test_unknown_method(self, validator, state):
        result = validator.validate(request(method_id="nope"), state)
        assert issue_fields(result) == {"method_id"}

    def test_card_expense_allowed(self, validator, state):
        assert validator.validate(request(method_id="card-1", installments=3), state).is_valid

    def test_card_income_rejected(self, validator, state):
        result = validator.validate(request(kind=EntryKind.INCOME, method_id="card-1"), state)
        assert issue_fields(result) == {"method_id"}
        assert "Cards can only be used for expenses" in result.issues[0].message

    def test_installments_need_card(self, validator, state):
        result = validator.validate(request(installments=3), state)
        assert issue_fields(result) == {"installments"}

    def test_transfer_to_same_account(self, validator, state):
        result = validator.validate(
            request(kind=EntryKind.TRANSFER, destination_account_id="acc-checking"), state
        )
        assert issue_fields(result) == {"destination_account_id"}

    def test_transfer_needs_destination(self, validator, state):
        result = validator.validate(request(kind=EntryKind.TRANSFER), state)
        assert issue_fields(result) == {"destination_account_id"}

    def test_transfer_from_card_rejected(self, validator, state):
        result = validator.validate(
            request(kind=EntryKind.TRANSFER, method_id="card-1", destination_account_id="acc-savings"),
            state,
        )
        assert issue_fields(result) == {"method_id"}

    def test_far_future_date_warns(self, validator, state):
        future = datetime.now(timezone.utc) + timedelta(days=90)
        result = validator.validate(request(date=future), state)
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_oversell_warns(self, validator, state):
        result = validator.validate(
            request(
                kind=EntryKind.INVESTMENT,
                ticker="petr4",
                quantity=5,
                action=InvestmentAction.SELL,
            ),
            state,
        )
        assert result.is_valid
        assert "only 0 held" in result.warnings[0]

    def test_padded_ticker_matches_position(self, validator, state):
        held = state.model_copy(update={
            "assets": [InvestmentAsset(ticker="PETR4", quantity=10, average_price=1000, current_price=1000)],
        })
        sale = request(
            kind=EntryKind.INVESTMENT,
            ticker=" petr4 ",
            quantity=5,
            action=InvestmentAction.SELL,
        )
        result = validator.validate(sale, held)
        assert result.is_valid
        assert result.warnings == []


class TestSummary:

    def test_all_good(self, validator, state):
        result = validator.validate(request(), state)
        assert validator.get_user_friendly_summary(result).startswith("✅")

    def test_lists_errors_with_fixes(self, validator, state):
        result = validator.validate(request(installments=2), state)
        summary = validator.get_user_friendly_summary(result)
        assert "Installments are only available on credit cards" in summary
        assert "💡" in summary


class TestBuildTransactions:

    def test_account_expense(self, state):
        rows = build_transactions(request(category="Food"), state)
        assert len(rows) == 1
        row = rows[0]
        assert row.type == TransactionType.EXPENSE
        assert row.account_id == "acc-checking"
        assert row.is_cleared
        assert row.category == "Food"

    def test_card_expense_uses_installments(self, state):
        rows = build_transactions(request(method_id="card-1", installments=4, amount=10000), state)
        assert len(rows) == 4
        assert all(r.card_id == "card-1" and not r.is_cleared for r in rows)

    def test_income(self, state):
        rows = build_transactions(request(kind=EntryKind.INCOME, category="Salary"), state)
        assert rows[0].type == TransactionType.INCOME
        assert rows[0].category == "Salary"

    def test_transfer_legs(self, state):
        rows = build_transactions(
            request(kind=EntryKind.TRANSFER, destination_account_id="acc-savings", description=None),
            state,
        )
        out_leg, in_leg = rows
        assert out_leg.type == TransactionType.EXPENSE and out_leg.account_id == "acc-checking"
        assert in_leg.type == TransactionType.INCOME and in_leg.account_id == "acc-savings"
        assert out_leg.transfer_id == in_leg.transfer_id is not None
        assert out_leg.category == TRANSFER_CATEGORY
        assert out_leg.description == "Transfer to Savings"

        applied = apply_transactions(state, rows)
        assert applied.find_account("acc-checking").balance == -1000
        assert applied.find_account("acc-savings").balance == 1000

    def test_investment(self, state):
        rows = build_transactions(
            request(
                kind=EntryKind.INVESTMENT,
                ticker="hglg11",
                quantity=3,
                amount=10000,
                description=None,
                asset_type=AssetType.FII,
            ),
            state,
        )
        row = rows[0]
        assert row.type == TransactionType.INVESTMENT
        assert row.investment_type == InvestmentAction.BUY
        assert row.asset_ticker == "HGLG11"
        assert row.asset_price == 3333
        assert row.description == "Buy HGLG11"
        assert row.category == "REITs"

        applied = apply_transactions(state, rows)
        assert applied.find_asset("HGLG11").type == AssetType.FII
