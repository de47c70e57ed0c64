"""Tests for health check alerts."""

from datetime import date, datetime, timezone

from zenith.engine.alerts import check_alerts
from zenith.models.ledger import (
    Account,
    AppState,
    CorporateAction,
    CorporateActionType,
    CreditCard,
    InvestmentAsset,
    NotificationItem,
    NotificationType,
    Transaction,
    TransactionType,
)

TODAY = date(2024, 5, 15)


def card_debt(amount, card_id="card-1"):
    return Transaction(
        amount=amount,
        date=datetime(2024, 6, 20, tzinfo=timezone.utc),
        type=TransactionType.EXPENSE,
        card_id=card_id,
        is_cleared=False,
    )


def by_id(alerts):
    return {a.id: a for a in alerts}


class TestBalanceAlerts:

    def test_negative_balance(self):
        state = AppState(accounts=[Account(id="acc-1", name="Checking", balance=-100)])
        alerts = by_id(check_alerts(state, TODAY))
        alert = alerts["alert-balance-neg-acc-1-2024-05-15"]
        assert alert.type == NotificationType.WARNING
        assert "-R$ 1,00" in alert.message

    def test_positive_balance_is_quiet(self):
        state = AppState(accounts=[Account(id="acc-1", name="Checking", balance=0)])
        assert check_alerts(state, TODAY) == []


class TestCardAlerts:

    def card(self, **kwargs):
        values = {"id": "card-1", "name": "Nubank", "limit": 1000, "closing_day": 1, "due_day": 5}
        values.update(kwargs)
        return CreditCard(**values)

    def test_eighty_percent_is_info(self):
        state = AppState(credit_cards=[self.card()], transactions=[card_debt(820)])
        alert = check_alerts(state, TODAY)[0]
        assert alert.id == "alert-limit-82-card-1-2024-05-15"
        assert alert.type == NotificationType.INFO

    def test_ninety_percent_is_warning(self):
        state = AppState(credit_cards=[self.card()], transactions=[card_debt(950)])
        alert = check_alerts(state, TODAY)[0]
        assert alert.id == "alert-limit-95-card-1-2024-05-15"
        assert alert.type == NotificationType.WARNING
        assert "90%" in alert.message

    def test_exhausted(self):
        state = AppState(credit_cards=[self.card()], transactions=[card_debt(1200)])
        alert = check_alerts(state, TODAY)[0]
        assert alert.id == "alert-limit-120-card-1-2024-05-15"
        assert alert.title == "Limit Exhausted"

    def test_below_threshold_is_quiet(self):
        state = AppState(credit_cards=[self.card()], transactions=[card_debt(100)])
        assert check_alerts(state, TODAY) == []

    def test_custom_thresholds(self):
        state = AppState(credit_cards=[self.card()], transactions=[card_debt(500)])
        assert len(check_alerts(state, TODAY, limit_thresholds=[0.5])) == 1

    def test_closing_and_due_day(self):
        state = AppState(credit_cards=[self.card(closing_day=15, due_day=15)])
        alerts = by_id(check_alerts(state, TODAY))
        assert alerts["alert-invoice-close-card-1-2024-05-15"].type == NotificationType.INFO
        assert alerts["alert-invoice-due-card-1-2024-05-15"].type == NotificationType.WARNING


class TestDividendAlerts:

    def state(self, **kwargs):
        return AppState(
            assets=[InvestmentAsset(ticker="MXRF11", quantity=100, average_price=1000, current_price=1000)],
            **kwargs,
        )

    def action(self, payment_date, action_id="div-mxrf-1"):
        return CorporateAction(
            id=action_id,
            ticker="MXRF11",
            type=CorporateActionType.YIELD,
            amount_per_share=12,
            payment_date=payment_date,
            data_com=date(2024, 5, 1),
        )

    def test_pays_tomorrow(self):
        alerts = check_alerts(self.state(), TODAY, [self.action(date(2024, 5, 16))])
        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.id == "alert-div-MXRF11-2024-05-16"
        assert alert.type == NotificationType.SUCCESS
        assert "R$ 12,00" in alert.message

    def test_other_days_are_quiet(self):
        assert check_alerts(self.state(), TODAY, [self.action(date(2024, 5, 20))]) == []

    def test_processed_is_quiet(self):
        state = self.state(processed_corporate_action_ids=["div-mxrf-1"])
        assert check_alerts(state, TODAY, [self.action(date(2024, 5, 16))]) == []

    def test_not_held_is_quiet(self):
        state = AppState()
        assert check_alerts(state, TODAY, [self.action(date(2024, 5, 16))]) == []


class TestDeduplication:

    def test_existing_notification_not_repeated(self):
        existing = NotificationItem(
            id="alert-balance-neg-acc-1-2024-05-15",
            title="Account in the Red",
            message="...",
            date=datetime(2024, 5, 15, 9, tzinfo=timezone.utc),
        )
        state = AppState(
            accounts=[Account(id="acc-1", name="Checking", balance=-100)],
            notifications=[existing],
        )
        assert check_alerts(state, TODAY) == []

    def test_next_day_fires_again(self):
        state = AppState(accounts=[Account(id="acc-1", name="Checking", balance=-100)])
        first = check_alerts(state, TODAY)
        state = state.model_copy(update={"notifications": first})
        assert len(check_alerts(state, date(2024, 5, 16))) == 1
