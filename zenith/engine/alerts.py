"""
Health Check Alerts

Scans a snapshot for things the user should hear about today:

1. Accounts in the red
2. Credit cards past a usage threshold
3. Invoice closing day and due day
4. Dividends paying tomorrow

Notification ids embed the day, so each alert fires at most once per day
no matter how often the check runs. Delivery is somebody else's job; this
module only decides what to say.
"""

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Sequence

from zenith.engine.credit_card import limit_usage
from zenith.engine.dividends import UpcomingDividend, project_dividends
from zenith.models.ledger import (
    AppState,
    CorporateAction,
    NotificationItem,
    NotificationType,
)
from zenith.money import format_cents

DEFAULT_LIMIT_THRESHOLDS = (0.8, 0.9, 1.0)


def _limit_alert(ratio: float, thresholds: Sequence[float]):
    """(title, message template, type) for the highest threshold reached, or None."""
    reached = [t for t in sorted(thresholds) if ratio >= t]
    if not reached:
        return None
    top = reached[-1]
    if top >= 1.0:
        return "Limit Exhausted", "You have used all of the {card} limit.", NotificationType.WARNING
    if top == min(thresholds):
        return (
            "Limit Management",
            f"You have passed {round(top * 100)}% of the {{card}} limit.",
            NotificationType.INFO,
        )
    return (
        "Watch Your Limit",
        f"You have already used {round(top * 100)}% of the {{card}} limit.",
        NotificationType.WARNING,
    )


def check_alerts(
    state: AppState,
    today: date,
    corporate_actions: Iterable[CorporateAction] = (),
    limit_thresholds: Sequence[float] = DEFAULT_LIMIT_THRESHOLDS,
) -> list[NotificationItem]:
    """
    New notifications for today, excluding any already in state.notifications.
    """
    known = {n.id for n in state.notifications}
    alerts: list[NotificationItem] = []
    now = datetime.combine(today, time(hour=9), tzinfo=timezone.utc)
    day = today.isoformat()

    def push(item_id: str, title: str, message: str, kind: NotificationType) -> None:
        if item_id in known:
            return
        known.add(item_id)
        alerts.append(NotificationItem(
            id=item_id,
            title=title,
            message=message,
            date=now,
            type=kind,
        ))

    for account in state.accounts:
        if account.balance < 0:
            push(
                f"alert-balance-neg-{account.id}-{day}",
                "Account in the Red",
                f"{account.name} is negative at {format_cents(account.balance, account.currency.value)}.",
                NotificationType.WARNING,
            )

    for card in state.credit_cards:
        ratio = limit_usage(card, state.transactions)
        alert = _limit_alert(ratio, limit_thresholds)
        if alert:
            title, template, kind = alert
            push(
                f"alert-limit-{math.floor(ratio * 100)}-{card.id}-{day}",
                title,
                template.format(card=card.name),
                kind,
            )

        if today.day == card.closing_day:
            push(
                f"alert-invoice-close-{card.id}-{day}",
                "Invoice Closed",
                f"The {card.name} invoice closes today.",
                NotificationType.INFO,
            )
        if today.day == card.due_day:
            push(
                f"alert-invoice-due-{card.id}-{day}",
                "Invoice Due Today",
                f"Remember to pay the {card.name} invoice to avoid interest.",
                NotificationType.WARNING,
            )

    tomorrow = today + timedelta(days=1)
    upcoming: list[UpcomingDividend] = project_dividends(
        state.assets,
        corporate_actions,
        state.processed_corporate_action_ids,
    )
    for payout in upcoming:
        if payout.payment_date == tomorrow:
            push(
                f"alert-div-{payout.ticker}-{tomorrow.isoformat()}",
                "Income Incoming",
                f"{payout.label} of {format_cents(payout.amount)} pays tomorrow!",
                NotificationType.SUCCESS,
            )

    return alerts
