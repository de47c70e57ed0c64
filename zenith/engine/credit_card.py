"""
Credit Card Engine

Installment plans, invoice totals and used limit.

DESIGN DECISION: each installment is its own Transaction dated on the due
date of the invoice that bills it. Invoices are then just "card expenses
dated in month M", which keeps the invoice query trivial.

Billing cycle: a purchase made on or after the closing day falls into the
next cycle. Installment k (0-based) is due on due_day of
billing_month + 1 + k. When due_day does not exist in that month (31 in
April) the last day of the month is used.
"""

from datetime import date, datetime, time, timezone
from typing import Iterable, Optional, Union

from dateutil.relativedelta import relativedelta

from zenith.models.ledger import (
    CreditCard,
    Installment,
    Transaction,
    TransactionType,
    new_id,
    utc_today,
)
from zenith.money import divide_cents


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def generate_installment_plan(
    card: CreditCard,
    total_amount: int,
    installments: int,
    description: str,
    category: str,
    purchase_date: Union[date, datetime],
) -> list[Transaction]:
    """
    Split a card purchase into `installments` monthly EXPENSE rows.

    Each row carries round(total / n) cents. The remainder is NOT
    redistributed, so the plan may differ from the total by up to n-1 cents.

    Raises:
        ValueError: If installments < 1 or the amount is negative
    """
    if installments < 1:
        raise ValueError("An installment plan needs at least one installment")
    if total_amount < 0:
        raise ValueError("Purchase amount cannot be negative")

    purchased = _as_date(purchase_date)
    installment_value = divide_cents(total_amount, installments)

    billing_month = date(purchased.year, purchased.month, 1)
    if purchased.day >= card.closing_day:
        billing_month += relativedelta(months=1)

    plan = []
    for k in range(installments):
        due = billing_month + relativedelta(months=1 + k, day=card.due_day)
        plan.append(Transaction(
            id=new_id("txn"),
            description=f"{description} ({k + 1}/{installments})",
            amount=installment_value,
            date=datetime.combine(due, time.min, tzinfo=timezone.utc),
            type=TransactionType.EXPENSE,
            category=category,
            card_id=card.id,
            is_cleared=False,
            installment=Installment(current=k + 1, total=installments),
        ))
    return plan


def _card_expenses(transactions: Iterable[Transaction], card_id: str) -> Iterable[Transaction]:
    return (
        t for t in transactions
        if t.card_id == card_id and t.type == TransactionType.EXPENSE
    )


def calculate_invoice_total(
    transactions: Iterable[Transaction],
    card_id: str,
    month_offset: int = 0,
    today: Optional[date] = None,
) -> int:
    """
    Total billed to a card in the calendar month today + month_offset.

    month_offset=0 is the current invoice, 1 the next, -1 the previous.
    Cleared and uncleared rows both count.
    """
    today = today or utc_today()
    target = date(today.year, today.month, 1) + relativedelta(months=month_offset)
    return sum(
        t.amount for t in _card_expenses(transactions, card_id)
        if (t.date.year, t.date.month) == (target.year, target.month)
    )


def calculate_total_used_limit(transactions: Iterable[Transaction], card_id: str) -> int:
    """
    Everything still owed on the card: all uncleared expenses, including
    installments billed in future invoices.
    """
    return sum(t.amount for t in _card_expenses(transactions, card_id) if not t.is_cleared)


def available_limit(card: CreditCard, transactions: Iterable[Transaction]) -> int:
    return card.limit - calculate_total_used_limit(transactions, card.id)


def limit_usage(card: CreditCard, transactions: Iterable[Transaction]) -> float:
    """Used limit as a ratio of the card limit (0.0 for a zero-limit card)."""
    if card.limit <= 0:
        return 0.0
    return calculate_total_used_limit(transactions, card.id) / card.limit
