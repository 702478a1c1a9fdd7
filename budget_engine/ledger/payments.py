"""
Automatic Payments

Recurring payments (rent, subscriptions, savings transfers) that become
expenses when they fall due.

DESIGN DECISION: Running payments is pure. due_payments takes the payment
list and today's date and returns the expenses to add plus the updated
payments; nothing runs on a timer. The host decides when to call it.

A payment that is several periods behind runs once for every missed due
date, and each generated expense is dated on the due date it covers.
Monthly and yearly steps clamp to the last day of shorter months
(Jan 31 -> Feb 29 -> Mar 29).
"""

import calendar
from collections.abc import Iterable
from datetime import date, timedelta
from typing import Optional, Union

from budget_engine.aggregation.periods import parse_record_date
from budget_engine.ledger.operations import create_expense
from budget_engine.log import get_logger
from budget_engine.models.finance import (
    AutomaticPayment,
    Expense,
    FinanceSnapshot,
    PaymentFrequency,
)


logger = get_logger(__name__)

DESCRIPTION_PREFIX = "Auto: "


def _add_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    year, month = index // 12, index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def step_due_date(current: date, frequency: Union[PaymentFrequency, str]) -> date:
    """The due date one period after `current`."""
    frequency = PaymentFrequency(frequency)
    if frequency == PaymentFrequency.WEEKLY:
        return current + timedelta(days=7)
    if frequency == PaymentFrequency.YEARLY:
        return _add_months(current, 12)
    return _add_months(current, 1)


def due_payments(
    payments: Iterable[AutomaticPayment],
    today: date,
    currency: str,
) -> tuple[list[Expense], list[AutomaticPayment]]:
    """
    Run every active payment whose due date is today or earlier.

    Args:
        payments: Current payments, in display order
        today: Last date that counts as due
        currency: Currency of the generated expenses

    Returns:
        (new expenses, payments with updated run counts, due dates and state)
    """
    expenses: list[Expense] = []
    updated: list[AutomaticPayment] = []

    for payment in payments:
        next_due = parse_record_date(payment.next_due)
        times_executed = payment.times_executed
        active = payment.active and not payment.finished

        while active and next_due <= today:
            expenses.append(create_expense(
                payment.category_id,
                payment.amount,
                next_due.isoformat(),
                currency=currency,
                description=f"{DESCRIPTION_PREFIX}{payment.name}",
            ))
            times_executed += 1
            if payment.max_executions is not None and times_executed >= payment.max_executions:
                active = False
            else:
                next_due = step_due_date(next_due, payment.frequency)

        if times_executed != payment.times_executed:
            logger.info(
                "automatic_payment_executed",
                payment_id=payment.id,
                runs=times_executed - payment.times_executed,
                active=active,
            )
            payment = payment.model_copy(update={
                "times_executed": times_executed,
                "active": active,
                "next_due": next_due.isoformat(),
            })
        updated.append(payment)

    return expenses, updated


def run_due_payments(
    snapshot: FinanceSnapshot,
    today: Optional[date] = None,
) -> tuple[FinanceSnapshot, list[Expense]]:
    """Apply due_payments to a snapshot, in the snapshot's default currency."""
    today = today or date.today()
    expenses, payments = due_payments(
        snapshot.automatic_payments,
        today,
        snapshot.settings.default_currency,
    )
    if not expenses:
        return snapshot, []
    return snapshot.model_copy(update={
        "expenses": [*snapshot.expenses, *expenses],
        "automatic_payments": payments,
    }), expenses
