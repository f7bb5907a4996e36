"""Installment plan generation for registration payment plans"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from hockey_gateway.domain.exceptions import InvalidArgumentError
from hockey_gateway.domain.models import Installment, InstallmentPlan
from hockey_gateway.utils.date_utils import installment_due_dates
from hockey_gateway.utils.money import require_cents, round_half_up


def split_into_installments(total_cents: int, count: int) -> List[int]:
    """
    Split a total into count integer amounts that sum exactly to the total.

    Requirements:
    - Every installment but the last gets round_half_up(total / count)
    - Last installment absorbs the remainder, positive or negative

    Example:
        10002 / 4 = 2500.5 -> base 2501
        Last installment: 10002 - 2501 * 3 = 2499
        -> [2501, 2501, 2501, 2499]

    When the total is smaller than the count, half-up rounding can leave the
    last slot negative (2 / 4 -> base 1, last -1). The base then falls back
    to the floored quotient: 2 / 4 -> [0, 0, 0, 2].
    """
    require_cents(total_cents, "total_cents")
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise InvalidArgumentError(f"count must be a positive integer, got {count!r}")

    base_amount = round_half_up(Decimal(total_cents) / Decimal(count))
    if base_amount * (count - 1) > total_cents:
        base_amount = total_cents // count

    last_amount = total_cents - base_amount * (count - 1)
    return [base_amount] * (count - 1) + [last_amount]


def generate_installment_plan(
    amount_cents: int,
    num_installments: int = 4,
    interval_days: int = 30,
    start_date: date | None = None,
    first_payment_id: Optional[str] = None,
) -> InstallmentPlan:
    """
    Build a dated payment plan for a charge.

    Args:
        amount_cents: Total amount to split into installments
        num_installments: Number of payments (default 4)
        interval_days: Days between payments (default 30)
        start_date: First due date (default: today)
        first_payment_id: Payment that settled installment 1, linked on it only

    Returns:
        InstallmentPlan with 1-indexed installments in due-date order
    """
    amounts = split_into_installments(amount_cents, num_installments)

    if start_date is None:
        start_date = date.today()

    due_dates = installment_due_dates(start_date, num_installments, interval_days)

    installments = [
        Installment(
            installment_number=number,
            amount_cents=amount,
            due_date=due_date,
            first_payment_id=first_payment_id if number == 1 else None,
        )
        for number, (amount, due_date) in enumerate(zip(amounts, due_dates), start=1)
    ]

    return InstallmentPlan(total_cents=amount_cents, installments=installments)
