"""Payment plan progress and early payoff"""

from typing import List

from hockey_gateway.domain.exceptions import NothingToPayOffError
from hockey_gateway.domain.models import Installment, PlanSummary


def planned_installments(installments: List[Installment]) -> List[Installment]:
    """Installments still to be charged, in installment order"""
    return sorted(
        (inst for inst in installments if inst.status == "planned"),
        key=lambda inst: inst.installment_number,
    )


def summarize_plan(installments: List[Installment]) -> PlanSummary:
    """Paid and remaining totals for a plan"""
    total = sum(inst.amount_cents for inst in installments)
    paid = [inst for inst in installments if inst.status == "paid"]
    paid_cents = sum(inst.amount_cents for inst in paid)
    upcoming = planned_installments(installments)

    return PlanSummary(
        total_cents=total,
        paid_cents=paid_cents,
        remaining_cents=total - paid_cents,
        installments_count=len(installments),
        installments_paid=len(paid),
        next_payment_date=upcoming[0].due_date if upcoming else None,
        status="active" if upcoming else "completed",
    )


def early_payoff_amount(installments: List[Installment]) -> int:
    """
    Amount that settles every remaining installment at once.

    Raises:
        NothingToPayOffError: No planned installments remain
    """
    upcoming = planned_installments(installments)
    if not upcoming:
        raise NothingToPayOffError("No planned payments found")
    return sum(inst.amount_cents for inst in upcoming)
