"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from decimal import Decimal
from typing import List, Optional

from hockey_gateway.domain.models import ChargeResult, Installment, PlanSummary, SeasonalUsage


class ChargeQuoteRequest(BaseModel):
    """Request body for POST /v1/charges/quote"""

    registration_id: str = Field(..., min_length=1, description="Registration being paid for")
    user_id: Optional[str] = Field(None, description="Paying user; without it no discount is applied")
    discount_code: Optional[str] = Field(None, description="Code entered at checkout")
    alternate: bool = Field(False, description="Price as an alternate selection")


class SeasonalUsageSchema(BaseModel):
    total_used: int
    remaining: int
    max_allowed: int

    @classmethod
    def from_domain(cls, usage: Optional[SeasonalUsage]) -> Optional["SeasonalUsageSchema"]:
        if usage is None:
            return None
        return cls(total_used=usage.total_used, remaining=usage.remaining, max_allowed=usage.max_allowed)


class DiscountCodeSchema(BaseModel):
    id: str
    code: str
    percentage: Decimal
    category_id: str
    category_name: str
    accounting_code: str


class ChargeQuoteResponse(BaseModel):
    """Response for POST /v1/charges/quote"""

    original_amount: int
    final_amount: int
    discount_amount: int
    discount_code: Optional[DiscountCodeSchema] = None
    is_partial_discount: bool
    partial_discount_message: Optional[str] = None
    seasonal_usage: Optional[SeasonalUsageSchema] = None

    @classmethod
    def from_domain(cls, result: ChargeResult) -> "ChargeQuoteResponse":
        code = result.discount_code
        return cls(
            original_amount=result.original_amount,
            final_amount=result.final_amount,
            discount_amount=result.discount_amount,
            discount_code=DiscountCodeSchema(
                id=code.id,
                code=code.code,
                percentage=code.percentage,
                category_id=code.category.id,
                category_name=code.category.name,
                accounting_code=code.category.accounting_code,
            ) if code else None,
            is_partial_discount=result.is_partial_discount,
            partial_discount_message=result.partial_discount_message,
            seasonal_usage=SeasonalUsageSchema.from_domain(result.seasonal_usage),
        )


class DiscountUsageRequest(BaseModel):
    """Request body for POST /v1/discount-usage"""

    user_id: str = Field(..., min_length=1)
    registration_id: str = Field(..., min_length=1)
    discount_code: str = Field(..., min_length=1)
    amount_saved: int = Field(..., ge=0, description="Discount actually applied, in cents")


class DiscountUsageResponse(BaseModel):
    user_id: str
    registration_id: str
    discount_code_id: str
    discount_category_id: str
    season_id: str
    amount_saved: int


class SeasonalSummaryResponse(BaseModel):
    """Response for GET /v1/discount-usage/summary"""

    user_id: str
    category_id: str
    season_id: str
    usage: Optional[SeasonalUsageSchema] = None


class PaymentPlanRequest(BaseModel):
    """Request body for POST /v1/payment-plans"""

    registration_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    first_payment_id: str = Field(..., min_length=1, description="Payment that settled installment 1")
    discount_code: Optional[str] = None
    installments: Optional[int] = Field(None, ge=1, description="Number of installments")


class InstallmentSchema(BaseModel):
    """Single installment in a payment plan"""

    installment_number: int
    due_date: date
    amount_cents: int
    status: str = "planned"
    first_payment_id: Optional[str] = None

    @classmethod
    def from_domain(cls, inst: Installment) -> "InstallmentSchema":
        return cls(
            installment_number=inst.installment_number,
            due_date=inst.due_date,
            amount_cents=inst.amount_cents,
            status=inst.status,
            first_payment_id=inst.first_payment_id,
        )


class PlanSummarySchema(BaseModel):
    paid_cents: int
    remaining_cents: int
    installments_count: int
    installments_paid: int
    next_payment_date: Optional[date] = None
    status: str

    @classmethod
    def from_domain(cls, summary: PlanSummary) -> "PlanSummarySchema":
        return cls(
            paid_cents=summary.paid_cents,
            remaining_cents=summary.remaining_cents,
            installments_count=summary.installments_count,
            installments_paid=summary.installments_paid,
            next_payment_date=summary.next_payment_date,
            status=summary.status,
        )


class PlanResponse(BaseModel):
    """Response for POST /v1/payment-plans and GET /v1/payment-plans/{plan_id}"""

    plan_id: str
    user_id: str
    registration_id: str
    total_cents: int
    discount_cents: int
    installments: List[InstallmentSchema]
    summary: PlanSummarySchema
    partial_discount_message: Optional[str] = None


class PayoffResponse(BaseModel):
    """Response for GET /v1/payment-plans/{plan_id}/payoff"""

    plan_id: str
    payoff_cents: int
    installments_remaining: int
