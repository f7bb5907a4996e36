"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional


@dataclass
class DiscountCategory:
    """Grouping of discount codes that share a season cap and accounting code"""

    id: str
    name: str
    accounting_code: str
    max_discount_per_user_per_season: Optional[int] = None  # cents, None = unlimited
    is_active: bool = True


@dataclass
class DiscountCode:
    """Percentage discount a user can enter at checkout"""

    id: str
    code: str
    percentage: Decimal
    category: DiscountCategory
    usage_limit: Optional[int] = None  # per user, None = unlimited
    is_active: bool = True
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None


@dataclass
class DiscountUsageRecord:
    """Append-only fact written once a discounted charge is confirmed"""

    user_id: str
    discount_code_id: str
    discount_category_id: str
    season_id: str
    amount_saved: int
    registration_id: str


@dataclass
class ChargeRequest:
    """Input to the charge calculator"""

    base_price_cents: int
    season_id: str
    discount_code: Optional[str] = None
    user_id: Optional[str] = None


@dataclass
class SeasonalUsage:
    """Snapshot of a user's spend against a category's season cap"""

    total_used: int
    remaining: int
    max_allowed: int


@dataclass
class ChargeResult:
    """Output of charge calculation"""

    original_amount: int
    final_amount: int
    discount_amount: int
    discount_code: Optional[DiscountCode] = None
    is_partial_discount: bool = False
    partial_discount_message: Optional[str] = None
    seasonal_usage: Optional[SeasonalUsage] = None


@dataclass
class Installment:
    """Single payment in a payment plan"""

    installment_number: int
    amount_cents: int
    due_date: date
    status: str = "planned"  # "planned" or "paid"
    first_payment_id: Optional[str] = None


@dataclass
class InstallmentPlan:
    """Ordered installments whose amounts sum to total_cents"""

    total_cents: int
    installments: List[Installment] = field(default_factory=list)


@dataclass
class PlanSummary:
    """Progress of a payment plan"""

    total_cents: int
    paid_cents: int
    remaining_cents: int
    installments_count: int
    installments_paid: int
    next_payment_date: Optional[date]
    status: str  # "active" or "completed"
