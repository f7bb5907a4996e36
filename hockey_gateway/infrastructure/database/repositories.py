"""Data access layer for registrations, discounts and payment plans"""

from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from hockey_gateway.infrastructure.database.models import (
    DiscountCategoryRecord,
    DiscountCodeRecord,
    DiscountUsage,
    PaymentPlan,
    PaymentPlanInstallment,
    Registration,
)
from hockey_gateway.domain.charges import normalize_code
from hockey_gateway.domain.exceptions import (
    CodeUsageLimitExceededError,
    DuplicateUsageError,
    InvalidDiscountCodeError,
    NotFoundError,
    SeasonalCapExceededError,
)
from hockey_gateway.domain.models import (
    DiscountCategory,
    DiscountCode,
    DiscountUsageRecord,
    Installment,
    InstallmentPlan,
)
from hockey_gateway.utils.money import require_cents


def to_domain_category(record: DiscountCategoryRecord) -> DiscountCategory:
    return DiscountCategory(
        id=record.id,
        name=record.name,
        accounting_code=record.accounting_code,
        max_discount_per_user_per_season=record.max_discount_per_user_per_season,
        is_active=record.is_active,
    )


def to_domain_code(record: DiscountCodeRecord) -> DiscountCode:
    return DiscountCode(
        id=record.id,
        code=record.code,
        percentage=record.percentage,
        category=to_domain_category(record.category),
        usage_limit=record.usage_limit,
        is_active=record.is_active,
        valid_from=record.valid_from,
        valid_until=record.valid_until,
    )


def to_domain_installment(record: PaymentPlanInstallment) -> Installment:
    return Installment(
        installment_number=record.installment_number,
        amount_cents=record.amount_cents,
        due_date=record.due_date,
        status=record.status,
        first_payment_id=record.first_payment_id,
    )


class RegistrationRepository:
    """Repository for priced registrations"""

    def __init__(self, db: Session):
        self.db = db

    def get_registration(self, registration_id: str) -> Registration:
        """
        Fetch a registration by id.

        Raises:
            NotFoundError: No registration with that id
        """
        registration = (
            self.db.query(Registration)
            .filter(Registration.id == registration_id)
            .first()
        )
        if registration is None:
            raise NotFoundError(f"Registration not found: {registration_id}")
        return registration


class DiscountCodeRepository:
    """Repository for discount codes and categories"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, code: str) -> Optional[DiscountCode]:
        """Look up a code by its normalized string"""
        record = (
            self.db.query(DiscountCodeRecord)
            .filter(DiscountCodeRecord.code == normalize_code(code))
            .first()
        )
        return to_domain_code(record) if record else None

    def get_category(self, category_id: str) -> DiscountCategory:
        """
        Raises:
            NotFoundError: No category with that id
        """
        record = self.db.get(DiscountCategoryRecord, category_id)
        if record is None:
            raise NotFoundError(f"Discount category not found: {category_id}")
        return to_domain_category(record)


class DiscountUsageRepository:
    """Ledger of confirmed discount usage"""

    def __init__(self, db: Session):
        self.db = db

    def count_code_uses(self, user_id: str, discount_code_id: str) -> int:
        return (
            self.db.query(func.count(DiscountUsage.id))
            .filter(
                DiscountUsage.user_id == user_id,
                DiscountUsage.discount_code_id == discount_code_id,
            )
            .scalar()
        )

    def total_used(self, user_id: str, discount_category_id: str, season_id: str) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(DiscountUsage.amount_saved), 0))
            .filter(
                DiscountUsage.user_id == user_id,
                DiscountUsage.discount_category_id == discount_category_id,
                DiscountUsage.season_id == season_id,
            )
            .scalar()
        )
        return int(total)

    def record_usage(
        self,
        user_id: str,
        registration: Registration,
        discount_code: str,
        amount_saved: int,
    ) -> DiscountUsageRecord:
        """
        Persist a usage row once the discounted payment has succeeded.

        The category row is locked (FOR UPDATE where the backend supports it)
        and the season total and per-code use count re-read before inserting,
        so two payments racing for the last of a cap or the last use of a
        limited code cannot both be recorded.

        Raises:
            InvalidDiscountCodeError: Code does not exist
            DuplicateUsageError: Already recorded for this registration
            CodeUsageLimitExceededError: User has used up the code's usage limit
            SeasonalCapExceededError: Amount would take the user past the cap
        """
        require_cents(amount_saved, "amount_saved")

        # Plain values only; ORM attributes expire if the insert fails
        registration_id = registration.id
        season_id = registration.season_id

        code_record = (
            self.db.query(DiscountCodeRecord)
            .filter(DiscountCodeRecord.code == normalize_code(discount_code))
            .first()
        )
        if code_record is None:
            raise InvalidDiscountCodeError(f"Invalid discount code: {normalize_code(discount_code)}")
        code_id = code_record.id
        usage_limit = code_record.usage_limit

        category = (
            self.db.query(DiscountCategoryRecord)
            .filter(DiscountCategoryRecord.id == code_record.category_id)
            .with_for_update()
            .one()
        )
        category_id = category.id
        max_allowed = category.max_discount_per_user_per_season

        already_recorded = (
            self.db.query(DiscountUsage.id)
            .filter(
                DiscountUsage.user_id == user_id,
                DiscountUsage.registration_id == registration_id,
                DiscountUsage.discount_code_id == code_id,
            )
            .first()
        )
        if already_recorded is not None:
            raise DuplicateUsageError(
                f"Discount usage already recorded for registration {registration_id}"
            )

        if usage_limit is not None:
            uses = self.count_code_uses(user_id, code_id)
            if uses >= usage_limit:
                raise CodeUsageLimitExceededError(
                    f"Code {code_record.code} already used {uses} of {usage_limit} times"
                )

        if max_allowed is not None:
            total_used = self.total_used(user_id, category_id, season_id)
            if total_used + amount_saved > max_allowed:
                raise SeasonalCapExceededError(
                    f"Recording {amount_saved} would exceed season cap {max_allowed} "
                    f"({total_used} already used)"
                )

        try:
            with self.db.begin_nested():
                self.db.add(
                    DiscountUsage(
                        user_id=user_id,
                        discount_code_id=code_id,
                        discount_category_id=category_id,
                        season_id=season_id,
                        registration_id=registration_id,
                        amount_saved=amount_saved,
                    )
                )
        except IntegrityError as e:
            raise DuplicateUsageError(
                f"Discount usage already recorded for registration {registration_id}"
            ) from e

        return DiscountUsageRecord(
            user_id=user_id,
            discount_code_id=code_id,
            discount_category_id=category_id,
            season_id=season_id,
            amount_saved=amount_saved,
            registration_id=registration_id,
        )


class PlanRepository:
    """Repository for payment plans"""

    def __init__(self, db: Session):
        self.db = db

    def create_plan(
        self,
        user_id: str,
        registration_id: str,
        plan: InstallmentPlan,
        discount_code_id: Optional[str] = None,
        discount_cents: int = 0,
    ) -> PaymentPlan:
        """Create payment plan with installments"""
        db_plan = PaymentPlan(
            user_id=user_id,
            registration_id=registration_id,
            total_cents=plan.total_cents,
            discount_code_id=discount_code_id,
            discount_cents=discount_cents,
        )
        self.db.add(db_plan)
        self.db.flush()

        for inst in plan.installments:
            db_plan.installments.append(
                PaymentPlanInstallment(
                    installment_number=inst.installment_number,
                    due_date=inst.due_date,
                    amount_cents=inst.amount_cents,
                    status=inst.status,
                    first_payment_id=inst.first_payment_id,
                )
            )
        self.db.flush()

        return db_plan

    def get_plan_by_id(self, plan_id: str) -> PaymentPlan:
        """
        Fetch plan with installments.

        Raises:
            NotFoundError: No plan with that id
        """
        plan = (
            self.db.query(PaymentPlan)
            .filter(PaymentPlan.id == plan_id)
            .first()
        )
        if plan is None:
            raise NotFoundError(f"Payment plan not found: {plan_id}")
        return plan

    def get_installments(self, plan: PaymentPlan) -> List[Installment]:
        return [to_domain_installment(inst) for inst in plan.installments]

    def mark_installment_paid(self, plan_id: str, installment_number: int) -> PaymentPlanInstallment:
        """
        Mark one installment paid. Already-paid installments are left as is.

        Raises:
            NotFoundError: Plan or installment number does not exist
        """
        plan = self.get_plan_by_id(plan_id)
        for inst in plan.installments:
            if inst.installment_number == installment_number:
                if inst.status != "paid":
                    inst.status = "paid"
                    inst.paid_at = datetime.now(timezone.utc)
                    self.db.flush()
                return inst
        raise NotFoundError(f"Installment {installment_number} not found on plan {plan_id}")
