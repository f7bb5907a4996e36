"""SQLAlchemy ORM models for registrations, discounts and payment plans"""

import uuid
from sqlalchemy import (
    Column,
    String,
    BigInteger,
    Boolean,
    DateTime,
    Date,
    Integer,
    ForeignKey,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class Season(Base):
    """Hockey season registrations and discount caps are scoped to"""

    __tablename__ = "season"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)


class Registration(Base):
    """Team or event a user can register for"""

    __tablename__ = "registration"

    id = Column(String(36), primary_key=True, default=_new_id)
    season_id = Column(String(36), ForeignKey("season.id"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    price_cents = Column(BigInteger, nullable=False)
    alternate_price_cents = Column(BigInteger, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    season = relationship("Season")


class DiscountCategoryRecord(Base):
    """Discount category with optional per-user season cap"""

    __tablename__ = "discount_category"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    accounting_code = Column(Text, nullable=False)
    max_discount_per_user_per_season = Column(BigInteger, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    codes = relationship("DiscountCodeRecord", back_populates="category")


class DiscountCodeRecord(Base):
    """Percentage discount code"""

    __tablename__ = "discount_code"

    id = Column(String(36), primary_key=True, default=_new_id)
    code = Column(Text, nullable=False, unique=True)
    percentage = Column(Numeric(5, 2), nullable=False)
    usage_limit = Column(Integer, nullable=True)
    category_id = Column(String(36), ForeignKey("discount_category.id"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    valid_from = Column(Date, nullable=True)
    valid_until = Column(Date, nullable=True)

    category = relationship("DiscountCategoryRecord", back_populates="codes")


class DiscountUsage(Base):
    """Append-only discount usage, one row per confirmed discounted charge"""

    __tablename__ = "discount_usage"
    __table_args__ = (
        UniqueConstraint("user_id", "registration_id", "discount_code_id", name="uq_discount_usage_once"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    discount_code_id = Column(String(36), ForeignKey("discount_code.id"), nullable=False)
    discount_category_id = Column(String(36), ForeignKey("discount_category.id"), nullable=False)
    season_id = Column(String(36), ForeignKey("season.id"), nullable=False)
    registration_id = Column(String(36), ForeignKey("registration.id"), nullable=False)
    amount_saved = Column(BigInteger, nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PaymentPlan(Base):
    """Installment payment plan for a registration charge"""

    __tablename__ = "payment_plan"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    registration_id = Column(String(36), ForeignKey("registration.id"), nullable=False)
    total_cents = Column(BigInteger, nullable=False)
    discount_code_id = Column(String(36), ForeignKey("discount_code.id"), nullable=True)
    discount_cents = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    installments = relationship(
        "PaymentPlanInstallment",
        back_populates="plan",
        cascade="all, delete-orphan",
        order_by="PaymentPlanInstallment.installment_number",
    )


class PaymentPlanInstallment(Base):
    """Individual installment within a payment plan"""

    __tablename__ = "payment_plan_installment"
    __table_args__ = (
        UniqueConstraint("plan_id", "installment_number", name="uq_plan_installment_number"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    plan_id = Column(String(36), ForeignKey("payment_plan.id", ondelete="CASCADE"), nullable=False)
    installment_number = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    status = Column(Text, nullable=False, default="planned")
    first_payment_id = Column(Text, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    plan = relationship("PaymentPlan", back_populates="installments")

