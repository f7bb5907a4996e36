"""Charge calculation - discount codes, per-code limits and seasonal caps"""

import logging
from datetime import date
from typing import Optional

from hockey_gateway.config import settings
from hockey_gateway.domain.exceptions import InvalidDiscountCodeError
from hockey_gateway.domain.ledger import CodeUsageCounter, DiscountCodeLookup, SeasonalUsageLedger
from hockey_gateway.domain.models import (
    ChargeRequest,
    ChargeResult,
    DiscountCategory,
    DiscountCode,
    SeasonalUsage,
)
from hockey_gateway.utils.date_utils import is_within_window
from hockey_gateway.utils.money import format_cents, percentage_of, require_cents

logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    """Codes are stored upper-case without surrounding whitespace"""
    return code.strip().upper()


def seasonal_usage_summary(
    category: DiscountCategory,
    user_id: str,
    season_id: str,
    ledger: SeasonalUsageLedger,
) -> Optional[SeasonalUsage]:
    """
    Current spend against a category's season cap.

    Returns None when the category has no cap; the ledger is not queried then.
    """
    max_allowed = category.max_discount_per_user_per_season
    if max_allowed is None:
        return None

    total_used = ledger.total_used(user_id, category.id, season_id)
    return SeasonalUsage(
        total_used=total_used,
        remaining=max(max_allowed - total_used, 0),
        max_allowed=max_allowed,
    )


class ChargeAmountCalculator:
    """
    Computes what to charge for a registration.

    The checks run as one ordered pipeline in calculate_charge:
    per-code usage limit first, seasonal category cap second. An exhausted
    per-code limit short-circuits before the seasonal ledger is read.

    Read-only: recording a DiscountUsageRecord is the caller's job, and only
    after the payment succeeded.
    """

    def __init__(
        self,
        codes: DiscountCodeLookup,
        code_usage: CodeUsageCounter,
        seasonal_ledger: SeasonalUsageLedger,
        currency_symbol: Optional[str] = None,
    ):
        self.codes = codes
        self.code_usage = code_usage
        self.seasonal_ledger = seasonal_ledger
        self.currency_symbol = currency_symbol or settings.currency_symbol

    def calculate_charge(self, request: ChargeRequest, today: Optional[date] = None) -> ChargeResult:
        base_price = require_cents(request.base_price_cents, "base_price_cents")

        # Discounts need both a code and a user to check limits against
        if not request.discount_code or not request.user_id:
            return ChargeResult(original_amount=base_price, final_amount=base_price, discount_amount=0)

        discount_code = self._resolve_code(request.discount_code, today or date.today())
        nominal = percentage_of(base_price, discount_code.percentage)

        if self._code_limit_reached(discount_code, request.user_id):
            logger.info(
                "Discount code usage limit reached",
                extra={
                    "step": "code_limit_reached",
                    "user_id": request.user_id,
                    "discount_code": discount_code.code,
                    "usage_limit": discount_code.usage_limit,
                },
            )
            return ChargeResult(
                original_amount=base_price,
                final_amount=base_price,
                discount_amount=0,
                discount_code=discount_code,
            )

        return self._apply_seasonal_cap(
            base_price, nominal, discount_code, request.user_id, request.season_id
        )

    def _resolve_code(self, raw_code: str, today: date) -> DiscountCode:
        code = normalize_code(raw_code)
        discount_code = self.codes.get_by_code(code)

        if discount_code is None or not discount_code.is_active:
            raise InvalidDiscountCodeError(f"Invalid discount code: {code}")
        if not discount_code.category.is_active:
            raise InvalidDiscountCodeError(f"Discount code category is not active: {code}")
        if not is_within_window(today, discount_code.valid_from, None):
            raise InvalidDiscountCodeError(f"Discount code is not yet valid: {code}")
        if not is_within_window(today, None, discount_code.valid_until):
            raise InvalidDiscountCodeError(f"Discount code has expired: {code}")

        return discount_code

    def _code_limit_reached(self, discount_code: DiscountCode, user_id: str) -> bool:
        if discount_code.usage_limit is None:
            return False
        uses = self.code_usage.count_code_uses(user_id, discount_code.id)
        return uses >= discount_code.usage_limit

    def _apply_seasonal_cap(
        self,
        base_price: int,
        nominal: int,
        discount_code: DiscountCode,
        user_id: str,
        season_id: str,
    ) -> ChargeResult:
        category = discount_code.category
        usage = seasonal_usage_summary(category, user_id, season_id, self.seasonal_ledger)

        if usage is None:
            applied = nominal
        else:
            applied = min(nominal, usage.remaining)

        is_partial = 0 < applied < nominal
        message = None

        if usage is not None and is_partial:
            message = (
                f"Applied {self._money(applied)} discount (you have {self._money(usage.remaining)} "
                f"remaining of your {self._money(usage.max_allowed)} {category.name} season limit). "
                f"You have already used {self._money(usage.total_used)} in discounts this season."
            )
            logger.info(
                "Applied partial discount due to seasonal limit",
                extra={
                    "step": "seasonal_partial",
                    "user_id": user_id,
                    "category_id": category.id,
                    "season_id": season_id,
                    "requested_cents": nominal,
                    "applied_cents": applied,
                },
            )
        elif usage is not None and usage.remaining == 0:
            message = (
                f"You have already reached your {self._money(usage.max_allowed)} "
                f"season limit for {category.name} discounts."
            )
            logger.info(
                "User has reached seasonal discount limit",
                extra={
                    "step": "seasonal_cap_reached",
                    "user_id": user_id,
                    "category_id": category.id,
                    "season_id": season_id,
                    "total_used_cents": usage.total_used,
                    "max_allowed_cents": usage.max_allowed,
                },
            )

        return ChargeResult(
            original_amount=base_price,
            final_amount=max(base_price - applied, 0),
            discount_amount=applied,
            discount_code=discount_code,
            is_partial_discount=is_partial,
            partial_discount_message=message,
            seasonal_usage=usage,
        )

    def _money(self, amount_cents: int) -> str:
        return format_cents(amount_cents, self.currency_symbol)
