"""Discount usage recording and seasonal summary endpoints"""

import logging
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from hockey_gateway.api.v1.schemas import (
    DiscountUsageRequest,
    DiscountUsageResponse,
    SeasonalSummaryResponse,
    SeasonalUsageSchema,
)
from hockey_gateway.api.dependencies import get_request_id
from hockey_gateway.api.errors import to_http_exception
from hockey_gateway.infrastructure.database.session import get_db
from hockey_gateway.infrastructure.database.repositories import (
    DiscountCodeRepository,
    DiscountUsageRepository,
    RegistrationRepository,
)
from hockey_gateway.domain.charges import seasonal_usage_summary
from hockey_gateway.domain.exceptions import DomainException
from hockey_gateway.infrastructure.observability.metrics import discount_usage_counter

router = APIRouter()


@router.post("/discount-usage", response_model=DiscountUsageResponse, status_code=201)
def record_discount_usage(
    request_body: DiscountUsageRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Record a discount after the payment that used it has succeeded.

    Never call this at quote time: an abandoned payment must not consume
    season cap budget.
    """
    request_id = get_request_id(request)

    try:
        registration = RegistrationRepository(db).get_registration(request_body.registration_id)
        usage = DiscountUsageRepository(db).record_usage(
            user_id=request_body.user_id,
            registration=registration,
            discount_code=request_body.discount_code,
            amount_saved=request_body.amount_saved,
        )
        db.commit()

    except DomainException as e:
        db.rollback()
        logging.warning(f"Discount usage not recorded: {e}", extra={"request_id": request_id})
        raise to_http_exception(e)

    discount_usage_counter.inc()
    logging.info(
        "Discount usage recorded",
        extra={
            "request_id": request_id,
            "user_id": usage.user_id,
            "registration_id": usage.registration_id,
            "step": "usage_recorded",
            "amount_saved_cents": usage.amount_saved,
        },
    )

    return DiscountUsageResponse(
        user_id=usage.user_id,
        registration_id=usage.registration_id,
        discount_code_id=usage.discount_code_id,
        discount_category_id=usage.discount_category_id,
        season_id=usage.season_id,
        amount_saved=usage.amount_saved,
    )


@router.get("/discount-usage/summary", response_model=SeasonalSummaryResponse)
def get_seasonal_summary(
    user_id: str = Query(..., description="User identifier"),
    category_id: str = Query(..., description="Discount category"),
    season_id: str = Query(..., description="Season"),
    db: Session = Depends(get_db),
):
    """
    Current season spend for a user in one discount category.

    usage is null when the category has no season cap.
    """
    try:
        category = DiscountCodeRepository(db).get_category(category_id)
    except DomainException as e:
        raise to_http_exception(e)

    usage = seasonal_usage_summary(category, user_id, season_id, DiscountUsageRepository(db))

    return SeasonalSummaryResponse(
        user_id=user_id,
        category_id=category_id,
        season_id=season_id,
        usage=SeasonalUsageSchema.from_domain(usage),
    )
