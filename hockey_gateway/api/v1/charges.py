"""POST /v1/charges/quote - Registration charge after discounts"""

import time
import logging
from typing import Optional, Tuple
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from hockey_gateway.api.v1.schemas import ChargeQuoteRequest, ChargeQuoteResponse
from hockey_gateway.api.dependencies import get_charge_calculator, get_request_id
from hockey_gateway.api.errors import to_http_exception
from hockey_gateway.infrastructure.database.session import get_db
from hockey_gateway.infrastructure.database.models import Registration
from hockey_gateway.infrastructure.database.repositories import RegistrationRepository
from hockey_gateway.domain.charges import ChargeAmountCalculator
from hockey_gateway.domain.exceptions import DomainException, NotFoundError
from hockey_gateway.domain.models import ChargeRequest, ChargeResult
from hockey_gateway.infrastructure.observability.metrics import record_charge
from hockey_gateway.infrastructure.observability.logging import log_charge

router = APIRouter()


def quote_registration(
    db: Session,
    calculator: ChargeAmountCalculator,
    registration_id: str,
    user_id: Optional[str],
    discount_code: Optional[str],
    alternate: bool = False,
) -> Tuple[Registration, ChargeResult]:
    """
    Load the registration's price and season and run the calculator.

    Raises:
        NotFoundError: Registration missing, or alternate price requested
            but not configured
    """
    registration = RegistrationRepository(db).get_registration(registration_id)

    if alternate:
        if registration.alternate_price_cents is None:
            raise NotFoundError(f"Registration {registration_id} has no alternate pricing configured")
        base_price = registration.alternate_price_cents
    else:
        base_price = registration.price_cents

    result = calculator.calculate_charge(
        ChargeRequest(
            base_price_cents=base_price,
            season_id=registration.season_id,
            discount_code=discount_code,
            user_id=user_id,
        )
    )
    return registration, result


@router.post("/charges/quote", response_model=ChargeQuoteResponse)
def quote_charge(
    request_body: ChargeQuoteRequest,
    request: Request,
    db: Session = Depends(get_db),
    calculator: ChargeAmountCalculator = Depends(get_charge_calculator),
):
    """
    Quote the amount to charge for a registration.

    Seasonal-cap and per-code-limit exhaustion are not errors: the quote
    comes back with a partial or zero discount. Nothing is recorded here;
    usage is written via POST /v1/discount-usage once payment succeeds.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        _, result = quote_registration(
            db,
            calculator,
            request_body.registration_id,
            request_body.user_id,
            request_body.discount_code,
            alternate=request_body.alternate,
        )
    except DomainException as e:
        logging.warning(f"Charge quote rejected: {e}", extra={"request_id": request_id})
        raise to_http_exception(e)

    duration_ms = (time.time() - start_time) * 1000
    record_charge(result)
    log_charge(request_id, request_body.user_id, request_body.registration_id, result, duration_ms)

    return ChargeQuoteResponse.from_domain(result)
