"""Map domain exceptions onto HTTP errors"""

from fastapi import HTTPException

from hockey_gateway.domain.exceptions import (
    CodeUsageLimitExceededError,
    DomainException,
    DuplicateUsageError,
    InvalidArgumentError,
    InvalidDiscountCodeError,
    NothingToPayOffError,
    NotFoundError,
    SeasonalCapExceededError,
)

STATUS_BY_EXCEPTION = {
    NotFoundError: 404,
    InvalidDiscountCodeError: 422,
    InvalidArgumentError: 400,
    DuplicateUsageError: 409,
    SeasonalCapExceededError: 409,
    CodeUsageLimitExceededError: 409,
    NothingToPayOffError: 409,
}


def to_http_exception(error: DomainException) -> HTTPException:
    """HTTPException for a domain error; unknown domain errors become 500"""
    for exc_type, status_code in STATUS_BY_EXCEPTION.items():
        if isinstance(error, exc_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail="Internal server error")
