"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from hockey_gateway.domain.charges import ChargeAmountCalculator
from hockey_gateway.infrastructure.clients.scheduler import SchedulerClient
from hockey_gateway.infrastructure.database.repositories import DiscountCodeRepository, DiscountUsageRepository
from hockey_gateway.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_scheduler_client() -> SchedulerClient:
    """Provide scheduler webhook client instance"""
    return SchedulerClient()


def get_charge_calculator(db: Session = Depends(get_db)) -> ChargeAmountCalculator:
    """Calculator reading codes and usage from the request's session"""
    usage = DiscountUsageRepository(db)
    return ChargeAmountCalculator(
        codes=DiscountCodeRepository(db),
        code_usage=usage,
        seasonal_ledger=usage,
    )
