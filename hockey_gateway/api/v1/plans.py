"""Payment plan endpoints - create, fetch, mark installments paid, early payoff"""

import logging
from fastapi import APIRouter, Depends, HTTPException, BackgroundTasks, Request
from sqlalchemy.orm import Session

from hockey_gateway.api.v1.charges import quote_registration
from hockey_gateway.api.v1.schemas import (
    InstallmentSchema,
    PaymentPlanRequest,
    PayoffResponse,
    PlanResponse,
    PlanSummarySchema,
)
from hockey_gateway.api.dependencies import get_charge_calculator, get_request_id, get_scheduler_client
from hockey_gateway.api.errors import to_http_exception
from hockey_gateway.config import settings
from hockey_gateway.infrastructure.database.session import get_db
from hockey_gateway.infrastructure.database.models import PaymentPlan
from hockey_gateway.infrastructure.database.repositories import PlanRepository
from hockey_gateway.infrastructure.clients.scheduler import SchedulerClient
from hockey_gateway.domain.charges import ChargeAmountCalculator
from hockey_gateway.domain.installments import generate_installment_plan
from hockey_gateway.domain.payment_plans import early_payoff_amount, planned_installments, summarize_plan
from hockey_gateway.domain.exceptions import DomainException
from hockey_gateway.infrastructure.observability.metrics import payment_plan_counter, record_charge

router = APIRouter()


def _plan_response(plan: PaymentPlan, repo: PlanRepository, message: str | None = None) -> PlanResponse:
    installments = repo.get_installments(plan)
    return PlanResponse(
        plan_id=plan.id,
        user_id=plan.user_id,
        registration_id=plan.registration_id,
        total_cents=plan.total_cents,
        discount_cents=plan.discount_cents,
        installments=[InstallmentSchema.from_domain(inst) for inst in installments],
        summary=PlanSummarySchema.from_domain(summarize_plan(installments)),
        partial_discount_message=message,
    )


@router.post("/payment-plans", response_model=PlanResponse, status_code=201)
async def create_payment_plan(
    request_body: PaymentPlanRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    calculator: ChargeAmountCalculator = Depends(get_charge_calculator),
    scheduler_client: SchedulerClient = Depends(get_scheduler_client),
):
    """
    Put a registration on a payment plan.

    Flow:
    1. Quote the registration charge (discounts, per-code limit, season cap)
    2. Split the final amount into installments
    3. Persist plan + installments
    4. Send async webhook to the scheduler
    """
    request_id = get_request_id(request)
    num_installments = request_body.installments or settings.payment_plan_installments

    try:
        registration, charge = quote_registration(
            db,
            calculator,
            request_body.registration_id,
            request_body.user_id,
            request_body.discount_code,
        )

        plan = generate_installment_plan(
            charge.final_amount,
            num_installments=num_installments,
            interval_days=settings.payment_plan_interval_days,
            first_payment_id=request_body.first_payment_id,
        )

        plan_repo = PlanRepository(db)
        db_plan = plan_repo.create_plan(
            user_id=request_body.user_id,
            registration_id=registration.id,
            plan=plan,
            discount_code_id=charge.discount_code.id if charge.discount_code else None,
            discount_cents=charge.discount_amount,
        )
        db.commit()

    except DomainException as e:
        db.rollback()
        logging.warning(f"Payment plan not created: {e}", extra={"request_id": request_id})
        raise to_http_exception(e)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    background_tasks.add_task(
        scheduler_client.send_plan_created,
        {
            "event": "PAYMENT_PLAN_CREATED",
            "plan_id": db_plan.id,
            "user_id": request_body.user_id,
            "registration_id": registration.id,
            "total_cents": plan.total_cents,
            "installments": [
                {
                    "installment_number": inst.installment_number,
                    "amount_cents": inst.amount_cents,
                    "due_date": inst.due_date.isoformat(),
                }
                for inst in plan.installments
            ],
        },
    )

    record_charge(charge)
    payment_plan_counter.labels(installments=str(num_installments)).inc()
    logging.info(
        "Payment plan created",
        extra={
            "request_id": request_id,
            "user_id": request_body.user_id,
            "plan_id": db_plan.id,
            "step": "plan_created",
            "total_cents": plan.total_cents,
            "installments": num_installments,
        },
    )

    return _plan_response(db_plan, plan_repo, charge.partial_discount_message)


@router.get("/payment-plans/{plan_id}", response_model=PlanResponse)
def get_payment_plan(plan_id: str, db: Session = Depends(get_db)):
    """Retrieve payment plan with installment schedule and progress"""
    plan_repo = PlanRepository(db)
    try:
        plan = plan_repo.get_plan_by_id(plan_id)
    except DomainException as e:
        raise to_http_exception(e)

    return _plan_response(plan, plan_repo)


@router.post("/payment-plans/{plan_id}/installments/{installment_number}/paid", response_model=PlanResponse)
def mark_installment_paid(
    plan_id: str,
    installment_number: int,
    request: Request,
    db: Session = Depends(get_db),
):
    """Scheduler callback after an installment charge succeeded; repeat calls are no-ops"""
    plan_repo = PlanRepository(db)
    try:
        plan_repo.mark_installment_paid(plan_id, installment_number)
        db.commit()
        plan = plan_repo.get_plan_by_id(plan_id)
    except DomainException as e:
        db.rollback()
        raise to_http_exception(e)

    logging.info(
        "Installment paid",
        extra={
            "request_id": get_request_id(request),
            "plan_id": plan_id,
            "installment_number": installment_number,
            "step": "installment_paid",
        },
    )
    return _plan_response(plan, plan_repo)


@router.get("/payment-plans/{plan_id}/payoff", response_model=PayoffResponse)
def get_payoff_quote(plan_id: str, db: Session = Depends(get_db)):
    """Amount that settles every remaining installment now"""
    plan_repo = PlanRepository(db)
    try:
        plan = plan_repo.get_plan_by_id(plan_id)
        installments = plan_repo.get_installments(plan)
        payoff = early_payoff_amount(installments)
    except DomainException as e:
        raise to_http_exception(e)

    return PayoffResponse(
        plan_id=plan.id,
        payoff_cents=payoff,
        installments_remaining=len(planned_installments(installments)),
    )
