"""Fee payment endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Request
from starlette.concurrency import run_in_threadpool

from onboarding.api import deps
from onboarding.core.security import CurrentUser
from onboarding.schemas.payment import CreateOrderRequest, VerifyPaymentRequest, VerifyPaymentResponse, WebhookAck
from onboarding.schemas.profile import FeeState, build_fee_state
from onboarding.services.onboarding_service import OnboardingService

router = APIRouter(prefix="/payment")


@router.post("/create-order")
def create_order(
    payload: CreateOrderRequest,
    current_user: CurrentUser = Depends(deps.get_student_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
) -> Dict[str, Any]:
    """Create a gateway order; the gateway's order descriptor is returned unchanged."""
    return service.create_payment_order(current_user, payload.amount)


@router.post("/verify", response_model=VerifyPaymentResponse)
def verify_payment(
    payload: VerifyPaymentRequest,
    current_user: CurrentUser = Depends(deps.get_student_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    """
    Verify a checkout signature and apply the payment to the fee ledger.

    Retrying with the same payment id is safe and reports ``alreadyApplied``.
    """
    application = service.verify_payment(
        current_user, payload.order_id, payload.payment_id, payload.signature
    )
    return VerifyPaymentResponse(
        message="Payment already recorded" if application.already_applied else "Payment verified successfully",
        payment_id=application.payment.transaction_id,
        order_id=application.payment.order_id,
        amount=application.amount,
        paid_amount=application.paid_amount,
        remaining=application.remaining,
        status=application.fee_status,
        already_applied=application.already_applied,
    )


@router.get("/summary", response_model=FeeState)
def fee_summary(
    current_user: CurrentUser = Depends(deps.get_student_user),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    view = service.get_profile(current_user.id)
    return build_fee_state(view.profile, view.fee["remaining"], view.fee["status"], view.fee["currency"])


@router.post("/webhook", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    service: OnboardingService = Depends(deps.get_onboarding_service),
):
    """
    Gateway callback; authenticated by the webhook signature instead of a
    bearer token. The raw body is read on the loop; the database and gateway
    work runs in the threadpool like the sync endpoints.
    """
    body = await request.body()
    result = await run_in_threadpool(service.handle_payment_webhook, body, x_razorpay_signature)
    return WebhookAck(status=result.status, event=result.event, detail=result.detail or None)
