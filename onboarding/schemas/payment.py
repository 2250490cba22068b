"""
Payment schemas.

Verification accepts the camelCase names used by the web client as well
as the ``razorpay_*`` names returned by the checkout widget.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import AliasChoices, Field

from onboarding.schemas.base import BaseRequestSchema, BaseSchema, MoneyAmount
from onboarding.schemas.enums import FeeStatus, PaymentSource

__all__ = [
    "CreateOrderRequest",
    "VerifyPaymentRequest",
    "VerifyPaymentResponse",
    "PaymentListItem",
    "WebhookAck",
]


class CreateOrderRequest(BaseRequestSchema):
    amount: Optional[Decimal] = Field(
        None,
        description="Amount to pay in major currency units (INR)",
    )


class VerifyPaymentRequest(BaseRequestSchema):
    order_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("orderId", "order_id", "razorpay_order_id"),
        description="Gateway order id",
    )
    payment_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("paymentId", "payment_id", "razorpay_payment_id"),
        description="Gateway payment id",
    )
    signature: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("signature", "razorpay_signature"),
        description="Checkout signature",
    )


class VerifyPaymentResponse(BaseSchema):
    success: bool = True
    message: str
    payment_id: str
    order_id: str
    amount: MoneyAmount
    paid_amount: MoneyAmount
    remaining: MoneyAmount
    status: FeeStatus
    already_applied: bool = False


class PaymentListItem(BaseSchema):
    student_id: str
    student_name: str
    amount: MoneyAmount
    paid_at: datetime
    transaction_id: str
    order_id: str
    source: PaymentSource


class WebhookAck(BaseSchema):
    status: str
    event: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None
