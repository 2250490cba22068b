"""
Fee ledger.

Keeps a student's fee module consistent with the payment gateway:

- ``paid``    iff paid amount >= total amount
- ``partial`` iff 0 < paid amount < total amount
- ``unpaid``  otherwise

Payment history is append-only. Applying the same gateway payment id twice
is a no-op that reports the earlier application.
"""

import hmac
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Optional, Union

from onboarding.config.settings import settings
from onboarding.core.exceptions import SignatureMismatchError, ValidationError
from onboarding.core.logging import get_audit_logger, get_logger
from onboarding.core.security import CurrentUser
from onboarding.models.base import utc_now
from onboarding.models.student_profile import FeePayment, StudentProfile
from onboarding.schemas.enums import FeeStatus, PaymentSource
from onboarding.services.payments.gateway import (
    PaymentGateway,
    compute_payment_signature,
)

logger = get_logger(__name__)
audit_logger = get_audit_logger()

CENTS = Decimal("0.01")
Money = Union[Decimal, int, float, str]


def to_money(value: Money) -> Decimal:
    try:
        return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(
            "Amount must be a number",
            {"amount": [f"'{value}' is not a valid amount"]},
        ) from e


def derive_fee_status(paid: Money, total: Money) -> FeeStatus:
    paid, total = to_money(paid), to_money(total)
    if paid >= total:
        return FeeStatus.PAID
    if paid > 0:
        return FeeStatus.PARTIAL
    return FeeStatus.UNPAID


def remaining_balance(profile: StudentProfile) -> Decimal:
    return max(Decimal("0.00"), to_money(profile.fee_total_amount) - to_money(profile.fee_paid_amount))


def fee_summary(profile: StudentProfile, currency: Optional[str] = None) -> Dict[str, Any]:
    """Fee module state read straight from the profile; no gateway involved."""
    return {
        "total_amount": to_money(profile.fee_total_amount),
        "paid_amount": to_money(profile.fee_paid_amount),
        "remaining": remaining_balance(profile),
        "status": derive_fee_status(profile.fee_paid_amount, profile.fee_total_amount),
        "currency": currency or settings.CURRENCY,
        "history": list(profile.payments),
    }


CURRENCY_SYMBOLS = {"INR": "₹"}


def format_amount(amount: Money, currency: Optional[str] = None) -> str:
    """``50000`` -> ``₹50,000``; paise are shown only when present."""
    value = to_money(amount)
    code = currency or settings.CURRENCY
    prefix = CURRENCY_SYMBOLS.get(code, f"{code} ")
    if value == value.to_integral_value():
        return f"{prefix}{int(value):,}"
    return f"{prefix}{value:,.2f}"


@dataclass
class PaymentApplication:
    """Result of applying (or re-seeing) one gateway payment."""

    payment: FeePayment
    already_applied: bool
    fee_status: FeeStatus
    paid_amount: Decimal
    remaining: Decimal

    @property
    def amount(self) -> Decimal:
        return self.payment.amount


class FeeLedger:
    """Order creation and idempotent payment application for one gateway."""

    def __init__(
        self,
        gateway: PaymentGateway,
        key_secret: Optional[str] = None,
        currency: Optional[str] = None,
        minor_units: Optional[int] = None,
        purpose: Optional[str] = None,
    ):
        self.gateway = gateway
        self.key_secret = settings.RAZORPAY_KEY_SECRET if key_secret is None else key_secret
        self.currency = currency or settings.CURRENCY
        self.minor_units = minor_units or settings.CURRENCY_MINOR_UNITS
        self.purpose = purpose or settings.PAYMENT_PURPOSE

    # ----- #
    # Unit conversion
    # ----- #

    def to_minor_units(self, amount: Decimal) -> int:
        return int((amount * self.minor_units).to_integral_value(rounding=ROUND_HALF_UP))

    def to_major_units(self, amount_minor: Any) -> Decimal:
        return to_money(Decimal(str(amount_minor)) / Decimal(self.minor_units))

    # ----- #
    # Orders
    # ----- #

    def create_order(
        self,
        profile: StudentProfile,
        amount: Optional[Money],
        caller: Optional[CurrentUser] = None,
    ) -> Dict[str, Any]:
        if amount is None or amount == "":
            raise ValidationError("Please provide amount", {"amount": ["Amount is required"]})

        major = to_money(amount)
        if major <= 0:
            raise ValidationError("Amount must be greater than zero", {"amount": ["Must be > 0"]})

        notes = {
            "student_id": profile.student_id,
            "student_name": (caller.name if caller and caller.name else profile.full_name) or "",
            "purpose": self.purpose,
        }
        receipt = f"receipt_{profile.student_id}_{int(utc_now().timestamp() * 1000)}"[:40]

        order = self.gateway.create_order(
            amount_minor=self.to_minor_units(major),
            currency=self.currency,
            receipt=receipt,
            notes=notes,
        )
        profile.fee_order_id = order.get("id")
        return order

    # ----- #
    # Verification
    # ----- #

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> None:
        expected = compute_payment_signature(order_id, payment_id, self.key_secret)
        if hmac.compare_digest(expected, signature or ""):
            return

        audit_logger.warning(
            "payment_signature_mismatch",
            order_id=order_id,
            payment_id=payment_id,
            expected_signature=expected,
            received_signature=signature,
        )
        raise SignatureMismatchError("Invalid signature", order_id=order_id, payment_id=payment_id)

    def find_applied(self, profile: StudentProfile, payment_id: str) -> Optional[FeePayment]:
        for payment in profile.payments:
            if payment.transaction_id == payment_id:
                return payment
        return None

    def verify_and_apply(
        self,
        profile: StudentProfile,
        order_id: Optional[str],
        payment_id: Optional[str],
        signature: Optional[str],
    ) -> PaymentApplication:
        missing = {
            name: ["This field is required"]
            for name, value in (("orderId", order_id), ("paymentId", payment_id), ("signature", signature))
            if not value
        }
        if missing:
            raise ValidationError("Payment verification requires orderId, paymentId and signature", missing)

        self.verify_signature(order_id, payment_id, signature)
        return self.apply_payment(profile, order_id, payment_id, signature, source=PaymentSource.VERIFY)

    def apply_payment(
        self,
        profile: StudentProfile,
        order_id: str,
        payment_id: str,
        signature: Optional[str] = None,
        source: PaymentSource = PaymentSource.VERIFY,
        paid_at: Optional[datetime] = None,
    ) -> PaymentApplication:
        """
        Append one history entry for ``payment_id`` using the gateway's
        canonical order amount. Re-applying a known payment id changes nothing.
        """
        previous = self.find_applied(profile, payment_id)
        if previous is not None:
            logger.info(
                "Payment already applied",
                extra={"student_id": profile.student_id, "payment_id": payment_id, "order_id": order_id},
            )
            return self.application_for(profile, previous, already_applied=True)

        order = self.gateway.fetch_order(order_id)
        owner = (order.get("notes") or {}).get("student_id")
        if owner and owner != profile.student_id:
            audit_logger.warning(
                "payment_order_owner_mismatch",
                order_id=order_id,
                payment_id=payment_id,
                order_owner=owner,
                student_id=profile.student_id,
            )
            raise ValidationError(
                "Order does not belong to this student",
                {"orderId": ["Order was created for a different student"]},
            )

        amount = self.to_major_units(order.get("amount", 0))

        payment = FeePayment(
            sequence=len(profile.payments) + 1,
            amount=amount,
            paid_at=paid_at or utc_now(),
            transaction_id=payment_id,
            order_id=order_id,
            source=source,
        )
        profile.payments.append(payment)

        profile.fee_paid_amount = to_money(profile.fee_paid_amount) + amount
        profile.fee_transaction_id = payment_id
        profile.fee_order_id = order_id
        if signature:
            profile.fee_signature = signature
        profile.fee_status = derive_fee_status(profile.fee_paid_amount, profile.fee_total_amount)

        application = self.application_for(profile, payment, already_applied=False)
        logger.info(
            "Payment applied",
            extra={
                "student_id": profile.student_id,
                "payment_id": payment_id,
                "order_id": order_id,
                "amount": str(amount),
                "remaining": str(application.remaining),
                "source": source.value,
            },
        )
        return application

    def application_for(self, profile: StudentProfile, payment: FeePayment, already_applied: bool) -> PaymentApplication:
        return PaymentApplication(
            payment=payment,
            already_applied=already_applied,
            fee_status=profile.fee_status,
            paid_amount=to_money(profile.fee_paid_amount),
            remaining=remaining_balance(profile),
        )

    def summary(self, profile: StudentProfile) -> Dict[str, Any]:
        return fee_summary(profile, self.currency)
