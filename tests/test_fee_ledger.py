"""Tests for the fee ledger."""

import logging
from decimal import Decimal

import pytest

from onboarding.core.exceptions import PaymentGatewayError, SignatureMismatchError, ValidationError
from onboarding.core.logging import mask_secrets, setup_logging
from onboarding.schemas.enums import FeeStatus, PaymentSource
from onboarding.services.payments import FeeLedger, RazorpayGateway
from onboarding.services.payments.fee_ledger import derive_fee_status, fee_summary, format_amount
from onboarding.services.payments.gateway import (
    PaymentGateway,
    compute_payment_signature,
    compute_webhook_signature,
    verify_webhook_signature,
)

from tests.conftest import make_profile

SECRET = "ledger-secret"


@pytest.fixture
def ledger(gateway):
    return FeeLedger(gateway, key_secret=SECRET, currency="INR", minor_units=100, purpose="Tuition Fee Payment")


def sign(order_id, payment_id):
    return compute_payment_signature(order_id, payment_id, SECRET)


@pytest.mark.parametrize(
    "paid, total, expected",
    [
        ("0", "50000", FeeStatus.UNPAID),
        ("1", "50000", FeeStatus.PARTIAL),
        ("49999.99", "50000", FeeStatus.PARTIAL),
        ("50000", "50000", FeeStatus.PAID),
        ("60000", "50000", FeeStatus.PAID),
        ("0", "0", FeeStatus.PAID),
    ],
)
def test_derive_fee_status(paid, total, expected):
    assert derive_fee_status(paid, total) == expected


def test_format_amount():
    assert format_amount(Decimal("50000")) == "₹50,000"
    assert format_amount(Decimal("1234.5")) == "₹1,234.50"


class TestCreateOrder:
    def test_converts_to_minor_units_and_attaches_notes(self, ledger, gateway):
        profile = make_profile()

        order = ledger.create_order(profile, Decimal("25000"))

        assert order["amount"] == 2500000
        assert order["currency"] == "INR"
        assert order["notes"]["student_id"] == "student-1"
        assert order["notes"]["purpose"] == "Tuition Fee Payment"
        assert profile.fee_order_id == order["id"]

    @pytest.mark.parametrize("amount", [None, "", 0, -10])
    def test_rejects_missing_or_non_positive_amount(self, ledger, gateway, amount):
        with pytest.raises(ValidationError):
            ledger.create_order(make_profile(), amount)
        assert gateway.orders == {}


class TestVerifyAndApply:
    def test_full_payment_marks_fee_paid(self, ledger, gateway):
        profile = make_profile()
        gateway.add_order("order_1", 5000000, student_id="student-1")

        application = ledger.verify_and_apply(profile, "order_1", "pay_1", sign("order_1", "pay_1"))

        assert not application.already_applied
        assert application.fee_status == FeeStatus.PAID
        assert application.remaining == Decimal("0.00")
        assert profile.fee_status == FeeStatus.PAID
        assert profile.fee_paid_amount == Decimal("50000.00")
        assert len(profile.payments) == 1
        assert profile.payments[0].transaction_id == "pay_1"
        assert profile.payments[0].source == PaymentSource.VERIFY

    def test_partial_payment(self, ledger, gateway):
        profile = make_profile()
        gateway.add_order("order_1", 2000000)

        application = ledger.verify_and_apply(profile, "order_1", "pay_1", sign("order_1", "pay_1"))

        assert application.fee_status == FeeStatus.PARTIAL
        assert application.remaining == Decimal("30000.00")

    def test_retry_with_same_payment_is_applied_once(self, ledger, gateway):
        profile = make_profile()
        gateway.add_order("order_1", 2000000)
        signature = sign("order_1", "pay_1")

        ledger.verify_and_apply(profile, "order_1", "pay_1", signature)
        retry = ledger.verify_and_apply(profile, "order_1", "pay_1", signature)

        assert retry.already_applied
        assert profile.fee_paid_amount == Decimal("20000.00")
        assert len(profile.payments) == 1
        assert gateway.fetch_calls == ["order_1"]

    def test_amount_comes_from_gateway_order(self, ledger, gateway):
        profile = make_profile()
        gateway.add_order("order_1", 100)

        application = ledger.verify_and_apply(profile, "order_1", "pay_1", sign("order_1", "pay_1"))

        assert application.amount == Decimal("1.00")

    def test_signature_mismatch_does_not_mutate(self, ledger, gateway):
        profile = make_profile()
        gateway.add_order("order_1", 5000000)

        with pytest.raises(SignatureMismatchError) as exc_info:
            ledger.verify_and_apply(profile, "order_1", "pay_1", "forged")

        assert exc_info.value.status_code == 400
        assert profile.fee_paid_amount == Decimal("0.00")
        assert profile.payments == []
        assert gateway.fetch_calls == []

    def test_signature_mismatch_is_audited_with_both_signatures(self, ledger, gateway, caplog):
        setup_logging()
        profile = make_profile()
        gateway.add_order("order_1", 5000000, student_id="student-1")

        with caplog.at_level(logging.WARNING, logger="onboarding.audit"):
            with pytest.raises(SignatureMismatchError):
                ledger.verify_and_apply(profile, "order_1", "pay_1", "forged-signature")

        audit_lines = [record.getMessage() for record in caplog.records if record.name == "onboarding.audit"]
        assert len(audit_lines) == 1
        assert "payment_signature_mismatch" in audit_lines[0]
        assert "forged-signature" in audit_lines[0]
        assert sign("order_1", "pay_1") in audit_lines[0]

    def test_missing_fields_are_a_validation_error(self, ledger):
        with pytest.raises(ValidationError) as exc_info:
            ledger.verify_and_apply(make_profile(), "order_1", None, None)
        assert set(exc_info.value.details["field_errors"]) == {"paymentId", "signature"}

    def test_order_for_another_student_is_rejected(self, ledger, gateway):
        profile = make_profile()
        gateway.add_order("order_1", 5000000, student_id="someone-else")

        with pytest.raises(ValidationError):
            ledger.verify_and_apply(profile, "order_1", "pay_1", sign("order_1", "pay_1"))
        assert profile.payments == []


def test_summary_reports_remaining_balance(ledger, gateway):
    profile = make_profile()
    gateway.add_order("order_1", 1000000)
    ledger.apply_payment(profile, "order_1", "pay_1", source=PaymentSource.WEBHOOK)

    summary = ledger.summary(profile)

    assert summary["paid_amount"] == Decimal("10000.00")
    assert summary["remaining"] == Decimal("40000.00")
    assert summary["status"] == FeeStatus.PARTIAL
    assert [entry.transaction_id for entry in summary["history"]] == ["pay_1"]


def test_fee_summary_needs_no_gateway():
    profile = make_profile(fee_paid_amount=Decimal("50000.00"))

    summary = fee_summary(profile, "INR")

    assert summary["status"] == FeeStatus.PAID
    assert summary["remaining"] == Decimal("0.00")
    assert summary["currency"] == "INR"
    assert summary["history"] == []


def test_payment_gateway_is_abstract():
    with pytest.raises(TypeError):
        PaymentGateway()


def test_secrets_are_masked_but_audit_keeps_signatures():
    event = {"received_signature": "abc", "key_secret": "s3cr3t", "order_id": "order_1"}

    assert mask_secrets(event) == {"received_signature": "[MASKED]", "key_secret": "[MASKED]", "order_id": "order_1"}
    assert mask_secrets(event, visible=("signature",)) == {
        "received_signature": "abc",
        "key_secret": "[MASKED]",
        "order_id": "order_1",
    }


def test_webhook_signature_roundtrip():
    body = b'{"event": "payment.captured"}'
    signature = compute_webhook_signature(body, "hook-secret")
    assert verify_webhook_signature(body, signature, "hook-secret")
    assert not verify_webhook_signature(body + b" ", signature, "hook-secret")


class _BrokenOrders:
    def create(self, data=None, **kwargs):
        raise ConnectionError("gateway unreachable")

    def fetch(self, order_id, **kwargs):
        raise ConnectionError("gateway unreachable")


class _BrokenClient:
    order = _BrokenOrders()


def test_razorpay_errors_become_gateway_errors():
    gateway = RazorpayGateway(client=_BrokenClient(), timeout=1)

    with pytest.raises(PaymentGatewayError) as exc_info:
        gateway.create_order(100, "INR", "receipt_1", {})
    assert exc_info.value.status_code == 500

    with pytest.raises(PaymentGatewayError):
        gateway.fetch_order("order_1")
