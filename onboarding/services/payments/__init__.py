from onboarding.services.payments.fee_ledger import (
    FeeLedger,
    PaymentApplication,
    derive_fee_status,
    fee_summary,
    remaining_balance,
)
from onboarding.services.payments.gateway import (
    PaymentGateway,
    RazorpayGateway,
    compute_payment_signature,
    compute_webhook_signature,
    verify_webhook_signature,
)

__all__ = [
    "FeeLedger",
    "PaymentApplication",
    "PaymentGateway",
    "RazorpayGateway",
    "compute_payment_signature",
    "compute_webhook_signature",
    "derive_fee_status",
    "fee_summary",
    "remaining_balance",
    "verify_webhook_signature",
]
