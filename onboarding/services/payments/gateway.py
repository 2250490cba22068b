"""
Payment gateway client and signature primitives.

Orders are created and fetched through the Razorpay SDK. Signature checks
are local HMAC-SHA256 recomputations and never call the gateway.
"""

from abc import ABC, abstractmethod
import hashlib
import hmac
from typing import Any, Dict, Optional, Union

from onboarding.config.settings import settings
from onboarding.core.exceptions import PaymentGatewayError
from onboarding.core.logging import get_logger

logger = get_logger(__name__)


# ----- #
# Signatures
# ----- #

def _hmac_sha256(secret: str, payload: Union[str, bytes]) -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def compute_payment_signature(order_id: str, payment_id: str, secret: Optional[str] = None) -> str:
    """Signature the gateway attaches to a checkout: HMAC of ``order_id|payment_id``."""
    key = settings.RAZORPAY_KEY_SECRET if secret is None else secret
    return _hmac_sha256(key, f"{order_id}|{payment_id}")


def compute_webhook_signature(body: bytes, secret: Optional[str] = None) -> str:
    key = settings.RAZORPAY_WEBHOOK_SECRET if secret is None else secret
    return _hmac_sha256(key, body)


def verify_webhook_signature(body: bytes, signature: str, secret: Optional[str] = None) -> bool:
    expected = compute_webhook_signature(body, secret)
    return hmac.compare_digest(expected, signature or "")


# ----- #
# Gateway client
# ----- #

class PaymentGateway(ABC):
    """Order operations the fee ledger needs from a payment provider."""

    name = "gateway"

    @abstractmethod
    def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Create an order for ``amount_minor`` and return the gateway record."""
        pass

    @abstractmethod
    def fetch_order(self, order_id: str) -> Dict[str, Any]:
        """Return the gateway's current record for ``order_id``."""
        pass


class RazorpayGateway(PaymentGateway):
    """Razorpay orders API with a bounded request timeout."""

    name = "razorpay"

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Any = None,
    ):
        self._auth = (key_id or settings.RAZORPAY_KEY_ID, key_secret or settings.RAZORPAY_KEY_SECRET)
        self._client = client
        self.timeout = timeout if timeout is not None else settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS

    @property
    def client(self):
        """SDK client, created on first order call."""
        if self._client is None:
            import razorpay

            self._client = razorpay.Client(auth=self._auth)
        return self._client

    def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Dict[str, Any],
    ) -> Dict[str, Any]:
        options = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": notes,
        }
        try:
            order = self.client.order.create(data=options, timeout=self.timeout)
        except Exception as e:
            logger.error(
                f"Razorpay order creation failed: {e}",
                extra={"receipt": receipt, "error_type": type(e).__name__},
            )
            raise PaymentGatewayError(
                "Something went wrong with Razorpay order creation",
                gateway_name=self.name,
                operation="create_order",
            ) from e

        logger.info(
            "Razorpay order created",
            extra={
                "order_id": order.get("id"),
                "amount": order.get("amount"),
                "currency": order.get("currency"),
            },
        )
        return order

    def fetch_order(self, order_id: str) -> Dict[str, Any]:
        try:
            return self.client.order.fetch(order_id, timeout=self.timeout)
        except Exception as e:
            logger.error(
                f"Razorpay order fetch failed: {e}",
                extra={"order_id": order_id, "error_type": type(e).__name__},
            )
            raise PaymentGatewayError(
                "Could not fetch order from Razorpay",
                gateway_name=self.name,
                operation="fetch_order",
                order_id=order_id,
            ) from e
