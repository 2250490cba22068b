"""Shared fixtures: in-memory database, fake integrations and tokens."""

import json
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-onboarding-tests")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")
os.environ.setdefault("RAZORPAY_WEBHOOK_SECRET", "rzp_webhook_secret")
os.environ.setdefault("ENVIRONMENT", "test")

from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from onboarding.api import deps
from onboarding.core.security import TokenManager
from onboarding.db.init_db import drop_db, init_db
from onboarding.db.session import SessionLocal
from onboarding.main import create_app
from onboarding.models.student_profile import StudentProfile
from onboarding.schemas.enums import FeeStatus, HostelStatus, LmsStatus
from onboarding.services.payments.gateway import PaymentGateway
from onboarding.services.storage.file_storage import LocalFileStorage


class FakeGateway(PaymentGateway):
    """In-memory order book standing in for the payment provider."""

    name = "fake"

    def __init__(self):
        self.orders: Dict[str, Dict[str, Any]] = {}
        self.fetch_calls: List[str] = []

    def create_order(self, amount_minor, currency, receipt, notes):
        order_id = f"order_{len(self.orders) + 1}"
        order = {
            "id": order_id,
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "notes": dict(notes),
            "status": "created",
        }
        self.orders[order_id] = order
        return dict(order)

    def fetch_order(self, order_id):
        self.fetch_calls.append(order_id)
        return dict(self.orders[order_id])

    def add_order(self, order_id: str, amount_minor: int, student_id: Optional[str] = None) -> None:
        notes = {"student_id": student_id} if student_id else {}
        self.orders[order_id] = {"id": order_id, "amount": amount_minor, "currency": "INR", "notes": notes}


class ScriptedBackend:
    """Classifier backend returning queued answers; an Exception entry is raised."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: List[str] = []

    def queue(self, *responses) -> None:
        self.responses.extend(responses)

    def __call__(self, model_name, prompt, content, mime_type):
        self.calls.append(model_name)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def classification(document_type: str, confidence: float) -> str:
    return "```json\n" + json.dumps({"document_type": document_type, "confidence": confidence}) + "\n```"


def make_profile(**overrides) -> StudentProfile:
    """Transient profile with every module in its initial state."""
    values = {
        "student_id": "student-1",
        "full_name": "Asha Rao",
        "email": "asha@example.com",
        "fee_total_amount": Decimal("50000.00"),
        "fee_paid_amount": Decimal("0.00"),
        "fee_status": FeeStatus.UNPAID,
        "hostel_status": HostelStatus.NOT_APPLIED,
        "lms_status": LmsStatus.INACTIVE,
        "lms_registered_subjects": [],
        "progress_percentage": 0,
    }
    values.update(overrides)
    return StudentProfile(**values)


def auth_headers(sub: str, role: str = "student", name: str = "Asha Rao") -> Dict[str, str]:
    token = TokenManager.create_token({"sub": sub, "role": role, "name": name, "email": f"{sub}@example.com"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def database():
    init_db()
    yield
    drop_db()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def backend():
    return ScriptedBackend()


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(root=tmp_path / "uploads")


@pytest.fixture
def app(gateway, backend, storage):
    application = create_app()
    application.dependency_overrides[deps.get_payment_gateway] = lambda: gateway
    application.dependency_overrides[deps.get_classifier_backend] = lambda: backend
    application.dependency_overrides[deps.get_storage] = lambda: storage
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def student_headers():
    return auth_headers("student-1")


@pytest.fixture
def admin_headers():
    return auth_headers("admin-1", role="admin", name="Admin")


@pytest.fixture
def staff_headers():
    return auth_headers("staff-1", role="staff", name="Staff")
