"""
Shared FastAPI dependencies.

Example usage in a router:

    from fastapi import APIRouter, Depends
    from onboarding.api import deps

    router = APIRouter()

    @router.get("/profile")
    def read_profile(
        current_user=Depends(deps.get_student_user),
        service=Depends(deps.get_onboarding_service),
    ):
        ...

Collaborators that reach outside the process (classifier backend, payment
gateway, file storage) each have their own dependency so they can be
overridden independently. The classifier backend and the payment gateway
are built once per process; their SDKs load on first use.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from onboarding.core.security import (
    get_admin_user,
    get_current_user,
    get_staff_user,
    get_student_user,
)
from onboarding.db.session import get_db
from onboarding.services.classification.classifier import (
    ClassifierBackend,
    DocumentClassifier,
    gemini_backend,
)
from onboarding.services.onboarding_service import OnboardingService
from onboarding.services.payments.gateway import PaymentGateway, RazorpayGateway
from onboarding.services.storage.file_storage import LocalFileStorage


# --- Integrations --------------------------------------------------------------

def get_storage() -> LocalFileStorage:
    return LocalFileStorage()


@lru_cache()
def get_classifier_backend() -> ClassifierBackend:
    return gemini_backend()


def get_classifier(backend: ClassifierBackend = Depends(get_classifier_backend)) -> DocumentClassifier:
    return DocumentClassifier(backend)


@lru_cache()
def get_payment_gateway() -> PaymentGateway:
    return RazorpayGateway()


# --- Services ------------------------------------------------------------------

def get_onboarding_service(
    db: Session = Depends(get_db),
    classifier: DocumentClassifier = Depends(get_classifier),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    storage: LocalFileStorage = Depends(get_storage),
) -> OnboardingService:
    return OnboardingService(db, classifier=classifier, gateway=gateway, storage=storage)


__all__ = [
    "get_db",
    "get_current_user",
    "get_student_user",
    "get_staff_user",
    "get_admin_user",
    "get_storage",
    "get_classifier_backend",
    "get_classifier",
    "get_payment_gateway",
    "get_onboarding_service",
]
