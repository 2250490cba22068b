"""Service-level tests for upload persistence."""

from pathlib import Path

import pytest
from sqlalchemy.exc import SQLAlchemyError

from onboarding.core.security import CurrentUser
from onboarding.schemas.enums import UserRole
from onboarding.services.classification import DocumentClassifier
from onboarding.services.onboarding_service import IncomingFile, OnboardingService

from tests.conftest import classification

STUDENT = CurrentUser(id="student-7", role=UserRole.STUDENT, name="Ravi Kumar")


@pytest.fixture
def service(db_session, backend, storage):
    service = OnboardingService(db_session, classifier=DocumentClassifier(backend), storage=storage)
    service.create_profile(STUDENT)
    return service


def test_replaced_file_is_deleted_after_commit(service, backend):
    backend.queue(classification("Aadhaar Card", 90), classification("Aadhaar Card", 88))
    first = service.upload_documents(STUDENT, [IncomingFile("aadhaar.pdf", b"%PDF first", "application/pdf")])
    old_path = first.items[0].stored_file.path

    second = service.upload_documents(STUDENT, [IncomingFile("aadhaar-2.pdf", b"%PDF second", "application/pdf")])

    assert not Path(old_path).exists()
    assert Path(second.items[0].stored_file.path).exists()


def test_failed_commit_keeps_the_replaced_file(service, backend, monkeypatch):
    backend.queue(classification("Aadhaar Card", 90), classification("Aadhaar Card", 88))
    first = service.upload_documents(STUDENT, [IncomingFile("aadhaar.pdf", b"%PDF first", "application/pdf")])
    old_path = first.items[0].stored_file.path

    def failing_save(profile):
        raise SQLAlchemyError("database unavailable")

    monkeypatch.setattr(service.profiles, "save", failing_save)

    with pytest.raises(SQLAlchemyError):
        service.upload_documents(STUDENT, [IncomingFile("aadhaar-2.pdf", b"%PDF second", "application/pdf")])

    assert Path(old_path).exists()
    profile = service.get_profile(STUDENT.id).profile
    assert profile.documents[0].file_path == old_path
