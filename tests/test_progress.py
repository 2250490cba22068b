"""Tests for progress modules and aggregation."""

from decimal import Decimal

import pytest

from onboarding.models.student_profile import StudentDocument
from onboarding.schemas.enums import DocumentStatus, DocumentType, HostelStatus, LmsStatus, ModuleStatus
from onboarding.services.progress import compute_progress
from onboarding.services.progress.aggregator import resolve_weights
from onboarding.services.progress.modules import DEFAULT_MODULES, DocumentsModule, OnboardingModule

from tests.conftest import make_profile


def add_document(profile, document_type, status, reason=None):
    profile.documents.append(
        StudentDocument(
            position=len(profile.documents),
            document_type=document_type,
            file_path=f"/tmp/{document_type.name}.pdf",
            original_name=f"{document_type.name}.pdf",
            status=status,
            rejection_reason=reason,
        )
    )


def complete_profile():
    profile = make_profile(
        fee_paid_amount=Decimal("50000.00"),
        hostel_status=HostelStatus.APPROVED,
        lms_status=LmsStatus.ACTIVE,
        lms_registered_subjects=["CS101"],
    )
    add_document(profile, DocumentType.AADHAAR_CARD, DocumentStatus.APPROVED)
    return profile


def test_new_profile_has_no_progress():
    report = compute_progress(make_profile())
    assert report.percentage == 0
    assert [entry.key for entry in report.modules] == ["documents", "fee", "hostel", "lms"]


def test_each_module_is_worth_a_quarter():
    profile = make_profile(fee_paid_amount=Decimal("50000.00"))
    assert compute_progress(profile).percentage == 25

    profile.lms_status = LmsStatus.ACTIVE
    assert compute_progress(profile).percentage == 50


def test_complete_profile_is_one_hundred():
    assert compute_progress(complete_profile()).percentage == 100


def test_partial_fee_does_not_count():
    profile = make_profile(fee_paid_amount=Decimal("49999.00"))
    assert compute_progress(profile).percentage == 0


@pytest.mark.parametrize(
    "fee_paid, hostel, lms, document_status",
    [
        ("0", HostelStatus.PENDING, LmsStatus.INACTIVE, DocumentStatus.UPLOADED),
        ("50000", HostelStatus.REJECTED, LmsStatus.ACTIVE, DocumentStatus.SUBMITTED),
        ("50000", HostelStatus.APPROVED, LmsStatus.INACTIVE, DocumentStatus.APPROVED),
        ("10", HostelStatus.NOT_APPLIED, LmsStatus.ACTIVE, DocumentStatus.REJECTED),
    ],
)
def test_percentage_is_a_stable_multiple_of_25(fee_paid, hostel, lms, document_status):
    profile = make_profile(fee_paid_amount=Decimal(fee_paid), hostel_status=hostel, lms_status=lms)
    add_document(profile, DocumentType.PAN_CARD, document_status, reason="Blurry")

    first = compute_progress(profile).percentage
    second = compute_progress(profile).percentage

    assert first == second
    assert first % 25 == 0
    assert 0 <= first <= 100


class TestDocumentsModule:
    module = DocumentsModule()

    def test_not_started_without_documents(self):
        assert self.module.status(make_profile()) == ModuleStatus.NOT_STARTED.value

    def test_uploaded_documents_are_in_progress(self):
        profile = make_profile()
        add_document(profile, DocumentType.PAN_CARD, DocumentStatus.UPLOADED)
        assert self.module.status(profile) == ModuleStatus.IN_PROGRESS.value
        assert not self.module.is_complete(profile)

    def test_outstanding_rejection_wins(self):
        profile = make_profile()
        add_document(profile, DocumentType.AADHAAR_CARD, DocumentStatus.APPROVED)
        add_document(profile, DocumentType.PAN_CARD, DocumentStatus.REJECTED, reason="Expired")
        assert self.module.status(profile) == ModuleStatus.REJECTED.value
        assert not self.module.is_complete(profile)

    def test_rejection_is_resolved_by_a_newer_upload(self):
        profile = make_profile()
        add_document(profile, DocumentType.PAN_CARD, DocumentStatus.REJECTED, reason="Expired")
        add_document(profile, DocumentType.PAN_CARD, DocumentStatus.APPROVED)
        assert self.module.status(profile) == ModuleStatus.APPROVED.value
        assert self.module.is_complete(profile)

    def test_all_submitted(self):
        profile = make_profile()
        add_document(profile, DocumentType.AADHAAR_CARD, DocumentStatus.SUBMITTED)
        add_document(profile, DocumentType.PAN_CARD, DocumentStatus.APPROVED)
        assert self.module.status(profile) == ModuleStatus.SUBMITTED.value


def test_custom_weights():
    profile = make_profile(fee_paid_amount=Decimal("50000.00"))
    weights = {"documents": 1, "fee": 2, "hostel": 1, "lms": 0}

    assert resolve_weights(DEFAULT_MODULES, weights) == {
        "documents": 25.0,
        "fee": 50.0,
        "hostel": 25.0,
        "lms": 0.0,
    }
    assert compute_progress(profile, weights=weights).percentage == 50


def test_module_must_implement_every_question():
    class StatusOnly(OnboardingModule):
        key = "partial"

        def status(self, profile):
            return ModuleStatus.NOT_STARTED.value

    with pytest.raises(TypeError):
        StatusOnly()
