"""
Onboarding orchestrator.

Every mutation of a student's onboarding state goes through this service.
It composes the classifier, document mapper, fee ledger, hostel workflow,
LMS enrollment and chat responder, owns the database session, and keeps
the ordering guarantees:

- uploads: store -> log student message -> classify -> map -> persist the
  profile once per batch -> log assistant replies
- chat: persist the inbound message -> respond -> persist the reply
- progress is recomputed after every mutation and cached on the profile

User-visible failures are paired with a best-effort assistant message;
a chat log failure is logged and never replaces the original error.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from onboarding.config.settings import settings
from onboarding.core.exceptions import (
    BaseAppException,
    SignatureMismatchError,
    StudentNotFoundError,
    ValidationError,
)
from onboarding.core.logging import get_audit_logger
from onboarding.core.security import CurrentUser
from onboarding.models.chat_message import ChatMessage
from onboarding.models.student_profile import StudentDocument, StudentProfile
from onboarding.repositories.chat_repository import ChatMessageRepository
from onboarding.repositories.profile_repository import StudentProfileRepository
from onboarding.schemas.enums import ChatSender, DocumentStatus, DocumentType, HostelStatus, PaymentSource
from onboarding.services.admin_service import AdminService
from onboarding.services.base_service import BaseService
from onboarding.services.chat.responder import respond
from onboarding.services.classification.classifier import ClassificationResult, DocumentClassifier
from onboarding.services.documents import document_review
from onboarding.services.documents.document_mapper import (
    DocumentMapper,
    MappingAction,
    MappingOutcome,
    MappingStatus,
)
from onboarding.services.hostel import hostel_workflow
from onboarding.services.lms import lms_enrollment
from onboarding.services.payments.fee_ledger import (
    FeeLedger,
    PaymentApplication,
    fee_summary,
    format_amount,
    to_money,
)
from onboarding.services.payments.gateway import (
    PaymentGateway,
    compute_webhook_signature,
    verify_webhook_signature,
)
from onboarding.services.progress.aggregator import ProgressReport, compute_progress
from onboarding.services.progress.modules import DEFAULT_MODULES, OnboardingModule
from onboarding.services.storage.file_storage import LocalFileStorage, StoredFile

audit_logger = get_audit_logger()

UPLOAD_ERROR_MESSAGE = "Sorry, I encountered an error processing your document."
PAYMENT_ERROR_MESSAGE = "Sorry, we could not process your payment. Please try again."
CAPTURED_EVENT = "payment.captured"


@dataclass(frozen=True)
class IncomingFile:
    filename: str
    content: bytes
    content_type: Optional[str] = None


@dataclass
class ProfileView:
    """A profile with its freshly computed progress and fee summary."""

    profile: StudentProfile
    progress: ProgressReport
    fee: Dict[str, Any]


@dataclass
class UploadItem:
    original_name: str
    stored_file: Optional[StoredFile] = None
    classification: Optional[ClassificationResult] = None
    outcome: Optional[MappingOutcome] = None
    error: Optional[BaseAppException] = None
    message: str = ""

    @property
    def status(self) -> str:
        if self.error is not None:
            return "error"
        return self.outcome.status.value

    @property
    def mapped(self) -> bool:
        return self.outcome is not None and self.outcome.mapped


@dataclass
class UploadBatch:
    items: List[UploadItem]
    view: ProfileView

    @property
    def message(self) -> str:
        mapped = sum(1 for item in self.items if item.mapped)
        return f"Processed {len(self.items)} file(s); {mapped} filed to your documents."


@dataclass
class WebhookResult:
    status: str
    event: Optional[str] = None
    detail: Dict[str, Any] = field(default_factory=dict)


def _format_confidence(confidence: float) -> str:
    return f"{confidence:g}"


def describe_outcome(outcome: MappingOutcome) -> str:
    """Assistant reply for one mapped (or unmapped) upload."""
    label = outcome.classification.document_type.value
    confidence = _format_confidence(outcome.classification.confidence)

    if outcome.status == MappingStatus.LOW_CONFIDENCE:
        return (
            f"We are not confident about this document (Detected: {label}, Confidence: {confidence}%). "
            "Please upload again or confirm document type manually in the Documents module."
        )
    if outcome.status == MappingStatus.LOCKED:
        return (
            f"Document detected as **{label}** ({confidence}% confidence), but your {label} is already "
            f"{outcome.document.status.value}. The existing document was kept."
        )
    message = f"Document detected as **{label}** ({confidence}% confidence). Uploaded successfully."
    if outcome.action == MappingAction.REPLACED:
        message += " Your previous upload was replaced."
    return message


class OnboardingService(BaseService):
    """Public operations of the onboarding module."""

    def __init__(
        self,
        db_session: Session,
        classifier: Optional[DocumentClassifier] = None,
        gateway: Optional[PaymentGateway] = None,
        storage: Optional[LocalFileStorage] = None,
        mapper: Optional[DocumentMapper] = None,
        ledger: Optional[FeeLedger] = None,
        modules: Sequence[OnboardingModule] = DEFAULT_MODULES,
        weights: Optional[Dict[str, float]] = None,
    ):
        super().__init__(db_session)
        self.profiles = StudentProfileRepository(db_session)
        self.chats = ChatMessageRepository(db_session)
        self.classifier = classifier
        self.storage = storage or LocalFileStorage()
        self.mapper = mapper or DocumentMapper(self.storage)
        self.ledger = ledger or (FeeLedger(gateway) if gateway is not None else None)
        self.modules = modules
        self.weights = weights
        self.admin = AdminService(db_session, modules, weights)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_profile(self, student_id: str) -> StudentProfile:
        profile = self.profiles.find_by_student_id(student_id)
        if profile is None:
            raise StudentNotFoundError(student_id)
        return profile

    def _require_ledger(self) -> FeeLedger:
        if self.ledger is None:
            raise RuntimeError("OnboardingService was built without a payment gateway")
        return self.ledger

    def compute_progress(self, profile: StudentProfile) -> ProgressReport:
        return compute_progress(profile, self.modules, self.weights)

    def _refresh_progress(self, profile: StudentProfile) -> ProgressReport:
        report = self.compute_progress(profile)
        profile.progress_percentage = report.percentage
        return report

    def _fee_summary(self, profile: StudentProfile) -> Dict[str, Any]:
        if self.ledger is not None:
            return self.ledger.summary(profile)
        return fee_summary(profile)

    def view(self, profile: StudentProfile) -> ProfileView:
        return ProfileView(profile=profile, progress=self.compute_progress(profile), fee=self._fee_summary(profile))

    def _persist(self, profile: StudentProfile) -> ProgressReport:
        """Refresh the progress cache and commit pending profile changes."""
        with self.transaction():
            report = self._refresh_progress(profile)
            self.profiles.save(profile)
        return report

    def _record_chat(
        self,
        student_id: str,
        sender: ChatSender,
        message: str,
        attachment: Optional[str] = None,
        best_effort: bool = False,
    ) -> Optional[ChatMessage]:
        try:
            with self.transaction():
                return self.chats.append(student_id, sender, message, attachment)
        except SQLAlchemyError as e:
            if not best_effort:
                raise
            self._logger.error(
                f"Could not record chat message: {e}",
                extra={"student_id": student_id, "sender": sender.value},
            )
            return None

    def _notify(self, student_id: str, message: str) -> None:
        self._record_chat(student_id, ChatSender.ASSISTANT, message, best_effort=True)

    # =========================================================================
    # Profile
    # =========================================================================

    def create_profile(
        self,
        caller: CurrentUser,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> ProfileView:
        """Create the caller's profile; an existing profile is returned as is."""
        profile = self.profiles.find_by_student_id(caller.id)
        if profile is not None:
            return self.view(profile)

        try:
            with self.transaction():
                profile = self.profiles.create({
                    "student_id": caller.id,
                    "full_name": full_name or caller.name or "",
                    "email": email or caller.email or None,
                    "fee_total_amount": to_money(settings.DEFAULT_TOTAL_FEE),
                    "lms_registered_subjects": [],
                })
                self._refresh_progress(profile)
        except IntegrityError:
            # Created concurrently by another request
            profile = self._require_profile(caller.id)
            return self.view(profile)

        self._logger.info("Student profile created", extra={"student_id": caller.id})
        return self.view(profile)

    def get_profile(self, student_id: str) -> ProfileView:
        return self.view(self._require_profile(student_id))

    # =========================================================================
    # Documents
    # =========================================================================

    def upload_documents(self, caller: CurrentUser, files: Sequence[IncomingFile]) -> UploadBatch:
        """
        Store, classify and map each file in order, then persist the profile
        once. A batch fails only when every file failed; a single failing
        file re-raises its error after the assistant reply is logged.
        """
        if not files:
            raise ValidationError("No file uploaded", {"files": ["At least one file is required"]})

        if self.classifier is None:
            raise RuntimeError("OnboardingService was built without a classifier")

        profile = self._require_profile(caller.id)
        items = [self._store_upload(caller.id, upload) for upload in files]

        for item, upload in zip(items, files):
            if item.error is None:
                self._classify_and_map(profile, item, upload)

        try:
            self._persist(profile)
        except SQLAlchemyError:
            self._notify(caller.id, UPLOAD_ERROR_MESSAGE)
            raise
        self.mapper.discard_superseded(item.outcome for item in items if item.outcome is not None)

        for item in items:
            self._notify(caller.id, item.message)

        failures = [item for item in items if item.error is not None]
        if failures and len(failures) == len(items):
            raise failures[-1].error

        self._logger.info(
            "Upload batch processed",
            extra={
                "student_id": caller.id,
                "files": len(items),
                "mapped": sum(1 for item in items if item.mapped),
                "failed": len(failures),
            },
        )
        return UploadBatch(items=items, view=self.view(profile))

    def _store_upload(self, student_id: str, upload: IncomingFile) -> UploadItem:
        item = UploadItem(original_name=upload.filename)
        try:
            item.stored_file = self.storage.save(
                upload.filename, upload.content, upload.content_type, owner=student_id
            )
        except BaseAppException as e:
            self._logger.warning(
                f"Upload could not be stored: {e.message}",
                extra={"student_id": student_id, "original_name": upload.filename},
            )
            item.error = e
            item.message = f"{UPLOAD_ERROR_MESSAGE} {e.message}"

        self._record_chat(
            student_id,
            ChatSender.STUDENT,
            upload.filename,
            attachment=item.stored_file.path if item.stored_file else None,
            best_effort=True,
        )
        return item

    def _classify_and_map(self, profile: StudentProfile, item: UploadItem, upload: IncomingFile) -> None:
        try:
            item.classification = self.classifier.classify(upload.content, item.stored_file.mime_type)
        except BaseAppException as e:
            self._logger.error(
                f"Classification failed: {e.message}",
                extra={"student_id": profile.student_id, "original_name": upload.filename},
            )
            item.error = e
            item.message = UPLOAD_ERROR_MESSAGE
            return

        item.outcome = self.mapper.map(item.classification, item.stored_file, profile)
        item.message = describe_outcome(item.outcome)

    def submit_documents(self, caller: CurrentUser) -> List[StudentDocument]:
        profile = self._require_profile(caller.id)
        try:
            submitted = document_review.submit_documents(profile)
            self._persist(profile)
        except BaseAppException as e:
            self._notify(caller.id, f"Your documents could not be submitted: {e.message}")
            raise

        self._notify(caller.id, f"Submitted {len(submitted)} document(s) for review.")
        return submitted

    def review_documents(
        self,
        actor: CurrentUser,
        student_id: str,
        status: DocumentStatus,
        document_type: Optional[DocumentType] = None,
        reason: Optional[str] = None,
    ) -> ProfileView:
        profile = self._require_profile(student_id)
        result = document_review.review_documents(profile, status, actor, document_type, reason)
        self._persist(profile)

        names = ", ".join(doc.document_type.value for doc in result.documents)
        if status == DocumentStatus.APPROVED:
            self._notify(student_id, f"Your documents were approved: {names}.")
        else:
            self._notify(student_id, f"Your documents were rejected ({reason}): {names}. Please upload them again.")
        return self.view(profile)

    # =========================================================================
    # Chat
    # =========================================================================

    def send_chat_text(self, caller: CurrentUser, message: Optional[str]) -> ChatMessage:
        text = (message or "").strip()
        if not text:
            raise ValidationError("Message is required", {"message": ["Message is required"]})

        profile = self._require_profile(caller.id)
        self._record_chat(caller.id, ChatSender.STUDENT, text)
        reply = respond(text, profile)
        return self._record_chat(caller.id, ChatSender.ASSISTANT, reply)

    def get_chat_history(self, caller: CurrentUser) -> List[ChatMessage]:
        return self.chats.history(caller.id)

    # =========================================================================
    # Fee
    # =========================================================================

    def create_payment_order(self, caller: CurrentUser, amount: Any) -> Dict[str, Any]:
        ledger = self._require_ledger()
        profile = self._require_profile(caller.id)
        try:
            with self.transaction():
                order = ledger.create_order(profile, amount, caller)
                self.profiles.save(profile)
        except BaseAppException as e:
            if not isinstance(e, ValidationError):
                self._notify(caller.id, PAYMENT_ERROR_MESSAGE)
            raise
        return order

    def verify_payment(
        self,
        caller: CurrentUser,
        order_id: Optional[str],
        payment_id: Optional[str],
        signature: Optional[str],
    ) -> PaymentApplication:
        ledger = self._require_ledger()
        profile = self._require_profile(caller.id)
        try:
            application = self._apply_idempotently(
                profile,
                payment_id,
                lambda: ledger.verify_and_apply(profile, order_id, payment_id, signature),
            )
        except BaseAppException as e:
            if not isinstance(e, ValidationError):
                self._notify(caller.id, PAYMENT_ERROR_MESSAGE)
            raise

        if not application.already_applied:
            self._notify(caller.id, self._payment_message(application))
        return application

    def handle_payment_webhook(self, body: bytes, signature: Optional[str]) -> WebhookResult:
        """Apply ``payment.captured`` events through the idempotent ledger."""
        ledger = self._require_ledger()
        if not verify_webhook_signature(body, signature or ""):
            audit_logger.warning(
                "webhook_signature_mismatch",
                expected_signature=compute_webhook_signature(body),
                received_signature=signature,
            )
            raise SignatureMismatchError("Invalid webhook signature")

        try:
            payload = json.loads(body or b"{}")
        except ValueError as e:
            raise ValidationError("Webhook body is not valid JSON") from e
        if not isinstance(payload, dict):
            raise ValidationError("Webhook body must be a JSON object")

        event = payload.get("event")
        if event != CAPTURED_EVENT:
            self._logger.info("Ignoring webhook event", extra={"event": event})
            return WebhookResult(status="ignored", event=event)

        entity = ((payload.get("payload") or {}).get("payment") or {}).get("entity") or {}
        payment_id = entity.get("id")
        order_id = entity.get("order_id")
        if not payment_id or not order_id:
            raise ValidationError("Webhook payment entity is missing id or order_id")

        student_id = (entity.get("notes") or {}).get("student_id")
        if not student_id:
            order = ledger.gateway.fetch_order(order_id)
            student_id = (order.get("notes") or {}).get("student_id")

        profile = self.profiles.find_by_student_id(student_id) if student_id else None
        if profile is None:
            self._logger.warning(
                "Webhook payment for unknown student",
                extra={"order_id": order_id, "payment_id": payment_id, "student_id": student_id},
            )
            return WebhookResult(status="ignored", event=event, detail={"reason": "unknown student"})

        application = self._apply_idempotently(
            profile,
            payment_id,
            lambda: ledger.apply_payment(profile, order_id, payment_id, source=PaymentSource.WEBHOOK),
        )
        if not application.already_applied:
            self._notify(profile.student_id, self._payment_message(application))

        return WebhookResult(
            status="already_applied" if application.already_applied else "applied",
            event=event,
            detail={"student_id": profile.student_id, "payment_id": payment_id},
        )

    def _apply_idempotently(self, profile: StudentProfile, payment_id: Optional[str], apply) -> PaymentApplication:
        """
        Run a ledger application and commit it. A concurrent request that
        committed the same payment id first turns this one into a no-op.
        """
        try:
            with self.transaction():
                application = apply()
                if not application.already_applied:
                    self._refresh_progress(profile)
                    self.profiles.save(profile)
        except IntegrityError:
            self.db.expire_all()
            profile = self._require_profile(profile.student_id)
            previous = self.profiles.find_payment_by_transaction_id(payment_id)
            if previous is None:
                raise
            self._logger.info(
                "Payment applied concurrently",
                extra={"student_id": profile.student_id, "payment_id": payment_id},
            )
            return self._require_ledger().application_for(profile, previous, already_applied=True)
        return application

    @staticmethod
    def _payment_message(application: PaymentApplication) -> str:
        message = f"Payment of {format_amount(application.amount)} received."
        if application.remaining > 0:
            return f"{message} The remaining balance is {format_amount(application.remaining)}."
        return f"{message} Your tuition fees are fully paid."

    def get_fee_summary(self, caller: CurrentUser) -> Dict[str, Any]:
        return self._fee_summary(self._require_profile(caller.id))

    # =========================================================================
    # Hostel
    # =========================================================================

    def apply_for_hostel(
        self,
        caller: CurrentUser,
        gender: Optional[str] = None,
        room_type: Optional[str] = None,
    ) -> ProfileView:
        profile = self._require_profile(caller.id)
        try:
            hostel_workflow.apply(profile, gender, room_type)
            self._persist(profile)
        except BaseAppException as e:
            self._notify(caller.id, f"Your hostel application could not be submitted: {e.message}")
            raise

        self._notify(caller.id, "Your hostel application was submitted and is pending review.")
        return self.view(profile)

    def decide_hostel_application(
        self,
        actor: CurrentUser,
        student_id: str,
        status: HostelStatus,
        reason: Optional[str] = None,
    ) -> ProfileView:
        profile = self._require_profile(student_id)
        hostel_workflow.decide(profile, status, actor, reason)
        self._persist(profile)

        if status == HostelStatus.APPROVED:
            self._notify(student_id, "Your hostel application was approved. Your room is allocated!")
        else:
            self._notify(student_id, f"Your hostel application was rejected: {profile.hostel_rejection_reason}.")
        return self.view(profile)

    # =========================================================================
    # LMS
    # =========================================================================

    def register_subjects(self, caller: CurrentUser, subjects: Sequence[str]) -> tuple:
        profile = self._require_profile(caller.id)
        added = lms_enrollment.register_subjects(profile, subjects)
        self._persist(profile)
        return added, self.view(profile)

    # =========================================================================
    # Admin
    # =========================================================================

    def list_students(self, offset: int = 0, limit: Optional[int] = None) -> List[ProfileView]:
        return [self.view(profile) for profile in self.admin.list_students(offset, limit)]

    def analytics(self):
        return self.admin.analytics()

    def list_hostel_applications(self, status: Optional[HostelStatus] = None) -> List[StudentProfile]:
        return self.admin.list_hostel_applications(status)

    def list_payments(self, offset: int = 0, limit: Optional[int] = None):
        return self.admin.list_payments(offset, limit)
