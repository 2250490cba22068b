"""
Rule-based conversational status responder.

Free text is matched against an ordered intent table; the first intent
whose keywords appear in the text renders a reply from the current
profile. The responder only reads the profile.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from onboarding.models.student_profile import StudentProfile
from onboarding.schemas.enums import DocumentStatus, HostelStatus, LmsStatus
from onboarding.services.payments.fee_ledger import format_amount, remaining_balance
from onboarding.services.progress.aggregator import compute_progress
from onboarding.services.progress.modules import DEFAULT_MODULES, DocumentsModule, OnboardingModule

DEFAULT_MESSAGE = (
    "I'm not sure about that. Try asking about 'fee', 'documents', 'hostel', "
    "'timetable', or 'subjects'."
)
GREETING_MESSAGE = "Hello! How can I help you complete your registration today?"
HELP_MESSAGE = (
    "I can help you with your onboarding. Ask me about:\n"
    "- fee: what you have paid and what is outstanding\n"
    "- documents: upload status and rejections\n"
    "- hostel: your application status\n"
    "- progress: overall completion\n"
    "- subjects and timetable: your LMS registration\n"
    "You can also upload a document here and I will file it for you."
)


@dataclass(frozen=True)
class Intent:
    name: str
    keywords: Tuple[str, ...]
    render: Callable[[StudentProfile], str]
    whole_word: bool = False

    def matches(self, text: str) -> bool:
        if self.whole_word:
            return any(re.search(rf"\b{re.escape(word)}\b", text) for word in self.keywords)
        return any(word in text for word in self.keywords)


# ----- #
# Templates
# ----- #

def render_fee(profile: StudentProfile) -> str:
    total = format_amount(profile.fee_total_amount)
    remaining = remaining_balance(profile)
    if remaining <= 0:
        return f"Great news! Your tuition fees are fully paid. (Total: {total})"
    return (
        f"You have paid {format_amount(profile.fee_paid_amount)} of {total}. "
        f"The remaining balance is {format_amount(remaining)}."
    )


def render_documents(profile: StudentProfile) -> str:
    if not profile.documents:
        return (
            "You have not uploaded any documents yet. Upload them here in the chat "
            "or in the Documents module."
        )

    lines = ["Here is the status of your documents:"]
    for status in DocumentStatus:
        names = [doc.document_type.value for doc in profile.documents if doc.status == status]
        if names:
            lines.append(f"- {status.value.capitalize()}: {', '.join(names)}")

    rejected = DocumentsModule().outstanding_rejections(profile)
    for doc in rejected:
        reason = doc.rejection_reason or "no reason given"
        lines.append(f"{doc.document_type.value} was rejected ({reason}). Please upload it again.")

    to_submit = [
        doc.document_type.value for doc in profile.documents
        if doc.status in (DocumentStatus.PENDING, DocumentStatus.UPLOADED)
    ]
    if to_submit:
        lines.append(f"You still need to submit: {', '.join(to_submit)}.")
    elif not rejected:
        lines.append("All your documents are submitted or approved!")

    return "\n".join(lines)


def render_hostel(profile: StudentProfile) -> str:
    status = profile.hostel_status
    if status == HostelStatus.APPROVED:
        room = f" ({profile.hostel_room_type})" if profile.hostel_room_type else ""
        return f"Your hostel room{room} is allocated!"
    if status == HostelStatus.PENDING:
        return "Your hostel application is pending review."
    if status == HostelStatus.REJECTED:
        reason = profile.hostel_rejection_reason or "no reason given"
        return f"Your hostel application was rejected: {reason}. You can re-apply from the Dashboard."
    return "You have not applied for hostel yet. You can apply for hostel in the Dashboard."


def render_progress(profile: StudentProfile, modules: Sequence[OnboardingModule] = DEFAULT_MODULES) -> str:
    report = compute_progress(profile, modules)
    lines = [f"Your onboarding is {report.percentage}% complete."]
    for entry in report.modules:
        mark = "done" if entry.complete else entry.status.replace("_", " ")
        lines.append(f"- {entry.label}: {mark} ({entry.summary})")
    return "\n".join(lines)


def render_subjects(profile: StudentProfile) -> str:
    subjects = profile.lms_registered_subjects or []
    if profile.lms_status == LmsStatus.ACTIVE and subjects:
        return f"You are registered for: {', '.join(subjects)}."
    return "Your LMS account is not active yet. Register your subjects to activate it."


def render_timetable(profile: StudentProfile) -> str:
    if profile.lms_status == LmsStatus.ACTIVE:
        return "Your timetable is available in the LMS for your registered subjects."
    return "Your timetable will be available once your LMS account is active."


def render_greeting(profile: StudentProfile) -> str:
    return GREETING_MESSAGE


def render_help(profile: StudentProfile) -> str:
    return HELP_MESSAGE


INTENTS: List[Intent] = [
    Intent("fee", ("fee", "payment", "pay"), render_fee),
    Intent("documents", ("document", "upload", "reject"), render_documents),
    Intent("hostel", ("hostel", "room"), render_hostel),
    Intent("progress", ("progress", "status"), render_progress),
    Intent("subjects", ("subject", "course"), render_subjects),
    Intent("timetable", ("timetable", "schedule"), render_timetable),
    Intent("greeting", ("hello", "hi", "hey"), render_greeting, whole_word=True),
    Intent("help", ("help",), render_help),
]


def match_intent(text: str, intents: Sequence[Intent] = INTENTS) -> Optional[Intent]:
    lowered = (text or "").lower()
    for intent in intents:
        if intent.matches(lowered):
            return intent
    return None


def respond(text: str, profile: StudentProfile, intents: Sequence[Intent] = INTENTS) -> str:
    intent = match_intent(text, intents)
    if intent is None:
        return DEFAULT_MESSAGE
    return intent.render(profile)
