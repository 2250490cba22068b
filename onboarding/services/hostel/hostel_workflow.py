"""
Hostel application workflow.

    not_applied --apply--> pending --decide--> approved | rejected
    rejected    --apply--> pending

``approved`` is terminal. Decisions belong to staff and admins; a
rejection always carries a reason and every other state clears it.
"""

from typing import Optional

from onboarding.core.exceptions import InvalidStateTransitionError, ValidationError
from onboarding.core.logging import get_audit_logger, get_logger
from onboarding.core.security import STAFF_ROLES, CurrentUser, ensure_role
from onboarding.models.base import utc_now
from onboarding.models.student_profile import StudentProfile
from onboarding.schemas.enums import HostelStatus

logger = get_logger(__name__)
audit_logger = get_audit_logger()

DEFAULT_REJECTION_REASON = "Application rejected by admin"

APPLICABLE_FROM = frozenset({HostelStatus.NOT_APPLIED, HostelStatus.REJECTED})
DECISIONS = frozenset({HostelStatus.APPROVED, HostelStatus.REJECTED})


def apply(
    profile: StudentProfile,
    gender: Optional[str] = None,
    room_type: Optional[str] = None,
) -> StudentProfile:
    current = profile.hostel_status
    if current not in APPLICABLE_FROM:
        raise InvalidStateTransitionError(
            "hostel",
            current.value,
            HostelStatus.PENDING.value,
            message=f"Hostel application is already {current.value}",
        )

    profile.hostel_status = HostelStatus.PENDING
    profile.hostel_rejection_reason = None
    profile.hostel_gender = gender or profile.hostel_gender
    profile.hostel_room_type = room_type or profile.hostel_room_type
    profile.hostel_applied_at = utc_now()
    profile.hostel_decided_at = None
    profile.hostel_decided_by = None

    logger.info(
        "Hostel application submitted",
        extra={"student_id": profile.student_id, "previous_status": current.value},
    )
    return profile


def decide(
    profile: StudentProfile,
    status: HostelStatus,
    actor: CurrentUser,
    reason: Optional[str] = None,
) -> StudentProfile:
    ensure_role(actor, STAFF_ROLES)

    if status not in DECISIONS:
        raise ValidationError(
            "Status must be approved or rejected",
            {"status": [f"'{status.value}' is not a hostel decision"]},
        )

    current = profile.hostel_status
    if current != HostelStatus.PENDING:
        raise InvalidStateTransitionError("hostel", current.value, status.value)

    profile.hostel_status = status
    if status == HostelStatus.REJECTED:
        profile.hostel_rejection_reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
    else:
        profile.hostel_rejection_reason = None
    profile.hostel_decided_at = utc_now()
    profile.hostel_decided_by = actor.id

    audit_logger.info(
        "hostel_decision",
        student_id=profile.student_id,
        decision=status.value,
        rejection_reason=profile.hostel_rejection_reason,
        actor_id=actor.id,
        actor_role=actor.role.value,
    )
    return profile
