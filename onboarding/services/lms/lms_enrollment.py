"""Subject registration and LMS activation."""

from typing import Iterable, List

from onboarding.core.exceptions import ValidationError
from onboarding.core.logging import get_logger
from onboarding.models.base import utc_now
from onboarding.models.student_profile import StudentProfile
from onboarding.schemas.enums import LmsStatus

logger = get_logger(__name__)


def normalize_subjects(subjects: Iterable[str]) -> List[str]:
    """Trimmed, non-empty, first occurrence wins (case-insensitive)."""
    seen = set()
    result = []
    for subject in subjects or []:
        name = " ".join(str(subject).split())
        if name and name.lower() not in seen:
            seen.add(name.lower())
            result.append(name)
    return result


def register_subjects(profile: StudentProfile, subjects: Iterable[str]) -> List[str]:
    """
    Add subjects to the student's registration and activate the LMS.

    Returns the subjects that were newly added.
    """
    requested = normalize_subjects(subjects)
    if not requested:
        raise ValidationError(
            "At least one subject is required",
            {"subjects": ["Provide one or more subject ids"]},
        )

    current = list(profile.lms_registered_subjects or [])
    known = {name.lower() for name in current}
    added = [name for name in requested if name.lower() not in known]

    # Reassign so the JSON column is flagged as modified
    profile.lms_registered_subjects = current + added

    if profile.lms_status != LmsStatus.ACTIVE:
        profile.lms_status = LmsStatus.ACTIVE
        profile.lms_activated_at = utc_now()

    logger.info(
        "Subjects registered",
        extra={
            "student_id": profile.student_id,
            "added": added,
            "total_subjects": len(profile.lms_registered_subjects),
        },
    )
    return added
