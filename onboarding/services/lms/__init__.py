from onboarding.services.lms.lms_enrollment import normalize_subjects, register_subjects

__all__ = ["normalize_subjects", "register_subjects"]
