from onboarding.services.hostel import hostel_workflow
from onboarding.services.hostel.hostel_workflow import DEFAULT_REJECTION_REASON

__all__ = ["hostel_workflow", "DEFAULT_REJECTION_REASON"]
