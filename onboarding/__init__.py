"""Student onboarding service: documents, fees, hostel and LMS onboarding."""

__version__ = "1.0.0"
