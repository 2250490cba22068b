from onboarding.services.progress.aggregator import (
    ModuleProgress,
    ProgressReport,
    compute_progress,
    resolve_weights,
)
from onboarding.services.progress.modules import (
    DEFAULT_MODULES,
    DocumentsModule,
    FeeModule,
    HostelModule,
    LmsModule,
    OnboardingModule,
)

__all__ = [
    "DEFAULT_MODULES",
    "DocumentsModule",
    "FeeModule",
    "HostelModule",
    "LmsModule",
    "ModuleProgress",
    "OnboardingModule",
    "ProgressReport",
    "compute_progress",
    "resolve_weights",
]
