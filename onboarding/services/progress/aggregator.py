"""Progress aggregation over the registered onboarding modules."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from onboarding.config.settings import settings
from onboarding.models.student_profile import StudentProfile
from onboarding.services.progress.modules import DEFAULT_MODULES, OnboardingModule


@dataclass(frozen=True)
class ModuleProgress:
    key: str
    label: str
    status: str
    complete: bool
    weight: float
    summary: str = ""


@dataclass(frozen=True)
class ProgressReport:
    percentage: int
    modules: List[ModuleProgress] = field(default_factory=list)

    def module(self, key: str) -> Optional[ModuleProgress]:
        for entry in self.modules:
            if entry.key == key:
                return entry
        return None


def resolve_weights(
    modules: Sequence[OnboardingModule],
    weights: Optional[Dict[str, float]] = None,
) -> Dict[str, float]:
    """
    Normalize weights to percentages summing to 100. Modules without a
    configured weight share equally with an unweighted default of 1.
    """
    configured = settings.PROGRESS_MODULE_WEIGHTS if weights is None else weights
    raw = {module.key: float(configured.get(module.key, 1.0)) if configured else 1.0 for module in modules}
    total = sum(raw.values())
    if total <= 0:
        return {key: 0.0 for key in raw}
    return {key: value * 100.0 / total for key, value in raw.items()}


def compute_progress(
    profile: StudentProfile,
    modules: Sequence[OnboardingModule] = DEFAULT_MODULES,
    weights: Optional[Dict[str, float]] = None,
) -> ProgressReport:
    """
    Recompute progress from scratch. With the default equal weights every
    completed module is worth 25 points.
    """
    resolved = resolve_weights(modules, weights)
    entries = [
        ModuleProgress(
            key=module.key,
            label=module.label,
            status=module.status(profile),
            complete=module.is_complete(profile),
            weight=resolved[module.key],
            summary=module.summarize(profile),
        )
        for module in modules
    ]
    score = sum(entry.weight for entry in entries if entry.complete)
    return ProgressReport(percentage=int(round(score)), modules=entries)
