from onboarding.services.classification.classifier import (
    CLASSIFICATION_PROMPT,
    ClassificationResult,
    ClassifierBackend,
    DocumentClassifier,
    gemini_backend,
    parse_classification,
)

__all__ = [
    "CLASSIFICATION_PROMPT",
    "ClassificationResult",
    "ClassifierBackend",
    "DocumentClassifier",
    "gemini_backend",
    "parse_classification",
]
