"""
Document classification adapter.

Wraps the Gemini vision models behind a small interface: bytes and a mime
type go in, a structured ``ClassificationResult`` comes out. A service
failure on every candidate model raises ``ClassifierFailure``; a response
that cannot be parsed is downgraded to ``Other`` with zero confidence.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from onboarding.config.settings import settings
from onboarding.core.exceptions import ClassifierFailure
from onboarding.core.logging import get_logger
from onboarding.schemas.enums import DocumentType

logger = get_logger(__name__)

# (model name, prompt, document bytes, mime type) -> response text
ClassifierBackend = Callable[[str, str, bytes, str], Optional[str]]

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def build_classification_prompt() -> str:
    types = "\n".join(f"- {member.value}" for member in DocumentType)
    return (
        "You are an AI Academic Document Classification System.\n\n"
        "Analyze the uploaded document and determine its document type.\n\n"
        "Do NOT extract detailed data.\n"
        "Do NOT summarize.\n"
        "Only classify.\n\n"
        f"Possible types:\n{types}\n\n"
        "Return strictly valid JSON:\n\n"
        "{\n"
        '  "document_type": "string",\n'
        '  "confidence": number (0-100)\n'
        "}"
    )


CLASSIFICATION_PROMPT = build_classification_prompt()


@dataclass(frozen=True)
class ClassificationResult:
    document_type: DocumentType
    confidence: float
    raw_text: str = ""
    model: Optional[str] = None
    parsed: bool = True


def _coerce_confidence(value: Any) -> float:
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    confidence = float(value)
    if confidence != confidence:  # NaN
        raise ValueError("confidence is not a number")
    return max(0.0, min(100.0, confidence))


def parse_classification(text: Optional[str], model: Optional[str] = None) -> ClassificationResult:
    """
    Normalize the classifier's free text into a ClassificationResult.

    Fenced code-block markers are stripped and the first JSON object in the
    text is parsed. Any failure yields ``Other`` with confidence 0.
    """
    raw = text or ""
    cleaned = _FENCE_RE.sub("", raw).strip()

    try:
        try:
            payload = json.loads(cleaned)
        except json.JSONDecodeError:
            match = _OBJECT_RE.search(cleaned)
            if not match:
                raise
            payload = json.loads(match.group(0))

        if not isinstance(payload, dict):
            raise ValueError("classification payload is not an object")

        document_type = DocumentType.from_label(payload.get("document_type", ""))
        confidence = _coerce_confidence(payload.get("confidence", 0))
    except (ValueError, TypeError) as e:
        # json.JSONDecodeError is a ValueError
        logger.warning(
            "Classifier response could not be parsed",
            extra={"model": model, "error": str(e), "response_preview": raw[:200]},
        )
        return ClassificationResult(DocumentType.OTHER, 0.0, raw_text=raw, model=model, parsed=False)

    return ClassificationResult(document_type, confidence, raw_text=raw, model=model)


def gemini_backend(
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ClassifierBackend:
    """
    Build a backend that calls Gemini through google-generativeai.

    The SDK is imported and configured on the first classification, not
    when the backend is built.
    """
    request_timeout = timeout if timeout is not None else settings.CLASSIFIER_TIMEOUT_SECONDS
    sdk: Dict[str, Any] = {}

    def configured():
        if "genai" not in sdk:
            import google.generativeai as genai

            genai.configure(api_key=api_key or settings.GEMINI_API_KEY)
            sdk["genai"] = genai
        return sdk["genai"]

    def call(model_name: str, prompt: str, content: bytes, mime_type: str) -> Optional[str]:
        model = configured().GenerativeModel(model_name)
        response = model.generate_content(
            [prompt, {"mime_type": mime_type, "data": content}],
            request_options={"timeout": request_timeout},
        )
        return response.text

    return call


class DocumentClassifier:
    """Try each candidate model in order; the first non-empty answer wins."""

    def __init__(
        self,
        backend: ClassifierBackend,
        models: Optional[Sequence[str]] = None,
        prompt: str = CLASSIFICATION_PROMPT,
    ):
        self.backend = backend
        self.models = list(models or settings.GEMINI_MODELS)
        self.prompt = prompt

    def classify(self, content: bytes, mime_type: str) -> ClassificationResult:
        last_error: Optional[Exception] = None

        for model_name in self.models:
            try:
                logger.debug("Trying classifier model", extra={"model": model_name})
                text = self.backend(model_name, self.prompt, content, mime_type)
            except Exception as e:
                logger.warning(
                    f"Classifier model {model_name} failed: {e}",
                    extra={"model": model_name, "error_type": type(e).__name__},
                )
                last_error = e
                continue

            if text and text.strip():
                result = parse_classification(text, model=model_name)
                logger.info(
                    "Document classified",
                    extra={
                        "model": model_name,
                        "document_type": result.document_type.value,
                        "confidence": result.confidence,
                    },
                )
                return result

            logger.warning("Classifier model returned an empty response", extra={"model": model_name})

        last_message = str(last_error) if last_error else "empty response"
        raise ClassifierFailure(
            f"All classifier models failed. Last error: {last_message}",
            attempted_models=self.models,
            last_error=last_message,
        )
