"""
Response normalizer.

Turns an UpstreamOutcome into the client contract ({response} or {error}).
For the analysis path the upstream text is searched for the first balanced
{...} substring that parses as a JSON object; every field is then validated
and defaulted. Parsing never raises: on failure a conservative fallback
AnalysisResult is built from the raw text.
"""
import json
import logging
import math
import re
from typing import Any, Dict, Iterable, Iterator, List, Optional

from app.config import ANALYSIS_FALLBACK_CONFIDENCE
from app.models import AnalysisResult
from app.services.gateway import (
    ClassifiedError,
    ErrorKind,
    NormalizedResponse,
    RequestPath,
    UpstreamOutcome,
)

logger = logging.getLogger(__name__)

CHAT_FALLBACK_TEXT = "Sorry, I couldn't process your question. Please try again."

# Opening braces tried as object starts; each try scans to the end of the text
MAX_BRACE_STARTS = 64

ERROR_MESSAGES = {
    ErrorKind.INPUT_VALIDATION: "Please provide a message or an image.",
    ErrorKind.UNSUPPORTED_MEDIA: "The image could not be read. Please upload a JPEG, PNG or WebP photo.",
    ErrorKind.RATE_LIMITED: "Rate limit exceeded. Please try again later.",
    ErrorKind.QUOTA_EXHAUSTED: "AI credits exhausted. Please add credits.",
    ErrorKind.UPSTREAM_ERROR: "AI service error",
    ErrorKind.SERVICE_ERROR: "Service error. Please try again later.",
}

ERROR_STATUS_CODES = {
    ErrorKind.INPUT_VALIDATION: 400,
    ErrorKind.UNSUPPORTED_MEDIA: 415,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.QUOTA_EXHAUSTED: 402,
    ErrorKind.UPSTREAM_ERROR: 502,
    ErrorKind.SERVICE_ERROR: 500,
}

# Analysis defaults: never report "healthy" and never leave the user without guidance
DEFAULT_STATUS = "diseased"
DEFAULT_SEVERITY = "medium"
DEFAULT_PLANT_NAME = "Unknown plant"
DEFAULT_DESCRIPTION = "No description was provided by the analysis."
EMPTY_ANALYSIS_DESCRIPTION = (
    "The analysis service returned no readable result. Please try again with a clearer photo."
)
DEFAULT_RECOMMENDATIONS = ["Consult a local agriculture expert or Krishi Vigyan Kendra for advice."]
DEFAULT_PRECAUTIONS = ["Consult a local agriculture officer before applying any chemical treatment."]

VALID_STATUSES = {"healthy", "diseased", "pest", "nutrient_deficiency"}
STATUS_ALIASES = {
    "disease": "diseased",
    "infected": "diseased",
    "pests": "pest",
    "pest_damage": "pest",
    "pest_infestation": "pest",
    "nutrient": "nutrient_deficiency",
    "deficiency": "nutrient_deficiency",
    "nutrient_deficient": "nutrient_deficiency",
}
VALID_SEVERITIES = {"low", "medium", "high"}

ANALYSIS_KEYS = set(AnalysisResult.model_fields)

_TRAILING_COMMA = re.compile(r",\s*([}\]])")


# ============================================================================#
# JSON substring extraction
# ============================================================================#

def _matching_brace(text: str, start: int) -> Optional[int]:
    """Index of the brace closing text[start], honouring JSON string literals."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return None


def iter_balanced_objects(text: str) -> Iterator[str]:
    """Yield every balanced {...} substring, leftmost opening brace first."""
    start = text.find("{")
    tried = 0
    while start != -1 and tried < MAX_BRACE_STARTS:
        tried += 1
        end = _matching_brace(text, start)
        if end is not None:
            yield text[start:end + 1]
        start = text.find("{", start + 1)


def _loads_object(candidate: str) -> Optional[Dict[str, Any]]:
    for attempt in (candidate, _TRAILING_COMMA.sub(r"\1", candidate)):
        try:
            value = json.loads(attempt)
        except ValueError:
            continue
        if isinstance(value, dict):
            return value
    return None


def extract_json_object(text: Optional[str], required_keys: Optional[Iterable[str]] = None) -> Optional[Dict[str, Any]]:
    """
    Return the first balanced brace-delimited substring of ``text`` that parses
    as a JSON object (optionally one sharing a key with ``required_keys``).
    Prose braces, code fences and surrounding commentary are skipped.
    """
    if not text:
        return None
    keys = set(required_keys) if required_keys else None
    for candidate in iter_balanced_objects(text):
        data = _loads_object(candidate)
        if data is None:
            continue
        if keys is not None and not keys.intersection(data):
            continue
        return data
    return None


# ============================================================================#
# Field sanitation
# ============================================================================#

def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, str)):
        text = str(value).strip()
        return text or None
    return None


def _as_text_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        text = _as_text(item)
        if text:
            items.append(text)
    return items


def _as_confidence(value: Any) -> int:
    if isinstance(value, bool):
        return ANALYSIS_FALLBACK_CONFIDENCE
    if isinstance(value, str):
        value = value.strip().rstrip("%").strip()
        try:
            value = float(value)
        except ValueError:
            return ANALYSIS_FALLBACK_CONFIDENCE
    if not isinstance(value, (int, float)) or math.isnan(value):
        return ANALYSIS_FALLBACK_CONFIDENCE
    # 0.82 style scores are fractions
    if isinstance(value, float) and 0 < value < 1:
        value = value * 100
    return int(round(min(100.0, max(0.0, float(value)))))


def _as_status(value: Any) -> str:
    text = _as_text(value)
    if not text:
        return DEFAULT_STATUS
    key = re.sub(r"[\s\-]+", "_", text.lower())
    if key in VALID_STATUSES:
        return key
    return STATUS_ALIASES.get(key, DEFAULT_STATUS)


def _as_severity(value: Any) -> str:
    text = _as_text(value)
    if text and text.lower() in VALID_SEVERITIES:
        return text.lower()
    return DEFAULT_SEVERITY


def build_analysis_result(data: Dict[str, Any]) -> AnalysisResult:
    """Validate a parsed upstream object against the AnalysisResult shape."""
    status = _as_status(data.get("status"))
    return AnalysisResult(
        plantName=_as_text(data.get("plantName")) or DEFAULT_PLANT_NAME,
        status=status,
        confidence=_as_confidence(data.get("confidence")),
        description=_as_text(data.get("description")) or DEFAULT_DESCRIPTION,
        diseaseDetected=_as_text(data.get("diseaseDetected")),
        recommendations=_as_text_list(data.get("recommendations")) or list(DEFAULT_RECOMMENDATIONS),
        precautions=_as_text_list(data.get("precautions")) or list(DEFAULT_PRECAUTIONS),
        severity=None if status == "healthy" else _as_severity(data.get("severity")),
    )


def fallback_analysis(raw_text: Optional[str]) -> AnalysisResult:
    """Conservative result when no usable JSON came back."""
    description = raw_text.strip() if isinstance(raw_text, str) else ""
    return AnalysisResult(
        plantName=DEFAULT_PLANT_NAME,
        status=DEFAULT_STATUS,
        confidence=ANALYSIS_FALLBACK_CONFIDENCE,
        description=description or EMPTY_ANALYSIS_DESCRIPTION,
        recommendations=list(DEFAULT_RECOMMENDATIONS),
        precautions=list(DEFAULT_PRECAUTIONS),
        severity=DEFAULT_SEVERITY,
    )


def parse_analysis(raw_text: Optional[str]) -> AnalysisResult:
    """Best-effort AnalysisResult from free upstream text. Never raises."""
    try:
        data = extract_json_object(raw_text, required_keys=ANALYSIS_KEYS)
        if data is not None:
            return build_analysis_result(data)
        preview = (raw_text or "")[:200]
        logger.warning(f"No analysis JSON found in upstream text, using fallback: {preview!r}")
    except Exception as e:
        logger.warning(f"Analysis parsing failed, using fallback: {e}", exc_info=True)
    return fallback_analysis(raw_text)


def serialize_analysis(result: AnalysisResult) -> str:
    return json.dumps(result.model_dump(exclude_none=True), ensure_ascii=False)


# ============================================================================#
# Outcome -> NormalizedResponse
# ============================================================================#

def normalize_error(error: ClassifiedError) -> NormalizedResponse:
    message = ERROR_MESSAGES[error.kind]
    if error.kind == ErrorKind.INPUT_VALIDATION and error.detail:
        message = error.detail
    return NormalizedResponse(error=message, status_code=ERROR_STATUS_CODES[error.kind])


def normalize_chat_text(text: Optional[str]) -> NormalizedResponse:
    """Pass chat text through unchanged; empty text is a degraded success."""
    if not isinstance(text, str) or not text.strip():
        logger.warning("Upstream returned empty chat text, using fallback reply")
        return NormalizedResponse(response=CHAT_FALLBACK_TEXT)
    return NormalizedResponse(response=text)


def normalize_outcome(path: RequestPath, outcome: UpstreamOutcome) -> NormalizedResponse:
    if not outcome.ok:
        return normalize_error(outcome.error)
    if path == RequestPath.ANALYSIS:
        return NormalizedResponse(response=serialize_analysis(parse_analysis(outcome.text)))
    return normalize_chat_text(outcome.text)
