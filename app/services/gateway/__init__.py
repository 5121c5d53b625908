"""
Inference Gateway - shared types

A chat/analysis request flows through:
  classifier (pick one RequestPath) -> adapter (one upstream call) -> normalizer
and always ends as a NormalizedResponse.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class RequestPath(str, Enum):
    """Processing path selected for a request"""
    TEXT_CHAT = "text_chat"
    VISION_CHAT = "vision_chat"
    ANALYSIS = "analysis"


class ErrorKind(str, Enum):
    """Closed set of classified error kinds"""
    INPUT_VALIDATION = "input_validation"
    UNSUPPORTED_MEDIA = "unsupported_media"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXHAUSTED = "quota_exhausted"
    UPSTREAM_ERROR = "upstream_error"
    SERVICE_ERROR = "service_error"


class GatewayError(Exception):
    """Base for errors raised inside the gateway before an upstream call"""
    kind = ErrorKind.SERVICE_ERROR

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.kind.value)
        self.detail = detail

    def to_classified(self) -> "ClassifiedError":
        return ClassifiedError(kind=self.kind, detail=self.detail)


class InputValidationError(GatewayError):
    kind = ErrorKind.INPUT_VALIDATION


class UnsupportedMediaError(GatewayError):
    kind = ErrorKind.UNSUPPORTED_MEDIA


class ConfigurationError(GatewayError):
    """Required credential or setting missing (startup failure)"""
    kind = ErrorKind.SERVICE_ERROR


@dataclass(frozen=True)
class ClassifiedError:
    """Error value tagged with its kind; never raised"""
    kind: ErrorKind
    detail: str = ""
    status_code: Optional[int] = None  # upstream HTTP status, when known


@dataclass(frozen=True)
class UpstreamOutcome:
    """Raw result of exactly one upstream call: text or a classified error"""
    text: Optional[str] = None
    error: Optional[ClassifiedError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, text: Optional[str]) -> "UpstreamOutcome":
        return cls(text=text)

    @classmethod
    def failure(cls, error: ClassifiedError) -> "UpstreamOutcome":
        return cls(error=error)


@dataclass(frozen=True)
class NormalizedResponse:
    """The only contract exposed to clients: {response} or {error}"""
    response: Optional[str] = None
    error: Optional[str] = None
    status_code: int = 200

    def __post_init__(self):
        if (self.response is None) == (self.error is None):
            raise ValueError("NormalizedResponse needs exactly one of response or error")

    def body(self) -> Dict[str, Any]:
        if self.error is not None:
            return {"error": self.error}
        return {"response": self.response}


__all__ = [
    "RequestPath",
    "ErrorKind",
    "GatewayError",
    "InputValidationError",
    "UnsupportedMediaError",
    "ConfigurationError",
    "ClassifiedError",
    "UpstreamOutcome",
    "NormalizedResponse",
]
