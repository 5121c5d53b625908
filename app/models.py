from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

AnalysisStatus = Literal["healthy", "diseased", "pest", "nutrient_deficiency"]
Severity = Literal["low", "medium", "high"]


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    image_base64: Optional[str] = Field(default=None, alias="imageBase64")
    language: Optional[str] = None  # english, hindi, ... or hi, ta, ...; unknown -> english
    mode: Optional[str] = None  # "analyze" for structured plant-health analysis
    user_id: Optional[str] = Field(default=None, alias="userId")  # preferred-language lookup

    @property
    def has_message(self) -> bool:
        return bool(self.message and self.message.strip())

    @property
    def has_image(self) -> bool:
        return bool(self.image_base64 and self.image_base64.strip())


class IdentifyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    image_base64: str = Field(alias="imageBase64")
    language: Optional[str] = None
    message: Optional[str] = None  # extra question answered alongside the identification


class AnalysisResult(BaseModel):
    """Structured plant-health verdict returned for mode == "analyze"."""
    plantName: str
    status: AnalysisStatus
    confidence: int = Field(ge=0, le=100)
    description: str
    diseaseDetected: Optional[str] = None
    recommendations: List[str]
    precautions: List[str]
    severity: Optional[Severity] = None

    @model_validator(mode="after")
    def _severity_only_when_unhealthy(self):
        if self.status == "healthy" and self.severity is not None:
            raise ValueError("severity is only reported for unhealthy plants")
        return self


class ChatResponse(BaseModel):
    response: str


class ErrorResponse(BaseModel):
    error: str
