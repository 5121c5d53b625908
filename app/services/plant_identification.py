"""
Plant Identification (Pl@ntNet)

Identifies the plant species and, when possible, a disease from a leaf photo
and summarizes both for the farmer.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from app.services.gateway import ClassifiedError, ErrorKind
from app.services.gateway.languages import resolve_language
from app.utils.image import DecodedImage

logger = logging.getLogger(__name__)

PLANTNET_SPECIES_URL = "https://my-api.plantnet.org/v2/identify/all"
PLANTNET_DISEASE_URL = "https://my-api.plantnet.org/v2/diseases/identify"

# Scores below this (percent) are not trusted
MIN_CONFIDENCE = 30

UNCLEAR_IMAGE_MESSAGES = {
    "english": "The image is unclear. Please upload a clear photo of the affected leaf in good lighting.",
    "hindi": "छवि स्पष्ट नहीं है। कृपया अच्छी रोशनी में प्रभावित पत्ती की एक स्पष्ट तस्वीर अपलोड करें।",
    "tamil": "படம் தெளிவாக இல்லை. பாதிக்கப்பட்ட இலையின் தெளிவான புகைப்படத்தை நல்ல வெளிச்சத்தில் பதிவேற்றவும்.",
}
NO_RESULTS_MESSAGE = "Could not identify the plant from the image. Please upload a clearer photo of the leaf."
NO_DISEASE_MESSAGE = "No disease detected based on Pl@ntNet analysis."
LOW_DISEASE_CONFIDENCE_MESSAGE = "Disease detection: Confidence too low to determine disease reliably."


class PlantIdentificationError(Exception):
    """Both Pl@ntNet endpoints failed"""

    def __init__(self, error: ClassifiedError):
        super().__init__(error.kind.value)
        self.error = error


@dataclass
class PlantIdentification:
    plant_name: Optional[str] = None
    common_names: List[str] = field(default_factory=list)
    confidence: int = 0
    disease_name: Optional[str] = None
    disease_confidence: int = 0
    species_found: bool = False
    disease_found: bool = False


def _percent(score: Any) -> int:
    try:
        return int(round(float(score or 0) * 100))
    except (TypeError, ValueError):
        return 0


def _classify_status(status_code: int) -> ClassifiedError:
    if status_code == 429:
        return ClassifiedError(ErrorKind.RATE_LIMITED, detail="plantnet", status_code=status_code)
    if status_code == 402:
        return ClassifiedError(ErrorKind.QUOTA_EXHAUSTED, detail="plantnet", status_code=status_code)
    return ClassifiedError(ErrorKind.UPSTREAM_ERROR, detail="plantnet", status_code=status_code)


async def _post_image(http_client: httpx.AsyncClient, url: str, params: Dict[str, str], image: DecodedImage):
    """POST the image to one endpoint. Returns (json or None, status code or None)."""
    try:
        response = await http_client.post(
            url,
            params=params,
            files=[("images", ("plant.jpg", image.data, image.mime_type))],
            data={"organs": "leaf"},
        )
    except httpx.HTTPError as e:
        logger.error(f"Pl@ntNet call failed ({url}): {e}")
        return None, None

    if response.status_code != 200:
        logger.error(f"Pl@ntNet API error ({url}): {response.status_code} {response.text[:200]}")
        return None, response.status_code
    try:
        return response.json(), response.status_code
    except ValueError:
        logger.error(f"Pl@ntNet returned invalid JSON ({url})")
        return None, response.status_code


async def identify_plant(http_client: httpx.AsyncClient, api_key: str, image: DecodedImage) -> PlantIdentification:
    disease_json, _ = await _post_image(
        http_client, PLANTNET_DISEASE_URL, {"api-key": api_key}, image
    )
    species_json, species_status = await _post_image(
        http_client,
        PLANTNET_SPECIES_URL,
        {"include-related-images": "false", "no-reject": "false", "lang": "en", "api-key": api_key},
        image,
    )

    if disease_json is None and species_json is None:
        if species_status is None:
            raise PlantIdentificationError(ClassifiedError(ErrorKind.UPSTREAM_ERROR, detail="plantnet"))
        raise PlantIdentificationError(_classify_status(species_status))

    result = PlantIdentification()

    species_results = (species_json or {}).get("results") or []
    if species_results:
        top = species_results[0] or {}
        species = top.get("species") or {}
        result.species_found = True
        result.confidence = _percent(top.get("score"))
        result.plant_name = species.get("scientificNameWithoutAuthor") or "Unknown"
        result.common_names = [n for n in species.get("commonNames") or [] if n]

    disease_results = (disease_json or {}).get("results") or []
    if disease_results:
        top = disease_results[0] or {}
        result.disease_found = True
        result.disease_confidence = _percent(top.get("score"))
        result.disease_name = (top.get("disease") or {}).get("label") or top.get("label") or "Unknown disease"

    return result


def identification_shortcut(result: PlantIdentification, language: Optional[str] = None) -> Optional[str]:
    """Final reply when the result is too weak to explain (unclear photo, nothing found), else None."""
    if result.species_found and result.confidence < MIN_CONFIDENCE:
        lang = resolve_language(language)
        return UNCLEAR_IMAGE_MESSAGES.get(lang.value, UNCLEAR_IMAGE_MESSAGES["english"])
    if not result.species_found and not result.disease_found:
        return NO_RESULTS_MESSAGE
    return None


def summarize_identification(result: PlantIdentification, language: Optional[str] = None) -> str:
    """Farmer-facing summary; unclear photos get a localized retake message."""
    shortcut = identification_shortcut(result, language)
    if shortcut is not None:
        return shortcut

    lines = []
    if result.species_found:
        common = ", ".join(result.common_names) or "N/A"
        lines.append(f"Plant identified: {result.plant_name} ({common})")
        lines.append(f"Confidence: {result.confidence}%")

    if result.disease_found:
        if result.disease_confidence < MIN_CONFIDENCE:
            lines.append(LOW_DISEASE_CONFIDENCE_MESSAGE)
        else:
            lines.append(f"Disease detected: {result.disease_name}")
            lines.append(f"Disease confidence: {result.disease_confidence}%")
    elif result.species_found:
        lines.append(NO_DISEASE_MESSAGE)

    return "\n".join(lines)
