"""
Upstream adapters: one per RequestPath, plus the Pl@ntNet result explanation.

Each adapter builds the provider request, performs exactly one call to the
OpenAI-compatible AI gateway and returns an UpstreamOutcome. SDK/network
exceptions never leave this module; they become ClassifiedError values.
"""
import logging
from typing import Any, Dict, List, Optional

import openai

from app.config import AI_CHAT_MODEL, AI_VISION_MODEL
from app.models import ChatRequest
from app.prompts import (
    DEFAULT_ANALYSIS_QUESTION,
    DEFAULT_PLANTNET_QUESTION,
    DEFAULT_VISION_QUESTION,
    build_analysis_system_prompt,
    build_chat_system_prompt,
    build_plantnet_system_prompt,
    build_vision_system_prompt,
)
from app.services.gateway import ClassifiedError, ErrorKind, GatewayError, UpstreamOutcome
from app.services.gateway.languages import Language
from app.utils.image import decode_image_payload

logger = logging.getLogger(__name__)

# Error codes some OpenAI-compatible gateways send with 429 when credits run out
QUOTA_ERROR_CODES = {"insufficient_quota", "quota_exceeded", "billing_hard_limit_reached"}


def classify_status_error(error: openai.APIStatusError) -> ClassifiedError:
    """Map a non-2xx upstream answer to RateLimited / QuotaExhausted / UpstreamError."""
    status = error.status_code
    code = getattr(error, "code", None)

    if status == 402 or code in QUOTA_ERROR_CODES:
        logger.error(f"AI gateway quota exhausted (status={status}, code={code}) - credits must be added")
        return ClassifiedError(ErrorKind.QUOTA_EXHAUSTED, detail=str(code or status), status_code=status)
    if status == 429:
        logger.warning(f"AI gateway rate limited (status={status}) - client should wait and retry")
        return ClassifiedError(ErrorKind.RATE_LIMITED, detail=str(status), status_code=status)

    logger.error(f"AI gateway error: status={status} message={error.message}")
    return ClassifiedError(ErrorKind.UPSTREAM_ERROR, detail=str(status), status_code=status)


def _first_choice_text(response: Any) -> Optional[str]:
    """Pull choices[0].message.content without trusting the shape."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        return None
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        # some providers answer with content parts
        parts = [p.get("text", "") for p in content if isinstance(p, dict) and p.get("type") == "text"]
        return "".join(parts) or None
    return None


async def _complete(client, model: str, messages: List[Dict[str, Any]]) -> UpstreamOutcome:
    try:
        response = await client.chat.completions.create(model=model, messages=messages)
    except openai.APIStatusError as e:
        return UpstreamOutcome.failure(classify_status_error(e))
    except openai.APITimeoutError as e:
        logger.error(f"AI gateway timeout: {e}")
        return UpstreamOutcome.failure(ClassifiedError(ErrorKind.UPSTREAM_ERROR, detail="timeout"))
    except openai.APIConnectionError as e:
        logger.error(f"AI gateway connection error: {e}")
        return UpstreamOutcome.failure(ClassifiedError(ErrorKind.UPSTREAM_ERROR, detail="connection"))

    return UpstreamOutcome.success(_first_choice_text(response))


def _image_messages(system_prompt: str, question: str, data_url: str) -> List[Dict[str, Any]]:
    return [
        {"role": "system", "content": system_prompt},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": question},
                {"type": "image_url", "image_url": {"url": data_url}},
            ],
        },
    ]


async def chat_with_text(client, request: ChatRequest, language: Language) -> UpstreamOutcome:
    """Plain farming chat."""
    messages = [
        {"role": "system", "content": build_chat_system_prompt(language)},
        {"role": "user", "content": request.message.strip()},
    ]
    return await _complete(client, AI_CHAT_MODEL, messages)


async def chat_with_image(client, request: ChatRequest, language: Language) -> UpstreamOutcome:
    """Vision-augmented chat about an attached plant photo."""
    try:
        image = decode_image_payload(request.image_base64)
    except GatewayError as e:
        return UpstreamOutcome.failure(e.to_classified())

    question = request.message.strip() if request.has_message else DEFAULT_VISION_QUESTION
    messages = _image_messages(build_vision_system_prompt(language), question, image.data_url)
    return await _complete(client, AI_VISION_MODEL, messages)


async def analyze_plant_image(client, request: ChatRequest, language: Language) -> UpstreamOutcome:
    """
    Structured plant-health analysis.

    The upstream is told to answer with a bare JSON object; the normalizer
    still extracts it defensively.
    """
    try:
        image = decode_image_payload(request.image_base64)
    except GatewayError as e:
        return UpstreamOutcome.failure(e.to_classified())

    question = request.message.strip() if request.has_message else DEFAULT_ANALYSIS_QUESTION
    messages = _image_messages(build_analysis_system_prompt(language), question, image.data_url)
    return await _complete(client, AI_VISION_MODEL, messages)


async def explain_identification(client, summary: str, question: Optional[str], language: Language) -> UpstreamOutcome:
    """Turn a Pl@ntNet summary into farmer advice with one text completion."""
    question = (question or "").strip()
    messages = [
        {"role": "system", "content": build_plantnet_system_prompt(language, summary, question)},
        {"role": "user", "content": question or DEFAULT_PLANTNET_QUESTION},
    ]
    return await _complete(client, AI_CHAT_MODEL, messages)
