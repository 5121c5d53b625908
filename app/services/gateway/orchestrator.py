import logging
from typing import Awaitable, Callable, Dict

from app.models import ChatRequest
from app.services.gateway import (
    ClassifiedError,
    ErrorKind,
    InputValidationError,
    NormalizedResponse,
    RequestPath,
    UpstreamOutcome,
)
from app.services.gateway.adapters import analyze_plant_image, chat_with_image, chat_with_text
from app.services.gateway.classifier import classify_request
from app.services.gateway.languages import Language, resolve_language
from app.services.gateway.normalizer import normalize_error, normalize_outcome

logger = logging.getLogger(__name__)

Adapter = Callable[[object, ChatRequest, Language], Awaitable[UpstreamOutcome]]

ADAPTERS: Dict[RequestPath, Adapter] = {
    RequestPath.TEXT_CHAT: chat_with_text,
    RequestPath.VISION_CHAT: chat_with_image,
    RequestPath.ANALYSIS: analyze_plant_image,
}


async def handle_chat_request(client, request: ChatRequest) -> NormalizedResponse:
    """
    Run one request through the gateway:
    Received -> Classified -> UpstreamCalled -> NormalizedSuccess | NormalizedError

    Always returns a NormalizedResponse; nothing is re-raised.
    """
    try:
        path = classify_request(request)
    except InputValidationError as e:
        logger.info(f"Rejected request before upstream call: {e.detail}")
        return normalize_error(e.to_classified())

    language = resolve_language(request.language)
    logger.info(f"Gateway request: path={path.value} language={language.value}")

    try:
        outcome = await ADAPTERS[path](client, request, language)
        return normalize_outcome(path, outcome)
    except Exception:
        logger.exception(f"Unhandled error in gateway ({path.value})")
        return normalize_error(ClassifiedError(ErrorKind.SERVICE_ERROR))
