import logging
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from app.config import CHAT_RATE_LIMIT, PLANTNET_API_KEY
from app.dependencies import get_ai_client, get_http_client, get_supabase_client
from app.models import ChatRequest, ChatResponse, ErrorResponse, IdentifyRequest
from app.services.gateway import GatewayError, NormalizedResponse, RequestPath
from app.services.gateway.adapters import explain_identification
from app.services.gateway.languages import resolve_language
from app.services.gateway.normalizer import normalize_error, normalize_outcome
from app.services.gateway.orchestrator import handle_chat_request
from app.services.plant_identification import (
    PlantIdentificationError,
    identification_shortcut,
    identify_plant,
    summarize_identification,
)
from app.services.user_service import get_preferred_language
from app.utils.image import decode_image_payload
from app.utils.rate_limiter import limiter

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

ERROR_RESPONSES = {
    status: {"model": ErrorResponse}
    for status in (400, 402, 415, 429, 500, 502)
}


def _to_json(result: NormalizedResponse) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.body())


@router.options("/farming-chat")
async def farming_chat_preflight():
    return Response(status_code=204, headers=CORS_HEADERS)


@router.post("/farming-chat", response_model=ChatResponse, responses=ERROR_RESPONSES)
@limiter.limit(CHAT_RATE_LIMIT)
async def farming_chat(
    request: Request,
    chat_request: ChatRequest,
    client=Depends(get_ai_client),
    supabase=Depends(get_supabase_client),
):
    """
    Farming assistant endpoint.
    Body: {message?, imageBase64?, language?, mode?: "analyze", userId?}
    Returns {response} on success or {error} on failure.
    """
    if not chat_request.language and chat_request.user_id:
        preferred = await get_preferred_language(supabase, chat_request.user_id)
        if preferred:
            chat_request = chat_request.model_copy(update={"language": preferred})

    result = await handle_chat_request(client, chat_request)
    if result.error is not None:
        logger.info(f"farming-chat answered with error ({result.status_code}): {result.error}")
    return _to_json(result)


@router.post(
    "/identify",
    response_model=ChatResponse,
    responses={**ERROR_RESPONSES, 503: {"model": ErrorResponse}},
)
@limiter.limit(CHAT_RATE_LIMIT)
async def identify(
    request: Request,
    identify_request: IdentifyRequest,
    http_client=Depends(get_http_client),
    client=Depends(get_ai_client),
):
    """
    Identify plant species and disease from a leaf photo with Pl@ntNet, then
    let the chat model explain the result to the farmer.
    Body: {imageBase64, language?, message?}
    """
    if not PLANTNET_API_KEY:
        return JSONResponse(status_code=503, content={"error": "Plant identification is not configured."})

    try:
        image = decode_image_payload(identify_request.image_base64)
    except GatewayError as e:
        return _to_json(normalize_error(e.to_classified()))

    try:
        result = await identify_plant(http_client, PLANTNET_API_KEY, image)
    except PlantIdentificationError as e:
        return _to_json(normalize_error(e.error))

    shortcut = identification_shortcut(result, identify_request.language)
    if shortcut is not None:
        return _to_json(NormalizedResponse(response=shortcut))

    summary = summarize_identification(result, identify_request.language)
    language = resolve_language(identify_request.language)
    outcome = await explain_identification(client, summary, identify_request.message, language)
    return _to_json(normalize_outcome(RequestPath.TEXT_CHAT, outcome))
