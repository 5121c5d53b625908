from app.models import ChatRequest
from app.services.gateway import InputValidationError, RequestPath

ANALYZE_MODE = "analyze"


def classify_request(request: ChatRequest) -> RequestPath:
    """
    Pick exactly one processing path for a request.

    image + mode "analyze" -> ANALYSIS
    image, any other mode  -> VISION_CHAT
    no image               -> TEXT_CHAT

    Raises InputValidationError when neither message nor image is present,
    before anything touches the network.
    """
    if not request.has_message and not request.has_image:
        raise InputValidationError("Please provide a message or an image.")

    if request.has_image:
        mode = (request.mode or "").strip().lower()
        if mode == ANALYZE_MODE:
            return RequestPath.ANALYSIS
        return RequestPath.VISION_CHAT

    return RequestPath.TEXT_CHAT
