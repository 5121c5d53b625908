import json
import logging

logger = logging.getLogger(__name__)

# Serverless entry point: expose app.main:app, or a minimal ASGI app that
# answers 500 when the application cannot be imported.
try:
    from app.main import app
except Exception:
    logger.exception("Failed to import application")

    async def app(scope, receive, send):
        if scope["type"] == "http":
            body = json.dumps({"error": "Service error. Please try again later."}).encode("utf-8")
            await send({
                "type": "http.response.start",
                "status": 500,
                "headers": [
                    [b"content-type", b"application/json; charset=utf-8"],
                ],
            })
            await send({
                "type": "http.response.body",
                "body": body,
            })
