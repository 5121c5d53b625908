# KisanMitra Inference Gateway v1.0.0
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware

from app.config import (
    AI_CHAT_MODEL,
    AI_GATEWAY_BASE_URL,
    PLANTNET_API_KEY,
    SERVICE_NAME,
    SERVICE_VERSION,
    validate_config,
)
from app.dependencies import ai_client, close_clients, supabase_client
from app.routers import chat, health
from app.services.gateway import ConfigurationError, GatewayError
from app.services.gateway.normalizer import normalize_error
from app.utils.rate_limiter import limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SERVICE_ERROR_MESSAGE = "Service error. Please try again later."


# ============================================================================#
# Lifespan Events
# ============================================================================#

@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {SERVICE_NAME} v{SERVICE_VERSION}")
    logger.info(f"AI gateway: {'✓' if ai_client else '✗'} ({AI_GATEWAY_BASE_URL}, model={AI_CHAT_MODEL})")
    logger.info(f"Pl@ntNet: {'✓' if PLANTNET_API_KEY else '✗'}")
    logger.info(f"Supabase: {'✓' if supabase_client else '✗'}")
    logger.info("=" * 60)

    missing = validate_config()
    if missing:
        logger.error(f"Missing required configuration: {', '.join(missing)}")
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

    yield

    # Shutdown
    logger.info("Shutting down gracefully...")
    await close_clients()


# Initialize FastAPI app
app = FastAPI(
    title=SERVICE_NAME,
    description="Multilingual farming assistant: chat, vision chat and plant health analysis",
    version=SERVICE_VERSION,
    lifespan=lifespan
)

# Rate Limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS for the browser dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


# ============================================================================#
# Exception Handlers
# ============================================================================#

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Invalid request body on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid request body."})


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    if isinstance(exc, ConfigurationError):
        logger.error(f"Configuration error on {request.url.path}: {exc.detail}")
    result = normalize_error(exc.to_classified())
    return JSONResponse(status_code=result.status_code, content=result.body())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": SERVICE_ERROR_MESSAGE})


# ============================================================================#
# Routers
# ============================================================================#
app.include_router(health.router)
app.include_router(chat.router)


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000)
