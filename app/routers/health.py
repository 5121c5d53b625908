import logging
from fastapi import APIRouter

from app.config import PLANTNET_API_KEY, SERVICE_NAME, SERVICE_VERSION
from app.dependencies import ai_client, supabase_client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def root():
    return {
        "status": "online",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "features": [
            "Multilingual Farming Chat",
            "Vision Chat on Plant Photos",
            "Structured Plant Health Analysis",
            "Pl@ntNet Plant Identification",
        ]
    }


@router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "version": SERVICE_VERSION,
        "services": {
            "ai_gateway": bool(ai_client),
            "plantnet": bool(PLANTNET_API_KEY),
            "supabase": bool(supabase_client)
        }
    }
