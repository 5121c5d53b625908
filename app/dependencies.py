import logging
from typing import Optional

import httpx
from openai import AsyncOpenAI
from supabase import Client, create_client

from app.config import (
    AI_GATEWAY_API_KEY,
    AI_GATEWAY_BASE_URL,
    API_CONNECT_TIMEOUT,
    API_TIMEOUT,
    SUPABASE_KEY,
    SUPABASE_URL,
)
from app.services.gateway import ConfigurationError

logger = logging.getLogger(__name__)

upstream_timeout = httpx.Timeout(
    connect=API_CONNECT_TIMEOUT,
    read=API_TIMEOUT,
    write=API_TIMEOUT,
    pool=API_TIMEOUT,
)

# Shared HTTP client for non-OpenAI upstreams (Pl@ntNet)
http_client = httpx.AsyncClient(timeout=upstream_timeout)

# Initialize AI gateway client (OpenAI-compatible). max_retries=0: every
# request makes exactly one upstream call.
ai_client: Optional[AsyncOpenAI] = None
if AI_GATEWAY_API_KEY:
    ai_client = AsyncOpenAI(
        base_url=AI_GATEWAY_BASE_URL,
        api_key=AI_GATEWAY_API_KEY,
        max_retries=0,
        http_client=httpx.AsyncClient(timeout=upstream_timeout),
    )
    logger.info(f"AI gateway initialized ({AI_GATEWAY_BASE_URL}, {API_TIMEOUT}s timeout)")

# Initialize Supabase (profiles row store, optional)
supabase_client: Optional[Client] = None
if SUPABASE_URL and SUPABASE_KEY:
    try:
        supabase_client = create_client(SUPABASE_URL, SUPABASE_KEY)
        logger.info("Supabase initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize Supabase: {e}")


def get_ai_client() -> AsyncOpenAI:
    if ai_client is None:
        raise ConfigurationError("AI_GATEWAY_API_KEY is not configured")
    return ai_client


def get_http_client() -> httpx.AsyncClient:
    return http_client


def get_supabase_client() -> Optional[Client]:
    return supabase_client


async def close_clients():
    await http_client.aclose()
    if ai_client is not None:
        await ai_client.close()
