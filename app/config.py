import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


# ============================================================================#
# ENVIRONMENT / SERVICES
# ============================================================================#
AI_GATEWAY_API_KEY = os.getenv("AI_GATEWAY_API_KEY")
AI_GATEWAY_BASE_URL = os.getenv("AI_GATEWAY_BASE_URL", "https://ai.gateway.lovable.dev/v1")
AI_CHAT_MODEL = os.getenv("AI_CHAT_MODEL", "google/gemini-3-flash-preview")
AI_VISION_MODEL = os.getenv("AI_VISION_MODEL") or AI_CHAT_MODEL

PLANTNET_API_KEY = os.getenv("PLANTNET_API_KEY")  # Optional: enables /identify
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# Upstream timeouts (seconds)
API_TIMEOUT = _int_env("API_TIMEOUT", 60)
API_CONNECT_TIMEOUT = _int_env("API_CONNECT_TIMEOUT", 15)

# Image payloads
MAX_IMAGE_BYTES = _int_env("MAX_IMAGE_BYTES", 8 * 1024 * 1024)

# Analysis fallback
ANALYSIS_FALLBACK_CONFIDENCE = min(100, max(0, _int_env("ANALYSIS_FALLBACK_CONFIDENCE", 60)))

# Rate limiting per client address (slowapi syntax)
CHAT_RATE_LIMIT = os.getenv("CHAT_RATE_LIMIT", "30/minute")

SERVICE_NAME = "KisanMitra Inference Gateway"
SERVICE_VERSION = "1.0.0"

REQUIRED_SETTINGS = ("AI_GATEWAY_API_KEY",)


def validate_config() -> list:
    """Return the names of required settings that are missing."""
    return [name for name in REQUIRED_SETTINGS if not globals().get(name)]
