"""
Shared fixtures for gateway tests.

Environment is fixed before any app module is imported so the suite never
depends on a developer's .env and never reaches the network.
"""
import base64
import io
import os
import struct
import sys
import zlib
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

os.environ["AI_GATEWAY_API_KEY"] = "test-gateway-key"
os.environ["AI_GATEWAY_BASE_URL"] = "https://gateway.test/v1"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_KEY"] = ""
os.environ["PLANTNET_API_KEY"] = ""

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import httpx
import openai
import pytest
from PIL import Image

GATEWAY_URL = "https://gateway.test/v1/chat/completions"


def completion(text):
    """Minimal stand-in for an OpenAI chat completion object."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


def stub_client(text=None, side_effect=None):
    client = MagicMock()
    if side_effect is not None:
        client.chat.completions.create = AsyncMock(side_effect=side_effect)
    else:
        client.chat.completions.create = AsyncMock(return_value=completion(text))
    return client


def status_error(status, code=None):
    request = httpx.Request("POST", GATEWAY_URL)
    response = httpx.Response(status, request=request)
    body = {"code": code, "message": "upstream refused"} if code else None
    error_cls = openai.RateLimitError if status == 429 else openai.APIStatusError
    return error_cls("upstream refused", response=response, body=body)


def image_base64(image_format="JPEG", size=(8, 8)):
    buffer = io.BytesIO()
    Image.new("RGB", size, (40, 140, 60)).save(buffer, format=image_format)
    return base64.b64encode(buffer.getvalue()).decode("utf-8")


def oversized_png_base64(width=15000, height=15000):
    """Tiny PNG whose header declares far more pixels than Pillow accepts."""
    def chunk(tag, payload):
        return struct.pack(">I", len(payload)) + tag + payload + struct.pack(">I", zlib.crc32(tag + payload) & 0xFFFFFFFF)

    header = struct.pack(">IIBBBBB", width, height, 1, 0, 0, 0, 0)
    data = b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", header) + chunk(b"IDAT", zlib.compress(b"\x00")) + chunk(b"IEND", b"")
    return base64.b64encode(data).decode("utf-8")


@pytest.fixture
def make_client():
    return stub_client


@pytest.fixture
def make_status_error():
    return status_error


@pytest.fixture
def jpeg_base64():
    return image_base64("JPEG")


@pytest.fixture
def make_image():
    return image_base64


@pytest.fixture
def gateway_request():
    return httpx.Request("POST", GATEWAY_URL)


@pytest.fixture
def oversized_png():
    return oversized_png_base64()
