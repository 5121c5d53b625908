"""
Tests for upstream adapters
Verifies request construction and classification of upstream failures
"""
import asyncio
from types import SimpleNamespace

import openai
import pytest

from app.config import AI_CHAT_MODEL, AI_VISION_MODEL
from app.models import ChatRequest
from app.prompts import DEFAULT_ANALYSIS_QUESTION, DEFAULT_VISION_QUESTION
from app.services.gateway import ErrorKind
from app.services.gateway.adapters import (
    _first_choice_text,
    analyze_plant_image,
    chat_with_image,
    chat_with_text,
    classify_status_error,
)
from app.services.gateway.languages import DEFAULT_LANGUAGE

ALL_ADAPTERS = [chat_with_text, chat_with_image, analyze_plant_image]


def run(adapter, client, request):
    return asyncio.run(adapter(client, request, DEFAULT_LANGUAGE))


class TestRequestConstruction:
    def test_text_chat(self, make_client):
        client = make_client("Use urea in split doses.")
        outcome = run(chat_with_text, client, ChatRequest(message="  What fertilizer for rice?  "))

        assert outcome.ok
        assert outcome.text == "Use urea in split doses."
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == AI_CHAT_MODEL
        assert kwargs["messages"][1] == {"role": "user", "content": "What fertilizer for rice?"}
        client.chat.completions.create.assert_awaited_once()

    def test_vision_chat_embeds_image(self, make_client, jpeg_base64):
        client = make_client("Looks like leaf blast.")
        outcome = run(chat_with_image, client, ChatRequest(imageBase64=jpeg_base64, message="What is this?"))

        assert outcome.text == "Looks like leaf blast."
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == AI_VISION_MODEL
        parts = kwargs["messages"][1]["content"]
        assert parts[0] == {"type": "text", "text": "What is this?"}
        assert parts[1]["type"] == "image_url"
        assert parts[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")

    def test_data_url_prefix_is_accepted(self, make_client, jpeg_base64):
        client = make_client("ok")
        outcome = run(chat_with_image, client, ChatRequest(imageBase64=f"data:image/jpeg;base64,{jpeg_base64}"))
        assert outcome.ok

    @pytest.mark.parametrize("adapter, question", [
        (chat_with_image, DEFAULT_VISION_QUESTION),
        (analyze_plant_image, DEFAULT_ANALYSIS_QUESTION),
    ])
    def test_default_question_without_message(self, make_client, jpeg_base64, adapter, question):
        client = make_client("ok")
        run(adapter, client, ChatRequest(imageBase64=jpeg_base64))
        parts = client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert parts[0]["text"] == question

    def test_analysis_prompt_demands_json(self, make_client, make_image):
        client = make_client("{}")
        run(analyze_plant_image, client, ChatRequest(imageBase64=make_image("PNG"), mode="analyze"))
        kwargs = client.chat.completions.create.call_args.kwargs
        assert "JSON" in kwargs["messages"][0]["content"]
        assert kwargs["messages"][1]["content"][1]["image_url"]["url"].startswith("data:image/png;base64,")


class TestErrorClassification:
    @pytest.mark.parametrize("status, code, kind", [
        (429, None, ErrorKind.RATE_LIMITED),
        (402, None, ErrorKind.QUOTA_EXHAUSTED),
        (429, "insufficient_quota", ErrorKind.QUOTA_EXHAUSTED),
        (401, None, ErrorKind.UPSTREAM_ERROR),
        (500, None, ErrorKind.UPSTREAM_ERROR),
        (503, None, ErrorKind.UPSTREAM_ERROR),
    ])
    @pytest.mark.parametrize("adapter", ALL_ADAPTERS, ids=lambda a: a.__name__)
    def test_status_errors(self, make_client, make_status_error, jpeg_base64, adapter, status, code, kind):
        client = make_client(side_effect=make_status_error(status, code))
        outcome = run(adapter, client, ChatRequest(message="hi", imageBase64=jpeg_base64))

        assert not outcome.ok
        assert outcome.error.kind == kind
        assert outcome.error.status_code == status
        client.chat.completions.create.assert_awaited_once()

    def test_classify_status_error_directly(self, make_status_error):
        assert classify_status_error(make_status_error(402)).kind == ErrorKind.QUOTA_EXHAUSTED

    def test_timeout(self, make_client, gateway_request):
        client = make_client(side_effect=openai.APITimeoutError(request=gateway_request))
        outcome = run(chat_with_text, client, ChatRequest(message="hi"))
        assert outcome.error.kind == ErrorKind.UPSTREAM_ERROR
        assert outcome.error.detail == "timeout"

    def test_connection_error(self, make_client, gateway_request):
        client = make_client(side_effect=openai.APIConnectionError(request=gateway_request))
        outcome = run(chat_with_text, client, ChatRequest(message="hi"))
        assert outcome.error.kind == ErrorKind.UPSTREAM_ERROR
        assert outcome.error.detail == "connection"

    @pytest.mark.parametrize("adapter", [chat_with_image, analyze_plant_image], ids=lambda a: a.__name__)
    @pytest.mark.parametrize("payload", ["@@not-base64@@", "aGVsbG8gd29ybGQ="])
    def test_undecodable_image_never_calls_upstream(self, make_client, adapter, payload):
        client = make_client("unused")
        outcome = run(adapter, client, ChatRequest(imageBase64=payload))
        assert outcome.error.kind == ErrorKind.UNSUPPORTED_MEDIA
        client.chat.completions.create.assert_not_awaited()


class TestFirstChoiceText:
    def test_missing_choices(self):
        assert _first_choice_text(object()) is None

    def test_content_parts(self):
        response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(
            content=[{"type": "text", "text": "part one, "}, {"type": "text", "text": "part two"}]
        ))])
        assert _first_choice_text(response) == "part one, part two"

    def test_none_content(self):
        response = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=None))])
        assert _first_choice_text(response) is None


def test_sdk_client_is_single_shot():
    from app.dependencies import ai_client
    assert ai_client is not None
    assert ai_client.max_retries == 0
