import base64
import json

import httpx
import pytest

from tryon_studio.core.gemini import GeminiClient, extract_image_bytes
from tryon_studio.core.media import InlineData
from tryon_studio.errors import GenerationError

from .conftest import GENERATED_BYTES, gemini_image_response


def test_extract_returns_first_inline_image():
    assert extract_image_bytes(gemini_image_response()) == GENERATED_BYTES


def test_extract_accepts_snake_case_parts():
    data = base64.b64encode(b"snake").decode("utf-8")
    response = {"candidates": [{"content": {"parts": [{"inline_data": {"data": data}}]}}]}
    assert extract_image_bytes(response) == b"snake"


def test_no_inline_part_in_any_candidate_is_fatal():
    response = {
        "candidates": [
            {"content": {"parts": [{"text": "I cannot do that"}]}},
            {"content": {"parts": [{"text": "still no"}]}},
        ]
    }
    with pytest.raises(GenerationError, match="No image generated by Gemini API"):
        extract_image_bytes(response)


def test_missing_candidates_is_fatal():
    with pytest.raises(GenerationError, match="No image generated by Gemini API"):
        extract_image_bytes({})


def test_empty_inline_payload_is_fatal():
    response = {"candidates": [{"content": {"parts": [{"inlineData": {"data": ""}}]}}]}
    with pytest.raises(GenerationError, match="No image data found"):
        extract_image_bytes(response)


async def test_generate_image_sends_prompt_then_images(upstream):
    async with upstream.client() as http:
        gemini = GeminiClient(api_key="gemini-key", http=http)
        result = await gemini.generate_image(
            "dress them",
            [InlineData("AAA", "image/png"), InlineData("BBB", "image/jpeg")],
        )

    assert result == GENERATED_BYTES
    sent = upstream.requests[-1]
    assert sent.url.path.endswith("/models/gemini-2.5-flash-image-preview:generateContent")
    assert sent.headers["x-goog-api-key"] == "gemini-key"
    parts = json.loads(sent.content)["contents"][0]["parts"]
    assert parts[0] == {"text": "dress them"}
    assert [p["inline_data"]["data"] for p in parts[1:]] == ["AAA", "BBB"]


async def test_generate_image_http_error_is_wrapped():
    transport = httpx.MockTransport(lambda request: httpx.Response(503, text="overloaded"))
    async with httpx.AsyncClient(transport=transport) as http:
        gemini = GeminiClient(api_key="k", http=http)
        with pytest.raises(GenerationError, match="503"):
            await gemini.generate_image("p", [])


async def test_start_video_generation_posts_instance(upstream):
    async with upstream.client() as http:
        gemini = GeminiClient(api_key="gemini-key", http=http)
        operation = await gemini.start_video_generation(
            "animate", InlineData("AAA", "image/png")
        )

    assert operation["name"] == "models/veo/operations/op-1"
    sent = upstream.requests[-1]
    assert sent.url.path.endswith("/models/veo-3.1-generate-preview:predictLongRunning")
    instance = json.loads(sent.content)["instances"][0]
    assert instance == {
        "prompt": "animate",
        "image": {"bytesBase64Encoded": "AAA", "mimeType": "image/png"},
    }


async def test_start_video_generation_requires_operation_name():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))
    async with httpx.AsyncClient(transport=transport) as http:
        gemini = GeminiClient(api_key="k", http=http)
        with pytest.raises(GenerationError, match="no operation name"):
            await gemini.start_video_generation("p", InlineData("AAA", "image/png"))
