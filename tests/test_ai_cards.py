"""Image-understanding card service contract tests (transport is faked).

Tests cover:
1. Response parsing: plain, fenced and prose-wrapped arrays, dropped entries
2. Error taxonomy and user-facing messages
3. Request body, headers and image downscaling
"""
from __future__ import annotations

import base64
import io
import json

import pytest
from PIL import Image

from photocard_engine.ai_cards import (
    AICardClient,
    MissingCredentialError,
    NoResponseError,
    ResponseFormatError,
    ServiceError,
    encode_image,
    extract_json_array,
    parse_response,
)
from photocard_engine.types import CardDraft


def reply(text: str) -> bytes:
    return json.dumps({"content": [{"type": "text", "text": text}]}, ensure_ascii=False).encode("utf-8")


# ═══════════════════════════════════════════════════════════════════════════════
# RESPONSE PARSING
# ═══════════════════════════════════════════════════════════════════════════════

class TestParseResponse:
    def test_plain_array(self):
        cards = parse_response(reply('[{"front":"光合成","back":"光から糖を作る"}]'))
        assert cards == [CardDraft(front="光合成", back="光から糖を作る")]

    def test_fenced_array(self):
        text = 'Here you go:\n```json\n[{"front":"DNA","back":"遺伝情報"}]\n```'
        assert parse_response(reply(text)) == [CardDraft(front="DNA", back="遺伝情報")]

    def test_array_inside_prose(self):
        text = 'カードです [{"front":"a","back":"b"},{"front":"c","back":"d"}] 以上'
        assert [c.front for c in parse_response(reply(text))] == ["a", "c"]

    def test_incomplete_entries_are_dropped(self):
        text = json.dumps(
            [
                {"front": "ok", "back": "fine"},
                {"front": "", "back": "no front"},
                {"front": "no back"},
                {"front": 1, "back": "number"},
                "not an object",
            ]
        )
        assert parse_response(reply(text)) == [CardDraft(front="ok", back="fine")]

    def test_skips_non_text_blocks(self):
        payload = json.dumps(
            {"content": [{"type": "thinking", "thinking": "..."}, {"type": "text", "text": '[{"front":"x","back":"y"}]'}]}
        )
        assert parse_response(payload) == [CardDraft(front="x", back="y")]

    def test_empty_array(self):
        assert parse_response(reply("[]")) == []


class TestErrors:
    def test_no_payload(self):
        with pytest.raises(NoResponseError) as exc:
            parse_response(None)
        assert exc.value.user_message == "The server did not respond."

    def test_service_error_message(self):
        payload = json.dumps({"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}})
        with pytest.raises(ServiceError) as exc:
            parse_response(payload)
        assert exc.value.user_message == "API error: Overloaded"

    def test_payload_not_json(self):
        with pytest.raises(ResponseFormatError):
            parse_response(b"<html>bad gateway</html>")

    def test_no_text_block(self):
        with pytest.raises(ResponseFormatError):
            parse_response(json.dumps({"content": []}))

    def test_text_is_not_json(self):
        with pytest.raises(ResponseFormatError):
            parse_response(reply("Sorry, I cannot read this page."))

    def test_text_is_not_an_array(self):
        with pytest.raises(ResponseFormatError):
            parse_response(reply('{"front":"a","back":"b"}'))


class TestExtractJsonArray:
    def test_fence_without_language(self):
        assert extract_json_array("```\n[1, 2]\n```") == "[1, 2]"

    def test_no_brackets_returns_trimmed_text(self):
        assert extract_json_array("  nothing here ") == "nothing here"


# ═══════════════════════════════════════════════════════════════════════════════
# CLIENT
# ═══════════════════════════════════════════════════════════════════════════════

class RecordingTransport:
    def __init__(self, payload: bytes | None):
        self.payload = payload
        self.calls: list[tuple[dict, dict]] = []

    def __call__(self, body, headers):
        self.calls.append((body, headers))
        return self.payload


class TestClient:
    @pytest.mark.parametrize("key", [None, "", "   "])
    def test_missing_credential(self, key):
        transport = RecordingTransport(reply("[]"))
        client = AICardClient(api_key=key, send=transport)
        with pytest.raises(MissingCredentialError):
            client.generate_cards(Image.new("RGB", (10, 10)))
        assert transport.calls == []

    def test_request_and_headers(self):
        transport = RecordingTransport(reply('[{"front":"用語","back":"意味"}]'))
        client = AICardClient(api_key=" sk-test ", send=transport)

        cards = client.generate_cards(Image.new("RGB", (3000, 1500), color=(240, 240, 240)))

        assert cards == [CardDraft(front="用語", back="意味")]
        body, headers = transport.calls[0]
        assert headers == {
            "content-type": "application/json",
            "x-api-key": "sk-test",
            "anthropic-version": "2023-06-01",
        }
        assert body["model"] == "claude-haiku-4-5-20251001"
        assert body["max_tokens"] == 2048

        image_part, text_part = body["messages"][0]["content"]
        assert image_part["source"]["media_type"] == "image/jpeg"
        assert text_part["type"] == "text"
        sent = Image.open(io.BytesIO(base64.b64decode(image_part["source"]["data"])))
        assert max(sent.size) <= 1200

    def test_transport_returns_nothing(self):
        client = AICardClient(api_key="k", send=RecordingTransport(None))
        with pytest.raises(NoResponseError):
            client.generate_cards(Image.new("RGB", (10, 10)))


class TestEncodeImage:
    def test_downscales_long_side(self):
        data = base64.b64decode(encode_image(Image.new("RGB", (2400, 1200))))
        assert Image.open(io.BytesIO(data)).size == (1200, 600)

    def test_small_image_kept(self):
        data = base64.b64decode(encode_image(Image.new("RGBA", (640, 480))))
        img = Image.open(io.BytesIO(data))
        assert img.format == "JPEG"
        assert img.size == (640, 480)
