"""Contract of the image-understanding card service.

The service receives a compressed photo and answers with a JSON array of
``{"front": ..., "back": ...}`` objects, bypassing OCR entirely. Transport is
supplied by the caller; this module builds the request and interprets the
reply.
"""

from __future__ import annotations

import base64
import io
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable

from PIL import Image

from .types import CardDraft

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-haiku-4-5-20251001"
API_VERSION = "2023-06-01"
MAX_DIMENSION = 1200
JPEG_QUALITY = 70

PROMPT = """この画像は教科書や参考書のページです。
画像の中から重要な用語・キーワード（特に赤字、太字、色付きの文字）を見つけ、
それぞれの用語について、画像内の文脈からその意味や定義を読み取ってください。

以下のJSON形式で出力してください（他のテキストは一切不要です）：
[{"front":"用語","back":"意味・定義"},{"front":"用語2","back":"意味・定義2"}]

ルール：
- frontには用語・キーワードを入れる
- backにはその用語の意味・定義・説明を入れる（画像内の文脈から読み取る）
- 重要でない用語は含めない
- JSON配列のみを出力し、他の文章は含めない"""

_FENCED_ARRAY = re.compile(r"```(?:json)?\s*\n?(\[.*?\])\s*\n?```", re.DOTALL)

Transport = Callable[[dict[str, Any], dict[str, str]], "bytes | None"]


class AICardError(Exception):
    user_message = "Card generation failed."


class MissingCredentialError(AICardError):
    user_message = "No API key is configured."


class NoResponseError(AICardError):
    user_message = "The server did not respond."


class ResponseFormatError(AICardError):
    user_message = "The AI response could not be read."


class ServiceError(AICardError):
    def __init__(self, message: str):
        super().__init__(message)
        self.user_message = f"API error: {message}"


def has_credential(api_key: str | None) -> bool:
    return bool((api_key or "").strip())


def encode_image(image: Image.Image, *, max_dimension: int = MAX_DIMENSION, quality: int = JPEG_QUALITY) -> str:
    """Downscale so the longer side is at most ``max_dimension`` and return base64 JPEG."""
    w, h = image.size
    scale = min(1.0, max_dimension / float(max(w, h, 1)))
    if scale < 1.0:
        image = image.resize((max(1, int(w * scale)), max(1, int(h * scale))), Image.LANCZOS)

    buf = io.BytesIO()
    image.convert("RGB").save(buf, format="JPEG", quality=quality)
    return base64.b64encode(buf.getvalue()).decode("ascii")


def build_request(image_b64: str, *, model: str = DEFAULT_MODEL, max_tokens: int = 2048) -> dict[str, Any]:
    return {
        "model": model,
        "max_tokens": max_tokens,
        "messages": [
            {
                "role": "user",
                "content": [
                    {
                        "type": "image",
                        "source": {"type": "base64", "media_type": "image/jpeg", "data": image_b64},
                    },
                    {"type": "text", "text": PROMPT},
                ],
            }
        ],
    }


def build_headers(api_key: str) -> dict[str, str]:
    return {
        "content-type": "application/json",
        "x-api-key": api_key,
        "anthropic-version": API_VERSION,
    }


def extract_json_array(text: str) -> str:
    """Pull the JSON array out of a model reply that may wrap it in prose or a code fence."""
    trimmed = text.strip()

    m = _FENCED_ARRAY.search(trimmed)
    if m:
        return m.group(1)

    start = trimmed.find("[")
    end = trimmed.rfind("]")
    if start != -1 and end > start:
        return trimmed[start : end + 1]
    return trimmed


def _load_json(payload: bytes | str) -> Any:
    try:
        return json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ResponseFormatError(str(e)) from e


def parse_response(payload: bytes | str | None) -> list[CardDraft]:
    """Interpret a Messages API reply body as card drafts.

    Entries missing a non-empty front or back are dropped.
    """
    if payload is None:
        raise NoResponseError("empty payload")

    data = _load_json(payload)
    content = data.get("content") if isinstance(data, dict) else None
    text_block = None
    if isinstance(content, list):
        text_block = next((b for b in content if isinstance(b, dict) and b.get("type") == "text"), None)

    if text_block is None or not isinstance(text_block.get("text"), str):
        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            raise ServiceError(error["message"])
        raise ResponseFormatError("no text block in response")

    entries = _load_json(extract_json_array(text_block["text"]))
    if not isinstance(entries, list):
        raise ResponseFormatError("response is not a JSON array")

    cards: list[CardDraft] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        front, back = entry.get("front"), entry.get("back")
        if isinstance(front, str) and isinstance(back, str) and front.strip() and back.strip():
            cards.append(CardDraft(front=front, back=back))
    logger.debug("service returned %d usable cards of %d", len(cards), len(entries))
    return cards


@dataclass
class AICardClient:
    api_key: str | None
    send: Transport
    model: str = DEFAULT_MODEL

    def generate_cards(self, image: Image.Image) -> list[CardDraft]:
        if not has_credential(self.api_key):
            raise MissingCredentialError("api key not set")

        body = build_request(encode_image(image), model=self.model)
        payload = self.send(body, build_headers(str(self.api_key).strip()))
        return parse_response(payload)
