from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

# "1. ", "２）", "10、" ...
_ENUMERATION_PREFIX = re.compile(r"^[0-9０-９]+[.．)）、\s]+")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def ensure_dir(path: str | Path) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def clamp_int(v: int, lo: int, hi: int) -> int:
    return int(max(lo, min(hi, int(v))))


def write_json(path: str | Path, data: Any) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def append_jsonl(path: str | Path, obj: dict[str, Any]) -> None:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(json.dumps(obj, ensure_ascii=False) + "\n")


def load_json(path: str | Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def split_by_delimiters(
    text: str,
    delimiters: Sequence[str],
    *,
    max_front_length: int | None = None,
    fall_through: bool = True,
) -> tuple[str, str] | None:
    """Split ``text`` into (front, back) on the first usable delimiter.

    Delimiters are tried in list order, not by position in the text. The text is
    split on every occurrence of the delimiter; the first part becomes the front
    and the rest are joined back with the same delimiter. A delimiter whose
    split leaves an empty side (or a front longer than ``max_front_length``)
    is passed over in favour of the next one, unless ``fall_through`` is off,
    in which case only the first delimiter present in the text is considered.
    """
    for delimiter in delimiters:
        parts = text.split(delimiter)
        if len(parts) < 2:
            continue
        front = parts[0].strip()
        back = delimiter.join(parts[1:]).strip()
        if front and back and (max_front_length is None or len(front) <= max_front_length):
            return front, back
        if not fall_through:
            return None
    return None


def strip_enumeration(text: str) -> str:
    """Drop a leading list number such as "1. " or "３）" and trim."""
    return _ENUMERATION_PREFIX.sub("", text.strip(), count=1).strip()


def non_empty_lines(text_lines: Sequence[str]) -> list[str]:
    out: list[str] = []
    for line in text_lines:
        s = line.strip()
        if s:
            out.append(s)
    return out
