from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class NormalizedRect:
    """Box in the unit square, origin at the bottom-left of the image."""

    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class OCRLine:
    text: str
    box: NormalizedRect


@dataclass(frozen=True)
class PositionedLine:
    text: str
    box: NormalizedRect
    highlighted: bool = False


@dataclass
class CardDraft:
    front: str
    back: str
    selected: bool = True  # toggled by the reviewer only

    def __post_init__(self) -> None:
        if not self.front.strip() or not self.back.strip():
            raise ValueError(f"card draft needs non-empty front and back: {self.front!r} / {self.back!r}")

    def to_dict(self) -> dict[str, Any]:
        return {"front": self.front, "back": self.back, "selected": self.selected}


@dataclass(frozen=True)
class ColorSample:
    dark_count: int
    colored_count: int

    @property
    def ratio(self) -> float:
        if self.dark_count == 0:
            return 0.0
        return self.colored_count / self.dark_count


@dataclass(frozen=True)
class Page:
    page_index: int  # 0-based
    page_id: str  # e.g. page_003
    source_ref: str  # e.g. photos/IMG_0012.jpg
    image_path: str  # absolute or cwd-relative path to the source image
