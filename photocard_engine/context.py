from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from .types import CardDraft, PositionedLine
from .utils import split_by_delimiters

# Priority order, not position in the line.
CONTEXT_DELIMITERS: tuple[str, ...] = ("：", ":", "→", "⇒", " - ", "＝", "=", "…", "─", "−")


@dataclass
class ContextSynthesizer:
    """Turn highlighted keyword lines into cards.

    A keyword either carries its definition on the same line ("用語：定義") or
    takes it from the nearby plain lines, first below it, then above it. The
    scan never crosses another highlighted line.
    """

    context_cfg: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._max_keyword_length = int(self.context_cfg.get("max_keyword_length", 50))
        self._window = int(self.context_cfg.get("window", 3))

    def _scan_forward(self, lines: Sequence[PositionedLine], index: int) -> list[str]:
        found: list[str] = []
        for line in lines[index + 1 : index + 1 + self._window]:
            if line.highlighted:
                break
            text = line.text.strip()
            if text:
                found.append(text)
        return found

    def _scan_backward(self, lines: Sequence[PositionedLine], index: int) -> list[str]:
        found: list[str] = []
        for j in range(index - 1, max(-1, index - 1 - self._window), -1):
            line = lines[j]
            if line.highlighted:
                break
            text = line.text.strip()
            if text:
                found.insert(0, text)
        return found

    def card_for(self, lines: Sequence[PositionedLine], index: int) -> CardDraft | None:
        keyword = lines[index].text.strip()
        if not keyword or len(keyword) > self._max_keyword_length:
            return None

        # Only the first delimiter present in the line is tried.
        split = split_by_delimiters(keyword, CONTEXT_DELIMITERS, fall_through=False)
        if split is not None:
            front, back = split
            if back != front:
                return CardDraft(front=front, back=back)

        context = self._scan_forward(lines, index) or self._scan_backward(lines, index)
        back = " ".join(context)
        if not back:
            return None
        return CardDraft(front=keyword, back=back)

    def synthesize(self, lines: Sequence[PositionedLine]) -> list[CardDraft]:
        cards: list[CardDraft] = []
        for i, line in enumerate(lines):
            if not line.highlighted:
                continue
            card = self.card_for(lines, i)
            if card is not None:
                cards.append(card)
        return cards
