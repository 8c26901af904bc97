"""Pattern-based card extraction for text without any highlight signal.

Strategy A splits each line on a term/definition delimiter. Strategy B, used
only when A finds nothing, treats consecutive lines as (term, definition)
pairs. The CSV importer reuses the delimiter split with a single comma.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from .types import CardDraft
from .utils import non_empty_lines, split_by_delimiters, strip_enumeration

# Shorter than the highlighted-line list: no "…", "─" or "−".
FALLBACK_DELIMITERS: tuple[str, ...] = ("：", ":", "→", "⇒", " - ", "＝", "=")
CSV_DELIMITERS: tuple[str, ...] = (",",)


def pair_lines(lines: Sequence[str]) -> list[CardDraft]:
    """Pair lines two by two; an odd line at the end is dropped."""
    cards: list[CardDraft] = []
    for i in range(0, len(lines) - 1, 2):
        front = strip_enumeration(lines[i])
        back = strip_enumeration(lines[i + 1])
        if front and back:
            cards.append(CardDraft(front=front, back=back))
    return cards


def parse_csv_cards(content: str) -> list[CardDraft]:
    """Parse "term, definition" lines, splitting on the first comma only."""
    cards: list[CardDraft] = []
    for line in non_empty_lines(content.splitlines()):
        split = split_by_delimiters(line, CSV_DELIMITERS)
        if split is not None:
            cards.append(CardDraft(front=split[0], back=split[1]))
    return cards


@dataclass
class PatternExtractor:
    fallback_cfg: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._max_front_length = int(self.fallback_cfg.get("max_front_length", 100))

    def split_lines(self, lines: Sequence[str]) -> list[CardDraft]:
        cards: list[CardDraft] = []
        for line in lines:
            split = split_by_delimiters(line, FALLBACK_DELIMITERS, max_front_length=self._max_front_length)
            if split is not None:
                cards.append(CardDraft(front=split[0], back=split[1]))
        return cards

    def extract(self, texts: Sequence[str]) -> tuple[str, list[CardDraft]]:
        """Return (strategy, cards) where strategy is delimiter, line_pairing or none."""
        lines = non_empty_lines(texts)

        cards = self.split_lines(lines)
        if cards:
            return "delimiter", cards

        if len(lines) >= 2:
            cards = pair_lines(lines)
            if cards:
                return "line_pairing", cards

        return "none", []
