from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from typing import Any, Sequence

from .color import ColorClassifier
from .config import EngineConfig, default_config
from .context import ContextSynthesizer
from .fallback import PatternExtractor, parse_csv_cards
from .job import JobPaths
from .ocr import ACCURACY_ACCURATE, DEFAULT_LANGUAGES, BitmapSource, Recognizer, acquire_lines
from .types import CardDraft, PositionedLine

logger = logging.getLogger(__name__)

STRATEGY_HIGHLIGHT = "highlight_context"
STRATEGY_CSV = "csv"
STRATEGY_NONE = "none"


@dataclass
class ExtractionResult:
    raw_text: str
    cards: list[CardDraft]
    strategy: str
    lines: list[PositionedLine] = field(default_factory=list)

    @property
    def metrics(self) -> dict[str, Any]:
        return {
            "lines_total": len(self.lines),
            "lines_highlighted": sum(1 for l in self.lines if l.highlighted),
            "cards_total": len(self.cards),
            "strategy": self.strategy,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy,
            "raw_text": self.raw_text,
            "cards": [c.to_dict() for c in self.cards],
        }


def extract_cards(lines: Sequence[PositionedLine], cfg: EngineConfig | None = None) -> tuple[str, list[CardDraft]]:
    """Pick exactly one strategy for the page and run it.

    Any highlighted line means the page is read through its highlights only;
    otherwise the pattern fallbacks apply.
    """
    cfg = cfg or default_config()
    if any(line.highlighted for line in lines):
        cards = ContextSynthesizer(cfg.context).synthesize(lines)
        return (STRATEGY_HIGHLIGHT if cards else STRATEGY_NONE), cards
    return PatternExtractor(cfg.fallback).extract([line.text for line in lines])


def import_text(content: str) -> ExtractionResult:
    """CSV/plain-text entry point: "term, definition" per line."""
    cards = parse_csv_cards(content)
    return ExtractionResult(raw_text=content, cards=cards, strategy=STRATEGY_CSV if cards else STRATEGY_NONE)


class CardExtractionPipeline:
    def __init__(self, recognizer: Recognizer, cfg: EngineConfig | None = None, paths: JobPaths | None = None):
        self.recognizer = recognizer
        self.cfg = cfg or default_config()
        self.paths = paths
        self.classifier = ColorClassifier(self.cfg.color)

    def run(self, source: BitmapSource, page_id: str = "page_001") -> ExtractionResult:
        ocr_cfg = self.cfg.ocr
        image, ocr_lines = acquire_lines(
            source,
            self.recognizer,
            languages=tuple(ocr_cfg.get("languages", DEFAULT_LANGUAGES)),
            accuracy=str(ocr_cfg.get("accuracy", ACCURACY_ACCURATE)),
            language_correction=bool(ocr_cfg.get("language_correction", True)),
            paths=self.paths,
            page_id=page_id,
        )
        lines = self.classifier.classify_lines(image, ocr_lines)
        strategy, cards = extract_cards(lines, self.cfg)

        result = ExtractionResult(
            raw_text="\n".join(line.text for line in lines),
            cards=cards,
            strategy=strategy,
            lines=lines,
        )
        logger.debug("%s: %s", page_id, result.metrics)
        return result

    def submit(self, executor: Executor, source: BitmapSource, page_id: str = "page_001") -> Future[ExtractionResult]:
        """Run on ``executor``; the future resolves once and is never retried or cancelled."""
        return executor.submit(self.run, source, page_id)
