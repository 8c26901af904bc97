from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .job import JobPaths
from .pipeline import ExtractionResult
from .utils import utc_now_iso, write_json


def _new_metrics() -> dict[str, Any]:
    return {
        "created_at": utc_now_iso(),
        "pages_total": 0,
        "pages_processed": 0,
        "pages_without_cards": 0,
        "lines_total": 0,
        "lines_highlighted": 0,
        "cards_total": 0,
    }


@dataclass
class JobWriter:
    """Collect per-page extraction results and write the job's final outputs.

    result.json: ``{"job": {...}, "pages": [{page_id, source_ref, strategy, raw_text, cards}]}``
    metrics.json: page/line/card counters summed over the job.
    """

    paths: JobPaths
    pages: list[dict[str, Any]] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=_new_metrics)

    def start_page(self) -> None:
        self.metrics["pages_total"] += 1

    def add_page(self, *, page_id: str, source_ref: str, result: ExtractionResult) -> None:
        self.pages.append({"page_id": page_id, "source_ref": source_ref, **result.to_dict()})

        m = result.metrics
        self.metrics["pages_processed"] += 1
        for key in ("lines_total", "lines_highlighted", "cards_total"):
            self.metrics[key] += m[key]
        if not result.cards:
            self.metrics["pages_without_cards"] += 1

    def write_final(self, job_meta: dict[str, Any]) -> None:
        now = utc_now_iso()
        done = {"finished": True, "completed_at": now}

        job_out = {**job_meta, "created_at": self.metrics["created_at"], **done}
        write_json(self.paths.result_json, {"job": job_out, "pages": self.pages})
        write_json(self.paths.metrics_json, {**self.metrics, **done})
