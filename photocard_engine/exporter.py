from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .job import job_paths, record_error
from .utils import load_json


@dataclass
class ExportStats:
    cards_seen: int = 0
    cards_exported: int = 0
    cards_skipped_unselected: int = 0
    cards_invalid: int = 0
    fronts_with_commas: int = 0


def export_csv(
    *,
    job_dir: str | Path,
    out_path: str | Path,
    include_unselected: bool = False,
) -> ExportStats:
    """Export the job's card drafts as ``front,back`` rows.

    Rules:
    - By default exports only drafts with selected == True
    - Drafts with an empty side are skipped and reported to errors.jsonl
    - No header row, so the file can be fed straight back to ``import-csv``
    - The importer splits on the first comma, so a comma in a front is written
      as "，"; each such draft is counted and reported to errors.jsonl
    """
    paths = job_paths(job_dir)
    stats = ExportStats()

    result = load_json(paths.result_json)
    pages = result.get("pages", []) if isinstance(result, dict) else []

    rows: list[tuple[str, str]] = []
    for page in pages:
        if not isinstance(page, dict):
            continue
        page_id = str(page.get("page_id") or "")
        for c in page.get("cards", []) or []:
            stats.cards_seen += 1
            if not _is_valid_card(c):
                stats.cards_invalid += 1
                record_error(paths, page_id=page_id, stage="export", message=f"invalid_card: {c!r}")
                continue
            if not include_unselected and not c.get("selected", True):
                stats.cards_skipped_unselected += 1
                continue
            front = _one_line(c["front"])
            if "," in front:
                stats.fronts_with_commas += 1
                record_error(paths, page_id=page_id, stage="export", message=f"front_comma_replaced: {front!r}")
                front = front.replace(",", "，")
            rows.append((front, _one_line(c["back"])))

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8", newline="\n") as f:
        for front, back in rows:
            # No CSV quoting: the importer keeps everything after the first comma verbatim.
            f.write(f"{front},{back}\n")
            stats.cards_exported += 1

    return stats


def _one_line(text: str) -> str:
    return " ".join(text.split())


def _is_valid_card(c: Any) -> bool:
    if not isinstance(c, dict):
        return False
    front, back = c.get("front"), c.get("back")
    return isinstance(front, str) and isinstance(back, str) and bool(front.strip()) and bool(back.strip())
