from __future__ import annotations

import argparse
import dataclasses
import logging
from pathlib import Path

from .config import EngineConfig, default_config, load_config
from .exporter import export_csv
from .job import JobPaths, create_job_dirs, init_job_outputs, new_job_id, record_error, snapshot_input
from .ocr import ACCURACY_FAST, build_recognizer
from .page_provider import PageProvider
from .pipeline import CardExtractionPipeline, ExtractionResult, import_text
from .writer import JobWriter


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="photocard_engine")
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Extract card drafts from photos")
    run.add_argument("--input", required=True, help="Image file or folder of images")
    run.add_argument("--workspace", default="./workspace", help="Workspace root")
    run.add_argument("--config", default=None, help="Config path (JSON); built-in defaults when omitted")
    run.add_argument("--engine", default="easyocr", choices=["easyocr", "paddleocr"])
    run.add_argument("--lang", default=None, help="Comma-separated language hints, e.g. ja,en")
    run.add_argument("--fast", action="store_true", help="Fast recognition instead of accurate")

    imp = sub.add_parser("import-csv", help="Create card drafts from a 'term, definition' text file")
    imp.add_argument("--input", required=True, help="CSV or plain text file (UTF-8)")
    imp.add_argument("--workspace", default="./workspace", help="Workspace root")

    export = sub.add_parser("export", help="Export card drafts from a finished job")
    export.add_argument("--job-dir", required=True, help="Job directory (workspace/jobs/<job_id>)")
    export.add_argument("--out", required=True, help="Output file path")
    export.add_argument("--include-unselected", action="store_true", help="Also export deselected drafts")

    return p


def _run_config(args: argparse.Namespace) -> EngineConfig:
    cfg = load_config(args.config) if args.config else default_config()
    ocr = dict(cfg.ocr)
    if args.lang:
        ocr["languages"] = [s.strip() for s in args.lang.split(",") if s.strip()]
    if args.fast:
        ocr["accuracy"] = ACCURACY_FAST
    return dataclasses.replace(cfg, ocr=ocr)


def _report_page(page_id: str, result: ExtractionResult) -> None:
    if not result.cards:
        print(f"{page_id}: no_cards_found")
    else:
        print(f"{page_id}: strategy={result.strategy} cards={len(result.cards)}")


def _start_job(workspace: str, input_path: str) -> tuple[str, JobPaths]:
    job_id = new_job_id()
    paths = create_job_dirs(workspace, job_id)
    init_job_outputs(paths)
    snapshot_input(paths, input_path)
    return job_id, paths


def cmd_run(args: argparse.Namespace) -> int:
    cfg = _run_config(args)
    try:
        input_pages = list(PageProvider(input_path=args.input).iter_pages())
    except ValueError as e:
        print(f"run_failed: {e}")
        return 1
    job_id, paths = _start_job(args.workspace, args.input)

    pipeline = CardExtractionPipeline(build_recognizer(args.engine), cfg, paths=paths)
    writer = JobWriter(paths=paths)

    for page in input_pages:
        writer.start_page()
        try:
            result = pipeline.run(page.image_path, page_id=page.page_id)
        except Exception as e:
            record_error(paths, page_id=page.page_id, stage="page", message=str(e))
            continue
        writer.add_page(page_id=page.page_id, source_ref=page.source_ref, result=result)
        _report_page(page.page_id, result)

    writer.write_final(
        {
            "job_id": job_id,
            "input": {"type": "images", "path": args.input},
            "engine": args.engine,
        }
    )
    print(str(paths.job_dir))
    return 0


def cmd_import_csv(args: argparse.Namespace) -> int:
    src = Path(args.input)
    try:
        content = src.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        print(f"import_csv_failed: {e}")
        return 1

    job_id, paths = _start_job(args.workspace, args.input)
    writer = JobWriter(paths=paths)
    writer.start_page()
    result = import_text(content)
    writer.add_page(page_id="page_001", source_ref=src.name, result=result)
    _report_page("page_001", result)

    writer.write_final({"job_id": job_id, "input": {"type": "csv", "path": args.input}})
    print(str(paths.job_dir))
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    try:
        stats = export_csv(job_dir=args.job_dir, out_path=args.out, include_unselected=bool(args.include_unselected))
        print(
            f"exported={stats.cards_exported} skipped_unselected={stats.cards_skipped_unselected} "
            f"invalid={stats.cards_invalid} front_commas_replaced={stats.fronts_with_commas}"
        )
        return 0
    except Exception as e:
        print(f"export_failed: {e}")
        return 1


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "run":
        return cmd_run(args)

    if args.command == "import-csv":
        return cmd_import_csv(args)

    if args.command == "export":
        return cmd_export(args)

    raise SystemExit(2)


if __name__ == "__main__":
    raise SystemExit(main())
