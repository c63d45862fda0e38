"""
personnel-ingest

Builds the personnel document from the four source workbooks in --raw-dir:

- on_izin.xlsx        active roster, one sheet per category + SAYILAR control sheet
- ayrilanlar.xlsx     departures ("Table 1")
- izin_belgeleri.xlsx leave documents
- takip.xlsx          work-permit tracking

Outputs:
- <output>   the JSON document (written only when validation passes)
- <report>   per-category actual vs expected counts (always written)
- logs/personnel_etl.log

Exit status: 0 valid, 1 validation failed, 2 fatal input error.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .config import PipelineSettings
from .exceptions import IngestionError, ValidationError
from .models import Document
from .pipeline import IngestionResult, run_ingestion
from .store import read_document, write_json_atomic
from .taxonomy import Category
from .validator import CountMismatch, ValidationResult


EXIT_OK = 0
EXIT_INVALID = 1
EXIT_FATAL = 2

REPORT_COLUMNS = ["category", "actual", "expected", "diff", "status"]


# -------------------------
# Logging
# -------------------------

def setup_logging(debug: bool, log_dir: Path = Path("logs")) -> logging.Logger:
    logger = logging.getLogger("personnel_etl")
    logger.setLevel(logging.DEBUG)

    if logger.handlers:
        return logger

    os.makedirs(log_dir, exist_ok=True)
    log_path = Path(log_dir) / "personnel_etl.log"

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setLevel(logging.DEBUG if debug else logging.INFO)
    fh.setFormatter(fmt)

    sh = logging.StreamHandler(sys.stdout)
    sh.setLevel(logging.DEBUG if debug else logging.INFO)
    sh.setFormatter(fmt)

    logger.addHandler(fh)
    logger.addHandler(sh)
    return logger


# -------------------------
# Diagnostic report
# -------------------------

def build_report(validation: ValidationResult, total_label: str, warnings: Sequence[CountMismatch] = ()) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = []
    for category in Category:
        actual = validation.actual.get(category, 0)
        expected = validation.expected.get(category, 0)
        rows.append(
            {
                "category": category.value,
                "actual": actual,
                "expected": expected,
                "diff": actual - expected,
                "status": "OK" if actual == expected else "FAIL",
            }
        )

    rows.append(
        {
            "category": total_label,
            "actual": validation.actual_total,
            "expected": validation.expected_total,
            "diff": validation.actual_total - validation.expected_total,
            "status": "OK" if validation.actual_total == validation.expected_total else "FAIL",
        }
    )

    for warning in warnings:
        rows.append({**warning.to_dict(), "status": "WARN"})

    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def write_report(
    validation: ValidationResult,
    total_label: str,
    report_path: Path,
    logger: logging.Logger,
    warnings: Sequence[CountMismatch] = (),
) -> None:
    report_path = Path(report_path)
    report_path.parent.mkdir(parents=True, exist_ok=True)
    df = build_report(validation, total_label, warnings)
    df.to_csv(report_path, index=False, encoding="utf-8-sig")
    logger.info(f"Wrote ingestion report: {report_path.resolve()} rows={len(df)}")


def log_summary(result: IngestionResult, logger: logging.Logger) -> None:
    stats = result.document.meta.get("stats", {})
    logger.info("=" * 50)
    logger.info("INGESTION SUMMARY")
    logger.info("=" * 50)
    logger.info(f"Active roster:        {stats.get('activeRosterCount', 0)}")
    logger.info(f"Pending:              {stats.get('pendingCount', 0)}")
    logger.info(f"Departed:             {stats.get('departedCount', 0)}")
    logger.info(f"Leaves:               {stats.get('leavesCount', 0)} (unlinked {stats.get('unlinkedLeavesCount', 0)})")
    logger.info(f"Tracking:             {stats.get('trackingCount', 0)}")
    logger.info(f"Conflicts:            {stats.get('conflictCount', 0)}")
    logger.info(f"Duplicate candidates: {stats.get('duplicateCandidatesCount', 0)}")
    logger.info(f"Unmapped tags:        {stats.get('unmappedTagsCount', 0)}")
    logger.info(f"Needs review:         {stats.get('needsReviewCount', 0)}")
    logger.info(f"Fuzzy matches:        {len(result.fuzzy_matches)}")
    logger.info("=" * 50)
    logger.info(f"VALIDATION: {'PASSED' if result.validation.is_valid else 'FAILED'}")


# -------------------------
# Main
# -------------------------

def build_parser() -> argparse.ArgumentParser:
    defaults = PipelineSettings()
    parser = argparse.ArgumentParser(description="Ingest personnel workbooks into the JSON personnel document.")
    parser.add_argument("--merge", action="store_true", help="Carry admin settings, tag map and audit log over from the existing output document")
    parser.add_argument("--raw-dir", default=str(defaults.raw_dir), help=f"Folder containing the source workbooks (default: {defaults.raw_dir})")
    parser.add_argument("--output", default=str(defaults.output_path), help=f"Output JSON document (default: {defaults.output_path})")
    parser.add_argument("--report", default=str(defaults.report_path), help=f"Output validation report CSV (default: {defaults.report_path})")
    parser.add_argument("--log-dir", default=str(defaults.log_dir), help=f"Log folder (default: {defaults.log_dir})")
    parser.add_argument("--fuzzy-threshold", type=float, default=defaults.fuzzy_threshold, help="Minimum similarity (exclusive) for fuzzy linking")
    parser.add_argument("--near-duplicate-threshold", type=float, default=defaults.near_duplicate_threshold, help="Minimum similarity (exclusive) for near-duplicate candidates")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging")
    return parser


def load_prior(output_path: Path, logger: logging.Logger) -> Optional[Document]:
    if not output_path.exists():
        logger.info(f"Merge requested but {output_path.resolve()} does not exist; starting fresh")
        return None
    try:
        prior = read_document(output_path)
    except (OSError, ValueError, ValidationError) as e:
        raise IngestionError(f"Cannot merge with {output_path}: {e}") from e
    logger.info(f"Merging with existing document: {output_path.resolve()} ({len(prior.people)} people)")
    return prior


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    settings = PipelineSettings(
        raw_dir=Path(args.raw_dir),
        output_path=Path(args.output),
        report_path=Path(args.report),
        log_dir=Path(args.log_dir),
        fuzzy_threshold=args.fuzzy_threshold,
        near_duplicate_threshold=args.near_duplicate_threshold,
    )
    logger = setup_logging(args.debug, settings.log_dir)

    if not settings.raw_dir.exists():
        logger.error(f"Input folder not found: {settings.raw_dir.resolve()}")
        sys.exit(EXIT_FATAL)

    try:
        prior = load_prior(settings.output_path, logger) if args.merge else None
        result = run_ingestion(settings, prior, logger)
    except IngestionError as e:
        logger.error(f"Ingestion failed: {e}")
        sys.exit(EXIT_FATAL)

    write_report(result.validation, settings.control_total_label, settings.report_path, logger, result.warnings)
    log_summary(result, logger)

    if not result.validation.is_valid:
        logger.error(f"Validation failed with {len(result.validation.errors)} error(s); {settings.output_path} not written")
        sys.exit(EXIT_INVALID)

    write_json_atomic(settings.output_path, result.document.to_dict())
    logger.info(f"Wrote document: {settings.output_path.resolve()}")
    sys.exit(EXIT_OK)


if __name__ == "__main__":
    main()
