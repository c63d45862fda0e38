"""
End-to-end ingestion run.

raw sheet rows -> normalized records -> deduplicated canonical people
-> linked leave/tracking records -> validated, aggregated document

Nothing is written here; the caller decides whether the document is published.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .aggregator import assemble_document, assign_person_ids, assign_record_ids
from .config import PipelineSettings
from .conflicts import detect_conflicts
from .dedup import deduplicate_people, find_near_duplicates
from .linker import FuzzyMatch, create_pending_people, link_records, link_to_pending
from .models import Document, PersonStatus, utc_now_iso
from .parsers import parse_category_sheets, parse_control_sheet, parse_departures, parse_leaves, parse_tracking
from .taxonomy import Category
from .validator import CountMismatch, ValidationResult, check_active_categories, validate_counts
from .workbook import Workbook, Worksheet, read_workbook


LOG = logging.getLogger("personnel_etl")


@dataclass
class IngestionResult:
    document: Document
    validation: ValidationResult
    category_counts: Dict[Category, int]
    fuzzy_matches: List[FuzzyMatch] = field(default_factory=list)
    warnings: List[CountMismatch] = field(default_factory=list)


def _named_or_first(book: Workbook, name: str, logger: logging.Logger) -> Worksheet:
    ws = book.find_sheet(name)
    if ws is None:
        fallback = book.first_sheet()
        logger.warning(f"{book.file}: sheet '{name}' not found, using '{fallback.name}'")
        return fallback
    return ws


def ingest_workbooks(
    roster_book: Workbook,
    departures_book: Workbook,
    leaves_book: Workbook,
    tracking_book: Workbook,
    settings: Optional[PipelineSettings] = None,
    prior: Optional[Document] = None,
    logger: logging.Logger = LOG,
) -> IngestionResult:
    settings = settings or PipelineSettings()
    now = utc_now_iso()
    tag_map = dict(prior.tag_map) if prior is not None else {}

    # 1. Roster from category sheets, checked against the control sheet
    roster = parse_category_sheets(roster_book, settings.min_name_length, logger)
    control_ws = roster_book.find_sheet(settings.control_sheet)
    if control_ws is None:
        logger.warning(f"{roster_book.file}: control sheet '{settings.control_sheet}' not found")
        control_ws = Worksheet(file=roster_book.file, name=settings.control_sheet)
    control = parse_control_sheet(control_ws, settings.control_total_label)
    validation = validate_counts(roster.category_counts, control, settings.control_total_label, logger)

    # 2. Departures, leaves, tracking
    logger.info(f"Parsing {departures_book.file}...")
    parsed_departures = parse_departures(
        _named_or_first(departures_book, settings.departures_sheet, logger),
        tag_map,
        settings.min_name_length,
        logger,
    )
    logger.info(f"Parsing {leaves_book.file}...")
    raw_leaves = parse_leaves(
        leaves_book.first_sheet(),
        settings.leaves_header_keywords,
        settings.header_scan_rows,
        settings.min_name_length,
        logger,
    )
    logger.info(f"Parsing {tracking_book.file}...")
    raw_tracking = parse_tracking(tracking_book.first_sheet(), settings.min_name_length, logger)

    # 3. Canonical people
    dedup = deduplicate_people(roster.people, logger)
    people = dedup.people
    assign_person_ids(people, prior, now=now)

    candidates = dedup.duplicate_candidates + find_near_duplicates(people, settings.near_duplicate_threshold, logger)
    id_by_key = {p.base_key: p.person_id for p in people}
    for cand in candidates:
        cand.person_ids = [id_by_key[k] for k in cand.base_keys if k in id_by_key]

    departures = parsed_departures.departures
    assign_record_ids(departures, "departure_id", now=now)
    assign_record_ids(raw_leaves, "leave_id", now=now)
    assign_record_ids(raw_tracking, "tracking_id", now=now)

    # 4. Active/departed conflicts
    conflicts = detect_conflicts(people, departures, logger)
    by_key = {p.base_key: p for p in people}
    for conflict in conflicts:
        person = by_key[conflict.base_key]
        person.status = PersonStatus.CONFLICT
        person.refresh_review_flag()
    for dep in departures:
        person = by_key.get(dep.base_key)
        if person is not None:
            dep.person_id = person.person_id

    # 5. Linking and pending people
    logger.info("Linking records...")
    leave_links = link_records(raw_leaves, people, settings.fuzzy_threshold, "leave", logger)
    tracking_links = link_records(raw_tracking, people, settings.fuzzy_threshold, "tracking", logger)

    logger.info("Creating pending roster...")
    pending = create_pending_people(tracking_links.unlinked, people, now=now)
    logger.info(f"  Created {len(pending)} pending people")

    all_people = people + pending
    all_tracking = tracking_links.linked + link_to_pending(tracking_links.unlinked, pending)

    warnings = check_active_categories(all_people, logger)

    document = assemble_document(
        people=all_people,
        departures=departures,
        leaves=leave_links.linked,
        unlinked_leaves=leave_links.unlinked,
        tracking=all_tracking,
        conflicts=conflicts,
        duplicate_candidates=candidates,
        validation=validation,
        unmapped_tags=parsed_departures.unmapped_tags,
        settings=settings,
        prior=prior,
        now=now,
        logger=logger,
    )

    return IngestionResult(
        document=document,
        validation=validation,
        category_counts=roster.category_counts,
        fuzzy_matches=leave_links.fuzzy_matches + tracking_links.fuzzy_matches,
        warnings=warnings,
    )


def run_ingestion(
    settings: PipelineSettings,
    prior: Optional[Document] = None,
    logger: logging.Logger = LOG,
) -> IngestionResult:
    """Read the four source workbooks from settings.raw_dir and ingest them."""
    books = [read_workbook(settings.source_path(name), logger) for name in settings.source_files()]
    roster_book, departures_book, leaves_book, tracking_book = books
    return ingest_workbooks(roster_book, departures_book, leaves_book, tracking_book, settings, prior, logger)
