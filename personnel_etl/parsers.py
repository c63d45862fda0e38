"""
Sheet parsers.

Column layout (0-based) of each source sheet; column A is always a row counter
and any row without one is not data:

- category sheets (REPSAM, KALMES, ...): B name, C role
- control sheet (SAYILAR): A label, B count
- departures (Table 1): B name, C employer tag, D job, E entry date, F exit date, G total days
- leave documents: B name, C start, D end, E days, F type, G note
- permit tracking: B name, C application no, D profession, E status, F expected date,
  G contact person, H notes

Every emitted record carries its provenance (file, sheet, 1-based row).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from .config import CONTROL_TOTAL_LABEL, HEADER_SCAN_MAX_ROWS, LEAVES_HEADER_KEYWORDS, MIN_NAME_LENGTH
from .exceptions import IngestionError
from .models import DepartureRecord, LeaveRecord, LeaveType, Person, PersonStatus, Provenance, TrackingRecord, TrackingStatus
from .normalize import cell_text, days_between, normalize_name, parse_date, parse_int
from .taxonomy import Category, classify_tag, job_title_for, normalize_role
from .workbook import Row, Workbook, Worksheet, cell, find_header_row, iter_data_rows


LOG = logging.getLogger("personnel_etl")


def _provenance(ws: Worksheet, row_no: int) -> Provenance:
    return Provenance(file=ws.file, sheet=ws.name, row=row_no)


def _row_name(row: Row, min_name_length: int) -> Optional[str]:
    full_name = cell_text(cell(row, 1))
    if len(full_name) < min_name_length:
        return None
    return full_name


def _date_or_warn(raw, what: str, full_name: str, ws: Worksheet, row_no: int, logger: logging.Logger) -> Optional[str]:
    value = parse_date(raw)
    if value is None and cell_text(raw):
        logger.warning(f"{ws.file} | {ws.name} | row {row_no}: unparsable {what} for {full_name}: {raw!r}")
    return value


# ----------------------
# Roster (category sheets)
# ----------------------

@dataclass
class RosterParseResult:
    people: List[Person]
    category_counts: Dict[Category, int]
    missing_sheets: List[Category] = field(default_factory=list)


def parse_category_sheets(
    workbook: Workbook,
    min_name_length: int = MIN_NAME_LENGTH,
    logger: logging.Logger = LOG,
) -> RosterParseResult:
    """
    Read the roster from the sheets named after each category.

    Category membership is the sheet a row appears on, never a column value.
    Rows whose name is itself a category label are header artifacts and skipped.
    """
    logger.info("Parsing category sheets...")

    people: List[Person] = []
    counts: Dict[Category, int] = {}
    missing: List[Category] = []

    for category in Category:
        ws = workbook.find_sheet(category.value)
        if ws is None:
            logger.warning(f"{workbook.file}: category sheet '{category.value}' not found")
            counts[category] = 0
            missing.append(category)
            continue

        count = 0
        for row_no, row in iter_data_rows(ws):
            full_name = _row_name(row, min_name_length)
            if full_name is None:
                continue
            if Category.from_label(full_name) is not None:
                continue

            raw_role = cell_text(cell(row, 2))
            role = normalize_role(raw_role, category)

            people.append(
                Person(
                    full_name=full_name,
                    normalized_name=normalize_name(full_name),
                    category=category,
                    role=role,
                    job_title=job_title_for(raw_role, role),
                    status=PersonStatus.ACTIVE,
                    needs_review=False,
                    sources=[_provenance(ws, row_no)],
                )
            )
            count += 1

        counts[category] = count
        logger.info(f"  {category.value}: {count} people")

    if len(missing) == len(counts):
        raise IngestionError(f"{workbook.file}: no category sheets found (sheets: {workbook.sheet_names})")

    logger.info(f"  Total from category sheets: {len(people)}")
    return RosterParseResult(people=people, category_counts=counts, missing_sheets=missing)


# ----------------------
# Control sheet
# ----------------------

@dataclass
class ControlSummary:
    expected: Dict[Category, int]
    expected_total: int


def parse_control_sheet(ws: Worksheet, total_label: str = CONTROL_TOTAL_LABEL) -> ControlSummary:
    expected: Dict[Category, int] = {}
    expected_total = 0
    total_key = normalize_name(total_label)

    for row in ws.rows:
        if not row:
            continue
        label = cell_text(row[0])
        if not label:
            continue
        count = parse_int(cell(row, 1)) or 0

        category = Category.from_label(label)
        if category is not None:
            expected[category] = count
        elif normalize_name(label) == total_key:
            expected_total = count

    return ControlSummary(expected=expected, expected_total=expected_total)


# ----------------------
# Departures
# ----------------------

@dataclass
class DeparturesParseResult:
    departures: List[DepartureRecord]
    unmapped_tags: List[str]


def parse_departures(
    ws: Worksheet,
    tag_map: Optional[Mapping[str, Optional[str]]] = None,
    min_name_length: int = MIN_NAME_LENGTH,
    logger: logging.Logger = LOG,
) -> DeparturesParseResult:
    """
    Category comes from the employer tag column. Unrecognized tags are kept
    verbatim in the unmapped accumulator and the record is flagged for review.
    """
    departures: List[DepartureRecord] = []
    unmapped: Dict[str, None] = {}

    for row_no, row in iter_data_rows(ws):
        full_name = _row_name(row, min_name_length)
        if full_name is None:
            continue

        tag = classify_tag(cell_text(cell(row, 2)), tag_map)
        if tag.unmapped_tag:
            unmapped[tag.unmapped_tag] = None

        entry_date = _date_or_warn(cell(row, 4), "entry date", full_name, ws, row_no, logger)
        exit_date = _date_or_warn(cell(row, 5), "exit date", full_name, ws, row_no, logger)
        explicit_days = parse_int(cell(row, 6))

        departures.append(
            DepartureRecord(
                full_name=full_name,
                normalized_name=normalize_name(full_name),
                category=tag.category,
                job=cell_text(cell(row, 3)),
                entry_date=entry_date,
                exit_date=exit_date,
                total_days=explicit_days if explicit_days and explicit_days > 0 else days_between(entry_date, exit_date),
                needs_review=tag.category is None,
                unmapped_tags=[tag.unmapped_tag] if tag.unmapped_tag else [],
                source=_provenance(ws, row_no),
            )
        )

    logger.info(f"  Parsed {len(departures)} departures")
    logger.info(f"  Unmapped tags: {', '.join(unmapped) or 'none'}")
    return DeparturesParseResult(departures=departures, unmapped_tags=list(unmapped))


# ----------------------
# Leaves
# ----------------------

def parse_leaves(
    ws: Worksheet,
    header_keywords: Sequence[str] = LEAVES_HEADER_KEYWORDS,
    header_scan_rows: int = HEADER_SCAN_MAX_ROWS,
    min_name_length: int = MIN_NAME_LENGTH,
    logger: logging.Logger = LOG,
) -> List[LeaveRecord]:
    header_idx = find_header_row(ws.rows, header_keywords, header_scan_rows)
    if header_idx is None:
        logger.info(f"  {ws.file} | {ws.name}: no header row found, scanning from the top")
        start = 0
    else:
        logger.info(f"  {ws.file} | {ws.name}: found header at row {header_idx + 1}")
        start = header_idx + 1

    leaves: List[LeaveRecord] = []
    for row_no, row in iter_data_rows(ws, start):
        full_name = _row_name(row, min_name_length)
        if full_name is None:
            continue

        start_raw = cell(row, 2)
        start_date = parse_date(start_raw)
        if not start_date:
            logger.warning(f"  Could not parse start date for {full_name}: {start_raw!r} (row {row_no})")
            continue

        end_date = _date_or_warn(cell(row, 3), "end date", full_name, ws, row_no, logger) or start_date
        if end_date < start_date:
            logger.warning(f"  Leave for {full_name} ends before it starts ({start_date} > {end_date}), row {row_no} skipped")
            continue

        explicit_days = parse_int(cell(row, 4))
        leaves.append(
            LeaveRecord(
                full_name=full_name,
                normalized_name=normalize_name(full_name),
                start_date=start_date,
                end_date=end_date,
                days=explicit_days if explicit_days and explicit_days > 0 else days_between(start_date, end_date),
                leave_type=LeaveType.from_label(cell_text(cell(row, 5))),
                note=cell_text(cell(row, 6)),
                source=_provenance(ws, row_no),
            )
        )

    logger.info(f"  Parsed {len(leaves)} leave records")
    return leaves


# ----------------------
# Permit tracking
# ----------------------

def parse_tracking(
    ws: Worksheet,
    min_name_length: int = MIN_NAME_LENGTH,
    logger: logging.Logger = LOG,
) -> List[TrackingRecord]:
    tracking: List[TrackingRecord] = []

    for row_no, row in iter_data_rows(ws):
        full_name = _row_name(row, min_name_length)
        if full_name is None:
            continue

        raw_status = cell_text(cell(row, 4))
        status = TrackingStatus.from_label(raw_status)
        if status is None and raw_status:
            logger.warning(f"  Unknown tracking status for {full_name}: {raw_status!r} (row {row_no})")

        tracking.append(
            TrackingRecord(
                full_name=full_name,
                normalized_name=normalize_name(full_name),
                application_no=cell_text(cell(row, 2)),
                profession=cell_text(cell(row, 3)),
                status=status,
                expected_date=_date_or_warn(cell(row, 5), "expected date", full_name, ws, row_no, logger),
                contact_person=cell_text(cell(row, 6)),
                notes=cell_text(cell(row, 7)),
                source=_provenance(ws, row_no),
            )
        )

    logger.info(f"  Parsed {len(tracking)} tracking records")
    return tracking
