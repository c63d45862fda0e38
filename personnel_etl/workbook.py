"""
Workbook loading.

Every sheet is read without header inference into plain rows of cells
(None for blanks), so parsers work on positions, not column labels:
the source workbooks have merged title rows and no stable headers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import pandas as pd

from .exceptions import IngestionError
from .normalize import cell_text, is_na_scalar, is_row_index, normalize_name


LOG = logging.getLogger("personnel_etl")

Row = List[Any]

SUPPORTED_SUFFIXES = (".xlsx", ".xlsm")


@dataclass
class Worksheet:
    file: str
    name: str
    rows: List[Row] = field(default_factory=list)


@dataclass
class Workbook:
    file: str
    sheets: Dict[str, Worksheet] = field(default_factory=dict)

    @property
    def sheet_names(self) -> List[str]:
        return list(self.sheets.keys())

    def sheet(self, name: str, logger: logging.Logger = LOG) -> Worksheet:
        ws = self.sheets.get(name)
        if ws is None:
            logger.warning(f"{self.file}: sheet '{name}' not found")
            return Worksheet(file=self.file, name=name)
        return ws

    def first_sheet(self) -> Worksheet:
        if not self.sheets:
            return Worksheet(file=self.file, name="")
        return next(iter(self.sheets.values()))

    def find_sheet(self, label: str) -> Optional[Worksheet]:
        """Sheet whose name matches label ignoring case, diacritics and spacing."""
        key = normalize_name(label)
        for name, ws in self.sheets.items():
            if normalize_name(name) == key:
                return ws
        return None


def _frame_to_rows(raw: pd.DataFrame) -> List[Row]:
    rows: List[Row] = []
    for values in raw.itertuples(index=False, name=None):
        rows.append([None if is_na_scalar(v) else v for v in values])
    return rows


def read_workbook(file_path: Path, logger: logging.Logger = LOG) -> Workbook:
    """
    Read every sheet of an .xlsx/.xlsm workbook with openpyxl.
    Raises IngestionError when the file is missing, unsupported or unreadable.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise IngestionError(f"Input workbook not found: {file_path.resolve()}")

    suffix = file_path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise IngestionError(f"{file_path.name}: unsupported extension {suffix} (expected .xlsx/.xlsm)")

    logger.info(f"Reading: {file_path.name}")
    try:
        frames = pd.read_excel(file_path, sheet_name=None, header=None, engine="openpyxl")
    except Exception as e:
        logger.exception(f"{file_path.name}: failed to open workbook")
        raise IngestionError(f"Failed to open workbook {file_path.name}: {e}") from e

    book = Workbook(file=file_path.name)
    for name, raw in frames.items():
        book.sheets[str(name)] = Worksheet(file=file_path.name, name=str(name), rows=_frame_to_rows(raw))
        logger.debug(f"{file_path.name} | {name}: {len(raw)} raw rows")
    return book


# --------------------
# Header row detection
# --------------------

def find_header_row(
    rows: Sequence[Row],
    keywords: Sequence[str],
    max_rows: int,
) -> Optional[int]:
    """
    Index of the first of the early rows whose joined text contains one of the
    keywords (compared after name normalization), or None.
    """
    wanted = [normalize_name(k) for k in keywords if k]
    for r in range(min(max_rows, len(rows))):
        row = rows[r] or []
        text = normalize_name(" ".join(cell_text(v) for v in row if cell_text(v)))
        if text and any(k in text for k in wanted):
            return r
    return None


def iter_data_rows(sheet: Worksheet, start: int = 0) -> Iterator[Tuple[int, Row]]:
    """
    Yield (1-based row number, row) for rows whose first cell is a row counter.
    Headers, blanks and section breaks are skipped.
    """
    for i in range(max(0, start), len(sheet.rows)):
        row = sheet.rows[i]
        if not row or not is_row_index(row[0]):
            continue
        yield i + 1, row


def cell(row: Row, idx: int) -> Any:
    return row[idx] if idx < len(row) else None
