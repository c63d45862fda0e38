"""
Normalization helpers shared by every parser and matcher.

- normalize_name: comparison key for people (baseKey)
- parse_date: mixed spreadsheet date cells -> ISO "YYYY-MM-DD" or None
- days_between: inclusive day count between two dates
- similarity: Levenshtein similarity in [0, 1]

None of these raise on bad input; they return an empty value instead.
"""

from __future__ import annotations

import math
import numbers
import re
import unicodedata
import warnings
from datetime import date, datetime, timedelta
from typing import Any, Optional

import pandas as pd
from pandas.api.types import is_scalar
from rapidfuzz.distance import Levenshtein


EXCEL_EPOCH = date(1899, 12, 30)

PUNCTUATION_RE = re.compile(r"[.,;:'\"!?()]")
DMY_RE = re.compile(r"^(\d{1,2})[/.](\d{1,2})[/.](\d{2,4})$")
ISO_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
TIME_RE = re.compile(r"\d{1,2}:\d{2}(?::\d{2})?(?:\.\d+)?(?:\s*[AaPp]\.?[Mm]\.?)?")

UNKNOWN_MONTH = "unknown"


# ----------------
# Cell coercion
# ----------------

def is_na_scalar(v: Any) -> bool:
    """
    Safe NA check that never returns an array/Series.
    """
    if v is None:
        return True
    if is_scalar(v):
        return bool(pd.isna(v))
    return False


def cell_text(v: Any) -> str:
    if is_na_scalar(v):
        return ""
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v).strip()


def is_row_index(v: Any) -> bool:
    """
    True when a leading cell looks like a row counter (data-row sentinel).
    Excel numbers arrive as int or float; typed-in counters as digit strings.
    """
    if is_na_scalar(v) or isinstance(v, bool):
        return False
    if isinstance(v, numbers.Real):
        return True
    return isinstance(v, str) and v.strip().isdigit()


def parse_int(v: Any) -> Optional[int]:
    if is_na_scalar(v) or isinstance(v, bool):
        return None
    if isinstance(v, numbers.Real):
        return int(v)
    m = re.match(r"^\s*(-?\d+)", str(v))
    return int(m.group(1)) if m else None


# ----------------
# Names
# ----------------

def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.upper()


def normalize_name(name: Any) -> str:
    """
    Comparison key for a person name: decompose, drop diacritic marks,
    uppercase, drop punctuation, collapse whitespace.

    Folding is repeated until stable so the result is a fixed point,
    which keeps normalize_name idempotent.
    """
    if not isinstance(name, str) or not name:
        return ""

    s = name
    for _ in range(8):
        folded = _fold(s)
        if folded == s:
            break
        s = folded

    s = PUNCTUATION_RE.sub("", s)
    return " ".join(s.split())


# ----------------
# Dates
# ----------------

def _iso(y: int, m: int, d: int) -> Optional[str]:
    try:
        return date(y, m, d).isoformat()
    except ValueError:
        return None


def _parse_date_string(s: str) -> Optional[str]:
    m = DMY_RE.match(s)
    if m:
        first, second, year = (int(g) for g in m.groups())
        if year < 100:
            year += 2000
        # day-first unless only a month-first reading is possible
        day, month = first, second
        if second > 12 and first <= 12:
            day, month = second, first
        return _iso(year, month, day)

    m = ISO_RE.match(s)
    if m:
        return _iso(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    # pandas fills a missing date part with today ("10:30", "now")
    if not re.search(r"\d", TIME_RE.sub("", s)):
        return None

    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            ts = pd.to_datetime(s, dayfirst=True, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
    if is_na_scalar(ts):
        return None
    return ts.date().isoformat()


def parse_date(value: Any) -> Optional[str]:
    """
    Parse a spreadsheet date cell into an ISO date string.

    Accepts:
      - datetime / date / pandas Timestamp (openpyxl gives these for date-formatted cells)
      - numeric Excel serials (days since 1899-12-30)
      - DD/MM/YYYY, DD.MM.YYYY, MM/DD/YY, YYYY-MM-DD[...]
      - anything pandas can parse, day-first
    Returns None when nothing matches.
    """
    if is_na_scalar(value) or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, numbers.Real):
        if value <= 0:
            return None
        try:
            return (EXCEL_EPOCH + timedelta(days=math.floor(value))).isoformat()
        except (OverflowError, ValueError):
            return None

    s = str(value).strip()
    if not s:
        return None
    return _parse_date_string(s)


def days_between(start: Any, end: Any) -> int:
    """
    Inclusive day count between two dates; 0 if either cannot be parsed.
    """
    s = parse_date(start)
    e = parse_date(end)
    if not s or not e:
        return 0
    delta = date.fromisoformat(e) - date.fromisoformat(s)
    return abs(delta.days) + 1


def month_key(iso_date: Optional[str]) -> str:
    if not iso_date:
        return UNKNOWN_MONTH
    return iso_date[:7]


# ----------------
# Similarity
# ----------------

def similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    1 - levenshtein(a, b) / max(len(a), len(b)).
    Two empty strings are fully similar, one empty string is not similar at all.
    """
    a = a or ""
    b = b or ""
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1.0 - Levenshtein.distance(a, b) / max(len(a), len(b))
