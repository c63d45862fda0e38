from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


# -----------------------
# Source files and sheets
# -----------------------

ROSTER_FILE = "on_izin.xlsx"
DEPARTURES_FILE = "ayrilanlar.xlsx"
LEAVES_FILE = "izin_belgeleri.xlsx"
TRACKING_FILE = "takip.xlsx"

DEPARTURES_SHEET = "Table 1"
CONTROL_SHEET = "SAYILAR"
CONTROL_TOTAL_LABEL = "GENEL TOPLAM"

# Tag written on conflict records for the departed side
DEPARTURES_SOURCE_TAG = "departures"

# Leaves workbook: header row contains one of these (compared after name normalization)
LEAVES_HEADER_KEYWORDS = ("PERSONEL", "IZIN")

# -----------------------
# Tunables
# -----------------------

# Fuzzy link accepted only when similarity is strictly greater than this
FUZZY_THRESHOLD = 0.9
NEAR_DUPLICATE_THRESHOLD = 0.9

HEADER_SCAN_MAX_ROWS = 10
MIN_NAME_LENGTH = 2

AUDIT_LIMIT = 1000
SESSION_HOURS = 8

DOCUMENT_VERSION = "3.0.0"


@dataclass
class PipelineSettings:
    raw_dir: Path = Path("data/raw")
    output_path: Path = Path("data/db.json")
    report_path: Path = Path("data/_ingestion_report.csv")
    log_dir: Path = Path("logs")

    roster_file: str = ROSTER_FILE
    departures_file: str = DEPARTURES_FILE
    leaves_file: str = LEAVES_FILE
    tracking_file: str = TRACKING_FILE

    departures_sheet: str = DEPARTURES_SHEET
    control_sheet: str = CONTROL_SHEET
    control_total_label: str = CONTROL_TOTAL_LABEL

    fuzzy_threshold: float = FUZZY_THRESHOLD
    near_duplicate_threshold: float = NEAR_DUPLICATE_THRESHOLD
    header_scan_rows: int = HEADER_SCAN_MAX_ROWS
    min_name_length: int = MIN_NAME_LENGTH
    audit_limit: int = AUDIT_LIMIT
    document_version: str = DOCUMENT_VERSION

    leaves_header_keywords: List[str] = field(default_factory=lambda: list(LEAVES_HEADER_KEYWORDS))

    def source_files(self) -> List[str]:
        return [self.roster_file, self.departures_file, self.leaves_file, self.tracking_file]

    def source_path(self, name: str) -> Path:
        return Path(self.raw_dir) / name
