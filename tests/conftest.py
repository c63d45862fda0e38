from pathlib import Path
from typing import Dict, List

import pytest
from openpyxl import Workbook as XlsxWorkbook

from personnel_etl.workbook import Workbook, Worksheet


def build_book(file: str, sheets: Dict[str, List[list]]) -> Workbook:
    return Workbook(
        file=file,
        sheets={name: Worksheet(file=file, name=name, rows=[list(r) for r in rows]) for name, rows in sheets.items()},
    )


def write_xlsx(path: Path, sheets: Dict[str, List[list]]) -> Path:
    wb = XlsxWorkbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(list(row))
    wb.save(path)
    return path


ROSTER_HEADER = ["SIRA", "ADI SOYADI", "GÖREVİ"]
DEPARTURES_HEADER = ["S.NO", "ADI SOYADI", "FİRMA", "GÖREVİ", "GİRİŞ", "ÇIKIŞ", "GÜN"]
LEAVES_HEADER = ["SIRA", "PERSONEL ADI SOYADI", "BAŞLANGIÇ", "BİTİŞ", "GÜN", "TÜR", "AÇIKLAMA"]
TRACKING_HEADER = ["SIRA", "ADI SOYADI", "BAŞVURU NO", "MESLEK", "DURUM", "BEKLENEN TARİH", "İLGİLİ", "NOT"]


def control_rows(expected: Dict[str, int]) -> List[list]:
    rows = [["KATEGORİ", "SAYI"]]
    rows += [[label, count] for label, count in expected.items()]
    rows.append(["GENEL TOPLAM", sum(expected.values())])
    return rows


@pytest.fixture
def roster_sheets():
    return {
        "REPSAM": [
            ROSTER_HEADER,
            [1, "Ali Veli", "Mühendis"],
            [2, "Ayşe Kaya", "İşveren"],
        ],
        "SAYILAR": control_rows({"REPSAM": 2}),
    }


@pytest.fixture
def empty_departures():
    return {"Table 1": [DEPARTURES_HEADER]}


@pytest.fixture
def empty_leaves():
    return {"Sheet1": [["İZİN BELGELERİ"], LEAVES_HEADER]}


@pytest.fixture
def empty_tracking():
    return {"Sheet1": [TRACKING_HEADER]}
