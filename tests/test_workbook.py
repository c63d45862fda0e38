import pytest

from conftest import write_xlsx
from personnel_etl.exceptions import IngestionError
from personnel_etl.workbook import Worksheet, find_header_row, iter_data_rows, read_workbook


def test_read_workbook_returns_rows_per_sheet(tmp_path):
    path = write_xlsx(
        tmp_path / "on_izin.xlsx",
        {
            "REPSAM": [["SIRA", "ADI SOYADI", "GÖREVİ"], [1, "Ali Veli", "Mühendis"], [2, "Ayşe Kaya", None]],
            "SAYILAR": [["REPSAM", 2]],
        },
    )

    book = read_workbook(path)

    assert book.file == "on_izin.xlsx"
    assert book.sheet_names == ["REPSAM", "SAYILAR"]
    rows = book.sheet("REPSAM").rows
    assert rows[1][1] == "Ali Veli"
    assert rows[2][2] is None
    assert [n for n, _ in iter_data_rows(book.sheet("REPSAM"))] == [2, 3]


def test_find_sheet_ignores_case_and_diacritics(tmp_path):
    path = write_xlsx(tmp_path / "on_izin.xlsx", {"Neşat": [[1, "Can Demir"]]})
    book = read_workbook(path)
    assert book.find_sheet("NEŞAT").name == "Neşat"
    assert book.find_sheet("NESAT").name == "Neşat"
    assert book.find_sheet("KALMES") is None
    assert book.sheet("KALMES").rows == []


def test_missing_file(tmp_path):
    with pytest.raises(IngestionError):
        read_workbook(tmp_path / "takip.xlsx")


def test_unsupported_extension(tmp_path):
    path = tmp_path / "takip.csv"
    path.write_text("a,b\n", encoding="utf-8")
    with pytest.raises(IngestionError):
        read_workbook(path)


def test_corrupt_workbook(tmp_path):
    path = tmp_path / "takip.xlsx"
    path.write_text("not a zip file", encoding="utf-8")
    with pytest.raises(IngestionError):
        read_workbook(path)


def test_find_header_row():
    rows = [["İZİN LİSTESİ 2024"], [], ["SIRA", "Personel Adı"], [1, "Ali Veli"]]
    assert find_header_row(rows, ["PERSONEL"], 10) == 2
    assert find_header_row(rows, ["PERSONEL"], 2) is None
    assert find_header_row(rows, ["YOK"], 10) is None


def test_iter_data_rows_skips_non_counter_rows():
    ws = Worksheet(file="x.xlsx", name="S", rows=[["SIRA"], [1, "A"], [None, "B"], [], ["3", "C"], ["TOPLAM", 2]])
    assert [(n, r[1]) for n, r in iter_data_rows(ws)] == [(2, "A"), (5, "C")]
