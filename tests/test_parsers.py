import pytest

from conftest import DEPARTURES_HEADER, LEAVES_HEADER, TRACKING_HEADER, ROSTER_HEADER, build_book, control_rows
from personnel_etl.exceptions import IngestionError
from personnel_etl.models import LeaveType, PersonStatus, TrackingStatus
from personnel_etl.parsers import (
    parse_category_sheets,
    parse_control_sheet,
    parse_departures,
    parse_leaves,
    parse_tracking,
)
from personnel_etl.taxonomy import Category, Role
from personnel_etl.workbook import Worksheet


def test_category_sheets_assign_category_from_sheet():
    book = build_book(
        "on_izin.xlsx",
        {
            "REPSAM": [
                ["REPSAM PERSONEL LİSTESİ"],
                ROSTER_HEADER,
                [1, "Ali Veli", "Mühendis"],
                [2, "Ayşe Kaya", "İşveren"],
                [None, None, None],
                [3, "REPSAM", None],
                [4, "X", "Formen"],
            ],
            "KALMES": [ROSTER_HEADER, [1, "Mehmet Öz", "Kaynakçı"]],
        },
    )

    result = parse_category_sheets(book)

    assert [p.full_name for p in result.people] == ["Ali Veli", "Ayşe Kaya", "Mehmet Öz"]
    ali, ayse, mehmet = result.people
    assert ali.category is Category.REPSAM and ali.role is Role.MUHENDIS
    assert ayse.role is Role.REPSAM_ISVEREN
    assert mehmet.category is Category.KALMES
    assert mehmet.role is None and mehmet.job_title == "Kaynakçı"
    assert all(p.status is PersonStatus.ACTIVE for p in result.people)

    assert result.category_counts[Category.REPSAM] == 2
    assert result.category_counts[Category.KALMES] == 1
    assert result.category_counts[Category.CAPRA] == 0
    assert Category.CAPRA in result.missing_sheets


def test_category_sheets_record_provenance():
    book = build_book("on_izin.xlsx", {"REPSAM": [ROSTER_HEADER, [1, "Ali Veli", "Mühendis"]]})
    person = parse_category_sheets(book).people[0]
    assert person.source.file == "on_izin.xlsx"
    assert person.source.sheet == "REPSAM"
    assert person.source.row == 2


def test_category_sheet_names_match_without_diacritics():
    book = build_book("on_izin.xlsx", {"Nesat": [[1, "Can Demir", "Formen"]]})
    result = parse_category_sheets(book)
    assert result.people[0].category is Category.NESAT


def test_no_category_sheets_is_fatal():
    book = build_book("on_izin.xlsx", {"Sayfa1": [[1, "Ali Veli"]]})
    with pytest.raises(IngestionError):
        parse_category_sheets(book)


def test_control_sheet():
    ws = Worksheet(file="on_izin.xlsx", name="SAYILAR", rows=control_rows({"REPSAM": 2, "Kalmes": 3}))
    control = parse_control_sheet(ws)
    assert control.expected == {Category.REPSAM: 2, Category.KALMES: 3}
    assert control.expected_total == 5


def test_departures_known_and_unknown_tags():
    ws = Worksheet(
        file="ayrilanlar.xlsx",
        name="Table 1",
        rows=[
            DEPARTURES_HEADER,
            [1, "Mehmet Öz", "XYZCO", "Kaynakçı", "01/01/2024", "31/01/2024", None],
            [2, "Can Demir", "Kalmes", "Formen", "01/02/2024", "10/02/2024", 12],
            [3, "Ece Tan", None, "Ofis", None, None, None],
        ],
    )

    result = parse_departures(ws)

    unknown, known, untagged = result.departures
    assert unknown.category is None
    assert unknown.needs_review
    assert unknown.unmapped_tags == ["XYZCO"]
    assert unknown.total_days == 31
    assert unknown.exit_month == "2024-01"

    assert known.category is Category.KALMES
    assert not known.needs_review
    assert known.total_days == 12

    assert untagged.needs_review
    assert untagged.unmapped_tags == []
    assert untagged.exit_month == "unknown"

    assert result.unmapped_tags == ["XYZCO"]


def test_departures_negative_total_days_fall_back_to_dates():
    ws = Worksheet(
        file="ayrilanlar.xlsx",
        name="Table 1",
        rows=[[1, "Can Demir", "Kalmes", "Formen", "01/02/2024", "10/02/2024", -3]],
    )

    (dep,) = parse_departures(ws).departures

    assert dep.total_days == 10


def test_departures_apply_tag_map():
    ws = Worksheet(file="ayrilanlar.xlsx", name="Table 1", rows=[[1, "Mehmet Öz", "XYZCO", "", None, None, None]])
    result = parse_departures(ws, {"XYZCO": "ÖZBEK"})
    assert result.departures[0].category is Category.OZBEK
    assert result.unmapped_tags == []


def test_leaves():
    ws = Worksheet(
        file="izin_belgeleri.xlsx",
        name="Sheet1",
        rows=[
            ["İZİN BELGELERİ"],
            LEAVES_HEADER,
            [1, "Ali Veli", "01/03/2024", "05/03/2024", None, "Ücretsiz", "aile"],
            [2, "Ayşe Kaya", "2024-04-10", None, None, None, None],
            [3, "Can Demir", "01/05/2024", "03/05/2024", 2, "Yıllık", None],
            [4, "Ece Tan", None, "03/05/2024", None, None, None],
            [5, "Ece Tan", "10/05/2024", "01/05/2024", None, None, None],
        ],
    )

    leaves = parse_leaves(ws)

    assert [l.full_name for l in leaves] == ["Ali Veli", "Ayşe Kaya", "Can Demir"]
    ali, ayse, can = leaves
    assert (ali.start_date, ali.end_date, ali.days) == ("2024-03-01", "2024-03-05", 5)
    assert ali.leave_type is LeaveType.UNPAID
    assert ali.note == "aile"
    assert (ayse.end_date, ayse.days) == ("2024-04-10", 1)
    assert can.days == 2
    assert can.leave_type is LeaveType.NORMAL
    assert all(l.days >= 1 for l in leaves)


def test_tracking():
    ws = Worksheet(
        file="takip.xlsx",
        name="Sheet1",
        rows=[
            TRACKING_HEADER,
            [1, "Yeni Kişi", 12345.0, "Kaynakçı", "Ön izni onaylandı", "15/04/2024", "Hasan", "acil"],
            [2, "Başka Kişi", "A-2", "Formen", "beklemede", None, None, None],
        ],
    )

    first, second = parse_tracking(ws)

    assert first.application_no == "12345"
    assert first.status is TrackingStatus.PRE_APPROVAL_GRANTED
    assert first.expected_date == "2024-04-15"
    assert first.contact_person == "Hasan"
    assert first.notes == "acil"
    assert second.status is None
