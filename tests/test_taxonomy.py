import pytest

from personnel_etl.taxonomy import (
    Category,
    Role,
    classify_tag,
    fix_typos,
    job_title_for,
    normalize_role,
    tag_key,
)


def test_category_from_label_ignores_case_and_diacritics():
    assert Category.from_label("nesat") is Category.NESAT
    assert Category.from_label(" Özbek ") is Category.OZBEK
    assert Category.from_label(Category.CAPRA) is Category.CAPRA
    assert Category.from_label("SAYILAR") is None


def test_taxonomy_is_fixed():
    assert len(Category) == 8
    assert len(Role) == 12


@pytest.mark.parametrize(
    "raw, context, expected",
    [
        ("İşveren", Category.REPSAM, Role.REPSAM_ISVEREN),
        ("DİREKTÖR", Category.REPSAM, Role.REPSAM_DIREKTOR),
        ("isveren", Category.CAPRA, Role.CAPRA_ISVEREN),
        ("Direktör", Category.CAPRA, Role.CAPRA_DIREKTOR),
        ("RPSAM İŞVEREN", None, Role.REPSAM_ISVEREN),
        ("mühendis", Category.KALMES, Role.MUHENDIS),
        ("İZMETLİ", Category.OZBEK, Role.HIZMETLI),
        ("Proje  Müdürü", None, Role.PROJE_MUDURU),
    ],
)
def test_normalize_role(raw, context, expected):
    assert normalize_role(raw, context) is expected


def test_generic_employer_without_prefix_category_is_not_a_role():
    assert normalize_role("İŞVEREN", Category.KALMES) is None
    assert normalize_role("İŞVEREN", None) is None


def test_unknown_or_empty_role():
    assert normalize_role("Kaynakçı", Category.REPSAM) is None
    assert normalize_role("", Category.REPSAM) is None
    assert normalize_role(None, Category.REPSAM) is None


def test_job_title_keeps_unrecognized_text_but_not_category_names():
    assert job_title_for("Kaynakçı ", None) == "Kaynakçı"
    assert job_title_for("REPSAM", None) is None
    assert job_title_for("Mühendis", Role.MUHENDIS) is None


def test_fix_typos():
    assert fix_typos("rpsam") == "REPSAM"
    assert fix_typos("Formen") == "FORMEN"


def test_tag_key():
    assert tag_key("  xyz   co ") == "XYZ CO"
    assert tag_key(None) == ""


def test_classify_tag_category():
    result = classify_tag("Özbek")
    assert result.category is Category.OZBEK
    assert result.role is None
    assert not result.needs_review


def test_classify_tag_role_implies_category():
    result = classify_tag("REPSAM İŞVEREN")
    assert result.role is Role.REPSAM_ISVEREN
    assert result.category is Category.REPSAM
    assert not result.needs_review


def test_classify_tag_role_without_category_needs_review():
    result = classify_tag("MÜHENDİS")
    assert result.role is Role.MUHENDIS
    assert result.category is None
    assert result.needs_review
    assert result.unmapped_tag is None


def test_classify_tag_unknown_is_unmapped():
    result = classify_tag("XYZCO")
    assert result.category is None
    assert result.needs_review
    assert result.unmapped_tag == "XYZCO"


def test_classify_tag_uses_tag_map_first():
    result = classify_tag("xyzco", {"XYZCO": "KALMES"})
    assert result.category is Category.KALMES
    assert not result.needs_review
    assert result.unmapped_tag is None


def test_classify_tag_unresolved_tag_map_entry_stays_unmapped():
    result = classify_tag("XYZCO", {"XYZCO": None})
    assert result.unmapped_tag == "XYZCO"


def test_classify_empty_tag():
    result = classify_tag("")
    assert result.category is None
    assert result.needs_review
    assert result.unmapped_tag is None
