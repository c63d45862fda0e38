from personnel_etl.linker import best_match, create_pending_people, link_records, link_to_pending
from personnel_etl.models import LeaveRecord, Person, PersonStatus, Provenance, TrackingRecord, TrackingStatus
from personnel_etl.normalize import normalize_name


def person(name, pid):
    return Person(full_name=name, normalized_name=normalize_name(name), person_id=pid)


def leave(name):
    return LeaveRecord(
        full_name=name,
        normalized_name=normalize_name(name),
        start_date="2024-03-01",
        end_date="2024-03-02",
        days=2,
    )


def tracking(name, application_no=""):
    return TrackingRecord(
        full_name=name,
        normalized_name=normalize_name(name),
        application_no=application_no,
        profession="Kaynakçı",
        status=TrackingStatus.PRE_APPROVAL_GRANTED,
        source=Provenance(file="takip.xlsx", sheet="Sheet1", row=2),
    )


ROSTER = [person("Ali Veli", "p-1"), person("Mehmet Yılmazoğlu", "p-2")]


def test_exact_match_links():
    result = link_records([leave("ALİ VELİ")], ROSTER)
    assert [r.person_id for r in result.linked] == ["p-1"]
    assert result.fuzzy_matches == []


def test_fuzzy_match_above_threshold_links():
    result = link_records([leave("Mehmet Yilmazoglo")], ROSTER, threshold=0.9)
    assert [r.person_id for r in result.linked] == ["p-2"]
    assert len(result.fuzzy_matches) == 1
    assert result.fuzzy_matches[0].score > 0.9


def test_no_match_is_unlinked():
    record = leave("Can Demir")
    result = link_records([record], ROSTER)
    assert result.linked == []
    assert result.unlinked == [record]
    assert record.person_id is None


def test_threshold_is_exclusive():
    people = [person("ABCD", "p-1")]
    match, score = best_match("ABCE", people, threshold=0.75)
    assert match is None
    match, score = best_match("ABCE", people, threshold=0.7)
    assert match is people[0] and score == 0.75


def test_tie_goes_to_first_person_in_roster_order():
    people = [person("Mehmet Yılmazoğla", "p-a"), person("Mehmet Yılmazoğle", "p-b")]
    match, _ = best_match(normalize_name("Mehmet Yılmazoğlo"), people, threshold=0.9)
    assert match.person_id == "p-a"


def test_linking_does_not_mutate_input_records():
    record = leave("Ali Veli")
    link_records([record], ROSTER)
    assert record.person_id is None


def test_pending_people_one_per_key():
    unlinked = [tracking("Yeni Kişi", "A-1"), tracking("YENİ KİŞİ", "A-2"), tracking("Başka Biri", "B-1")]

    pending = create_pending_people(unlinked, ROSTER, id_factory=iter(["n-1", "n-2"]).__next__, now="2024-01-01T00:00:00.000Z")

    assert [p.full_name for p in pending] == ["Yeni Kişi", "Başka Biri"]
    first = pending[0]
    assert first.person_id == "n-1"
    assert first.status is PersonStatus.PENDING
    assert first.needs_review
    assert first.category is None
    assert first.tracking_info.application_no == "A-1"
    assert first.tracking_info.status is TrackingStatus.PRE_APPROVAL_GRANTED
    assert first.sources[0].file == "takip.xlsx"

    linked = link_to_pending(unlinked, pending)
    assert [t.person_id for t in linked] == ["n-1", "n-1", "n-2"]


def test_pending_skips_existing_keys():
    assert create_pending_people([tracking("Ali Veli")], ROSTER) == []
