from personnel_etl.aggregator import assign_person_ids, compute_stats, merge_tag_map
from personnel_etl.models import DepartureRecord, Document, Person, PersonStatus
from personnel_etl.taxonomy import Category, Role


def test_assign_person_ids_reuses_prior_ids():
    prior = Document(people=[Person(full_name="Ali Veli", normalized_name="ALI VELI", person_id="p-1", created_at="t0")])
    people = [
        Person(full_name="Ali Veli", normalized_name="ALI VELI"),
        Person(full_name="Ayşe Kaya", normalized_name="AYSE KAYA"),
    ]

    assign_person_ids(people, prior, id_factory=lambda: "new", now="t1")

    assert [p.person_id for p in people] == ["p-1", "new"]
    assert [p.created_at for p in people] == ["t0", "t1"]
    assert all(p.updated_at == "t1" for p in people)


def test_merge_tag_map_keeps_admin_mappings():
    merged = merge_tag_map({"XYZCO": "KALMES", "ABC": None}, ["XYZCO", "NEWCO"])
    assert merged == {"XYZCO": "KALMES", "ABC": None, "NEWCO": None}


def test_compute_stats():
    doc = Document(
        tag_map={"XYZCO": None, "ABC": "CAPRA"},
        people=[
            Person(full_name="A", normalized_name="A", category=Category.REPSAM, role=Role.MUHENDIS),
            Person(full_name="B", normalized_name="B", category=Category.REPSAM, status=PersonStatus.CONFLICT, needs_review=True),
            Person(full_name="C", normalized_name="C", status=PersonStatus.PENDING, needs_review=True),
        ],
        departures=[DepartureRecord(full_name="D", normalized_name="D")],
    )

    stats = compute_stats(doc)

    assert stats["totalPeople"] == 3
    assert stats["activeRosterCount"] == 2
    assert stats["pendingCount"] == 1
    assert stats["departedCount"] == 1
    assert stats["needsReviewCount"] == 2
    assert stats["unmappedTagsCount"] == 1
    assert stats["byCategory"]["REPSAM"] == 2
    assert stats["byCategory"]["UNCATEGORIZED"] == 0
    assert stats["byRole"]["MÜHENDİS"] == 1
    assert stats["byRole"]["UNASSIGNED"] == 2
    assert stats["byStatus"]["conflict"] == 1
