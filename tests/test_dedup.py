from personnel_etl.dedup import deduplicate_people, find_near_duplicates
from personnel_etl.models import DuplicateKind, Person, Provenance
from personnel_etl.normalize import normalize_name
from personnel_etl.taxonomy import Category


def make_person(name, category, sheet, row):
    return Person(
        full_name=name,
        normalized_name=normalize_name(name),
        category=category,
        sources=[Provenance(file="on_izin.xlsx", sheet=sheet, row=row)],
    )


def test_same_sheet_repeat_is_dropped():
    people = [
        make_person("Ali Veli", Category.REPSAM, "REPSAM", 2),
        make_person("ALİ VELİ", Category.REPSAM, "REPSAM", 9),
    ]

    result = deduplicate_people(people)

    assert len(result.people) == 1
    assert result.people[0].full_name == "Ali Veli"
    assert result.people[0].merged_from == []
    assert result.duplicate_candidates == []


def test_cross_sheet_duplicate_keeps_first_category_and_records_candidate():
    people = [
        make_person("Ali Veli", Category.REPSAM, "REPSAM", 2),
        make_person("Ali Veli", Category.KALMES, "KALMES", 5),
        make_person("Ali  Veli", Category.CAPRA, "CAPRA", 3),
    ]

    result = deduplicate_people(people)

    assert len(result.people) == 1
    survivor = result.people[0]
    assert survivor.category is Category.REPSAM
    assert [s.sheet for s in survivor.merged_from] == ["KALMES", "CAPRA"]

    assert len(result.duplicate_candidates) == 1
    cand = result.duplicate_candidates[0]
    assert cand.kind is DuplicateKind.AMBIGUOUS_DUPLICATE
    assert cand.categories == [Category.REPSAM, Category.KALMES, Category.CAPRA]
    assert cand.base_keys == ["ALI VELI"]


def test_dedup_never_grows_and_keys_are_unique():
    people = [
        make_person("Ali Veli", Category.REPSAM, "REPSAM", 2),
        make_person("Ayşe Kaya", Category.REPSAM, "REPSAM", 3),
        make_person("Ali Veli", Category.KALMES, "KALMES", 2),
        make_person("Ayse Kaya", Category.REPSAM, "REPSAM", 4),
    ]

    result = deduplicate_people(people)

    keys = [p.base_key for p in result.people]
    assert len(result.people) <= len(people)
    assert len(keys) == len(set(keys)) == 2


def test_input_is_not_mutated():
    first = make_person("Ali Veli", Category.REPSAM, "REPSAM", 2)
    deduplicate_people([first, make_person("Ali Veli", Category.KALMES, "KALMES", 2)])
    assert first.merged_from == []


def test_near_duplicates():
    people = [
        make_person("Mehmet Yılmazoğlu", Category.REPSAM, "REPSAM", 2),
        make_person("Mehmet Yilmazoglo", Category.KALMES, "KALMES", 2),
        make_person("Ayşe Kaya", Category.REPSAM, "REPSAM", 3),
    ]

    found = find_near_duplicates(people, threshold=0.9)

    assert len(found) == 1
    assert found[0].kind is DuplicateKind.NEAR_DUPLICATE
    assert found[0].base_keys == ["MEHMET YILMAZOGLU", "MEHMET YILMAZOGLO"]
    assert found[0].similarity > 0.9
