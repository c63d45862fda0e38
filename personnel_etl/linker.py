"""
Link leave and tracking records to canonical people.

1. exact baseKey match
2. otherwise the most similar person, accepted only above the threshold
   (ties go to the first person in roster order)
3. otherwise the record comes back unlinked

Unlinked tracking rows seed "pending" people; unlinked leaves do not, a leave
presupposes an existing person.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar, Union

from .config import FUZZY_THRESHOLD
from .models import LeaveRecord, Person, PersonStatus, TrackingRecord, new_id, utc_now_iso
from .normalize import similarity


LOG = logging.getLogger("personnel_etl")

LinkableT = TypeVar("LinkableT", LeaveRecord, TrackingRecord)


@dataclass
class FuzzyMatch:
    record_name: str
    person_name: str
    person_id: Optional[str]
    score: float


@dataclass
class LinkResult:
    linked: List[Union[LeaveRecord, TrackingRecord]]
    unlinked: List[Union[LeaveRecord, TrackingRecord]]
    fuzzy_matches: List[FuzzyMatch] = field(default_factory=list)


def best_match(key: str, people: Sequence[Person], threshold: float) -> Tuple[Optional[Person], float]:
    best: Optional[Person] = None
    best_score = 0.0
    for p in people:
        score = similarity(key, p.normalized_name)
        if score > threshold and score > best_score:
            best = p
            best_score = score
    return best, best_score


def link_records(
    records: Sequence[LinkableT],
    people: Sequence[Person],
    threshold: float = FUZZY_THRESHOLD,
    record_type: str = "record",
    logger: logging.Logger = LOG,
) -> LinkResult:
    person_by_key: Dict[str, Person] = {}
    for p in people:
        person_by_key.setdefault(p.base_key, p)

    result = LinkResult(linked=[], unlinked=[])

    for record in records:
        person = person_by_key.get(record.base_key)
        if person is not None:
            result.linked.append(replace(record, person_id=person.person_id))
            continue

        match, score = best_match(record.normalized_name, people, threshold)
        if match is not None:
            result.linked.append(replace(record, person_id=match.person_id))
            result.fuzzy_matches.append(
                FuzzyMatch(record_name=record.full_name, person_name=match.full_name, person_id=match.person_id, score=score)
            )
            logger.info(f'  Fuzzy matched "{record.full_name}" -> "{match.full_name}" ({round(score * 100)}%)')
        else:
            result.unlinked.append(record)

    if result.unlinked:
        logger.info(f"  {len(result.unlinked)} {record_type} records could not be linked")
    return result


def create_pending_people(
    unlinked_tracking: Sequence[TrackingRecord],
    existing_people: Sequence[Person],
    id_factory: Callable[[], str] = new_id,
    now: Optional[str] = None,
) -> List[Person]:
    """One pending identity per unique baseKey among unlinked tracking rows."""
    now = now or utc_now_iso()
    known = {p.base_key for p in existing_people}
    pending: List[Person] = []

    for track in unlinked_tracking:
        if track.base_key in known:
            continue
        pending.append(
            Person(
                full_name=track.full_name,
                normalized_name=track.normalized_name,
                category=None,
                role=None,
                job_title=track.profession or None,
                status=PersonStatus.PENDING,
                needs_review=True,
                sources=[track.source] if track.source else [],
                tracking_info=track.info(),
                person_id=id_factory(),
                created_at=now,
                updated_at=now,
            )
        )
        known.add(track.base_key)

    return pending


def link_to_pending(unlinked_tracking: Sequence[TrackingRecord], pending: Sequence[Person]) -> List[TrackingRecord]:
    by_key = {p.base_key: p for p in pending}
    linked: List[TrackingRecord] = []
    for track in unlinked_tracking:
        person = by_key.get(track.base_key)
        if person is not None:
            linked.append(replace(track, person_id=person.person_id))
    return linked
