from __future__ import annotations

import logging
from typing import Dict, List

from .config import DEPARTURES_SOURCE_TAG
from .models import ConflictRecord, DepartureRecord, Person


LOG = logging.getLogger("personnel_etl")


def detect_conflicts(
    active_people: List[Person],
    departures: List[DepartureRecord],
    logger: logging.Logger = LOG,
) -> List[ConflictRecord]:
    """
    One conflict per departure whose baseKey is also on the active roster.
    Neither side is removed; resolution is an admin action.
    """
    logger.info("Detecting active/departed conflicts...")

    active_by_key: Dict[str, Person] = {}
    for p in active_people:
        active_by_key.setdefault(p.base_key, p)

    conflicts: List[ConflictRecord] = []
    for dep in departures:
        person = active_by_key.get(dep.base_key)
        if person is None:
            continue
        conflicts.append(
            ConflictRecord(
                full_name=dep.full_name,
                base_key=dep.base_key,
                category=person.category or dep.category,
                active_source=person.source.sheet if person.source else None,
                departed_source=DEPARTURES_SOURCE_TAG,
                exit_date=dep.exit_date,
                person_id=person.person_id,
                departure_id=dep.departure_id,
                active_provenance=person.source,
                departure_provenance=dep.source,
            )
        )

    logger.info(f"  Found {len(conflicts)} active/departed conflicts")
    return conflicts
