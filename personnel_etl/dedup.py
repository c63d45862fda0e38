"""
Roster deduplication by normalized name (baseKey).

- first occurrence of a key is canonical
- same key again on a sheet already seen for that key: re-keyed row, dropped
- same key on another sheet: provenance merged into the canonical entry; when
  the categories differ an AMBIGUOUS_DUPLICATE candidate is recorded and the
  first-seen category is kept
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Set

from .config import NEAR_DUPLICATE_THRESHOLD
from .models import DuplicateCandidate, DuplicateKind, Person
from .normalize import similarity


LOG = logging.getLogger("personnel_etl")

AMBIGUOUS_REASON = "Same name appears in multiple category sheets"
NEAR_REASON = "Similar names in the active roster"


@dataclass
class DedupResult:
    people: List[Person]
    duplicate_candidates: List[DuplicateCandidate]


def deduplicate_people(people: List[Person], logger: logging.Logger = LOG) -> DedupResult:
    logger.info("Deduplicating people...")

    by_key: Dict[str, Person] = {}
    seen_sheets: Dict[str, Set[str]] = {}
    candidates: Dict[str, DuplicateCandidate] = {}

    for person in people:
        key = person.base_key
        sheet = person.source.sheet if person.source else None

        existing = by_key.get(key)
        if existing is None:
            by_key[key] = replace(person, sources=list(person.sources), merged_from=[])
            seen_sheets[key] = {sheet}
            continue

        if sheet in seen_sheets[key]:
            logger.debug(f"  Dropped same-sheet duplicate '{person.full_name}' ({sheet})")
            continue
        seen_sheets[key].add(sheet)

        if person.category != existing.category:
            cand = candidates.get(key)
            if cand is None:
                cand = DuplicateCandidate(
                    kind=DuplicateKind.AMBIGUOUS_DUPLICATE,
                    base_keys=[key],
                    names=[existing.full_name],
                    categories=[existing.category],
                    similarity=1.0,
                    sources=list(existing.sources[:1]),
                    reason=AMBIGUOUS_REASON,
                )
                candidates[key] = cand
            cand.names.append(person.full_name)
            cand.categories.append(person.category)
            cand.sources.extend(person.sources[:1])
            logger.info(
                f"  Ambiguous duplicate '{person.full_name}': "
                f"{existing.category.value if existing.category else None} vs "
                f"{person.category.value if person.category else None}"
            )

        existing.merged_from.extend(person.sources)

    deduplicated = list(by_key.values())
    logger.info(f"  Deduplicated: {len(people)} -> {len(deduplicated)}")
    logger.info(f"  Duplicate candidates: {len(candidates)}")
    return DedupResult(people=deduplicated, duplicate_candidates=list(candidates.values()))


def find_near_duplicates(
    people: List[Person],
    threshold: float = NEAR_DUPLICATE_THRESHOLD,
    logger: logging.Logger = LOG,
) -> List[DuplicateCandidate]:
    """
    Pairs of distinct canonical keys whose similarity strictly exceeds threshold.
    Full pairwise scan; fine for a roster of a few hundred people.
    """
    found: List[DuplicateCandidate] = []
    for i, a in enumerate(people):
        for b in people[i + 1:]:
            if a.base_key == b.base_key:
                continue
            score = similarity(a.base_key, b.base_key)
            if score > threshold:
                found.append(
                    DuplicateCandidate(
                        kind=DuplicateKind.NEAR_DUPLICATE,
                        base_keys=[a.base_key, b.base_key],
                        names=[a.full_name, b.full_name],
                        categories=[a.category, b.category],
                        similarity=score,
                        sources=[s for s in (a.source, b.source) if s is not None],
                        reason=NEAR_REASON,
                    )
                )
    if found:
        logger.info(f"  Near-duplicate candidates: {len(found)}")
    return found
