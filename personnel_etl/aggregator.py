"""
Assemble the output document: people, auxiliary records, review items,
statistics, taxonomy and audit trail.

In merge mode the prior document's admin hash, remote-store configuration,
tag map and audit log are carried into the new document; ingestion never
resets them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .config import PipelineSettings
from .models import (
    AuditAction,
    AuditEntry,
    ConflictRecord,
    DepartureRecord,
    Document,
    DuplicateCandidate,
    LeaveRecord,
    Person,
    PersonStatus,
    TrackingRecord,
    new_id,
    utc_now_iso,
)
from .taxonomy import Category, Role
from .validator import UNCATEGORIZED, ValidationResult


LOG = logging.getLogger("personnel_etl")

UNASSIGNED = "UNASSIGNED"

DEFAULT_REMOTE_STORE: Dict[str, Any] = {"enabled": False, "gistId": None, "repoUrl": None}

ROSTER_STATUSES = (PersonStatus.ACTIVE, PersonStatus.CONFLICT)


# ----------------
# Identifiers
# ----------------

def assign_person_ids(
    people: Iterable[Person],
    prior: Optional[Document] = None,
    id_factory: Callable[[], str] = new_id,
    now: Optional[str] = None,
) -> None:
    """
    Give every person an id and timestamps. A person already present in the
    prior document (same baseKey) keeps its id and creation time.
    """
    now = now or utc_now_iso()
    known: Dict[str, Person] = {}
    if prior is not None:
        for p in prior.people:
            if p.person_id:
                known.setdefault(p.base_key, p)

    for person in people:
        previous = known.get(person.base_key)
        if person.person_id is None:
            person.person_id = previous.person_id if previous else id_factory()
        person.created_at = person.created_at or (previous.created_at if previous else None) or now
        person.updated_at = now


def assign_record_ids(records: Iterable[Any], attr: str, id_factory: Callable[[], str] = new_id, now: Optional[str] = None) -> None:
    now = now or utc_now_iso()
    for record in records:
        if getattr(record, attr) is None:
            setattr(record, attr, id_factory())
        record.created_at = record.created_at or now
        record.updated_at = record.updated_at or now


# ----------------
# Statistics
# ----------------

def compute_stats(doc: Document) -> Dict[str, Any]:
    people = doc.people
    roster = [p for p in people if p.status in ROSTER_STATUSES]

    by_category: Dict[str, int] = {c.value: 0 for c in Category}
    by_category[UNCATEGORIZED] = 0
    for p in roster:
        by_category[p.category.value if p.category else UNCATEGORIZED] += 1

    by_role: Dict[str, int] = {r.value: 0 for r in Role}
    by_role[UNASSIGNED] = 0
    for p in people:
        by_role[p.role.value if p.role else UNASSIGNED] += 1

    by_status: Dict[str, int] = {s.value: 0 for s in PersonStatus}
    for p in people:
        by_status[p.status.value] += 1

    return {
        "totalPeople": len(people),
        "activeRosterCount": len(roster),
        "pendingCount": by_status[PersonStatus.PENDING.value],
        "departedCount": len(doc.departures),
        "conflictCount": len(doc.conflicts),
        "needsReviewCount": sum(1 for p in people if p.needs_review),
        "unmappedTagsCount": sum(1 for v in doc.tag_map.values() if v is None),
        "duplicateCandidatesCount": len(doc.duplicate_candidates),
        "leavesCount": len(doc.leaves),
        "unlinkedLeavesCount": len(doc.unlinked_leaves),
        "trackingCount": len(doc.tracking),
        "byCategory": by_category,
        "byRole": by_role,
        "byStatus": by_status,
    }


# ----------------
# Merge with prior
# ----------------

@dataclass
class CarriedState:
    admin_hash: Optional[str] = None
    remote_store: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_REMOTE_STORE))
    tag_map: Dict[str, Optional[str]] = field(default_factory=dict)
    audit: List[AuditEntry] = field(default_factory=list)


def carry_forward(prior: Optional[Document]) -> CarriedState:
    if prior is None:
        return CarriedState()
    return CarriedState(
        admin_hash=prior.meta.get("adminHash"),
        remote_store=dict(prior.meta.get("remoteStore") or DEFAULT_REMOTE_STORE),
        tag_map=dict(prior.tag_map),
        audit=list(prior.audit),
    )


def merge_tag_map(prior: Mapping[str, Optional[str]], unmapped_tags: Iterable[str]) -> Dict[str, Optional[str]]:
    """New unmapped tags enter as None; existing admin mappings are kept."""
    merged = dict(prior)
    for tag in unmapped_tags:
        if not merged.get(tag):
            merged[tag] = None
    return merged


# ----------------
# Assembly
# ----------------

def assemble_document(
    *,
    people: List[Person],
    departures: List[DepartureRecord],
    leaves: List[LeaveRecord],
    unlinked_leaves: List[LeaveRecord],
    tracking: List[TrackingRecord],
    conflicts: List[ConflictRecord],
    duplicate_candidates: List[DuplicateCandidate],
    validation: ValidationResult,
    unmapped_tags: List[str],
    settings: PipelineSettings,
    prior: Optional[Document] = None,
    now: Optional[str] = None,
    logger: logging.Logger = LOG,
) -> Document:
    now = now or utc_now_iso()
    carried = carry_forward(prior)

    doc = Document(
        meta={
            "generatedAt": now,
            "lastUpdated": now,
            "version": settings.document_version,
            "sourceFiles": settings.source_files(),
            "adminHash": carried.admin_hash,
            "remoteStore": carried.remote_store,
            "validation": validation.to_dict(),
        },
        tag_map=merge_tag_map(carried.tag_map, unmapped_tags),
        people=people,
        leaves=leaves,
        tracking=tracking,
        departures=departures,
        duplicate_candidates=duplicate_candidates,
        conflicts=conflicts,
        audit=carried.audit,
        unlinked_leaves=unlinked_leaves,
    )
    stats = compute_stats(doc)
    doc.meta["stats"] = stats

    doc.audit.insert(
        0,
        AuditEntry(
            action=AuditAction.INGEST,
            entity_type="database",
            entity_id=None,
            details={
                "merge": prior is not None,
                "isValid": validation.is_valid,
                "totalPeople": stats["totalPeople"],
                "activeRosterCount": stats["activeRosterCount"],
                "pendingCount": stats["pendingCount"],
                "departedCount": stats["departedCount"],
            },
            timestamp=now,
        ),
    )
    del doc.audit[settings.audit_limit:]

    logger.debug(f"Assembled document: {stats['totalPeople']} people, {len(doc.audit)} audit entries")
    return doc
