"""
Entities of the output document.

Python attributes are snake_case; the JSON document (the contract with the UI,
local persistence and remote sync) uses camelCase keys. Every entity converts
both ways with to_dict / from_dict.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import ValidationError
from .normalize import month_key, normalize_name
from .taxonomy import CATEGORIES, ROLES, Category, Role


MANUAL_SOURCE = "manual"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_id() -> str:
    return str(uuid.uuid4())


def _value(e: Optional[Enum]) -> Optional[str]:
    return e.value if e is not None else None


# ------
# Enums
# ------

class PersonStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    DEPARTED = "departed"
    CONFLICT = "conflict"

    @classmethod
    def parse(cls, value: Any) -> "PersonStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.ACTIVE


class LeaveType(str, Enum):
    NORMAL = "NORMAL"
    UNPAID = "ÜCRETSİZ"

    @classmethod
    def from_label(cls, label: Any) -> "LeaveType":
        if isinstance(label, LeaveType):
            return label
        return cls.UNPAID if "UCRETSIZ" in normalize_name(label) else cls.NORMAL


class TrackingStatus(str, Enum):
    PRE_APPROVAL_GRANTED = "ÖN İZNİ ONAYLANDI"
    REFERRED_TO_HEALTH = "SAĞLIĞA SEVK EDİLECEK"
    HEALTH_REFERRAL_COMPLETE = "SAĞLIĞA SEVK EDİLDİ"

    @classmethod
    def from_label(cls, label: Any) -> Optional["TrackingStatus"]:
        if isinstance(label, TrackingStatus):
            return label
        key = normalize_name(label)
        if not key:
            return None
        for status in cls:
            if normalize_name(status.value) == key:
                return status
        words = key.split()
        if "ONAYLANDI" in words:
            return cls.PRE_APPROVAL_GRANTED
        if "EDILECEK" in words:
            return cls.REFERRED_TO_HEALTH
        if "EDILDI" in words:
            return cls.HEALTH_REFERRAL_COMPLETE
        return None


class DuplicateKind(str, Enum):
    AMBIGUOUS_DUPLICATE = "AMBIGUOUS_DUPLICATE"
    NEAR_DUPLICATE = "NEAR_DUPLICATE"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    TAG_MAP = "TAG_MAP"
    MERGE = "MERGE"
    RESOLVE = "RESOLVE"
    CONFIGURE = "CONFIGURE"
    IMPORT = "IMPORT"
    INGEST = "INGEST"


# ----------------
# Shared pieces
# ----------------

@dataclass
class Provenance:
    file: str
    sheet: Optional[str] = None
    row: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"file": self.file, "sheet": self.sheet, "row": self.row}

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> Optional["Provenance"]:
        if not d:
            return None
        return cls(file=d.get("file") or d.get("type") or MANUAL_SOURCE, sheet=d.get("sheet"), row=d.get("row"))


def _sources(items: Optional[List[Dict[str, Any]]]) -> List[Provenance]:
    return [p for p in (Provenance.from_dict(i) for i in (items or [])) if p is not None]


@dataclass
class TrackingInfo:
    application_no: str = ""
    profession: str = ""
    status: Optional[TrackingStatus] = None
    expected_date: Optional[str] = None
    contact_person: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applicationNo": self.application_no,
            "profession": self.profession,
            "status": _value(self.status),
            "expectedDate": self.expected_date,
            "contactPerson": self.contact_person,
        }

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> Optional["TrackingInfo"]:
        if not d:
            return None
        return cls(
            application_no=d.get("applicationNo") or "",
            profession=d.get("profession") or "",
            status=TrackingStatus.from_label(d.get("status")),
            expected_date=d.get("expectedDate"),
            contact_person=d.get("contactPerson") or "",
        )


# ----------------
# People
# ----------------

@dataclass
class Person:
    full_name: str
    normalized_name: str
    category: Optional[Category] = None
    role: Optional[Role] = None
    job_title: Optional[str] = None
    status: PersonStatus = PersonStatus.ACTIVE
    needs_review: bool = False
    unmapped_tags: List[str] = field(default_factory=list)
    sources: List[Provenance] = field(default_factory=list)
    merged_from: List[Provenance] = field(default_factory=list)
    absorbed_ids: List[str] = field(default_factory=list)
    tracking_info: Optional[TrackingInfo] = None
    person_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def base_key(self) -> str:
        return self.normalized_name

    @property
    def source(self) -> Optional[Provenance]:
        return self.sources[0] if self.sources else None

    def refresh_review_flag(self) -> None:
        self.needs_review = (
            self.category is None
            or bool(self.unmapped_tags)
            or self.status in (PersonStatus.PENDING, PersonStatus.CONFLICT)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "personId": self.person_id,
            "baseKey": self.base_key,
            "fullName": self.full_name,
            "normalizedName": self.normalized_name,
            "category": _value(self.category),
            "role": _value(self.role),
            "jobTitle": self.job_title,
            "status": self.status.value,
            "needsReview": self.needs_review,
            "unmappedTags": list(self.unmapped_tags),
            "sources": [s.to_dict() for s in self.sources],
            "mergedFrom": [s.to_dict() for s in self.merged_from],
            "absorbedIds": list(self.absorbed_ids),
            "trackingInfo": self.tracking_info.to_dict() if self.tracking_info else None,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Person":
        full_name = d.get("fullName") or ""
        return cls(
            full_name=full_name,
            normalized_name=d.get("normalizedName") or d.get("baseKey") or normalize_name(full_name),
            category=Category.from_label(d.get("category")) if d.get("category") else None,
            role=Role.from_label(d.get("role")) if d.get("role") else None,
            job_title=d.get("jobTitle"),
            status=PersonStatus.parse(d.get("status")),
            needs_review=bool(d.get("needsReview", False)),
            unmapped_tags=list(d.get("unmappedTags") or []),
            sources=_sources(d.get("sources") or ([d["source"]] if d.get("source") else [])),
            merged_from=[p for p in (Provenance.from_dict(m) for m in (d.get("mergedFrom") or []) if isinstance(m, dict)) if p],
            absorbed_ids=list(d.get("absorbedIds") or []),
            tracking_info=TrackingInfo.from_dict(d.get("trackingInfo")),
            person_id=d.get("personId"),
            created_at=d.get("createdAt"),
            updated_at=d.get("updatedAt"),
        )


# ----------------
# Auxiliary records
# ----------------

@dataclass
class LeaveRecord:
    full_name: str
    normalized_name: str
    start_date: str
    end_date: str
    days: int
    leave_type: LeaveType = LeaveType.NORMAL
    note: str = ""
    person_id: Optional[str] = None
    source: Optional[Provenance] = None
    leave_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def base_key(self) -> str:
        return self.normalized_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.leave_id,
            "personId": self.person_id,
            "fullName": self.full_name,
            "normalizedName": self.normalized_name,
            "baseKey": self.base_key,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "days": self.days,
            "type": self.leave_type.value,
            "note": self.note,
            "source": self.source.to_dict() if self.source else None,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LeaveRecord":
        full_name = d.get("fullName") or ""
        return cls(
            full_name=full_name,
            normalized_name=d.get("normalizedName") or normalize_name(full_name),
            start_date=d.get("startDate") or "",
            end_date=d.get("endDate") or d.get("startDate") or "",
            days=int(d.get("days") or 0),
            leave_type=LeaveType.from_label(d.get("type")),
            note=d.get("note") or "",
            person_id=d.get("personId"),
            source=Provenance.from_dict(d.get("source")),
            leave_id=d.get("id") or d.get("leaveId"),
            created_at=d.get("createdAt"),
            updated_at=d.get("updatedAt"),
        )


@dataclass
class TrackingRecord:
    full_name: str
    normalized_name: str
    application_no: str = ""
    profession: str = ""
    status: Optional[TrackingStatus] = None
    expected_date: Optional[str] = None
    contact_person: str = ""
    notes: str = ""
    person_id: Optional[str] = None
    source: Optional[Provenance] = None
    tracking_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def base_key(self) -> str:
        return self.normalized_name

    def info(self) -> TrackingInfo:
        return TrackingInfo(
            application_no=self.application_no,
            profession=self.profession,
            status=self.status,
            expected_date=self.expected_date,
            contact_person=self.contact_person,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.tracking_id,
            "personId": self.person_id,
            "fullName": self.full_name,
            "normalizedName": self.normalized_name,
            "baseKey": self.base_key,
            "applicationNo": self.application_no,
            "profession": self.profession,
            "status": _value(self.status),
            "expectedDate": self.expected_date,
            "contactPerson": self.contact_person,
            "notes": self.notes,
            "source": self.source.to_dict() if self.source else None,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrackingRecord":
        full_name = d.get("fullName") or ""
        return cls(
            full_name=full_name,
            normalized_name=d.get("normalizedName") or normalize_name(full_name),
            application_no=d.get("applicationNo") or "",
            profession=d.get("profession") or "",
            status=TrackingStatus.from_label(d.get("status")),
            expected_date=d.get("expectedDate"),
            contact_person=d.get("contactPerson") or "",
            notes=d.get("notes") or "",
            person_id=d.get("personId"),
            source=Provenance.from_dict(d.get("source")),
            tracking_id=d.get("id") or d.get("trackingId"),
            created_at=d.get("createdAt"),
            updated_at=d.get("updatedAt"),
        )


@dataclass
class DepartureRecord:
    full_name: str
    normalized_name: str
    category: Optional[Category] = None
    job: str = ""
    entry_date: Optional[str] = None
    exit_date: Optional[str] = None
    total_days: int = 0
    needs_review: bool = False
    unmapped_tags: List[str] = field(default_factory=list)
    person_id: Optional[str] = None
    source: Optional[Provenance] = None
    departure_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def base_key(self) -> str:
        return self.normalized_name

    @property
    def exit_month(self) -> str:
        return month_key(self.exit_date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.departure_id,
            "personId": self.person_id,
            "fullName": self.full_name,
            "normalizedName": self.normalized_name,
            "baseKey": self.base_key,
            "category": _value(self.category),
            "job": self.job,
            "entryDate": self.entry_date,
            "exitDate": self.exit_date,
            "totalDays": self.total_days,
            "exitMonth": self.exit_month,
            "needsReview": self.needs_review,
            "unmappedTags": list(self.unmapped_tags),
            "source": self.source.to_dict() if self.source else None,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DepartureRecord":
        full_name = d.get("fullName") or ""
        return cls(
            full_name=full_name,
            normalized_name=d.get("normalizedName") or normalize_name(full_name),
            category=Category.from_label(d.get("category")) if d.get("category") else None,
            job=d.get("job") or "",
            entry_date=d.get("entryDate") or None,
            exit_date=d.get("exitDate") or None,
            total_days=int(d.get("totalDays") or 0),
            needs_review=bool(d.get("needsReview", False)),
            unmapped_tags=list(d.get("unmappedTags") or []),
            person_id=d.get("personId"),
            source=Provenance.from_dict(d.get("source")),
            departure_id=d.get("id"),
            created_at=d.get("createdAt"),
            updated_at=d.get("updatedAt"),
        )


# ----------------
# Review items
# ----------------

@dataclass
class DuplicateCandidate:
    kind: DuplicateKind
    base_keys: List[str]
    names: List[str]
    categories: List[Optional[Category]]
    similarity: float
    sources: List[Provenance] = field(default_factory=list)
    reason: str = ""
    person_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "baseKeys": list(self.base_keys),
            "names": list(self.names),
            "categories": [_value(c) for c in self.categories],
            "similarity": round(self.similarity, 4),
            "sources": [s.to_dict() for s in self.sources],
            "reason": self.reason,
            "personIds": list(self.person_ids),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DuplicateCandidate":
        return cls(
            kind=DuplicateKind(d.get("type") or DuplicateKind.AMBIGUOUS_DUPLICATE.value),
            base_keys=list(d.get("baseKeys") or [normalize_name(n) for n in d.get("names") or []]),
            names=list(d.get("names") or []),
            categories=[Category.from_label(c) if c else None for c in d.get("categories") or []],
            similarity=float(d.get("similarity", 1.0)),
            sources=_sources(d.get("sources")),
            reason=d.get("reason") or "",
            person_ids=list(d.get("personIds") or []),
        )


@dataclass
class ConflictRecord:
    full_name: str
    base_key: str
    category: Optional[Category]
    active_source: Optional[str]
    departed_source: str
    exit_date: Optional[str]
    person_id: Optional[str] = None
    departure_id: Optional[str] = None
    active_provenance: Optional[Provenance] = None
    departure_provenance: Optional[Provenance] = None
    kind: str = "ACTIVE_DEPARTED"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "fullName": self.full_name,
            "baseKey": self.base_key,
            "category": _value(self.category),
            "activeSource": self.active_source,
            "departedSource": self.departed_source,
            "exitDate": self.exit_date,
            "personId": self.person_id,
            "departureId": self.departure_id,
            "activeProvenance": self.active_provenance.to_dict() if self.active_provenance else None,
            "departureProvenance": self.departure_provenance.to_dict() if self.departure_provenance else None,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ConflictRecord":
        full_name = d.get("fullName") or ""
        return cls(
            full_name=full_name,
            base_key=d.get("baseKey") or normalize_name(full_name),
            category=Category.from_label(d.get("category")) if d.get("category") else None,
            active_source=d.get("activeSource"),
            departed_source=d.get("departedSource") or "",
            exit_date=d.get("exitDate"),
            person_id=d.get("personId"),
            departure_id=d.get("departureId"),
            active_provenance=Provenance.from_dict(d.get("activeProvenance")),
            departure_provenance=Provenance.from_dict(d.get("departureProvenance")),
            kind=d.get("type") or "ACTIVE_DEPARTED",
        )


@dataclass
class AuditEntry:
    action: AuditAction
    entity_type: str
    entity_id: Optional[str]
    details: Dict[str, Any]
    timestamp: str
    admin_session: Optional[str] = None
    audit_id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.audit_id,
            "action": self.action.value,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "details": self.details,
            "timestamp": self.timestamp,
            "adminSession": self.admin_session,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AuditEntry":
        return cls(
            action=AuditAction(d.get("action")),
            entity_type=d.get("entityType") or "",
            entity_id=d.get("entityId"),
            details=d.get("details") or {},
            timestamp=d.get("timestamp") or "",
            admin_session=d.get("adminSession"),
            audit_id=d.get("id") or new_id(),
        )


# ----------------
# Document
# ----------------

@dataclass
class Document:
    meta: Dict[str, Any] = field(default_factory=dict)
    tag_map: Dict[str, Optional[str]] = field(default_factory=dict)
    people: List[Person] = field(default_factory=list)
    leaves: List[LeaveRecord] = field(default_factory=list)
    tracking: List[TrackingRecord] = field(default_factory=list)
    departures: List[DepartureRecord] = field(default_factory=list)
    duplicate_candidates: List[DuplicateCandidate] = field(default_factory=list)
    conflicts: List[ConflictRecord] = field(default_factory=list)
    audit: List[AuditEntry] = field(default_factory=list)
    unlinked_leaves: List[LeaveRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meta": self.meta,
            "taxonomy": {
                "categories": [c.value for c in CATEGORIES],
                "roles": [r.value for r in ROLES],
                "tagMap": dict(self.tag_map),
            },
            "people": [p.to_dict() for p in self.people],
            "leaves": [l.to_dict() for l in self.leaves],
            "tracking": [t.to_dict() for t in self.tracking],
            "departures": [d.to_dict() for d in self.departures],
            "duplicateCandidates": [c.to_dict() for c in self.duplicate_candidates],
            "conflicts": [c.to_dict() for c in self.conflicts],
            "audit": [a.to_dict() for a in self.audit],
            "unlinkedLeaves": [l.to_dict() for l in self.unlinked_leaves],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        if not isinstance(data, dict) or "people" not in data or "taxonomy" not in data:
            raise ValidationError("Invalid database structure: 'people' and 'taxonomy' are required")
        taxonomy = data.get("taxonomy") or {}
        return cls(
            meta=dict(data.get("meta") or {}),
            tag_map=dict(taxonomy.get("tagMap") or {}),
            people=[Person.from_dict(p) for p in data.get("people") or []],
            leaves=[LeaveRecord.from_dict(l) for l in data.get("leaves") or []],
            tracking=[TrackingRecord.from_dict(t) for t in data.get("tracking") or []],
            departures=[DepartureRecord.from_dict(d) for d in data.get("departures") or []],
            duplicate_candidates=[DuplicateCandidate.from_dict(c) for c in data.get("duplicateCandidates") or []],
            conflicts=[ConflictRecord.from_dict(c) for c in data.get("conflicts") or []],
            audit=[AuditEntry.from_dict(a) for a in data.get("audit") or []],
            unlinked_leaves=[LeaveRecord.from_dict(l) for l in data.get("unlinkedLeaves") or []],
        )
