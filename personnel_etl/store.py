"""
Document store: owns one Document and exposes the admin mutations that
downstream collaborators call.

Every mutation:
- takes the admin session explicitly and rejects missing/unknown/expired ones
  (sessions are only issued by authenticate or the first set_admin_password)
- recomputes derived fields (day counts, exit month, name keys, stats)
- prepends one audit entry and returns it with the changed entity
"""

from __future__ import annotations

import contextlib
import hashlib
import hmac
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from .aggregator import compute_stats
from .config import AUDIT_LIMIT, SESSION_HOURS
from .exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .models import (
    MANUAL_SOURCE,
    AuditAction,
    AuditEntry,
    DepartureRecord,
    Document,
    LeaveRecord,
    LeaveType,
    Person,
    PersonStatus,
    Provenance,
    TrackingRecord,
    TrackingStatus,
    new_id,
    utc_now_iso,
)
from .normalize import days_between, normalize_name, parse_date
from .taxonomy import Category, Role, tag_key
from .validator import UNCATEGORIZED


LOG = logging.getLogger("personnel_etl")


# ----------------
# Persistence
# ----------------

def write_json_atomic(path: Path, data: Any) -> None:
    """
    Write JSON next to the target and rename over it, so readers never see
    a half-written file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False, indent=2)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp)
        raise


def read_document(path: Path) -> Document:
    with open(path, "r", encoding="utf-8") as fh:
        return Document.from_dict(json.load(fh))


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


# ----------------
# Session / results
# ----------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AdminSession:
    session_id: str
    created_at: datetime
    expires_at: datetime

    @classmethod
    def start(cls, hours: int = SESSION_HOURS, now: Optional[datetime] = None) -> "AdminSession":
        now = now or _utcnow()
        return cls(session_id=new_id(), created_at=now, expires_at=now + timedelta(hours=hours))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or _utcnow()) > self.expires_at


@dataclass(frozen=True)
class MutationResult:
    entity: Any
    audit: AuditEntry


# ----------------
# Field converters for updates
# ----------------

def _text(v: Any) -> str:
    return "" if v is None else str(v).strip()


def _optional_text(v: Any) -> Optional[str]:
    return _text(v) or None


def _category(v: Any) -> Optional[Category]:
    if v is None or v == "":
        return None
    category = Category.from_label(v)
    if category is None:
        raise ValidationError(f"Invalid category: {v!r}")
    return category


def _role(v: Any) -> Optional[Role]:
    if v is None or v == "":
        return None
    role = Role.from_label(v)
    if role is None:
        raise ValidationError(f"Invalid role: {v!r}")
    return role


def _person_status(v: Any) -> PersonStatus:
    try:
        return PersonStatus(v)
    except ValueError:
        raise ValidationError(f"Invalid status: {v!r}")


def _tracking_status(v: Any) -> Optional[TrackingStatus]:
    if v is None or v == "":
        return None
    status = TrackingStatus.from_label(v)
    if status is None:
        raise ValidationError(f"Invalid tracking status: {v!r}")
    return status


def _date(v: Any) -> Optional[str]:
    if v is None or v == "":
        return None
    parsed = parse_date(v)
    if parsed is None:
        raise ValidationError(f"Invalid date: {v!r}")
    return parsed


def _days(v: Any) -> int:
    try:
        days = int(v)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid day count: {v!r}")
    if days < 0:
        raise ValidationError("Day count cannot be negative")
    return days


def _bool(v: Any) -> bool:
    return bool(v)


PERSON_FIELDS: Dict[str, Callable[[Any], Any]] = {
    "full_name": _text,
    "category": _category,
    "role": _role,
    "job_title": _optional_text,
    "status": _person_status,
    "needs_review": _bool,
}

LEAVE_FIELDS: Dict[str, Callable[[Any], Any]] = {
    "start_date": _date,
    "end_date": _date,
    "days": _days,
    "leave_type": LeaveType.from_label,
    "note": _text,
}

TRACKING_FIELDS: Dict[str, Callable[[Any], Any]] = {
    "application_no": _text,
    "profession": _text,
    "status": _tracking_status,
    "expected_date": _date,
    "contact_person": _text,
    "notes": _text,
}

DEPARTURE_FIELDS: Dict[str, Callable[[Any], Any]] = {
    "full_name": _text,
    "category": _category,
    "job": _text,
    "entry_date": _date,
    "exit_date": _date,
    "total_days": _days,
}


def _convert(changes: Mapping[str, Any], allowed: Mapping[str, Callable[[Any], Any]], entity: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in changes.items():
        if key == "exit_month":
            raise ValidationError("exit_month is derived from exit_date and cannot be set")
        if key not in allowed:
            raise ValidationError(f"Unknown {entity} field: {key}")
        out[key] = allowed[key](value)
    return out


def _check_leave_dates(start: Optional[str], end: Optional[str]) -> None:
    if not start or not end:
        raise ValidationError("Leave needs a start and an end date")
    if end < start:
        raise ValidationError(f"Leave end date {end} is before start date {start}")


def _refresh_departure_review(dep: DepartureRecord) -> None:
    dep.needs_review = dep.category is None or bool(dep.unmapped_tags)


# ----------------
# Store
# ----------------

class DocumentStore:
    def __init__(self, document: Document, audit_limit: int = AUDIT_LIMIT, session_hours: int = SESSION_HOURS):
        self._doc = document
        self._audit_limit = audit_limit
        self._session_hours = session_hours
        self._sessions: Dict[str, AdminSession] = {}

    @classmethod
    def load(cls, path: Path, **kwargs: Any) -> "DocumentStore":
        return cls(read_document(path), **kwargs)

    @property
    def document(self) -> Document:
        return self._doc

    def save(self, path: Path) -> None:
        write_json_atomic(path, self._doc.to_dict())
        LOG.info(f"Saved document to {Path(path).resolve()}")

    def export_json(self) -> str:
        return json.dumps(self._doc.to_dict(), ensure_ascii=False, indent=2)

    # --- auth ---

    def authenticate(self, password: str, now: Optional[datetime] = None) -> AdminSession:
        admin_hash = self._doc.meta.get("adminHash")
        if not admin_hash:
            raise AuthenticationError("Admin password has not been set")
        if not hmac.compare_digest(hash_password(password), admin_hash):
            raise AuthenticationError("Invalid admin password")
        return self._issue_session(now)

    def logout(self, session: AdminSession) -> None:
        self._sessions.pop(session.session_id, None)

    def _issue_session(self, now: Optional[datetime] = None) -> AdminSession:
        session = AdminSession.start(self._session_hours, now)
        self._sessions[session.session_id] = session
        return session

    def set_admin_password(self, session: Optional[AdminSession], password: str) -> MutationResult:
        """
        The first password may be set without a session and returns a new
        session as the entity; changing it needs one.
        """
        bootstrap = not self._doc.meta.get("adminHash")
        if not bootstrap:
            self._authorize(session)
        if not password:
            raise ValidationError("Password cannot be empty")
        self._doc.meta["adminHash"] = hash_password(password)
        if bootstrap:
            session = self._issue_session()
        audit = self._audit(AuditAction.CONFIGURE, "meta", "adminHash", {}, session)
        return MutationResult(entity=session if bootstrap else None, audit=audit)

    def _authorize(self, session: Optional[AdminSession]) -> None:
        if session is None:
            raise AuthorizationError("Admin access required")
        if self._sessions.get(session.session_id) != session:
            raise AuthorizationError("Unknown admin session")
        if session.is_expired():
            self._sessions.pop(session.session_id, None)
            raise AuthorizationError("Admin session expired")

    # --- bookkeeping ---

    def _audit(
        self,
        action: AuditAction,
        entity_type: str,
        entity_id: Optional[str],
        details: Dict[str, Any],
        session: Optional[AdminSession],
    ) -> AuditEntry:
        now = utc_now_iso()
        entry = AuditEntry(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
            timestamp=now,
            admin_session=session.session_id if session else None,
        )
        self._doc.audit.insert(0, entry)
        del self._doc.audit[self._audit_limit:]
        self._doc.meta["lastUpdated"] = now
        self._doc.meta["stats"] = compute_stats(self._doc)
        return entry

    def _index(self, items: List[Any], attr: str, entity_id: str, label: str) -> int:
        for i, item in enumerate(items):
            if getattr(item, attr) == entity_id:
                return i
        raise NotFoundError(f"{label} not found: {entity_id}")

    # --- reads ---

    def person(self, person_id: str) -> Person:
        return self._doc.people[self._index(self._doc.people, "person_id", person_id, "Person")]

    def people(
        self,
        status: Optional[PersonStatus] = None,
        category: Optional[Category] = None,
        role: Optional[Role] = None,
        needs_review: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> List[Person]:
        out = list(self._doc.people)
        if status is not None:
            out = [p for p in out if p.status == status]
        if category is not None:
            out = [p for p in out if p.category == category]
        if role is not None:
            out = [p for p in out if p.role == role]
        if needs_review is not None:
            out = [p for p in out if p.needs_review == needs_review]
        if search:
            key = normalize_name(search)
            low = search.lower()
            out = [p for p in out if low in p.full_name.lower() or (key and key in p.normalized_name)]
        return out

    def departures_by_month(self) -> List[Dict[str, Any]]:
        ordered = sorted(self._doc.departures, key=lambda d: d.exit_date or "", reverse=True)
        groups: Dict[str, List[DepartureRecord]] = {}
        for dep in ordered:
            groups.setdefault(dep.exit_month, []).append(dep)

        result = []
        for month in sorted(groups, reverse=True):
            items = groups[month]
            by_category = {c.value: sum(1 for d in items if d.category == c) for c in Category}
            by_category[UNCATEGORIZED] = sum(1 for d in items if d.category is None)
            result.append(
                {
                    "month": month,
                    "departures": [d.to_dict() for d in items],
                    "count": len(items),
                    "byCategory": by_category,
                }
            )
        return result

    def unmapped_tags(self) -> List[str]:
        return [tag for tag, mapped in self._doc.tag_map.items() if mapped is None]

    # --- people ---

    def add_person(
        self,
        session: AdminSession,
        *,
        full_name: str,
        category: Any = None,
        role: Any = None,
        job_title: Optional[str] = None,
        status: Any = PersonStatus.ACTIVE,
    ) -> MutationResult:
        self._authorize(session)
        full_name = _text(full_name)
        if not full_name:
            raise ValidationError("Full name is required")

        now = utc_now_iso()
        person = Person(
            full_name=full_name,
            normalized_name=normalize_name(full_name),
            category=_category(category),
            role=_role(role),
            job_title=_optional_text(job_title),
            status=_person_status(status),
            sources=[Provenance(file=MANUAL_SOURCE)],
            person_id=new_id(),
            created_at=now,
            updated_at=now,
        )
        person.refresh_review_flag()
        self._doc.people.append(person)

        audit = self._audit(AuditAction.CREATE, "person", person.person_id, {"person": person.to_dict()}, session)
        return MutationResult(entity=person, audit=audit)

    def update_person(self, session: AdminSession, person_id: str, changes: Mapping[str, Any]) -> MutationResult:
        self._authorize(session)
        person = self.person(person_id)
        before = person.to_dict()
        values = _convert(changes, PERSON_FIELDS, "person")
        if "full_name" in values and not values["full_name"]:
            raise ValidationError("Full name is required")

        for key, value in values.items():
            setattr(person, key, value)
        if "full_name" in values:
            person.normalized_name = normalize_name(person.full_name)
        if "needs_review" not in values:
            person.refresh_review_flag()
        person.updated_at = utc_now_iso()

        audit = self._audit(AuditAction.UPDATE, "person", person_id, {"before": before, "after": person.to_dict()}, session)
        return MutationResult(entity=person, audit=audit)

    def delete_person(self, session: AdminSession, person_id: str) -> MutationResult:
        self._authorize(session)
        idx = self._index(self._doc.people, "person_id", person_id, "Person")
        person = self._doc.people.pop(idx)

        detached = 0
        for record in (*self._doc.leaves, *self._doc.tracking, *self._doc.departures):
            if record.person_id == person_id:
                record.person_id = None
                detached += 1

        audit = self._audit(
            AuditAction.DELETE, "person", person_id, {"person": person.to_dict(), "detachedRecords": detached}, session
        )
        return MutationResult(entity=person, audit=audit)

    def merge_people(self, session: AdminSession, person_ids: List[str]) -> MutationResult:
        """The first id survives; the others are absorbed into it."""
        self._authorize(session)
        person_ids = list(dict.fromkeys(person_ids))
        if len(person_ids) < 2:
            raise ValidationError("Need at least 2 distinct people to merge")
        people = [self.person(pid) for pid in person_ids]
        survivor, absorbed = people[0], people[1:]

        for other in absorbed:
            survivor.merged_from.extend(other.sources + other.merged_from)
            survivor.absorbed_ids.append(other.person_id)
            self._doc.people.remove(other)

        absorbed_ids = {p.person_id for p in absorbed}
        for record in (*self._doc.leaves, *self._doc.tracking, *self._doc.departures, *self._doc.conflicts):
            if record.person_id in absorbed_ids:
                record.person_id = survivor.person_id

        keys = {p.base_key for p in people}
        ids = set(person_ids)
        self._doc.duplicate_candidates = [
            c for c in self._doc.duplicate_candidates if not (keys & set(c.base_keys) or ids & set(c.person_ids))
        ]
        survivor.updated_at = utc_now_iso()

        audit = self._audit(AuditAction.MERGE, "person", survivor.person_id, {"merged": list(person_ids)}, session)
        return MutationResult(entity=survivor, audit=audit)

    def resolve_conflict(self, session: AdminSession, person_id: str, outcome: PersonStatus) -> MutationResult:
        """
        Settle an active/departed conflict.
        ACTIVE: the departure records were wrong and are removed.
        DEPARTED: the person leaves the active roster and the departures point at them.
        """
        self._authorize(session)
        if outcome not in (PersonStatus.ACTIVE, PersonStatus.DEPARTED):
            raise ValidationError(f"Conflict outcome must be active or departed, not {outcome!r}")
        person = self.person(person_id)

        conflicts = [c for c in self._doc.conflicts if c.person_id == person_id or c.base_key == person.base_key]
        if not conflicts:
            raise ValidationError(f"No conflict recorded for {person.full_name}")
        departure_ids = {c.departure_id for c in conflicts if c.departure_id}

        if outcome == PersonStatus.ACTIVE:
            self._doc.departures = [d for d in self._doc.departures if d.departure_id not in departure_ids]
        else:
            for dep in self._doc.departures:
                if dep.departure_id in departure_ids:
                    dep.person_id = person_id
        self._doc.conflicts = [c for c in self._doc.conflicts if c not in conflicts]

        person.status = outcome
        person.refresh_review_flag()
        person.updated_at = utc_now_iso()

        audit = self._audit(
            AuditAction.RESOLVE,
            "person",
            person_id,
            {"outcome": outcome.value, "departureIds": sorted(departure_ids)},
            session,
        )
        return MutationResult(entity=person, audit=audit)

    # --- leaves ---

    def add_leave(
        self,
        session: AdminSession,
        *,
        person_id: str,
        start_date: Any,
        end_date: Any,
        days: Optional[int] = None,
        leave_type: Any = LeaveType.NORMAL,
        note: str = "",
    ) -> MutationResult:
        self._authorize(session)
        person = self.person(person_id)
        start, end = _date(start_date), _date(end_date)
        _check_leave_dates(start, end)

        now = utc_now_iso()
        leave = LeaveRecord(
            full_name=person.full_name,
            normalized_name=person.normalized_name,
            start_date=start,
            end_date=end,
            days=_days(days) if days else days_between(start, end),
            leave_type=LeaveType.from_label(leave_type),
            note=_text(note),
            person_id=person_id,
            source=Provenance(file=MANUAL_SOURCE),
            leave_id=new_id(),
            created_at=now,
            updated_at=now,
        )
        self._doc.leaves.append(leave)

        audit = self._audit(AuditAction.CREATE, "leave", leave.leave_id, {"leave": leave.to_dict()}, session)
        return MutationResult(entity=leave, audit=audit)

    def update_leave(self, session: AdminSession, leave_id: str, changes: Mapping[str, Any]) -> MutationResult:
        self._authorize(session)
        leave = self._doc.leaves[self._index(self._doc.leaves, "leave_id", leave_id, "Leave record")]
        before = leave.to_dict()
        values = _convert(changes, LEAVE_FIELDS, "leave")

        start = values.get("start_date", leave.start_date)
        end = values.get("end_date", leave.end_date)
        _check_leave_dates(start, end)

        for key, value in values.items():
            setattr(leave, key, value)
        if ("start_date" in values or "end_date" in values) and not values.get("days"):
            leave.days = days_between(leave.start_date, leave.end_date)
        leave.updated_at = utc_now_iso()

        audit = self._audit(AuditAction.UPDATE, "leave", leave_id, {"before": before, "after": leave.to_dict()}, session)
        return MutationResult(entity=leave, audit=audit)

    def delete_leave(self, session: AdminSession, leave_id: str) -> MutationResult:
        self._authorize(session)
        leave = self._doc.leaves.pop(self._index(self._doc.leaves, "leave_id", leave_id, "Leave record"))
        audit = self._audit(AuditAction.DELETE, "leave", leave_id, {"leave": leave.to_dict()}, session)
        return MutationResult(entity=leave, audit=audit)

    # --- tracking ---

    def add_tracking(
        self,
        session: AdminSession,
        *,
        person_id: str,
        application_no: str = "",
        profession: str = "",
        status: Any = TrackingStatus.PRE_APPROVAL_GRANTED,
        expected_date: Any = None,
        contact_person: str = "",
        notes: str = "",
    ) -> MutationResult:
        self._authorize(session)
        person = self.person(person_id)

        now = utc_now_iso()
        record = TrackingRecord(
            full_name=person.full_name,
            normalized_name=person.normalized_name,
            application_no=_text(application_no),
            profession=_text(profession),
            status=_tracking_status(status),
            expected_date=_date(expected_date),
            contact_person=_text(contact_person),
            notes=_text(notes),
            person_id=person_id,
            source=Provenance(file=MANUAL_SOURCE),
            tracking_id=new_id(),
            created_at=now,
            updated_at=now,
        )
        self._doc.tracking.append(record)

        audit = self._audit(AuditAction.CREATE, "tracking", record.tracking_id, {"tracking": record.to_dict()}, session)
        return MutationResult(entity=record, audit=audit)

    def update_tracking(self, session: AdminSession, tracking_id: str, changes: Mapping[str, Any]) -> MutationResult:
        self._authorize(session)
        record = self._doc.tracking[self._index(self._doc.tracking, "tracking_id", tracking_id, "Tracking record")]
        before = record.to_dict()

        for key, value in _convert(changes, TRACKING_FIELDS, "tracking").items():
            setattr(record, key, value)
        record.updated_at = utc_now_iso()

        audit = self._audit(
            AuditAction.UPDATE, "tracking", tracking_id, {"before": before, "after": record.to_dict()}, session
        )
        return MutationResult(entity=record, audit=audit)

    def delete_tracking(self, session: AdminSession, tracking_id: str) -> MutationResult:
        self._authorize(session)
        record = self._doc.tracking.pop(self._index(self._doc.tracking, "tracking_id", tracking_id, "Tracking record"))
        audit = self._audit(AuditAction.DELETE, "tracking", tracking_id, {"tracking": record.to_dict()}, session)
        return MutationResult(entity=record, audit=audit)

    # --- departures ---

    def add_departure(
        self,
        session: AdminSession,
        *,
        full_name: str,
        category: Any = None,
        job: str = "",
        entry_date: Any = None,
        exit_date: Any = None,
        total_days: Optional[int] = None,
        person_id: Optional[str] = None,
    ) -> MutationResult:
        self._authorize(session)
        full_name = _text(full_name)
        if not full_name:
            raise ValidationError("Full name is required")
        if person_id is not None:
            self.person(person_id)

        entry, exit_ = _date(entry_date), _date(exit_date)
        now = utc_now_iso()
        dep = DepartureRecord(
            full_name=full_name,
            normalized_name=normalize_name(full_name),
            category=_category(category),
            job=_text(job),
            entry_date=entry,
            exit_date=exit_,
            total_days=_days(total_days) if total_days else days_between(entry, exit_),
            person_id=person_id,
            source=Provenance(file=MANUAL_SOURCE),
            departure_id=new_id(),
            created_at=now,
            updated_at=now,
        )
        _refresh_departure_review(dep)
        self._doc.departures.append(dep)

        audit = self._audit(AuditAction.CREATE, "departure", dep.departure_id, {"departure": dep.to_dict()}, session)
        return MutationResult(entity=dep, audit=audit)

    def update_departure(self, session: AdminSession, departure_id: str, changes: Mapping[str, Any]) -> MutationResult:
        self._authorize(session)
        dep = self._doc.departures[self._index(self._doc.departures, "departure_id", departure_id, "Departure record")]
        before = dep.to_dict()
        values = _convert(changes, DEPARTURE_FIELDS, "departure")

        for key, value in values.items():
            setattr(dep, key, value)
        if "full_name" in values:
            dep.normalized_name = normalize_name(dep.full_name)
        if ("entry_date" in values or "exit_date" in values) and not values.get("total_days"):
            dep.total_days = days_between(dep.entry_date, dep.exit_date)
        _refresh_departure_review(dep)
        dep.updated_at = utc_now_iso()

        audit = self._audit(
            AuditAction.UPDATE, "departure", departure_id, {"before": before, "after": dep.to_dict()}, session
        )
        return MutationResult(entity=dep, audit=audit)

    def delete_departure(self, session: AdminSession, departure_id: str) -> MutationResult:
        self._authorize(session)
        idx = self._index(self._doc.departures, "departure_id", departure_id, "Departure record")
        dep = self._doc.departures.pop(idx)
        audit = self._audit(AuditAction.DELETE, "departure", departure_id, {"departure": dep.to_dict()}, session)
        return MutationResult(entity=dep, audit=audit)

    # --- taxonomy / configuration ---

    def map_tag(self, session: AdminSession, tag: str, category: Any) -> MutationResult:
        self._authorize(session)
        key = tag_key(tag)
        if not key:
            raise ValidationError("Tag is required")
        target = _category(category)
        if target is None:
            raise ValidationError("A category is required to map a tag")

        self._doc.tag_map[key] = target.value
        now = utc_now_iso()
        updated = 0
        for person in self._doc.people:
            if key in person.unmapped_tags:
                person.category = target
                person.unmapped_tags = [t for t in person.unmapped_tags if t != key]
                person.refresh_review_flag()
                person.updated_at = now
                updated += 1
        for dep in self._doc.departures:
            if key in dep.unmapped_tags:
                dep.category = target
                dep.unmapped_tags = [t for t in dep.unmapped_tags if t != key]
                _refresh_departure_review(dep)
                dep.updated_at = now
                updated += 1

        audit = self._audit(
            AuditAction.TAG_MAP, "taxonomy", key, {"category": target.value, "updatedRecords": updated}, session
        )
        return MutationResult(entity={"tag": key, "category": target.value}, audit=audit)

    def configure_remote_store(self, session: AdminSession, gist_id: str) -> MutationResult:
        self._authorize(session)
        config = {"enabled": True, "gistId": _text(gist_id) or None, "repoUrl": None}
        self._doc.meta["remoteStore"] = config
        audit = self._audit(AuditAction.CONFIGURE, "meta", "remoteStore", {"remoteStore": config}, session)
        return MutationResult(entity=config, audit=audit)

    def import_document(self, session: AdminSession, data: Mapping[str, Any]) -> MutationResult:
        self._authorize(session)
        imported = Document.from_dict(dict(data))
        if not imported.meta.get("adminHash") and self._doc.meta.get("adminHash"):
            imported.meta["adminHash"] = self._doc.meta["adminHash"]
        self._doc = imported

        audit = self._audit(AuditAction.IMPORT, "database", "full", {"recordCount": len(imported.people)}, session)
        return MutationResult(entity=imported, audit=audit)
