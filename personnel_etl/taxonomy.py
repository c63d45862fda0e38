"""
Fixed taxonomy: 8 categories, 12 roles. Immutable at runtime.

Category membership of roster people comes from the sheet they appear on.
Free-text tags from other sheets (departures employer column) are classified
here against the categories, the roles and the admin tag map.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .normalize import normalize_name


class Category(str, Enum):
    REPSAM = "REPSAM"
    KALMES = "KALMES"
    NESAT = "NEŞAT"
    BANGLADES = "BANGLADEŞ"
    OZBEK = "ÖZBEK"
    TURKMEN = "TÜRKMEN"
    ZIMBAVE = "ZİMBAVE"
    CAPRA = "CAPRA"

    @classmethod
    def from_label(cls, label: Any) -> Optional["Category"]:
        """Match a free-text label ignoring case, diacritics and spacing."""
        if isinstance(label, Category):
            return label
        return _CATEGORY_BY_KEY.get(normalize_name(label))


class Role(str, Enum):
    CAPRA_ISVEREN = "CAPRA İŞVEREN"
    CAPRA_DIREKTOR = "CAPRA DİREKTÖR"
    REPSAM_ISVEREN = "REPSAM İŞVEREN"
    REPSAM_DIREKTOR = "REPSAM DİREKTÖR"
    ULKE_KOORDINATORU = "ÜLKE KOORDİNATÖRÜ"
    MIMAR = "MİMAR"
    MUHENDIS = "MÜHENDİS"
    FORMEN = "FORMEN"
    ISG = "İSG"
    OFIS_PERSONELI = "OFİS PERSONELİ"
    PROJE_MUDURU = "PROJE MÜDÜRÜ"
    HIZMETLI = "HİZMETLİ"

    @classmethod
    def from_label(cls, label: Any) -> Optional["Role"]:
        if isinstance(label, Role):
            return label
        return _ROLE_BY_KEY.get(normalize_name(label))


CATEGORIES = tuple(Category)
ROLES = tuple(Role)

_CATEGORY_BY_KEY: Dict[str, Category] = {normalize_name(c.value): c for c in Category}
_ROLE_BY_KEY: Dict[str, Role] = {normalize_name(r.value): r for r in Role}

# Known misspellings seen in the source sheets, keyed by normalized form.
# Case, diacritic and whitespace variants need no entry: lookups are normalized.
ROLE_TYPO_FIXES: Dict[str, str] = {
    "RPSAM ISVEREN": "REPSAM İŞVEREN",
    "RPSAM DIREKTOR": "REPSAM DİREKTÖR",
    "RPSAM": "REPSAM",
    "IZMETLI": "HİZMETLİ",
}

GENERIC_EMPLOYER = "ISVEREN"
GENERIC_DIRECTOR = "DIREKTOR"

# Generic employer/director roles only exist for these categories
_CONTEXT_ROLES: Dict[Category, Dict[str, Role]] = {
    Category.REPSAM: {GENERIC_EMPLOYER: Role.REPSAM_ISVEREN, GENERIC_DIRECTOR: Role.REPSAM_DIREKTOR},
    Category.CAPRA: {GENERIC_EMPLOYER: Role.CAPRA_ISVEREN, GENERIC_DIRECTOR: Role.CAPRA_DIREKTOR},
}

# Roles that imply a category
ROLE_TO_CATEGORY: Dict[Role, Category] = {
    Role.CAPRA_ISVEREN: Category.CAPRA,
    Role.CAPRA_DIREKTOR: Category.CAPRA,
    Role.REPSAM_ISVEREN: Category.REPSAM,
    Role.REPSAM_DIREKTOR: Category.REPSAM,
}


def fix_typos(raw: Any) -> str:
    key = normalize_name(raw)
    fixed = ROLE_TYPO_FIXES.get(key)
    return normalize_name(fixed) if fixed else key


def normalize_role(raw_role: Any, category_context: Optional[Category] = None) -> Optional[Role]:
    """
    Map a raw role cell to a Role.

    - known typos are corrected first
    - generic İŞVEREN / DİREKTÖR get the sheet's category as prefix (REPSAM, CAPRA)
    - a category name is not a role
    - anything else returns None and is kept by the caller as job title
    """
    if not isinstance(raw_role, str) or not raw_role.strip():
        return None

    key = fix_typos(raw_role)

    if category_context is not None and category_context in _CONTEXT_ROLES:
        by_generic = _CONTEXT_ROLES[category_context]
        for generic, role in by_generic.items():
            if generic in key.split():
                return role

    return _ROLE_BY_KEY.get(key)


def job_title_for(raw_role: Any, role: Optional[Role]) -> Optional[str]:
    """Unrecognized role text is kept verbatim as job title, category names excepted."""
    if role is not None:
        return None
    text = (raw_role or "").strip() if isinstance(raw_role, str) else ""
    if not text or Category.from_label(text) is not None:
        return None
    return text


@dataclass(frozen=True)
class TagClassification:
    category: Optional[Category]
    role: Optional[Role]
    needs_review: bool
    unmapped_tag: Optional[str]


def tag_key(raw_tag: Any) -> str:
    """Tag map keys: trimmed, upper-cased source text."""
    if not isinstance(raw_tag, str):
        return ""
    return " ".join(raw_tag.split()).upper()


def classify_tag(raw_tag: Any, tag_map: Optional[Mapping[str, Optional[str]]] = None) -> TagClassification:
    """
    Classify a free-text employer/category tag.

    Order: admin tag map, category name, role name (with implied category),
    otherwise unmapped. An empty tag carries nothing to map but still needs review.
    """
    tag = tag_key(raw_tag)
    if not tag:
        return TagClassification(category=None, role=None, needs_review=True, unmapped_tag=None)

    fixed = fix_typos(tag)

    mapped = (tag_map or {}).get(tag)
    if mapped:
        category = Category.from_label(mapped)
        if category is not None:
            return TagClassification(category=category, role=None, needs_review=False, unmapped_tag=None)

    category = _CATEGORY_BY_KEY.get(fixed)
    if category is not None:
        return TagClassification(category=category, role=None, needs_review=False, unmapped_tag=None)

    role = _ROLE_BY_KEY.get(fixed)
    if role is not None:
        implied = ROLE_TO_CATEGORY.get(role)
        return TagClassification(category=implied, role=role, needs_review=implied is None, unmapped_tag=None)

    return TagClassification(category=None, role=None, needs_review=True, unmapped_tag=tag)
