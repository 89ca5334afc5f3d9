"""
Slug generation for public profile URLs.

Slugs are derived from the display name and made unique by trying a
numeric suffix (`jane-doe`, `jane-doe-1`, ...). When every candidate is taken a
millisecond timestamp suffix is used instead.
"""

import re
import time
from typing import Callable, Optional

from sqlalchemy.orm import Session

from .config import get_settings
from .db.models import Lawyer, LawFirm

_STRIP_RE = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATOR_RE = re.compile(r"[\s_-]+")


def generate_slug(text: str, fallback: str = "profile") -> str:
    """Lower-case, URL-safe slug. Empty results collapse to `fallback`."""
    slug = (text or "").lower().strip()
    slug = _STRIP_RE.sub("", slug)
    slug = _SEPARATOR_RE.sub("-", slug)
    slug = slug.strip("-")
    return slug or fallback


def lawyer_base_slug(first_name: str, last_name: str) -> str:
    return generate_slug(f"{first_name} {last_name}", fallback="lawyer")


def firm_base_slug(name: str) -> str:
    return generate_slug(name, fallback="firm")


def ensure_unique_slug(
    base_slug: str,
    exists: Callable[[str], bool],
    max_attempts: Optional[int] = None,
) -> str:
    """
    Return `base_slug` or the first free `base_slug-N` (N = 1..max_attempts).

    Args:
        base_slug: Candidate produced by generate_slug
        exists: Returns True when a slug is already taken
        max_attempts: Number of numeric suffixes to try

    Returns:
        A slug for which `exists` returned False, or a timestamp-suffixed
        slug when all candidates were taken.
    """
    if max_attempts is None:
        max_attempts = get_settings().slug_max_attempts

    if not exists(base_slug):
        return base_slug

    for attempt in range(1, max_attempts + 1):
        candidate = f"{base_slug}-{attempt}"
        if not exists(candidate):
            return candidate

    return f"{base_slug}-{int(time.time() * 1000)}"


def lawyer_slug_exists(db: Session, exclude_id: Optional[str] = None) -> Callable[[str], bool]:
    """Existence check over lawyer slugs, optionally ignoring one lawyer."""
    def _exists(slug: str) -> bool:
        query = db.query(Lawyer.id).filter(Lawyer.slug == slug)
        if exclude_id:
            query = query.filter(Lawyer.id != exclude_id)
        return query.first() is not None
    return _exists


def firm_slug_exists(db: Session, exclude_id: Optional[str] = None) -> Callable[[str], bool]:
    """Existence check over firm slugs, optionally ignoring one firm."""
    def _exists(slug: str) -> bool:
        query = db.query(LawFirm.id).filter(LawFirm.slug == slug)
        if exclude_id:
            query = query.filter(LawFirm.id != exclude_id)
        return query.first() is not None
    return _exists


def unique_lawyer_slug(db: Session, first_name: str, last_name: str, exclude_id: Optional[str] = None) -> str:
    return ensure_unique_slug(lawyer_base_slug(first_name, last_name), lawyer_slug_exists(db, exclude_id))


def unique_firm_slug(db: Session, name: str, exclude_id: Optional[str] = None) -> str:
    return ensure_unique_slug(firm_base_slug(name), firm_slug_exists(db, exclude_id))
