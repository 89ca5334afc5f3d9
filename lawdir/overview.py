"""
Admin overview of the directory: every lawyer and firm regardless of
status, and the dashboard counters.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from .db.models import (
    ContactMessage, Lawyer, LawFirm, PendingChange, Review, User,
    ChangeStatus, MessageStatus, ProfileStatus, ReviewStatus,
)
from .errors import ValidationFailed
from .reviews import rating_summary


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _status_filter(status: Optional[str]) -> Optional[ProfileStatus]:
    if not status:
        return None
    try:
        return ProfileStatus(status.strip().upper())
    except ValueError:
        raise ValidationFailed("Invalid status")


def list_lawyers(db: Session, status: Optional[str] = None, q: Optional[str] = None) -> List[Dict[str, Any]]:
    """Lawyers newest first, with firm and approved-review aggregate"""
    query = db.query(Lawyer).options(selectinload(Lawyer.firm), selectinload(Lawyer.user))
    wanted = _status_filter(status)
    if wanted:
        query = query.filter(Lawyer.status == wanted)
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(or_(
            Lawyer.first_name.ilike(like),
            Lawyer.last_name.ilike(like),
            (Lawyer.first_name + " " + Lawyer.last_name).ilike(like),
        ))

    rows = []
    for lawyer in query.order_by(Lawyer.created_at.desc()).all():
        avg, count = rating_summary(db, lawyer_id=lawyer.id)
        rows.append({
            "id": lawyer.id,
            "slug": lawyer.slug,
            "name": lawyer.full_name,
            "email": lawyer.user.email if lawyer.user else None,
            "status": lawyer.status.value,
            "firm": {"id": lawyer.firm.id, "name": lawyer.firm.name} if lawyer.firm else None,
            "reviewCount": count,
            "avgRating": avg,
            "createdAt": _iso(lawyer.created_at),
            "updatedAt": _iso(lawyer.updated_at),
        })
    return rows


def list_firms(db: Session, status: Optional[str] = None, q: Optional[str] = None) -> List[Dict[str, Any]]:
    query = db.query(LawFirm).options(selectinload(LawFirm.owner), selectinload(LawFirm.lawyers))
    wanted = _status_filter(status)
    if wanted:
        query = query.filter(LawFirm.status == wanted)
    if q:
        query = query.filter(LawFirm.name.ilike(f"%{q.strip()}%"))

    rows = []
    for firm in query.order_by(LawFirm.created_at.desc()).all():
        avg, count = rating_summary(db, firm_id=firm.id)
        rows.append({
            "id": firm.id,
            "slug": firm.slug,
            "name": firm.name,
            "email": firm.email,
            "ownerEmail": firm.owner.email if firm.owner else None,
            "status": firm.status.value,
            "lawyerCount": len(firm.lawyers),
            "reviewCount": count,
            "avgRating": avg,
            "createdAt": _iso(firm.created_at),
        })
    return rows


def directory_stats(db: Session) -> Dict[str, int]:
    return {
        "users": db.query(User).count(),
        "lawyers": db.query(Lawyer).count(),
        "firms": db.query(LawFirm).count(),
        "reviews": db.query(Review).count(),
        "pendingChanges": db.query(PendingChange).filter(PendingChange.status == ChangeStatus.PENDING).count(),
        "pendingReviews": db.query(Review).filter(Review.status == ReviewStatus.PENDING).count(),
        "newMessages": db.query(ContactMessage).filter(ContactMessage.status == MessageStatus.NEW).count(),
    }
