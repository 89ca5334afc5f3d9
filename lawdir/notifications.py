"""
In-app notifications, optionally mirrored to e-mail.
"""

import logging
from typing import List, Optional

from sqlalchemy import event
from sqlalchemy.orm import Session

from .config import get_settings
from .db.models import Notification, User, UserRole
from .email_utils import send_notification_email
from .errors import NotFound

logger = logging.getLogger(__name__)

OUTBOX_KEY = "notification_outbox"


def _mirror_to_email(db: Session, user: User, title: str, message: str, link: Optional[str]) -> None:
    """Queue an e-mail copy; it is sent only once the session commits"""
    if not get_settings().email_notifications_enabled:
        return
    db.info.setdefault(OUTBOX_KEY, []).append((user.id, user.email, title, message, link))


@event.listens_for(Session, "after_commit")
def _send_outbox(session: Session) -> None:
    for user_id, email, title, message, link in session.info.pop(OUTBOX_KEY, []):
        if not send_notification_email(email, title, message, link):
            logger.warning(f"Notification e-mail to user {user_id} was not delivered")


@event.listens_for(Session, "after_rollback")
def _drop_outbox(session: Session) -> None:
    dropped = session.info.pop(OUTBOX_KEY, [])
    if dropped:
        logger.info(f"Discarded {len(dropped)} notification e-mail(s) after rollback")


def notify_user(
    db: Session,
    user_id: str,
    type: str,
    title: str,
    message: str,
    link: Optional[str] = None,
) -> Optional[Notification]:
    """Create a notification for one user (no-op when the user is gone)"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"Skipping notification for missing user {user_id}")
        return None

    notification = Notification(user_id=user.id, type=type, title=title, message=message, link=link)
    db.add(notification)
    _mirror_to_email(db, user, title, message, link)
    return notification


def notify_admins(
    db: Session,
    type: str,
    title: str,
    message: str,
    link: Optional[str] = None,
) -> List[Notification]:
    """Create the same notification for every active admin"""
    admins = db.query(User).filter(User.role == UserRole.ADMIN, User.is_active == True).all()
    created = []
    for admin in admins:
        notification = Notification(user_id=admin.id, type=type, title=title, message=message, link=link)
        db.add(notification)
        _mirror_to_email(db, admin, title, message, link)
        created.append(notification)
    return created


def discard_unread_admin_notifications(db: Session, link: str) -> int:
    """Drop unread admin notifications pointing at `link` (used when a submission is superseded)"""
    admin_ids = [uid for (uid,) in db.query(User.id).filter(User.role == UserRole.ADMIN).all()]
    if not admin_ids:
        return 0
    return (
        db.query(Notification)
        .filter(
            Notification.link == link,
            Notification.read == False,
            Notification.user_id.in_(admin_ids),
        )
        .delete(synchronize_session="fetch")
    )


def list_notifications(db: Session, user_id: str, unread_only: bool = False, limit: int = 50) -> List[Notification]:
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.read == False)
    return query.order_by(Notification.created_at.desc()).limit(limit).all()


def unread_count(db: Session, user_id: str) -> int:
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read == False)
        .count()
    )


def mark_read(db: Session, user_id: str, notification_id: str) -> Notification:
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .first()
    )
    if not notification:
        raise NotFound("Notification not found")
    notification.read = True
    db.commit()
    return notification


def mark_all_read(db: Session, user_id: str) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read == False)
        .update({Notification.read: True}, synchronize_session="fetch")
    )
    db.commit()
    return updated


def notification_to_dict(notification: Notification) -> dict:
    return {
        "id": notification.id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "link": notification.link,
        "read": notification.read,
        "createdAt": notification.created_at.isoformat() if notification.created_at else None,
    }
