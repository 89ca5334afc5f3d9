"""
Contact messages from the public contact form.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from .audit import record_action
from .auth import AuthContext
from .db.models import ContactMessage, MessageStatus, EntityType
from .errors import NotFound, ValidationFailed
from .notifications import notify_admins
from .schemas import ContactMessageRequest

logger = logging.getLogger(__name__)


def _parse_status(status: str) -> MessageStatus:
    try:
        return MessageStatus(status.strip().upper())
    except ValueError:
        raise ValidationFailed(f"Invalid status: {status}")


def submit_contact_message(db: Session, request: ContactMessageRequest) -> ContactMessage:
    message = ContactMessage(
        name=request.name,
        email=str(request.email).lower(),
        phone=request.phone,
        message=request.message,
        status=MessageStatus.NEW,
    )
    db.add(message)
    db.flush()

    notify_admins(
        db,
        type="CONTACT_MESSAGE",
        title="New contact message",
        message=f"{request.name} sent a message through the contact form.",
        link=f"/admin/messages/{message.id}",
    )

    db.commit()
    logger.info(f"Contact message {message.id} received")
    return message


def list_messages(db: Session, status: Optional[str] = None) -> List[ContactMessage]:
    query = db.query(ContactMessage)
    if status and status.upper() != "ALL":
        query = query.filter(ContactMessage.status == _parse_status(status))
    return query.order_by(ContactMessage.created_at.desc()).all()


def get_message(db: Session, message_id: str) -> ContactMessage:
    message = db.query(ContactMessage).filter(ContactMessage.id == message_id).first()
    if not message:
        raise NotFound("Message not found")
    return message


def update_message(
    db: Session,
    auth: AuthContext,
    message_id: str,
    status: Optional[str] = None,
    admin_notes: Optional[str] = None,
) -> ContactMessage:
    if status is None and admin_notes is None:
        raise ValidationFailed("Nothing to update")

    message = get_message(db, message_id)
    previous = message.status
    if status is not None:
        message.status = _parse_status(status)
    if admin_notes is not None:
        message.admin_notes = admin_notes

    record_action(
        db, auth.user_id, "UPDATE_CONTACT_MESSAGE", EntityType.MESSAGE, message.id,
        {"previousStatus": previous.value, "newStatus": message.status.value},
    )
    db.commit()
    return message
