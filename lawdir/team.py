"""
Firm Team Management
====================

Firm owners invite lawyers by e-mail and remove them; lawyers accept or
decline invitations and can leave their firm. Admins may act on any firm.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from .audit import record_action
from .auth import AuthContext
from .config import get_settings
from .db.models import FirmInvitation, Lawyer, LawFirm, User, InvitationStatus, EntityType
from .errors import Forbidden, NotFound, ValidationFailed
from .notifications import notify_user

logger = logging.getLogger(__name__)


def _managed_firm(db: Session, auth: AuthContext, firm_id: Optional[str] = None) -> LawFirm:
    """The firm the caller may manage: the given one (owner or admin) or their own"""
    if firm_id:
        firm = db.query(LawFirm).filter(LawFirm.id == firm_id).first()
        if not firm:
            raise NotFound("Firm not found")
        if firm.owner_id != auth.user_id and not auth.is_admin:
            raise Forbidden("Only the firm owner can manage its team")
        return firm

    firm = db.query(LawFirm).filter(LawFirm.owner_id == auth.user_id).first()
    if not firm:
        raise NotFound("Firm profile not found")
    return firm


def _own_lawyer(db: Session, auth: AuthContext) -> Lawyer:
    lawyer = db.query(Lawyer).filter(Lawyer.user_id == auth.user_id).first()
    if not lawyer:
        raise NotFound("Lawyer profile not found")
    return lawyer


def invite_lawyer(db: Session, auth: AuthContext, email: str, firm_id: Optional[str] = None) -> FirmInvitation:
    firm = _managed_firm(db, auth, firm_id)
    email = (email or "").strip().lower()

    lawyer = (
        db.query(Lawyer)
        .join(User, Lawyer.user_id == User.id)
        .filter(User.email == email)
        .first()
    )
    if not lawyer:
        raise NotFound("No lawyer profile found for this email")
    if lawyer.firm_id == firm.id:
        raise ValidationFailed("Lawyer is already a member of this firm")

    now = datetime.utcnow()
    existing = (
        db.query(FirmInvitation)
        .filter(
            FirmInvitation.firm_id == firm.id,
            FirmInvitation.lawyer_id == lawyer.id,
            FirmInvitation.status == InvitationStatus.PENDING,
            FirmInvitation.expires_at > now,
        )
        .first()
    )
    if existing:
        raise ValidationFailed("An invitation is already pending for this lawyer")

    invitation = FirmInvitation(
        firm_id=firm.id,
        lawyer_id=lawyer.id,
        invited_by_user_id=auth.user_id,
        token=secrets.token_urlsafe(32),
        status=InvitationStatus.PENDING,
        expires_at=now + timedelta(days=get_settings().invitation_expiry_days),
    )
    db.add(invitation)
    db.flush()

    record_action(
        db, auth.user_id, "INVITE_LAWYER_TO_FIRM", EntityType.FIRM, firm.id,
        {"invitationId": invitation.id, "lawyerId": lawyer.id},
    )
    notify_user(
        db, lawyer.user_id,
        type="FIRM_INVITATION",
        title=f"Invitation to join {firm.name}",
        message=f"{firm.name} has invited you to join their firm.",
        link="/lawyer/firm/invitations",
    )

    db.commit()
    logger.info(f"Firm {firm.id} invited lawyer {lawyer.id} (invitation {invitation.id})")
    return invitation


def list_invitations(db: Session, auth: AuthContext) -> List[FirmInvitation]:
    lawyer = _own_lawyer(db, auth)
    return (
        db.query(FirmInvitation)
        .filter(FirmInvitation.lawyer_id == lawyer.id)
        .order_by(FirmInvitation.created_at.desc())
        .all()
    )


def respond_to_invitation(db: Session, auth: AuthContext, invitation_id: str, action: str) -> FirmInvitation:
    action = (action or "").strip().lower()
    if action not in ("accept", "decline"):
        raise ValidationFailed("Invalid action. Must be 'accept' or 'decline'")

    lawyer = _own_lawyer(db, auth)
    invitation = db.query(FirmInvitation).filter(FirmInvitation.id == invitation_id).first()
    if not invitation:
        raise NotFound("Invitation not found")
    if invitation.lawyer_id != lawyer.id:
        raise Forbidden("This invitation is not addressed to you")
    if invitation.status != InvitationStatus.PENDING:
        raise ValidationFailed("This invitation has already been answered")

    if invitation.expires_at <= datetime.utcnow():
        invitation.status = InvitationStatus.EXPIRED
        db.commit()
        raise ValidationFailed("This invitation has expired")

    firm = invitation.firm
    if action == "accept":
        invitation.status = InvitationStatus.ACCEPTED
        lawyer.firm_id = firm.id
        audit_action = "ACCEPT_FIRM_INVITATION"
        verb = "accepted"
    else:
        invitation.status = InvitationStatus.DECLINED
        audit_action = "DECLINE_FIRM_INVITATION"
        verb = "declined"

    record_action(
        db, auth.user_id, audit_action, EntityType.LAWYER, lawyer.id,
        {"invitationId": invitation.id, "firmId": firm.id},
    )
    notify_user(
        db, firm.owner_id,
        type="FIRM_INVITATION_RESPONSE",
        title=f"Invitation {verb}",
        message=f"{lawyer.full_name} {verb} your invitation to join {firm.name}.",
        link="/firm/team",
    )

    db.commit()
    logger.info(f"Lawyer {lawyer.id} {verb} invitation {invitation.id}")
    return invitation


def leave_firm(db: Session, auth: AuthContext) -> Lawyer:
    lawyer = _own_lawyer(db, auth)
    firm = lawyer.firm
    if firm is None:
        raise ValidationFailed("You are not a member of a firm")

    lawyer.firm_id = None
    record_action(db, auth.user_id, "LEAVE_FIRM", EntityType.LAWYER, lawyer.id, {"firmId": firm.id})
    notify_user(
        db, firm.owner_id,
        type="TEAM_MEMBER_LEFT",
        title="A lawyer left your firm",
        message=f"{lawyer.full_name} has left {firm.name}.",
        link="/firm/team",
    )

    db.commit()
    logger.info(f"Lawyer {lawyer.id} left firm {firm.id}")
    return lawyer


def remove_lawyer(db: Session, auth: AuthContext, lawyer_id: str, firm_id: Optional[str] = None) -> Lawyer:
    firm = _managed_firm(db, auth, firm_id)
    lawyer = db.query(Lawyer).filter(Lawyer.id == lawyer_id).first()
    if not lawyer or lawyer.firm_id != firm.id:
        raise NotFound("Lawyer is not a member of this firm")

    lawyer.firm_id = None
    record_action(
        db, auth.user_id, "REMOVE_LAWYER_FROM_FIRM", EntityType.FIRM, firm.id, {"lawyerId": lawyer.id},
    )
    notify_user(
        db, lawyer.user_id,
        type="REMOVED_FROM_FIRM",
        title="Removed from firm",
        message=f"You have been removed from {firm.name}.",
        link="/lawyer/profile",
    )

    db.commit()
    logger.info(f"Lawyer {lawyer.id} removed from firm {firm.id} by {auth.user_id}")
    return lawyer


def get_team(db: Session, auth: AuthContext, firm_id: Optional[str] = None):
    """(firm, open invitations) for the firm the caller manages"""
    firm = _managed_firm(db, auth, firm_id)
    pending = (
        db.query(FirmInvitation)
        .filter(
            FirmInvitation.firm_id == firm.id,
            FirmInvitation.status == InvitationStatus.PENDING,
            FirmInvitation.expires_at > datetime.utcnow(),
        )
        .order_by(FirmInvitation.created_at.desc())
        .all()
    )
    return firm, pending
