"""
Approval of Pending Profile Changes
===================================

Admins approve or reject staged lawyer / firm profile snapshots.

Approve:
- parse the typed snapshot from changes_json
- re-check slug uniqueness against other live entities (suffix on conflict)
- copy the snapshot onto the entity, reconcile child collections
- publish the entity, mark the change APPROVED, audit, notify the owner

Reject:
- mark the change REJECTED, audit, notify the owner; the entity is untouched

Each decision is a single transaction.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from .audit import record_action
from .auth import AuthContext
from .db.models import PendingChange, Lawyer, LawFirm, ChangeStatus, EntityType, ProfileStatus
from .errors import NotFound, ValidationFailed
from .notifications import notify_user
from .profiles import apply_lawyer_payload, apply_firm_payload, validate_specialisation_ids
from .schemas import LawyerChanges, FirmChanges, load_changes
from .slugs import (
    ensure_unique_slug, lawyer_slug_exists, firm_slug_exists, lawyer_base_slug, firm_base_slug,
)

logger = logging.getLogger(__name__)

VALID_ACTIONS = ("approve", "reject")


def list_changes(db: Session, status: Optional[str] = "PENDING") -> List[PendingChange]:
    query = db.query(PendingChange)
    if status and status.upper() != "ALL":
        try:
            query = query.filter(PendingChange.status == ChangeStatus(status.upper()))
        except ValueError:
            raise ValidationFailed(f"Invalid status: {status}")
    return query.order_by(PendingChange.created_at.desc()).all()


def get_change(db: Session, change_id: str) -> PendingChange:
    change = db.query(PendingChange).filter(PendingChange.id == change_id).first()
    if not change:
        raise NotFound("Change not found")
    return change


def _resolve_slug(proposed: str, base: str, exists) -> str:
    if not exists(proposed):
        return proposed
    return ensure_unique_slug(base, exists)


def _approve_lawyer(db: Session, change: PendingChange, changes: LawyerChanges) -> Dict[str, Any]:
    lawyer = db.query(Lawyer).filter(Lawyer.id == change.lawyer_id).first()
    if not lawyer:
        raise NotFound("Lawyer not found")
    validate_specialisation_ids(db, [s.specialisation_id for s in changes.specialisations])

    exists = lawyer_slug_exists(db, exclude_id=lawyer.id)
    final_slug = _resolve_slug(changes.slug, lawyer_base_slug(changes.first_name, changes.last_name), exists)

    apply_lawyer_payload(lawyer, changes)
    lawyer.slug = final_slug
    lawyer.status = ProfileStatus.PUBLISHED
    return {"original_slug": changes.slug, "final_slug": final_slug}


def _approve_firm(db: Session, change: PendingChange, changes: FirmChanges) -> Dict[str, Any]:
    firm = db.query(LawFirm).filter(LawFirm.id == change.firm_id).first()
    if not firm:
        raise NotFound("Firm not found")
    validate_specialisation_ids(db, changes.practice_areas)

    exists = firm_slug_exists(db, exclude_id=firm.id)
    final_slug = _resolve_slug(changes.slug, firm_base_slug(changes.name), exists)

    apply_firm_payload(firm, changes)
    firm.slug = final_slug
    firm.status = ProfileStatus.PUBLISHED
    return {"original_slug": changes.slug, "final_slug": final_slug}


def _owner_id(change: PendingChange) -> Optional[str]:
    if change.entity_type == EntityType.LAWYER and change.lawyer is not None:
        return change.lawyer.user_id
    if change.entity_type == EntityType.FIRM and change.firm is not None:
        return change.firm.owner_id
    return change.submitted_by_user_id


def process_change(
    db: Session,
    auth: AuthContext,
    change_id: str,
    action: str,
    admin_notes: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Approve or reject a pending change.

    Returns:
        {"change": PendingChange, "appliedSlug": str | None}
    """
    action = (action or "").strip().lower()
    change = get_change(db, change_id)
    if change.status != ChangeStatus.PENDING:
        raise ValidationFailed("This change has already been processed")
    if action not in VALID_ACTIONS:
        raise ValidationFailed("Invalid action. Must be 'approve' or 'reject'")

    label = "lawyer" if change.entity_type == EntityType.LAWYER else "firm"
    entity_id = change.entity_id
    applied_slug = None

    if action == "approve":
        changes = load_changes(change.changes_json)
        if isinstance(changes, LawyerChanges):
            result = _approve_lawyer(db, change, changes)
        else:
            result = _approve_firm(db, change, changes)
        applied_slug = result["final_slug"]

        record_action(
            db, auth.user_id, f"APPROVE_{change.entity_type.value}_CHANGES", change.entity_type, entity_id,
            {
                "changeId": change.id,
                "originalSlug": result["original_slug"],
                "finalSlug": applied_slug,
                "adminNotes": admin_notes,
            },
        )
        change.status = ChangeStatus.APPROVED
        title = f"Your {label} profile has been approved"
        message = f"Your {label} profile is now published."
        link = f"/{'lawyers' if label == 'lawyer' else 'firms'}/{applied_slug}"
    else:
        record_action(
            db, auth.user_id, f"REJECT_{change.entity_type.value}_CHANGES", change.entity_type, entity_id,
            {"changeId": change.id, "rejectedChanges": change.changes_json, "adminNotes": admin_notes},
        )
        change.status = ChangeStatus.REJECTED
        title = f"Your {label} profile changes were not approved"
        message = admin_notes or f"An administrator rejected your {label} profile changes."
        link = f"/{label}/profile"

    change.admin_notes = admin_notes
    change.processed_by_user_id = auth.user_id
    change.processed_at = datetime.utcnow()

    owner_id = _owner_id(change)
    if owner_id:
        notify_user(db, owner_id, type=f"CHANGE_{change.status.value}", title=title, message=message, link=link)

    db.commit()
    logger.info(f"Change {change.id} {change.status.value.lower()} by admin {auth.user_id}")
    return {"change": change, "appliedSlug": applied_slug}
