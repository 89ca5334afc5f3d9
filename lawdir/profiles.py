"""
Profile Submission
==================

Lawyers and firm owners create and edit their own profiles. Every
submission:

1. validates the payload (done by the request schema) and the referenced
   specialisation ids,
2. writes the submitted values to the entity, status DRAFT, reconciling
   child collections,
3. stages a typed snapshot as a PendingChange (superseding an existing
   PENDING one in place),
4. records an audit row and notifies every admin.

Nothing is visible publicly until an admin approves the change (see
approvals.py). The unit of work commits once at the end.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional, Tuple, Union

from sqlalchemy.orm import Session

from .audit import record_action
from .auth import AuthContext
from .db.models import (
    Lawyer, LawyerSpecialisation, CourtAppearance, LawyerLanguage, Certification,
    LawFirm, FirmLocation, FirmPracticeArea, FirmCourtAppearance, FirmLanguage,
    PendingChange, Specialisation,
    ProfileStatus, EntityType, ChangeStatus,
)
from .errors import NotFound, ValidationFailed
from .notifications import discard_unread_admin_notifications, notify_admins
from .reconcile import (
    sync_collection, specialisation_key, language_key, court_key, certification_key, location_key,
)
from .schemas import (
    LawyerProfileInput, FirmProfileInput, LawyerChanges, FirmChanges, dump_changes,
)
from .slugs import unique_lawyer_slug, unique_firm_slug

logger = logging.getLogger(__name__)


def approval_link(change_id: str) -> str:
    return f"/admin/approvals/{change_id}"


# =============================================================================
# APPLYING PAYLOADS TO ENTITIES
# =============================================================================

def _copy_fields(row, item) -> None:
    for key, value in item.model_dump().items():
        setattr(row, key, value)


def validate_specialisation_ids(db: Session, ids: Iterable[str]) -> None:
    wanted = set(ids)
    if not wanted:
        return
    found = {sid for (sid,) in db.query(Specialisation.id).filter(Specialisation.id.in_(wanted)).all()}
    missing = sorted(wanted - found)
    if missing:
        raise ValidationFailed("Invalid specialisation IDs", details={"missing": missing})


def apply_lawyer_payload(lawyer: Lawyer, payload: LawyerProfileInput) -> None:
    """Overwrite lawyer columns and reconcile its child collections"""
    for key, value in payload.profile_fields().items():
        setattr(lawyer, key, value)

    sync_collection(
        lawyer.specialisations, payload.specialisations,
        row_key=specialisation_key, item_key=specialisation_key,
        build=lambda item: LawyerSpecialisation(**item.model_dump()),
        update=_copy_fields,
    )
    sync_collection(
        lawyer.court_appearances, payload.court_appearances,
        row_key=court_key, item_key=court_key,
        build=lambda item: CourtAppearance(**item.model_dump()),
        update=_copy_fields,
    )
    sync_collection(
        lawyer.languages, payload.languages,
        row_key=language_key, item_key=language_key,
        build=lambda item: LawyerLanguage(**item.model_dump()),
        update=_copy_fields,
    )
    sync_collection(
        lawyer.certifications, payload.certifications,
        row_key=certification_key, item_key=certification_key,
        build=lambda item: Certification(**item.model_dump()),
        update=_copy_fields,
    )


def apply_firm_payload(firm: LawFirm, payload: FirmProfileInput) -> None:
    """Overwrite firm columns and reconcile its child collections"""
    for key, value in payload.profile_fields().items():
        setattr(firm, key, value)

    locations = list(payload.locations)
    if locations and not any(loc.is_primary for loc in locations):
        locations[0] = locations[0].model_copy(update={"is_primary": True})

    sync_collection(
        firm.locations, locations,
        row_key=location_key, item_key=location_key,
        build=lambda item: FirmLocation(**item.model_dump()),
        update=_copy_fields,
    )
    sync_collection(
        firm.practice_areas, payload.practice_areas,
        row_key=specialisation_key, item_key=lambda sid: sid,
        build=lambda sid: FirmPracticeArea(specialisation_id=sid),
        update=lambda row, sid: None,
    )
    sync_collection(
        firm.court_appearances, payload.court_appearances,
        row_key=court_key, item_key=court_key,
        build=lambda item: FirmCourtAppearance(**item.model_dump()),
        update=_copy_fields,
    )
    sync_collection(
        firm.languages, payload.languages,
        row_key=language_key, item_key=language_key,
        build=lambda item: FirmLanguage(**item.model_dump()),
        update=_copy_fields,
    )


# =============================================================================
# STAGING CHANGES
# =============================================================================

def pending_change_for(db: Session, entity_type: EntityType, entity_id: str) -> Optional[PendingChange]:
    column = PendingChange.lawyer_id if entity_type == EntityType.LAWYER else PendingChange.firm_id
    return (
        db.query(PendingChange)
        .filter(column == entity_id, PendingChange.status == ChangeStatus.PENDING)
        .order_by(PendingChange.created_at.desc())
        .first()
    )


def _stage_change(
    db: Session,
    auth: AuthContext,
    entity_type: EntityType,
    entity_id: str,
    changes: Union[LawyerChanges, FirmChanges],
    display_name: str,
) -> PendingChange:
    pending = pending_change_for(db, entity_type, entity_id)

    if pending is not None:
        # A never-approved profile stays a CREATE however often it is edited
        if pending.changes_json.get("action") == "CREATE":
            changes = changes.model_copy(update={"action": "CREATE"})
        pending.changes_json = dump_changes(changes)
        pending.created_at = datetime.utcnow()
        pending.submitted_by_user_id = auth.user_id
        discard_unread_admin_notifications(db, approval_link(pending.id))
        logger.info(f"Superseded pending change {pending.id} for {entity_type.value} {entity_id}")
    else:
        pending = PendingChange(
            entity_type=entity_type,
            lawyer_id=entity_id if entity_type == EntityType.LAWYER else None,
            firm_id=entity_id if entity_type == EntityType.FIRM else None,
            changes_json=dump_changes(changes),
            status=ChangeStatus.PENDING,
            submitted_by_user_id=auth.user_id,
        )
        db.add(pending)
        db.flush()

    label = "lawyer" if entity_type == EntityType.LAWYER else "firm"
    verb = "New" if changes.action == "CREATE" else "Updated"
    notify_admins(
        db,
        type="PENDING_CHANGE",
        title=f"{verb} {label} profile awaiting approval",
        message=f"{display_name} submitted a {label} profile for review.",
        link=approval_link(pending.id),
    )
    return pending


# =============================================================================
# LAWYER PROFILE
# =============================================================================

def get_lawyer_for_user(db: Session, user_id: str) -> Optional[Lawyer]:
    return db.query(Lawyer).filter(Lawyer.user_id == user_id).first()


def get_own_lawyer_profile(db: Session, auth: AuthContext) -> Tuple[Lawyer, Optional[PendingChange]]:
    lawyer = get_lawyer_for_user(db, auth.user_id)
    if not lawyer:
        raise NotFound("Lawyer profile not found")
    return lawyer, pending_change_for(db, EntityType.LAWYER, lawyer.id)


def create_lawyer_profile(db: Session, auth: AuthContext, payload: LawyerProfileInput) -> Tuple[Lawyer, PendingChange]:
    if get_lawyer_for_user(db, auth.user_id):
        raise ValidationFailed("Lawyer profile already exists")
    validate_specialisation_ids(db, [s.specialisation_id for s in payload.specialisations])

    slug = unique_lawyer_slug(db, payload.first_name, payload.last_name)
    lawyer = Lawyer(
        user_id=auth.user_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        slug=slug,
        status=ProfileStatus.DRAFT,
    )
    db.add(lawyer)
    apply_lawyer_payload(lawyer, payload)
    db.flush()

    record_action(db, auth.user_id, "CREATE_LAWYER_PROFILE", EntityType.LAWYER, lawyer.id, {"slug": slug})
    changes = LawyerChanges(**payload.model_dump(), action="CREATE", slug=slug)
    change = _stage_change(db, auth, EntityType.LAWYER, lawyer.id, changes, lawyer.full_name)

    db.commit()
    logger.info(f"Lawyer profile {lawyer.id} created by user {auth.user_id} (change {change.id})")
    return lawyer, change


def update_lawyer_profile(db: Session, auth: AuthContext, payload: LawyerProfileInput) -> Tuple[Lawyer, PendingChange]:
    lawyer = get_lawyer_for_user(db, auth.user_id)
    if not lawyer:
        raise NotFound("Lawyer profile not found")
    validate_specialisation_ids(db, [s.specialisation_id for s in payload.specialisations])

    slug = lawyer.slug
    if (payload.first_name, payload.last_name) != (lawyer.first_name, lawyer.last_name):
        slug = unique_lawyer_slug(db, payload.first_name, payload.last_name, exclude_id=lawyer.id)
        lawyer.slug = slug

    apply_lawyer_payload(lawyer, payload)
    lawyer.status = ProfileStatus.DRAFT
    db.flush()

    record_action(db, auth.user_id, "UPDATE_LAWYER_PROFILE", EntityType.LAWYER, lawyer.id, {"slug": slug})
    changes = LawyerChanges(**payload.model_dump(), action="UPDATE", slug=slug)
    change = _stage_change(db, auth, EntityType.LAWYER, lawyer.id, changes, lawyer.full_name)

    db.commit()
    logger.info(f"Lawyer profile {lawyer.id} updated by user {auth.user_id} (change {change.id})")
    return lawyer, change


# =============================================================================
# FIRM PROFILE
# =============================================================================

def get_firm_for_owner(db: Session, user_id: str) -> Optional[LawFirm]:
    return db.query(LawFirm).filter(LawFirm.owner_id == user_id).first()


def get_own_firm_profile(db: Session, auth: AuthContext) -> Tuple[LawFirm, Optional[PendingChange]]:
    firm = get_firm_for_owner(db, auth.user_id)
    if not firm:
        raise NotFound("Firm profile not found")
    return firm, pending_change_for(db, EntityType.FIRM, firm.id)


def create_firm_profile(db: Session, auth: AuthContext, payload: FirmProfileInput) -> Tuple[LawFirm, PendingChange]:
    if get_firm_for_owner(db, auth.user_id):
        raise ValidationFailed("Firm profile already exists")
    validate_specialisation_ids(db, payload.practice_areas)

    slug = unique_firm_slug(db, payload.name)
    firm = LawFirm(
        owner_id=auth.user_id,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        slug=slug,
        status=ProfileStatus.DRAFT,
    )
    db.add(firm)
    apply_firm_payload(firm, payload)
    db.flush()

    record_action(db, auth.user_id, "CREATE_FIRM_PROFILE", EntityType.FIRM, firm.id, {"slug": slug})
    changes = FirmChanges(**payload.model_dump(), action="CREATE", slug=slug)
    change = _stage_change(db, auth, EntityType.FIRM, firm.id, changes, firm.name)

    db.commit()
    logger.info(f"Firm profile {firm.id} created by user {auth.user_id} (change {change.id})")
    return firm, change


def update_firm_profile(db: Session, auth: AuthContext, payload: FirmProfileInput) -> Tuple[LawFirm, PendingChange]:
    firm = get_firm_for_owner(db, auth.user_id)
    if not firm:
        raise NotFound("Firm profile not found")
    validate_specialisation_ids(db, payload.practice_areas)

    slug = firm.slug
    if payload.name != firm.name:
        slug = unique_firm_slug(db, payload.name, exclude_id=firm.id)
        firm.slug = slug

    apply_firm_payload(firm, payload)
    firm.status = ProfileStatus.DRAFT
    db.flush()

    record_action(db, auth.user_id, "UPDATE_FIRM_PROFILE", EntityType.FIRM, firm.id, {"slug": slug})
    changes = FirmChanges(**payload.model_dump(), action="UPDATE", slug=slug)
    change = _stage_change(db, auth, EntityType.FIRM, firm.id, changes, firm.name)

    db.commit()
    logger.info(f"Firm profile {firm.id} updated by user {auth.user_id} (change {change.id})")
    return firm, change
