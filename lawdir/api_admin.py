"""
Admin Endpoints
===============

FastAPI router for the moderation console.

Endpoints:
- GET  /api/admin/approvals              - List pending changes (?status=)
- GET  /api/admin/approvals/{id}         - One change with the live entity
- POST /api/admin/approvals              - Approve / reject a change
- GET  /api/admin/reviews                - List reviews (?status=)
- POST /api/admin/reviews/moderate       - Approve / reject / flag a review
- GET  /api/admin/messages               - List contact messages
- GET  /api/admin/messages/{id}          - One message (marks NEW as READ)
- PATCH /api/admin/messages/{id}         - Update status / notes
- GET  /api/admin/users                  - List users (?q=&role=)
- POST /api/admin/users/update-role      - Change a user's role
- GET  /api/admin/lawyers                - All lawyers, any status (?status=&q=)
- GET  /api/admin/firms                  - All firms, any status (?status=&q=)
- GET  /api/admin/stats                  - Dashboard counters
- GET  /api/admin/audit                  - Audit trail of one entity
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .accounts import list_users, update_user_role
from .approvals import get_change, list_changes, process_change
from .audit import list_actions
from .auth import AuthContext, Permission, require_permission
from .db.models import EntityType, MessageStatus
from .db.session import get_db
from .messages import get_message, list_messages, update_message
from .overview import directory_stats, list_firms, list_lawyers
from .reviews import list_reviews, moderate_review
from .schemas import CamelModel, ContactMessageUpdate, ModerateReviewRequest, ProcessChangeRequest
from .serializers import (
    audit_to_dict, change_to_dict, firm_to_dict, lawyer_to_dict, message_to_dict, review_to_dict, user_to_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


class UpdateRoleRequest(CamelModel):
    user_id: str
    role: str


# =============================================================================
# PENDING CHANGES
# =============================================================================

@router.get("/approvals")
async def get_approvals(
    status: Optional[str] = "PENDING",
    auth: AuthContext = Depends(require_permission(Permission.PENDING_CHANGE_REVIEW)),
    db: Session = Depends(get_db),
):
    changes = list_changes(db, status)
    return {"changes": [change_to_dict(c) for c in changes]}


@router.get("/approvals/{change_id}")
async def get_approval(
    change_id: str,
    auth: AuthContext = Depends(require_permission(Permission.PENDING_CHANGE_REVIEW)),
    db: Session = Depends(get_db),
):
    change = get_change(db, change_id)
    data = change_to_dict(change)
    if change.entity_type == EntityType.LAWYER and change.lawyer is not None:
        data["current"] = lawyer_to_dict(change.lawyer)
    elif change.firm is not None:
        data["current"] = firm_to_dict(change.firm)
    return data


@router.post("/approvals")
async def post_approval(
    request: ProcessChangeRequest,
    auth: AuthContext = Depends(require_permission(Permission.PENDING_CHANGE_REVIEW)),
    db: Session = Depends(get_db),
):
    result = process_change(db, auth, request.change_id, request.action, request.admin_notes)
    change = result["change"]
    return {
        "message": f"Change {change.status.value.lower()}",
        "change": change_to_dict(change),
        "appliedSlug": result["appliedSlug"],
    }


# =============================================================================
# REVIEWS
# =============================================================================

@router.get("/reviews")
async def get_reviews(
    status: Optional[str] = None,
    auth: AuthContext = Depends(require_permission(Permission.REVIEW_MODERATE)),
    db: Session = Depends(get_db),
):
    return {"reviews": [review_to_dict(r, include_private=True) for r in list_reviews(db, status)]}


@router.post("/reviews/moderate")
async def post_review_moderation(
    request: ModerateReviewRequest,
    auth: AuthContext = Depends(require_permission(Permission.REVIEW_MODERATE)),
    db: Session = Depends(get_db),
):
    review = moderate_review(db, auth, request.review_id, request.action, request.admin_notes)
    return {
        "message": f"Review {review.status.value.lower()}",
        "review": review_to_dict(review, include_private=True),
    }


# =============================================================================
# CONTACT MESSAGES
# =============================================================================

@router.get("/messages")
async def get_messages(
    status: Optional[str] = None,
    auth: AuthContext = Depends(require_permission(Permission.CONTACT_MESSAGE_MANAGE)),
    db: Session = Depends(get_db),
):
    return {"messages": [message_to_dict(m) for m in list_messages(db, status)]}


@router.get("/messages/{message_id}")
async def get_message_detail(
    message_id: str,
    auth: AuthContext = Depends(require_permission(Permission.CONTACT_MESSAGE_MANAGE)),
    db: Session = Depends(get_db),
):
    message = get_message(db, message_id)
    if message.status == MessageStatus.NEW:
        message = update_message(db, auth, message.id, status=MessageStatus.READ.value)
    return message_to_dict(message)


@router.patch("/messages/{message_id}")
async def patch_message(
    message_id: str,
    request: ContactMessageUpdate,
    auth: AuthContext = Depends(require_permission(Permission.CONTACT_MESSAGE_MANAGE)),
    db: Session = Depends(get_db),
):
    message = update_message(db, auth, message_id, status=request.status, admin_notes=request.admin_notes)
    return message_to_dict(message)


# =============================================================================
# USERS
# =============================================================================

@router.get("/users")
async def get_users(
    q: Optional[str] = None,
    role: Optional[str] = None,
    auth: AuthContext = Depends(require_permission(Permission.USER_MANAGE)),
    db: Session = Depends(get_db),
):
    return {"users": [user_to_dict(u) for u in list_users(db, q, role)]}


@router.post("/users/update-role")
async def post_update_role(
    request: UpdateRoleRequest,
    auth: AuthContext = Depends(require_permission(Permission.USER_MANAGE)),
    db: Session = Depends(get_db),
):
    user = update_user_role(db, auth, request.user_id, request.role)
    return {"message": "Role updated", "user": user_to_dict(user)}


# =============================================================================
# DIRECTORY OVERVIEW
# =============================================================================

@router.get("/lawyers")
async def get_all_lawyers(
    status: Optional[str] = None,
    q: Optional[str] = None,
    auth: AuthContext = Depends(require_permission(Permission.DIRECTORY_OVERVIEW)),
    db: Session = Depends(get_db),
):
    return {"lawyers": list_lawyers(db, status, q)}


@router.get("/firms")
async def get_all_firms(
    status: Optional[str] = None,
    q: Optional[str] = None,
    auth: AuthContext = Depends(require_permission(Permission.DIRECTORY_OVERVIEW)),
    db: Session = Depends(get_db),
):
    return {"firms": list_firms(db, status, q)}


@router.get("/stats")
async def get_stats(
    auth: AuthContext = Depends(require_permission(Permission.DIRECTORY_OVERVIEW)),
    db: Session = Depends(get_db),
):
    return directory_stats(db)


@router.get("/audit")
async def get_audit_trail(
    entity_type: str = Query(..., alias="entityType"),
    entity_id: str = Query(..., alias="entityId"),
    auth: AuthContext = Depends(require_permission(Permission.AUDIT_READ)),
    db: Session = Depends(get_db),
):
    return {"entries": [audit_to_dict(a) for a in list_actions(db, entity_type, entity_id)]}
