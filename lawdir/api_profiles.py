"""
Profile Owner Endpoints
=======================

FastAPI router for lawyers and firm owners managing their own listings.

Endpoints:
- GET/POST/PUT /api/lawyer/profile         - Own lawyer profile
- GET/POST/PUT /api/firm/profile           - Own firm profile
- GET  /api/firm/team                      - Firm members and invitations
- POST /api/firm/team/invite               - Invite a lawyer by e-mail
- POST /api/firm/team/remove               - Remove a lawyer from the firm
- GET/POST /api/lawyer/firm/invitation     - List / answer firm invitations
- POST /api/lawyer/firm/leave              - Leave current firm
- POST /api/reviews/respond                - Reply to an approved review
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import EmailStr
from sqlalchemy.orm import Session

from .auth import AuthContext, Permission, require_permission
from .db.session import get_db
from .profiles import (
    create_firm_profile, create_lawyer_profile, get_own_firm_profile, get_own_lawyer_profile,
    update_firm_profile, update_lawyer_profile,
)
from .reviews import respond_to_review
from .schemas import CamelModel, FirmProfileInput, LawyerProfileInput, ReviewRespondRequest
from .serializers import change_to_dict, firm_to_dict, invitation_to_dict, lawyer_to_dict
from .team import (
    get_team, invite_lawyer, leave_firm, list_invitations, remove_lawyer, respond_to_invitation,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["profiles"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class InviteLawyerRequest(CamelModel):
    email: EmailStr
    firm_id: Optional[str] = None


class RemoveLawyerRequest(CamelModel):
    lawyer_id: str
    firm_id: Optional[str] = None


class InvitationResponseRequest(CamelModel):
    invitation_id: str
    action: str


SUBMITTED_MESSAGE = "Profile submitted for review. It will be published once approved."


def _submission_response(profile: dict, change) -> dict:
    return {"message": SUBMITTED_MESSAGE, "profile": profile, "pendingChange": change_to_dict(change)}


# =============================================================================
# LAWYER PROFILE
# =============================================================================

@router.get("/lawyer/profile")
async def get_lawyer_profile(
    auth: AuthContext = Depends(require_permission(Permission.LAWYER_PROFILE_WRITE)),
    db: Session = Depends(get_db),
):
    lawyer, pending = get_own_lawyer_profile(db, auth)
    return {"profile": lawyer_to_dict(lawyer), "pendingChange": change_to_dict(pending) if pending else None}


@router.post("/lawyer/profile", status_code=201)
async def create_lawyer(
    payload: LawyerProfileInput,
    auth: AuthContext = Depends(require_permission(Permission.LAWYER_PROFILE_WRITE)),
    db: Session = Depends(get_db),
):
    lawyer, change = create_lawyer_profile(db, auth, payload)
    return _submission_response(lawyer_to_dict(lawyer), change)


@router.put("/lawyer/profile")
async def update_lawyer(
    payload: LawyerProfileInput,
    auth: AuthContext = Depends(require_permission(Permission.LAWYER_PROFILE_WRITE)),
    db: Session = Depends(get_db),
):
    lawyer, change = update_lawyer_profile(db, auth, payload)
    return _submission_response(lawyer_to_dict(lawyer), change)


# =============================================================================
# FIRM PROFILE
# =============================================================================

@router.get("/firm/profile")
async def get_firm_profile(
    auth: AuthContext = Depends(require_permission(Permission.FIRM_PROFILE_WRITE)),
    db: Session = Depends(get_db),
):
    firm, pending = get_own_firm_profile(db, auth)
    return {"profile": firm_to_dict(firm), "pendingChange": change_to_dict(pending) if pending else None}


@router.post("/firm/profile", status_code=201)
async def create_firm(
    payload: FirmProfileInput,
    auth: AuthContext = Depends(require_permission(Permission.FIRM_PROFILE_WRITE)),
    db: Session = Depends(get_db),
):
    firm, change = create_firm_profile(db, auth, payload)
    return _submission_response(firm_to_dict(firm), change)


@router.put("/firm/profile")
async def update_firm(
    payload: FirmProfileInput,
    auth: AuthContext = Depends(require_permission(Permission.FIRM_PROFILE_WRITE)),
    db: Session = Depends(get_db),
):
    firm, change = update_firm_profile(db, auth, payload)
    return _submission_response(firm_to_dict(firm), change)


# =============================================================================
# FIRM TEAM
# =============================================================================

@router.get("/firm/team")
async def get_firm_team(
    firm_id: Optional[str] = Query(None, alias="firmId"),
    auth: AuthContext = Depends(require_permission(Permission.FIRM_TEAM_MANAGE)),
    db: Session = Depends(get_db),
):
    firm, pending = get_team(db, auth, firm_id)
    return {
        "firmId": firm.id,
        "lawyers": firm_to_dict(firm)["lawyers"],
        "pendingInvitations": [invitation_to_dict(i) for i in pending],
    }


@router.post("/firm/team/invite", status_code=201)
async def invite_team_member(
    request: InviteLawyerRequest,
    auth: AuthContext = Depends(require_permission(Permission.FIRM_TEAM_MANAGE)),
    db: Session = Depends(get_db),
):
    invitation = invite_lawyer(db, auth, str(request.email), firm_id=request.firm_id)
    return {"message": "Invitation sent", "invitation": invitation_to_dict(invitation)}


@router.post("/firm/team/remove")
async def remove_team_member(
    request: RemoveLawyerRequest,
    auth: AuthContext = Depends(require_permission(Permission.FIRM_TEAM_MANAGE)),
    db: Session = Depends(get_db),
):
    lawyer = remove_lawyer(db, auth, request.lawyer_id, firm_id=request.firm_id)
    return {"message": "Lawyer removed from firm", "lawyerId": lawyer.id}


# =============================================================================
# FIRM MEMBERSHIP (lawyer side)
# =============================================================================

@router.get("/lawyer/firm/invitation")
async def get_my_invitations(
    auth: AuthContext = Depends(require_permission(Permission.FIRM_MEMBERSHIP_MANAGE)),
    db: Session = Depends(get_db),
):
    return {"invitations": [invitation_to_dict(i) for i in list_invitations(db, auth)]}


@router.post("/lawyer/firm/invitation")
async def answer_invitation(
    request: InvitationResponseRequest,
    auth: AuthContext = Depends(require_permission(Permission.FIRM_MEMBERSHIP_MANAGE)),
    db: Session = Depends(get_db),
):
    invitation = respond_to_invitation(db, auth, request.invitation_id, request.action)
    return {
        "message": f"Invitation {invitation.status.value.lower()}",
        "invitation": invitation_to_dict(invitation),
    }


@router.post("/lawyer/firm/leave")
async def leave_current_firm(
    auth: AuthContext = Depends(require_permission(Permission.FIRM_MEMBERSHIP_MANAGE)),
    db: Session = Depends(get_db),
):
    lawyer = leave_firm(db, auth)
    return {"message": "You have left the firm", "lawyerId": lawyer.id}


# =============================================================================
# REVIEW RESPONSES
# =============================================================================

@router.post("/reviews/respond", status_code=201)
async def respond_review(
    request: ReviewRespondRequest,
    auth: AuthContext = Depends(require_permission(Permission.REVIEW_RESPOND)),
    db: Session = Depends(get_db),
):
    response = respond_to_review(db, auth, request.review_id, request.response_text)
    return {
        "message": "Response published",
        "response": {
            "id": response.id,
            "reviewId": response.review_id,
            "responseText": response.response_text,
            "createdAt": response.created_at.isoformat() if response.created_at else None,
        },
    }
