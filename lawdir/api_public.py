"""
Public Directory Endpoints
==========================

No session required:
- GET  /api/search              - Faceted directory search
- GET  /api/search-profiles     - Name typeahead (lawyer | firm)
- GET  /api/lawyers/{slug}      - Published lawyer profile
- GET  /api/firms/{slug}        - Published firm profile
- GET  /api/specialisations     - Practice area catalogue
- POST /api/reviews/submit      - Client review intake
- POST /api/contact/general     - Contact form
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .db.models import Lawyer, LawFirm, ProfileStatus
from .db.session import get_db
from .errors import NotFound
from .messages import submit_contact_message
from .reviews import approved_reviews_for, rating_breakdown, rating_summary, submit_review
from .schemas import ContactMessageRequest, ReviewSubmitRequest
from .search import SearchParams, search_directory, search_profiles
from .serializers import firm_to_dict, lawyer_to_dict, message_to_dict, review_to_dict
from .specialisations import list_specialisations, specialisation_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["public"])


# =============================================================================
# SEARCH
# =============================================================================

@router.get("/search")
async def search(
    query: Optional[str] = None,
    location: Optional[str] = None,
    state: Optional[str] = None,
    areas: Optional[str] = None,
    rating: Optional[float] = Query(None, ge=0, le=5),
    experience: Optional[int] = Query(None, ge=0),
    type: str = "all",
    sort: str = "relevance",
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    """Search published lawyers and firms"""
    params = SearchParams(
        query=query,
        location=location,
        state=state,
        areas=areas,
        rating=rating,
        experience=experience,
        type=type,
        sort=sort,
        page=page,
        limit=limit,
    )
    return search_directory(db, params)


@router.get("/search-profiles")
async def search_profile_names(
    query: Optional[str] = None,
    type: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """Typeahead for claiming / linking profiles"""
    if not query or len(query.strip()) < 2:
        return {"results": [], "message": "Please enter at least 2 characters"}
    return {"results": search_profiles(db, query, type)}


# =============================================================================
# PUBLIC PROFILES
# =============================================================================

@router.get("/lawyers/{slug}")
async def get_public_lawyer(slug: str, db: Session = Depends(get_db)):
    lawyer = (
        db.query(Lawyer)
        .filter(Lawyer.slug == slug, Lawyer.status == ProfileStatus.PUBLISHED)
        .first()
    )
    if not lawyer:
        raise NotFound("Lawyer not found")

    reviews = approved_reviews_for(db, lawyer_id=lawyer.id)
    avg, count = rating_summary(db, lawyer_id=lawyer.id)
    profile = lawyer_to_dict(lawyer, public=True)
    profile.update({
        "avgRating": avg,
        "reviewCount": count,
        "ratingBreakdown": rating_breakdown(reviews),
        "reviews": [review_to_dict(r) for r in reviews],
    })
    return profile


@router.get("/firms/{slug}")
async def get_public_firm(slug: str, db: Session = Depends(get_db)):
    firm = (
        db.query(LawFirm)
        .filter(LawFirm.slug == slug, LawFirm.status == ProfileStatus.PUBLISHED)
        .first()
    )
    if not firm:
        raise NotFound("Firm not found")

    reviews = approved_reviews_for(db, firm_id=firm.id)
    avg, count = rating_summary(db, firm_id=firm.id)
    profile = firm_to_dict(firm, public=True)
    profile.update({
        "avgRating": avg,
        "reviewCount": count,
        "ratingBreakdown": rating_breakdown(reviews),
        "reviews": [review_to_dict(r) for r in reviews],
    })
    return profile


@router.get("/specialisations")
async def get_specialisations(db: Session = Depends(get_db)):
    return {"specialisations": [specialisation_to_dict(s) for s in list_specialisations(db)]}


# =============================================================================
# PUBLIC SUBMISSIONS
# =============================================================================

@router.post("/reviews/submit", status_code=201)
async def submit_client_review(request: ReviewSubmitRequest, db: Session = Depends(get_db)):
    """Submit a review; it is published only after moderation"""
    review = submit_review(db, request)
    return {
        "message": "Thank you! Your review has been submitted and will be published after moderation.",
        "review": {
            "id": review.id,
            "status": review.status.value,
            "overallRating": review.overall_rating,
        },
    }


@router.post("/contact/general", status_code=201)
async def submit_contact_form(request: ContactMessageRequest, db: Session = Depends(get_db)):
    message = submit_contact_message(db, request)
    return {
        "message": "Thank you for your message. We will get back to you soon.",
        "contactMessage": message_to_dict(message),
    }
