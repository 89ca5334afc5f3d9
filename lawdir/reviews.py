"""
Client Reviews
==============

- Public intake (reviews start PENDING, admins are notified)
- Admin moderation (approve / reject / flag)
- Owner responses to approved reviews
- Rating aggregates over APPROVED reviews
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from .audit import record_action
from .auth import AuthContext
from .config import get_settings
from .db.models import (
    Review, ReviewResponse, Lawyer, LawFirm, User,
    ReviewStatus, ProfileStatus, EntityType, UserRole,
)
from .errors import Forbidden, NotFound, ValidationFailed
from .notifications import notify_admins, notify_user
from .schemas import ReviewSubmitRequest

logger = logging.getLogger(__name__)

MODERATION_ACTIONS = {
    "approve": ReviewStatus.APPROVED,
    "reject": ReviewStatus.REJECTED,
    "flag": ReviewStatus.FLAGGED,
}


def compute_overall_rating(
    communication: int,
    expertise: int,
    value: int,
    outcome: Optional[int] = None,
) -> float:
    """Mean of the component ratings (outcome counts only when given)"""
    ratings = [communication, expertise, value]
    if outcome is not None:
        ratings.append(outcome)
    return sum(ratings) / len(ratings)


def rating_summary(db: Session, lawyer_id: Optional[str] = None, firm_id: Optional[str] = None) -> Tuple[float, int]:
    """(average overall rating, count) over APPROVED reviews; (0.0, 0) when none"""
    query = db.query(func.avg(Review.overall_rating), func.count(Review.id)).filter(
        Review.status == ReviewStatus.APPROVED
    )
    if lawyer_id:
        query = query.filter(Review.lawyer_id == lawyer_id)
    else:
        query = query.filter(Review.firm_id == firm_id)
    avg, count = query.one()
    return round(float(avg or 0), 2), int(count or 0)


def _target(db: Session, target_type: str, target_id: str):
    model = Lawyer if target_type == "LAWYER" else LawFirm
    entity = db.query(model).filter(model.id == target_id).first()
    if not entity or entity.status != ProfileStatus.PUBLISHED:
        raise NotFound("Lawyer not found" if target_type == "LAWYER" else "Firm not found")
    return entity


def _find_or_create_reviewer(db: Session, name: str, email: str) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user:
        return user
    user = User(email=email, name=name, role=UserRole.CLIENT, is_active=True)
    db.add(user)
    db.flush()
    return user


def _service_month(value: Optional[str]):
    if not value:
        return None
    return datetime.strptime(value, "%Y-%m").date()


def submit_review(db: Session, request: ReviewSubmitRequest) -> Review:
    settings = get_settings()
    if len(request.comment) < settings.review_comment_min_length:
        raise ValidationFailed(f"Comment must be at least {settings.review_comment_min_length} characters")

    target = _target(db, request.target_type, request.target_id)
    email = str(request.reviewer_email).strip().lower()

    target_column = Review.lawyer_id if request.target_type == "LAWYER" else Review.firm_id
    window_start = datetime.utcnow() - timedelta(days=settings.review_duplicate_window_days)
    duplicate = (
        db.query(Review.id)
        .join(User, Review.author_id == User.id)
        .filter(User.email == email, target_column == target.id, Review.created_at >= window_start)
        .first()
    )
    if duplicate:
        raise ValidationFailed("You have already reviewed this profile recently")

    author = _find_or_create_reviewer(db, request.reviewer_name, email)
    review = Review(
        author_id=author.id,
        target_type=EntityType(request.target_type),
        lawyer_id=target.id if request.target_type == "LAWYER" else None,
        firm_id=target.id if request.target_type == "FIRM" else None,
        communication_rating=request.communication_rating,
        expertise_rating=request.expertise_rating,
        value_rating=request.value_rating,
        outcome_rating=request.outcome_rating,
        overall_rating=compute_overall_rating(
            request.communication_rating,
            request.expertise_rating,
            request.value_rating,
            request.outcome_rating,
        ),
        comment=request.comment,
        case_type=request.case_type,
        service_date=_service_month(request.service_date),
        status=ReviewStatus.PENDING,
    )
    db.add(review)
    db.flush()

    target_name = target.full_name if request.target_type == "LAWYER" else target.name
    notify_admins(
        db,
        type="NEW_REVIEW",
        title="New review awaiting moderation",
        message=f"{request.reviewer_name} reviewed {target_name}.",
        link="/admin/reviews",
    )

    db.commit()
    logger.info(f"Review {review.id} submitted for {request.target_type} {target.id}")
    return review


def get_review(db: Session, review_id: str) -> Review:
    review = db.query(Review).filter(Review.id == review_id).first()
    if not review:
        raise NotFound("Review not found")
    return review


def list_reviews(db: Session, status: Optional[str] = None) -> List[Review]:
    query = db.query(Review)
    if status and status.upper() != "ALL":
        try:
            query = query.filter(Review.status == ReviewStatus(status.upper()))
        except ValueError:
            raise ValidationFailed(f"Invalid status: {status}")
    return query.order_by(Review.created_at.desc()).all()


def approved_reviews_for(db: Session, lawyer_id: Optional[str] = None, firm_id: Optional[str] = None) -> List[Review]:
    query = db.query(Review).filter(Review.status == ReviewStatus.APPROVED)
    if lawyer_id:
        query = query.filter(Review.lawyer_id == lawyer_id)
    else:
        query = query.filter(Review.firm_id == firm_id)
    return query.order_by(Review.created_at.desc()).all()


def _owner_user_id(review: Review) -> Optional[str]:
    if review.lawyer is not None:
        return review.lawyer.user_id
    if review.firm is not None:
        return review.firm.owner_id
    return None


def moderate_review(
    db: Session,
    auth: AuthContext,
    review_id: str,
    action: str,
    admin_notes: Optional[str] = None,
) -> Review:
    new_status = MODERATION_ACTIONS.get((action or "").strip().lower())
    if new_status is None:
        raise ValidationFailed("Invalid action. Must be 'approve', 'reject' or 'flag'")

    review = get_review(db, review_id)
    previous = review.status
    if previous == new_status:
        raise ValidationFailed(f"Review is already {new_status.value.lower()}")

    review.status = new_status
    if admin_notes is not None:
        review.admin_notes = admin_notes

    record_action(
        db, auth.user_id, f"REVIEW_{action.strip().upper()}", EntityType.REVIEW, review.id,
        {"previousStatus": previous.value, "newStatus": new_status.value, "adminNotes": admin_notes},
    )

    if new_status == ReviewStatus.APPROVED:
        owner_id = _owner_user_id(review)
        if owner_id:
            notify_user(
                db, owner_id,
                type="REVIEW_APPROVED",
                title="You have a new review",
                message="A client review of your profile has been published.",
                link="/dashboard/reviews",
            )

    db.commit()
    logger.info(f"Review {review.id} moderated {previous.value} -> {new_status.value} by {auth.user_id}")
    return review


def respond_to_review(db: Session, auth: AuthContext, review_id: str, response_text: str) -> ReviewResponse:
    settings = get_settings()
    if len(response_text) < settings.review_response_min_length:
        raise ValidationFailed(f"Response must be at least {settings.review_response_min_length} characters")

    review = get_review(db, review_id)
    if not auth.is_admin and _owner_user_id(review) != auth.user_id:
        raise Forbidden("You can only respond to reviews of your own profile")
    if review.status != ReviewStatus.APPROVED:
        raise ValidationFailed("Only approved reviews can receive a response")
    if review.response is not None:
        raise ValidationFailed("This review already has a response")

    response = ReviewResponse(review_id=review.id, responder_id=auth.user_id, response_text=response_text)
    db.add(response)
    record_action(db, auth.user_id, "RESPOND_TO_REVIEW", EntityType.REVIEW, review.id)

    db.commit()
    logger.info(f"Review {review.id} answered by {auth.user_id}")
    return response


def rating_breakdown(reviews: List[Review]) -> Dict[str, float]:
    """Per-component averages for a list of reviews"""
    if not reviews:
        return {"communication": 0.0, "expertise": 0.0, "value": 0.0, "outcome": 0.0}
    outcomes = [r.outcome_rating for r in reviews if r.outcome_rating is not None]
    n = len(reviews)
    return {
        "communication": round(sum(r.communication_rating for r in reviews) / n, 2),
        "expertise": round(sum(r.expertise_rating for r in reviews) / n, 2),
        "value": round(sum(r.value_rating for r in reviews) / n, 2),
        "outcome": round(sum(outcomes) / len(outcomes), 2) if outcomes else 0.0,
    }
