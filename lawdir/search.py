"""
Directory Search
================

Faceted search over PUBLISHED lawyers and firms.

Filters run in SQL, including the rating aggregate (average
overall_rating over APPROVED reviews, 0 when a profile has none), so
pagination only ever sees matching rows. Lawyer and firm hits are merged
and sorted before the requested page is cut.

Sort orders:
- relevance (default): rating, then review count
- rating, reviews, experience (lawyers only; firms count as 0)
- newest: profile creation time
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import Numeric, cast, func, or_
from sqlalchemy.orm import Session, selectinload

from .config import get_settings
from .constants import AUSTRALIAN_STATES, normalize_state
from .db.models import (
    Lawyer, LawFirm, LawyerSpecialisation, FirmPracticeArea, FirmLocation, Specialisation, Review,
    ProfileStatus, ReviewStatus,
)
from .errors import ValidationFailed
from .serializers import summarize

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("all", "lawyer", "firm")
SORT_ORDERS = ("relevance", "rating", "reviews", "experience", "newest")


@dataclass
class SearchParams:
    """Parsed search query string"""
    query: Optional[str] = None
    location: Optional[str] = None
    state: Optional[str] = None
    areas: Optional[str] = None
    rating: Optional[float] = None
    experience: Optional[int] = None
    type: str = "all"
    sort: str = "relevance"
    page: int = 1
    limit: Optional[int] = None

    def normalized(self) -> "SearchParams":
        settings = get_settings()
        search_type = (self.type or "all").lower()
        if search_type not in SEARCH_TYPES:
            raise ValidationFailed("Invalid type. Must be 'all', 'lawyer' or 'firm'")
        sort = (self.sort or "relevance").lower()
        if sort not in SORT_ORDERS:
            sort = "relevance"
        limit = self.limit or settings.search_default_limit
        limit = max(1, min(limit, settings.search_max_limit))
        return SearchParams(
            query=(self.query or "").strip() or None,
            location=(self.location or "").strip() or None,
            state=(self.state or "").strip() or None,
            areas=(self.areas or "").strip() or None,
            rating=self.rating if self.rating and self.rating > 0 else None,
            experience=self.experience if self.experience and self.experience > 0 else None,
            type=search_type,
            sort=sort,
            page=max(1, self.page or 1),
            limit=limit,
        )

    def area_names(self) -> List[str]:
        if not self.areas:
            return []
        return [a.strip().lower() for a in self.areas.split(",") if a.strip()]

    def state_candidates(self) -> List[str]:
        """Lower-cased spellings that match the requested state"""
        values = {self.state.lower()}
        short = normalize_state(self.state)
        if short:
            for code, name, short_name in AUSTRALIAN_STATES:
                if short_name == short:
                    values.update({code, name.lower(), short_name.lower()})
        return sorted(values)


def _like(term: str) -> str:
    return f"%{term}%"


def _displayed(avg_rating):
    # two decimals, as shown in results
    return func.round(cast(avg_rating, Numeric), 2)


def _rating_subquery(db: Session, column):
    return (
        db.query(
            column.label("entity_id"),
            func.avg(Review.overall_rating).label("avg_rating"),
            func.count(Review.id).label("review_count"),
        )
        .filter(Review.status == ReviewStatus.APPROVED, column.isnot(None))
        .group_by(column)
        .subquery()
    )


def _search_lawyers(db: Session, params: SearchParams) -> List[Dict[str, Any]]:
    ratings = _rating_subquery(db, Review.lawyer_id)
    avg_rating = func.coalesce(ratings.c.avg_rating, 0.0)
    review_count = func.coalesce(ratings.c.review_count, 0)

    query = (
        db.query(Lawyer, avg_rating.label("avg_rating"), review_count.label("review_count"))
        .outerjoin(ratings, ratings.c.entity_id == Lawyer.id)
        .options(
            selectinload(Lawyer.specialisations).selectinload(LawyerSpecialisation.specialisation),
            selectinload(Lawyer.firm),
        )
        .filter(Lawyer.status == ProfileStatus.PUBLISHED)
    )

    if params.query:
        term = _like(params.query)
        query = query.filter(or_(
            Lawyer.first_name.ilike(term),
            Lawyer.last_name.ilike(term),
            (Lawyer.first_name + " " + Lawyer.last_name).ilike(term),
            Lawyer.bio.ilike(term),
            Lawyer.position.ilike(term),
        ))
    if params.location:
        term = _like(params.location)
        query = query.filter(or_(Lawyer.city.ilike(term), Lawyer.state.ilike(term), Lawyer.postcode.ilike(term)))
    if params.state:
        query = query.filter(func.lower(Lawyer.state).in_(params.state_candidates()))
    names = params.area_names()
    if names:
        query = query.filter(Lawyer.specialisations.any(
            LawyerSpecialisation.specialisation.has(func.lower(Specialisation.name).in_(names))
        ))
    if params.experience:
        query = query.filter(Lawyer.years_experience >= params.experience)
    if params.rating:
        query = query.filter(_displayed(avg_rating) >= params.rating)

    results = []
    for lawyer, avg, count in query.all():
        results.append({
            "id": lawyer.id,
            "slug": lawyer.slug,
            "type": "lawyer",
            "name": lawyer.full_name,
            "location": {"city": lawyer.city or "", "state": lawyer.state or ""},
            "specializations": [ls.specialisation.name for ls in lawyer.specialisations if ls.specialisation],
            "avgRating": round(float(avg or 0), 2),
            "reviewCount": int(count or 0),
            "yearsExperience": lawyer.years_experience or 0,
            "firm": {"id": lawyer.firm.id, "name": lawyer.firm.name} if lawyer.firm else None,
            "photoUrl": lawyer.photo_url,
            "_created": lawyer.created_at,
        })
    return results


def _search_firms(db: Session, params: SearchParams) -> List[Dict[str, Any]]:
    ratings = _rating_subquery(db, Review.firm_id)
    avg_rating = func.coalesce(ratings.c.avg_rating, 0.0)
    review_count = func.coalesce(ratings.c.review_count, 0)

    query = (
        db.query(LawFirm, avg_rating.label("avg_rating"), review_count.label("review_count"))
        .outerjoin(ratings, ratings.c.entity_id == LawFirm.id)
        .options(
            selectinload(LawFirm.practice_areas).selectinload(FirmPracticeArea.specialisation),
            selectinload(LawFirm.locations),
        )
        .filter(LawFirm.status == ProfileStatus.PUBLISHED)
    )

    if params.query:
        term = _like(params.query)
        query = query.filter(or_(LawFirm.name.ilike(term), LawFirm.description.ilike(term)))
    if params.location:
        term = _like(params.location)
        query = query.filter(LawFirm.locations.any(or_(
            FirmLocation.city.ilike(term),
            FirmLocation.state.ilike(term),
            FirmLocation.postcode.ilike(term),
        )))
    if params.state:
        query = query.filter(LawFirm.locations.any(func.lower(FirmLocation.state).in_(params.state_candidates())))
    names = params.area_names()
    if names:
        query = query.filter(LawFirm.practice_areas.any(
            FirmPracticeArea.specialisation.has(func.lower(Specialisation.name).in_(names))
        ))
    if params.rating:
        query = query.filter(_displayed(avg_rating) >= params.rating)

    results = []
    for firm, avg, count in query.all():
        primary = firm.primary_location
        results.append({
            "id": firm.id,
            "slug": firm.slug,
            "type": "firm",
            "name": firm.name,
            "location": {
                "city": (primary.city if primary else None) or "",
                "state": (primary.state if primary else None) or "",
            },
            "specializations": [pa.specialisation.name for pa in firm.practice_areas if pa.specialisation],
            "avgRating": round(float(avg or 0), 2),
            "reviewCount": int(count or 0),
            "logoUrl": firm.logo_url,
            "_created": firm.created_at,
        })
    return results


def _sort(results: List[Dict[str, Any]], sort: str) -> None:
    if sort == "rating":
        results.sort(key=lambda r: (-r["avgRating"], -r["reviewCount"]))
    elif sort == "reviews":
        results.sort(key=lambda r: (-r["reviewCount"], -r["avgRating"]))
    elif sort == "experience":
        results.sort(key=lambda r: -(r.get("yearsExperience") or 0))
    elif sort == "newest":
        results.sort(key=lambda r: r["_created"], reverse=True)
    else:
        results.sort(key=lambda r: (-r["avgRating"], -r["reviewCount"], r["name"].lower()))


def search_directory(db: Session, params: SearchParams) -> Dict[str, Any]:
    """Run a directory search and return the paginated envelope"""
    params = params.normalized()

    results: List[Dict[str, Any]] = []
    if params.type in ("all", "lawyer"):
        results.extend(_search_lawyers(db, params))
    if params.type in ("all", "firm"):
        results.extend(_search_firms(db, params))

    _sort(results, params.sort)
    total = len(results)
    start = (params.page - 1) * params.limit
    page_items = results[start:start + params.limit]
    for item in page_items:
        item.pop("_created", None)

    logger.info(f"Search type={params.type} query={params.query!r} -> {total} results")
    return summarize(page_items, total, params.page, params.limit)


def search_profiles(db: Session, query: Optional[str], profile_type: Optional[str]) -> List[Dict[str, Any]]:
    """Typeahead over published lawyer / firm names"""
    term = (query or "").strip()
    if len(term) < 2:
        return []
    profile_type = (profile_type or "").lower()
    if profile_type not in ("lawyer", "firm"):
        raise ValidationFailed("Invalid type. Must be 'lawyer' or 'firm'")

    take = get_settings().search_profiles_limit
    like = _like(term)

    if profile_type == "lawyer":
        lawyers = (
            db.query(Lawyer)
            .filter(
                Lawyer.status == ProfileStatus.PUBLISHED,
                or_(
                    Lawyer.first_name.ilike(like),
                    Lawyer.last_name.ilike(like),
                    (Lawyer.first_name + " " + Lawyer.last_name).ilike(like),
                ),
            )
            .order_by(Lawyer.last_name.asc(), Lawyer.first_name.asc())
            .limit(take)
            .all()
        )
        return [
            {
                "id": lw.id,
                "slug": lw.slug,
                "name": lw.full_name,
                "type": "lawyer",
                "location": ", ".join(p for p in (lw.city, lw.state) if p),
                "photoUrl": lw.photo_url,
            }
            for lw in lawyers
        ]

    firms = (
        db.query(LawFirm)
        .filter(LawFirm.status == ProfileStatus.PUBLISHED, LawFirm.name.ilike(like))
        .order_by(LawFirm.name.asc())
        .limit(take)
        .all()
    )
    results = []
    for firm in firms:
        primary = firm.primary_location
        location = ", ".join(p for p in ((primary.city, primary.state) if primary else ()) if p)
        results.append({
            "id": firm.id,
            "slug": firm.slug,
            "name": firm.name,
            "type": "firm",
            "location": location,
            "logoUrl": firm.logo_url,
        })
    return results
