"""
Specialisation catalogue (practice areas).
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from .constants import PRACTICE_AREA_CATEGORIES
from .db.models import Specialisation

logger = logging.getLogger(__name__)


def seed_specialisations(db: Session) -> int:
    """Insert missing catalogue entries; returns the number added"""
    existing = {slug for (slug,) in db.query(Specialisation.slug).all()}
    added = 0
    for area in PRACTICE_AREA_CATEGORIES:
        if area["slug"] in existing:
            continue
        db.add(Specialisation(
            name=area["name"],
            slug=area["slug"],
            category=area["name"],
            description=area["description"],
        ))
        added += 1
    if added:
        db.commit()
        logger.info(f"Seeded {added} specialisations")
    return added


def list_specialisations(db: Session) -> List[Specialisation]:
    return db.query(Specialisation).order_by(Specialisation.name.asc()).all()


def specialisation_to_dict(spec: Specialisation) -> dict:
    return {
        "id": spec.id,
        "name": spec.name,
        "slug": spec.slug,
        "category": spec.category,
        "description": spec.description,
    }
