"""
ORM -> JSON helpers (camelCase keys, as consumed by the web client).
"""

from typing import Any, Dict, List, Optional

from .db.models import (
    AuditLog, Lawyer, LawFirm, Review, PendingChange, User, ContactMessage, FirmInvitation,
)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _enum_value(v):
    return v.value if hasattr(v, "value") else v


def _court(row) -> Dict[str, Any]:
    return {
        "id": row.id,
        "courtName": row.court_name,
        "jurisdiction": row.jurisdiction,
        "appearanceCount": row.appearance_count,
    }


def _language(row) -> Dict[str, Any]:
    return {"id": row.id, "languageName": row.language_name, "proficiencyLevel": row.proficiency_level}


def user_to_dict(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": _enum_value(user.role),
        "isActive": user.is_active,
        "createdAt": _iso(user.created_at),
        "lastLogin": _iso(user.last_login),
    }


def lawyer_to_dict(lawyer: Lawyer, public: bool = False) -> Dict[str, Any]:
    """Full lawyer profile; `public` hides contact details the owner chose not to display"""
    data = {
        "id": lawyer.id,
        "userId": lawyer.user_id,
        "firmId": lawyer.firm_id,
        "firstName": lawyer.first_name,
        "lastName": lawyer.last_name,
        "slug": lawyer.slug,
        "position": lawyer.position,
        "yearsExperience": lawyer.years_experience,
        "bio": lawyer.bio,
        "photoUrl": lawyer.photo_url,
        "phone": lawyer.phone,
        "email": lawyer.email,
        "displayPhone": lawyer.display_phone,
        "displayEmail": lawyer.display_email,
        "address": lawyer.address,
        "city": lawyer.city,
        "state": lawyer.state,
        "postcode": lawyer.postcode,
        "country": lawyer.country,
        "linkedinUrl": lawyer.linkedin_url,
        "twitterUrl": lawyer.twitter_url,
        "facebookUrl": lawyer.facebook_url,
        "websiteUrl": lawyer.website_url,
        "operatingHours": lawyer.operating_hours,
        "status": _enum_value(lawyer.status),
        "createdAt": _iso(lawyer.created_at),
        "updatedAt": _iso(lawyer.updated_at),
        "specialisations": [
            {
                "id": ls.id,
                "specialisationId": ls.specialisation_id,
                "name": ls.specialisation.name if ls.specialisation else None,
                "yearsExperience": ls.years_experience,
                "description": ls.description,
            }
            for ls in lawyer.specialisations
        ],
        "courtAppearances": [_court(c) for c in lawyer.court_appearances],
        "languages": [_language(lang) for lang in lawyer.languages],
        "certifications": [
            {
                "id": c.id,
                "name": c.name,
                "issuingBody": c.issuing_body,
                "dateEarned": _iso(c.date_earned),
                "expiryDate": _iso(c.expiry_date),
            }
            for c in lawyer.certifications
        ],
        "firm": {"id": lawyer.firm.id, "name": lawyer.firm.name, "slug": lawyer.firm.slug} if lawyer.firm else None,
    }
    if public:
        if not lawyer.display_phone:
            data["phone"] = None
        if not lawyer.display_email:
            data["email"] = None
        data.pop("userId")
    return data


def firm_to_dict(firm: LawFirm, public: bool = False) -> Dict[str, Any]:
    """Full firm profile; `public` hides contact details the owner chose not to display"""
    data = {
        "id": firm.id,
        "ownerId": firm.owner_id,
        "name": firm.name,
        "slug": firm.slug,
        "description": firm.description,
        "email": firm.email,
        "phone": firm.phone,
        "displayPhone": firm.display_phone,
        "displayEmail": firm.display_email,
        "website": firm.website,
        "logoUrl": firm.logo_url,
        "galleryImages": firm.gallery_images or [],
        "operatingHours": firm.operating_hours,
        "status": _enum_value(firm.status),
        "createdAt": _iso(firm.created_at),
        "updatedAt": _iso(firm.updated_at),
        "locations": [
            {
                "id": loc.id,
                "address": loc.address,
                "city": loc.city,
                "state": loc.state,
                "postcode": loc.postcode,
                "country": loc.country,
                "isPrimary": loc.is_primary,
            }
            for loc in firm.locations
        ],
        "practiceAreas": [
            {
                "id": pa.id,
                "specialisationId": pa.specialisation_id,
                "name": pa.specialisation.name if pa.specialisation else None,
            }
            for pa in firm.practice_areas
        ],
        "courtAppearances": [_court(c) for c in firm.court_appearances],
        "languages": [_language(lang) for lang in firm.languages],
        "lawyers": [
            {
                "id": lw.id,
                "slug": lw.slug,
                "name": lw.full_name,
                "position": lw.position,
                "photoUrl": lw.photo_url,
                "status": _enum_value(lw.status),
            }
            for lw in firm.lawyers
        ],
    }
    if public:
        if not firm.display_phone:
            data["phone"] = None
        if not firm.display_email:
            data["email"] = None
        data.pop("ownerId")
        data["lawyers"] = [lw for lw in data["lawyers"] if lw["status"] == "PUBLISHED"]
    return data


def review_to_dict(review: Review, include_private: bool = False) -> Dict[str, Any]:
    data = {
        "id": review.id,
        "targetType": _enum_value(review.target_type),
        "lawyerId": review.lawyer_id,
        "firmId": review.firm_id,
        "reviewerName": review.author.name if review.author else None,
        "communicationRating": review.communication_rating,
        "expertiseRating": review.expertise_rating,
        "valueRating": review.value_rating,
        "outcomeRating": review.outcome_rating,
        "overallRating": review.overall_rating,
        "comment": review.comment,
        "caseType": review.case_type,
        "serviceDate": review.service_date.strftime("%Y-%m") if review.service_date else None,
        "status": _enum_value(review.status),
        "createdAt": _iso(review.created_at),
        "response": {
            "responseText": review.response.response_text,
            "createdAt": _iso(review.response.created_at),
        } if review.response else None,
    }
    if include_private:
        data["reviewerEmail"] = review.author.email if review.author else None
        data["adminNotes"] = review.admin_notes
        if review.lawyer is not None:
            data["target"] = {"name": review.lawyer.full_name, "slug": review.lawyer.slug}
        elif review.firm is not None:
            data["target"] = {"name": review.firm.name, "slug": review.firm.slug}
    return data


def change_to_dict(change: PendingChange) -> Dict[str, Any]:
    entity = change.lawyer or change.firm
    if change.lawyer is not None:
        entity_name = change.lawyer.full_name
    elif change.firm is not None:
        entity_name = change.firm.name
    else:
        entity_name = None
    return {
        "id": change.id,
        "entityType": _enum_value(change.entity_type),
        "entityId": change.entity_id,
        "entityName": entity_name,
        "entitySlug": entity.slug if entity is not None else None,
        "changes": change.changes_json,
        "status": _enum_value(change.status),
        "adminNotes": change.admin_notes,
        "submittedByUserId": change.submitted_by_user_id,
        "processedByUserId": change.processed_by_user_id,
        "createdAt": _iso(change.created_at),
        "processedAt": _iso(change.processed_at),
    }


def message_to_dict(message: ContactMessage) -> Dict[str, Any]:
    return {
        "id": message.id,
        "name": message.name,
        "email": message.email,
        "phone": message.phone,
        "message": message.message,
        "status": _enum_value(message.status),
        "adminNotes": message.admin_notes,
        "createdAt": _iso(message.created_at),
        "updatedAt": _iso(message.updated_at),
    }


def invitation_to_dict(invitation: FirmInvitation) -> Dict[str, Any]:
    return {
        "id": invitation.id,
        "firmId": invitation.firm_id,
        "firmName": invitation.firm.name if invitation.firm else None,
        "lawyerId": invitation.lawyer_id,
        "lawyerName": invitation.lawyer.full_name if invitation.lawyer else None,
        "status": _enum_value(invitation.status),
        "expiresAt": _iso(invitation.expires_at),
        "createdAt": _iso(invitation.created_at),
    }


def audit_to_dict(entry: AuditLog) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "userId": entry.user_id,
        "action": entry.action,
        "entityType": _enum_value(entry.entity_type),
        "entityId": entry.entity_id,
        "details": entry.extra_data or {},
        "createdAt": _iso(entry.created_at),
    }


def summarize(items: List[Dict[str, Any]], total: int, page: int, limit: int) -> Dict[str, Any]:
    """Standard paginated envelope"""
    return {
        "results": items,
        "total": total,
        "page": page,
        "limit": limit,
        "hasMore": page * limit < total,
    }
