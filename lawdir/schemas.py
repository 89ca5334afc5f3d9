"""
Pydantic Schemas for the Legal Directory
========================================

Request payloads shared across routers and the typed profile-change
snapshot stored on PendingChange rows.

Wire format is camelCase (`firstName`); Python attributes stay snake_case.
Models accept either spelling on input and reject unknown fields, so a
misnamed collection is a 400 rather than an emptied one.

Change snapshots are a tagged union on `kind`:
- LAWYER: LawyerChanges
- FIRM: FirmChanges
Each carries `action` (CREATE / UPDATE) and the proposed `slug`.
"""

from datetime import date
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, TypeAdapter
from pydantic.alias_generators import to_camel
from typing_extensions import Annotated


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


def _required_text(value: Any) -> Any:
    if value is None:
        raise ValueError("must not be blank")
    if not isinstance(value, str):
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


def _optional_text(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip() or None
    return value


RequiredText = Annotated[str, BeforeValidator(_required_text)]
OptionalText = Annotated[Optional[str], BeforeValidator(_optional_text)]


def _upper(value: Any) -> Any:
    return value.strip().upper() if isinstance(value, str) else value


TargetType = Annotated[Literal["LAWYER", "FIRM"], BeforeValidator(_upper)]


# =============================================================================
# CHILD COLLECTION ITEMS
# =============================================================================

class SpecialisationItem(CamelModel):
    """Lawyer practice area entry"""
    specialisation_id: str
    years_experience: Optional[int] = Field(None, ge=0)
    description: OptionalText = None


class CourtAppearanceItem(CamelModel):
    court_name: RequiredText
    jurisdiction: OptionalText = None
    appearance_count: OptionalText = None


class LanguageItem(CamelModel):
    language_name: RequiredText
    proficiency_level: OptionalText = None


class CertificationItem(CamelModel):
    name: RequiredText
    issuing_body: OptionalText = None
    date_earned: Optional[date] = None
    expiry_date: Optional[date] = None


class LocationItem(CamelModel):
    """Firm office location"""
    address: OptionalText = None
    city: OptionalText = None
    state: OptionalText = None
    postcode: OptionalText = None
    country: OptionalText = None
    is_primary: bool = False


# =============================================================================
# PROFILE PAYLOADS
# =============================================================================

LAWYER_COLLECTION_FIELDS = {"specialisations", "court_appearances", "languages", "certifications"}
FIRM_COLLECTION_FIELDS = {"locations", "practice_areas", "court_appearances", "languages"}
SNAPSHOT_META_FIELDS = {"kind", "action", "slug"}


class LawyerProfileInput(CamelModel):
    """Lawyer profile as submitted by its owner"""
    first_name: RequiredText
    last_name: RequiredText
    position: OptionalText = None
    years_experience: Optional[int] = Field(None, ge=0, le=80)
    bio: OptionalText = None
    photo_url: OptionalText = None

    phone: OptionalText = None
    email: OptionalText = None
    display_phone: bool = False
    display_email: bool = False

    address: OptionalText = None
    city: OptionalText = None
    state: OptionalText = None
    postcode: OptionalText = None
    country: OptionalText = None

    linkedin_url: OptionalText = None
    twitter_url: OptionalText = None
    facebook_url: OptionalText = None
    website_url: OptionalText = None
    operating_hours: Optional[Dict[str, Any]] = None

    # the lawyer form posts these as `practiceAreas`
    specialisations: List[SpecialisationItem] = Field(
        default_factory=list, validation_alias=AliasChoices("practiceAreas", "specialisations"),
    )
    court_appearances: List[CourtAppearanceItem] = Field(default_factory=list)
    languages: List[LanguageItem] = Field(default_factory=list)
    certifications: List[CertificationItem] = Field(default_factory=list)

    def profile_fields(self) -> Dict[str, Any]:
        """Scalar lawyer columns carried by this payload"""
        return self.model_dump(exclude=LAWYER_COLLECTION_FIELDS | SNAPSHOT_META_FIELDS)


class FirmProfileInput(CamelModel):
    """Firm profile as submitted by its owner"""
    name: RequiredText
    email: RequiredText
    phone: RequiredText
    description: OptionalText = None
    website: OptionalText = None
    logo_url: OptionalText = None
    display_phone: bool = False
    display_email: bool = False
    gallery_images: Optional[List[str]] = None
    operating_hours: Optional[Dict[str, Any]] = None

    locations: List[LocationItem] = Field(default_factory=list)
    practice_areas: List[str] = Field(default_factory=list)  # specialisation ids
    court_appearances: List[CourtAppearanceItem] = Field(default_factory=list)
    languages: List[LanguageItem] = Field(default_factory=list)

    def profile_fields(self) -> Dict[str, Any]:
        """Scalar firm columns carried by this payload"""
        return self.model_dump(exclude=FIRM_COLLECTION_FIELDS | SNAPSHOT_META_FIELDS)


# =============================================================================
# CHANGE SNAPSHOTS (PendingChange.changes_json)
# =============================================================================

ChangeAction = Literal["CREATE", "UPDATE"]


class LawyerChanges(LawyerProfileInput):
    kind: Literal["LAWYER"] = "LAWYER"
    action: ChangeAction
    slug: str


class FirmChanges(FirmProfileInput):
    kind: Literal["FIRM"] = "FIRM"
    action: ChangeAction
    slug: str


ProfileChanges = Annotated[Union[LawyerChanges, FirmChanges], Field(discriminator="kind")]

_changes_adapter = TypeAdapter(ProfileChanges)


def dump_changes(changes: Union[LawyerChanges, FirmChanges]) -> Dict[str, Any]:
    """Serialize a snapshot for the changes_json column"""
    return changes.model_dump(mode="json", by_alias=True)


def load_changes(data: Dict[str, Any]) -> Union[LawyerChanges, FirmChanges]:
    """Parse a stored snapshot back into its typed variant"""
    return _changes_adapter.validate_python(data)


# =============================================================================
# SHARED REQUESTS
# =============================================================================

class ProcessChangeRequest(CamelModel):
    """Admin decision on a pending change"""
    change_id: str
    action: str
    # admin screens post `notes`
    admin_notes: OptionalText = Field(None, validation_alias=AliasChoices("notes", "adminNotes"))


class ModerateReviewRequest(CamelModel):
    review_id: str
    action: str
    admin_notes: OptionalText = Field(None, validation_alias=AliasChoices("notes", "adminNotes"))


class ReviewSubmitRequest(CamelModel):
    """Public review intake"""
    reviewer_name: RequiredText = Field(..., min_length=2, max_length=100)
    reviewer_email: EmailStr
    target_type: TargetType
    target_id: str
    communication_rating: int = Field(..., ge=1, le=5)
    expertise_rating: int = Field(..., ge=1, le=5)
    value_rating: int = Field(..., ge=1, le=5)
    outcome_rating: Optional[int] = Field(None, ge=1, le=5)
    comment: RequiredText
    case_type: OptionalText = None
    service_date: Optional[str] = Field(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$")


class ReviewRespondRequest(CamelModel):
    review_id: str
    response_text: RequiredText


class ContactMessageRequest(CamelModel):
    name: RequiredText = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: OptionalText = None
    message: RequiredText = Field(..., min_length=10, max_length=5000)


class ContactMessageUpdate(CamelModel):
    status: Optional[str] = None
    admin_notes: Optional[str] = None
