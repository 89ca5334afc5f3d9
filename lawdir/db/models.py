"""
SQLAlchemy Models for Database
==============================

Complete schema for the legal directory including:
- Accounts (users and their roles)
- Lawyer and law firm profiles with their child collections
- Specialisation catalogue
- Client reviews and owner responses
- Moderation queue (pending profile changes)
- Audit trail, notifications, contact messages, firm invitations

Supports both PostgreSQL and SQLite via SQLAlchemy.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Column, String, Text, Integer, Float, Boolean, Date, DateTime, Enum, ForeignKey,
    UniqueConstraint, Index, JSON, CheckConstraint
)
from sqlalchemy.orm import relationship, declarative_base

# Use JSON for cross-database compatibility (works with both PostgreSQL and SQLite)
JSONB = JSON

Base = declarative_base()


def generate_uuid():
    return str(uuid.uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class UserRole(str, enum.Enum):
    """Account roles"""
    ADMIN = "ADMIN"
    LAWYER = "LAWYER"
    FIRM_OWNER = "FIRM_OWNER"
    LAWYER_FIRM_OWNER = "LAWYER_FIRM_OWNER"
    CLIENT = "CLIENT"


class ProfileStatus(str, enum.Enum):
    """Lawyer / firm profile lifecycle status"""
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"


class EntityType(str, enum.Enum):
    """Entity kinds referenced by changes, reviews and audit rows"""
    LAWYER = "LAWYER"
    FIRM = "FIRM"
    REVIEW = "REVIEW"
    USER = "USER"
    MESSAGE = "MESSAGE"


class ReviewStatus(str, enum.Enum):
    """Review moderation status"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    FLAGGED = "FLAGGED"


class ChangeStatus(str, enum.Enum):
    """Pending change status"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class MessageStatus(str, enum.Enum):
    """Contact message handling status"""
    NEW = "NEW"
    READ = "READ"
    RESPONDED = "RESPONDED"
    ARCHIVED = "ARCHIVED"


class InvitationStatus(str, enum.Enum):
    """Firm invitation status"""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"


# =============================================================================
# ACCOUNTS
# =============================================================================

class User(Base):
    """Account holder (admin, lawyer, firm owner or client)"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=True)  # Review-only clients have none
    role = Column(Enum(UserRole), default=UserRole.CLIENT, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    lawyer = relationship("Lawyer", back_populates="user", uselist=False, foreign_keys="Lawyer.user_id")
    owned_firm = relationship("LawFirm", back_populates="owner", uselist=False, foreign_keys="LawFirm.owner_id")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="author", foreign_keys="Review.author_id")


class Specialisation(Base):
    """Practice area tag"""
    __tablename__ = "specialisations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False, unique=True)
    slug = Column(String(255), nullable=False, unique=True)
    category = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)


# =============================================================================
# LAWYER PROFILE
# =============================================================================

class Lawyer(Base):
    """Individual lawyer profile"""
    __tablename__ = "lawyers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    firm_id = Column(String(36), ForeignKey("law_firms.id", ondelete="SET NULL"), nullable=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    position = Column(String(255), nullable=True)
    years_experience = Column(Integer, nullable=True)
    bio = Column(Text, nullable=True)
    photo_url = Column(String(500), nullable=True)

    # Contact
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    display_phone = Column(Boolean, default=False)
    display_email = Column(Boolean, default=False)

    # Address
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    postcode = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)

    # Social
    linkedin_url = Column(String(500), nullable=True)
    twitter_url = Column(String(500), nullable=True)
    facebook_url = Column(String(500), nullable=True)
    website_url = Column(String(500), nullable=True)
    operating_hours = Column(JSONB, nullable=True)

    status = Column(Enum(ProfileStatus), default=ProfileStatus.DRAFT, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_lawyer_status", "status"),
    )

    # Relationships
    user = relationship("User", back_populates="lawyer", foreign_keys=[user_id])
    firm = relationship("LawFirm", back_populates="lawyers")
    specialisations = relationship("LawyerSpecialisation", back_populates="lawyer", cascade="all, delete-orphan")
    court_appearances = relationship("CourtAppearance", back_populates="lawyer", cascade="all, delete-orphan")
    languages = relationship("LawyerLanguage", back_populates="lawyer", cascade="all, delete-orphan")
    certifications = relationship("Certification", back_populates="lawyer", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="lawyer", cascade="all, delete-orphan")
    pending_changes = relationship("PendingChange", back_populates="lawyer", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class LawyerSpecialisation(Base):
    """Lawyer practice area"""
    __tablename__ = "lawyer_specialisations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    lawyer_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=False)
    specialisation_id = Column(String(36), ForeignKey("specialisations.id", ondelete="CASCADE"), nullable=False)
    years_experience = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("lawyer_id", "specialisation_id", name="uq_lawyer_specialisation"),
    )

    lawyer = relationship("Lawyer", back_populates="specialisations")
    specialisation = relationship("Specialisation")


class CourtAppearance(Base):
    """Courts a lawyer appears in"""
    __tablename__ = "court_appearances"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    lawyer_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=False)
    court_name = Column(String(255), nullable=False)
    jurisdiction = Column(String(100), nullable=True)
    appearance_count = Column(String(50), nullable=True)  # "10+", "50-100"

    lawyer = relationship("Lawyer", back_populates="court_appearances")


class LawyerLanguage(Base):
    """Languages a lawyer works in"""
    __tablename__ = "lawyer_languages"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    lawyer_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=False)
    language_name = Column(String(100), nullable=False)
    proficiency_level = Column(String(50), nullable=True)

    lawyer = relationship("Lawyer", back_populates="languages")


class Certification(Base):
    """Professional certification held by a lawyer"""
    __tablename__ = "certifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    lawyer_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    issuing_body = Column(String(255), nullable=True)
    date_earned = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)

    lawyer = relationship("Lawyer", back_populates="certifications")


# =============================================================================
# LAW FIRM PROFILE
# =============================================================================

class LawFirm(Base):
    """Law firm profile"""
    __tablename__ = "law_firms"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    display_phone = Column(Boolean, default=False)
    display_email = Column(Boolean, default=False)
    website = Column(String(500), nullable=True)
    logo_url = Column(String(500), nullable=True)
    gallery_images = Column(JSONB, nullable=True)
    operating_hours = Column(JSONB, nullable=True)

    status = Column(Enum(ProfileStatus), default=ProfileStatus.DRAFT, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_firm_status", "status"),
    )

    # Relationships
    owner = relationship("User", back_populates="owned_firm", foreign_keys=[owner_id])
    lawyers = relationship("Lawyer", back_populates="firm")
    locations = relationship("FirmLocation", back_populates="firm", cascade="all, delete-orphan")
    practice_areas = relationship("FirmPracticeArea", back_populates="firm", cascade="all, delete-orphan")
    court_appearances = relationship("FirmCourtAppearance", back_populates="firm", cascade="all, delete-orphan")
    languages = relationship("FirmLanguage", back_populates="firm", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="firm", cascade="all, delete-orphan")
    pending_changes = relationship("PendingChange", back_populates="firm", cascade="all, delete-orphan")
    invitations = relationship("FirmInvitation", back_populates="firm", cascade="all, delete-orphan")

    @property
    def primary_location(self):
        for location in self.locations:
            if location.is_primary:
                return location
        return self.locations[0] if self.locations else None


class FirmLocation(Base):
    """Office location of a firm"""
    __tablename__ = "firm_locations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    firm_id = Column(String(36), ForeignKey("law_firms.id", ondelete="CASCADE"), nullable=False)
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    postcode = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)
    is_primary = Column(Boolean, default=False)

    firm = relationship("LawFirm", back_populates="locations")


class FirmPracticeArea(Base):
    """Firm practice area"""
    __tablename__ = "firm_practice_areas"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    firm_id = Column(String(36), ForeignKey("law_firms.id", ondelete="CASCADE"), nullable=False)
    specialisation_id = Column(String(36), ForeignKey("specialisations.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint("firm_id", "specialisation_id", name="uq_firm_practice_area"),
    )

    firm = relationship("LawFirm", back_populates="practice_areas")
    specialisation = relationship("Specialisation")


class FirmCourtAppearance(Base):
    """Courts a firm appears in"""
    __tablename__ = "firm_court_appearances"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    firm_id = Column(String(36), ForeignKey("law_firms.id", ondelete="CASCADE"), nullable=False)
    court_name = Column(String(255), nullable=False)
    jurisdiction = Column(String(100), nullable=True)
    appearance_count = Column(String(50), nullable=True)

    firm = relationship("LawFirm", back_populates="court_appearances")


class FirmLanguage(Base):
    """Languages a firm works in"""
    __tablename__ = "firm_languages"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    firm_id = Column(String(36), ForeignKey("law_firms.id", ondelete="CASCADE"), nullable=False)
    language_name = Column(String(100), nullable=False)
    proficiency_level = Column(String(50), nullable=True)

    firm = relationship("LawFirm", back_populates="languages")


class FirmInvitation(Base):
    """Invitation for a lawyer to join a firm"""
    __tablename__ = "firm_invitations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    firm_id = Column(String(36), ForeignKey("law_firms.id", ondelete="CASCADE"), nullable=False)
    lawyer_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=False)
    invited_by_user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    token = Column(String(64), nullable=False, unique=True)
    status = Column(Enum(InvitationStatus), default=InvitationStatus.PENDING, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    firm = relationship("LawFirm", back_populates="invitations")
    lawyer = relationship("Lawyer")


# =============================================================================
# REVIEWS
# =============================================================================

class Review(Base):
    """Client review of a lawyer or a firm"""
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    target_type = Column(Enum(EntityType), nullable=False)
    lawyer_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=True)
    firm_id = Column(String(36), ForeignKey("law_firms.id", ondelete="CASCADE"), nullable=True)

    communication_rating = Column(Integer, nullable=False)
    expertise_rating = Column(Integer, nullable=False)
    value_rating = Column(Integer, nullable=False)
    outcome_rating = Column(Integer, nullable=True)
    overall_rating = Column(Float, nullable=False)

    comment = Column(Text, nullable=False)
    case_type = Column(String(255), nullable=True)
    service_date = Column(Date, nullable=True)

    status = Column(Enum(ReviewStatus), default=ReviewStatus.PENDING, nullable=False)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "(target_type = 'LAWYER' AND lawyer_id IS NOT NULL AND firm_id IS NULL) OR "
            "(target_type = 'FIRM' AND firm_id IS NOT NULL AND lawyer_id IS NULL)",
            name="ck_review_single_target",
        ),
        Index("ix_review_lawyer_status", "lawyer_id", "status"),
        Index("ix_review_firm_status", "firm_id", "status"),
    )

    author = relationship("User", back_populates="reviews", foreign_keys=[author_id])
    lawyer = relationship("Lawyer", back_populates="reviews")
    firm = relationship("LawFirm", back_populates="reviews")
    response = relationship("ReviewResponse", back_populates="review", uselist=False, cascade="all, delete-orphan")


class ReviewResponse(Base):
    """Owner's public reply to a review"""
    __tablename__ = "review_responses"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    review_id = Column(String(36), ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, unique=True)
    responder_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    response_text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    review = relationship("Review", back_populates="response")


# =============================================================================
# MODERATION & ACTIVITY
# =============================================================================

class PendingChange(Base):
    """Staged profile edit awaiting admin review"""
    __tablename__ = "pending_changes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    entity_type = Column(Enum(EntityType), nullable=False)
    lawyer_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=True)
    firm_id = Column(String(36), ForeignKey("law_firms.id", ondelete="CASCADE"), nullable=True)
    changes_json = Column(JSONB, nullable=False)
    status = Column(Enum(ChangeStatus), default=ChangeStatus.PENDING, nullable=False)
    admin_notes = Column(Text, nullable=True)
    submitted_by_user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    processed_by_user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    processed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "(entity_type = 'LAWYER' AND lawyer_id IS NOT NULL AND firm_id IS NULL) OR "
            "(entity_type = 'FIRM' AND firm_id IS NOT NULL AND lawyer_id IS NULL)",
            name="ck_change_single_entity",
        ),
        Index("ix_change_status", "status"),
    )

    lawyer = relationship("Lawyer", back_populates="pending_changes")
    firm = relationship("LawFirm", back_populates="pending_changes")

    @property
    def entity_id(self):
        return self.lawyer_id or self.firm_id


class AuditLog(Base):
    """Append-only record of user and admin actions"""
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(100), nullable=False)
    entity_type = Column(Enum(EntityType), nullable=False)
    entity_id = Column(String(36), nullable=False)
    extra_data = Column(JSONB, default=dict)  # Note: 'metadata' is reserved by SQLAlchemy
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_audit_entity", "entity_type", "entity_id"),
    )


class Notification(Base):
    """In-app notification"""
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(500), nullable=True)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_notification_user_read", "user_id", "read"),
    )

    user = relationship("User", back_populates="notifications")


class ContactMessage(Base):
    """Message sent through the public contact form"""
    __tablename__ = "contact_messages"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    message = Column(Text, nullable=False)
    status = Column(Enum(MessageStatus), default=MessageStatus.NEW, nullable=False)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
