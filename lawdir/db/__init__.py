"""
Database Package - SQLAlchemy
=============================

Relational storage for the legal directory.
"""

from .models import (
    Base,
    User, Specialisation,
    Lawyer, LawyerSpecialisation, CourtAppearance, LawyerLanguage, Certification,
    LawFirm, FirmLocation, FirmPracticeArea, FirmCourtAppearance, FirmLanguage, FirmInvitation,
    Review, ReviewResponse,
    PendingChange, AuditLog, Notification, ContactMessage,
    UserRole, ProfileStatus, EntityType, ReviewStatus, ChangeStatus, MessageStatus, InvitationStatus,
)
from .session import get_db, get_db_session, init_db, get_engine, reset_engine

__all__ = [
    # Base
    "Base",
    # Accounts
    "User", "Specialisation",
    # Lawyers
    "Lawyer", "LawyerSpecialisation", "CourtAppearance", "LawyerLanguage", "Certification",
    # Firms
    "LawFirm", "FirmLocation", "FirmPracticeArea", "FirmCourtAppearance", "FirmLanguage", "FirmInvitation",
    # Reviews
    "Review", "ReviewResponse",
    # Moderation & activity
    "PendingChange", "AuditLog", "Notification", "ContactMessage",
    # Enums
    "UserRole", "ProfileStatus", "EntityType", "ReviewStatus", "ChangeStatus", "MessageStatus",
    "InvitationStatus",
    # Session
    "get_db", "get_db_session", "init_db", "get_engine", "reset_engine",
]
