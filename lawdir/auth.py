"""
Authorization Module (capabilities) with JWT Support
====================================================

Capability-based access control for the legal directory.

Roles:
- ADMIN: Moderates profiles, reviews and messages; manages users
- LAWYER: Maintains own lawyer profile, responds to reviews, joins firms
- FIRM_OWNER: Maintains own firm profile and team, responds to reviews
- LAWYER_FIRM_OWNER: Both of the above
- CLIENT: Leaves reviews; reads own notifications

Authorization Flow:
1. Load user from `Authorization: Bearer <jwt>` or the session cookie
2. Build an AuthContext (user id, role)
3. Endpoints declare the capability they need via require_permission()
"""

import os
import logging
from typing import Optional
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

import jwt
from fastapi import Depends, Header, Request
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import get_settings
from .db.models import User, UserRole
from .db.session import get_db
from .errors import Unauthorised

logger = logging.getLogger(__name__)

# JWT configuration
JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
JWT_ALGORITHM = "HS256"


# =============================================================================
# PERMISSION TYPES
# =============================================================================

class Permission(str, Enum):
    """Available capabilities in the system"""
    # Profiles
    LAWYER_PROFILE_WRITE = "lawyer_profile:write"
    FIRM_PROFILE_WRITE = "firm_profile:write"

    # Firm team
    FIRM_TEAM_MANAGE = "firm_team:manage"
    FIRM_MEMBERSHIP_MANAGE = "firm_membership:manage"

    # Reviews
    REVIEW_RESPOND = "review:respond"
    REVIEW_MODERATE = "review:moderate"

    # Admin
    PENDING_CHANGE_REVIEW = "pending_change:review"
    CONTACT_MESSAGE_MANAGE = "contact_message:manage"
    USER_MANAGE = "user:manage"
    DIRECTORY_OVERVIEW = "directory:overview"
    AUDIT_READ = "audit:read"

    # Notifications
    NOTIFICATION_READ = "notification:read"


_LAWYER_PERMISSIONS = {
    Permission.LAWYER_PROFILE_WRITE,
    Permission.REVIEW_RESPOND,
    Permission.FIRM_MEMBERSHIP_MANAGE,
    Permission.NOTIFICATION_READ,
}

_FIRM_OWNER_PERMISSIONS = {
    Permission.FIRM_PROFILE_WRITE,
    Permission.FIRM_TEAM_MANAGE,
    Permission.REVIEW_RESPOND,
    Permission.NOTIFICATION_READ,
}

# Role to capabilities mapping
ROLE_PERMISSIONS = {
    UserRole.ADMIN: set(Permission),
    UserRole.LAWYER: _LAWYER_PERMISSIONS,
    UserRole.FIRM_OWNER: _FIRM_OWNER_PERMISSIONS,
    UserRole.LAWYER_FIRM_OWNER: _LAWYER_PERMISSIONS | _FIRM_OWNER_PERMISSIONS,
    UserRole.CLIENT: {Permission.NOTIFICATION_READ},
}


def role_has_permission(role: UserRole, permission: Permission) -> bool:
    return permission in ROLE_PERMISSIONS.get(role, set())


# =============================================================================
# PASSWORD HASHING
# =============================================================================

# bcrypt truncates passwords at 72 bytes; enforce to avoid 500s.
MAX_PASSWORD_BYTES = 72

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def is_password_too_long(password: str) -> bool:
    """Return True if password exceeds bcrypt 72-byte limit."""
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against a hash"""
    if not hashed_password:
        return False
    if is_password_too_long(plain_password):
        logger.warning("Auth failed: password exceeds bcrypt 72-byte limit")
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.warning(f"Auth failed: invalid password format ({e})")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password"""
    if is_password_too_long(password):
        raise ValueError("Password exceeds bcrypt 72-byte limit")
    return pwd_context.hash(password)


# =============================================================================
# JWT TOKEN HANDLING
# =============================================================================

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token"""
    if expires_delta is None:
        expires_delta = timedelta(minutes=get_settings().access_token_expire_minutes)
    to_encode = data.copy()
    expire = datetime.utcnow() + expires_delta
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token"""
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.warning(f"Invalid JWT token: {e}")
        return None
    if payload.get("type") != "access":
        logger.warning("Invalid JWT token: not an access token")
        return None
    return payload


# =============================================================================
# AUTH CONTEXT
# =============================================================================

@dataclass
class AuthContext:
    """Authorization context for a request"""
    user_id: str
    email: str
    name: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def has_permission(self, permission: Permission) -> bool:
        """Check if user has a specific capability"""
        return role_has_permission(self.role, permission)


def _context_for(user: User) -> AuthContext:
    return AuthContext(
        user_id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
    )


# =============================================================================
# AUTH SERVICE (SQLAlchemy-based)
# =============================================================================

class AuthService:
    """Authentication service using SQLAlchemy"""

    def __init__(self, db: Session):
        self.db = db

    def get_auth_context(self, user_id: str) -> Optional[AuthContext]:
        """
        Build auth context for a user.

        Args:
            user_id: User ID from the JWT subject

        Returns:
            AuthContext if user exists and is active, None otherwise
        """
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user or not user.is_active:
            logger.warning(f"Auth failed: user {user_id} not found or inactive")
            return None
        return _context_for(user)

    def authenticate_user(self, email: str, password: str) -> Optional[AuthContext]:
        """Check credentials and record the login time"""
        user = self.db.query(User).filter(User.email == email.strip().lower()).first()
        if not user or not user.is_active:
            logger.warning("Auth failed: unknown or inactive account")
            return None
        if not verify_password(password, user.password_hash):
            logger.warning(f"Auth failed: wrong password for user {user.id}")
            return None

        user.last_login = datetime.utcnow()
        self.db.commit()
        return _context_for(user)


def get_auth_service(db: Session) -> AuthService:
    return AuthService(db)


# =============================================================================
# FASTAPI DEPENDENCIES
# =============================================================================

def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip()
    return request.cookies.get(get_settings().session_cookie_name)


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> Optional[AuthContext]:
    """
    Get current user from either:
    - `Authorization: Bearer <jwt>` (preferred when present)
    - the session cookie set by /api/auth/login

    Returns None for anonymous requests or tokens that no longer resolve.
    """
    token = _extract_token(request, authorization)
    if not token:
        return None

    payload = decode_token(token)
    if not payload or not payload.get("sub"):
        return None

    return get_auth_service(db).get_auth_context(payload["sub"])


async def require_auth(
    auth: Optional[AuthContext] = Depends(get_current_user)
) -> AuthContext:
    """Require authenticated user"""
    if not auth:
        raise Unauthorised()
    return auth


def require_permission(permission: Permission):
    """
    Dependency factory: the caller must hold `permission`.

    Usage:
        @router.get("/admin/users")
        async def list_users(auth: AuthContext = Depends(require_permission(Permission.USER_MANAGE))):
            ...
    """
    async def _checker(auth: AuthContext = Depends(require_auth)) -> AuthContext:
        if not auth.has_permission(permission):
            logger.warning(f"Permission denied: user {auth.user_id} ({auth.role.value}) lacks {permission.value}")
            raise Unauthorised()
        return auth

    return _checker
