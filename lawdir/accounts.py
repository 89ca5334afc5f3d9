"""
Accounts: registration, login, password changes and admin user management.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from .audit import record_action
from .auth import (
    AuthContext, create_access_token, get_auth_service, get_password_hash, is_password_too_long, verify_password,
)
from .db.models import User, UserRole, EntityType
from .errors import NotFound, Unauthorised, ValidationFailed

logger = logging.getLogger(__name__)

SELF_SERVICE_ROLES = (UserRole.LAWYER, UserRole.FIRM_OWNER, UserRole.LAWYER_FIRM_OWNER)
MIN_PASSWORD_LENGTH = 8


def _check_new_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if is_password_too_long(password):
        raise ValidationFailed("Password too long (max 72 bytes)")


def register(db: Session, email: str, password: str, name: str, role: str) -> User:
    try:
        user_role = UserRole(role.strip().upper())
    except ValueError:
        raise ValidationFailed("Invalid role")
    if user_role not in SELF_SERVICE_ROLES:
        raise ValidationFailed("Invalid role")
    _check_new_password(password)

    email = email.strip().lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise ValidationFailed("An account with this email already exists")

    user = User(
        email=email,
        name=name.strip(),
        password_hash=get_password_hash(password),
        role=user_role,
        is_active=True,
    )
    db.add(user)
    db.flush()
    record_action(db, user.id, "REGISTER", EntityType.USER, user.id, {"role": user_role.value})

    db.commit()
    logger.info(f"Registered user {user.id} as {user_role.value}")
    return user


def login(db: Session, email: str, password: str) -> Tuple[str, User]:
    """(access token, user) for valid credentials"""
    auth = get_auth_service(db).authenticate_user(email, password)
    if not auth:
        raise Unauthorised("Invalid email or password")
    token = create_access_token({"sub": auth.user_id, "role": auth.role.value})
    return token, get_user(db, auth.user_id)


def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def list_users(db: Session, q: Optional[str] = None, role: Optional[str] = None) -> List[User]:
    query = db.query(User)
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(or_(User.email.ilike(like), User.name.ilike(like)))
    if role:
        try:
            query = query.filter(User.role == UserRole(role.strip().upper()))
        except ValueError:
            raise ValidationFailed("Invalid role")
    return query.order_by(User.created_at.desc()).all()


def update_user_role(db: Session, auth: AuthContext, user_id: str, role: str) -> User:
    try:
        new_role = UserRole(role.strip().upper())
    except ValueError:
        raise ValidationFailed("Invalid role")
    if user_id == auth.user_id:
        raise ValidationFailed("You cannot change your own role")

    user = get_user(db, user_id)
    previous = user.role
    user.role = new_role
    record_action(
        db, auth.user_id, "UPDATE_USER_ROLE", EntityType.USER, user.id,
        {"previousRole": previous.value, "newRole": new_role.value},
    )

    db.commit()
    logger.info(f"User {user.id} role {previous.value} -> {new_role.value} by admin {auth.user_id}")
    return user


def change_password(db: Session, auth: AuthContext, current_password: str, new_password: str) -> User:
    """Replace the caller's password after checking the current one"""
    user = get_user(db, auth.user_id)
    if not verify_password(current_password, user.password_hash):
        raise ValidationFailed("Current password is incorrect")
    _check_new_password(new_password)
    if current_password == new_password:
        raise ValidationFailed("New password must be different from the current password")

    user.password_hash = get_password_hash(new_password)
    record_action(db, user.id, "CHANGE_PASSWORD", EntityType.USER, user.id)

    db.commit()
    logger.info(f"User {user.id} changed their password")
    return user
