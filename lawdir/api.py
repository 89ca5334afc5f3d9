"""
Legal Directory Service API
===========================

FastAPI application for the lawyer / law firm directory.

Core Endpoints:
- GET  /health                         - Health check
- POST /api/auth/register              - Create a lawyer / firm owner account
- POST /api/auth/login                 - Login (JWT + session cookie)
- POST /api/auth/logout                - Clear the session cookie
- GET  /api/auth/me                    - Current user
- POST /api/auth/password              - Change own password
- GET  /api/notifications              - Own notifications
- POST /api/notifications/{id}/read    - Mark one notification read
- POST /api/notifications/read-all     - Mark all notifications read

Routers:
- api_public   - search, public profiles, review intake, contact form
- api_profiles - own profile submission, firm team, review responses
- api_admin    - approvals, review moderation, messages, users

Run with:
    uvicorn lawdir.api:app --host 0.0.0.0 --port 8000
"""

import logging
from typing import Optional

from fastapi import FastAPI, Depends, Query, Response, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from .accounts import change_password, get_user, login, register
from .api_admin import router as admin_router
from .api_profiles import router as profiles_router
from .api_public import router as public_router
from .auth import AuthContext, Permission, require_auth, require_permission
from .config import get_settings
from .db.session import get_db, get_db_session, init_db
from .errors import DirectoryError
from .middleware.security import SecurityHeadersMiddleware
from .notifications import (
    list_notifications, mark_all_read, mark_read, notification_to_dict, unread_count,
)
from .schemas import CamelModel
from .serializers import user_to_dict
from .specialisations import seed_specialisations

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =============================================================================
# FastAPI App
# =============================================================================

app = FastAPI(
    title="Legal Directory Service",
    description="Directory of lawyers and law firms with moderated profiles and client reviews",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

_settings = get_settings()
logger.info(f"CORS allow origins: {_settings.cors_origin_list()}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origin_list(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)

app.include_router(public_router)
app.include_router(profiles_router)
app.include_router(admin_router)


@app.on_event("startup")
async def startup_event():
    """Create tables and make sure the practice area catalogue exists"""
    settings = get_settings()
    logger.info(f"Starting Legal Directory Service v{settings.service_version}")
    init_db()
    with get_db_session() as db:
        seed_specialisations(db)


@app.get("/health", tags=["Health"])
async def health_check():
    settings = get_settings()
    return {"status": "healthy", "version": settings.service_version}


# =============================================================================
# AUTH
# =============================================================================

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    name: str
    role: str


@app.post("/api/auth/register", tags=["Auth"], status_code=201)
async def register_account(request: RegisterRequest, db: Session = Depends(get_db)):
    """
    Register a lawyer, firm owner or lawyer-firm-owner account.
    Admin and client accounts cannot be self-registered.
    """
    user = register(db, str(request.email), request.password, request.name, request.role)
    return {"user": user_to_dict(user)}


@app.post("/api/auth/login", tags=["Auth"])
async def login_account(request: LoginRequest, response: Response, db: Session = Depends(get_db)):
    """
    Login with email and password.
    Returns a JWT and also sets it as an HTTP-only session cookie.
    """
    settings = get_settings()
    token, user = login(db, str(request.email), request.password)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    return {"accessToken": token, "tokenType": "bearer", "user": user_to_dict(user)}


@app.post("/api/auth/logout", tags=["Auth"])
async def logout_account(response: Response):
    response.delete_cookie(get_settings().session_cookie_name)
    return {"message": "Logged out"}


@app.get("/api/auth/me", tags=["Auth"])
async def get_me(auth: AuthContext = Depends(require_auth), db: Session = Depends(get_db)):
    return {"user": user_to_dict(get_user(db, auth.user_id))}


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str


@app.post("/api/auth/password", tags=["Auth"])
async def change_own_password(
    request: ChangePasswordRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    change_password(db, auth, request.current_password, request.new_password)
    return {"message": "Password updated"}


# =============================================================================
# NOTIFICATIONS
# =============================================================================

@app.get("/api/notifications", tags=["Notifications"])
async def get_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    auth: AuthContext = Depends(require_permission(Permission.NOTIFICATION_READ)),
    db: Session = Depends(get_db),
):
    notifications = list_notifications(db, auth.user_id, unread_only=unread_only)
    return {
        "notifications": [notification_to_dict(n) for n in notifications],
        "unreadCount": unread_count(db, auth.user_id),
    }


@app.post("/api/notifications/read-all", tags=["Notifications"])
async def read_all_notifications(
    auth: AuthContext = Depends(require_permission(Permission.NOTIFICATION_READ)),
    db: Session = Depends(get_db),
):
    return {"updated": mark_all_read(db, auth.user_id)}


@app.post("/api/notifications/{notification_id}/read", tags=["Notifications"])
async def read_notification(
    notification_id: str,
    auth: AuthContext = Depends(require_permission(Permission.NOTIFICATION_READ)),
    db: Session = Depends(get_db),
):
    return notification_to_dict(mark_read(db, auth.user_id, notification_id))


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def _error_payload(message: str, details: Optional[object] = None) -> dict:
    payload = {"error": message}
    if details is not None:
        payload["details"] = details
    return payload


@app.exception_handler(DirectoryError)
async def directory_error_handler(request: Request, exc: DirectoryError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_error_payload(exc.message, exc.details))


@app.exception_handler(StarletteHTTPException)
async def api_http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) and exc.detail else "Request failed"
    return JSONResponse(status_code=exc.status_code, content=_error_payload(detail), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def api_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return validation errors without echoing inputs back"""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=_error_payload("Validation failed", errors))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler - always return valid JSON"""
    logger.error(f"Unhandled exception on {request.url.path}: {exc.__class__.__name__}", exc_info=exc)
    return JSONResponse(status_code=500, content=_error_payload("Internal server error"))


# =============================================================================
# Main (for direct execution)
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "lawdir.api:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
