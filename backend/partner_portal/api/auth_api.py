"""
Authentication API
Login, logout and the request guards used by the other routers
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from partner_portal.core.config import Settings
from partner_portal.core.database import get_db
from partner_portal.api.forms import body_of
from partner_portal.core.errors import Forbidden, NotAuthenticated
from partner_portal.services.auth_service import AuthService, SessionContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

DASHBOARD_URL = "/partner/dashboard"


# ============================================================================
# SCHEMAS
# ============================================================================

class LoginRequest(BaseModel):
    """Login request"""
    username: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    """Login response"""
    success: bool
    message: str
    redirectUrl: Optional[str] = None


class CurrentUserResponse(BaseModel):
    """Identity of the current session"""
    success: bool = True
    userId: int
    username: str
    isPartner: bool
    isAdmin: bool


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_settings(request: Request) -> Settings:
    """Settings of the running application"""
    return request.app.state.settings


def get_auth_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> AuthService:
    return AuthService(db, settings.SESSION_LIFETIME_HOURS)


def get_session_id(
    request: Request,
    settings: Settings = Depends(get_settings)
) -> Optional[str]:
    """Session id from the cookie"""
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_session_context(
    session_id: Optional[str] = Depends(get_session_id),
    auth: AuthService = Depends(get_auth_service)
) -> SessionContext:
    """
    Resolve the session behind the request cookie

    Returns:
        SessionContext, anonymous when there is no valid session
    """
    return auth.resolve(session_id)


def require_auth(
    ctx: SessionContext = Depends(get_session_context)
) -> SessionContext:
    """
    Dependency for endpoints that need a logged in user

    Raises:
        NotAuthenticated: no valid session
    """
    if not ctx.is_authenticated:
        raise NotAuthenticated()

    return ctx


def require_admin(
    ctx: SessionContext = Depends(require_auth)
) -> SessionContext:
    """
    Dependency for endpoints that need an administrator

    Raises:
        Forbidden: logged in, but not an admin
    """
    if not ctx.is_admin:
        logger.warning(f"🚫 Admin access denied for user '{ctx.username}'")
        raise Forbidden("Access Denied: You must be an Administrator.")

    return ctx


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post("/login", response_model=LoginResponse)
def login(
    response: Response,
    request: LoginRequest = Depends(body_of(LoginRequest)),
    session_id: Optional[str] = Depends(get_session_id),
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings)
):
    """
    Log in

    The session is committed before this returns, so the dashboard
    request that follows always sees it.

    Set-Cookie: session_id
    """
    session = auth.login(request.username, request.password, previous_session_id=session_id)

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.session_id,
        max_age=settings.SESSION_LIFETIME_HOURS * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )

    return LoginResponse(
        success=True,
        message="Login successful",
        redirectUrl=DASHBOARD_URL,
    )


@router.post("/logout")
def logout(
    session_id: Optional[str] = Depends(get_session_id),
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings)
):
    """
    Log out

    Deletes the session and the cookie, then redirects to the landing page
    """
    auth.logout(session_id)

    response = RedirectResponse(url="/", status_code=303)
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME)

    return response


@router.get("/me", response_model=CurrentUserResponse)
def get_current_user_info(
    ctx: SessionContext = Depends(require_auth)
):
    """
    Identity of the current session

    Requires authentication
    """
    return CurrentUserResponse(
        userId=ctx.user_id,
        username=ctx.username,
        isPartner=ctx.is_partner,
        isAdmin=ctx.is_admin,
    )


@router.delete("/sessions/cleanup")
def cleanup_expired_sessions(
    ctx: SessionContext = Depends(require_admin),
    auth: AuthService = Depends(get_auth_service)
):
    """
    Purge expired sessions

    Requires admin rights
    """
    deleted = auth.cleanup_expired_sessions()

    return {
        "success": True,
        "message": f"Deleted {deleted} expired sessions",
        "deleted_count": deleted,
    }
