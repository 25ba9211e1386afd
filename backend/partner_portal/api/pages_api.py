"""
Pages
Landing page and the partner dashboard
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from partner_portal.api.auth_api import DASHBOARD_URL, get_session_context
from partner_portal.services.auth_service import SessionContext

router = APIRouter(tags=["pages"])


@router.get("/")
def root(
    request: Request,
    ctx: SessionContext = Depends(get_session_context)
):
    """Public landing page, logged in users go straight to the dashboard"""
    if ctx.is_authenticated:
        return RedirectResponse(url=DASHBOARD_URL, status_code=302)

    settings = request.app.state.settings

    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "online",
        "login": "/auth/login",
    }


@router.get("/health")
def health_check():
    """Health check for monitoring"""
    return {"status": "healthy"}


@router.get(DASHBOARD_URL)
@router.get("/dashboard")
def dashboard(
    ctx: SessionContext = Depends(get_session_context)
):
    """
    Data for the partner dashboard

    Anonymous visitors are redirected to the landing page
    """
    if not ctx.is_authenticated:
        return RedirectResponse(url="/", status_code=302)

    return {
        "username": ctx.username,
        "userId": ctx.user_id,
        "isPartner": ctx.is_partner,
        "isAdmin": ctx.is_admin,
    }
