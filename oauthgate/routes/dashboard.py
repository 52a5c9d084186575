"""
Example pages behind the AuthGate middleware.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from oauthgate.constants import DASHBOARD_PATH, DASHBOARD_TEMPLATE, LOGOUT_PATH, ROOT_PATH
from oauthgate.dependencies.auth import get_session_token, get_session_user, get_templates
from oauthgate.oauth import IssuedToken
from oauthgate.session import SessionUser

router = APIRouter(tags=["Dashboard"])


@router.get(DASHBOARD_PATH)
async def dashboard(
    request: Request,
    user: Optional[SessionUser] = Depends(get_session_user),
    token: Optional[IssuedToken] = Depends(get_session_token),
    templates: Jinja2Templates = Depends(get_templates),
):
    """
    Dashboard page - requires a logged-in session.
    """
    return templates.TemplateResponse(
        request,
        DASHBOARD_TEMPLATE,
        {
            "user": user,
            "token_expiry": token.expiry if token else None,
            "logout_path": LOGOUT_PATH,
        },
    )


@router.get(ROOT_PATH)
async def root(user: Optional[SessionUser] = Depends(get_session_user)):
    """Send logged-in users to the dashboard."""
    if user is None:
        # AuthGate normally redirects anonymous users before this point
        raise HTTPException(status_code=404, detail="Not Found")
    return RedirectResponse(url=DASHBOARD_PATH, status_code=302)
