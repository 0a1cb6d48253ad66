"""
Auth routes: GitHub OAuth start, the callback that stores the credential,
logout, and the current principal.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from learncode import config
from learncode.api_client import login_url
from learncode.auth import get_session
from learncode.services.session_service import SessionContext, SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


def _store_and_redirect(token: str, location: str) -> RedirectResponse:
    response = RedirectResponse(location, status_code=303)
    SessionStore.write(response, token)
    return response


# ── Routes ────────────────────────────────────────────────────────
@router.get("/")
async def home(request: Request):
    """Public entry. Visitors holding a credential go straight to the catalog."""
    if SessionStore.read(request):
        return RedirectResponse("/problems", status_code=303)
    return {
        "status": "success",
        "data": {
            "title": "Practice Programming Problems",
            "subtitle": "Improve your coding skills by solving programming challenges",
            "login_url": "/login",
        },
    }


@router.get("/login")
async def login(token: Optional[str] = None):
    """Start the OAuth flow, or finish it when the API sends the token back here."""
    if token:
        return _store_and_redirect(token, config.PUBLIC_ENTRY_ROUTE)
    return RedirectResponse(login_url(), status_code=303)


@router.get("/auth/callback")
async def auth_callback(token: Optional[str] = None):
    if not token:
        logger.info("OAuth callback without a token")
        return RedirectResponse(config.PUBLIC_ENTRY_ROUTE, status_code=303)
    return _store_and_redirect(token, "/problems")


@router.post("/logout")
async def logout():
    response = RedirectResponse(config.PUBLIC_ENTRY_ROUTE, status_code=303)
    SessionStore.discard(response)
    return response


@router.get("/auth/me")
async def me(session: SessionContext = Depends(get_session)):
    return {"status": "success", "data": session.principal.model_dump(by_alias=True)}
