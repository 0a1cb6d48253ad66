import logging

from fastapi import Depends, HTTPException, Request, status

from learncode.api_client import ApiClient, ApiError, get_api_client
from learncode.services.session_service import SessionContext, SessionStore

logger = logging.getLogger(__name__)


class LoginRequired(Exception):
    """Raised by the session guard; the app turns it into a redirect."""

    def __init__(self, reason: str, discard: bool = False):
        super().__init__(reason)
        self.reason = reason
        self.discard = discard


async def get_session(
    request: Request,
    client: ApiClient = Depends(get_api_client),
) -> SessionContext:
    """
    FastAPI dependency: reads the stored credential, verifies it against the
    API and returns the session context.
    Raises LoginRequired if the credential is missing or invalid, before any
    protected data is fetched.
    """
    token = SessionStore.read(request)
    if token is None:
        # A cookie that does not decode is as good as no cookie, but drop it
        raise LoginRequired("Missing credential", discard=SessionStore.has_credential(request))

    try:
        principal = await client.verify(token)
    except ApiError as e:
        logger.info("Discarding credential that failed verification (%s)", e.status_code or e.message)
        raise LoginRequired("Invalid or expired token", discard=True)

    return SessionContext(token=token, principal=principal)


async def require_admin(session: SessionContext = Depends(get_session)) -> SessionContext:
    if not session.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not authorized to access this page",
        )
    return session

