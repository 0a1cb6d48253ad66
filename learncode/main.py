import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from learncode import config
from learncode.auth import LoginRequired
from learncode.routes.admin_routes import router as admin_router
from learncode.routes.auth_routes import router as auth_router
from learncode.routes.problem_routes import router as problem_router
from learncode.services.session_service import SessionStore

logger = logging.getLogger(__name__)


def create_app(api_transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """Build the portal. `api_transport` replaces the network under the API client."""
    logging.basicConfig(level=config.LOG_LEVEL)

    app = FastAPI(title="LearnCode Portal")
    app.state.api_transport = api_transport

    @app.get("/health-check")
    async def health():
        return {"status": "ok", "message": "Portal is alive!"}

    @app.exception_handler(LoginRequired)
    async def login_required(request: Request, exc: LoginRequired):
        logger.info("Redirecting %s to %s: %s", request.url.path, config.PUBLIC_ENTRY_ROUTE, exc.reason)
        response = RedirectResponse(config.PUBLIC_ENTRY_ROUTE, status_code=303)
        if exc.discard:
            SessionStore.discard(response)
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(problem_router)
    app.include_router(admin_router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("learncode.main:app", host="0.0.0.0", port=8000, reload=True)
