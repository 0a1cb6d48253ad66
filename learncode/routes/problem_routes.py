"""
Problem routes: the catalog, a problem's workspace, and run/submit.
Run and submit answer with a server-sent-event stream of status updates that
lasts as long as the submission is polled; a disconnect stops the polling.
"""
import json
import logging
from typing import Optional

import anyio
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from learncode.api_client import ApiClient, client_for, get_api_client
from learncode.auth import get_session
from learncode.models import (
    STARTER_CODE,
    CodeSubmission,
    Difficulty,
    Language,
    Problem,
    SubmissionKind,
)
from learncode.services.catalog_service import CatalogView
from learncode.services.session_service import SessionContext
from learncode.services.workspace_service import WorkspaceView

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/problems", tags=["Problems"])

# Judge data stays with the API and the admin pages
_HIDDEN_FIELDS = {"input", "output"}


def _public(problem: Problem) -> dict:
    return problem.model_dump(mode="json", exclude=_HIDDEN_FIELDS)


def format_event(event: str, data) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


# ── Catalog ───────────────────────────────────────────────────────
@router.get("")
async def list_problems(
    difficulty: Optional[Difficulty] = None,
    session: SessionContext = Depends(get_session),
    client: ApiClient = Depends(get_api_client),
):
    view = CatalogView(client, session)
    await view.load()
    if view.error:
        raise HTTPException(status_code=502, detail=view.error)

    displayed = view.select_difficulty(difficulty)
    return {
        "status": "success",
        "data": {
            "problems": [_public(p) for p in displayed],
            "user": view.user.model_dump(by_alias=True),
            "difficulty": difficulty.value if difficulty else None,
            "difficulties": [d.value for d in Difficulty],
        },
    }


# ── Workspace ─────────────────────────────────────────────────────
@router.get("/{problem_id}")
async def get_problem(
    problem_id: str,
    language: Language = Language.PYTHON,
    session: SessionContext = Depends(get_session),
    client: ApiClient = Depends(get_api_client),
):
    async with WorkspaceView(client, session, problem_id, language) as view:
        problem = await view.load()
    if problem is None:
        raise HTTPException(status_code=404 if view.error == "Problem not found" else 502, detail=view.error)

    return {
        "status": "success",
        "data": {
            "problem": _public(problem),
            "user": session.principal.model_dump(by_alias=True),
            "language": view.language.value,
            "code": view.code,
            "languages": [lang.value for lang in STARTER_CODE],
        },
    }


@router.get("/{problem_id}/submissions")
async def list_submissions(
    problem_id: str,
    session: SessionContext = Depends(get_session),
    client: ApiClient = Depends(get_api_client),
):
    async with WorkspaceView(client, session, problem_id) as view:
        submissions = await view.load_history()
    if view.error:
        raise HTTPException(status_code=502, detail=view.error)
    return {"status": "success", "data": [s.model_dump(mode="json") for s in submissions]}


@router.get("/{problem_id}/submissions/{submission_id}")
async def get_submission(
    problem_id: str,
    submission_id: str,
    session: SessionContext = Depends(get_session),
    client: ApiClient = Depends(get_api_client),
):
    async with WorkspaceView(client, session, problem_id) as view:
        submission = await view.load_submission(submission_id)
    if submission is None:
        raise HTTPException(status_code=404 if view.error == "Submission not found" else 502, detail=view.error)
    return {"status": "success", "data": submission.model_dump(mode="json")}


# ── Run / Submit ──────────────────────────────────────────────────
async def _event_stream(view: WorkspaceView, client: ApiClient, queue):
    try:
        while True:
            event = await queue.get()
            if event is None:
                break
            name, data = event
            if name == "error":
                data = {"error": data}
            yield format_event(name, data)
    finally:
        # A client disconnect cancels the stream; cleanup still has to finish
        with anyio.CancelScope(shield=True):
            try:
                await view.close()
            finally:
                await client.aclose()


async def _start(request: Request, session: SessionContext, problem_id: str, body: CodeSubmission, kind: SubmissionKind):
    # The stream outlives this handler, so it owns its own client
    client = client_for(request)
    view = WorkspaceView(client, session, problem_id, body.language)
    action = view.run if kind == SubmissionKind.RUN else view.submit
    watch = await action(body.code, body.language)
    if watch is None:
        error = view.error
        await view.close()
        await client.aclose()
        raise HTTPException(status_code=502, detail=error)

    queue = watch.subscribe()
    return StreamingResponse(
        _event_stream(view, client, queue),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.post("/{problem_id}/run")
async def run_code(
    problem_id: str,
    body: CodeSubmission,
    request: Request,
    session: SessionContext = Depends(get_session),
):
    """Run against the example data; not kept for grading."""
    return await _start(request, session, problem_id, body, SubmissionKind.RUN)


@router.post("/{problem_id}/submit")
async def submit_code(
    problem_id: str,
    body: CodeSubmission,
    request: Request,
    session: SessionContext = Depends(get_session),
):
    return await _start(request, session, problem_id, body, SubmissionKind.SUBMIT)
