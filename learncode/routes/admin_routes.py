from fastapi import APIRouter, Depends, HTTPException

from learncode.api_client import ApiClient, get_api_client
from learncode.auth import require_admin
from learncode.models import Difficulty, ProblemDraft, blank_form
from learncode.services.authoring_service import CONFIRM_DELETE_PROMPT, AdminProblemsView
from learncode.services.session_service import SessionContext

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/problems")
async def list_problems(
    session: SessionContext = Depends(require_admin),
    client: ApiClient = Depends(get_api_client),
):
    view = AdminProblemsView(client, session)
    problems = await view.load()
    if view.error:
        raise HTTPException(status_code=502, detail=view.error)
    return {"status": "success", "data": [p.model_dump(mode="json") for p in problems]}


@router.get("/add")
async def add_form(session: SessionContext = Depends(require_admin)):
    return {
        "status": "success",
        "data": {"form": blank_form(), "difficulties": [d.value for d in Difficulty]},
    }


@router.post("/add")
async def add_problem(
    body: ProblemDraft,
    session: SessionContext = Depends(require_admin),
    client: ApiClient = Depends(get_api_client),
):
    """Admin only: create a problem. The returned form is blank on success."""
    view = AdminProblemsView(client, session)
    created = await view.create(body)
    if view.error:
        raise HTTPException(status_code=502, detail=view.error)
    return {
        "status": "success",
        "message": view.message,
        "data": created.model_dump(mode="json") if created else None,
        "form": view.form,
    }


@router.delete("/problems/{problem_id}")
async def delete_problem(
    problem_id: str,
    confirm: bool = False,
    session: SessionContext = Depends(require_admin),
    client: ApiClient = Depends(get_api_client),
):
    """Admin only: needs ?confirm=true, otherwise nothing is deleted."""
    view = AdminProblemsView(client, session)
    deleted = await view.delete(problem_id, confirm=lambda prompt: confirm)
    if not deleted:
        if view.error:
            raise HTTPException(status_code=502, detail=view.error)
        raise HTTPException(status_code=428, detail=CONFIRM_DELETE_PROMPT)
    return {"status": "success"}
