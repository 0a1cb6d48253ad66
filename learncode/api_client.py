"""
api_client.py: Async HTTP client for the LearnCode problem/judge API.
Every call carries `Authorization: Bearer <token>`; the OAuth login start is a
browser redirect and only needs its URL (see login_url).
"""
import logging

import httpx
from fastapi import Request
from pydantic import ValidationError

from learncode import config
from learncode.models import (
    Principal,
    Problem,
    ProblemDraft,
    Submission,
    SubmissionKind,
    SubmitReceipt,
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """The API could not be reached or answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def login_url() -> str:
    """Where the browser is sent to start the GitHub OAuth flow."""
    return f"{config.API_URL}/auth/github"


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"{resp.status_code} {resp.reason_phrase}".strip()


def _unwrap(data, key: str):
    """The API wraps some payloads ({"problem": {...}}) and not others."""
    if isinstance(data, dict) and key in data:
        return data[key]
    return data


def _parse(model, data):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ApiError(f"Unexpected {model.__name__} payload: {e.error_count()} invalid field(s)") from e


class ApiClient:
    """Thin wrapper over httpx.AsyncClient, one instance per request scope."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url or config.API_URL,
            timeout=timeout if timeout is not None else config.HTTP_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    # ------------------------------------------------------------------
    @staticmethod
    def _headers(token: str) -> dict:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, token: str, **kwargs):
        try:
            resp = await self._client.request(method, path, headers=self._headers(token), **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out", method, path)
            raise ApiError(f"{method} {path} timed out") from e
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(f"{method} {path} failed: {e}") from e

        if resp.is_error:
            logger.warning("%s %s -> %s", method, path, resp.status_code)
            raise ApiError(_error_detail(resp), status_code=resp.status_code)

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(f"{method} {path} returned a non-JSON body", status_code=resp.status_code) from e

    # ── Auth ──────────────────────────────────────────────────────────
    async def verify(self, token: str) -> Principal:
        data = await self._request("GET", "/auth/verify", token)
        return _parse(Principal, _unwrap(data, "user"))

    # ── Problems ──────────────────────────────────────────────────────
    async def list_problems(self, token: str) -> tuple[list[Problem], Principal | None]:
        """GET /problems: returns the problems and the user the API resolved."""
        data = await self._request("GET", "/problems", token)
        rows = _unwrap(data, "problems") or []
        if not isinstance(rows, list):
            raise ApiError("Unexpected problems payload")
        problems = [_parse(Problem, row) for row in rows]
        user = data.get("user") if isinstance(data, dict) else None
        return problems, _parse(Principal, user) if user else None

    async def get_problem(self, token: str, problem_id: str) -> Problem:
        data = await self._request("GET", f"/problems/{problem_id}", token)
        return _parse(Problem, _unwrap(data, "problem"))

    async def create_problem(self, token: str, draft: ProblemDraft) -> Problem | None:
        data = await self._request("POST", "/admin/add", token, json=draft.model_dump(mode="json"))
        created = _unwrap(data, "problem")
        return _parse(Problem, created) if isinstance(created, dict) and created.get("id") else None

    async def delete_problem(self, token: str, problem_id: str) -> None:
        await self._request("DELETE", f"/admin/problems/{problem_id}", token)

    # ── Submissions ───────────────────────────────────────────────────
    async def submit(
        self,
        token: str,
        problem_id: str,
        code: str,
        language: str,
        kind: SubmissionKind,
    ) -> SubmitReceipt:
        body = {
            "problem_id": problem_id,
            "language": language,
            "code": code,
            "type": kind.value,
        }
        data = await self._request("POST", "/submit", token, json=body)
        return _parse(SubmitReceipt, data)

    async def get_submission(self, token: str, submission_id: str) -> Submission:
        data = await self._request("GET", f"/submissions/{submission_id}", token)
        return _parse(Submission, _unwrap(data, "submission"))

    async def get_run_submission(self, token: str, problem_id: str, submission_id: str) -> Submission:
        params = {
            "problem_id": problem_id,
            "submission_id": submission_id,
            "type": SubmissionKind.RUN.value,
        }
        data = await self._request("GET", "/submissions", token, params=params)
        return _parse(Submission, _unwrap(data, "submission"))

    async def list_submissions(
        self,
        token: str,
        problem_id: str,
        kind: SubmissionKind = SubmissionKind.SUBMIT,
    ) -> list[Submission]:
        params = {"problem_id": problem_id, "type": kind.value}
        data = await self._request("GET", "/submissions", token, params=params)
        rows = _unwrap(data, "submissions") or []
        if not isinstance(rows, list):
            raise ApiError("Unexpected submissions payload")
        return [_parse(Submission, row) for row in rows]


def client_for(request: Request) -> ApiClient:
    """An ApiClient wired to the app's transport (tests swap in a fake API)."""
    return ApiClient(transport=getattr(request.app.state, "api_transport", None))


async def get_api_client(request: Request):
    """FastAPI dependency: yields an ApiClient and closes it after use."""
    client = client_for(request)
    try:
        yield client
    finally:
        await client.aclose()
