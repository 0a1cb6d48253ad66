import json
import os

# Must be set before learncode.config is imported
os.environ["LEARNCODE_API_URL"] = "http://api.test"
os.environ["SESSION_SECRET"] = "test-secret"
os.environ["SESSION_COOKIE_SECURE"] = "false"
os.environ["RUN_POLL_INTERVAL"] = "0"
os.environ["SUBMIT_POLL_INTERVAL"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

import httpx
import pytest
from fastapi.testclient import TestClient

from learncode import config
from learncode.api_client import ApiClient
from learncode.main import create_app
from learncode.models import Principal
from learncode.services.session_service import SessionContext, create_token

USER = {"id": 101, "login": "octocat", "isAdmin": False, "created_at": 1700000000, "last_login_at": 1700000500}
ADMIN = {"id": 1, "login": "root", "isAdmin": True, "created_at": 1690000000, "last_login_at": 1700000500}


def make_problem(pid, difficulty="Easy", deleted_at=None, **extra):
    problem = {
        "id": pid,
        "title": f"Problem {pid}",
        "description": "Add **two** numbers.",
        "difficulty": difficulty,
        "created_at": 1700000000,
        "updated_at": 1700000000,
        "input": "1 2\n",
        "output": "3\n",
        "example_input": "2 4\n",
        "example_output": "6\n",
    }
    if deleted_at is not None:
        problem["deleted_at"] = deleted_at
    problem.update(extra)
    return problem


class FakeApi:
    """In-memory stand-in for the LearnCode API, served through httpx.MockTransport."""

    def __init__(self):
        self.tokens = {"user-token": USER, "admin-token": ADMIN}
        self.problems = [
            make_problem("1", "Easy"),
            make_problem("2", "Medium"),
            make_problem("3", "Hard"),
            make_problem("4", "Easy"),
            make_problem("5", "Easy", deleted_at=1700000900),
            make_problem("7", "Medium"),
        ]
        self.requests: list[httpx.Request] = []
        self.failing: set[str] = set()
        self.submitted: list[dict] = []
        self.created: list[dict] = []
        self.deleted: list[str] = []
        self.next_submission_id = "sub-1"
        # Replies to successive status queries; the last one repeats
        self.run_script: list[dict] = [{"status": "completed", "result": "ok"}]
        self.submit_script: list[list[dict]] = [[]]
        self.stored_submissions: dict[str, dict] = {}

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self, method=None) -> list[str]:
        return [r.url.path for r in self.requests if method is None or r.method == method]

    @staticmethod
    def _next(script):
        return script.pop(0) if len(script) > 1 else script[0]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path, method = request.url.path, request.method

        if path in self.failing:
            return httpx.Response(500, json={"error": "Internal failure"})

        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        user = self.tokens.get(token)
        if user is None:
            return httpx.Response(401, json={"error": "Failed to validate token"})

        if path == "/auth/verify":
            return httpx.Response(200, json=user)

        if path == "/problems" and method == "GET":
            return httpx.Response(200, json={"problems": self.problems, "user": user})

        if path.startswith("/problems/") and method == "GET":
            pid = path.rsplit("/", 1)[-1]
            for problem in self.problems:
                if problem["id"] == pid:
                    return httpx.Response(200, json={"problem": problem, "user": user})
            return httpx.Response(404, json={"error": "Problem not found"})

        if path == "/admin/add" and method == "POST":
            if not user["isAdmin"]:
                return httpx.Response(403, json={"error": "Unauthorized: Admin access required"})
            body = json.loads(request.content)
            self.created.append(body)
            problem = {**body, "id": "prob-1a2b3c4d", "created_at": 1700001000, "updated_at": 1700001000}
            return httpx.Response(201, json={"message": "Problem created successfully", "problem": problem})

        if path.startswith("/admin/problems/") and method == "DELETE":
            self.deleted.append(path.rsplit("/", 1)[-1])
            return httpx.Response(200, json={"message": "Problem deleted successfully"})

        if path == "/submit" and method == "POST":
            body = json.loads(request.content)
            self.submitted.append(body)
            return httpx.Response(200, json={"submission_id": self.next_submission_id, "status": "pending"})

        if path.startswith("/submissions/") and method == "GET":
            sid = path.rsplit("/", 1)[-1]
            if sid not in self.stored_submissions:
                return httpx.Response(404, json={"error": "Submission not found"})
            return httpx.Response(200, json={"submission": self.stored_submissions[sid]})

        if path == "/submissions" and method == "GET":
            params = request.url.params
            if params.get("type") == "RUN":
                reply = {
                    "id": params["submission_id"],
                    "problem_id": params["problem_id"],
                    "type": "RUN",
                    **self._next(self.run_script),
                }
                return httpx.Response(200, json=reply)
            return httpx.Response(200, json={"submissions": self._next(self.submit_script)})

        return httpx.Response(404, json={"error": "Not found"})


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def app(fake_api):
    return create_app(api_transport=fake_api.transport)


@pytest.fixture
def client(app):
    return TestClient(app, follow_redirects=False)


def sign_in(client: TestClient, token: str):
    client.cookies.set(config.SESSION_COOKIE_NAME, create_token(token))


@pytest.fixture
def user_client(client):
    sign_in(client, "user-token")
    return client


@pytest.fixture
def admin_client(client):
    sign_in(client, "admin-token")
    return client


def api_client(fake_api: FakeApi) -> ApiClient:
    return ApiClient(base_url="http://api.test", transport=fake_api.transport)


def session_for(token: str) -> SessionContext:
    user = ADMIN if token == "admin-token" else USER
    return SessionContext(token=token, principal=Principal.model_validate(user))
