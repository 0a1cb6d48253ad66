"""
authoring_service.py: Admin problem management
Create problems from the authoring form and delete them after confirmation.
Only admins get past the first check; nothing is sent to the API otherwise.
"""

import logging
from typing import Callable

from learncode.api_client import ApiClient, ApiError
from learncode.models import Problem, ProblemDraft, blank_form
from learncode.services.catalog_service import visible_problems
from learncode.services.session_service import SessionContext

logger = logging.getLogger(__name__)

NOT_AUTHORIZED = "You are not authorized to access this page"
CONFIRM_DELETE_PROMPT = "Are you sure you want to delete this problem?"


class AdminProblemsView:
    def __init__(self, client: ApiClient, session: SessionContext):
        self.client = client
        self.session = session
        self.problems: list[Problem] = []
        self.form: dict = blank_form()
        self.error: str | None = None
        self.message: str | None = None

    @property
    def authorized(self) -> bool:
        return self.session.is_admin

    def _deny(self) -> bool:
        if self.authorized:
            return False
        self.error = NOT_AUTHORIZED
        return True

    # ------------------------------------------------------------------
    async def load(self) -> list[Problem]:
        if self._deny():
            return []
        self.error = None
        try:
            problems, _ = await self.client.list_problems(self.session.token)
        except ApiError:
            self.error = "Failed to fetch problems"
            return self.problems
        self.problems = visible_problems(problems)
        return self.problems

    async def create(self, draft: ProblemDraft) -> Problem | None:
        """POST the whole draft; the form is cleared only on success."""
        if self._deny():
            return None
        self.form = draft.model_dump(mode="json")
        self.error = None
        self.message = None
        try:
            created = await self.client.create_problem(self.session.token, draft)
        except ApiError as e:
            logger.warning("Problem creation failed: %s", e.message)
            self.error = "Failed to create problem"
            return None
        self.form = blank_form()
        self.message = "Problem created successfully!"
        logger.info("Admin %s created problem %s", self.session.principal.login, created.id if created else "?")
        return created

    async def delete(self, problem_id: str, confirm: Callable[[str], bool]) -> bool:
        """
        Ask `confirm` first; only a yes issues the DELETE. The problem is then
        dropped from the local list without re-fetching.
        """
        if self._deny():
            return False
        if not confirm(CONFIRM_DELETE_PROMPT):
            return False
        self.error = None
        try:
            await self.client.delete_problem(self.session.token, problem_id)
        except ApiError as e:
            logger.warning("Deleting problem %s failed: %s", problem_id, e.message)
            self.error = "Failed to delete problem"
            return False
        self.problems = [p for p in self.problems if p.id != str(problem_id)]
        return True
