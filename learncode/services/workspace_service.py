"""
workspace_service.py: The problem workspace
One problem, the code buffer, and the run/submit actions. Polling started from
a workspace belongs to it: closing the workspace stops every poller.
"""

import asyncio
import logging

from learncode.api_client import ApiClient, ApiError
from learncode.models import (
    STARTER_CODE,
    Language,
    Problem,
    Submission,
    SubmissionKind,
    SubmissionStatus,
)
from learncode.services.poller_service import CancelToken, SubmissionPoller, SubmissionWatch
from learncode.services.session_service import SessionContext

logger = logging.getLogger(__name__)


class WorkspaceView:
    def __init__(
        self,
        client: ApiClient,
        session: SessionContext,
        problem_id: str,
        language: Language = Language.PYTHON,
        poll_interval: float | None = None,
    ):
        self.client = client
        self.session = session
        self.problem_id = str(problem_id)
        self.language = Language(language)
        self.code = STARTER_CODE[self.language]
        self.problem: Problem | None = None
        self.error: str | None = None
        self.watch: SubmissionWatch | None = None
        self.submissions: list[Submission] = []
        self.poll_interval = poll_interval
        self._cancel = CancelToken()
        self._tasks: set[asyncio.Task] = set()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    # ------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._cancel.cancelled

    @property
    def status(self) -> SubmissionStatus | None:
        return self.watch.status if self.watch else None

    @property
    def output(self) -> str | None:
        """Result text of the latest run/submit, once it is terminal."""
        if self.watch is None:
            return None
        return self.watch.result

    def set_language(self, language: Language):
        """Switching language swaps in the new starter code unless the buffer was edited."""
        language = Language(language)
        if self.code == STARTER_CODE[self.language]:
            self.code = STARTER_CODE[language]
        self.language = language

    # ------------------------------------------------------------------
    async def load(self) -> Problem | None:
        self.error = None
        try:
            problem = await self.client.get_problem(self.session.token, self.problem_id)
        except ApiError as e:
            self.error = "Problem not found" if e.status_code == 404 else "Failed to fetch problem"
            return None
        if problem.is_deleted:
            self.error = "Problem not found"
            return None
        self.problem = problem
        return problem

    async def load_history(self) -> list[Submission]:
        """Graded (SUBMIT) submissions for this problem, newest first."""
        try:
            rows = await self.client.list_submissions(self.session.token, self.problem_id, SubmissionKind.SUBMIT)
        except ApiError:
            self.error = "Failed to fetch submissions"
            return self.submissions
        self.submissions = sorted(rows, key=lambda s: s.created_at, reverse=True)
        return self.submissions

    async def load_submission(self, submission_id: str) -> Submission | None:
        self.error = None
        try:
            submission = await self.client.get_submission(self.session.token, submission_id)
        except ApiError as e:
            self.error = "Submission not found" if e.status_code == 404 else "Failed to fetch submission"
            return None
        # Only submissions made against this workspace's problem
        if submission.problem_id and submission.problem_id != self.problem_id:
            self.error = "Submission not found"
            return None
        return submission

    # ------------------------------------------------------------------
    async def run(self, code: str | None = None, language: Language | None = None) -> SubmissionWatch | None:
        return await self._execute(SubmissionKind.RUN, code, language)

    async def submit(self, code: str | None = None, language: Language | None = None) -> SubmissionWatch | None:
        return await self._execute(SubmissionKind.SUBMIT, code, language)

    async def _execute(self, kind: SubmissionKind, code: str | None, language: Language | None):
        if self.closed:
            return None
        if language is not None:
            self.language = Language(language)
        if code is not None:
            self.code = code
        self.error = None

        try:
            receipt = await self.client.submit(
                self.session.token, self.problem_id, self.code, self.language.value, kind
            )
        except ApiError as e:
            self.error = f"Error submitting code: {e.message}"
            return None
        if self.closed:
            return None

        watch = SubmissionWatch(self.problem_id, receipt.submission_id, kind)
        self.watch = watch
        poller = SubmissionPoller(self.client, self.session.token, watch, interval=self.poll_interval)
        task = asyncio.create_task(poller.run(self._cancel))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info("Polling %s submission %s for problem %s", kind.value, receipt.submission_id, self.problem_id)
        return watch

    async def wait(self) -> SubmissionWatch | None:
        """Block until the latest run/submit is finished (terminal, failed or cancelled)."""
        if self.watch is None:
            return None
        await self.watch.wait()
        if self.watch.error:
            self.error = self.watch.error
        return self.watch

    async def close(self):
        self._cancel.cancel()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
