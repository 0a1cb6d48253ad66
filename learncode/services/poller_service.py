"""
poller_service.py: Submission status polling
Queries one outstanding submission until it reaches a terminal status and
publishes every forward move to a SubmissionWatch. A poll loop is owned by a
CancelToken, checked before every query and every state update.
"""

import asyncio
import logging

from learncode import config
from learncode.api_client import ApiClient, ApiError
from learncode.models import Submission, SubmissionKind, SubmissionStatus

logger = logging.getLogger(__name__)


class CancelToken:
    """Set once when the owning view goes away; never reset."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def sleep(self, seconds: float) -> bool:
        """Wait up to `seconds`, waking early on cancel. Returns True if cancelled."""
        if seconds > 0 and not self.cancelled:
            try:
                await asyncio.wait_for(self._event.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                pass
        else:
            # still give other tasks a turn between queries
            await asyncio.sleep(0)
        return self.cancelled


class SubmissionWatch:
    """Observable status of one outstanding submission."""

    def __init__(self, problem_id: str, submission_id: str, kind: SubmissionKind):
        self.problem_id = problem_id
        self.submission_id = submission_id
        self.kind = kind
        self.status = SubmissionStatus.PENDING
        self.result: str | None = None
        self.error: str | None = None
        self.cancelled = False
        self.history: list[SubmissionStatus] = [SubmissionStatus.PENDING]
        self._subscribers: list[asyncio.Queue] = []
        self._done = asyncio.Event()

    # ------------------------------------------------------------------
    @property
    def done(self) -> bool:
        return self._done.is_set()

    async def wait(self) -> "SubmissionWatch":
        await self._done.wait()
        return self

    def snapshot(self) -> dict:
        return {
            "submission_id": self.submission_id,
            "problem_id": self.problem_id,
            "type": self.kind.value,
            "status": self.status.value,
            "result": self.result,
        }

    # ------------------------------------------------------------------
    def subscribe(self) -> asyncio.Queue:
        """
        Queue of events: ("status", snapshot) for the current state and every
        later change, ("error", message) on failure, then None when finished.
        """
        queue: asyncio.Queue = asyncio.Queue()
        queue.put_nowait(("status", self.snapshot()))
        if self.error is not None:
            queue.put_nowait(("error", self.error))
        if self.done:
            queue.put_nowait(None)
        else:
            self._subscribers.append(queue)
        return queue

    def _notify(self, event):
        for queue in self._subscribers:
            queue.put_nowait(event)

    def publish(self, submission: Submission) -> bool:
        """Record an observed status. Regressions and post-terminal updates are dropped."""
        if self.done or self.status.is_terminal:
            return False
        new_status = submission.status
        if new_status.rank < self.status.rank:
            logger.warning(
                "Ignoring status regression %s -> %s for submission %s",
                self.status.value, new_status.value, self.submission_id,
            )
            return False
        if new_status == self.status:
            return False

        self.status = new_status
        self.history.append(new_status)
        if new_status.is_terminal:
            self.result = submission.result
        self._notify(("status", self.snapshot()))
        return True

    def fail(self, message: str):
        if self.done:
            return
        self.error = message
        self._notify(("error", message))

    def close(self):
        if self.done:
            return
        self._done.set()
        self._notify(None)
        self._subscribers.clear()


def poll_interval_for(kind: SubmissionKind) -> float:
    if kind == SubmissionKind.RUN:
        return config.RUN_POLL_INTERVAL
    return config.SUBMIT_POLL_INTERVAL


class SubmissionPoller:
    """Sequential status queries for one submission, one at a time."""

    def __init__(
        self,
        client: ApiClient,
        token: str,
        watch: SubmissionWatch,
        interval: float | None = None,
        max_attempts: int | None = None,
    ):
        self.client = client
        self.token = token
        self.watch = watch
        self.interval = interval if interval is not None else poll_interval_for(watch.kind)
        self.max_attempts = max_attempts if max_attempts is not None else config.POLL_MAX_ATTEMPTS

    # ------------------------------------------------------------------
    async def _fetch(self) -> Submission:
        watch = self.watch
        if watch.kind == SubmissionKind.RUN:
            return await self.client.get_run_submission(self.token, watch.problem_id, watch.submission_id)

        submissions = await self.client.list_submissions(self.token, watch.problem_id, SubmissionKind.SUBMIT)
        for submission in submissions:
            if submission.id == watch.submission_id:
                return submission
        # Not listed yet
        return Submission(
            id=watch.submission_id,
            problem_id=watch.problem_id,
            type=SubmissionKind.SUBMIT,
            status=SubmissionStatus.PENDING,
        )

    # ------------------------------------------------------------------
    async def run(self, cancel: CancelToken) -> SubmissionWatch:
        watch = self.watch
        attempts = 0
        try:
            while not cancel.cancelled:
                if self.max_attempts and attempts >= self.max_attempts:
                    logger.warning("Giving up on submission %s after %d checks", watch.submission_id, attempts)
                    watch.fail(f"No result after {attempts} status checks")
                    break

                attempts += 1
                try:
                    submission = await self._fetch()
                except ApiError as e:
                    if not cancel.cancelled:
                        watch.fail(f"Failed to fetch submission status: {e.message}")
                    break

                if cancel.cancelled:
                    break
                watch.publish(submission)
                if watch.status.is_terminal:
                    logger.info(
                        "Submission %s finished as %s after %d checks",
                        watch.submission_id, watch.status.value, attempts,
                    )
                    break

                if await cancel.sleep(self.interval):
                    break
        finally:
            if cancel.cancelled and not watch.status.is_terminal:
                logger.info("Stopped polling submission %s", watch.submission_id)
                watch.cancelled = True
            watch.close()
        return watch
