"""
catalog_service.py: Problem listing
Fetches problems, hides soft-deleted ones, and filters by difficulty.
"""

from learncode.api_client import ApiClient, ApiError
from learncode.models import Difficulty, Principal, Problem
from learncode.services.session_service import SessionContext


def visible_problems(problems: list[Problem]) -> list[Problem]:
    return [p for p in problems if not p.is_deleted]


def filter_by_difficulty(problems: list[Problem], difficulty: Difficulty | str | None) -> list[Problem]:
    """Exact match on the difficulty label; None keeps everything."""
    if difficulty is None:
        return list(problems)
    label = difficulty.value if isinstance(difficulty, Difficulty) else difficulty
    return [p for p in problems if p.difficulty.value == label]


class CatalogView:
    def __init__(self, client: ApiClient, session: SessionContext):
        self.client = client
        self.session = session
        self.problems: list[Problem] = []
        self.user: Principal = session.principal
        self.difficulty: Difficulty | None = None
        self.error: str | None = None

    @property
    def displayed(self) -> list[Problem]:
        return filter_by_difficulty(self.problems, self.difficulty)

    async def load(self) -> list[Problem]:
        self.error = None
        try:
            problems, user = await self.client.list_problems(self.session.token)
        except ApiError:
            self.error = "Failed to fetch problems"
            self.problems = []
            return self.problems
        self.problems = visible_problems(problems)
        if user is not None:
            self.user = user
        return self.problems

    def select_difficulty(self, difficulty: Difficulty | None) -> list[Problem]:
        self.difficulty = Difficulty(difficulty) if difficulty is not None else None
        return self.displayed
