from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class Problem(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    title: str
    description: str = ""  # markdown
    difficulty: Difficulty
    created_at: int = 0  # Unix timestamp
    updated_at: int = 0
    deleted_at: Optional[int] = None  # set when soft-deleted
    input: str = ""  # judge data
    output: str = ""
    example_input: str = ""
    example_output: str = ""

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class ProblemDraft(BaseModel):
    """Admin form state: a Problem without its identifier and timestamps."""

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    difficulty: Difficulty = Difficulty.EASY
    input: str = Field(min_length=1)
    output: str = Field(min_length=1)
    example_input: str = Field(min_length=1)
    example_output: str = Field(min_length=1)


def blank_form() -> dict:
    """The cleared authoring form."""
    return {
        "title": "",
        "description": "",
        "difficulty": Difficulty.EASY.value,
        "input": "",
        "output": "",
        "example_input": "",
        "example_output": "",
    }
