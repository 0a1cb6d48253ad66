from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (SubmissionStatus.COMPLETED, SubmissionStatus.ERROR)


# pending -> running -> {completed | error}
_STATUS_RANK = {
    SubmissionStatus.PENDING: 0,
    SubmissionStatus.RUNNING: 1,
    SubmissionStatus.COMPLETED: 2,
    SubmissionStatus.ERROR: 2,
}


class SubmissionKind(str, Enum):
    RUN = "RUN"  # sample data only, not kept
    SUBMIT = "SUBMIT"  # graded and retained


class Language(str, Enum):
    NODEJS = "nodejs"
    CPP = "cpp"
    JAVA = "java"
    PYTHON = "python"


STARTER_CODE = {
    Language.NODEJS: "function solution(input) {\n  // Write your code here\n}\n",
    Language.CPP: (
        "#include <iostream>\nusing namespace std;\n\n"
        "int main() {\n    // Write your code here\n    return 0;\n}\n"
    ),
    Language.JAVA: (
        "public class Main {\n    public static void main(String[] args) {\n"
        "        // Write your code here\n    }\n}\n"
    ),
    Language.PYTHON: "def solution():\n    # Write your code here\n    pass\n",
}


class Submission(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    problem_id: str = ""
    user_id: Optional[str] = None
    code: str = ""
    language: str = ""
    type: SubmissionKind = SubmissionKind.RUN
    status: SubmissionStatus = SubmissionStatus.PENDING
    result: Optional[str] = None  # only at a terminal status
    created_at: int = 0
    updated_at: int = 0

    @field_validator("type", mode="before")
    @classmethod
    def _upper_kind(cls, value):
        return value.upper() if isinstance(value, str) else value

    @field_validator("status", mode="before")
    @classmethod
    def _lower_status(cls, value):
        return value.lower() if isinstance(value, str) else value


class SubmitReceipt(BaseModel):
    """What the API answers to POST /submit."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    submission_id: str
    status: SubmissionStatus = SubmissionStatus.PENDING


class CodeSubmission(BaseModel):
    """Body of the portal's run/submit routes."""

    code: str
    language: Language = Language.PYTHON
