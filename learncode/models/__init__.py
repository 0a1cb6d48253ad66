from learncode.models.problem import Difficulty, Problem, ProblemDraft, blank_form
from learncode.models.submission import (
    STARTER_CODE,
    CodeSubmission,
    Language,
    Submission,
    SubmissionKind,
    SubmissionStatus,
    SubmitReceipt,
)
from learncode.models.user import Principal

__all__ = [
    "Difficulty",
    "Problem",
    "ProblemDraft",
    "blank_form",
    "STARTER_CODE",
    "CodeSubmission",
    "Language",
    "Submission",
    "SubmissionKind",
    "SubmissionStatus",
    "SubmitReceipt",
    "Principal",
]
