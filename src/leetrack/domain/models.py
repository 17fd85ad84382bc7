"""
Domain models for problem tracking and review scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .constants import ACCEPTED_STATUS, DEFAULT_FORGETTING_CURVE


class ProblemStatus(str, Enum):
    """Review state of a tracked problem, derived from proficiency and age."""

    SCHEDULED = "Scheduled"
    REVIEW = "Review"
    ARCHIVED = "Archived"


class EpisodeOutcome(str, Enum):
    """How one run of the submission-detection state machine ended."""

    COMMITTED = "committed"
    UNCHANGED = "unchanged"
    NO_PROBLEM_CONTEXT = "no_problem_context"
    FOREIGN_INITIATOR = "foreign_initiator"
    POLL_FAILED = "poll_failed"
    NOT_ACCEPTED = "not_accepted"
    LOOKUP_FAILED = "lookup_failed"
    FAILED = "failed"


@dataclass(frozen=True)
class ProblemIdentity:
    """
    Canonical identity of a judge problem.

    Attributes:
        id: Frontend problem number as a digit string (e.g. "1").
        title: Display name.
        difficulty: Easy, Medium or Hard.
        url: Canonical problem URL.
    """

    id: str
    title: str
    difficulty: str
    url: str


@dataclass(frozen=True)
class ProblemRecord:
    """
    One tracked problem and its review progress.

    Persisted with camelCase keys so both storage tiers share one layout
    with whatever reads them outside this process.
    """

    id: str
    title: str
    difficulty: str
    url: str
    first_submission_time: int  # epoch ms, set once at creation
    proficiency: int = 0
    is_archived: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "difficulty": self.difficulty,
            "url": self.url,
            "firstSubmissionTime": self.first_submission_time,
            "proficiency": self.proficiency,
            "isArchived": self.is_archived,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], key: str | None = None) -> "ProblemRecord":
        """`key` is the storage key, used when the stored value lacks an id."""
        problem_id = data.get("id", key)
        if problem_id is None:
            raise ValueError("Problem record has no id")
        # Older stores wrote the creation time as "submissionTime".
        created = data.get("firstSubmissionTime", data.get("submissionTime", 0))
        return cls(
            id=str(problem_id),
            title=data.get("title", ""),
            difficulty=data.get("difficulty", ""),
            url=data.get("url", ""),
            first_submission_time=int(created),
            proficiency=int(data.get("proficiency", 0)),
            is_archived=bool(data.get("isArchived", False)),
        )


@dataclass(frozen=True)
class ReviewSettings:
    """
    Immutable snapshot of the user's review configuration.

    Attributes:
        forgetting_curve: Days a problem must age at proficiency level i
            before it is due for review again.
    """

    forgetting_curve: tuple[int, ...] = field(default=DEFAULT_FORGETTING_CURVE)

    def to_dict(self) -> dict[str, Any]:
        return {"forgettingCurve": list(self.forgetting_curve)}


@dataclass(frozen=True)
class VerdictResult:
    """Terminal verdict reported by the judge for one submission."""

    status_message: str

    @property
    def accepted(self) -> bool:
        return self.status_message == ACCEPTED_STATUS


@dataclass(frozen=True)
class NetworkEvent:
    """
    A completed request observed by the browser.

    Attributes:
        url: Request URL.
        initiator: Origin of the page that issued the request, if known.
        timestamp: Epoch ms at which the browser observed the request.
    """

    url: str
    initiator: str | None = None
    timestamp: float = 0.0
