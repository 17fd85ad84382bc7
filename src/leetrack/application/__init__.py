# Application Package
from .forgetting_curve import (
    apply_accepted_submission,
    derive_status,
    is_archived,
    next_review_time,
)
from .problem_store import ProblemStore
from .settings import SettingsRepository
from .tracker import Debouncer, SubmissionTracker

__all__ = [
    "apply_accepted_submission",
    "derive_status",
    "is_archived",
    "next_review_time",
    "ProblemStore",
    "SettingsRepository",
    "Debouncer",
    "SubmissionTracker",
]
