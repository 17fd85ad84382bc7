# Domain Package
from .errors import (
    LeetrackError,
    MetadataLookupError,
    PollError,
    PollTimeoutError,
    StoreWriteError,
)
from .models import (
    EpisodeOutcome,
    NetworkEvent,
    ProblemIdentity,
    ProblemRecord,
    ProblemStatus,
    ReviewSettings,
    VerdictResult,
)

__all__ = [
    "LeetrackError",
    "MetadataLookupError",
    "PollError",
    "PollTimeoutError",
    "StoreWriteError",
    "EpisodeOutcome",
    "NetworkEvent",
    "ProblemIdentity",
    "ProblemRecord",
    "ProblemStatus",
    "ReviewSettings",
    "VerdictResult",
]
