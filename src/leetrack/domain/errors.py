"""Error taxonomy for the submission pipeline.

None of these are surfaced to a user; each one ends the current episode
quietly or, for storage, is logged and retried on a later write.
"""


class LeetrackError(Exception):
    """Base class for leetrack errors."""


class MetadataLookupError(LeetrackError, LookupError):
    """Problem metadata could not be resolved for a slug."""


class PollError(LeetrackError):
    """The verdict check call itself failed (not merely a pending state)."""


class PollTimeoutError(PollError):
    """Verdict polling hit its attempt or wall-time cap."""

    def __init__(self, check_url: str, attempts: int, elapsed: float):
        super().__init__(
            f"verdict for {check_url} still pending after {attempts} attempts "
            f"({elapsed:.1f}s)"
        )
        self.check_url = check_url
        self.attempts = attempts
        self.elapsed = elapsed


class StoreWriteError(LeetrackError):
    """A key/value tier rejected a write."""

    def __init__(self, tier: str, message: str):
        super().__init__(f"{tier} tier write failed: {message}")
        self.tier = tier
