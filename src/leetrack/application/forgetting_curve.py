"""
Forgetting-curve model for review scheduling.

This is a pure computation module with no I/O. Every function takes the
settings snapshot explicitly so callers decide which curve applies.
"""

from dataclasses import replace

from leetrack.domain.constants import MAX_PROFICIENCY, ONE_DAY_MS
from leetrack.domain.models import (
    ProblemIdentity,
    ProblemRecord,
    ProblemStatus,
    ReviewSettings,
)


def interval_days(proficiency: int, settings: ReviewSettings) -> int | None:
    """
    Return the review interval for a proficiency level.

    Levels past the end of the curve fall back to the last interval so a
    malformed curve never raises. Returns None only for an empty curve.
    """
    curve = settings.forgetting_curve
    if not curve:
        return None
    index = min(max(proficiency, 0), len(curve) - 1)
    return curve[index]


def is_archived(record: ProblemRecord, settings: ReviewSettings) -> bool:
    return record.proficiency >= len(settings.forgetting_curve)


def derive_status(
    record: ProblemRecord, settings: ReviewSettings, now: int
) -> ProblemStatus:
    """
    Derive the review status of a record at time `now` (epoch ms).

    Archived once proficiency reaches the curve length; otherwise Review
    when the record has aged at least the interval for its level.
    """
    if is_archived(record, settings):
        return ProblemStatus.ARCHIVED

    days = interval_days(record.proficiency, settings)
    if now - record.first_submission_time >= days * ONE_DAY_MS:
        return ProblemStatus.REVIEW
    return ProblemStatus.SCHEDULED


def next_review_time(record: ProblemRecord, settings: ReviewSettings) -> int | None:
    """Epoch ms at which the record enters Review, or None once archived."""
    if is_archived(record, settings):
        return None
    days = interval_days(record.proficiency, settings)
    return record.first_submission_time + days * ONE_DAY_MS


def apply_accepted_submission(
    existing: ProblemRecord | None,
    identity: ProblemIdentity,
    settings: ReviewSettings,
    now: int,
) -> ProblemRecord:
    """
    Fold one accepted submission into a problem's record.

    - No record yet: create one at proficiency 1.
    - Archived or Scheduled: return `existing` unchanged. A resubmission
      before the review window opens does not count.
    - Review: advance proficiency by one, saturating at MAX_PROFICIENCY.

    The creation time is never touched after the first submission.
    """
    curve_length = len(settings.forgetting_curve)

    if existing is None:
        return ProblemRecord(
            id=identity.id,
            title=identity.title,
            difficulty=identity.difficulty,
            url=identity.url,
            first_submission_time=now,
            proficiency=1,
            is_archived=1 >= curve_length,
        )

    if derive_status(existing, settings, now) is not ProblemStatus.REVIEW:
        return existing

    proficiency = min(existing.proficiency + 1, MAX_PROFICIENCY)
    return replace(
        existing,
        proficiency=proficiency,
        is_archived=proficiency >= curve_length,
    )
