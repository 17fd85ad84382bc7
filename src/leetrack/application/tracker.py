"""
Submission Tracker: application layer orchestrator.

Watches completed network requests for the judge's verdict-check calls,
collapses each burst into one episode, and turns an accepted verdict into a
review-schedule update:

    event -> debounce -> resolve tab/slug -> await verdict -> resolve metadata
          -> apply forgetting curve -> upsert
"""

import asyncio
import logging
import time
from collections.abc import Callable, Hashable
from typing import Any

from leetrack.application.forgetting_curve import apply_accepted_submission
from leetrack.application.problem_store import ProblemStore
from leetrack.application.urls import (
    get_title_slug,
    is_judge_origin,
    is_submission_check,
    is_submit,
)
from leetrack.domain.constants import DEBOUNCE_DELAY, DEFAULT_JUDGE_DOMAINS
from leetrack.domain.errors import MetadataLookupError, PollError
from leetrack.domain.models import EpisodeOutcome, NetworkEvent, ReviewSettings
from leetrack.domain.ports import (
    ActiveTabProvider,
    MetadataClient,
    NetworkEventSource,
    VerdictPoller,
)

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class Debouncer:
    """
    Runs a callback once per burst of triggers.

    Each key owns at most one pending timer; a new trigger cancels it and
    schedules a fresh one, so only the last trigger within `delay` seconds
    fires.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._timers: dict[Hashable, asyncio.TimerHandle] = {}

    def trigger(self, key: Hashable, callback: Callable[..., Any], *args: Any) -> None:
        pending = self._timers.pop(key, None)
        if pending is not None:
            pending.cancel()
        loop = asyncio.get_running_loop()
        self._timers[key] = loop.call_later(self.delay, self._fire, key, callback, args)

    def is_pending(self, key: Hashable) -> bool:
        return key in self._timers

    def cancel_all(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    def _fire(self, key: Hashable, callback: Callable[..., Any], args: tuple) -> None:
        self._timers.pop(key, None)
        callback(*args)


class SubmissionTracker:
    """
    Drives one episode per debounced burst of verdict-check requests.

    Follows Dependency Inversion: every collaborator is a port, and the
    settings snapshot is swapped explicitly through reload_settings().
    """

    STREAM_KEY = "submission-check"

    def __init__(
        self,
        store: ProblemStore,
        metadata: MetadataClient,
        poller: VerdictPoller,
        tabs: ActiveTabProvider,
        settings: ReviewSettings,
        debounce_delay: float = DEBOUNCE_DELAY,
        judge_domains: list[str] | tuple[str, ...] = DEFAULT_JUDGE_DOMAINS,
        clock: Callable[[], int] = now_ms,
    ):
        self._store = store
        self._metadata = metadata
        self._poller = poller
        self._tabs = tabs
        self._settings = settings
        self._judge_domains = tuple(judge_domains)
        self._clock = clock
        self._debouncer = Debouncer(debounce_delay)
        self._episodes: set[asyncio.Task] = set()
        self._sources: list[NetworkEventSource] = []
        self.episodes_started = 0
        self.last_outcome: EpisodeOutcome | None = None

    @property
    def settings(self) -> ReviewSettings:
        return self._settings

    def attach(self, source: NetworkEventSource) -> None:
        source.subscribe(self.on_network_event)
        self._sources.append(source)

    def reload_settings(self, settings: ReviewSettings) -> None:
        logger.info(f"Using forgetting curve {list(settings.forgetting_curve)}")
        self._settings = settings

    def on_network_event(self, event: NetworkEvent) -> bool:
        """
        Listener for the event source. Returns True when the event started or
        restarted the debounce timer.
        """
        if is_submit(event.url):
            logger.debug(f"Submit observed: {event.url}")
            return False
        if not is_submission_check(event.url):
            return False

        logger.debug(f"Verdict check observed, debouncing: {event.url}")
        self._debouncer.trigger(self.STREAM_KEY, self._start_episode, event)
        return True

    def _start_episode(self, event: NetworkEvent) -> None:
        self.episodes_started += 1
        task = asyncio.get_running_loop().create_task(self.run_episode(event))
        self._episodes.add(task)
        task.add_done_callback(self._episodes.discard)

    async def run_episode(self, event: NetworkEvent) -> EpisodeOutcome:
        """Run one episode to commit or abort. Never raises."""
        try:
            outcome = await self._run_episode(event)
        except Exception as e:
            logger.error(f"Episode for {event.url} failed: {e}", exc_info=True)
            outcome = EpisodeOutcome.FAILED
        self.last_outcome = outcome
        logger.info(f"Episode for {event.url} finished: {outcome.value}")
        return outcome

    async def _run_episode(self, event: NetworkEvent) -> EpisodeOutcome:
        # Resolving
        tab_url = await self._tabs.get_active_tab_url()
        slug = get_title_slug(tab_url)
        if not slug:
            logger.debug(f"Active tab is not a problem page: {tab_url}")
            return EpisodeOutcome.NO_PROBLEM_CONTEXT
        if not is_judge_origin(event.initiator, self._judge_domains):
            logger.debug(f"Ignoring check request initiated by {event.initiator}")
            return EpisodeOutcome.FOREIGN_INITIATOR

        # Awaiting verdict
        try:
            verdict = await self._poller.await_verdict(event.url)
        except PollError as e:
            logger.warning(f"Verdict polling failed for '{slug}': {e}")
            return EpisodeOutcome.POLL_FAILED
        if not verdict.accepted:
            logger.info(f"Submission for '{slug}' not accepted: {verdict.status_message}")
            return EpisodeOutcome.NOT_ACCEPTED

        # Awaiting metadata
        try:
            identity = await self._metadata.resolve(slug)
        except MetadataLookupError as e:
            logger.warning(f"Metadata lookup failed for '{slug}': {e}")
            return EpisodeOutcome.LOOKUP_FAILED

        # Committing
        settings = self._settings
        existing = await self._store.get(identity.id, settings)
        updated = apply_accepted_submission(existing, identity, settings, self._clock())
        if updated == existing:
            logger.info(f"Problem {identity.id} '{identity.title}' unchanged")
            return EpisodeOutcome.UNCHANGED

        await self._store.upsert(updated)
        logger.info(
            f"Problem {updated.id} '{updated.title}' -> proficiency={updated.proficiency} "
            f"archived={updated.is_archived}"
        )
        return EpisodeOutcome.COMMITTED

    async def wait_idle(self) -> None:
        """Wait for every in-flight episode to finish."""
        while self._episodes:
            await asyncio.gather(*list(self._episodes), return_exceptions=True)

    async def close(self) -> None:
        self._debouncer.cancel_all()
        for source in self._sources:
            source.unsubscribe(self.on_network_event)
        self._sources.clear()
        for task in list(self._episodes):
            task.cancel()
        await asyncio.gather(*list(self._episodes), return_exceptions=True)
        self._episodes.clear()
