"""
Service Factory
Centralizes the wiring of adapters into the submission pipeline.
"""

import logging
from dataclasses import dataclass

from leetrack.application.config import AppConfig
from leetrack.application.problem_store import ProblemStore
from leetrack.application.settings import SettingsRepository
from leetrack.application.tracker import SubmissionTracker
from leetrack.domain.constants import DURABLE_FILENAME
from leetrack.domain.ports import KeyValueStore
from leetrack.infrastructure.adapters.browser import LocalEventSource, ReportedTabProvider
from leetrack.infrastructure.adapters.kv_stores import JsonFileStore, MemoryStore
from leetrack.infrastructure.adapters.leetcode_graphql import LeetCodeGraphQLClient
from leetrack.infrastructure.adapters.verdict_poller import HttpVerdictPoller

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything the HTTP surface needs, built once per process."""

    config: AppConfig
    fast: KeyValueStore
    durable: KeyValueStore
    store: ProblemStore
    settings_repo: SettingsRepository
    events: LocalEventSource
    tabs: ReportedTabProvider
    metadata: LeetCodeGraphQLClient
    poller: HttpVerdictPoller
    tracker: SubmissionTracker | None = None

    async def start(self) -> SubmissionTracker:
        """
        Recover state after a (re)start and begin listening for events.

        Reconciliation runs before anything reads the fast tier, since the
        fast tier does not survive a restart.
        """
        await self.store.reconcile_on_startup()
        settings = await self.settings_repo.load()
        self.tracker = SubmissionTracker(
            store=self.store,
            metadata=self.metadata,
            poller=self.poller,
            tabs=self.tabs,
            settings=settings,
            debounce_delay=self.config.debounce_delay,
            judge_domains=self.config.judge_domains,
        )
        self.tracker.attach(self.events)
        return self.tracker

    async def close(self) -> None:
        if self.tracker is not None:
            await self.tracker.close()
        await self.metadata.close()
        await self.poller.close()


def get_durable_store(config: AppConfig) -> KeyValueStore:
    """Returns the durable tier selected by config."""
    if config.durable_backend == "memory":
        logger.warning("Durable tier is in-memory; records will not survive a restart")
        return MemoryStore(name="durable")
    return JsonFileStore(config.data_dir / DURABLE_FILENAME)


def build_services(config: AppConfig) -> Services:
    fast = MemoryStore(name="fast")
    durable = get_durable_store(config)
    return Services(
        config=config,
        fast=fast,
        durable=durable,
        store=ProblemStore(fast=fast, durable=durable),
        settings_repo=SettingsRepository(durable=durable, fast=fast),
        events=LocalEventSource(),
        tabs=ReportedTabProvider(),
        metadata=LeetCodeGraphQLClient(
            base_url=config.base_url, timeout=config.request_timeout
        ),
        poller=HttpVerdictPoller(
            interval=config.poll_interval,
            max_attempts=config.poll_max_attempts,
            max_elapsed=config.poll_max_elapsed,
            timeout=config.request_timeout,
        ),
    )
