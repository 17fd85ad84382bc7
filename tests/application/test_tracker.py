import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from leetrack.application.problem_store import ProblemStore
from leetrack.application.tracker import Debouncer, SubmissionTracker
from leetrack.domain.errors import MetadataLookupError, PollError, PollTimeoutError
from leetrack.domain.models import (
    EpisodeOutcome,
    NetworkEvent,
    ReviewSettings,
    VerdictResult,
)
from leetrack.infrastructure.adapters.browser import LocalEventSource, ReportedTabProvider

CHECK_URL = "https://leetcode.com/submissions/detail/123456/check/"
PROBLEM_TAB = "https://leetcode.com/problems/two-sum/description/"
DELAY = 0.05


def check_event(url=CHECK_URL, initiator="https://leetcode.com"):
    return NetworkEvent(url=url, initiator=initiator)


@pytest.fixture
def store(fast, durable):
    return ProblemStore(fast=fast, durable=durable)


@pytest.fixture
def poller():
    p = AsyncMock()
    p.await_verdict.return_value = VerdictResult(status_message="Accepted")
    return p


@pytest.fixture
def metadata(two_sum):
    m = AsyncMock()
    m.resolve.return_value = two_sum
    return m


@pytest.fixture
def tabs():
    return ReportedTabProvider(PROBLEM_TAB)


@pytest.fixture
def tracker(store, metadata, poller, tabs, settings, now):
    return SubmissionTracker(
        store=store,
        metadata=metadata,
        poller=poller,
        tabs=tabs,
        settings=settings,
        debounce_delay=DELAY,
        clock=lambda: now,
    )


# --- Episodes ---


@pytest.mark.asyncio
async def test_first_accepted_submission_commits_to_both_tiers(
    tracker, fast, durable, poller, metadata, now
):
    outcome = await tracker.run_episode(check_event())

    assert outcome is EpisodeOutcome.COMMITTED
    poller.await_verdict.assert_awaited_once_with(CHECK_URL)
    metadata.resolve.assert_awaited_once_with("two-sum")
    for tier in (fast, durable):
        stored = (await tier.get(["1"]))["1"]
        assert stored["proficiency"] == 1
        assert stored["isArchived"] is False
        assert stored["firstSubmissionTime"] == now
        assert stored["title"] == "Two Sum"


@pytest.mark.asyncio
async def test_review_submission_archives(tracker, store, make_record, durable):
    await store.upsert(make_record(proficiency=4, days_old=16))

    outcome = await tracker.run_episode(check_event())

    assert outcome is EpisodeOutcome.COMMITTED
    stored = (await durable.get(["1"]))["1"]
    assert stored["proficiency"] == 5
    assert stored["isArchived"] is True


@pytest.mark.asyncio
async def test_scheduled_submission_does_not_write(tracker, store, make_record):
    await store.upsert(make_record(proficiency=2, days_old=1))

    with patch.object(store, "upsert", new_callable=AsyncMock) as mock_upsert:
        outcome = await tracker.run_episode(check_event())

    assert outcome is EpisodeOutcome.UNCHANGED
    mock_upsert.assert_not_called()


@pytest.mark.asyncio
async def test_wrong_answer_does_not_mutate(tracker, poller, metadata, fast, durable):
    poller.await_verdict.return_value = VerdictResult(status_message="Wrong Answer")

    outcome = await tracker.run_episode(check_event())

    assert outcome is EpisodeOutcome.NOT_ACCEPTED
    metadata.resolve.assert_not_called()
    assert await fast.get() == {}
    assert await durable.get() == {}


@pytest.mark.asyncio
async def test_poll_error_aborts(tracker, poller, metadata, fast):
    poller.await_verdict.side_effect = PollError("connection reset")

    assert await tracker.run_episode(check_event()) is EpisodeOutcome.POLL_FAILED
    metadata.resolve.assert_not_called()
    assert await fast.get() == {}


@pytest.mark.asyncio
async def test_poll_timeout_aborts(tracker, poller):
    poller.await_verdict.side_effect = PollTimeoutError(CHECK_URL, 60, 120.0)
    assert await tracker.run_episode(check_event()) is EpisodeOutcome.POLL_FAILED


@pytest.mark.asyncio
async def test_lookup_error_aborts(tracker, metadata, fast):
    metadata.resolve.side_effect = MetadataLookupError("unknown problem")

    assert await tracker.run_episode(check_event()) is EpisodeOutcome.LOOKUP_FAILED
    assert await fast.get() == {}


@pytest.mark.asyncio
async def test_non_problem_tab_aborts_before_polling(tracker, tabs, poller):
    tabs.report("https://leetcode.com/problemset/")

    assert await tracker.run_episode(check_event()) is EpisodeOutcome.NO_PROBLEM_CONTEXT
    poller.await_verdict.assert_not_called()


@pytest.mark.asyncio
async def test_no_active_tab_aborts(tracker, tabs):
    tabs.report(None)
    assert await tracker.run_episode(check_event()) is EpisodeOutcome.NO_PROBLEM_CONTEXT


@pytest.mark.asyncio
async def test_foreign_initiator_aborts(tracker, poller):
    event = check_event(initiator="https://evil.example.com")

    assert await tracker.run_episode(event) is EpisodeOutcome.FOREIGN_INITIATOR
    poller.await_verdict.assert_not_called()


@pytest.mark.asyncio
async def test_cn_site_accepted(tracker, tabs, metadata):
    tabs.report("https://leetcode.cn/problems/two-sum/submissions/")
    event = check_event(
        url="https://leetcode.cn/submissions/detail/99/check/",
        initiator="https://leetcode.cn",
    )

    assert await tracker.run_episode(event) is EpisodeOutcome.COMMITTED
    metadata.resolve.assert_awaited_once_with("two-sum")


@pytest.mark.asyncio
async def test_unexpected_error_is_contained(tracker, metadata):
    metadata.resolve.side_effect = RuntimeError("boom")

    assert await tracker.run_episode(check_event()) is EpisodeOutcome.FAILED
    assert tracker.last_outcome is EpisodeOutcome.FAILED


@pytest.mark.asyncio
async def test_reload_settings_applies_to_next_episode(tracker, store, make_record, durable):
    # Level 1 waits 2 days under the default curve, 10 under the new one
    await store.upsert(make_record(proficiency=1, days_old=3))
    tracker.reload_settings(ReviewSettings(forgetting_curve=(1, 10, 20)))

    assert await tracker.run_episode(check_event()) is EpisodeOutcome.UNCHANGED
    assert tracker.settings.forgetting_curve == (1, 10, 20)


# --- Event filtering and debounce ---


@pytest.mark.asyncio
async def test_unrelated_events_are_ignored(tracker):
    assert tracker.on_network_event(NetworkEvent(url="https://leetcode.com/graphql")) is False
    assert (
        tracker.on_network_event(
            NetworkEvent(url="https://leetcode.com/problems/two-sum/submit/")
        )
        is False
    )
    await asyncio.sleep(DELAY * 2)
    assert tracker.episodes_started == 0


@pytest.mark.asyncio
async def test_burst_collapses_to_one_episode(tracker, poller):
    loop = asyncio.get_running_loop()
    fired_at = []

    async def record_call(url):
        fired_at.append(loop.time())
        return VerdictResult(status_message="Accepted")

    poller.await_verdict.side_effect = record_call

    for i in range(5):
        if i:
            await asyncio.sleep(DELAY / 10)
        assert tracker.on_network_event(check_event()) is True
    last_event_at = loop.time()

    assert tracker.episodes_started == 0
    await asyncio.sleep(DELAY * 3)
    await tracker.wait_idle()

    assert tracker.episodes_started == 1
    assert len(fired_at) == 1
    assert fired_at[0] - last_event_at >= DELAY * 0.95
    assert tracker.last_outcome is EpisodeOutcome.COMMITTED


@pytest.mark.asyncio
async def test_separate_bursts_start_separate_episodes(tracker, store, make_record):
    tracker.on_network_event(check_event())
    await asyncio.sleep(DELAY * 3)
    tracker.on_network_event(check_event())
    await asyncio.sleep(DELAY * 3)
    await tracker.wait_idle()

    assert tracker.episodes_started == 2
    # Second accept lands inside the review window, so nothing advances
    assert tracker.last_outcome is EpisodeOutcome.UNCHANGED
    assert (await store.get("1")).proficiency == 1


@pytest.mark.asyncio
async def test_attach_subscribes_to_event_source(tracker):
    source = LocalEventSource()
    tracker.attach(source)

    assert source.publish(check_event()) is True
    await asyncio.sleep(DELAY * 3)
    await tracker.wait_idle()
    assert tracker.episodes_started == 1

    await tracker.close()
    assert source.publish(check_event()) is False


@pytest.mark.asyncio
async def test_close_cancels_pending_timer(tracker):
    tracker.on_network_event(check_event())
    await tracker.close()
    await asyncio.sleep(DELAY * 2)
    assert tracker.episodes_started == 0


@pytest.mark.asyncio
async def test_debouncer_keys_are_independent():
    calls = []
    debouncer = Debouncer(DELAY)

    debouncer.trigger("a", calls.append, "a1")
    debouncer.trigger("b", calls.append, "b1")
    debouncer.trigger("a", calls.append, "a2")
    assert debouncer.is_pending("a")

    await asyncio.sleep(DELAY * 3)

    assert sorted(calls) == ["a2", "b1"]
    assert not debouncer.is_pending("a")
