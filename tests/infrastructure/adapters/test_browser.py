import pytest

from leetrack.domain.models import NetworkEvent
from leetrack.infrastructure.adapters.browser import LocalEventSource, ReportedTabProvider


def test_event_source_delivers_in_order():
    source = LocalEventSource()
    seen = []
    source.subscribe(lambda e: seen.append(e.url))

    source.publish(NetworkEvent(url="a"))
    source.publish(NetworkEvent(url="b"))

    assert seen == ["a", "b"]


def test_event_source_reports_handled():
    source = LocalEventSource()
    assert source.publish(NetworkEvent(url="a")) is False

    source.subscribe(lambda e: e.url == "match")
    assert source.publish(NetworkEvent(url="match")) is True
    assert source.publish(NetworkEvent(url="other")) is False


def test_event_source_subscribe_is_idempotent():
    source = LocalEventSource()
    calls = []

    def listener(event):
        calls.append(event)

    source.subscribe(listener)
    source.subscribe(listener)
    source.publish(NetworkEvent(url="a"))
    source.unsubscribe(listener)
    source.unsubscribe(listener)
    source.publish(NetworkEvent(url="b"))

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_reported_tab_provider():
    tabs = ReportedTabProvider()
    assert await tabs.get_active_tab_url() is None

    tabs.report("https://leetcode.com/problems/two-sum/")
    assert await tabs.get_active_tab_url() == "https://leetcode.com/problems/two-sum/"
