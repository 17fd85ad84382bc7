"""Browser-facing adapters fed by the HTTP surface."""

import logging

from leetrack.domain.models import NetworkEvent
from leetrack.domain.ports import ActiveTabProvider, EventListener, NetworkEventSource

logger = logging.getLogger(__name__)


class LocalEventSource(NetworkEventSource):
    """Fans out published events to subscribers, synchronously and in order."""

    def __init__(self):
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event: NetworkEvent) -> bool:
        """Deliver `event`; True if any listener acted on it."""
        handled = False
        for listener in list(self._listeners):
            if listener(event):
                handled = True
        return handled


class ReportedTabProvider(ActiveTabProvider):
    """Remembers the last active tab URL the browser shim reported."""

    def __init__(self, url: str | None = None):
        self._url = url

    def report(self, url: str | None) -> None:
        logger.debug(f"Active tab: {url}")
        self._url = url

    async def get_active_tab_url(self) -> str | None:
        return self._url
