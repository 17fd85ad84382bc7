"""
Ports (interfaces) for the submission pipeline.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from .models import NetworkEvent, ProblemIdentity, VerdictResult

EventListener = Callable[[NetworkEvent], bool | None]


class KeyValueStore(ABC):
    """
    Port for one storage tier.

    Both tiers share a flat namespace: problem records under their digit ids
    and configuration under reserved keys.

    Implementations:
        - MemoryStore: Process-local fast tier.
        - JsonFileStore: Durable tier backed by a JSON file.
    """

    name: str = "store"

    @abstractmethod
    async def get(self, keys: list[str] | None = None) -> dict[str, Any]:
        """
        Read values.

        Args:
            keys: Keys to fetch. None reads every key in the tier.

        Returns:
            Mapping of the requested keys that exist to their values.
        """
        pass

    @abstractmethod
    async def set(self, items: dict[str, Any]) -> None:
        """
        Write values, replacing existing ones.

        Raises:
            StoreWriteError: The tier rejected the write.
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every key from the tier."""
        pass


class MetadataClient(ABC):
    """Port for resolving a problem slug to its canonical identity."""

    @abstractmethod
    async def resolve(self, slug: str) -> ProblemIdentity:
        """
        Raises:
            MetadataLookupError: Empty slug, failed call or missing data.
        """
        pass


class VerdictPoller(ABC):
    """Port for waiting on the judge's verdict for one submission."""

    @abstractmethod
    async def await_verdict(self, check_url: str) -> VerdictResult:
        """
        Raises:
            PollError: The check call failed or the polling cap was reached.
        """
        pass


class NetworkEventSource(ABC):
    """Port delivering completed-request events in observation order."""

    @abstractmethod
    def subscribe(self, listener: EventListener) -> None:
        pass

    @abstractmethod
    def unsubscribe(self, listener: EventListener) -> None:
        pass


class ActiveTabProvider(ABC):
    """Port returning the URL of the focused browser tab."""

    @abstractmethod
    async def get_active_tab_url(self) -> str | None:
        pass
