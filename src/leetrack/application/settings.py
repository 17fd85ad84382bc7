"""Loading and reloading of the review settings snapshot."""

import logging
from typing import Any

from leetrack.domain.constants import MAX_PROFICIENCY, SETTINGS_KEY
from leetrack.domain.errors import StoreWriteError
from leetrack.domain.models import ReviewSettings
from leetrack.domain.ports import KeyValueStore

logger = logging.getLogger(__name__)


def settings_from_dict(data: Any) -> ReviewSettings | None:
    """
    Build a snapshot from a stored `remindSettings` value.

    Returns None when the value carries no curve. Entries that are not
    positive integers are dropped and the curve is cut to MAX_PROFICIENCY
    levels; nothing beyond that is validated here.
    """
    if not isinstance(data, dict):
        return None
    raw = data.get("forgettingCurve")
    if not isinstance(raw, list):
        return None

    curve = []
    for value in raw:
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            logger.warning(f"Ignoring invalid forgetting curve entry: {value!r}")
            continue
        curve.append(value)

    if len(curve) > MAX_PROFICIENCY:
        logger.warning(
            f"Forgetting curve has {len(curve)} entries; using the first {MAX_PROFICIENCY}"
        )
        curve = curve[:MAX_PROFICIENCY]

    return ReviewSettings(forgetting_curve=tuple(curve))


class SettingsRepository:
    """
    Reads `ReviewSettings` from the durable tier.

    The snapshot is created with defaults the first time it is missing and
    must be reloaded whenever the process restarts or the user saves new
    settings.
    """

    def __init__(self, durable: KeyValueStore, fast: KeyValueStore | None = None):
        self._durable = durable
        self._fast = fast

    async def load(self) -> ReviewSettings:
        stored = await self._durable.get([SETTINGS_KEY])
        settings = settings_from_dict(stored.get(SETTINGS_KEY))
        if settings is not None:
            logger.debug(f"Loaded forgetting curve {list(settings.forgetting_curve)}")
            return settings

        settings = ReviewSettings()
        logger.info(
            f"No review settings stored; initializing default curve "
            f"{list(settings.forgetting_curve)}"
        )
        try:
            await self.save(settings)
        except StoreWriteError as e:
            # The default is still usable in memory; next start retries.
            logger.error(f"Could not persist default settings: {e}")
        return settings

    async def reload(self) -> ReviewSettings:
        return await self.load()

    async def save(self, settings: ReviewSettings) -> None:
        """
        Persist `settings` under `remindSettings`, durable tier first.

        A durable failure raises StoreWriteError and skips the fast tier; a
        fast failure is only logged since reconciliation repairs it.
        """
        payload = {SETTINGS_KEY: settings.to_dict()}
        await self._durable.set(payload)
        if self._fast is None:
            return
        try:
            await self._fast.set(payload)
        except StoreWriteError as e:
            logger.error(f"Settings saved durably but not to fast tier: {e}")
