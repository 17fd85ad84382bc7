import logging
from unittest.mock import AsyncMock

import pytest

from leetrack.application.settings import SettingsRepository, settings_from_dict
from leetrack.domain.constants import DEFAULT_FORGETTING_CURVE, SETTINGS_KEY
from leetrack.domain.errors import StoreWriteError
from leetrack.domain.models import ReviewSettings


@pytest.mark.asyncio
async def test_load_initializes_default_when_missing(fast, durable):
    repo = SettingsRepository(durable=durable, fast=fast)

    settings = await repo.load()

    assert settings.forgetting_curve == DEFAULT_FORGETTING_CURVE
    assert (await durable.get())[SETTINGS_KEY] == {"forgettingCurve": [1, 2, 4, 7, 15]}
    assert SETTINGS_KEY in await fast.get()


@pytest.mark.asyncio
async def test_load_reads_stored_curve(durable):
    await durable.set({SETTINGS_KEY: {"forgettingCurve": [1, 3, 9]}})

    settings = await SettingsRepository(durable=durable).load()

    assert settings == ReviewSettings(forgetting_curve=(1, 3, 9))


@pytest.mark.asyncio
async def test_reload_picks_up_saved_changes(durable):
    repo = SettingsRepository(durable=durable)
    first = await repo.load()

    await durable.set({SETTINGS_KEY: {"forgettingCurve": [2, 4]}})
    second = await repo.reload()

    assert first.forgetting_curve == DEFAULT_FORGETTING_CURVE
    assert second.forgetting_curve == (2, 4)


@pytest.mark.asyncio
async def test_default_still_returned_when_write_fails():
    durable = AsyncMock()
    durable.get.return_value = {}
    durable.set.side_effect = StoreWriteError("durable", "read-only")

    settings = await SettingsRepository(durable=durable).load()

    assert settings == ReviewSettings()


def test_settings_from_dict_filters_bad_entries():
    settings = settings_from_dict({"forgettingCurve": [1, "x", 0, True, 4]})
    assert settings.forgetting_curve == (1, 4)


def test_settings_from_dict_truncates_long_curve():
    settings = settings_from_dict({"forgettingCurve": [1, 2, 3, 4, 5, 6, 7]})
    assert settings.forgetting_curve == (1, 2, 3, 4, 5)


@pytest.mark.parametrize("value", [None, {}, {"forgettingCurve": "1,2"}, [1, 2]])
def test_settings_from_dict_missing_curve(value):
    assert settings_from_dict(value) is None


@pytest.mark.asyncio
async def test_save_writes_both_tiers_and_reload_sees_it(fast, durable):
    repo = SettingsRepository(durable=durable, fast=fast)
    await repo.load()

    await repo.save(ReviewSettings(forgetting_curve=(2, 5, 10)))

    expected = {"forgettingCurve": [2, 5, 10]}
    assert (await durable.get([SETTINGS_KEY]))[SETTINGS_KEY] == expected
    assert (await fast.get([SETTINGS_KEY]))[SETTINGS_KEY] == expected
    assert (await repo.reload()).forgetting_curve == (2, 5, 10)


@pytest.mark.asyncio
async def test_save_durable_failure_raises_and_skips_fast(fast):
    durable = AsyncMock()
    durable.set.side_effect = StoreWriteError("durable", "read-only")
    repo = SettingsRepository(durable=durable, fast=fast)

    with pytest.raises(StoreWriteError):
        await repo.save(ReviewSettings(forgetting_curve=(3,)))

    assert await fast.get() == {}


@pytest.mark.asyncio
async def test_save_fast_failure_is_logged(durable, caplog):
    fast = AsyncMock()
    fast.set.side_effect = StoreWriteError("fast", "quota exceeded")
    repo = SettingsRepository(durable=durable, fast=fast)

    with caplog.at_level(logging.ERROR):
        await repo.save(ReviewSettings(forgetting_curve=(3,)))

    assert (await durable.get())[SETTINGS_KEY] == {"forgettingCurve": [3]}
    assert "not to fast tier" in caplog.text
