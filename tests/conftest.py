import pytest

from leetrack.domain.constants import ONE_DAY_MS
from leetrack.domain.models import ProblemIdentity, ProblemRecord, ReviewSettings
from leetrack.infrastructure.adapters.kv_stores import MemoryStore

NOW = 1_700_000_000_000


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def settings():
    return ReviewSettings()


@pytest.fixture
def two_sum():
    return ProblemIdentity(
        id="1",
        title="Two Sum",
        difficulty="Easy",
        url="https://leetcode.com/problems/two-sum/",
    )


@pytest.fixture
def make_record():
    """Factory for records aged `days_old` days at time NOW."""

    def _make(proficiency=1, days_old=0.0, problem_id="1", is_archived=False):
        return ProblemRecord(
            id=problem_id,
            title="Two Sum",
            difficulty="Easy",
            url="https://leetcode.com/problems/two-sum/",
            first_submission_time=int(NOW - days_old * ONE_DAY_MS),
            proficiency=proficiency,
            is_archived=is_archived,
        )

    return _make


@pytest.fixture
def fast():
    return MemoryStore(name="fast")


@pytest.fixture
def durable():
    return MemoryStore(name="durable")


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    return home
