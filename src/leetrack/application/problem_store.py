"""
Problem Store: dual-tier repository for problem records.

Every write goes to the fast tier first (what readers see immediately) and
then to the durable tier. The two tiers are only eventually consistent:
a failed tier write is remembered and replayed on the next write or on
startup reconciliation, where the durable tier is the source of truth.
"""

import logging
from dataclasses import replace

from leetrack.application.forgetting_curve import is_archived
from leetrack.domain.errors import StoreWriteError
from leetrack.domain.models import ProblemRecord, ReviewSettings
from leetrack.domain.ports import KeyValueStore

logger = logging.getLogger(__name__)

FAST = "fast"
DURABLE = "durable"


def is_problem_key(key: str) -> bool:
    """Only all-digit keys hold problem records; anything else is configuration."""
    return key.isdigit()


class ProblemStore:
    """
    Repository over a fast and a durable KeyValueStore.

    Depends on the KeyValueStore port only, so tests and the server can
    plug in any pair of tiers.
    """

    def __init__(self, fast: KeyValueStore, durable: KeyValueStore):
        self._fast = fast
        self._durable = durable
        # problem id -> tiers whose last write for that id failed
        self._pending: dict[str, set[str]] = {}
        self._last_written: dict[str, ProblemRecord] = {}

    @property
    def pending_ids(self) -> list[str]:
        return sorted(self._pending)

    async def get(
        self, problem_id: str, settings: ReviewSettings | None = None
    ) -> ProblemRecord | None:
        """
        Read a record from the fast tier.

        With `settings`, the cached archive flag is checked against the
        curve and corrected in the returned record if it drifted.
        """
        stored = await self._fast.get([problem_id])
        data = stored.get(problem_id)
        if data is None:
            return None
        record = ProblemRecord.from_dict(data, key=problem_id)
        if settings is not None:
            record = self._check_drift(record, settings)
        return record

    async def list_records(
        self, settings: ReviewSettings | None = None
    ) -> list[ProblemRecord]:
        """Every record in the fast tier, ordered by numeric id."""
        stored = await self._fast.get()
        records = []
        for key, data in stored.items():
            if not is_problem_key(key) or not isinstance(data, dict):
                continue
            record = ProblemRecord.from_dict(data, key=key)
            if settings is not None:
                record = self._check_drift(record, settings)
            records.append(record)
        return sorted(records, key=lambda r: int(r.id))

    async def upsert(self, record: ProblemRecord) -> None:
        """
        Write `record` to both tiers, fast first.

        Both writes are attempted. A failure is logged and queued for replay;
        it is never raised to the caller.
        """
        self._last_written[record.id] = record
        failed = await self._write_tiers(record)
        if failed:
            self._pending.setdefault(record.id, set()).update(failed)
            return

        self._pending.pop(record.id, None)
        await self.flush_pending()

    async def flush_pending(self) -> None:
        """Replay tier writes that failed earlier."""
        for problem_id in list(self._pending):
            record = self._last_written.get(problem_id)
            if record is None:
                self._pending.pop(problem_id, None)
                continue
            tiers = self._pending[problem_id]
            failed = await self._write_tiers(record, only=tiers)
            if failed:
                self._pending[problem_id] = failed
            else:
                logger.info(f"Replayed pending write for problem {problem_id}")
                self._pending.pop(problem_id, None)

    async def reconcile_on_startup(self) -> None:
        """
        Bring the fast tier in line with the durable tier.

        Pending writes from this process are replayed first so a record that
        only reached the fast tier is not overwritten with an older durable
        copy. Then every durable key missing from or different in the fast
        tier is copied over.
        """
        await self.flush_pending()

        durable = await self._durable.get()
        fast = await self._fast.get()
        stale = {
            key: value
            for key, value in durable.items()
            if key not in fast or fast[key] != value
        }
        if not stale:
            logger.debug("Fast tier already consistent with durable tier")
            return

        try:
            await self._fast.set(stale)
        except StoreWriteError as e:
            logger.error(f"Reconciliation could not update fast tier: {e}")
            return
        logger.info(f"Reconciled {len(stale)} key(s) from durable tier")

    async def _write_tiers(
        self, record: ProblemRecord, only: set[str] | None = None
    ) -> set[str]:
        payload = {record.id: record.to_dict()}
        failed: set[str] = set()
        for label, tier in ((FAST, self._fast), (DURABLE, self._durable)):
            if only is not None and label not in only:
                continue
            try:
                await tier.set(payload)
            except StoreWriteError as e:
                logger.error(
                    f"Problem {record.id} not written to {label} tier, "
                    f"tiers diverge until retried: {e}"
                )
                failed.add(label)
        return failed

    @staticmethod
    def _check_drift(record: ProblemRecord, settings: ReviewSettings) -> ProblemRecord:
        expected = is_archived(record, settings)
        if record.is_archived == expected:
            return record
        logger.warning(
            f"Problem {record.id} archive flag drifted "
            f"(stored={record.is_archived}, derived={expected}); using derived value"
        )
        return replace(record, is_archived=expected)
