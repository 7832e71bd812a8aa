import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator, Optional

from soporte_bot.logging_config import get_logger
from soporte_bot.schemas.conversation import ConversationRecord

logger = get_logger("conversation_store")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _NumberLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class ConversationStore:
    """Per-process conversation records keyed by WhatsApp number.

    Records are lost on restart. With an idle timeout, a record untouched for
    longer than the timeout is dropped on its next read, and every write
    sweeps the other expired records. A per-number lock lives only while the
    number has a record or someone is waiting on it.
    """

    def __init__(
        self,
        idle_timeout: Optional[timedelta] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.idle_timeout = idle_timeout
        self.clock = clock
        self._records: dict[str, ConversationRecord] = {}
        self._locks: dict[str, _NumberLock] = {}
        self._guard = threading.Lock()

    @contextmanager
    def lock(self, number: str) -> Iterator[None]:
        """Serialise the processing of one conversation."""
        with self._guard:
            entry = self._locks.get(number)
            if entry is None:
                entry = self._locks[number] = _NumberLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if number not in self._records:
                    self._release_lock(number)

    def _release_lock(self, number: str) -> None:
        # caller holds _guard
        entry = self._locks.get(number)
        if entry is not None and entry.users == 0:
            del self._locks[number]

    def _drop(self, number: str) -> None:
        # caller holds _guard
        self._records.pop(number, None)
        self._release_lock(number)

    def _expired(self, record: ConversationRecord) -> bool:
        if not self.idle_timeout:
            return False
        return self.clock() - record.updated_at > self.idle_timeout

    def _sweep(self) -> None:
        # caller holds _guard
        if not self.idle_timeout:
            return
        expired = [number for number, record in self._records.items() if self._expired(record)]
        for number in expired:
            self._drop(number)
        if expired:
            logger.info("Evicted idle conversations", extra={"context": {"count": len(expired)}})

    def get(self, number: str) -> ConversationRecord:
        with self._guard:
            record = self._records.get(number)
            if record is not None and self._expired(record):
                logger.info(
                    "Conversation expired after idle timeout",
                    extra={"context": {"number": number, "step": record.step.value}},
                )
                self._drop(number)
                record = None
            if record is None:
                return ConversationRecord(updated_at=self.clock())
            return record.model_copy()

    def update(self, number: str, **changes) -> ConversationRecord:
        """Merge changes into the stored record.

        A record that ends up blank is not kept.
        """
        with self._guard:
            self._sweep()
            current = self._records.get(number) or ConversationRecord()
            changes["updated_at"] = self.clock()
            # model_copy skips validation, so round-trip through the model
            updated = ConversationRecord.model_validate({**current.model_dump(), **changes})
            if updated.is_blank():
                self._drop(number)
            else:
                self._records[number] = updated
            return updated.model_copy()

    def clear(self, number: str) -> None:
        with self._guard:
            self._drop(number)

    def active_count(self) -> int:
        with self._guard:
            self._sweep()
            return len(self._records)
