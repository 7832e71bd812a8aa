import threading

from soporte_bot.logging_config import get_logger

logger = get_logger("blacklist")


def normalize_number(number: str) -> str:
    """Strip formatting so "+57 300-123" and "57300123" match."""
    return "".join(ch for ch in (number or "") if ch.isdigit())


class Blacklist:
    """Numbers the bot must not answer."""

    def __init__(self):
        self._numbers: set[str] = set()
        self._lock = threading.Lock()

    def add(self, number: str) -> None:
        with self._lock:
            self._numbers.add(normalize_number(number))
        logger.info("Number blacklisted", extra={"context": {"number": number}})

    def remove(self, number: str) -> None:
        with self._lock:
            self._numbers.discard(normalize_number(number))
        logger.info("Number removed from blacklist", extra={"context": {"number": number}})

    def contains(self, number: str) -> bool:
        with self._lock:
            return normalize_number(number) in self._numbers

    def __len__(self) -> int:
        with self._lock:
            return len(self._numbers)
