from contextlib import contextmanager
import threading
from typing import Iterator, Optional


class ReadWriteLock:
    """Guard for the transit store: many readers or a single writer.

    A waiting writer holds back new readers, so a stream of snapshot
    requests cannot delay a schedule update indefinitely. The lock is not
    re-entrant; a thread that asks for it again while writing would wait on
    itself forever, so that raises ``RuntimeError`` instead.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer: Optional[int] = None
        self._pending_writers = 0

    def _check_not_writing(self) -> None:
        if self._writer == threading.get_ident():
            raise RuntimeError("transit store lock is already held for writing by this thread")

    def _can_read(self) -> bool:
        return self._writer is None and not self._pending_writers

    def _can_write(self) -> bool:
        return self._writer is None and not self._readers

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            self._check_not_writing()
            self._cond.wait_for(self._can_read)
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._check_not_writing()
            self._pending_writers += 1
            self._cond.wait_for(self._can_write)
            self._pending_writers -= 1
            self._writer = threading.get_ident()
        try:
            yield
        finally:
            with self._cond:
                self._writer = None
                self._cond.notify_all()

    @property
    def readers(self) -> int:
        with self._cond:
            return self._readers

    @property
    def writer_active(self) -> bool:
        with self._cond:
            return self._writer is not None
