import threading
import time
from collections.abc import Callable
from typing import TypeVar

from doc_classifier.classification.exceptions import ClassificationNetworkError
from doc_classifier.logging.logger import Log
from doc_classifier.processor.exceptions import ProcessingCancelledError

T = TypeVar("T")


class RetryPolicy:
    """Bounded retry with exponential backoff around a single network operation.

    Only ClassificationNetworkError is retried. Delays are
    base_delay_seconds * 2**attempt, so the defaults wait 2s, 4s, 8s.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay_seconds: float = 2.0,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._max_retries = max_retries
        self._base_delay_seconds = base_delay_seconds
        self._cancel_event = cancel_event
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self._max_retries + 1

    def delay_for(self, attempt: int) -> float:
        return self._base_delay_seconds * (2**attempt)

    def call(self, operation: Callable[[], T], description: str = "request") -> T:
        for attempt in range(self.max_attempts):
            try:
                return operation()
            except ClassificationNetworkError as exc:
                if self._cancelled():
                    raise ProcessingCancelledError(f"{description} cancelled") from exc
                if attempt == self._max_retries:
                    Log.error(f"{description} failed after {self.max_attempts} attempts: {exc}")
                    raise
                delay = self.delay_for(attempt)
                Log.warning(
                    f"{description} attempt {attempt + 1} failed, retrying in {delay:g}s: {exc}"
                )
                self._wait(delay)
        raise RuntimeError("unreachable")

    def _wait(self, delay: float) -> None:
        if self._cancel_event is None:
            self._sleep(delay)
            return
        if self._cancel_event.wait(delay):
            raise ProcessingCancelledError("Cancelled during retry backoff")

    def _cancelled(self) -> bool:
        return self._cancel_event is not None and self._cancel_event.is_set()
