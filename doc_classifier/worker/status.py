import threading
from collections.abc import Callable
from dataclasses import replace

from doc_classifier.logging.logger import Log
from doc_classifier.processor.models import ProcessingPhase, ProcessingStatus

StatusListener = Callable[[ProcessingStatus], None]


class BatchStatus:
    """Owns the batch ProcessingStatus and the transitions between phases.

    Observers either poll snapshot() or subscribe() to every change.
    """

    def __init__(self) -> None:
        self._status = ProcessingStatus()
        self._listeners: list[StatusListener] = []
        self._lock = threading.Lock()

    def snapshot(self) -> ProcessingStatus:
        with self._lock:
            return self._status

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def reset(self) -> None:
        self._set(ProcessingStatus())

    def start(self, total_customers: int) -> None:
        if self.snapshot().phase is ProcessingPhase.PROCESSING:
            raise ValueError("A batch is already processing")
        self._set(
            ProcessingStatus(
                phase=ProcessingPhase.PROCESSING,
                total_customers=total_customers,
                message="Starting document processing...",
            )
        )

    def begin_customer(self, customer: str) -> None:
        self._require_processing("begin_customer")
        self._update(current_customer=customer, message=f"Processing customer: {customer}")

    def narrate(self, message: str) -> None:
        self._require_processing("narrate")
        self._update(message=message)

    def customer_done(self) -> None:
        current = self._require_processing("customer_done")
        self._update(processed_customers=current.processed_customers + 1)

    def complete(self) -> None:
        current = self._require_processing("complete")
        self._set(
            ProcessingStatus(
                phase=ProcessingPhase.COMPLETE,
                total_customers=current.total_customers,
                processed_customers=current.total_customers,
                message="All customers processed successfully!",
            )
        )

    def fail(self, message: str, reason: str = "unexpected") -> None:
        current = self.snapshot()
        self._set(
            replace(
                current,
                phase=ProcessingPhase.ERROR,
                message=message,
                error_reason=reason,
            )
        )

    def cancel(self) -> None:
        self.fail("Processing cancelled", reason="cancelled")

    def _require_processing(self, transition: str) -> ProcessingStatus:
        current = self.snapshot()
        if current.phase is not ProcessingPhase.PROCESSING:
            raise ValueError(f"Cannot {transition} while batch is {current.phase.value}")
        return current

    def _update(self, **changes: object) -> None:
        with self._lock:
            self._status = replace(self._status, **changes)
            status = self._status
        self._notify(status)

    def _set(self, status: ProcessingStatus) -> None:
        with self._lock:
            self._status = status
        self._notify(status)

    def _notify(self, status: ProcessingStatus) -> None:
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as exc:
                Log.warning(f"Status listener failed: {exc}")
