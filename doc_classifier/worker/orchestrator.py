import threading
from collections.abc import Callable

from doc_classifier.classification.base import BaseClassificationClient
from doc_classifier.config.settings import Settings
from doc_classifier.logging.logger import Log
from doc_classifier.processor.exceptions import CategorizationError, ProcessingCancelledError
from doc_classifier.processor.models import (
    BatchResult,
    CustomerGroup,
    DocumentRow,
    UploadedFile,
)
from doc_classifier.processor.processor import CustomerPipeline
from doc_classifier.processor.rows import group_by_customer, merge_rows
from doc_classifier.worker.status import BatchStatus

RowsListener = Callable[[list[DocumentRow]], None]


class BatchOrchestrator:
    """Sequential loop: customer -> pipeline -> merge -> publish -> pace."""

    def __init__(
        self,
        pipeline: CustomerPipeline,
        settings: Settings,
        *,
        status: BatchStatus | None = None,
        client: BaseClassificationClient | None = None,
        cancel_event: threading.Event | None = None,
        on_rows_updated: RowsListener | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._settings = settings
        self._status = status or BatchStatus()
        self._client = client
        self._cancel_event = cancel_event or threading.Event()
        self._on_rows_updated = on_rows_updated
        self._rows: list[DocumentRow] = []

    @property
    def status(self) -> BatchStatus:
        return self._status

    @property
    def rows(self) -> list[DocumentRow]:
        return list(self._rows)

    def cancel(self) -> None:
        """Abandon the batch. Safe to call from another thread.

        Closing the client releases any in-flight request; rows merged so far
        are kept.
        """
        Log.warning("Batch cancellation requested")
        self._cancel_event.set()
        if self._client is not None:
            self._client.close()

    def run(self, rows: list[DocumentRow], files: list[UploadedFile]) -> BatchResult:
        groups = group_by_customer(rows)
        self._rows = list(rows)
        self._status.start(len(groups))
        Log.info(f"Batch started: {len(groups)} customers, {len(rows)} rows, {len(files)} files")

        try:
            for position, group in enumerate(groups, start=1):
                if self._cancel_event.is_set():
                    raise ProcessingCancelledError("Cancelled between customers")
                self._process_customer(group, files)
                if position < len(groups):
                    self._pace()
        except ProcessingCancelledError as exc:
            Log.warning(f"Batch cancelled: {exc}")
            self._status.cancel()
            return self._result()
        except KeyboardInterrupt:
            Log.info("Batch interrupted, shutting down gracefully")
            self._cancel_event.set()
            self._status.cancel()
            return self._result()
        except Exception as exc:
            if self._cancel_event.is_set():
                Log.warning(f"Batch cancelled while a request was in flight: {exc}")
                self._status.cancel()
                return self._result()
            return self._halt(exc)

        self._status.complete()
        Log.info(f"Batch complete: {len(groups)} customers processed")
        return self._result()

    def _halt(self, exc: Exception) -> BatchResult:
        if isinstance(exc, CategorizationError):
            Log.error(f"Batch halted: {exc}")
            self._status.fail(
                f"An error occurred during processing: {exc}",
                reason="categorize_failed",
            )
        else:
            Log.exception(f"Batch halted by unexpected error: {exc}")
            self._status.fail(f"An error occurred during processing: {exc}")
        return self._result()

    def _process_customer(self, group: CustomerGroup, files: list[UploadedFile]) -> None:
        customer = group.customer
        self._status.begin_customer(customer)
        result = self._pipeline.run(
            group,
            files,
            on_progress=lambda message: self._status.narrate(f"{customer}: {message}"),
        )
        self._rows = merge_rows(self._rows, result.rows)
        self._status.customer_done()
        self._publish()

    def _pace(self) -> None:
        if self._cancel_event.wait(self._settings.customer_pacing_seconds):
            raise ProcessingCancelledError("Cancelled during customer pacing")

    def _publish(self) -> None:
        if self._on_rows_updated is None:
            return
        try:
            self._on_rows_updated(self.rows)
        except Exception as exc:
            Log.warning(f"Rows listener failed: {exc}")

    def _result(self) -> BatchResult:
        return BatchResult(rows=self.rows, status=self._status.snapshot())
