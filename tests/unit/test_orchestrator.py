from dataclasses import replace
from unittest.mock import MagicMock

from doc_classifier.classification.exceptions import ClassificationRemoteError
from doc_classifier.processor.exceptions import CategorizationError, ProcessingCancelledError
from doc_classifier.processor.models import (
    CustomerGroup,
    CustomerResult,
    DocumentRow,
    ProcessingPhase,
    UploadedFile,
)
from doc_classifier.processor.processor import CustomerPipeline
from doc_classifier.worker.orchestrator import BatchOrchestrator


def _labelled(group: CustomerGroup, files: list[UploadedFile], on_progress=None) -> CustomerResult:
    if on_progress is not None:
        on_progress("Categorization complete")
    rows = [replace(row, actual_output=f"done:{row.customer}") for row in group.rows]
    return CustomerResult(customer=group.customer, rows=rows, status_line="ok")


def _make_orchestrator(
    pacing: float = 0.0,
    cancel_event: MagicMock | None = None,
) -> tuple[BatchOrchestrator, MagicMock, list[list[DocumentRow]]]:
    pipeline = MagicMock(spec=CustomerPipeline)
    pipeline.run.side_effect = _labelled
    settings = MagicMock(customer_pacing_seconds=pacing)
    published: list[list[DocumentRow]] = []
    orchestrator = BatchOrchestrator(
        pipeline,
        settings,
        cancel_event=cancel_event,
        on_rows_updated=published.append,
    )
    return orchestrator, pipeline, published


class TestSuccessfulBatch:
    def test_processes_customers_in_first_seen_order(self, acme_rows: list[DocumentRow]) -> None:
        orchestrator, pipeline, _published = _make_orchestrator()

        orchestrator.run(acme_rows, [])

        customers = [c.args[0].customer for c in pipeline.run.call_args_list]
        assert customers == ["Acme", "Globex"]

    def test_merges_rows_and_completes(self, acme_rows: list[DocumentRow]) -> None:
        orchestrator, _pipeline, _published = _make_orchestrator()

        result = orchestrator.run(acme_rows, [])

        assert [r.id for r in result.rows] == ["row-1", "row-2", "row-3", "row-4"]
        assert [r.actual_output for r in result.rows] == [
            "done:Acme",
            "done:Acme",
            "done:Globex",
            "done:Acme",
        ]
        assert result.status.phase is ProcessingPhase.COMPLETE
        assert result.status.processed_customers == 2

    def test_publishes_after_each_customer(self, acme_rows: list[DocumentRow]) -> None:
        orchestrator, _pipeline, published = _make_orchestrator()

        orchestrator.run(acme_rows, [])

        assert len(published) == 2
        assert published[0][2].actual_output == ""
        assert published[1][2].actual_output == "done:Globex"

    def test_does_not_mutate_input_rows(self, acme_rows: list[DocumentRow]) -> None:
        orchestrator, _pipeline, _published = _make_orchestrator()

        orchestrator.run(acme_rows, [])

        assert all(row.actual_output == "" for row in acme_rows)

    def test_prefixes_progress_with_customer(self, acme_rows: list[DocumentRow]) -> None:
        orchestrator, _pipeline, _published = _make_orchestrator()
        messages: list[str] = []
        orchestrator.status.subscribe(lambda s: messages.append(s.message or ""))

        orchestrator.run(acme_rows, [])

        assert "Acme: Categorization complete" in messages
        assert "Globex: Categorization complete" in messages

    def test_empty_batch_completes(self) -> None:
        orchestrator, pipeline, _published = _make_orchestrator()

        result = orchestrator.run([], [])

        pipeline.run.assert_not_called()
        assert result.status.phase is ProcessingPhase.COMPLETE


class TestPacing:
    def test_waits_between_customers_only(self, acme_rows: list[DocumentRow]) -> None:
        event = MagicMock()
        event.is_set.return_value = False
        event.wait.return_value = False
        orchestrator, _pipeline, _published = _make_orchestrator(pacing=0.5, cancel_event=event)

        orchestrator.run(acme_rows, [])

        event.wait.assert_called_once_with(0.5)


class TestFatalFailure:
    def test_categorize_failure_halts_batch(self, acme_rows: list[DocumentRow]) -> None:
        orchestrator, pipeline, _published = _make_orchestrator()
        cause = ClassificationRemoteError("POST /categorize", 500, "down")
        pipeline.run.side_effect = [
            _labelled(CustomerGroup("Acme", tuple(r for r in acme_rows if r.customer == "Acme")), []),
            CategorizationError("Globex", cause),
        ]

        result = orchestrator.run(acme_rows, [])

        assert result.status.phase is ProcessingPhase.ERROR
        assert result.status.error_reason == "categorize_failed"
        assert result.status.processed_customers == 1
        assert result.rows[0].actual_output == "done:Acme"
        assert result.rows[2].actual_output == ""

    def test_stops_processing_later_customers(self) -> None:
        rows = [
            DocumentRow(id="row-1", customer="A", file="a.jpg"),
            DocumentRow(id="row-2", customer="B", file="b.jpg"),
            DocumentRow(id="row-3", customer="C", file="c.jpg"),
        ]
        orchestrator, pipeline, _published = _make_orchestrator()
        pipeline.run.side_effect = CategorizationError("A", RuntimeError("x"))

        orchestrator.run(rows, [])

        pipeline.run.assert_called_once()

    def test_unexpected_error_marks_error(self, acme_rows: list[DocumentRow]) -> None:
        orchestrator, pipeline, _published = _make_orchestrator()
        pipeline.run.side_effect = RuntimeError("bug")

        result = orchestrator.run(acme_rows, [])

        assert result.status.phase is ProcessingPhase.ERROR
        assert result.status.error_reason == "unexpected"


class TestCancellation:
    def test_cancel_before_run(self, acme_rows: list[DocumentRow]) -> None:
        orchestrator, pipeline, _published = _make_orchestrator()

        orchestrator.cancel()
        result = orchestrator.run(acme_rows, [])

        pipeline.run.assert_not_called()
        assert result.status.phase is ProcessingPhase.ERROR
        assert result.status.error_reason == "cancelled"

    def test_cancel_closes_client(self) -> None:
        client = MagicMock()
        orchestrator = BatchOrchestrator(MagicMock(), MagicMock(), client=client)

        orchestrator.cancel()

        client.close.assert_called_once()

    def test_cancel_mid_batch_keeps_merged_rows(self, acme_rows: list[DocumentRow]) -> None:
        orchestrator, pipeline, _published = _make_orchestrator()

        def first_then_cancel(group, files, on_progress=None):
            orchestrator.cancel()
            return _labelled(group, files)

        pipeline.run.side_effect = first_then_cancel

        result = orchestrator.run(acme_rows, [])

        pipeline.run.assert_called_once()
        assert result.status.error_reason == "cancelled"
        assert result.rows[0].actual_output == "done:Acme"

    def test_in_flight_cancellation(self, acme_rows: list[DocumentRow]) -> None:
        orchestrator, pipeline, _published = _make_orchestrator()
        pipeline.run.side_effect = ProcessingCancelledError("backoff")

        result = orchestrator.run(acme_rows, [])

        assert result.status.error_reason == "cancelled"

    def test_keyboard_interrupt_is_cancellation(self, acme_rows: list[DocumentRow]) -> None:
        orchestrator, pipeline, _published = _make_orchestrator()
        pipeline.run.side_effect = KeyboardInterrupt

        result = orchestrator.run(acme_rows, [])

        assert result.status.phase is ProcessingPhase.ERROR
        assert result.status.error_reason == "cancelled"


class TestRowsListener:
    def test_listener_failure_does_not_stop_batch(self, acme_rows: list[DocumentRow]) -> None:
        pipeline = MagicMock(spec=CustomerPipeline)
        pipeline.run.side_effect = _labelled
        listener = MagicMock(side_effect=RuntimeError("ui gone"))
        orchestrator = BatchOrchestrator(
            pipeline,
            MagicMock(customer_pacing_seconds=0.0),
            on_rows_updated=listener,
        )

        result = orchestrator.run(acme_rows, [])

        assert listener.call_count == 2
        assert result.status.phase is ProcessingPhase.COMPLETE
        assert result.rows[2].actual_output == "done:Globex"
