import pytest

from doc_classifier.processor.models import ProcessingPhase, ProcessingStatus
from doc_classifier.worker.status import BatchStatus


class TestTransitions:
    def test_starts_idle(self) -> None:
        assert BatchStatus().snapshot() == ProcessingStatus()

    def test_start_sets_processing(self) -> None:
        status = BatchStatus()

        status.start(3)

        snap = status.snapshot()
        assert snap.phase is ProcessingPhase.PROCESSING
        assert snap.total_customers == 3
        assert snap.processed_customers == 0
        assert snap.message == "Starting document processing..."

    def test_customer_progress(self) -> None:
        status = BatchStatus()
        status.start(2)

        status.begin_customer("Acme")
        status.narrate("Acme: Categorization complete")
        status.customer_done()

        snap = status.snapshot()
        assert snap.current_customer == "Acme"
        assert snap.message == "Acme: Categorization complete"
        assert snap.processed_customers == 1

    def test_complete(self) -> None:
        status = BatchStatus()
        status.start(2)

        status.complete()

        snap = status.snapshot()
        assert snap.phase is ProcessingPhase.COMPLETE
        assert snap.processed_customers == 2
        assert snap.message == "All customers processed successfully!"

    def test_fail_keeps_progress(self) -> None:
        status = BatchStatus()
        status.start(3)
        status.customer_done()

        status.fail("boom", reason="categorize_failed")

        snap = status.snapshot()
        assert snap.phase is ProcessingPhase.ERROR
        assert snap.processed_customers == 1
        assert snap.error_reason == "categorize_failed"

    def test_cancel_has_distinct_reason(self) -> None:
        status = BatchStatus()
        status.start(1)

        status.cancel()

        assert status.snapshot().error_reason == "cancelled"
        assert status.snapshot().message == "Processing cancelled"

    def test_reset_returns_to_idle(self) -> None:
        status = BatchStatus()
        status.start(1)
        status.fail("boom")

        status.reset()

        assert status.snapshot().phase is ProcessingPhase.IDLE


class TestIllegalTransitions:
    def test_narrate_requires_processing(self) -> None:
        with pytest.raises(ValueError, match="idle"):
            BatchStatus().narrate("hello")

    def test_customer_done_requires_processing(self) -> None:
        status = BatchStatus()
        status.start(1)
        status.complete()

        with pytest.raises(ValueError, match="complete"):
            status.customer_done()

    def test_cannot_start_twice(self) -> None:
        status = BatchStatus()
        status.start(1)

        with pytest.raises(ValueError, match="already processing"):
            status.start(1)


class TestSubscribers:
    def test_listener_receives_each_change(self) -> None:
        status = BatchStatus()
        seen: list[ProcessingStatus] = []
        status.subscribe(seen.append)

        status.start(1)
        status.begin_customer("Acme")
        status.complete()

        assert [s.phase for s in seen] == [
            ProcessingPhase.PROCESSING,
            ProcessingPhase.PROCESSING,
            ProcessingPhase.COMPLETE,
        ]

    def test_unsubscribe(self) -> None:
        status = BatchStatus()
        seen: list[ProcessingStatus] = []
        unsubscribe = status.subscribe(seen.append)

        unsubscribe()
        status.start(1)

        assert seen == []

    def test_failing_listener_does_not_break_transitions(self) -> None:
        status = BatchStatus()

        def broken(_status: ProcessingStatus) -> None:
            raise RuntimeError("observer bug")

        status.subscribe(broken)
        status.start(1)

        assert status.snapshot().phase is ProcessingPhase.PROCESSING
