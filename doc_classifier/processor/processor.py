import threading
from collections.abc import Callable

from doc_classifier.classification.base import BaseClassificationClient
from doc_classifier.classification.reconciler import ResponseReconciler, RowIndex
from doc_classifier.logging.logger import Log
from doc_classifier.processor.exceptions import ProcessingCancelledError
from doc_classifier.processor.file_matcher import FileMatcher
from doc_classifier.processor.models import CustomerGroup, CustomerResult, UploadedFile
from doc_classifier.processor.pipeline import CustomerContext, PipelineStep
from doc_classifier.processor.rows import copy_rows
from doc_classifier.processor.steps import (
    CategorizeStep,
    GroupCreditCardsStep,
    GroupDocumentsStep,
    MatchFilesStep,
)


class CustomerPipeline:
    """Runs one customer through matching -> categorize -> credit cards -> documents.

    Works on a copy of the customer's rows. Categorization errors propagate as
    CategorizationError; grouping errors are contained by their steps.
    """

    def __init__(
        self,
        steps: list[PipelineStep],
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._steps = steps
        self._cancel_event = cancel_event

    def run(
        self,
        group: CustomerGroup,
        files: list[UploadedFile],
        on_progress: Callable[[str], None] | None = None,
    ) -> CustomerResult:
        Log.info(f"Processing customer '{group.customer}' ({len(group.rows)} rows)")
        rows = copy_rows(group.rows)
        context = CustomerContext(
            group=group,
            files=files,
            rows=rows,
            index=RowIndex(rows),
            on_progress=on_progress,
        )

        for step in self._steps:
            if self._cancel_event is not None and self._cancel_event.is_set():
                raise ProcessingCancelledError(f"Cancelled while processing {group.customer}")
            context = step.run(context)
            if context.skip_reason:
                break

        if context.skip_reason:
            context.narrate(context.skip_reason)
            Log.warning(f"Customer '{group.customer}' skipped: {context.skip_reason}")
            return CustomerResult(
                customer=group.customer,
                rows=context.rows,
                status_line=context.skip_reason,
                skipped=True,
            )

        status_line = f"{group.customer} - Processing complete!"
        if context.stage_failures:
            status_line = (
                f"{group.customer} - Processing complete with "
                f"{len(context.stage_failures)} grouping failure(s)"
            )
        context.narrate(status_line)
        Log.info(f"Customer '{group.customer}' completed")
        return CustomerResult(
            customer=group.customer,
            rows=context.rows,
            status_line=status_line,
            stage_failures=context.stage_failures,
        )


def build_pipeline(
    client: BaseClassificationClient,
    cancel_event: threading.Event | None = None,
) -> CustomerPipeline:
    """Build a CustomerPipeline with the standard stage order."""
    reconciler = ResponseReconciler()
    steps: list[PipelineStep] = [
        MatchFilesStep(FileMatcher()),
        CategorizeStep(client, reconciler),
        GroupCreditCardsStep(client, reconciler),
        GroupDocumentsStep(client, reconciler),
    ]
    return CustomerPipeline(steps=steps, cancel_event=cancel_event)
