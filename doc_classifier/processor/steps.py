from doc_classifier.classification.base import BaseClassificationClient
from doc_classifier.classification.exceptions import ClassificationError
from doc_classifier.classification.reconciler import ResponseReconciler
from doc_classifier.classification.structures import (
    CREDIT_CARDS,
    OTHER_DOCUMENTS,
    credit_card_request,
    declared_names,
    other_documents_request,
    parse_structure,
)
from doc_classifier.logging.logger import Log
from doc_classifier.processor.exceptions import CategorizationError
from doc_classifier.processor.file_matcher import FileMatcher
from doc_classifier.processor.pipeline import CustomerContext, PipelineStep


class MatchFilesStep(PipelineStep):
    def __init__(self, matcher: FileMatcher) -> None:
        self._matcher = matcher

    def run(self, context: CustomerContext) -> CustomerContext:
        context.match = self._matcher.match(context.files, context.group)
        if context.match.is_empty:
            context.skip_reason = f"No files found in folder for {context.customer} - SKIPPING"
        elif not context.match.images_to_process:
            context.skip_reason = "No image files to process (only PDF/XML found)"
        else:
            total = len(context.match.images_to_process) + len(context.match.skipped)
            context.narrate(f"Processing {total} files for {context.customer}")
        return context


class CategorizeStep(PipelineStep):
    """Fatal stage: without categories nothing downstream can run."""

    def __init__(
        self,
        client: BaseClassificationClient,
        reconciler: ResponseReconciler,
    ) -> None:
        self._client = client
        self._reconciler = reconciler

    def run(self, context: CustomerContext) -> CustomerContext:
        images = context.match.images_to_process
        context.narrate(f"Categorizing {len(images)} image files...")
        try:
            response = self._client.categorize(images)
        except ClassificationError as exc:
            context.narrate("Categorization failed")
            Log.error(f"Categorization failed for {context.customer}: {exc}")
            raise CategorizationError(context.customer, exc) from exc

        context.categorized = parse_structure(response)
        written = self._reconciler.apply_categories(context.index, context.categorized.categories)
        Log.info(f"Categorized {context.customer}: {written} rows labelled")
        context.narrate("Categorization complete")
        return context


class GroupCreditCardsStep(PipelineStep):
    """Contained stage: a failure leaves credit card groups unset."""

    def __init__(
        self,
        client: BaseClassificationClient,
        reconciler: ResponseReconciler,
    ) -> None:
        self._client = client
        self._reconciler = reconciler

    def run(self, context: CustomerContext) -> CustomerContext:
        category = context.categorized.find(CREDIT_CARDS) if context.categorized else None
        if category is None or not category.files:
            context.narrate("No credit cards - skipping grouping")
            return context

        declared = context.group.declared_files
        structure = credit_card_request(category, declared)
        names = declared_names(structure, declared)
        files = [f for f in context.match.images_to_process if f.name in names]
        if not files:
            context.narrate("No declared credit card files - skipping grouping")
            return context

        context.narrate(f"Grouping {len(files)} credit card files...")
        try:
            response = self._client.group_credit_cards(files, structure)
        except ClassificationError as exc:
            context.stage_failures.append(f"credit card grouping: {exc}")
            context.narrate("Credit card grouping failed")
            Log.error(
                f"Credit card grouping failed for {context.customer}: {exc}; "
                f"files={[f.name for f in files]} structure={structure.to_json()}"
            )
            return context

        written = self._reconciler.apply_credit_card_groups(context.index, response)
        Log.info(f"Grouped credit cards for {context.customer}: {written} rows labelled")
        context.narrate("Credit card grouping complete")
        return context


class GroupDocumentsStep(PipelineStep):
    """Contained stage: refines other_documents categories and assigns purchase groups."""

    def __init__(
        self,
        client: BaseClassificationClient,
        reconciler: ResponseReconciler,
    ) -> None:
        self._client = client
        self._reconciler = reconciler

    def run(self, context: CustomerContext) -> CustomerContext:
        category = context.categorized.find(OTHER_DOCUMENTS) if context.categorized else None
        if category is None or not category.files:
            context.narrate("No other_documents - skipping grouping")
            return context

        declared = context.group.declared_files
        structure = other_documents_request(category, declared)
        names = declared_names(structure, declared)
        files = [f for f in context.match.images_to_process if f.name in names]
        if not files:
            context.narrate("No declared other documents - skipping grouping")
            return context

        context.narrate(f"Processing {len(files)} other documents...")
        try:
            response = self._client.group_documents(files, structure)
        except ClassificationError as exc:
            context.stage_failures.append(f"document grouping: {exc}")
            context.narrate("Document grouping failed")
            Log.error(
                f"Document grouping failed for {context.customer}: {exc}; "
                f"files={[f.name for f in files]} structure={structure.to_json()}"
            )
            return context

        written = self._reconciler.apply_document_groups(context.index, response)
        Log.info(f"Grouped documents for {context.customer}: {written} rows labelled")
        context.narrate("Document grouping complete")
        return context
