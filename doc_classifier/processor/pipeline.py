from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

from doc_classifier.classification.reconciler import RowIndex
from doc_classifier.classification.structures import ClassificationStructure
from doc_classifier.processor.models import CustomerGroup, DocumentRow, MatchResult, UploadedFile


@dataclass(slots=True)
class CustomerContext:
    group: CustomerGroup
    files: list[UploadedFile]
    rows: list[DocumentRow]
    index: RowIndex
    on_progress: Callable[[str], None] | None = None
    match: MatchResult = field(default_factory=MatchResult)
    categorized: ClassificationStructure | None = None
    skip_reason: str = ""
    stage_failures: list[str] = field(default_factory=list)

    @property
    def customer(self) -> str:
        return self.group.customer

    def narrate(self, message: str) -> None:
        if self.on_progress is not None:
            self.on_progress(message)


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: CustomerContext) -> CustomerContext:
        raise NotImplementedError
