from dataclasses import dataclass, field
from enum import Enum


@dataclass
class DocumentRow:
    """One spreadsheet data row; actual_* fields are filled in by the pipeline."""

    id: str
    customer: str
    file: str
    expected_output: str = ""
    actual_output: str = ""
    output_result: str = ""
    expected_group: str = ""
    actual_group: str = ""
    group_result: str = ""
    row_index: int = 0


@dataclass(frozen=True)
class UploadedFile:
    """A file from the bulk folder upload.

    relative_path includes the customer folder segment, e.g.
    "batch/Acme/receipt.jpg". It is None for loose files.
    """

    name: str
    content: bytes
    relative_path: str | None = None

    @property
    def extension(self) -> str:
        if "." not in self.name:
            return ""
        return self.name.rsplit(".", 1)[1].lower()


@dataclass(frozen=True)
class CustomerGroup:
    """Rows sharing one customer value, in spreadsheet order."""

    customer: str
    rows: tuple[DocumentRow, ...]

    @property
    def declared_files(self) -> set[str]:
        return {row.file for row in self.rows}


@dataclass(frozen=True)
class MatchResult:
    """Files matched to a customer, split by whether they are sent for classification."""

    images_to_process: list[UploadedFile] = field(default_factory=list)
    skipped: list[UploadedFile] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.images_to_process and not self.skipped


@dataclass
class CustomerResult:
    """Outcome of one customer's pipeline run."""

    customer: str
    rows: list[DocumentRow]
    status_line: str
    skipped: bool = False
    stage_failures: list[str] = field(default_factory=list)


class ProcessingPhase(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ProcessingStatus:
    """Snapshot of batch progress handed to observers."""

    phase: ProcessingPhase = ProcessingPhase.IDLE
    total_customers: int = 0
    processed_customers: int = 0
    current_customer: str | None = None
    message: str | None = None
    error_reason: str | None = None


@dataclass
class BatchResult:
    rows: list[DocumentRow]
    status: ProcessingStatus
