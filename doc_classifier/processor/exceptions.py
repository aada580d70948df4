class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class CategorizationError(ProcessorError):
    """Raised when the categorize stage fails; halts the whole batch."""

    def __init__(self, customer: str, cause: Exception) -> None:
        self.customer = customer
        self.cause = cause
        super().__init__(f"Categorization failed for customer '{customer}': {cause}")


class ProcessingCancelledError(ProcessorError):
    """Raised when the batch is cancelled while a customer is in flight."""
