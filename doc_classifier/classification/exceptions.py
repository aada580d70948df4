class ClassificationError(Exception):
    """Raised when a classification call fails."""


class ClassificationNetworkError(ClassificationError):
    """Raised when the backend cannot be reached (connection reset, DNS, ...)."""


class ClassificationRemoteError(ClassificationError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(self, operation: str, status_code: int, body: str) -> None:
        self.operation = operation
        self.status_code = status_code
        self.body = body
        super().__init__(f"{operation} failed: {status_code} - {body}")
