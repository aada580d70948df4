class WorkbookError(Exception):
    """Raised when a workbook cannot be read or written."""
