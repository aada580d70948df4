from pathlib import Path

from doc_classifier.logging.logger import Log
from doc_classifier.processor.models import CustomerGroup, MatchResult, UploadedFile

SKIPPED_EXTENSIONS = frozenset({"pdf", "xml"})


def load_folder(root: Path) -> list[UploadedFile]:
    """Read every non-hidden file under root.

    relative_path is taken from root's parent so that, as with a browser folder
    upload, it starts with the root folder name: "<root>/<customer>/<file>".

    Raises:
        NotADirectoryError: if root is not a directory.
    """
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")
    files: list[UploadedFile] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.name.startswith("."):
            continue
        relative = path.relative_to(root.parent).as_posix()
        files.append(UploadedFile(name=path.name, content=path.read_bytes(), relative_path=relative))
    Log.info(f"Loaded {len(files)} files from {root}")
    return files


def folder_name(file: UploadedFile) -> str | None:
    """Second-to-last path segment, or None when the file has no folder."""
    parts = (file.relative_path or file.name).split("/")
    if len(parts) < 2:
        return None
    return parts[-2]


def belongs_to_customer(file: UploadedFile, customer: str) -> bool:
    folder = folder_name(file)
    if folder is None:
        return False
    if folder == customer:
        return True
    return folder.lower() == customer.lower()


class FileMatcher:
    """Selects the uploaded files that belong to one customer's rows."""

    def match(self, files: list[UploadedFile], group: CustomerGroup) -> MatchResult:
        declared = group.declared_files
        matched = [
            f for f in files
            if f.name in declared and belongs_to_customer(f, group.customer)
        ]
        result = MatchResult(
            images_to_process=[f for f in matched if f.extension not in SKIPPED_EXTENSIONS],
            skipped=[f for f in matched if f.extension in SKIPPED_EXTENSIONS],
        )
        Log.info(
            f"Customer '{group.customer}': {len(declared)} declared files, "
            f"{len(matched)} found in folder, {len(result.images_to_process)} images, "
            f"{len(result.skipped)} PDF/XML skipped"
        )
        if result.is_empty:
            Log.warning(f"Customer '{group.customer}' has no matching files in the uploaded folder")
        return result
