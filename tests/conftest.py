import pytest

from doc_classifier.processor.models import DocumentRow, UploadedFile


@pytest.fixture()
def acme_rows() -> list[DocumentRow]:
    """Two customers, Acme first, in spreadsheet order."""
    return [
        DocumentRow(id="row-1", customer="Acme", file="a.jpg", expected_output="Credit Cards"),
        DocumentRow(id="row-2", customer="Acme", file="b.jpg", expected_output="Credit Cards"),
        DocumentRow(id="row-3", customer="Globex", file="c.jpg", expected_output="Pos Receipts"),
        DocumentRow(id="row-4", customer="Acme", file="d.pdf"),
    ]


@pytest.fixture()
def folder_files() -> list[UploadedFile]:
    """Folder upload: Acme and Globex sub-folders plus an unrelated Other folder."""
    paths = [
        "batch/Acme/a.jpg",
        "batch/Acme/b.jpg",
        "batch/Acme/d.pdf",
        "batch/Other/a.jpg",
        "batch/Globex/c.jpg",
    ]
    return [
        UploadedFile(name=path.split("/")[-1], content=path.encode(), relative_path=path)
        for path in paths
    ]
