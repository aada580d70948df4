"""Maps classification responses back onto spreadsheet rows."""

from collections.abc import Iterable
from typing import Any

from doc_classifier.classification.structures import Category, bare_filename, parse_categories
from doc_classifier.logging.logger import Log
from doc_classifier.processor.models import DocumentRow

CREDIT_CARD_GROUP_LABEL = "Credit Card Group {index}"
PURCHASE_GROUP_LABEL = "Purchase Group {index}"


def category_display_name(category_type: str) -> str:
    """Title-case a snake_case type, e.g. other_documents -> Other Documents."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in category_type.split("_"))


class RowIndex:
    """Filename -> row lookup. The first row declaring a filename wins."""

    def __init__(self, rows: Iterable[DocumentRow]) -> None:
        self._by_file: dict[str, DocumentRow] = {}
        for row in rows:
            self._by_file.setdefault(row.file, row)

    def find(self, path: str) -> DocumentRow | None:
        if not path:
            return None
        return self._by_file.get(bare_filename(path))


class ResponseReconciler:
    """Writes category and group labels onto rows. Later writes overwrite earlier ones."""

    def apply_categories(self, index: RowIndex, categories: list[Category]) -> int:
        written = 0
        for category in categories:
            name = category_display_name(category.type)
            for filename in category.filenames():
                row = index.find(filename)
                if row is None:
                    continue
                row.actual_output = name
                written += 1
                Log.debug(f"  {filename} -> {name}")
        return written

    def apply_credit_card_groups(self, index: RowIndex, response: dict[str, Any]) -> int:
        written = 0
        for category_group in _as_list(response.get("credit_cards_group")):
            if not isinstance(category_group, dict):
                continue
            for pair_index, pair in enumerate(_as_list(category_group.get("files"))):
                if not isinstance(pair, dict):
                    continue
                label = CREDIT_CARD_GROUP_LABEL.format(index=pair_index + 1)
                for side in ("front", "back"):
                    written += self._set_group(index, pair.get(side), label)
        return written

    def apply_document_groups(self, index: RowIndex, response: dict[str, Any]) -> int:
        written = self.apply_categories(index, parse_categories(response.get("categories")))
        for group_index, purchase_group in enumerate(_as_list(response.get("documents_groups"))):
            if not isinstance(purchase_group, dict):
                continue
            label = PURCHASE_GROUP_LABEL.format(index=group_index + 1)
            for category in parse_categories(purchase_group.get("group")):
                for filename in category.filenames():
                    written += self._set_group(index, filename, label)
        return written

    @staticmethod
    def _set_group(index: RowIndex, path: Any, label: str) -> int:
        if not isinstance(path, str):
            return 0
        row = index.find(path)
        if row is None:
            return 0
        row.actual_group = label
        Log.debug(f"  {bare_filename(path)} -> {label}")
        return 1


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []
