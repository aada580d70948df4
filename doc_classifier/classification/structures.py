"""Typed view of the category structures exchanged with the classification backend.

Credit card categories list {front, back} pairs; every other category lists
{filename} entries. Responses carry full paths, requests carry bare filenames,
so request structures are always rebuilt from the matched file set.
"""

import json
from dataclasses import dataclass, field
from typing import Any

CREDIT_CARDS = "credit_cards"
OTHER_DOCUMENTS = "other_documents"


def bare_filename(path: str) -> str:
    return path.split("/")[-1]


@dataclass(frozen=True)
class CreditCardPair:
    front: str = ""
    back: str = ""

    def filenames(self) -> list[str]:
        return [bare_filename(name) for name in (self.front, self.back) if name]

    def to_payload(self) -> dict[str, str]:
        return {"front": self.front, "back": self.back}


@dataclass(frozen=True)
class DocumentFile:
    filename: str = ""

    def filenames(self) -> list[str]:
        return [bare_filename(self.filename)] if self.filename else []

    def to_payload(self) -> dict[str, str]:
        return {"filename": self.filename}


FileEntry = CreditCardPair | DocumentFile


@dataclass(frozen=True)
class Category:
    type: str
    files: list[FileEntry] = field(default_factory=list)

    def filenames(self) -> list[str]:
        return [name for entry in self.files for name in entry.filenames()]

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "files": [entry.to_payload() for entry in self.files]}


@dataclass(frozen=True)
class ClassificationStructure:
    categories: list[Category] = field(default_factory=list)

    def find(self, category_type: str) -> Category | None:
        for category in self.categories:
            if category.type == category_type:
                return category
        return None

    def to_payload(self) -> dict[str, Any]:
        return {"categories": [category.to_payload() for category in self.categories]}

    def to_json(self) -> str:
        return json.dumps(self.to_payload())


def parse_categories(raw: Any) -> list[Category]:
    """Build categories from a response list, dropping malformed entries."""
    if not isinstance(raw, list):
        return []
    categories: list[Category] = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("type"), str):
            continue
        category_type = item["type"]
        categories.append(
            Category(type=category_type, files=_parse_entries(category_type, item.get("files")))
        )
    return categories


def parse_structure(data: dict[str, Any]) -> ClassificationStructure:
    return ClassificationStructure(categories=parse_categories(data.get("categories")))


def _parse_entries(category_type: str, raw: Any) -> list[FileEntry]:
    if not isinstance(raw, list):
        return []
    entries: list[FileEntry] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        if category_type == CREDIT_CARDS:
            entries.append(CreditCardPair(front=_text(item.get("front")), back=_text(item.get("back"))))
        else:
            entries.append(DocumentFile(filename=_text(item.get("filename"))))
    return entries


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def credit_card_request(category: Category, declared: set[str]) -> ClassificationStructure:
    """Rebuild a credit card structure with bare names, keeping pairs with a declared side."""
    pairs: list[FileEntry] = []
    for entry in category.files:
        if not isinstance(entry, CreditCardPair):
            continue
        front = bare_filename(entry.front) if entry.front else ""
        back = bare_filename(entry.back) if entry.back else ""
        if (front and front in declared) or (back and back in declared):
            pairs.append(CreditCardPair(front=front, back=back))
    return ClassificationStructure(categories=[Category(type=CREDIT_CARDS, files=pairs)])


def other_documents_request(category: Category, declared: set[str]) -> ClassificationStructure:
    """Rebuild an other_documents structure with bare names restricted to declared files."""
    files: list[FileEntry] = []
    for entry in category.files:
        for name in entry.filenames():
            if name in declared:
                files.append(DocumentFile(filename=name))
    return ClassificationStructure(categories=[Category(type=OTHER_DOCUMENTS, files=files)])


def declared_names(structure: ClassificationStructure, declared: set[str]) -> set[str]:
    """Filenames referenced by structure that the customer's rows declare."""
    return {
        name
        for category in structure.categories
        for name in category.filenames()
        if name in declared
    }
