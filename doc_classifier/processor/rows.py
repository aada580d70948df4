from collections.abc import Iterable
from dataclasses import replace

from doc_classifier.processor.models import CustomerGroup, DocumentRow

EDITABLE_FIELDS = frozenset({"actual_output", "actual_group"})


def group_by_customer(rows: Iterable[DocumentRow]) -> list[CustomerGroup]:
    """Group rows by customer, keeping customers in first-seen order."""
    grouped: dict[str, list[DocumentRow]] = {}
    for row in rows:
        grouped.setdefault(row.customer, []).append(row)
    return [
        CustomerGroup(customer=customer, rows=tuple(customer_rows))
        for customer, customer_rows in grouped.items()
    ]


def copy_rows(rows: Iterable[DocumentRow]) -> list[DocumentRow]:
    return [replace(row) for row in rows]


def merge_rows(
    master: list[DocumentRow],
    updates: Iterable[DocumentRow],
) -> list[DocumentRow]:
    """Return a new collection with rows replaced by id from updates.

    Rows in updates whose id is not in master are ignored. Applying the same
    updates twice yields the same collection.
    """
    by_id = {row.id: row for row in updates}
    return [replace(by_id[row.id]) if row.id in by_id else row for row in master]


def update_cell(
    rows: list[DocumentRow],
    row_id: str,
    field: str,
    value: str,
) -> list[DocumentRow]:
    """Apply a manual review edit to actual_output or actual_group.

    Raises:
        ValueError: if field is not user-editable.
        KeyError: if no row has the given id.
    """
    if field not in EDITABLE_FIELDS:
        raise ValueError(f"Field '{field}' is not editable. Choose from: {sorted(EDITABLE_FIELDS)}")
    if not any(row.id == row_id for row in rows):
        raise KeyError(row_id)
    return [replace(row, **{field: value}) if row.id == row_id else row for row in rows]
