"""
Dataset Loading

Reads the (identity, amount) CSV that feeds a tree build.

Rules:
- The first line is a header naming the key and value columns
- Blank lines are skipped and cells are trimmed
- Row numbers in errors count data rows from 1; row 0 is the header
- Identities are hex addresses; amounts are non-negative field elements
"""
from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from core.field.element import DEFAULT_FIELD, PrimeField, address_to_key
from core.schemas.errors import DatasetRowException, InvalidFieldElementException


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatasetEntry:
    """One claimant: the identity as written, its key and its amount."""
    identity: str
    key: int
    value: int
    row_index: int = 0


def parse_rows(
    rows: Iterable[dict[str, Optional[str]]],
    *,
    key_column: str = "address",
    value_column: str = "amount",
    field: PrimeField = DEFAULT_FIELD,
) -> list[DatasetEntry]:
    """
    Convert header-keyed rows into dataset entries.

    Raises:
        DatasetRowException: On the first malformed row
    """
    entries: list[DatasetEntry] = []
    row_index = 0
    for row in rows:
        cells = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}
        if not any(cells.values()):
            continue
        row_index += 1

        identity = cells.get(key_column, "")
        if not identity:
            raise DatasetRowException(f"missing {key_column}", row_index=row_index, field=key_column)
        try:
            key = address_to_key(identity)
        except InvalidFieldElementException as e:
            raise DatasetRowException(
                f"invalid {key_column} {identity!r}: {e.message}",
                row_index=row_index,
                field=key_column,
            ) from e

        raw_value = cells.get(value_column, "")
        if not raw_value:
            raise DatasetRowException(f"missing {value_column}", row_index=row_index, field=value_column)
        try:
            value = field.element(raw_value)
        except InvalidFieldElementException as e:
            raise DatasetRowException(
                f"invalid {value_column} {raw_value!r}: {e.message}",
                row_index=row_index,
                field=value_column,
            ) from e

        entries.append(DatasetEntry(identity=identity, key=key, value=value, row_index=row_index))
    return entries


def load_dataset(
    path: str | Path,
    key_column: str = "address",
    value_column: str = "amount",
    field: PrimeField = DEFAULT_FIELD,
) -> list[DatasetEntry]:
    """
    Load a claim dataset from CSV.

    Args:
        path: CSV file with a header row
        key_column: Column holding the hex identity
        value_column: Column holding the amount

    Returns:
        Entries in file order

    Raises:
        FileNotFoundError: If path does not exist
        DatasetRowException: If the header lacks a column or a row is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found: {path}")

    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        header = [name.strip() for name in (reader.fieldnames or [])]
        for column in (key_column, value_column):
            if column not in header:
                raise DatasetRowException(
                    f"header is missing column {column!r}", row_index=0, field=column
                )
        entries = parse_rows(reader, key_column=key_column, value_column=value_column, field=field)

    logger.info("Loaded %d records from %s", len(entries), path)
    return entries


__all__ = [
    "DatasetEntry",
    "parse_rows",
    "load_dataset",
]
