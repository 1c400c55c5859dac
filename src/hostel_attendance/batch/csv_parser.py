from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.enums import EntryType
from .model import BatchItem, ItemErr


@dataclass
class ParsedCsv:
    items: List[tuple[int, BatchItem]] = field(default_factory=list)
    errors: List[ItemErr] = field(default_factory=list)


def _cell(row: dict, *names: str) -> str:
    for name in names:
        value = row.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def parse_marks_csv(text: str) -> ParsedCsv:
    """Parse `person_id,type[,notes]` rows (header required).

    Rows that cannot be parsed are returned as errors, keyed by their
    position among the data rows.
    """

    parsed = ParsedCsv()
    reader = csv.DictReader(io.StringIO(text or "", newline=None))
    if reader.fieldnames is None:
        return parsed
    reader.fieldnames = [(name or "").strip().lower() for name in reader.fieldnames]

    for index, row in enumerate(reader):
        raw_id = _cell(row, "person_id", "personid", "id")
        raw_type = _cell(row, "type", "entry_type")
        notes: Optional[str] = _cell(row, "notes") or None

        try:
            person_id = int(raw_id)
        except ValueError:
            parsed.errors.append(ItemErr(index=index, person_id=None, reason=f"INVALID_ROW: bad person id {raw_id!r}"))
            continue
        try:
            entry_type = EntryType(raw_type.upper())
        except ValueError:
            parsed.errors.append(
                ItemErr(index=index, person_id=person_id, reason=f"INVALID_ROW: type must be IN or OUT, got {raw_type!r}")
            )
            continue

        parsed.items.append((index, BatchItem(person_id=person_id, entry_type=entry_type, notes=notes)))
    return parsed
