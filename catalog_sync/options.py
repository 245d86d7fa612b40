"""
catalog_sync.options - How an import run treats existing products.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ImportMode(str, Enum):
    CREATE = "create"                    # new rows only, existing keys skipped
    UPDATE = "update"                    # existing keys overwritten
    SKIP_DUPLICATES = "skip_duplicates"  # existing keys skipped, no overwrite

    @classmethod
    def parse(cls, value: "str | ImportMode | None") -> "ImportMode":
        """Accept an ImportMode or its string value; None → CREATE."""
        if value is None or value == "":
            return cls.CREATE
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise ValueError(f"Invalid mode {value!r}. Must be one of: {allowed}") from None


@dataclass(frozen=True)
class ImportOptions:
    mode: ImportMode = ImportMode.CREATE
    dry_run: bool = False
    validate_only: bool = False
