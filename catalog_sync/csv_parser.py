"""
catalog_sync.csv_parser - Low-level feed reading and cleaning.

Responsibilities:
  • BOM removal (UTF-8 / UTF-8-SIG)
  • Header whitespace stripping and lower-casing
  • Dropping columns outside the feed schema
  • Returning FeedRow objects that keep "omitted" distinct from "empty"
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from catalog_sync.field_map import FEED_COLUMNS

logger = logging.getLogger(__name__)


class FeedParseError(Exception):
    """Raised when the feed as a whole cannot be read."""
    pass


@dataclass(frozen=True)
class FeedRow:
    """One data row; ``number`` is 1-based and excludes the header."""

    number: int
    values: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def has(self, column: str) -> bool:
        """Column present with a non-blank value."""
        value = self.values.get(column)
        return value is not None and value.strip() != ""

    def text(self, column: str) -> Optional[str]:
        """Trimmed value, or None when omitted or blank."""
        value = self.values.get(column)
        if value is None:
            return None
        value = value.strip()
        return value or None


def parse_feed(
    raw: str | bytes,
    columns: Iterable[str] = FEED_COLUMNS,
) -> list[FeedRow]:
    """
    Read a whole feed into FeedRows, in feed order.

    Raises FeedParseError on empty input, a missing header, or
    malformed quoting.
    """
    text = decode_feed(raw)
    if not text.strip():
        raise FeedParseError("Feed has no header row or is empty")

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    try:
        header = next(reader, None)
        if not header or not any(h.strip() for h in header):
            raise FeedParseError("Feed has no header row or is empty")

        header = [h.strip().lower() for h in header]
        wanted = set(columns)
        ignored = sorted({h for h in header if h and h not in wanted})
        if ignored:
            logger.info("Ignoring %d unknown feed column(s): %s",
                        len(ignored), ", ".join(ignored))

        rows: list[FeedRow] = []
        for fields in reader:
            if not fields:
                continue                      # blank line
            values: dict[str, str] = {}
            # zip() stops at the shorter side: short rows omit keys,
            # surplus trailing fields are dropped.
            for name, value in zip(header, fields):
                if name in wanted:
                    values[name] = value
            if len(fields) > len(header):
                logger.debug("Row %d has %d surplus field(s)",
                             len(rows) + 1, len(fields) - len(header))
            rows.append(FeedRow(number=len(rows) + 1, values=values))
    except csv.Error as exc:
        raise FeedParseError(f"Malformed feed near line {reader.line_num}: {exc}") from exc

    return rows


def decode_feed(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        # Strip UTF-8 BOM
        if raw.startswith(b"\xef\xbb\xbf"):
            raw = raw[3:]
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FeedParseError("Feed must be UTF-8 encoded") from exc
    if raw.startswith("\ufeff"):
        return raw[1:]
    return raw
