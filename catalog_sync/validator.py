"""
catalog_sync.validator - Per-row structural and semantic checks.

Every rule runs independently so one call reports all problems with a
row.  Critical diagnostics keep the row out of the import; warnings
let it through with a note for the operator.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

import config
from catalog_sync.csv_parser import FeedRow
from catalog_sync.field_map import (
    JSON_LIST_FIELDS,
    VALID_CATEGORIES,
    canonical_variation_type,
    option_has_image,
)
from catalog_sync.normalizer import ParsedAsJson, ParsedAsDelimited, parse_list_field
from catalog_sync.report import Diagnostic, critical, warning


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    diagnostics: tuple[Diagnostic, ...]


class RowValidator:
    """
    Validates one FeedRow.  Stateless; safe to share across rows.
    """

    def __init__(self, categories=VALID_CATEGORIES, regions=None,
                 delimiter: str | None = None):
        self._categories = tuple(c.lower() for c in categories)
        self._regions = frozenset(regions or config.REGIONS)
        self._delimiter = delimiter or config.LIST_DELIMITER

    def validate(self, row: FeedRow, row_number: int | None = None) -> ValidationResult:
        row_number = row.number if row_number is None else row_number
        sku = row.text("sku")
        found: list[Diagnostic] = []

        def crit(message, fld):
            found.append(critical(row_number, message, field=fld, sku=sku))

        def warn(message, fld):
            found.append(warning(row_number, message, field=fld, sku=sku))

        # ── Required fields ────────────────────────────────────────────
        if not row.has("sku"):
            crit("SKU is required", "sku")
        if not row.has("name"):
            crit("Name is required", "name")
        if not _is_price(row.text("regular_price")):
            crit("Regular price is required and must be a number >= 0", "regular_price")

        # ── Soft checks ────────────────────────────────────────────────
        if row.has("categories"):
            self._check_category(row.text("categories"), warn)

        region = row.text("region")
        if region is not None and region.lower() not in self._regions:
            warn(f'Unknown region "{region}"; it is imported as a separate region. '
                 f"Expected one of: {', '.join(sorted(self._regions))}", "region")

        if row.has("meta_data"):
            try:
                meta = json.loads(row.text("meta_data"))
            except json.JSONDecodeError:
                meta = None
            if not isinstance(meta, dict):
                warn("meta_data is not a JSON object and will be ignored", "meta_data")

        # ── Nested JSON columns ────────────────────────────────────────
        for column in JSON_LIST_FIELDS:
            if not row.has(column):
                continue
            try:
                parsed = json.loads(row.text(column))
            except json.JSONDecodeError as exc:
                crit(f"Invalid JSON in {column}: {exc.msg}", column)
                continue
            if not isinstance(parsed, list):
                crit(f"{column} must be a JSON array", column)
                continue
            if column == "product_variations":
                for idx, variation in enumerate(parsed):
                    self._check_variation(variation, idx, warn)

        is_valid = not any(d.is_critical for d in found)
        return ValidationResult(is_valid=is_valid, diagnostics=tuple(found))

    # ── Private helpers ────────────────────────────────────────────────

    def _check_category(self, raw: str, warn) -> None:
        parsed = parse_list_field(raw, self._delimiter)
        if not isinstance(parsed, (ParsedAsJson, ParsedAsDelimited)):
            warn(f"Category value could not be interpreted: {parsed.reason}", "categories")
            return
        if not parsed.values:
            return
        category = parsed.values[0]
        if category.strip().lower() not in self._categories:
            warn(f'Invalid category: "{category}". '
                 f"Expected one of: {', '.join(self._categories)}", "categories")

    @staticmethod
    def _check_variation(variation: Any, idx: int, warn) -> None:
        if not isinstance(variation, dict):
            return                              # reported by the normalizer
        label = variation.get("name") or f"#{idx + 1}"
        options = variation.get("options")
        if not isinstance(options, list):
            options = []
        with_images = sum(1 for opt in options if option_has_image(opt))
        vtype = canonical_variation_type(variation.get("variation_type"))

        if vtype == "dropdown" and with_images:
            warn(f'Variation "{label}" is type "dropdown" but has image_url in '
                 f'{with_images} option(s). It will be converted to type "image".',
                 "product_variations")
        elif vtype == "image" and not with_images:
            warn(f'Variation "{label}" is type "image" but no options have image_url.',
                 "product_variations")


def _is_price(raw: str | None) -> bool:
    if raw is None:
        return False
    try:
        value = Decimal(raw)
    except (InvalidOperation, ValueError):
        return False
    return value.is_finite() and value >= 0
