"""
catalog_sync.normalizer - Turn a validated FeedRow into typed values.

Single-responsibility: given a row that passed validation, return a
NormalizedRecord or raise NormalizationError.  No I/O, no session.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

import config
from catalog_sync.csv_parser import FeedRow
from catalog_sync.field_map import (
    BOOLEAN_FIELDS,
    BUNDLE_ITEM_TYPES,
    CHOICE_FIELDS,
    DATE_FIELDS,
    DECIMAL_FIELDS,
    INFO_CONTENT_TYPES,
    INTEGER_FIELDS,
    MANUAL_FILE_TYPES,
    TEXT_FIELDS,
    VARIATION_TYPES,
    canonical_variation_type,
    option_has_image,
)

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
)

_ZERO = Decimal("0")


class NormalizationError(Exception):
    """Raised when a row's nested data cannot be coerced."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


# ── Two-format list columns ────────────────────────────────────────────
# Older exports wrote categories/tags as JSON arrays, newer ones as a
# delimiter-joined string.  Which one arrived is kept visible.

@dataclass(frozen=True)
class ParsedAsJson:
    values: tuple[str, ...]


@dataclass(frozen=True)
class ParsedAsDelimited:
    values: tuple[str, ...]


@dataclass(frozen=True)
class Unparseable:
    raw: str
    reason: str


ListFieldParse = Union[ParsedAsJson, ParsedAsDelimited, Unparseable]


def parse_list_field(raw: str | None, delimiter: str = "|") -> ListFieldParse:
    """Try JSON first, then fall back to splitting on ``delimiter``."""
    text = (raw or "").strip()
    if not text:
        return Unparseable(raw or "", "empty value")
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError:
        return ParsedAsDelimited(_split(text, delimiter))

    if isinstance(decoded, list):
        values = tuple(
            str(item).strip() for item in decoded
            if isinstance(item, (str, int, float)) and not isinstance(item, bool)
            and str(item).strip()
        )
        return ParsedAsJson(values)
    if isinstance(decoded, str):
        return ParsedAsDelimited(_split(decoded, delimiter))
    if isinstance(decoded, dict):
        return Unparseable(text, "a JSON object is not a list")
    if decoded is None:
        return Unparseable(text, "null")
    # bare number / boolean literal: keep the text as written
    return ParsedAsDelimited(_split(text, delimiter))


def _split(text: str, delimiter: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in text.split(delimiter) if part.strip())


# ── Normalized shapes ──────────────────────────────────────────────────

@dataclass(frozen=True)
class ImageSpec:
    image_url: str
    alt_text: Optional[str] = None
    is_primary: bool = False
    sort_order: int = 0


@dataclass(frozen=True)
class OptionSpec:
    option_name: str
    option_value: str
    price_adjustment: Decimal = _ZERO
    image_url: Optional[str] = None
    is_default: bool = False
    is_available: bool = True
    sort_order: int = 0
    stock_quantity: Optional[int] = None          # None = untracked
    low_stock_threshold: Optional[int] = None
    reserved_quantity: int = 0


@dataclass(frozen=True)
class VariationSpec:
    variation_type: str
    name: str
    description: Optional[str] = None
    is_required: bool = True
    tracks_stock: bool = False
    sort_order: int = 0
    options: tuple[OptionSpec, ...] = ()


@dataclass(frozen=True)
class BundleItemSpec:
    item_sku: str
    quantity: int = 1
    item_type: str = "required"
    is_configurable: bool = False
    price_adjustment: Decimal = _ZERO
    display_name: Optional[str] = None
    description: Optional[str] = None
    sort_order: int = 0


@dataclass(frozen=True)
class FaqSpec:
    question: str
    answer: str
    sort_order: int = 0


@dataclass(frozen=True)
class ManualSpec:
    name: str
    file_url: str
    description: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    image_url: Optional[str] = None
    sort_order: int = 0


@dataclass(frozen=True)
class ExtraInfoSpec:
    title: str
    description: Optional[str] = None
    content_type: str = "text"
    content_data: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    sort_order: int = 0


@dataclass(frozen=True)
class NormalizedRecord:
    """
    Typed form of one feed row.  A nested collection the feed did not
    carry is None; an empty JSON array is an empty tuple.
    """

    row_number: int
    sku: str
    region: str
    product: Mapping[str, Any]
    images: Optional[tuple[ImageSpec, ...]] = None
    variations: Optional[tuple[VariationSpec, ...]] = None
    bundle_items: Optional[tuple[BundleItemSpec, ...]] = None
    faqs: Optional[tuple[FaqSpec, ...]] = None
    manuals: Optional[tuple[ManualSpec, ...]] = None
    additional_info: Optional[tuple[ExtraInfoSpec, ...]] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.sku, self.region)


class RowNormalizer:
    """
    Coerces validated rows.  Stateless; safe to share across rows.
    """

    def __init__(self, primary_region: str | None = None, delimiter: str | None = None):
        self._primary_region = (primary_region or config.PRIMARY_REGION).lower()
        self._delimiter = delimiter or config.LIST_DELIMITER

    def normalize(self, row: FeedRow) -> NormalizedRecord:
        product = self._base_payload(row)
        return NormalizedRecord(
            row_number=row.number,
            sku=product["sku"],
            region=product["region"],
            product=MappingProxyType(product),
            images=self._nested(row, "product_images", _image),
            variations=self._nested(row, "product_variations", _variation),
            bundle_items=self._nested(row, "product_bundle_items", _bundle_item),
            faqs=self._nested(row, "product_faqs", _faq),
            manuals=self._nested(row, "assembly_manuals", _manual),
            additional_info=self._nested(row, "product_additional_info", _extra_info),
        )

    # ── Base product ───────────────────────────────────────────────────

    def _base_payload(self, row: FeedRow) -> dict[str, Any]:
        product: dict[str, Any] = {
            "sku": row.text("sku"),
            "name": row.text("name"),
            "regular_price": Decimal(row.text("regular_price")),
        }

        for column, attr in TEXT_FIELDS.items():
            value = row.text(column)
            if value is not None:
                product[attr] = value

        for column, attr in DECIMAL_FIELDS.items():
            value = to_decimal(row.text(column))
            if value is not None:
                product[attr] = value

        for column, attr in INTEGER_FIELDS.items():
            value = to_int(row.text(column))
            if value is not None:
                product[attr] = value

        for column, attr in BOOLEAN_FIELDS.items():
            if row.has(column):
                product[attr] = to_bool(row.text(column))

        for column, attr in DATE_FIELDS.items():
            value = to_datetime(row.text(column))
            if value is not None:
                product[attr] = value

        for column, allowed in CHOICE_FIELDS.items():
            value = (row.text(column) or "").lower()
            if value in allowed:
                product[column] = value

        if row.has("categories"):
            parsed = parse_list_field(row.text("categories"), self._delimiter)
            if not isinstance(parsed, Unparseable) and parsed.values:
                # one category per product, stored as a one-element list
                product["categories"] = [parsed.values[0]]

        if row.has("tags"):
            parsed = parse_list_field(row.text("tags"), self._delimiter)
            if not isinstance(parsed, Unparseable):
                product["tags"] = list(parsed.values)

        if row.has("meta_data"):
            try:
                meta = json.loads(row.text("meta_data"))
            except json.JSONDecodeError:
                meta = None
            if isinstance(meta, dict):
                product["meta_data"] = meta

        # only an omitted region defaults; a given one is part of the key
        region = (row.text("region") or "").lower()
        product["region"] = region or self._primary_region

        group = row.text("product_group_id")
        product["product_group_id"] = None if group is None or group.lower() == "null" else group

        return product

    # ── Nested collections ─────────────────────────────────────────────

    @staticmethod
    def _nested(row: FeedRow, column: str, build) -> Optional[tuple]:
        if not row.has(column):
            return None
        try:
            entries = json.loads(row.text(column))
        except json.JSONDecodeError as exc:
            raise NormalizationError(f"Invalid JSON in {column}: {exc.msg}", column) from exc
        if not isinstance(entries, list):
            raise NormalizationError(f"{column} must be a JSON array", column)

        built = []
        for idx, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise NormalizationError(
                    f"{column} entry #{idx + 1} must be a JSON object", column)
            built.append(build(entry, idx, column))
        return tuple(built)


# ── Entry builders (entry, position, column) ───────────────────────────

def _image(entry: dict, idx: int, column: str) -> ImageSpec:
    return ImageSpec(
        image_url=_required(entry, "image_url", idx, column),
        alt_text=_opt_text(entry.get("alt_text")),
        is_primary=to_bool(entry.get("is_primary")),
        sort_order=coerce_int(entry.get("sort_order"), idx),
    )


def _variation(entry: dict, idx: int, column: str) -> VariationSpec:
    name = _required(entry, "name", idx, column)
    declared = entry.get("variation_type")
    vtype = canonical_variation_type(declared)
    if vtype not in VARIATION_TYPES:
        raise NormalizationError(
            f'Unsupported variation_type "{declared}" in variation "{name}"', column)

    raw_options = entry.get("options")
    if raw_options is None:
        raw_options = []
    if not isinstance(raw_options, list):
        raise NormalizationError(f'Options of variation "{name}" must be a JSON array', column)

    options = []
    for pos, opt in enumerate(raw_options):
        if not isinstance(opt, dict):
            raise NormalizationError(
                f'Option #{pos + 1} of variation "{name}" must be a JSON object', column)
        options.append(_option(opt, pos, column, name))

    if vtype == "dropdown" and any(option_has_image(opt) for opt in raw_options):
        vtype = "image"

    return VariationSpec(
        variation_type=vtype,
        name=name,
        description=_opt_text(entry.get("description")),
        is_required=to_bool(entry.get("is_required"), default=True),
        tracks_stock=to_bool(entry.get("tracks_stock")),
        sort_order=coerce_int(entry.get("sort_order"), 0),
        options=tuple(options),
    )


def _option(opt: dict, pos: int, column: str, variation: str) -> OptionSpec:
    option_name = _opt_text(opt.get("option_name"))
    if option_name is None:
        raise NormalizationError(
            f'Option #{pos + 1} of variation "{variation}" is missing option_name', column)
    return OptionSpec(
        option_name=option_name,
        option_value=_opt_text(opt.get("option_value")) or option_name,
        price_adjustment=coerce_decimal(opt.get("price_adjustment"), _ZERO),
        image_url=_opt_text(opt.get("image_url")),
        is_default=to_bool(opt.get("is_default")),
        is_available=to_bool(opt.get("is_available"), default=True),
        sort_order=coerce_int(opt.get("sort_order"), pos),
        stock_quantity=coerce_int(opt.get("stock_quantity"), None),
        low_stock_threshold=coerce_int(opt.get("low_stock_threshold"), None),
        reserved_quantity=coerce_int(opt.get("reserved_quantity"), 0),
    )


def _bundle_item(entry: dict, idx: int, column: str) -> BundleItemSpec:
    quantity = coerce_int(entry.get("quantity"), 1)
    item_type = str(entry.get("item_type") or "").strip().lower()
    return BundleItemSpec(
        item_sku=_required(entry, "item_sku", idx, column),
        quantity=quantity if quantity > 0 else 1,
        item_type=item_type if item_type in BUNDLE_ITEM_TYPES else "required",
        is_configurable=to_bool(entry.get("is_configurable")),
        price_adjustment=coerce_decimal(entry.get("price_adjustment"), _ZERO),
        display_name=_opt_text(entry.get("display_name")),
        description=_opt_text(entry.get("description")),
        sort_order=coerce_int(entry.get("sort_order"), idx),
    )


def _faq(entry: dict, idx: int, column: str) -> FaqSpec:
    return FaqSpec(
        question=_required(entry, "question", idx, column),
        answer=_required(entry, "answer", idx, column),
        sort_order=coerce_int(entry.get("sort_order"), idx),
    )


def _manual(entry: dict, idx: int, column: str) -> ManualSpec:
    file_type = str(entry.get("file_type") or "").strip().lower()
    return ManualSpec(
        name=_required(entry, "name", idx, column),
        file_url=_required(entry, "file_url", idx, column),
        description=_opt_text(entry.get("description")),
        file_type=file_type if file_type in MANUAL_FILE_TYPES else None,
        file_size=coerce_int(entry.get("file_size"), None),
        image_url=_opt_text(entry.get("image_url")),
        sort_order=coerce_int(entry.get("sort_order"), idx),
    )


def _extra_info(entry: dict, idx: int, column: str) -> ExtraInfoSpec:
    content_type = str(entry.get("content_type") or "").strip().lower()
    content_data = entry.get("content_data")
    return ExtraInfoSpec(
        title=_required(entry, "title", idx, column),
        description=_opt_text(entry.get("description")),
        content_type=content_type if content_type in INFO_CONTENT_TYPES else "text",
        content_data=MappingProxyType(dict(content_data)) if isinstance(content_data, dict)
        else MappingProxyType({}),
        sort_order=coerce_int(entry.get("sort_order"), idx),
    )


def _required(entry: dict, key: str, idx: int, column: str) -> str:
    value = _opt_text(entry.get(key))
    if value is None:
        raise NormalizationError(f"{column} entry #{idx + 1} is missing {key}", column)
    return value


def _opt_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


# ── Scalar coercion ────────────────────────────────────────────────────

def to_bool(value: Any, default: bool = False) -> bool:
    """JSON booleans pass through; strings are true only for "true"."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return default


def to_decimal(raw: Any) -> Optional[Decimal]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None


def to_int(raw: Any) -> Optional[int]:
    value = to_decimal(raw)
    return int(value) if value is not None else None


def coerce_decimal(raw: Any, default):
    value = to_decimal(raw)
    return default if value is None else value


def coerce_int(raw: Any, default):
    value = to_int(raw)
    return default if value is None else value


def to_datetime(raw: str | None) -> Optional[datetime]:
    if not raw:
        return None
    normalized = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        parsed = None
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(raw, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
