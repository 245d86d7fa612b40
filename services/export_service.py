"""
services.export_service - Catalog → CSV feed, the inverse of the import.

Output re-imports cleanly: relationships are written as JSON arrays in
the same columns the importer reads them from.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

import config
from catalog_sync.field_map import (
    BOOLEAN_FIELDS,
    CHOICE_FIELDS,
    DATE_FIELDS,
    DECIMAL_FIELDS,
    FEED_COLUMNS,
    INTEGER_FIELDS,
    REQUIRED_FIELDS,
    TEXT_FIELDS,
)
from db.models import Product

# Header order: required columns first, everything else alphabetical
EXPORT_COLUMNS: tuple[str, ...] = REQUIRED_FIELDS + tuple(
    sorted(c for c in FEED_COLUMNS if c not in REQUIRED_FIELDS)
)


def export_products(
    session: Session,
    *,
    status: Optional[str] = None,
    category: Optional[str] = None,
    region: Optional[str] = None,
) -> str:
    """Render the (optionally filtered) catalog as a CSV string."""
    stmt = select(Product).order_by(Product.region, Product.sku)
    if status:
        stmt = stmt.where(Product.status == status)
    if region:
        stmt = stmt.where(Product.region == region.lower())
    products = session.scalars(stmt).all()

    if category:
        wanted = category.strip().lower()
        products = [p for p in products
                    if any(str(c).lower() == wanted for c in (p.categories or []))]

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=EXPORT_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for product in products:
        writer.writerow(product_to_row(product))
    return buf.getvalue()


def product_to_row(product: Product) -> dict[str, str]:
    row: dict[str, Any] = {
        "sku": product.sku,
        "name": product.name,
        "regular_price": product.regular_price,
        "region": product.region,
        "product_group_id": product.product_group_id,
    }
    for group in (TEXT_FIELDS, DECIMAL_FIELDS, INTEGER_FIELDS, BOOLEAN_FIELDS, DATE_FIELDS):
        for column, attr in group.items():
            row[column] = getattr(product, attr)
    for column in CHOICE_FIELDS:
        row[column] = getattr(product, column)

    row["categories"] = (product.categories or [None])[0]
    row["tags"] = config.LIST_DELIMITER.join(product.tags or [])
    row["meta_data"] = json.dumps(product.meta_data) if product.meta_data else None

    row["product_images"] = _json([
        {"image_url": i.image_url, "alt_text": i.alt_text,
         "is_primary": i.is_primary, "sort_order": i.sort_order}
        for i in product.images
    ])
    row["product_variations"] = _json([
        {
            "variation_type": v.variation_type,
            "name": v.name,
            "description": v.description,
            "is_required": v.is_required,
            "tracks_stock": v.tracks_stock,
            "sort_order": v.sort_order,
            "options": [
                {
                    "option_name": o.option_name,
                    "option_value": o.option_value,
                    "price_adjustment": o.price_adjustment,
                    "image_url": o.image_url,
                    "is_default": o.is_default,
                    "is_available": o.is_available,
                    "sort_order": o.sort_order,
                    "stock_quantity": o.stock_quantity,
                    "low_stock_threshold": o.low_stock_threshold,
                    "reserved_quantity": o.reserved_quantity,
                }
                for o in v.options
            ],
        }
        for v in product.variations
    ])
    row["product_bundle_items"] = _json([
        {"item_sku": b.item.sku, "quantity": b.quantity, "item_type": b.item_type,
         "is_configurable": b.is_configurable, "price_adjustment": b.price_adjustment,
         "display_name": b.display_name, "description": b.description,
         "sort_order": b.sort_order}
        for b in product.bundle_items
    ])
    row["product_faqs"] = _json([
        {"question": f.question, "answer": f.answer, "sort_order": f.sort_order}
        for f in product.faqs
    ])
    row["assembly_manuals"] = _json([
        {"name": m.name, "description": m.description, "file_url": m.file_url,
         "file_type": m.file_type, "file_size": m.file_size,
         "image_url": m.image_url, "sort_order": m.sort_order}
        for m in product.manuals
    ])
    row["product_additional_info"] = _json([
        {"title": a.title, "description": a.description,
         "content_type": a.content_type, "content_data": a.content_data or {},
         "sort_order": a.sort_order}
        for a in product.additional_info
    ])

    return {col: _cell(row.get(col)) for col in EXPORT_COLUMNS}


def _json(entries: list) -> Optional[str]:
    return json.dumps(entries, default=_json_default) if entries else None


def _json_default(value):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)
