"""
catalog_sync.field_map - Feed column ↔ Product attribute mapping.

The feed is a flat CSV; each column below is coerced by the normalizer
according to the group it is listed in.  Nested relationships arrive as
JSON arrays in the JSON_LIST_FIELDS columns.
"""

# Required on every row
REQUIRED_FIELDS = ("sku", "name", "regular_price")

# Feed column → Product attribute, stored as trimmed text
TEXT_FIELDS: dict[str, str] = {
    "slug":                   "slug",
    "type":                   "type",
    "status":                 "status",
    "description":            "description",
    "short_description":      "short_description",
    "sale_label":             "sale_label",
    "in_stock":               "in_stock",
    "tariff_code":            "tariff_code",
    "tax_class":              "tax_class",
    "shipping_class":         "shipping_class",
    "seo_title":              "seo_title",
    "seo_description":        "seo_description",
    "gtin_upc_ean_isbn":      "gtin_upc_ean_isbn",
    "published":              "published",
    "visibility_in_catalog":  "visibility_in_catalog",
    "date_sale_price_starts": "date_sale_price_starts",
    "date_sale_price_ends":   "date_sale_price_ends",
    "tax_status":             "tax_status",
    "backorders_allowed":     "backorders_allowed",
    "sold_individually":      "sold_individually",
    "allow_customer_reviews": "allow_customer_reviews",
    "purchase_note":          "purchase_note",
    "brands":                 "brands",
}

# Optional decimals; unparseable values are dropped, never zeroed
DECIMAL_FIELDS: dict[str, str] = {
    "sale_price":     "sale_price",
    "price_min":      "price_min",
    "price_max":      "price_max",
    "weight_lbs":     "weight_lbs",
    "length_in":      "length_in",
    "width_in":       "width_in",
    "height_in":      "height_in",
    "package_weight": "package_weight",
    "package_length": "package_length",
    "package_width":  "package_width",
    "package_height": "package_height",
}

INTEGER_FIELDS: dict[str, str] = {
    "stock":            "stock_quantity",
    "low_stock_amount": "low_stock_threshold",
}

BOOLEAN_FIELDS: dict[str, str] = {
    "featured":   "featured",
    "is_bundle":  "is_bundle",
    "is_on_sale": "is_on_sale",
}

DATE_FIELDS: dict[str, str] = {
    "sale_start_date": "sale_start_date",
    "sale_end_date":   "sale_end_date",
}

# Column → allowed lower-cased values
CHOICE_FIELDS: dict[str, frozenset[str]] = {
    "package_weight_unit":    frozenset({"kg", "lbs"}),
    "package_dimension_unit": frozenset({"cm", "in"}),
}

# Columns carrying nested relationships as JSON arrays
JSON_LIST_FIELDS = (
    "product_images",
    "product_variations",
    "product_bundle_items",
    "product_faqs",
    "assembly_manuals",
    "product_additional_info",
)

# Every column the parser keeps; anything else in the header is ignored
FEED_COLUMNS = frozenset(
    set(REQUIRED_FIELDS)
    | set(TEXT_FIELDS) | set(DECIMAL_FIELDS) | set(INTEGER_FIELDS)
    | set(BOOLEAN_FIELDS) | set(DATE_FIELDS) | set(CHOICE_FIELDS)
    | set(JSON_LIST_FIELDS)
    | {"categories", "tags", "meta_data", "region", "product_group_id"}
)

# Category slugs the storefront knows how to render
VALID_CATEGORIES = (
    "flight-sim",
    "sim-racing",
    "cockpits",
    "monitor-stands",
    "accessories",
    "conversion-kits",
    "services",
    "individual-parts",
    "racing-flight-seats",
    "refurbished",
)

# ── Variations ─────────────────────────────────────────────────────────
VARIATION_TYPES = frozenset({"text", "dropdown", "image", "boolean"})

# Labels written by older exports → current presentation type
LEGACY_VARIATION_TYPES: dict[str, str] = {
    "model":  "image",
    "radio":  "boolean",
    "select": "dropdown",
}

BUNDLE_ITEM_TYPES = frozenset({"required", "optional"})
MANUAL_FILE_TYPES = frozenset({"pdf", "doc", "docx", "txt", "zip"})
INFO_CONTENT_TYPES = frozenset({"text", "images", "mixed", "html"})


def canonical_variation_type(raw) -> str:
    """Lower-case a declared variation type and map legacy labels."""
    label = str(raw or "").strip().lower()
    return LEGACY_VARIATION_TYPES.get(label, label)


def option_has_image(option) -> bool:
    """True when a variation option carries a non-blank image_url."""
    if not isinstance(option, dict):
        return False
    url = option.get("image_url")
    return isinstance(url, str) and bool(url.strip())
