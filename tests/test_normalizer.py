from datetime import datetime, timezone
from decimal import Decimal

import pytest

from catalog_sync.csv_parser import FeedRow
from catalog_sync.normalizer import (
    NormalizationError,
    ParsedAsDelimited,
    ParsedAsJson,
    RowNormalizer,
    Unparseable,
    parse_list_field,
    to_bool,
    to_datetime,
)


@pytest.fixture
def normalizer():
    return RowNormalizer(primary_region="us", delimiter="|")


def _row(**extra):
    values = {"sku": "SKU-1", "name": "Rig", "regular_price": "199.50"}
    values.update(extra)
    return FeedRow(number=7, values=values)


# ── parse_list_field ───────────────────────────────────────────────────

def test_list_field_json_array():
    """Test that a JSON array is reported as JSON."""
    assert parse_list_field('["a", " b ", ""]') == ParsedAsJson(("a", "b"))


def test_list_field_delimited():
    """Test that plain text falls back to delimiter splitting."""
    assert parse_list_field("a | b|| c") == ParsedAsDelimited(("a", "b", "c"))


def test_list_field_custom_delimiter():
    """Test that the configured delimiter is honoured."""
    assert parse_list_field("a;b", delimiter=";") == ParsedAsDelimited(("a", "b"))


@pytest.mark.parametrize("raw", ["", "   ", None, '{"a": 1}', "null"])
def test_list_field_unparseable(raw):
    """Test that blanks, objects and null are not guessed into lists."""
    assert isinstance(parse_list_field(raw), Unparseable)


# ── Base payload ───────────────────────────────────────────────────────

def test_required_fields_are_typed(normalizer):
    """Test that sku, name and price land typed in the payload."""
    record = normalizer.normalize(_row())
    assert record.sku == "SKU-1"
    assert record.product["name"] == "Rig"
    assert record.product["regular_price"] == Decimal("199.50")
    assert record.row_number == 7


def test_region_defaults_to_primary(normalizer):
    """Test that a row without region is keyed under the primary region."""
    record = normalizer.normalize(_row())
    assert record.region == "us"
    assert record.key == ("SKU-1", "us")


def test_region_is_lowercased(normalizer):
    """Test that region matching ignores case."""
    assert normalizer.normalize(_row(region="EU")).region == "eu"


def test_supplied_region_is_kept(normalizer):
    """Test that an unfamiliar region stays part of the natural key."""
    record = normalizer.normalize(_row(region="CA"))
    assert record.region == "ca"
    assert record.key == ("SKU-1", "ca")


def test_blank_region_defaults(normalizer):
    """Test that an explicitly blank region falls back to the primary one."""
    assert normalizer.normalize(_row(region="  ")).region == "us"


@pytest.mark.parametrize("raw", ["", "null", "NULL"])
def test_group_id_blank_or_null_is_none(normalizer, raw):
    """Test that an empty or "null" group id means no group."""
    record = normalizer.normalize(_row(product_group_id=raw))
    assert record.product["product_group_id"] is None


def test_group_id_kept(normalizer):
    """Test that a real group id passes through."""
    record = normalizer.normalize(_row(product_group_id="grp-9"))
    assert record.product["product_group_id"] == "grp-9"


def test_category_first_value_as_list(normalizer):
    """Test that only the first category is kept, as a one-element list."""
    record = normalizer.normalize(_row(categories='["cockpits", "accessories"]'))
    assert record.product["categories"] == ["cockpits"]


def test_tags_either_format(normalizer):
    """Test that tags accept JSON arrays and delimited text."""
    assert normalizer.normalize(_row(tags='["a","b"]')).product["tags"] == ["a", "b"]
    assert normalizer.normalize(_row(tags="a|b")).product["tags"] == ["a", "b"]


def test_bad_optional_numbers_are_dropped(normalizer):
    """Test that unparseable optional numbers are omitted, not zeroed."""
    record = normalizer.normalize(_row(sale_price="cheap", stock="lots", weight_lbs="2.5"))
    assert "sale_price" not in record.product
    assert "stock_quantity" not in record.product
    assert record.product["weight_lbs"] == Decimal("2.5")


def test_booleans_only_true_for_literal_true(normalizer):
    """Test that booleans are true only for the literal "true"."""
    record = normalizer.normalize(_row(featured="TRUE", is_bundle="yes", is_on_sale="1"))
    assert record.product["featured"] is True
    assert record.product["is_bundle"] is False
    assert record.product["is_on_sale"] is False


def test_choice_fields_restricted(normalizer):
    """Test that unit columns only accept known values."""
    record = normalizer.normalize(_row(package_weight_unit="KG", package_dimension_unit="ft"))
    assert record.product["package_weight_unit"] == "kg"
    assert "package_dimension_unit" not in record.product


def test_sale_dates_parsed(normalizer):
    """Test that ISO dates (with Z) become aware datetimes; junk is dropped."""
    record = normalizer.normalize(_row(sale_start_date="2024-05-01T10:00:00Z",
                                       sale_end_date="next week"))
    assert record.product["sale_start_date"] == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert "sale_end_date" not in record.product


def test_meta_data_object_kept(normalizer):
    """Test that meta_data objects are stored as dicts."""
    record = normalizer.normalize(_row(meta_data='{"color": "red"}'))
    assert record.product["meta_data"] == {"color": "red"}


# ── Nested collections ─────────────────────────────────────────────────

def test_absent_collections_are_none(normalizer):
    """Test that omitted columns are distinguishable from empty arrays."""
    record = normalizer.normalize(_row(product_images="[]"))
    assert record.images == ()
    assert record.variations is None


def test_images_get_positional_sort_order(normalizer):
    """Test that images default their sort order to array position."""
    record = normalizer.normalize(_row(product_images=(
        '[{"image_url": "a.jpg", "is_primary": true}, {"image_url": "b.jpg"}]')))
    assert [i.sort_order for i in record.images] == [0, 1]
    assert record.images[0].is_primary is True
    assert record.images[1].is_primary is False


def test_dropdown_with_images_becomes_image(normalizer):
    """Test that a dropdown with option images is stored as an image variation."""
    record = normalizer.normalize(_row(product_variations=(
        '[{"name": "Color", "variation_type": "dropdown", "options": ['
        '{"option_name": "Red", "image_url": "red.png"}]}]')))
    assert record.variations[0].variation_type == "image"


@pytest.mark.parametrize("legacy, current", [
    ("model", "image"), ("radio", "boolean"), ("select", "dropdown"), ("Text", "text"),
])
def test_legacy_variation_types(normalizer, legacy, current):
    """Test that legacy variation labels map to current types."""
    record = normalizer.normalize(_row(product_variations=(
        f'[{{"name": "V", "variation_type": "{legacy}", "options": []}}]')))
    assert record.variations[0].variation_type == current


def test_option_defaults(normalizer):
    """Test that bad option numbers fall back to documented defaults."""
    record = normalizer.normalize(_row(product_variations=(
        '[{"name": "Size", "variation_type": "dropdown", "sort_order": "x", "options": ['
        '{"option_name": "S", "price_adjustment": "free", "stock_quantity": "?"},'
        '{"option_name": "M", "option_value": "medium", "price_adjustment": "5.5"}]}]')))
    variation = record.variations[0]
    assert variation.sort_order == 0
    assert variation.is_required is True
    small, medium = variation.options
    assert small.price_adjustment == Decimal("0")
    assert small.stock_quantity is None
    assert small.option_value == "S"
    assert small.sort_order == 0
    assert medium.price_adjustment == Decimal("5.5")
    assert medium.option_value == "medium"
    assert medium.sort_order == 1


@pytest.mark.parametrize("quantity, expected", [(3, 3), ("2", 2), (0, 1), (-4, 1), ("x", 1)])
def test_bundle_quantity_positive(normalizer, quantity, expected):
    """Test that bundle quantity is a positive integer defaulting to 1."""
    record = normalizer.normalize(_row(product_bundle_items=(
        f'[{{"item_sku": "PART-1", "quantity": "{quantity}"}}]'
        if isinstance(quantity, str) else
        f'[{{"item_sku": "PART-1", "quantity": {quantity}}}]')))
    item = record.bundle_items[0]
    assert item.quantity == expected
    assert item.item_type == "required"
    assert item.price_adjustment == Decimal("0")


def test_faq_manual_and_info_entries(normalizer):
    """Test that simple collections keep order and defaults."""
    record = normalizer.normalize(_row(
        product_faqs='[{"question": "Q1", "answer": "A1"}, {"question": "Q2", "answer": "A2"}]',
        assembly_manuals='[{"name": "Guide", "file_url": "g.pdf", "file_type": "PDF"}]',
        product_additional_info='[{"title": "Specs", "content_type": "table", "content_data": {"k": 1}}]',
    ))
    assert [f.sort_order for f in record.faqs] == [0, 1]
    assert record.manuals[0].file_type == "pdf"
    info = record.additional_info[0]
    assert info.content_type == "text"
    assert dict(info.content_data) == {"k": 1}


def test_unsupported_variation_type_raises(normalizer):
    """Test that an unknown variation type is a normalization failure."""
    with pytest.raises(NormalizationError) as excinfo:
        normalizer.normalize(_row(product_variations=(
            '[{"name": "V", "variation_type": "hologram"}]')))
    assert excinfo.value.field == "product_variations"


def test_non_object_entry_raises(normalizer):
    """Test that array entries must be objects."""
    with pytest.raises(NormalizationError, match="must be a JSON object"):
        normalizer.normalize(_row(product_faqs='["just text"]'))


def test_missing_nested_key_raises(normalizer):
    """Test that a nested entry without its required key fails the row."""
    with pytest.raises(NormalizationError, match="missing item_sku"):
        normalizer.normalize(_row(product_bundle_items='[{"quantity": 2}]'))


# ── Scalar helpers ─────────────────────────────────────────────────────

@pytest.mark.parametrize("value, expected", [
    (True, True), (False, False), ("true", True), (" True ", True),
    ("false", False), ("1", False), (None, False), (1, False),
])
def test_to_bool(value, expected):
    assert to_bool(value) is expected


def test_to_datetime_formats():
    assert to_datetime("2024-01-31") == datetime(2024, 1, 31, tzinfo=timezone.utc)
    assert to_datetime("01/31/2024") == datetime(2024, 1, 31, tzinfo=timezone.utc)
    assert to_datetime("") is None
