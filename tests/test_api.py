import csv
import io

from tests.factories import ProductFactory
from tests.feeds import make_feed, product_row


def test_import_raw_body(client):
    """Test that a raw CSV body is imported."""
    feed = make_feed(product_row("A"), product_row("B"))
    resp = client.post("/api/v1/products/import", data=feed, content_type="text/csv")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["created"] == 2
    assert body["errors"] == []


def test_import_multipart_upload(client):
    """Test that a multipart feed_file upload is imported."""
    feed = make_feed(product_row("A")).encode()
    resp = client.post(
        "/api/v1/products/import?mode=skip_duplicates",
        data={"feed_file": (io.BytesIO(feed), "products.csv")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 200
    assert resp.get_json()["created"] == 1


def test_import_multipart_without_file(client):
    """Test that a multipart request missing feed_file is rejected."""
    resp = client.post("/api/v1/products/import", data={"other": "x"},
                       content_type="multipart/form-data")
    assert resp.status_code == 400
    assert "feed_file" in resp.get_json()["error"]


def test_import_empty_body(client):
    """Test that an empty body is a 400."""
    resp = client.post("/api/v1/products/import", data=b"", content_type="text/csv")
    assert resp.status_code == 400


def test_import_invalid_mode(client):
    """Test that an unknown mode is rejected before importing."""
    feed = make_feed(product_row("A"))
    resp = client.post("/api/v1/products/import?mode=merge", data=feed, content_type="text/csv")

    assert resp.status_code == 400
    assert "Invalid mode" in resp.get_json()["error"]


def test_import_dry_run(client):
    """Test that dry_run=1 plans without creating anything."""
    feed = make_feed(product_row("A"))
    resp = client.post("/api/v1/products/import?dry_run=1", data=feed, content_type="text/csv")
    body = resp.get_json()

    assert body["dry_run"] is True
    assert body["created"] == 0
    assert body["planned"]["created"] == 1

    export = client.get("/api/v1/products/export")
    assert list(csv.DictReader(io.StringIO(export.get_data(as_text=True)))) == []


def test_import_reports_row_errors(client):
    """Test that row diagnostics come back in the JSON body."""
    feed = make_feed(product_row("A"), product_row("B", regular_price="-5"))
    body = client.post("/api/v1/products/import", data=feed, content_type="text/csv").get_json()

    assert body["success"] is False
    assert body["created"] == 1
    assert body["skipped"] == 1
    assert body["errors"][0]["row"] == 2
    assert body["errors"][0]["field"] == "regular_price"


def test_validate_endpoint(client):
    """Test that the validate endpoint returns diagnostics without writing."""
    feed = make_feed(product_row("A", categories="Zeppelins"), product_row("", name="x"))
    body = client.post("/api/v1/products/import/validate", data=feed,
                       content_type="text/csv").get_json()

    assert body["validate_only"] is True
    assert body["success"] is False
    assert len(body["errors"]) == 1
    assert len(body["warnings"]) == 1
    assert body["created"] == 0


def test_export_endpoint_filters(client, db_session):
    """Test that export honours region filters and returns CSV."""
    ProductFactory(sku="US-1", region="us")
    ProductFactory(sku="EU-1", region="eu")

    resp = client.get("/api/v1/products/export?region=eu")
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "attachment" in resp.headers["Content-Disposition"]
    rows = list(csv.DictReader(io.StringIO(resp.get_data(as_text=True))))
    assert [r["sku"] for r in rows] == ["EU-1"]


def test_unknown_api_route_is_json(client):
    """Test that API 404s use the JSON error body."""
    resp = client.get("/api/v1/products/nope")
    assert resp.status_code == 404


def test_import_multipart_form_options(client, db_session):
    """Test that mode and dry_run are honoured as multipart form fields."""
    ProductFactory(sku="A", name="Old name")
    feed = make_feed(product_row("A", name="New name")).encode()

    dry = client.post(
        "/api/v1/products/import",
        data={"feed_file": (io.BytesIO(feed), "products.csv"), "mode": "update", "dry_run": "true"},
        content_type="multipart/form-data",
    ).get_json()
    assert dry["dry_run"] is True
    assert dry["planned"]["updated"] == 1

    real = client.post(
        "/api/v1/products/import",
        data={"feed_file": (io.BytesIO(feed), "products.csv"), "mode": "update"},
        content_type="multipart/form-data",
    ).get_json()
    assert real["updated"] == 1
    assert real["created"] == 0


def test_import_multipart_invalid_mode(client):
    """Test that an unknown mode form field is rejected."""
    feed = make_feed(product_row("A")).encode()
    resp = client.post(
        "/api/v1/products/import",
        data={"feed_file": (io.BytesIO(feed), "products.csv"), "mode": "merge"},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 400
