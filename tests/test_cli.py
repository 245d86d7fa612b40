import csv
import io

from main import export_feed_command, import_feed_command
from tests.factories import ProductFactory
from tests.feeds import make_feed, product_row


def test_import_feed_command(app, tmp_path):
    """Test that the CLI imports a feed file and prints totals."""
    path = tmp_path / "feed.csv"
    path.write_text(make_feed(product_row("A"), product_row("B")), encoding="utf-8")

    result = app.test_cli_runner().invoke(import_feed_command, [str(path)])

    assert result.exit_code == 0
    assert "created: 2" in result.output


def test_import_feed_command_fails_on_errors(app, tmp_path):
    """Test that critical diagnostics give a non-zero exit code."""
    path = tmp_path / "feed.csv"
    path.write_text(make_feed(product_row("A", regular_price="?")), encoding="utf-8")

    result = app.test_cli_runner().invoke(import_feed_command, [str(path), "--dry-run"])

    assert result.exit_code == 1
    assert "ERROR row 1 [A]" in result.output


def test_import_feed_command_rejects_bad_mode(app, tmp_path):
    """Test that click validates the mode choice."""
    path = tmp_path / "feed.csv"
    path.write_text(make_feed(product_row("A")), encoding="utf-8")

    result = app.test_cli_runner().invoke(import_feed_command, [str(path), "--mode", "merge"])
    assert result.exit_code != 0


def test_export_feed_command_stdout(app, db_session):
    """Test that export-feed writes CSV to stdout without a path."""
    ProductFactory(sku="EU-1", region="eu")
    ProductFactory(sku="US-1", region="us")

    result = app.test_cli_runner().invoke(export_feed_command, ["--region", "us"])

    assert result.exit_code == 0
    rows = list(csv.DictReader(io.StringIO(result.output)))
    assert [r["sku"] for r in rows] == ["US-1"]


def test_export_feed_command_to_file(app, db_session, tmp_path):
    """Test that export-feed writes to the given path."""
    ProductFactory(sku="A")
    out = tmp_path / "out.csv"

    result = app.test_cli_runner().invoke(export_feed_command, [str(out)])

    assert result.exit_code == 0
    assert out.read_text(encoding="utf-8").startswith("sku,name,regular_price")
