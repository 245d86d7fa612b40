#!/usr/bin/env python3
"""
Storefront catalog sync - Web application
=========================================

Single-command run:  python main.py
Feed commands:       flask --app main import-feed products.csv --mode update
                     flask --app main export-feed out.csv --region eu

See config.py for all environment-variable tunables.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from flask import Flask

import config
from db import init_db, get_session, Product
from api import api_bp
from catalog_sync import ImportMode, ImportOptions, run_import
from services.export_service import export_products

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=level or config.LOG_LEVEL, format=config.LOG_FORMAT)


def create_app(db_url: str | None = None) -> Flask:
    """Flask application factory."""

    app = Flask(__name__)
    app.secret_key = config.SECRET
    app.config["MAX_CONTENT_LENGTH"] = config.MAX_FEED_BYTES

    # ── Initialise database ─────────────────────────────────────────
    init_db(db_url or config.DB_URL)

    # ── Register blueprints ─────────────────────────────────────────
    app.register_blueprint(api_bp)

    # ── CLI commands ────────────────────────────────────────────────
    app.cli.add_command(import_feed_command)
    app.cli.add_command(export_feed_command)

    return app


@click.command("import-feed")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--mode", type=click.Choice([m.value for m in ImportMode]),
              default=ImportMode.CREATE.value, show_default=True)
@click.option("--dry-run", is_flag=True, help="Plan the import without writing.")
@click.option("--validate-only", is_flag=True, help="Only run row validation.")
def import_feed_command(path: Path, mode: str, dry_run: bool, validate_only: bool):
    """Import a product feed CSV into the catalog."""
    configure_logging()
    options = ImportOptions(mode=ImportMode.parse(mode), dry_run=dry_run,
                            validate_only=validate_only)
    report = run_import(path.read_bytes(), options)

    click.echo(f"Rows: {report.total}  created: {report.created}  "
               f"updated: {report.updated}  skipped: {report.skipped}")
    if report.planned:
        click.echo("Planned: " + ", ".join(f"{k}={v}" for k, v in sorted(report.planned.items())))
    for diag in report.diagnostics:
        label = "ERROR" if diag.is_critical else "WARN "
        sku = f" [{diag.sku}]" if diag.sku else ""
        click.echo(f"  {label} row {diag.row}{sku}: {diag.message}")
    if not report.success:
        raise click.exceptions.Exit(1)


@click.command("export-feed")
@click.argument("path", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.option("--region", default=None)
@click.option("--status", default=None)
@click.option("--category", default=None)
def export_feed_command(path: Path | None, region, status, category):
    """Export the catalog as a feed CSV (stdout when PATH is omitted)."""
    session = get_session()
    try:
        body = export_products(session, status=status, category=category, region=region)
    finally:
        session.close()

    if path is None:
        click.echo(body, nl=False)
    else:
        path.write_text(body, encoding="utf-8")
        click.echo(f"Wrote {path}")


def _seed_if_empty():
    """Auto-import the seed feed when the catalog is empty."""
    session = get_session()
    count = session.query(Product).count()
    session.close()

    if count > 0:
        print(f"\n  Catalog has {count} products.")
        return

    if not config.CATALOG_SEED_PATH.exists():
        print(f"\n  No seed feed at {config.CATALOG_SEED_PATH} - starting empty.")
        return

    print(f"\n  Catalog empty → importing {config.CATALOG_SEED_PATH.name} …")
    report = run_import(config.CATALOG_SEED_PATH.read_bytes())

    print(f"  Done: {report.created} created, "
          f"{report.skipped} skipped / {report.total} rows")
    if report.errors:
        print("  First errors (max 10):")
        for err in report.errors[:10]:
            print(f"    Row {err.row}: {err.message}")


def main():
    configure_logging()

    print("=" * 56)
    print("  Storefront catalog sync")
    print("=" * 56)

    app = create_app()
    print(f"  Database: {config.DB_URL}")
    _seed_if_empty()

    print(f"\n  http://{config.HOST}:{config.PORT}/api/v1/products/export")
    print("=" * 56)

    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)


if __name__ == "__main__":
    main()
