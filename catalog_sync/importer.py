"""
catalog_sync.importer - Top-level orchestrator.

Coordinates csv_parser → validator → normalizer → reconciler and
produces a structured ImportReport.
"""

from __future__ import annotations

import logging

from db.engine import get_session
from catalog_sync.csv_parser import FeedParseError, parse_feed
from catalog_sync.normalizer import NormalizationError, RowNormalizer
from catalog_sync.options import ImportOptions
from catalog_sync.reconciler import CatalogReconciler
from catalog_sync.report import Failed, ImportReport, critical
from catalog_sync.validator import RowValidator
from services.catalog_store import SqlCatalogStore

logger = logging.getLogger(__name__)


def run_import(
    feed: str | bytes,
    options: ImportOptions = ImportOptions(),
    *,
    store=None,
) -> ImportReport:
    """
    Import a product feed into the catalog.

    Parameters
    ----------
    feed : raw CSV (bytes or str)
    options : mode / dry_run / validate_only
    store : CatalogStore to write through; a session-backed one is
            opened (and closed) when omitted

    Returns
    -------
    ImportReport; never raises for problems with the feed itself
    """
    report = ImportReport(dry_run=options.dry_run, validate_only=options.validate_only)
    preview = options.dry_run or options.validate_only

    try:
        rows = parse_feed(feed)
    except FeedParseError as exc:
        report.add(critical(0, str(exc)))
        return report
    report.total = len(rows)

    validator = RowValidator()
    valid_rows = []
    for row in rows:
        result = validator.validate(row)
        report.extend(result.diagnostics)
        if result.is_valid:
            valid_rows.append(row)
        else:
            report.record(Failed(row.number, tuple(d for d in result.diagnostics
                                                   if d.is_critical), planned=preview))

    if options.validate_only:
        _log_summary(report)
        return report

    normalizer = RowNormalizer()
    records = []
    for row in valid_rows:
        try:
            records.append(normalizer.normalize(row))
        except Exception as exc:
            fld = exc.field if isinstance(exc, NormalizationError) else None
            diag = critical(row.number, str(exc), field=fld, sku=row.text("sku"))
            report.add(diag)
            report.record(Failed(row.number, (diag,), planned=preview))

    session = None
    try:
        if store is None:
            session = get_session()
            store = SqlCatalogStore(session)
        CatalogReconciler(store, options).reconcile(records, report)
    except Exception as exc:
        logger.exception("Import aborted")
        report.add(critical(0, f"Fatal import error: {exc}"))
    finally:
        if session is not None:
            session.close()

    _log_summary(report)
    return report


def _log_summary(report: ImportReport) -> None:
    logger.info(
        "Import finished: total=%d created=%d updated=%d skipped=%d errors=%d warnings=%d%s",
        report.total, report.created, report.updated, report.skipped,
        len(report.errors), len(report.warnings),
        " (preview)" if report.dry_run or report.validate_only else "",
    )
