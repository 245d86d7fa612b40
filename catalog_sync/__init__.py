"""
catalog_sync - Bulk product feed import pipeline.

Public API:
    run_import(feed, options=ImportOptions()) → ImportReport
"""

from catalog_sync.importer import run_import                    # noqa: F401
from catalog_sync.options import ImportMode, ImportOptions      # noqa: F401
from catalog_sync.report import Diagnostic, ImportReport, Severity  # noqa: F401
