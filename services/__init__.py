"""
services - Persistence and export layer sitting between the pipeline/API and DB.
"""

from services.catalog_store import CatalogStore, SqlCatalogStore   # noqa: F401
from services.export_service import export_products                # noqa: F401
