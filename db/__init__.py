"""
db - Database layer.

Public API:
    init_db()       → create engine + tables
    get_session()   → new Session
    Product, …      → ORM models
"""

from db.engine import init_db, get_session          # noqa: F401
from db.models import (                             # noqa: F401
    Base,
    Product,
    ProductImage,
    ProductVariation,
    VariationOption,
    ProductBundleItem,
    ProductFAQ,
    AssemblyManual,
    ProductAdditionalInfo,
)
