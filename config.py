"""
Storefront catalog sync - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.  A ``.env`` file next to this
module (or in the working directory) is loaded first.
"""

from __future__ import annotations
import os
from pathlib import Path

from dotenv import load_dotenv


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")

CATALOG_SEED_PATH = Path(os.environ.get("CATALOG_SEED_PATH", BASE_DIR / "catalog_seed.csv"))

# ── Database ───────────────────────────────────────────────────────────
DB_URL = os.environ.get("CATALOG_DB", f"sqlite:///{BASE_DIR / 'catalog.sqlite'}")

# ── Server ─────────────────────────────────────────────────────────────
HOST   = os.environ.get("CATALOG_HOST", "0.0.0.0")
PORT   = int(os.environ.get("CATALOG_PORT", "5000"))
DEBUG  = os.environ.get("CATALOG_DEBUG", "0") == "1"
SECRET = os.environ.get("CATALOG_SECRET", "catalog-dev-key-change-in-prod")

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL  = os.environ.get("CATALOG_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# ── Import pipeline ────────────────────────────────────────────────────
# Region used when a feed row omits it; part of every natural key.
PRIMARY_REGION = os.environ.get("CATALOG_PRIMARY_REGION", "us").strip().lower()
REGIONS        = frozenset({"us", "eu"}) | {PRIMARY_REGION}

# Separator for the plain-text form of list columns (tags, categories)
LIST_DELIMITER = os.environ.get("CATALOG_LIST_DELIMITER", "|")

# Upload ceiling for the HTTP import endpoints
MAX_FEED_BYTES = int(float(os.environ.get("CATALOG_MAX_FEED_MB", "25")) * 1024 * 1024)
