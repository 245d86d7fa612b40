"""
catalog_sync.reconciler - Two-pass write of normalized rows to the catalog.

Pass 1 creates or updates base products in feed order and fills the
IdentityMap.  Pass 2 attaches relationships once every identity in the
batch is known, so a bundle can point at a product further down the feed.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from catalog_sync.normalizer import NormalizedRecord
from catalog_sync.options import ImportMode, ImportOptions
from catalog_sync.report import (
    Created,
    Failed,
    ImportReport,
    RowOutcome,
    Skipped,
    Updated,
    critical,
)

logger = logging.getLogger(__name__)


class IdentityMap:
    """(sku, region) → product identity, valid for one reconcile run."""

    def __init__(self) -> None:
        self._ids: dict[tuple[str, str], int] = {}

    def register(self, sku: str, region: str, identity: int) -> None:
        self._ids[(sku, region)] = identity

    def resolve(self, sku: str, region: str) -> Optional[int]:
        return self._ids.get((sku, region))

    def __contains__(self, key) -> bool:
        return key in self._ids

    def __len__(self) -> int:
        return len(self._ids)


class CatalogReconciler:

    def __init__(self, store, options: ImportOptions | None = None):
        self._store = store
        self._options = options or ImportOptions()
        self.identities = IdentityMap()
        # keys a dry run has already planned; never holds identities
        self._planned_keys: set[tuple[str, str]] = set()

    def reconcile(self, records: Iterable[NormalizedRecord],
                  report: ImportReport) -> list[RowOutcome]:
        records = list(records)
        outcomes = []
        for record in records:
            outcome = self._base(record, report)
            report.record(outcome)
            outcomes.append(outcome)

        if self._options.dry_run:
            return outcomes

        for record, outcome in zip(records, outcomes):
            if isinstance(outcome, (Created, Updated)):
                self._relationships(record, outcome, report)
        return outcomes

    # ── Pass 1: base products ──────────────────────────────────────────

    def _base(self, record: NormalizedRecord, report: ImportReport) -> RowOutcome:
        row, key = record.row_number, record.key
        mode = self._options.mode
        try:
            if self._options.dry_run:
                return self._plan(record)

            with self._store.checkpoint():
                existing = self._store.find_by_natural_key(*key)
                if existing is None:
                    outcome = Created(row, key, self._store.create(record.product))
                elif mode is ImportMode.UPDATE:
                    self._store.update(existing, record.product)
                    outcome = Updated(row, key, existing)
                else:
                    outcome = Skipped(row, key, existing)
        except Exception as exc:
            logger.warning("Row %d (%s/%s) not saved: %s", row, *key, exc)
            diag = critical(row, f"Failed to save product: {exc}", sku=record.sku)
            report.add(diag)
            return Failed(row, (diag,), planned=self._options.dry_run)

        self.identities.register(*key, outcome.identity)
        return outcome

    def _plan(self, record: NormalizedRecord) -> RowOutcome:
        row, key = record.row_number, record.key
        exists = key in self._planned_keys or self._store.find_by_natural_key(*key) is not None
        self._planned_keys.add(key)
        if not exists:
            return Created(row, key, planned=True)
        if self._options.mode is ImportMode.UPDATE:
            return Updated(row, key, planned=True)
        return Skipped(row, key, planned=True)

    # ── Pass 2: relationships ──────────────────────────────────────────

    def _relationships(self, record: NormalizedRecord, outcome: RowOutcome,
                       report: ImportReport) -> None:
        identity = outcome.identity
        replace = isinstance(outcome, Updated)
        steps = (
            ("images", "images", record.images, self._write_images),
            ("variations", "variations", record.variations, self._write_variations),
            ("bundle_items", "bundle items", record.bundle_items, self._write_bundle_items),
            ("faqs", "FAQs", record.faqs, self._write_faqs),
            ("manuals", "manuals", record.manuals, self._write_manuals),
            ("additional_info", "additional info", record.additional_info,
             self._write_extra_info),
        )
        for kind, label, specs, write in steps:
            if specs is None:
                continue
            try:
                with self._store.checkpoint():
                    if replace:
                        self._store.clear_relationships(identity, kind)
                    write(record, identity, specs, report)
            except Exception as exc:
                logger.warning("Row %d (%s/%s) %s not saved: %s",
                               record.row_number, *record.key, label, exc)
                report.add(critical(record.row_number, f"Failed to save {label}: {exc}",
                                    sku=record.sku))

    def _write_images(self, record, identity, specs, report) -> None:
        for image in specs:
            self._store.add_image(identity, image)

    def _write_variations(self, record, identity, specs, report) -> None:
        for variation in specs:
            self._store.add_variation(identity, variation)

    def _write_bundle_items(self, record, identity, specs, report) -> None:
        for item in specs:
            item_id = self._resolve(item.item_sku, record.region)
            if item_id is None:
                report.add(critical(
                    record.row_number,
                    f'Bundle item SKU "{item.item_sku}" not found in region "{record.region}"',
                    field="product_bundle_items",
                    sku=record.sku,
                ))
                continue
            self._store.add_bundle_item(identity, item_id, item)

    def _write_faqs(self, record, identity, specs, report) -> None:
        for faq in specs:
            self._store.add_faq(identity, faq)

    def _write_manuals(self, record, identity, specs, report) -> None:
        for manual in specs:
            self._store.add_manual(identity, manual)

    def _write_extra_info(self, record, identity, specs, report) -> None:
        for info in specs:
            self._store.add_extra_info(identity, info)

    def _resolve(self, sku: str, region: str) -> Optional[int]:
        """Identity map first, then the persisted catalog."""
        identity = self.identities.resolve(sku, region)
        if identity is None:
            identity = self._store.find_by_natural_key(sku, region)
            if identity is not None:
                self.identities.register(sku, region, identity)
        return identity
