"""
services.catalog_store - Persistence collaborator for the import pipeline.

The reconciler only talks to a CatalogStore, never to a Session, so the
write path can be exercised against any backend.  SqlCatalogStore is the
SQLAlchemy implementation used by the app.

Session management is the caller's responsibility (open before,
close after).  Each checkpoint() block commits on success, so rows that
finished before a failure stay persisted.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from db.models import (
    AssemblyManual,
    Product,
    ProductAdditionalInfo,
    ProductBundleItem,
    ProductFAQ,
    ProductImage,
    ProductVariation,
    VariationOption,
)

# Relationship collection a feed row can replace → (model, owning FK column)
RELATIONSHIP_KINDS = {
    "images":          (ProductImage, ProductImage.product_id),
    "variations":      (ProductVariation, ProductVariation.product_id),
    "bundle_items":    (ProductBundleItem, ProductBundleItem.bundle_product_id),
    "faqs":            (ProductFAQ, ProductFAQ.product_id),
    "manuals":         (AssemblyManual, AssemblyManual.product_id),
    "additional_info": (ProductAdditionalInfo, ProductAdditionalInfo.product_id),
}

# Applied on create only, so an update never resets them
CREATE_DEFAULTS: dict[str, Any] = {
    "type": "simple",
    "status": "active",
}


class CatalogStore(ABC):
    """
    Narrow write interface the reconciler needs.  Identities are opaque.
    """

    @abstractmethod
    def find_by_natural_key(self, sku: str, region: str) -> Optional[int]:
        """Return the identity stored under (sku, region), if any."""

    @abstractmethod
    def create(self, payload: Mapping[str, Any]) -> int:
        """Insert a base product and return its identity."""

    @abstractmethod
    def update(self, product_id: int, payload: Mapping[str, Any]) -> None:
        """Overwrite every non-None attribute in ``payload``."""

    @abstractmethod
    def clear_relationships(self, product_id: int, kind: str) -> None:
        """Remove one relationship collection (see RELATIONSHIP_KINDS)."""

    @abstractmethod
    def add_image(self, product_id: int, image) -> int: ...

    @abstractmethod
    def add_variation(self, product_id: int, variation) -> int: ...

    @abstractmethod
    def add_bundle_item(self, bundle_id: int, item_id: int, item) -> int: ...

    @abstractmethod
    def add_faq(self, product_id: int, faq) -> int: ...

    @abstractmethod
    def add_manual(self, product_id: int, manual) -> int: ...

    @abstractmethod
    def add_extra_info(self, product_id: int, info) -> int: ...

    @abstractmethod
    def checkpoint(self):
        """
        Context manager around one unit of work: rolled back alone if it
        raises, made durable if it completes.
        """


class SqlCatalogStore(CatalogStore):

    def __init__(self, session: Session) -> None:
        self._session = session

    # ── Base products ──────────────────────────────────────────────────

    def find_by_natural_key(self, sku: str, region: str) -> Optional[int]:
        stmt = select(Product.id).where(Product.sku == sku, Product.region == region)
        return self._session.scalars(stmt).first()

    def create(self, payload: Mapping[str, Any]) -> int:
        data = {**CREATE_DEFAULTS, **{k: v for k, v in payload.items() if v is not None}}
        product = Product(**data)
        self._session.add(product)
        self._session.flush()
        return product.id

    def update(self, product_id: int, payload: Mapping[str, Any]) -> None:
        product = self._product(product_id)
        for attr, value in payload.items():
            if value is not None:
                setattr(product, attr, value)
        self._session.flush()

    def clear_relationships(self, product_id: int, kind: str) -> None:
        if kind not in RELATIONSHIP_KINDS:
            raise ValueError(f"Unknown relationship kind {kind!r}")
        model, owner = RELATIONSHIP_KINDS[kind]
        self._session.flush()
        if model is ProductVariation:
            variation_ids = select(ProductVariation.id).where(owner == product_id)
            self._session.execute(
                delete(VariationOption).where(VariationOption.variation_id.in_(variation_ids)))
        self._session.execute(delete(model).where(owner == product_id))
        # rows added by FK never joined the loaded collection; reload it on next access
        product = self._session.get(Product, product_id)
        if product is not None:
            self._session.expire(product, [kind])

    # ── Relationships ──────────────────────────────────────────────────

    def add_image(self, product_id: int, image) -> int:
        return self._add(ProductImage(
            product_id=product_id,
            image_url=image.image_url,
            alt_text=image.alt_text,
            is_primary=image.is_primary,
            sort_order=image.sort_order,
        ))

    def add_variation(self, product_id: int, variation) -> int:
        row = ProductVariation(
            product_id=product_id,
            variation_type=variation.variation_type,
            name=variation.name,
            description=variation.description,
            is_required=variation.is_required,
            tracks_stock=variation.tracks_stock,
            sort_order=variation.sort_order,
        )
        for opt in variation.options:
            row.options.append(VariationOption(
                option_name=opt.option_name,
                option_value=opt.option_value,
                price_adjustment=opt.price_adjustment,
                image_url=opt.image_url,
                is_default=opt.is_default,
                is_available=opt.is_available,
                sort_order=opt.sort_order,
                stock_quantity=opt.stock_quantity,
                low_stock_threshold=opt.low_stock_threshold,
                reserved_quantity=opt.reserved_quantity,
            ))
        return self._add(row)

    def add_bundle_item(self, bundle_id: int, item_id: int, item) -> int:
        return self._add(ProductBundleItem(
            bundle_product_id=bundle_id,
            item_product_id=item_id,
            quantity=item.quantity,
            item_type=item.item_type,
            is_configurable=item.is_configurable,
            price_adjustment=item.price_adjustment,
            display_name=item.display_name,
            description=item.description,
            sort_order=item.sort_order,
        ))

    def add_faq(self, product_id: int, faq) -> int:
        return self._add(ProductFAQ(
            product_id=product_id,
            question=faq.question,
            answer=faq.answer,
            sort_order=faq.sort_order,
        ))

    def add_manual(self, product_id: int, manual) -> int:
        return self._add(AssemblyManual(
            product_id=product_id,
            name=manual.name,
            description=manual.description,
            file_url=manual.file_url,
            file_type=manual.file_type,
            file_size=manual.file_size,
            image_url=manual.image_url,
            sort_order=manual.sort_order,
        ))

    def add_extra_info(self, product_id: int, info) -> int:
        return self._add(ProductAdditionalInfo(
            product_id=product_id,
            title=info.title,
            description=info.description,
            content_type=info.content_type,
            content_data=dict(info.content_data),
            sort_order=info.sort_order,
        ))

    # ── Units of work ──────────────────────────────────────────────────

    @contextmanager
    def checkpoint(self) -> Iterator[None]:
        with self._session.begin_nested():
            yield
        self._session.commit()

    # ── Private helpers ────────────────────────────────────────────────

    def _product(self, product_id: int) -> Product:
        product = self._session.get(Product, product_id)
        if product is None:
            raise LookupError(f"Product {product_id} not found")
        return product

    def _add(self, row) -> int:
        self._session.add(row)
        self._session.flush()
        return row.id
