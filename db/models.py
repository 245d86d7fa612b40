"""
db.models - SQLAlchemy ORM declarations.

Tables
------
products                 - one row per (sku, region) natural key.  The same
                           SKU may exist once per region.
product_images           - ordered gallery, optionally one primary image.
product_variations       - configurable option groups (dropdown, image …).
variation_options        - ordered choices within a variation, with
                           optional stock tracking.
product_bundle_items     - bundle composition; both ends are products.
product_faqs             - ordered Q&A blocks.
assembly_manuals         - downloadable manuals.
product_additional_info  - free-form extra-info blocks (JSON payload).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric,
    String, Text, UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Product(Base):
    __tablename__ = "products"

    # ── Identity ───────────────────────────────────────────────────────
    id     = Column(Integer, primary_key=True, autoincrement=True)
    sku    = Column(String(100), nullable=False, index=True)
    region = Column(String(8), nullable=False, default="us")
    product_group_id = Column(String(64), nullable=True, index=True)

    # ── Descriptive ────────────────────────────────────────────────────
    name              = Column(String(300), nullable=False)
    slug              = Column(String(300), nullable=True)
    type              = Column(String(40), nullable=False, default="simple")
    status            = Column(String(40), nullable=False, default="active")
    description       = Column(Text, nullable=True)
    short_description = Column(Text, nullable=True)
    featured          = Column(Boolean, nullable=False, default=False)
    is_bundle         = Column(Boolean, nullable=False, default=False)
    brands            = Column(String(300), nullable=True)
    categories        = Column(JSON, nullable=True)           # one-element list
    tags              = Column(JSON, nullable=True)
    meta_data         = Column(JSON, nullable=True)

    # ── Pricing ────────────────────────────────────────────────────────
    regular_price   = Column(Numeric(12, 2), nullable=False)
    sale_price      = Column(Numeric(12, 2), nullable=True)
    is_on_sale      = Column(Boolean, nullable=False, default=False)
    sale_start_date = Column(DateTime(timezone=True), nullable=True)
    sale_end_date   = Column(DateTime(timezone=True), nullable=True)
    sale_label      = Column(String(100), nullable=True)
    price_min       = Column(Numeric(12, 2), nullable=True)
    price_max       = Column(Numeric(12, 2), nullable=True)

    # ── Stock ──────────────────────────────────────────────────────────
    stock_quantity      = Column(Integer, nullable=True)
    in_stock            = Column(String(8), nullable=True)
    low_stock_threshold = Column(Integer, nullable=True)

    # ── Shipping ───────────────────────────────────────────────────────
    weight_lbs             = Column(Numeric(10, 3), nullable=True)
    length_in              = Column(Numeric(10, 3), nullable=True)
    width_in               = Column(Numeric(10, 3), nullable=True)
    height_in              = Column(Numeric(10, 3), nullable=True)
    package_weight         = Column(Numeric(10, 3), nullable=True)
    package_weight_unit    = Column(String(4), nullable=True)
    package_length         = Column(Numeric(10, 3), nullable=True)
    package_width          = Column(Numeric(10, 3), nullable=True)
    package_height         = Column(Numeric(10, 3), nullable=True)
    package_dimension_unit = Column(String(4), nullable=True)
    tariff_code            = Column(String(40), nullable=True)
    tax_class              = Column(String(60), nullable=True)
    shipping_class         = Column(String(60), nullable=True)

    # ── Storefront passthrough (kept verbatim from feeds) ──────────────
    seo_title              = Column(String(300), nullable=True)
    seo_description        = Column(Text, nullable=True)
    gtin_upc_ean_isbn      = Column(String(40), nullable=True)
    published              = Column(String(20), nullable=True)
    visibility_in_catalog  = Column(String(40), nullable=True)
    date_sale_price_starts = Column(String(40), nullable=True)
    date_sale_price_ends   = Column(String(40), nullable=True)
    tax_status             = Column(String(40), nullable=True)
    backorders_allowed     = Column(String(20), nullable=True)
    sold_individually      = Column(String(20), nullable=True)
    allow_customer_reviews = Column(String(20), nullable=True)
    purchase_note          = Column(Text, nullable=True)

    # ── Timestamps ─────────────────────────────────────────────────────
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    # ── Relationships ──────────────────────────────────────────────────
    images = relationship(
        "ProductImage", back_populates="product",
        cascade="all, delete-orphan", order_by="ProductImage.sort_order",
    )
    variations = relationship(
        "ProductVariation", back_populates="product",
        cascade="all, delete-orphan", order_by="ProductVariation.sort_order",
    )
    bundle_items = relationship(
        "ProductBundleItem", back_populates="bundle",
        foreign_keys="ProductBundleItem.bundle_product_id",
        cascade="all, delete-orphan", order_by="ProductBundleItem.sort_order",
    )
    faqs = relationship(
        "ProductFAQ", back_populates="product",
        cascade="all, delete-orphan", order_by="ProductFAQ.sort_order",
    )
    manuals = relationship(
        "AssemblyManual", back_populates="product",
        cascade="all, delete-orphan", order_by="AssemblyManual.sort_order",
    )
    additional_info = relationship(
        "ProductAdditionalInfo", back_populates="product",
        cascade="all, delete-orphan", order_by="ProductAdditionalInfo.sort_order",
    )

    __table_args__ = (
        UniqueConstraint("sku", "region", name="uq_products_sku_region"),
    )


class ProductImage(Base):
    __tablename__ = "product_images"

    id         = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"),
                        nullable=False, index=True)
    image_url  = Column(Text, nullable=False)
    alt_text   = Column(String(300), nullable=True)
    is_primary = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="images")


class ProductVariation(Base):
    __tablename__ = "product_variations"

    id             = Column(Integer, primary_key=True, autoincrement=True)
    product_id     = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"),
                            nullable=False, index=True)
    variation_type = Column(String(20), nullable=False)
    name           = Column(String(200), nullable=False)
    description    = Column(Text, nullable=True)
    is_required    = Column(Boolean, nullable=False, default=True)
    tracks_stock   = Column(Boolean, nullable=False, default=False)
    sort_order     = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="variations")
    options = relationship(
        "VariationOption", back_populates="variation",
        cascade="all, delete-orphan", order_by="VariationOption.sort_order",
    )


class VariationOption(Base):
    __tablename__ = "variation_options"

    id                  = Column(Integer, primary_key=True, autoincrement=True)
    variation_id        = Column(Integer, ForeignKey("product_variations.id", ondelete="CASCADE"),
                                 nullable=False, index=True)
    option_name         = Column(String(200), nullable=False)
    option_value        = Column(String(200), nullable=False)
    price_adjustment    = Column(Numeric(12, 2), nullable=False, default=0)
    image_url           = Column(Text, nullable=True)
    is_default          = Column(Boolean, nullable=False, default=False)
    is_available        = Column(Boolean, nullable=False, default=True)
    sort_order          = Column(Integer, nullable=False, default=0)
    stock_quantity      = Column(Integer, nullable=True)       # None = untracked
    low_stock_threshold = Column(Integer, nullable=True)
    reserved_quantity   = Column(Integer, nullable=False, default=0)

    variation = relationship("ProductVariation", back_populates="options")


class ProductBundleItem(Base):
    __tablename__ = "product_bundle_items"

    id                = Column(Integer, primary_key=True, autoincrement=True)
    bundle_product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"),
                               nullable=False, index=True)
    item_product_id   = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"),
                               nullable=False, index=True)
    quantity          = Column(Integer, nullable=False, default=1)
    item_type         = Column(String(20), nullable=False, default="required")
    is_configurable   = Column(Boolean, nullable=False, default=False)
    price_adjustment  = Column(Numeric(12, 2), nullable=False, default=0)
    display_name      = Column(String(300), nullable=True)
    description       = Column(Text, nullable=True)
    sort_order        = Column(Integer, nullable=False, default=0)

    bundle = relationship("Product", back_populates="bundle_items",
                          foreign_keys=[bundle_product_id])
    item   = relationship("Product", foreign_keys=[item_product_id])

    __table_args__ = (
        Index("ix_bundle_lookup", "bundle_product_id", "sort_order"),
    )


class ProductFAQ(Base):
    __tablename__ = "product_faqs"

    id         = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"),
                        nullable=False, index=True)
    question   = Column(Text, nullable=False)
    answer     = Column(Text, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="faqs")


class AssemblyManual(Base):
    __tablename__ = "assembly_manuals"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    product_id  = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"),
                         nullable=False, index=True)
    name        = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    file_url    = Column(Text, nullable=False)
    file_type   = Column(String(10), nullable=True)
    file_size   = Column(Integer, nullable=True)
    image_url   = Column(Text, nullable=True)
    sort_order  = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="manuals")


class ProductAdditionalInfo(Base):
    __tablename__ = "product_additional_info"

    id           = Column(Integer, primary_key=True, autoincrement=True)
    product_id   = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"),
                          nullable=False, index=True)
    title        = Column(String(300), nullable=False)
    description  = Column(Text, nullable=True)
    content_type = Column(String(20), nullable=False, default="text")
    content_data = Column(JSON, nullable=False, default=dict)
    sort_order   = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="additional_info")
