# shelfpick/models/product.py
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shelfpick.db.base import Base


class Product(Base):
    """
    Sellable product (one logical "set"), made of one or more physical packages.
    Catalog maintenance happens elsewhere; the picking engine only reads it.
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sku: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # ERP stock card code; falls back to sku when empty
    erp_stock_code: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    ecommerce_product_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    packages: Mapped[List["ProductPackage"]] = relationship(
        "ProductPackage",
        back_populates="product",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProductPackage.id",
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r}>"


class ProductPackage(Base):
    """
    Physical sub-unit of a product.
    quantity = how many of this package one set needs.
    """

    __tablename__ = "product_packages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    barcode: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default=text("1"))

    product: Mapped["Product"] = relationship("Product", back_populates="packages", lazy="selectin")

    __table_args__ = (Index("ix_product_packages_product_id", "product_id"),)

    def __repr__(self) -> str:
        return (
            f"<ProductPackage id={self.id} product={self.product_id} "
            f"barcode={self.barcode!r} per_set={self.quantity}>"
        )
