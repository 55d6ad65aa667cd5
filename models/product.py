from datetime import datetime
from sqlalchemy import String, DateTime, ForeignKey, Integer, Numeric, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    barcode: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0)
    cost: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    sale_price: Mapped[float | None] = mapped_column(Numeric(12, 2), nullable=True)
    internal_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    storehouse_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # Either a data URI or an external URL
    image: Mapped[str | None] = mapped_column("image_512", Text, nullable=True)
    images: Mapped[list | None] = mapped_column(JSON, nullable=True)
    brand: Mapped[str | None] = mapped_column(String(150), nullable=True)
    brand_id: Mapped[int | None] = mapped_column(ForeignKey("brands.id"), nullable=True, index=True)
    en_mercadolibre: Mapped[int] = mapped_column(Integer, default=0)
    visible_ecommerce: Mapped[int] = mapped_column(Integer, default=1)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ProductCategory(Base):
    """Join row; only written or removed through explicit association calls."""

    __tablename__ = "product_categories"

    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), primary_key=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), primary_key=True, index=True)
