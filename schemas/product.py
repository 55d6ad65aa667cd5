from typing import List, Optional

from pydantic import Field

from schemas.brand import BrandRef
from schemas.category import CategoryRef
from schemas.common import CamelModel


class ProductCreate(CamelModel):
    name: Optional[str] = None
    barcode: Optional[str] = None
    brand: Optional[str] = None
    brand_id: Optional[int] = None
    sale_price: Optional[float] = None
    cost: Optional[float] = None
    stock_quantity: Optional[int] = None
    image: Optional[str] = None
    internal_reference: Optional[str] = None
    storehouse_id: Optional[int] = None
    category_ids: Optional[List[int]] = None


class ProductLegacyUpdate(CamelModel):
    name: Optional[str] = None
    sale_price: Optional[float] = None
    stock_quantity: Optional[int] = None
    image: Optional[str] = None
    en_mercadolibre: Optional[int] = None
    visible_ecommerce: Optional[int] = None


class VisibilityUpdate(CamelModel):
    en_mercadolibre: Optional[int] = None
    visible_ecommerce: Optional[int] = None


class ProductUpdate(CamelModel):
    name: Optional[str] = None
    sale_price: Optional[float] = None
    stock_quantity: Optional[int] = None
    brand_id: Optional[int] = None
    image: Optional[str] = None
    visible_ecommerce: Optional[int] = None
    # Present (even empty) means "replace every association"
    category_ids: Optional[List[int]] = None


class CategoryAssociation(CamelModel):
    category_ids: List[int] = Field(default_factory=list)


class ProductSearchRequest(CamelModel):
    query: Optional[str] = None
    name: Optional[str] = None
    barcode: Optional[str] = None
    brand_id: Optional[int] = None
    category_id: Optional[int] = None
    en_mercadolibre: Optional[int] = None
    limit: Optional[int] = None
    offset: Optional[int] = None


class ProductOut(CamelModel):
    id: int
    name: Optional[str] = None
    barcode: Optional[str] = None
    brand: Optional[str] = None
    brand_id: Optional[int] = None
    categories: List[int] = []
    sale_price: Optional[float] = None
    stock_quantity: Optional[int] = None
    image: Optional[str] = None
    internal_reference: Optional[str] = None
    storehouse_id: Optional[int] = None
    en_mercadolibre: Optional[int] = None
    visible_ecommerce: Optional[int] = None


class ProductSummaryOut(CamelModel):
    id: int
    name: Optional[str] = None
    barcode: Optional[str] = None
    sale_price: Optional[float] = None
    stock_quantity: Optional[int] = None
    image: Optional[str] = None
    brand_id: Optional[int] = None
    visible_ecommerce: Optional[int] = None


class ProductDetailOut(CamelModel):
    id: int
    name: Optional[str] = None
    barcode: Optional[str] = None
    sale_price: Optional[float] = None
    stock_quantity: Optional[int] = None
    image: Optional[str] = None
    brand_id: Optional[int] = None
    brand_info: Optional[BrandRef] = None
    categories: List[CategoryRef] = []
    internal_reference: Optional[str] = None
    storehouse_id: Optional[int] = None
    en_mercadolibre: Optional[int] = None
    visible_ecommerce: Optional[int] = None


class BarcodeCheckOut(CamelModel):
    success: bool = True
    exists: bool
    product_id: Optional[int] = None


class ProductImageOut(CamelModel):
    image: Optional[str] = None


class GalleryOut(CamelModel):
    images: List[str] = []
    added: Optional[str] = None
