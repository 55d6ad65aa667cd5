import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from core.config import settings
from core.db import get_db
from core.errors import StorageError, ValidationError
from models.brand import Brand
from models.category import Category
from models.product import Product, ProductCategory
from routes.auth import get_current_principal
from routes.products import (
    apply_partial_update,
    category_ids_for,
    ensure_brand_exists,
    ensure_categories_exist,
    get_product_or_404,
)
from schemas.brand import BrandRef
from schemas.category import CategoryRef
from schemas.common import Envelope, MessageResponse, PageEnvelope
from schemas.product import (
    CategoryAssociation,
    GalleryOut,
    ProductDetailOut,
    ProductImageOut,
    ProductSummaryOut,
    ProductUpdate,
)
from security.jwt import Principal
from services.search import product_ids_in_category
from services.storage import ImageStorage, get_image_storage, read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v2/products", tags=["products"])

DEFAULT_PAGE_SIZE = 20


def _detail(db: Session, product: Product) -> ProductDetailOut:
    out = ProductDetailOut.model_validate(product)
    if product.brand_id:
        brand = db.get(Brand, product.brand_id)
        if brand:
            out.brand_info = BrandRef.model_validate(brand)
    ids = category_ids_for(db, product.id)
    if ids:
        categories = db.query(Category).filter(Category.id.in_(ids)).all()
        out.categories = [CategoryRef.model_validate(c) for c in categories]
    return out


@router.get("/by-category/{category_id}", response_model=PageEnvelope[ProductSummaryOut])
def products_by_category(
    category_id: int,
    limit: int = Query(DEFAULT_PAGE_SIZE),
    offset: int = Query(0),
    db: Session = Depends(get_db),
):
    product_ids = product_ids_in_category(db, category_id)
    if not product_ids:
        return {"success": True, "data": [], "total": 0}

    products = (
        db.query(Product)
        .filter(Product.id.in_(product_ids))
        .order_by(Product.id)
        .limit(limit)
        .offset(offset)
        .all()
    )
    return {"success": True, "data": products, "total": len(product_ids)}


@router.get("/by-brand/{brand_id}", response_model=PageEnvelope[ProductSummaryOut])
def products_by_brand(
    brand_id: int,
    limit: int = Query(DEFAULT_PAGE_SIZE),
    offset: int = Query(0),
    db: Session = Depends(get_db),
):
    query = db.query(Product).filter(Product.brand_id == brand_id)
    products = query.order_by(Product.id).limit(limit).offset(offset).all()
    return {"success": True, "data": products, "total": query.count()}


@router.get("/{product_id}", response_model=Envelope[ProductDetailOut])
def get_product(product_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": _detail(db, get_product_or_404(db, product_id))}


@router.put("/{product_id}", response_model=Envelope[ProductDetailOut])
def update_product(
    product_id: int,
    data: ProductUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    product = get_product_or_404(db, product_id)
    fields = data.model_dump(exclude_unset=True)
    category_ids = fields.pop("category_ids", None)
    if fields.get("brand_id"):
        ensure_brand_exists(db, fields["brand_id"])
    if category_ids is not None:
        ensure_categories_exist(db, category_ids)

    apply_partial_update(product, fields)
    db.commit()

    if category_ids is not None:
        db.query(ProductCategory).filter(ProductCategory.product_id == product.id).delete()
        db.add_all(ProductCategory(product_id=product.id, category_id=cid) for cid in dict.fromkeys(category_ids))
        db.commit()

    db.refresh(product)
    return {"success": True, "data": _detail(db, product)}


@router.post("/{product_id}/categories", response_model=MessageResponse)
def add_product_categories(
    product_id: int,
    data: CategoryAssociation,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    product = get_product_or_404(db, product_id)
    if not data.category_ids:
        raise ValidationError("categoryIds is required")
    ensure_categories_exist(db, data.category_ids)

    existing = set(category_ids_for(db, product.id))
    new_ids = [cid for cid in dict.fromkeys(data.category_ids) if cid not in existing]
    if new_ids:
        db.add_all(ProductCategory(product_id=product.id, category_id=cid) for cid in new_ids)
        db.commit()
    return MessageResponse()


@router.delete("/{product_id}/categories/{category_id}", response_model=MessageResponse)
def remove_product_category(
    product_id: int,
    category_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    db.query(ProductCategory).filter(
        ProductCategory.product_id == product_id,
        ProductCategory.category_id == category_id,
    ).delete()
    db.commit()
    return MessageResponse()


@router.post("/{product_id}/image", response_model=Envelope[ProductImageOut])
async def upload_product_image(
    product_id: int,
    image: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    principal: Principal = Depends(get_current_principal),
):
    product = get_product_or_404(db, product_id)
    file_data, content_type = await read_image_upload(image)

    success, url, error = storage.store(file_data, content_type, f"products/{product.id}")
    if not success:
        logger.error("Product %s image upload failed: %s", product.id, error)
        raise StorageError("Failed to upload image")

    previous = product.image
    product.image = url
    db.commit()
    storage.delete(previous)
    return {"success": True, "data": {"image": url}}


@router.delete("/{product_id}/image", response_model=MessageResponse)
def delete_product_image(
    product_id: int,
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    principal: Principal = Depends(get_current_principal),
):
    product = get_product_or_404(db, product_id)
    storage.delete(product.image)
    product.image = None
    db.commit()
    return MessageResponse(message="Image deleted")


@router.get("/{product_id}/images", response_model=Envelope[GalleryOut])
def list_gallery(product_id: int, db: Session = Depends(get_db)):
    product = get_product_or_404(db, product_id)
    return {"success": True, "data": {"images": product.images or []}}


@router.post("/{product_id}/images", response_model=Envelope[GalleryOut])
async def add_gallery_image(
    product_id: int,
    image: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    principal: Principal = Depends(get_current_principal),
):
    product = get_product_or_404(db, product_id)
    images: List[str] = list(product.images or [])
    if len(images) >= settings.GALLERY_MAX_IMAGES:
        raise ValidationError(f"At most {settings.GALLERY_MAX_IMAGES} images allowed")
    file_data, content_type = await read_image_upload(image)

    success, url, error = storage.store(file_data, content_type, f"products/{product.id}/gallery")
    if not success:
        logger.error("Product %s gallery upload failed: %s", product.id, error)
        raise StorageError("Failed to upload image")

    images.append(url)
    # Reassign so the JSON column is flagged dirty
    product.images = images
    db.commit()
    return {"success": True, "data": {"images": images, "added": url}}


@router.delete("/{product_id}/images/{index}", response_model=Envelope[GalleryOut])
def delete_gallery_image(
    product_id: int,
    index: int,
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    principal: Principal = Depends(get_current_principal),
):
    product = get_product_or_404(db, product_id)
    images: List[str] = list(product.images or [])
    if index < 0 or index >= len(images):
        raise ValidationError("Invalid image index")

    removed = images.pop(index)
    storage.delete(removed)
    product.images = images
    db.commit()
    return {"success": True, "data": {"images": images}}


@router.delete("/{product_id}/images", response_model=MessageResponse)
def clear_gallery(
    product_id: int,
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    principal: Principal = Depends(get_current_principal),
):
    product = get_product_or_404(db, product_id)
    for url in product.images or []:
        storage.delete(url)
    product.images = None
    db.commit()
    return MessageResponse(message="All images deleted")
