import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import Conflict, NotFound, StorageError
from models.brand import Brand
from models.lifecycle import ActiveState
from routes.auth import get_current_principal
from schemas.brand import BrandCreate, BrandOut, BrandUpdate, ImageUrlOut
from schemas.common import Envelope, MessageResponse
from security.jwt import Principal
from services.slug import generate_slug
from services.storage import ImageStorage, get_image_storage, read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v2/brands", tags=["brands"])


def _get_brand(db: Session, brand_id: int) -> Brand:
    brand = db.get(Brand, brand_id)
    if not brand:
        raise NotFound("Brand not found")
    return brand


def _ensure_slug_free(db: Session, slug: str, brand_id: Optional[int] = None) -> None:
    # Soft-deleted rows still own their slug
    existing = db.query(Brand).filter(Brand.slug == slug).first()
    if existing and existing.id != brand_id:
        raise Conflict("A brand with that slug already exists")


@router.get("", response_model=Envelope[List[BrandOut]])
def list_brands(
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: Session = Depends(get_db),
):
    query = db.query(Brand)
    if not include_inactive:
        query = query.filter(Brand.is_active == ActiveState.ACTIVE)
    return {"success": True, "data": query.order_by(Brand.name).all()}


@router.get("/{brand_id}", response_model=Envelope[BrandOut])
def get_brand(brand_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": _get_brand(db, brand_id)}


@router.post("", response_model=Envelope[BrandOut], status_code=201)
def create_brand(
    data: BrandCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    slug = data.slug or generate_slug(data.name)
    _ensure_slug_free(db, slug)
    brand = Brand(name=data.name, slug=slug)
    db.add(brand)
    db.commit()
    db.refresh(brand)
    logger.info("Brand %s (%s) created by %s", brand.id, brand.slug, principal.email)
    return {"success": True, "data": brand}


@router.put("/{brand_id}", response_model=Envelope[BrandOut])
def update_brand(
    brand_id: int,
    data: BrandUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    brand = _get_brand(db, brand_id)
    fields = data.model_dump(exclude_unset=True)
    if fields.get("name"):
        brand.name = fields["name"]
    if fields.get("slug"):
        _ensure_slug_free(db, fields["slug"], brand.id)
        brand.slug = fields["slug"]
    # 0 hides the brand from the storefront
    if fields.get("is_visible_web") is not None:
        brand.is_visible_web = fields["is_visible_web"]
    db.commit()
    db.refresh(brand)
    return {"success": True, "data": brand}


@router.delete("/{brand_id}", response_model=MessageResponse)
def deactivate_brand(
    brand_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    brand = _get_brand(db, brand_id)
    brand.is_active = ActiveState.INACTIVE
    db.commit()
    logger.info("Brand %s deactivated by %s", brand.id, principal.email)
    return MessageResponse(message="Brand deactivated")


@router.post("/{brand_id}/image", response_model=Envelope[ImageUrlOut])
async def upload_brand_image(
    brand_id: int,
    image: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    principal: Principal = Depends(get_current_principal),
):
    brand = _get_brand(db, brand_id)
    file_data, content_type = await read_image_upload(image)

    success, url, error = storage.store(file_data, content_type, f"brands/{brand.id}")
    if not success:
        logger.error("Brand %s image upload failed: %s", brand.id, error)
        raise StorageError("Failed to upload image")

    previous = brand.image_url
    brand.image_url = url
    db.commit()
    storage.delete(previous)
    return {"success": True, "data": {"image_url": url}}


@router.delete("/{brand_id}/image", response_model=MessageResponse)
def delete_brand_image(
    brand_id: int,
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    principal: Principal = Depends(get_current_principal),
):
    brand = _get_brand(db, brand_id)
    storage.delete(brand.image_url)
    brand.image_url = None
    db.commit()
    return MessageResponse(message="Image deleted")
