import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from core.errors import Conflict, NotFound, StorageError, ValidationError
from core.db import get_db
from models.category import Category
from models.lifecycle import ActiveState
from routes.auth import get_current_principal
from schemas.brand import ImageUrlOut
from schemas.category import CategoryCreate, CategoryOut, CategoryUpdate
from schemas.common import Envelope, MessageResponse
from security.jwt import Principal
from services.category_tree import build_category_tree
from services.slug import generate_slug
from services.storage import ImageStorage, get_image_storage, read_image_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v2/categories", tags=["categories"])


def _get_category(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if not category:
        raise NotFound("Category not found")
    return category


def _ensure_slug_free(db: Session, slug: str, category_id: Optional[int] = None) -> None:
    existing = db.query(Category).filter(Category.slug == slug).first()
    if existing and existing.id != category_id:
        raise Conflict("A category with that slug already exists")


def _ensure_parent_exists(db: Session, parent_id: int) -> None:
    if not db.get(Category, parent_id):
        raise ValidationError("Parent category not found")


@router.get("", response_model=None)
def list_categories(
    flat: bool = Query(False),
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: Session = Depends(get_db),
):
    """Active categories by default, as a nested forest unless ``flat=true``."""
    query = db.query(Category)
    if not include_inactive:
        query = query.filter(Category.is_active == ActiveState.ACTIVE)
    categories = query.order_by(Category.name).all()

    if flat:
        data = [CategoryOut.model_validate(c).model_dump(by_alias=True) for c in categories]
    else:
        data = [node.model_dump(by_alias=True) for node in build_category_tree(categories)]
    return {"success": True, "data": data}


@router.get("/{category_id}", response_model=Envelope[CategoryOut])
def get_category(category_id: int, db: Session = Depends(get_db)):
    return {"success": True, "data": _get_category(db, category_id)}


@router.post("", response_model=Envelope[CategoryOut], status_code=201)
def create_category(
    data: CategoryCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    slug = data.slug or generate_slug(data.name)
    _ensure_slug_free(db, slug)
    if data.parent_id:
        _ensure_parent_exists(db, data.parent_id)

    category = Category(name=data.name, slug=slug, parent_id=data.parent_id or None)
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info("Category %s (%s) created by %s", category.id, category.slug, principal.email)
    return {"success": True, "data": category}


@router.put("/{category_id}", response_model=Envelope[CategoryOut])
def update_category(
    category_id: int,
    data: CategoryUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    category = _get_category(db, category_id)
    fields = data.model_dump(exclude_unset=True)

    if fields.get("name"):
        category.name = fields["name"]
    if fields.get("slug"):
        _ensure_slug_free(db, fields["slug"], category.id)
        category.slug = fields["slug"]
    if "parent_id" in fields:
        parent_id = fields["parent_id"]
        if parent_id == category.id:
            raise ValidationError("A category cannot be its own parent")
        if parent_id is not None:
            _ensure_parent_exists(db, parent_id)
        category.parent_id = parent_id

    db.commit()
    db.refresh(category)
    return {"success": True, "data": category}


@router.delete("/{category_id}", response_model=MessageResponse)
def deactivate_category(
    category_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    category = _get_category(db, category_id)
    category.is_active = ActiveState.INACTIVE
    db.commit()
    logger.info("Category %s deactivated by %s", category.id, principal.email)
    return MessageResponse(message="Category deactivated")


@router.post("/{category_id}/image", response_model=Envelope[ImageUrlOut])
async def upload_category_image(
    category_id: int,
    image: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    principal: Principal = Depends(get_current_principal),
):
    category = _get_category(db, category_id)
    file_data, content_type = await read_image_upload(image)

    success, url, error = storage.store(file_data, content_type, f"categories/{category.id}")
    if not success:
        logger.error("Category %s image upload failed: %s", category.id, error)
        raise StorageError("Failed to upload image")

    previous = category.image_url
    category.image_url = url
    db.commit()
    storage.delete(previous)
    return {"success": True, "data": {"image_url": url}}


@router.delete("/{category_id}/image", response_model=MessageResponse)
def delete_category_image(
    category_id: int,
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    principal: Principal = Depends(get_current_principal),
):
    category = _get_category(db, category_id)
    storage.delete(category.image_url)
    category.image_url = None
    db.commit()
    return MessageResponse(message="Image deleted")
