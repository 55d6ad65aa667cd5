import logging
from typing import Iterable, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import Conflict, NotFound, ValidationError
from models.brand import Brand
from models.category import Category
from models.product import Product, ProductCategory
from routes.auth import get_current_principal
from schemas.common import Envelope, MessageResponse, PageEnvelope
from schemas.product import (
    BarcodeCheckOut,
    ProductCreate,
    ProductLegacyUpdate,
    ProductOut,
    ProductSearchRequest,
    VisibilityUpdate,
)
from security.jwt import Principal
from services.search import search_products

logger = logging.getLogger(__name__)

router = APIRouter(tags=["products"])

NAME_SEARCH_LIMIT = 20
DEFAULT_STOREHOUSE_ID = 1
# Columns that are NOT NULL; an explicit null in a partial update leaves them untouched
_NON_NULLABLE_FIELDS = {"stock_quantity", "en_mercadolibre", "visible_ecommerce"}


def get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")
    return product


def category_ids_for(db: Session, product_id: int) -> List[int]:
    rows = db.query(ProductCategory.category_id).filter(ProductCategory.product_id == product_id).all()
    return [row[0] for row in rows]


def ensure_categories_exist(db: Session, category_ids: Iterable[int]) -> None:
    wanted = set(category_ids)
    if not wanted:
        return
    found = {row[0] for row in db.query(Category.id).filter(Category.id.in_(wanted)).all()}
    missing = sorted(wanted - found)
    if missing:
        raise ValidationError(f"Categories not found: {', '.join(str(i) for i in missing)}")


def ensure_brand_exists(db: Session, brand_id: Optional[int]) -> None:
    if brand_id and not db.get(Brand, brand_id):
        raise ValidationError("Brand not found")


def apply_partial_update(product: Product, fields: dict) -> None:
    for field, value in fields.items():
        if value is None and field in _NON_NULLABLE_FIELDS:
            continue
        setattr(product, field, value)


def to_product_out(product: Product, category_ids: Optional[List[int]] = None) -> ProductOut:
    out = ProductOut.model_validate(product)
    if category_ids:
        out.categories = list(category_ids)
    return out


@router.get("/products", response_model=Envelope[List[ProductOut]])
def list_products(db: Session = Depends(get_db)):
    products = db.query(Product).order_by(Product.name).all()
    return {"success": True, "data": [to_product_out(p) for p in products]}


@router.get("/products/search", response_model=None)
def search_by_barcode_or_name(
    barcode: Optional[str] = Query(None),
    name: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Exact barcode lookup (single product or null), else up to 20 name matches."""
    if barcode:
        product = db.query(Product).filter(Product.barcode == barcode).first()
        if not product:
            return {"success": True, "data": None}
        out = to_product_out(product, category_ids_for(db, product.id))
        return {"success": True, "data": out.model_dump(by_alias=True)}

    if name:
        products = (
            db.query(Product)
            .filter(Product.name.contains(name, autoescape=True))
            .limit(NAME_SEARCH_LIMIT)
            .all()
        )
        return {"success": True, "data": [to_product_out(p).model_dump(by_alias=True) for p in products]}

    raise ValidationError("barcode or name is required")


@router.get("/products/check-barcode/{barcode}", response_model=BarcodeCheckOut)
def check_barcode(barcode: str, db: Session = Depends(get_db)):
    existing = db.query(Product.id).filter(Product.barcode == barcode).first()
    return BarcodeCheckOut(exists=existing is not None, product_id=existing[0] if existing else None)


@router.post("/products/search-advanced", response_model=PageEnvelope[ProductOut])
def search_advanced(data: ProductSearchRequest, db: Session = Depends(get_db)):
    result = search_products(db, data)
    return {"success": True, "data": [to_product_out(p) for p in result.products], "total": result.total}


@router.post("/productsTNT", response_model=Envelope[ProductOut], status_code=201)
def create_product(
    data: ProductCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    if not data.name or not data.barcode:
        raise ValidationError("Name and barcode are required")
    if db.query(Product.id).filter(Product.barcode == data.barcode).first():
        raise Conflict("A product with that barcode already exists")
    ensure_brand_exists(db, data.brand_id)
    category_ids = list(dict.fromkeys(data.category_ids or []))
    ensure_categories_exist(db, category_ids)

    product = Product(
        name=data.name,
        barcode=data.barcode,
        brand=data.brand or None,
        brand_id=data.brand_id or None,
        sale_price=data.sale_price or 0,
        cost=data.cost or 0,
        stock_quantity=data.stock_quantity or 0,
        image=data.image or None,
        internal_reference=data.internal_reference or None,
        storehouse_id=data.storehouse_id or DEFAULT_STOREHOUSE_ID,
        created_by=principal.email,
    )
    db.add(product)
    db.commit()
    db.refresh(product)

    # Separate write; a failure here leaves the product without its categories
    if category_ids:
        db.add_all(ProductCategory(product_id=product.id, category_id=cid) for cid in category_ids)
        db.commit()

    logger.info("Product %s (%s) created by %s", product.id, product.barcode, principal.email)
    return {"success": True, "data": to_product_out(product, category_ids)}


@router.put("/editProductTNT/{product_id}", response_model=Envelope[ProductOut])
def edit_product(
    product_id: int,
    data: ProductLegacyUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    product = get_product_or_404(db, product_id)
    apply_partial_update(product, data.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(product)
    return {"success": True, "data": to_product_out(product)}


@router.put("/products/{product_id}", response_model=MessageResponse)
def update_visibility(
    product_id: int,
    data: VisibilityUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    product = get_product_or_404(db, product_id)
    fields = data.model_dump(exclude_unset=True)
    if fields:
        apply_partial_update(product, fields)
        db.commit()
    return MessageResponse()
