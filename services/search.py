"""Product search: predicate composition and the paginated orchestrator.

The category filter is applied to the already paginated page, after the
count has been taken. When it is requested, ``total`` becomes the size of the
filtered page rather than the number of matching products across all pages.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import and_, or_, true
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from models.product import Product, ProductCategory
from schemas.product import ProductSearchRequest

DEFAULT_LIMIT = 50
DEFAULT_OFFSET = 0


@dataclass
class SearchPlan:
    conditions: List[ColumnElement] = field(default_factory=list)
    limit: int = DEFAULT_LIMIT
    offset: int = DEFAULT_OFFSET
    category_id: Optional[int] = None

    @property
    def predicate(self) -> ColumnElement:
        if not self.conditions:
            return true()
        return and_(*self.conditions)


@dataclass
class SearchResult:
    products: List[Product]
    total: int


def _contains(column, term: str) -> ColumnElement:
    return column.contains(term, autoescape=True)


def build_search_plan(request: ProductSearchRequest) -> SearchPlan:
    conditions: List[ColumnElement] = []

    # A combined term wins over the discrete name/barcode filters
    if request.query:
        conditions.append(or_(_contains(Product.name, request.query), _contains(Product.barcode, request.query)))
    else:
        if request.name:
            conditions.append(_contains(Product.name, request.name))
        if request.barcode:
            conditions.append(_contains(Product.barcode, request.barcode))

    if request.brand_id:
        conditions.append(Product.brand_id == request.brand_id)
    # 0 is a real filter value here
    if request.en_mercadolibre is not None:
        conditions.append(Product.en_mercadolibre == request.en_mercadolibre)

    return SearchPlan(
        conditions=conditions,
        limit=request.limit or DEFAULT_LIMIT,
        offset=request.offset or DEFAULT_OFFSET,
        category_id=request.category_id or None,
    )


def product_ids_in_category(db: Session, category_id: int) -> List[int]:
    rows = db.query(ProductCategory.product_id).filter(ProductCategory.category_id == category_id).all()
    return [row[0] for row in rows]


def search_products(db: Session, request: ProductSearchRequest) -> SearchResult:
    plan = build_search_plan(request)

    total = db.query(Product).filter(plan.predicate).count()
    page = (
        db.query(Product)
        .filter(plan.predicate)
        .order_by(Product.id)
        .limit(plan.limit)
        .offset(plan.offset)
        .all()
    )

    if plan.category_id is not None:
        member_ids = set(product_ids_in_category(db, plan.category_id))
        page = [product for product in page if product.id in member_ids]
        total = len(page)

    return SearchResult(products=page, total=total)
