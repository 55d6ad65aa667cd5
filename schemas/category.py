from typing import List, Optional

from pydantic import Field

from schemas.common import CamelModel


class CategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=150)
    slug: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryUpdate(CamelModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryOut(CamelModel):
    id: int
    name: str
    slug: str
    image_url: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: int


class CategoryNode(CategoryOut):
    children: List["CategoryNode"] = []


class CategoryRef(CamelModel):
    id: int
    name: str
    slug: str


CategoryNode.model_rebuild()
