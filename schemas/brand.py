from typing import Optional

from pydantic import Field

from schemas.common import CamelModel


class BrandCreate(CamelModel):
    name: str = Field(min_length=1, max_length=150)
    slug: Optional[str] = None


class BrandUpdate(CamelModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    is_visible_web: Optional[int] = None


class BrandOut(CamelModel):
    id: int
    name: str
    slug: str
    image_url: Optional[str] = None
    is_active: int
    is_visible_web: int = 1


class BrandRef(CamelModel):
    id: int
    name: str
    image_url: Optional[str] = None


class ImageUrlOut(CamelModel):
    image_url: Optional[str] = None
