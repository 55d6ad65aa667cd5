from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire (the dashboard's format)."""

    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel


class Envelope(CamelModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None


class PageEnvelope(CamelModel, Generic[T]):
    success: bool = True
    data: List[T] = []
    total: int = 0


class MessageResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
