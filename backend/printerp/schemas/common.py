"""
Shared Pydantic schemas.
"""
from typing import Any, Optional
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema that reads snake_case attributes and speaks camelCase JSON."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class Pagination(CamelModel):
    total_count: int
    total_pages: int
    current_page: int
    page_size: int


class SuccessResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    code: str
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    code: int
    message: str
