from enum import Enum
from math import ceil
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

MAX_LIMIT = 100
# keeps (page - 1) * limit inside a signed 64-bit SQL integer
MAX_PAGE = (2**63 - 1) // MAX_LIMIT


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase JSON"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Pagination(CamelModel):
    """分页信息"""
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=ceil(total / limit))


class APIResponse(BaseModel, Generic[T]):
    """Standard response envelope"""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated list envelope"""
    success: bool = True
    data: List[T] = Field(default_factory=list)
    pagination: Pagination


class ListParams(CamelModel):
    """Shared paging fields for list endpoints"""
    page: int = Field(default=1, ge=1, le=MAX_PAGE)
    limit: int = Field(default=10, ge=1, le=MAX_LIMIT)
    search: Optional[str] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
