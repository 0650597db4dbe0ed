from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import Field, field_validator
from cms.schemas.common import CamelModel, ListParams, SortOrder
from cms.utils.validation import ensure_slug, reject_null


class CategoryCreate(CamelModel):
    """创建分类请求模型"""
    name: str = Field(..., min_length=1, max_length=100, description="分类名称")
    slug: str = Field(..., description="URL slug")
    description: Optional[str] = Field(default=None, max_length=500, description="分类描述")

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: Optional[str]) -> Optional[str]:
        return ensure_slug(v)


class CategoryUpdate(CamelModel):
    """更新分类请求模型"""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    slug: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name", "slug", mode="before")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: Optional[str]) -> Optional[str]:
        return ensure_slug(v)


class CategorySummary(CamelModel):
    id: int
    name: str
    slug: str


class CategoryResponse(CategorySummary):
    """分类响应模型"""
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    post_count: int = 0


class CategorySortField(str, Enum):
    CREATED_AT = "created_at"
    NAME = "name"


class CategoryListParams(ListParams):
    sort_by: CategorySortField = CategorySortField.NAME
    sort_order: SortOrder = SortOrder.ASC
