from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import Field, HttpUrl, PositiveInt, field_validator
from cms.models.post import ContentType, PostStatus
from cms.schemas.category import CategorySummary
from cms.schemas.common import CamelModel, ListParams, SortOrder
from cms.schemas.user import AuthorDetail, AuthorSummary
from cms.utils.validation import ensure_slug, reject_null


class PostCreate(CamelModel):
    """创建文章请求模型"""
    title: str = Field(..., min_length=1, max_length=200)
    slug: str
    content: str = Field(..., min_length=1)
    content_type: ContentType = ContentType.MARKDOWN
    excerpt: Optional[str] = Field(default=None, max_length=500)
    status: PostStatus = PostStatus.DRAFT
    featured_image: Optional[HttpUrl] = None
    category_ids: List[PositiveInt] = Field(default_factory=list, description="分类ID列表")

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: Optional[str]) -> Optional[str]:
        return ensure_slug(v)


class PostUpdate(CamelModel):
    """更新文章请求模型，只应用请求中出现的字段"""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = None
    content: Optional[str] = Field(default=None, min_length=1)
    content_type: Optional[ContentType] = None
    excerpt: Optional[str] = Field(default=None, max_length=500)
    status: Optional[PostStatus] = None
    featured_image: Optional[HttpUrl] = None
    category_ids: Optional[List[PositiveInt]] = Field(default=None, description="分类ID列表")

    @field_validator("title", "slug", "content", "content_type", "status", mode="before")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: Optional[str]) -> Optional[str]:
        return ensure_slug(v)


class PostListItem(CamelModel):
    """文章列表项（不含正文）"""
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    content_type: ContentType
    status: PostStatus
    featured_image: Optional[str] = None
    author: Optional[AuthorSummary] = None
    created_at: datetime
    updated_at: datetime


class PostResponse(PostListItem):
    """文章响应模型"""
    content: str
    author: Optional[AuthorDetail] = None
    categories: List[CategorySummary] = Field(default_factory=list)


class PostSortField(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    TITLE = "title"


class PostListParams(ListParams):
    """Query string of GET /posts"""
    status: Optional[PostStatus] = None
    category: Optional[PositiveInt] = None
    author: Optional[PositiveInt] = None
    sort_by: PostSortField = PostSortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC
