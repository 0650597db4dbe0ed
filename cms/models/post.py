from datetime import datetime, UTC
from enum import Enum as PyEnum
from sqlalchemy import DateTime, Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from cms.db.database import Base


class PostStatus(str, PyEnum):
    """Post status"""
    DRAFT = "draft"          # Work in progress
    PUBLISHED = "published"  # Visible on the public site


class ContentType(str, PyEnum):
    """Format of the post body"""
    MARKDOWN = "markdown"
    HTML = "html"


def _values(enum_cls):
    return [m.value for m in enum_cls]


class Post(Base):
    """Post model"""
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[ContentType] = mapped_column(
        Enum(ContentType, native_enum=False, values_callable=_values),
        nullable=False,
        default=ContentType.MARKDOWN
    )
    excerpt: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[PostStatus] = mapped_column(
        Enum(PostStatus, native_enum=False, values_callable=_values),
        nullable=False,
        default=PostStatus.DRAFT
    )
    featured_image: Mapped[str | None] = mapped_column(String, nullable=True)
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))

    author = relationship("User", back_populates="posts", lazy="joined")
    # read side only; rows in post_categories are written through PostCategory
    categories = relationship(
        "Category",
        secondary="post_categories",
        viewonly=True,
        order_by="Category.id"
    )
