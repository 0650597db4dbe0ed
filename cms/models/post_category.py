from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from cms.db.database import Base


class PostCategory(Base):
    """文章分类关联模型"""
    __tablename__ = "post_categories"

    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id"), primary_key=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), primary_key=True, index=True)
