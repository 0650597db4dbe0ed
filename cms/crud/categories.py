import logging
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from cms.crud.base import commit, utcnow
from cms.models.category import Category
from cms.models.post_category import PostCategory
from cms.schemas.category import CategoryCreate, CategoryListParams, CategorySortField, CategoryUpdate
from cms.schemas.common import SortOrder

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    CategorySortField.CREATED_AT: Category.created_at,
    CategorySortField.NAME: Category.name,
}


def get_category(session: Session, category_id: int) -> Category | None:
    return session.get(Category, category_id)


def get_by_slug(session: Session, slug: str) -> Category | None:
    return session.execute(select(Category).where(Category.slug == slug)).scalar_one_or_none()


def get_by_name(session: Session, name: str) -> Category | None:
    return session.execute(select(Category).where(Category.name == name)).scalar_one_or_none()


def _with_post_count():
    post_count = func.count(PostCategory.post_id).label("post_count")
    return (
        select(Category, post_count)
        .outerjoin(PostCategory, PostCategory.category_id == Category.id)
        .group_by(Category.id)
    )


def get_with_post_count(session: Session, category_id: int) -> tuple[Category, int] | None:
    row = session.execute(_with_post_count().where(Category.id == category_id)).first()
    if row is None:
        return None
    return row[0], row[1]


def list_categories(session: Session, params: CategoryListParams) -> tuple[list[tuple[Category, int]], int]:
    """One page of categories with their post counts, plus the total."""
    conditions = []
    if params.search:
        conditions.append(Category.name.contains(params.search, autoescape=True))

    column = SORT_COLUMNS[params.sort_by]
    if params.sort_order == SortOrder.DESC:
        order_by = (column.desc(), Category.id.desc())
    else:
        order_by = (column.asc(), Category.id.asc())

    stmt = (
        _with_post_count()
        .where(*conditions)
        .order_by(*order_by)
        .limit(params.limit)
        .offset(params.offset)
    )
    rows = [(category, count) for category, count in session.execute(stmt).all()]
    total = session.scalar(select(func.count(Category.id)).where(*conditions)) or 0
    return rows, total


def create_category(session: Session, data: CategoryCreate) -> Category:
    category = Category(name=data.name, slug=data.slug, description=data.description)
    session.add(category)
    commit(session, conflict_message="Category name or slug already exists")
    session.refresh(category)
    logger.info("Category %s (%s) created", category.id, category.slug)
    return category


def update_category(session: Session, category: Category, data: CategoryUpdate) -> Category:
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(category, field, value)
    category.updated_at = utcnow()
    commit(session, conflict_message="Category name or slug already exists")
    session.refresh(category)
    return category


def count_posts(session: Session, category_id: int) -> int:
    stmt = select(func.count()).select_from(PostCategory).where(PostCategory.category_id == category_id)
    return session.scalar(stmt) or 0


def delete_category(session: Session, category: Category) -> None:
    """Caller must have checked count_posts() first."""
    category_id = category.id
    session.delete(category)
    commit(session)
    logger.info("Category %s deleted", category_id)
