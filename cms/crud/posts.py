import logging
from typing import Iterable
from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session
from cms.crud.base import commit, translate_errors, utcnow
from cms.models.category import Category
from cms.models.post import ContentType, Post
from cms.models.post_category import PostCategory
from cms.schemas.common import SortOrder
from cms.schemas.post import PostCreate, PostListParams, PostSortField, PostUpdate
from cms.utils.validation import sanitize_html

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    PostSortField.CREATED_AT: Post.created_at,
    PostSortField.UPDATED_AT: Post.updated_at,
    PostSortField.TITLE: Post.title,
}

SLUG_CONFLICT = "Post slug already exists"


def get_post(session: Session, post_id: int) -> Post | None:
    return session.get(Post, post_id)


def get_by_slug(session: Session, slug: str) -> Post | None:
    result = session.execute(select(Post).where(Post.slug == slug))
    return result.scalar_one_or_none()


def missing_category_ids(session: Session, category_ids: Iterable[int]) -> set[int]:
    """Ids from the list that have no category row."""
    wanted = set(category_ids)
    if not wanted:
        return set()
    found = session.scalars(select(Category.id).where(Category.id.in_(wanted))).all()
    return wanted - set(found)


def _filters(params: PostListParams) -> list:
    conditions = []
    if params.status:
        conditions.append(Post.status == params.status)
    if params.author:
        conditions.append(Post.author_id == params.author)
    if params.category:
        conditions.append(
            Post.id.in_(
                select(PostCategory.post_id).where(PostCategory.category_id == params.category)
            )
        )
    tokens = params.search.split() if params.search else []
    if tokens:
        # any token in the title or the content
        conditions.append(
            or_(*[
                or_(
                    Post.title.contains(token, autoescape=True),
                    Post.content.contains(token, autoescape=True),
                )
                for token in tokens
            ])
        )
    return conditions


def list_posts(session: Session, params: PostListParams) -> tuple[list[Post], int]:
    """One page of posts plus the total number matching the filters."""
    conditions = _filters(params)

    column = SORT_COLUMNS[params.sort_by]
    if params.sort_order == SortOrder.DESC:
        order_by = (column.desc(), Post.id.desc())
    else:
        order_by = (column.asc(), Post.id.asc())

    stmt = (
        select(Post)
        .where(*conditions)
        .order_by(*order_by)
        .limit(params.limit)
        .offset(params.offset)
    )
    posts = list(session.scalars(stmt).all())
    total = session.scalar(select(func.count(Post.id)).where(*conditions)) or 0
    return posts, total


def _content_for(content: str, content_type: ContentType) -> str:
    if content_type == ContentType.HTML:
        return sanitize_html(content)
    return content


def replace_categories(session: Session, post_id: int, category_ids: Iterable[int]) -> None:
    """Delete every association of the post, then insert the given list.

    Does not commit; runs inside the caller's transaction.
    """
    session.execute(delete(PostCategory).where(PostCategory.post_id == post_id))
    session.add_all(
        PostCategory(post_id=post_id, category_id=category_id)
        for category_id in dict.fromkeys(category_ids)
    )


def create_post(session: Session, data: PostCreate, author_id: int) -> Post:
    post = Post(
        title=data.title,
        slug=data.slug,
        content=_content_for(data.content, data.content_type),
        content_type=data.content_type,
        excerpt=data.excerpt,
        status=data.status,
        featured_image=str(data.featured_image) if data.featured_image else None,
        author_id=author_id,
    )
    with translate_errors(session, SLUG_CONFLICT):
        session.add(post)
        session.flush()
        if data.category_ids:
            replace_categories(session, post.id, data.category_ids)
        session.commit()
    session.refresh(post)
    logger.info("Post %s created by user %s", post.id, author_id)
    return post


def update_post(session: Session, post: Post, data: PostUpdate) -> Post:
    """Apply the fields present in the request; categories are replaced wholesale if given."""
    changes = data.model_dump(exclude_unset=True, exclude={"category_ids"})
    for field, value in changes.items():
        if field == "featured_image" and value is not None:
            value = str(value)
        setattr(post, field, value)

    post.content = _content_for(post.content, post.content_type)
    post.updated_at = utcnow()

    with translate_errors(session, SLUG_CONFLICT):
        if data.category_ids is not None:
            replace_categories(session, post.id, data.category_ids)
        session.commit()
    session.refresh(post)
    return post


def delete_post(session: Session, post: Post) -> None:
    """Remove the post's associations, then the post, in one transaction."""
    post_id = post.id
    session.execute(delete(PostCategory).where(PostCategory.post_id == post_id))
    session.delete(post)
    commit(session)
    logger.info("Post %s deleted", post_id)
