import logging
from typing import Annotated
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from cms.core.exceptions import AuthorizationDenied, ResourceConflict, ResourceNotFound
from cms.core.security import CurrentUser
from cms.crud import posts as crud_posts
from cms.db.database import get_session
from cms.models.post import Post
from cms.models.user import UserRole
from cms.schemas.common import APIResponse, PaginatedResponse, Pagination
from cms.schemas.post import PostCreate, PostListItem, PostListParams, PostResponse, PostUpdate
from cms.schemas.user import TokenClaims

logger = logging.getLogger(__name__)

router = APIRouter()


def _load_post(session: Session, post_id: int) -> Post:
    post = crud_posts.get_post(session, post_id)
    if not post:
        raise ResourceNotFound("Post not found")
    return post


def _check_owner_or_admin(post: Post, current_user: TokenClaims, action: str) -> None:
    if post.author_id != current_user.user_id and current_user.role != UserRole.ADMIN:
        logger.warning("User %s denied %s on post %s", current_user.user_id, action, post.id)
        raise AuthorizationDenied(f"You can only {action} your own posts")


def _check_categories(session: Session, category_ids) -> None:
    if category_ids and crud_posts.missing_category_ids(session, category_ids):
        raise ResourceNotFound("One or more categories not found")


@router.post(
    "",
    response_model=APIResponse[PostResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a new post",
)
def create_post(
    post_in: PostCreate,
    current_user: CurrentUser,
    session: Session = Depends(get_session)
):
    """Create a new post owned by the caller"""
    if crud_posts.get_by_slug(session, post_in.slug):
        raise ResourceConflict(crud_posts.SLUG_CONFLICT)
    _check_categories(session, post_in.category_ids)

    post = crud_posts.create_post(session, post_in, author_id=current_user.user_id)
    return APIResponse(
        message="Post created successfully",
        data=PostResponse.model_validate(post),
    )


@router.get("", response_model=PaginatedResponse[PostListItem], summary="List posts")
def list_posts(
    params: Annotated[PostListParams, Query()],
    session: Session = Depends(get_session)
):
    """List posts with filters, sorting and pagination"""
    posts, total = crud_posts.list_posts(session, params)
    return PaginatedResponse(
        data=[PostListItem.model_validate(post) for post in posts],
        pagination=Pagination.build(params.page, params.limit, total),
    )


@router.get("/{post_id}", response_model=APIResponse[PostResponse], summary="Get a specific post")
def get_post(
    post_id: int,
    session: Session = Depends(get_session)
):
    """Get a specific post with its author and categories"""
    post = _load_post(session, post_id)
    return APIResponse(
        message="Post retrieved successfully",
        data=PostResponse.model_validate(post),
    )


@router.patch("/{post_id}", response_model=APIResponse[PostResponse], summary="Update a post")
def update_post(
    post_id: int,
    post_update: PostUpdate,
    current_user: CurrentUser,
    session: Session = Depends(get_session)
):
    """Update a post; only its author or an admin may do this"""
    post = _load_post(session, post_id)
    _check_owner_or_admin(post, current_user, "edit")

    if post_update.slug and post_update.slug != post.slug:
        if crud_posts.get_by_slug(session, post_update.slug):
            raise ResourceConflict(crud_posts.SLUG_CONFLICT)
    _check_categories(session, post_update.category_ids)

    post = crud_posts.update_post(session, post, post_update)
    return APIResponse(
        message="Post updated successfully",
        data=PostResponse.model_validate(post),
    )


@router.delete("/{post_id}", response_model=APIResponse[None], summary="Delete a post")
def delete_post(
    post_id: int,
    current_user: CurrentUser,
    session: Session = Depends(get_session)
):
    """Delete a post and its category links"""
    post = _load_post(session, post_id)
    _check_owner_or_admin(post, current_user, "delete")

    crud_posts.delete_post(session, post)
    return APIResponse(message="Post deleted successfully")
