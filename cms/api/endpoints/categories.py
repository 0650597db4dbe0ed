from typing import Annotated
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from cms.core.exceptions import BusinessRuleViolation, ResourceConflict, ResourceNotFound
from cms.core.security import AdminUser
from cms.crud import categories as crud_categories
from cms.db.database import get_session
from cms.models.category import Category
from cms.schemas.category import CategoryCreate, CategoryListParams, CategoryResponse, CategoryUpdate
from cms.schemas.common import APIResponse, PaginatedResponse, Pagination

router = APIRouter()


def _to_response(category: Category, post_count: int = 0) -> CategoryResponse:
    item = CategoryResponse.model_validate(category)
    item.post_count = post_count
    return item


def _load_category(session: Session, category_id: int) -> Category:
    category = crud_categories.get_category(session, category_id)
    if not category:
        raise ResourceNotFound("Category not found")
    return category


def _check_unique(session: Session, name: str | None, slug: str | None, current: Category | None = None) -> None:
    if slug and (current is None or slug != current.slug):
        if crud_categories.get_by_slug(session, slug):
            raise ResourceConflict("Category slug already exists")
    if name and (current is None or name != current.name):
        if crud_categories.get_by_name(session, name):
            raise ResourceConflict("Category name already exists")


@router.post(
    "",
    response_model=APIResponse[CategoryResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a new category",
)
def create_category(
    category_in: CategoryCreate,
    current_user: AdminUser,
    session: Session = Depends(get_session)
):
    """Create a new category (admin only)"""
    _check_unique(session, category_in.name, category_in.slug)
    category = crud_categories.create_category(session, category_in)
    return APIResponse(message="Category created successfully", data=_to_response(category))


@router.get("", response_model=PaginatedResponse[CategoryResponse], summary="List categories")
def list_categories(
    params: Annotated[CategoryListParams, Query()],
    session: Session = Depends(get_session)
):
    """List categories with their post counts"""
    rows, total = crud_categories.list_categories(session, params)
    return PaginatedResponse(
        data=[_to_response(category, count) for category, count in rows],
        pagination=Pagination.build(params.page, params.limit, total),
    )


@router.get("/{category_id}", response_model=APIResponse[CategoryResponse], summary="Get a specific category")
def get_category(
    category_id: int,
    session: Session = Depends(get_session)
):
    """Get a specific category"""
    row = crud_categories.get_with_post_count(session, category_id)
    if row is None:
        raise ResourceNotFound("Category not found")
    category, post_count = row
    return APIResponse(message="Category retrieved successfully", data=_to_response(category, post_count))


@router.patch("/{category_id}", response_model=APIResponse[CategoryResponse], summary="Update a category")
def update_category(
    category_id: int,
    category_update: CategoryUpdate,
    current_user: AdminUser,
    session: Session = Depends(get_session)
):
    """Update a category (admin only)"""
    category = _load_category(session, category_id)
    _check_unique(session, category_update.name, category_update.slug, current=category)

    category = crud_categories.update_category(session, category, category_update)
    post_count = crud_categories.count_posts(session, category.id)
    return APIResponse(message="Category updated successfully", data=_to_response(category, post_count))


@router.delete("/{category_id}", response_model=APIResponse[None], summary="Delete a category")
def delete_category(
    category_id: int,
    current_user: AdminUser,
    session: Session = Depends(get_session)
):
    """Delete a category that no post uses (admin only)"""
    category = _load_category(session, category_id)
    if crud_categories.count_posts(session, category.id) > 0:
        raise BusinessRuleViolation("Cannot delete category with associated posts")

    crud_categories.delete_category(session, category)
    return APIResponse(message="Category deleted successfully")
