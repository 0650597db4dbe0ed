from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from cms.core.exceptions import AuthenticationRequired, ResourceNotFound
from cms.core.security import CurrentUser, verify_password
from cms.crud import users as crud_users
from cms.db.database import get_session
from cms.schemas.common import APIResponse
from cms.schemas.user import PasswordChange, UserResponse

router = APIRouter()


@router.get("", response_model=APIResponse[UserResponse], summary="Get the current user")
def get_profile(
    current_user: CurrentUser,
    session: Session = Depends(get_session)
):
    """Get the current user"""
    user = crud_users.get_by_id(session, current_user.user_id)
    if not user:
        raise ResourceNotFound("User not found")
    return APIResponse(
        message="Profile retrieved successfully",
        data=UserResponse.model_validate(user),
    )


@router.post("/change-password", response_model=APIResponse[None], summary="Change the current user's password")
def change_password(
    body: PasswordChange,
    current_user: CurrentUser,
    session: Session = Depends(get_session)
):
    """Change password after checking the current one"""
    user = crud_users.get_by_id(session, current_user.user_id)
    if not user or not verify_password(body.current_password, user.password):
        raise AuthenticationRequired("Current password is incorrect")

    crud_users.update_password(session, user, body.new_password)
    return APIResponse(message="Password changed successfully")
