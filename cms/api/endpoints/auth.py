import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from cms.core.config import Settings
from cms.core.exceptions import AuthenticationRequired
from cms.core.security import get_settings_from_app, issue_token_for, verify_password
from cms.crud import users as crud_users
from cms.db.database import get_session
from cms.schemas.common import APIResponse
from cms.schemas.user import LoginResult, UserCreate, UserLogin, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=APIResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
def register(
    user_in: UserCreate,
    session: Session = Depends(get_session)
):
    """Create a new user; username and email must be unique"""
    user = crud_users.create_user(
        session,
        username=user_in.username,
        email=user_in.email,
        password=user_in.password,
        role=user_in.role,
    )
    logger.info("User %s registered with role %s", user.username, user.role.value)
    return APIResponse(
        message="User registered successfully",
        data=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=APIResponse[LoginResult], summary="Log in and receive a token")
def login(
    user_in: UserLogin,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings_from_app)
):
    """Login a user"""
    user = crud_users.get_by_username(session, user_in.username)
    if not user or not verify_password(user_in.password, user.password):
        logger.warning("Failed login for %s", user_in.username)
        raise AuthenticationRequired("Invalid username or password")

    token = issue_token_for(user, settings)
    return APIResponse(
        message="Login successful",
        data=LoginResult(user=UserResponse.model_validate(user), token=token),
    )
