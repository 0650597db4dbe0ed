from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from cms.models.user import UserRole
from cms.schemas.common import CamelModel


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.EDITOR


class UserLogin(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class PasswordChange(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class UserResponse(CamelModel):
    """User without the password hash"""
    id: int
    username: str
    email: str
    role: UserRole
    created_at: datetime
    updated_at: datetime


class AuthorSummary(CamelModel):
    id: int
    username: str


class AuthorDetail(AuthorSummary):
    email: str


class LoginResult(BaseModel):
    user: UserResponse
    token: str


class TokenClaims(CamelModel):
    """Identity carried inside an access token"""
    user_id: int
    username: str
    email: str
    role: UserRole
