from datetime import datetime, timedelta, UTC
from typing import Annotated
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError
from cms.core.config import Settings
from cms.core.exceptions import AuthenticationRequired, AuthorizationDenied
from cms.models.user import UserRole
from cms.schemas.user import TokenClaims

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)

ALGORITHM = "HS256"
DEFAULT_TOKEN_LIFETIME = timedelta(days=7)
BEARER_PREFIX = "Bearer "

# Raw Authorization header; the Bearer prefix is checked by extract_bearer
authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


def get_password_hash(password: str) -> str:
    """生成密码哈希"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # unknown or corrupt hash format
        return False


def create_access_token(
    claims: TokenClaims,
    secret_key: str,
    expires_delta: timedelta | None = None,
    algorithm: str = ALGORITHM,
) -> str:
    """创建访问令牌"""
    to_encode = claims.model_dump(by_alias=True, mode="json")
    expire = datetime.now(UTC) + (expires_delta if expires_delta is not None else DEFAULT_TOKEN_LIFETIME)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def verify_token(token: str, secret_key: str, algorithm: str = ALGORITHM) -> TokenClaims | None:
    """Decode a token; None for a bad signature, expiry, or malformed payload."""
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
        return TokenClaims.model_validate(payload)
    except (JWTError, ValidationError):
        return None


def extract_bearer(header_value: str | None) -> str | None:
    """Token from an ``Authorization: Bearer <token>`` header, else None."""
    if not header_value or not header_value.startswith(BEARER_PREFIX):
        return None
    token = header_value[len(BEARER_PREFIX):]
    return token or None


def issue_token_for(user, settings: Settings) -> str:
    claims = TokenClaims(user_id=user.id, username=user.username, email=user.email, role=user.role)
    return create_access_token(
        claims,
        settings.jwt_secret,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
        algorithm=settings.jwt_algorithm,
    )


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user(
    header_value: Annotated[str | None, Depends(authorization_header)],
    settings: Annotated[Settings, Depends(get_settings_from_app)],
) -> TokenClaims:
    """获取当前用户（来自令牌声明）"""
    token = extract_bearer(header_value)
    if token is None:
        raise AuthenticationRequired("Access token required")

    claims = verify_token(token, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    if claims is None:
        raise AuthenticationRequired("Invalid or expired token")
    return claims


def require_admin(
    current_user: Annotated[TokenClaims, Depends(get_current_user)]
) -> TokenClaims:
    """要求管理员角色"""
    if current_user.role != UserRole.ADMIN:
        raise AuthorizationDenied("Admin access required")
    return current_user


CurrentUser = Annotated[TokenClaims, Depends(get_current_user)]
AdminUser = Annotated[TokenClaims, Depends(require_admin)]
