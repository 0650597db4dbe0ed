from fastapi import status


class CMSError(Exception):
    """Base error; every subclass maps to one HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, errors: list[str] | None = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = list(self.errors)
        return body


class AuthenticationRequired(CMSError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class AuthorizationDenied(CMSError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not enough permissions"


class ValidationFailed(CMSError):
    """Request body or query failed schema validation; ``errors`` holds one line per field."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation error"


class ResourceConflict(CMSError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class ResourceNotFound(CMSError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class BusinessRuleViolation(CMSError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operation not allowed"


class InternalError(CMSError):
    pass
