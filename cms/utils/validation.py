import re

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SLUG_ERROR = "Slug must contain only lowercase letters, numbers, and hyphens"

_SCRIPT_RE = re.compile(r"<script[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_IFRAME_RE = re.compile(r"<iframe[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>", re.IGNORECASE)


def validate_slug(slug: str) -> bool:
    """Lowercase letters, digits and hyphens only."""
    return bool(SLUG_PATTERN.fullmatch(slug))


def validate_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.fullmatch(email))


def validate_username(username: str) -> bool:
    return 3 <= len(username) <= 50


def validate_password(password: str) -> bool:
    return len(password) >= 6


def sanitize_html(html: str) -> str:
    """Strip <script> and <iframe> elements from HTML content."""
    return _IFRAME_RE.sub("", _SCRIPT_RE.sub("", html))


def ensure_slug(value: str | None) -> str | None:
    """Pydantic validator helper: reject a slug that fails validate_slug."""
    if value is not None and not validate_slug(value):
        raise ValueError(SLUG_ERROR)
    return value


def reject_null(value):
    """Pydantic validator helper: a field may be omitted but not sent as null."""
    if value is None:
        raise ValueError("Field cannot be null")
    return value
