"""
Admin authentication utilities - password check, cookie token issue/verify.

Two token modes exist. ``legacy`` keeps the site's original cookie: base64 of
``admin:<epoch-ms>``, accepted on prefix alone. It is forgeable and never
expires server-side. ``jwt`` issues an HS256 token with an expiry.
"""

import base64
import binascii
import hmac
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Request
from jose import JWTError, jwt

from ..config import settings
from ..core.errors import UnauthenticatedError

logger = logging.getLogger(__name__)

TOKEN_PREFIX = "admin:"
ADMIN_SUBJECT = "admin"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        logger.error("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password (used to produce ADMIN_PASSWORD_HASH values)."""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def check_admin_password(password: str) -> bool:
    """Compare against the bcrypt hash if configured, else the plain setting."""
    if settings.admin_password_hash:
        return verify_password(password, settings.admin_password_hash)
    if settings.admin_password:
        return hmac.compare_digest(password.encode('utf-8'), settings.admin_password.encode('utf-8'))
    logger.warning("Admin login attempted but no admin password is configured")
    return False


def create_admin_token() -> str:
    """Issue a token for the configured mode."""
    if settings.auth_token_mode == "jwt":
        expire = datetime.now(timezone.utc) + timedelta(seconds=settings.auth_cookie_max_age)
        return jwt.encode(
            {"sub": ADMIN_SUBJECT, "exp": expire},
            settings.secret_key,
            algorithm=settings.algorithm,
        )
    raw = f"{TOKEN_PREFIX}{int(time.time() * 1000)}"
    return base64.b64encode(raw.encode('utf-8')).decode('ascii')


def verify_admin_token(token: Optional[str]) -> bool:
    if not token:
        return False

    if settings.auth_token_mode == "jwt":
        try:
            payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        except JWTError:
            return False
        return payload.get("sub") == ADMIN_SUBJECT

    try:
        decoded = base64.b64decode(token, validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError):
        return False
    return decoded.startswith(TOKEN_PREFIX)


def is_authenticated(request: Request) -> bool:
    """True if the request carries a valid admin cookie."""
    return verify_admin_token(request.cookies.get(settings.auth_cookie_name))


async def require_admin(request: Request) -> bool:
    """
    Dependency gating admin-only routes.

    Raises:
        UnauthenticatedError: cookie missing or invalid
    """
    if not is_authenticated(request):
        raise UnauthenticatedError()
    return True
