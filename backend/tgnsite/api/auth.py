"""
Admin authentication API endpoints.
"""

import json
import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from ..config import settings
from ..utils.auth import check_admin_password, create_admin_token, is_authenticated

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["authentication"])


@router.post("")
async def login(request: Request):
    """
    Log in with the admin password.

    Sets the ``auth_token`` cookie on success.
    """
    try:
        body = await request.json()
        password = body["password"]
        if not isinstance(password, str):
            raise TypeError("password must be a string")
    except (json.JSONDecodeError, UnicodeDecodeError, KeyError, TypeError):
        return JSONResponse(
            {"success": False, "error": "リクエストエラー"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if not check_admin_password(password):
        logger.warning("Admin login failed")
        return JSONResponse(
            {"success": False, "error": "パスワードが違います"},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    token = create_admin_token()
    response = JSONResponse({"success": True, "token": token})
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.auth_cookie_max_age,
        path="/",
        httponly=True,
        samesite="strict",
    )
    logger.info("Admin logged in")
    return response


@router.get("")
async def check_auth(request: Request):
    """Report whether the caller holds a valid admin cookie."""
    if is_authenticated(request):
        return {"authenticated": True}
    return JSONResponse({"authenticated": False}, status_code=status.HTTP_401_UNAUTHORIZED)
