"""
Donation checkout API endpoint.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from ..config import settings
from ..core.errors import AppError, ConfigurationError, InvalidInputError
from ..services.checkout import StripeCheckoutClient
from .chat import CORS_HEADERS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["donation"])


def get_checkout_client() -> Optional[StripeCheckoutClient]:
    """Get configured Stripe client or None."""
    if not settings.stripe_secret_key:
        return None
    return StripeCheckoutClient(
        secret_key=settings.stripe_secret_key,
        api_base=settings.stripe_api_base,
        currency=settings.donation_currency,
        success_url=settings.donation_success_url,
        cancel_url=settings.donation_cancel_url,
        timeout=settings.stripe_timeout,
    )


def validate_amount(body) -> int:
    """Accept only the fixed donation amounts, as integers."""
    amount = body.get("amount") if isinstance(body, dict) else None
    if isinstance(amount, bool) or not isinstance(amount, int) or amount not in settings.donation_amounts:
        raise InvalidInputError("無効な金額です", reply="選べる金額は " + " / ".join(
            f"{a}円" for a in settings.donation_amounts
        ) + " だよ！")
    return amount


@router.post("/create-checkout")
async def create_checkout(
    request: Request,
    client: Optional[StripeCheckoutClient] = Depends(get_checkout_client),
):
    """Create a Stripe Checkout Session and return its redirect URL."""
    try:
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = None
        amount = validate_amount(body)

        if client is None:
            logger.error("STRIPE_SECRET_KEY is not configured")
            raise ConfigurationError()

        url = await client.create_donation_session(amount)
    except AppError as e:
        return JSONResponse(e.to_payload(), status_code=e.status_code, headers=CORS_HEADERS)
    except Exception as e:
        logger.error(f"Checkout error: {e!r}", exc_info=True)
        error = AppError("サーバーエラーが発生しました")
        return JSONResponse(error.to_payload(), status_code=500, headers=CORS_HEADERS)

    return JSONResponse({"url": url}, headers=CORS_HEADERS)


@router.options("/create-checkout")
async def create_checkout_preflight():
    """CORS preflight."""
    return Response(status_code=200, headers=CORS_HEADERS)
