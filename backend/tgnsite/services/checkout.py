"""
Stripe Checkout client for donations.

Talks to the Stripe REST API directly with form-encoded requests.
"""

import httpx
import logging
from typing import Dict

from ..core.errors import UpstreamMalformedError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

CHECKOUT_ERROR_MESSAGE = "決済セッションの作成に失敗しました"
CHECKOUT_ERROR_REPLY = "ごめんね、決済ページを開けなかったよ😢 時間をおいてもう一度試してね。"


class StripeCheckoutClient:
    """Creates hosted Checkout Sessions for fixed donation amounts."""

    def __init__(
        self,
        secret_key: str,
        api_base: str = "https://api.stripe.com/v1",
        currency: str = "jpy",
        success_url: str = "https://tgn.official.jp/donate/success",
        cancel_url: str = "https://tgn.official.jp/donate",
        timeout: float = 30.0,
    ):
        self.secret_key = secret_key
        self.api_base = api_base
        self.currency = currency
        self.success_url = success_url
        self.cancel_url = cancel_url
        self.timeout = timeout

    def _get_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.secret_key}"}

    def build_form(self, amount: int) -> Dict[str, str]:
        return {
            "mode": "payment",
            "success_url": self.success_url,
            "cancel_url": self.cancel_url,
            "line_items[0][price_data][currency]": self.currency,
            "line_items[0][price_data][product_data][name]": f"TGN応援寄付 {amount}円",
            "line_items[0][price_data][product_data][description]": "つくば院生ネットワーク（TGN）への寄付",
            "line_items[0][price_data][unit_amount]": str(amount),
            "line_items[0][quantity]": "1",
            "submit_type": "donate",
        }

    async def create_donation_session(self, amount: int) -> str:
        """
        Create a Checkout Session and return its redirect URL.

        Raises:
            UpstreamUnavailableError: Stripe unreachable or non-success status
            UpstreamMalformedError: success response without a url
        """
        url = f"{self.api_base}/checkout/sessions"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, data=self.build_form(amount), headers=self._get_headers())
        except httpx.HTTPError as e:
            logger.error(f"Stripe request failed: {e!r}")
            raise UpstreamUnavailableError(CHECKOUT_ERROR_MESSAGE, reply=CHECKOUT_ERROR_REPLY) from e

        if resp.status_code < 200 or resp.status_code >= 300:
            logger.error(
                f"Stripe error: {resp.status_code}",
                extra={"extra_fields": {"status_code": resp.status_code, "response_body": resp.text}}
            )
            raise UpstreamUnavailableError(CHECKOUT_ERROR_MESSAGE, reply=CHECKOUT_ERROR_REPLY)

        try:
            session_url = resp.json().get("url")
        except (ValueError, AttributeError):
            session_url = None
        if not session_url:
            logger.error(f"Stripe response without url: {resp.text[:500]}")
            raise UpstreamMalformedError(CHECKOUT_ERROR_MESSAGE, reply=CHECKOUT_ERROR_REPLY)

        logger.info("Donation checkout session created", extra={"extra_fields": {"amount": amount}})
        return session_url
