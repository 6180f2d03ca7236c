"""
Google Gemini LLM Provider.
Calls the generateContent REST endpoint with a system instruction, the
conversation history, fixed sampling settings and permissive safety thresholds.
"""

import httpx
import logging
import time
from typing import Optional, List, Dict, Any, Sequence

from .base import LLMProvider, LLMResponse
from ..core.errors import UpstreamMalformedError, UpstreamUnavailableError
from ..models.chat import ConversationTurn

logger = logging.getLogger(__name__)

HARM_CATEGORIES = [
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
]

# Only egregious content is blocked
SAFETY_THRESHOLD = "BLOCK_ONLY_HIGH"


class GeminiProvider(LLMProvider):
    """Provider for the Gemini generative language API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        default_temperature: float = 0.8,
        default_max_tokens: int = 300,
        timeout: float = 60.0,
    ):
        super().__init__(api_key, model, base_url, default_temperature, default_max_tokens)
        self.timeout = timeout

    def _get_headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    @staticmethod
    def _format_contents(turns: Sequence[ConversationTurn]) -> List[Dict[str, Any]]:
        """Convert turns to Gemini ``contents``; assistant turns use role ``model``."""
        return [
            {
                "role": "model" if turn.role == "assistant" else "user",
                "parts": [{"text": turn.text}],
            }
            for turn in turns
        ]

    def build_payload(
        self,
        system_instruction: str,
        turns: Sequence[ConversationTurn],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "contents": self._format_contents(turns),
            "generationConfig": {
                "temperature": temperature if temperature is not None else self.default_temperature,
                "maxOutputTokens": max_tokens or self.default_max_tokens,
            },
            "safetySettings": [
                {"category": category, "threshold": SAFETY_THRESHOLD}
                for category in HARM_CATEGORIES
            ],
        }

    @staticmethod
    def extract_text(data: Any) -> Optional[str]:
        """Return ``candidates[0].content.parts[0].text`` or None."""
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return None
        return text if isinstance(text, str) and text else None

    async def generate(
        self,
        system_instruction: str,
        turns: Sequence[ConversationTurn],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """Send one generateContent request. No retry."""
        start_time = time.time()
        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = self.build_payload(system_instruction, turns, temperature, max_tokens)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"LLM API call starting: provider=gemini, model={self.model}, "
                f"temperature={payload['generationConfig']['temperature']}, {len(turns)} turns"
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._get_headers())
        except httpx.HTTPError as e:
            logger.error(
                f"LLM API call failed: {e!r}",
                extra={"extra_fields": {
                    "provider": "gemini",
                    "model": self.model,
                    "duration_ms": round((time.time() - start_time) * 1000, 2),
                }}
            )
            raise UpstreamUnavailableError(f"Gemini request failed: {e!r}") from e

        duration_ms = round((time.time() - start_time) * 1000, 2)

        if resp.status_code < 200 or resp.status_code >= 300:
            logger.error(
                f"Gemini API Error: {resp.status_code}",
                extra={"extra_fields": {
                    "provider": "gemini",
                    "model": self.model,
                    "status_code": resp.status_code,
                    "response_body": resp.text,
                    "duration_ms": duration_ms,
                }}
            )
            raise UpstreamUnavailableError(f"Gemini returned status {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            logger.error(f"Gemini returned a non-JSON body: {resp.text[:500]}")
            raise UpstreamMalformedError("Gemini returned a non-JSON body") from e

        text = self.extract_text(data)
        if text is None:
            logger.error(
                "Unexpected Gemini response",
                extra={"extra_fields": {"provider": "gemini", "response_body": data}}
            )
            raise UpstreamMalformedError("Gemini response has no candidate text")

        usage = data.get("usageMetadata") or {}
        logger.info(
            "LLM API call completed",
            extra={"extra_fields": {
                "provider": "gemini",
                "model": data.get("modelVersion") or self.model,
                "prompt_tokens": usage.get("promptTokenCount", 0),
                "completion_tokens": usage.get("candidatesTokenCount", 0),
                "total_tokens": usage.get("totalTokenCount", 0),
                "duration_ms": duration_ms,
            }}
        )

        return LLMResponse(
            content=text,
            model=data.get("modelVersion") or self.model,
            usage=usage,
            raw=data,
        )
