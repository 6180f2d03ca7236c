"""
LLM Provider Base - Abstract base for generation API providers.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, Sequence
from dataclasses import dataclass, field

from ..models.chat import ConversationTurn


@dataclass
class LLMResponse:
    """Response from a generation API call."""
    content: str
    model: str = ""
    usage: Dict[str, int] = field(default_factory=dict)
    raw: Optional[Dict[str, Any]] = None


class LLMProvider(ABC):
    """
    Abstract base class for generation API providers.

    Providers raise ``UpstreamUnavailableError`` when the service cannot be
    reached or answers with a non-success status, and
    ``UpstreamMalformedError`` when the answer carries no reply text.
    """

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None,
                 default_temperature: float = 0.8, default_max_tokens: int = 300):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens

    @abstractmethod
    async def generate(
        self,
        system_instruction: str,
        turns: Sequence[ConversationTurn],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """
        Generate the next assistant turn.

        Args:
            system_instruction: Fixed persona/knowledge prompt
            turns: Full ordered conversation, newest user turn last
            temperature: Sampling temperature override
            max_tokens: Output length cap override

        Returns:
            LLMResponse with the generated reply text
        """
        pass
