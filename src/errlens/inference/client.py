"""Inference Client - The controller's only door to a model.

The backend is untrusted: it may be slow, may fail, may return nothing.
Every one of those outcomes comes back as GenerationFailed so that no
failure can be mistaken for an explanation.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from errlens.errors import GenerationFailed
from errlens.inference.provider import llm_generate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling controls. temperature=0.0 keeps explanations reproducible."""

    temperature: float = 0.0
    seed: Optional[int] = None
    max_tokens: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "temperature": self.temperature,
            "seed": self.seed,
            "max_tokens": self.max_tokens,
        }


class InferenceClient:
    """Async client bound to one provider configuration."""

    def __init__(
        self,
        provider: str = "local",
        host: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.provider = provider
        self.host = host
        self.api_key = api_key
        self.timeout = timeout

    async def generate(
        self,
        model: str,
        system_instruction: str,
        user_prompt: str,
        options: Optional[GenerationOptions] = None,
    ) -> str:
        """
        Ask the model for an explanation.

        Returns:
            Generated text (never empty)

        Raises:
            GenerationFailed: Backend error or empty response
        """
        options = options or GenerationOptions()
        logger.debug("Generating with %s via %s", model, self.provider)

        try:
            text = await llm_generate(
                provider=self.provider,
                model=model,
                system=system_instruction,
                prompt=user_prompt,
                options=options.to_dict(),
                host=self.host,
                api_key=self.api_key,
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning("Inference call to %s failed: %s", model, e)
            raise GenerationFailed(e) from e

        if not text or not text.strip():
            logger.warning("Inference call to %s returned an empty response", model)
            raise GenerationFailed("empty response")
        return text
