"""Runtime settings read from the environment.

Usage:
    from errlens.config import Settings

    settings = Settings.from_env()

Variables:
    LLM_PROVIDER            "local" (Ollama, default) or "groq"
    OLLAMA_HOST             Ollama server URL (client default if unset)
    GROQ_API_KEY            Groq key; apikey.env is searched if unset
    ERRLENS_FEEDBACK_PATH   JSON file holding feedback records
    ERRLENS_LOCK_POLICY     "iterate" (default) or "freeze"
    ERRLENS_TEMPERATURE     Sampling temperature (default 0.0)
    ERRLENS_SEED            Optional sampling seed
    ERRLENS_MAX_TOKENS      Optional cap on generated tokens
    ERRLENS_TIMEOUT         Optional request timeout in seconds
    ERRLENS_LOG_LEVEL       Logging level (default WARNING)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from errlens.errors import ConfigurationError
from errlens.inference.client import GenerationOptions
from errlens.session.cache import LockPolicy

PROVIDERS = ("local", "groq")
DEFAULT_FEEDBACK_PATH = "./errlens_feedback.json"


@dataclass(frozen=True)
class Settings:
    """Resolved configuration for one errlens process."""

    provider: str = "local"
    ollama_host: Optional[str] = None
    groq_api_key: Optional[str] = None
    feedback_path: Path = Path(DEFAULT_FEEDBACK_PATH)
    lock_policy: LockPolicy = LockPolicy.ITERATE
    temperature: float = 0.0
    seed: Optional[int] = None
    max_tokens: Optional[int] = None
    timeout: Optional[float] = None
    log_level: str = "WARNING"

    @property
    def generation_options(self) -> GenerationOptions:
        return GenerationOptions(
            temperature=self.temperature,
            seed=self.seed,
            max_tokens=self.max_tokens,
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (tests)

        Raises:
            ConfigurationError: If any variable holds an invalid value
        """
        env = os.environ if environ is None else environ

        provider = env.get("LLM_PROVIDER", "local").strip().lower()
        if provider not in PROVIDERS:
            raise ConfigurationError(
                f"LLM_PROVIDER must be one of {', '.join(PROVIDERS)}, got '{provider}'"
            )

        policy_name = env.get("ERRLENS_LOCK_POLICY", LockPolicy.ITERATE.value)
        try:
            lock_policy = LockPolicy(policy_name.strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"ERRLENS_LOCK_POLICY must be 'iterate' or 'freeze', got '{policy_name}'"
            ) from None

        temperature = _parse_number(env, "ERRLENS_TEMPERATURE", float, 0.0)
        if temperature < 0:
            raise ConfigurationError("ERRLENS_TEMPERATURE must be >= 0")

        max_tokens = _parse_number(env, "ERRLENS_MAX_TOKENS", int, None)
        if max_tokens is not None and max_tokens <= 0:
            raise ConfigurationError("ERRLENS_MAX_TOKENS must be positive")

        timeout = _parse_number(env, "ERRLENS_TIMEOUT", float, None)
        if timeout is not None and timeout <= 0:
            raise ConfigurationError("ERRLENS_TIMEOUT must be positive")

        log_level = env.get("ERRLENS_LOG_LEVEL", "WARNING").strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(f"ERRLENS_LOG_LEVEL '{log_level}' is not a logging level")

        return cls(
            provider=provider,
            ollama_host=env.get("OLLAMA_HOST") or None,
            groq_api_key=env.get("GROQ_API_KEY") or None,
            feedback_path=Path(env.get("ERRLENS_FEEDBACK_PATH", DEFAULT_FEEDBACK_PATH)),
            lock_policy=lock_policy,
            temperature=temperature,
            seed=_parse_number(env, "ERRLENS_SEED", int, None),
            max_tokens=max_tokens,
            timeout=timeout,
            log_level=log_level,
        )


def _parse_number(env: Mapping[str, str], name: str, kind, default):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a {kind.__name__}, got '{raw}'") from None
