"""LLM Provider - Toggle between Ollama (local) and Groq (cloud).

Usage:
    from errlens.inference.provider import llm_generate

    text = await llm_generate(
        provider="local",
        model="llama3.2:latest",
        system="You are a Python tutor.",
        prompt="Explain this traceback...",
        options={"temperature": 0.0},
    )

Default provider is "local" (Ollama). For "groq", set GROQ_API_KEY or put
the key in an apikey.env file in the working directory.
"""

import os
import re
from pathlib import Path
from typing import Any, Optional

import ollama

# ---------------------------------------------------------------------------
# Provider backends
# ---------------------------------------------------------------------------

async def _call_ollama(
    model: str,
    system: str,
    prompt: str,
    options: dict[str, Any],
    host: Optional[str] = None,
    timeout: Optional[float] = None,
) -> str:
    """Call the local Ollama server's chat endpoint."""
    client_kwargs: dict[str, Any] = {}
    if timeout is not None:
        client_kwargs["timeout"] = timeout
    client = ollama.AsyncClient(host=host, **client_kwargs)

    ollama_options = {"temperature": options.get("temperature", 0.0)}
    if options.get("seed") is not None:
        ollama_options["seed"] = options["seed"]
    if options.get("max_tokens") is not None:
        ollama_options["num_predict"] = options["max_tokens"]

    response = await client.chat(
        model=model,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
        options=ollama_options,
    )
    return response["message"]["content"].strip()


async def _call_groq(
    model: str,
    system: str,
    prompt: str,
    options: dict[str, Any],
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
) -> str:
    """Call the Groq cloud API."""
    from groq import AsyncGroq

    if not api_key:
        api_key = os.environ.get("GROQ_API_KEY") or _load_api_key()

    client_kwargs: dict[str, Any] = {"api_key": api_key}
    if timeout is not None:
        client_kwargs["timeout"] = timeout
    client = AsyncGroq(**client_kwargs)

    request: dict[str, Any] = {
        "model": model,
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
        "temperature": options.get("temperature", 0.0),
    }
    if options.get("seed") is not None:
        request["seed"] = options["seed"]
    if options.get("max_tokens") is not None:
        request["max_tokens"] = options["max_tokens"]

    response = await client.chat.completions.create(**request)
    text = (response.choices[0].message.content or "").strip()

    # Reasoning models wrap chain-of-thought in <think> tags
    return re.sub(r"<think>.*?</think>", "", text, flags=re.DOTALL).strip()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Local Ollama names → Groq-hosted equivalents
GROQ_MODEL_MAP = {
    "llama3.2:latest": "llama-3.1-8b-instant",
    "codellama:latest": "llama-3.3-70b-versatile",
    "mistral:latest": "llama-3.3-70b-versatile",
    "phi3:latest": "llama-3.1-8b-instant",
    "qwen2:latest": "qwen/qwen3-32b",
}


def _load_api_key(search_dirs: Optional[list[Path]] = None) -> str:
    """Read the Groq API key from apikey.env."""
    if search_dirs is None:
        search_dirs = [Path.cwd()]

    for d in search_dirs:
        env_file = d / "apikey.env"
        if env_file.exists():
            for line in env_file.read_text().splitlines():
                line = line.strip()
                if line and not line.startswith("#"):
                    # Accepts: groq="gsk_..." or GROQ_API_KEY=gsk_...
                    _, _, value = line.partition("=")
                    value = value.strip().strip("\"'")
                    if value.startswith("gsk_"):
                        return value

    raise RuntimeError(
        "Groq API key not found. "
        "Set GROQ_API_KEY or create apikey.env with: groq=\"gsk_your_key_here\""
    )


def _resolve_model(model: str, provider: str) -> str:
    """Map local model names to Groq equivalents when needed."""
    if provider == "groq":
        return GROQ_MODEL_MAP.get(model, model)
    return model


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def llm_generate(
    provider: str,
    model: str,
    system: str,
    prompt: str,
    options: Optional[dict[str, Any]] = None,
    host: Optional[str] = None,
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Generate text from whichever backend is configured.

    Args:
        provider:    "local" (Ollama) or "groq"
        model:       Ollama model name (auto-mapped for Groq)
        system:      System instruction
        prompt:      User prompt
        options:     temperature / seed / max_tokens
        host:        Ollama host override
        api_key:     Groq key override
        timeout:     Request timeout in seconds

    Returns:
        The model's text response, stripped of whitespace.

    Raises:
        Whatever the backend raises; callers wrap it.
    """
    options = options or {}
    resolved_model = _resolve_model(model, provider)

    if provider == "groq":
        return await _call_groq(resolved_model, system, prompt, options, api_key, timeout)
    return await _call_ollama(resolved_model, system, prompt, options, host, timeout)
