"""Inference Module - Talks to the model backend.

Backends (chosen by LLM_PROVIDER):
    - "local": Ollama server (default)
    - "groq":  Groq cloud API

Usage:
    from errlens.inference import InferenceClient, GenerationOptions

    client = InferenceClient(provider="local")
    text = await client.generate(model, system_instruction, user_prompt)
"""

from errlens.inference.client import GenerationOptions, InferenceClient
from errlens.inference.provider import llm_generate

__all__ = [
    "GenerationOptions",
    "InferenceClient",
    "llm_generate",
]
