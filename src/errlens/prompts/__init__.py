"""Prompts Module - Turns a snippet into a model request.

The user prompt is chosen by explanation style; the system instruction is
chosen by model.

Usage:
    from errlens.prompts import PromptFormatter

    formatter = PromptFormatter()
    request = formatter.format(style, snippet, model)
"""

from errlens.prompts.formatter import PromptFormatter, PromptRequest
from errlens.prompts.templates import DEFAULT_SYSTEM_PROMPTS, DEFAULT_TEMPLATES

__all__ = [
    "PromptFormatter",
    "PromptRequest",
    "DEFAULT_SYSTEM_PROMPTS",
    "DEFAULT_TEMPLATES",
]
