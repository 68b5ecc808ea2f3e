"""Catalog Module - The fixed study material.

Exposes:
    - Snippet / SnippetCatalog: failing code samples and their tracebacks
    - ExplanationStyle: the styles an explanation can be requested in
    - MODELS / DEFAULT_MODEL: the Ollama model catalog

Usage:
    from errlens.catalog import SnippetCatalog

    catalog = SnippetCatalog()
    snippet = catalog.get("snippet-1")
"""

from errlens.catalog.snippets import (
    DEFAULT_MODEL,
    MODELS,
    SNIPPETS,
    ExplanationStyle,
    Snippet,
    SnippetCatalog,
)

__all__ = [
    "DEFAULT_MODEL",
    "MODELS",
    "SNIPPETS",
    "ExplanationStyle",
    "Snippet",
    "SnippetCatalog",
]
