"""Exception hierarchy shared by every errlens module.

Three families:
    - Configuration errors: fatal at startup, never recovered.
    - Collaborator failures: inference or storage; the session survives them.
    - Contract violations: a caller asked for something it should have checked.
"""


class ErrlensError(Exception):
    """Base exception for all errlens errors."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class ConfigurationError(ErrlensError):
    """Raised when settings, templates or system prompts are invalid."""


class MissingTemplate(ConfigurationError):
    """No prompt template is registered for an explanation style."""

    def __init__(self, style):
        self.style = style
        super().__init__(f"No prompt template registered for style '{style}'")


class MissingSystemPrompt(ConfigurationError):
    """No system instruction is registered for a model."""

    def __init__(self, model: str):
        self.model = model
        super().__init__(f"No system prompt registered for model '{model}'")


# ---------------------------------------------------------------------------
# External collaborators
# ---------------------------------------------------------------------------

class GenerationFailed(ErrlensError):
    """The inference backend did not produce an explanation."""

    def __init__(self, cause):
        self.cause = cause
        super().__init__(f"Generation failed: {cause}")


class PersistFailed(ErrlensError):
    """Feedback could not be written to durable storage.

    The record is still held in memory by the store.
    """

    def __init__(self, path, cause):
        self.path = path
        self.cause = cause
        super().__init__(f"Could not persist feedback to {path}: {cause}")


# ---------------------------------------------------------------------------
# Caller contract
# ---------------------------------------------------------------------------

class SnippetNotFound(ErrlensError, KeyError):
    """Unknown snippet id requested from the catalog."""

    def __init__(self, snippet_id: str):
        self.snippet_id = snippet_id
        super().__init__(f"Unknown snippet id '{snippet_id}'")

    def __str__(self) -> str:
        return self.args[0]


class InFlightMismatch(ErrlensError):
    """complete()/fail() called for an identity that does not hold the slot."""


__all__ = [
    "ErrlensError",
    "ConfigurationError",
    "MissingTemplate",
    "MissingSystemPrompt",
    "GenerationFailed",
    "PersistFailed",
    "SnippetNotFound",
    "InFlightMismatch",
]
