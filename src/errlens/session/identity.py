"""Identity and Explanation value types."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from errlens.catalog.snippets import ExplanationStyle


@dataclass(frozen=True)
class Identity:
    """The (snippet, style, model) triple that addresses one explanation lineage.

    Equal iff all three components are equal; never partially matched.
    """

    snippet_id: str
    style: ExplanationStyle
    model: str

    @property
    def key(self) -> str:
        """Flat string form, e.g. 'snippet-1-pragmatic-llama3.2:latest'."""
        return f"{self.snippet_id}-{self.style.value}-{self.model}"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class Explanation:
    """A model-generated replacement for a standard error message."""

    identity: Identity
    content: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
