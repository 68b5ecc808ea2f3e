"""
Intent types accepted by the SessionController.

Intents are the only way the presentation shell changes session state.
Each one is a frozen value; the controller answers every synchronous
intent with an IntentResult.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional

from errlens.catalog.snippets import ExplanationStyle
from errlens.session.state import ResultView, SessionState


@dataclass(frozen=True)
class SelectSnippet:
    snippet_id: str


@dataclass(frozen=True)
class SelectStyle:
    style: ExplanationStyle | str


@dataclass(frozen=True)
class SelectModel:
    model: str


@dataclass(frozen=True)
class ToggleErrorPanel:
    pass


@dataclass(frozen=True)
class ShowResult:
    """Switch the error panel between the standard and improved tab."""

    view: ResultView


@dataclass(frozen=True)
class OpenFeedbackForm:
    pass


@dataclass(frozen=True)
class SubmitFeedback:
    """Answers keyed by question id; every question must be answered."""

    answers: Mapping[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class CancelFeedbackForm:
    pass


@dataclass(frozen=True)
class RequestGeneration:
    """Handled by SessionController.request_generation() (it awaits the model)."""

    pass


Intent = (
    SelectSnippet
    | SelectStyle
    | SelectModel
    | ToggleErrorPanel
    | ShowResult
    | OpenFeedbackForm
    | SubmitFeedback
    | CancelFeedbackForm
    | RequestGeneration
)


@dataclass(frozen=True)
class IntentResult:
    """
    Outcome of one intent.

    Attributes:
        state: Session state after the intent (unchanged apart from the
            notice when rejected)
        accepted: False when the intent was refused as a no-op
        reason: Human-readable refusal reason
    """

    state: SessionState
    accepted: bool = True
    reason: Optional[str] = None
