"""Session state value and the pure reducers that move it.

SessionState is immutable; every selection intent maps (state, intent)
to a new state. Reducers do not touch the cache. They are told, through
has_explanation, whether an identity currently has a cached explanation.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional

from errlens.catalog.snippets import ExplanationStyle
from errlens.session.identity import Identity

HasExplanation = Callable[[Identity], bool]


class ResultView(Enum):
    STANDARD = "standard"
    IMPROVED = "improved"


@dataclass(frozen=True)
class Notice:
    """Transient message for the user; cleared by the next intent."""

    level: str  # "info" | "error"
    message: str

    @classmethod
    def info(cls, message: str) -> "Notice":
        return cls("info", message)

    @classmethod
    def error(cls, message: str) -> "Notice":
        return cls("error", message)


@dataclass(frozen=True)
class SessionState:
    """Everything the shell needs to know about the current selection."""

    snippet_id: str
    style: ExplanationStyle
    model: str
    error_panel_visible: bool = False
    result_view: ResultView = ResultView.STANDARD
    feedback_target: Optional[Identity] = None
    notice: Optional[Notice] = None

    @property
    def identity(self) -> Identity:
        return Identity(self.snippet_id, self.style, self.model)

    @property
    def feedback_open(self) -> bool:
        return self.feedback_target is not None


def _reselect(state: SessionState, has_explanation: HasExplanation, **changes) -> SessionState:
    new = replace(state, notice=None, **changes)

    # Never leave the improved tab pointing at another identity's explanation
    if new.result_view is ResultView.IMPROVED and not has_explanation(new.identity):
        new = replace(new, result_view=ResultView.STANDARD)

    # The feedback form belongs to the identity it was opened for
    if new.feedback_target is not None and new.feedback_target != new.identity:
        new = replace(new, feedback_target=None)
    return new


def select_snippet(state: SessionState, snippet_id: str, has_explanation: HasExplanation) -> SessionState:
    return _reselect(state, has_explanation, snippet_id=snippet_id)


def select_style(state: SessionState, style: ExplanationStyle, has_explanation: HasExplanation) -> SessionState:
    return _reselect(state, has_explanation, style=style)


def select_model(state: SessionState, model: str) -> SessionState:
    """A new model always starts from the standard error, form closed."""
    return replace(
        state,
        model=model,
        result_view=ResultView.STANDARD,
        feedback_target=None,
        notice=None,
    )


def toggle_error_panel(state: SessionState) -> SessionState:
    return replace(state, error_panel_visible=not state.error_panel_visible, notice=None)


def show_result(state: SessionState, view: ResultView) -> SessionState:
    return replace(state, result_view=view, error_panel_visible=True, notice=None)


def open_feedback_form(state: SessionState) -> SessionState:
    # The error panel stays visible for side-by-side comparison
    return replace(state, feedback_target=state.identity, error_panel_visible=True, notice=None)


def close_feedback_form(state: SessionState, notice: Optional[Notice] = None) -> SessionState:
    return replace(state, feedback_target=None, notice=notice)


def generation_finished(state: SessionState, identity: Identity, notice: Notice) -> SessionState:
    """Show the new explanation if the user is still looking at its identity."""
    if state.identity == identity:
        return replace(
            state,
            result_view=ResultView.IMPROVED,
            error_panel_visible=True,
            notice=notice,
        )
    return replace(state, notice=notice)
