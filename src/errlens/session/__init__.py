"""Session Module - Explanation cache, feedback store and the controller.

Usage:
    from errlens.session import build_controller, SelectStyle

    controller = build_controller(settings)
    await controller.request_generation()
    controller.handle(SelectStyle("contingent"))
"""

from errlens.session.cache import ExplanationCache, ExplanationState, LockPolicy
from errlens.session.controller import (
    EditorView,
    SessionController,
    SessionView,
    build_controller,
)
from errlens.session.feedback import (
    FEEDBACK_QUESTIONS,
    FeedbackQuestion,
    FeedbackRecord,
    FeedbackStore,
    parse_export,
)
from errlens.session.identity import Explanation, Identity
from errlens.session.intents import (
    CancelFeedbackForm,
    IntentResult,
    OpenFeedbackForm,
    RequestGeneration,
    SelectModel,
    SelectSnippet,
    SelectStyle,
    ShowResult,
    SubmitFeedback,
    ToggleErrorPanel,
)
from errlens.session.state import Notice, ResultView, SessionState

__all__ = [
    "ExplanationCache",
    "ExplanationState",
    "LockPolicy",
    "EditorView",
    "SessionController",
    "SessionView",
    "build_controller",
    "FEEDBACK_QUESTIONS",
    "FeedbackQuestion",
    "FeedbackRecord",
    "FeedbackStore",
    "parse_export",
    "Explanation",
    "Identity",
    "CancelFeedbackForm",
    "IntentResult",
    "OpenFeedbackForm",
    "RequestGeneration",
    "SelectModel",
    "SelectSnippet",
    "SelectStyle",
    "ShowResult",
    "SubmitFeedback",
    "ToggleErrorPanel",
    "Notice",
    "ResultView",
    "SessionState",
]
