"""Session Controller - Turns user intents into state, cache and store calls.

The controller owns the selection (snippet, style, model) and the panel
flags. The ExplanationCache owns explanations, the FeedbackStore owns
feedback records; the controller only issues commands to them.

Only request_generation() awaits. Everything else completes immediately,
so the shell can keep handling intents while a generation is outstanding.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from errlens.catalog.snippets import MODELS, ExplanationStyle, Snippet, SnippetCatalog
from errlens.errors import GenerationFailed, PersistFailed
from errlens.inference.client import GenerationOptions, InferenceClient
from errlens.prompts.formatter import PromptFormatter
from errlens.session import state as reducers
from errlens.session.cache import ExplanationCache
from errlens.session.feedback import FeedbackRecord, FeedbackStore, answer_problems
from errlens.session.identity import Explanation
from errlens.session.intents import (
    CancelFeedbackForm,
    Intent,
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

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditorView:
    """What the read-only code editor widget is given."""

    source_text: str
    read_only: bool = True
    syntax_hint: str = "python"


@dataclass(frozen=True)
class SessionView:
    """Read model derived from state + cache for rendering."""

    snippet: Snippet
    editor: EditorView
    standard_error: str
    explanation: Optional[Explanation]
    active_tab: ResultView
    error_panel_visible: bool
    can_generate: bool
    can_give_feedback: bool
    is_generating: bool
    feedback_open: bool
    notice: Optional[Notice]


class SessionController:
    """Orchestrates formatter, client, cache and store for one session."""

    def __init__(
        self,
        catalog: SnippetCatalog,
        formatter: PromptFormatter,
        client: InferenceClient,
        cache: ExplanationCache,
        store: FeedbackStore,
        models: Sequence[str] = MODELS,
        options: Optional[GenerationOptions] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        if not models:
            raise ValueError("SessionController needs at least one model")

        self.catalog = catalog
        self.formatter = formatter
        self.client = client
        self.cache = cache
        self.store = store
        self.models = tuple(models)
        self.options = options or GenerationOptions()
        self._clock = clock

        self._state = SessionState(
            snippet_id=catalog.first().id,
            style=list(ExplanationStyle)[0],
            model=self.models[0],
        )

    @property
    def state(self) -> SessionState:
        return self._state

    # ── Read model ─────────────────────────────────────────────

    def view(self) -> SessionView:
        state = self._state
        identity = state.identity
        snippet = self.catalog.get(state.snippet_id)
        explanation = self.cache.get(identity)

        active_tab = state.result_view
        if explanation is None:
            active_tab = ResultView.STANDARD

        return SessionView(
            snippet=snippet,
            editor=EditorView(source_text=snippet.code),
            standard_error=snippet.standard_error,
            explanation=explanation,
            active_tab=active_tab,
            error_panel_visible=state.error_panel_visible,
            can_generate=self.cache.can_generate(identity) and state.feedback_target != identity,
            can_give_feedback=self.cache.can_review(identity) and not state.feedback_open,
            is_generating=self.cache.in_flight is not None,
            feedback_open=state.feedback_open,
            notice=state.notice,
        )

    # ── Intents ────────────────────────────────────────────────

    async def dispatch(self, intent: Intent) -> IntentResult:
        """Route any intent, awaiting only for RequestGeneration."""
        if isinstance(intent, RequestGeneration):
            return await self.request_generation()
        return self.handle(intent)

    def handle(self, intent: Intent) -> IntentResult:
        """
        Apply a synchronous intent.

        Raises:
            TypeError: For RequestGeneration (use request_generation())
        """
        if isinstance(intent, SelectSnippet):
            return self._select_snippet(intent)
        if isinstance(intent, SelectStyle):
            return self._select_style(intent)
        if isinstance(intent, SelectModel):
            return self._select_model(intent)
        if isinstance(intent, ToggleErrorPanel):
            return self._accept(reducers.toggle_error_panel(self._state))
        if isinstance(intent, ShowResult):
            return self._show_result(intent)
        if isinstance(intent, OpenFeedbackForm):
            return self._open_feedback(intent)
        if isinstance(intent, SubmitFeedback):
            return self._submit_feedback(intent)
        if isinstance(intent, CancelFeedbackForm):
            return self._accept(reducers.close_feedback_form(self._state))
        if isinstance(intent, RequestGeneration):
            raise TypeError("RequestGeneration must go through request_generation()")
        raise TypeError(f"Unknown intent: {intent!r}")

    async def request_generation(self) -> IntentResult:
        """
        Generate an explanation for the current identity.

        The identity is captured now; switching selection while the model
        works does not retarget the result.
        """
        identity = self._state.identity
        if self._state.feedback_target == identity:
            # Open answers belong to the explanation on screen
            return self._reject(
                RequestGeneration(), "Submit or cancel the feedback form first"
            )
        if not self.cache.can_generate(identity):
            if self.cache.in_flight is not None:
                reason = "Another explanation is already being generated"
            else:
                reason = "Give feedback on the current explanation first"
            return self._reject(RequestGeneration(), reason)

        snippet = self.catalog.get(identity.snippet_id)
        request = self.formatter.format(identity.style, snippet, identity.model)

        async def produce() -> str:
            return await self.client.generate(
                identity.model,
                request.system_instruction,
                request.user_prompt,
                self.options,
            )

        logger.info("Requesting explanation for %s", identity)
        try:
            explanation = await self.cache.generate(identity, produce)
        except GenerationFailed as e:
            notice = Notice.error(f"Could not improve the error for {snippet.name}: {e.cause}")
            self._state = replace(self._state, notice=notice)
            return IntentResult(self._state, accepted=False, reason=str(e))

        if explanation is None:
            return self._reject(RequestGeneration(), "Generation is not available right now")

        notice = Notice.info(
            f"Improved error ready for {snippet.name} ({identity.style.value}, {identity.model})"
        )
        self._state = reducers.generation_finished(self._state, identity, notice)
        return IntentResult(self._state)

    # ── Handlers ───────────────────────────────────────────────

    def _has_explanation(self, identity) -> bool:
        return identity in self.cache

    def _select_snippet(self, intent: SelectSnippet) -> IntentResult:
        if self.catalog.find(intent.snippet_id) is None:
            return self._reject(intent, f"Unknown snippet '{intent.snippet_id}'")
        return self._accept(
            reducers.select_snippet(self._state, intent.snippet_id, self._has_explanation)
        )

    def _select_style(self, intent: SelectStyle) -> IntentResult:
        try:
            style = (
                intent.style
                if isinstance(intent.style, ExplanationStyle)
                else ExplanationStyle.parse(intent.style)
            )
        except ValueError:
            return self._reject(intent, f"Unknown explanation style '{intent.style}'")
        return self._accept(reducers.select_style(self._state, style, self._has_explanation))

    def _select_model(self, intent: SelectModel) -> IntentResult:
        if intent.model not in self.models:
            return self._reject(intent, f"Unknown model '{intent.model}'")
        return self._accept(reducers.select_model(self._state, intent.model))

    def _show_result(self, intent: ShowResult) -> IntentResult:
        if intent.view is ResultView.IMPROVED and not self._has_explanation(self._state.identity):
            return self._reject(intent, "No improved error for this selection yet")
        return self._accept(reducers.show_result(self._state, intent.view))

    def _open_feedback(self, intent: OpenFeedbackForm) -> IntentResult:
        if self._state.feedback_open:
            return self._reject(intent, "Feedback form is already open")
        if not self.cache.can_review(self._state.identity):
            return self._reject(intent, "There is no new explanation to give feedback on")
        return self._accept(reducers.open_feedback_form(self._state))

    def _submit_feedback(self, intent: SubmitFeedback) -> IntentResult:
        target = self._state.feedback_target
        if target is None:
            return self._reject(intent, "Feedback form is not open")

        problems = answer_problems(intent.answers)
        if problems:
            return self._reject(intent, "; ".join(problems))

        if not self.cache.can_review(target):
            return self._reject(intent, "This explanation cannot be reviewed right now")

        snippet = self.catalog.get(target.snippet_id)
        record = FeedbackRecord(
            identity=target,
            snippet_name=snippet.name,
            answers=dict(intent.answers),
            submitted_at=self._clock(),
        )

        try:
            self.store.append(record)
            notice = Notice.info("Thanks! Feedback saved.")
        except PersistFailed as e:
            # Keep the feedback; the store retries on the next append
            notice = Notice.error(f"Feedback kept for this session but not saved: {e.cause}")

        self.cache.record_feedback(target)
        return self._accept(reducers.close_feedback_form(self._state, notice))

    # ── Helpers ────────────────────────────────────────────────

    def _accept(self, new_state: SessionState) -> IntentResult:
        self._state = new_state
        return IntentResult(new_state)

    def _reject(self, intent, reason: str) -> IntentResult:
        logger.info("Rejected %s: %s", type(intent).__name__, reason)
        self._state = replace(self._state, notice=Notice.error(reason))
        return IntentResult(self._state, accepted=False, reason=reason)


def build_controller(settings, catalog: Optional[SnippetCatalog] = None) -> SessionController:
    """
    Wire a controller from Settings, validating prompt configuration first.

    Raises:
        ConfigurationError: Missing templates or system prompts
        PersistFailed: Existing feedback file cannot be read
    """
    catalog = catalog or SnippetCatalog()
    formatter = PromptFormatter()
    formatter.validate(list(ExplanationStyle), MODELS)

    return SessionController(
        catalog=catalog,
        formatter=formatter,
        client=InferenceClient(
            provider=settings.provider,
            host=settings.ollama_host,
            api_key=settings.groq_api_key,
            timeout=settings.timeout,
        ),
        cache=ExplanationCache(policy=settings.lock_policy),
        store=FeedbackStore(settings.feedback_path),
        models=MODELS,
        options=settings.generation_options,
    )
