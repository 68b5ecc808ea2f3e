"""Prompt Formatter - Style template + model system instruction.

Note the asymmetry: the user prompt is keyed by explanation style, the
system instruction by model. Both lookups fail loudly; a missing entry is
a configuration error, never silently papered over.
"""

import logging
from dataclasses import dataclass
from string import Template
from typing import Iterable, Mapping, Optional

from errlens.catalog.snippets import ExplanationStyle, Snippet
from errlens.errors import ConfigurationError, MissingSystemPrompt, MissingTemplate
from errlens.prompts.templates import DEFAULT_SYSTEM_PROMPTS, DEFAULT_TEMPLATES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromptRequest:
    """What the inference client sends: a system instruction and a user prompt."""

    system_instruction: str
    user_prompt: str


class PromptFormatter:
    """Deterministic prompt builder. Holds no per-call state."""

    def __init__(
        self,
        templates: Mapping[ExplanationStyle, str] = DEFAULT_TEMPLATES,
        system_prompts: Mapping[str, str] = DEFAULT_SYSTEM_PROMPTS,
        default_system_prompt: Optional[str] = None,
    ):
        """
        Args:
            templates: string.Template text per explanation style
            system_prompts: System instruction per model id
            default_system_prompt: Used for models missing from system_prompts.
                Leave as None to make unknown models an error.
        """
        self._templates = {style: Template(text) for style, text in templates.items()}
        self._system_prompts = dict(system_prompts)
        self._default_system_prompt = default_system_prompt

    def system_instruction(self, model: str) -> str:
        if model in self._system_prompts:
            return self._system_prompts[model]
        if self._default_system_prompt is not None:
            return self._default_system_prompt
        raise MissingSystemPrompt(model)

    def format(self, style: ExplanationStyle, snippet: Snippet, model: str) -> PromptRequest:
        """
        Build the request for one (style, snippet, model).

        Raises:
            MissingTemplate: No template for the style
            MissingSystemPrompt: No system instruction for the model
        """
        template = self._templates.get(style)
        if template is None:
            raise MissingTemplate(style)

        user_prompt = template.substitute(
            name=snippet.name,
            code=snippet.code,
            standard_error=snippet.standard_error,
            error_type=snippet.error_type,
        )
        return PromptRequest(
            system_instruction=self.system_instruction(model),
            user_prompt=user_prompt,
        )

    def validate(self, styles: Iterable[ExplanationStyle], models: Iterable[str]) -> None:
        """
        Check every style has a template and every model a system instruction.

        Called once at startup so misconfiguration stops the process before
        the first user request.

        Raises:
            ConfigurationError: Listing every missing entry
        """
        problems = []
        for style in styles:
            if style not in self._templates:
                problems.append(f"template for style '{style}'")
        if self._default_system_prompt is None:
            for model in models:
                if model not in self._system_prompts:
                    problems.append(f"system prompt for model '{model}'")

        if problems:
            raise ConfigurationError("Missing " + "; ".join(problems))
        logger.debug(
            "Prompt configuration valid: %d templates, %d system prompts",
            len(self._templates),
            len(self._system_prompts),
        )
