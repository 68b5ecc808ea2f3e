"""Prompt templates (per style) and system instructions (per model).

Templates use string.Template placeholders so braces in the snippet source
pass through untouched:
    $name            snippet file name
    $code            snippet source
    $standard_error  the traceback Python printed
    $error_type      exception class name
"""

from errlens.catalog.snippets import ExplanationStyle

PRAGMATIC_TEMPLATE = """A novice programmer ran the Python file `$name` and got the error below.
Rewrite the error message so that it tells them what to DO about it.

SOURCE CODE:
```python
$code
```

STANDARD ERROR:
```
$standard_error
```

INSTRUCTIONS:
1. Start with one sentence naming the problem ($error_type) in plain words
2. Point at the exact line that failed and why Python stopped there
3. Give a concrete fix as a short corrected code block
4. End with a one-line tip for avoiding this error in future
5. Use markdown headings; stay under 200 words

IMPROVED ERROR MESSAGE:"""

CONTINGENT_TEMPLATE = """A novice programmer ran the Python file `$name` and got the error below.
Rewrite the error message so that it explains what happened in THIS program:
which values flowed where, and why that combination caused $error_type.

SOURCE CODE:
```python
$code
```

STANDARD ERROR:
```
$standard_error
```

INSTRUCTIONS:
1. Trace the call path from the traceback, naming the actual variables and values
2. Explain why those specific values make the failing line invalid
3. Only then suggest a fix, phrased in terms of this program's variables
4. Do not give generic advice that would apply to any $error_type
5. Use markdown headings; stay under 200 words

IMPROVED ERROR MESSAGE:"""

DEFAULT_TEMPLATES: dict[ExplanationStyle, str] = {
    ExplanationStyle.PRAGMATIC: PRAGMATIC_TEMPLATE,
    ExplanationStyle.CONTINGENT: CONTINGENT_TEMPLATE,
}


_BASE_SYSTEM_PROMPT = (
    "You are a patient Python tutor who rewrites interpreter error messages "
    "for beginners. Be accurate: never invent line numbers, variables or "
    "functions that are not in the code. Answer in markdown."
)

DEFAULT_SYSTEM_PROMPTS: dict[str, str] = {
    "llama3.2:latest": _BASE_SYSTEM_PROMPT,
    "codellama:latest": (
        _BASE_SYSTEM_PROMPT
        + " Reply with prose and at most one code block; do not continue the program."
    ),
    "mistral:latest": _BASE_SYSTEM_PROMPT,
    "phi3:latest": _BASE_SYSTEM_PROMPT + " Keep the answer short.",
    "qwen2:latest": _BASE_SYSTEM_PROMPT + " Answer in English.",
}
