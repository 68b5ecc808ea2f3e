"""errlens - Study tool for model-improved Python error messages.

A fixed catalog of failing snippets, a prompt formatter per explanation
style, an Ollama/Groq inference client, and a session controller that
caches one explanation per (snippet, style, model) and gates regeneration
behind feedback.
"""

__version__ = "0.1.0"
