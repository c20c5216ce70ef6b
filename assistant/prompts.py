"""Role-priming contexts and user prompt builders for each AI operation."""

from __future__ import annotations

from assistant.models import Snippet


def _code_block(snippet: Snippet) -> str:
    return f"```{snippet.language}\n{snippet.code}\n```"


# ── Suggestions ──────────────────────────────────────────────────────────────

SUGGESTION_FORMAT = """TITLE: <suggestion title>
SEVERITY: <ERROR|WARNING|INFO|IMPROVEMENT>
DESCRIPTION: <detailed description>
---"""


def suggest_context(language: str) -> str:
    return f"You are a code review expert specializing in {language}."


def build_suggest_prompt(snippet: Snippet) -> str:
    """Ask for review suggestions in the TITLE/SEVERITY/DESCRIPTION block format."""
    return "\n".join(
        [
            f"Analyze the following {snippet.language} code and provide suggestions for improvement:",
            "",
            _code_block(snippet),
            "",
            "Provide suggestions in the format:",
            SUGGESTION_FORMAT,
            "",
            "Focus on code quality, best practices, potential bugs, and performance.",
        ]
    )


# ── Explain ──────────────────────────────────────────────────────────────────


def explain_context(language: str) -> str:
    return f"You are a helpful programming assistant specializing in {language}."


def build_explain_prompt(snippet: Snippet) -> str:
    return "\n".join(
        [
            f"Explain the following {snippet.language} code in a clear and concise way:",
            "",
            _code_block(snippet),
            "",
            "Include:",
            "1. What the code does",
            "2. Key concepts used",
            "3. Any potential issues or improvements",
        ]
    )


# ── Improve ──────────────────────────────────────────────────────────────────

DEFAULT_FOCUS = "Focus on best practices, readability, and performance."


def improve_context(language: str) -> str:
    return f"You are an expert {language} developer. Provide clean, idiomatic code."


def build_improve_prompt(snippet: Snippet, focus: str | None = None) -> str:
    focus_instruction = f"Focus on: {focus}" if focus else DEFAULT_FOCUS
    return "\n".join(
        [
            f"Improve the following {snippet.language} code:",
            "",
            _code_block(snippet),
            "",
            focus_instruction,
            "",
            "Provide the improved code with explanations of the changes made.",
        ]
    )


# ── Generate ─────────────────────────────────────────────────────────────────


def generate_context(language: str) -> str:
    return f"You are an expert {language} developer. Write clean, production-ready code."


def build_generate_prompt(description: str, language: str) -> str:
    return "\n".join(
        [
            f"Generate {language} code for the following requirement:",
            "",
            description,
            "",
            "Provide clean, well-documented, and idiomatic code.",
        ]
    )
