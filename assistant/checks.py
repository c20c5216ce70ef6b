"""Static checks — substring anti-pattern matching and size metrics."""

from __future__ import annotations

from collections.abc import Callable

from assistant.config import (
    CLASS_MARKER,
    FUNCTION_MARKER,
    KOTLIN_RULES,
    LONG_LINES_RULE,
    MAX_LINE_LENGTH,
    PRIMARY_LANGUAGE,
)
from assistant.models import Metrics, Severity, Snippet, Suggestion

RuleSet = Callable[[str, int], list[Suggestion]]


# ── Helpers ──────────────────────────────────────────────────────────────────


def _suggestion_from_rule(rule: dict, **fmt) -> Suggestion:
    description = rule["description"].format(**fmt) if fmt else rule["description"]
    return Suggestion(
        title=rule["title"],
        description=description,
        severity=Severity(rule["severity"]),
    )


def _rule_applies(rule: dict, code: str) -> bool:
    """Evaluate one table rule against the whole text."""
    if not any(marker in code for marker in rule["markers"]):
        return False
    if any(marker in code for marker in rule.get("unless", ())):
        return False

    prefix = rule.get("line_prefix")
    if prefix is None:
        return True

    # Only rule that needs a line pass; stops at the first public declaration
    excluded = rule.get("line_prefix_except")
    for line in code.split("\n"):
        trimmed = line.strip()
        if trimmed.startswith(prefix) and not (
            excluded and trimmed.startswith(excluded)
        ):
            return True
    return False


# ── Rule Sets ────────────────────────────────────────────────────────────────


def check_kotlin(code: str, max_line_length: int = MAX_LINE_LENGTH) -> list[Suggestion]:
    """Kotlin best-practice checks, in table order.

    ``max_line_length`` is accepted to match :data:`RuleSet` and is not used;
    Kotlin snippets are not checked for line length.
    """
    return [
        _suggestion_from_rule(rule)
        for rule in KOTLIN_RULES.values()
        if _rule_applies(rule, code)
    ]


def check_generic(code: str, max_line_length: int = MAX_LINE_LENGTH) -> list[Suggestion]:
    """Language-agnostic checks. Only line length for now."""
    if any(len(line) > max_line_length for line in code.split("\n")):
        return [_suggestion_from_rule(LONG_LINES_RULE, limit=max_line_length)]
    return []


# Normalized language id -> rule set
RULE_SETS: dict[str, RuleSet] = {
    PRIMARY_LANGUAGE: check_kotlin,
}


# ── Public API ───────────────────────────────────────────────────────────────


def analyze(snippet: Snippet, max_line_length: int = MAX_LINE_LENGTH) -> list[Suggestion]:
    """Run the rule set for the snippet's language, falling back to generic."""
    rule_set = RULE_SETS.get(snippet.language_key, check_generic)
    return rule_set(snippet.code, max_line_length)


def get_complexity_metrics(snippet: Snippet) -> Metrics:
    """Heuristic size counts based on literal token occurrences.

    ``functions`` and ``classes`` count non-overlapping occurrences of the
    declaration keywords, so they also match inside strings and comments.
    """
    code = snippet.code
    lines = code.split("\n")
    return {
        "lines": len(lines),
        "nonEmptyLines": sum(1 for line in lines if line.strip()),
        "functions": code.count(FUNCTION_MARKER),
        "classes": code.count(CLASS_MARKER),
    }
