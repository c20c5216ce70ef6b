"""Data models for the code assistant."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class Severity(str, Enum):
    """Severity levels for suggestions."""

    ERROR = "ERROR"  # Likely bug or crash
    WARNING = "WARNING"  # Risky construct that should be fixed
    INFO = "INFO"  # Style or convention remark
    IMPROVEMENT = "IMPROVEMENT"  # Better alternative exists

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: Optional[str]) -> "Severity":
        """Map free text to a severity. Anything unrecognized is INFO."""
        if not text:
            return cls.INFO
        try:
            return cls(text.strip().upper())
        except ValueError:
            return cls.INFO


# ── Errors ───────────────────────────────────────────────────────────────────


class AssistantError(Exception):
    """Base class for errors surfaced by AI-backed operations."""


class AIUnavailableError(AssistantError):
    """The AI gateway has no credential configured."""

    def __init__(self, message: str = "AI service not available") -> None:
        super().__init__(message)


class GatewayError(AssistantError):
    """The AI gateway call failed (transport, status or malformed body)."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


# ── Snippets and suggestions ─────────────────────────────────────────────────


@dataclass(frozen=True)
class Snippet:
    """Source text to analyze, tagged with its language."""

    code: str
    language: str = "generic"
    origin_path: Optional[str] = None

    @property
    def language_key(self) -> str:
        """Dispatch key: lower-cased with surrounding whitespace removed, so
        ``" Kotlin "`` selects the Kotlin rules."""
        return self.language.strip().lower()


@dataclass(frozen=True)
class Suggestion:
    """A single reviewer-style remark."""

    title: str
    description: str
    suggested_code: Optional[str] = None
    severity: Severity = Severity.INFO

    def to_dict(self) -> dict:
        d = asdict(self)
        d["severity"] = str(self.severity)
        return {k: v for k, v in d.items() if v is not None}


# Metric name -> count. Keys: lines, nonEmptyLines, functions, classes.
Metrics = dict[str, int]


@dataclass(frozen=True)
class AIRequest:
    prompt: str
    context: Optional[str] = None
    max_tokens: int = 2000


@dataclass(frozen=True)
class AIResponse:
    content: str
    model: str
    tokens_used: int = 0


# ── Reports ──────────────────────────────────────────────────────────────────


@dataclass
class AnalysisReport:
    """Suggestions and metrics for one snippet."""

    suggestions: list[Suggestion] = field(default_factory=list)
    metrics: Metrics = field(default_factory=dict)
    language: str = "generic"
    origin_path: Optional[str] = None
    ai_used: bool = False
    analyzed_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def count(self, severity: Severity) -> int:
        return sum(1 for s in self.suggestions if s.severity == severity)

    @property
    def verdict(self) -> str:
        if self.count(Severity.ERROR) > 0:
            return "CHANGES REQUESTED — errors found"
        if self.count(Severity.WARNING) > 0:
            return "NEEDS ATTENTION — warnings should be reviewed"
        if self.suggestions:
            return "LOOKS GOOD — minor suggestions only"
        return "LOOKS GOOD — no issues found"

    def to_dict(self) -> dict:
        return {
            "verdict": self.verdict,
            "language": self.language,
            "origin_path": self.origin_path,
            "stats": {
                "errors": self.count(Severity.ERROR),
                "warnings": self.count(Severity.WARNING),
                "info": self.count(Severity.INFO),
                "improvements": self.count(Severity.IMPROVEMENT),
                "total": len(self.suggestions),
            },
            "suggestions": [s.to_dict() for s in self.suggestions],
            "metrics": dict(self.metrics),
            "ai_used": self.ai_used,
            "analyzed_at": self.analyzed_at,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
