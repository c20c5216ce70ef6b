"""Configuration for the code assistant."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

# ── Language Dispatch ────────────────────────────────────────────────────────
# Languages with a dedicated rule set. Everything else gets the generic rules.
PRIMARY_LANGUAGE = "kotlin"
DEFAULT_LANGUAGE = "generic"

# ── Kotlin Rules ─────────────────────────────────────────────────────────────
# Whole-text substring checks, evaluated in order.
#   markers:            rule fires if ANY of these occur in the text
#   unless:             ...and NONE of these occur anywhere in the text
#   line_prefix:        ...and some stripped line starts with this
#   line_prefix_except: ...but not with this
KOTLIN_RULES = {
    "forced_unwrap": {
        "markers": ["!!"],
        "severity": "WARNING",
        "title": "Avoid forced unwrap (!!)",
        "description": (
            "The !! operator throws a NullPointerException when the value is null. "
            "Use a safe call (?.) or the elvis operator (?:) with a default instead."
        ),
    },
    "prefer_val": {
        "markers": ["var "],
        "unless": ["val "],
        "severity": "INFO",
        "title": "Prefer immutable bindings (val over var)",
        "description": (
            "Use 'val' for variables that are never reassigned. Immutable bindings "
            "make code more predictable and thread-safe."
        ),
    },
    "explicit_null_check": {
        "markers": ["== null", "!= null"],
        "severity": "INFO",
        "title": "Use safe calls instead of explicit null checks",
        "description": (
            "Consider the safe call operator (?.), let, or the elvis operator (?:) "
            "instead of comparing against null."
        ),
    },
    "thread_sleep": {
        "markers": ["Thread.sleep"],
        "severity": "IMPROVEMENT",
        "title": "Use coroutine delay instead of Thread.sleep",
        "description": (
            "Thread.sleep blocks the thread. Use kotlinx.coroutines delay() to "
            "suspend without blocking."
        ),
    },
    "missing_kdoc": {
        "markers": ["fun "],
        "unless": ["/**"],
        "line_prefix": "fun ",
        "line_prefix_except": "private fun",
        "severity": "INFO",
        "title": "Add documentation for public functions",
        "description": (
            "Public functions have no KDoc. Document what they do, their "
            "parameters and return values to improve maintainability."
        ),
    },
}

# ── Generic Rules ────────────────────────────────────────────────────────────
MAX_LINE_LENGTH = 120

LONG_LINES_RULE = {
    "severity": "INFO",
    "title": "Long lines detected",
    "description": (
        "Some lines exceed {limit} characters. Consider breaking them for "
        "better readability."
    ),
}

# ── Metrics ──────────────────────────────────────────────────────────────────
# Token-occurrence heuristics, not a parser.
FUNCTION_MARKER = "fun "
CLASS_MARKER = "class "

# ── AI Requests ──────────────────────────────────────────────────────────────
DEFAULT_MAX_TOKENS = 2000
SUGGESTION_MAX_TOKENS = 1500
TEMPERATURE = 0.7
DEFAULT_GENERATE_LANGUAGE = "kotlin"

# ── OpenAI-compatible Gateway ────────────────────────────────────────────────
OPENAI_BASE_URL = "https://api.openai.com/v1"
OPENAI_MODEL = "gpt-4"
CONNECT_TIMEOUT = 30
READ_TIMEOUT = 60

# ── Bedrock Gateway ──────────────────────────────────────────────────────────
BEDROCK_REGION = "eu-west-1"
BEDROCK_MODEL_ID = "eu.anthropic.claude-sonnet-4-6"

# ── Server Config ────────────────────────────────────────────────────────────
SERVER_NAME = "code-assistant-mcp"
SERVER_VERSION = "1.0.0"
SERVER_HOST = "127.0.0.1"
SERVER_PORT = 8088

# ── Usage Logging ────────────────────────────────────────────────────────────
USAGE_LOG_PATH = "usage.log"

PROVIDERS = ("openai", "bedrock")


@dataclass(frozen=True)
class GatewayConfig:
    """Explicit settings for the AI gateway.

    ``credential`` is the API key for the OpenAI-compatible provider and the
    AWS profile name for Bedrock. A blank credential means AI is unavailable.
    """

    provider: str = "openai"
    credential: str = ""
    base_url: str = OPENAI_BASE_URL
    model: str = OPENAI_MODEL
    region: str = BEDROCK_REGION
    connect_timeout: float = CONNECT_TIMEOUT
    read_timeout: float = READ_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "GatewayConfig":
        """Build a config from environment variables."""
        env = os.environ if environ is None else environ
        provider = env.get("AI_PROVIDER", "openai").strip().lower()
        if provider not in PROVIDERS:
            raise ValueError(
                f"Unknown AI_PROVIDER {provider!r}. Expected one of {', '.join(PROVIDERS)}."
            )
        if provider == "bedrock":
            return cls(
                provider=provider,
                credential=env.get("BEDROCK_PROFILE", ""),
                model=env.get("BEDROCK_MODEL_ID", BEDROCK_MODEL_ID),
                region=env.get("BEDROCK_REGION", BEDROCK_REGION),
            )
        return cls(
            provider=provider,
            credential=env.get("OPENAI_API_KEY", ""),
            base_url=env.get("AI_BASE_URL", OPENAI_BASE_URL).rstrip("/"),
            model=env.get("AI_MODEL", OPENAI_MODEL),
        )
