"""Suggestion engine — static analysis merged with AI suggestions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Optional

from assistant import checks, prompts
from assistant.config import DEFAULT_GENERATE_LANGUAGE, SUGGESTION_MAX_TOKENS
from assistant.llm import AIGateway
from assistant.llm_parsing import parse_suggestions
from assistant.models import (
    AIRequest,
    AIUnavailableError,
    AnalysisReport,
    AssistantError,
    Snippet,
    Suggestion,
)

logger = logging.getLogger(__name__)


class SuggestionEngine:
    """Combines the pattern analyzer with an AI gateway.

    Every AI-backed method makes at most one gateway call.
    """

    def __init__(
        self,
        gateway: AIGateway,
        analyzer: Callable[[Snippet], list[Suggestion]] = checks.analyze,
    ) -> None:
        self.gateway = gateway
        self.analyzer = analyzer

    # ── Suggestions ──────────────────────────────────────────────────────

    def _ai_suggestions(self, snippet: Snippet) -> Optional[list[Suggestion]]:
        """AI suggestions, or None if the gateway is unavailable or failed."""
        if not self.gateway.is_available():
            return None

        request = AIRequest(
            prompt=prompts.build_suggest_prompt(snippet),
            context=prompts.suggest_context(snippet.language),
            max_tokens=SUGGESTION_MAX_TOKENS,
        )
        try:
            response = self.gateway.complete(request)
        except AssistantError as e:
            logger.warning("AI suggestions failed, using static analysis only: %s", e)
            return None
        return parse_suggestions(response.content)

    def get_suggestions(self, snippet: Snippet) -> list[Suggestion]:
        """Static suggestions followed by AI suggestions when available."""
        static = self.analyzer(snippet)
        ai = self._ai_suggestions(snippet)
        if ai is None:
            return static
        return static + ai

    def review(self, snippet: Snippet) -> AnalysisReport:
        """Suggestions and metrics for one snippet."""
        static = self.analyzer(snippet)
        ai = self._ai_suggestions(snippet)
        return AnalysisReport(
            suggestions=static + (ai or []),
            metrics=checks.get_complexity_metrics(snippet),
            language=snippet.language,
            origin_path=snippet.origin_path,
            ai_used=ai is not None,
        )

    # ── Free-text operations ─────────────────────────────────────────────

    def _complete_text(self, prompt: str, context: str) -> str:
        if not self.gateway.is_available():
            raise AIUnavailableError()
        response = self.gateway.complete(AIRequest(prompt=prompt, context=context))
        return response.content

    def explain_code(self, snippet: Snippet) -> str:
        return self._complete_text(
            prompts.build_explain_prompt(snippet),
            prompts.explain_context(snippet.language),
        )

    def improve_code(self, snippet: Snippet, focus: Optional[str] = None) -> str:
        return self._complete_text(
            prompts.build_improve_prompt(snippet, focus),
            prompts.improve_context(snippet.language),
        )

    def generate_code(
        self, description: str, language: str = DEFAULT_GENERATE_LANGUAGE
    ) -> str:
        return self._complete_text(
            prompts.build_generate_prompt(description, language),
            prompts.generate_context(language),
        )
