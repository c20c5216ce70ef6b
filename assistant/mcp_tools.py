"""MCP tool definitions for the code assistant."""

from __future__ import annotations

import asyncio
import json
import logging
import traceback
from typing import Optional

from fastmcp import FastMCP

from assistant.checks import analyze, get_complexity_metrics
from assistant.config import DEFAULT_GENERATE_LANGUAGE, DEFAULT_LANGUAGE
from assistant.engine import SuggestionEngine
from assistant.models import AssistantError, Snippet

logger = logging.getLogger(__name__)


def _error_response(tool_name: str, error: Exception) -> str:
    """Short JSON error for the caller; the traceback stays in the server log."""
    logger.error("Tool %s failed: %s\n%s", tool_name, error, traceback.format_exc())
    return json.dumps({"error": str(error)}, indent=2)


def register_tools(mcp: FastMCP, engine: SuggestionEngine) -> None:
    """Register all assistant tools on the given FastMCP server instance."""

    @mcp.tool()
    def analyze_code(
        code: str,
        language: str = DEFAULT_LANGUAGE,
        file_path: Optional[str] = None,
    ) -> str:
        """Static analysis of a code snippet. No AI call is made.

        Returns the static suggestions and size metrics as JSON.

        Args:
            code: The source text to analyze
            language: Language tag (e.g., "kotlin"); other languages get generic checks
            file_path: Optional path the snippet came from
        """
        snippet = Snippet(code=code, language=language, origin_path=file_path)
        return json.dumps(
            {
                "suggestions": [s.to_dict() for s in analyze(snippet)],
                "metrics": get_complexity_metrics(snippet),
            },
            indent=2,
        )

    @mcp.tool()
    def get_metrics(code: str, language: str = DEFAULT_LANGUAGE) -> str:
        """Line, non-empty line, function and class counts for a snippet."""
        snippet = Snippet(code=code, language=language)
        return json.dumps(get_complexity_metrics(snippet), indent=2)

    @mcp.tool()
    async def suggest(
        code: str,
        language: str = DEFAULT_LANGUAGE,
        file_path: Optional[str] = None,
    ) -> str:
        """Static analysis plus AI suggestions, merged static-first.

        Falls back to static analysis when the AI service is unavailable or fails.

        Args:
            code: The source text to review
            language: Language tag (e.g., "kotlin")
            file_path: Optional path the snippet came from
        """
        snippet = Snippet(code=code, language=language, origin_path=file_path)
        try:
            report = await asyncio.to_thread(engine.review, snippet)
            return report.to_json()
        except Exception as e:
            return _error_response("suggest", e)

    @mcp.tool()
    async def explain_code(code: str, language: str = DEFAULT_LANGUAGE) -> str:
        """Explain what a code snippet does using AI."""
        snippet = Snippet(code=code, language=language)
        try:
            return await asyncio.to_thread(engine.explain_code, snippet)
        except AssistantError as e:
            return _error_response("explain_code", e)

    @mcp.tool()
    async def improve_code(
        code: str,
        language: str = DEFAULT_LANGUAGE,
        focus: Optional[str] = None,
    ) -> str:
        """Improved version of a snippet with an explanation of the changes.

        Args:
            code: The source text to improve
            language: Language tag (e.g., "kotlin")
            focus: Optional focus (e.g., "performance", "readability")
        """
        snippet = Snippet(code=code, language=language)
        try:
            return await asyncio.to_thread(engine.improve_code, snippet, focus)
        except AssistantError as e:
            return _error_response("improve_code", e)

    @mcp.tool()
    async def generate_code(
        description: str,
        language: str = DEFAULT_GENERATE_LANGUAGE,
    ) -> str:
        """Generate code from a free-text description using AI."""
        try:
            return await asyncio.to_thread(engine.generate_code, description, language)
        except AssistantError as e:
            return _error_response("generate_code", e)
