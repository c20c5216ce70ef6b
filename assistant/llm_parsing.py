"""LLM response parsing — turn TITLE/SEVERITY/DESCRIPTION blocks into suggestions."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from assistant.models import Severity, Suggestion

logger = logging.getLogger(__name__)

BLOCK_DELIMITER = "---"
TITLE_PREFIX = "TITLE:"
SEVERITY_PREFIX = "SEVERITY:"
DESCRIPTION_PREFIX = "DESCRIPTION:"


class _State(Enum):
    SEEKING_TITLE = "seeking_title"
    IN_DESCRIPTION = "in_description"


def _strip_code_fence(text: str) -> str:
    """Strip markdown code fences (```...```) from LLM response text.

    Only strips the closing fence if an opening fence was also found.
    """
    cleaned = text.strip()

    had_opening = False
    if cleaned.startswith("```"):
        had_opening = True
        newline_pos = cleaned.find("\n")
        if newline_pos == -1:
            return ""
        cleaned = cleaned[newline_pos + 1 :]

    if had_opening and cleaned.endswith("```"):
        cleaned = cleaned[:-3].rstrip()

    return cleaned


def _parse_block(block: str) -> Optional[Suggestion]:
    """Run the block state machine. Returns None when the block has no title."""
    state = _State.SEEKING_TITLE
    title = ""
    severity = Severity.INFO
    description: list[str] = []

    for line in block.strip().splitlines():
        if line.startswith(TITLE_PREFIX):
            title = line[len(TITLE_PREFIX) :].strip()
            state = _State.SEEKING_TITLE
        elif line.startswith(SEVERITY_PREFIX):
            severity = Severity.parse(line[len(SEVERITY_PREFIX) :])
            state = _State.SEEKING_TITLE
        elif line.startswith(DESCRIPTION_PREFIX):
            description.append(line[len(DESCRIPTION_PREFIX) :].strip())
            state = _State.IN_DESCRIPTION
        elif state is _State.IN_DESCRIPTION and line.strip():
            description.append(line)

    if not title:
        return None
    return Suggestion(
        title=title,
        description="\n".join(description).strip(),
        severity=severity,
    )


def parse_suggestions(response_text: str) -> list[Suggestion]:
    """Parse delimiter-separated suggestion blocks from an AI response.

    Blocks without a title are dropped. A block that fails to parse is
    logged and skipped; the rest of the response is still used.
    """
    suggestions: list[Suggestion] = []
    cleaned = _strip_code_fence(response_text)

    blocks = [b for b in cleaned.split(BLOCK_DELIMITER) if b.strip()]
    for index, block in enumerate(blocks):
        try:
            suggestion = _parse_block(block)
        except Exception as e:
            logger.warning("Skipping malformed suggestion block %d: %s", index, e)
            continue
        if suggestion is None:
            logger.debug("Dropping suggestion block %d without a title", index)
            continue
        suggestions.append(suggestion)

    return suggestions
