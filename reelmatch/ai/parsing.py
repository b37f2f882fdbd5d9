"""
Best-effort parsers for free-text model output.

Kept apart from the matching and scoring code so they can be swapped out
once providers return structured output reliably.
"""

import json
import re
from typing import Any, List

from ..records import Recommendation

_NUMBERED_LINE_RE = re.compile(r"^\d+\.\s+(.+)$")
_TITLE_YEAR_ID_RE = re.compile(r"(.+?)\s+\((\d{4})(?:[–-]\d{0,4})?\)\s*(?:\[(tt\d+)\])?")
_IMDB_ID_RE = re.compile(r"\[(tt\d+)\]")
_LIST_MARKUP_RE = re.compile(r"^\*\*(.+)\*\*$")


def extract_json(content: str) -> Any:
    """
    Parse JSON from model output.

    Handles common issues like markdown code blocks and prose around the
    JSON object.

    Raises:
        ValueError: If no JSON value can be recovered
    """
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        pass

    # Try to extract JSON from markdown code block
    cleaned = content.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]

    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]

    cleaned = cleaned.strip()

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    # Try to find JSON object in text
    json_match = re.search(r'\{.*\}', content, re.DOTALL)
    if json_match:
        try:
            return json.loads(json_match.group())
        except json.JSONDecodeError:
            pass

    # Last resort: try to find JSON array
    json_match = re.search(r'\[.*\]', content, re.DOTALL)
    if json_match:
        try:
            return json.loads(json_match.group())
        except json.JSONDecodeError:
            pass

    raise ValueError(f"Failed to parse JSON from response: {content[:200]}...")


def parse_numbered_titles(text: str) -> List[Recommendation]:
    """
    Parse a numbered list of ``Title (Year) [ttID]`` lines.

    Lines that are not numbered list items are ignored. Year and IMDB id
    are optional; lines without a year keep the whole text as the title.

    Example:
        >>> parse_numbered_titles("1. The Matrix (1999) [tt0133093]")[0].imdb_id
        'tt0133093'
    """
    recommendations = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        match = _NUMBERED_LINE_RE.match(line)
        if not match:
            continue

        entry = match.group(1).strip()
        bold = _LIST_MARKUP_RE.match(entry)
        if bold:
            entry = bold.group(1).strip()

        parsed = _TITLE_YEAR_ID_RE.match(entry)
        if parsed:
            recommendations.append(Recommendation(
                title=parsed.group(1).strip().strip('"'),
                year=parsed.group(2),
                imdb_id=parsed.group(3),
            ))
            continue

        imdb = _IMDB_ID_RE.search(entry)
        title = _IMDB_ID_RE.sub("", entry).strip().strip('"')
        if title:
            recommendations.append(Recommendation(
                title=title,
                imdb_id=imdb.group(1) if imdb else None,
            ))

    return recommendations
