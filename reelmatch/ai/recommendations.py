"""
Ask a generative model for titles similar to a piece of content.
"""

import logging
from typing import Any, Dict, List, Optional

from ..errors import AIMatchError
from ..records import MediaType, Recommendation
from .llm_providers.base import BaseLLMProvider
from .parsing import extract_json, parse_numbered_titles

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a film and television expert who gives concise, accurate recommendations."


class RecommendationGenerator:
    """
    Generate recommendations with an LLM provider.

    ``similar_titles`` asks for a plain numbered list, ``recommend`` asks
    for structured JSON. Both return Recommendation objects whose optional
    fields are None when the model left them out.
    """

    def __init__(self, provider: BaseLLMProvider):
        self.provider = provider

    async def similar_titles(
        self,
        title: str,
        overview: Optional[str] = None,
        media_type: MediaType = MediaType.MOVIE,
        limit: int = 10,
    ) -> List[Recommendation]:
        """
        Get up to ``limit`` titles similar to the given one.

        Args:
            title: Title of the source content
            overview: Plot summary, if known
            media_type: Whether the source is a movie or a series
            limit: Maximum number of recommendations

        Returns:
            Parsed recommendations (may be fewer than ``limit``)

        Raises:
            AIMatchError: If the provider call fails
        """
        kind = "movies" if media_type == MediaType.MOVIE else "TV series"
        prompt = (
            f"Recommend {limit} {kind} similar to \"{title}\"."
            + (f"\nOverview: {overview}" if overview else "")
            + "\n\nReturn ONLY a numbered list, one per line, formatted as:\n"
            "1. Title (Year) [IMDB ID]\n"
            "Use the real IMDB id (e.g. tt0133093) when you know it; omit the brackets otherwise."
        )

        try:
            response = await self.provider.complete(prompt, system_prompt=SYSTEM_PROMPT)
        except Exception as e:
            raise AIMatchError(f"Recommendation request failed: {e}") from e

        recommendations = parse_numbered_titles(response.content)[:limit]
        logger.info(f"Model suggested {len(recommendations)} titles similar to '{title}'")
        return recommendations

    async def recommend(self, preferences: Dict[str, Any], limit: int = 10) -> List[Recommendation]:
        """
        Recommend titles for a set of viewer preferences.

        Args:
            preferences: Free-form preferences (genres, liked titles, mood...)
            limit: Maximum number of recommendations

        Returns:
            Recommendations; falls back to numbered-list parsing when the
            response is not valid JSON
        """
        described = "\n".join(f"- {key}: {value}" for key, value in preferences.items())
        prompt = (
            f"Recommend {limit} movies or TV series for a viewer with these preferences:\n"
            f"{described}\n\n"
            "Respond with a JSON object:\n"
            '{"recommendations": [{"title": "...", "year": "YYYY", "imdb_id": "tt...", '
            '"reason": "...", "synopsis": "..."}]}'
        )

        try:
            response = await self.provider.complete(prompt, system_prompt=SYSTEM_PROMPT)
        except Exception as e:
            raise AIMatchError(f"Recommendation request failed: {e}") from e

        try:
            payload = extract_json(response.content)
        except ValueError:
            logger.warning("Recommendation response was not JSON; parsing as a numbered list")
            return parse_numbered_titles(response.content)[:limit]

        items = payload.get("recommendations", []) if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            logger.warning(f"Unexpected recommendation payload type: {type(items).__name__}")
            return []

        recommendations = [
            Recommendation.from_dict(item)
            for item in items
            if isinstance(item, dict) and item.get("title")
        ]
        return recommendations[:limit]
