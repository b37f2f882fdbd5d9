"""
Generative-AI matching of a recommendation against catalog search results.

The model is shown the recommended title plus every candidate and asked
which candidate (if any) is the same work.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..errors import AIMatchError
from ..records import ContentRecord, Recommendation
from .llm_providers.base import BaseLLMProvider

logger = logging.getLogger(__name__)

CONFIDENCE_THRESHOLD = 0.7

SYSTEM_PROMPT = (
    "You match movie and TV recommendations to entries in a catalog. "
    "Only pick a result when you are confident it is the same work."
)


@dataclass
class MatchResult:
    """Outcome of an AI match call."""
    matched_id: Optional[str]
    confidence: float = 0.0
    reason: str = ""

    @property
    def is_match(self) -> bool:
        return self.matched_id is not None


def build_match_prompt(recommendation: Recommendation,
                       candidates: Sequence[ContentRecord]) -> str:
    """Render the prompt listing the recommendation and every candidate."""
    lines = [
        "Find the catalog entry that matches this recommendation.",
        "",
        "Recommendation:",
        f"Title: {recommendation.title}",
        f"Year: {recommendation.year or 'Unknown'}",
    ]
    if recommendation.imdb_id:
        lines.append(f"IMDB ID: {recommendation.imdb_id}")
    if recommendation.synopsis:
        lines.append(f"Synopsis: {recommendation.synopsis}")

    lines.extend(["", "Search results:"])
    for index, candidate in enumerate(candidates, start=1):
        lines.append(
            f"{index}. Title: {candidate.title}, Year: {candidate.year or 'Unknown'}, "
            f"Type: {candidate.media_type.value}, IMDB ID: {candidate.id}"
        )
        if candidate.plot:
            lines.append(f"   Plot: {candidate.plot}")

    lines.extend([
        "",
        "Respond with JSON only, in one of these forms:",
        '{"matchedResult": {"imdbID": "<id>", "confidence": <0.0-1.0>, '
        '"reasonForMatch": "<short reason>"}}',
        '{"matchedResult": null, "reason": "<why nothing matches>"}',
    ])
    return "\n".join(lines)


def parse_match_response(payload, candidates: Sequence[ContentRecord],
                         threshold: float = CONFIDENCE_THRESHOLD) -> MatchResult:
    """
    Interpret the model's JSON answer.

    Ids not present in ``candidates`` and matches below ``threshold`` are
    reported as no match.

    Raises:
        AIMatchError: If the payload does not have the expected shape
    """
    if not isinstance(payload, dict) or "matchedResult" not in payload:
        raise AIMatchError(f"Unexpected match response: {str(payload)[:200]}")

    matched = payload["matchedResult"]
    if matched is None:
        return MatchResult(matched_id=None, reason=str(payload.get("reason", "")))
    if not isinstance(matched, dict):
        raise AIMatchError(f"Unexpected matchedResult value: {matched!r}")

    matched_id = matched.get("imdbID")
    try:
        confidence = float(matched.get("confidence", 0.0))
    except (TypeError, ValueError):
        confidence = 0.0
    reason = str(matched.get("reasonForMatch", ""))

    known_ids = {candidate.id for candidate in candidates}
    if matched_id not in known_ids:
        return MatchResult(matched_id=None, confidence=confidence,
                           reason=f"Model picked unknown id {matched_id!r}")
    if confidence < threshold:
        return MatchResult(matched_id=None, confidence=confidence,
                           reason=f"Confidence {confidence:.2f} below threshold: {reason}")

    return MatchResult(matched_id=matched_id, confidence=confidence, reason=reason)


class AIContentMatcher:
    """
    Pick the search result matching a recommendation using an LLM.

    Example:
        >>> async with GeminiProvider.from_api_key(key) as provider:
        ...     matcher = AIContentMatcher(provider)
        ...     result = await matcher.match_best_result(rec, candidates)
    """

    def __init__(self, provider: BaseLLMProvider, threshold: float = CONFIDENCE_THRESHOLD):
        self.provider = provider
        self.threshold = threshold

    async def match_best_result(
        self,
        recommendation: Recommendation,
        candidates: List[ContentRecord],
    ) -> MatchResult:
        """
        Ask the model which candidate matches the recommendation.

        Raises:
            AIMatchError: On provider failure or an unusable response
        """
        if not candidates:
            return MatchResult(matched_id=None, reason="No candidates")

        prompt = build_match_prompt(recommendation, candidates)
        try:
            payload = await self.provider.complete_json(prompt, system_prompt=SYSTEM_PROMPT)
        except AIMatchError:
            raise
        except Exception as e:
            raise AIMatchError(f"{self.provider.name} match call failed: {e}") from e

        result = parse_match_response(payload, candidates, self.threshold)
        logger.debug(
            f"AI match for '{recommendation.title}': {result.matched_id} "
            f"({result.confidence:.2f}) {result.reason}"
        )
        return result

