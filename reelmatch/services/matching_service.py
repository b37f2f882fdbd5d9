"""
Matching service: resolve AI recommendations to catalog records.

MatchingService picks the right record among search results for a single
recommendation. RecommendationProcessor runs that over a whole list of
recommendations in small concurrent batches.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from ..ai.matcher import AIContentMatcher
from ..records import ContentRecord, Recommendation
from ..similarity.matching import BestMatchSelector

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5
DEFAULT_BATCH_DELAY = 3.0
DEFAULT_TIMEOUT = 30.0

Lookup = Callable[[Recommendation], Awaitable[Sequence[ContentRecord]]]


@dataclass
class ProcessingProgress:
    """Snapshot of a recommendation processing run."""
    total: int = 0
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    cancelled: bool = False
    errors: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def remaining(self) -> int:
        return self.total - self.processed

    @property
    def is_complete(self) -> bool:
        return self.finished_at is not None


class MatchingService:
    """Service for matching one recommendation to its catalog record."""

    def __init__(
        self,
        matcher: Optional[AIContentMatcher] = None,
        selector: Optional[BestMatchSelector] = None,
    ):
        """
        Initialize the matching service.

        Args:
            matcher: AI matcher; when None the heuristic selector is used directly
            selector: Heuristic fallback (default weights if omitted)
        """
        self.matcher = matcher
        self.selector = selector or BestMatchSelector()

    async def match_recommendation(
        self,
        recommendation: Recommendation,
        candidates: Sequence[ContentRecord],
    ) -> Optional[ContentRecord]:
        """
        Pick the candidate that corresponds to ``recommendation``.

        Order of preference: the only candidate, an exact IMDB id match,
        the AI matcher's answer, the heuristic best match, the first
        candidate.

        Returns:
            Matching record, or None if there are no candidates
        """
        candidates = list(candidates)
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]

        if recommendation.imdb_id:
            for candidate in candidates:
                if candidate.id == recommendation.imdb_id:
                    return candidate

        if self.matcher is not None:
            try:
                result = await self.matcher.match_best_result(recommendation, candidates)
            except Exception as e:
                logger.warning(f"AI match failed for '{recommendation.title}', using fallback: {e}")
            else:
                if result.matched_id:
                    for candidate in candidates:
                        if candidate.id == result.matched_id:
                            return candidate
                logger.debug(f"AI found no match for '{recommendation.title}': {result.reason}")

        try:
            best = self.selector.select(recommendation, candidates)
        except Exception as e:
            logger.warning(f"Heuristic match failed for '{recommendation.title}': {e}")
            best = None

        return best if best is not None else candidates[0]


class RecommendationProcessor:
    """
    Resolve many recommendations against a catalog lookup.

    Recommendations are processed ``concurrency`` at a time. Each lookup
    and match is bounded by ``timeout`` seconds, and the processor sleeps
    ``batch_delay`` seconds between batches to stay under external rate
    limits. ``should_continue`` is polled between batches; results from
    finished batches are kept when a run is cancelled.
    """

    def __init__(
        self,
        matching: MatchingService,
        concurrency: int = DEFAULT_CONCURRENCY,
        batch_delay: float = DEFAULT_BATCH_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.matching = matching
        self.concurrency = concurrency
        self.batch_delay = batch_delay
        self.timeout = timeout

    async def _resolve(self, recommendation: Recommendation, lookup: Lookup) -> Optional[ContentRecord]:
        candidates = await asyncio.wait_for(lookup(recommendation), self.timeout)
        return await asyncio.wait_for(
            self.matching.match_recommendation(recommendation, candidates),
            self.timeout,
        )

    async def process(
        self,
        recommendations: Sequence[Recommendation],
        lookup: Lookup,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> Tuple[List[ContentRecord], ProcessingProgress]:
        """
        Match every recommendation to a catalog record.

        Args:
            recommendations: Recommendations to resolve
            lookup: Async callable returning candidate records for a recommendation
            should_continue: Optional callable; returning False stops before the next batch

        Returns:
            (matched records without duplicates, progress snapshot)
        """
        progress = ProcessingProgress(total=len(recommendations), started_at=datetime.utcnow())
        matched: List[ContentRecord] = []
        seen_ids = set()

        for start in range(0, len(recommendations), self.concurrency):
            if should_continue is not None and not should_continue():
                logger.info(f"Processing cancelled after {progress.processed}/{progress.total}")
                progress.cancelled = True
                break

            if start > 0 and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

            batch = recommendations[start:start + self.concurrency]
            outcomes = await asyncio.gather(
                *(self._resolve(rec, lookup) for rec in batch),
                return_exceptions=True,
            )

            for recommendation, outcome in zip(batch, outcomes):
                progress.processed += 1
                if isinstance(outcome, BaseException):
                    if isinstance(outcome, asyncio.TimeoutError):
                        message = f"{recommendation.title}: timed out after {self.timeout}s"
                    else:
                        message = f"{recommendation.title}: {outcome}"
                    logger.warning(f"Failed to process recommendation {message}")
                    progress.failed += 1
                    progress.errors.append(message)
                elif outcome is None:
                    logger.debug(f"No catalog match for '{recommendation.title}'")
                    progress.failed += 1
                    progress.errors.append(f"{recommendation.title}: no match found")
                else:
                    progress.succeeded += 1
                    if outcome.id not in seen_ids:
                        seen_ids.add(outcome.id)
                        matched.append(outcome)

            logger.debug(f"Processed {progress.processed}/{progress.total} recommendations")

        progress.finished_at = datetime.utcnow()
        logger.info(
            f"Matched {progress.succeeded}/{progress.total} recommendations "
            f"({progress.failed} failed)"
        )
        return matched, progress
