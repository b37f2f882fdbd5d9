"""
Best-match selection among catalog search results.

Given a recommendation (usually produced by the generative model) and the
records a catalog search returned for it, ranks the records by a weighted
blend of title, release-year and plot similarity.
"""

from typing import List, Optional, Sequence

from reelmatch.records import ContentRecord, Recommendation, RecommendationCandidate, parse_year
from reelmatch.similarity.metrics import NumericProximityMetric, TfidfMetric, TitleMetric

TITLE_WEIGHT = 0.6
YEAR_WEIGHT = 0.2
PLOT_WEIGHT = 0.2
YEAR_SPAN = 10


class BestMatchSelector:
    """Ranks candidate records against a recommendation.

    Composite score = 0.6 * title + 0.2 * year + 0.2 * plot, where:

    - title is :func:`~reelmatch.similarity.titles.title_similarity`
    - year is 1 for equal years, decaying linearly to 0 over 10 years
      (0 when either year is unknown)
    - plot is TF-IDF cosine of the recommendation synopsis against the
      candidate plot (0 when either is missing)

    Ties keep input order. Pass ``tie_break="id"`` to order tied
    candidates by id instead, for reproducible picks when the upstream
    candidate order is not stable.
    """

    def __init__(
        self,
        title_weight: float = TITLE_WEIGHT,
        year_weight: float = YEAR_WEIGHT,
        plot_weight: float = PLOT_WEIGHT,
        tie_break: Optional[str] = None,
    ):
        if tie_break not in (None, "id"):
            raise ValueError(f"Unknown tie_break: {tie_break}")
        self.title_weight = title_weight
        self.year_weight = year_weight
        self.plot_weight = plot_weight
        self.tie_break = tie_break

        self.title_metric = TitleMetric()
        self.year_metric = NumericProximityMetric(max_diff=YEAR_SPAN)
        self.plot_metric = TfidfMetric()

    def score(self, query: Recommendation, candidate: ContentRecord) -> RecommendationCandidate:
        """Score one candidate against the query."""
        title_score = self.title_metric.similarity(query.title, candidate.title)

        query_year = parse_year(query.year)
        candidate_year = candidate.release_year
        year_score = 0.0
        if query_year is not None and candidate_year is not None:
            year_score = self.year_metric.similarity(query_year, candidate_year)

        plot_score = 0.0
        if query.synopsis and candidate.plot:
            plot_score = self.plot_metric.similarity(query.synopsis, candidate.plot)

        composite = (
            title_score * self.title_weight
            + year_score * self.year_weight
            + plot_score * self.plot_weight
        )
        return RecommendationCandidate(
            record=candidate,
            score=composite,
            title_score=title_score,
            year_score=year_score,
            plot_score=plot_score,
        )

    def rank(
        self, query: Recommendation, candidates: Sequence[ContentRecord]
    ) -> List[RecommendationCandidate]:
        """Score every candidate, best first."""
        scored = [self.score(query, candidate) for candidate in candidates]
        if self.tie_break == "id":
            scored.sort(key=lambda c: (-c.score, c.record.id))
        else:
            # Stable sort: equal scores keep input order
            scored.sort(key=lambda c: c.score, reverse=True)
        return scored

    def select(
        self, query: Recommendation, candidates: Sequence[ContentRecord]
    ) -> Optional[ContentRecord]:
        """Return the best candidate, or None if there are no candidates."""
        if not candidates:
            return None
        return self.rank(query, candidates)[0].record


def select_best(
    query: Recommendation, candidates: Sequence[ContentRecord]
) -> Optional[ContentRecord]:
    """Pick the best candidate for a recommendation with default weights."""
    return BestMatchSelector().select(query, candidates)
