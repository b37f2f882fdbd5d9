"""Feedback-driven similarity adjustment."""

from typing import Optional

PRIOR_SCORE = 0.5
FEEDBACK_STEP = 0.1
MIN_SCORE = 0.1
MAX_SCORE = 1.0


def adjust_score(existing: Optional[float], is_positive: bool) -> float:
    """
    Apply one piece of user feedback to a similarity score.

    Pairs without an edge start from a neutral 0.5 prior. Positive feedback
    adds 0.1, negative subtracts 0.1, and the result is clamped to
    [0.1, 1.0] so a relation can weaken but never reach zero.

    Args:
        existing: Current edge score, or None when no edge exists
        is_positive: True for a thumbs-up

    Returns:
        Adjusted score in [0.1, 1.0]
    """
    base = PRIOR_SCORE if existing is None else existing
    adjusted = base + (FEEDBACK_STEP if is_positive else -FEEDBACK_STEP)
    return round(max(MIN_SCORE, min(MAX_SCORE, adjusted)), 6)
