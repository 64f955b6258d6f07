"""Suggestion and group confidence scoring."""

import re
from typing import Iterable

from suggestion_engine.features.suggestion_models import TIMESTAMP_RE, Candidate, clamp01

GENERIC_TITLE_RE = re.compile(r"^(event|termin|meeting|task)$", re.IGNORECASE)

# Completeness weights
TITLE_WEIGHT = 0.35
DATE_WEIGHT = 0.35
LOCATION_WEIGHT = 0.15
END_WEIGHT = 0.15

# base = 0.45*field + 0.35*context + 0.20*completeness
FIELD_WEIGHT = 0.45
CONTEXT_WEIGHT = 0.35
COMPLETENESS_WEIGHT = 0.20

MISSING_DATE_PENALTY = 0.25
MISSING_TIME_PENALTY = 0.25
GENERIC_TITLE_PENALTY = 0.10

STRUCTURE_BONUS = 0.10
LOCATION_BONUS = 0.05
END_BONUS = 0.05

GROUP_ORDERING_BONUS = 0.03


def is_generic_title(title: str) -> bool:
    return bool(GENERIC_TITLE_RE.match((title or "").strip()))


def compute_suggestion_confidence(
    candidate: Candidate,
    context_confidence: float = 0.5,
    structure_match_strong: bool = False,
) -> float:
    """Scores a candidate in [0, 1].

    Called once before grouping (structure unknown) for dedup tie-breaks and
    once after grouping with the real structure verdict.

    Args:
        candidate: The candidate to score.
        context_confidence: Document-level confidence from the extractor.
        structure_match_strong: Whether the candidate belongs to a detected
            trip/agenda/series structure.

    Returns:
        clamp(base - penalties + bonuses, 0, 1)
    """
    has_date = not candidate.missing_date and bool(TIMESTAMP_RE.fullmatch(candidate.start))
    # A time is never usable without its date.
    has_time = has_date and not candidate.missing_time

    completeness = clamp01(
        (TITLE_WEIGHT if candidate.title else 0.0)
        + (DATE_WEIGHT if has_date else 0.0)
        + (LOCATION_WEIGHT if candidate.location else 0.0)
        + (END_WEIGHT if candidate.end else 0.0)
    )
    base = (
        FIELD_WEIGHT * clamp01(candidate.field_confidence)
        + CONTEXT_WEIGHT * clamp01(context_confidence)
        + COMPLETENESS_WEIGHT * completeness
    )

    penalty = 0.0
    if not has_date:
        penalty += MISSING_DATE_PENALTY
    if not has_time:
        penalty += MISSING_TIME_PENALTY
    if is_generic_title(candidate.title):
        penalty += GENERIC_TITLE_PENALTY

    bonus = 0.0
    if structure_match_strong:
        bonus += STRUCTURE_BONUS
    if candidate.location:
        bonus += LOCATION_BONUS
    if candidate.end:
        bonus += END_BONUS

    return clamp01(base - penalty + bonus)


def compute_group_confidence(member_confidences: Iterable[float], ordering_consistent: bool = True,
                             ordering_bonus: float = GROUP_ORDERING_BONUS) -> float:
    """Averages the two strongest member confidences, plus a bonus for time-consistent ordering."""
    ranked = sorted((clamp01(c) for c in member_confidences), reverse=True)[:2]
    average = sum(ranked) / len(ranked) if ranked else 0.0
    return clamp01(average + (ordering_bonus if ordering_consistent else 0.0))
