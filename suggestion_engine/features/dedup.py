"""Deduplication of near-identical candidates.

Two candidates are duplicates when they share (normalized title, date) and
their start times are at most DUPLICATE_WINDOW_MIN minutes apart; the one
with the higher pre-grouping confidence survives. Kept candidates of the
same key are always more than the window apart, which makes the pass
idempotent.
"""

import logging
import re
from typing import Dict, List, Sequence, Tuple

from suggestion_engine.features.suggestion_models import Candidate

logger = logging.getLogger(__name__)

DUPLICATE_WINDOW_MIN = 5
UMBRELLA_TITLE_RE = re.compile(r"\b(trip|reise|travel)\b", re.IGNORECASE)
_PUNCTUATION_RE = re.compile(r"[^\w\s]|_")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_title(value: str) -> str:
    """Lower-cases, strips punctuation and collapses whitespace."""
    text = _PUNCTUATION_RE.sub(" ", (value or "").lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def minute_of_day(candidate: Candidate) -> int:
    return int(candidate.start[11:13]) * 60 + int(candidate.start[14:16])


def _is_umbrella(candidate: Candidate) -> bool:
    return bool(UMBRELLA_TITLE_RE.search(candidate.title or "")) and not candidate.location


def deduplicate_suggestions(candidates: Sequence[Candidate]) -> List[Candidate]:
    """Merges duplicates and drops umbrella trip placeholders.

    Candidates with a synthesized date or time are never merged. Order of
    the surviving candidates follows their first appearance.
    """
    kept: List[Candidate] = []
    by_key: Dict[Tuple[str, str], List[Candidate]] = {}

    for candidate in candidates:
        title = normalize_title(candidate.title)
        if not title or candidate.missing_date or candidate.missing_time:
            kept.append(candidate)
            continue

        key = (title, candidate.date)
        minute = minute_of_day(candidate)
        same_key = by_key.setdefault(key, [])
        matches = [other for other in same_key if abs(minute_of_day(other) - minute) <= DUPLICATE_WINDOW_MIN]
        if not matches:
            same_key.append(candidate)
            kept.append(candidate)
            continue

        # Ties keep the earlier candidate.
        winner = max(matches, key=lambda c: c.suggestion_confidence)
        if candidate.suggestion_confidence > winner.suggestion_confidence:
            winner = candidate
        merged = {id(m) for m in matches}
        slot = min(i for i, c in enumerate(kept) if id(c) in merged)
        kept = [winner if i == slot else c for i, c in enumerate(kept) if i == slot or id(c) not in merged]
        same_key[:] = [c for c in same_key if id(c) not in merged] + [winner]
        logger.debug(f"Merged duplicate '{candidate.title}' on {candidate.date}; kept {winner.id}")

    normalized = [normalize_title(c.title) for c in kept]
    result = []
    for index, candidate in enumerate(kept):
        if _is_umbrella(candidate) and any(
            other_index != index and other_title == normalized[index]
            for other_index, other_title in enumerate(normalized)
        ):
            logger.debug(f"Dropped umbrella candidate {candidate.id} ('{candidate.title}')")
            continue
        result.append(candidate)
    return result
