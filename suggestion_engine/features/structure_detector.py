"""Deterministic detection of trip, agenda and series structures.

Detection runs trip -> agenda -> series. A candidate claimed by one
structure is not considered by later ones, so every candidate id appears
in at most one group.
"""

import logging
import re
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Set

from suggestion_engine.features.cue_matcher import DEFAULT_CUE_MATCHER, CueMatcher
from suggestion_engine.features.suggestion_models import Candidate, StructureGroupDef, StructureResult

logger = logging.getLogger(__name__)

TRIP_CONFIDENCE_BOOST = 0.10
DEFAULT_CONFIDENCE_BOOST = 0.08
ORDERING_BONUS = 0.03
TRIP_MAX_SPAN_DAYS = 14
AGENDA_MIN_OVERLAP = 0.3
SERIES_MIN_MEMBERS = 3
SERIES_MIN_SAME_TIME = 2
GROUP_TITLE_MAX_CHARS = 30

_TOKEN_STRIP_RE = re.compile(r"[^\w\s-]|_")
_CODE_RE = re.compile(r"\b[a-z]{3}\b")


def tokenize(value: str) -> List[str]:
    """Lower-cased word tokens of at least three characters."""
    text = _TOKEN_STRIP_RE.sub(" ", (value or "").lower())
    return [token for token in text.split() if len(token) >= 3]


def token_overlap(a: str, b: str) -> float:
    tokens_a, tokens_b = set(tokenize(a)), set(tokenize(b))
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / max(len(tokens_a), len(tokens_b))


def day_span(first: str, last: str) -> int:
    try:
        return abs((date.fromisoformat(last) - date.fromisoformat(first)).days)
    except ValueError:
        return 999


def _cue_text(candidate: Candidate) -> str:
    return f"{candidate.title} {candidate.source_text}"


def location_key(candidate: Candidate) -> str:
    """Bucket key for trip detection: location, else short codes from the text, else 'trip'."""
    location = (candidate.location or "").lower()
    if location:
        return location
    codes = _CODE_RE.findall(_cue_text(candidate).lower())[:2]
    return "-".join(codes) or "trip"


def _by_start(members: Iterable[Candidate]) -> List[Candidate]:
    return sorted(members, key=lambda c: c.start)


class StructureDetector:
    """Finds multi-event structures among deduplicated candidates."""

    def __init__(self, cue_matcher: Optional[CueMatcher] = None):
        self.cues = cue_matcher or DEFAULT_CUE_MATCHER

    def detect(self, candidates: Sequence[Candidate]) -> StructureResult:
        items = list(candidates)
        unassigned: Set[str] = {c.id for c in items}
        groups: List[StructureGroupDef] = []

        def claim(group_type, title, rationale, members, boost):
            for member in members:
                unassigned.discard(member.id)
            groups.append(StructureGroupDef(
                group_id=f"g{len(groups) + 1}",
                group_type=group_type,
                group_title=title,
                group_rationale=rationale,
                member_ids=tuple(m.id for m in members),
                confidence_boost=boost,
                ordering_bonus=ORDERING_BONUS,
            ))

        self._detect_trips(items, unassigned, claim)
        self._detect_agendas(items, unassigned, claim)
        self._detect_series(items, unassigned, claim)

        result = StructureResult(groups=tuple(groups))
        logger.debug(f"Structure detection found {len(groups)} groups: {[g.group_type for g in groups]}")
        return result

    # --- Trip ---

    def _has_trip_cue(self, candidate: Candidate) -> bool:
        return self.cues.has_trip_cue(_cue_text(candidate))

    def _trip_signals(self, ordered: List[Candidate]):
        has_outbound = any(self.cues.has_outbound_cue(_cue_text(c)) for c in ordered)
        has_return = any(self.cues.has_return_cue(_cue_text(c)) for c in ordered)
        within_span = day_span(ordered[0].date, ordered[-1].date) <= TRIP_MAX_SPAN_DAYS
        return has_outbound, has_return, within_span

    def _detect_trips(self, items, unassigned, claim) -> None:
        buckets: Dict[str, List[Candidate]] = {}
        for candidate in items:
            if self._has_trip_cue(candidate):
                buckets.setdefault(location_key(candidate), []).append(candidate)

        for bucket in buckets.values():
            if len(bucket) < 2:
                continue
            ordered = _by_start(bucket)
            has_outbound, has_return, within_span = self._trip_signals(ordered)
            if not (has_outbound or has_return or within_span):
                continue
            members = [c for c in ordered if c.id in unassigned]
            if len(members) < 2:
                continue
            route = (members[0].location or members[0].title or "Route")[:GROUP_TITLE_MAX_CHARS]
            claim("trip", f"Trip: {route}",
                  "Matched travel cues with outbound/return or close travel dates.",
                  members, TRIP_CONFIDENCE_BOOST)

        # Outbound/return pairs described without matching location tokens.
        remaining = _by_start(c for c in items if c.id in unassigned and self._has_trip_cue(c))
        if len(remaining) < 2:
            return
        has_outbound, has_return, within_span = self._trip_signals(remaining)
        if (has_outbound and has_return) or within_span:
            route = (remaining[0].title or remaining[0].location or "Route")[:GROUP_TITLE_MAX_CHARS]
            claim("trip", f"Trip: {route}",
                  "Matched outbound/return travel signals across document.",
                  remaining, TRIP_CONFIDENCE_BOOST)

    # --- Agenda ---

    def _detect_agendas(self, items, unassigned, claim) -> None:
        by_date: Dict[str, List[Candidate]] = {}
        for candidate in items:
            if candidate.id in unassigned:
                by_date.setdefault(candidate.date, []).append(candidate)

        for day, bucket in by_date.items():
            if len(bucket) < 2:
                continue
            topic = bucket[0].title or "Topic"
            related = [
                c for c in bucket
                if token_overlap(topic, c.title) >= AGENDA_MIN_OVERLAP
                or token_overlap(topic, c.source_text) >= AGENDA_MIN_OVERLAP
            ]
            members = [c for c in related if c.id in unassigned]
            if len(members) < 2:
                continue
            claim("agenda", f"Agenda: {(topic or day)[:GROUP_TITLE_MAX_CHARS]}",
                  "Multiple same-day slots with shared topic keywords.",
                  members, DEFAULT_CONFIDENCE_BOOST)

    # --- Series ---

    def _detect_series(self, items, unassigned, claim) -> None:
        by_title: Dict[str, List[Candidate]] = {}
        for candidate in items:
            if candidate.id in unassigned:
                key = " ".join(tokenize(candidate.title)[:3]) or "untitled"
                by_title.setdefault(key, []).append(candidate)

        for title_key, bucket in by_title.items():
            if len(bucket) < SERIES_MIN_MEMBERS:
                continue
            times: Dict[str, int] = {}
            for candidate in bucket:
                times[candidate.clock_time] = times.get(candidate.clock_time, 0) + 1
            if max(times.values()) < SERIES_MIN_SAME_TIME:
                continue
            members = [c for c in bucket if c.id in unassigned]
            if len(members) < SERIES_MIN_MEMBERS:
                continue
            claim("series", f"Series: {title_key[:GROUP_TITLE_MAX_CHARS]}",
                  "Recurring title and weekday/time pattern detected.",
                  members, DEFAULT_CONFIDENCE_BOOST)


def detect_structure_candidates(candidates: Sequence[Candidate],
                                cue_matcher: Optional[CueMatcher] = None) -> StructureResult:
    return StructureDetector(cue_matcher).detect(candidates)
