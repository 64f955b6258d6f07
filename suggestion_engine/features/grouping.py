"""Assembles scored, explained, deterministically ordered suggestion groups."""

import logging
from typing import Dict, List, Sequence, Tuple

from suggestion_engine.features.confidence import compute_group_confidence, compute_suggestion_confidence
from suggestion_engine.features.explanations import build_explanation
from suggestion_engine.features.suggestion_models import (
    Candidate,
    Group,
    Member,
    MemberSource,
    StructureResult,
)

logger = logging.getLogger(__name__)

SINGLETON_RATIONALE = "No strong deterministic multi-event structure match."


def member_sort_key(candidate: Candidate) -> Tuple[str, float]:
    """Start ascending, then higher confidence first."""
    return candidate.start, -candidate.suggestion_confidence


def is_time_ordered(members: Sequence[Candidate]) -> bool:
    return all(a.start <= b.start for a, b in zip(members, members[1:]))


def to_member(candidate: Candidate, group_type: str, context_type: str) -> Member:
    return Member(
        id=candidate.id,
        title=candidate.title,
        start=candidate.start,
        end=candidate.end,
        location=candidate.location,
        suggestion_confidence=candidate.suggestion_confidence,
        explanation=build_explanation(candidate, group_type, context_type, candidate.suggestion_confidence),
        source=MemberSource(document_id=candidate.source_document_id, line_hints=candidate.source_line_hints),
    )


def group_deterministically(
    candidates: Sequence[Candidate],
    structures: StructureResult,
    context_confidence: float = 0.5,
    context_type: str = "generic",
) -> Tuple[List[Group], List[Candidate]]:
    """Builds structured and singleton groups.

    Members of a structure are re-scored with the structure bonus; every
    unclaimed candidate becomes its own 'none' group. Groups are ordered by
    descending confidence, then structured before singleton, then by
    confidence boost, then by earliest member start.

    Args:
        candidates: Deduplicated candidates.
        structures: Result of structure detection over those candidates.
        context_confidence: Document-level confidence used for re-scoring.
        context_type: Document classification used in singleton explanations.

    Returns:
        The ordered groups and the re-scored candidates (input order).
    """
    by_id: Dict[str, Candidate] = {c.id: c for c in candidates}
    rescored: Dict[str, Candidate] = {}
    ranked = []

    for definition in structures.groups:
        members = sorted(
            (
                by_id[member_id].with_confidence(
                    compute_suggestion_confidence(by_id[member_id], context_confidence, structure_match_strong=True)
                )
                for member_id in definition.member_ids
                if member_id in by_id
            ),
            key=member_sort_key,
        )
        if not members:
            continue
        rescored.update((m.id, m) for m in members)
        group = Group(
            group_id=definition.group_id,
            group_type=definition.group_type,
            group_title=definition.group_title,
            group_rationale=definition.group_rationale,
            group_confidence=compute_group_confidence(
                [m.suggestion_confidence for m in members],
                ordering_consistent=is_time_ordered(members),
                ordering_bonus=definition.ordering_bonus,
            ),
            members=tuple(to_member(m, definition.group_type, context_type) for m in members),
        )
        ranked.append((group, True, definition.confidence_boost))

    singles = sorted(
        (
            c.with_confidence(compute_suggestion_confidence(c, context_confidence, structure_match_strong=False))
            for c in candidates
            if c.id not in rescored
        ),
        key=member_sort_key,
    )
    for index, candidate in enumerate(singles, start=1):
        rescored[candidate.id] = candidate
        group = Group(
            group_id=f"g-none-{index}",
            group_type="none",
            group_title=candidate.title or "Suggestion",
            group_rationale=SINGLETON_RATIONALE,
            group_confidence=compute_group_confidence([candidate.suggestion_confidence], ordering_consistent=False),
            members=(to_member(candidate, "none", context_type),),
        )
        ranked.append((group, False, 0.0))

    ranked.sort(key=lambda entry: (
        -entry[0].group_confidence,
        not entry[1],
        -entry[2],
        entry[0].members[0].start,
    ))
    groups = [group for group, _, _ in ranked]
    logger.debug(f"Grouped {len(candidates)} candidates into {len(groups)} groups")
    return groups, [rescored[c.id] for c in candidates if c.id in rescored]
