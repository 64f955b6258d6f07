"""Review workflow for suggestions: pending -> accepted/dismissed -> committed.

Status maps are caller-owned and never mutated in place; every operation
returns a new map. Accepting alone never commits: the caller creates the
real calendar event only when should_commit() is true, then records
COMMITTED with set_status().
"""

import logging
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

logger = logging.getLogger(__name__)


class SuggestionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DISMISSED = "dismissed"
    COMMITTED = "committed"


StatusMap = Dict[str, str]

ALLOWED_TRANSITIONS: Dict[SuggestionStatus, FrozenSet[SuggestionStatus]] = {
    SuggestionStatus.PENDING: frozenset({SuggestionStatus.ACCEPTED, SuggestionStatus.DISMISSED}),
    SuggestionStatus.ACCEPTED: frozenset({SuggestionStatus.COMMITTED}),
    SuggestionStatus.DISMISSED: frozenset(),
    SuggestionStatus.COMMITTED: frozenset(),
}


def _parse_status(value: Any) -> Optional[SuggestionStatus]:
    try:
        return SuggestionStatus(value)
    except ValueError:
        return None


def _suggestion_id(suggestion: Any) -> Optional[str]:
    if isinstance(suggestion, Mapping):
        return suggestion.get("id")
    return getattr(suggestion, "id", None)


def create_status_map(suggestions: Iterable[Any]) -> StatusMap:
    """Marks every suggestion (mapping or object with an id) as pending."""
    status_map: StatusMap = {}
    for suggestion in suggestions or []:
        suggestion_id = _suggestion_id(suggestion)
        if suggestion_id:
            status_map[str(suggestion_id)] = SuggestionStatus.PENDING.value
    return status_map


def set_status(current: Optional[Mapping[str, str]], suggestion_id: str,
               next_status: Union[SuggestionStatus, str]) -> StatusMap:
    """Returns a new map with the status overwritten.

    Unknown status values and empty ids leave the map unchanged.
    """
    base: StatusMap = dict(current or {})
    status = _parse_status(next_status)
    if not suggestion_id or status is None:
        logger.warning(f"Ignoring status change for suggestion '{suggestion_id}' to '{next_status}'")
        return base
    base[suggestion_id] = status.value
    return base


def can_transition(current: Union[SuggestionStatus, str], next_status: Union[SuggestionStatus, str]) -> bool:
    """Whether the lifecycle allows moving from current to next_status."""
    source, target = _parse_status(current), _parse_status(next_status)
    if source is None or target is None:
        return False
    return target in ALLOWED_TRANSITIONS[source]


def can_commit(status: Union[SuggestionStatus, str, None]) -> bool:
    return _parse_status(status) is SuggestionStatus.ACCEPTED


def should_commit(status: Union[SuggestionStatus, str, None], explicitly_confirmed: Any) -> bool:
    """True only for an accepted suggestion with explicit confirmation."""
    return can_commit(status) and explicitly_confirmed is True
