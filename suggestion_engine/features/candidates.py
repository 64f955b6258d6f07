"""Builds typed candidates from a parsed document.

No item is dropped here: unusable dates fall back to the reference date,
unusable times to midnight, and the missing_date/missing_time flags record
that the value was synthesized rather than observed.
"""

import itertools
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator, List, Mapping, Optional, Union

from suggestion_engine.features.suggestion_models import (
    DATE_RE,
    TIME_RE,
    TIMESTAMP_RE,
    Candidate,
    ExtractedItem,
    ParsedDocument,
)

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MIN = 60
LINE_HINT_MAX_CHARS = 80


def candidate_ids(prefix: str = "s") -> Iterator[str]:
    """Yields sequential candidate ids: s1, s2, ..."""
    return (f"{prefix}{n}" for n in itertools.count(1))


def today_utc() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def plus_minutes(start: str, duration: Optional[float], default_duration: int = DEFAULT_DURATION_MIN) -> str:
    """Adds a duration to a canonical timestamp, returning start unchanged if it cannot be parsed."""
    if not TIMESTAMP_RE.fullmatch(start):
        return start
    try:
        parsed = datetime.strptime(start, "%Y-%m-%dT%H:%M").replace(tzinfo=timezone.utc)
    except ValueError:
        return start
    # Zero or missing durations use the default; negative ones clamp to zero.
    minutes = duration if duration else default_duration
    try:
        end = parsed + timedelta(minutes=max(0.0, minutes))
    except OverflowError:
        return start
    return end.strftime("%Y-%m-%dT%H:%M")


def coerce_document(document: Union[ParsedDocument, Mapping[str, Any]]) -> ParsedDocument:
    if isinstance(document, ParsedDocument):
        return document
    return ParsedDocument.model_validate(document)


def build_candidate(
    item: ExtractedItem,
    candidate_id: str,
    document_id: str,
    reference_date: str,
    default_duration: int = DEFAULT_DURATION_MIN,
) -> Candidate:
    """Normalizes a single extracted item into a Candidate."""
    has_date = bool(item.date_iso and DATE_RE.fullmatch(item.date_iso))
    has_time = bool(item.start_time and TIME_RE.fullmatch(item.start_time))
    date = item.date_iso if has_date else reference_date
    time = item.start_time if has_time else "00:00"
    start = f"{date}T{time}"

    if item.line_hints is not None:
        line_hints = tuple(item.line_hints)
    elif item.source_snippet:
        line_hints = (item.source_snippet[:LINE_HINT_MAX_CHARS],)
    else:
        line_hints = ()

    return Candidate(
        id=item.id or candidate_id,
        title=item.title or "Event",
        start=start,
        end=plus_minutes(start, item.duration_min, default_duration),
        location=item.location or None,
        field_confidence=item.field_confidence,
        missing_date=not has_date,
        missing_time=not has_time,
        source_text=item.source_snippet,
        source_document_id=document_id,
        source_line_hints=line_hints,
    )


def build_candidates(
    document: Union[ParsedDocument, Mapping[str, Any]],
    reference_date: Optional[str] = None,
    id_sequence: Optional[Iterator[str]] = None,
    default_duration: int = DEFAULT_DURATION_MIN,
) -> List[Candidate]:
    """Converts every item of a parsed document into a Candidate.

    Args:
        document: A ParsedDocument or its raw JSON mapping.
        reference_date: YYYY-MM-DD used for items without a usable date.
            Defaults to today's UTC date.
        id_sequence: Source of ids for items that carry none. One id is
            consumed per item so generated ids follow item positions.
        default_duration: Minutes added to start when an item has no duration.

    Returns:
        One Candidate per item, in input order.
    """
    parsed = coerce_document(document)
    if reference_date is None or not DATE_RE.fullmatch(reference_date):
        if reference_date is not None:
            logger.warning(f"Ignoring malformed reference date '{reference_date}', using today (UTC).")
        reference_date = today_utc()
    ids = id_sequence if id_sequence is not None else candidate_ids()

    candidates = [
        build_candidate(item, next(ids), parsed.document_id, reference_date, default_duration)
        for item in parsed.items
    ]
    logger.debug(f"Built {len(candidates)} candidates for document '{parsed.document_id}'")
    return candidates
