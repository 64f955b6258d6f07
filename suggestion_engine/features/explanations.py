"""Short, scannable explanations attached to every suggestion member."""

import re

from suggestion_engine.features.suggestion_models import Candidate, Explanation

MAX_TEXT_CHARS = 140
MAX_BULLETS = 4
TITLE_CUE_CHARS = 40
LOCATION_CUE_CHARS = 30
REDACTED = "[redacted]"

EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
# Seven or more digits with common separators, but not an ISO or dotted date.
PHONE_RE = re.compile(r"(?<![\w-])(?!\d{4}-\d{2}-\d{2})(?!\d{1,2}\.\d{1,2}\.\d{2,4}(?!\d))\+?\d(?:[\s().-]{0,2}\d){6,14}(?![\w-])")
_WHITESPACE_RE = re.compile(r"\s+")


def redact(value: str) -> str:
    """Replaces email-address and phone-number shaped substrings."""
    return PHONE_RE.sub(REDACTED, EMAIL_RE.sub(REDACTED, value or ""))


def clean(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", redact(value)).strip()[:MAX_TEXT_CHARS]


def build_explanation(
    candidate: Candidate,
    group_type: str,
    context_type: str,
    confidence: float,
) -> Explanation:
    """Builds a classification line plus up to four bullets."""
    structured = bool(group_type) and group_type != "none"
    kind = group_type if structured else (context_type or "event")

    cues = []
    if candidate.title:
        cues.append(f'title "{clean(candidate.title)[:TITLE_CUE_CHARS]}"')
    if candidate.start:
        cues.append(f"date/time {candidate.start}")
    if candidate.location:
        cues.append(f"location {clean(candidate.location)[:LOCATION_CUE_CHARS]}")

    bullets = [f"Key cues: {', '.join(cues[:2])}." if cues else "Key cues: keyword-based extraction."]
    if candidate.missing_date or candidate.missing_time:
        missing = " + ".join(
            label for label, flag in (("date", candidate.missing_date), ("start time", candidate.missing_time)) if flag
        )
        bullets.append(f"Lower confidence: missing {missing}.")
    else:
        bullets.append("High confidence: date and start time available.")
    if structured:
        bullets.append(f"Grouping rationale: part of {group_type} structure.")
    bullets.append(f"Confidence summary: {round(confidence * 100)}%.")

    return Explanation(
        title=clean(f"Detected as {clean(kind)} based on deterministic signals."),
        bullets=tuple(_WHITESPACE_RE.sub(" ", b).strip()[:MAX_TEXT_CHARS] for b in bullets[:MAX_BULLETS]),
    )
