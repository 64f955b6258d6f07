"""Locale keyword cues used by the structure detector.

Cue lists are plain data: the built-in sets below can be extended per
locale from a JSON file so that a missing or misspelled keyword is fixed
by editing data, not the detector.
"""

import json
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class CueSet(BaseModel):
    """Keywords for one locale."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    trip: List[str] = Field(default_factory=list)
    outbound: List[str] = Field(default_factory=list)
    return_: List[str] = Field(default_factory=list, alias="return")


BUILTIN_CUE_SETS: Dict[str, CueSet] = {
    "en": CueSet(
        trip=["flight", "train", "trip", "departure", "arrival", "outbound", "return",
              "check-in", "check-out", "airport"],
        outbound=["outbound", "departure", "depart"],
        return_=["return", "inbound", "back"],
    ),
    # The German return-journey keyword is not built in; supply it via cue_file.
    "de": CueSet(
        trip=["zug", "reise", "abfahrt", "ankunft", "hinreise"],
        outbound=["hinreise", "abfahrt"],
        return_=["ankunft"],
    ),
}


def _compile(words: Iterable[str]) -> Optional["re.Pattern[str]"]:
    unique = sorted({w.strip().lower() for w in words if w and w.strip()}, key=len, reverse=True)
    if not unique:
        return None
    return re.compile(r"\b(?:" + "|".join(re.escape(w) for w in unique) + r")\b")


class CueMatcher:
    """Matches trip, outbound and return cues in free text."""

    def __init__(self, cue_sets: Iterable[CueSet]):
        sets = list(cue_sets)
        self._trip = _compile(w for s in sets for w in s.trip)
        self._outbound = _compile(w for s in sets for w in s.outbound)
        self._return = _compile(w for s in sets for w in s.return_)

    @classmethod
    def from_locales(cls, locales: Iterable[str] = ("en", "de"),
                     extra: Optional[Dict[str, CueSet]] = None) -> "CueMatcher":
        """Combines built-in locale sets with optional extra sets."""
        sets = []
        for locale in locales:
            cue_set = BUILTIN_CUE_SETS.get(locale)
            if cue_set is None:
                logger.warning(f"No built-in cue set for locale '{locale}'")
                continue
            sets.append(cue_set)
        sets.extend((extra or {}).values())
        return cls(sets)

    @staticmethod
    def _search(pattern: Optional["re.Pattern[str]"], text: str) -> bool:
        return bool(pattern and pattern.search((text or "").lower()))

    def has_trip_cue(self, text: str) -> bool:
        return self._search(self._trip, text)

    def has_outbound_cue(self, text: str) -> bool:
        return self._search(self._outbound, text)

    def has_return_cue(self, text: str) -> bool:
        return self._search(self._return, text)


def load_cue_file(path: str) -> Dict[str, CueSet]:
    """Loads extra cue sets keyed by locale from a JSON file.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content is not valid JSON or not a locale mapping.
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"Cue file {path} must contain an object keyed by locale")
    cue_sets = {locale: CueSet.model_validate(entry) for locale, entry in raw.items()}
    logger.debug(f"Loaded cue sets for locales {sorted(cue_sets)} from {path}")
    return cue_sets


def cue_matcher_from_settings(locales: Iterable[str], cue_file: Optional[str] = None) -> CueMatcher:
    extra = load_cue_file(cue_file) if cue_file else None
    return CueMatcher.from_locales(locales, extra)


DEFAULT_CUE_MATCHER = CueMatcher.from_locales()
