"""Pydantic models for the Suggestion Grouping feature.

Input models (ParsedDocument, ExtractedItem) are lenient: unusable field
values are coerced to defaults so that no extracted item is ever dropped.
Internal and output models are frozen value objects; every engine stage
builds new instances instead of mutating existing ones.
"""

import re
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^\d{2}:\d{2}$"
TIMESTAMP_PATTERN = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}$"

DATE_RE = re.compile(DATE_PATTERN)
TIME_RE = re.compile(TIME_PATTERN)
TIMESTAMP_RE = re.compile(TIMESTAMP_PATTERN)

StructureType = Literal["trip", "agenda", "series"]
GroupType = Literal["trip", "agenda", "series", "none"]
GROUP_TYPES: Tuple[str, ...] = ("trip", "agenda", "series", "none")


def clamp01(value: Any) -> float:
    """Coerces a value to a float within [0, 1]; non-numbers become 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number or number < 0: # NaN or negative
        return 0.0
    if number > 1:
        return 1.0
    return number


def _optional_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    return None


# --- Input models ---

class DocumentContext(BaseModel):
    """Document-level signals supplied by the upstream extractor."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    confidence: float = 0.5
    context_type: str = Field(
        default="generic",
        validation_alias=AliasChoices("contextType", "context_type", "type"),
    )

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> float:
        return 0.5 if value is None else clamp01(value)

    @field_validator("context_type", mode="before")
    @classmethod
    def _coerce_context_type(cls, value: Any) -> str:
        return _optional_text(value) or "generic"


class ExtractedItem(BaseModel):
    """Raw per-candidate fields as produced by text/document extraction."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "_suggestionId"))
    title: Optional[str] = None
    date_iso: Optional[str] = Field(default=None, validation_alias=AliasChoices("dateISO", "date_iso"))
    start_time: Optional[str] = Field(default=None, validation_alias=AliasChoices("startTime", "start_time"))
    duration_min: Optional[float] = Field(default=None, validation_alias=AliasChoices("durationMin", "duration_min"))
    location: Optional[str] = None
    field_confidence: float = Field(
        default=0.5,
        validation_alias=AliasChoices("fieldConfidence", "field_confidence", "confidence"),
    )
    source_snippet: str = Field(
        default="",
        validation_alias=AliasChoices("sourceSnippet", "source_snippet", "sourceText"),
    )
    line_hints: Optional[List[str]] = Field(default=None, validation_alias=AliasChoices("lineHints", "line_hints"))

    @field_validator("id", "title", "date_iso", "start_time", "location", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _optional_text(value)

    @field_validator("source_snippet", mode="before")
    @classmethod
    def _coerce_snippet(cls, value: Any) -> str:
        return _optional_text(value) or ""

    @field_validator("duration_min", mode="before")
    @classmethod
    def _coerce_duration(cls, value: Any) -> Optional[float]:
        if isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    @field_validator("field_confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> float:
        return 0.5 if value is None else clamp01(value)

    @field_validator("line_hints", mode="before")
    @classmethod
    def _coerce_line_hints(cls, value: Any) -> Optional[List[str]]:
        if not isinstance(value, (list, tuple)):
            return None
        return [str(hint) for hint in value]


class ParsedDocument(BaseModel):
    """Output of the upstream extractor: a document id, its items and context."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    document_id: str = Field(default="doc-1", validation_alias=AliasChoices("documentId", "document_id"))
    items: List[ExtractedItem] = Field(default_factory=list)
    context: DocumentContext = Field(default_factory=DocumentContext)

    @model_validator(mode="before")
    @classmethod
    def _lift_meta(cls, data: Any) -> Any:
        # Older extractors nest context and document id under "meta",
        # or send only a top-level contextConfidence.
        if not isinstance(data, dict):
            return data
        lifted = dict(data)
        meta = data.get("meta")
        if isinstance(meta, dict):
            if not lifted.get("context") and isinstance(meta.get("context"), dict):
                lifted["context"] = meta["context"]
            if not (lifted.get("documentId") or lifted.get("document_id")) and meta.get("documentId"):
                lifted["documentId"] = meta["documentId"]
        if lifted.get("contextConfidence") is not None:
            context = lifted.get("context")
            if context is None or isinstance(context, dict):
                context = dict(context or {})
                if context.get("confidence") is None:
                    context["confidence"] = lifted["contextConfidence"]
                lifted["context"] = context
        return lifted

    @field_validator("document_id", mode="before")
    @classmethod
    def _coerce_document_id(cls, value: Any) -> str:
        return _optional_text(value) or "doc-1"

    @field_validator("items", mode="before")
    @classmethod
    def _coerce_items(cls, value: Any) -> List[Any]:
        if not isinstance(value, (list, tuple)):
            return []
        return [item if isinstance(item, (dict, ExtractedItem)) else {} for item in value]

    @field_validator("context", mode="before")
    @classmethod
    def _coerce_context(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, DocumentContext)) else {}


# --- Internal models ---

class Candidate(BaseModel):
    """A normalized candidate with canonical YYYY-MM-DDTHH:MM start/end."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    start: str = Field(pattern=TIMESTAMP_PATTERN)
    end: str = Field(pattern=TIMESTAMP_PATTERN)
    location: Optional[str] = None
    field_confidence: float = 0.5
    missing_date: bool = False
    missing_time: bool = False
    source_text: str = ""
    source_document_id: str = "doc-1"
    source_line_hints: Tuple[str, ...] = ()
    suggestion_confidence: float = 0.0

    @property
    def date(self) -> str:
        return self.start[:10]

    @property
    def clock_time(self) -> str:
        return self.start[11:16]

    def with_confidence(self, confidence: float) -> "Candidate":
        """Returns a copy carrying the given suggestion confidence."""
        return self.model_copy(update={"suggestion_confidence": clamp01(confidence)})


class StructureGroupDef(BaseModel):
    """A trip/agenda/series cluster found by the structure detector."""
    model_config = ConfigDict(frozen=True)

    group_id: str
    group_type: StructureType
    group_title: str
    group_rationale: str
    member_ids: Tuple[str, ...]
    confidence_boost: float = 0.08
    ordering_bonus: float = 0.03


class StructureResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    groups: Tuple[StructureGroupDef, ...] = ()

    @property
    def has_structure(self) -> bool:
        return len(self.groups) > 0


# --- Output models (serialized with camelCase keys) ---

class _OutputModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Explanation(_OutputModel):
    title: str
    bullets: Tuple[str, ...] = ()


class MemberSource(_OutputModel):
    document_id: str
    line_hints: Tuple[str, ...] = ()


class Member(_OutputModel):
    id: str
    title: str
    start: str
    end: str
    location: Optional[str] = None
    suggestion_confidence: float
    explanation: Explanation
    source: MemberSource


class Group(_OutputModel):
    group_id: str
    group_type: GroupType
    group_title: str
    group_rationale: str
    group_confidence: float
    members: Tuple[Member, ...]

    def to_output(self) -> Dict[str, Any]:
        """Serializes the group into its JSON output shape."""
        return self.model_dump(by_alias=True, mode="json")


class FallbackContext(BaseModel):
    """What an injected grouping fallback strategy gets to see."""
    model_config = ConfigDict(frozen=True)

    candidates: Tuple[Candidate, ...]
    deterministic: List[Dict[str, Any]]
