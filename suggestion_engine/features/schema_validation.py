"""Exact-shape validation of the engine output.

A violation means the engine (or an injected fallback strategy) produced
broken data. It is raised, never repaired.
"""

import re
from typing import Any, Iterable, Mapping

from suggestion_engine.features.suggestion_models import GROUP_TYPES, TIMESTAMP_RE

SCHEMA_TAG = "[SCHEMA]"

ROOT_KEYS = ("groups", "meta")
GROUP_KEYS = ("groupId", "groupType", "groupTitle", "groupRationale", "groupConfidence", "members")
MEMBER_KEYS = ("id", "title", "start", "end", "location", "suggestionConfidence", "explanation", "source")
EXPLANATION_KEYS = ("title", "bullets")
SOURCE_KEYS = ("documentId", "lineHints")
META_KEYS = ("aiFallbackUsed", "aiFallbackReason")

_GROUP_ID_RE = re.compile(r"[a-z0-9-]", re.IGNORECASE)


class SchemaValidationError(ValueError):
    """The engine output broke its contract."""

    def __init__(self, message: str):
        super().__init__(f"{SCHEMA_TAG} {message}")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_unit_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and 0 <= value <= 1


def assert_exact_keys(obj: Any, keys: Iterable[str], path: str) -> None:
    if not isinstance(obj, Mapping):
        raise SchemaValidationError(f"{path} must be an object, got {type(obj).__name__}")
    expected = sorted(keys)
    actual = sorted(str(k) for k in obj.keys())
    if actual != expected:
        raise SchemaValidationError(
            f"{path} keys mismatch. expected={','.join(expected)} actual={','.join(actual)}"
        )


def _validate_member(member: Any, path: str) -> None:
    assert_exact_keys(member, MEMBER_KEYS, path)
    for field in ("start", "end"):
        if not isinstance(member[field], str) or not TIMESTAMP_RE.fullmatch(member[field]):
            raise SchemaValidationError(f"{path}.{field} invalid format: {member[field]!r}")
    if not (member["location"] is None or isinstance(member["location"], str)):
        raise SchemaValidationError(f"{path}.location must be null or a string")
    if not _is_unit_number(member["suggestionConfidence"]):
        raise SchemaValidationError(f"{path}.suggestionConfidence must be a number in [0,1]")

    assert_exact_keys(member["explanation"], EXPLANATION_KEYS, f"{path}.explanation")
    if not _is_sequence(member["explanation"]["bullets"]):
        raise SchemaValidationError(f"{path}.explanation.bullets must be an array")

    assert_exact_keys(member["source"], SOURCE_KEYS, f"{path}.source")
    if not _is_sequence(member["source"]["lineHints"]):
        raise SchemaValidationError(f"{path}.source.lineHints must be an array")


def _validate_group(group: Any, path: str) -> None:
    assert_exact_keys(group, GROUP_KEYS, path)
    if not isinstance(group["groupId"], str) or not _GROUP_ID_RE.search(group["groupId"]):
        raise SchemaValidationError(f"{path}.groupId invalid: {group['groupId']!r}")
    if group["groupType"] not in GROUP_TYPES:
        raise SchemaValidationError(f"{path}.groupType invalid: {group['groupType']!r}")
    if not _is_unit_number(group["groupConfidence"]):
        raise SchemaValidationError(f"{path}.groupConfidence must be a number in [0,1]")
    if not _is_sequence(group["members"]):
        raise SchemaValidationError(f"{path}.members must be an array")
    for index, member in enumerate(group["members"]):
        _validate_member(member, f"{path}.members[{index}]")


def validate_output_schema(output: Any) -> None:
    """Asserts the exact EngineOutput shape.

    Raises:
        SchemaValidationError: On the first violation found.
    """
    assert_exact_keys(output, ROOT_KEYS, "root")
    if not _is_sequence(output["groups"]):
        raise SchemaValidationError("groups must be an array")
    for index, group in enumerate(output["groups"]):
        _validate_group(group, f"groups[{index}]")

    meta = output["meta"]
    assert_exact_keys(meta, META_KEYS, "meta")
    if not isinstance(meta["aiFallbackUsed"], bool):
        raise SchemaValidationError("meta.aiFallbackUsed must be boolean")
    if not (meta["aiFallbackReason"] is None or isinstance(meta["aiFallbackReason"], str)):
        raise SchemaValidationError("meta.aiFallbackReason must be null or a string")
