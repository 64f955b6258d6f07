"""AI fallback gate and grouping fallback strategies.

The gate is a pure rule: fall back only when no structure was detected,
there is more than one candidate, and the best deterministic group
confidence is below the threshold. Strategies never run otherwise.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional

from pydantic import AliasChoices, BaseModel, Field

from suggestion_engine.features.confidence import compute_group_confidence
from suggestion_engine.features.grouping import SINGLETON_RATIONALE
from suggestion_engine.features.suggestion_models import FallbackContext
from suggestion_engine.interfaces.fallback_interface import GroupFallbackStrategy
from suggestion_engine.interfaces.llm_interface import LLMInterface

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_THRESHOLD = 0.55


def should_use_ai_fallback(
    has_structure: bool,
    candidate_count: int,
    best_confidence: float,
    threshold: float = DEFAULT_FALLBACK_THRESHOLD,
) -> bool:
    """True only if there is no structure, >1 candidate and best confidence < threshold."""
    return not has_structure and candidate_count > 1 and best_confidence < threshold


def fallback_reason(threshold: float = DEFAULT_FALLBACK_THRESHOLD) -> str:
    return f"No deterministic structure and low grouping confidence (<{threshold:g})."


class CallableGroupFallback:
    """Adapts a plain function fn(context) -> {"groups": [...]} to GroupFallbackStrategy."""

    def __init__(self, fn: Callable[[FallbackContext], Mapping[str, Any]]):
        self.fn = fn

    def propose_groups(self, context: FallbackContext) -> Mapping[str, Any]:
        return self.fn(context)


def as_fallback_strategy(strategy: Any) -> Optional[GroupFallbackStrategy]:
    """Normalizes an injected strategy or callable; None means no fallback."""
    if strategy is None or isinstance(strategy, GroupFallbackStrategy):
        return strategy
    if callable(strategy):
        return CallableGroupFallback(strategy)
    raise TypeError(f"ai_group_fallback must be a GroupFallbackStrategy or callable, got {type(strategy).__name__}")


def run_fallback_strategy(strategy: GroupFallbackStrategy, context: FallbackContext) -> Optional[List[Any]]:
    """Calls the strategy once, returning its groups or None on any failure."""
    try:
        proposal = strategy.propose_groups(context)
    except Exception as e:
        logger.warning(f"Grouping fallback strategy failed, keeping deterministic groups: {e}", exc_info=True)
        return None
    if not isinstance(proposal, Mapping) or not isinstance(proposal.get("groups"), list):
        logger.warning(f"Grouping fallback returned a malformed result ({type(proposal).__name__}), keeping deterministic groups.")
        return None
    return list(proposal["groups"])


# --- Model-backed strategy ---

class ProposedGroup(BaseModel):
    group_type: Literal["trip", "agenda", "series", "none"] = Field(
        default="none", validation_alias=AliasChoices("groupType", "group_type")
    )
    group_title: str = Field(validation_alias=AliasChoices("groupTitle", "group_title"))
    group_rationale: str = Field(
        default="Grouped by model-assisted fallback.",
        validation_alias=AliasChoices("groupRationale", "group_rationale"),
    )
    member_ids: List[str] = Field(validation_alias=AliasChoices("memberIds", "member_ids"))


class ProposedGrouping(BaseModel):
    groups: List[ProposedGroup]


def parse_llm_grouping(raw_response: str) -> ProposedGrouping:
    """Parses the JSON object embedded in an LLM reply.

    Raises:
        ValueError: If no JSON object is found or it does not validate.
    """
    text = raw_response or ""
    start, end = text.find("{"), text.rfind("}")
    if start < 0 or end <= start:
        raise ValueError("LLM response contains no JSON object")
    # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors.
    return ProposedGrouping.model_validate(json.loads(text[start:end + 1]))


def _member_key(member: Mapping[str, Any]):
    return str(member.get("start", "")), -float(member.get("suggestionConfidence", 0) or 0)


def assemble_groups(proposal: ProposedGrouping, deterministic: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Rebuilds output groups from proposed member ids.

    Members are taken from the deterministic output so that only the
    grouping changes. Unknown ids are ignored, ids claimed twice keep their
    first group, and members the proposal does not mention stay singletons.
    """
    members_by_id = {m["id"]: m for g in deterministic for m in g.get("members", [])}
    used = set()
    groups = []

    def add(group_type, title, rationale, members, ordered):
        confidences = [m["suggestionConfidence"] for m in members]
        groups.append({
            "groupId": f"ai-{len(groups) + 1}",
            "groupType": group_type,
            "groupTitle": title[:140],
            "groupRationale": rationale[:140],
            "groupConfidence": compute_group_confidence(confidences, ordering_consistent=ordered),
            "members": members,
        })

    for proposed in proposal.groups:
        members = [members_by_id[mid] for mid in dict.fromkeys(proposed.member_ids)
                   if mid in members_by_id and mid not in used]
        if not members:
            continue
        used.update(m["id"] for m in members)
        members.sort(key=_member_key)
        add(proposed.group_type, proposed.group_title, proposed.group_rationale, members, len(members) > 1)

    for member_id, member in members_by_id.items():
        if member_id not in used:
            add("none", member["title"], SINGLETON_RATIONALE, [member], False)

    groups.sort(key=lambda g: (-g["groupConfidence"], g["groupType"] == "none", g["members"][0]["start"]))
    return groups


class LLMGroupFallback:
    """Asks an LLM to regroup candidates by id when deterministic detection is weak."""

    def __init__(self, llm: LLMInterface, model: str | None = None):
        self.llm = llm
        self.model = model

    def build_prompt(self, context: FallbackContext) -> str:
        lines = [
            f"- id={c.id} | title={c.title} | start={c.start} | location={c.location or '-'}"
            for c in context.candidates
        ]
        listing = "\n".join(lines)
        return f"""System: You group calendar suggestions extracted from one document. Decide which of the following items belong together as a trip (outbound/return travel), an agenda (several slots of one event on the same day) or a series (recurring occurrences). Items that belong to nothing stay alone.

Items:
---
{listing}
---

Respond with JSON only, in the form {{"groups": [{{"groupType": "trip|agenda|series|none", "groupTitle": "...", "groupRationale": "...", "memberIds": ["..."]}}]}}.
"""

    def propose_groups(self, context: FallbackContext) -> Dict[str, Any]:
        prompt = self.build_prompt(context)
        logger.debug(f"Sending grouping fallback prompt to LLM:\n{prompt}")
        raw_response = self.llm.generate(prompt=prompt, model=self.model)
        logger.debug(f"Raw LLM grouping response:\n{raw_response}")
        proposal = parse_llm_grouping(raw_response)
        return {"groups": assemble_groups(proposal, context.deterministic)}
