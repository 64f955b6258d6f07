"""Service layer for the Suggestion Grouping feature.

Wires candidate building, scoring, deduplication, structure detection,
grouping, the AI fallback gate and schema validation into one call.
The engine is synchronous and keeps no state between calls.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Union

from suggestion_engine.core.config import Settings, get_settings
from suggestion_engine.features.ai_fallback import (
    as_fallback_strategy,
    fallback_reason,
    run_fallback_strategy,
    should_use_ai_fallback,
)
from suggestion_engine.features.candidates import build_candidates, coerce_document
from suggestion_engine.features.confidence import compute_suggestion_confidence
from suggestion_engine.features.cue_matcher import CueMatcher, cue_matcher_from_settings
from suggestion_engine.features.dedup import deduplicate_suggestions
from suggestion_engine.features.grouping import group_deterministically
from suggestion_engine.features.schema_validation import validate_output_schema
from suggestion_engine.features.structure_detector import StructureDetector
from suggestion_engine.features.suggestion_models import FallbackContext, ParsedDocument
from suggestion_engine.interfaces.fallback_interface import GroupFallbackStrategy

logger = logging.getLogger(__name__)


def build_suggestion_groups(
    parsed_document: Union[ParsedDocument, Mapping[str, Any]],
    reference_date: Optional[str] = None,
    dev_log: Optional[bool] = None,
    ai_group_fallback: Optional[GroupFallbackStrategy] = None,
    settings: Optional[Settings] = None,
    cue_matcher: Optional[CueMatcher] = None,
) -> Dict[str, Any]:
    """Turns a parsed document into review-ready suggestion groups.

    Args:
        parsed_document: A ParsedDocument or its raw JSON mapping.
        reference_date: YYYY-MM-DD used for items without a date
            (defaults to settings.reference_date, then today UTC).
        dev_log: Log the fallback decision at INFO (defaults to settings.dev_log).
        ai_group_fallback: Strategy (or plain callable) consulted only when
            the fallback gate fires.
        settings: Engine settings; loaded with get_settings() if omitted.
        cue_matcher: Keyword cues for trip detection (defaults to the
            locales/cue file from settings).

    Returns:
        The EngineOutput JSON shape: {"groups": [...], "meta": {...}}.

    Raises:
        SchemaValidationError: If the final output breaks the output contract.
    """
    settings = settings or get_settings()
    if reference_date is None:
        reference_date = settings.reference_date
    if dev_log is None:
        dev_log = settings.dev_log
    if cue_matcher is None:
        cue_matcher = cue_matcher_from_settings(settings.cue_locales, settings.cue_file)
    strategy = as_fallback_strategy(ai_group_fallback)

    document = coerce_document(parsed_document)
    context_confidence = document.context.confidence
    context_type = document.context.context_type

    candidates = build_candidates(document, reference_date, default_duration=settings.default_duration_min)
    pre_scored = [
        c.with_confidence(compute_suggestion_confidence(c, context_confidence, structure_match_strong=False))
        for c in candidates
    ]
    deduped = deduplicate_suggestions(pre_scored)
    logger.debug(f"Deduplicated {len(pre_scored)} candidates to {len(deduped)}")

    structures = StructureDetector(cue_matcher).detect(deduped)
    groups, rescored = group_deterministically(deduped, structures, context_confidence, context_type)
    output_groups = [group.to_output() for group in groups]

    best_confidence = max((g.group_confidence for g in groups), default=0.0)
    ai_fallback_used = False
    ai_fallback_reason = None
    if should_use_ai_fallback(structures.has_structure, len(rescored), best_confidence,
                              settings.ai_fallback_threshold):
        ai_fallback_reason = fallback_reason(settings.ai_fallback_threshold)
        logger.log(logging.INFO if dev_log else logging.DEBUG,
                   f"[AI_FALLBACK] {ai_fallback_reason} best={best_confidence:.2f}")
        if strategy is not None:
            context = FallbackContext(candidates=tuple(rescored), deterministic=output_groups)
            fallback_groups = run_fallback_strategy(strategy, context)
            if fallback_groups is not None:
                output_groups = fallback_groups
                ai_fallback_used = True

    output = {
        "groups": output_groups,
        "meta": {"aiFallbackUsed": ai_fallback_used, "aiFallbackReason": ai_fallback_reason},
    }
    validate_output_schema(output)
    logger.info(
        f"Built {len(output_groups)} suggestion groups for document '{document.document_id}' "
        f"(structures={len(structures.groups)}, aiFallbackUsed={ai_fallback_used})"
    )
    return output
