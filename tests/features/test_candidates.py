"""Unit tests for candidate building."""

import pytest

from suggestion_engine.features.candidates import build_candidates, candidate_ids, plus_minutes
from suggestion_engine.features.suggestion_models import ParsedDocument

def test_build_candidates_canonical_start_and_end(make_item):
    document = {"documentId": "d1", "items": [make_item(dateISO="2026-03-12", startTime="08:00", durationMin=90)]}

    [candidate] = build_candidates(document, reference_date="2026-03-10")

    assert candidate.id == "s1"
    assert candidate.start == "2026-03-12T08:00"
    assert candidate.end == "2026-03-12T09:30"
    assert candidate.missing_date is False
    assert candidate.missing_time is False
    assert candidate.source_document_id == "d1"

def test_missing_date_and_time_are_synthesized_and_flagged(make_item):
    document = {"items": [make_item(dateISO="", startTime="8am")]}

    [candidate] = build_candidates(document, reference_date="2026-03-10")

    assert candidate.start == "2026-03-10T00:00"
    assert candidate.end == "2026-03-10T01:00"
    assert candidate.missing_date is True
    assert candidate.missing_time is True

def test_end_crosses_midnight():
    assert plus_minutes("2026-03-10T23:30", 60) == "2026-03-11T00:30"

def test_end_falls_back_to_start_when_unparseable():
    assert plus_minutes("2026-03-10T25:99", 60) == "2026-03-10T25:99"

def test_duration_defaults_and_negative_durations():
    assert plus_minutes("2026-03-10T09:00", None) == "2026-03-10T10:00"
    assert plus_minutes("2026-03-10T09:00", 0) == "2026-03-10T10:00"
    assert plus_minutes("2026-03-10T09:00", -30) == "2026-03-10T09:00"
    assert plus_minutes("2026-03-10T09:00", None, default_duration=30) == "2026-03-10T09:30"

def test_ids_follow_item_positions_and_keep_explicit_ids():
    document = {"items": [{"title": "A"}, {"id": "x", "title": "B"}, {"title": "C"}]}

    candidates = build_candidates(document, reference_date="2026-03-10")

    assert [c.id for c in candidates] == ["s1", "x", "s3"]

def test_explicit_id_sequence_is_threaded_through():
    document = {"items": [{"title": "A"}, {"title": "B"}]}

    candidates = build_candidates(document, reference_date="2026-03-10", id_sequence=candidate_ids("c"))

    assert [c.id for c in candidates] == ["c1", "c2"]

def test_malformed_items_are_never_dropped():
    document = {"items": [None, {"title": 42, "confidence": "high", "durationMin": "long"}, {}]}

    candidates = build_candidates(document, reference_date="2026-03-10")

    assert len(candidates) == 3
    assert candidates[0].title == "Event"
    assert candidates[1].title == "42"
    assert candidates[1].field_confidence == 0.0
    assert candidates[1].end == "2026-03-10T01:00"
    assert candidates[2].field_confidence == 0.5

def test_line_hints_default_to_snippet_prefix(make_item):
    snippet = "x" * 120
    document = {"items": [make_item(sourceSnippet=snippet), make_item(lineHints=[3, "line 4"])]}

    first, second = build_candidates(document, reference_date="2026-03-10")

    assert first.source_line_hints == ("x" * 80,)
    assert second.source_line_hints == ("3", "line 4")

def test_malformed_reference_date_uses_today(monkeypatch, make_item):
    monkeypatch.setattr("suggestion_engine.features.candidates.today_utc", lambda: "2026-01-01")

    [candidate] = build_candidates({"items": [make_item(dateISO=None)]}, reference_date="tomorrow")

    assert candidate.start.startswith("2026-01-01T")

def test_parsed_document_lifts_meta_context():
    document = ParsedDocument.model_validate({
        "meta": {"documentId": "d9", "context": {"confidence": 0.8, "contextType": "travel"}},
        "items": [],
    })

    assert document.document_id == "d9"
    assert document.context.confidence == pytest.approx(0.8)
    assert document.context.context_type == "travel"

def test_parsed_document_defaults():
    document = ParsedDocument.model_validate({"items": "not a list"})

    assert document.document_id == "doc-1"
    assert document.items == []
    assert document.context.confidence == 0.5
    assert document.context.context_type == "generic"

def test_date_with_trailing_newline_falls_back_to_reference_date(make_item):
    [candidate] = build_candidates({"items": [make_item(dateISO="2026-03-12\n", startTime="09:00")]},
                                   reference_date="2026-03-10")

    assert candidate.start == "2026-03-10T09:00"
    assert candidate.missing_date is True

def test_time_with_trailing_newline_falls_back_to_midnight(make_item):
    [candidate] = build_candidates({"items": [make_item(dateISO="2026-03-12", startTime="09:00\n")]},
                                   reference_date="2026-03-10")

    assert candidate.start == "2026-03-12T00:00"
    assert candidate.end == "2026-03-12T01:00"
    assert candidate.missing_time is True

def test_top_level_context_confidence_is_lifted():
    document = ParsedDocument.model_validate({"contextConfidence": 0.9, "context": {"contextType": "invitation"}})

    assert document.context.confidence == pytest.approx(0.9)
    assert document.context.context_type == "invitation"

def test_nested_context_confidence_wins_over_top_level():
    document = ParsedDocument.model_validate({
        "contextConfidence": 0.9,
        "meta": {"context": {"confidence": 0.2}},
    })

    assert document.context.confidence == pytest.approx(0.2)
