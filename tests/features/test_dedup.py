"""Unit tests for candidate deduplication."""

from suggestion_engine.features.dedup import deduplicate_suggestions, normalize_title

def test_normalize_title():
    assert normalize_title("  Budget-Review:  Q1!! ") == "budget review q1"
    assert normalize_title("Café  Meeting") == "café meeting"

def test_near_duplicates_keep_higher_confidence(make_candidate):
    low = make_candidate(id="s1", title="Budget Review", start="2026-03-10T09:00", suggestion_confidence=0.6)
    high = make_candidate(id="s2", title="budget review", start="2026-03-10T09:04", suggestion_confidence=0.9)

    assert deduplicate_suggestions([low, high]) == [high]

def test_equal_confidence_keeps_first(make_candidate):
    first = make_candidate(id="s1", suggestion_confidence=0.7)
    second = make_candidate(id="s2", start="2026-03-10T09:05", suggestion_confidence=0.7)

    assert deduplicate_suggestions([first, second]) == [first]

def test_outside_window_or_other_date_are_kept(make_candidate):
    base = make_candidate(id="s1")
    later = make_candidate(id="s2", start="2026-03-10T09:06")
    other_day = make_candidate(id="s3", start="2026-03-11T09:00")

    assert deduplicate_suggestions([base, later, other_day]) == [base, later, other_day]

def test_synthesized_date_or_time_is_never_merged(make_candidate):
    a = make_candidate(id="s1", start="2026-03-10T00:00", missing_time=True)
    b = make_candidate(id="s2", start="2026-03-10T00:00", missing_time=True)

    assert deduplicate_suggestions([a, b]) == [a, b]

def test_chained_duplicates_collapse_and_stay_idempotent(make_candidate):
    a = make_candidate(id="s1", start="2026-03-10T09:00", suggestion_confidence=0.5)
    b = make_candidate(id="s2", start="2026-03-10T09:06", suggestion_confidence=0.9)
    c = make_candidate(id="s3", start="2026-03-10T09:03", suggestion_confidence=0.7)

    once = deduplicate_suggestions([a, b, c])

    assert [x.id for x in once] == ["s2"]
    assert deduplicate_suggestions(once) == once

def test_dedup_is_idempotent_on_mixed_input(make_candidate):
    candidates = [
        make_candidate(id="s1", title="Standup", start="2026-03-10T09:00", suggestion_confidence=0.4),
        make_candidate(id="s2", title="standup!", start="2026-03-10T09:02", suggestion_confidence=0.8),
        make_candidate(id="s3", title="Trip", start="2026-03-12T00:00"),
        make_candidate(id="s4", title="Trip", start="2026-03-12T08:00", location="Berlin"),
        make_candidate(id="s5", title="Lunch", start="2026-03-10T12:00", missing_time=True),
    ]

    once = deduplicate_suggestions(candidates)

    assert [x.id for x in once] == ["s2", "s4", "s5"]
    assert deduplicate_suggestions(once) == once

def test_umbrella_trip_without_location_is_dropped(make_candidate):
    umbrella = make_candidate(id="s1", title="Trip to Berlin", start="2026-03-12T00:00")
    located = make_candidate(id="s2", title="Trip to Berlin", start="2026-03-12T08:00", location="Berlin")

    assert deduplicate_suggestions([umbrella, located]) == [located]

def test_lone_umbrella_is_kept(make_candidate):
    umbrella = make_candidate(id="s1", title="Reise nach Wien")

    assert deduplicate_suggestions([umbrella]) == [umbrella]
