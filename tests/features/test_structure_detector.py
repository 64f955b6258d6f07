"""Unit tests for trip, agenda and series detection."""

from suggestion_engine.features.cue_matcher import CueMatcher, CueSet
from suggestion_engine.features.structure_detector import (
    StructureDetector,
    detect_structure_candidates,
    location_key,
    token_overlap,
    tokenize,
)

def test_tokenize_and_overlap():
    assert tokenize("Workshop: Produkt-Demo & Q&A") == ["workshop", "produkt-demo"]
    assert token_overlap("Workshop Produkt Intro", "Workshop Produkt Deep Dive") == 0.5
    assert token_overlap("Review", "") == 0.0

def test_location_key_prefers_location_then_codes(make_candidate):
    assert location_key(make_candidate(location="ZRH")) == "zrh"
    assert location_key(make_candidate(title="Flight ZRH-BER", source_text="")) == "zrh-ber"
    assert location_key(make_candidate(title="Flight", source_text="")) == "trip"

def test_outbound_and_return_pair_forms_one_trip(make_candidate):
    outbound = make_candidate(id="s2", title="Outbound flight ZRH-BER", start="2026-03-12T08:00", location="ZRH")
    back = make_candidate(id="s1", title="Return flight BER-ZRH", start="2026-03-15T18:30", location="BER")

    result = detect_structure_candidates([back, outbound])

    assert result.has_structure is True
    [group] = result.groups
    assert group.group_type == "trip"
    assert group.member_ids == ("s2", "s1")
    assert group.group_title == "Trip: Outbound flight ZRH-BER"
    assert group.confidence_boost == 0.10
    assert group.ordering_bonus == 0.03

def test_location_bucket_within_fourteen_days_forms_trip(make_candidate):
    train = make_candidate(id="s1", title="Train to Berlin", start="2026-03-12T07:00", location="Berlin")
    hotel = make_candidate(id="s2", title="Hotel check-in", start="2026-03-12T15:00", location="Berlin")

    [group] = detect_structure_candidates([train, hotel]).groups

    assert group.group_type == "trip"
    assert group.group_title == "Trip: Berlin"
    assert group.member_ids == ("s1", "s2")

def test_far_apart_travel_without_direction_cues_is_not_a_trip(make_candidate):
    first = make_candidate(id="s1", title="Flight LX318", start="2026-03-01T08:00", location="ZRH")
    second = make_candidate(id="s2", title="Flight LX319", start="2026-05-01T08:00", location="BER")

    assert detect_structure_candidates([first, second]).has_structure is False

def test_same_day_shared_topic_forms_agenda(make_candidate):
    intro = make_candidate(id="s1", title="Workshop Produkt Intro", start="2026-03-10T09:00")
    deep_dive = make_candidate(id="s2", title="Workshop Produkt Deep Dive", start="2026-03-10T11:00")
    lunch = make_candidate(id="s3", title="Lunch", start="2026-03-10T12:00")

    [group] = detect_structure_candidates([intro, deep_dive, lunch]).groups

    assert group.group_type == "agenda"
    assert group.member_ids == ("s1", "s2")
    assert group.group_title == "Agenda: Workshop Produkt Intro"

def test_recurring_title_and_time_forms_series(make_candidate):
    syncs = [
        make_candidate(id="s1", title="Team Sync", start="2026-03-10T10:00"),
        make_candidate(id="s2", title="Team Sync", start="2026-03-17T10:00"),
        make_candidate(id="s3", title="Team Sync", start="2026-03-24T15:00"),
    ]

    [group] = detect_structure_candidates(syncs).groups

    assert group.group_type == "series"
    assert group.group_title == "Series: team sync"
    assert group.confidence_boost == 0.08

def test_two_occurrences_are_not_a_series(make_candidate):
    syncs = [
        make_candidate(id="s1", title="Team Sync", start="2026-03-10T10:00"),
        make_candidate(id="s2", title="Team Sync", start="2026-03-17T10:00"),
    ]

    assert detect_structure_candidates(syncs).has_structure is False

def test_each_candidate_is_claimed_at_most_once(make_candidate):
    candidates = [
        make_candidate(id="s1", title="Flight to Berlin", start="2026-03-10T07:00", location="Berlin"),
        make_candidate(id="s2", title="Flight back from Berlin", start="2026-03-10T19:00", location="Berlin"),
        make_candidate(id="s3", title="Berlin Flight Debrief", start="2026-03-10T21:00"),
        make_candidate(id="s4", title="Standup", start="2026-03-11T09:00"),
        make_candidate(id="s5", title="Standup", start="2026-03-12T09:00"),
        make_candidate(id="s6", title="Standup", start="2026-03-13T09:00"),
    ]

    result = detect_structure_candidates(candidates)
    member_ids = [member_id for group in result.groups for member_id in group.member_ids]

    assert len(member_ids) == len(set(member_ids))
    assert [g.group_type for g in result.groups] == ["trip", "series"]
    assert [g.group_id for g in result.groups] == ["g1", "g2"]

def test_custom_cue_matcher_is_used(make_candidate):
    candidates = [
        make_candidate(id="s1", title="Fahrt nach Bern", start="2026-03-10T08:00", location="Bern"),
        make_candidate(id="s2", title="Heimweg", start="2026-03-12T17:00", source_text="Fahrt", location="Bern"),
    ]
    custom = CueMatcher([CueSet(trip=["fahrt"], outbound=["nach"], return_=["heimweg"])])

    assert StructureDetector().detect(candidates).has_structure is False
    [group] = StructureDetector(custom).detect(candidates).groups
    assert group.group_type == "trip"
