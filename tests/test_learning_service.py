"""Tests for feedback-based learning."""

import logging

import pytest

from donation_matching.domain.learning import BaseMatch, DonorReputation
from donation_matching.domain.listings import Listing
from donation_matching.domain.matching import (
    LearningProfile,
    ScoreBreakdown,
    ScoredListing,
)
from donation_matching.services.learning import (
    LearningService,
    adjust_score_with_learning,
    summarize_donor_feedback,
    summarize_recipient_feedback,
)
from tests.conftest import InMemoryFeedbackRepository, make_event


def test_summary_without_feedback_is_neutral() -> None:
    summary = summarize_recipient_feedback("ngo-1", [])

    assert summary.acceptance_rate == 0.5
    assert summary.avg_accepted_distance == 10.0
    assert summary.avg_accepted_quantity == 50.0
    assert summary.avg_accepted_freshness == 0.7
    assert summary.profile == LearningProfile()


def test_summary_learns_donor_preferences_and_boosts() -> None:
    accepted = [
        make_event(
            donor_id="donor-a",
            action="accepted",
            distance_km=2.0,
            quantity=40.0,
            freshness_percent=0.8,
            verified=True,
        )
        for _ in range(3)
    ]
    rejected = [
        make_event(
            donor_id="donor-b",
            action="rejected",
            distance_km=12.0,
            quantity=120.0,
            freshness_percent=0.4,
            verified=False,
        )
        for _ in range(2)
    ]

    summary = summarize_recipient_feedback("ngo-1", accepted + rejected)
    profile = summary.profile

    assert summary.total_accepts == 3
    assert summary.total_rejects == 2
    assert summary.acceptance_rate == pytest.approx(0.6)
    assert profile.preferred_donors == frozenset({"donor-a"})
    assert profile.avoided_donors == frozenset({"donor-b"})
    assert profile.distance_boost == pytest.approx(0.02)
    assert profile.quantity_boost == pytest.approx(0.08)
    assert profile.freshness_boost == pytest.approx(0.08)
    assert profile.verified_boost == pytest.approx(0.1)


def test_summary_requires_two_events_and_seventy_percent() -> None:
    events = [
        make_event(donor_id="one-off", action="accepted"),
        make_event(donor_id="mixed", action="accepted"),
        make_event(donor_id="mixed", action="accepted"),
        make_event(donor_id="mixed", action="rejected"),
    ]

    profile = summarize_recipient_feedback("ngo-1", events).profile

    assert profile.preferred_donors == frozenset()
    assert profile.avoided_donors == frozenset()


def test_summary_averages_fall_back_to_defaults() -> None:
    events = [
        make_event(action="accepted", distance_km=None, freshness_percent=None),
        make_event(action="ignored"),
    ]

    summary = summarize_recipient_feedback("ngo-1", events)

    assert summary.acceptance_rate == 1.0
    assert summary.avg_accepted_distance == 10.0
    assert summary.avg_accepted_freshness == 0.7
    assert summary.avg_accepted_quantity == 50.0


def test_summary_with_only_ignored_events_stays_bounded() -> None:
    summary = summarize_recipient_feedback("ngo-1", [make_event(action="ignored")])

    assert summary.acceptance_rate == 0.5
    for boost in (
        summary.profile.distance_boost,
        summary.profile.quantity_boost,
        summary.profile.freshness_boost,
        summary.profile.verified_boost,
    ):
        assert -0.1 <= boost <= 0.1


def test_donor_reputation_levels() -> None:
    def events(accepts: int, rejects: int) -> list:
        return [
            make_event(action="accepted", ngo_id=f"ngo-{index % 2}")
            for index in range(accepts)
        ] + [make_event(action="rejected") for _ in range(rejects)]

    excellent = summarize_donor_feedback("donor-a", events(10, 2))
    good = summarize_donor_feedback("donor-a", events(5, 5))
    average = summarize_donor_feedback("donor-a", events(2, 3))
    new = summarize_donor_feedback("donor-a", events(1, 0))
    empty = summarize_donor_feedback("donor-a", [])

    assert excellent.reputation == "excellent"
    assert excellent.total_claims == 10
    assert excellent.preferred_by_ngos == ("ngo-0", "ngo-1")
    assert good.reputation == "good"
    assert average.reputation == "average"
    assert new.reputation == "new"
    assert empty == DonorReputation(donor_id="donor-a")


def test_donor_reputation_average_match_score() -> None:
    reputation = summarize_donor_feedback(
        "donor-a",
        [make_event(match_score=80.0), make_event(match_score=40.0, action="rejected")],
    )

    assert reputation.avg_match_score == 60.0
    assert reputation.acceptance_rate == 0.5


def test_adjust_score_with_learning_includes_reputation() -> None:
    profile = LearningProfile(preferred_donors=frozenset({"donor-a"}))

    excellent = DonorReputation(donor_id="donor-a", reputation="excellent")
    newcomer = DonorReputation(donor_id="donor-z")

    assert adjust_score_with_learning(50.0, "donor-a", profile, excellent) == 58.0
    assert adjust_score_with_learning(50.0, "donor-z", profile, newcomer) == 49.0
    assert adjust_score_with_learning(0.5, "donor-z", profile, newcomer) == 0.0


def test_log_accept_records_scored_features() -> None:
    repository = InMemoryFeedbackRepository()
    service = LearningService(repository)
    scored = ScoredListing(
        listing=Listing(
            id="donation-7",
            donor_id="donor-a",
            food_type="Veg Pulao",
            quantity=30,
            verified=True,
        ),
        match_score=72.0,
        base_score=70.0,
        breakdown=_breakdown(),
        expiry_hours=4.0,
        distance_km=3.5,
        freshness_percent=0.6,
        ai_adjusted=True,
    )

    event = service.log_accept("ngo-1", scored)

    assert repository.events == [event]
    assert event.action == "accepted"
    assert event.match_score == 72.0
    assert event.distance_km == 3.5
    assert event.quantity == 30
    assert event.timestamp is not None


def test_log_feedback_swallows_storage_errors(caplog) -> None:
    service = LearningService(InMemoryFeedbackRepository(fail=True))
    logger = logging.getLogger("donation_matching.services.learning")
    logger.addHandler(caplog.handler)
    try:
        service.log_feedback(make_event())
    finally:
        logger.removeHandler(caplog.handler)

    assert "Failed to log feedback" in caplog.text


def test_build_summary_falls_back_when_history_unavailable() -> None:
    service = LearningService(InMemoryFeedbackRepository(fail=True))

    summary = service.build_recipient_summary("ngo-1")
    reputation = service.build_donor_reputation("donor-a")

    assert summary.profile == LearningProfile()
    assert reputation.reputation == "new"


def test_build_summary_respects_history_limit() -> None:
    repository = InMemoryFeedbackRepository()
    repository.events = [make_event(donor_id="old", action="accepted")] * 3 + [
        make_event(donor_id="recent", action="accepted")
    ] * 2
    service = LearningService(repository, recipient_history_limit=2)

    summary = service.build_recipient_summary("ngo-1")

    assert summary.total_accepts == 2
    assert summary.profile.preferred_donors == frozenset({"recent"})


def test_personalized_recommendations() -> None:
    repository = InMemoryFeedbackRepository()
    repository.events = [
        make_event(donor_id="donor-a", action="accepted") for _ in range(3)
    ] + [make_event(donor_id="donor-b", action="rejected") for _ in range(2)]
    service = LearningService(repository)

    recommendations = service.get_personalized_recommendations(
        "ngo-1",
        [
            BaseMatch(donation_id="d-a", donor_id="donor-a", base_score=60.0),
            BaseMatch(donation_id="d-b", donor_id="donor-b", base_score=60.0),
            BaseMatch(donation_id="d-c", donor_id="donor-c", base_score=70.0),
        ],
    )

    assert [item.donation_id for item in recommendations] == ["d-c", "d-a", "d-b"]
    by_id = {item.donation_id: item for item in recommendations}
    assert by_id["d-a"].final_score == 65.0
    assert by_id["d-a"].reasons == (
        "✅ Preferred donor (you frequently accept from them)",
    )
    assert by_id["d-b"].final_score == 49.0
    assert by_id["d-b"].reasons == (
        "⚠️ Previously avoided",
        "🧠 AI adjusted score: 60 → 49",
    )
    assert by_id["d-c"].final_score == 69.0
    assert by_id["d-c"].reasons == ()


def _breakdown() -> ScoreBreakdown:
    return ScoreBreakdown(
        food_type_score=1.0,
        freshness_score=0.6,
        quantity_score=0.3,
        distance_score=0.93,
        verified_score=1.0,
        urgency_score=0.8,
    )
