from datetime import date, datetime
from types import SimpleNamespace

import pytest

from volunteer_hub.services.match_scorer import (
    band_color,
    band_for,
    has_relevant_experience,
    score_availability,
    score_location,
    score_match,
    score_skills,
)


def volunteer(**kwargs):
    defaults = dict(
        skills=[],
        interests=[],
        experience=[],
        availability={},
        city=None,
        state=None,
        country=None,
        date_of_birth=None,
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def opportunity(**kwargs):
    defaults = dict(
        required_skills=[],
        category=None,
        location_type="in-person",
        city=None,
        state=None,
        country=None,
        start_date=None,
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def test_teaching_volunteer_on_virtual_education_opportunity():
    """Half the skills, matching interest, virtual, no availability data."""
    score = score_match(
        volunteer(skills=["Teaching"], interests=["Education"]),
        opportunity(required_skills=["Teaching", "Cooking"], category="Education", location_type="virtual"),
    )

    assert score.value == 78
    assert score.band == "Excellent"
    assert score.color == "success"
    points = {f.name: f.points for f in score.factors}
    assert points == {"Skills": 20, "Interest": 30, "Location": 20, "Availability": 8}


def test_score_is_capped_at_100():
    score = score_match(
        volunteer(
            skills=["Teaching", "Cooking"],
            interests=["Education"],
            experience=[{"role": "Teaching assistant", "organization": "School"}],
            availability={"days": ["monday"]},
            date_of_birth=date(1990, 1, 1),
        ),
        opportunity(
            required_skills=["Teaching", "Cooking"],
            category="Education",
            location_type="virtual",
            start_date=datetime(2026, 10, 19),  # a Monday
        ),
        today=date(2026, 10, 19),
    )

    assert score.value == 100
    assert {f.name for f in score.factors} >= {"Experience", "Demographics"}


def test_empty_profile_gets_only_neutral_points():
    score = score_match(volunteer(), opportunity(required_skills=["Nursing"]))
    # 0 skills + 15 unknown interest + 10 unknown location + 8 no availability
    assert score.value == 33
    assert score.band == "Fair"


@pytest.mark.parametrize(
    "value,band,color",
    [(70, "Excellent", "success"), (69, "Good", "info"), (50, "Good", "info"),
     (30, "Fair", "warning"), (29, "Poor", "error")],
)
def test_band_thresholds(value, band, color):
    assert band_for(value) == band
    assert band_color(value) == color


def test_skills_match_substrings_case_insensitively():
    factor = score_skills(["first aid"], ["First Aid Certified", "Driving"])
    assert factor.points == 20
    assert factor.detail == "Matched 1/2 required skills"


def test_no_required_skills_gives_flat_score():
    assert score_skills(["anything"], []).points == 20


def test_location_falls_back_from_city_to_country():
    v = volunteer(city="Leeds", state="Yorkshire", country="UK")
    assert score_location(v, opportunity(city="leeds")).points == 20
    assert score_location(v, opportunity(city="York", state="Yorkshire")).points == 15
    assert score_location(v, opportunity(city="London", state="Greater London", country="uk")).points == 10
    assert score_location(v, opportunity(city="Paris", country="France")).points == 5
    assert score_location(volunteer(), opportunity(city="Paris")).points == 10
    assert score_location(v, opportunity(location_type="hybrid")).points == 18


def test_availability_rules():
    monday = date(2026, 10, 19)
    assert score_availability({}, monday).points == 8
    assert score_availability({"days": ["Monday"]}, None).points == 5
    assert score_availability({"days": ["monday"]}, monday).points == 10
    assert score_availability({"days": ["tuesday"]}, monday).points == 5


def test_experience_matches_skill_or_category():
    assert has_relevant_experience(["Volunteered teaching kids"], ["Teaching"], None)
    assert has_relevant_experience([{"description": "Food bank education drive"}], [], "Education")
    assert not has_relevant_experience(["Cashier"], ["Teaching"], "Education")
    assert not has_relevant_experience(None, ["Teaching"], None)


def test_age_bonus_only_between_18_and_65():
    opp = opportunity(location_type="virtual")
    today = date(2026, 10, 19)
    adult = score_match(volunteer(date_of_birth=date(2000, 1, 1)), opp, today=today)
    minor = score_match(volunteer(date_of_birth=date(2010, 1, 1)), opp, today=today)
    assert adult.value - minor.value == 2
