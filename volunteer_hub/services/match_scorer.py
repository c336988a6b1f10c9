"""
Volunteer / Opportunity Match Scorer

Scores how well a volunteer profile fits an opportunity.

Scoring Factors:
- Skills (0-40) - Overlap with the opportunity's required skills
- Interest (0-30) - Volunteer interests against the opportunity category
- Location (0-20) - Location type, then city/state/country
- Availability (0-10) - Preferred weekdays against the start date
- Bonus (0-5) - Relevant experience (+3), age 18-65 (+2)

Total is capped at 100 and rounded half up. Pure function: no I/O, and the
only clock read (for the age bonus) can be pinned with `today`.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, List, Optional

from volunteer_hub.utils.constants import LocationType
from volunteer_hub.utils.helpers import calculate_age, clean_list, normalize_text, overlaps, round_half_up

SKILLS_MAX = 40
SKILLS_UNCONSTRAINED = 20
INTEREST_MATCH = 30
INTEREST_NO_MATCH = 10
INTEREST_UNKNOWN = 15
LOCATION_VIRTUAL = 20
LOCATION_HYBRID = 18
LOCATION_SAME_CITY = 20
LOCATION_SAME_STATE = 15
LOCATION_SAME_COUNTRY = 10
LOCATION_DIFFERENT = 5
LOCATION_UNKNOWN = 10
AVAILABILITY_MATCH = 10
AVAILABILITY_NO_PREFERENCE = 8
AVAILABILITY_PARTIAL = 5
EXPERIENCE_BONUS = 3
AGE_BONUS = 2
MIN_BONUS_AGE = 18
MAX_BONUS_AGE = 65
MAX_SCORE = 100

# Band thresholds, also used as default filters by the matching service
EXCELLENT_THRESHOLD = 70
GOOD_THRESHOLD = 50
FAIR_THRESHOLD = 30


@dataclass
class MatchFactor:
    """One scored component of a match."""
    name: str
    points: float
    detail: str


@dataclass
class MatchScore:
    """Result of scoring one volunteer against one opportunity"""
    value: int  # 0-100
    factors: List[MatchFactor] = field(default_factory=list)
    band: str = "Poor"

    @property
    def color(self) -> str:
        return band_color(self.value)


def band_for(value: float) -> str:
    if value >= EXCELLENT_THRESHOLD:
        return "Excellent"
    if value >= GOOD_THRESHOLD:
        return "Good"
    if value >= FAIR_THRESHOLD:
        return "Fair"
    return "Poor"


def band_color(value: float) -> str:
    """Display colour for a score, aligned with the bands."""
    if value >= EXCELLENT_THRESHOLD:
        return "success"
    if value >= GOOD_THRESHOLD:
        return "info"
    if value >= FAIR_THRESHOLD:
        return "warning"
    return "error"


def score_skills(volunteer_skills: List[str], required_skills: List[str]) -> MatchFactor:
    if not required_skills:
        return MatchFactor("Skills", SKILLS_UNCONSTRAINED, "No specific skills required")
    if not volunteer_skills:
        return MatchFactor("Skills", 0, f"Matched 0/{len(required_skills)} required skills")

    matched = [
        skill for skill in volunteer_skills
        if any(overlaps(skill, required) for required in required_skills)
    ]
    points = min(len(matched) / len(required_skills) * SKILLS_MAX, SKILLS_MAX)
    return MatchFactor(
        "Skills", points, f"Matched {len(matched)}/{len(required_skills)} required skills"
    )


def score_interest(interests: List[str], category: Optional[str]) -> MatchFactor:
    category = normalize_text(category)
    if not interests or not category:
        return MatchFactor("Interest", INTEREST_UNKNOWN, "Category/interest matching not available")
    if any(overlaps(interest, category) for interest in interests):
        return MatchFactor("Interest", INTEREST_MATCH, f"Interest matches opportunity category: {category}")
    return MatchFactor("Interest", INTEREST_NO_MATCH, "No interest matches the opportunity category")


def score_location(volunteer: Any, opportunity: Any) -> MatchFactor:
    location_type = normalize_text(opportunity.location_type)
    if location_type == LocationType.VIRTUAL.value:
        return MatchFactor("Location", LOCATION_VIRTUAL, "Virtual opportunity - location is not a constraint")
    if location_type == LocationType.HYBRID.value:
        return MatchFactor("Location", LOCATION_HYBRID, "Hybrid opportunity - flexible location")

    volunteer_city, opportunity_city = normalize_text(volunteer.city), normalize_text(opportunity.city)
    if not volunteer_city or not opportunity_city:
        return MatchFactor("Location", LOCATION_UNKNOWN, "Location data incomplete")
    if volunteer_city == opportunity_city:
        return MatchFactor("Location", LOCATION_SAME_CITY, "Same city")

    volunteer_state, opportunity_state = normalize_text(volunteer.state), normalize_text(opportunity.state)
    if volunteer_state and volunteer_state == opportunity_state:
        return MatchFactor("Location", LOCATION_SAME_STATE, "Same state/region")

    volunteer_country, opportunity_country = normalize_text(volunteer.country), normalize_text(opportunity.country)
    if volunteer_country and volunteer_country == opportunity_country:
        return MatchFactor("Location", LOCATION_SAME_COUNTRY, "Same country")

    return MatchFactor("Location", LOCATION_DIFFERENT, "Different locations")


def score_availability(availability: Optional[dict], start_date: Optional[date]) -> MatchFactor:
    days = clean_list((availability or {}).get("days"))
    if not days:
        return MatchFactor("Availability", AVAILABILITY_NO_PREFERENCE, "Availability preferences not specified")
    if start_date is None:
        return MatchFactor("Availability", AVAILABILITY_PARTIAL, "Opportunity dates not specified")

    weekday = start_date.strftime("%A").lower()
    if weekday in days:
        return MatchFactor("Availability", AVAILABILITY_MATCH, f"Available on {weekday}")
    return MatchFactor("Availability", AVAILABILITY_PARTIAL, "Limited availability match")


def _experience_text(entry: Any) -> str:
    if isinstance(entry, dict):
        return " ".join(str(entry.get(key) or "") for key in ("role", "organization", "description"))
    return str(entry or "")


def has_relevant_experience(
    experience: Optional[Iterable[Any]], required_skills: List[str], category: Optional[str]
) -> bool:
    targets = list(required_skills)
    if normalize_text(category):
        targets.append(category)
    for entry in experience or []:
        text = normalize_text(_experience_text(entry))
        if text and any(normalize_text(target) in text for target in targets if normalize_text(target)):
            return True
    return False


def score_match(volunteer: Any, opportunity: Any, today: Optional[date] = None) -> MatchScore:
    """
    Score a volunteer against an opportunity.

    Args:
        volunteer: Volunteer model (or any object with the same attributes)
        opportunity: Opportunity model (or any object with the same attributes)
        today: Reference date for the age bonus

    Returns:
        MatchScore with value 0-100, factor breakdown and band
    """
    required_skills = clean_list(opportunity.required_skills)

    factors = [
        score_skills(clean_list(volunteer.skills), required_skills),
        score_interest(clean_list(volunteer.interests), opportunity.category),
        score_location(volunteer, opportunity),
        score_availability(volunteer.availability, opportunity.start_date),
    ]

    if has_relevant_experience(volunteer.experience, required_skills, opportunity.category):
        factors.append(MatchFactor("Experience", EXPERIENCE_BONUS, "Relevant volunteer experience found"))

    age = calculate_age(volunteer.date_of_birth, today)
    if age is not None and MIN_BONUS_AGE <= age <= MAX_BONUS_AGE:
        factors.append(MatchFactor("Demographics", AGE_BONUS, "Age suitable for volunteering"))

    total = min(sum(f.points for f in factors), MAX_SCORE)
    value = round_half_up(total)
    return MatchScore(value=value, factors=factors, band=band_for(value))
