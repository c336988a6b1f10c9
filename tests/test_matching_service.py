import uuid
from datetime import date

import pytest

from volunteer_hub.core.exceptions import NotFoundError, ValidationError
from volunteer_hub.services.matching_service import MatchingService

TODAY = date(2026, 10, 19)


async def test_only_approved_active_volunteers_are_evaluated(db, make):
    charity = await make.charity()
    opp = await make.opportunity(charity)
    approved = await make.volunteer()
    await make.volunteer(approval_status="pending")
    await make.volunteer(approval_status="rejected")
    await make.volunteer(is_active=False)

    results = await MatchingService(db).find_matches(opp.id, limit=20, min_score=0, today=TODAY)

    assert results.total_evaluated == 1
    assert [m.volunteer.id for m in results.matches] == [approved.id]


async def test_ranking_is_deterministic_and_one_based(db, make):
    charity = await make.charity()
    opp = await make.opportunity(charity)
    for _ in range(4):
        await make.volunteer()
    await make.volunteer(skills=["Teaching", "Cooking"])

    service = MatchingService(db)
    first = await service.find_matches(opp.id, limit=10, min_score=0, today=TODAY)
    second = await service.find_matches(opp.id, limit=10, min_score=0, today=TODAY)

    assert [m.volunteer.id for m in first.matches] == [m.volunteer.id for m in second.matches]
    assert [m.rank for m in first.matches] == [1, 2, 3, 4, 5]
    assert first.matches[0].score.value == 98
    values = [m.score.value for m in first.matches]
    assert values == sorted(values, reverse=True)


async def test_min_score_and_limit_window(db, make):
    charity = await make.charity()
    opp = await make.opportunity(charity)
    for _ in range(3):
        await make.volunteer()
    await make.volunteer(skills=[], interests=["Sport"])

    results = await MatchingService(db).find_matches(opp.id, limit=2, min_score=70, today=TODAY)

    assert results.total_evaluated == 4
    assert results.total_found == 2
    assert all(m.score.value >= 70 for m in results.matches)


async def test_unknown_opportunity(db):
    with pytest.raises(NotFoundError):
        await MatchingService(db).find_matches(uuid.uuid4())


@pytest.mark.parametrize("limit,min_score", [(0, 30), (10, -1), (10, 101)])
async def test_window_is_validated(db, limit, min_score):
    with pytest.raises(ValidationError):
        await MatchingService(db).find_matches(uuid.uuid4(), limit=limit, min_score=min_score)


async def test_recommendations_skip_unpublished_opportunities(db, make):
    volunteer_user = await make.user("volunteer")
    await make.volunteer(user=volunteer_user)
    charity = await make.charity()
    published = await make.opportunity(charity)
    legacy = await make.opportunity(charity, status="active")
    await make.opportunity(charity, status="draft")
    await make.opportunity(charity, status="suspend")

    recommendations = await MatchingService(db).recommend_opportunities(
        volunteer_user.id, limit=10, min_score=0, today=TODAY
    )

    assert {r.opportunity.id for r in recommendations} == {published.id, legacy.id}
    assert [r.rank for r in recommendations] == [1, 2]


async def test_recommendations_need_a_volunteer_profile(db, make):
    user = await make.user("volunteer")
    with pytest.raises(NotFoundError):
        await MatchingService(db).recommend_opportunities(user.id)
