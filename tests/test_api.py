"""HTTP surface: routing, role checks and error rendering."""

import uuid

import httpx
import pytest

from conftest import caller_for
from volunteer_hub.api.deps import get_cache, get_current_caller, get_db, get_notifier
from volunteer_hub.main import app


class Api:
    """Test client whose caller identity can be switched per request."""

    def __init__(self, client):
        self.client = client
        self.caller = None

    def as_user(self, user) -> httpx.AsyncClient:
        self.caller = caller_for(user)
        return self.client


@pytest.fixture
async def api(session_factory, notifier):
    async def override_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        wrapper = Api(client)
        app.dependency_overrides[get_db] = override_db
        app.dependency_overrides[get_notifier] = lambda: notifier
        app.dependency_overrides[get_cache] = lambda: None
        app.dependency_overrides[get_current_caller] = lambda: wrapper.caller
        yield wrapper
    app.dependency_overrides.clear()


async def test_health(api):
    response = await api.client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_missing_application_is_rendered_as_not_found(api, make):
    client = api.as_user(await make.user("volunteer"))

    response = await client.get(f"/api/v1/applications/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json() == {"error": "not_found", "detail": "Application not found"}


async def test_apply_then_apply_again(api, make):
    volunteer_user = await make.user("volunteer")
    await make.volunteer(user=volunteer_user)
    opp = await make.opportunity(await make.charity())
    client = api.as_user(volunteer_user)

    created = await client.post("/api/v1/applications", json={"opportunity_id": str(opp.id)})
    duplicate = await client.post("/api/v1/applications", json={"opportunity_id": str(opp.id)})

    assert created.status_code == 201
    assert created.json()["status"] == "pending"
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "conflict"

    listed = await client.get("/api/v1/applications")
    assert listed.json()["total"] == 1


async def test_out_of_range_hours_are_a_validation_error(api, make):
    client = api.as_user(await make.user("volunteer"))

    response = await client.post(f"/api/v1/applications/{uuid.uuid4()}/confirm", json={"committed_hours": 0})

    assert response.status_code == 422
    assert response.json()["error"] == "validation"


async def test_malformed_body_uses_the_same_error_shape(api, make):
    client = api.as_user(await make.user("volunteer"))

    response = await client.post("/api/v1/applications", json={"opportunity_id": "not-a-uuid"})

    assert response.status_code == 422
    assert response.json()["error"] == "validation"


async def test_volunteers_cannot_run_matching(api, make):
    opp = await make.opportunity(await make.charity())
    client = api.as_user(await make.user("volunteer"))

    response = await client.get(f"/api/v1/charity/matches/opportunities/{opp.id}")

    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"


async def test_charity_sees_ranked_matches(api, make):
    charity_user = await make.user("charity")
    opp = await make.opportunity(await make.charity(user=charity_user))
    await make.volunteer()
    await make.volunteer(skills=["Teaching", "Cooking"])
    client = api.as_user(charity_user)

    response = await client.get(f"/api/v1/charity/matches/opportunities/{opp.id}", params={"min_score": 50})

    body = response.json()
    assert response.status_code == 200
    assert body["total_evaluated"] == 2
    assert [m["rank"] for m in body["matches"]] == [1, 2]
    assert body["matches"][0]["score"]["value"] == 98
    assert body["matches"][0]["score"]["band"] == "Excellent"


async def test_opportunity_detail_counts_a_view_and_normalizes_status(api, make):
    opp = await make.opportunity(await make.charity(), status="active")
    client = api.as_user(await make.user("volunteer"))

    response = await client.get(f"/api/v1/opportunities/{opp.id}")

    assert response.status_code == 200
    assert response.json()["status"] == "published"
    assert response.json()["views"] == 1


async def test_recommendations_for_volunteer(api, make):
    volunteer_user = await make.user("volunteer")
    await make.volunteer(user=volunteer_user)
    opp = await make.opportunity(await make.charity())
    client = api.as_user(volunteer_user)

    response = await client.get("/api/v1/opportunities/recommended")

    assert response.status_code == 200
    assert [r["opportunity_id"] for r in response.json()] == [str(opp.id)]


async def test_attendance_round_trip(api, make):
    charity_user = await make.user("charity")
    opp = await make.opportunity(await make.charity(user=charity_user))
    volunteer = await make.volunteer()
    await make.application(opp, volunteer, status="confirmed")
    client = api.as_user(charity_user)

    recorded = await client.post(
        "/api/v1/attendance",
        json={
            "opportunity_id": str(opp.id),
            "volunteer_id": str(volunteer.id),
            "status": "present",
            "hours_worked": 3,
            "charity_rating": 5,
        },
    )
    assert recorded.status_code == 201

    rows = await client.get(f"/api/v1/attendance/opportunities/{opp.id}/volunteers")
    assert rows.json()[0]["attendance"]["id"] == recorded.json()["id"]

    rating = await client.get(f"/api/v1/volunteers/{volunteer.id}/rating")
    assert rating.json()["average_rating"] == 5.0

    deleted = await client.delete(f"/api/v1/attendance/{recorded.json()['id']}")
    assert deleted.status_code == 204


async def test_moderator_rejects_volunteer_without_notes(api, make):
    volunteer = await make.volunteer(approval_status="pending")
    client = api.as_user(await make.user("moderator"))

    missing = await client.post(f"/api/v1/moderator/volunteers/{volunteer.id}/reject", json={})
    assert missing.status_code == 422
    assert missing.json() == {"error": "validation", "detail": "Rejection notes are required"}

    stats = await client.get("/api/v1/moderator/volunteers/stats")
    assert stats.json() == {"total": 1, "pending": 1, "approved": 0, "rejected": 0}


async def test_moderator_suspends_and_resumes_an_opportunity(api, make):
    charity_user = await make.user("charity")
    opp = await make.opportunity(await make.charity(user=charity_user))
    moderator = await make.user("moderator")

    client = api.as_user(charity_user)
    forbidden = await client.post(f"/api/v1/moderator/opportunities/{opp.id}/suspend", json={"reason": "x"})
    assert forbidden.status_code == 403

    client = api.as_user(moderator)
    missing = await client.post(f"/api/v1/moderator/opportunities/{opp.id}/suspend", json={})
    assert missing.status_code == 422
    assert missing.json() == {"error": "validation", "detail": "Suspension reason is required"}

    suspended = await client.post(
        f"/api/v1/moderator/opportunities/{opp.id}/suspend", json={"reason": "Reported"}
    )
    assert suspended.status_code == 200
    assert suspended.json()["status"] == "suspended"
    assert suspended.json()["suspension_reason"] == "Reported"

    again = await client.post(f"/api/v1/moderator/opportunities/{opp.id}/suspend", json={"reason": "Reported"})
    assert again.status_code == 409

    resumed = await client.post(f"/api/v1/moderator/opportunities/{opp.id}/resume")
    assert resumed.status_code == 200
    assert resumed.json()["status"] == "published"
    assert resumed.json()["suspension_reason"] is None


async def test_volunteer_attendance_history(api, make):
    charity_user = await make.user("charity")
    opp = await make.opportunity(await make.charity(user=charity_user))
    volunteer_user = await make.user("volunteer")
    volunteer = await make.volunteer(user=volunteer_user)
    await make.application(opp, volunteer, status="confirmed")

    await api.as_user(charity_user).post(
        "/api/v1/attendance",
        json={"opportunity_id": str(opp.id), "volunteer_id": str(volunteer.id), "status": "late"},
    )

    client = api.as_user(volunteer_user)
    history = await client.get("/api/v1/attendance/my-history", params={"status": "late"})
    assert history.status_code == 200
    assert history.json()["total"] == 1
    assert history.json()["records"][0]["opportunity_id"] == str(opp.id)

    assert (await client.get("/api/v1/attendance/my-history", params={"status": "absent"})).json()["total"] == 0
