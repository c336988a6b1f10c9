import uuid
from datetime import timedelta

import pytest

from conftest import caller_for, fetch, notifications_for
from volunteer_hub.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from volunteer_hub.core.security import Caller
from volunteer_hub.crud import crud_application
from volunteer_hub.models import Application, Opportunity
from volunteer_hub.services.application_lifecycle import (
    TRANSITIONS,
    ApplicationLifecycle,
    Trigger,
    check_transition,
)
from volunteer_hub.services.opportunity_service import OpportunityService
from volunteer_hub.utils.helpers import utcnow


@pytest.fixture
async def setup(make):
    """A charity-owned published opportunity and an approved volunteer."""
    charity_user = await make.user("charity")
    charity = await make.charity(user=charity_user)
    opportunity = await make.opportunity(charity)
    volunteer_user = await make.user("volunteer")
    volunteer = await make.volunteer(user=volunteer_user)
    return dict(
        charity_user=charity_user,
        opportunity=opportunity,
        volunteer_user=volunteer_user,
        volunteer=volunteer,
    )


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------

async def test_create_application_notifies_the_charity(db, notifier, setup, session_factory):
    lifecycle = ApplicationLifecycle(db, notifier)

    app = await lifecycle.create_application(
        setup["opportunity"].id, caller_for(setup["volunteer_user"]), "Happy to help"
    )

    assert app.status == "pending"
    assert app.is_system_matched is False
    notes = await notifications_for(session_factory, setup["charity_user"].id)
    assert [n.type for n in notes] == ["application_received"]


async def test_duplicate_application_is_a_conflict_and_leaves_the_first_alone(
    db, notifier, setup, make, session_factory
):
    existing = await make.application(setup["opportunity"], setup["volunteer"], status="under_review")

    with pytest.raises(ConflictError):
        await ApplicationLifecycle(db, notifier).create_application(
            setup["opportunity"].id, caller_for(setup["volunteer_user"])
        )

    assert (await fetch(session_factory, Application, existing.id)).status == "under_review"


async def test_duplicate_race_is_caught_by_the_unique_constraint(
    db, notifier, setup, make, session_factory, monkeypatch
):
    existing = await make.application(setup["opportunity"], setup["volunteer"])

    async def not_found(*args, **kwargs):
        return None

    monkeypatch.setattr(crud_application, "get_for_pair", not_found)

    with pytest.raises(ConflictError):
        await ApplicationLifecycle(db, notifier).create_application(
            setup["opportunity"].id, caller_for(setup["volunteer_user"])
        )
    assert (await fetch(session_factory, Application, existing.id)).status == "pending"


async def test_create_requires_approved_volunteer_and_open_opportunity(db, notifier, make, setup):
    lifecycle = ApplicationLifecycle(db, notifier)
    pending_user = await make.user("volunteer")
    await make.volunteer(user=pending_user, approval_status="pending")
    charity = await make.charity()
    draft = await make.opportunity(charity, status="draft")
    closed = await make.opportunity(charity, application_deadline=utcnow() - timedelta(days=1))
    legacy = await make.opportunity(charity, status="active")

    with pytest.raises(ForbiddenError):
        await lifecycle.create_application(setup["opportunity"].id, caller_for(pending_user))
    with pytest.raises(ForbiddenError):
        await lifecycle.create_application(setup["opportunity"].id, caller_for(setup["charity_user"]))
    with pytest.raises(ConflictError):
        await lifecycle.create_application(draft.id, caller_for(setup["volunteer_user"]))
    with pytest.raises(ConflictError):
        await lifecycle.create_application(closed.id, caller_for(setup["volunteer_user"]))
    with pytest.raises(NotFoundError):
        await lifecycle.create_application(uuid.uuid4(), caller_for(setup["volunteer_user"]))

    app = await lifecycle.create_application(legacy.id, caller_for(setup["volunteer_user"]))
    assert app.opportunity_id == legacy.id


# ---------------------------------------------------------------------------
# charity review
# ---------------------------------------------------------------------------

async def test_update_status_guards(db, notifier, setup, make):
    app = await make.application(setup["opportunity"], setup["volunteer"])
    lifecycle = ApplicationLifecycle(db, notifier)

    with pytest.raises(ValidationError):
        await lifecycle.update_application_status(app.id, "withdrawn", caller_for(setup["charity_user"]))
    with pytest.raises(ForbiddenError):
        await lifecycle.update_application_status(app.id, "approved", caller_for(setup["volunteer_user"]))
    with pytest.raises(ForbiddenError):
        await lifecycle.update_application_status(app.id, "approved", caller_for(await make.user("charity")))

    updated = await lifecycle.update_application_status(
        app.id, "approved", caller_for(setup["charity_user"]), "Welcome"
    )
    assert updated.status == "approved"
    assert updated.review_notes == "Welcome"


async def test_terminal_status_cannot_be_reviewed_again(db, notifier, setup, make):
    app = await make.application(setup["opportunity"], setup["volunteer"], status="withdrawn")
    with pytest.raises(ConflictError):
        await ApplicationLifecycle(db, notifier).update_application_status(
            app.id, "approved", caller_for(setup["charity_user"])
        )


async def test_suspended_opportunity_blocks_charity_approval_but_not_moderator(db, notifier, make):
    charity_user = await make.user("charity")
    moderator = await make.user("moderator")
    opp = await make.opportunity(await make.charity(user=charity_user))
    app = await make.application(opp, await make.volunteer())
    await OpportunityService(db, notifier=notifier).suspend_opportunity(opp.id, caller_for(moderator), "Safeguarding")
    lifecycle = ApplicationLifecycle(db, notifier)

    with pytest.raises(ConflictError):
        await lifecycle.update_application_status(app.id, "approved", caller_for(charity_user))

    updated = await lifecycle.update_application_status(app.id, "approved", caller_for(moderator))
    assert updated.status == "approved"


async def test_confirming_through_review_increments_the_counter(db, notifier, setup, make, session_factory):
    app = await make.application(setup["opportunity"], setup["volunteer"], status="approved")

    await ApplicationLifecycle(db, notifier).update_application_status(
        app.id, "confirmed", caller_for(setup["charity_user"])
    )
    opp = await fetch(session_factory, Opportunity, setup["opportunity"].id)
    assert opp.volunteers_confirmed == 1


# ---------------------------------------------------------------------------
# additional info and vetting
# ---------------------------------------------------------------------------

async def test_additional_info_round_trip(db, notifier, setup, make, session_factory):
    app = await make.application(setup["opportunity"], setup["volunteer"])
    lifecycle = ApplicationLifecycle(db, notifier)

    with pytest.raises(ValidationError):
        await lifecycle.request_additional_info(app.id, ["  "], caller_for(setup["charity_user"]))

    requested = await lifecycle.request_additional_info(
        app.id, ["dbs_certificate"], caller_for(setup["charity_user"]), "Please upload"
    )
    assert requested.status == "additional_info_requested"
    assert requested.additional_info_requested["fields"] == ["dbs_certificate"]

    with pytest.raises(ForbiddenError):
        await lifecycle.provide_additional_info(
            app.id, {"dbs_certificate": "x"}, caller_for(await make.user("volunteer"))
        )

    provided = await lifecycle.provide_additional_info(
        app.id, {"dbs_certificate": "https://files/dbs.pdf"}, caller_for(setup["volunteer_user"])
    )
    assert provided.status == "under_review"

    with pytest.raises(ConflictError):
        await lifecycle.provide_additional_info(app.id, {"more": "x"}, caller_for(setup["volunteer_user"]))

    volunteer_notes = await notifications_for(session_factory, setup["volunteer_user"].id)
    charity_notes = await notifications_for(session_factory, setup["charity_user"].id)
    assert [n.type for n in volunteer_notes] == ["additional_info_requested"]
    assert [n.type for n in charity_notes] == ["additional_info_provided"]


@pytest.mark.parametrize(
    "flag,background,expected",
    [
        (True, True, "moderator_review"),
        (False, True, "background_check_required"),
        (False, False, "under_review"),
    ],
)
async def test_vetting_routing_priority(db, notifier, setup, make, flag, background, expected):
    app = await make.application(setup["opportunity"], setup["volunteer"])

    vetted = await ApplicationLifecycle(db, notifier).complete_vetting(
        app.id,
        caller_for(setup["charity_user"]),
        score=7,
        notes="ok",
        flag_for_moderation=flag,
        flag_reason="Inconsistent references" if flag else None,
        requires_background_check=background,
    )

    assert vetted.status == expected
    assert vetted.vetting_score == 7
    assert vetted.flagged_for_moderation is flag


async def test_flagging_notifies_every_active_moderator(db, notifier, setup, make, session_factory):
    moderators = [await make.user("moderator"), await make.user("moderator")]
    await make.user("moderator", is_active=False)
    app = await make.application(setup["opportunity"], setup["volunteer"])

    await ApplicationLifecycle(db, notifier).complete_vetting(
        app.id, caller_for(setup["charity_user"]), flag_for_moderation=True, flag_reason="Check ID"
    )

    for moderator in moderators:
        notes = await notifications_for(session_factory, moderator.id)
        assert [n.type for n in notes] == ["application_flagged"]


async def test_vetting_score_out_of_range(db, notifier, setup, make):
    app = await make.application(setup["opportunity"], setup["volunteer"])
    with pytest.raises(ValidationError):
        await ApplicationLifecycle(db, notifier).complete_vetting(
            app.id, caller_for(setup["charity_user"]), score=11
        )


# ---------------------------------------------------------------------------
# moderator review
# ---------------------------------------------------------------------------

async def test_moderator_review_clears_the_flag(db, notifier, setup, make, session_factory):
    app = await make.application(
        setup["opportunity"], setup["volunteer"],
        status="moderator_review", flagged_for_moderation=True, flagged_reason="Check ID",
    )
    moderator = await make.user("moderator")
    lifecycle = ApplicationLifecycle(db, notifier)

    assert [a.id for a in await lifecycle.list_moderator_queue(caller_for(moderator), "check")] == [app.id]

    reviewed = await lifecycle.moderator_review(app.id, "approved", caller_for(moderator), notes="Fine")

    assert reviewed.status == "under_review"
    assert reviewed.flagged_for_moderation is False
    assert reviewed.moderator_review_status == "approved"
    assert await lifecycle.list_moderator_queue(caller_for(moderator)) == []
    assert len(await notifications_for(session_factory, setup["charity_user"].id)) == 1
    assert len(await notifications_for(session_factory, setup["volunteer_user"].id)) == 1


async def test_moderator_review_decisions(db, notifier, setup, make):
    moderator = caller_for(await make.user("moderator"))
    lifecycle = ApplicationLifecycle(db, notifier)
    rejected = await make.application(setup["opportunity"], setup["volunteer"], status="moderator_review")

    with pytest.raises(ValidationError):
        await lifecycle.moderator_review(rejected.id, "maybe", moderator)
    with pytest.raises(ForbiddenError):
        await lifecycle.moderator_review(rejected.id, "approved", caller_for(setup["charity_user"]))

    assert (await lifecycle.moderator_review(rejected.id, "rejected", moderator)).status == "rejected"

    other = await make.application(setup["opportunity"], await make.volunteer(), status="moderator_review")
    overridden = await lifecycle.moderator_review(other.id, "escalated", moderator, override_status="approved")
    assert overridden.status == "approved"


# ---------------------------------------------------------------------------
# withdraw and confirm
# ---------------------------------------------------------------------------

async def test_withdraw(db, notifier, setup, make):
    app = await make.application(setup["opportunity"], setup["volunteer"], status="confirmed")
    lifecycle = ApplicationLifecycle(db, notifier)

    with pytest.raises(ForbiddenError):
        await lifecycle.withdraw_application(app.id, caller_for(await make.user("volunteer")))

    withdrawn = await lifecycle.withdraw_application(app.id, caller_for(setup["volunteer_user"]), "Moved away")
    assert withdrawn.status == "withdrawn"
    assert withdrawn.withdrawn_reason == "Moved away"
    assert withdrawn.withdrawn_at is not None

    with pytest.raises(ConflictError):
        await lifecycle.withdraw_application(app.id, caller_for(setup["volunteer_user"]))


async def test_rejected_application_cannot_be_withdrawn(db, notifier, setup, make):
    app = await make.application(setup["opportunity"], setup["volunteer"], status="rejected")
    with pytest.raises(ConflictError):
        await ApplicationLifecycle(db, notifier).withdraw_application(app.id, caller_for(setup["volunteer_user"]))


@pytest.mark.parametrize("hours", [0, 169, None, -5])
async def test_committed_hours_are_validated_first(db, notifier, hours):
    anyone = Caller(user_id=uuid.uuid4(), role="volunteer")
    with pytest.raises(ValidationError):
        await ApplicationLifecycle(db, notifier).confirm_participation(uuid.uuid4(), hours, anyone)


async def test_confirm_only_from_approved(db, notifier, setup, make, session_factory):
    pending = await make.application(setup["opportunity"], setup["volunteer"])
    lifecycle = ApplicationLifecycle(db, notifier)

    with pytest.raises(ConflictError):
        await lifecycle.confirm_participation(pending.id, 8, caller_for(setup["volunteer_user"]))

    other_user = await make.user("volunteer")
    approved = await make.application(
        setup["opportunity"], await make.volunteer(user=other_user), status="approved"
    )
    confirmed = await lifecycle.confirm_participation(approved.id, 168, caller_for(other_user))

    assert confirmed.status == "confirmed"
    assert confirmed.hours_committed == 168
    assert confirmed.confirmed_at is not None
    opp = await fetch(session_factory, Opportunity, setup["opportunity"].id)
    assert opp.volunteers_confirmed == 1
    notes = await notifications_for(session_factory, setup["charity_user"].id)
    assert [n.type for n in notes] == ["volunteer_confirmed"]


async def test_confirm_on_suspended_opportunity(db, notifier, make):
    volunteer_user = await make.user("volunteer")
    moderator = caller_for(await make.user("moderator"))
    opp = await make.opportunity(await make.charity())
    app = await make.application(opp, await make.volunteer(user=volunteer_user), status="approved")
    opportunities = OpportunityService(db, notifier=notifier)
    lifecycle = ApplicationLifecycle(db, notifier)

    await opportunities.suspend_opportunity(opp.id, moderator, "Venue closed")
    with pytest.raises(ConflictError):
        await lifecycle.confirm_participation(app.id, 4, caller_for(volunteer_user))

    await opportunities.resume_opportunity(opp.id, moderator)
    confirmed = await lifecycle.confirm_participation(app.id, 4, caller_for(volunteer_user))
    assert confirmed.status == "confirmed"


async def test_concurrent_confirmations_count_twice(notifier, setup, make, session_factory):
    """Both sessions read the counter before either writes; neither update is lost."""
    other_user = await make.user("volunteer")
    first = await make.application(setup["opportunity"], setup["volunteer"], status="approved")
    second = await make.application(
        setup["opportunity"], await make.volunteer(user=other_user), status="approved"
    )

    async with session_factory() as session_a, session_factory() as session_b:
        lifecycle_a = ApplicationLifecycle(session_a, notifier)
        lifecycle_b = ApplicationLifecycle(session_b, notifier)
        app_a = await lifecycle_a.get_application(first.id, caller_for(setup["volunteer_user"]))
        app_b = await lifecycle_b.get_application(second.id, caller_for(other_user))
        assert app_a.opportunity.volunteers_confirmed == app_b.opportunity.volunteers_confirmed == 0

        await lifecycle_a.confirm_participation(first.id, 4, caller_for(setup["volunteer_user"]))
        await lifecycle_b.confirm_participation(second.id, 6, caller_for(other_user))

    opp = await fetch(session_factory, Opportunity, setup["opportunity"].id)
    assert opp.volunteers_confirmed == 2


# ---------------------------------------------------------------------------
# reads and the transition table
# ---------------------------------------------------------------------------

async def test_listing_is_scoped_to_the_caller(db, notifier, setup, make):
    mine = await make.application(setup["opportunity"], setup["volunteer"])
    other_opp = await make.opportunity(await make.charity())
    theirs = await make.application(other_opp, await make.volunteer())
    lifecycle = ApplicationLifecycle(db, notifier)

    volunteer_view = await lifecycle.list_applications_for_caller(caller_for(setup["volunteer_user"]))
    charity_view = await lifecycle.list_applications_for_caller(caller_for(setup["charity_user"]))
    moderator_view = await lifecycle.list_applications_for_caller(caller_for(await make.user("moderator")))

    assert [a.id for a in volunteer_view] == [mine.id]
    assert [a.id for a in charity_view] == [mine.id]
    assert {a.id for a in moderator_view} == {mine.id, theirs.id}

    with pytest.raises(ValidationError):
        await lifecycle.list_applications_for_caller(caller_for(setup["volunteer_user"]), "bogus")
    with pytest.raises(ForbiddenError):
        await lifecycle.get_application(theirs.id, caller_for(setup["volunteer_user"]))


def test_every_trigger_has_a_rule():
    assert set(TRANSITIONS) == set(Trigger)


def test_check_transition_orders_role_before_status():
    application = Application(status="withdrawn")
    charity = Caller(user_id=uuid.uuid4(), role="charity")
    with pytest.raises(ForbiddenError):
        check_transition(Trigger.WITHDRAW, application, charity)
