import threading
import uuid
from unittest.mock import AsyncMock, MagicMock

from conftest import caller_for, fetch, notifications_for
from volunteer_hub.models import Application
from volunteer_hub.services import notification_service as notices
from volunteer_hub.services.application_lifecycle import ApplicationLifecycle
from volunteer_hub.services.notification_service import NotificationDispatcher
from volunteer_hub.utils.slack_notifier import SlackNotifier


def broken_session_factory():
    raise RuntimeError("notification store unavailable")


async def test_failed_notification_does_not_undo_the_change(db, make, session_factory):
    charity_user = await make.user("charity")
    opp = await make.opportunity(await make.charity(user=charity_user))
    app = await make.application(opp, await make.volunteer())
    lifecycle = ApplicationLifecycle(db, NotificationDispatcher(session_factory=broken_session_factory))

    updated = await lifecycle.update_application_status(app.id, "approved", caller_for(charity_user))

    assert updated.status == "approved"
    assert (await fetch(session_factory, Application, app.id)).status == "approved"


async def test_dispatch_writes_all_notices_in_one_go(notifier, make, session_factory):
    user = await make.user("volunteer")

    written = await notifier.dispatch([
        notices.volunteer_verified(user.id),
        notices.application_update(user.id, user.id, "approved"),
    ])

    assert written == 2
    rows = await notifications_for(session_factory, user.id)
    assert {r.type for r in rows} == {"volunteer_verified", "application_update"}
    assert all(not r.is_read for r in rows)


async def test_dispatch_of_nothing(notifier):
    assert await notifier.dispatch([]) == 0


async def test_broken_store_reports_zero():
    dispatcher = NotificationDispatcher(session_factory=broken_session_factory)
    assert await dispatcher.notify(notices.volunteer_verified(None)) is False


async def test_moderation_alert_goes_to_slack(session_factory, make):
    slack = AsyncMock()
    moderator = await make.user("moderator")
    dispatcher = NotificationDispatcher(session_factory=session_factory, slack_notifier=slack)

    application_id = uuid.uuid4()

    sent = await dispatcher.notify_moderators_flagged(application_id, "Suspicious", "Beach clean")

    assert sent == 1
    assert [n.type for n in await notifications_for(session_factory, moderator.id)] == ["application_flagged"]
    slack.send_moderation_alert.assert_awaited_once_with(str(application_id), "Suspicious", "Beach clean")


async def test_email_failures_are_swallowed(notifier, make):
    email = AsyncMock()
    email.send_additional_info_request.side_effect = RuntimeError("smtp down")
    notifier.email_service = email
    user = await make.user("volunteer")

    sent = await notifier.email_additional_info_request(
        to=user.email,
        volunteer_name=user.first_name,
        opportunity_title="Beach clean",
        fields=["dbs"],
        message=None,
        application_id=user.id,
    )

    assert sent is False
    email.send_additional_info_request.assert_awaited_once()


def test_status_specific_titles():
    assert notices.application_update(None, None, "confirmed").title == "Volunteering Confirmed"
    assert notices.application_update(None, None, "something_else").title == "Application Update"


async def test_slack_post_runs_off_the_event_loop():
    loop_thread = threading.get_ident()
    posted_from = []
    slack = SlackNotifier()
    slack.enabled = True
    slack.channel_id = "C0MODERATION"
    slack.client = MagicMock()
    slack.client.chat_postMessage.side_effect = lambda **kwargs: posted_from.append(threading.get_ident()) or {}

    sent = await slack.send_moderation_alert("app-1", "Suspicious", "Beach clean")

    assert sent is True
    assert posted_from and posted_from[0] != loop_thread
    assert slack.client.chat_postMessage.call_args.kwargs["channel"] == "C0MODERATION"
