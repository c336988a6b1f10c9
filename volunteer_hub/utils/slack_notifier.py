"""Slack notification utility for moderation alerts."""

import asyncio
import time
from collections import deque
from datetime import datetime, timezone
from typing import Dict, Optional

import structlog
from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from volunteer_hub.config import settings

logger = structlog.get_logger(__name__)


class SlackNotifier:
    """Send moderation alerts to Slack with rate limiting."""

    def __init__(self):
        """Initialize Slack notifier with rate limiting."""
        self.enabled = (
            settings.SLACK_ALERTS_ENABLED
            and bool(settings.SLACK_BOT_TOKEN)
            and bool(settings.SLACK_CHANNEL_ID)
        )
        self.channel_id = settings.SLACK_CHANNEL_ID
        self.max_alerts_per_hour = settings.MAX_ALERTS_PER_HOUR
        self.alert_history: deque = deque(maxlen=100)  # Track recent alerts

        if self.enabled:
            self.client = WebClient(token=settings.SLACK_BOT_TOKEN)
            logger.info(
                "slack_notifier_initialized",
                max_alerts_per_hour=self.max_alerts_per_hour,
                channel_id=self.channel_id
            )
        else:
            self.client = None
            logger.info("slack_notifier_disabled")

    def _check_rate_limit(self) -> bool:
        """
        Check if we've exceeded alert rate limit.

        Returns:
            True if within limit, False if exceeded
        """
        if not self.enabled:
            return False

        one_hour_ago = time.time() - 3600
        recent_alerts = sum(1 for ts in self.alert_history if ts > one_hour_ago)

        if recent_alerts >= self.max_alerts_per_hour:
            logger.warning(
                "slack_rate_limit_exceeded",
                recent_alerts=recent_alerts,
                max_allowed=self.max_alerts_per_hour,
            )
            return False

        return True

    async def send_alert(
        self,
        title: str,
        message: str,
        level: str = "warning",
        context: Optional[Dict] = None,
        link: Optional[str] = None,
    ) -> bool:
        """
        Send alert to Slack with formatted blocks.

        Args:
            title: Alert title
            message: Alert message (mrkdwn)
            level: Severity level (info, warning, error)
            context: Additional key/value fields
            link: Optional link to the moderation dashboard

        Returns:
            True if sent successfully
        """
        if not self.enabled:
            logger.debug("slack_alert_skipped_disabled", title=title)
            return False

        if not self._check_rate_limit():
            logger.warning("slack_alert_skipped_rate_limit", title=title)
            return False

        severity_map = {
            "info": {"emoji": "ℹ️", "color": "#36a64f"},
            "warning": {"emoji": "⚠️", "color": "#ff9900"},
            "error": {"emoji": "❌", "color": "#ff0000"},
        }
        severity = severity_map.get(level.lower(), severity_map["warning"])

        blocks = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": f"{severity['emoji']} {title}", "emoji": True},
            },
            {"type": "divider"},
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": message},
                "fields": [{"type": "mrkdwn", "text": f"*Environment:*\n{settings.ENVIRONMENT}"}],
            },
        ]

        if context:
            context_items = list(context.items())
            for i in range(0, len(context_items), 2):
                blocks.append({
                    "type": "section",
                    "fields": [
                        {"type": "mrkdwn", "text": f"*{key}:*\n{value}"}
                        for key, value in context_items[i:i + 2]
                    ],
                })

        blocks.append({
            "type": "context",
            "elements": [
                {
                    "type": "mrkdwn",
                    "text": f"🕒 {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')}",
                }
            ],
        })

        if link:
            blocks.append({
                "type": "actions",
                "elements": [
                    {"type": "button", "text": {"type": "plain_text", "text": "Open Review"}, "url": link}
                ],
            })

        try:
            # WebClient is blocking; keep the Slack round trip off the event loop
            response = await asyncio.to_thread(
                self.client.chat_postMessage,
                channel=self.channel_id,
                blocks=blocks,
                attachments=[{"color": severity["color"], "fallback": f"{title}: {message}"}],
                text=f"{title}: {message}",
            )
            self.alert_history.append(time.time())

            logger.info("slack_alert_sent", title=title, level=level, message_ts=response.get("ts"))
            return True

        except SlackApiError as e:
            logger.error(
                "slack_alert_failed_api",
                title=title,
                error=e.response["error"],
                status_code=e.response.status_code,
            )
            return False

    async def send_moderation_alert(
        self,
        application_id: str,
        reason: Optional[str],
        opportunity_title: Optional[str] = None,
    ) -> bool:
        """Alert the moderation channel that an application was flagged during vetting."""
        return await self.send_alert(
            title="Application Flagged for Moderation",
            message=f"An application has been flagged for moderator review.\n\n*Reason:* {reason or 'not given'}",
            level="warning",
            context={
                "Application": application_id,
                "Opportunity": opportunity_title or "-",
            },
            link=f"{settings.FRONTEND_URL}/moderator/applications/{application_id}",
        )


# Global instance
slack_notifier = SlackNotifier()
