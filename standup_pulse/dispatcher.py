"""Daily standup reminder run."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Optional

from .messages import reminder_message
from .models import DispatchResult, Member, MemberOutcome, SendOutcome, Team
from .stores import ChatIdentityStore, LogStore, MessagingGateway, TeamStore
from .timewindow import today_utc

logger = logging.getLogger("standup_pulse.dispatcher")

DEFAULT_CONCURRENCY = 4


class NotificationDispatcher:
    """DM every linked member who has not checked in today.

    One invocation per scheduling period. Sends fan out under a small
    semaphore so a large team does not trip Slack's rate limits, and a
    failure for one member never stops the others.
    """

    def __init__(
        self,
        teams: TeamStore,
        logs: LogStore,
        identities: ChatIdentityStore,
        gateway: MessagingGateway,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self.teams = teams
        self.logs = logs
        self.identities = identities
        self.gateway = gateway
        self.concurrency = max(1, concurrency)

    async def run_daily(self, now: Optional[datetime] = None) -> DispatchResult:
        now = now or datetime.now(timezone.utc)
        day = today_utc(now)
        result = DispatchResult()

        try:
            teams = self.teams.get_teams_with_notifications_enabled()
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to fetch teams: %s", exc)
            result.errors += 1
            return result

        semaphore = asyncio.Semaphore(self.concurrency)
        pending = []
        for team in teams:
            if not team.notifications_enabled:
                logger.warning("Team %s has no window or Slack token, skipping", team.id)
                result.misconfigured += 1
                continue
            try:
                members = self.teams.get_members(team.id)
            except Exception as exc:  # noqa: BLE001
                logger.error("Failed to fetch members for team %s: %s", team.id, exc)
                result.errors += 1
                continue

            result.teams_notified += 1
            for member in members:
                pending.append(self._notify_member(team, member, day, semaphore))

        for outcome in await asyncio.gather(*pending):
            result.record(outcome)

        logger.info(
            "Standup reminders for %s: %s teams, %s sent, %s errors",
            day.isoformat(),
            result.teams_notified,
            result.sent,
            result.errors,
        )
        return result

    async def _notify_member(
        self,
        team: Team,
        member: Member,
        day: date,
        semaphore: asyncio.Semaphore,
    ) -> MemberOutcome:
        async with semaphore:
            try:
                outcome = await self._send_reminder(team, member, day)
            except Exception:  # noqa: BLE001
                logger.exception("Failed to send DM to user %s in team %s", member.user_id, team.id)
                outcome = SendOutcome.FAILED
        return MemberOutcome(team_id=team.id, user_id=member.user_id, outcome=outcome)

    async def _send_reminder(self, team: Team, member: Member, day: date) -> SendOutcome:
        if self.logs.get_checkin(member.user_id, day) is not None:
            logger.debug("User %s already submitted today, skipping", member.user_id)
            return SendOutcome.SKIPPED_SUBMITTED

        link = self.identities.get_link(member.user_id)
        if link is None:
            logger.debug("No Slack user found for %s, skipping", member.user_id)
            return SendOutcome.SKIPPED_NO_LINK

        channel = link.slack_dm_channel_id or link.slack_user_id
        await self.gateway.send_message(team.slack_bot_token, channel, reminder_message(team.name))
        return SendOutcome.SENT


__all__ = ["NotificationDispatcher", "DEFAULT_CONCURRENCY"]
