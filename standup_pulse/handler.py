"""Inbound Slack webhook handling.

Each delivery moves through received -> verified -> classified -> resolved
-> parsed, and stops at the first step that does not apply. Whatever the
stopping point, Slack gets a fast 200 unless the signature check failed:
business-level rejections must not trigger Slack's redelivery.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .events import IgnoredEvent, MessageEvent, UrlVerification, parse_envelope
from .messages import confirmation_message, help_message
from .models import SubmissionChannel
from .parser import parse_checkin
from .signing import DEFAULT_MAX_AGE_SECONDS, verify_signature
from .stores import ChatIdentityStore, LogStore, MessagingGateway, TeamStore
from .timewindow import today_utc

logger = logging.getLogger("standup_pulse.handler")


class Outcome(str, enum.Enum):
    UNAUTHORIZED = "unauthorized"
    CHALLENGED = "challenged"
    IGNORED = "ignored"
    UNKNOWN_SENDER = "unknown_sender"
    INVALID_FORMAT = "invalid_format"
    RECORDED = "recorded"
    FAILED = "failed"


@dataclass(slots=True)
class HandlerResult:
    outcome: Outcome
    status_code: int = 200
    body: Dict[str, Any] = field(default_factory=lambda: {"ok": True})


class InboundEventHandler:
    def __init__(
        self,
        signing_secret: str,
        teams: TeamStore,
        logs: LogStore,
        identities: ChatIdentityStore,
        gateway: MessagingGateway,
        max_age: int = DEFAULT_MAX_AGE_SECONDS,
    ) -> None:
        self.signing_secret = signing_secret
        self.teams = teams
        self.logs = logs
        self.identities = identities
        self.gateway = gateway
        self.max_age = max_age

    async def handle(
        self,
        raw_body: bytes,
        timestamp: Optional[str],
        signature: Optional[str],
        now: Optional[datetime] = None,
    ) -> HandlerResult:
        now = now or datetime.now(timezone.utc)
        if not verify_signature(
            self.signing_secret,
            raw_body,
            timestamp,
            signature,
            now=now.timestamp(),
            max_age=self.max_age,
        ):
            return HandlerResult(Outcome.UNAUTHORIZED, 401, {"error": "Invalid signature"})

        try:
            event = parse_envelope(json.loads(raw_body))
        except ValueError as exc:
            logger.error("Unreadable Slack payload: %s", exc)
            return self._acknowledge(Outcome.FAILED)

        if isinstance(event, UrlVerification):
            return HandlerResult(Outcome.CHALLENGED, 200, {"challenge": event.challenge})
        if isinstance(event, IgnoredEvent):
            logger.debug("Ignoring Slack event: %s", event.reason)
            return self._acknowledge(Outcome.IGNORED)

        try:
            outcome = await self._process_message(event, now)
        except Exception:  # noqa: BLE001
            logger.exception("Error processing Slack message from %s", event.user)
            outcome = Outcome.FAILED
        return self._acknowledge(outcome)

    async def _process_message(self, event: MessageEvent, now: datetime) -> Outcome:
        link = self.identities.get_link_by_slack_user(event.user)
        if link is None:
            logger.info("Slack user not found: %s", event.user)
            return Outcome.UNKNOWN_SENDER

        parsed = parse_checkin(event.text)
        token = self._reply_token(link.user_id)
        if parsed is None:
            await self._reply(token, event.channel, help_message())
            return Outcome.INVALID_FORMAT

        fields = parsed.as_fields()
        fields.update(submitted_via=SubmissionChannel.SLACK, submitted_at=now)
        self.logs.upsert_checkin(link.user_id, today_utc(now), fields)
        await self._reply(token, event.channel, confirmation_message(parsed.score))
        return Outcome.RECORDED

    def _reply_token(self, user_id: str) -> Optional[str]:
        for team in self.teams.get_teams_for_user(user_id):
            if team.slack_bot_token:
                return team.slack_bot_token
        return None

    async def _reply(self, token: Optional[str], channel: str, content: Dict[str, Any]) -> None:
        if not token:
            logger.warning("No Slack token available to reply on %s", channel)
            return
        try:
            await self.gateway.send_message(token, channel, content)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to reply on %s: %s", channel, exc)

    @staticmethod
    def _acknowledge(outcome: Outcome) -> HandlerResult:
        return HandlerResult(outcome)


__all__ = ["InboundEventHandler", "HandlerResult", "Outcome"]
