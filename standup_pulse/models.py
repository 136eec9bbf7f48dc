"""Dataclasses representing Standup Pulse domain models."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from .timewindow import StandupWindow, TimeOfDay


class Role(str, enum.Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class SubmissionChannel(str, enum.Enum):
    WEB = "web"
    SLACK = "slack"


@dataclass(slots=True)
class Team:
    id: str
    name: str
    owner_id: str | None = None
    window_open: TimeOfDay | None = None
    window_close: TimeOfDay | None = None
    deadline: TimeOfDay | None = None
    slack_team_id: str | None = None
    slack_bot_token: str | None = None

    @property
    def window(self) -> StandupWindow:
        return StandupWindow(open=self.window_open, close=self.window_close)

    @property
    def notifications_enabled(self) -> bool:
        return self.window_open is not None and bool(self.slack_bot_token)


@dataclass(slots=True)
class Member:
    team_id: str
    user_id: str
    role: Role = Role.MEMBER


@dataclass(slots=True)
class DailyCheckIn:
    user_id: str
    log_date: date
    worked_on: str
    working_next: str
    blockers: str
    score: int
    submitted_via: SubmissionChannel
    submitted_at: datetime


@dataclass(slots=True)
class ChatIdentityLink:
    user_id: str
    slack_user_id: str
    slack_dm_channel_id: str | None = None


class SendOutcome(str, enum.Enum):
    SENT = "sent"
    SKIPPED_SUBMITTED = "skipped_already_submitted"
    SKIPPED_NO_LINK = "skipped_no_link"
    FAILED = "failed"


@dataclass(slots=True)
class MemberOutcome:
    team_id: str
    user_id: str
    outcome: SendOutcome


@dataclass(slots=True)
class DispatchResult:
    """Counts for one dispatcher run; ``outcomes`` is never persisted."""

    teams_notified: int = 0
    sent: int = 0
    errors: int = 0
    skipped_submitted: int = 0
    skipped_unlinked: int = 0
    misconfigured: int = 0
    outcomes: List[MemberOutcome] = field(default_factory=list)

    def record(self, outcome: MemberOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.outcome is SendOutcome.SENT:
            self.sent += 1
        elif outcome.outcome is SendOutcome.FAILED:
            self.errors += 1
        elif outcome.outcome is SendOutcome.SKIPPED_SUBMITTED:
            self.skipped_submitted += 1
        elif outcome.outcome is SendOutcome.SKIPPED_NO_LINK:
            self.skipped_unlinked += 1

    def as_dict(self) -> dict[str, int]:
        return {
            "teams_notified": self.teams_notified,
            "messages_sent": self.sent,
            "errors": self.errors,
            "skipped_submitted": self.skipped_submitted,
            "skipped_unlinked": self.skipped_unlinked,
            "misconfigured": self.misconfigured,
        }


@dataclass(slots=True)
class StandupEntry:
    user_id: str
    role: Role
    checkin: Optional[DailyCheckIn] = None
    on_time: Optional[bool] = None


__all__ = [
    "Role",
    "SubmissionChannel",
    "Team",
    "Member",
    "DailyCheckIn",
    "ChatIdentityLink",
    "SendOutcome",
    "MemberOutcome",
    "DispatchResult",
    "StandupEntry",
]
