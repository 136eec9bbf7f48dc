"""Owner-only team settings and the per-day team standup view."""

from __future__ import annotations

import logging
from datetime import date, timezone
from typing import Any, List, Optional

from .errors import InvalidWindow, PermissionDenied, TeamNotFound
from .linkage import LinkageManager
from .models import Role, StandupEntry, Team
from .stores import LogStore, TeamStore
from .timewindow import TimeOfDay, WindowState, classify, is_late, validate_window

logger = logging.getLogger("standup_pulse.team_settings")

UNSET: Any = object()


def _window_value(value: Optional[str]) -> Optional[TimeOfDay]:
    if not value:
        return None
    try:
        return TimeOfDay.parse(value)
    except ValueError as exc:
        raise InvalidWindow(f"Invalid time {value!r}, expected HH:MM in UTC") from exc


class TeamSettingsService:
    def __init__(self, teams: TeamStore, logs: LogStore, linkage: LinkageManager) -> None:
        self.teams = teams
        self.logs = logs
        self.linkage = linkage

    def _require_team(self, team_id: str) -> Team:
        team = self.teams.get_team(team_id)
        if team is None:
            raise TeamNotFound(team_id)
        return team

    def _require_owner(self, team: Team, user_id: str) -> None:
        member = self.teams.get_member(team.id, user_id)
        if member is None or member.role is not Role.OWNER:
            raise PermissionDenied("Only the team owner can update settings")

    def update(
        self,
        team_id: str,
        user_id: str,
        *,
        window_open: Optional[str] = UNSET,
        window_close: Optional[str] = UNSET,
        disconnect_slack: bool = False,
    ) -> Team:
        """Apply the fields that were provided; window times are UTC ``HH:MM[:SS]``."""

        team = self._require_team(team_id)
        self._require_owner(team, user_id)

        new_open = team.window_open if window_open is UNSET else _window_value(window_open)
        new_close = team.window_close if window_close is UNSET else _window_value(window_close)
        if window_open is not UNSET or window_close is not UNSET:
            validate_window(new_open, new_close)
            self.teams.update_team_window(team_id, new_open, new_close)
            logger.info("Team %s standup window set to %s - %s UTC", team_id, new_open, new_close)

        if disconnect_slack:
            self.linkage.disconnect_team(team_id)

        return self._require_team(team_id)

    def transfer_ownership(self, team_id: str, user_id: str, new_owner_id: str) -> None:
        team = self._require_team(team_id)
        self._require_owner(team, user_id)
        if self.teams.get_member(team_id, new_owner_id) is None:
            raise PermissionDenied("The new owner must already be a member of this team")
        self.teams.transfer_ownership(team_id, new_owner_id)

    def team_standup(self, team_id: str, day: date) -> List[StandupEntry]:
        team = self._require_team(team_id)
        members = self.teams.get_members(team_id)
        checkins = self.logs.get_checkins_for_users((m.user_id for m in members), day)

        entries: List[StandupEntry] = []
        for member in members:
            checkin = checkins.get(member.user_id)
            on_time: Optional[bool] = None
            if checkin is not None:
                submitted = checkin.submitted_at.astimezone(timezone.utc)
                if team.window.configured:
                    on_time = classify(team.window, submitted).state is not WindowState.AFTER_CLOSE
                else:
                    on_time = not is_late(team.deadline, submitted)
            entries.append(StandupEntry(member.user_id, member.role, checkin, on_time))
        return entries


__all__ = ["TeamSettingsService", "UNSET"]
