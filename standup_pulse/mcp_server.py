"""MCP server exposing read-only Standup Pulse tools."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .db import Database
from .timewindow import classify, today_utc


def _ensure_date(day_str: Optional[str] = None) -> date:
    if not day_str:
        return today_utc()
    return datetime.strptime(day_str, "%Y-%m-%d").date()


class StandupTools:
    def __init__(self, database: Database) -> None:
        self.database = database

    def get_team_standup(self, team_id: str, date: Optional[str] = None) -> Dict[str, Any]:
        day = _ensure_date(date)
        team = self.database.get_team(team_id)
        if team is None:
            raise ValueError(f"Team {team_id} not found")
        members = self.database.get_members(team_id)
        checkins = self.database.get_checkins_for_users((m.user_id for m in members), day)
        return {
            "date": day.isoformat(),
            "team": team.name,
            "submitted": sorted(checkins),
            "missing": sorted(m.user_id for m in members if m.user_id not in checkins),
            "average_score": (
                round(sum(c.score for c in checkins.values()) / len(checkins), 2) if checkins else None
            ),
        }

    def get_user_checkin(self, user_id: str, date: Optional[str] = None) -> Dict[str, Any]:
        day = _ensure_date(date)
        checkin = self.database.get_checkin(user_id, day)
        if checkin is None:
            return {"date": day.isoformat(), "checkin": None}
        return {
            "date": day.isoformat(),
            "checkin": {
                "worked_on": checkin.worked_on,
                "working_next": checkin.working_next,
                "blockers": checkin.blockers,
                "score": checkin.score,
                "submitted_via": checkin.submitted_via.value,
            },
        }

    def get_window_status(self, team_id: str) -> Dict[str, Any]:
        team = self.database.get_team(team_id)
        if team is None:
            raise ValueError(f"Team {team_id} not found")
        status = classify(team.window, datetime.now(timezone.utc))
        return {
            "state": status.state.value,
            "remaining_minutes": int(status.remaining.total_seconds() // 60) if status.remaining else None,
        }


def build_mcp(database: Database) -> FastMCP:
    tools = StandupTools(database)
    mcp = FastMCP("standup-pulse")

    @mcp.tool()
    async def get_team_standup(team_id: str, date: Optional[str] = None) -> dict:
        """Return each member of a team and whether they checked in on the date."""

        return tools.get_team_standup(team_id, date)

    @mcp.tool()
    async def get_user_checkin(user_id: str, date: Optional[str] = None) -> dict:
        """Return a specific user's check-in for the given date."""

        return tools.get_user_checkin(user_id, date)

    @mcp.tool()
    async def get_window_status(team_id: str) -> dict:
        """Return whether the team's standup window is currently open."""

        return tools.get_window_status(team_id)

    return mcp


if __name__ == "__main__":  # pragma: no cover
    build_mcp(Database(load_settings().database_path)).run()


__all__ = ["StandupTools", "build_mcp"]
