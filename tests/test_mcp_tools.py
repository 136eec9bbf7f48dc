"""
Tests for the read-only MCP tools.
"""
from datetime import date

import pytest

from standup_pulse.mcp_server import StandupTools, build_mcp


@pytest.fixture
def tools(database):
    return StandupTools(database)


def test_team_standup_splits_submitted_and_missing(tools, database, team, checkin_fields):
    database.add_member(team.id, "user-1")
    database.upsert_checkin("user-1", date(2026, 10, 19), checkin_fields)

    report = tools.get_team_standup(team.id, "2026-10-19")

    assert report == {
        "date": "2026-10-19",
        "team": "Platform",
        "submitted": ["user-1"],
        "missing": ["owner-1"],
        "average_score": 4.0,
    }


def test_user_checkin_missing(tools):
    assert tools.get_user_checkin("user-1", "2026-10-19") == {"date": "2026-10-19", "checkin": None}


def test_window_status(tools, team):
    assert tools.get_window_status(team.id)["state"] in {"before_open", "open", "after_close"}


def test_unknown_team_raises(tools):
    with pytest.raises(ValueError):
        tools.get_team_standup("missing")


def test_build_mcp(database):
    assert build_mcp(database).name == "standup-pulse"
