"""
Tests for the SQLite store: check-in upserts, links and team membership.
"""
import sqlite3
from datetime import date, datetime, timezone

import pytest

from standup_pulse.models import Role, SubmissionChannel
from standup_pulse.timewindow import TimeOfDay

DAY = date(2026, 10, 19)


class TestCheckins:
    def test_upsert_creates_then_replaces(self, database, checkin_fields):
        database.upsert_checkin("user-1", DAY, checkin_fields)
        second = database.upsert_checkin(
            "user-1",
            DAY,
            {**checkin_fields, "worked_on": "Chat path", "score": 2, "submitted_via": SubmissionChannel.SLACK},
        )

        assert database.count_checkins("user-1") == 1
        assert second.worked_on == "Chat path"
        assert second.submitted_via is SubmissionChannel.SLACK
        assert database.get_checkin("user-1", DAY).score == 2

    def test_different_days_are_separate_rows(self, database, checkin_fields):
        database.upsert_checkin("user-1", DAY, checkin_fields)
        database.upsert_checkin("user-1", date(2026, 10, 20), checkin_fields)
        assert database.count_checkins("user-1") == 2

    def test_blank_blockers_stored_as_none(self, database, checkin_fields):
        stored = database.upsert_checkin("user-1", DAY, {**checkin_fields, "blockers": ""})
        assert stored.blockers == "None"

    def test_submitted_at_round_trips(self, database, checkin_fields):
        at = datetime(2026, 10, 19, 9, 15, tzinfo=timezone.utc)
        stored = database.upsert_checkin("user-1", DAY, {**checkin_fields, "submitted_at": at})
        assert stored.submitted_at == at

    def test_score_out_of_range_rejected_by_schema(self, database, checkin_fields):
        with pytest.raises(sqlite3.IntegrityError):
            database.upsert_checkin("user-1", DAY, {**checkin_fields, "score": 6})

    def test_checkins_for_users(self, database, checkin_fields):
        database.upsert_checkin("user-1", DAY, checkin_fields)
        database.upsert_checkin("user-2", date(2026, 10, 18), checkin_fields)
        assert set(database.get_checkins_for_users(["user-1", "user-2"], DAY)) == {"user-1"}
        assert database.get_checkins_for_users([], DAY) == {}


class TestLinks:
    def test_relinking_same_pair_refreshes_channel(self, database):
        database.upsert_link("user-1", "U1", "D-old")
        database.upsert_link("user-1", "U1", "D-new")

        assert database.count_links("user-1") == 1
        assert database.get_link("user-1").slack_dm_channel_id == "D-new"
        assert database.get_link_by_slack_user("U1").user_id == "user-1"

    def test_delete_links_for_users(self, database):
        database.upsert_link("user-1", "U1", "D1")
        database.upsert_link("user-2", "U2", "D2")
        database.upsert_link("user-3", "U3", "D3")

        assert database.delete_links_for_users(["user-1", "user-2"]) == 2
        assert database.get_link("user-1") is None
        assert database.get_link("user-3") is not None
        assert database.delete_links_for_users([]) == 0


class TestTeams:
    def test_create_team_adds_owner(self, database):
        team = database.create_team("t1", "Core", "owner-1", window_open=TimeOfDay(9, 0))
        assert team.window_open == TimeOfDay(9, 0)
        assert database.get_member("t1", "owner-1").role is Role.OWNER

    def test_notifications_require_window_and_token(self, database, team):
        database.create_team("t2", "No token", "owner-2", window_open=TimeOfDay(9, 0))
        assert [t.id for t in database.get_teams_with_notifications_enabled()] == [team.id]

    def test_teams_for_user(self, database, team):
        database.add_member(team.id, "user-1")
        assert [t.id for t in database.get_teams_for_user("user-1")] == [team.id]
        assert database.get_teams_for_user("stranger") == []

    def test_add_member_cannot_demote_owner(self, database, team):
        database.add_member(team.id, "owner-1", Role.ADMIN)
        assert database.get_member(team.id, "owner-1").role is Role.OWNER

    def test_add_member_rejects_owner_role(self, database, team):
        with pytest.raises(ValueError):
            database.add_member(team.id, "user-1", Role.OWNER)

    def test_transfer_ownership_keeps_exactly_one_owner(self, database, team):
        database.add_member(team.id, "user-1", Role.ADMIN)
        database.transfer_ownership(team.id, "user-1")

        roles = {m.user_id: m.role for m in database.get_members(team.id)}
        assert roles == {"owner-1": Role.MEMBER, "user-1": Role.OWNER}
        assert database.get_team(team.id).owner_id == "user-1"

    def test_transfer_to_non_member_changes_nothing(self, database, team):
        with pytest.raises(LookupError):
            database.transfer_ownership(team.id, "stranger")
        assert database.get_member(team.id, "owner-1").role is Role.OWNER

    def test_update_window_and_credentials(self, database, team):
        database.update_team_window(team.id, TimeOfDay(8, 0), None)
        database.set_slack_credentials(team.id, None, None)
        stored = database.get_team(team.id)
        assert (stored.window_open, stored.window_close) == (TimeOfDay(8, 0), None)
        assert stored.notifications_enabled is False
