"""SQLite persistence layer for Standup Pulse."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .models import ChatIdentityLink, DailyCheckIn, Member, Role, SubmissionChannel, Team
from .timewindow import TimeOfDay

Connection = sqlite3.Connection
Row = sqlite3.Row


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _time_or_none(value: Optional[str]) -> Optional[TimeOfDay]:
    return TimeOfDay.parse(value) if value else None


def _iso_or_none(value: Optional[TimeOfDay]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _team_from_row(row: Row) -> Team:
    return Team(
        id=row["id"],
        name=row["name"],
        owner_id=row["owner_id"],
        window_open=_time_or_none(row["standup_window_open"]),
        window_close=_time_or_none(row["standup_window_close"]),
        deadline=_time_or_none(row["standup_deadline_utc"]),
        slack_team_id=row["slack_team_id"],
        slack_bot_token=row["slack_bot_token"],
    )


def _checkin_from_row(row: Row) -> DailyCheckIn:
    return DailyCheckIn(
        user_id=row["user_id"],
        log_date=date.fromisoformat(row["log_date"]),
        worked_on=row["worked_on"],
        working_next=row["working_next"],
        blockers=row["blockers"],
        score=row["score"],
        submitted_via=SubmissionChannel(row["submitted_via"]),
        submitted_at=datetime.fromisoformat(row["submitted_at"]),
    )


def _link_from_row(row: Row) -> ChatIdentityLink:
    return ChatIdentityLink(
        user_id=row["user_id"],
        slack_user_id=row["slack_user_id"],
        slack_dm_channel_id=row["slack_dm_channel_id"],
    )


class Database:
    """Lightweight wrapper around SQLite operations.

    Implements the team, check-in and chat identity stores. Uniqueness of a
    check-in per (user, UTC day) and of a link per (user, Slack user) lives
    in the schema, so concurrent writers resolve through the upsert.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    def _initialize(self) -> None:
        with self.connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS teams (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    owner_id TEXT,
                    standup_window_open TEXT,
                    standup_window_close TEXT,
                    standup_deadline_utc TEXT,
                    slack_team_id TEXT,
                    slack_bot_token TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS team_members (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    team_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    role TEXT NOT NULL CHECK (role IN ('owner', 'admin', 'member')),
                    joined_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(team_id, user_id),
                    FOREIGN KEY(team_id) REFERENCES teams(id) ON DELETE CASCADE
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS daily_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    log_date TEXT NOT NULL,
                    worked_on TEXT NOT NULL,
                    working_next TEXT NOT NULL,
                    blockers TEXT NOT NULL DEFAULT 'None',
                    score INTEGER NOT NULL CHECK (score BETWEEN 1 AND 5),
                    submitted_via TEXT NOT NULL CHECK (submitted_via IN ('web', 'slack')),
                    submitted_at TEXT NOT NULL,
                    UNIQUE(user_id, log_date)
                )
                """
            )
            cursor.execute(
                """
                CREATE TABLE IF NOT EXISTS slack_users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    slack_user_id TEXT NOT NULL,
                    slack_dm_channel_id TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT,
                    UNIQUE(user_id, slack_user_id)
                )
                """
            )
            conn.commit()

    # region Teams
    def create_team(
        self,
        team_id: str,
        name: str,
        owner_id: str,
        *,
        window_open: Optional[TimeOfDay] = None,
        window_close: Optional[TimeOfDay] = None,
        deadline: Optional[TimeOfDay] = None,
    ) -> Team:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO teams (id, name, owner_id, standup_window_open,
                                   standup_window_close, standup_deadline_utc)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    team_id,
                    name,
                    owner_id,
                    _iso_or_none(window_open),
                    _iso_or_none(window_close),
                    _iso_or_none(deadline),
                ),
            )
            conn.execute(
                "INSERT INTO team_members (team_id, user_id, role) VALUES (?, ?, 'owner')",
                (team_id, owner_id),
            )
            conn.commit()
        return self.get_team(team_id)  # type: ignore[return-value]

    def get_team(self, team_id: str) -> Optional[Team]:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM teams WHERE id = ?", (team_id,)).fetchone()
            return _team_from_row(row) if row else None

    def get_teams_with_notifications_enabled(self) -> List[Team]:
        with self.connect() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM teams
                WHERE standup_window_open IS NOT NULL
                  AND slack_bot_token IS NOT NULL
                  AND slack_bot_token != ''
                ORDER BY name
                """
            )
            return [_team_from_row(row) for row in cursor.fetchall()]

    def get_teams_for_user(self, user_id: str) -> List[Team]:
        with self.connect() as conn:
            cursor = conn.execute(
                """
                SELECT t.* FROM teams t
                JOIN team_members m ON m.team_id = t.id
                WHERE m.user_id = ?
                ORDER BY m.joined_at, t.name
                """,
                (user_id,),
            )
            return [_team_from_row(row) for row in cursor.fetchall()]

    def update_team_window(
        self,
        team_id: str,
        window_open: Optional[TimeOfDay],
        window_close: Optional[TimeOfDay],
    ) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                UPDATE teams SET standup_window_open = ?, standup_window_close = ?
                WHERE id = ?
                """,
                (_iso_or_none(window_open), _iso_or_none(window_close), team_id),
            )
            conn.commit()

    def set_slack_credentials(self, team_id: str, slack_team_id: Optional[str], bot_token: Optional[str]) -> None:
        with self.connect() as conn:
            conn.execute(
                "UPDATE teams SET slack_team_id = ?, slack_bot_token = ? WHERE id = ?",
                (slack_team_id, bot_token, team_id),
            )
            conn.commit()

    # endregion

    # region Members
    def add_member(self, team_id: str, user_id: str, role: Role = Role.MEMBER) -> Member:
        if role is Role.OWNER:
            raise ValueError("use transfer_ownership to assign the owner role")
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO team_members (team_id, user_id, role) VALUES (?, ?, ?)
                ON CONFLICT(team_id, user_id) DO UPDATE SET role = excluded.role
                WHERE team_members.role != 'owner'
                """,
                (team_id, user_id, role.value),
            )
            conn.commit()
        return self.get_member(team_id, user_id)  # type: ignore[return-value]

    def get_members(self, team_id: str) -> List[Member]:
        with self.connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM team_members WHERE team_id = ? ORDER BY joined_at, user_id",
                (team_id,),
            )
            return [Member(row["team_id"], row["user_id"], Role(row["role"])) for row in cursor.fetchall()]

    def get_member(self, team_id: str, user_id: str) -> Optional[Member]:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM team_members WHERE team_id = ? AND user_id = ?",
                (team_id, user_id),
            ).fetchone()
            return Member(row["team_id"], row["user_id"], Role(row["role"])) if row else None

    def transfer_ownership(self, team_id: str, new_owner_id: str) -> None:
        """Promote a member to owner and demote the previous owner in one transaction."""

        with self.connect() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                conn.execute(
                    """
                    UPDATE team_members SET role = 'member'
                    WHERE team_id = ? AND role = 'owner' AND user_id != ?
                    """,
                    (team_id, new_owner_id),
                )
                cursor = conn.execute(
                    "UPDATE team_members SET role = 'owner' WHERE team_id = ? AND user_id = ?",
                    (team_id, new_owner_id),
                )
                if cursor.rowcount != 1:
                    raise LookupError(f"{new_owner_id} is not a member of team {team_id}")
                conn.execute("UPDATE teams SET owner_id = ? WHERE id = ?", (new_owner_id, team_id))
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    # endregion

    # region Check-ins
    def get_checkin(self, user_id: str, day: date) -> Optional[DailyCheckIn]:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT * FROM daily_logs WHERE user_id = ? AND log_date = ?",
                (user_id, day.isoformat()),
            ).fetchone()
            return _checkin_from_row(row) if row else None

    def get_checkins_for_users(self, user_ids: Iterable[str], day: date) -> Dict[str, DailyCheckIn]:
        ids = list(user_ids)
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        with self.connect() as conn:
            cursor = conn.execute(
                f"SELECT * FROM daily_logs WHERE log_date = ? AND user_id IN ({placeholders})",
                (day.isoformat(), *ids),
            )
            return {row["user_id"]: _checkin_from_row(row) for row in cursor.fetchall()}

    def upsert_checkin(self, user_id: str, day: date, fields: Dict[str, Any]) -> DailyCheckIn:
        """Insert or replace the check-in for (user, day); the last write wins."""

        submitted_via = SubmissionChannel(fields.get("submitted_via", SubmissionChannel.WEB))
        submitted_at = fields.get("submitted_at") or datetime.now(timezone.utc)
        record = {
            "user_id": user_id,
            "log_date": day.isoformat(),
            "worked_on": fields["worked_on"],
            "working_next": fields["working_next"],
            "blockers": fields.get("blockers") or "None",
            "score": int(fields["score"]),
            "submitted_via": submitted_via.value,
            "submitted_at": submitted_at.isoformat(),
        }
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO daily_logs (user_id, log_date, worked_on, working_next,
                                        blockers, score, submitted_via, submitted_at)
                VALUES (:user_id, :log_date, :worked_on, :working_next,
                        :blockers, :score, :submitted_via, :submitted_at)
                ON CONFLICT(user_id, log_date) DO UPDATE SET
                    worked_on=excluded.worked_on,
                    working_next=excluded.working_next,
                    blockers=excluded.blockers,
                    score=excluded.score,
                    submitted_via=excluded.submitted_via,
                    submitted_at=excluded.submitted_at
                """,
                record,
            )
            row = conn.execute(
                "SELECT * FROM daily_logs WHERE user_id = ? AND log_date = ?",
                (user_id, record["log_date"]),
            ).fetchone()
            conn.commit()
            return _checkin_from_row(row)

    def count_checkins(self, user_id: str) -> int:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total FROM daily_logs WHERE user_id = ?", (user_id,)
            ).fetchone()
            return row["total"]

    # endregion

    # region Slack identities
    def get_link(self, user_id: str) -> Optional[ChatIdentityLink]:
        with self.connect() as conn:
            row = conn.execute(
                """
                SELECT * FROM slack_users WHERE user_id = ?
                ORDER BY COALESCE(updated_at, created_at) DESC
                LIMIT 1
                """,
                (user_id,),
            ).fetchone()
            return _link_from_row(row) if row else None

    def get_link_by_slack_user(self, slack_user_id: str) -> Optional[ChatIdentityLink]:
        with self.connect() as conn:
            row = conn.execute(
                """
                SELECT * FROM slack_users WHERE slack_user_id = ?
                ORDER BY COALESCE(updated_at, created_at) DESC
                LIMIT 1
                """,
                (slack_user_id,),
            ).fetchone()
            return _link_from_row(row) if row else None

    def upsert_link(self, user_id: str, slack_user_id: str, dm_channel_id: str) -> ChatIdentityLink:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO slack_users (user_id, slack_user_id, slack_dm_channel_id, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id, slack_user_id) DO UPDATE SET
                    slack_dm_channel_id=excluded.slack_dm_channel_id,
                    updated_at=excluded.updated_at
                """,
                (user_id, slack_user_id, dm_channel_id, _now()),
            )
            conn.commit()
        return ChatIdentityLink(user_id, slack_user_id, dm_channel_id)

    def count_links(self, user_id: str) -> int:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total FROM slack_users WHERE user_id = ?", (user_id,)
            ).fetchone()
            return row["total"]

    def delete_links_for_users(self, user_ids: Iterable[str]) -> int:
        ids = list(user_ids)
        if not ids:
            return 0
        placeholders = ", ".join("?" for _ in ids)
        with self.connect() as conn:
            cursor = conn.execute(f"DELETE FROM slack_users WHERE user_id IN ({placeholders})", ids)
            conn.commit()
            return cursor.rowcount

    # endregion


__all__ = ["Database"]
