"""Capability interfaces the dispatcher, handler and linkage manager depend on.

``Database`` implements the three store protocols and ``SlackClient`` the
messaging gateway; tests substitute their own objects.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Protocol

from .models import ChatIdentityLink, DailyCheckIn, Member, Team
from .timewindow import TimeOfDay


class TeamStore(Protocol):
    def get_team(self, team_id: str) -> Optional[Team]: ...

    def get_teams_with_notifications_enabled(self) -> List[Team]: ...

    def get_teams_for_user(self, user_id: str) -> List[Team]: ...

    def get_members(self, team_id: str) -> List[Member]: ...

    def get_member(self, team_id: str, user_id: str) -> Optional[Member]: ...

    def update_team_window(
        self, team_id: str, window_open: Optional[TimeOfDay], window_close: Optional[TimeOfDay]
    ) -> None: ...

    def set_slack_credentials(self, team_id: str, slack_team_id: Optional[str], bot_token: Optional[str]) -> None: ...

    def transfer_ownership(self, team_id: str, new_owner_id: str) -> None: ...


class LogStore(Protocol):
    def get_checkin(self, user_id: str, day: date) -> Optional[DailyCheckIn]: ...

    def get_checkins_for_users(self, user_ids: Iterable[str], day: date) -> Dict[str, DailyCheckIn]: ...

    def upsert_checkin(self, user_id: str, day: date, fields: Dict[str, Any]) -> DailyCheckIn: ...


class ChatIdentityStore(Protocol):
    def get_link(self, user_id: str) -> Optional[ChatIdentityLink]: ...

    def get_link_by_slack_user(self, slack_user_id: str) -> Optional[ChatIdentityLink]: ...

    def upsert_link(self, user_id: str, slack_user_id: str, dm_channel_id: str) -> ChatIdentityLink: ...

    def delete_links_for_users(self, user_ids: Iterable[str]) -> int: ...


class MessagingGateway(Protocol):
    async def open_direct_message_channel(self, token: str, slack_user_id: str) -> str: ...

    async def send_message(self, token: str, channel: str, content: Dict[str, Any]) -> str: ...


__all__ = ["TeamStore", "LogStore", "ChatIdentityStore", "MessagingGateway"]
