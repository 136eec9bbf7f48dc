"""Linking internal users to Slack identities and DM channels."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .errors import NotConfigured, PermissionDenied, TeamNotFound
from .slack_client import SlackClient
from .stores import ChatIdentityStore, TeamStore

logger = logging.getLogger("standup_pulse.linkage")


class LinkageManager:
    def __init__(
        self,
        teams: TeamStore,
        identities: ChatIdentityStore,
        client: SlackClient,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
    ) -> None:
        self.teams = teams
        self.identities = identities
        self.client = client
        self.client_id = client_id
        self.client_secret = client_secret

    async def link(self, team_id: str, user_id: str, slack_user_id: str) -> str:
        """Link ``user_id`` to ``slack_user_id`` and return the DM channel id.

        Linking the same pair again refreshes the stored channel instead of
        failing on the unique key.
        """

        team = self.teams.get_team(team_id)
        if team is None:
            raise TeamNotFound(team_id)
        if self.teams.get_member(team_id, user_id) is None:
            raise PermissionDenied("You are not a member of this team")
        if not team.slack_bot_token:
            raise NotConfigured("Team is not connected to Slack")

        channel_id = await self.client.open_direct_message_channel(team.slack_bot_token, slack_user_id)
        self.identities.upsert_link(user_id, slack_user_id, channel_id)
        logger.info("Linked user %s to Slack user %s (%s)", user_id, slack_user_id, channel_id)
        return channel_id

    def unlink_users(self, user_ids: Iterable[str]) -> int:
        return self.identities.delete_links_for_users(user_ids)

    def disconnect_team(self, team_id: str) -> int:
        """Drop the team's Slack credentials and every member's link."""

        if self.teams.get_team(team_id) is None:
            raise TeamNotFound(team_id)
        self.teams.set_slack_credentials(team_id, None, None)
        removed = self.unlink_users(member.user_id for member in self.teams.get_members(team_id))
        logger.info("Disconnected Slack for team %s, removed %s links", team_id, removed)
        return removed

    def _require_oauth(self) -> tuple[str, str]:
        if not self.client_id or not self.client_secret:
            raise NotConfigured("Slack OAuth client is not configured")
        return self.client_id, self.client_secret

    async def complete_oauth_link(self, state: str, code: str, redirect_uri: Optional[str] = None) -> str:
        """Finish the per-user "Sign in with Slack" flow; ``state`` is ``team_id:user_id``."""

        team_id, _, user_id = state.partition(":")
        if not team_id or not user_id:
            raise PermissionDenied("link_missing_params")
        client_id, client_secret = self._require_oauth()
        payload = await self.client.oauth_access(client_id, client_secret, code, redirect_uri)
        slack_user_id = (payload.get("authed_user") or {}).get("id")
        if not slack_user_id:
            raise NotConfigured("Invalid OAuth response from Slack")
        return await self.link(team_id, user_id, slack_user_id)

    async def install_team(self, team_id: str, code: str, redirect_uri: Optional[str] = None) -> str:
        """Store the bot token from a workspace install and return the workspace name."""

        if self.teams.get_team(team_id) is None:
            raise TeamNotFound(team_id)
        client_id, client_secret = self._require_oauth()
        payload = await self.client.oauth_access(client_id, client_secret, code, redirect_uri)
        workspace = payload.get("team") or {}
        token = payload.get("access_token")
        if not token or not workspace.get("id"):
            raise NotConfigured("Invalid OAuth response from Slack")
        self.teams.set_slack_credentials(team_id, workspace["id"], token)
        return workspace.get("name") or workspace["id"]


__all__ = ["LinkageManager"]
