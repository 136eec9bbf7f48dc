"""Typed failures raised by the direct (non-webhook, non-scheduled) entry points."""

from __future__ import annotations


class StandupError(Exception):
    """Base class for rejections surfaced to the caller with a reason string."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class PermissionDenied(StandupError):
    pass


class NotConfigured(StandupError):
    pass


class InvalidWindow(StandupError):
    pass


class TeamNotFound(StandupError):
    def __init__(self, team_id: str) -> None:
        super().__init__(f"Team {team_id} not found")
        self.team_id = team_id


__all__ = ["StandupError", "PermissionDenied", "NotConfigured", "InvalidWindow", "TeamNotFound"]
