"""FastAPI application exposing the Standup Pulse webhook, cron and settings routes."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, Field

from .config import Settings, load_settings
from .db import Database
from .dispatcher import NotificationDispatcher
from .errors import PermissionDenied, StandupError, TeamNotFound
from .handler import InboundEventHandler
from .linkage import LinkageManager
from .models import SubmissionChannel
from .slack_client import SlackApiError, SlackClient
from .team_settings import UNSET, TeamSettingsService
from .timewindow import today_utc, to_local_display

logger = logging.getLogger("standup_pulse.api")


class LinkUserRequest(BaseModel):
    team_id: str
    user_id: str
    slack_user_id: str


class TeamSettingsRequest(BaseModel):
    user_id: str
    standup_window_open: Optional[str] = None
    standup_window_close: Optional[str] = None
    disconnect_slack: bool = False


class TransferOwnershipRequest(BaseModel):
    user_id: str
    new_owner_id: str


class CheckInRequest(BaseModel):
    user_id: str
    worked_on: str = Field(min_length=1)
    working_next: str = Field(min_length=1)
    blockers: Optional[str] = None
    score: int = Field(ge=1, le=5)


def _error_status(exc: StandupError) -> int:
    if isinstance(exc, PermissionDenied):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, TeamNotFound):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    slack_client: Optional[SlackClient] = None,
) -> FastAPI:
    settings = settings or load_settings()
    database = database or Database(settings.database_path)
    slack_client = slack_client or SlackClient(timeout=settings.slack_timeout)

    dispatcher = NotificationDispatcher(
        database, database, database, slack_client, concurrency=settings.dispatch_concurrency
    )
    handler = InboundEventHandler(
        settings.slack_signing_secret,
        database,
        database,
        database,
        slack_client,
        max_age=settings.signature_max_age,
    )
    linkage = LinkageManager(
        database,
        database,
        slack_client,
        client_id=settings.slack_client_id,
        client_secret=settings.slack_client_secret,
    )
    team_settings = TeamSettingsService(database, database, linkage)

    async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> None:
        if x_api_key != settings.api_key:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid api key")

    def date_dependency(value: Optional[str] = Query(None, alias="date")) -> date:
        if not value:
            return today_utc()
        try:
            return datetime.strptime(value, "%Y-%m-%d").date()
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM-DD") from exc

    app = FastAPI(title="Standup Pulse API", version="1.0.0")

    @app.on_event("shutdown")
    async def shutdown_event() -> None:  # pragma: no cover - io bound
        await slack_client.close()

    @app.exception_handler(StandupError)
    async def standup_error_handler(request: Request, exc: StandupError) -> JSONResponse:
        return JSONResponse({"error": exc.reason}, status_code=_error_status(exc))

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/slack/events")
    async def slack_events(
        request: Request,
        x_slack_signature: Optional[str] = Header(None),
        x_slack_request_timestamp: Optional[str] = Header(None),
    ) -> JSONResponse:
        raw_body = await request.body()
        result = await handler.handle(raw_body, x_slack_request_timestamp, x_slack_signature)
        return JSONResponse(result.body, status_code=result.status_code)

    @app.api_route("/api/cron/send-standups", methods=["GET", "POST"], dependencies=[Depends(verify_api_key)])
    async def send_standups() -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        result = await dispatcher.run_daily(now)
        return {"ok": True, "time": now.strftime("%H:%M"), **result.as_dict()}

    @app.post("/api/slack/link-user", dependencies=[Depends(verify_api_key)])
    async def link_user(body: LinkUserRequest) -> dict[str, Any]:
        try:
            channel_id = await linkage.link(body.team_id, body.user_id, body.slack_user_id)
        except (SlackApiError, httpx.HTTPError) as exc:
            logger.error("Slack conversations.open error: %s", exc)
            raise HTTPException(
                status_code=400,
                detail="Failed to open DM with this Slack user. Check the Slack user ID and app scopes.",
            ) from exc
        return {"ok": True, "slack_dm_channel_id": channel_id}

    def settings_redirect(team_id: str, query: str) -> RedirectResponse:
        if not team_id:
            return RedirectResponse(f"/team?{query}", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
        return RedirectResponse(
            f"/team/{quote(team_id)}/settings?{query}", status_code=status.HTTP_307_TEMPORARY_REDIRECT
        )

    @app.get("/api/slack/link-user/oauth", name="link_user_oauth")
    async def link_user_oauth(
        request: Request,
        code: Optional[str] = None,
        state: Optional[str] = None,
        error: Optional[str] = None,
    ) -> RedirectResponse:
        team_id = (state or "").partition(":")[0]
        if error:
            return settings_redirect(team_id, "slack_link_error=link_denied")
        if not code or not state:
            return settings_redirect(team_id, "slack_link_error=link_missing_params")
        try:
            await linkage.complete_oauth_link(state, code, str(request.url_for("link_user_oauth")))
        except (StandupError, SlackApiError, httpx.HTTPError) as exc:
            logger.error("Slack link-user OAuth error: %s", exc)
            return settings_redirect(team_id, "slack_link_error=link_failed")
        return settings_redirect(team_id, "slack_linked=1")

    @app.get("/api/slack/oauth", name="slack_install_oauth")
    async def slack_install_oauth(
        request: Request,
        code: Optional[str] = None,
        state: Optional[str] = None,
        error: Optional[str] = None,
    ) -> RedirectResponse:
        team_id = state or ""
        if error:
            return settings_redirect(team_id, "slack_error=denied")
        if not code or not state:
            return settings_redirect(team_id, "slack_error=missing_params")
        try:
            workspace = await linkage.install_team(team_id, code, str(request.url_for("slack_install_oauth")))
        except (StandupError, SlackApiError, httpx.HTTPError) as exc:
            logger.error("Slack OAuth error: %s", exc)
            return settings_redirect(team_id, "slack_error=oauth_failed")
        return settings_redirect(team_id, f"slack_connected={quote(workspace)}")

    @app.patch("/api/team/{team_id}/settings", dependencies=[Depends(verify_api_key)])
    async def update_team_settings(team_id: str, body: TeamSettingsRequest) -> dict[str, Any]:
        provided = body.model_fields_set
        team = team_settings.update(
            team_id,
            body.user_id,
            window_open=body.standup_window_open if "standup_window_open" in provided else UNSET,
            window_close=body.standup_window_close if "standup_window_close" in provided else UNSET,
            disconnect_slack=body.disconnect_slack,
        )
        return {
            "ok": True,
            "standup_window_open": team.window_open.isoformat() if team.window_open else None,
            "standup_window_close": team.window_close.isoformat() if team.window_close else None,
            "slack_connected": bool(team.slack_bot_token),
        }

    @app.post("/api/team/{team_id}/owner", dependencies=[Depends(verify_api_key)])
    async def transfer_ownership(team_id: str, body: TransferOwnershipRequest) -> dict[str, bool]:
        team_settings.transfer_ownership(team_id, body.user_id, body.new_owner_id)
        return {"ok": True}

    @app.get("/api/teams/{team_id}/standup", dependencies=[Depends(verify_api_key)])
    async def team_standup(team_id: str, d: date = Depends(date_dependency)) -> dict[str, Any]:
        team = database.get_team(team_id)
        if team is None:
            raise TeamNotFound(team_id)
        entries = team_settings.team_standup(team_id, d)
        window: Dict[str, Optional[str]] = {
            "open": team.window_open.isoformat() if team.window_open else None,
            "close": team.window_close.isoformat() if team.window_close else None,
            "open_display": to_local_display(team.window_open) if team.window_open else None,
            "close_display": to_local_display(team.window_close) if team.window_close else None,
        }
        return {
            "date": d.isoformat(),
            "team": {"id": team.id, "name": team.name, "window": window},
            "entries": [
                {
                    "user_id": entry.user_id,
                    "role": entry.role.value,
                    "on_time": entry.on_time,
                    "checkin": (
                        {
                            "worked_on": entry.checkin.worked_on,
                            "working_next": entry.checkin.working_next,
                            "blockers": entry.checkin.blockers,
                            "score": entry.checkin.score,
                            "submitted_via": entry.checkin.submitted_via.value,
                            "submitted_at": entry.checkin.submitted_at.isoformat(),
                        }
                        if entry.checkin
                        else None
                    ),
                }
                for entry in entries
            ],
        }

    @app.post("/api/checkins", dependencies=[Depends(verify_api_key)])
    async def submit_checkin(body: CheckInRequest) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        checkin = database.upsert_checkin(
            body.user_id,
            today_utc(now),
            {
                "worked_on": body.worked_on,
                "working_next": body.working_next,
                "blockers": body.blockers,
                "score": body.score,
                "submitted_via": SubmissionChannel.WEB,
                "submitted_at": now,
            },
        )
        return {"ok": True, "date": checkin.log_date.isoformat(), "score": checkin.score}

    return app


__all__ = ["create_app", "LinkUserRequest", "TeamSettingsRequest", "CheckInRequest"]
