"""FastAPI application exposing Slack event intake and the hound REST API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Header, HTTPException, Request, status
from pydantic import BaseModel

from .config import Settings, load_settings
from .db import Database
from .organization import Organization, describe_status
from .service import HoundService
from .slack_client import SlackClient

logger = logging.getLogger(__name__)


class CommandRequest(BaseModel):
    handle: str
    command: str


def build_service(settings: Settings) -> HoundService:
    organization = Organization(
        settings.org_name,
        hound_frequency=settings.hound_frequency,
        exempt_channels=settings.exempt_channels,
    )
    database = Database(settings.database_path)
    slack_client = SlackClient(settings.slack_bot_token)
    return HoundService(settings, organization, database, slack_client)


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[HoundService] = None,
    start_schedules: bool = True,
) -> FastAPI:
    settings = settings or load_settings()
    service = service or build_service(settings)
    tasks: List[asyncio.Task] = []

    async def verify_api_key(x_api_key: str = Header(..., alias="X-API-Key")) -> None:
        if x_api_key != settings.api_key:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid api key")

    app = FastAPI(title="Slack Hound API", version="1.0.0")

    @app.on_event("startup")
    async def startup_event() -> None:
        service.load_directory()
        if start_schedules:  # pragma: no cover - long running
            tasks.append(asyncio.create_task(service.run_sweeps()))
            tasks.append(asyncio.create_task(service.run_daily_resets()))

    @app.on_event("shutdown")
    async def shutdown_event() -> None:  # pragma: no cover - io bound
        for task in tasks:
            task.cancel()
        await service.client.close()

    def get_service() -> HoundService:
        return service

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok" if service.organization.ready else "loading"}

    @app.post("/slack/events")
    async def slack_events(
        request: Request,
        background: BackgroundTasks,
        svc: HoundService = Depends(get_service),
    ) -> Dict[str, Any]:
        payload = await request.json()
        expected = settings.slack_verification_token
        if expected and payload.get("token") != expected:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid token")
        if payload.get("type") == "url_verification":
            return {"challenge": payload.get("challenge")}

        event = payload.get("event") or {}
        kind = event.get("type")
        if kind == "user_typing":
            background.add_task(svc.on_user_typing, event.get("user", ""), event.get("channel", ""))
        elif kind == "presence_change":
            background.add_task(svc.on_presence_change, event.get("user", ""), event.get("presence", ""))
        elif kind == "message" and not event.get("bot_id") and not event.get("subtype"):
            background.add_task(
                svc.handle_message,
                event.get("user", ""),
                event.get("text", ""),
                event.get("channel"),
                event.get("ts"),
            )
        else:
            logger.debug("Ignoring Slack event %s", kind)
        return {"ok": True}

    @app.get("/api/users/{handle}/hound")
    async def get_hound_settings(
        handle: str,
        _: None = Depends(verify_api_key),
        svc: HoundService = Depends(get_service),
    ) -> dict[str, object]:
        user = svc.organization.get_user(handle)
        if user is None:
            raise HTTPException(status_code=404, detail="user not found")
        current = user.settings
        return {
            "handle": user.handle,
            "status": describe_status(
                current.should_hound, current.should_reset_hound, current.hound_frequency
            ),
            "settings": current.to_dict(),
        }

    @app.post("/api/hound/command")
    async def run_command(
        body: CommandRequest,
        _: None = Depends(verify_api_key),
        svc: HoundService = Depends(get_service),
    ) -> dict[str, object]:
        result = svc.apply_command(body.handle, body.command)
        mutation = result.mutation
        return {
            "reply": result.reply,
            "reaction": result.reaction,
            "mutation": (
                {"scope": mutation.scope, "changes": mutation.changes, "handles": mutation.handles}
                if mutation
                else None
            ),
        }

    @app.post("/api/hound/sweep")
    async def run_sweep(
        _: None = Depends(verify_api_key),
        svc: HoundService = Depends(get_service),
    ) -> dict[str, int]:
        return {"hounded": await svc.sweep()}

    @app.post("/api/hound/reset")
    async def run_reset(
        _: None = Depends(verify_api_key),
        svc: HoundService = Depends(get_service),
    ) -> dict[str, Optional[int]]:
        return {"reset": await svc.morning_reset()}

    return app


__all__ = ["CommandRequest", "build_service", "create_app"]
