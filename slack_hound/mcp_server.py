"""MCP server exposing Slack Hound settings tools."""

from __future__ import annotations

import asyncio

from mcp.server.fastmcp import FastMCP

from .api import build_service
from .config import load_settings
from .organization import describe_status

mcp = FastMCP("slack-hound")

_settings = load_settings()
_service = build_service(_settings)
_service.load_directory()
_lock = asyncio.Lock()


@mcp.tool()
async def get_hound_status(handle: str) -> dict:
    """Return a user's hounding settings."""

    user = _service.organization.get_user(handle)
    if user is None:
        raise ValueError(f"Unknown user: {handle}")
    current = user.settings
    return {
        "handle": user.handle,
        "status": describe_status(current.should_hound, current.should_reset_hound, current.hound_frequency),
        "settings": current.to_dict(),
    }


@mcp.tool()
async def run_hound_command(handle: str, command: str) -> dict:
    """Apply a `hound ...` command as if `handle` had sent it."""

    async with _lock:
        result = _service.apply_command(handle, command)
    return {"reply": result.reply, "reaction": result.reaction, "changed": result.mutation is not None}


@mcp.tool()
async def reset_hounding() -> dict:
    """Run the morning reset for the whole organization."""

    async with _lock:
        count = await _service.morning_reset()
    return {"reset": count}


__all__ = ["mcp", "get_hound_status", "run_hound_command", "reset_hounding"]
