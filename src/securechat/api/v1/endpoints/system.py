# src/securechat/api/v1/endpoints/system.py
"""Service metadata endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from securechat.core.settings import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/info")
async def system_info() -> dict[str, object]:
    """Return public service parameters clients may need."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "messagePageMax": settings.message_page_max,
        "reaperIntervalSeconds": settings.reaper_interval_seconds,
    }
