from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.config import Settings, get_settings

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/env")
def debug_env(settings: Settings = Depends(get_settings)):
    """Which upstream settings are present, without exposing the token."""
    token = settings.COC_TOKEN or ""
    return {
        "env": settings.ENV,
        "hasCocToken": bool(token),
        "tokenLength": len(token),
        "defaultClanTag": settings.DEFAULT_CLAN_TAG or "",
        "cocApiBase": settings.COC_API_BASE,
    }
