from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Query

from app.core.config import Settings, get_settings
from app.services.coc_client import is_valid_tag, normalize_tag

NO_STORE = "no-store, no-cache, must-revalidate, proxy-revalidate"


def clan_tag(
    tag: Optional[str] = Query(None, description="Clan tag, e.g. #2QLLU89LP"),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Resolve the clan tag of a request.

    Falls back to DEFAULT_CLAN_TAG when ?tag= is absent. Tags are normalized
    ('2qllu89lp' -> '#2QLLU89LP') and rejected with 400 when malformed.
    """
    normalized = normalize_tag(tag or settings.DEFAULT_CLAN_TAG)
    if not normalized:
        raise HTTPException(400, "Missing clan tag. Use ?tag=#CLAN_TAG")
    if not is_valid_tag(normalized):
        raise HTTPException(400, f"Invalid clan tag: {normalized}")
    return normalized
