from __future__ import annotations

"""
Portal Router

Dashboard endpoints:
- GET /portal/summary     clan profile, recent war log, current war info
- GET /portal/currentwar  both war rosters side by side
- GET /portal/raids       capital raid seasons
"""

from fastapi import APIRouter, Depends

from app.core.config import Settings, get_settings
from app.routers.common import clan_tag
from app.schemas.clan import ClanSummaryOut, RaidsOut
from app.schemas.war import RosterViewOut
from app.services.capital_raids import summarize_raid_seasons
from app.services.clan_summary import build_clan_summary
from app.services.coc_client import CocApiError, CocClient, get_coc_client
from app.services.war_views import (
    build_roster_view,
    unavailable_reason,
    unavailable_roster,
)

router = APIRouter(prefix="/portal", tags=["portal"])


@router.get("/summary", response_model=ClanSummaryOut)
def portal_summary(
    tag: str = Depends(clan_tag),
    client: CocClient = Depends(get_coc_client),
    settings: Settings = Depends(get_settings),
):
    """Clan profile with recent wars; tolerant to a private war log."""
    return build_clan_summary(client, tag, warlog_limit=settings.WARLOG_LIMIT)


@router.get("/currentwar", response_model=RosterViewOut)
def portal_current_war(
    tag: str = Depends(clan_tag),
    client: CocClient = Depends(get_coc_client),
):
    try:
        raw = client.current_war(tag)
    except CocApiError as e:
        if not e.is_unavailable:
            raise
        return unavailable_roster(unavailable_reason(e))
    return build_roster_view(raw)


@router.get("/raids", response_model=RaidsOut)
def portal_raids(
    tag: str = Depends(clan_tag),
    client: CocClient = Depends(get_coc_client),
    settings: Settings = Depends(get_settings),
):
    """Ongoing raid weekend and totals over the last RAIDS_LIMIT seasons."""
    data = client.capital_raid_seasons(tag, limit=settings.RAIDS_LIMIT)
    items = data.get("items") if isinstance(data, dict) else None
    return summarize_raid_seasons(items or [])
