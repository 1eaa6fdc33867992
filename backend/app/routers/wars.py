from __future__ import annotations

"""
Wars Router

Endpoints:
1) GET /wars/attacks?tag=#CLAN
   - Current war aligned by map position with the best attack each side
     landed per position, plus side totals.
2) GET /wars/mirror?tag=#CLAN
   - Each of our members with their first attack and their mirror opponent.

A private war log (403) or a missing war (404) is not an error here: both
endpoints answer 200 with state "unavailable".
"""

import logging

from fastapi import APIRouter, Depends, Response

from app.routers.common import NO_STORE, clan_tag
from app.schemas.war import MirrorViewOut, WarAttacksOut
from app.services.coc_client import CocApiError, CocClient, get_coc_client
from app.services.timefmt import utc_now_iso
from app.services.war_views import (
    build_mirror_view,
    summarize_war,
    unavailable_mirror,
    unavailable_reason,
    unavailable_war,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wars", tags=["wars"])


@router.get("/attacks", response_model=WarAttacksOut)
def war_attacks(
    response: Response,
    tag: str = Depends(clan_tag),
    client: CocClient = Depends(get_coc_client),
):
    """
    Build the attack pairing document for the clan's current war.

    Raises:
        CocApiError: For upstream faults other than 403/404 (handled app-wide).
    """
    try:
        raw = client.current_war(tag)
    except CocApiError as e:
        if not e.is_unavailable:
            raise
        logger.info("Current war of %s unavailable (%s)", tag, e.kind.value)
        doc = unavailable_war(unavailable_reason(e))
    else:
        doc = summarize_war(raw)
        logger.info("War state for %s: %s", tag, doc.state)

    response.headers["Cache-Control"] = NO_STORE
    response.headers["X-War-State"] = doc.state
    response.headers["X-Last-Updated"] = utc_now_iso()
    return doc


@router.get("/mirror", response_model=MirrorViewOut)
def war_mirror(
    tag: str = Depends(clan_tag),
    client: CocClient = Depends(get_coc_client),
):
    """Mirror view of the current war."""
    try:
        raw = client.current_war(tag)
    except CocApiError as e:
        if not e.is_unavailable:
            raise
        return unavailable_mirror(unavailable_reason(e))
    return build_mirror_view(raw)
