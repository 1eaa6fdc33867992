"""
Clan Summary Service

Combines the clan profile, the recent war log and the current war into the
portal summary. The profile is required; the war log and current war are
optional because clans can keep them private.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from app.schemas.clan import ClanMemberOut, ClanOut, ClanSummaryOut, WarLogEntryOut
from app.services.coc_client import CocApiError, CocClient, CocFaultKind
from app.services.timefmt import normalize_coc_time, utc_now_iso

logger = logging.getLogger(__name__)

NO_VALUE = "—"

# Upstream calls elders "admin".
ROLE_NAMES = {"admin": "elder"}

RESULT_CODES = {"win": "W", "lose": "L"}


def _num(value: Any) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _pct(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _text(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _name_of(value: Any) -> str:
    if isinstance(value, Mapping) and isinstance(value.get("name"), str):
        return value["name"]
    return NO_VALUE


def map_member(raw: Mapping[str, Any]) -> ClanMemberOut:
    role = raw.get("role")
    if not isinstance(role, str) or not role:
        role = "member"
    return ClanMemberOut(
        name=_text(raw.get("name")),
        tag=_text(raw.get("tag")),
        role=ROLE_NAMES.get(role, role),
        level=_num(raw.get("expLevel")),
        town_hall=_num(raw.get("townHallLevel")),
        trophies=_num(raw.get("trophies")),
        donations=_num(raw.get("donations")),
    )


def map_clan(raw: Mapping[str, Any]) -> ClanOut:
    members = raw.get("memberList")
    return ClanOut(
        name=_text(raw.get("name")),
        tag=_text(raw.get("tag")),
        description=_text(raw.get("description")),
        type=raw.get("type") if isinstance(raw.get("type"), str) else None,
        location=_name_of(raw.get("location")),
        war_league=_name_of(raw.get("warLeague")),
        clan_level=_num(raw.get("clanLevel")),
        clan_points=_num(raw.get("clanPoints")),
        members=[
            map_member(m) for m in members or [] if isinstance(m, Mapping)
        ],
    )


def map_war_log_entry(raw: Mapping[str, Any]) -> WarLogEntryOut:
    """
    Reshape one war log item.

    Anything that is not a win or a loss (ties, CWL entries without a result)
    is reported as T. A missing end time falls back to now.
    """
    clan = raw.get("clan") if isinstance(raw.get("clan"), Mapping) else {}
    opp = raw.get("opponent") if isinstance(raw.get("opponent"), Mapping) else {}
    return WarLogEntryOut(
        opponent=_text(opp.get("name")),
        result=RESULT_CODES.get(str(raw.get("result")), "T"),
        stars_for=_num(clan.get("stars")),
        stars_against=_num(opp.get("stars")),
        destruction_for=_pct(clan.get("destructionPercentage")),
        destruction_against=_pct(opp.get("destructionPercentage")),
        ended_at=normalize_coc_time(raw.get("endTime")) or utc_now_iso(),
    )


def _fetch_war_log(client: CocClient, tag: str, limit: int) -> tuple[List[Dict], bool]:
    """(items, private) - 403 means a private log, 404 an empty one."""
    try:
        data = client.war_log(tag, limit)
    except CocApiError as e:
        if e.kind is CocFaultKind.PRIVACY:
            logger.info("War log of %s is private", tag)
            return [], True
        if e.kind is CocFaultKind.NOT_FOUND:
            return [], False
        raise
    items = data.get("items") if isinstance(data, Mapping) else None
    return [i for i in items or [] if isinstance(i, Mapping)], False


def _fetch_current_war(client: CocClient, tag: str) -> Optional[Mapping[str, Any]]:
    try:
        data = client.current_war(tag)
    except CocApiError as e:
        if e.is_unavailable:
            return None
        raise
    return data if isinstance(data, Mapping) else None


def build_clan_summary(
    client: CocClient, tag: str, warlog_limit: int = 10
) -> ClanSummaryOut:
    """
    Build the portal summary for a clan.

    Args:
        client: Upstream API client.
        tag: Normalized clan tag.
        warlog_limit: Number of war log entries to fetch.

    Returns:
        ClanSummaryOut with clan profile, recent wars and current war info.

    Raises:
        CocApiError: If the clan profile cannot be fetched, or the war log /
            current war fail for reasons other than privacy or absence.
    """
    clan = client.clan(tag)
    items, warlog_private = _fetch_war_log(client, tag, warlog_limit)
    current = _fetch_current_war(client, tag)

    ends_at = None
    opponent = None
    if current is not None:
        ends_at = normalize_coc_time(current.get("endTime"))
        opp = current.get("opponent")
        if isinstance(opp, Mapping):
            opponent = _text(opp.get("name")) or None

    return ClanSummaryOut(
        clan=map_clan(clan if isinstance(clan, Mapping) else {}),
        wars=[map_war_log_entry(i) for i in items],
        current_war_ends_at=ends_at,
        current_war_opponent=opponent,
        warlog_private=warlog_private,
    )
