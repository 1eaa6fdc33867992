"""
Clan Schemas

Pydantic schemas for the portal summary and capital raid endpoints.

"""

from typing import Any, Dict, List, Optional

from pydantic import Field

from app.schemas.base import CamelModel


class ClanMemberOut(CamelModel):
    name: str
    tag: str
    role: str = "member"
    level: int = 0
    town_hall: int = 0
    trophies: int = 0
    donations: int = 0


class ClanOut(CamelModel):
    name: str
    tag: str
    description: str = ""
    type: Optional[str] = None
    location: str = "—"
    war_league: str = "—"
    clan_level: int = 0
    clan_points: int = 0
    members: List[ClanMemberOut] = Field(default_factory=list)


class WarLogEntryOut(CamelModel):
    """
    One finished war from the war log.

    Attributes:
        result: W, L or T
        ended_at: Normalized end time
    """

    opponent: str
    result: str
    stars_for: int = 0
    stars_against: int = 0
    destruction_for: float = 0
    destruction_against: float = 0
    ended_at: str


class ClanSummaryOut(CamelModel):
    clan: ClanOut
    wars: List[WarLogEntryOut] = Field(default_factory=list)
    current_war_ends_at: Optional[str] = None
    current_war_opponent: Optional[str] = None
    warlog_private: bool = False


class RaidLifetimeOut(CamelModel):
    seasons: int = 0
    total_attacks: int = 0
    enemy_districts_destroyed: int = 0


class RaidsOut(CamelModel):
    """
    Response of GET /portal/raids.

    Attributes:
        raid: The ongoing raid season as reported upstream, if any
        capital_total_loot_lifetime: Capital gold looted over the fetched seasons
        lifetime: Aggregates over the fetched seasons
    """

    raid: Optional[Dict[str, Any]] = None
    capital_total_loot_lifetime: int = 0
    lifetime: RaidLifetimeOut = Field(default_factory=RaidLifetimeOut)
