"""
War Schemas

This module defines Pydantic schemas for the war endpoints: the attack pairing
document, the mirror view and the roster view. Attribute names are snake_case
and serialize as camelCase.

"""

from typing import List, Optional

from pydantic import Field

from app.schemas.base import CamelModel


class AttackOut(CamelModel):
    """
    Single attack as shown on a pairing row.

    Attributes:
        stars: Stars earned (0-3)
        destruction: Destruction percentage (0-100)
        order: Global attack sequence number in the war
        duration: Attack duration in seconds, when reported
        attacker_tag: Tag of the attacking member
        defender_tag: Tag of the defending member
    """

    stars: int = Field(..., description="Stars earned")
    destruction: float = Field(..., description="Destruction percentage")
    order: int = Field(0, description="Global attack order")
    duration: Optional[int] = Field(None, description="Duration in seconds")
    attacker_tag: str = Field("", description="Attacker tag")
    defender_tag: str = Field("", description="Defender tag")


class WarMemberOut(CamelModel):
    name: str
    tag: str
    th: Optional[int] = Field(None, description="Town hall level")


class PairOut(CamelModel):
    """
    Position-aligned comparison row.

    Attributes:
        pos: 1-based map position
        ours: Our member at this position
        opp: Opponent member at this position
        our_attack: Our best attack against `opp`
        opp_attack: Their best attack against `ours`
    """

    pos: int
    ours: Optional[WarMemberOut] = None
    opp: Optional[WarMemberOut] = None
    our_attack: Optional[AttackOut] = None
    opp_attack: Optional[AttackOut] = None


class SideTotalsOut(CamelModel):
    stars: int = 0
    destruction: float = 0
    attacks: int = 0


class TotalsOut(CamelModel):
    our: SideTotalsOut = Field(default_factory=SideTotalsOut)
    opp: SideTotalsOut = Field(default_factory=SideTotalsOut)


class WarClanOut(CamelModel):
    name: str = ""
    tag: str = ""
    level: Optional[int] = None


class WarRawStatsOut(CamelModel):
    our_members_count: int = 0
    opp_members_count: int = 0
    max_attacks_possible: int = 0


class WarAttacksOut(CamelModel):
    """
    Response of GET /wars/attacks.

    Attributes:
        state: notInWar / preparation / inWar / warEnded, or "unavailable"
            when the war log is private or no war could be found
        reason: Why the war is unavailable (privateWarLog / notFound)
        team_size: Number of pairing rows
        attacks_per_member: Attacks allowed per member
        clan: Our clan (null when not in war)
        opponent: Opponent clan (null when not in war)
        pairs: One row per map position, ascending
        totals: Side totals for both clans
    """

    state: str
    reason: Optional[str] = None
    team_size: int = 0
    attacks_per_member: int = 0
    battle_modifier: Optional[str] = None
    clan: Optional[WarClanOut] = None
    opponent: Optional[WarClanOut] = None
    preparation_start_time: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    pairs: List[PairOut] = Field(default_factory=list)
    totals: TotalsOut = Field(default_factory=TotalsOut)
    raw: WarRawStatsOut = Field(default_factory=WarRawStatsOut)


# ---------------------- mirror ----------------------


class MirrorMemberOut(WarMemberOut):
    attack: Optional[AttackOut] = None


class MirrorPairOut(CamelModel):
    position: int
    me: MirrorMemberOut
    opp: Optional[WarMemberOut] = None


class MirrorViewOut(CamelModel):
    """Response of GET /wars/mirror: each of our members against their mirror."""

    state: str
    reason: Optional[str] = None
    end_time: Optional[str] = None
    opponent: Optional[str] = None
    pairs: List[MirrorPairOut] = Field(default_factory=list)


# ---------------------- roster ----------------------


class RosterMemberOut(WarMemberOut):
    map_position: Optional[int] = None
    attacks: List[AttackOut] = Field(default_factory=list)


class RosterPairOut(CamelModel):
    pos: int
    you: Optional[RosterMemberOut] = None
    opp: Optional[RosterMemberOut] = None


class RosterViewOut(CamelModel):
    """Response of GET /portal/currentwar: both rosters side by side."""

    state: str
    reason: Optional[str] = None
    team_size: int = 0
    ends_at: Optional[str] = None
    clan_name: str = "—"
    opponent_name: str = "—"
    pairs: List[RosterPairOut] = Field(default_factory=list)
