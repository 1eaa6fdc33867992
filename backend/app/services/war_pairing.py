"""
War Pairing Engine

Aligns both rosters of a clan war by map position, picks the best attack each
side landed on the member sitting at every position, and computes side totals.

The engine only reads the upstream war document. Malformed members or attacks
degrade field by field to empty/zero values; nothing in here raises for bad
sub-records.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# Largest war size the game offers; declared sizes above it are clamped.
MAX_TEAM_SIZE = 50


class WarState(str, Enum):
    NOT_IN_WAR = "notInWar"
    PREPARATION = "preparation"
    IN_WAR = "inWar"
    WAR_ENDED = "warEnded"


# ---------------------- coercion ----------------------


def _as_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _as_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return default
    try:
        f = float(value)
    except (TypeError, ValueError):
        return default
    return f if math.isfinite(f) else default


def _as_str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


# ---------------------- records ----------------------


@dataclass(frozen=True)
class Attack:
    attacker_tag: str
    defender_tag: str
    stars: int
    destruction_percentage: float
    order: int
    duration: Optional[int] = None

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["Attack"]:
        if not isinstance(raw, Mapping):
            return None
        duration = _as_int(raw.get("duration"))
        return cls(
            attacker_tag=_as_str(raw.get("attackerTag")),
            defender_tag=_as_str(raw.get("defenderTag")),
            stars=_as_int(raw.get("stars"), 0),
            destruction_percentage=_as_float(raw.get("destructionPercentage"), 0.0),
            order=_as_int(raw.get("order"), 0),
            duration=duration if duration is not None and duration >= 0 else None,
        )


@dataclass(frozen=True)
class Member:
    tag: str
    name: str
    townhall_level: Optional[int]
    map_position: Optional[int]
    attacks: Tuple[Attack, ...] = ()

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["Member"]:
        if not isinstance(raw, Mapping):
            return None
        th = raw.get("townhallLevel", raw.get("townHallLevel"))
        pos = _as_int(raw.get("mapPosition"))
        attacks = (Attack.from_raw(a) for a in _as_list(raw.get("attacks")))
        return cls(
            tag=_as_str(raw.get("tag")),
            name=_as_str(raw.get("name")),
            townhall_level=_as_int(th),
            map_position=pos if pos is not None and pos > 0 else None,
            attacks=tuple(a for a in attacks if a is not None),
        )


@dataclass(frozen=True)
class WarSide:
    """One clan in a war, with the totals the upstream declared (if any)."""

    tag: str = ""
    name: str = ""
    clan_level: Optional[int] = None
    stars: Optional[int] = None
    destruction_percentage: Optional[float] = None
    attacks: Optional[int] = None
    members: Tuple[Member, ...] = ()

    @classmethod
    def from_raw(cls, raw: Any) -> "WarSide":
        raw = _as_mapping(raw)
        members = (Member.from_raw(m) for m in _as_list(raw.get("members")))
        return cls(
            tag=_as_str(raw.get("tag")),
            name=_as_str(raw.get("name")),
            clan_level=_as_int(raw.get("clanLevel")),
            stars=_as_int(raw.get("stars")),
            destruction_percentage=_as_float(raw.get("destructionPercentage")),
            attacks=_as_int(raw.get("attacks")),
            members=tuple(m for m in members if m is not None),
        )

    def all_attacks(self) -> List[Attack]:
        """Every attack made by this side, in roster order."""
        return [a for m in self.members for a in m.attacks]


@dataclass(frozen=True)
class WarDocument:
    state: str
    team_size: Optional[int] = None
    attacks_per_member: Optional[int] = None
    battle_modifier: Optional[str] = None
    preparation_start_time: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    clan: WarSide = field(default_factory=WarSide)
    opponent: WarSide = field(default_factory=WarSide)

    @classmethod
    def from_raw(cls, raw: Any) -> "WarDocument":
        raw = _as_mapping(raw)
        return cls(
            state=_as_str(raw.get("state"), WarState.NOT_IN_WAR.value),
            team_size=_as_int(raw.get("teamSize")),
            attacks_per_member=_as_int(raw.get("attacksPerMember")),
            battle_modifier=_as_str(raw.get("battleModifier")) or None,
            preparation_start_time=_as_str(raw.get("preparationStartTime")) or None,
            start_time=_as_str(raw.get("startTime")) or None,
            end_time=_as_str(raw.get("endTime")) or None,
            clan=WarSide.from_raw(raw.get("clan")),
            opponent=WarSide.from_raw(raw.get("opponent")),
        )

    @property
    def not_in_war(self) -> bool:
        return self.state == WarState.NOT_IN_WAR.value


@dataclass(frozen=True)
class Pairing:
    position: int
    our_member: Optional[Member] = None
    opp_member: Optional[Member] = None
    best_our_attack: Optional[Attack] = None
    best_opp_attack: Optional[Attack] = None


@dataclass(frozen=True)
class PairingResult:
    state: str
    team_size: int
    pairings: List[Pairing]
    our_positions: int = 0
    opp_positions: int = 0


@dataclass(frozen=True)
class SideTotals:
    stars: int = 0
    destruction: float = 0
    attacks: int = 0


@dataclass(frozen=True)
class Totals:
    our: SideTotals
    opp: SideTotals


# ---------------------- engine ----------------------


def index_by_position(members: Iterable[Member]) -> Dict[int, Member]:
    """position -> member; members without a position are skipped, last write wins."""
    index: Dict[int, Member] = {}
    for m in members:
        if m.map_position is None:
            continue
        if m.map_position in index:
            logger.debug(
                "Duplicate map position %d (%s replaces %s)",
                m.map_position,
                m.tag,
                index[m.map_position].tag,
            )
        index[m.map_position] = m
    return index


def select_best(attacks: Sequence[Attack], target: str) -> Optional[Attack]:
    """
    Best attack against `target`.

    Comparator: more stars wins, then higher destruction; on a full tie the
    attack seen first is kept. Any attacker on the side counts, not only the
    member at the same position.
    """
    if not target:
        return None
    best: Optional[Attack] = None
    for a in attacks:
        if a.defender_tag != target:
            continue
        if best is None:
            best = a
        elif a.stars > best.stars or (
            a.stars == best.stars
            and a.destruction_percentage > best.destruction_percentage
        ):
            best = a
    return best


def build_pairings(war: WarDocument | Mapping[str, Any]) -> PairingResult:
    """
    Align both rosters by map position.

    Args:
        war: Raw upstream war document or an already parsed `WarDocument`.

    Returns:
        `team_size` pairings for positions 1..team_size, or an empty result
        when the clan is not in war.
    """
    if not isinstance(war, WarDocument):
        war = WarDocument.from_raw(war)

    if war.not_in_war:
        return PairingResult(state=war.state, team_size=0, pairings=[])

    ours = index_by_position(war.clan.members)
    theirs = index_by_position(war.opponent.members)

    team_size = war.team_size if war.team_size and war.team_size > 0 else 0
    if not team_size:
        team_size = max(len(ours), len(theirs))
    if team_size > MAX_TEAM_SIZE:
        logger.warning("Declared teamSize %d exceeds %d, clamping", team_size, MAX_TEAM_SIZE)
        team_size = MAX_TEAM_SIZE

    our_attacks = war.clan.all_attacks()
    opp_attacks = war.opponent.all_attacks()

    pairings: List[Pairing] = []
    for pos in range(1, team_size + 1):
        our_member = ours.get(pos)
        opp_member = theirs.get(pos)
        if our_member is not None and opp_member is not None:
            pairings.append(
                Pairing(
                    position=pos,
                    our_member=our_member,
                    opp_member=opp_member,
                    best_our_attack=select_best(our_attacks, opp_member.tag),
                    best_opp_attack=select_best(opp_attacks, our_member.tag),
                )
            )
        else:
            pairings.append(Pairing(pos, our_member, opp_member))

    return PairingResult(
        state=war.state,
        team_size=team_size,
        pairings=pairings,
        our_positions=len(ours),
        opp_positions=len(theirs),
    )


def compute_side_totals(side: WarSide) -> SideTotals:
    """
    Totals for one side.

    Declared stars/attacks are trusted when truthy and recomputed from the raw
    attack list otherwise. Destruction is never recomputed: without a declared
    value it stays 0, unlike the per-pairing values.
    """
    attacks = side.all_attacks()
    stars = side.stars if side.stars else sum(a.stars for a in attacks)
    count = side.attacks if side.attacks else len(attacks)
    destruction = (
        round(side.destruction_percentage, 2) if side.destruction_percentage else 0
    )
    return SideTotals(stars=stars, destruction=destruction, attacks=count)


def compute_totals(our_side: WarSide, opp_side: WarSide) -> Totals:
    return Totals(our=compute_side_totals(our_side), opp=compute_side_totals(opp_side))
