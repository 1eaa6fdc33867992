"""
War Views

Builds the war response documents from the raw upstream current-war payload:
- summarize_war:     pairing document (GET /wars/attacks)
- build_mirror_view: our members vs. their mirror (GET /wars/mirror)
- build_roster_view: both rosters side by side (GET /portal/currentwar)
"""

from __future__ import annotations

from typing import Any, List, Optional

from app.schemas.war import (
    AttackOut,
    MirrorMemberOut,
    MirrorPairOut,
    MirrorViewOut,
    PairOut,
    RosterMemberOut,
    RosterPairOut,
    RosterViewOut,
    SideTotalsOut,
    TotalsOut,
    WarAttacksOut,
    WarClanOut,
    WarMemberOut,
    WarRawStatsOut,
)
from app.services.coc_client import CocApiError, CocFaultKind
from app.services.timefmt import normalize_coc_time
from app.services.war_pairing import (
    MAX_TEAM_SIZE,
    Attack,
    Member,
    SideTotals,
    WarDocument,
    WarSide,
    build_pairings,
    compute_totals,
    index_by_position,
)

DEFAULT_ATTACKS_PER_MEMBER = 2
UNAVAILABLE_STATE = "unavailable"
NO_NAME = "—"

_UNAVAILABLE_REASONS = {
    CocFaultKind.PRIVACY: "privateWarLog",
    CocFaultKind.NOT_FOUND: "notFound",
}


def unavailable_reason(err: CocApiError) -> str:
    return _UNAVAILABLE_REASONS.get(err.kind, err.kind.value)


# ---------------------- converters ----------------------


def _attack_out(a: Optional[Attack]) -> Optional[AttackOut]:
    if a is None:
        return None
    return AttackOut(
        stars=a.stars,
        destruction=a.destruction_percentage,
        order=a.order,
        duration=a.duration,
        attacker_tag=a.attacker_tag,
        defender_tag=a.defender_tag,
    )


def _member_out(m: Optional[Member]) -> Optional[WarMemberOut]:
    if m is None:
        return None
    return WarMemberOut(name=m.name, tag=m.tag, th=m.townhall_level)


def _roster_member_out(m: Optional[Member]) -> Optional[RosterMemberOut]:
    if m is None:
        return None
    return RosterMemberOut(
        name=m.name,
        tag=m.tag,
        th=m.townhall_level,
        map_position=m.map_position,
        attacks=[_attack_out(a) for a in m.attacks],
    )


def _clan_out(side: WarSide) -> WarClanOut:
    return WarClanOut(name=side.name, tag=side.tag, level=side.clan_level)


def _totals_out(t: SideTotals) -> SideTotalsOut:
    return SideTotalsOut(stars=t.stars, destruction=t.destruction, attacks=t.attacks)


def _by_position(members: List[Member]) -> List[Member]:
    return sorted(
        members,
        key=lambda m: (m.map_position is None, m.map_position or 0),
    )


# ---------------------- pairing document ----------------------


def summarize_war(raw: Any) -> WarAttacksOut:
    """
    Build the attack pairing document from a raw current-war payload.

    Not-in-war short-circuits to an empty document with zeroed totals. All
    timestamps are normalized to separated ISO-8601 UTC.
    """
    war = WarDocument.from_raw(raw)
    if war.not_in_war:
        return WarAttacksOut(state=war.state)

    result = build_pairings(war)

    attacks_per_member = war.attacks_per_member or DEFAULT_ATTACKS_PER_MEMBER
    totals = compute_totals(war.clan, war.opponent)

    pairs = [
        PairOut(
            pos=p.position,
            ours=_member_out(p.our_member),
            opp=_member_out(p.opp_member),
            our_attack=_attack_out(p.best_our_attack),
            opp_attack=_attack_out(p.best_opp_attack),
        )
        for p in result.pairings
    ]

    return WarAttacksOut(
        state=war.state,
        team_size=result.team_size,
        attacks_per_member=attacks_per_member,
        battle_modifier=war.battle_modifier,
        clan=_clan_out(war.clan),
        opponent=_clan_out(war.opponent),
        preparation_start_time=normalize_coc_time(war.preparation_start_time),
        start_time=normalize_coc_time(war.start_time),
        end_time=normalize_coc_time(war.end_time),
        pairs=pairs,
        totals=TotalsOut(our=_totals_out(totals.our), opp=_totals_out(totals.opp)),
        raw=WarRawStatsOut(
            our_members_count=len(war.clan.members),
            opp_members_count=len(war.opponent.members),
            max_attacks_possible=result.team_size * attacks_per_member * 2,
        ),
    )


def unavailable_war(reason: str) -> WarAttacksOut:
    """Structurally complete pairing document for a private/missing war."""
    return WarAttacksOut(state=UNAVAILABLE_STATE, reason=reason)


# ---------------------- mirror ----------------------


def build_mirror_view(raw: Any) -> MirrorViewOut:
    """
    Each of our placed members, their first attack, and the opponent at the
    same map position.
    """
    war = WarDocument.from_raw(raw)
    if war.not_in_war:
        return MirrorViewOut(state=war.state)

    theirs = index_by_position(war.opponent.members)
    ours = index_by_position(war.clan.members)

    pairs: List[MirrorPairOut] = []
    for pos in sorted(ours):
        m = ours[pos]
        first = m.attacks[0] if m.attacks else None
        pairs.append(
            MirrorPairOut(
                position=pos,
                me=MirrorMemberOut(
                    name=m.name,
                    tag=m.tag,
                    th=m.townhall_level or 0,
                    attack=_attack_out(first),
                ),
                opp=_member_out(theirs.get(pos)),
            )
        )

    return MirrorViewOut(
        state=war.state,
        end_time=normalize_coc_time(war.end_time),
        opponent=war.opponent.name or None,
        pairs=pairs,
    )


def unavailable_mirror(reason: str) -> MirrorViewOut:
    return MirrorViewOut(state=UNAVAILABLE_STATE, reason=reason)


# ---------------------- roster ----------------------


def build_roster_view(raw: Any) -> RosterViewOut:
    """
    Both rosters sorted by map position and paired row by row.

    Unlike the pairing document, rows are matched by rank in the sorted
    roster, so members without a position still show up (at the end).
    """
    war = WarDocument.from_raw(raw)
    if war.not_in_war:
        return RosterViewOut(
            state=war.state,
            clan_name=war.clan.name or NO_NAME,
            opponent_name=war.opponent.name or NO_NAME,
        )

    you = _by_position(list(war.clan.members))
    them = _by_position(list(war.opponent.members))
    size = war.team_size if war.team_size and war.team_size > 0 else 0
    size = min(size or max(len(you), len(them)), MAX_TEAM_SIZE)

    pairs = [
        RosterPairOut(
            pos=i + 1,
            you=_roster_member_out(you[i] if i < len(you) else None),
            opp=_roster_member_out(them[i] if i < len(them) else None),
        )
        for i in range(size)
    ]

    return RosterViewOut(
        state=war.state,
        team_size=size,
        ends_at=normalize_coc_time(war.end_time),
        clan_name=war.clan.name or NO_NAME,
        opponent_name=war.opponent.name or NO_NAME,
        pairs=pairs,
    )


def unavailable_roster(reason: str) -> RosterViewOut:
    return RosterViewOut(state=UNAVAILABLE_STATE, reason=reason)
