from __future__ import annotations

from typing import Any, Iterable, Mapping

from app.schemas.clan import RaidLifetimeOut, RaidsOut


def _sum(items: list, key: str) -> int:
    total = 0
    for item in items:
        v = item.get(key)
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            total += int(v)
    return total


def summarize_raid_seasons(items: Iterable[Any]) -> RaidsOut:
    """Ongoing season (as reported upstream) plus totals over the fetched seasons."""
    seasons = [s for s in items if isinstance(s, Mapping)]
    ongoing = next((s for s in seasons if s.get("state") == "ongoing"), None)
    return RaidsOut(
        raid=dict(ongoing) if ongoing is not None else None,
        capital_total_loot_lifetime=_sum(seasons, "capitalTotalLoot"),
        lifetime=RaidLifetimeOut(
            seasons=len(seasons),
            total_attacks=_sum(seasons, "totalAttacks"),
            enemy_districts_destroyed=_sum(seasons, "enemyDistrictsDestroyed"),
        ),
    )
