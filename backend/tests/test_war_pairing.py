from factories import attack, member, war

from app.services.war_pairing import (
    MAX_TEAM_SIZE,
    Attack,
    Member,
    WarDocument,
    WarSide,
    build_pairings,
    compute_side_totals,
    compute_totals,
    index_by_position,
    select_best,
)


def _atk(defender, stars, destruction, attacker="#X", order=1):
    return Attack(attacker, defender, stars, destruction, order)


# ---------------------- select_best ----------------------


def test_select_best_none_without_matching_defender():
    attacks = [_atk("#B1", 3, 100), _atk("#B2", 2, 70)]
    assert select_best(attacks, "#B9") is None
    assert select_best([], "#B1") is None


def test_select_best_stars_beat_destruction():
    low = _atk("#B1", 2, 80, attacker="#A1")
    high = _atk("#B1", 3, 40, attacker="#A2")
    assert select_best([low, high], "#B1") is high


def test_select_best_destruction_breaks_star_ties():
    a = _atk("#B1", 2, 60)
    b = _atk("#B1", 2, 85)
    c = _atk("#B1", 1, 100)
    assert select_best([a, b, c], "#B1") is b


def test_select_best_keeps_first_on_full_tie():
    first = _atk("#B1", 2, 75, attacker="#A1", order=3)
    second = _atk("#B1", 2, 75, attacker="#A2", order=7)
    attacks = [first, second]
    assert select_best(attacks, "#B1") is first
    # repeated calls agree
    assert all(select_best(attacks, "#B1") is first for _ in range(5))


def test_select_best_never_below_max_stars():
    attacks = [
        _atk("#B1", 1, 99),
        _atk("#B1", 2, 10),
        _atk("#B1", 0, 100),
        _atk("#B1", 2, 5),
    ]
    best = select_best(attacks, "#B1")
    assert best.stars == max(a.stars for a in attacks)
    assert best.destruction_percentage == 10


# ---------------------- build_pairings ----------------------


def test_pairings_cover_every_position_in_order():
    doc = war(
        [member(f"#A{i}", i) for i in range(1, 6)],
        [member(f"#B{i}", i) for i in range(1, 6)],
        team_size=5,
    )
    result = build_pairings(doc)
    assert result.team_size == 5
    assert [p.position for p in result.pairings] == [1, 2, 3, 4, 5]


def test_not_in_war_short_circuits_even_with_rosters():
    doc = war([member("#A1", 1)], [member("#B1", 1)], state="notInWar", team_size=15)
    result = build_pairings(doc)
    assert result.state == "notInWar"
    assert result.team_size == 0
    assert result.pairings == []


def test_balanced_war_single_attack():
    doc = war(
        [member("#A1", 1, [attack("#A1", "#B1", 2, 55)])],
        [member("#B1", 1)],
    )
    (pair,) = build_pairings(doc).pairings
    assert pair.best_our_attack.stars == 2
    assert pair.best_our_attack.destruction_percentage == 55
    assert pair.best_opp_attack is None


def test_best_attack_comes_from_any_attacker():
    doc = war(
        [
            member("#A1", 1, [attack("#A1", "#B1", 2, 80, order=1)]),
            member("#A2", 2, [attack("#A2", "#B1", 3, 40, order=2)]),
        ],
        [member("#B1", 1), member("#B2", 2)],
    )
    result = build_pairings(doc)
    first, second = result.pairings
    assert first.best_our_attack.stars == 3
    assert first.best_our_attack.attacker_tag == "#A2"
    # nobody attacked #B2
    assert second.best_our_attack is None


def test_missing_opponent_position_has_no_attacks():
    doc = war(
        [
            member("#A1", 1),
            member("#A2", 2),
            member("#A3", 3, [attack("#A3", "#B1", 3, 100)]),
        ],
        [member("#B1", 1), member("#B2", 2)],
        team_size=3,
    )
    third = build_pairings(doc).pairings[2]
    assert third.position == 3
    assert third.our_member.tag == "#A3"
    assert third.opp_member is None
    assert third.best_our_attack is None
    assert third.best_opp_attack is None
    # the attack still counts for the pairing it targeted
    assert build_pairings(doc).pairings[0].best_our_attack.attacker_tag == "#A3"


def test_team_size_falls_back_to_larger_roster():
    doc = war(
        [member("#A1", 1), member("#A2", 2)],
        [member("#B1", 1), member("#B2", 2), member("#B3", 3)],
    )
    result = build_pairings(doc)
    assert result.team_size == 3
    assert result.pairings[2].our_member is None
    assert result.pairings[2].opp_member.tag == "#B3"


def test_zero_team_size_is_treated_as_absent():
    doc = war([member("#A1", 1)], [member("#B1", 1)], team_size=0)
    assert build_pairings(doc).team_size == 1


def test_corrupt_team_size_is_clamped():
    doc = war([member("#A1", 1)], [member("#B1", 1)], team_size=10**9)
    result = build_pairings(doc)
    assert result.team_size == MAX_TEAM_SIZE
    assert len(result.pairings) == MAX_TEAM_SIZE
    assert result.pairings[0].our_member.tag == "#A1"


def test_gaps_are_filled_not_skipped():
    doc = war(
        [member("#A1", 1), member("#A4", 4)],
        [member("#B1", 1), member("#B4", 4)],
        team_size=4,
    )
    result = build_pairings(doc)
    assert [p.position for p in result.pairings] == [1, 2, 3, 4]
    assert result.pairings[1].our_member is None
    assert result.pairings[1].opp_member is None


def test_duplicate_positions_last_write_wins():
    members = [Member("#A1", "a", 15, 1), Member("#A9", "z", 15, 1)]
    index = index_by_position(members)
    assert index[1].tag == "#A9"
    assert len(index) == 1


def test_unmatched_defender_tag_is_ignored():
    doc = war(
        [member("#A1", 1, [attack("#A1", "#GHOST", 3, 100)])],
        [member("#B1", 1)],
    )
    (pair,) = build_pairings(doc).pairings
    assert pair.best_our_attack is None


def test_malformed_records_degrade_instead_of_raising():
    doc = {
        "state": "inWar",
        "teamSize": "2",
        "clan": {
            "members": [
                {"tag": "#A1", "mapPosition": 1, "attacks": [
                    {"defenderTag": "#B1", "stars": "3"},
                    "garbage",
                    None,
                ]},
                {"tag": "#A2", "mapPosition": "x"},
                "not a member",
            ]
        },
        "opponent": {"members": [{"tag": "#B1", "mapPosition": 1, "attacks": "nope"}]},
    }
    result = build_pairings(doc)
    assert result.team_size == 2
    first = result.pairings[0]
    assert first.best_our_attack.stars == 3
    assert first.best_our_attack.destruction_percentage == 0.0
    assert first.best_our_attack.duration is None
    assert first.best_opp_attack is None
    assert result.pairings[1].our_member is None


def test_non_mapping_document_is_not_in_war():
    result = build_pairings(None)
    assert result.team_size == 0
    assert result.pairings == []


def test_accepts_parsed_document():
    doc = WarDocument.from_raw(war([member("#A1", 1)], [member("#B1", 1)]))
    assert build_pairings(doc).team_size == 1


# ---------------------- totals ----------------------


def test_totals_fall_back_to_raw_attack_stars():
    side = WarSide.from_raw(
        {
            "members": [
                member("#A1", 1, [attack("#A1", "#B1", 2, 50), attack("#A1", "#B2", 3, 100)]),
                member("#A2", 2, [attack("#A2", "#B3", 1, 30)]),
            ]
        }
    )
    totals = compute_side_totals(side)
    assert totals.stars == 6
    assert totals.attacks == 3
    # destruction is never recomputed from attacks
    assert totals.destruction == 0


def test_declared_totals_are_trusted():
    side = WarSide.from_raw(
        {
            "stars": 10,
            "attacks": 7,
            "destructionPercentage": 66.6666,
            "members": [member("#A1", 1, [attack("#A1", "#B1", 1, 10)])],
        }
    )
    totals = compute_side_totals(side)
    assert totals.stars == 10
    assert totals.attacks == 7
    assert totals.destruction == 66.67


def test_zero_declared_stars_recomputes():
    side = WarSide.from_raw(
        {"stars": 0, "members": [member("#A1", 1, [attack("#A1", "#B1", 3, 100)])]}
    )
    assert compute_side_totals(side).stars == 3


def test_compute_totals_for_both_sides():
    doc = WarDocument.from_raw(
        war(
            [member("#A1", 1, [attack("#A1", "#B1", 2, 50)])],
            [member("#B1", 1, [attack("#B1", "#A1", 1, 40), attack("#B1", "#A1", 3, 100)])],
            opp_totals={"stars": 3, "destructionPercentage": 100.0},
        )
    )
    totals = compute_totals(doc.clan, doc.opponent)
    assert (totals.our.stars, totals.our.attacks, totals.our.destruction) == (2, 1, 0)
    assert (totals.opp.stars, totals.opp.attacks, totals.opp.destruction) == (3, 2, 100.0)
