import numpy as np

from sweet_spot.models import CandidatePick
from sweet_spot.simulation.combinations import generate_combinations, top_pool


def _candidate(pick_id: str, player: str, team: str, confidence: float = 0.7) -> CandidatePick:
    return CandidatePick(
        pick_id=pick_id,
        player_name=player,
        prop_type="points",
        line=12.5,
        side="over",
        team_name=team,
        confidence_score=confidence,
    )


def test_top_pool_orders_by_confidence() -> None:
    candidates = [
        _candidate("a", "A", "MIA", 0.6),
        _candidate("b", "B", "BOS", 0.9),
        _candidate("c", "C", "DEN", 0.6),
        CandidatePick(pick_id="d", player_name="D", prop_type="points", line=1.5, side="over"),
    ]
    assert [c.pick_id for c in top_pool(candidates)] == ["b", "a", "c", "d"]
    assert [c.pick_id for c in top_pool(candidates, size=2)] == ["b", "a"]


def test_generate_combinations_enumerates_distinct_sets() -> None:
    teams = ["MIA", "BOS", "DEN", "NYK", "SAC"]
    candidates = [_candidate(str(i), f"Player {i}", team) for i, team in enumerate(teams)]
    combos = generate_combinations(candidates, 3, rng=np.random.default_rng(0))

    assert len(combos) == 10
    assert len({frozenset(c.pick_id for c in combo) for combo in combos}) == 10
    assert all(len(combo) == 3 for combo in combos)


def test_generate_combinations_respects_player_and_team_caps() -> None:
    candidates = [
        _candidate("a1", "Player A", "MIA"),
        _candidate("a2", "player a", "BOS"),
        _candidate("b", "Player B", "Heat"),
        _candidate("c", "Player C", "Miami"),
        _candidate("d", "Player D", "DEN"),
    ]
    combos = generate_combinations(candidates, 3, rng=np.random.default_rng(0), max_per_team=2)

    assert combos
    for combo in combos:
        players = [c.player_name.lower() for c in combo]
        assert len(set(players)) == len(players)
        miami = sum(1 for c in combo if c.pick_id in {"a1", "b", "c"})
        assert miami <= 2


def test_generate_combinations_caps_count_and_is_seeded() -> None:
    candidates = [_candidate(str(i), f"Player {i}", f"T{i:02d}") for i in range(8)]
    first = generate_combinations(candidates, 2, rng=np.random.default_rng(4), max_combinations=5)
    second = generate_combinations(candidates, 2, rng=np.random.default_rng(4), max_combinations=5)

    assert len(first) == 5
    assert [[c.pick_id for c in combo] for combo in first] == [
        [c.pick_id for c in combo] for combo in second
    ]


def test_generate_combinations_impossible_request() -> None:
    candidates = [_candidate(str(i), f"Player {i}", "MIA") for i in range(4)]
    assert generate_combinations(candidates, 3, rng=np.random.default_rng(0)) == []
    assert generate_combinations(candidates, 0, rng=np.random.default_rng(0)) == []
