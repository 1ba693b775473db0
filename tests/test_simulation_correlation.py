import numpy as np
import pytest

from sweet_spot.simulation.correlation import (
    RELATION_DEFAULTS,
    correlation_matrix,
    lookup_correlation,
    relation_between,
    tolerant_cholesky,
)
from sweet_spot.simulation.hybrid import SimLeg


def _leg(
    leg_id: str, player: str, prop: str, *, team: str = "", event: str | None = None
) -> SimLeg:
    return SimLeg(
        leg_id=leg_id,
        prop_type=prop,
        player_name=player,
        line=10.5,
        side="over",
        team_name=team,
        event_id=event,
    )


def test_relation_between() -> None:
    base = _leg("a", "Player A", "points", team="Miami Heat", event="g1")
    assert relation_between(base, _leg("b", "player a", "rebounds")) == "same_player"
    assert relation_between(base, _leg("c", "Player C", "points", event="g1")) == "same_game"
    assert relation_between(base, _leg("d", "Player D", "points", team="MIA")) == "same_team"
    assert relation_between(base, _leg("e", "Player E", "points", event="g2")) == "cross_game"


def test_lookup_correlation_stat_pairs_apply_to_same_player_only() -> None:
    assert lookup_correlation("points", "assists", "same_player") == 0.35
    assert lookup_correlation("rebounds", "points", "same_player") == 0.25
    assert lookup_correlation("points", "assists", "same_game") == RELATION_DEFAULTS["same_game"]
    assert lookup_correlation("threes", "steals", "same_player") == 0.30


def test_lookup_correlation_overrides() -> None:
    overrides = {("assists", "points", "same_game"): 0.12}
    assert lookup_correlation("points", "assists", "same_game", overrides) == 0.12
    assert lookup_correlation("points", "assists", "cross_game", overrides) == 0.05


def test_correlation_matrix_is_symmetric_with_unit_diagonal() -> None:
    legs = [
        _leg("a", "Player A", "points", event="g1"),
        _leg("b", "Player A", "assists", event="g1"),
        _leg("c", "Player C", "rebounds", event="g2"),
    ]
    matrix = correlation_matrix(legs)

    assert np.allclose(matrix, matrix.T)
    assert np.allclose(np.diag(matrix), 1.0)
    assert matrix[0, 1] == pytest.approx(0.35)
    assert matrix[0, 2] == pytest.approx(0.05)


def test_tolerant_cholesky_positive_definite() -> None:
    matrix = np.array([[1.0, 0.3], [0.3, 1.0]])
    lower = tolerant_cholesky(matrix)
    assert np.allclose(lower @ lower.T, matrix)
    assert np.allclose(lower, np.tril(lower))


def test_tolerant_cholesky_non_positive_definite_does_not_raise() -> None:
    matrix = np.array(
        [
            [1.0, 0.9, -0.9],
            [0.9, 1.0, 0.9],
            [-0.9, 0.9, 1.0],
        ]
    )
    with pytest.raises(np.linalg.LinAlgError):
        np.linalg.cholesky(matrix)

    lower = tolerant_cholesky(matrix)
    assert lower.shape == (3, 3)
    assert np.all(np.isfinite(lower))
    assert lower[2, 2] == pytest.approx(0.001)
