from pathlib import Path

import pytest

from sweet_spot.engine import SlateContext, build_leg_set, summarize_legs
from sweet_spot.models import CandidatePick, FrozenSlate, GameEnvironment
from sweet_spot.presets import BALANCED, get_preset
from sweet_spot.selection import SELECTION_REASON_TEAM_CAP
from sweet_spot.snapshot import load_slate

FIXTURE_PATH = Path(__file__).parent / "fixtures" / "frozen_slate.json"


def _slate() -> FrozenSlate:
    return load_slate(FIXTURE_PATH)


def test_build_leg_set_fixture_selection() -> None:
    output = build_leg_set(_slate(), BALANCED)

    assert [leg.candidate.pick_id for leg in output.legs] == ["c1", "c2", "c3", "c4", "c8", "c6"]
    assert [leg.phase for leg in output.legs] == ["formula"] * 5 + ["fallback"]
    assert [leg.slot_category for leg in output.legs][:5] == [
        "STAR_FLOOR_OVER",
        "BIG_ASSIST_OVER",
        "THREE_POINT_SHOOTER",
        "LOW_SCORER_UNDER",
        "ROLE_PLAYER_REB",
    ]
    assert output.active_preset == "balanced"
    assert output.slate_date == "2025-01-15"


def test_build_leg_set_fixture_scores() -> None:
    output = build_leg_set(_slate(), BALANCED)
    scores = {leg.candidate.pick_id: leg.score for leg in output.legs}
    patterns = {leg.candidate.pick_id: leg.pattern_score for leg in output.legs}

    assert patterns == {"c1": 7.0, "c2": 2.0, "c3": 4.0, "c4": 10.0, "c8": 4.0, "c6": 7.0}
    assert scores["c1"] == pytest.approx(12.025)
    assert scores["c2"] == pytest.approx(6.4)
    assert scores["c3"] == pytest.approx(7.2875)
    assert scores["c4"] == pytest.approx(14.075)
    assert scores["c8"] == pytest.approx(8.675)
    assert scores["c6"] == pytest.approx(11.4125)

    suggs = next(leg for leg in output.legs if leg.candidate.pick_id == "c4")
    assert suggs.defense_rank == 8
    assert suggs.h2h is not None
    assert suggs.h2h.hit_rate == pytest.approx(0.67)


def test_build_leg_set_traces_every_candidate_in_order() -> None:
    slate = _slate()
    output = build_leg_set(slate, BALANCED)

    assert [row.index for row in output.traces] == list(range(len(slate.candidates)))
    stages = {row.pick_id: (row.status, row.stage) for row in output.traces}
    assert stages["c12"] == ("rejected", "invalid")
    assert stages["c10"] == ("rejected", "injury")
    assert stages["c9"] == ("rejected", "archetype")
    assert stages["c11"] == ("rejected", "h2h")
    assert stages["c7"] == ("rejected", "pattern")
    assert stages["c5"] == ("rejected", "selection")
    assert stages["c13"] == ("rejected", "selection")
    assert stages["c1"] == ("selected", "selection")

    reasons = {row.pick_id: row.reason for row in output.traces}
    assert reasons["c5"] == SELECTION_REASON_TEAM_CAP
    assert reasons["c13"] == SELECTION_REASON_TEAM_CAP
    assert reasons["c1"] == "formula:STAR_FLOOR_OVER"
    assert reasons["c6"] == "fallback"
    assert reasons["c12"] == "missing numeric line"

    bam = next(row for row in output.traces if row.pick_id == "c5")
    assert bam.pattern_score == 9.0
    assert bam.score == pytest.approx(12.3)
    assert bam.breakdown is not None
    assert bam.breakdown.reliability_imputed is True
    assert bam.category_proven is False

    proven = {row.pick_id: row.category_proven for row in output.traces}
    assert proven["c1"] is True
    assert proven["c3"] is True
    assert proven["c8"] is None
    assert proven["c12"] is None


def test_build_leg_set_diagnostics() -> None:
    output = build_leg_set(_slate(), BALANCED)
    diagnostics = output.diagnostics

    assert diagnostics["total_candidates"] == 13
    assert diagnostics["invalid"] == 1
    assert diagnostics["injury"] == 1
    assert diagnostics["archetype_blocked"] == [
        "Domantas Sabonis: GLASS_CLEANER blocked for points"
    ]
    assert len(diagnostics["h2h_blocked"]) == 1
    assert diagnostics["h2h_blocked"][0].startswith("Jrue Holiday")
    assert len(diagnostics["pattern_blocked"]) == 1
    assert diagnostics["passed_validation"] == 8
    assert diagnostics["formula_selected"] == 5
    assert diagnostics["fallback_selected"] == 1
    assert diagnostics["selected_count"] == 6


def test_build_leg_set_invariants() -> None:
    output = build_leg_set(_slate(), BALANCED)

    players = [leg.candidate.player_name for leg in output.legs]
    teams = [leg.team for leg in output.legs]
    assert len(output.legs) <= 6
    assert len(set(players)) == len(players)
    assert len(set(teams)) == len(teams)

    hard_blocked = {
        row.pick_id for row in output.traces if row.stage in {"archetype", "h2h", "pattern"}
    }
    assert not hard_blocked & {leg.candidate.pick_id for leg in output.legs}


def test_build_leg_set_is_deterministic() -> None:
    first = build_leg_set(_slate(), BALANCED).to_dict()
    second = build_leg_set(_slate(), BALANCED).to_dict()
    assert first == second


def test_build_leg_set_preset_changes_scores_not_shape() -> None:
    output = build_leg_set(_slate(), get_preset("reliability_max"))
    assert output.active_preset == "reliability_max"
    assert len(output.legs) == 6


def test_build_leg_set_with_too_few_candidates() -> None:
    slate = FrozenSlate(
        slate_date="2025-01-16",
        preset_id="",
        candidates=(
            CandidatePick(
                pick_id="solo",
                player_name="Solo Player",
                prop_type="points",
                line=14.5,
                side="over",
                team_name="Utah Jazz",
            ),
        ),
    )
    output = build_leg_set(slate, BALANCED)

    assert len(output.legs) == 1
    assert output.legs[0].phase == "fallback"
    assert output.legs[0].team == "UTA"
    assert output.diagnostics["selected_count"] == 1


def test_build_leg_set_empty_slate() -> None:
    output = build_leg_set(FrozenSlate(slate_date="", preset_id="", candidates=()), BALANCED)
    assert output.legs == ()
    assert output.traces == ()
    assert summarize_legs(output.legs)["avg_confidence"] is None


def test_build_leg_set_missing_context_penalty_is_configurable() -> None:
    slate = FrozenSlate(
        slate_date="2025-01-16",
        preset_id="",
        candidates=(
            CandidatePick(
                pick_id="r1",
                player_name="Role Player",
                prop_type="rebounds",
                line=5.5,
                side="over",
                team_name="",
                category="ROLE_PLAYER_REB",
                l10_hit_rate=0.7,
                confidence_score=0.7,
            ),
        ),
    )
    default = build_leg_set(slate, BALANCED)
    softer = build_leg_set(slate, BALANCED, missing_context_penalty=-0.5)

    assert default.legs[0].team == "UNK"
    assert default.legs[0].pattern_score == 0.0
    assert softer.legs[0].pattern_score == 1.5


def test_slate_context_resolves_h2h_without_opponent() -> None:
    slate = FrozenSlate.from_dict(
        {
            "picks": [],
            "h2h": {
                "Josh Hart|Boston Celtics|rebounds": {
                    "opponent": "Boston Celtics",
                    "games_played": 4,
                    "avg_stat": 7.0,
                    "hit_rate_over": 0.75,
                    "hit_rate_under": 0.25,
                },
                "bad-key": {"games_played": 3},
            },
            "game_environment": {"Knicks": {"opponent": "Celtics"}},
            "defense_ranks": {"BOS|rebounds": 0, "bos|points": 4},
        }
    )
    context = SlateContext.from_slate(slate)

    assert context.h2h_for("josh hart", "", "rebounds") is not None
    assert context.h2h_for("josh hart", "BOS", "rebounds") is not None
    assert context.h2h_for("josh hart", "MIA", "rebounds") is None
    assert context.defense_rank_for("BOS", "rebounds") is None
    assert context.defense_rank_for("BOS", "points") == 4
    assert context.environment_for("NYK") == GameEnvironment.from_dict({"opponent": "Celtics"})


def test_summarize_legs() -> None:
    summary = summarize_legs(build_leg_set(_slate(), BALANCED).legs)

    assert summary["leg_count"] == 6
    assert summary["unique_teams"] == 6
    assert summary["proven_legs"] == 5
    assert summary["avg_edge"] == pytest.approx(0.05)
    assert summary["prop_types"] == ["assists", "points", "rebounds", "threes"]
    assert "STAR_FLOOR_OVER" in summary["categories"]


def _camel_case_slate() -> FrozenSlate:
    return FrozenSlate.from_dict(
        {
            "displayedDate": "2025-03-02",
            "presetKey": "balanced",
            "picks": [
                {
                    "id": "u1",
                    "player_name": "Jalen Suggs",
                    "team_name": "Orlando Magic",
                    "prop_type": "points",
                    "line": 8.5,
                    "side": "under",
                    "category": "LOW_SCORER_UNDER",
                    "confidence_score": 0.7,
                    "l10HitRate": 0.65,
                },
                {
                    "id": "u2",
                    "player_name": "Derrick White",
                    "team_name": "Boston Celtics",
                    "prop_type": "points",
                    "line": 14.5,
                    "side": "over",
                    "confidence_score": 0.6,
                    "injuryStatus": "Out",
                },
            ],
            "h2hMap": {
                "jalen suggs_mia_player_points": {
                    "opponent": "MIA",
                    "gamesPlayed": 4,
                    "avgStat": 20.0,
                    "hitRateOver": 0.75,
                    "hitRateUnder": 0.5,
                    "maxStat": 24,
                    "minStat": 15,
                }
            },
            "gameContextMap": {
                "orl": {
                    "vegasTotal": 210,
                    "paceRating": "SLOW",
                    "gameScript": "GRIND_OUT",
                    "grindFactor": 0.7,
                    "opponent": "MIA",
                }
            },
            "defenseMap": {"mia_points": 3},
        }
    )


def test_slate_context_reads_underscore_joined_keys() -> None:
    context = SlateContext.from_slate(_camel_case_slate())

    record = context.h2h_for("jalen suggs", "MIA", "points")
    assert record is not None
    assert record.games_played == 4
    assert context.defense_rank_for("MIA", "points") == 3
    environment = context.environment_for("ORL")
    assert environment is not None
    assert environment.grind_factor == pytest.approx(0.7)


def test_build_leg_set_applies_camel_case_fields() -> None:
    output = build_leg_set(_camel_case_slate(), BALANCED)

    assert output.slate_date == "2025-03-02"
    assert output.legs == ()
    stages = {row.pick_id: (row.stage, row.reason) for row in output.traces}
    assert stages["u1"][0] == "h2h"
    assert "above" in stages["u1"][1]
    assert stages["u2"] == ("injury", "injury status Out")
