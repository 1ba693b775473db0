"""Combinatorial viability simulator."""

from sweet_spot.simulation.hybrid import HybridResult, SimLeg, hybrid_simulate, quick_analysis
from sweet_spot.simulation.parametric import prop_probability, screen_leg
from sweet_spot.simulation.runner import (
    MODE_ITERATIONS,
    SimulatedParlay,
    SimulationProgress,
    SimulationRun,
    SimulatorConfig,
    run_simulation,
    run_simulation_async,
)

__all__ = [
    "HybridResult",
    "MODE_ITERATIONS",
    "SimLeg",
    "SimulatedParlay",
    "SimulationProgress",
    "SimulationRun",
    "SimulatorConfig",
    "hybrid_simulate",
    "prop_probability",
    "quick_analysis",
    "run_simulation",
    "run_simulation_async",
    "screen_leg",
]
