# /// script
# requires-python = ">=3.11"
# dependencies = ["typer>=0.9.0", "propjax"]
#
# [tool.uv.sources]
# propjax = { path = ".." }
# ///
"""Propagate a circular orbit and list its passes.

Builds a seed state for a circular orbit starting at its ascending node,
propagates it with a configurable force model through a cached
:class:`~propjax.orbit.Propagated` trajectory, and prints the passes
(ascending node to ascending node) found over the requested duration.

Requires propjax to be installed (``uv pip install -e .`` from the repo root).

Usage:
    uv run examples/propagate.py [OPTIONS]

Examples:
    # Two-body, three hours
    uv run examples/propagate.py --duration 3

    # LEO force model (J2, drag, Sun and Moon)
    uv run examples/propagate.py --altitude 400 --leo --duration 6
"""

import math
import time
from typing import Annotated

import jax.numpy as jnp
import typer

from propjax import Instant, NumericalSolver, Propagator, set_dtype
from propjax.constants import DEG2RAD, GM_EARTH, R_EARTH
from propjax.dynamics import ForceModelConfig
from propjax.frames import Frame
from propjax.orbit import Orbit, Propagated
from propjax.state import CartesianPosition, CartesianVelocity, State

set_dtype(jnp.float64)


def main(
    epoch: Annotated[str, typer.Option(help="Seed epoch, ISO 8601")] = "2024-01-01T00:00:00",
    altitude: Annotated[float, typer.Option(help="Circular orbit altitude in km")] = 500.0,
    inclination: Annotated[float, typer.Option(help="Inclination in degrees")] = 51.6,
    duration: Annotated[float, typer.Option(help="Propagation duration in hours")] = 3.0,
    leo: Annotated[bool, typer.Option(help="Use the LEO force model instead of two-body")] = False,
    tolerance: Annotated[float, typer.Option(help="Solver relative tolerance")] = 1e-10,
) -> None:
    """Propagate a circular orbit and print its passes."""
    seed_epoch = Instant(epoch)
    radius = R_EARTH + altitude * 1e3
    speed = math.sqrt(GM_EARTH / radius)
    inc = inclination * DEG2RAD
    seed = State(
        seed_epoch,
        jnp.array([radius, 0.0, 0.0, 0.0, speed * math.cos(inc), speed * math.sin(inc)]),
        Frame.GCRF(),
        [CartesianPosition(), CartesianVelocity()],
    )

    config = ForceModelConfig.leo_default() if leo else ForceModelConfig.two_body()
    solver = NumericalSolver(relative_tolerance=tolerance, absolute_tolerance=1e-6, time_step=10.0)
    propagator = Propagator.from_config(config, solver)
    print(propagator)

    model = Propagated(propagator, seed)
    orbit = Orbit(model)
    print(f"\nPeriod estimate: {orbit.get_period_estimate():.3f} s")

    t0 = time.perf_counter()
    end = seed_epoch + duration * 3600.0
    final = model.calculate_state_at(end)
    r_end = jnp.linalg.norm(final.get_position().coordinates)
    print(f"Final altitude: {(float(r_end) - R_EARTH) / 1e3:.3f} km")
    print(f"Revolution at end: {model.calculate_revolution_number_at(end)}")

    passes = orbit.get_passes_within_interval(seed_epoch, end)
    print(f"\n{len(passes)} pass(es) in {time.perf_counter() - t0:.1f}s")
    for orbit_pass in passes:
        duration_s = orbit_pass.get_duration()
        duration_text = "partial" if duration_s is None else f"{duration_s:.3f} s"
        print(
            f"  Rev {orbit_pass.get_revolution_number():>4}  "
            f"start {orbit_pass.get_start_instant()}  {duration_text}"
        )
    print(f"\nCached states: {len(model.access_cached_states())}")


if __name__ == "__main__":
    typer.run(main)
