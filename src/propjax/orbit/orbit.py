"""Revolution numbering and pass segmentation of a trajectory.

An :class:`Orbit` wraps any :class:`TrajectoryModel` and splits time into
revolutions bounded by ascending-node crossings (``z`` changing sign from
negative to non-negative in GCRF).

Numbering convention:

- the revolution containing the model epoch has number
  ``model.get_revolution_number_at_epoch()``;
- every ascending node after the epoch adds one, every ascending node at
  or before the epoch start of revolution subtracts one going backward;
- zero is skipped, so revolution ``1`` is preceded by revolution ``-1``;
- a crossing instant belongs to the revolution it begins.

Crossings are bracketed by stepping over the trajectory with a coarse
step (``step``, capped at an eighth of the osculating period at epoch)
and refined by bisection to ``tolerance`` seconds.
"""

from __future__ import annotations

import logging
import math
from typing import Protocol

import numpy as np

from propjax.environment import CelestialBody
from propjax.errors import UndefinedOperandError
from propjax.frames import Frame
from propjax.instant import Instant
from propjax.orbit.orbit_pass import Pass, PassType
from propjax.state import State

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 16

# Event name -> (component: 0 for z, 1 for z-dot; rising sign change)
_EVENTS = {
    "ascending_node": (0, True),
    "descending_node": (0, False),
    "north_point": (1, False),
    "south_point": (1, True),
}


class TrajectoryModel(Protocol):
    """Protocol for trajectories that can be segmented into revolutions.

    Models may additionally provide ``calculate_states_at(instants)``,
    which is then used to evaluate search grids in batches.
    """

    def calculate_state_at(self, instant: Instant) -> State:
        ...

    def get_epoch(self) -> Instant:
        ...

    def get_revolution_number_at_epoch(self) -> int:
        ...


def offset_revolution_number(revolution_number: int, crossings: int) -> int:
    """Advance ``revolution_number`` by a signed number of ascending-node crossings.

    Zero is never used: counting down from ``1`` gives ``-1``, counting up
    from ``-1`` gives ``1``.

    Examples:
        ```python
        offset_revolution_number(1, -1)  # -1
        offset_revolution_number(-2, 2)  # 1
        ```
    """
    raw = revolution_number + crossings
    if revolution_number > 0 and raw <= 0:
        return raw - 1
    if revolution_number < 0 and raw >= 0:
        return raw + 1
    return raw


def _crossings_between(revolution_number: int, target: int) -> int:
    """Inverse of :func:`offset_revolution_number`."""
    crossings = target - revolution_number
    if revolution_number > 0 and target < 0:
        return crossings + 1
    if revolution_number < 0 and target > 0:
        return crossings - 1
    return crossings


def _triggered(rising: bool, earlier: float, later: float) -> bool:
    if rising:
        return earlier < 0.0 <= later
    return earlier > 0.0 >= later


class Orbit:
    """Revolution and pass logic over a trajectory model.

    Args:
        model: Trajectory to segment.
        celestial_body: Central body. Default: Earth.
        step: Coarse search step [s].
        tolerance: Bisection tolerance on crossing instants [s].
        search_horizon: Maximum search distance for a single event [s].
            Events not found within it leave the pass PARTIAL.

    Raises:
        UndefinedOperandError: If ``model`` is ``None``.
        ValueError: On a non-positive parameter, or if the orbit is
            equatorial (no ascending node).

    Examples:
        ```python
        from propjax.orbit import Orbit, Propagated
        orbit = Orbit(Propagated(propagator, seed))
        orbit.calculate_revolution_number_at(seed.instant)  # 1
        ```
    """

    def __init__(
        self,
        model: TrajectoryModel,
        celestial_body: CelestialBody | None = None,
        step: float = 300.0,
        tolerance: float = 1e-6,
        search_horizon: float = 86400.0,
    ) -> None:
        if model is None:
            raise UndefinedOperandError("Trajectory model is undefined.")
        if not step > 0.0 or not tolerance > 0.0 or not search_horizon > 0.0:
            raise ValueError("step, tolerance and search_horizon must be positive.")

        self._model = model
        self._celestial_body = CelestialBody.earth() if celestial_body is None else celestial_body
        self._frame = Frame.GCRF()
        self._tolerance = float(tolerance)
        self._search_horizon = float(search_horizon)

        epoch_state = self._model.calculate_state_at(self._model.get_epoch()).in_frame(self._frame)
        r = np.asarray(epoch_state.get_position().coordinates, dtype=float)
        v = np.asarray(epoch_state.get_velocity().coordinates, dtype=float)

        h = np.cross(r, v)
        if math.hypot(h[0], h[1]) <= 1e-9 * np.linalg.norm(h):
            raise ValueError("Equatorial orbits have no ascending node; revolution numbers are undefined.")

        gm = self._celestial_body.gm
        energy = 0.5 * float(np.dot(v, v)) - gm / float(np.linalg.norm(r))
        self._period = None
        if energy < 0.0:
            semi_major_axis = -gm / (2.0 * energy)
            self._period = 2.0 * math.pi * math.sqrt(semi_major_axis**3 / gm)
            step = min(step, self._period / 8.0)
        self._step = float(step)

    def get_model(self) -> TrajectoryModel:
        return self._model

    def get_celestial_body(self) -> CelestialBody:
        return self._celestial_body

    def get_epoch(self) -> Instant:
        return self._model.get_epoch()

    def get_revolution_number_at_epoch(self) -> int:
        return self._model.get_revolution_number_at_epoch()

    def get_period_estimate(self) -> float | None:
        """Osculating period at epoch [s], ``None`` for unbound orbits."""
        return self._period

    # Trajectory sampling

    def _evaluate(self, instants: list[Instant]) -> list[tuple[float, float]]:
        calculate_states_at = getattr(self._model, "calculate_states_at", None)
        if calculate_states_at is not None:
            states = calculate_states_at(instants)
        else:
            states = [self._model.calculate_state_at(instant) for instant in instants]

        values = []
        for state in states:
            state = state.in_frame(self._frame)
            z = float(state.get_position().coordinates[2])
            z_dot = float(state.get_velocity().coordinates[2])
            values.append((z, z_dot))
        return values

    def _grid(self, start: Instant, end: Instant) -> list[Instant]:
        """Instants from ``start`` (excluded) to ``end`` (included) every ``step``."""
        span = float(end - start)
        count = math.ceil(abs(span) / self._step)
        direction = 1.0 if span > 0.0 else -1.0
        grid = [start + direction * i * self._step for i in range(1, count)]
        if count > 0:
            grid.append(end)
        return grid

    def _count_ascending_nodes(self, start: Instant, end: Instant) -> int:
        forward = end > start
        points = [start, *self._grid(start, end)]
        z_values = [z for z, _ in self._evaluate(points)]

        count = 0
        for current, following in zip(z_values, z_values[1:]):
            earlier, later = (current, following) if forward else (following, current)
            if _triggered(True, earlier, later):
                count += 1
        return count

    def _refine(self, lo: Instant, hi: Instant, component: int, rising: bool) -> Instant:
        """Bisect a bracket ``(lo, hi]`` down to the first instant past the sign change."""
        while float(hi - lo) > self._tolerance:
            mid = lo + 0.5 * float(hi - lo)
            value = self._evaluate([mid])[0][component]
            past = value >= 0.0 if rising else value <= 0.0
            if past:
                hi = mid
            else:
                lo = mid
        return hi

    def _find_event(
        self,
        start: Instant,
        event: str,
        direction: int,
        limit: Instant | None = None,
    ) -> Instant | None:
        """Locate the nearest ``event`` after ``start`` (direction +1) or at/before it (-1).

        Returns ``None`` if the event is not found before ``limit`` (or the
        search horizon).
        """
        component, rising = _EVENTS[event]
        if limit is None:
            limit = start + direction * self._search_horizon
        if float(limit - start) * direction <= 0.0:
            return None

        logger.debug("Searching %s from %s (direction %+d)", event, start, direction)

        previous_instant = start
        previous_value = self._evaluate([start])[0][component]
        grid = self._grid(start, limit)
        for i in range(0, len(grid), _CHUNK_SIZE):
            chunk = grid[i:i + _CHUNK_SIZE]
            for instant, values in zip(chunk, self._evaluate(chunk)):
                value = values[component]
                if direction > 0:
                    earlier, later = previous_value, value
                    bracket = (previous_instant, instant)
                else:
                    earlier, later = value, previous_value
                    bracket = (instant, previous_instant)
                if _triggered(rising, earlier, later):
                    return self._refine(*bracket, component, rising)
                previous_instant, previous_value = instant, value
        return None

    def _step_before(self, instant: Instant) -> Instant:
        return instant - min(1.0, 0.5 * self._step)

    # Revolutions and passes

    def calculate_revolution_number_at(self, instant: Instant) -> int:
        """Revolution number at ``instant``.

        Args:
            instant: Query instant.

        Returns:
            int: Signed revolution number, never zero.
        """
        if instant is None:
            raise UndefinedOperandError("Instant is undefined.")
        epoch = self._model.get_epoch()
        revolution_number = self._model.get_revolution_number_at_epoch()
        if instant == epoch:
            return revolution_number

        if instant > epoch:
            crossings = self._count_ascending_nodes(epoch, instant)
        else:
            crossings = -self._count_ascending_nodes(epoch, instant)

        result = offset_revolution_number(revolution_number, crossings)
        logger.debug("Revolution number at %s: %d (%+d crossings)", instant, result, crossings)
        return result

    def _build_pass(self, revolution_number: int, start: Instant | None, reference: Instant) -> Pass:
        search_from = reference if start is None else start
        end = self._find_event(search_from, "ascending_node", +1)
        descending = self._find_event(search_from, "descending_node", +1, end)
        north = self._find_event(search_from, "north_point", +1, descending if descending is not None else end)
        south = self._find_event(descending, "south_point", +1, end) if descending is not None else None

        events = (start, north, descending, south, end)
        pass_type = PassType.COMPLETE if all(e is not None for e in events) else PassType.PARTIAL
        return Pass(pass_type, revolution_number, *events)

    def get_pass_at(self, instant: Instant) -> Pass:
        """Pass containing ``instant``.

        Raises:
            UndefinedOperandError: If ``instant`` is ``None``.
        """
        revolution_number = self.calculate_revolution_number_at(instant)
        start = self._find_event(instant, "ascending_node", -1)
        return self._build_pass(revolution_number, start, instant)

    def get_pass_with_revolution_number(self, revolution_number: int) -> Pass:
        """Pass with the given revolution number.

        Walks ascending nodes from the epoch until the revolution is reached.
        If a node along the way cannot be found the result is a PARTIAL pass
        without instants.

        Raises:
            ValueError: If ``revolution_number`` is zero.
        """
        if revolution_number == 0:
            raise ValueError("Revolution number zero is not used.")

        epoch = self._model.get_epoch()
        crossings = _crossings_between(self._model.get_revolution_number_at_epoch(), revolution_number)
        if crossings == 0:
            return self.get_pass_at(epoch)

        if crossings > 0:
            node = epoch
            for _ in range(crossings):
                node = self._find_event(node, "ascending_node", +1)
                if node is None:
                    return Pass(PassType.PARTIAL, revolution_number)
        else:
            node = self._find_event(epoch, "ascending_node", -1)
            for _ in range(-crossings):
                if node is None:
                    return Pass(PassType.PARTIAL, revolution_number)
                node = self._find_event(self._step_before(node), "ascending_node", -1)
            if node is None:
                return Pass(PassType.PARTIAL, revolution_number)

        return self._build_pass(revolution_number, node, node)

    def get_passes_within_interval(self, start: Instant, end: Instant) -> list[Pass]:
        """Consecutive passes overlapping ``[start, end)``.

        Raises:
            ValueError: If ``end`` is before ``start``.
        """
        if end < start:
            raise ValueError("Interval end must not precede its start.")

        passes = []
        current = self.get_pass_at(start)
        while True:
            passes.append(current)
            pass_break = current.get_instant_at_pass_break()
            if pass_break is None or not pass_break < end:
                break
            current = self._build_pass(
                offset_revolution_number(current.get_revolution_number(), 1), pass_break, pass_break
            )
        return passes

    def __repr__(self):
        return (
            f"Orbit(model={self._model!r}, celestial_body={self._celestial_body.name!r}, "
            f"step={self._step}, tolerance={self._tolerance})"
        )
