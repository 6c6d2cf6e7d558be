"""Numerical trajectory propagator.

A :class:`Propagator` combines a :class:`~propjax.NumericalSolver` with an
ordered list of :class:`~propjax.dynamics.Dynamics`.  It integrates the
sum of the models' contributions from a seed :class:`~propjax.State` to
any set of target instants.

The coordinate layout integrated by the solver is the union of the
models' read and write subsets in first-seen order, extended with any
optional read subsets the seed carries.  The seed is
converted to GCRF, the subsets of that layout are integrated, and every
other seed coordinate is carried through unchanged.  Results are returned
in the seed's frame and layout.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

import jax.numpy as jnp

from propjax.dynamics import Dynamics, ForceModelConfig, dynamics_from_config, total_derivative
from propjax.errors import UndefinedOperandError, UnsortedInputError
from propjax.frames import Frame
from propjax.instant import Instant
from propjax.numerical_solver import NumericalSolver
from propjax.state import CoordinateBroker, CoordinateSubset, State

logger = logging.getLogger(__name__)


def _layout_from_dynamics(
    dynamics: Sequence[Dynamics],
    extra_subsets: Sequence[CoordinateSubset] = (),
) -> CoordinateBroker:
    broker = CoordinateBroker()
    for model in dynamics:
        for subset in (*model.read_subsets, *model.write_subsets):
            if not broker.has_subset(subset):
                broker.add_subset(subset)
    for subset in extra_subsets:
        if not broker.has_subset(subset):
            broker.add_subset(subset)
    broker.freeze()
    return broker


class Propagator:
    """Propagates States with a numerical solver and a list of dynamics.

    Args:
        numerical_solver: Integrator.
        dynamics: Force/effect models, summed in order.

    Raises:
        UndefinedOperandError: If ``numerical_solver`` is ``None``.

    Examples:
        ```python
        from propjax import Instant, NumericalSolver, Propagator, State
        from propjax.dynamics import dynamics_from_config
        from propjax.frames import Frame
        from propjax.state import CartesianPosition, CartesianVelocity
        propagator = Propagator(NumericalSolver.default(), dynamics_from_config())
        seed = State(Instant(2024, 1, 1), [7000e3, 0, 0, 0, 7546.05, 0],
                     Frame.GCRF(), [CartesianPosition(), CartesianVelocity()])
        state = propagator.calculate_state_at(seed, Instant(2024, 1, 1, 1, 0, 0))
        ```
    """

    def __init__(self, numerical_solver: NumericalSolver, dynamics: Iterable[Dynamics] = ()) -> None:
        if numerical_solver is None:
            raise UndefinedOperandError("Numerical solver is undefined.")
        self._solver = numerical_solver.copy()
        self._layouts = {}
        self._integration_frame = Frame.GCRF()
        self.set_dynamics(dynamics)

    @classmethod
    def default(cls) -> Propagator:
        """Default solver with two-body point-mass dynamics."""
        return cls(NumericalSolver.default(), dynamics_from_config())

    @classmethod
    def from_config(
        cls,
        config: ForceModelConfig | None = None,
        numerical_solver: NumericalSolver | None = None,
    ) -> Propagator:
        """Build a propagator with the standard dynamics described by ``config``."""
        solver = NumericalSolver.default() if numerical_solver is None else numerical_solver
        return cls(solver, dynamics_from_config(config))

    def _layout_for(self, seed_broker: CoordinateBroker) -> tuple[CoordinateBroker, Callable]:
        """Integrated layout and derivative for seeds laid out by ``seed_broker``.

        The base layout is extended with every optional read subset the seed
        carries. Those coordinates have a zero derivative and stay constant.
        """
        extras = []
        for model in self._dynamics:
            for subset in model.optional_read_subsets:
                if (
                    seed_broker.has_subset(subset)
                    and not self._broker.has_subset(subset)
                    and subset not in extras
                ):
                    extras.append(subset)
        key = tuple(extras)
        cached = self._layouts.get(key)
        if cached is not None:
            return cached

        dynamics = tuple(self._dynamics)
        broker = _layout_from_dynamics(dynamics, key)
        frame = self._integration_frame

        # New closure per layout, so the solver's compiled-step cache never
        # serves a stale derivative.
        def system(t, x, reference_instant):
            return total_derivative(dynamics, reference_instant + t, x, frame, broker)

        self._layouts[key] = (broker, system)
        return broker, system

    def _rebuild(self) -> None:
        for _, system in self._layouts.values():
            self._solver.release(system)
        self._layouts = {}
        self._broker = _layout_from_dynamics(self._dynamics)

    # Dynamics management

    def set_dynamics(self, dynamics: Iterable[Dynamics]) -> None:
        dynamics = list(dynamics)
        for model in dynamics:
            if not isinstance(model, Dynamics):
                raise TypeError(f"Expected a Dynamics instance, got {type(model).__name__}.")
        self._dynamics = dynamics
        self._rebuild()

    def add_dynamics(self, dynamics: Dynamics) -> None:
        if not isinstance(dynamics, Dynamics):
            raise TypeError(f"Expected a Dynamics instance, got {type(dynamics).__name__}.")
        self._dynamics.append(dynamics)
        self._rebuild()

    def clear_dynamics(self) -> None:
        self._dynamics = []
        self._rebuild()

    def get_dynamics(self) -> tuple[Dynamics, ...]:
        return tuple(self._dynamics)

    def get_solver(self) -> NumericalSolver:
        return self._solver

    def get_numerical_solver(self) -> NumericalSolver:
        return self._solver

    def get_coordinate_broker(self) -> CoordinateBroker:
        return self._broker

    def get_number_of_coordinates(self) -> int:
        return self._broker.total_size

    def is_defined(self) -> bool:
        return True

    # Propagation

    def calculate_state_at(self, state: State, instant: Instant) -> State:
        """Propagate ``state`` to ``instant``.

        Args:
            state: Seed state.
            instant: Target instant, before or after the seed.

        Returns:
            State: State at ``instant`` in the seed's frame and layout. The
                seed itself when ``instant`` equals its instant.

        Raises:
            UndefinedOperandError: If ``state`` or ``instant`` is undefined.
            UnknownSubsetError: If the seed lacks a subset the dynamics need.
            NonConvergentError: If the solver fails to converge.
        """
        if instant is None:
            raise UndefinedOperandError("Instant is undefined.")
        return self.calculate_states_at(state, [instant])[0]

    def calculate_states_at(self, state: State, instants: Sequence[Instant]) -> list[State]:
        """Propagate ``state`` to a strictly increasing sequence of instants.

        Instants at or before the seed are reached by integrating backward
        from the seed, the others by integrating forward; each leg
        continues from the previous endpoint.

        Args:
            state: Seed state.
            instants: Strictly increasing target instants.

        Returns:
            list[State]: One state per instant, in input order.

        Raises:
            UnsortedInputError: If ``instants`` is not strictly increasing.
            UndefinedOperandError: If ``state`` is undefined.
            UnknownSubsetError: If the seed lacks a subset the dynamics need.
            NonConvergentError: If the solver fails to converge.
        """
        if state is None or not state.is_defined():
            raise UndefinedOperandError("Seed state is undefined.")
        instants = list(instants)
        for previous, current in zip(instants, instants[1:]):
            if not current > previous:
                raise UnsortedInputError("Instants must be strictly increasing.")
        if not instants:
            return []

        seed_instant = state.instant
        seed = state.in_frame(self._integration_frame)
        broker, system = self._layout_for(seed.broker)
        subsets = broker.get_subsets()
        x0 = seed.extract_coordinates(subsets) if subsets else None

        backward = [instant for instant in instants if instant <= seed_instant]
        forward = instants[len(backward):]

        backward_states = self._integrate_leg(state, seed, broker, system, x0, list(reversed(backward)))
        forward_states = self._integrate_leg(state, seed, broker, system, x0, forward)
        return list(reversed(backward_states)) + forward_states

    def _integrate_leg(
        self,
        state: State,
        seed: State,
        broker: CoordinateBroker,
        system: Callable,
        x0,
        instants: list[Instant],
    ) -> list[State]:
        if not instants:
            return []

        seed_instant = state.instant
        offsets = [
            0.0 if instant == seed_instant else float(instant - seed_instant)
            for instant in instants
        ]
        logger.debug(
            "Propagating %d state(s) from %s over [%.3f, %.3f] s",
            len(instants), seed_instant, offsets[0], offsets[-1],
        )

        if x0 is None:
            vectors = [None] * len(instants)
        else:
            vectors = self._solver.integrate_times(x0, 0.0, offsets, system, args=(seed_instant,))

        return [
            state if instant == seed_instant else self._assemble(state, seed, broker, instant, x)
            for instant, x in zip(instants, vectors)
        ]

    def _assemble(self, state: State, seed: State, broker: CoordinateBroker, instant: Instant, x) -> State:
        parts = []
        for subset in seed.broker:
            if x is not None and broker.has_subset(subset):
                offset = broker.offset_of(subset)
                parts.append(x[offset:offset + subset.size])
            else:
                parts.append(seed.extract_coordinate(subset))
        coordinates = jnp.concatenate(parts)
        result = State._from_internal(instant, coordinates, self._integration_frame, seed.broker)
        return result.in_frame(state.frame)

    # Comparison and display

    def __eq__(self, other):
        if not isinstance(other, Propagator):
            return NotImplemented
        return (
            self._solver == other._solver
            and len(self._dynamics) == len(other._dynamics)
            and all(a is b for a, b in zip(self._dynamics, other._dynamics))
        )

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def describe(self) -> str:
        lines = ["Propagator", f"  Coordinates: {self.get_number_of_coordinates()}"]
        lines.append("  " + self._solver.describe().replace("\n", "\n  "))
        for model in self._dynamics:
            lines.append("  " + model.describe().replace("\n", "\n  "))
        return "\n".join(lines)

    def __str__(self):
        return self.describe()

    def __repr__(self):
        names = ", ".join(repr(d.name) for d in self._dynamics)
        return f"Propagator(solver={self._solver.stepper_type.name}, dynamics=[{names}])"
