"""Trajectory model memoizing propagated states.

:class:`Propagated` keeps a chronologically sorted, duplicate-free list of
States.  A query at a cached instant is answered from the cache; any other
instant is propagated from the nearest cached state and the result is
inserted in sorted position.  Each distinct instant is computed at most
once.
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Sequence

from propjax.config import get_instant_eq_tolerance
from propjax.errors import ContradictoryStateError, UndefinedOperandError
from propjax.instant import Instant
from propjax.orbit.orbit import Orbit
from propjax.propagator import Propagator
from propjax.state import State

logger = logging.getLogger(__name__)


class Propagated:
    """Propagator-backed trajectory model with a state cache.

    Args:
        propagator: Propagator used for uncached instants.
        states: One seed State or a list of known States.
        revolution_number_at_epoch: Revolution number of the revolution
            containing the epoch (the earliest provided state). Never zero.

    Raises:
        UndefinedOperandError: If ``propagator`` is ``None`` or no state is given.
        ContradictoryStateError: If two states share an instant but differ.

    Examples:
        ```python
        from propjax import Propagator
        from propjax.orbit import Propagated
        model = Propagated(Propagator.default(), seed)
        states = model.calculate_states_at([t2, t0, t1, t0])  # caller order
        ```
    """

    def __init__(
        self,
        propagator: Propagator,
        states: State | Sequence[State],
        revolution_number_at_epoch: int = 1,
    ) -> None:
        if propagator is None:
            raise UndefinedOperandError("Propagator is undefined.")
        if revolution_number_at_epoch == 0:
            raise ValueError("Revolution number zero is not used.")
        self._propagator = propagator
        self._revolution_number_at_epoch = int(revolution_number_at_epoch)
        self._orbit = None
        self.set_cached_states([states] if isinstance(states, State) else list(states))

    # Cache management

    def set_cached_states(self, states: Sequence[State]) -> None:
        """Replace the cache with ``states``, sorting and deduplicating them.

        The epoch becomes the earliest of ``states``.

        Raises:
            UndefinedOperandError: If ``states`` is empty or contains an undefined state.
            ContradictoryStateError: If two states share an instant but differ.
        """
        states = list(states)
        if not states:
            raise UndefinedOperandError("At least one state is required.")
        for state in states:
            if state is None or not state.is_defined():
                raise UndefinedOperandError("Cached states must be defined.")

        reference = states[0].instant
        keyed = sorted(((float(s.instant - reference), s) for s in states), key=lambda item: item[0])
        epoch = keyed[0][1].instant

        tolerance = get_instant_eq_tolerance()
        cached: list[State] = []
        offsets: list[float] = []
        for _, state in keyed:
            offset = float(state.instant - epoch)
            if cached and abs(offset - offsets[-1]) <= tolerance:
                if state != cached[-1]:
                    raise ContradictoryStateError(
                        f"Two different states are given at instant [{state.instant}]."
                    )
                continue
            cached.append(state)
            offsets.append(offset)

        self._epoch = epoch
        self._cached_states = cached
        self._offsets = offsets
        self._orbit = None

    def access_cached_states(self) -> tuple[State, ...]:
        return tuple(self._cached_states)

    def get_propagator(self) -> Propagator:
        return self._propagator

    def get_epoch(self) -> Instant:
        return self._epoch

    def get_revolution_number_at_epoch(self) -> int:
        return self._revolution_number_at_epoch

    def is_defined(self) -> bool:
        return True

    def _offset(self, instant: Instant) -> float:
        return float(instant - self._epoch)

    def _lookup(self, offset: float) -> tuple[int, bool]:
        """Insertion index of ``offset`` and whether it hits a cached state."""
        tolerance = get_instant_eq_tolerance()
        index = bisect.bisect_left(self._offsets, offset - tolerance)
        hit = index < len(self._offsets) and abs(self._offsets[index] - offset) <= tolerance
        return index, hit

    def _insert(self, index: int, offset: float, state: State) -> None:
        self._cached_states.insert(index, state)
        self._offsets.insert(index, offset)

    # Trajectory evaluation

    def calculate_state_at(self, instant: Instant) -> State:
        """State at ``instant``, from the cache or propagated from the nearest cached state.

        Raises:
            UndefinedOperandError: If ``instant`` is ``None``.
        """
        if instant is None:
            raise UndefinedOperandError("Instant is undefined.")

        offset = self._offset(instant)
        index, hit = self._lookup(offset)
        if hit:
            logger.debug("Cache hit at %s", instant)
            return self._cached_states[index]

        if index == 0:
            nearest = 0
        elif index == len(self._offsets):
            nearest = index - 1
        else:
            nearest = index if self._offsets[index] - offset < offset - self._offsets[index - 1] else index - 1

        logger.debug("Propagating from cached state %d to %s", nearest, instant)
        state = self._propagator.calculate_state_at(self._cached_states[nearest], instant)
        self._insert(index, offset, state)
        return state

    def calculate_states_at(self, instants: Sequence[Instant]) -> list[State]:
        """States at ``instants``, in caller order.

        The input may be in any order and contain duplicates.  Distinct
        uncached instants between two cached states are propagated in one
        leg from whichever neighbour is closer.

        Raises:
            UndefinedOperandError: If an instant is ``None``.
        """
        instants = list(instants)
        if any(instant is None for instant in instants):
            raise UndefinedOperandError("Instant is undefined.")
        if not instants:
            return []

        tolerance = get_instant_eq_tolerance()
        offsets = [self._offset(instant) for instant in instants]
        order = sorted(range(len(instants)), key=offsets.__getitem__)

        # Distinct uncached instants grouped by the cache gap they fall in.
        gaps: dict[int, list[tuple[float, Instant]]] = {}
        last_offset = None
        for k in order:
            offset = offsets[k]
            if last_offset is not None and abs(offset - last_offset) <= tolerance:
                continue
            last_offset = offset
            index, hit = self._lookup(offset)
            if not hit:
                gaps.setdefault(index, []).append((offset, instants[k]))

        # Fill gaps from the latest so earlier insertion indices stay valid.
        for index in sorted(gaps, reverse=True):
            self._fill_gap(index, gaps[index])

        results = []
        for instant, offset in zip(instants, offsets):
            index, hit = self._lookup(offset)
            if not hit:
                raise RuntimeError(f"State at [{instant}] missing from the cache after propagation.")
            results.append(self._cached_states[index])
        return results

    def _fill_gap(self, index: int, pending: list[tuple[float, Instant]]) -> None:
        left = index - 1 if index > 0 else None
        right = index if index < len(self._offsets) else None

        forward: list[tuple[float, Instant]] = []
        backward: list[tuple[float, Instant]] = []
        for offset, instant in pending:
            if right is None:
                forward.append((offset, instant))
            elif left is None:
                backward.append((offset, instant))
            elif offset - self._offsets[left] <= self._offsets[right] - offset:
                forward.append((offset, instant))
            else:
                backward.append((offset, instant))

        new_entries = []
        if forward:
            seed = self._cached_states[left]
            logger.debug("Propagating %d state(s) forward from cached state %d", len(forward), left)
            states = self._propagator.calculate_states_at(seed, [instant for _, instant in forward])
            new_entries.extend(zip((offset for offset, _ in forward), states))
        if backward:
            seed = self._cached_states[right]
            logger.debug("Propagating %d state(s) backward from cached state %d", len(backward), right)
            states = self._propagator.calculate_states_at(seed, [instant for _, instant in backward])
            new_entries.extend(zip((offset for offset, _ in backward), states))

        for offset, state in reversed(new_entries):
            self._insert(index, offset, state)

    # Revolutions

    def _get_orbit(self) -> Orbit:
        if self._orbit is None:
            self._orbit = Orbit(self)
        return self._orbit

    def calculate_revolution_number_at(self, instant: Instant) -> int:
        """Revolution number at ``instant`` (see :class:`~propjax.orbit.Orbit`)."""
        return self._get_orbit().calculate_revolution_number_at(instant)

    # Comparison and display

    def __eq__(self, other):
        if not isinstance(other, Propagated):
            return NotImplemented
        return (
            self._propagator == other._propagator
            and self._revolution_number_at_epoch == other._revolution_number_at_epoch
            and len(self._cached_states) == len(other._cached_states)
            and all(a == b for a, b in zip(self._cached_states, other._cached_states))
        )

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def describe(self) -> str:
        first = self._cached_states[0].instant
        last = self._cached_states[-1].instant
        return (
            "Propagated\n"
            f"  Epoch:                      {self._epoch}\n"
            f"  Revolution number at epoch: {self._revolution_number_at_epoch}\n"
            f"  Cached states:              {len(self._cached_states)} [{first} .. {last}]\n"
            "  " + self._propagator.describe().replace("\n", "\n  ")
        )

    def __str__(self):
        return self.describe()

    def __repr__(self):
        return (
            f"Propagated(epoch={self._epoch}, cached_states={len(self._cached_states)}, "
            f"propagator={self._propagator!r})"
        )
