"""Layout of an ordered set of coordinate subsets inside one flat vector.

A :class:`CoordinateBroker` assigns each subset a contiguous slice of the
state vector, in insertion order.  Offsets are computed once, when the
subset is added, and kept in a dictionary keyed by subset, so every
lookup is a constant-time dictionary access and every extraction is a
static slice (safe under ``jax.jit``).

A broker stops accepting subsets once a :class:`~propjax.State` has been
built on it, so states sharing a broker always agree on their layout.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence

import jax.numpy as jnp
from jax import Array
from jax.typing import ArrayLike

from propjax.errors import DuplicateSubsetError, UnknownSubsetError
from propjax.state.coordinate_subset import CoordinateSubset


class CoordinateBroker:
    """Ordered, duplicate-free collection of coordinate subsets.

    Args:
        subsets: Initial subsets, in layout order.

    Raises:
        DuplicateSubsetError: If ``subsets`` contains the same subset twice.

    Examples:
        ```python
        from propjax.state import CartesianPosition, CartesianVelocity, CoordinateBroker
        broker = CoordinateBroker([CartesianPosition(), CartesianVelocity()])
        broker.offset_of(CartesianVelocity())  # 3
        broker.total_size                      # 6
        ```
    """

    __slots__ = ("_subsets", "_offsets", "_size", "_frozen")

    def __init__(self, subsets: Iterable[CoordinateSubset] = ()) -> None:
        self._subsets: list[CoordinateSubset] = []
        self._offsets: dict[CoordinateSubset, int] = {}
        self._size = 0
        self._frozen = False
        for subset in subsets:
            self.add_subset(subset)

    def add_subset(self, subset: CoordinateSubset) -> int:
        """Append ``subset`` to the layout.

        Args:
            subset: Subset to append.

        Returns:
            int: Offset of the new subset.

        Raises:
            DuplicateSubsetError: If the subset is already present.
            ValueError: If a State already references this broker.
        """
        if self._frozen:
            raise ValueError("Cannot add subsets to a broker that is referenced by a State.")
        if subset in self._offsets:
            raise DuplicateSubsetError(f"Coordinate subset [{subset.name}] is already part of the broker.")
        offset = self._size
        self._subsets.append(subset)
        self._offsets[subset] = offset
        self._size += subset.size
        return offset

    def freeze(self) -> None:
        self._frozen = True

    @property
    def total_size(self) -> int:
        return self._size

    def get_number_of_coordinates(self) -> int:
        return self._size

    def get_number_of_subsets(self) -> int:
        return len(self._subsets)

    def get_subsets(self) -> tuple[CoordinateSubset, ...]:
        return tuple(self._subsets)

    def has_subset(self, subset: CoordinateSubset) -> bool:
        return subset in self._offsets

    def offset_of(self, subset: CoordinateSubset) -> int:
        """Return the offset of ``subset``.

        Raises:
            UnknownSubsetError: If the subset is not part of the broker.
        """
        try:
            return self._offsets[subset]
        except KeyError:
            raise UnknownSubsetError(f"Coordinate subset [{subset.name}] is not part of the broker.") from None

    def size_of(self, subset: CoordinateSubset) -> int:
        """Return the component count of ``subset`` (checking membership)."""
        self.offset_of(subset)
        return subset.size

    def extract_coordinate(self, coordinates: ArrayLike, subset: CoordinateSubset) -> Array:
        """Slice the components of ``subset`` out of a full coordinate vector."""
        offset = self.offset_of(subset)
        return jnp.asarray(coordinates)[offset:offset + subset.size]

    def extract_coordinates(self, coordinates: ArrayLike, subsets: Sequence[CoordinateSubset]) -> Array:
        """Concatenate the components of several subsets, in the given order."""
        if len(subsets) == 0:
            return jnp.zeros(0, dtype=jnp.asarray(coordinates).dtype)
        return jnp.concatenate([self.extract_coordinate(coordinates, s) for s in subsets])

    def __iter__(self) -> Iterator[CoordinateSubset]:
        return iter(tuple(self._subsets))

    def __len__(self) -> int:
        return len(self._subsets)

    def __contains__(self, subset) -> bool:
        return subset in self._offsets

    def __eq__(self, other):
        if not isinstance(other, CoordinateBroker):
            return NotImplemented
        return self._subsets == other._subsets

    def __ne__(self, other):
        if not isinstance(other, CoordinateBroker):
            return NotImplemented
        return self._subsets != other._subsets

    __hash__ = None

    def __repr__(self):
        names = ", ".join(s.name for s in self._subsets)
        return f"CoordinateBroker([{names}], size={self._size})"
