"""Base class for force and effect models contributing to the state derivative.

A :class:`Dynamics` declares the coordinate subsets it *reads* and the
subsets it *writes*.  Subclasses implement :meth:`Dynamics.compute_contribution`
on the concatenation of their read subsets and return the concatenation
of their write-subset derivatives.  :meth:`Dynamics.contribution` scatters
that result into a full-length derivative laid out by the caller's
broker, leaving zeros for subsets the model does not touch.

The set of models is open: any subclass plugs into a
:class:`~propjax.Propagator` without changes to the core.

Contributions are evaluated inside compiled integration steps, so
``compute_contribution`` must only use JAX operations on its array
inputs.  Python-level branching on constructor parameters is resolved at
trace time.
"""

from __future__ import annotations

import abc
from typing import Sequence

import jax.numpy as jnp
from jax import Array

from propjax.errors import FrameMismatchError
from propjax.frames import Frame
from propjax.instant import Instant
from propjax.state import CoordinateBroker, CoordinateSubset


class Dynamics(abc.ABC):
    """Abstract force/effect model.

    Args:
        name: Human-readable model name.
    """

    def __init__(self, name: str) -> None:
        if not name:
            raise ValueError("Dynamics name must be a non-empty string.")
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def get_name(self) -> str:
        return self._name

    def is_defined(self) -> bool:
        return True

    @property
    @abc.abstractmethod
    def read_subsets(self) -> tuple[CoordinateSubset, ...]:
        """Subsets whose values the model needs, in the order it reads them."""

    @property
    @abc.abstractmethod
    def write_subsets(self) -> tuple[CoordinateSubset, ...]:
        """Subsets whose derivative the model contributes to."""

    @property
    def optional_read_subsets(self) -> tuple[CoordinateSubset, ...]:
        """Subsets the model reads when the state carries them.

        A propagator integrates these alongside the required layout when the
        seed holds them; otherwise the model falls back to its own values.
        """
        return ()

    @abc.abstractmethod
    def compute_contribution(self, instant: Instant, coordinates: Array, frame: Frame) -> Array:
        """Return the derivative contribution for the write subsets.

        Args:
            instant: Evaluation instant (possibly traced).
            coordinates: Concatenated values of :attr:`read_subsets`.
            frame: Frame the coordinates are expressed in.

        Returns:
            jax.Array: Concatenated derivatives of :attr:`write_subsets`.
        """

    def contribution(
        self,
        instant: Instant,
        coordinates: Array,
        frame: Frame,
        broker: CoordinateBroker,
    ) -> Array:
        """Return this model's derivative laid out by ``broker``.

        Args:
            instant: Evaluation instant.
            coordinates: Full coordinate vector laid out by ``broker``.
            frame: Frame of the coordinates.
            broker: Layout of ``coordinates`` and of the result.

        Returns:
            jax.Array: Derivative vector of length ``broker.total_size``,
                zero outside :attr:`write_subsets`.

        Raises:
            UnknownSubsetError: If ``broker`` lacks a read or write subset.
        """
        coordinates = jnp.asarray(coordinates)
        read_coordinates = broker.extract_coordinates(coordinates, self.read_subsets)
        write_values = self.compute_contribution(instant, read_coordinates, frame)

        derivative = jnp.zeros(broker.total_size, dtype=coordinates.dtype)
        cursor = 0
        for subset in self.write_subsets:
            offset = broker.offset_of(subset)
            derivative = derivative.at[offset:offset + subset.size].add(
                write_values[cursor:cursor + subset.size]
            )
            cursor += subset.size
        return derivative

    def describe(self) -> str:
        reads = ", ".join(s.name for s in self.read_subsets)
        writes = ", ".join(s.name for s in self.write_subsets)
        return f"{type(self).__name__} [{self._name}]\n  Reads:  {reads}\n  Writes: {writes}"

    def __str__(self):
        return self.describe()

    def __repr__(self):
        return f"{type(self).__name__}(name={self._name!r})"


def total_derivative(
    dynamics: Sequence[Dynamics],
    instant: Instant,
    coordinates: Array,
    frame: Frame,
    broker: CoordinateBroker,
) -> Array:
    """Sum the contributions of every model in ``dynamics``.

    Args:
        dynamics: Enabled models.
        instant: Evaluation instant.
        coordinates: Full coordinate vector laid out by ``broker``.
        frame: Frame of the coordinates.
        broker: Layout of ``coordinates``.

    Returns:
        jax.Array: Total time derivative of ``coordinates``.
    """
    coordinates = jnp.asarray(coordinates)
    derivative = jnp.zeros(broker.total_size, dtype=coordinates.dtype)
    for model in dynamics:
        derivative = derivative + model.contribution(instant, coordinates, frame, broker)
    return derivative


def require_gcrf(frame: Frame, model: Dynamics) -> None:
    """Raise unless ``frame`` is GCRF, the only frame ``model`` is written for.

    Raises:
        FrameMismatchError: If ``frame`` is any other frame.
    """
    if frame != Frame.GCRF():
        raise FrameMismatchError(f"{model.name} is evaluated in [GCRF], got coordinates in [{frame}].")
