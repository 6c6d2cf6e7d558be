"""Tests for coordinate subsets and the coordinate broker."""

import jax.numpy as jnp
import pytest

from propjax.errors import DuplicateSubsetError, UnknownSubsetError
from propjax.state import (
    AngularVelocity,
    AttitudeQuaternion,
    CartesianPosition,
    CartesianVelocity,
    CoordinateBroker,
    CoordinateSubset,
)


# ──────────────────────────────────────────────
# CoordinateSubset
# ──────────────────────────────────────────────


class TestCoordinateSubset:
    def test_builtin_sizes(self):
        assert CartesianPosition().size == 3
        assert CartesianVelocity().size == 3
        assert AttitudeQuaternion().size == 4
        assert AngularVelocity().size == 3
        assert CoordinateSubset.mass().size == 1
        assert CoordinateSubset.surface_area().size == 1
        assert CoordinateSubset.drag_coefficient().size == 1

    def test_builtin_names(self):
        assert CartesianPosition().name == "CARTESIAN_POSITION"
        assert CartesianVelocity().get_name() == "CARTESIAN_VELOCITY"
        assert CoordinateSubset.mass().name == "MASS"

    def test_equality_by_name_and_size(self):
        """Two subsets with the same name and size are the same subset."""
        assert CoordinateSubset("FUEL", 1) == CoordinateSubset("FUEL", 1)
        assert CoordinateSubset("FUEL", 1) != CoordinateSubset("FUEL", 2)
        assert CoordinateSubset.mass() == CoordinateSubset("MASS", 1)
        assert hash(CoordinateSubset.mass()) == hash(CoordinateSubset("MASS", 1))

    def test_velocity_references_position(self):
        assert CartesianVelocity().get_position() == CartesianPosition()

    def test_empty_name_raises(self):
        with pytest.raises(ValueError, match="non-empty"):
            CoordinateSubset("", 1)

    def test_zero_size_raises(self):
        with pytest.raises(ValueError, match="size"):
            CoordinateSubset("BAD", 0)

    def test_repr(self):
        assert repr(CoordinateSubset.mass()) == "CoordinateSubset(name='MASS', size=1)"


# ──────────────────────────────────────────────
# CoordinateBroker
# ──────────────────────────────────────────────


class TestCoordinateBroker:
    def test_empty(self):
        broker = CoordinateBroker()
        assert broker.total_size == 0
        assert len(broker) == 0
        assert not broker

    def test_offsets_follow_insertion_order(self):
        broker = CoordinateBroker()
        assert broker.add_subset(CartesianPosition()) == 0
        assert broker.add_subset(CartesianVelocity()) == 3
        assert broker.add_subset(CoordinateSubset.mass()) == 6
        assert broker.total_size == 7
        assert broker.get_number_of_subsets() == 3

    def test_construct_from_list(self):
        broker = CoordinateBroker([CoordinateSubset.mass(), CartesianPosition()])
        assert broker.offset_of(CoordinateSubset.mass()) == 0
        assert broker.offset_of(CartesianPosition()) == 1
        assert broker.get_subsets() == (CoordinateSubset.mass(), CartesianPosition())

    def test_duplicate_raises(self):
        broker = CoordinateBroker([CartesianPosition()])
        with pytest.raises(DuplicateSubsetError):
            broker.add_subset(CartesianPosition())

    def test_unknown_subset_raises(self):
        broker = CoordinateBroker([CartesianPosition()])
        with pytest.raises(UnknownSubsetError):
            broker.offset_of(CartesianVelocity())

    def test_unknown_subset_is_key_error(self):
        broker = CoordinateBroker()
        with pytest.raises(KeyError):
            broker.offset_of(CoordinateSubset.mass())

    def test_frozen_rejects_additions(self):
        broker = CoordinateBroker([CartesianPosition()])
        broker.freeze()
        with pytest.raises(ValueError, match="referenced"):
            broker.add_subset(CartesianVelocity())

    def test_has_subset(self):
        broker = CoordinateBroker([CartesianPosition()])
        assert broker.has_subset(CartesianPosition())
        assert CartesianPosition() in broker
        assert not broker.has_subset(CartesianVelocity())

    def test_extract_coordinate(self):
        broker = CoordinateBroker([CartesianPosition(), CartesianVelocity(), CoordinateSubset.mass()])
        x = jnp.arange(7.0)
        assert jnp.allclose(broker.extract_coordinate(x, CartesianVelocity()), jnp.array([3.0, 4.0, 5.0]))
        assert jnp.allclose(broker.extract_coordinate(x, CoordinateSubset.mass()), jnp.array([6.0]))

    def test_extract_coordinates_in_requested_order(self):
        broker = CoordinateBroker([CartesianPosition(), CartesianVelocity(), CoordinateSubset.mass()])
        x = jnp.arange(7.0)
        out = broker.extract_coordinates(x, [CoordinateSubset.mass(), CartesianPosition()])
        assert jnp.allclose(out, jnp.array([6.0, 0.0, 1.0, 2.0]))

    def test_extract_no_subsets(self):
        broker = CoordinateBroker([CartesianPosition()])
        assert broker.extract_coordinates(jnp.zeros(3), []).shape == (0,)

    def test_equality(self):
        a = CoordinateBroker([CartesianPosition(), CartesianVelocity()])
        b = CoordinateBroker([CartesianPosition(), CartesianVelocity()])
        c = CoordinateBroker([CartesianVelocity(), CartesianPosition()])
        assert a == b
        assert a != c

    def test_iteration(self):
        subsets = [CartesianPosition(), CartesianVelocity()]
        assert list(CoordinateBroker(subsets)) == subsets

    def test_repr(self):
        broker = CoordinateBroker([CartesianPosition(), CoordinateSubset.mass()])
        assert repr(broker) == "CoordinateBroker([CARTESIAN_POSITION, MASS], size=4)"
