"""Tests for revolution numbering and pass segmentation."""

import math

import jax.numpy as jnp
import pytest

from propjax.constants import GM_EARTH
from propjax.dynamics import dynamics_from_config
from propjax.errors import UndefinedOperandError
from propjax.frames import Frame
from propjax.instant import Instant
from propjax.numerical_solver import NumericalSolver
from propjax.orbit import Orbit, Pass, PassType, Propagated, offset_revolution_number
from propjax.propagator import Propagator
from propjax.state import CartesianPosition, CartesianVelocity, State

_EPOCH = Instant(2024, 1, 1, 0, 0, 0.0)
_PV = [CartesianPosition(), CartesianVelocity()]
_SMA = 7.0e6
_MEAN_MOTION = math.sqrt(GM_EARTH / _SMA**3)
_PERIOD = 2.0 * math.pi / _MEAN_MOTION


class _CircularModel:
    """Analytic circular orbit; argument of latitude ``phase`` at the epoch."""

    def __init__(self, inclination=math.radians(45.0), phase=0.0, revolution_number_at_epoch=1):
        self._inclination = inclination
        self._phase = phase
        self._revolution_number_at_epoch = revolution_number_at_epoch

    def get_epoch(self):
        return _EPOCH

    def get_revolution_number_at_epoch(self):
        return self._revolution_number_at_epoch

    def calculate_state_at(self, instant):
        u = self._phase + _MEAN_MOTION * float(instant - _EPOCH)
        ci, si = math.cos(self._inclination), math.sin(self._inclination)
        speed = _SMA * _MEAN_MOTION
        position = [_SMA * math.cos(u), _SMA * math.sin(u) * ci, _SMA * math.sin(u) * si]
        velocity = [-speed * math.sin(u), speed * math.cos(u) * ci, speed * math.cos(u) * si]
        return State(instant, jnp.array(position + velocity), Frame.GCRF(), _PV)


def _seconds(instant):
    return float(instant - _EPOCH)


@pytest.fixture
def orbit():
    return Orbit(_CircularModel())


@pytest.fixture(scope="module")
def propagated():
    """Two-body trajectory seeded exactly at an ascending node."""
    seed = State(
        _EPOCH,
        jnp.array([7.0e6, 0.0, 0.0, 0.0, 5335.865450622126, 5335.865450622126]),
        Frame.GCRF(),
        _PV,
    )
    solver = NumericalSolver(time_step=10.0, relative_tolerance=1e-10, absolute_tolerance=1e-6)
    return Propagated(Propagator(solver, dynamics_from_config()), seed)


# ──────────────────────────────────────────────
# Revolution number arithmetic
# ──────────────────────────────────────────────


class TestOffsetRevolutionNumber:
    @pytest.mark.parametrize(
        "revolution_number, crossings, expected",
        [
            (1, 0, 1),
            (1, 2, 3),
            (1, -1, -1),
            (2, -2, -1),
            (-1, 1, 1),
            (-2, 2, 1),
            (-3, -1, -4),
            (5, -7, -3),
        ],
    )
    def test_zero_is_skipped(self, revolution_number, crossings, expected):
        assert offset_revolution_number(revolution_number, crossings) == expected


# ──────────────────────────────────────────────
# Orbit construction
# ──────────────────────────────────────────────


class TestOrbitSetup:
    def test_period_estimate(self, orbit):
        assert orbit.get_period_estimate() == pytest.approx(_PERIOD, rel=1e-9)

    def test_epoch_passthrough(self, orbit):
        assert orbit.get_epoch() == _EPOCH
        assert orbit.get_revolution_number_at_epoch() == 1
        assert orbit.get_celestial_body().name == "Earth"

    def test_equatorial_orbit_rejected(self):
        """Revolutions are undefined without an ascending node."""
        with pytest.raises(ValueError):
            Orbit(_CircularModel(inclination=0.0))

    def test_undefined_model(self):
        with pytest.raises(UndefinedOperandError):
            Orbit(None)

    @pytest.mark.parametrize("kwargs", [{"step": 0.0}, {"tolerance": -1.0}, {"search_horizon": 0.0}])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            Orbit(_CircularModel(), **kwargs)


# ──────────────────────────────────────────────
# Revolution numbers
# ──────────────────────────────────────────────


class TestRevolutionNumber:
    def test_two_body_scenario(self, propagated):
        """Seed at an ascending node, period ~5828 s."""
        assert propagated.calculate_revolution_number_at(_EPOCH) == 1
        assert propagated.calculate_revolution_number_at(_EPOCH - 7200.0) == -2
        assert propagated.calculate_revolution_number_at(_EPOCH + 3600.0) == 1
        assert propagated.calculate_revolution_number_at(_EPOCH + 7200.0) == 2

    def test_just_before_epoch_node(self, orbit):
        """The node at the epoch begins revolution 1, so just before it is -1."""
        assert orbit.calculate_revolution_number_at(_EPOCH - 10.0) == -1

    def test_several_revolutions_forward(self, orbit):
        assert orbit.calculate_revolution_number_at(_EPOCH + 3.5 * _PERIOD) == 4

    def test_several_revolutions_backward(self, orbit):
        assert orbit.calculate_revolution_number_at(_EPOCH - 2.5 * _PERIOD) == -3

    def test_epoch_mid_revolution(self):
        """Epoch at the south point: the next node is a quarter period later."""
        orbit = Orbit(_CircularModel(phase=-0.5 * math.pi))
        assert orbit.calculate_revolution_number_at(_EPOCH + 0.2 * _PERIOD) == 1
        assert orbit.calculate_revolution_number_at(_EPOCH + 0.3 * _PERIOD) == 2
        assert orbit.calculate_revolution_number_at(_EPOCH - 0.7 * _PERIOD) == 1
        assert orbit.calculate_revolution_number_at(_EPOCH - 0.8 * _PERIOD) == -1

    def test_negative_epoch_revolution(self):
        orbit = Orbit(_CircularModel(phase=1.0, revolution_number_at_epoch=-1))
        assert orbit.calculate_revolution_number_at(_EPOCH + _PERIOD) == 1

    def test_undefined_instant(self, orbit):
        with pytest.raises(UndefinedOperandError):
            orbit.calculate_revolution_number_at(None)


# ──────────────────────────────────────────────
# Passes
# ──────────────────────────────────────────────


class TestPassAt:
    def test_complete_pass(self, orbit):
        pass_ = orbit.get_pass_at(_EPOCH + 1000.0)
        assert pass_.get_type() == PassType.COMPLETE
        assert pass_.is_complete()
        assert pass_.get_revolution_number() == 1
        assert _seconds(pass_.get_start_instant()) == pytest.approx(0.0, abs=1e-3)
        assert _seconds(pass_.get_end_instant()) == pytest.approx(_PERIOD, abs=1e-3)
        assert pass_.get_duration() == pytest.approx(_PERIOD, abs=1e-3)
        assert pass_.contains(_EPOCH + 1000.0)

    def test_event_instants(self, orbit):
        pass_ = orbit.get_pass_at(_EPOCH + 1000.0)
        assert _seconds(pass_.get_instant_at_north_point()) == pytest.approx(0.25 * _PERIOD, abs=1e-3)
        assert _seconds(pass_.get_instant_at_descending_node()) == pytest.approx(0.5 * _PERIOD, abs=1e-3)
        assert _seconds(pass_.get_instant_at_south_point()) == pytest.approx(0.75 * _PERIOD, abs=1e-3)

    def test_events_are_ordered(self, orbit):
        pass_ = orbit.get_pass_at(_EPOCH + 2.3 * _PERIOD)
        events = [
            pass_.get_instant_at_ascending_node(),
            pass_.get_instant_at_north_point(),
            pass_.get_instant_at_descending_node(),
            pass_.get_instant_at_south_point(),
            pass_.get_instant_at_pass_break(),
        ]
        offsets = [_seconds(e) for e in events]
        assert offsets == sorted(offsets)
        assert pass_.get_revolution_number() == 3

    def test_pass_at_node_begins_there(self, orbit):
        """A crossing instant belongs to the pass it begins."""
        pass_ = orbit.get_pass_at(_EPOCH)
        assert pass_.get_revolution_number() == 1
        assert _seconds(pass_.get_start_instant()) == pytest.approx(0.0, abs=1e-3)

    def test_pass_before_epoch(self, orbit):
        pass_ = orbit.get_pass_at(_EPOCH - 1000.0)
        assert pass_.get_revolution_number() == -1
        assert _seconds(pass_.get_start_instant()) == pytest.approx(-_PERIOD, abs=1e-3)
        assert _seconds(pass_.get_end_instant()) == pytest.approx(0.0, abs=1e-3)

    def test_partial_pass(self):
        """Nodes beyond the search horizon leave the pass partial."""
        orbit = Orbit(_CircularModel(), search_horizon=600.0)
        pass_ = orbit.get_pass_at(_EPOCH + 1000.0)
        assert pass_.get_type() == PassType.PARTIAL
        assert pass_.is_defined()
        assert not pass_.is_complete()
        assert pass_.get_start_instant() is None
        assert pass_.get_end_instant() is None
        assert pass_.get_duration() is None
        assert pass_.get_revolution_number() == 1

    def test_propagated_pass(self, propagated):
        orbit = Orbit(propagated)
        pass_ = orbit.get_pass_at(_EPOCH + 3600.0)
        assert pass_.is_complete()
        assert pass_.get_revolution_number() == 1
        assert _seconds(pass_.get_start_instant()) == pytest.approx(0.0, abs=1e-3)
        assert pass_.get_duration() == pytest.approx(orbit.get_period_estimate(), abs=1.0)


class TestPassWithRevolutionNumber:
    def test_epoch_revolution(self, orbit):
        pass_ = orbit.get_pass_with_revolution_number(1)
        assert _seconds(pass_.get_start_instant()) == pytest.approx(0.0, abs=1e-3)

    def test_future_revolution(self, orbit):
        pass_ = orbit.get_pass_with_revolution_number(3)
        assert pass_.get_revolution_number() == 3
        assert pass_.is_complete()
        assert _seconds(pass_.get_start_instant()) == pytest.approx(2.0 * _PERIOD, abs=1e-3)

    def test_past_revolution(self, orbit):
        pass_ = orbit.get_pass_with_revolution_number(-1)
        assert pass_.get_revolution_number() == -1
        assert _seconds(pass_.get_start_instant()) == pytest.approx(-_PERIOD, abs=1e-3)
        assert _seconds(pass_.get_end_instant()) == pytest.approx(0.0, abs=1e-3)

    def test_consistent_with_pass_at(self, orbit):
        by_number = orbit.get_pass_with_revolution_number(2)
        by_instant = orbit.get_pass_at(_EPOCH + 1.5 * _PERIOD)
        assert by_number.get_revolution_number() == by_instant.get_revolution_number()
        assert _seconds(by_number.get_start_instant()) == pytest.approx(
            _seconds(by_instant.get_start_instant()), abs=1e-3
        )

    def test_revolution_zero(self, orbit):
        with pytest.raises(ValueError):
            orbit.get_pass_with_revolution_number(0)

    def test_unreachable_revolution(self):
        orbit = Orbit(_CircularModel(), search_horizon=600.0)
        pass_ = orbit.get_pass_with_revolution_number(3)
        assert pass_.get_type() == PassType.PARTIAL
        assert pass_.get_revolution_number() == 3
        assert pass_.get_start_instant() is None


class TestPassesWithinInterval:
    def test_consecutive_passes(self, orbit):
        passes = orbit.get_passes_within_interval(_EPOCH + 100.0, _EPOCH + 2.5 * _PERIOD)
        assert [p.get_revolution_number() for p in passes] == [1, 2, 3]
        for previous, current in zip(passes, passes[1:]):
            assert current.get_start_instant() is previous.get_end_instant()
        assert all(p.is_complete() for p in passes)

    def test_crossing_zero(self, orbit):
        passes = orbit.get_passes_within_interval(_EPOCH - 1.5 * _PERIOD, _EPOCH + 0.5 * _PERIOD)
        assert [p.get_revolution_number() for p in passes] == [-2, -1, 1]

    def test_single_instant(self, orbit):
        passes = orbit.get_passes_within_interval(_EPOCH + 100.0, _EPOCH + 100.0)
        assert len(passes) == 1

    def test_end_before_start(self, orbit):
        with pytest.raises(ValueError):
            orbit.get_passes_within_interval(_EPOCH + 100.0, _EPOCH)


# ──────────────────────────────────────────────
# Pass value type
# ──────────────────────────────────────────────


class TestPass:
    def test_undefined(self):
        pass_ = Pass.undefined()
        assert not pass_.is_defined()
        assert pass_.get_type() == PassType.UNDEFINED
        assert pass_.get_revolution_number() is None
        assert not pass_.contains(_EPOCH)
        assert pass_ != Pass.undefined()

    def test_revolution_zero(self):
        with pytest.raises(ValueError):
            Pass(PassType.COMPLETE, 0)

    def test_contains_half_open(self):
        pass_ = Pass(PassType.PARTIAL, 2, _EPOCH, None, None, None, _EPOCH + 100.0)
        assert pass_.contains(_EPOCH)
        assert pass_.contains(_EPOCH + 50.0)
        assert not pass_.contains(_EPOCH + 100.0)
        assert not pass_.contains(_EPOCH - 1.0)
        assert pass_.get_duration() == pytest.approx(100.0)

    def test_equality(self):
        a = Pass(PassType.PARTIAL, 2, _EPOCH, None, None, None, _EPOCH + 100.0)
        b = Pass(PassType.PARTIAL, 2, _EPOCH, None, None, None, _EPOCH + 100.0)
        c = Pass(PassType.PARTIAL, 3, _EPOCH, None, None, None, _EPOCH + 100.0)
        assert a == b
        assert a != c

    def test_describe(self):
        pass_ = Pass(PassType.PARTIAL, 2, _EPOCH)
        text = pass_.describe()
        assert "Revolution number: 2" in text
        assert "Pass break:        Undefined" in text
        assert str(PassType.COMPLETE) == "Complete"
