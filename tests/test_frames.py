"""Tests for the propjax.frames package."""

import jax.numpy as jnp
import pytest

from propjax.constants import OMEGA_EARTH
from propjax.frames import (
    DynamicProvider,
    Frame,
    LocalOrbitalFrameDirection,
    LocalOrbitalFrameType,
    StaticProvider,
    Transform,
    rotation_local_to_frame,
    state_gcrf_to_itrf,
    state_itrf_to_gcrf,
)
from propjax.instant import Instant
from propjax.rotations import Rz

_INSTANT = Instant(2024, 3, 15, 6, 0, 0.0)
_R = jnp.array([7000e3, 1000e3, 500e3])
_V = jnp.array([-1000.0, 7000.0, 1000.0])


@pytest.fixture
def offset_frame():
    """A user frame translated by 1000 km along x from GCRF."""
    transform = Transform(
        translation=jnp.array([1000e3, 0.0, 0.0]),
        velocity=jnp.zeros(3),
        orientation=jnp.eye(3),
        angular_velocity=jnp.zeros(3),
    )
    frame = Frame.construct("OffsetTest", Frame.GCRF(), StaticProvider(transform), is_quasi_inertial=True)
    yield frame
    Frame.destruct("OffsetTest")


# ──────────────────────────────────────────────
# Transform
# ──────────────────────────────────────────────


class TestTransform:
    def test_identity(self):
        t = Transform.identity()
        assert jnp.allclose(t.apply_to_position(_R), _R)
        assert jnp.allclose(t.apply_to_velocity(_R, _V), _V)

    def test_passive_rotation(self):
        t = Transform.passive(Rz(jnp.pi / 2))
        assert jnp.allclose(t.apply_to_position(jnp.array([1.0, 0.0, 0.0])), jnp.array([0.0, -1.0, 0.0]), atol=1e-12)

    def test_inverse_roundtrip(self):
        """A transform followed by its inverse is the identity."""
        t = Transform(
            translation=jnp.array([10.0, -5.0, 2.0]),
            velocity=jnp.array([0.1, 0.2, -0.3]),
            orientation=Rz(0.3),
            angular_velocity=jnp.array([0.0, 0.0, 1e-3]),
        )
        inv = t.inverse()
        r1 = t.apply_to_position(_R)
        v1 = t.apply_to_velocity(_R, _V)
        assert jnp.allclose(inv.apply_to_position(r1), _R, rtol=1e-12)
        assert jnp.allclose(inv.apply_to_velocity(r1, v1), _V, rtol=1e-10)

    def test_then_composes(self):
        """``a.then(b)`` applies ``a`` first and ``b`` second."""
        a = Transform.passive(Rz(0.2), jnp.array([0.0, 0.0, 1e-4]))
        b = Transform.passive(Rz(0.5))
        composite = a.then(b)
        expected_r = b.apply_to_position(a.apply_to_position(_R))
        expected_v = b.apply_to_velocity(a.apply_to_position(_R), a.apply_to_velocity(_R, _V))
        assert jnp.allclose(composite.apply_to_position(_R), expected_r, rtol=1e-12)
        assert jnp.allclose(composite.apply_to_velocity(_R, _V), expected_v, rtol=1e-10)

    def test_apply_to_vector_ignores_translation(self):
        t = Transform(
            translation=jnp.array([1.0, 2.0, 3.0]),
            velocity=jnp.zeros(3),
            orientation=jnp.eye(3),
            angular_velocity=jnp.zeros(3),
        )
        assert jnp.allclose(t.apply_to_vector(_V), _V)


# ──────────────────────────────────────────────
# Frame registry
# ──────────────────────────────────────────────


class TestFrame:
    def test_builtins(self):
        assert Frame.GCRF().name == "GCRF"
        assert Frame.GCRF().is_quasi_inertial()
        assert Frame.ITRF().get_parent() == Frame.GCRF()
        assert not Frame.ITRF().is_quasi_inertial()

    def test_with_name(self):
        assert Frame.with_name("GCRF") is Frame.GCRF()
        assert Frame.with_name("ITRF") is Frame.ITRF()

    def test_with_unknown_name_raises(self):
        with pytest.raises(KeyError):
            Frame.with_name("NoSuchFrame")

    def test_construct_and_destruct(self, offset_frame):
        assert Frame.exists("OffsetTest")
        assert Frame.with_name("OffsetTest") == offset_frame

    def test_construct_duplicate_raises(self, offset_frame):
        with pytest.raises(ValueError, match="already exists"):
            Frame.construct("OffsetTest", Frame.GCRF(), StaticProvider(Transform.identity()))

    def test_destruct_builtin_raises(self):
        with pytest.raises(ValueError):
            Frame.destruct("GCRF")

    def test_equality_by_name(self):
        assert Frame.GCRF() == Frame.with_name("GCRF")
        assert Frame.GCRF() != Frame.ITRF()
        assert hash(Frame.GCRF()) == hash("GCRF")

    def test_transform_to_self(self):
        t = Frame.ITRF().get_transform_to(Frame.ITRF(), _INSTANT)
        assert jnp.allclose(t.orientation, jnp.eye(3))

    def test_offset_frame_transform(self, offset_frame):
        t = Frame.GCRF().get_transform_to(offset_frame, _INSTANT)
        assert jnp.allclose(t.apply_to_position(_R), _R - jnp.array([1000e3, 0.0, 0.0]))

    def test_transform_between_siblings(self, offset_frame):
        """ITRF to the offset frame passes through GCRF."""
        to_gcrf = Frame.ITRF().get_transform_to(Frame.GCRF(), _INSTANT)
        direct = Frame.ITRF().get_transform_to(offset_frame, _INSTANT)
        r_gcrf = to_gcrf.apply_to_position(_R)
        assert jnp.allclose(direct.apply_to_position(_R), r_gcrf - jnp.array([1000e3, 0.0, 0.0]), rtol=1e-12)

    def test_dynamic_provider(self):
        provider = DynamicProvider(lambda instant: Transform.passive(Rz(1.0)))
        frame = Frame.construct("DynamicTest", Frame.GCRF(), provider)
        try:
            t = Frame.GCRF().get_transform_to(frame, _INSTANT)
            assert jnp.allclose(t.orientation, Rz(1.0))
        finally:
            Frame.destruct("DynamicTest")


# ──────────────────────────────────────────────
# GCRF / ITRF
# ──────────────────────────────────────────────


class TestEarthRotation:
    def test_gcrf_to_itrf_position(self):
        x = jnp.concatenate([_R, _V])
        x_itrf = state_gcrf_to_itrf(_INSTANT, x)
        assert jnp.allclose(x_itrf[:3], Rz(_INSTANT.gmst()) @ _R)

    def test_gcrf_to_itrf_velocity(self):
        """ITRF velocity removes the Earth rotation term."""
        x = jnp.concatenate([_R, _V])
        x_itrf = state_gcrf_to_itrf(_INSTANT, x)
        r_itrf = x_itrf[:3]
        omega = jnp.array([0.0, 0.0, OMEGA_EARTH])
        expected = Rz(_INSTANT.gmst()) @ _V - jnp.cross(omega, r_itrf)
        assert jnp.allclose(x_itrf[3:], expected)

    def test_roundtrip(self):
        x = jnp.concatenate([_R, _V])
        back = state_itrf_to_gcrf(_INSTANT, state_gcrf_to_itrf(_INSTANT, x))
        assert jnp.allclose(back, x, rtol=1e-12, atol=1e-6)

    def test_preserves_radius(self):
        x_itrf = state_gcrf_to_itrf(_INSTANT, jnp.concatenate([_R, _V]))
        assert float(jnp.linalg.norm(x_itrf[:3])) == pytest.approx(float(jnp.linalg.norm(_R)), rel=1e-12)


# ──────────────────────────────────────────────
# Local orbital frames
# ──────────────────────────────────────────────


class TestLocalOrbitalFrame:
    r = jnp.array([7000e3, 0.0, 0.0])
    v = jnp.array([0.0, 7500.0, 0.0])

    def test_qsw_axes(self):
        R = rotation_local_to_frame(LocalOrbitalFrameType.QSW, self.r, self.v)
        assert jnp.allclose(R[:, 0], jnp.array([1.0, 0.0, 0.0]))
        assert jnp.allclose(R[:, 1], jnp.array([0.0, 1.0, 0.0]))
        assert jnp.allclose(R[:, 2], jnp.array([0.0, 0.0, 1.0]))

    def test_vnc_axes(self):
        R = rotation_local_to_frame(LocalOrbitalFrameType.VNC, self.r, self.v)
        assert jnp.allclose(R[:, 0], jnp.array([0.0, 1.0, 0.0]))
        assert jnp.allclose(R[:, 1], jnp.array([0.0, 0.0, 1.0]))
        assert jnp.allclose(R[:, 2], jnp.array([1.0, 0.0, 0.0]))

    def test_lvlh_axes(self):
        R = rotation_local_to_frame(LocalOrbitalFrameType.LVLH, self.r, self.v)
        assert jnp.allclose(R[:, 2], jnp.array([-1.0, 0.0, 0.0]))
        assert jnp.allclose(R[:, 1], jnp.array([0.0, 0.0, -1.0]))

    @pytest.mark.parametrize("frame_type", list(LocalOrbitalFrameType))
    def test_orthonormal(self, frame_type):
        R = rotation_local_to_frame(frame_type, jnp.array([6800e3, 1200e3, 300e3]), jnp.array([-900.0, 7400.0, 900.0]))
        assert jnp.allclose(R.T @ R, jnp.eye(3), atol=1e-12)
        assert float(jnp.linalg.det(R)) == pytest.approx(1.0)

    def test_direction_normalized(self):
        d = LocalOrbitalFrameDirection.create([2.0, 0.0, 0.0], LocalOrbitalFrameType.VNC)
        assert jnp.allclose(d.value, jnp.array([1.0, 0.0, 0.0]))

    def test_direction_in_frame(self):
        d = LocalOrbitalFrameDirection.create([1.0, 0.0, 0.0], LocalOrbitalFrameType.VNC)
        assert jnp.allclose(d.in_frame(self.r, self.v), jnp.array([0.0, 1.0, 0.0]))

    def test_zero_direction_raises(self):
        with pytest.raises(ValueError, match="non-zero"):
            LocalOrbitalFrameDirection.create([0.0, 0.0, 0.0], LocalOrbitalFrameType.VNC)

    def test_bad_shape_raises(self):
        with pytest.raises(ValueError, match="shape"):
            LocalOrbitalFrameDirection.create([1.0, 0.0], LocalOrbitalFrameType.VNC)
