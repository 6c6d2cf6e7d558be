"""Named reference frames organised as a tree rooted at GCRF.

Every frame except the root has a parent and a :class:`FrameProvider`
returning the parent-to-frame :class:`~propjax.frames.transform.Transform`
at a given instant.  Frames are registered by name; two frames are equal
when their names are equal, so a frame can be looked up again with
:meth:`Frame.with_name`.

Two frames are built in:

- ``Frame.GCRF()``: quasi-inertial root, origin at the Earth's centre.
- ``Frame.ITRF()``: Earth-fixed, rotating about the GCRF z-axis at GMST.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from propjax.frames.earth import transform_gcrf_to_itrf
from propjax.frames.transform import Transform
from propjax.instant import Instant


@runtime_checkable
class FrameProvider(Protocol):
    """Source of the transform from a frame's parent to the frame itself."""

    def get_transform_at(self, instant: Instant) -> Transform:
        ...


class StaticProvider:
    """Provider returning the same transform at every instant."""

    def __init__(self, transform: Transform) -> None:
        self._transform = transform

    def get_transform_at(self, instant: Instant) -> Transform:
        return self._transform


class DynamicProvider:
    """Provider wrapping a plain ``instant -> Transform`` function."""

    def __init__(self, generator: Callable[[Instant], Transform]) -> None:
        self._generator = generator

    def get_transform_at(self, instant: Instant) -> Transform:
        return self._generator(instant)


_REGISTRY: dict[str, Frame] = {}


class Frame:
    """A named reference frame.

    Use the class methods rather than the constructor:

    ```python
    from propjax.frames import Frame, StaticProvider, Transform
    gcrf = Frame.GCRF()
    body = Frame.construct("Body", Frame.GCRF(), StaticProvider(Transform.identity()))
    ```

    Args:
        name: Unique frame name.
        is_quasi_inertial: Whether the frame can be treated as inertial.
        parent: Parent frame, ``None`` for the root.
        provider: Parent-to-frame transform provider, ``None`` for the root.
    """

    __slots__ = ("_name", "_is_quasi_inertial", "_parent", "_provider")

    def __init__(
        self,
        name: str,
        is_quasi_inertial: bool,
        parent: Frame | None,
        provider: FrameProvider | None,
    ) -> None:
        if not name:
            raise ValueError("Frame name must be a non-empty string.")
        if (parent is None) != (provider is None):
            raise ValueError("A non-root frame needs both a parent and a provider.")
        self._name = name
        self._is_quasi_inertial = is_quasi_inertial
        self._parent = parent
        self._provider = provider

    @classmethod
    def construct(
        cls,
        name: str,
        parent: Frame,
        provider: FrameProvider,
        is_quasi_inertial: bool = False,
    ) -> Frame:
        """Create and register a frame.

        Raises:
            ValueError: If a frame with this name is already registered.
        """
        if name in _REGISTRY:
            raise ValueError(f"Frame [{name}] already exists.")
        frame = cls(name, is_quasi_inertial, parent, provider)
        _REGISTRY[name] = frame
        return frame

    @classmethod
    def with_name(cls, name: str) -> Frame:
        """Return the registered frame called ``name``.

        Raises:
            KeyError: If no such frame is registered.
        """
        if name not in _REGISTRY:
            # Built-ins register themselves lazily
            if name == "GCRF":
                return cls.GCRF()
            if name == "ITRF":
                return cls.ITRF()
            raise KeyError(f"No frame named [{name}].")
        return _REGISTRY[name]

    @classmethod
    def exists(cls, name: str) -> bool:
        return name in _REGISTRY

    @classmethod
    def destruct(cls, name: str) -> None:
        """Remove a user frame from the registry."""
        if name in ("GCRF", "ITRF"):
            raise ValueError(f"Cannot destruct built-in frame [{name}].")
        _REGISTRY.pop(name, None)

    @classmethod
    def GCRF(cls) -> Frame:
        frame = _REGISTRY.get("GCRF")
        if frame is None:
            frame = cls("GCRF", True, None, None)
            _REGISTRY["GCRF"] = frame
        return frame

    @classmethod
    def ITRF(cls) -> Frame:
        frame = _REGISTRY.get("ITRF")
        if frame is None:
            frame = cls("ITRF", False, cls.GCRF(), DynamicProvider(transform_gcrf_to_itrf))
            _REGISTRY["ITRF"] = frame
        return frame

    @property
    def name(self) -> str:
        return self._name

    def get_name(self) -> str:
        return self._name

    def is_quasi_inertial(self) -> bool:
        return self._is_quasi_inertial

    def get_parent(self) -> Frame | None:
        return self._parent

    def _transform_from_root(self, instant: Instant) -> Transform:
        if self._parent is None:
            return Transform.identity()
        return self._parent._transform_from_root(instant).then(
            self._provider.get_transform_at(instant)
        )

    def get_transform_to(self, other: Frame, instant: Instant) -> Transform:
        """Return the transform from this frame to ``other`` at ``instant``.

        Args:
            other: Destination frame.
            instant: Instant at which the transform is evaluated.

        Returns:
            Transform: Mapping from this frame's coordinates to ``other``'s.
        """
        if other == self:
            return Transform.identity()
        return self._transform_from_root(instant).inverse().then(
            other._transform_from_root(instant)
        )

    def __eq__(self, other):
        if not isinstance(other, Frame):
            return NotImplemented
        return self._name == other._name

    def __ne__(self, other):
        if not isinstance(other, Frame):
            return NotImplemented
        return self._name != other._name

    def __hash__(self):
        return hash(self._name)

    def __str__(self):
        return self._name

    def __repr__(self):
        return f"Frame({self._name!r})"
