"""Orbital passes: one revolution bounded by consecutive ascending nodes."""

from __future__ import annotations

import enum

from propjax.instant import Instant


class PassType(enum.Enum):
    """Resolution status of a :class:`Pass`."""

    UNDEFINED = "Undefined"
    COMPLETE = "Complete"
    PARTIAL = "Partial"

    def __str__(self):
        return self.value


class Pass:
    """A single revolution of an orbit.

    The pass starts at its ascending node and ends at the next ascending
    node (the pass break), which is also the start of the following pass.
    Intermediate events are the north point (maximum ``z``), the
    descending node and the south point (minimum ``z``).  Events that
    could not be located are ``None``.

    Args:
        pass_type: Resolution status.
        revolution_number: Revolution number of the pass (never zero).
        instant_at_ascending_node: Start of the pass.
        instant_at_north_point: Instant of maximum ``z``.
        instant_at_descending_node: Instant of the descending node.
        instant_at_south_point: Instant of minimum ``z``.
        instant_at_pass_break: End of the pass.
    """

    def __init__(
        self,
        pass_type: PassType,
        revolution_number: int | None,
        instant_at_ascending_node: Instant | None = None,
        instant_at_north_point: Instant | None = None,
        instant_at_descending_node: Instant | None = None,
        instant_at_south_point: Instant | None = None,
        instant_at_pass_break: Instant | None = None,
    ) -> None:
        if revolution_number == 0:
            raise ValueError("Revolution number zero is not used.")
        self._type = PassType(pass_type)
        self._revolution_number = revolution_number
        self._instant_at_ascending_node = instant_at_ascending_node
        self._instant_at_north_point = instant_at_north_point
        self._instant_at_descending_node = instant_at_descending_node
        self._instant_at_south_point = instant_at_south_point
        self._instant_at_pass_break = instant_at_pass_break

    @classmethod
    def undefined(cls) -> Pass:
        return cls(PassType.UNDEFINED, None)

    def is_defined(self) -> bool:
        return self._type is not PassType.UNDEFINED

    def is_complete(self) -> bool:
        return self._type is PassType.COMPLETE

    def get_type(self) -> PassType:
        return self._type

    def get_revolution_number(self) -> int | None:
        return self._revolution_number

    def get_start_instant(self) -> Instant | None:
        return self._instant_at_ascending_node

    def get_end_instant(self) -> Instant | None:
        return self._instant_at_pass_break

    def get_instant_at_ascending_node(self) -> Instant | None:
        return self._instant_at_ascending_node

    def get_instant_at_north_point(self) -> Instant | None:
        return self._instant_at_north_point

    def get_instant_at_descending_node(self) -> Instant | None:
        return self._instant_at_descending_node

    def get_instant_at_south_point(self) -> Instant | None:
        return self._instant_at_south_point

    def get_instant_at_pass_break(self) -> Instant | None:
        return self._instant_at_pass_break

    def get_duration(self) -> float | None:
        """Duration of the pass [s], or ``None`` if a boundary is missing."""
        if self._instant_at_ascending_node is None or self._instant_at_pass_break is None:
            return None
        return float(self._instant_at_pass_break - self._instant_at_ascending_node)

    def contains(self, instant: Instant) -> bool:
        """Whether ``instant`` lies in ``[ascending node, pass break)``."""
        start, end = self._instant_at_ascending_node, self._instant_at_pass_break
        if start is not None and instant < start:
            return False
        if end is not None and not instant < end:
            return False
        return self.is_defined()

    def __eq__(self, other):
        if not isinstance(other, Pass):
            return NotImplemented
        if not self.is_defined() or not other.is_defined():
            return False
        return (
            self._type == other._type
            and self._revolution_number == other._revolution_number
            and _same_instant(self._instant_at_ascending_node, other._instant_at_ascending_node)
            and _same_instant(self._instant_at_north_point, other._instant_at_north_point)
            and _same_instant(self._instant_at_descending_node, other._instant_at_descending_node)
            and _same_instant(self._instant_at_south_point, other._instant_at_south_point)
            and _same_instant(self._instant_at_pass_break, other._instant_at_pass_break)
        )

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None

    def describe(self) -> str:
        def fmt(instant):
            return "Undefined" if instant is None else str(instant)

        duration = self.get_duration()
        return (
            "Pass\n"
            f"  Type:              {self._type}\n"
            f"  Revolution number: {self._revolution_number}\n"
            f"  Ascending node:    {fmt(self._instant_at_ascending_node)}\n"
            f"  North point:       {fmt(self._instant_at_north_point)}\n"
            f"  Descending node:   {fmt(self._instant_at_descending_node)}\n"
            f"  South point:       {fmt(self._instant_at_south_point)}\n"
            f"  Pass break:        {fmt(self._instant_at_pass_break)}\n"
            f"  Duration:          {'Undefined' if duration is None else f'{duration:.6f} [s]'}"
        )

    def __str__(self):
        return self.describe()

    def __repr__(self):
        return (
            f"Pass(type={self._type.name}, revolution_number={self._revolution_number}, "
            f"start={self._instant_at_ascending_node}, end={self._instant_at_pass_break})"
        )


def _same_instant(a: Instant | None, b: Instant | None) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return bool(a == b)
