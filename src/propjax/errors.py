"""Exception types raised by propjax.

Every error derives from :class:`PropagationError` and from the builtin
exception that matches its meaning, so callers may catch either the
specific class, the propjax root, or the builtin (``ValueError``,
``KeyError``, ``RuntimeError``).

Configuration objects validate their parameters with plain ``ValueError``.
"""

from __future__ import annotations


class PropagationError(Exception):
    """Root of the propjax exception hierarchy."""


class DuplicateSubsetError(PropagationError, ValueError):
    """A coordinate subset was added twice to the same broker."""


class UnknownSubsetError(PropagationError, KeyError):
    """A coordinate subset was looked up in a broker that does not contain it."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ""


class IncompatibleLayoutError(PropagationError, ValueError):
    """Coordinates do not match the broker layout they are used with."""


class ContradictoryStateError(PropagationError, ValueError):
    """Two states share an instant but carry different coordinates."""


class FrameMismatchError(PropagationError, ValueError):
    """Operands are expressed in different reference frames."""


class UndefinedOperandError(PropagationError, ValueError):
    """An undefined state, frame, broker or solver was used where one is required."""


class UnsortedInputError(PropagationError, ValueError):
    """An instant sequence is not strictly increasing."""


class NonConvergentError(PropagationError, RuntimeError):
    """An adaptive integration could not meet its tolerances within its step budget."""
