# zkay_gadgets/errors.py
"""
Exceptions raised while building or evaluating a constraint system.

A circuit build is all-or-nothing: any of these aborts construction or
witness evaluation and nothing is retried.

- PreconditionError   : caller error (zero divisor, non-coprime inverse
                        arguments, mismatched types, unsupported widths).
- WitnessError        : a witness computation could not produce values.
- ConstraintViolation : the evaluated values do not satisfy an assertion.
"""
from __future__ import annotations

from typing import Any, Mapping


class CircuitError(Exception):
    """Base class for constraint-system failures."""

    def __init__(self, message: str, *, context: Mapping[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = dict(context) if context else {}

    def __str__(self) -> str:
        tail = f" context={self.context}" if self.context else ""
        return f"{self.message}{tail}"


class PreconditionError(CircuitError, ValueError):
    """A gadget was used outside of its documented preconditions."""


class WitnessError(CircuitError):
    """A witness value is missing or could not be computed."""


class ConstraintViolation(CircuitError):
    """An assertion does not hold for the evaluated wire values."""
