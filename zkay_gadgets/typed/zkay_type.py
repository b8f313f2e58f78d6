# zkay_gadgets/typed/zkay_type.py
"""
Fixed-width integer types emulated on top of field wires.

There is exactly one ZkayType per (bitwidth, signedness): unsigned types
exist for 8..256 bits and signed types for 8..248 bits, in steps of 8.
A signed 256-bit type has no room for its sign bit below the field
prime, so it is not offered.
"""
from __future__ import annotations
from dataclasses import dataclass

from ..errors import PreconditionError

FIELD_TYPE_BITWIDTH = 256


@dataclass(frozen=True)
class ZkayType:
    bitwidth: int
    signed: bool

    @property
    def minus_one(self) -> int:
        """The all-ones bit pattern, i.e. -1 in two's complement."""
        return (1 << self.bitwidth) - 1

    def __str__(self) -> str:
        return f"{'s' if self.signed else 'u'}{self.bitwidth}"


ZK_BOOL = ZkayType(1, False)
ZK_124 = ZkayType(124, False)  # half-word type of the wide multiplication

_UINT_TYPES = {bw: ZkayType(bw, False) for bw in range(8, FIELD_TYPE_BITWIDTH + 1, 8)}
_INT_TYPES = {bw: ZkayType(bw, True) for bw in range(8, FIELD_TYPE_BITWIDTH, 8)}


def zk_uint(bitwidth: int) -> ZkayType:
    try:
        return _UINT_TYPES[bitwidth]
    except KeyError:
        raise PreconditionError(f"No uint type with bitwidth {bitwidth} exists") from None


def zk_int(bitwidth: int) -> ZkayType:
    try:
        return _INT_TYPES[bitwidth]
    except KeyError:
        raise PreconditionError(f"No int type with bitwidth {bitwidth} exists") from None


def check_type(expected: ZkayType | None, actual: ZkayType | None, allow_field_type: bool = True) -> ZkayType:
    """
    Ensure both operands of an operation share one type and return it.

    With allow_field_type=False the 256-bit field type is rejected, for
    operations (bitwise ops, shifts) that are undefined on it.
    """
    if expected is None or actual is None:
        raise PreconditionError("Tried to use untyped wires")
    if expected.bitwidth == FIELD_TYPE_BITWIDTH and not allow_field_type:
        raise PreconditionError("256bit integers are not supported for this operation")
    if actual != expected:
        raise PreconditionError(
            f"Type {actual} does not match expected type {expected}",
            context={"expected": str(expected), "actual": str(actual)},
        )
    return expected


def negative_constant(value: int, bitwidth: int) -> int:
    """Two's-complement encoding of -value in a signed type of `bitwidth` bits."""
    m1 = zk_int(bitwidth).minus_one
    return (m1 * value) & m1
