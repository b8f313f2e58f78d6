# zkay_gadgets/gadgets/division.py
"""
Integer division of limb integers: a = q * b + r.

The prover supplies q and r; the circuit range-restricts both and asserts
the division identity. Only a canonical division additionally asserts
r < b. A loose division guarantees nothing beyond r's bitwidth, e.g.
3001 / 10 may yield r = 1 or r = 11 since both fit into the four bits
of 10. That is enough for intermediate reductions and saves one
comparison per step; the remainder is tagged accordingly.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Sequence, Union

from ..constraint_system import ConstraintSystem
from ..errors import PreconditionError
from ..limb_integer import LimbInteger, group_values, split_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Canonical:
    """A remainder proven to be fully reduced (0 <= r < b)."""
    value: LimbInteger


@dataclass(frozen=True)
class RangeBoundedOnly:
    """A remainder only proven to fit the divisor's bitwidth."""
    value: LimbInteger


Remainder = Union[Canonical, RangeBoundedOnly]


@dataclass(frozen=True)
class DivisionResult:
    quotient: LimbInteger
    remainder: Remainder


def divide(
    cs: ConstraintSystem,
    a: LimbInteger,
    b: LimbInteger,
    restrict_range: bool = True,
    b_min_bitwidth: int = 0,
    description: str = "",
) -> DivisionResult:
    """
    Prove a = q * b + r and return (q, r).

    Args:
        a: dividend
        b: divisor, must be non-zero (not checked in-circuit)
        restrict_range: also assert r < b, making the remainder canonical
        b_min_bitwidth: known minimum bit length of b, shrinks q's budget
    """
    lw = cs.limb_bitwidth
    a_bitwidth = max(1, a.get_max_val(lw).bit_length())
    b_bitwidth = max(1, b.get_max_val(lw).bit_length())

    r_bitwidth = min(a_bitwidth, b_bitwidth)
    q_bitwidth = a_bitwidth
    if b_min_bitwidth > 0:
        q_bitwidth = max(1, q_bitwidth - b_min_bitwidth + 1)

    logger.debug(
        "divide%s: a=%d bits, b=%d bits -> q=%d bits, r=%d bits, canonical=%s",
        f" [{description}]" if description else "",
        a_bitwidth, b_bitwidth, q_bitwidth, r_bitwidth, restrict_range,
    )

    r = LimbInteger.allocate(cs, r_bitwidth, prefix="rem")
    q = LimbInteger.allocate(cs, q_bitwidth, prefix="quot")
    r_size, q_size = r.size, q.size

    def compute(values: Sequence[int]) -> list[int]:
        a_value = group_values(values[:a.size], lw)
        b_value = group_values(values[a.size:], lw)
        if b_value == 0:
            raise PreconditionError(
                "Division by zero", context={"gadget": description or "divide"}
            )
        q_value, r_value = divmod(a_value, b_value)
        return split_value(r_value, r_size, lw) + split_value(q_value, q_size, lw)

    cs.specify_witness(
        a.limbs + b.limbs,
        r.limbs + q.limbs,
        compute,
        description or "long integer division",
    )

    r.restrict_bitwidth()
    q.restrict_bitwidth()

    q.mul(b).add(r).assert_equality(a, description or "q * b + r == a")

    if restrict_range:
        r.assert_less_than(b)
        return DivisionResult(q, Canonical(r))
    return DivisionResult(q, RangeBoundedOnly(r))


def mod(
    cs: ConstraintSystem,
    a: LimbInteger,
    b: LimbInteger,
    restrict_range: bool = True,
    b_min_bitwidth: int = 0,
    description: str = "",
) -> Remainder:
    """a % b, tagged by how far the remainder is reduced."""
    return divide(cs, a, b, restrict_range, b_min_bitwidth, description).remainder


def floor_div(
    cs: ConstraintSystem,
    a: LimbInteger,
    b: LimbInteger,
    b_min_bitwidth: int = 0,
    description: str = "",
) -> LimbInteger:
    """floor(a / b); the underlying division is always canonical."""
    return divide(cs, a, b, True, b_min_bitwidth, description).quotient
