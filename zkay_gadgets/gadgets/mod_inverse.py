# zkay_gadgets/gadgets/mod_inverse.py
"""
Modular multiplicative inverse of limb integers.

The prover supplies inv and q with a * inv == q * m + 1. Callers must make
sure a and m are coprime; otherwise witness evaluation fails.
"""
from __future__ import annotations
import logging
from typing import Sequence

from ..constraint_system import ConstraintSystem
from ..errors import PreconditionError
from ..limb_integer import LimbInteger, group_values, split_value
from .division import Canonical, RangeBoundedOnly, Remainder

logger = logging.getLogger(__name__)


class ModInverseGadget:
    """Computes a^(-1) mod m."""

    def __init__(
        self,
        cs: ConstraintSystem,
        a: LimbInteger,
        m: LimbInteger,
        restrict_range: bool = True,
        description: str = "",
    ):
        """
        Args:
            a: the value to invert
            m: the modulus
            restrict_range: also assert inverse < m, making it the unique
                canonical inverse; otherwise any x with a * x = 1 (mod m)
        """
        self.cs = cs
        self.a = a
        self.m = m
        self.restrict_range = restrict_range
        self.description = description or "modular inverse"
        self._build()

    def _build(self) -> None:
        cs, a, m = self.cs, self.a, self.m
        lw = cs.limb_bitwidth

        inverse = LimbInteger(cs, cs.witness_wires(m.size, prefix="inv"), m.bitwidths)
        quotient = LimbInteger(cs, cs.witness_wires(m.size, prefix="invq"), m.bitwidths)
        size = m.size
        description = self.description

        def compute(values: Sequence[int]) -> list[int]:
            a_value = group_values(values[:a.size], lw)
            m_value = group_values(values[a.size:], lw)
            try:
                inverse_value = pow(a_value, -1, m_value)
            except ValueError as exc:
                raise PreconditionError(
                    f"{a_value} has no inverse modulo {m_value}",
                    context={"gadget": description},
                ) from exc
            quotient_value = a_value * inverse_value // m_value
            return split_value(inverse_value, size, lw) + split_value(quotient_value, size, lw)

        cs.specify_witness(a.limbs + m.limbs, inverse.limbs + quotient.limbs, compute, description)

        inverse.restrict_bitwidth()
        quotient.restrict_bitwidth()

        # a * a^(-1) = 1 (mod m)  <=>  a * a^(-1) = q * m + 1
        product = a.mul(inverse)
        one_mod_m = quotient.mul(m).add_constant(1)
        product.assert_equality(one_mod_m, f"{description}: a * inv == q * m + 1")

        if self.restrict_range:
            inverse.assert_less_than(m)
            self.result: Remainder = Canonical(inverse)
        else:
            self.result = RangeBoundedOnly(inverse)
        self.quotient = quotient

        logger.debug("%s: %d limbs, canonical=%s", description, size, self.restrict_range)

    def get_result(self) -> LimbInteger:
        return self.result.value
