# zkay_gadgets/gadgets/mod_pow.py
"""
Modular exponentiation of limb integers.

The exponent is processed most significant bit first. Intermediate
products are reduced loosely, into a range bounded by the modulus
bitlength; only the final result is reduced canonically.
"""
from __future__ import annotations
import logging

from ..constraint_system import ConstraintSystem
from ..limb_integer import LimbInteger
from .division import Canonical, RangeBoundedOnly, mod

logger = logging.getLogger(__name__)


class ModPowGadget:
    """
    Computes c = b^e mod m by square-and-multiply.

    Every exponent bit costs the same two reductions: the base factor is
    chosen with a mux, so the circuit shape does not depend on e. The
    per-step reductions are loose; one final canonical reduction fixes
    the result.
    """

    def __init__(
        self,
        cs: ConstraintSystem,
        b: LimbInteger,
        e: LimbInteger,
        m: LimbInteger,
        m_min_bitlength: int,
        e_max_bits: int | None = None,
        description: str = "modPow",
    ):
        self.cs = cs
        self.b = b
        self.e = e
        self.m = m
        self.m_min_bitlength = m_min_bitlength
        self.e_max_bits = e_max_bits
        self.description = description
        self.intermediate_products: list[RangeBoundedOnly] = []
        self.division_count = 0
        self._build()

    def _build(self) -> None:
        cs = self.cs
        one = LimbInteger.constant(cs, 1)
        e_bits = self.e.get_bits(self.e_max_bits)

        # From the most to the least significant exponent bit:
        # product = product^2 mod m, then product = product * (bit ? b : 1) mod m
        product = one
        for bit in reversed(e_bits):
            square = product.mul(product)
            square_mod_m = self._reduce(square, f"{self.description}: prod^2 mod m")
            factor = one.mux_bit(self.b, bit)
            product = self._reduce(square_mod_m.mul(factor), f"{self.description}: prod * base mod m")

        self.result: Canonical = mod(
            cs, product, self.m, restrict_range=True, description=f"{self.description}: final prod mod m"
        )
        self.division_count += 1

        logger.debug(
            "%s: %d exponent bits, %d divisions", self.description, len(e_bits), self.division_count
        )

    def _reduce(self, value: LimbInteger, description: str) -> LimbInteger:
        remainder = mod(
            self.cs, value, self.m,
            restrict_range=False,
            b_min_bitwidth=self.m_min_bitlength,
            description=description,
        )
        self.division_count += 1
        self.intermediate_products.append(remainder)
        return remainder.value

    def get_result(self) -> LimbInteger:
        return self.result.value
