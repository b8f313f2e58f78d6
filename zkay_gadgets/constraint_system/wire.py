# zkay_gadgets/constraint_system/wire.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .circuit import ConstraintSystem
    from .operation import Operation


@dataclass(eq=False)
class Wire:
    """A field wire in the constraint system with a tracked upper bound."""
    cs: ConstraintSystem
    wire_id: int
    name: str
    max_bound: int
    source: Operation | None = None
    bit_cache: dict[int, list[Wire]] = field(default_factory=dict, repr=False)

    @property
    def bit_width(self) -> int:
        return self.max_bound.bit_length()

    def inspect(self) -> str:
        return f"{self.name}: Wire<{self.bit_width} bits, <= {self.max_bound}>"

    def __repr__(self) -> str:
        return self.inspect()

    def __hash__(self) -> int:
        return hash((id(self.cs), self.wire_id))

    # Operator overloading
    def __add__(self, other: Wire | int) -> Wire:
        return self.cs.add(self, other)

    def __radd__(self, other: int) -> Wire:
        return self.cs.add(self, other)

    def __sub__(self, other: Wire | int) -> Wire:
        return self.cs.sub(self, other)

    def __rsub__(self, other: int) -> Wire:
        return self.cs.sub(other, self)

    def __mul__(self, other: Wire | int) -> Wire:
        return self.cs.mul(self, other)

    def __rmul__(self, other: int) -> Wire:
        return self.cs.mul(self, other)

    def __neg__(self) -> Wire:
        return self.cs.negate(self)

    def get_bits(self, bitwidth: int) -> list[Wire]:
        return self.cs.get_bits(self, bitwidth)

    def restrict_bit_length(self, bitwidth: int) -> None:
        self.cs.restrict_bit_length(self, bitwidth)

    def trim_bits(self, from_bits: int, to_bits: int) -> Wire:
        return self.cs.trim_bits(self, from_bits, to_bits)

    def mux(self, if_true: Wire | int, if_false: Wire | int) -> Wire:
        return self.cs.mux(self, if_true, if_false)

    def is_equal_to(self, other: Wire | int) -> Wire:
        return self.cs.is_equal_to(self, other)

    def check_non_zero(self) -> Wire:
        return self.cs.check_non_zero(self)

    def is_less_than(self, other: Wire | int, bitwidth: int) -> Wire:
        return self.cs.is_less_than(self, other, bitwidth)
