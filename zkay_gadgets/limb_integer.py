# zkay_gadgets/limb_integer.py
"""
Arbitrary-precision integers represented as little-endian limbs.

A LimbInteger holds one wire per limb on the uniform base
2^limb_bitwidth of its constraint system, together with an upper bound
for every limb. Limbs produced by arithmetic may exceed the limb width
("overflowed" limbs); equality assertions and bit extraction handle the
carries explicitly.
"""
from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Sequence

from .errors import PreconditionError
from .constraint_system import ConstraintSystem, Wire

if TYPE_CHECKING:
    from .gadgets.division import DivisionResult

logger = logging.getLogger(__name__)


def limb_bitwidths(bitwidth: int, limb_bitwidth: int) -> list[int]:
    """Widths of the limbs holding `bitwidth` bits; the last limb is truncated."""
    bitwidth = max(1, bitwidth)
    count = -(-bitwidth // limb_bitwidth)
    widths = [limb_bitwidth] * count
    if bitwidth % limb_bitwidth:
        widths[-1] = bitwidth % limb_bitwidth
    return widths


def split_value(value: int, count: int, limb_bitwidth: int) -> list[int]:
    mask = (1 << limb_bitwidth) - 1
    return [(value >> (limb_bitwidth * i)) & mask for i in range(count)]


def group_values(values: Sequence[int], limb_bitwidth: int) -> int:
    return sum(v << (limb_bitwidth * i) for i, v in enumerate(values))


class LimbInteger:
    """A non-negative big integer as an ordered list of limb wires."""

    def __init__(
        self,
        cs: ConstraintSystem,
        limbs: Sequence[Wire],
        bitwidths: Sequence[int] | None = None,
        max_values: Sequence[int] | None = None,
    ):
        if not limbs:
            raise PreconditionError("A limb integer needs at least one limb")
        self.cs = cs
        self.limbs = list(limbs)

        if max_values is None:
            if bitwidths is None:
                max_values = [w.max_bound for w in self.limbs]
            else:
                if len(bitwidths) != len(self.limbs):
                    raise PreconditionError(
                        f"{len(self.limbs)} limbs but {len(bitwidths)} bitwidths"
                    )
                max_values = [
                    min(w.max_bound, (1 << bw) - 1) for w, bw in zip(self.limbs, bitwidths)
                ]
        self.max_values = list(max_values)

        if bitwidths is None:
            bitwidths = [v.bit_length() for v in self.max_values]
        self.bitwidths = list(bitwidths)

        for v in self.max_values:
            if v.bit_length() > cs.field_capacity - 2:
                raise PreconditionError(
                    f"Limb bound of {v.bit_length()} bits exceeds the field capacity",
                    context={"field_capacity": cs.field_capacity},
                )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def constant(cls, cs: ConstraintSystem, value: int) -> LimbInteger:
        if value < 0:
            raise PreconditionError(f"Limb integers are non-negative, got {value}")
        count = len(limb_bitwidths(value.bit_length(), cs.limb_bitwidth))
        chunks = split_value(value, count, cs.limb_bitwidth)
        return cls(cs, [cs.constant(c) for c in chunks], max_values=chunks)

    @classmethod
    def from_bits(cls, cs: ConstraintSystem, bits: Sequence[Wire]) -> LimbInteger:
        """Pack LSB-first bit wires into limbs."""
        if not bits:
            return cls.constant(cs, 0)
        words = cs.pack_bits_into_words(bits, cs.limb_bitwidth)
        widths = [len(bits[i:i + cs.limb_bitwidth]) for i in range(0, len(bits), cs.limb_bitwidth)]
        return cls(cs, words, widths)

    @classmethod
    def allocate(cls, cs: ConstraintSystem, bitwidth: int, prefix: str = "limb") -> LimbInteger:
        """Fresh witness limbs able to hold `bitwidth` bits (not yet restricted)."""
        widths = limb_bitwidths(bitwidth, cs.limb_bitwidth)
        wires = [cs.witness_wires(1, (1 << w) - 1, prefix)[0] for w in widths]
        return cls(cs, wires, widths)

    def witness_from(self, dependencies: Sequence[LimbInteger], compute, description: str = "") -> None:
        """
        Fill these (allocated) limbs from a big-integer computation.

        `compute` receives the integer values of `dependencies` and returns
        the integer to split into this value's limbs.
        """
        lw = self.cs.limb_bitwidth
        sizes = [d.size for d in dependencies]
        size = self.size

        def split_result(values: Sequence[int]) -> list[int]:
            integers = []
            offset = 0
            for n in sizes:
                integers.append(group_values(values[offset:offset + n], lw))
                offset += n
            return split_value(compute(*integers), size, lw)

        self.cs.specify_witness(
            [limb for d in dependencies for limb in d.limbs],
            self.limbs,
            split_result,
            description,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        return len(self.limbs)

    def __len__(self) -> int:
        return self.size

    def get_max_val(self, limb_bitwidth: int | None = None) -> int:
        """Upper bound of the represented value."""
        lw = self.cs.limb_bitwidth if limb_bitwidth is None else limb_bitwidth
        return group_values(self.max_values, lw)

    @property
    def max_bit_length(self) -> int:
        return max(1, self.get_max_val().bit_length())

    @property
    def is_normalized(self) -> bool:
        """Whether every limb is provably within the limb width."""
        return all(v < (1 << self.cs.limb_bitwidth) for v in self.max_values)

    def _constant_values(self) -> list[int] | None:
        values = [self.cs.constant_value(w) for w in self.limbs]
        return None if any(v is None for v in values) else values

    def __repr__(self) -> str:
        return f"LimbInteger<{self.size} limbs, <= {self.max_bit_length} bits>"

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def add(self, other: LimbInteger | int) -> LimbInteger:
        if isinstance(other, int):
            return self.add_constant(other)
        limbs, max_values = [], []
        for i in range(max(self.size, other.size)):
            if i < self.size and i < other.size:
                limbs.append(self.cs.add(self.limbs[i], other.limbs[i]))
                max_values.append(self.max_values[i] + other.max_values[i])
            elif i < self.size:
                limbs.append(self.limbs[i])
                max_values.append(self.max_values[i])
            else:
                limbs.append(other.limbs[i])
                max_values.append(other.max_values[i])
        return LimbInteger(self.cs, limbs, max_values=max_values)

    def add_constant(self, value: int) -> LimbInteger:
        return self.add(LimbInteger.constant(self.cs, value))

    def mul(self, other: LimbInteger | int) -> LimbInteger:
        """
        Multiply two limb integers.

        With a constant or single-limb operand the product limbs are
        computed directly. Otherwise the product coefficients are witnessed
        and checked by evaluating both sides at n + m - 1 points, which
        costs one multiplication gate per point.
        """
        if isinstance(other, int):
            other = LimbInteger.constant(self.cs, other)
        cs = self.cs
        n, m = self.size, other.size
        count = n + m - 1

        max_values = [0] * count
        for i in range(n):
            for j in range(m):
                max_values[i + j] += self.max_values[i] * other.max_values[j]

        if any(v.bit_length() > cs.field_capacity - 2 for v in max_values):
            raise PreconditionError(
                "Limb product exceeds the field capacity",
                context={"bits": max(v.bit_length() for v in max_values)},
            )

        if n == 1 or m == 1 or self._constant_values() is not None or other._constant_values() is not None:
            terms: list[list[tuple[Wire, Wire]]] = [[] for _ in range(count)]
            for i in range(n):
                for j in range(m):
                    terms[i + j].append((self.limbs[i], other.limbs[j]))
            limbs = []
            for k, pairs in enumerate(terms):
                products = [cs.mul(a, b) for a, b in pairs]
                if len(products) == 1:
                    limbs.append(products[0])
                else:
                    limbs.append(cs.linear_combination([(1, w) for w in products], max_bound=max_values[k]))
            return LimbInteger(cs, limbs, max_values=max_values)

        coefficients = cs.witness_wires(count, prefix="prod")
        for wire, bound in zip(coefficients, max_values):
            wire.max_bound = bound

        def convolve(values: Sequence[int]) -> list[int]:
            a, b = values[:n], values[n:]
            out = [0] * count
            for i in range(n):
                for j in range(m):
                    out[i + j] += a[i] * b[j]
            return out

        cs.specify_witness(self.limbs + other.limbs, coefficients, convolve, "limb product coefficients")

        for x in range(count):
            lhs = _evaluate_at(cs, self.limbs, x)
            rhs = _evaluate_at(cs, other.limbs, x)
            product = _evaluate_at(cs, coefficients, x)
            cs.assert_equal(cs.mul(lhs, rhs), product, f"limb product at x={x}")

        return LimbInteger(cs, coefficients, max_values=max_values)

    def subtract_constant(self, value: int) -> LimbInteger:
        """Witness self - value, checked by adding the constant back."""
        result = LimbInteger.allocate(self.cs, self.max_bit_length, prefix="diff")

        def compute(x: int) -> int:
            if x < value:
                raise PreconditionError(f"Cannot subtract {value} from smaller value {x}")
            return x - value

        result.witness_from([self], compute, f"subtract {value}")
        result.restrict_bitwidth()
        result.add_constant(value).assert_equality(self)
        return result

    def align(self, size: int) -> LimbInteger:
        """Pad with zero limbs up to `size` limbs."""
        if size < self.size:
            raise PreconditionError(f"Cannot align {self.size} limbs down to {size}")
        padding = size - self.size
        return LimbInteger(
            self.cs,
            self.limbs + [self.cs.zero] * padding,
            self.bitwidths + [0] * padding,
            self.max_values + [0] * padding,
        )

    def restrict_bitwidth(self) -> None:
        """Range-restrict every limb to its declared bitwidth."""
        for i, (limb, bitwidth) in enumerate(zip(self.limbs, self.bitwidths)):
            if self.cs.constant_value(limb) is None:
                self.cs.restrict_bit_length(limb, bitwidth)
            self.max_values[i] = min(self.max_values[i], (1 << bitwidth) - 1)

    def mux_bit(self, other: LimbInteger, bit: Wire) -> LimbInteger:
        """Branchless `bit ? other : self`."""
        size = max(self.size, other.size)
        a, b = self.align(size), other.align(size)
        limbs = [self.cs.mux(bit, y, x) for x, y in zip(a.limbs, b.limbs)]
        max_values = [max(x, y) for x, y in zip(a.max_values, b.max_values)]
        return LimbInteger(self.cs, limbs, max_values=max_values)

    # ------------------------------------------------------------------
    # Assertions
    # ------------------------------------------------------------------

    def assert_equality(self, other: LimbInteger, description: str = "limb equality") -> None:
        """
        Assert both limb integers represent the same value.

        The limb differences are folded with signed witnessed carries:
        d_i + c_{i-1} == c_i * 2^w, each carry range-checked around zero,
        and the last difference plus carry must vanish.
        """
        cs = self.cs
        lw = cs.limb_bitwidth
        size = max(self.size, other.size)
        x, y = self.align(size), other.align(size)

        carry_bounds = []
        bound = 0
        for i in range(size - 1):
            bound = (max(x.max_values[i], y.max_values[i]) + bound) >> lw
            carry_bounds.append(bound)
        if any((b << lw).bit_length() > cs.field_capacity - 2 for b in carry_bounds):
            raise PreconditionError("Carry bound exceeds the field capacity")

        carry_indices = [i for i, b in enumerate(carry_bounds) if b > 0]
        carries = cs.witness_wires(len(carry_indices), prefix="carry")
        carry_of = dict(zip(carry_indices, carries))

        def compute_carries(values: Sequence[int]) -> list[int]:
            p = cs.field_prime
            xs, ys = values[:size], values[size:]
            out, carry = [], 0
            for i in range(size - 1):
                carry = (xs[i] - ys[i] + carry) >> lw
                if i in carry_of:
                    out.append(carry % p)
            return out

        if carries:
            cs.specify_witness(x.limbs + y.limbs, carries, compute_carries, f"{description}: carries")

        previous: Wire | None = None
        for i in range(size):
            terms = [(1, x.limbs[i]), (-1, y.limbs[i])]
            if previous is not None:
                terms.append((1, previous))
            current = carry_of.get(i)
            if current is not None:
                terms.append((-(1 << lw), current))
                # signed carry in [-bound, bound]
                shifted = cs.linear_combination([(1, current)], constant=carry_bounds[i])
                cs.restrict_bit_length(shifted, (2 * carry_bounds[i]).bit_length())
            cs.assert_zero(cs.linear_combination(terms), f"{description}: limb {i}")
            previous = current

    def assert_less_than(self, other: LimbInteger) -> None:
        """Assert self < other by witnessing other - self - 1 >= 0."""
        gap = LimbInteger.allocate(self.cs, other.max_bit_length, prefix="gap")
        gap.witness_from([self, other], lambda s, o: max(o - s - 1, 0), "less-than gap")
        gap.restrict_bitwidth()
        self.add(gap).add_constant(1).assert_equality(other, "less-than")

    # ------------------------------------------------------------------
    # Bits
    # ------------------------------------------------------------------

    def normalize(self) -> LimbInteger:
        """Return an equal value whose limbs all fit the limb width."""
        if self.is_normalized:
            return self
        result = LimbInteger.allocate(self.cs, self.max_bit_length, prefix="norm")
        result.witness_from([self], lambda v: v, "normalize limbs")
        result.restrict_bitwidth()
        result.assert_equality(self, "normalize")
        return result

    def get_bits(self, max_bits: int | None = None) -> list[Wire]:
        """
        Bits of the value, least significant first.

        With `max_bits` the value is also constrained to fit that many bits;
        the list is zero-padded when `max_bits` exceeds the value's width.
        """
        cs = self.cs
        lw = cs.limb_bitwidth
        total = self.max_bit_length if max_bits is None else max_bits
        value = self.normalize()

        bits: list[Wire] = []
        remaining = total
        for limb, bound in zip(value.limbs, value.max_values):
            width = min(lw, remaining)
            if width > 0:
                bits.extend(cs.get_bits(limb, width))
            elif bound > 0:
                cs.assert_zero(limb, "bits above the requested width are zero")
            remaining -= width
        bits.extend([cs.zero] * remaining)
        return bits

    # ------------------------------------------------------------------
    # Operator overloading
    # ------------------------------------------------------------------

    def __add__(self, other: LimbInteger | int) -> LimbInteger:
        return self.add(other)

    def __mul__(self, other: LimbInteger | int) -> LimbInteger:
        return self.mul(other)

    def __floordiv__(self, other: LimbInteger) -> LimbInteger:
        from .gadgets.division import floor_div
        return floor_div(self.cs, self, other)

    def __mod__(self, other: LimbInteger) -> LimbInteger:
        from .gadgets.division import mod
        return mod(self.cs, self, other).value

    def div_rem(self, divisor: LimbInteger, restrict_range: bool = True) -> DivisionResult:
        from .gadgets.division import divide
        return divide(self.cs, self, divisor, restrict_range=restrict_range)


def _evaluate_at(cs: ConstraintSystem, limbs: Sequence[Wire], x: int) -> Wire:
    """The limbs read as polynomial coefficients, evaluated at x."""
    if x == 0:
        return limbs[0]
    return cs.linear_combination([(x ** i, w) for i, w in enumerate(limbs)])
