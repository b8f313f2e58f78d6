# zkay_gadgets/typed/typed_wire.py
"""
Field wires tagged with a fixed-width integer type.

Native field arithmetic does not wrap at 2^n, so every operation that can
leave the type's range truncates its result back to the declared bitwidth
with an explicit bit decomposition. Signed types use two's complement.
The 256-bit type is the field itself and never wraps.
"""
from __future__ import annotations
import logging
from typing import TYPE_CHECKING

from ..constraint_system import ConstraintSystem, Wire
from ..errors import PreconditionError
from ..gadgets.division import floor_div, mod
from ..limb_integer import LimbInteger
from .zkay_type import (
    FIELD_TYPE_BITWIDTH,
    ZK_124,
    ZK_BOOL,
    ZkayType,
    check_type,
    negative_constant,
)

if TYPE_CHECKING:
    from ..constraint_system import CircuitEvaluator

logger = logging.getLogger(__name__)

# Products of operands up to this width stay below the field capacity
NATIVE_MUL_BITWIDTH = 120
HALF_WORD_BITWIDTH = ZK_124.bitwidth


class TypedWire:
    """A wire, its semantic type and a diagnostic name."""

    def __init__(self, wire: Wire, zkay_type: ZkayType, name: str = "", restrict: bool = False):
        if wire is None or zkay_type is None:
            raise PreconditionError("Arguments cannot be None")
        if restrict or wire.cs.restrict_everything:
            wire.cs.restrict_bit_length(wire, zkay_type.bitwidth)
        self.wire = wire
        self.type = zkay_type
        self.name = name or wire.name

    @property
    def cs(self) -> ConstraintSystem:
        return self.wire.cs

    def __repr__(self) -> str:
        return f"TypedWire<{self.type}>({self.name})"

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    @classmethod
    def input(cls, cs: ConstraintSystem, name: str, zkay_type: ZkayType, private: bool = False) -> TypedWire:
        """A named circuit input; private inputs are range-restricted to their type."""
        wire = cs.input(name, zkay_type.bitwidth, private=private)
        return cls(wire, zkay_type, name)

    @classmethod
    def val(cls, cs: ConstraintSystem, value: int, zkay_type: ZkayType) -> TypedWire:
        """A constant; negative values are only valid in signed types."""
        if value.bit_length() > zkay_type.bitwidth or (value < 0 and (~value).bit_length() >= zkay_type.bitwidth):
            raise PreconditionError(f"Constant {value} does not fit into {zkay_type}")
        if value < 0:
            if not zkay_type.signed:
                raise PreconditionError(f"Cannot store negative constant {value} in {zkay_type}")
            encoded = negative_constant(-value, zkay_type.bitwidth)
        else:
            encoded = value
        return cls(cs.constant(encoded), zkay_type, f"const_{value}")

    @classmethod
    def val_bool(cls, cs: ConstraintSystem, value: bool) -> TypedWire:
        return cls(cs.one if value else cs.zero, ZK_BOOL, f"const_{str(value).lower()}")

    @classmethod
    def ite(cls, condition: TypedWire, if_true: TypedWire, if_false: TypedWire) -> TypedWire:
        """Branchless `condition ? if_true : if_false`."""
        check_type(ZK_BOOL, condition.type)
        result_type = check_type(if_true.type, if_false.type)
        cs = condition.cs
        if cs.restrict_everything:
            cs.assert_binary(condition.wire)
        wire = cs.mux(condition.wire, if_true.wire, if_false.wire)
        return cls(wire, result_type, f"{condition.name} ? {if_true.name} : {if_false.name}")

    def value_in(self, evaluator: CircuitEvaluator) -> int:
        """The semantic integer this wire holds in an evaluated circuit."""
        value = evaluator.get_wire_value(self.wire)
        if self.type.signed and value >> (self.type.bitwidth - 1) & 1:
            return value - (1 << self.type.bitwidth)
        return value

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def plus(self, rhs: TypedWire) -> TypedWire:
        result_type = check_type(self.type, rhs.type)
        op = f"{self.name} + {rhs.name}"
        return _handle_overflow(self.cs.add(self.wire, rhs.wire), result_type, False, op)

    def minus(self, rhs: TypedWire) -> TypedWire:
        result_type = check_type(self.type, rhs.type)
        op = f"{self.name} - {rhs.name}"
        return _handle_overflow(self.cs.add(self.wire, rhs.negate().wire), result_type, False, op)

    def times(self, rhs: TypedWire) -> TypedWire:
        result_type = check_type(self.type, rhs.type)
        op = f"{self.name} * {rhs.name}"
        cs = self.cs
        bitwidth = result_type.bitwidth

        if bitwidth == FIELD_TYPE_BITWIDTH:
            # Wraps modulo the field prime, not 2^256
            return TypedWire(cs.mul(self.wire, rhs.wire), result_type, op)
        if bitwidth <= NATIVE_MUL_BITWIDTH:
            return _handle_overflow(cs.mul(self.wire, rhs.wire), result_type, True, op)

        # The full product would exceed the field capacity. Split both operands
        # into a 124-bit low word and a high word of the remaining bits; the
        # hi * hi term lies entirely above 2^bitwidth and drops out.
        hw = HALF_WORD_BITWIDTH
        k = bitwidth - hw
        lhs_bits = cs.get_bits(self.wire, bitwidth)
        rhs_bits = cs.get_bits(rhs.wire, bitwidth)
        lhs_lo, lhs_hi = cs.pack_bits(lhs_bits[:hw]), cs.pack_bits(lhs_bits[hw:])
        rhs_lo, rhs_hi = cs.pack_bits(rhs_bits[:hw]), cs.pack_bits(rhs_bits[hw:])

        lo_lo_bits = cs.get_bits(cs.mul(lhs_lo, rhs_lo), 2 * hw)
        ans_lo = cs.pack_bits(lo_lo_bits[:hw])
        ans_hi = cs.pack_bits(lo_lo_bits[hw:bitwidth])

        hi_lo = cs.trim_bits(cs.mul(lhs_hi, rhs_lo), k + hw, k)
        lo_hi = cs.trim_bits(cs.mul(lhs_lo, rhs_hi), k + hw, k)
        hi = cs.trim_bits(cs.linear_combination([(1, ans_hi), (1, hi_lo), (1, lo_hi)]), k + 2, k)

        result = cs.linear_combination(
            [(1, ans_lo), (1 << hw, hi)],
            max_bound=result_type.minus_one,
        )
        logger.debug("%s: split %d-bit product into %d + %d bits", op, bitwidth, hw, k)
        return TypedWire(result, result_type, op)

    def divide_by(self, rhs: TypedWire) -> TypedWire:
        """Division rounding toward zero."""
        result_type = check_type(self.type, rhs.type, allow_field_type=False)
        op = f"{self.name} / {rhs.name}"
        return self._long_division(rhs, result_type, op, remainder=False)

    def modulo(self, rhs: TypedWire) -> TypedWire:
        """Remainder of the division rounding toward zero; takes the dividend's sign."""
        result_type = check_type(self.type, rhs.type, allow_field_type=False)
        op = f"{self.name} % {rhs.name}"
        return self._long_division(rhs, result_type, op, remainder=True)

    def _long_division(self, rhs: TypedWire, result_type: ZkayType, op: str, remainder: bool) -> TypedWire:
        cs = self.cs
        cs.assert_one(cs.check_non_zero(rhs.wire), f"{op}: no div by 0")

        # Divide the absolute values, then restore the sign
        result_sign: Wire = cs.zero
        lhs_wire, rhs_wire = self.wire, rhs.wire
        if self.type.signed:
            lhs_sign = self.sign_bit()
            lhs_wire = cs.mux(lhs_sign, self.negate().wire, lhs_wire)
            result_sign = lhs_sign
        if rhs.type.signed:
            rhs_sign = rhs.sign_bit()
            rhs_wire = cs.mux(rhs_sign, rhs.negate().wire, rhs_wire)
            if not remainder:
                result_sign = cs.xor_bit(result_sign, rhs_sign)

        # Native division only covers small operands, so go through limb integers
        lhs_long = LimbInteger.from_bits(cs, cs.get_bits(lhs_wire, self.type.bitwidth))
        rhs_long = LimbInteger.from_bits(cs, cs.get_bits(rhs_wire, rhs.type.bitwidth))
        if remainder:
            result = mod(cs, lhs_long, rhs_long, restrict_range=True, description=op).value
        else:
            result = floor_div(cs, lhs_long, rhs_long, description=op)

        res_pos = TypedWire(cs.pack_bits(result.get_bits(result_type.bitwidth)), result_type, op)
        if not result_type.signed:
            return res_pos
        res_neg = res_pos.negate()
        return TypedWire(cs.mux(result_sign, res_neg.wire, res_pos.wire), result_type, op)

    def negate(self) -> TypedWire:
        """Two's-complement negation; plain field negation for the field type."""
        cs = self.cs
        if self.type.bitwidth < FIELD_TYPE_BITWIDTH:
            inverted = TypedWire(cs.inv_bits(self.wire, self.type.bitwidth), self.type, f"~{self.name}")
            return inverted.plus(TypedWire.val(cs, 1, self.type))
        return TypedWire(cs.negate(self.wire), self.type, f"-{self.name}")

    def sign_bit(self) -> Wire:
        return self.cs.get_bits(self.wire, self.type.bitwidth)[self.type.bitwidth - 1]

    # ------------------------------------------------------------------
    # Bit operations
    # ------------------------------------------------------------------

    def bit_or(self, rhs: TypedWire) -> TypedWire:
        result_type = check_type(self.type, rhs.type, allow_field_type=False)
        res = self.cs.or_bitwise(self.wire, rhs.wire, result_type.bitwidth)
        return TypedWire(res, result_type, f"{self.name} | {rhs.name}")

    def bit_and(self, rhs: TypedWire) -> TypedWire:
        result_type = check_type(self.type, rhs.type, allow_field_type=False)
        res = self.cs.and_bitwise(self.wire, rhs.wire, result_type.bitwidth)
        return TypedWire(res, result_type, f"{self.name} & {rhs.name}")

    def bit_xor(self, rhs: TypedWire) -> TypedWire:
        result_type = check_type(self.type, rhs.type, allow_field_type=False)
        res = self.cs.xor_bitwise(self.wire, rhs.wire, result_type.bitwidth)
        return TypedWire(res, result_type, f"{self.name} ^ {rhs.name}")

    def bit_inv(self) -> TypedWire:
        result_type = check_type(self.type, self.type, allow_field_type=False)
        res = self.cs.inv_bits(self.wire, result_type.bitwidth)
        return TypedWire(res, result_type, f"~{self.name}")

    def shift_left_by(self, amount: int) -> TypedWire:
        result_type = check_type(self.type, self.type, allow_field_type=False)
        res = self.cs.shift_left(self.wire, result_type.bitwidth, amount)
        return TypedWire(res, result_type, f"{self.name} << {amount}")

    def shift_right_by(self, amount: int) -> TypedWire:
        """Arithmetic shift for signed types, logical shift otherwise."""
        result_type = check_type(self.type, self.type, allow_field_type=False)
        bitwidth = result_type.bitwidth
        if result_type.signed:
            res = self.cs.shift_arith_right(self.wire, bitwidth, min(amount, bitwidth))
        else:
            res = self.cs.shift_right(self.wire, bitwidth, amount)
        return TypedWire(res, result_type, f"{self.name} >> {amount}")

    # ------------------------------------------------------------------
    # Comparisons
    # ------------------------------------------------------------------

    def is_equal_to(self, rhs: TypedWire) -> TypedWire:
        check_type(self.type, rhs.type)
        return TypedWire(self.cs.is_equal_to(self.wire, rhs.wire), ZK_BOOL, f"{self.name} == {rhs.name}")

    def is_not_equal_to(self, rhs: TypedWire) -> TypedWire:
        check_type(self.type, rhs.type)
        cs = self.cs
        res = cs.check_non_zero(cs.sub(self.wire, rhs.wire))
        return TypedWire(res, ZK_BOOL, f"{self.name} != {rhs.name}")

    def is_less_than(self, rhs: TypedWire) -> TypedWire:
        return self._compare(rhs, or_equal=False)

    def is_less_than_or_equal(self, rhs: TypedWire) -> TypedWire:
        return self._compare(rhs, or_equal=True)

    def is_greater_than(self, rhs: TypedWire) -> TypedWire:
        return rhs.is_less_than(self)

    def is_greater_than_or_equal(self, rhs: TypedWire) -> TypedWire:
        return rhs.is_less_than_or_equal(self)

    def _compare(self, rhs: TypedWire, or_equal: bool) -> TypedWire:
        common_type = check_type(self.type, rhs.type)
        op = f"{self.name} {'<=' if or_equal else '<'} {rhs.name}"
        cs = self.cs
        native = cs.is_less_than_or_equal if or_equal else cs.is_less_than

        if not common_type.signed:
            # Values above the comparison limit are not supported
            bitwidth = min(cs.UNSIGNED_COMPARISON_LIMIT, common_type.bitwidth)
            return TypedWire(native(self.wire, rhs.wire, bitwidth), ZK_BOOL, op)

        # A negative lhs is below any non-negative rhs; equal signs compare
        # like their two's-complement encodings
        lhs_sign, rhs_sign = self.sign_bit(), rhs.sign_bit()
        always_lt = cs.is_greater_than(lhs_sign, rhs_sign, 1)
        same_sign = cs.is_equal_to(lhs_sign, rhs_sign)
        lhs_less = native(self.wire, rhs.wire, common_type.bitwidth)
        res = cs.or_(always_lt, cs.and_(same_sign, lhs_less))
        return TypedWire(res, ZK_BOOL, op)

    # ------------------------------------------------------------------
    # Boolean operations
    # ------------------------------------------------------------------

    def and_(self, rhs: TypedWire) -> TypedWire:
        check_type(ZK_BOOL, self.type)
        check_type(ZK_BOOL, rhs.type)
        return TypedWire(self.cs.and_(self.wire, rhs.wire), ZK_BOOL, f"{self.name} && {rhs.name}")

    def or_(self, rhs: TypedWire) -> TypedWire:
        check_type(ZK_BOOL, self.type)
        check_type(ZK_BOOL, rhs.type)
        return TypedWire(self.cs.or_(self.wire, rhs.wire), ZK_BOOL, f"{self.name} || {rhs.name}")

    def not_(self) -> TypedWire:
        check_type(ZK_BOOL, self.type)
        return TypedWire(self.cs.inv_as_bit(self.wire), ZK_BOOL, f"!{self.name}")

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def cast(self, target_type: ZkayType) -> TypedWire:
        """
        Convert to another type.

        Upcasts sign- or zero-extend, downcasts keep the low bits. A signed
        value cast to the field type maps -v to prime - v.
        """
        cs = self.cs
        from_bw, to_bw = self.type.bitwidth, target_type.bitwidth
        name = f"({target_type}) {self.name}"

        if from_bw < to_bw:
            if not self.type.signed and not self.wire.bit_cache:
                # Not split yet: a zero-extended unsigned value is the same wire
                new_wire = self.wire
            else:
                bits = cs.get_bits(self.wire, from_bw)
                if self.type.signed and to_bw == FIELD_TYPE_BITWIDTH:
                    new_wire = cs.mux(bits[from_bw - 1], cs.negate(self.negate().wire), self.wire)
                else:
                    extend_bit = bits[from_bw - 1] if self.type.signed else cs.zero
                    new_wire = cs.pack_bits(bits + [extend_bit] * (to_bw - from_bw))
        elif from_bw > to_bw:
            new_wire = cs.pack_bits(cs.get_bits(self.wire, from_bw)[:to_bw])
        else:
            new_wire = self.wire
        return TypedWire(new_wire, target_type, name)

    # ------------------------------------------------------------------
    # Operator overloading
    # ------------------------------------------------------------------

    def __add__(self, other: TypedWire) -> TypedWire:
        return self.plus(other)

    def __sub__(self, other: TypedWire) -> TypedWire:
        return self.minus(other)

    def __mul__(self, other: TypedWire) -> TypedWire:
        return self.times(other)

    def __truediv__(self, other: TypedWire) -> TypedWire:
        return self.divide_by(other)

    def __mod__(self, other: TypedWire) -> TypedWire:
        return self.modulo(other)

    def __or__(self, other: TypedWire) -> TypedWire:
        return self.bit_or(other)

    def __and__(self, other: TypedWire) -> TypedWire:
        return self.bit_and(other)

    def __xor__(self, other: TypedWire) -> TypedWire:
        return self.bit_xor(other)

    def __lshift__(self, amount: int) -> TypedWire:
        return self.shift_left_by(amount)

    def __rshift__(self, amount: int) -> TypedWire:
        return self.shift_right_by(amount)

    def __neg__(self) -> TypedWire:
        return self.negate()

    def __invert__(self) -> TypedWire:
        return self.bit_inv()

    def __lt__(self, other: TypedWire) -> TypedWire:
        return self.is_less_than(other)

    def __le__(self, other: TypedWire) -> TypedWire:
        return self.is_less_than_or_equal(other)

    def __gt__(self, other: TypedWire) -> TypedWire:
        return self.is_greater_than(other)

    def __ge__(self, other: TypedWire) -> TypedWire:
        return self.is_greater_than_or_equal(other)


def _handle_overflow(wire: Wire, target_type: ZkayType, was_mul: bool, name: str) -> TypedWire:
    """Reduce an arithmetic result modulo 2^bitwidth."""
    bitwidth = target_type.bitwidth
    if bitwidth < FIELD_TYPE_BITWIDTH:
        # A sum grows by one bit, a product doubles the width
        from_bits = min(FIELD_TYPE_BITWIDTH, 2 * bitwidth if was_mul else bitwidth + 1)
        wire = wire.cs.trim_bits(wire, from_bits, bitwidth)
    return TypedWire(wire, target_type, f"{target_type}({name})")
