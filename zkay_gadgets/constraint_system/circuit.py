# zkay_gadgets/constraint_system/circuit.py
from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Callable, Sequence

from ..errors import PreconditionError
from .operation import Operation, WitnessTask
from .wire import Wire

if TYPE_CHECKING:
    from ..limb_integer import LimbInteger
    from .evaluator import CircuitEvaluator

logger = logging.getLogger(__name__)

BN254_SCALAR_FIELD = 21888242871839275222246405745257275088548364400416034343698204186575808495617


class ConstraintSystem:
    """
    An append-only constraint system over a prime field.

    Every gadget receives the system it writes into explicitly. Wires are
    produced by exactly one recorded operation; witness values are filled in
    later by a CircuitEvaluator replaying the trace in order.
    """

    DEFAULT_LIMB_BITWIDTH = 120
    MAX_LIMB_BITWIDTH = 124
    UNSIGNED_COMPARISON_LIMIT = 253

    def __init__(
        self,
        name: str,
        field_prime: int = BN254_SCALAR_FIELD,
        limb_bitwidth: int = DEFAULT_LIMB_BITWIDTH,
        restrict_everything: bool = False,
    ):
        if not 1 <= limb_bitwidth <= self.MAX_LIMB_BITWIDTH:
            raise PreconditionError(
                f"limb_bitwidth must be in [1, {self.MAX_LIMB_BITWIDTH}], got {limb_bitwidth}"
            )
        self.name = name
        self.field_prime = field_prime
        self.field_capacity = field_prime.bit_length() - 1
        self.limb_bitwidth = limb_bitwidth
        # Debugging switch: every typed wire restricts its bitwidth, not only private inputs
        self.restrict_everything = restrict_everything

        # Tracking
        self.wires: list[Wire] = []
        self.operations: list[Operation] = []
        self.inputs: dict[str, Wire | LimbInteger] = {}
        self.constants: dict[int, Wire] = {}  # value -> wire

        # Counter for auto-generated wire names
        self._wire_counter = 0

    @property
    def unknown_bound(self) -> int:
        return self.field_prime - 1

    def _next_wire_name(self, prefix: str = "tmp") -> str:
        """Generate a unique wire name."""
        name = f"{prefix}_{self._wire_counter}"
        self._wire_counter += 1
        return name

    def _new_wire(self, name: str | None, max_bound: int) -> Wire:
        wire = Wire(
            cs=self,
            wire_id=len(self.wires),
            name=name or self._next_wire_name(),
            max_bound=min(max_bound, self.unknown_bound),
        )
        self.wires.append(wire)
        return wire

    def _create_op(
        self,
        op_type: str,
        operands: list[Wire],
        max_bound: int,
        name: str | None = None,
        **extra,
    ) -> Wire:
        """Create an operation and its result wire."""
        result = self._new_wire(name, max_bound)

        op = Operation(
            op_type=op_type,
            operands=operands,
            result=result,
            extra=extra if extra else {},
        )

        result.source = op
        self.operations.append(op)

        return result

    def _as_wire(self, value: Wire | int) -> Wire:
        if isinstance(value, Wire):
            return value
        return self.constant(value)

    @staticmethod
    def constant_value(wire: Wire) -> int | None:
        """Return the value of a constant wire, None for anything else."""
        if wire.source is not None and wire.source.op_type == "CONST":
            return wire.source.extra["value"]
        return None

    # ------------------------------------------------------------------
    # Inputs, constants and witnesses
    # ------------------------------------------------------------------

    def input(self, name: str, bitwidth: int | None = None, private: bool = False) -> Wire:
        """Create a named input wire, range-restricted when it is private."""
        if name in self.inputs:
            raise ValueError(f"Input '{name}' already exists")

        max_bound = (1 << bitwidth) - 1 if bitwidth is not None else self.unknown_bound
        wire = self._create_op("INPUT", [], max_bound, name=name)
        self.inputs[name] = wire

        if bitwidth is not None and (private or self.restrict_everything):
            self.restrict_bit_length(wire, bitwidth)

        return wire

    def limb_input(self, name: str, bitwidth: int, private: bool = False) -> LimbInteger:
        """Create a named limb-integer input able to hold `bitwidth` bits."""
        from ..limb_integer import LimbInteger, limb_bitwidths

        if name in self.inputs:
            raise ValueError(f"Input '{name}' already exists")

        widths = limb_bitwidths(bitwidth, self.limb_bitwidth)
        limbs = [
            self._create_op("INPUT", [], (1 << w) - 1, name=f"{name}[{i}]")
            for i, w in enumerate(widths)
        ]
        value = LimbInteger(self, limbs, widths)
        self.inputs[name] = value

        if private:
            value.restrict_bitwidth()

        return value

    def constant(self, value: int) -> Wire:
        """Create a constant (singleton) wire."""
        value %= self.field_prime
        if value in self.constants:
            return self.constants[value]

        wire = self._create_op("CONST", [], value, name=f"const_{value}", value=value)
        self.constants[value] = wire
        return wire

    @property
    def zero(self) -> Wire:
        return self.constant(0)

    @property
    def one(self) -> Wire:
        return self.constant(1)

    def witness_wires(self, count: int, max_bound: int | None = None, prefix: str = "w") -> list[Wire]:
        """Allocate prover witness wires; their values come from a WitnessTask."""
        bound = self.unknown_bound if max_bound is None else max_bound
        return [self._new_wire(self._next_wire_name(prefix), bound) for _ in range(count)]

    def specify_witness(
        self,
        dependencies: Sequence[Wire],
        outputs: Sequence[Wire],
        compute: Callable[[Sequence[int]], Sequence[int]],
        description: str = "",
    ) -> WitnessTask:
        """Register the computation producing `outputs` from `dependencies`."""
        for wire in outputs:
            if wire.source is not None:
                raise PreconditionError(f"Wire {wire.name} already has a producer")

        task = WitnessTask(
            dependencies=list(dependencies),
            outputs=list(outputs),
            compute=compute,
            description=description,
        )
        op = Operation(
            op_type="WITNESS",
            operands=task.dependencies,
            result=None,
            extra={"task": task},
            comment=description or None,
        )
        for wire in outputs:
            wire.source = op
        self.operations.append(op)
        return task

    # ------------------------------------------------------------------
    # Native gates
    # ------------------------------------------------------------------

    def add(self, a: Wire | int, b: Wire | int) -> Wire:
        """Add two wires."""
        a, b = self._as_wire(a), self._as_wire(b)
        ca, cb = self.constant_value(a), self.constant_value(b)
        if ca is not None and cb is not None:
            return self.constant(ca + cb)
        return self._create_op("ADD", [a, b], a.max_bound + b.max_bound)

    def sub(self, a: Wire | int, b: Wire | int) -> Wire:
        """Subtract two wires; the result may wrap around the field."""
        a, b = self._as_wire(a), self._as_wire(b)
        ca, cb = self.constant_value(a), self.constant_value(b)
        if ca is not None and cb is not None:
            return self.constant(ca - cb)
        return self._create_op("SUB", [a, b], self.unknown_bound)

    def mul(self, a: Wire | int, b: Wire | int) -> Wire:
        """Multiply two wires. Multiplying by a constant costs no constraint."""
        a, b = self._as_wire(a), self._as_wire(b)
        ca, cb = self.constant_value(a), self.constant_value(b)
        if ca is not None and cb is not None:
            return self.constant(ca * cb)
        if ca is not None:
            return self.scale(b, ca)
        if cb is not None:
            return self.scale(a, cb)
        return self._create_op("MUL", [a, b], a.max_bound * b.max_bound)

    def scale(self, a: Wire, factor: int) -> Wire:
        return self.linear_combination([(factor, a)])

    def negate(self, a: Wire) -> Wire:
        return self.scale(a, -1)

    def linear_combination(
        self,
        terms: Sequence[tuple[int, Wire]],
        constant: int = 0,
        max_bound: int | None = None,
    ) -> Wire:
        """
        Compute sum(c * w) + constant.

        The bound is derived from the terms when all coefficients are
        non-negative; callers that know a tighter bound pass `max_bound`.
        """
        if not terms:
            return self.constant(constant)

        if max_bound is None:
            if constant >= 0 and all(c >= 0 for c, _ in terms):
                max_bound = constant + sum(c * w.max_bound for c, w in terms)
            else:
                max_bound = self.unknown_bound

        p = self.field_prime
        return self._create_op(
            "LINEAR",
            [w for _, w in terms],
            max_bound,
            coefficients=[c % p for c, _ in terms],
            constant=constant % p,
        )

    # ------------------------------------------------------------------
    # Assertions
    # ------------------------------------------------------------------

    def assert_equal(self, a: Wire | int, b: Wire | int, description: str = "") -> None:
        a, b = self._as_wire(a), self._as_wire(b)
        self.operations.append(
            Operation(op_type="ASSERT_EQ", operands=[a, b], result=None, comment=description or None)
        )

    def assert_zero(self, a: Wire, description: str = "") -> None:
        self.assert_equal(a, self.zero, description)

    def assert_one(self, a: Wire, description: str = "") -> None:
        self.assert_equal(a, self.one, description)

    def assert_binary(self, a: Wire, description: str = "") -> None:
        """Constrain a * (a - 1) == 0."""
        if self.constant_value(a) in (0, 1):
            return
        self.operations.append(
            Operation(op_type="ASSERT_BOOL", operands=[a], result=None, comment=description or None)
        )

    # ------------------------------------------------------------------
    # Bit gadgets
    # ------------------------------------------------------------------

    def get_bits(self, wire: Wire, bitwidth: int) -> list[Wire]:
        """
        Decompose a wire into `bitwidth` bits, least significant first.

        The decomposition constrains the wire to be below 2^bitwidth.
        Decompositions are cached per wire; a cached narrower one is
        reused and padded with zero bits.
        """
        if bitwidth < 0:
            raise PreconditionError(f"Negative bitwidth {bitwidth}")

        cached = [n for n in wire.bit_cache if n <= bitwidth]
        if cached:
            n = max(cached)
            if n == bitwidth:
                return list(wire.bit_cache[n])
            return wire.bit_cache[n] + [self.zero] * (bitwidth - n)

        value = self.constant_value(wire)
        if value is not None:
            if value.bit_length() > bitwidth:
                raise PreconditionError(
                    f"Constant {value} does not fit into {bitwidth} bits"
                )
            return [self.constant((value >> i) & 1) for i in range(bitwidth)]

        bits = self.witness_wires(bitwidth, max_bound=1, prefix=f"{wire.name}_bit")
        self.specify_witness(
            [wire],
            bits,
            lambda values: [(values[0] >> i) & 1 for i in range(bitwidth)],
            f"split {wire.name} into {bitwidth} bits",
        )
        for bit in bits:
            self.assert_binary(bit)
        self.assert_equal(
            self.pack_bits(bits), wire, f"{wire.name} fits into {bitwidth} bits"
        )

        wire.bit_cache[bitwidth] = bits
        if bitwidth < self.field_prime.bit_length():
            wire.max_bound = min(wire.max_bound, (1 << bitwidth) - 1)
        return list(bits)

    def restrict_bit_length(self, wire: Wire, bitwidth: int) -> None:
        """Constrain a wire to be below 2^bitwidth."""
        self.get_bits(wire, bitwidth)

    def pack_bits(self, bits: Sequence[Wire], offset: int = 0) -> Wire:
        """Pack LSB-first bits into one wire."""
        return self.linear_combination(
            [(1 << (offset + i), bit) for i, bit in enumerate(bits)],
            max_bound=((1 << len(bits)) - 1) << offset,
        )

    def pack_bits_into_words(self, bits: Sequence[Wire], word_bitwidth: int) -> list[Wire]:
        return [
            self.pack_bits(bits[i:i + word_bitwidth])
            for i in range(0, len(bits), word_bitwidth)
        ]

    def trim_bits(self, wire: Wire, from_bits: int, to_bits: int) -> Wire:
        """Keep the lowest `to_bits` of a wire known to fit into `from_bits`."""
        bits = self.get_bits(wire, from_bits)
        return self.pack_bits(bits[:to_bits])

    def inv_bits(self, wire: Wire, bitwidth: int) -> Wire:
        bits = self.get_bits(wire, bitwidth)
        return self.linear_combination(
            [(-(1 << i), bit) for i, bit in enumerate(bits)],
            constant=(1 << bitwidth) - 1,
            max_bound=(1 << bitwidth) - 1,
        )

    def shift_left(self, wire: Wire, bitwidth: int, amount: int) -> Wire:
        bits = self.get_bits(wire, bitwidth)
        if amount >= bitwidth:
            return self.zero
        return self.pack_bits(bits[:bitwidth - amount], offset=amount)

    def shift_right(self, wire: Wire, bitwidth: int, amount: int) -> Wire:
        bits = self.get_bits(wire, bitwidth)
        return self.pack_bits(bits[amount:])

    def shift_arith_right(self, wire: Wire, bitwidth: int, amount: int) -> Wire:
        bits = self.get_bits(wire, bitwidth)
        amount = min(amount, bitwidth)
        sign = bits[bitwidth - 1]
        return self.pack_bits(bits[amount:] + [sign] * amount)

    def _bitwise(self, a: Wire, b: Wire, bitwidth: int, bit_op: Callable[[Wire, Wire], Wire]) -> Wire:
        a_bits = self.get_bits(a, bitwidth)
        b_bits = self.get_bits(b, bitwidth)
        return self.pack_bits([bit_op(x, y) for x, y in zip(a_bits, b_bits)])

    def and_bitwise(self, a: Wire, b: Wire, bitwidth: int) -> Wire:
        return self._bitwise(a, b, bitwidth, self.and_)

    def or_bitwise(self, a: Wire, b: Wire, bitwidth: int) -> Wire:
        return self._bitwise(a, b, bitwidth, self.or_)

    def xor_bitwise(self, a: Wire, b: Wire, bitwidth: int) -> Wire:
        return self._bitwise(a, b, bitwidth, self.xor_bit)

    # ------------------------------------------------------------------
    # Boolean gadgets (operands are assumed to be bits)
    # ------------------------------------------------------------------

    def and_(self, a: Wire, b: Wire) -> Wire:
        return self.mul(a, b)

    def or_(self, a: Wire, b: Wire) -> Wire:
        ab = self.mul(a, b)
        return self.linear_combination([(1, a), (1, b), (-1, ab)], max_bound=1)

    def xor_bit(self, a: Wire, b: Wire) -> Wire:
        ab = self.mul(a, b)
        return self.linear_combination([(1, a), (1, b), (-2, ab)], max_bound=1)

    def inv_as_bit(self, a: Wire) -> Wire:
        return self.linear_combination([(-1, a)], constant=1, max_bound=1)

    def mux(self, selector: Wire, if_true: Wire | int, if_false: Wire | int) -> Wire:
        """Branchless `selector ? if_true : if_false`."""
        if_true, if_false = self._as_wire(if_true), self._as_wire(if_false)
        if if_true is if_false:
            return if_true
        picked = self.mul(selector, self.sub(if_true, if_false))
        return self.linear_combination(
            [(1, if_false), (1, picked)],
            max_bound=max(if_true.max_bound, if_false.max_bound),
        )

    def _is_zero(self, wire: Wire) -> Wire:
        p = self.field_prime
        (inverse,) = self.witness_wires(1, prefix="inv")
        self.specify_witness(
            [wire],
            [inverse],
            lambda values: [pow(values[0], -1, p) if values[0] else 0],
            f"inverse of {wire.name}",
        )
        is_zero = self.inv_as_bit(self.mul(wire, inverse))
        self.assert_zero(self.mul(wire, is_zero), f"{wire.name} is zero or invertible")
        return is_zero

    def is_equal_to(self, a: Wire | int, b: Wire | int) -> Wire:
        return self._is_zero(self.sub(a, b))

    def check_non_zero(self, wire: Wire) -> Wire:
        """Return a bit that is 1 iff the wire is non-zero."""
        return self.inv_as_bit(self._is_zero(wire))

    def is_less_than(self, a: Wire | int, b: Wire | int, bitwidth: int) -> Wire:
        """Compare two values both known to fit into `bitwidth` bits."""
        if bitwidth > self.UNSIGNED_COMPARISON_LIMIT:
            raise PreconditionError(
                f"Comparisons are limited to {self.UNSIGNED_COMPARISON_LIMIT} bits, got {bitwidth}"
            )
        a, b = self._as_wire(a), self._as_wire(b)
        shifted = self.linear_combination([(1, a), (-1, b)], constant=1 << bitwidth)
        bits = self.get_bits(shifted, bitwidth + 1)
        return self.inv_as_bit(bits[bitwidth])

    def is_less_than_or_equal(self, a: Wire | int, b: Wire | int, bitwidth: int) -> Wire:
        return self.inv_as_bit(self.is_less_than(b, a, bitwidth))

    def is_greater_than(self, a: Wire | int, b: Wire | int, bitwidth: int) -> Wire:
        return self.is_less_than(b, a, bitwidth)

    # ------------------------------------------------------------------
    # Evaluation and diagnostics
    # ------------------------------------------------------------------

    def evaluate(
        self,
        inputs: dict[str, int],
        overrides: dict[Wire, int] | None = None,
    ) -> CircuitEvaluator:
        """Assign named inputs and run the witness-evaluation pass."""
        from .evaluator import CircuitEvaluator

        evaluator = CircuitEvaluator(self)
        for name, value in inputs.items():
            if name not in self.inputs:
                raise ValueError(f"Unknown input '{name}'")
            evaluator.set_input(self.inputs[name], value)
        evaluator.run(overrides)
        return evaluator

    def stats(self) -> dict:
        """Return circuit statistics."""
        return {
            "num_wires": len(self.wires),
            "num_operations": len(self.operations),
            "num_constraints": sum(1 for op in self.operations if op.is_constraint),
            "num_witness_tasks": sum(1 for op in self.operations if op.op_type == "WITNESS"),
            "num_assertions": sum(1 for op in self.operations if op.op_type.startswith("ASSERT")),
            "max_bits": self.max_bits(),
        }

    def max_bits(self) -> int:
        """Return maximum bit-width across all wires."""
        if not self.wires:
            return 0
        return max(w.bit_width for w in self.wires)

    def print_bounds(self) -> None:
        """Print all current wire bounds."""
        print(f"=== Circuit '{self.name}' Bounds ===")
        print(f"Field: {self.field_prime.bit_length()} bits, limb width: {self.limb_bitwidth}")
        print()
        for wire in self.wires:
            source = wire.source.op_type if wire.source else "UNASSIGNED"
            print(f"  {wire.inspect()}  [{source}]")
