# zkay_gadgets/constraint_system/evaluator.py
"""
Witness evaluation for a ConstraintSystem.

The evaluator replays the recorded trace once, in order: gates are
computed from their operands, witness tasks fill in prover-supplied
wires, and every assertion is checked against the resulting values.
"""
from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Sequence

from ..errors import ConstraintViolation, PreconditionError, WitnessError
from .operation import Operation
from .wire import Wire

if TYPE_CHECKING:
    from ..limb_integer import LimbInteger
    from .circuit import ConstraintSystem

logger = logging.getLogger(__name__)


class CircuitEvaluator:
    """Concrete wire values for one run of a constraint system."""

    def __init__(self, cs: ConstraintSystem):
        self.cs = cs
        self.values: dict[int, int] = {}

    def set_wire_value(self, wire: Wire, value: int) -> None:
        self.values[wire.wire_id] = value % self.cs.field_prime

    def set_limb_value(self, value: LimbInteger, integer: int) -> None:
        from ..limb_integer import split_value

        if integer < 0:
            raise PreconditionError(f"Limb integers are non-negative, got {integer}")
        if integer.bit_length() > value.size * self.cs.limb_bitwidth:
            raise PreconditionError(
                f"Value of {integer.bit_length()} bits does not fit into {value.size} limbs"
            )
        for limb, chunk in zip(value.limbs, split_value(integer, value.size, self.cs.limb_bitwidth)):
            self.set_wire_value(limb, chunk)

    def set_input(self, target: Wire | LimbInteger, value: int) -> None:
        if isinstance(target, Wire):
            self.set_wire_value(target, value)
        else:
            self.set_limb_value(target, value)

    def has_value(self, wire: Wire) -> bool:
        return wire.wire_id in self.values

    def get_wire_value(self, wire: Wire) -> int:
        try:
            return self.values[wire.wire_id]
        except KeyError:
            raise WitnessError(f"Wire {wire.name} has no value yet") from None

    def get_wire_values(self, wires: Sequence[Wire]) -> list[int]:
        return [self.get_wire_value(w) for w in wires]

    def get_limb_value(self, value: LimbInteger) -> int:
        from ..limb_integer import group_values

        return group_values(self.get_wire_values(value.limbs), self.cs.limb_bitwidth)

    def run(self, overrides: dict[Wire, int] | None = None) -> CircuitEvaluator:
        """
        Evaluate every operation in trace order.

        `overrides` replaces the outputs of witness tasks after they ran,
        which models a prover deviating from the honest witness.
        """
        overrides = overrides or {}
        for wire in overrides:
            if wire.source is None or wire.source.op_type != "WITNESS":
                raise PreconditionError(f"Only witness wires can be overridden, not {wire.name}")

        for op in self.cs.operations:
            self._evaluate_op(op, overrides)

        logger.debug(
            "Evaluated circuit '%s': %d operations, %d wires",
            self.cs.name, len(self.cs.operations), len(self.values),
        )
        return self

    def _evaluate_op(self, op: Operation, overrides: dict[Wire, int]) -> None:
        p = self.cs.field_prime

        if op.op_type == "INPUT":
            if op.result.wire_id not in self.values:
                raise WitnessError(f"No value assigned to input {op.result.name}")

        elif op.op_type == "CONST":
            self.values[op.result.wire_id] = op.extra["value"]

        elif op.op_type == "ADD":
            a, b = self.get_wire_values(op.operands)
            self.values[op.result.wire_id] = (a + b) % p

        elif op.op_type == "SUB":
            a, b = self.get_wire_values(op.operands)
            self.values[op.result.wire_id] = (a - b) % p

        elif op.op_type == "MUL":
            a, b = self.get_wire_values(op.operands)
            self.values[op.result.wire_id] = (a * b) % p

        elif op.op_type == "LINEAR":
            total = op.extra["constant"]
            for c, v in zip(op.extra["coefficients"], self.get_wire_values(op.operands)):
                total += c * v
            self.values[op.result.wire_id] = total % p

        elif op.op_type == "WITNESS":
            self._run_task(op, overrides)

        elif op.op_type == "ASSERT_EQ":
            a, b = self.get_wire_values(op.operands)
            if a != b:
                self._fail(op, lhs=a, rhs=b)

        elif op.op_type == "ASSERT_BOOL":
            (a,) = self.get_wire_values(op.operands)
            if a not in (0, 1):
                self._fail(op, value=a)

        else:
            raise WitnessError(f"Unknown operation type {op.op_type}")

    def _run_task(self, op: Operation, overrides: dict[Wire, int]) -> None:
        task = op.task
        for dep in task.dependencies:
            if dep.wire_id not in self.values:
                raise WitnessError(
                    f"Witness task '{task.description}' reads {dep.name} before it has a value"
                )

        try:
            results = list(task.compute(self.get_wire_values(task.dependencies)))
        except PreconditionError:
            raise
        except (ArithmeticError, ValueError) as exc:
            raise WitnessError(f"Witness task '{task.description}' failed: {exc}") from exc

        if len(results) != len(task.outputs):
            raise WitnessError(
                f"Witness task '{task.description}' produced {len(results)} values "
                f"for {len(task.outputs)} wires"
            )

        p = self.cs.field_prime
        for wire, value in zip(task.outputs, results):
            self.values[wire.wire_id] = overrides.get(wire, value) % p

    def _fail(self, op: Operation, **context) -> None:
        names = ", ".join(w.name for w in op.operands)
        message = f"{op.op_type} failed: {op.comment or names}"
        logger.error("Circuit '%s': %s %s", self.cs.name, message, context)
        raise ConstraintViolation(message, context=context)
