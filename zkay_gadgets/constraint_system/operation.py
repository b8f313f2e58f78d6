# zkay_gadgets/constraint_system/operation.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Sequence

if TYPE_CHECKING:
    from .wire import Wire


@dataclass
class WitnessTask:
    """Deferred prover computation: dependency values in, output values out."""
    dependencies: list[Wire]
    outputs: list[Wire]
    compute: Callable[[Sequence[int]], Sequence[int]]
    description: str = ""


@dataclass
class Operation:
    """Records a single gate, witness computation or assertion in the trace."""
    op_type: str  # "INPUT", "CONST", "ADD", "SUB", "MUL", "LINEAR", "WITNESS", "ASSERT_EQ", "ASSERT_BOOL"
    operands: list[Wire]
    result: Wire | None
    extra: dict = field(default_factory=dict)
    comment: str | None = None

    @property
    def task(self) -> WitnessTask | None:
        return self.extra.get("task")

    @property
    def is_constraint(self) -> bool:
        """Whether this operation costs a rank-1 constraint."""
        return self.op_type in ("MUL", "ASSERT_EQ", "ASSERT_BOOL")
