# zkay_gadgets/constraint_system/__init__.py
from .wire import Wire
from .operation import Operation, WitnessTask
from .circuit import BN254_SCALAR_FIELD, ConstraintSystem
from .evaluator import CircuitEvaluator

__all__ = [
    "Wire",
    "Operation",
    "WitnessTask",
    "ConstraintSystem",
    "CircuitEvaluator",
    "BN254_SCALAR_FIELD",
]
