# zkay_gadgets/__init__.py
"""
Arithmetic-circuit gadgets for zero-knowledge proofs.

This package provides an append-only constraint system over a prime field,
arbitrary-precision integers split into limbs, and gadgets for division,
modular inversion and modular exponentiation on top of them. TypedWire
emulates fixed-width signed and unsigned integer arithmetic with
machine-style wraparound.
"""
from .errors import CircuitError, ConstraintViolation, PreconditionError, WitnessError
from .constraint_system import BN254_SCALAR_FIELD, CircuitEvaluator, ConstraintSystem, Wire
from .limb_integer import LimbInteger
from .gadgets import (
    Canonical,
    DivisionResult,
    ModInverseGadget,
    ModPowGadget,
    RangeBoundedOnly,
    divide,
    floor_div,
    mod,
)
from .typed import ZK_BOOL, TypedWire, ZkayType, zk_int, zk_uint

__all__ = [
    "CircuitError",
    "PreconditionError",
    "WitnessError",
    "ConstraintViolation",
    "BN254_SCALAR_FIELD",
    "ConstraintSystem",
    "CircuitEvaluator",
    "Wire",
    "LimbInteger",
    "Canonical",
    "RangeBoundedOnly",
    "DivisionResult",
    "divide",
    "mod",
    "floor_div",
    "ModInverseGadget",
    "ModPowGadget",
    "ZkayType",
    "ZK_BOOL",
    "zk_uint",
    "zk_int",
    "TypedWire",
]
