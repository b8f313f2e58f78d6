# zkay_gadgets/gadgets/__init__.py
from .division import Canonical, DivisionResult, RangeBoundedOnly, Remainder, divide, floor_div, mod
from .mod_inverse import ModInverseGadget
from .mod_pow import ModPowGadget

__all__ = [
    "Canonical",
    "RangeBoundedOnly",
    "Remainder",
    "DivisionResult",
    "divide",
    "mod",
    "floor_div",
    "ModInverseGadget",
    "ModPowGadget",
]
