# tests/conftest.py
import pytest

from zkay_gadgets import ConstraintSystem


@pytest.fixture
def cs():
    """A fresh constraint system over the default field and limb width."""
    return ConstraintSystem("test")


@pytest.fixture
def small_cs():
    """8-bit limbs, so that modest values already span several limbs."""
    return ConstraintSystem("test", limb_bitwidth=8)
