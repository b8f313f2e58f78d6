# tests/typed/test_zkay_type.py
import pytest

from zkay_gadgets import PreconditionError
from zkay_gadgets.typed import ZK_124, ZK_BOOL, ZkayType, check_type, negative_constant, zk_int, zk_uint


class TestRegistry:
    @pytest.mark.parametrize("bitwidth", range(8, 257, 8))
    def test_uint_types(self, bitwidth):
        t = zk_uint(bitwidth)

        assert t.bitwidth == bitwidth
        assert not t.signed
        assert zk_uint(bitwidth) is t

    @pytest.mark.parametrize("bitwidth", range(8, 249, 8))
    def test_int_types(self, bitwidth):
        t = zk_int(bitwidth)

        assert t.bitwidth == bitwidth
        assert t.signed
        assert zk_int(bitwidth) is t

    @pytest.mark.parametrize("bitwidth", [0, 1, 7, 12, 264])
    def test_invalid_uint_raises(self, bitwidth):
        with pytest.raises(PreconditionError, match="No uint type"):
            zk_uint(bitwidth)

    def test_no_signed_field_type(self):
        with pytest.raises(PreconditionError, match="No int type with bitwidth 256"):
            zk_int(256)

    def test_special_types(self):
        assert ZK_BOOL == ZkayType(1, False)
        assert ZK_124.bitwidth == 124
        assert not ZK_124.signed

    def test_str(self):
        assert str(zk_uint(8)) == "u8"
        assert str(zk_int(32)) == "s32"
        assert str(ZK_BOOL) == "u1"

    def test_minus_one(self):
        assert zk_uint(8).minus_one == 0xFF
        assert zk_int(16).minus_one == 0xFFFF

    def test_types_are_immutable(self):
        with pytest.raises(AttributeError):
            zk_uint(8).bitwidth = 16


class TestCheckType:
    def test_matching_types(self):
        assert check_type(zk_uint(8), zk_uint(8)) is zk_uint(8)

    def test_mismatch_raises(self):
        with pytest.raises(PreconditionError, match="Type s8 does not match expected type u8") as excinfo:
            check_type(zk_uint(8), zk_int(8))
        assert excinfo.value.context == {"expected": "u8", "actual": "s8"}

    def test_untyped_raises(self):
        with pytest.raises(PreconditionError, match="untyped"):
            check_type(zk_uint(8), None)

    def test_field_type(self):
        assert check_type(zk_uint(256), zk_uint(256)) is zk_uint(256)
        with pytest.raises(PreconditionError, match="256bit"):
            check_type(zk_uint(256), zk_uint(256), allow_field_type=False)


class TestNegativeConstant:
    @pytest.mark.parametrize(
        "value, bitwidth, expected",
        [(1, 8, 0xFF), (7, 8, 0xF9), (128, 8, 0x80), (0, 8, 0), (1, 248, (1 << 248) - 1)],
    )
    def test_twos_complement(self, value, bitwidth, expected):
        assert negative_constant(value, bitwidth) == expected

    def test_requires_signed_width(self):
        with pytest.raises(PreconditionError):
            negative_constant(1, 256)
