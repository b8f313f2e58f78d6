# tests/constraint_system/test_wire.py
import pytest

from zkay_gadgets import ConstraintSystem, PreconditionError


class TestInputCreation:
    def test_create_input_with_bitwidth(self, cs):
        a = cs.input("a", 8)

        assert a.name == "a"
        assert a.max_bound == 255
        assert a.bit_width == 8
        assert a.source.op_type == "INPUT"

    def test_input_without_bitwidth_is_unbounded(self, cs):
        a = cs.input("a")
        assert a.max_bound == cs.field_prime - 1

    def test_input_registered_by_name(self, cs):
        a = cs.input("a", 8)
        b = cs.input("b", 8)

        assert cs.inputs["a"] is a
        assert cs.inputs["b"] is b

    def test_duplicate_input_name_raises(self, cs):
        cs.input("a", 8)

        with pytest.raises(ValueError, match="already exists"):
            cs.input("a", 16)

    def test_duplicate_limb_input_name_raises(self, cs):
        cs.input("a", 8)

        with pytest.raises(ValueError, match="already exists"):
            cs.limb_input("a", 256)

    def test_public_input_is_not_restricted(self, cs):
        a = cs.input("a", 8)
        assert a.bit_cache == {}

    def test_private_input_is_restricted(self, cs):
        a = cs.input("a", 8, private=True)
        assert 8 in a.bit_cache

    def test_restrict_everything_restricts_public_inputs(self):
        cs = ConstraintSystem("test", restrict_everything=True)
        a = cs.input("a", 8)
        assert 8 in a.bit_cache

    def test_inspect_shows_bound(self, cs):
        a = cs.input("a", 8)
        assert a.inspect() == "a: Wire<8 bits, <= 255>"


class TestConstants:
    def test_constants_are_memoized(self, cs):
        assert cs.constant(5) is cs.constant(5)
        assert cs.one is cs.constant(1)
        assert cs.zero is cs.constant(0)

    def test_constants_are_reduced_mod_prime(self, cs):
        assert cs.constant(-1) is cs.constant(cs.field_prime - 1)

    def test_constant_value(self, cs):
        a = cs.input("a", 8)

        assert cs.constant_value(cs.constant(42)) == 42
        assert cs.constant_value(a) is None

    def test_constant_folding(self, cs):
        c = cs.constant(3) + cs.constant(4)
        assert c is cs.constant(7)

    def test_constant_operand_from_int(self, cs):
        a = cs.input("a", 8)

        b = a + 1

        assert b.source.op_type == "ADD"
        assert b.source.operands[1] is cs.one


class TestGateBounds:
    def test_add_bounds(self, cs):
        a = cs.input("a", 8)
        b = cs.input("b", 8)

        c = a + b

        assert c.max_bound == 510
        op = cs.operations[-1]
        assert op.op_type == "ADD"
        assert op.operands == [a, b]
        assert op.result is c

    def test_mul_bounds(self, cs):
        a = cs.input("a", 8)
        b = cs.input("b", 4)

        c = a * b

        assert c.max_bound == 255 * 15
        assert c.source.op_type == "MUL"

    def test_sub_bound_is_unknown(self, cs):
        a = cs.input("a", 8)
        b = cs.input("b", 8)

        c = a - b

        assert c.max_bound == cs.unknown_bound

    def test_mul_by_constant_is_linear(self, cs):
        a = cs.input("a", 8)

        c = a * 5

        assert c.source.op_type == "LINEAR"
        assert c.source.extra["coefficients"] == [5]
        assert c.max_bound == 255 * 5

    def test_negate_is_linear(self, cs):
        a = cs.input("a", 8)

        c = -a

        assert c.source.op_type == "LINEAR"
        assert c.source.extra["coefficients"] == [cs.field_prime - 1]

    def test_linear_combination_explicit_bound(self, cs):
        a = cs.input("a", 8)
        b = cs.input("b", 8)

        c = cs.linear_combination([(1, a), (-1, b)], constant=255, max_bound=510)

        assert c.max_bound == 510

    def test_bounds_never_exceed_field(self, cs):
        a = cs.input("a")
        b = cs.input("b")

        c = a * b

        assert c.max_bound == cs.unknown_bound


class TestBitGadgets:
    def test_get_bits_tightens_bound(self, cs):
        a = cs.input("a")

        bits = cs.get_bits(a, 16)

        assert len(bits) == 16
        assert a.max_bound == (1 << 16) - 1
        assert all(bit.max_bound == 1 for bit in bits)

    def test_get_bits_is_cached(self, cs):
        a = cs.input("a", 16)
        bits = a.get_bits(16)
        count = len(cs.operations)

        again = a.get_bits(16)

        assert again == bits
        assert len(cs.operations) == count

    def test_wider_request_reuses_narrow_decomposition(self, cs):
        a = cs.input("a", 16)
        bits = a.get_bits(8)
        zero = cs.zero
        count = len(cs.operations)

        wide = a.get_bits(12)

        assert wide[:8] == bits
        assert all(bit is zero for bit in wide[8:])
        assert len(cs.operations) == count

    def test_constant_bits_are_constants(self, cs):
        bits = cs.get_bits(cs.constant(0b1011), 4)
        assert [cs.constant_value(b) for b in bits] == [1, 1, 0, 1]

    def test_constant_too_wide_raises(self, cs):
        with pytest.raises(PreconditionError, match="does not fit"):
            cs.get_bits(cs.constant(300), 8)

    def test_negative_bitwidth_raises(self, cs):
        a = cs.input("a", 8)
        with pytest.raises(PreconditionError):
            cs.get_bits(a, -1)

    def test_comparison_width_limit(self, cs):
        a = cs.input("a")
        b = cs.input("b")

        with pytest.raises(PreconditionError, match="253"):
            cs.is_less_than(a, b, 254)


class TestStats:
    def test_stats(self, cs):
        a = cs.input("a", 8)
        b = cs.input("b", 8)
        c = a * b
        cs.assert_equal(c, cs.constant(6))

        stats = cs.stats()

        assert stats["num_operations"] == len(cs.operations)
        assert stats["num_wires"] == len(cs.wires)
        assert stats["num_constraints"] == 2  # MUL + ASSERT_EQ
        assert stats["num_assertions"] == 1
        assert stats["num_witness_tasks"] == 0
        assert stats["max_bits"] == 16

    def test_bit_decomposition_counts_boolean_constraints(self, cs):
        a = cs.input("a", 8)
        a.get_bits(4)

        stats = cs.stats()

        assert stats["num_witness_tasks"] == 1
        assert stats["num_assertions"] == 5  # 4 booleans + packing

    def test_print_bounds(self, cs, capsys):
        a = cs.input("a", 8)
        b = cs.input("b", 8)
        a + b

        cs.print_bounds()

        out = capsys.readouterr().out
        assert "=== Circuit 'test' Bounds ===" in out
        assert "a: Wire<8 bits, <= 255>  [INPUT]" in out
        assert "[ADD]" in out
