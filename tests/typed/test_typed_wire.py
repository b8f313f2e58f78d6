# tests/typed/test_typed_wire.py
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from zkay_gadgets import ConstraintSystem, ConstraintViolation, PreconditionError
from zkay_gadgets.typed import ZK_BOOL, TypedWire, zk_int, zk_uint

U8, S8 = zk_uint(8), zk_int(8)


def encode(value, t):
    """Two's-complement input encoding of a semantic integer."""
    return value & t.minus_one


def binary(cs, t, op, x, y):
    """Build `a <op> b` over two inputs of type t and return its semantic value."""
    a = TypedWire.input(cs, "a", t)
    b = TypedWire.input(cs, "b", t)
    out = op(a, b)
    ev = cs.evaluate({"a": encode(x, t), "b": encode(y, t)})
    return out.value_in(ev)


class TestConstruction:
    def test_triple(self, cs):
        w = cs.input("x", 8)
        t = TypedWire(w, U8, "x")

        assert t.wire is w
        assert t.type is U8
        assert t.name == "x"
        assert repr(t) == "TypedWire<u8>(x)"

    def test_none_raises(self, cs):
        with pytest.raises(PreconditionError):
            TypedWire(cs.input("x", 8), None)

    def test_restrict(self, cs):
        w = cs.input("x")
        TypedWire(w, U8, "x", restrict=True)

        assert w.max_bound == 255
        with pytest.raises(ConstraintViolation):
            cs.evaluate({"x": 256})

    def test_public_input_is_not_restricted(self, cs):
        x = TypedWire.input(cs, "x", U8)
        assert x.wire.bit_cache == {}

    def test_private_input_is_restricted(self, cs):
        TypedWire.input(cs, "x", U8, private=True)

        with pytest.raises(ConstraintViolation):
            cs.evaluate({"x": 300})

    def test_restrict_everything(self):
        cs = ConstraintSystem("test", restrict_everything=True)
        x = TypedWire.input(cs, "x", U8)
        assert 8 in x.wire.bit_cache


class TestConstants:
    def test_val(self, cs):
        c = TypedWire.val(cs, 42, U8)
        ev = cs.evaluate({})

        assert ev.get_wire_value(c.wire) == 42
        assert c.name == "const_42"

    def test_negative_val_in_signed_type(self, cs):
        c = TypedWire.val(cs, -1, S8)
        ev = cs.evaluate({})

        assert ev.get_wire_value(c.wire) == 255
        assert c.value_in(ev) == -1

    def test_negative_val_in_unsigned_type_raises(self, cs):
        with pytest.raises(PreconditionError, match="negative"):
            TypedWire.val(cs, -1, U8)

    def test_val_bool(self, cs):
        t, f = TypedWire.val_bool(cs, True), TypedWire.val_bool(cs, False)

        assert t.wire is cs.one
        assert f.wire is cs.zero
        assert t.type is ZK_BOOL

    @pytest.mark.parametrize("value, t", [(300, U8), (256, U8), (-200, S8), (1 << 16, zk_int(16))])
    def test_val_out_of_range_raises(self, cs, value, t):
        with pytest.raises(PreconditionError, match="does not fit"):
            TypedWire.val(cs, value, t)

    def test_val_at_type_bounds(self, cs):
        top = TypedWire.val(cs, 255, U8)
        low = TypedWire.val(cs, -128, S8)
        ev = cs.evaluate({})

        assert top.value_in(ev) == 255
        assert low.value_in(ev) == -128


class TestAddSub:
    def test_unsigned_overflow(self, cs):
        assert binary(cs, U8, TypedWire.plus, 250, 10) == 4

    def test_unsigned_underflow(self, cs):
        assert binary(cs, U8, TypedWire.minus, 3, 5) == 254

    @pytest.mark.parametrize("x, y, expected", [(100, 100, -56), (-100, -100, 56), (-5, 3, -2), (127, 1, -128)])
    def test_signed_add(self, cs, x, y, expected):
        assert binary(cs, S8, TypedWire.plus, x, y) == expected

    @pytest.mark.parametrize("x, y, expected", [(-128, 1, 127), (5, 7, -2), (-3, -3, 0)])
    def test_signed_sub(self, cs, x, y, expected):
        assert binary(cs, S8, TypedWire.minus, x, y) == expected

    def test_operators(self, cs):
        a = TypedWire.input(cs, "a", U8)
        b = TypedWire.input(cs, "b", U8)
        s, d = a + b, a - b

        ev = cs.evaluate({"a": 200, "b": 100})

        assert s.value_in(ev) == 44
        assert d.value_in(ev) == 100

    def test_field_type_does_not_wrap(self, cs):
        t = zk_uint(256)
        a = TypedWire.input(cs, "a", t)
        b = TypedWire.input(cs, "b", t)
        s = a + b

        ev = cs.evaluate({"a": 1 << 253, "b": 1 << 253})

        assert s.value_in(ev) == (1 << 254) % cs.field_prime

    def test_type_mismatch_raises(self, cs):
        a = TypedWire.input(cs, "a", U8)
        b = TypedWire.input(cs, "b", zk_uint(16))

        with pytest.raises(PreconditionError, match="does not match"):
            a + b


class TestNegate:
    def test_signed_negate_one(self, cs):
        a = TypedWire.input(cs, "a", S8)
        n = a.negate()

        ev = cs.evaluate({"a": 1})

        assert ev.get_wire_value(n.wire) == 255
        assert n.value_in(ev) == -1

    @pytest.mark.parametrize("x, expected", [(0, 0), (-1, 1), (-128, -128), (127, -127)])
    def test_signed_negate(self, cs, x, expected):
        a = TypedWire.input(cs, "a", S8)
        n = -a

        ev = cs.evaluate({"a": encode(x, S8)})

        assert n.value_in(ev) == expected

    def test_unsigned_negate_wraps(self, cs):
        a = TypedWire.input(cs, "a", U8)
        n = a.negate()

        ev = cs.evaluate({"a": 1})

        assert n.value_in(ev) == 255

    def test_field_negate(self, cs):
        a = TypedWire.input(cs, "a", zk_uint(256))
        n = a.negate()

        ev = cs.evaluate({"a": 5})

        assert n.value_in(ev) == cs.field_prime - 5


class TestTimes:
    def test_small_overflow(self, cs):
        assert binary(cs, U8, TypedWire.times, 20, 20) == 400 % 256

    @pytest.mark.parametrize("x, y, expected", [(-3, 5, -15), (-16, -8, -128), (16, 16, 0), (-1, -1, 1)])
    def test_signed_small(self, cs, x, y, expected):
        assert binary(cs, S8, TypedWire.times, x, y) == expected

    def test_native_width_limit(self, cs):
        t = zk_uint(120)
        x, y = (1 << 120) - 1, (1 << 119) + 3
        assert binary(cs, t, TypedWire.times, x, y) == (x * y) % (1 << 120)

    @pytest.mark.parametrize("bitwidth", [128, 192, 248])
    def test_wide_extremes(self, cs, bitwidth):
        t = zk_uint(bitwidth)
        x = y = t.minus_one
        assert binary(cs, t, TypedWire.times, x, y) == (x * y) % (1 << bitwidth)

    @settings(max_examples=25, deadline=None)
    @given(data=st.data(), bitwidth=st.sampled_from([128, 136, 200, 248]))
    def test_wide_matches_reference(self, data, bitwidth):
        cs = ConstraintSystem("times")
        x = data.draw(st.integers(min_value=0, max_value=(1 << bitwidth) - 1), label="x")
        y = data.draw(st.integers(min_value=0, max_value=(1 << bitwidth) - 1), label="y")

        assert binary(cs, zk_uint(bitwidth), TypedWire.times, x, y) == (x * y) % (1 << bitwidth)

    def test_wide_signed(self, cs):
        t = zk_int(160)
        assert binary(cs, t, TypedWire.times, -123456789, 987654321) == -123456789 * 987654321

    def test_field_type_multiplies_mod_prime(self, cs):
        t = zk_uint(256)
        x, y = 1 << 200, 1 << 100
        assert binary(cs, t, TypedWire.times, x, y) == (x * y) % cs.field_prime


class TestDivision:
    @pytest.mark.parametrize(
        "x, y, quotient, remainder",
        [
            (-7, 2, -3, -1),
            (7, 2, 3, 1),
            (7, -2, -3, 1),
            (-7, -2, 3, -1),
            (-128, 3, -42, -2),
            (100, 7, 14, 2),
            (0, -5, 0, 0),
        ],
    )
    def test_signed_truncates_toward_zero(self, x, y, quotient, remainder):
        assert binary(ConstraintSystem("div"), S8, TypedWire.divide_by, x, y) == quotient
        assert binary(ConstraintSystem("mod"), S8, TypedWire.modulo, x, y) == remainder

    def test_unsigned(self, cs):
        a = TypedWire.input(cs, "a", U8)
        b = TypedWire.input(cs, "b", U8)
        q, r = a / b, a % b

        ev = cs.evaluate({"a": 200, "b": 7})

        assert q.value_in(ev) == 28
        assert r.value_in(ev) == 4

    def test_wide_unsigned(self, cs):
        t = zk_uint(248)
        x, y = (1 << 247) + 123456789, (1 << 130) + 17
        a = TypedWire.input(cs, "a", t)
        b = TypedWire.input(cs, "b", t)
        q, r = a / b, a % b

        ev = cs.evaluate({"a": x, "b": y})

        assert q.value_in(ev) == x // y
        assert r.value_in(ev) == x % y

    def test_division_by_zero_is_rejected(self, cs):
        a = TypedWire.input(cs, "a", U8)
        b = TypedWire.input(cs, "b", U8)
        a.divide_by(b)

        with pytest.raises(ConstraintViolation, match="no div by 0"):
            cs.evaluate({"a": 10, "b": 0})

    def test_field_type_division_rejected(self, cs):
        # 256 bits do not decompose a field element uniquely
        a = TypedWire.input(cs, "a", zk_uint(256))
        b = TypedWire.input(cs, "b", zk_uint(256))

        with pytest.raises(PreconditionError, match="256bit"):
            a / b
        with pytest.raises(PreconditionError, match="256bit"):
            a % b


class TestBitOps:
    def test_bitwise(self, cs):
        a = TypedWire.input(cs, "a", U8)
        b = TypedWire.input(cs, "b", U8)
        or_, and_, xor, inv = a | b, a & b, a ^ b, ~a

        ev = cs.evaluate({"a": 0b1100, "b": 0b1010})

        assert or_.value_in(ev) == 0b1110
        assert and_.value_in(ev) == 0b1000
        assert xor.value_in(ev) == 0b0110
        assert inv.value_in(ev) == 0b11110011

    def test_signed_bitwise(self, cs):
        assert binary(cs, S8, TypedWire.bit_and, -1, 0x55) == 0x55

    def test_field_type_rejected(self, cs):
        a = TypedWire.input(cs, "a", zk_uint(256))
        b = TypedWire.input(cs, "b", zk_uint(256))

        with pytest.raises(PreconditionError, match="256bit"):
            a.bit_or(b)
        with pytest.raises(PreconditionError, match="256bit"):
            a.shift_left_by(1)

    @pytest.mark.parametrize(
        "t, x, amount, left, right",
        [
            (U8, 0b10010110, 3, 0b10110000, 0b00010010),
            (U8, 200, 1, 144, 100),
            (U8, 200, 9, 0, 0),
            (S8, -16, 2, -64, -4),
            (S8, -1, 10, 0, -1),
            (S8, 64, 1, -128, 32),
        ],
    )
    def test_shifts(self, cs, t, x, amount, left, right):
        a = TypedWire.input(cs, "a", t)
        shl, shr = a << amount, a >> amount

        ev = cs.evaluate({"a": encode(x, t)})

        assert shl.value_in(ev) == left
        assert shr.value_in(ev) == right


class TestComparisons:
    @pytest.mark.parametrize(
        "x, y",
        [(-1, 1), (1, -1), (-5, -3), (-3, -5), (-3, -3), (0, 0), (127, -128), (-128, 127), (5, 100)],
    )
    def test_signed(self, x, y):
        def check(op):
            return binary(ConstraintSystem("cmp"), S8, op, x, y)

        assert check(TypedWire.is_less_than) == int(x < y)
        assert check(TypedWire.is_less_than_or_equal) == int(x <= y)
        assert check(TypedWire.is_greater_than) == int(x > y)
        assert check(TypedWire.is_greater_than_or_equal) == int(x >= y)

    @pytest.mark.parametrize("x, y", [(200, 100), (100, 200), (255, 255), (0, 1)])
    def test_unsigned(self, cs, x, y):
        a = TypedWire.input(cs, "a", U8)
        b = TypedWire.input(cs, "b", U8)
        lt, le, gt, ge = a < b, a <= b, a > b, a >= b

        ev = cs.evaluate({"a": x, "b": y})

        assert [w.value_in(ev) for w in (lt, le, gt, ge)] == [int(x < y), int(x <= y), int(x > y), int(x >= y)]
        assert lt.type is ZK_BOOL

    def test_unsigned_wide(self, cs):
        t = zk_uint(248)
        assert binary(cs, t, TypedWire.is_less_than, (1 << 247) + 1, 1 << 247) == 0

    @pytest.mark.parametrize("x, y", [(5, 5), (5, 6), (-1, 255)])
    def test_equality(self, cs, x, y):
        a = TypedWire.input(cs, "a", S8)
        b = TypedWire.input(cs, "b", S8)
        eq, ne = a.is_equal_to(b), a.is_not_equal_to(b)

        ev = cs.evaluate({"a": encode(x, S8), "b": encode(y, S8)})

        same = encode(x, S8) == encode(y, S8)
        assert eq.value_in(ev) == int(same)
        assert ne.value_in(ev) == int(not same)


class TestBooleans:
    @pytest.mark.parametrize("x, y", [(0, 0), (0, 1), (1, 0), (1, 1)])
    def test_logic(self, cs, x, y):
        a = TypedWire.input(cs, "a", ZK_BOOL)
        b = TypedWire.input(cs, "b", ZK_BOOL)
        and_, or_, not_ = a.and_(b), a.or_(b), a.not_()

        ev = cs.evaluate({"a": x, "b": y})

        assert and_.value_in(ev) == x & y
        assert or_.value_in(ev) == x | y
        assert not_.value_in(ev) == 1 - x

    def test_non_bool_raises(self, cs):
        a = TypedWire.input(cs, "a", U8)
        b = TypedWire.input(cs, "b", ZK_BOOL)

        with pytest.raises(PreconditionError):
            a.and_(b)
        with pytest.raises(PreconditionError):
            b.or_(a)
        with pytest.raises(PreconditionError):
            a.not_()

    @pytest.mark.parametrize("condition, expected", [(1, -5), (0, 7)])
    def test_ite(self, cs, condition, expected):
        c = TypedWire.input(cs, "c", ZK_BOOL)
        x = TypedWire.val(cs, -5, S8)
        y = TypedWire.val(cs, 7, S8)
        out = TypedWire.ite(c, x, y)

        ev = cs.evaluate({"c": condition})

        assert out.value_in(ev) == expected


class TestCast:
    def test_unsigned_upcast_reuses_wire(self, cs):
        a = TypedWire.input(cs, "a", U8)
        up = a.cast(zk_uint(16))

        assert up.wire is a.wire
        assert up.type is zk_uint(16)

    def test_unsigned_upcast_after_split(self, cs):
        a = TypedWire.input(cs, "a", U8)
        a.wire.get_bits(8)
        up = a.cast(zk_uint(16))

        ev = cs.evaluate({"a": 200})

        assert up.wire is not a.wire
        assert up.value_in(ev) == 200

    @pytest.mark.parametrize("x", [-3, 3, -128, 127])
    def test_signed_upcast_sign_extends(self, cs, x):
        a = TypedWire.input(cs, "a", S8)
        up = a.cast(zk_int(16))
        raw = a.cast(zk_uint(16))

        ev = cs.evaluate({"a": encode(x, S8)})

        assert up.value_in(ev) == x
        assert raw.value_in(ev) == encode(x, zk_int(16))

    @pytest.mark.parametrize("x", [-3, 42])
    def test_signed_to_field_type(self, cs, x):
        a = TypedWire.input(cs, "a", S8)
        f = a.cast(zk_uint(256))

        ev = cs.evaluate({"a": encode(x, S8)})

        assert f.value_in(ev) == x % cs.field_prime

    def test_downcast_truncates(self, cs):
        a = TypedWire.input(cs, "a", zk_uint(16))
        down = a.cast(U8)
        signed = a.cast(S8)

        ev = cs.evaluate({"a": 0x12F4})

        assert down.value_in(ev) == 0xF4
        assert signed.value_in(ev) == 0xF4 - 256

    def test_same_width_reinterprets(self, cs):
        a = TypedWire.input(cs, "a", U8)
        s = a.cast(S8)

        ev = cs.evaluate({"a": 255})

        assert s.wire is a.wire
        assert s.value_in(ev) == -1


class TestDeterminism:
    def test_repeated_evaluation(self, cs):
        t = zk_int(136)
        a = TypedWire.input(cs, "a", t)
        b = TypedWire.input(cs, "b", t)
        (a * b) + (a / b) - (a % b)
        inputs = {"a": encode(-(1 << 100) - 7, t), "b": encode(12345, t)}

        first = cs.evaluate(inputs)
        second = cs.evaluate(inputs)

        assert first.values == second.values
