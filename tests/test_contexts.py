import pytest

from bitmix.contexts import (
    BitContext,
    BracketContext,
    CombinedContext,
    Context,
    ContextHash,
    IndirectHash,
    Interval,
    IntervalHash,
    Sparse,
)


class Cell:
    def __init__(self, value=0):
        self.value = value

    def __call__(self):
        return self.value


def feed(context, cell, data):
    for b in data:
        cell.value = b
        context.update()


def test_base_context_never_equal():
    c = Context()
    c.update()
    assert c.context == 0
    assert c.is_equal(c) is False


def test_bit_context_combines_byte_and_bits():
    bit, byte = Cell(3), Cell(5)
    ctx = BitContext(bit, byte, 256)
    assert ctx.size == 256 * 256
    ctx.update()
    assert ctx.context == 5 * 256 + 3


def test_bit_context_equality_by_source():
    bit, byte = Cell(), Cell()
    assert BitContext(bit, byte, 4).is_equal(BitContext(bit, byte, 8))
    assert not BitContext(bit, byte, 4).is_equal(BitContext(bit, Cell(), 4))
    assert not BitContext(bit, byte, 4).is_equal(ContextHash(bit, 1, 8))


def test_bracket_context_open_and_close():
    cell = Cell()
    ctx = BracketContext(cell, 10, 4)
    assert ctx.size == 257 * 10
    feed(ctx, cell, b"(")
    assert ctx.context == 10 * (ord("(") + 1)
    feed(ctx, cell, b"a")
    assert ctx.context == 10 * (ord("(") + 1) + 1
    feed(ctx, cell, b")")
    assert ctx.context == 0


def test_bracket_context_nested():
    cell = Cell()
    ctx = BracketContext(cell, 10, 4)
    feed(ctx, cell, b"([")
    assert ctx.context == 10 * (ord("[") + 1)
    feed(ctx, cell, b"]")
    assert ctx.context == 10 * (ord("(") + 1) + 1


def test_bracket_context_distance_limit_drops_bracket():
    cell = Cell()
    ctx = BracketContext(cell, 3, 4)
    feed(ctx, cell, b"(ab")
    assert ctx.context == 3 * (ord("(") + 1) + 2
    feed(ctx, cell, b"c")
    assert ctx.context == 0


def test_bracket_context_equality():
    cell = Cell()
    assert BracketContext(cell, 10, 4).is_equal(BracketContext(Cell(), 10, 4))
    assert not BracketContext(cell, 10, 4).is_equal(BracketContext(cell, 11, 4))


def test_combined_context():
    c1, c2 = Cell(3), Cell(2)
    ctx = CombinedContext(c1, c2, 256, 16)
    assert ctx.size == 256 * 16
    ctx.update()
    assert ctx.context == 2 * 256 + 3
    assert ctx.is_equal(CombinedContext(c1, c2, 256, 16))
    assert not ctx.is_equal(CombinedContext(c2, c1, 256, 16))


def test_context_hash_holds_last_bytes():
    cell = Cell()
    ctx = ContextHash(cell, 2, 8)
    assert ctx.size == 1 << 16
    data = b"hello world"
    feed(ctx, cell, data)
    assert ctx.context == int.from_bytes(data[-2:], "big")


def test_context_hash_equality():
    cell = Cell()
    assert ContextHash(cell, 2, 8).is_equal(ContextHash(Cell(), 2, 8))
    assert not ContextHash(cell, 2, 8).is_equal(ContextHash(cell, 4, 4))


def test_indirect_hash_predicts_following_byte():
    cell = Cell()
    ctx = IndirectHash(cell, 1, 8, 1, 8)
    feed(ctx, cell, b"aba")
    assert ctx.context == ord("b")
    feed(ctx, cell, b"c")
    assert ctx.context == 0


def test_indirect_hash_rejects_truncated_table():
    with pytest.raises(ValueError):
        IndirectHash(Cell(), 4, 8, 1, 8)


def test_indirect_hash_equality():
    cell = Cell()
    assert IndirectHash(cell, 1, 8, 2, 8).is_equal(IndirectHash(cell, 1, 8, 2, 8))
    assert not IndirectHash(cell, 1, 8, 2, 8).is_equal(IndirectHash(cell, 1, 8, 1, 8))


def test_interval_packs_mapped_values():
    cell = Cell()
    mapping = [i % 4 for i in range(256)]
    ctx = Interval(cell, mapping, 4)
    assert ctx.size == 16
    feed(ctx, cell, [1, 2, 3])
    assert ctx.context == (mapping[2] << 2) | mapping[3]


def test_interval_equality():
    cell = Cell()
    a = [i % 4 for i in range(256)]
    b = [i % 3 for i in range(256)]
    assert Interval(cell, a, 4).is_equal(Interval(Cell(), a, 4))
    assert not Interval(cell, a, 4).is_equal(Interval(cell, b, 4))
    assert not Interval(cell, a, 4).is_equal(Interval(cell, a, 5))


def test_interval_hash_stays_in_range():
    cell = Cell()
    mapping = [i % 8 for i in range(256)]
    ctx = IntervalHash(cell, mapping, 6, 3, 4)
    assert ctx.size == 1 << 12
    for b in b"The quick brown fox jumps over the lazy dog":
        cell.value = b
        ctx.update()
        assert 0 <= ctx.context < ctx.size


def test_interval_hash_equality():
    cell = Cell()
    mapping = [i % 8 for i in range(256)]
    assert IntervalHash(cell, mapping, 6, 3, 4).is_equal(
        IntervalHash(cell, mapping, 6, 3, 4))
    assert not IntervalHash(cell, mapping, 6, 3, 4).is_equal(
        IntervalHash(cell, mapping, 5, 3, 4))


def test_sparse_combines_selected_entries():
    recent = [10, 20, 30, 40]
    ctx = Sparse(recent, [0, 2])
    ctx.update()
    assert ctx.context == 10 + 256 * 30
    recent[0] = 11
    ctx.update()
    assert ctx.context == 11 + 256 * 30


def test_sparse_equality_needs_same_list():
    recent = [0] * 8
    assert Sparse(recent, [1, 2]).is_equal(Sparse(recent, [1, 2]))
    assert not Sparse(recent, [1, 2]).is_equal(Sparse(list(recent), [1, 2]))
    assert not Sparse(recent, [1, 2]).is_equal(Sparse(recent, [1, 3]))


def test_sparse_rejects_too_many_orders():
    with pytest.raises(ValueError):
        Sparse([0] * 8, [0, 1, 2, 3, 4, 5, 6])