"""Byte-level contexts that derive a context value from the coded history.

Contexts read live values through zero-argument callables (or, for
``Sparse``, through a shared list), so they always see the current state of
whoever owns those values.
"""

from __future__ import annotations

from array import array
from typing import Callable, List, Sequence

Source = Callable[[], int]

_MASK64 = (1 << 64) - 1
_MASK32 = (1 << 32) - 1


class Context:
    """Base context: a current value and the size of its range."""

    def __init__(self) -> None:
        self.context = 0
        self.size = 0

    def update(self) -> None:
        """Advance after a full byte has been seen."""

    def is_equal(self, other: object) -> bool:
        """Return whether ``other`` would produce the same context."""
        return False


class BitContext(Context):
    """Byte context combined with the partial bits of the current byte."""

    def __init__(self, bit_context: Source, byte_context: Source,
                 byte_context_size: int) -> None:
        super().__init__()
        self._bit_context = bit_context
        self._byte_context = byte_context
        self.size = 256 * byte_context_size

    def update(self) -> None:
        self.context = ((self._byte_context() << 8) + self._bit_context()) & _MASK64

    def is_equal(self, other: object) -> bool:
        return (
            isinstance(other, BitContext)
            and other._byte_context is self._byte_context
            and other._bit_context is self._bit_context
        )


class BracketContext(Context):
    """Innermost open bracket and the distance since it was opened."""

    _BRACKETS = {ord("("): ord(")"), ord("P"): ord("R"),
                 ord("["): ord("]"), ord("L"): ord("N")}

    def __init__(self, byte: Source, distance_limit: int, stack_limit: int) -> None:
        super().__init__()
        self._byte = byte
        self._distance_limit = distance_limit
        self._stack_limit = stack_limit
        self._active: List[int] = []
        self._distance: List[int] = []
        self.size = 257 * distance_limit

    def update(self) -> None:
        byte = self._byte()
        if self._active:
            if (self._BRACKETS[self._active[-1]] == byte
                    or self._distance[-1] >= self._distance_limit - 1):
                self._active.pop()
                self._distance.pop()
            else:
                self._distance[-1] += 1
        if byte in self._BRACKETS:
            self._active.append(byte)
            self._distance.append(0)
            if len(self._BRACKETS) > self._stack_limit:
                del self._active[0]
                del self._distance[0]
        if self._active:
            self.context = (self._distance_limit * (self._active[-1] + 1)
                            + self._distance[-1])
        else:
            self.context = 0

    def is_equal(self, other: object) -> bool:
        return (
            isinstance(other, BracketContext)
            and self._distance_limit == other._distance_limit
            and self._stack_limit == other._stack_limit
        )


class CombinedContext(Context):
    """Two contexts packed side by side into one value."""

    def __init__(self, context1: Source, context2: Source,
                 context1_size: int, context2_size: int) -> None:
        super().__init__()
        self._context1 = context1
        self._context2 = context2
        self.size = context1_size * context2_size
        shift = 1
        while (1 << shift) < context1_size:
            shift += 1
        self._shift = shift

    def update(self) -> None:
        self.context = ((self._context2() << self._shift) + self._context1()) & _MASK64

    def is_equal(self, other: object) -> bool:
        return (
            isinstance(other, CombinedContext)
            and other._context1 is self._context1
            and other._context2 is self._context2
        )


class ContextHash(Context):
    """The last ``order`` bytes, each given ``hash_size`` bits."""

    def __init__(self, byte: Source, order: int, hash_size: int) -> None:
        super().__init__()
        self._byte = byte
        self._hash_size = hash_size
        self.size = 1 << (hash_size * order)

    def update(self) -> None:
        self.context = ((self.context << self._hash_size) + self._byte()) % self.size

    def is_equal(self, other: object) -> bool:
        return (
            isinstance(other, ContextHash)
            and self.size == other.size
            and self._hash_size == other._hash_size
        )


class IndirectHash(Context):
    """History of bytes that followed the current order-``order1`` context."""

    def __init__(self, byte: Source, order1: int, hash_size1: int,
                 order2: int, hash_size2: int) -> None:
        super().__init__()
        self._byte = byte
        self._hash_size1 = hash_size1
        self._hash_size2 = hash_size2
        self._size1 = (1 << (hash_size1 * order1)) & _MASK32
        if self._size1 == 0:
            raise ValueError("first-level table size does not fit in 32 bits")
        self.size = 1 << (hash_size2 * order2)
        self._context1 = 0
        self._hashes = array("Q", bytes(8 * self._size1))

    def update(self) -> None:
        byte = self._byte()
        self._hashes[self._context1] = (
            ((self.context << self._hash_size2) + byte) % self.size
        )
        self._context1 = ((self._context1 << self._hash_size1) + byte) % self._size1
        self.context = self._hashes[self._context1]

    def is_equal(self, other: object) -> bool:
        return (
            isinstance(other, IndirectHash)
            and self.size == other.size
            and self._size1 == other._size1
            and self._hash_size1 == other._hash_size1
            and self._hash_size2 == other._hash_size2
        )


def _shift_for(mapping: Sequence[int]) -> int:
    max_value = max([0, *mapping])
    shift = 1
    while (1 << shift) <= max_value:
        shift += 1
    return shift


class IntervalHash(Context):
    """Hashed history of byte classes taken through a lookup map."""

    def __init__(self, byte: Source, mapping: Sequence[int], num_bits: int,
                 order: int, hash_size: int) -> None:
        super().__init__()
        self._byte = byte
        self._map = tuple(mapping)
        self._hash_size = hash_size
        self._interval = 0
        self._shift = _shift_for(self._map)
        self._mask = (1 << num_bits) - 1
        self.size = 1 << (hash_size * order)

    def update(self) -> None:
        shifted = ((self._interval << self._shift) + self._map[self._byte()]) & _MASK32
        self._interval = self._mask & shifted
        self.context = ((self.context << self._hash_size) + self._interval) % self.size

    def is_equal(self, other: object) -> bool:
        return (
            isinstance(other, IntervalHash)
            and self._map[:256] == other._map[:256]
            and self.size == other.size
            and self._hash_size == other._hash_size
            and self._mask == other._mask
        )


class Interval(Context):
    """Recent byte classes taken through a lookup map, packed into ``num_bits``."""

    def __init__(self, byte: Source, mapping: Sequence[int], num_bits: int) -> None:
        super().__init__()
        self._byte = byte
        self._map = tuple(mapping)
        self._shift = _shift_for(self._map)
        self.size = 1 << num_bits
        self._mask = self.size - 1

    def update(self) -> None:
        self.context = self._mask & ((self.context << self._shift) + self._map[self._byte()])

    def is_equal(self, other: object) -> bool:
        return (
            isinstance(other, Interval)
            and other.size == self.size
            and self._map[:256] == other._map[:256]
        )


class Sparse(Context):
    """Selected entries of a shared list of recent values, mixed by fixed factors."""

    _FACTORS = (1, 256, 29 * 31, 29 * 31 * 37, 29 * 31 * 37 * 41,
                29 * 31 * 37 * 41 * 43)

    def __init__(self, recent_contexts: List[int], orders: Sequence[int]) -> None:
        super().__init__()
        if not orders:
            raise ValueError("orders must not be empty")
        if len(orders) > len(self._FACTORS):
            raise ValueError(f"at most {len(self._FACTORS)} orders are supported")
        self._recent = recent_contexts
        self._orders = tuple(orders)
        self.size = _MASK64

    def update(self) -> None:
        total = sum(
            factor * self._recent[order]
            for factor, order in zip(self._FACTORS, self._orders)
        )
        self.context = total & _MASK64

    def is_equal(self, other: object) -> bool:
        return (
            isinstance(other, Sparse)
            and self._recent is other._recent
            and self._orders == other._orders
        )