"""Binary arithmetic coder driven by a bit predictor."""

from __future__ import annotations

from typing import Iterable, Protocol

_MASK32 = 0xFFFFFFFF


class Predictor(Protocol):
    def predict(self) -> float: ...

    def perceive(self, bit: int) -> None: ...


def _discretize(p: float) -> int:
    return int(1 + 65534 * p)


def _midpoint(x1: int, x2: int, p: int) -> int:
    span = x2 - x1
    return (x1 + (span >> 16) * p + (((span & 0xFFFF) * p) >> 16)) & _MASK32


class Encoder:
    """Encodes bits into bytes using probabilities from a predictor."""

    def __init__(self, predictor: Predictor) -> None:
        self._predictor = predictor
        self._x1 = 0
        self._x2 = _MASK32
        self._out = bytearray()

    def encode(self, bit: int) -> None:
        """Encode one bit and let the predictor learn it."""
        bit = 1 if bit else 0
        xmid = _midpoint(self._x1, self._x2, _discretize(self._predictor.predict()))
        if bit:
            self._x2 = xmid
        else:
            self._x1 = xmid + 1
        self._predictor.perceive(bit)
        self._shift_out()

    def _shift_out(self) -> None:
        while ((self._x1 ^ self._x2) & 0xFF000000) == 0:
            self._out.append(self._x2 >> 24)
            self._x1 = (self._x1 << 8) & _MASK32
            self._x2 = ((self._x2 << 8) + 255) & _MASK32

    def flush(self) -> bytes:
        """Finish the stream and return all encoded bytes."""
        self._shift_out()
        self._out.append(self._x2 >> 24)
        return bytes(self._out)

    def output_size(self) -> int:
        """Number of bytes produced so far."""
        return len(self._out)


class Decoder:
    """Decodes bits from bytes produced by :class:`Encoder`."""

    def __init__(self, data: Iterable[int], predictor: Predictor) -> None:
        self._predictor = predictor
        self._bytes = iter(bytes(data))
        self._x1 = 0
        self._x2 = _MASK32
        self._x = 0
        for _ in range(4):
            self._x = (self._x << 8) + self._read_byte()

    def _read_byte(self) -> int:
        return next(self._bytes, 0)

    def decode(self) -> int:
        """Decode one bit and let the predictor learn it."""
        xmid = _midpoint(self._x1, self._x2, _discretize(self._predictor.predict()))
        if self._x <= xmid:
            bit = 1
            self._x2 = xmid
        else:
            bit = 0
            self._x1 = xmid + 1
        self._predictor.perceive(bit)
        while ((self._x1 ^ self._x2) & 0xFF000000) == 0:
            self._x1 = (self._x1 << 8) & _MASK32
            self._x2 = ((self._x2 << 8) + 255) & _MASK32
            self._x = ((self._x << 8) + self._read_byte()) & _MASK32
        return bit