"""Secondary symbol estimation: refines a bit probability with two
interpolated adaptive tables and two small stretch-domain mixers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

_SCALE_LOG = 15
_SCALE = 1 << _SCALE_LOG
_HSCALE = _SCALE // 2
_MSCALE = _SCALE - 1
_QUANT = 7
_OFFSET = 8192
_LOG2E = 1.44269504088896340736

_F0C = 10240
_F1C = 7935
_F2C = 9592
_SM6_WR = 0 * 128 + 106
_SM6_MW = 0
_SM6_C1 = 8092
_X1_W0 = 7648 + 1
_X1_WR = 6202
_F3C = 8200
_F4C = 7677
_SM7_WR = 0 * 128 + 127
_SM7_MW = 8192
_SM7_C1 = 8202
_X2_W0 = 2560 + 1
_X2_WR = 8320

_MX1_MASK = (
    [0, 0] + list(range(1, 31)) + [v for v in range(31, 47) for _ in range(2)]
    + [v for v in range(47, 63) for _ in range(4)]
    + [v for v in range(63, 79) for _ in range(8)]
)
_SM7_MASK = [0, 0] + list(range(1, 255))


def _log2(a: float) -> float:
    return _LOG2E * math.log(a)


def _exp2(a: float) -> float:
    return math.exp(a / _LOG2E)


def _st(p: float) -> float:
    return _log2((1 - p) / p)


def _sq(p: float) -> float:
    return 1.0 / (1.0 + _exp2(p))


_ST_COEF = (_HSCALE - 1) / _log2(_SCALE - 1)
_SQ_COEF = 1.0 / _ST_COEF


def _build_tables() -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    t_sq = [0] * _SCALE
    t_st = [0] * _SCALE
    for i in range(1, _SCALE):
        t_sq[i] = int(_sq((i - _HSCALE) * _SQ_COEF) * _SCALE)
    x = 0
    for i in range(1, _SCALE):
        s = int(_st(i / _SCALE) * _ST_COEF + _HSCALE)
        t_st[i] = s
        if s != t_st[x]:
            t_sq[t_st[x]] = (x + i) // 2
            x = i
    return tuple(t_st), tuple(t_sq)


_T_ST, _T_SQ = _build_tables()


def _i32(x: int) -> int:
    x &= 0xFFFFFFFF
    return x - (1 << 32) if x & 0x80000000 else x


def _rdiv(x: int, a: int, d: int) -> int:
    return (x + a) >> d if x >= 0 else -((-x + a) >> d)


def _extrap(p1: int, c: int) -> int:
    p1 = (((p1 - _HSCALE) * c) >> 13) + _HSCALE
    return min(max(p1, 1), _MSCALE)


@dataclass
class _Lookup:
    index: int
    freq: int
    sw: int
    p: int


class _SseTable:
    """Lazily populated table of interpolation cells, all starting alike."""

    def __init__(self, initial_weight: int) -> None:
        step = (_SCALE - initial_weight) // (_QUANT - 1)
        start = initial_weight // 2 + _OFFSET
        self._template = [(start + i * step) & 0xFFFF for i in range(_QUANT)]
        self._cells: Dict[int, List[int]] = {}

    def predict(self, index: int, ip: int) -> _Lookup:
        scaled = (_QUANT - 1) * ip
        freq = scaled >> _SCALE_LOG
        sw = scaled & _MSCALE
        cell = self._cells.get(index, self._template)
        f = (((_SCALE - sw) * cell[freq] + sw * cell[freq + 1]) >> _SCALE_LOG) - _OFFSET
        if f <= 0:
            f = 1
        if f >= _SCALE:
            f = _MSCALE
        return _Lookup(index, freq, sw, f)

    def update(self, lookup: _Lookup, bit: int, rate: int) -> None:
        cell = self._cells.get(lookup.index)
        if cell is None:
            cell = self._cells[lookup.index] = list(self._template)
        p = (lookup.p * (_SCALE - rate)) >> _SCALE_LOG
        if bit == 0:
            p += rate
        lookup.p = p
        freq, sw = lookup.freq, lookup.sw
        d_c = cell[freq] - cell[freq + 1]
        sw_dc = (sw * d_c + _MSCALE) >> _SCALE_LOG
        cell[freq] = (p + sw_dc + _OFFSET) & 0xFFFF
        cell[freq + 1] = (p - (d_c - sw_dc) + _OFFSET) & 0xFFFF


class _BlendTable:
    """Lazily populated table of two-input stretch-domain mixer weights."""

    def __init__(self, initial_weight: int) -> None:
        self._initial = initial_weight + _HSCALE
        self._weights: Dict[int, int] = {}

    def mixup(self, index: int, s1: int, s0: int) -> int:
        w = self._weights.get(index, self._initial)
        x = s1 + _rdiv(_i32((w - _HSCALE) * (s0 - s1)), 1 << (_SCALE_LOG - 1), _SCALE_LOG)
        if x <= 0:
            return 1
        return x if x < _SCALE else _SCALE - 1

    def update(self, index: int, y: int, p0: int, p1: int, wq: int, pm: int) -> None:
        py = _SCALE - (y << _SCALE_LOG)
        e = py - pm
        d = _rdiv(_i32(e * (p0 - p1)), 1 << (_SCALE_LOG - 1), _SCALE_LOG)
        d = _rdiv(_i32(d * wq), 1 << (_SCALE_LOG - 1), _SCALE_LOG)
        self._weights[index] = _i32(self._weights.get(index, self._initial) + d)


@dataclass
class _Step:
    sm6x: int
    sm7x: int
    mix1: int
    mix2: int
    su6: _Lookup
    su7: _Lookup
    mix1_s0: int
    mix1_s1: int
    mix1_p: int
    mix2_s0: int
    mix2_s1: int
    mix2_p: int


class SSE:
    """Refines a probability of a 1 bit using the bit history as context."""

    def __init__(self) -> None:
        self._s6 = _SseTable(_SM6_MW)
        self._s7 = _SseTable(_SM7_MW)
        self._x1 = _BlendTable(_X1_W0)
        self._x2 = _BlendTable(_X2_W0)
        self._j = 1
        self._pc = 0
        self._ffl = 0
        self._step: Optional[_Step] = None

    def predict(self, probability: float) -> float:
        """Return the refined probability that the next bit is 1."""
        if not 0.0 <= probability <= 1.0:
            raise ValueError("probability must lie in [0, 1]")
        discrete = int(1 + (1 - probability) * 32766)
        estimate = self._estimate(discrete)
        return 1 - ((estimate - 1) / 32766.0)

    def perceive(self, bit: int) -> None:
        """Learn the actual bit for the most recent prediction."""
        step = self._step
        if step is None:
            raise RuntimeError("perceive called before predict")
        bit = 1 if bit else 0
        self._s6.update(step.su6, bit, _SM6_WR)
        self._x1.update(step.mix1, bit, step.mix1_s0, step.mix1_s1, _X1_WR, step.mix1_p)
        self._s7.update(step.su7, bit, _SM7_WR)
        self._x2.update(step.mix2, bit, step.mix2_s0, step.mix2_s1, _X2_WR, step.mix2_p)

        self._j += self._j + bit
        if self._j >= 256:
            self._ffl = (self._ffl * 2 + (1 if self._pc >= 0x40 else 0)) & 0xFF
            self._pc = self._j & 0xFF
            self._j = 1

    def _estimate(self, p: int) -> int:
        j, pc, ffl = self._j, self._pc, self._ffl
        prq = p >> 11
        level3 = (prq > 0) + (prq > 14)
        level4 = (prq > 0) + (prq > 7) + (prq > 14)

        sm7x = ((((level3 << 5) + (ffl & 31)) << 8) + (pc & 255)) * 255 + _SM7_MASK[j]
        mix2 = ((((level3 << 1) + (ffl & 1)) << 8) + (pc & 255)) * 256 + j
        sm6x = ((((level3 << 7) + (ffl & 127)) << 8) + (pc & 255)) * 256 + j
        mix1 = ((((level4 << 8) + (ffl & 255)) << 3) + ((pc >> 5) & 7)) * 79 + _MX1_MASK[j]

        su6 = self._s6.predict(sm6x, _T_SQ[_extrap(_T_ST[p], _F0C)])
        p1 = su6.p
        s0 = _extrap(_T_ST[p], _F1C)
        s1 = _extrap(_T_ST[p1], _F2C)
        s2 = _extrap(self._x1.mixup(mix1, s0, s1), _SM6_C1)
        mix1_p = _T_SQ[s2]

        su7 = self._s7.predict(sm7x, _T_SQ[_extrap(_T_ST[p], _F3C)])
        p2 = su7.p
        s4 = _extrap(_T_ST[p2], _F4C)
        s5 = _extrap(self._x2.mixup(mix2, s2, s4), _SM7_C1)
        mix2_p = _T_SQ[s5]

        self._step = _Step(
            sm6x=sm6x, sm7x=sm7x, mix1=mix1, mix2=mix2, su6=su6, su7=su7,
            mix1_s0=s0, mix1_s1=s1, mix1_p=mix1_p,
            mix2_s0=s2, mix2_s1=s4, mix2_p=mix2_p,
        )
        return mix2_p