"""
Random number sources for the barrier pricer.

Two uniform generators are available:

- ``GlibcRand``: a pure-Python port of the glibc ``srand``/``rand`` additive
  feedback generator (TYPE_3, degree 31). Seeding it with the same value as a
  C program produces the same stream, so simulations are comparable
  bit-for-bit against a C/C++ run.
- ``NumpyUniform``: a thin wrapper around ``numpy.random.default_rng``.

``NormalVariateSource`` turns either of them into standard normal draws with
the Marsaglia polar method, one variate per call.

Neither the generators nor the normal source are thread safe; each pricer owns
its own instance.
"""

from __future__ import annotations
import math
from typing import Optional

import numpy as np


RAND_MAX = 2147483647


def _c_div(a: int, b: int) -> int:
    """Integer division truncating toward zero (C semantics)."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


class GlibcRand:
    """
    glibc ``random()`` (and therefore ``rand()``) with the default 128-byte state.

    r[0] = seed, r[i] = 16807 * r[i-1] mod (2^31 - 1) for i in 1..30,
    r[i] = r[i-31] for i in 31..33, then r[i] = r[i-31] + r[i-3] (mod 2^32).
    The first 310 outputs are discarded; each output is r[i] >> 1.
    """

    _DEGREE = 31
    _SEP = 3
    _DISCARD = 310

    def __init__(self, seed: int = 1):
        self.seed(seed)

    def seed(self, seed: int) -> None:
        seed = int(seed) & 0xFFFFFFFF
        if seed == 0:
            seed = 1
        # glibc stores the seed in a signed 32-bit word
        word = seed - (1 << 32) if seed >= (1 << 31) else seed

        r = [word]
        for _ in range(1, self._DEGREE):
            # Schrage's method, as in srandom_r: 16807 * word % 2147483647 without overflow
            hi = _c_div(word, 127773)
            lo = word - hi * 127773
            word = 16807 * lo - 2836 * hi
            if word < 0:
                word += RAND_MAX
            r.append(word)

        self._state = [v & 0xFFFFFFFF for v in r]
        self._front = self._SEP
        self._rear = 0
        for _ in range(self._DISCARD):
            self._next_word()

    def _next_word(self) -> int:
        # 31-word ring: the front slot holds r[i-31] and is overwritten with r[i]
        state = self._state
        value = (state[self._front] + state[self._rear]) & 0xFFFFFFFF
        state[self._front] = value
        self._front = (self._front + 1) % self._DEGREE
        self._rear = (self._rear + 1) % self._DEGREE
        return value

    def rand(self) -> int:
        """Next integer in [0, RAND_MAX]."""
        return self._next_word() >> 1

    def uniform(self) -> float:
        """Next real in [0, 1], computed as ``rand() / RAND_MAX``."""
        return self.rand() / float(RAND_MAX)


class NumpyUniform:
    """Uniform reals in [0, 1) from a numpy ``Generator``."""

    def __init__(self, seed: Optional[int] = None):
        self.seed(seed)

    def seed(self, seed: Optional[int]) -> None:
        self._rng = np.random.default_rng(seed)

    def uniform(self) -> float:
        return float(self._rng.random())


GENERATORS = {
    "glibc": GlibcRand,
    "numpy": NumpyUniform,
}


def make_uniform_source(name: str = "glibc", seed: Optional[int] = 42):
    """Build a seeded uniform source by name ("glibc" or "numpy")."""
    try:
        cls = GENERATORS[name]
    except KeyError:
        raise ValueError(f"generator must be one of {sorted(GENERATORS)}, got {name!r}") from None
    if cls is GlibcRand:
        return GlibcRand(1 if seed is None else seed)
    return cls(seed)


class NormalVariateSource:
    """
    Standard normal draws via the polar (rejection) form of Box–Muller.

    Each call samples points (x, y) uniformly in the square [-1, 1]^2 until
    s = x^2 + y^2 falls strictly inside the unit disc (acceptance ~ pi/4),
    then returns x * sqrt(-2 ln(s) / s). The companion variate built from y
    is never computed, so every call consumes a fresh accepted pair.

    Parameters
    ----------
    uniform : object
        Anything with a ``uniform()`` method returning reals in [0, 1].
    """

    def __init__(self, uniform):
        self.uniform = uniform

    def draw(self) -> float:
        u = self.uniform.uniform
        while True:
            x = 2.0 * u() - 1
            y = 2.0 * u() - 1
            s = x * x + y * y
            # s == 0 needs both draws to land exactly on the centre; log(0) is undefined there
            if 0.0 < s < 1.0:
                break
        return x * math.sqrt(-2 * math.log(s) / s)

    def __call__(self) -> float:
        return self.draw()


__all__ = [
    "RAND_MAX",
    "GlibcRand",
    "NumpyUniform",
    "GENERATORS",
    "make_uniform_source",
    "NormalVariateSource",
]
