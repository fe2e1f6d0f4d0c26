# primesearch/numeric.py
# Small big-integer helpers shared by generators, testers and the search loop.
# gmpy2 does the heavy lifting; everything handed back to callers is a plain int.

from __future__ import annotations
import random, time
from typing import Tuple

import gmpy2


def seed_from_clock() -> int:
    """Default entropy: the nanosecond clock."""
    return time.time_ns()


def random_bits(rng: random.Random, bits: int) -> int:
    """Uniform integer in [0, 2**bits)."""
    if bits <= 0:
        return 0
    return rng.getrandbits(bits)


def exact_bits(rng: random.Random, bits: int) -> int:
    """Random integer with exactly `bits` bits (top bit forced)."""
    if bits <= 0:
        raise ValueError("bits must be positive")
    return random_bits(rng, bits) | (1 << (bits - 1))


def powmod(base: int, exp: int, mod: int) -> int:
    if mod <= 0:
        raise ValueError(f"modulus must be positive, got {mod}")
    return int(gmpy2.powmod(base, exp, mod))


def gcd(a: int, b: int) -> int:
    return int(gmpy2.gcd(a, b))


def is_odd(n: int) -> bool:
    return bool(gmpy2.is_odd(n))


def force_odd(n: int) -> int:
    if n < 0:
        raise ValueError("candidates are non-negative")
    return int(gmpy2.bit_set(n, 0))


def split_two_adic(m: int) -> Tuple[int, int]:
    """Write m = d * 2**s with d odd; returns (d, s)."""
    if m <= 0:
        raise ValueError("m must be positive")
    s = gmpy2.bit_scan1(m)
    return m >> s, int(s)
