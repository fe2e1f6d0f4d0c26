from __future__ import annotations
import random

from .numeric import random_bits


def draw_witness(n: int, rng: random.Random) -> int:
    """Uniform witness a with 2 <= a <= n-2.

    Draws n.bit_length() random bits and redraws until the value falls in
    range. Out-of-range draws are rejected, never clamped.
    """
    if n < 5:
        raise ValueError(f"no witnesses in [2, n-2] for n={n}")
    bits = n.bit_length()
    upper = n - 2
    while True:
        a = random_bits(rng, bits)
        if 2 <= a <= upper:
            return a
