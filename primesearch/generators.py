# primesearch/generators.py
# Pseudo-random big-integer generators
# - LCG: seed <- (a*seed + c) mod 2^bits, cheap, predictable
# - Blum-Blum-Shub: state <- state^2 mod p*q, one output bit per squaring

from __future__ import annotations
import enum, logging, random
from typing import List, Optional, Union

from .exceptions import InvalidConfiguration
from .numeric import exact_bits, gcd, random_bits, seed_from_clock
from .primality import MillerRabinTester

log = logging.getLogger(__name__)

# 64-bit LCG constants (Knuth / PCG multiplier and increment)
LCG_MULTIPLIER = 6364136223846793005
LCG_INCREMENT = 1442695040888963407

BLUM_PRIME_CERTAINTY = 50
MIN_BLUM_PRIME_BITS = 5  # smallest size with two distinct primes = 3 (mod 4)


def check_count(count: int) -> int:
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise InvalidConfiguration(f"count must be a positive integer, got {count!r}")
    return count


class _Generator:
    name = "?"

    def __init__(self, bit_length: int):
        self._bit_length = bit_length

    @property
    def bit_length(self) -> int:
        return self._bit_length

    def _next(self) -> int:
        raise NotImplementedError

    def generate(self, count: int) -> List[int]:
        """Next `count` numbers of the sequence; the state keeps advancing."""
        check_count(count)
        return [self._next() for _ in range(count)]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(bit_length={self._bit_length})"


# ---------- LCG ----------

class LcgGenerator(_Generator):
    name = "LCG"

    def __init__(self, bit_length: int, seed: Optional[int] = None):
        if isinstance(bit_length, bool) or not isinstance(bit_length, int) or bit_length < 1:
            raise InvalidConfiguration(f"LCG bit length must be positive, got {bit_length!r}")
        super().__init__(bit_length)
        self._a = LCG_MULTIPLIER
        self._c = LCG_INCREMENT
        self._m = 1 << bit_length
        self._seed = (seed_from_clock() if seed is None else seed) % self._m

    def _next(self) -> int:
        self._seed = (self._a * self._seed + self._c) % self._m
        return self._seed


# ---------- Blum-Blum-Shub ----------

def find_blum_prime(bits: int, rng: random.Random, tester: MillerRabinTester,
                    certainty: int = BLUM_PRIME_CERTAINTY) -> int:
    """Random probable prime of `bits` bits with p = 3 (mod 4)."""
    while True:
        p = exact_bits(rng, bits) | 3
        if tester.is_prime(p, certainty):
            return p


class BbsGenerator(_Generator):
    name = "BBS"

    def __init__(self, bit_length: int, seed: Optional[int] = None):
        if isinstance(bit_length, bool) or not isinstance(bit_length, int) or bit_length < 2:
            raise InvalidConfiguration(f"BBS bit length must be at least 2, got {bit_length!r}")
        super().__init__(bit_length)
        rng = random.Random(seed_from_clock() if seed is None else seed)
        tester = MillerRabinTester(seed=random_bits(rng, 64))

        prime_bits = max(bit_length // 2, MIN_BLUM_PRIME_BITS)
        p = find_blum_prime(prime_bits, rng, tester)
        q = find_blum_prime(prime_bits, rng, tester)
        while q == p:
            q = find_blum_prime(prime_bits, rng, tester)
        self._m = p * q

        while True:
            x = random_bits(rng, bit_length)
            if x in (0, 1) or gcd(x, self._m) != 1:
                continue
            break
        self._state = (x * x) % self._m
        log.debug("BBS ready: %d-bit Blum modulus for %d-bit outputs",
                  self._m.bit_length(), bit_length)

    @property
    def modulus(self) -> int:
        return self._m

    def _next(self) -> int:
        result = 0
        m = self._m
        state = self._state
        for _ in range(self._bit_length):
            state = (state * state) % m
            result = (result << 1) | (state & 1)
        self._state = state
        return result


# ---------- factory ----------

class GeneratorKind(enum.Enum):
    LCG = "lcg"
    BBS = "bbs"

    @classmethod
    def parse(cls, value: Union[str, "GeneratorKind"]) -> "GeneratorKind":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for kind in cls:
            if kind.value == key:
                return kind
        names = ", ".join(k.value for k in cls)
        raise InvalidConfiguration(f"unknown generator {value!r} (expected one of: {names})")


Generator = Union[LcgGenerator, BbsGenerator]


def make_generator(kind: Union[str, GeneratorKind], bit_length: int,
                   seed: Optional[int] = None) -> Generator:
    kind = GeneratorKind.parse(kind)
    if kind is GeneratorKind.LCG:
        return LcgGenerator(bit_length, seed)
    return BbsGenerator(bit_length, seed)
