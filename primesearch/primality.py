# primesearch/primality.py
# Probabilistic primality testers
# - Miller-Rabin: strong witness test, the one to use
# - Fermat: a^(n-1) == 1 (mod n), fooled by Carmichael numbers
# - WeakFermat: Fermat that skips witnesses sharing a factor with n, so
#   Carmichael numbers always pass (demonstration only)

from __future__ import annotations
import enum, random
from typing import Optional, Union

from .exceptions import InvalidConfiguration
from .numeric import gcd, is_odd, powmod, seed_from_clock, split_two_adic
from .witnesses import draw_witness


def check_certainty(certainty: int) -> int:
    if isinstance(certainty, bool) or not isinstance(certainty, int) or certainty < 1:
        raise InvalidConfiguration(f"certainty must be a positive integer, got {certainty!r}")
    return certainty


def _screen(n: int) -> Optional[bool]:
    """Verdict for the trivial cases, None when trials are needed."""
    if n <= 1:
        return False
    if n <= 3:
        return True
    if not is_odd(n):
        return False
    return None


class _Tester:
    name = "?"

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed_from_clock() if seed is None else seed)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# ---------- Miller-Rabin ----------

class MillerRabinTester(_Tester):
    name = "MillerRabin"

    def is_prime(self, n: int, certainty: int) -> bool:
        check_certainty(certainty)
        trivial = _screen(n)
        if trivial is not None:
            return trivial

        n_minus_one = n - 1
        d, s = split_two_adic(n_minus_one)
        for _ in range(certainty):
            a = draw_witness(n, self._rng)
            x = powmod(a, d, n)
            if x == 1 or x == n_minus_one:
                continue
            for _ in range(s - 1):
                x = (x * x) % n
                if x == n_minus_one:
                    break
                if x == 1:
                    return False  # non-trivial square root of 1
            else:
                return False
        return True


# ---------- Fermat ----------

class FermatTester(_Tester):
    name = "Fermat"

    def is_prime(self, n: int, certainty: int) -> bool:
        check_certainty(certainty)
        trivial = _screen(n)
        if trivial is not None:
            return trivial

        n_minus_one = n - 1
        for _ in range(certainty):
            a = draw_witness(n, self._rng)
            if powmod(a, n_minus_one, n) != 1:
                return False
        return True


class WeakFermatTester(_Tester):
    """Fermat test that ignores witnesses sharing a factor with n.

    Only coprime witnesses get through, and every one of those passes for a
    Carmichael number, so e.g. 1729 is reported prime. Never use this for a
    real decision.
    """
    name = "WeakFermat"

    def is_prime(self, n: int, certainty: int) -> bool:
        check_certainty(certainty)
        trivial = _screen(n)
        if trivial is not None:
            return trivial

        n_minus_one = n - 1
        for _ in range(certainty):
            a = draw_witness(n, self._rng)
            if gcd(a, n) != 1:
                continue
            if powmod(a, n_minus_one, n) != 1:
                return False
        return True


# ---------- factory ----------

class TesterKind(enum.Enum):
    MILLER_RABIN = "millerrabin"
    FERMAT = "fermat"
    WEAK_FERMAT = "weakfermat"

    @classmethod
    def parse(cls, value: Union[str, "TesterKind"]) -> "TesterKind":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "").replace("_", "")
        for kind in cls:
            if kind.value == key:
                return kind
        names = ", ".join(k.value for k in cls)
        raise InvalidConfiguration(f"unknown tester {value!r} (expected one of: {names})")


Tester = Union[MillerRabinTester, FermatTester, WeakFermatTester]


def make_tester(kind: Union[str, TesterKind], seed: Optional[int] = None) -> Tester:
    kind = TesterKind.parse(kind)
    if kind is TesterKind.MILLER_RABIN:
        return MillerRabinTester(seed)
    if kind is TesterKind.FERMAT:
        return FermatTester(seed)
    return WeakFermatTester(seed)
