"""Cross-check the testers against sympy on primes, composites and Carmichael numbers."""

from __future__ import annotations
import csv, random
from dataclasses import dataclass, field, asdict
from typing import Dict, Iterable, List, Optional, Tuple

from sympy import isprime, nextprime, prevprime

from .primality import TesterKind, make_tester

CARMICHAEL_NUMBERS = (561, 1105, 1729, 2465, 2821, 6601, 8911, 10585, 15841, 29341)


@dataclass
class CaseResult:
    n: str
    bits: int
    expect: str
    tester: str
    verdict: bool
    ok: bool


@dataclass
class AccuracySummary:
    total: int = 0
    by_tester: Dict[str, List[int]] = field(default_factory=dict)  # name -> [pass, fail]
    failures: List[CaseResult] = field(default_factory=list)

    def record(self, row: CaseResult) -> None:
        self.total += 1
        counts = self.by_tester.setdefault(row.tester, [0, 0])
        if row.ok:
            counts[0] += 1
        else:
            counts[1] += 1
            self.failures.append(row)

    def write_failures(self, path: str) -> None:
        with open(path, "w", newline="") as f:
            w = csv.DictWriter(f, fieldnames=list(CaseResult.__dataclass_fields__))
            w.writeheader()
            for row in self.failures:
                w.writerow(asdict(row))


def rand_prime_bits(bits: int, rng: random.Random) -> int:
    """Prime with exactly `bits` bits (bits >= 2), reproducible through `rng`."""
    lo = 1 << (bits - 1)
    hi = lo << 1
    p = int(nextprime(rng.randrange(lo - 1, hi - 1)))
    return p if p < hi else int(prevprime(hi))


def rand_composite_bits(bits: int, rng: random.Random) -> int:
    half = max(2, bits // 2)
    return rand_prime_bits(half, rng) * rand_prime_bits(max(2, bits - half), rng)


def cases(bit_sizes: Iterable[int] = (8, 16, 32, 64, 128), per_size: int = 3,
          seed: Optional[int] = None) -> List[Tuple[int, str]]:
    rng = random.Random(seed)
    out: List[Tuple[int, str]] = [(2, "prime"), (3, "prime"), (1, "composite"), (91, "composite")]
    for bits in bit_sizes:
        for _ in range(per_size):
            out.append((rand_prime_bits(bits, rng), "prime"))
            out.append((rand_composite_bits(bits, rng), "composite"))
    out += [(n, "carmichael") for n in CARMICHAEL_NUMBERS]
    return out


def run_suite(certainty: int = 50, testers: Iterable = tuple(TesterKind),
              bit_sizes: Iterable[int] = (8, 16, 32, 64, 128), per_size: int = 3,
              seed: Optional[int] = None) -> AccuracySummary:
    summary = AccuracySummary()
    instances = [make_tester(kind, None if seed is None else seed + i)
                 for i, kind in enumerate(testers)]
    for n, expect in cases(bit_sizes, per_size, seed):
        truth = isprime(n)
        for tester in instances:
            verdict = tester.is_prime(n, certainty)
            summary.record(CaseResult(n=str(n), bits=n.bit_length(), expect=expect,
                                      tester=tester.name, verdict=verdict,
                                      ok=(verdict == truth)))
    return summary
