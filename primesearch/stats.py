# primesearch/stats.py
# Read-only randomness diagnostics over the binary representation of a number:
# monobit frequency, runs, poker (block chi-squared).

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from .exceptions import InvalidConfiguration

STAT_TESTS = ("freq", "runs", "poker")


def bit_array(n: int) -> np.ndarray:
    """Bits of n, most significant first, as a uint8 array."""
    if n < 0:
        raise ValueError("only non-negative integers")
    return np.frombuffer(format(n, "b").encode("ascii"), dtype=np.uint8) - ord("0")


@dataclass
class FrequencyReport:
    total_bits: int
    zeros: int
    ones: int

    @property
    def percent_ones(self) -> float:
        return 100.0 * self.ones / self.total_bits

    @property
    def percent_zeros(self) -> float:
        return 100.0 * self.zeros / self.total_bits


@dataclass
class RunsReport:
    total_bits: int
    runs: int
    expected_runs: int

    @property
    def sufficient(self) -> bool:
        return self.total_bits >= 2


@dataclass
class PokerReport:
    block_size: int
    num_blocks: int
    chi_squared: Optional[float]


def frequency_test(n: int) -> FrequencyReport:
    bits = bit_array(n)
    ones = int(np.count_nonzero(bits))
    return FrequencyReport(total_bits=int(bits.size), zeros=int(bits.size) - ones, ones=ones)


def runs_test(n: int) -> RunsReport:
    bits = bit_array(n)
    size = int(bits.size)
    if size < 2:
        return RunsReport(total_bits=size, runs=size, expected_runs=0)
    runs = 1 + int(np.count_nonzero(np.diff(bits)))
    return RunsReport(total_bits=size, runs=runs, expected_runs=size // 2)


def poker_test(n: int, block_size: int = 4) -> PokerReport:
    """X^2 = (2^m / k) * sum(n_i^2) - k over k non-overlapping m-bit blocks."""
    if block_size <= 0 or block_size > 16:
        raise InvalidConfiguration(f"block size must be between 1 and 16, got {block_size}")
    bits = bit_array(n)
    k = int(bits.size) // block_size
    if k < 1:
        return PokerReport(block_size=block_size, num_blocks=0, chi_squared=None)
    blocks = bits[:k * block_size].reshape(k, block_size).astype(np.int64)
    weights = 1 << np.arange(block_size - 1, -1, -1, dtype=np.int64)
    counts = np.bincount(blocks @ weights, minlength=1 << block_size)
    sum_sq = float(np.sum(counts.astype(np.float64) ** 2))
    chi = (2 ** block_size / k) * sum_sq - k
    return PokerReport(block_size=block_size, num_blocks=k, chi_squared=chi)


# ---------- text ----------

def _format_frequency(r: FrequencyReport) -> str:
    return ("--- Frequency (monobit) test ---\n"
            f"Total bits: {r.total_bits}\n"
            f"Zeros: {r.zeros} ({r.percent_zeros:.2f}%)\n"
            f"Ones: {r.ones} ({r.percent_ones:.2f}%)\n"
            "Conclusion: a random sequence should be close to 50% zeros and 50% ones.\n")


def _format_runs(r: RunsReport) -> str:
    if not r.sufficient:
        return "--- Runs test ---\nNumber too small for the runs test.\n"
    return ("--- Runs test ---\n"
            f"Total bits: {r.total_bits}\n"
            f"Runs (maximal blocks of identical bits): {r.runs}\n"
            f"Expected runs for a random sequence: ~{r.expected_runs}\n"
            "Conclusion: a run count far from the expected value suggests non-randomness.\n")


def _format_poker(r: PokerReport) -> str:
    if r.chi_squared is None:
        return "--- Poker test ---\nNumber too small for the chosen block size.\n"
    return (f"--- Poker test ({r.block_size}-bit blocks) ---\n"
            f"Blocks: {r.num_blocks}\n"
            f"Chi-squared (X^2): {r.chi_squared:.4f}\n"
            "Conclusion: low X^2 means the block patterns are evenly distributed.\n")


def format_report(n: int, tests: Iterable[str] = STAT_TESTS, block_size: int = 4) -> str:
    parts = []
    for name in tests:
        if name == "freq":
            parts.append(_format_frequency(frequency_test(n)))
        elif name == "runs":
            parts.append(_format_runs(runs_test(n)))
        elif name == "poker":
            parts.append(_format_poker(poker_test(n, block_size)))
        else:
            raise InvalidConfiguration(f"unknown statistical test {name!r}")
    return "\n".join(parts)
