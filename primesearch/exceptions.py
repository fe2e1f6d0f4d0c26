from __future__ import annotations
from typing import Optional


class PrimeSearchError(Exception):
    """Base class for every error raised by primesearch."""


class InvalidConfiguration(PrimeSearchError, ValueError):
    """Bad parameters: bit length, certainty, count, budget, unknown names."""


class SearchAbandoned(PrimeSearchError):
    def __init__(self, attempts: int, elapsed_ms: float, reason: str,
                 bit_length: Optional[int] = None):
        self.attempts = attempts
        self.elapsed_ms = elapsed_ms
        self.reason = reason
        self.bit_length = bit_length
        super().__init__(f"search abandoned after {attempts} attempts "
                         f"({elapsed_ms:.1f} ms): {reason}")
