# primesearch/search.py
# Prime search orchestration
# - pull a batch from the generator, keep only the LAST value
# - force it odd, test it, stop at the first probable prime
# - optional budget (attempts / wall time) and cooperative cancel
# - independent searches in parallel, throughput / tester benchmarks

from __future__ import annotations
import logging, threading, time
import concurrent.futures
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from .exceptions import InvalidConfiguration, SearchAbandoned
from .generators import Generator, GeneratorKind, check_count, make_generator
from .numeric import force_odd
from .primality import Tester, TesterKind, check_certainty, make_tester

log = logging.getLogger(__name__)

BATCH_SIZE = 10
CARMICHAEL_1729 = 1729


@dataclass(frozen=True)
class SearchBudget:
    """Upper bounds for one search; None means unbounded."""
    max_attempts: Optional[int] = None
    max_ms: Optional[float] = None

    def __post_init__(self):
        n = self.max_attempts
        if n is not None and (isinstance(n, bool) or not isinstance(n, int) or n < 1):
            raise InvalidConfiguration(f"max_attempts must be a positive integer, got {n!r}")
        ms = self.max_ms
        if ms is not None and (isinstance(ms, bool) or not isinstance(ms, (int, float)) or ms <= 0):
            raise InvalidConfiguration(f"max_ms must be a positive number, got {ms!r}")


@dataclass
class SearchResult:
    prime: int
    attempts: int
    elapsed_ms: float
    generator: str
    tester: str
    bit_length: int
    certainty: int


@dataclass
class SearchRequest:
    tester: Union[str, TesterKind]
    generator: Union[str, GeneratorKind]
    bit_length: int
    certainty: int
    batch_size: int = BATCH_SIZE
    budget: Optional[SearchBudget] = None
    seed: Optional[int] = None


@dataclass
class GenerationTiming:
    generator: str
    bit_length: int
    count: int
    total_ms: float
    avg_ns: int


@dataclass
class TesterBenchmark:
    tester: str
    generator: str
    bit_length: int
    certainty: int
    number_of_tests: int
    total_ms: float
    verdicts: List[bool] = field(default_factory=list)

    @property
    def avg_ms(self) -> float:
        return self.total_ms / self.number_of_tests


def _check_batch_size(batch_size: int) -> int:
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
        raise InvalidConfiguration(f"batch size must be a positive integer, got {batch_size!r}")
    return batch_size


def check_bit_length(bit_length: int) -> int:
    if isinstance(bit_length, bool) or not isinstance(bit_length, int) or bit_length < 2:
        raise InvalidConfiguration(f"prime bit length must be at least 2, got {bit_length!r}")
    return bit_length


def _elapsed_ms(t0: float) -> float:
    return (time.perf_counter() - t0) * 1000.0


# ---------- core loop ----------

def search(tester: Tester, generator: Generator, certainty: int, *,
           batch_size: int = BATCH_SIZE,
           budget: Optional[SearchBudget] = None,
           cancel: Optional[threading.Event] = None) -> SearchResult:
    """Draw batches until the last value of a batch (forced odd) passes `tester`.

    Without a budget there is no upper bound on the number of batches; the
    expected count is O(bit_length). Raises SearchAbandoned when the budget
    runs out or `cancel` is set.
    """
    check_certainty(certainty)
    _check_batch_size(batch_size)
    max_attempts = budget.max_attempts if budget else None
    max_ms = budget.max_ms if budget else None

    t0 = time.perf_counter()
    attempts = 0
    while True:
        if cancel is not None and cancel.is_set():
            raise SearchAbandoned(attempts, _elapsed_ms(t0), "cancelled", generator.bit_length)
        if max_attempts is not None and attempts >= max_attempts:
            raise SearchAbandoned(attempts, _elapsed_ms(t0),
                                  f"attempt budget of {max_attempts} exhausted",
                                  generator.bit_length)
        if max_ms is not None and _elapsed_ms(t0) >= max_ms:
            raise SearchAbandoned(attempts, _elapsed_ms(t0),
                                  f"time budget of {max_ms} ms exhausted",
                                  generator.bit_length)

        attempts += 1
        candidate = force_odd(generator.generate(batch_size)[-1])
        if tester.is_prime(candidate, certainty):
            result = SearchResult(prime=candidate, attempts=attempts,
                                  elapsed_ms=_elapsed_ms(t0),
                                  generator=generator.name, tester=tester.name,
                                  bit_length=generator.bit_length, certainty=certainty)
            log.debug("attempt %d: %d-bit candidate accepted", attempts, candidate.bit_length())
            return result
        log.debug("attempt %d: candidate rejected", attempts)


def _build(tester_kind, generator_kind, bit_length: int, certainty: int,
           batch_size: int, seed: Optional[int]):
    # everything is validated before anything is constructed
    tester_kind = TesterKind.parse(tester_kind)
    generator_kind = GeneratorKind.parse(generator_kind)
    check_bit_length(bit_length)
    check_certainty(certainty)
    _check_batch_size(batch_size)
    tester_seed = None if seed is None else seed + 1
    generator = make_generator(generator_kind, bit_length, seed)
    tester = make_tester(tester_kind, tester_seed)
    return tester, generator


def find_prime(tester_kind: Union[str, TesterKind],
               generator_kind: Union[str, GeneratorKind],
               bit_length: int, certainty: int, *,
               batch_size: int = BATCH_SIZE,
               budget: Optional[SearchBudget] = None,
               seed: Optional[int] = None,
               cancel: Optional[threading.Event] = None) -> int:
    """Blocking search with fresh instances; returns an odd probable prime."""
    tester, generator = _build(tester_kind, generator_kind, bit_length, certainty,
                               batch_size, seed)
    return search(tester, generator, certainty, batch_size=batch_size,
                  budget=budget, cancel=cancel).prime


def run_primality_test(tester_kind: Union[str, TesterKind],
                       generator_kind: Union[str, GeneratorKind],
                       bit_length: int, certainty: int, *,
                       batch_size: int = BATCH_SIZE,
                       budget: Optional[SearchBudget] = None,
                       seed: Optional[int] = None,
                       cancel: Optional[threading.Event] = None) -> SearchResult:
    """find_prime that also reports attempts and elapsed time."""
    tester, generator = _build(tester_kind, generator_kind, bit_length, certainty,
                               batch_size, seed)
    log.info("searching %d-bit prime with %s + %s (certainty %d)",
             bit_length, generator.name, tester.name, certainty)
    try:
        result = search(tester, generator, certainty, batch_size=batch_size,
                        budget=budget, cancel=cancel)
    except SearchAbandoned as e:
        log.warning("%s", e)
        raise
    log.info("%-12s | %-6d bits | %-6d attempts | %.4f ms",
             result.tester, result.bit_length, result.attempts, result.elapsed_ms)
    return result


def _run_request(req: SearchRequest) -> SearchResult:
    return run_primality_test(req.tester, req.generator, req.bit_length, req.certainty,
                              batch_size=req.batch_size, budget=req.budget, seed=req.seed)


def search_many(requests: Sequence[SearchRequest],
                max_workers: Optional[int] = None) -> List[SearchResult]:
    """Run independent searches concurrently; results keep the request order.

    Each request builds its own generator and tester, so nothing is shared.
    The first failure (configuration error or abandoned search) propagates.
    """
    if not requests:
        return []
    workers = max_workers or min(len(requests), 8)
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(_run_request, req) for req in requests]
        return [f.result() for f in futures]


# ---------- benchmarks ----------

def time_generation(generator_kind: Union[str, GeneratorKind], bit_length: int,
                    count: int, seed: Optional[int] = None) -> GenerationTiming:
    generator_kind = GeneratorKind.parse(generator_kind)
    check_count(count)
    generator = make_generator(generator_kind, bit_length, seed)
    t0 = time.perf_counter_ns()
    generator.generate(count)
    total_ns = time.perf_counter_ns() - t0
    return GenerationTiming(generator=generator.name, bit_length=bit_length, count=count,
                            total_ms=total_ns / 1_000_000.0, avg_ns=total_ns // count)


def benchmark_tester(tester_kind: Union[str, TesterKind],
                     generator_kind: Union[str, GeneratorKind],
                     bit_length: int, certainty: int, number_of_tests: int,
                     seed: Optional[int] = None) -> TesterBenchmark:
    """Time only the is_prime calls over `number_of_tests` odd random candidates."""
    if isinstance(number_of_tests, bool) or not isinstance(number_of_tests, int) \
            or number_of_tests < 1:
        raise InvalidConfiguration(f"number_of_tests must be positive, got {number_of_tests!r}")
    tester, generator = _build(tester_kind, generator_kind, bit_length, certainty,
                               BATCH_SIZE, seed)
    total_ns = 0
    verdicts = []
    for _ in range(number_of_tests):
        candidate = force_odd(generator.generate(1)[0])
        t0 = time.perf_counter_ns()
        verdicts.append(tester.is_prime(candidate, certainty))
        total_ns += time.perf_counter_ns() - t0
    return TesterBenchmark(tester=tester.name, generator=generator.name,
                           bit_length=bit_length, certainty=certainty,
                           number_of_tests=number_of_tests,
                           total_ms=total_ns / 1_000_000.0, verdicts=verdicts)


def carmichael_demo(n: int = CARMICHAEL_1729, certainty: int = 200,
                    seed: Optional[int] = None) -> Dict[str, bool]:
    """Verdict of every tester on `n`; for a Carmichael number only
    Miller-Rabin should say composite (WeakFermat always says prime)."""
    out = {}
    for i, kind in enumerate(TesterKind):
        tester = make_tester(kind, None if seed is None else seed + i)
        out[tester.name] = tester.is_prime(n, certainty)
    return out
