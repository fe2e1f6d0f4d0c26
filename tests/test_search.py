import importlib
import threading

import pytest
from sympy import isprime

from primesearch import (
    BATCH_SIZE,
    GeneratorKind,
    InvalidConfiguration,
    MillerRabinTester,
    SearchAbandoned,
    SearchBudget,
    SearchRequest,
    find_prime,
    run_primality_test,
    search,
    search_many,
)
from primesearch import primality

search_mod = importlib.import_module("primesearch.search")
from primesearch.search import benchmark_tester, carmichael_demo, time_generation


class ScriptedGenerator:
    """Hands out fixed batches, then repeats the last one forever."""
    name = "Scripted"
    bit_length = 8

    def __init__(self, batches):
        self.batches = list(batches)
        self.counts = []

    def generate(self, count):
        self.counts.append(count)
        batch = self.batches.pop(0) if len(self.batches) > 1 else self.batches[0]
        return list(batch)


class TestSearchLoop:

    def test_only_last_value_of_each_batch_is_tested(self):
        # 7 and 13 are prime but not last; 8 -> 9 is composite; 10 -> 11 is prime
        gen = ScriptedGenerator([[7, 13] + [4] * 7 + [8], [0] * 9 + [10]])
        res = search(MillerRabinTester(seed=1), gen, 20)
        assert res.prime == 11
        assert res.attempts == 2
        assert gen.counts == [BATCH_SIZE, BATCH_SIZE]
        assert res.generator == "Scripted" and res.tester == "MillerRabin"

    def test_candidate_forced_odd(self):
        gen = ScriptedGenerator([[16]])
        assert search(MillerRabinTester(seed=1), gen, 20, batch_size=1).prime == 17

    def test_batch_size_one_uses_every_value(self):
        gen = ScriptedGenerator([[9], [15], [23]])
        res = search(MillerRabinTester(seed=1), gen, 20, batch_size=1)
        assert res.prime == 23
        assert gen.counts == [1, 1, 1]

    def test_attempt_budget(self):
        gen = ScriptedGenerator([[15]])
        with pytest.raises(SearchAbandoned) as exc:
            search(MillerRabinTester(seed=1), gen, 20, batch_size=1,
                   budget=SearchBudget(max_attempts=3))
        assert exc.value.attempts == 3
        assert "attempt budget" in exc.value.reason

    def test_time_budget(self):
        gen = ScriptedGenerator([[15]])
        with pytest.raises(SearchAbandoned) as exc:
            search(MillerRabinTester(seed=1), gen, 5, batch_size=1,
                   budget=SearchBudget(max_ms=30))
        assert exc.value.elapsed_ms >= 30
        assert exc.value.attempts > 0

    def test_cancel_before_start(self):
        ev = threading.Event()
        ev.set()
        with pytest.raises(SearchAbandoned, match="cancelled") as exc:
            search(MillerRabinTester(seed=1), ScriptedGenerator([[11]]), 5, cancel=ev)
        assert exc.value.attempts == 0

    def test_cancel_from_another_thread(self):
        ev = threading.Event()
        timer = threading.Timer(0.05, ev.set)
        timer.start()
        try:
            with pytest.raises(SearchAbandoned, match="cancelled"):
                search(MillerRabinTester(seed=1), ScriptedGenerator([[15]]), 5,
                       batch_size=1, cancel=ev)
        finally:
            timer.cancel()

    @pytest.mark.parametrize("kwargs", [
        {"max_attempts": 0}, {"max_attempts": True}, {"max_attempts": 1.5},
        {"max_ms": 0}, {"max_ms": -1}, {"max_ms": False}, {"max_ms": "100"},
    ])
    def test_bad_budget(self, kwargs):
        with pytest.raises(InvalidConfiguration):
            SearchBudget(**kwargs)


class TestFindPrime:

    def test_end_to_end_lcg_miller_rabin_128(self):
        p = find_prime(primality.TesterKind.MILLER_RABIN, GeneratorKind.LCG, 128, 50, seed=2025)
        assert p % 2 == 1
        assert p < (1 << 128)
        assert MillerRabinTester(seed=9).is_prime(p, 200)
        assert isprime(p)

    def test_unseeded_search(self):
        p = find_prime("millerrabin", "lcg", 64, 30)
        assert p % 2 == 1 and p < (1 << 64)
        assert isprime(p)

    def test_bbs_generator(self):
        p = find_prime(primality.TesterKind.MILLER_RABIN, GeneratorKind.BBS, 64, 30, seed=4)
        assert p % 2 == 1 and p < (1 << 64)
        assert isprime(p)

    def test_fermat_tester(self):
        p = find_prime(primality.TesterKind.FERMAT, GeneratorKind.LCG, 96, 30, seed=12)
        assert isprime(p)

    def test_seed_reproducible(self):
        a = find_prime("millerrabin", "lcg", 80, 20, seed=77)
        b = find_prime("millerrabin", "lcg", 80, 20, seed=77)
        assert a == b

    @pytest.mark.parametrize("args", [
        ("millerrabin", "lcg", 1, 10),
        ("millerrabin", "lcg", 64, 0),
        ("millerrabin", "xorshift", 64, 10),
        ("aks", "lcg", 64, 10),
    ])
    def test_bad_configuration(self, args):
        with pytest.raises(InvalidConfiguration):
            find_prime(*args)

    def test_bad_batch_size(self):
        with pytest.raises(InvalidConfiguration):
            find_prime("millerrabin", "lcg", 64, 10, batch_size=0)

    def test_run_primality_test_reports(self):
        res = run_primality_test("millerrabin", "lcg", 64, 20, seed=3)
        assert res.generator == "LCG" and res.tester == "MillerRabin"
        assert res.bit_length == 64 and res.certainty == 20
        assert res.attempts >= 1 and res.elapsed_ms >= 0
        assert isprime(res.prime)


class TestConcurrentSearches:

    def test_results_keep_request_order(self):
        reqs = [
            SearchRequest("millerrabin", "lcg", 48, 20, seed=1),
            SearchRequest("fermat", "lcg", 64, 20, seed=2),
            SearchRequest("millerrabin", "bbs", 32, 20, seed=3),
        ]
        results = search_many(reqs, max_workers=3)
        assert [r.bit_length for r in results] == [48, 64, 32]
        assert [r.generator for r in results] == ["LCG", "LCG", "BBS"]
        assert all(isprime(r.prime) for r in results)

    def test_empty(self):
        assert search_many([]) == []

    def test_configuration_error_propagates(self):
        with pytest.raises(InvalidConfiguration):
            search_many([SearchRequest("millerrabin", "lcg", 0, 20)])


class TestBenchmarks:

    def test_time_generation(self):
        t = time_generation("lcg", 64, 100, seed=1)
        assert t.generator == "LCG" and t.count == 100
        assert t.total_ms >= 0 and t.avg_ns >= 0

    def test_benchmark_tester(self):
        b = benchmark_tester("millerrabin", "lcg", 64, 10, 5, seed=1)
        assert b.tester == "MillerRabin" and b.number_of_tests == 5
        assert len(b.verdicts) == 5
        assert b.avg_ms == b.total_ms / 5

    def test_benchmark_rejects_zero_tests(self):
        with pytest.raises(InvalidConfiguration):
            benchmark_tester("fermat", "lcg", 64, 10, 0)

    def test_carmichael_demo(self):
        verdicts = carmichael_demo(certainty=200, seed=1)
        assert verdicts == {"MillerRabin": False, "Fermat": False, "WeakFermat": True}

    def test_time_generation_rejects_bad_count(self):
        with pytest.raises(InvalidConfiguration):
            time_generation("lcg", 64, 0)


class TestValidationBeforeConstruction:

    @pytest.fixture
    def no_generator(self, monkeypatch):
        def refuse(*args, **kwargs):
            pytest.fail("generator built before the configuration was checked")
        monkeypatch.setattr(search_mod, "make_generator", refuse)

    @pytest.mark.parametrize("args", [
        ("aks", "bbs", 2048, 10, 5),
        ("millerrabin", "xorshift", 64, 10, 5),
        ("millerrabin", "bbs", 1, 10, 5),
        ("millerrabin", "bbs", 2048, 0, 5),
        ("millerrabin", "bbs", 2048, 10, 0),
    ])
    def test_benchmark_tester(self, no_generator, args):
        with pytest.raises(InvalidConfiguration):
            benchmark_tester(*args)

    @pytest.mark.parametrize("args", [("bbs", 2048, 0), ("mt19937", 64, 10)])
    def test_time_generation(self, no_generator, args):
        with pytest.raises(InvalidConfiguration):
            time_generation(*args)

    def test_find_prime(self, no_generator):
        with pytest.raises(InvalidConfiguration):
            find_prime("aks", "bbs", 2048, 10)
