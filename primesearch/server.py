# primesearch/server.py
# JSON API: synchronous prime search (time-boxed), primality check, bit statistics.
# Long searches go through the rq-backed blueprint in jobs.py.

from __future__ import annotations
import time
from typing import Optional

from flask import Flask, current_app, jsonify, request

from .config import Settings, configure_logging
from .exceptions import InvalidConfiguration, SearchAbandoned
from .generators import GeneratorKind
from .primality import TesterKind, check_certainty, make_tester
from .search import SearchBudget, check_bit_length, run_primality_test
from .stats import frequency_test, poker_test, runs_test


def _int_param(data: dict, key: str, default=None) -> Optional[int]:
    raw = data.get(key, default)
    if raw is None or raw == "":
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        raise InvalidConfiguration(f"{key} must be an integer") from None


def _settings() -> Settings:
    return current_app.config["PRIMESEARCH_SETTINGS"]


def _search_params(data: dict, settings: Settings) -> dict:
    bits = _int_param(data, "bits")
    if bits is None:
        raise InvalidConfiguration("bits is required")
    check_bit_length(bits)
    if bits > settings.max_bits:
        raise InvalidConfiguration(f"max {settings.max_bits} bits")
    return {
        "generator": GeneratorKind.parse(data.get("generator", "lcg")).value,
        "tester": TesterKind.parse(data.get("tester", "millerrabin")).value,
        "bits": bits,
        "certainty": check_certainty(_int_param(data, "certainty", settings.certainty)),
        "seed": _int_param(data, "seed"),
    }


def api_health():
    return jsonify(ok=True, time=int(time.time()))


def api_prime():
    t0 = time.time()
    settings = _settings()
    data = request.get_json(force=True, silent=True) or {}
    p = _search_params(data, settings)
    time_ms = _int_param(data, "time_ms", settings.sync_time_ms)
    if time_ms > settings.sync_time_ms:
        raise InvalidConfiguration(f"time_ms is capped at {settings.sync_time_ms}; "
                                   "submit a job for longer searches")
    budget = SearchBudget(max_attempts=_int_param(data, "max_attempts"), max_ms=time_ms)
    try:
        res = run_primality_test(p["tester"], p["generator"], p["bits"], p["certainty"],
                                 batch_size=settings.batch_size, budget=budget, seed=p["seed"])
    except SearchAbandoned as e:
        d = jsonify(status="timeout", bits=p["bits"], attempts=e.attempts,
                    elapsed_ms=round(e.elapsed_ms, 3), reason=e.reason)
        d.headers["X-Compute-ms"] = str(int((time.time() - t0) * 1000))
        return d
    d = jsonify(status="ok", prime=str(res.prime), bits=res.bit_length,
                attempts=res.attempts, elapsed_ms=round(res.elapsed_ms, 3),
                generator=res.generator, tester=res.tester, certainty=res.certainty)
    d.headers["X-Compute-ms"] = str(int((time.time() - t0) * 1000))
    return d


def api_is_prime():
    settings = _settings()
    data = request.get_json(force=True, silent=True) or {}
    n = _int_param(data, "n")
    if n is None or n < 0:
        raise InvalidConfiguration("provide n as a non-negative integer")
    certainty = _int_param(data, "certainty", settings.certainty)
    tester = make_tester(str(data.get("tester", "millerrabin")))
    return jsonify(n=str(n), bits=n.bit_length(), tester=tester.name, certainty=certainty,
                   is_prime=tester.is_prime(n, certainty))


def api_stats():
    data = request.get_json(force=True, silent=True) or {}
    n = _int_param(data, "n")
    if n is None or n < 0:
        raise InvalidConfiguration("provide n as a non-negative integer")
    block_size = _int_param(data, "block_size", 4)
    freq, runs, poker = frequency_test(n), runs_test(n), poker_test(n, block_size)
    return jsonify(
        bits=freq.total_bits,
        frequency={"zeros": freq.zeros, "ones": freq.ones,
                   "percent_ones": round(freq.percent_ones, 4)},
        runs={"runs": runs.runs, "expected": runs.expected_runs},
        poker={"block_size": poker.block_size, "blocks": poker.num_blocks,
               "chi_squared": poker.chi_squared},
    )


def _bad_request(e: InvalidConfiguration):
    return jsonify(error=str(e)), 400


def create_app(settings: Optional[Settings] = None) -> Flask:
    from .jobs import jobs_bp

    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    app = Flask(__name__)
    app.config["PRIMESEARCH_SETTINGS"] = settings
    app.add_url_rule("/api/health", view_func=api_health, methods=["GET"])
    app.add_url_rule("/api/prime", view_func=api_prime, methods=["POST"])
    app.add_url_rule("/api/is_prime", view_func=api_is_prime, methods=["POST"])
    app.add_url_rule("/api/stats", view_func=api_stats, methods=["POST"])
    app.register_error_handler(InvalidConfiguration, _bad_request)
    app.register_blueprint(jobs_bp)
    return app
