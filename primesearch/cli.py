#!/usr/bin/env python3
# primesearch command line
#   primesearch find lcg millerrabin 256 100 [--stat all] [--max-ms 5000] [--json]
#   primesearch bench [--count 5000] [--certainty 200]
#   primesearch carmichael [--n 1729]
#   primesearch accuracy [--csv failures.csv]
#   primesearch serve [--port 8082]

from __future__ import annotations
import argparse, json, sys
from typing import List, Optional

from .config import Settings, configure_logging
from .exceptions import InvalidConfiguration, SearchAbandoned
from .generators import GeneratorKind
from .primality import TesterKind
from .search import (BATCH_SIZE, SearchBudget, benchmark_tester, carmichael_demo,
                     run_primality_test, time_generation)
from .stats import STAT_TESTS, format_report

BENCH_BITS = (40, 56, 80, 128, 256, 512, 1024, 2048, 4096)
TRUNCATE_AT = 70


def truncate(n: int, limit: int = TRUNCATE_AT) -> str:
    s = str(n)
    if len(s) <= limit:
        return s
    half = limit // 2
    return s[:half] + "..." + s[-half:]


def _bits_list(s: str) -> List[int]:
    try:
        return [int(x) for x in s.split(",") if x.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected comma separated integers, got {s!r}")


# ---------- commands ----------

def cmd_find(args) -> int:
    budget = None
    if args.max_ms is not None or args.max_attempts is not None:
        budget = SearchBudget(max_attempts=args.max_attempts, max_ms=args.max_ms)
    tests = list(STAT_TESTS) if "all" in (args.stat or []) else list(dict.fromkeys(args.stat or []))

    generator = GeneratorKind.parse(args.generator)
    tester = TesterKind.parse(args.tester)
    if not args.json:
        print(f"Searching for a {args.bits}-bit prime...", flush=True)
        print(f" -> generator: {generator.name}", flush=True)
        print(f" -> tester:    {tester.name}", flush=True)

    try:
        res = run_primality_test(tester, generator, args.bits, args.certainty,
                                 batch_size=args.batch_size, budget=budget, seed=args.seed)
    except SearchAbandoned as e:
        if args.json:
            print(json.dumps({"status": "abandoned", "attempts": e.attempts,
                              "elapsed_ms": round(e.elapsed_ms, 3), "reason": e.reason}))
        else:
            print(f"\nSearch abandoned: {e.reason} ({e.attempts} attempts, "
                  f"{e.elapsed_ms:.4f} ms)", flush=True)
        return 1

    if args.json:
        out = {"status": "ok", "prime": str(res.prime), "bits": res.bit_length,
               "attempts": res.attempts, "elapsed_ms": round(res.elapsed_ms, 3),
               "generator": res.generator, "tester": res.tester, "certainty": res.certainty}
        if tests:
            out["stats"] = format_report(res.prime, tests)
        print(json.dumps(out))
        return 0

    print("\nDone!")
    print(f"Total search time: {res.elapsed_ms:.4f} ms")
    print(f"Attempts: {res.attempts}")
    print("Prime found: " + (str(res.prime) if args.no_truncate else truncate(res.prime)))
    if tests:
        print("\n" + format_report(res.prime, tests))
    return 0


def cmd_bench(args) -> int:
    bits = args.bits
    short = bits[:-2] if len(bits) > 2 else bits  # BBS setup at 2048+ bits is slow
    print(f"{'generator':<25} | {'bits':<12} | {'total ms':<20} | {'avg ns':<20}")
    for kind in GeneratorKind:
        for b in (bits if kind is GeneratorKind.LCG else short):
            t = time_generation(kind, b, args.count)
            print(f"{t.generator:<25} | {t.bit_length:<12d} | {t.total_ms:<20.4f} | {t.avg_ns:<20d}", flush=True)

    print(f"\n{'tester':<25} | {'bits':<12} | {'attempts':<10} | {'ms':<20}")
    for kind in (TesterKind.MILLER_RABIN, TesterKind.FERMAT):
        for b in bits:
            r = run_primality_test(kind, GeneratorKind.LCG, b, args.certainty)
            print(f"{r.tester:<25} | {r.bit_length:<12d} | {r.attempts:<10d} | {r.elapsed_ms:<20.4f}")
            print(f"  \\-> prime: {truncate(r.prime, 60)}", flush=True)

    print()
    for name, verdict in carmichael_demo(certainty=args.certainty).items():
        print(f"{name} says 1729 is prime? {verdict}")

    print(f"\n{'tester':<25} | {'bits':<12} | {'tests':<12} | {'total ms':<20}")
    for kind in (TesterKind.FERMAT, TesterKind.MILLER_RABIN):
        for b in bits:
            r = benchmark_tester(kind, GeneratorKind.LCG, b, args.certainty, args.tests)
            print(f"{r.tester:<25} | {r.bit_length:<12d} | {r.number_of_tests:<12d} | {r.total_ms:<20.4f}", flush=True)
    return 0


def cmd_carmichael(args) -> int:
    verdicts = carmichael_demo(args.n, args.certainty, seed=args.seed)
    for name, verdict in verdicts.items():
        print(f"{name} says {args.n} is prime? {verdict}")
    return 0


def cmd_accuracy(args) -> int:
    from .accuracy import run_suite
    summary = run_suite(certainty=args.certainty, seed=args.seed)
    print("\n=== ACCURACY SUMMARY ===")
    print(f"Total checks: {summary.total} | FAIL: {len(summary.failures)}")
    for name, (ok, bad) in summary.by_tester.items():
        print(f"  {name:12s}  PASS {ok:4d}  FAIL {bad:4d}")
    if summary.failures and args.csv:
        summary.write_failures(args.csv)
        print(f"Wrote failure details to {args.csv}")
    return 0


def cmd_serve(args) -> int:
    from .server import create_app
    create_app().run(args.host, args.port, debug=args.debug)
    return 0


# ---------- parser ----------

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="primesearch",
                                 description="Probable prime search with LCG/BBS generators "
                                             "and Miller-Rabin/Fermat testers.")
    ap.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING (default from env)")
    sub = ap.add_subparsers(dest="command", required=True)

    f = sub.add_parser("find", help="search for one probable prime")
    f.add_argument("generator", help="lcg | bbs")
    f.add_argument("tester", help="millerrabin | fermat | weakfermat")
    f.add_argument("bits", type=int, help="bit length of the prime (e.g. 256)")
    f.add_argument("certainty", type=int, help="number of test iterations (e.g. 100)")
    f.add_argument("--no-truncate", action="store_true", help="print the whole prime")
    f.add_argument("--stat", action="append", choices=list(STAT_TESTS) + ["all"],
                   help="statistical report(s) on the prime; repeatable")
    f.add_argument("--max-ms", type=float, default=None, help="give up after this many ms")
    f.add_argument("--max-attempts", type=int, default=None, help="give up after this many batches")
    f.add_argument("--batch-size", type=int, default=None, help=f"numbers drawn per attempt (default {BATCH_SIZE})")
    f.add_argument("--seed", type=int, default=None, help="fixed seed for reproducible runs")
    f.add_argument("--json", action="store_true", help="print a JSON object")
    f.set_defaults(func=cmd_find)

    b = sub.add_parser("bench", help="run the benchmark suite")
    b.add_argument("--bits", type=_bits_list, default=list(BENCH_BITS))
    b.add_argument("--count", type=int, default=5000, help="numbers per generator timing")
    b.add_argument("--certainty", type=int, default=200)
    b.add_argument("--tests", type=int, default=100, help="candidates per tester benchmark")
    b.set_defaults(func=cmd_bench)

    c = sub.add_parser("carmichael", help="show which testers a Carmichael number fools")
    c.add_argument("--n", type=int, default=1729)
    c.add_argument("--certainty", type=int, default=200)
    c.add_argument("--seed", type=int, default=None)
    c.set_defaults(func=cmd_carmichael)

    a = sub.add_parser("accuracy", help="cross-check the testers against sympy")
    a.add_argument("--certainty", type=int, default=50)
    a.add_argument("--seed", type=int, default=None)
    a.add_argument("--csv", default=None, help="write failures to this CSV file")
    a.set_defaults(func=cmd_accuracy)

    s = sub.add_parser("serve", help="run the HTTP API")
    s.add_argument("--host", default="127.0.0.1")
    s.add_argument("--port", type=int, default=8082)
    s.add_argument("--debug", action="store_true")
    s.set_defaults(func=cmd_serve)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = Settings.from_env()
        configure_logging(args.log_level or settings.log_level)
        if getattr(args, "batch_size", None) is None and args.command == "find":
            args.batch_size = settings.batch_size
        return args.func(args)
    except InvalidConfiguration as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
