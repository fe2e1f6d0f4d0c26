# primesearch/jobs.py
# Background prime searches on an rq queue ("primes").
#   worker:  rq worker primes --url $REDIS_URL
#   submit:  POST /api/search/submit {generator, tester, bits, certainty, time_ms?}
#   poll:    GET  /api/job/<id>
#   abort:   POST /api/job/<id>/abort

from __future__ import annotations
import time
from datetime import datetime
from typing import Optional

from flask import Blueprint, current_app, jsonify, request
from redis import Redis
from rq import Queue
from rq.command import send_stop_job_command
from rq.job import Job

from .cli import truncate
from .exceptions import InvalidConfiguration, SearchAbandoned
from .search import SearchBudget, run_primality_test

QUEUE_NAME = "primes"

jobs_bp = Blueprint("jobs_bp", __name__)


# ------------------ worker side ------------------

def find_prime_job(generator: str, tester: str, bits: int, certainty: int,
                   time_ms: Optional[int] = None, batch_size: int = 10,
                   seed: Optional[int] = None) -> dict:
    """rq entry point; returns a JSON-able dict (prime as a decimal string)."""
    budget = None if time_ms is None else SearchBudget(max_ms=time_ms)
    try:
        res = run_primality_test(tester, generator, bits, certainty,
                                 batch_size=batch_size, budget=budget, seed=seed)
    except SearchAbandoned as e:
        return {"status": "timeout", "bits": bits, "attempts": e.attempts,
                "elapsed_ms": round(e.elapsed_ms, 3), "reason": e.reason}
    return {"status": "ok", "prime": str(res.prime), "bits": res.bit_length,
            "attempts": res.attempts, "elapsed_ms": round(res.elapsed_ms, 3),
            "generator": res.generator, "tester": res.tester, "certainty": res.certainty}


# ------------------ helpers ------------------

def get_queue() -> Queue:
    ext = current_app.extensions
    if "primesearch_queue" not in ext:
        settings = current_app.config["PRIMESEARCH_SETTINGS"]
        conn = Redis.from_url(settings.redis_url)
        ext["primesearch_queue"] = Queue(QUEUE_NAME, connection=conn,
                                         default_timeout=settings.job_timeout_s)
    return ext["primesearch_queue"]


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def _job_dict(job: Job) -> dict:
    meta = job.meta or {}
    enqueued = job.enqueued_at
    d = {
        "job_id": job.id,
        "status": job.get_status(),
        "search": {k: meta.get(k) for k in ("generator", "tester", "bits")},
        "enqueued_at": _iso(enqueued),
        "started_at": _iso(job.started_at),
        "ended_at": _iso(job.ended_at),
        "waited_sec": round(max(0.0, time.time() - enqueued.timestamp()), 3) if enqueued else None,
    }
    if job.is_finished:
        result = job.return_value() or {}
        d["result"] = result
        if result.get("prime"):
            d["prime_preview"] = truncate(int(result["prime"]))
    if job.is_failed:
        d["exc_info"] = (job.exc_info or "")[-1024:]
    return d


# ------------------ API ------------------

@jobs_bp.post("/api/search/submit")
def search_submit():
    from .server import _int_param, _search_params

    settings = current_app.config["PRIMESEARCH_SETTINGS"]
    data = request.get_json(silent=True) or {}
    p = _search_params(data, settings)
    time_ms = _int_param(data, "time_ms")
    if time_ms is not None and time_ms <= 0:
        raise InvalidConfiguration(f"time_ms must be positive, got {time_ms}")
    q = get_queue()
    job = q.enqueue("primesearch.jobs.find_prime_job",
                    p["generator"], p["tester"], p["bits"], p["certainty"],
                    time_ms, settings.batch_size, p["seed"],
                    meta={"bits": p["bits"], "generator": p["generator"],
                          "tester": p["tester"], "submitted": time.time()})
    ids = q.get_job_ids()
    pos = ids.index(job.id) + 1 if job.id in ids else 1
    note = "BBS setup for >= 2048 bits can take a while." if (
        p["generator"] == "bbs" and p["bits"] >= 2048) else ""
    return jsonify({"job_id": job.id, "status": job.get_status(), "bits": p["bits"],
                    "queue_position": pos, "note": note})


@jobs_bp.get("/api/job/<job_id>")
def job_status(job_id):
    job = get_queue().fetch_job(job_id)
    if job is None:
        return jsonify({"error": "unknown job"}), 404
    return jsonify(_job_dict(job))


@jobs_bp.post("/api/job/<job_id>/abort")
def job_abort(job_id):
    q = get_queue()
    job = q.fetch_job(job_id)
    if job is None:
        return jsonify({"error": "unknown job"}), 404
    if job.get_status() == "started":
        send_stop_job_command(q.connection, job_id)
    else:
        job.cancel()
    return jsonify({"ok": True, "job_id": job_id, "status": job.get_status()})


@jobs_bp.get("/api/queue")
def queue_info():
    q = get_queue()
    ids = q.get_job_ids()
    return jsonify({"queue": q.name, "size": len(ids), "head": ids[:10]})
