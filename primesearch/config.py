# primesearch/config.py
# Environment-driven settings: PRIMESEARCH_* knobs plus REDIS_URL

from __future__ import annotations
import os, logging
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import InvalidConfiguration

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise InvalidConfiguration(f"{key} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise InvalidConfiguration(f"{key} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    batch_size: int = 10
    certainty: int = 100
    max_bits: int = 4096
    sync_time_ms: int = 3000
    job_timeout_s: int = 60 * 60 * 12  # 12h
    redis_url: str = "redis://localhost:6379/0"
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            batch_size=_env_int(env, "PRIMESEARCH_BATCH_SIZE", cls.batch_size),
            certainty=_env_int(env, "PRIMESEARCH_CERTAINTY", cls.certainty),
            max_bits=_env_int(env, "PRIMESEARCH_MAX_BITS", cls.max_bits),
            sync_time_ms=_env_int(env, "PRIMESEARCH_SYNC_TIME_MS", cls.sync_time_ms),
            job_timeout_s=_env_int(env, "PRIMESEARCH_JOB_TIMEOUT_S", cls.job_timeout_s),
            redis_url=(env.get("REDIS_URL") or cls.redis_url).strip(),
            log_level=(env.get("PRIMESEARCH_LOG_LEVEL") or cls.log_level).strip().upper(),
        )


def configure_logging(level: str = "WARNING") -> None:
    """Install a stream handler for the CLI / server entry points."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise InvalidConfiguration(f"unknown log level {level!r}")
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
