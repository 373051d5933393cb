"""
Runtime settings read from the environment.

Call load_env() first so values from a local .env file are visible.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .database import DEFAULT_TIMEOUT
from .errors import ValidationError


@dataclass(frozen=True)
class Settings:
    db_path: Path = Path("data/automatch.db")
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    store_timeout: float = DEFAULT_TIMEOUT
    bulk_workers: int = 1

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            db_path=Path(env.get("AUTOMATCH_DB_PATH", str(defaults.db_path))),
            log_level=env.get("AUTOMATCH_LOG_LEVEL", defaults.log_level).upper(),
            log_dir=Path(env.get("AUTOMATCH_LOG_DIR", str(defaults.log_dir))),
            store_timeout=_number(env, "AUTOMATCH_STORE_TIMEOUT", float, defaults.store_timeout),
            bulk_workers=_number(env, "AUTOMATCH_BULK_WORKERS", int, defaults.bulk_workers),
        )


def _number(env: Mapping[str, str], key: str, cast, default):
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValidationError(f"{key} must be a number, got {raw!r}", [key])
    if value <= 0:
        raise ValidationError(f"{key} must be positive, got {raw!r}", [key])
    return value
