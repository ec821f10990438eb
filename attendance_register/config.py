"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .storage import DEFAULT_STORAGE_FILE

ENV_PREFIX = "ATTENDANCE_REGISTER_"


@dataclass(frozen=True)
class Settings:
    store_path: Path = DEFAULT_STORAGE_FILE
    log_level: str = "WARNING"
    host: str = "127.0.0.1"
    port: int = 5000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            store_path=Path(env.get(ENV_PREFIX + "STORE") or DEFAULT_STORAGE_FILE).expanduser(),
            log_level=(env.get(ENV_PREFIX + "LOG_LEVEL") or "WARNING").upper(),
            host=env.get(ENV_PREFIX + "HOST") or "127.0.0.1",
            port=int(env.get(ENV_PREFIX + "PORT") or "5000"),
        )
