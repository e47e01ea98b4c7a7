"""Runtime configuration read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(raw: Optional[str], default: bool) -> bool:
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class AppConfig:
    data_dir: Path = Path("data")
    env: str = "prod"
    allowed_origins: Tuple[str, ...] = field(default_factory=tuple)
    seed_demo: bool = True
    save_retries: int = 3

    @property
    def is_dev(self) -> bool:
        return self.env in {"dev", "development"}

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, *, data_dir: Optional[Path] = None
    ) -> "AppConfig":
        env = os.environ if environ is None else environ
        origins = env.get("SMARTSPEND_ALLOWED_ORIGINS", "")
        try:
            retries = int(env.get("SMARTSPEND_SAVE_RETRIES", "3"))
        except ValueError:
            retries = 3
        return cls(
            data_dir=Path(data_dir or env.get("SMARTSPEND_DATA_DIR") or "data"),
            env=env.get("SMARTSPEND_ENV", "prod").strip().lower(),
            allowed_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            seed_demo=_flag(env.get("SMARTSPEND_SEED_DEMO"), True),
            save_retries=max(1, retries),
        )
