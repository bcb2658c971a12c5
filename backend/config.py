from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from raffle.config import RaffleLimits, load_limits_from_environment

ENTROPY_BACKENDS = ("seeded", "web3")


@dataclass(frozen=True)
class FlaskSettings:
    secret_key: str = "raffle-dev-secret"
    debug: bool = True


@dataclass(frozen=True)
class EntropySettings:
    backend: str = "seeded"
    seed: Optional[str] = None
    rpc_url: Optional[str] = None


@dataclass(frozen=True)
class AppSettings:
    flask: FlaskSettings
    entropy: EntropySettings
    limits: RaffleLimits
    database_url: str
    admin_api_key: Optional[str]


def _require(key: str) -> str:
    value = os.getenv(key)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {key}")
    return value


@lru_cache(maxsize=1)
def load_settings(dotenv_path: Optional[str] = None) -> AppSettings:
    if dotenv_path:
        load_dotenv(dotenv_path)
    else:
        load_dotenv()

    flask_settings = FlaskSettings(
        secret_key=os.getenv("FLASK_SECRET_KEY", "raffle-dev-secret"),
        debug=os.getenv("FLASK_DEBUG", "1") == "1",
    )

    backend = os.getenv("ENTROPY_BACKEND", "seeded").strip().lower()
    if backend not in ENTROPY_BACKENDS:
        raise RuntimeError(f"ENTROPY_BACKEND must be one of {ENTROPY_BACKENDS}, got {backend!r}")

    entropy_settings = EntropySettings(
        backend=backend,
        seed=os.getenv("ENTROPY_SEED") or None,
        rpc_url=_require("RPC_URL") if backend == "web3" else os.getenv("RPC_URL"),
    )

    database_url = os.getenv("DATABASE_URL", "sqlite:///raffle.db")
    admin_api_key = os.getenv("ADMIN_API_KEY")

    return AppSettings(
        flask=flask_settings,
        entropy=entropy_settings,
        limits=load_limits_from_environment(),
        database_url=database_url,
        admin_api_key=admin_api_key,
    )
