"""Configuration helpers for backend runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass


_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class BackendSettings:
    host: str
    port: int
    log_level: str
    log_json: bool
    finished_grace_seconds: float


def load_settings() -> BackendSettings:
    port_raw = os.getenv("MAYHEM_PORT", "3000")
    grace_raw = os.getenv("MAYHEM_FINISHED_GRACE_SECONDS", "10")
    return BackendSettings(
        host=os.getenv("MAYHEM_HOST", "127.0.0.1"),
        port=int(port_raw),
        log_level=os.getenv("MAYHEM_LOG_LEVEL", "INFO").upper(),
        log_json=os.getenv("MAYHEM_LOG_JSON", "false").strip().lower() in _TRUE_VALUES,
        finished_grace_seconds=float(grace_raw),
    )
