from __future__ import annotations

import os
from dataclasses import dataclass


def _bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    delay_threshold_minutes: int = _int("DELAY_THRESHOLD_MINUTES", 180)
    verification_tolerance_minutes: int = _int("VERIFICATION_TOLERANCE_MINUTES", 15)
    downgrade_claim_window_days: int = _int("DOWNGRADE_CLAIM_WINDOW_DAYS", 7)

    flight_status_api_url: str = os.getenv("FLIGHT_STATUS_API_URL", "")
    flight_status_api_key: str = os.getenv("FLIGHT_STATUS_API_KEY", "")
    flight_status_timeout_seconds: int = _int("FLIGHT_STATUS_TIMEOUT_SECONDS", 8)

    # Display-grade rates, only used to rank outcomes in different currencies.
    fx_usd_per_eur: float = _float("FX_USD_PER_EUR", 1.08)
    fx_gbp_per_eur: float = _float("FX_GBP_PER_EUR", 0.86)
    fx_cad_per_eur: float = _float("FX_CAD_PER_EUR", 1.50)

    audit_log_path: str = os.getenv("AUDIT_LOG_PATH", "./data/eligibility_audit.log.jsonl")
    rate_limit_per_minute: int = _int("RATE_LIMIT_PER_MINUTE", 60)

    debug: bool = _bool("DEBUG", True)


SETTINGS = Settings()
