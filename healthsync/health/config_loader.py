"""Load, validate, and hot-reload the HealthSync engine configuration.

The config lives in ``sync_config.yaml`` alongside this module.  At startup
it is loaded once and cached.  Call ``reload_sync_config()`` to re-read from
disk after an edit; no restart required.

Usage::

    from healthsync.health.config_loader import get_sync_config

    config = get_sync_config()
    config.sync_lookback(RecordKind.WEIGHT)   # timedelta(days=30)
    config.bucket                             # timedelta(minutes=1)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

import yaml

from healthsync.health.base import RecordKind

logger = logging.getLogger("healthsync.health.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "sync_config.yaml"

# Record kinds that have a "latest value" on the summary screen
_SUMMARY_KINDS = (
    RecordKind.WEIGHT,
    RecordKind.BODY_FAT,
    RecordKind.BLOOD_PRESSURE,
    RecordKind.HEART_RATE,
)

_DEFAULT_SYNC_DAYS: dict[RecordKind, int] = {
    RecordKind.WEIGHT: 30,
    RecordKind.BODY_FAT: 30,
    RecordKind.BLOOD_PRESSURE: 30,
    RecordKind.HEART_RATE: 7,
    RecordKind.SLEEP: 7,
    RecordKind.STEPS: 7,
}


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class SummaryConfig:
    """Lookback windows for the summary screen."""

    latest_lookback_days: dict[RecordKind, int]
    totals_lookback_days: int


@dataclass
class SyncConfig:
    """Complete, validated engine configuration.

    Attributes:
        version:            Config schema version string.
        bucket_seconds:     Correlation grid resolution in seconds.
        summary:            Summary screen lookback windows.
        sync_lookback_days: Outbound payload window per record kind.
        page_size:          Records requested per page from the store.
    """

    version: str
    bucket_seconds: int
    summary: SummaryConfig
    sync_lookback_days: dict[RecordKind, int]
    page_size: int
    _raw: dict = field(default_factory=dict, repr=False)

    @property
    def bucket(self) -> timedelta:
        return timedelta(seconds=self.bucket_seconds)

    def sync_lookback(self, kind: RecordKind) -> timedelta:
        """Return the payload lookback window for a record kind."""
        return timedelta(days=self.sync_lookback_days[kind])

    def latest_lookback(self, kind: RecordKind) -> timedelta:
        """Return the summary "latest value" window for a record kind."""
        return timedelta(days=self.summary.latest_lookback_days[kind])

    @property
    def totals_lookback(self) -> timedelta:
        return timedelta(days=self.summary.totals_lookback_days)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when sync_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Sync config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _positive_int(value: object, name: str, errors: list[str]) -> int:
    try:
        n = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        errors.append(f"{name} must be an integer, got {value!r}")
        return 0
    if n <= 0:
        errors.append(f"{name} = {n} must be positive")
    return n


def _lookback_table(
    raw: dict | None,
    section: str,
    kinds: tuple[RecordKind, ...] | list[RecordKind],
    defaults: dict[RecordKind, int],
    errors: list[str],
) -> dict[RecordKind, int]:
    if raw is not None and not isinstance(raw, dict):
        errors.append(f"{section} must be a mapping of record kind → days")
        raw = {}
    raw = raw or {}

    known = {k.value for k in RecordKind}
    for key in raw:
        if key not in known:
            errors.append(f"{section}.{key} is not a known record kind")

    return {
        kind: _positive_int(
            raw.get(kind.value, defaults[kind]), f"{section}.{kind.value}", errors
        )
        for kind in kinds
    }


def _validate_and_build(raw: dict) -> SyncConfig:
    """Validate the raw YAML dict and construct a SyncConfig.

    Applies defaults for optional fields and collects every problem before
    failing, so one run reports all of them.

    Raises:
        ConfigValidationError: If any field is missing or invalid.
    """
    errors: list[str] = []

    version = str(raw.get("version", "1.0"))

    # ── Correlation ──
    corr_raw = raw.get("correlation", {}) or {}
    bucket_seconds = _positive_int(
        corr_raw.get("bucket_seconds", 60), "correlation.bucket_seconds", errors
    )

    # ── Summary ──
    sm_raw = raw.get("summary", {}) or {}
    summary = SummaryConfig(
        latest_lookback_days=_lookback_table(
            sm_raw.get("latest_lookback_days"),
            "summary.latest_lookback_days",
            _SUMMARY_KINDS,
            {k: 30 for k in _SUMMARY_KINDS},
            errors,
        ),
        totals_lookback_days=_positive_int(
            sm_raw.get("totals_lookback_days", 7), "summary.totals_lookback_days", errors
        ),
    )

    # ── Sync ──
    sync_raw = raw.get("sync", {}) or {}
    sync_lookback_days = _lookback_table(
        sync_raw.get("lookback_days"),
        "sync.lookback_days",
        list(RecordKind),
        _DEFAULT_SYNC_DAYS,
        errors,
    )

    # ── Record store ──
    rs_raw = raw.get("record_store", {}) or {}
    page_size = _positive_int(
        rs_raw.get("page_size", 1000), "record_store.page_size", errors
    )

    if errors:
        raise ConfigValidationError(
            f"sync_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return SyncConfig(
        version=version,
        bucket_seconds=bucket_seconds,
        summary=summary,
        sync_lookback_days=sync_lookback_days,
        page_size=page_size,
        _raw=raw,
    )


def load_sync_config(path: Path | None = None) -> SyncConfig:
    """Load and validate the engine config from disk.

    Args:
        path: Override path to YAML. Uses the bundled sync_config.yaml by default.

    Returns:
        Validated SyncConfig instance.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded sync config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: SyncConfig | None = None
_config_lock = threading.Lock()


def get_sync_config() -> SyncConfig:
    """Return the global SyncConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_sync_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_sync_config()
    return _config


def reload_sync_config(path: Path | None = None) -> SyncConfig:
    """Reload the config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is
    re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_sync_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded sync config: %s → %s", old_version, new_config.version)
    return new_config
