"""Nozzle configuration loaded from ``NOZZLE_*`` environment variables."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from stackdriver_nozzle.core.errors import ConfigError

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})


def _get_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    raw = environ.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{key} must be a boolean, got {raw!r}")


def _get_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from e


def _get_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class NozzleConfig:
    """Settings for one nozzle instance.

    Attributes:
        project_id: GCP project receiving logs and metrics.
        subscription_id: Firehose subscription id, used as a metric label.
        foundation: Foundation name, used as a log and metric label.
        newline_token: Substring in log messages to turn into newlines.
        enable_app_metadata: Resolve app names through the Cloud Controller.
        app_metadata_cache_seconds: Freshness window for app metadata;
            0 disables caching, negative caches forever.
        cf_api_url: Cloud Controller API root.
        cf_token: Bearer token for the Cloud Controller.
        metric_namespace: Custom metric namespace.
        log_id: Cloud Logging log name.
        report_interval_seconds: Telemetry reporting period.
        access_token: Bearer token for the Google APIs.
        dry_run: Use in-memory backends instead of the Google APIs.
        forward_own_logs: Also ship the nozzle's own log records.
    """

    project_id: str
    subscription_id: str = ""
    foundation: str = "cf"
    newline_token: str = ""
    enable_app_metadata: bool = True
    app_metadata_cache_seconds: int = 300
    cf_api_url: str = ""
    cf_token: str = ""
    metric_namespace: str = "googleapis.com"
    log_id: str = "cf_logs"
    report_interval_seconds: float = 60.0
    access_token: str = ""
    dry_run: bool = False
    forward_own_logs: bool = False

    def __post_init__(self) -> None:
        if not self.project_id:
            raise ConfigError("project_id is required")
        if self.enable_app_metadata and not self.cf_api_url:
            raise ConfigError("cf_api_url is required when app metadata is enabled")
        if self.report_interval_seconds <= 0:
            raise ConfigError("report_interval_seconds must be positive")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "NozzleConfig":
        """Build a config from environment variables.

        Raises:
            ConfigError: If a value is malformed or a required one is missing.
        """
        env = os.environ if environ is None else environ
        return cls(
            project_id=env.get("NOZZLE_PROJECT_ID", ""),
            subscription_id=env.get("NOZZLE_SUBSCRIPTION_ID", ""),
            foundation=env.get("NOZZLE_FOUNDATION_NAME", "cf"),
            newline_token=env.get("NOZZLE_NEWLINE_TOKEN", ""),
            enable_app_metadata=_get_bool(env, "NOZZLE_ENABLE_APP_METADATA", True),
            app_metadata_cache_seconds=_get_int(
                env, "NOZZLE_APP_METADATA_CACHE_SECONDS", 300
            ),
            cf_api_url=env.get("NOZZLE_CF_API_URL", ""),
            cf_token=env.get("NOZZLE_CF_TOKEN", ""),
            metric_namespace=env.get("NOZZLE_METRIC_NAMESPACE", "googleapis.com"),
            log_id=env.get("NOZZLE_LOG_ID", "cf_logs"),
            report_interval_seconds=_get_float(
                env, "NOZZLE_REPORT_INTERVAL_SECONDS", 60.0
            ),
            access_token=env.get("NOZZLE_ACCESS_TOKEN", ""),
            dry_run=_get_bool(env, "NOZZLE_DRY_RUN", False),
            forward_own_logs=_get_bool(env, "NOZZLE_FORWARD_OWN_LOGS", False),
        )
