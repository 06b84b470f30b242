"""
Configuration management for cost trend reporting.

Uses dynaconf with a packaged defaults file, optional local and user YAML
overrides, and ``COSTTREND_`` environment variables.
"""

import json
import logging
from pathlib import Path
from typing import Any

from dynaconf import Dynaconf, ValidationError, Validator

from ..providers.base import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).parent
DEFAULTS_FILE = CONFIG_DIR / "defaults.yaml"
LOCAL_CONFIG_FILE = Path.cwd() / "cost-trend.yaml"
USER_CONFIG_FILE = Path.home() / ".config" / "cost-trend" / "config.yaml"

VALIDATORS = [
    Validator("report.granularity", is_in=["daily", "monthly", "hourly"]),
    Validator("report.max_columns", gte=2),
    Validator("report.unified_reserved_columns", gte=0),
    Validator("report.service_reserved_columns", gte=0),
    Validator("report.recent_window_days", gt=0),
    Validator("report.hourly_max_days", gt=0),
    Validator("aws.max_attempts", gte=1),
    Validator("chart.width", gt=0),
    Validator("chart.height", gt=0),
    Validator("chart.headroom", gte=0),
    Validator("csv.service_periods", is_in=["recent", "all"]),
]


def build_settings(settings_files: list[str] | None = None) -> Dynaconf:
    """Create a settings object layering the given files over the packaged defaults."""
    files = [str(DEFAULTS_FILE)]
    if settings_files is None:
        files += [str(LOCAL_CONFIG_FILE), str(USER_CONFIG_FILE)]
    else:
        files += settings_files
    return Dynaconf(
        envvar_prefix="COSTTREND",
        settings_files=files,
        environments=False,
        load_dotenv=True,
        merge_enabled=True,
        envvar_separator="__",  # COSTTREND_REPORT__max_columns=12
        validators=VALIDATORS,
    )


class CostTrendConfig:
    """Configuration wrapper for report, AWS, chart and CSV settings."""

    def __init__(self, settings: Dynaconf | None = None):
        self.settings = settings if settings is not None else build_settings()
        self._validate_config()

    def _validate_config(self):
        """Validate the configuration; invalid settings are fatal."""
        try:
            self.settings.validators.validate()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        report = self.report
        for key in ("unified_reserved_columns", "service_reserved_columns"):
            if report.get(key, 0) >= report.get("max_columns", 10):
                raise ConfigurationError(
                    f"report.{key} must be smaller than report.max_columns"
                )

    @property
    def report(self) -> dict[str, Any]:
        """Report layout and window settings."""
        return self.settings.get("report", {})

    @property
    def aws(self) -> dict[str, Any]:
        """AWS client settings."""
        return self.settings.get("aws", {})

    @property
    def chart(self) -> dict[str, Any]:
        """Chart rendering settings."""
        return self.settings.get("chart", {})

    @property
    def csv(self) -> dict[str, Any]:
        """CSV export settings."""
        return self.settings.get("csv", {})

    @property
    def max_columns(self) -> int:
        return int(self.report.get("max_columns", 10))

    @property
    def unified_reserved_columns(self) -> int:
        return int(self.report.get("unified_reserved_columns", 3))

    @property
    def service_reserved_columns(self) -> int:
        return int(self.report.get("service_reserved_columns", 2))

    @property
    def recent_window_days(self) -> int:
        return int(self.report.get("recent_window_days", 180))

    @property
    def hourly_max_days(self) -> int:
        return int(self.report.get("hourly_max_days", 7))

    @property
    def default_granularity(self) -> str:
        return str(self.report.get("granularity", "monthly"))

    def as_dict(self) -> dict[str, Any]:
        """Plain dictionary of every section, for display."""
        return {
            "report": dict(self.report),
            "aws": dict(self.aws),
            "chart": dict(self.chart),
            "csv": dict(self.csv),
        }


_config: CostTrendConfig | None = None


def get_config() -> CostTrendConfig:
    """Get the global configuration instance, loading it on first use."""
    global _config
    if _config is None:
        _config = CostTrendConfig()
    return _config


def reload_config() -> CostTrendConfig:
    """Reload configuration from files."""
    global _config
    _config = CostTrendConfig()
    return _config


def load_profile_account_map(path: str | Path) -> dict[str, list[str]]:
    """
    Load a profile to account mapping file.

    The file is a JSON object whose values are one account id or a list of
    them, e.g. ``{"prod-profile": "123456789012"}``.

    Raises:
        ConfigurationError: If the file cannot be read or has the wrong shape
    """
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read profile account map {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in profile account map {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Profile account map {path} must be a JSON object")

    mapping: dict[str, list[str]] = {}
    for profile, value in raw.items():
        ids = [value] if isinstance(value, str) else value
        if not isinstance(ids, list) or not all(isinstance(i, str) and i.strip() for i in ids):
            raise ConfigurationError(
                f"Profile {profile!r} in {path} must map to an account id or a list of account ids"
            )
        mapping[profile] = [i.strip() for i in ids]

    logger.debug(f"Loaded account mapping for {len(mapping)} profiles from {path}")
    return mapping
