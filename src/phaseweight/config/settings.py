"""User settings stored in ``~/.phaseweight/config.yaml``.

Example file::

    storage:
      path: ~/.phaseweight/phaseweight.db
    tracking:
      default_trend_view_weeks: 8
      enforce_sunday: false
    defaults:
      output_format: json

Missing sections and keys keep their defaults; unknown keys are ignored.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from phaseweight.tracking.models import VALID_TREND_VIEW_WEEKS, InvalidSettingError

OUTPUT_FORMATS = ("table", "json")


def config_dir() -> Path:
    return Path.home() / ".phaseweight"


def default_config_path() -> Path:
    return config_dir() / "config.yaml"


@dataclass
class StorageConfig:
    """Where tracker data lives."""

    path: Path = field(default_factory=lambda: config_dir() / "phaseweight.db")


@dataclass
class TrackingConfig:
    """Weigh-in policy and dashboard defaults."""

    default_trend_view_weeks: int = 4  # 4, 6, 8 or 12
    enforce_sunday: bool = True  # reject weigh-ins on other days unless overridden


@dataclass
class DefaultsConfig:
    """CLI presentation defaults."""

    output_format: str = "table"  # "table" or "json"


def _as_bool(value: Any) -> bool:
    # Real YAML booleans only; quoted "false" is rejected
    if not isinstance(value, bool):
        raise InvalidSettingError(f"expected true or false, got {value!r}")
    return value


# Per-key converters applied to raw YAML values
_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "path": lambda value: Path(value).expanduser(),
    "default_trend_view_weeks": int,
    "enforce_sunday": _as_bool,
    "output_format": str,
}


def _apply_section(section: Any, data: Optional[dict]) -> None:
    """Copy known keys from a YAML mapping onto a config dataclass."""
    if not data:
        return
    for f in fields(section):
        if f.name in data:
            convert = _CONVERTERS.get(f.name, lambda value: value)
            setattr(section, f.name, convert(data[f.name]))


@dataclass
class Settings:
    """All user settings."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)

    def validate(self) -> None:
        """
        Raises:
            InvalidSettingError: If the trend view or output format is unsupported
        """
        if self.tracking.default_trend_view_weeks not in VALID_TREND_VIEW_WEEKS:
            raise InvalidSettingError(
                f"default_trend_view_weeks must be one of {VALID_TREND_VIEW_WEEKS}, "
                f"got {self.tracking.default_trend_view_weeks}"
            )
        if self.defaults.output_format not in OUTPUT_FORMATS:
            raise InvalidSettingError(
                f"output_format must be one of {OUTPUT_FORMATS}, "
                f"got {self.defaults.output_format!r}"
            )

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Read settings from YAML, falling back to defaults if the file is absent.

        Args:
            config_path: YAML file to read (default: ~/.phaseweight/config.yaml)

        Returns:
            Validated Settings

        Raises:
            InvalidSettingError: If a value is out of range or of the wrong type
        """
        path = config_path or default_config_path()
        settings = cls()
        if not path.exists():
            return settings

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        _apply_section(settings.storage, data.get("storage"))
        _apply_section(settings.tracking, data.get("tracking"))
        _apply_section(settings.defaults, data.get("defaults"))
        settings.validate()
        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Write settings as YAML, creating the config directory if needed."""
        path = config_path or default_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)

        data = asdict(self)
        data["storage"]["path"] = str(self.storage.path)

        with open(path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the shared settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings() -> Settings:
    """Re-read settings from disk."""
    global _settings
    _settings = Settings.load()
    return _settings
