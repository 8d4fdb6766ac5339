"""Configuration management for the top-up report."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

DEFAULT_CONFIG_FILE = "topups.yaml"
DEFAULT_USERS_FILE = "users.json"
DEFAULT_COMPANIES_FILE = "companies.json"
DEFAULT_OUTPUT_FILE = "output.txt"
DEFAULT_REFERENCE_FILE = "example_output.txt"

_PATH_FIELDS = ("users_path", "companies_path", "output_path", "reference_path")
_BOOL_FIELDS = ("verify", "show_progress")

ENV_OVERRIDES: Dict[str, str] = {
    "TOPUPS_USERS_FILE": "users_path",
    "TOPUPS_COMPANIES_FILE": "companies_path",
    "TOPUPS_OUTPUT_FILE": "output_path",
    "TOPUPS_REFERENCE_FILE": "reference_path",
}


class ConfigError(ValueError):
    """Raised when the report configuration file is invalid."""


def _resolve_path(value: object, base_path: Path | None) -> Path:
    raw = Path(str(value)).expanduser()
    if raw.is_absolute() or base_path is None:
        return raw
    return base_path / raw


@dataclass(frozen=True)
class ReportConfig:
    """Input, output and verification settings for a single run."""

    users_path: Path = Path(DEFAULT_USERS_FILE)
    companies_path: Path = Path(DEFAULT_COMPANIES_FILE)
    output_path: Path = Path(DEFAULT_OUTPUT_FILE)
    reference_path: Optional[Path] = Path(DEFAULT_REFERENCE_FILE)
    verify: bool = True
    show_progress: bool = True

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "ReportConfig":
        """Create a :class:`ReportConfig` from raw dictionary data.

        Relative paths are resolved against ``base_path`` when it is given. A
        ``reference_path`` of ``null`` disables verification.
        """
        unknown = set(data) - set(_PATH_FIELDS) - set(_BOOL_FIELDS)
        if unknown:
            raise ConfigError(f"Unknown report configuration fields: {', '.join(sorted(map(str, unknown)))}")

        values: Dict[str, object] = {}
        for name in _PATH_FIELDS:
            if name not in data:
                continue
            value = data[name]
            if value is None and name == "reference_path":
                values[name] = None
            elif value is None or value == "":
                raise ConfigError(f"Report configuration field '{name}' must not be empty")
            else:
                values[name] = _resolve_path(value, base_path)
        for name in _BOOL_FIELDS:
            if name not in data:
                continue
            if not isinstance(data[name], bool):
                raise ConfigError(f"Report configuration field '{name}' must be true or false")
            values[name] = data[name]
        return ReportConfig(**values)

    def with_environment(self, environ: Mapping[str, str] | None = None) -> "ReportConfig":
        """Return a copy with ``TOPUPS_*`` environment overrides applied."""
        environ = os.environ if environ is None else environ
        overrides: Dict[str, object] = {}
        for variable, name in ENV_OVERRIDES.items():
            value = environ.get(variable, "").strip()
            if value:
                overrides[name] = Path(value).expanduser()
        return replace(self, **overrides) if overrides else self

    def with_overrides(self, **overrides: object) -> "ReportConfig":
        """Return a copy with every override that is not ``None`` applied."""
        applied = {name: value for name, value in overrides.items() if value is not None}
        for name in _PATH_FIELDS:
            if name in applied:
                applied[name] = Path(str(applied[name])).expanduser()
        return replace(self, **applied) if applied else self

    def describe(self) -> str:
        reference = self.reference_path if self.reference_path is not None else "<none>"
        return "\n".join(
            [
                f"users: {self.users_path}",
                f"companies: {self.companies_path}",
                f"output: {self.output_path}",
                f"reference: {reference}",
                f"verify: {'yes' if self.verify else 'no'}",
                f"progress: {'yes' if self.show_progress else 'no'}",
            ]
        )


def load_report_config(config_path: Path) -> ReportConfig:
    """Load report settings from a YAML file.

    The settings live under a top-level ``report`` key. An empty file yields
    the defaults.
    """
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration file {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in configuration file {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Configuration file must contain a mapping")
    unknown = set(raw) - {"report"}
    if unknown:
        raise ConfigError(f"Unknown configuration sections: {', '.join(sorted(map(str, unknown)))}")

    section = raw.get("report") or {}
    if not isinstance(section, dict):
        raise ConfigError("The 'report' section must be a mapping")
    return ReportConfig.from_dict(section, base_path=config_path.parent)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    return Path(DEFAULT_CONFIG_FILE)


def build_config(
    config_path: Optional[str] = None,
    *,
    environ: Mapping[str, str] | None = None,
    **overrides: object,
) -> ReportConfig:
    """Combine defaults, the YAML file, environment variables and CLI overrides.

    A configuration file named explicitly (argument or ``TOPUPS_CONFIG``) must
    exist; the default ``topups.yaml`` is only read when present.
    """
    environ = os.environ if environ is None else environ
    explicit = config_path or environ.get("TOPUPS_CONFIG")
    path = resolve_config_path(explicit)

    if explicit or path.is_file():
        config = load_report_config(path)
    else:
        config = ReportConfig()
    return config.with_environment(environ).with_overrides(**overrides)


__all__ = [
    "ConfigError",
    "ReportConfig",
    "build_config",
    "load_report_config",
    "resolve_config_path",
]
