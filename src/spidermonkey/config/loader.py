"""Configuration loading with pydantic-settings.

Sources, highest precedence first:
1. Direct kwargs (CLI flags)
2. Environment variables (SPIDERMONKEY__SECTION__KEY)
3. YAML file passed with --config
4. Built-in defaults

The YAML file keeps the historical layout, with everything about scanning
under ``scan_settings``::

    scan_settings:
      scan_directory: /srv/code
      endpoint: 127.0.0.1:3000
      rescan_interval: 30s
      pre_scan_commands: ["git pull --ff-only"]
      exclude_patterns: [".git", "node_modules"]

Optional ``logging``, ``search`` and ``indexer`` sections map directly onto
their config models.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from spidermonkey.config.models import (
    IndexerConfig,
    LoggingConfig,
    ScanConfig,
    SearchConfig,
    ServerConfig,
    SpiderMonkeyConfig,
)
from spidermonkey.core.errors import ConfigError

_SCAN_KEYS = ("scan_directory", "rescan_interval", "pre_scan_commands", "exclude_patterns")
_PASSTHROUGH_SECTIONS = ("logging", "server", "search", "indexer")


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _yaml_to_settings(raw: dict[str, Any], path: str) -> dict[str, Any]:
    """Map the on-disk YAML layout onto the config model sections."""
    settings: dict[str, Any] = {}
    for section in _PASSTHROUGH_SECTIONS:
        if raw.get(section) is not None:
            settings[section] = raw[section]

    scan_settings = raw.get("scan_settings") or {}
    if not isinstance(scan_settings, dict):
        raise ConfigError.parse_error(path, "'scan_settings' must be a mapping")

    scan = {k: scan_settings[k] for k in _SCAN_KEYS if scan_settings.get(k) is not None}
    if scan:
        settings["scan"] = scan

    endpoint = scan_settings.get("endpoint")
    if endpoint is not None:
        settings = _deep_merge(settings, {"server": {"endpoint": endpoint}})

    return settings


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source (thread-safe)."""

    class SpiderMonkeySettings(BaseSettings):
        """Root config. Env vars: SPIDERMONKEY__SCAN__SCAN_DIRECTORY, etc."""

        model_config = SettingsConfigDict(
            env_prefix="SPIDERMONKEY__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        server: ServerConfig = ServerConfig()
        scan: ScanConfig = ScanConfig()
        search: SearchConfig = SearchConfig()
        indexer: IndexerConfig = IndexerConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml file
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return SpiderMonkeySettings


def validate_config(config: SpiderMonkeyConfig) -> SpiderMonkeyConfig:
    """Startup checks that cannot be expressed on a single field."""
    directory = config.scan.scan_directory
    if not directory:
        raise ConfigError.missing_required("scan_settings.scan_directory")
    if not Path(directory).expanduser().is_dir():
        raise ConfigError.invalid_value(
            "scan_settings.scan_directory", directory, "not an existing directory"
        )
    return config


def load_config(config_path: Path | None = None, **kwargs: Any) -> SpiderMonkeyConfig:
    """Load config: defaults < YAML file < env vars < kwargs.

    Args:
        config_path: Optional YAML config file. Must exist when given.
        **kwargs: Section overrides, e.g. ``scan={"scan_directory": "src"}``
            (highest precedence).

    Returns:
        Fully resolved and validated configuration object.

    Raises:
        ConfigError: On a missing/invalid file, validation errors, or a
            missing scan directory.
    """
    yaml_config: dict[str, Any] = {}
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError.file_not_found(str(config_path))
        yaml_config = _yaml_to_settings(_load_yaml(config_path), str(config_path))

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e

    config = SpiderMonkeyConfig.model_validate(settings.model_dump())
    return validate_config(config)
