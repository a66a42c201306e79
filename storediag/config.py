"""Configuration handling for store diagnostics.

A ``Configuration`` is an ordered, read-only mapping of option keys to
string values, in the style of a Hadoop configuration. Values come from
two sources:

1. ``-D key=value`` defines on the command line - take priority
2. A JSON file holding a flat object of keys to values

Example config file:
    {
        "fs.s3a.endpoint": "s3.eu-west-1.amazonaws.com",
        "fs.s3a.bucket.logs.access.key": "AKIA...",
        "fs.s3a.path.style.access": false
    }
"""

import json
import os
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional, Union


# Environment variable naming a config file when -c is not given
CONFIG_ENV_VAR = "STOREDIAG_CONFIG"

TRUE_VALUES = {"true", "yes", "1", "on"}
FALSE_VALUES = {"false", "no", "0", "off"}


class ConfigurationError(Exception):
    """Raised when configuration is missing or malformed."""

    pass


class _Unset:
    """Marker type for keys absent from a configuration."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()

ConfigValue = Union[str, _Unset]


class Configuration(Mapping[str, str]):
    """Ordered mapping of option keys to string values.

    Instances are never mutated; ``with_overrides`` returns a new view.
    Lookups of absent keys through ``get`` return ``UNSET`` rather than
    ``None`` so an empty string and a missing key stay distinguishable.
    """

    def __init__(self, values: Optional[Mapping[str, str]] = None):
        self._values: dict[str, str] = {}
        for key, value in (values or {}).items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise ConfigurationError(
                    f"Configuration keys and values must be strings: {key!r}={value!r}"
                )
            self._values[key] = value

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Configuration({len(self._values)} keys)"

    def get(self, key: str, default: ConfigValue = UNSET) -> ConfigValue:
        return self._values.get(key, default)

    def get_trimmed(self, key: str, default: ConfigValue = UNSET) -> ConfigValue:
        """Get a value with surrounding whitespace removed.

        A value that is empty after trimming is treated as unset.
        """
        value = self._values.get(key)
        if value is None or not value.strip():
            return default
        return value.strip()

    def get_boolean(self, key: str, default: bool) -> bool:
        """Get a boolean option.

        Raises:
            ConfigurationError: If the value is not a recognised boolean.
        """
        value = self.get_trimmed(key)
        if value is UNSET:
            return default
        lowered = value.lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        raise ConfigurationError(f"Option {key} is not a boolean: \"{value}\"")

    def get_int(self, key: str, default: Optional[int]) -> Optional[int]:
        """Get an integer option.

        Raises:
            ConfigurationError: If the value is not an integer.
        """
        value = self.get_trimmed(key)
        if value is UNSET:
            return default
        try:
            return int(value)
        except ValueError as e:
            raise ConfigurationError(f"Option {key} is not an integer: \"{value}\"") from e

    def with_prefix(self, prefix: str) -> Iterator[tuple[str, str]]:
        """Iterate over (key, value) pairs whose key starts with ``prefix``."""
        for key, value in self._values.items():
            if key.startswith(prefix):
                yield key, value

    def with_overrides(self, overrides: Mapping[str, str]) -> "Configuration":
        """Return a new configuration with ``overrides`` applied on top."""
        merged = dict(self._values)
        merged.update(overrides)
        return Configuration(merged)


def _to_config_value(key: str, value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, str)):
        return str(value)
    raise ConfigurationError(
        f"Option '{key}' must be a string, number or boolean, not {type(value).__name__}"
    )


def load_from_json(config_path: str) -> Configuration:
    """Load a configuration from a JSON file.

    Args:
        config_path: Path to a JSON file holding a flat object.

    Returns:
        The loaded Configuration, keys in file order.

    Raises:
        ConfigurationError: If the file doesn't exist, contains invalid JSON,
                            or isn't a flat object of scalar values.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a JSON object")

    return Configuration({key: _to_config_value(key, value) for key, value in data.items()})


def parse_defines(defines: Iterable[str]) -> dict[str, str]:
    """Parse ``key=value`` strings into a dict.

    Raises:
        ConfigurationError: If an entry has no ``=`` or an empty key.
    """
    parsed: dict[str, str] = {}
    for define in defines:
        key, sep, value = define.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigurationError(f"Invalid define \"{define}\". Expected: key=value")
        parsed[key] = value.strip()
    return parsed


def load_configuration(
    config_path: Optional[str] = None,
    defines: Iterable[str] = (),
) -> Configuration:
    """Load a configuration with define priority.

    Priority order:
    1. ``key=value`` defines
    2. The config file (``config_path``, else ``$STOREDIAG_CONFIG``)

    Args:
        config_path: Optional path to a JSON config file.
        defines: ``key=value`` overrides.

    Returns:
        The merged Configuration (possibly empty).

    Raises:
        ConfigurationError: If the file or any define is malformed.
    """
    path = config_path or os.environ.get(CONFIG_ENV_VAR)
    configuration = load_from_json(path) if path else Configuration()
    return configuration.with_overrides(parse_defines(defines))
