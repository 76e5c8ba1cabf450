"""Configuration loading and validation.

A configuration file is YAML validated against ``LoaderConfig``. Loading:
1. parse the base file and deep-merge an optional override file on top
2. substitute ``${VAR}`` / ``${VAR:-default}`` references from the environment
3. validate, then anchor relative NodeSet paths at the base file's directory
"""

from __future__ import annotations

import os
import re
from typing import TYPE_CHECKING, Any, cast

import structlog
import yaml
from pydantic import ValidationError

from ua_address_space.adapters.nodeset.reader import read_nodeset_file
from ua_address_space.config.schema import LoaderConfig
from ua_address_space.errors import InvalidNodeSetError

if TYPE_CHECKING:
    from pathlib import Path

logger = structlog.get_logger(__name__)

_ENV_REFERENCE = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}")

EXAMPLE_CONFIG = """\
# Address space built from the bundled standard NodeSet plus the files below.
address_space:
  # Registered before loading; they take namespace indices 1, 2, ...
  namespaces:
    - urn:example:server
  include_standard_nodeset: true
  # Loaded in order; relative paths are resolved against this file.
  nodesets:
    - nodesets/custom.NodeSet2.xml
    - nodesets/extension.NodeSet2.xml
  verify: true

logging:
  level: ${UA_LOG_LEVEL:-INFO}
  format: console
"""


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Parse a YAML mapping; an empty file yields ``{}``.

    Raises:
        ConfigurationError: If the file is missing, unreadable, not YAML, or
            not a mapping.
    """
    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found: {path}")
    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(f"Configuration must be a YAML mapping, got {type(content).__name__}")
    return content


def _substitute(text: str) -> str:
    def replace(match: re.Match[str]) -> str:
        name, default = match.group("name"), match.group("default")
        value = os.environ.get(name, default)
        if value is None:
            raise ConfigurationError(f"Environment variable {name} is not set and has no default")
        return value

    return _ENV_REFERENCE.sub(replace, text)


def expand_env_vars(config: Any) -> Any:
    """Substitute ``${VAR}`` and ``${VAR:-default}`` in every string value.

    Raises:
        ConfigurationError: If a referenced variable is unset and has no default.
    """
    if isinstance(config, str):
        return _substitute(config)
    if isinstance(config, dict):
        return {key: expand_env_vars(value) for key, value in config.items()}
    if isinstance(config, list):
        return [expand_env_vars(item) for item in config]
    return config


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` onto ``base``; nested mappings merge, lists are replaced."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        merged[key] = merge_configs(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


def _format_validation_errors(errors: list[dict[str, Any]]) -> str:
    lines = [f"  - {'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in errors]
    return "Configuration validation failed:\n" + "\n".join(lines)


def load_config(
    config_path: Path,
    *,
    override_path: Path | None = None,
    expand_env: bool = True,
) -> LoaderConfig:
    """Load and validate configuration from YAML file(s).

    Args:
        config_path: Path to the main configuration file
        override_path: Optional path to override configuration file
        expand_env: Whether to substitute environment variable references

    Returns:
        Validated LoaderConfig with absolute NodeSet paths

    Raises:
        ConfigurationError: If configuration is invalid or a NodeSet file is missing
    """
    logger.info("Loading configuration", path=str(config_path))
    raw = load_yaml_file(config_path)
    if override_path:
        logger.info("Applying configuration override", path=str(override_path))
        raw = merge_configs(raw, load_yaml_file(override_path))
    if expand_env:
        raw = expand_env_vars(raw)

    try:
        config = LoaderConfig.model_validate(raw)
    except ValidationError as e:
        errors = cast("list[dict[str, Any]]", e.errors())
        raise ConfigurationError(_format_validation_errors(errors), errors=errors) from e

    config = config.resolve_paths(config_path.parent)
    missing = [str(path) for path in config.address_space.nodesets if not path.is_file()]
    if missing:
        raise ConfigurationError("NodeSet files not found:\n" + "\n".join(f"  - {p}" for p in missing))

    logger.info(
        "Configuration loaded",
        namespaces=len(config.address_space.namespaces),
        nodesets=len(config.address_space.nodesets),
    )
    return config


def validate_config_file(config_path: Path, *, override_path: Path | None = None) -> list[str]:
    """Check a configuration file and parse every NodeSet it names.

    Documents are only parsed, not loaded; cross-document problems such as
    unresolved references surface when the address space is built.

    Returns:
        Problem descriptions, empty if the configuration is usable
    """
    try:
        config = load_config(config_path, override_path=override_path)
    except ConfigurationError as e:
        return [str(e)]

    problems: list[str] = []
    for path in config.address_space.nodesets:
        try:
            read_nodeset_file(path)
        except InvalidNodeSetError as e:
            problems.append(str(e))
    return problems


def generate_example_config() -> str:
    """Return a commented example configuration."""
    return EXAMPLE_CONFIG


__all__ = [
    "ConfigurationError",
    "expand_env_vars",
    "generate_example_config",
    "load_config",
    "load_yaml_file",
    "merge_configs",
    "validate_config_file",
]
