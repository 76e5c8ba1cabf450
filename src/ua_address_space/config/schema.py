"""Configuration schema for building an address space.

Uses Pydantic v2 for validation, serialization, and documentation.
Configuration is loaded from YAML files and validated against these models.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ua_address_space.domain.model.standard import STANDARD_NAMESPACE_URI

# =============================================================================
# ENUMERATIONS
# =============================================================================


class LogLevel(str, Enum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Log output formats."""

    CONSOLE = "console"
    JSON = "json"


# =============================================================================
# CONFIGURATION MODELS
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging output configuration."""

    model_config = ConfigDict(extra="forbid")

    level: LogLevel = Field(default=LogLevel.INFO, description="Minimum log level")
    format: LogFormat = Field(default=LogFormat.CONSOLE, description="Log output format")


class AddressSpaceConfig(BaseModel):
    """Namespaces and NodeSet documents that make up the address space."""

    model_config = ConfigDict(extra="forbid")

    namespaces: list[str] = Field(
        default_factory=list,
        description="Namespace URIs registered before loading, in index order starting at 1",
    )
    include_standard_nodeset: bool = Field(
        default=True,
        description="Load the bundled standard namespace NodeSet before the listed documents",
    )
    nodesets: list[Path] = Field(
        default_factory=list,
        description="NodeSet2 XML files, loaded in order",
    )
    verify: bool = Field(
        default=True,
        description="Run structural consistency checks after loading",
    )

    @field_validator("namespaces")
    @classmethod
    def validate_namespaces(cls, v: list[str]) -> list[str]:
        """Ensure pre-registered namespace URIs are non-empty, unique and not namespace 0."""
        seen: set[str] = set()
        for uri in v:
            if not uri.strip():
                raise ValueError("Namespace URI must not be empty")
            if uri == STANDARD_NAMESPACE_URI:
                raise ValueError(f"{STANDARD_NAMESPACE_URI} is always namespace 0")
            if uri in seen:
                raise ValueError(f"Duplicate namespace URI: {uri}")
            seen.add(uri)
        return v


class LoaderConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    address_space: AddressSpaceConfig = Field(default_factory=AddressSpaceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def resolve_paths(self, base_dir: Path) -> LoaderConfig:
        """Return a copy with relative NodeSet paths anchored at ``base_dir``."""
        nodesets = [path if path.is_absolute() else base_dir / path for path in self.address_space.nodesets]
        address_space = self.address_space.model_copy(update={"nodesets": nodesets})
        return self.model_copy(update={"address_space": address_space})


__all__ = [
    "AddressSpaceConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "LoaderConfig",
]
