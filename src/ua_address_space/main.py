"""Entry points for building an address space from configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ua_address_space.application.nodeset_loader import generate_address_space
from ua_address_space.config.loader import load_config
from ua_address_space.domain.address_space import AddressSpace
from ua_address_space.nodesets import standard_nodeset_file
from ua_address_space.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    from pathlib import Path

    from ua_address_space.config.schema import LoaderConfig

logger = get_logger(__name__)


async def build_address_space(config: LoaderConfig) -> AddressSpace:
    """Create an AddressSpace and load the configured NodeSet documents.

    Pre-registered namespaces take indices 1..n in configuration order,
    ahead of any namespace discovered in the documents. If loading fails
    the partially built address space is disposed before re-raising.
    """
    settings = config.address_space
    space = AddressSpace()
    for uri in settings.namespaces:
        space.register_namespace(uri)

    sources: list[Path] = []
    if settings.include_standard_nodeset:
        sources.append(standard_nodeset_file)
    sources.extend(settings.nodesets)

    logger.info("Building address space", documents=len(sources), namespaces=len(settings.namespaces))
    try:
        await generate_address_space(space, sources, verify=settings.verify)
    except Exception:
        space.dispose()
        raise

    logger.info(
        "Address space ready",
        nodes=len(space),
        namespaces=len(space.get_namespace_array()),
    )
    return space


async def run_loader(
    config_path: Path,
    override_path: Path | None = None,
    *,
    log_level: str | None = None,
    log_format: str | None = None,
) -> AddressSpace:
    """Load configuration, configure logging and build the address space.

    Explicit ``log_level``/``log_format`` take precedence over the file.
    """
    config = load_config(config_path, override_path=override_path)
    setup_logging(
        log_level or config.logging.level.value,
        log_format or config.logging.format.value,
    )

    return await build_address_space(config)


def main() -> None:
    """CLI entry point - delegates to typer app."""
    from ua_address_space.cli.app import app  # noqa: PLC0415

    app()


if __name__ == "__main__":
    main()
