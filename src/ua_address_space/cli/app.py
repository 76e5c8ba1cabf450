"""CLI application for inspecting OPC UA address spaces.

Provides commands for:
- load: Build the address space and show the namespace table
- find: Look up a node by NodeId
- find-type: Look up a type node by (qualified) browse name
- browse: List the references of a node
- export: Write one namespace as NodeSet2 XML
- validate: Check configuration and graph consistency
- init-config: Print an example configuration
"""

from __future__ import annotations

import asyncio
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from asyncua import ua
from rich.console import Console
from rich.table import Table

from ua_address_space import __version__
from ua_address_space.adapters.nodeset.generator import NodeSetGenerator
from ua_address_space.config.loader import (
    ConfigurationError,
    generate_example_config,
    validate_config_file,
)
from ua_address_space.domain.consistency import find_inconsistencies
from ua_address_space.domain.model.nodes import TypeNode, VariableNode
from ua_address_space.errors import AddressSpaceError
from ua_address_space.main import run_loader

if TYPE_CHECKING:
    from ua_address_space.domain.address_space import AddressSpace
    from ua_address_space.domain.model.nodes import Node


class TypeKind(str, Enum):
    """Type node kinds accepted by find-type."""

    OBJECT = "object"
    VARIABLE = "variable"
    REFERENCE = "reference"
    DATA = "data"


class Direction(str, Enum):
    """Browse directions accepted by browse."""

    FORWARD = "forward"
    INVERSE = "inverse"
    BOTH = "both"


BROWSE_DIRECTIONS = {
    Direction.FORWARD: ua.BrowseDirection.Forward,
    Direction.INVERSE: ua.BrowseDirection.Inverse,
    Direction.BOTH: ua.BrowseDirection.Both,
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"ua-address-space {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="ua-address-space",
    help="Build and inspect OPC UA address spaces from NodeSet2 documents",
    add_completion=False,
)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """UA Address Space CLI."""


console = Console()

ConfigArg = Annotated[
    Path,
    typer.Argument(
        help="Path to configuration YAML file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
]
OverrideOpt = Annotated[
    Path | None,
    typer.Option(
        "--override",
        "-o",
        help="Path to override configuration file",
        exists=True,
    ),
]
LogLevelOpt = Annotated[
    str | None,
    typer.Option(
        "--log-level",
        "-l",
        help="Log level (DEBUG, INFO, WARNING, ERROR); defaults to the configuration",
    ),
]


def _build(config: Path, override: Path | None = None, log_level: str | None = None) -> AddressSpace:
    """Build the address space or exit with a readable error."""
    try:
        return asyncio.run(run_loader(config, override_path=override, log_level=log_level))
    except ConfigurationError as e:
        console.print("[bold red]Configuration error:[/bold red]")
        console.print(str(e))
        raise typer.Exit(code=1) from e
    except AddressSpaceError as e:
        console.print(f"[bold red]Load failed:[/bold red] {e}")
        raise typer.Exit(code=1) from e


def _print_node(space: AddressSpace, node: Node) -> None:
    table = Table(title=f"Node {node.node_id}", show_header=False)
    table.add_column("Attribute", style="cyan")
    table.add_column("Value")
    table.add_row("NodeClass", node.node_class.name)
    table.add_row("BrowseName", str(node.browse_name))
    table.add_row("DisplayName", node.display_name)
    if node.description:
        table.add_row("Description", node.description)
    if isinstance(node, TypeNode):
        table.add_row("IsAbstract", str(node.is_abstract))
        super_type = space.get_super_type(node)
        table.add_row("SuperType", str(super_type.browse_name) if super_type else "-")
    if isinstance(node, VariableNode) and node.data_type is not None:
        data_type = space.find_node(node.data_type)
        table.add_row("DataType", str(data_type.browse_name) if data_type else str(node.data_type))
    console.print(table)


@app.command()
def load(
    config: ConfigArg,
    override: OverrideOpt = None,
    log_level: LogLevelOpt = None,
) -> None:
    """Build the address space and show the resulting namespace table."""
    space = _build(config, override, log_level)

    table = Table(title="Namespaces")
    table.add_column("Index", style="cyan", justify="right")
    table.add_column("URI", style="magenta")
    table.add_column("Nodes", justify="right")
    table.add_column("Types", justify="right")
    for namespace in space.get_namespace_array():
        nodes = sum(1 for _ in space.iter_nodes(namespace.index))
        table.add_row(str(namespace.index), namespace.namespace_uri, str(nodes), str(namespace.type_count()))
    console.print(table)
    console.print(f"[bold green]Loaded {len(space)} nodes[/bold green]")
    space.dispose()


def _require_node(space: AddressSpace, node_id: str) -> Node:
    """Return the node or exit with a readable error."""
    try:
        node = space.find_node(node_id)
    except AddressSpaceError as e:
        console.print(f"[bold red]Invalid NodeId:[/bold red] {e}")
        raise typer.Exit(code=1) from e
    if node is None:
        console.print(f"[yellow]Node not found:[/yellow] {node_id}")
        raise typer.Exit(code=1)
    return node


@app.command()
def find(
    config: ConfigArg,
    node_id: Annotated[str, typer.Argument(help="NodeId, e.g. ns=2;i=1")],
    log_level: LogLevelOpt = None,
) -> None:
    """Look up a node by NodeId."""
    space = _build(config, log_level=log_level)
    try:
        _print_node(space, _require_node(space, node_id))
    finally:
        space.dispose()


@app.command("find-type")
def find_type(
    config: ConfigArg,
    name: Annotated[str, typer.Argument(help="Browse name, optionally qualified as <ns>:<name>")],
    kind: Annotated[TypeKind, typer.Option("--kind", "-k", help="Type node kind")] = TypeKind.OBJECT,
    namespace: Annotated[
        int | None,
        typer.Option("--namespace", "-n", help="Namespace index (defaults to 0 for unqualified names)"),
    ] = None,
    log_level: LogLevelOpt = None,
) -> None:
    """Look up a type node by browse name."""
    space = _build(config, log_level=log_level)
    finders = {
        TypeKind.OBJECT: space.find_object_type,
        TypeKind.VARIABLE: space.find_variable_type,
        TypeKind.REFERENCE: space.find_reference_type,
        TypeKind.DATA: space.find_data_type,
    }
    try:
        node = finders[kind](name, namespace)
        if node is None:
            console.print(f"[yellow]{kind.value} type not found:[/yellow] {name}")
            raise typer.Exit(code=1)
        _print_node(space, node)
    finally:
        space.dispose()


@app.command()
def browse(
    config: ConfigArg,
    node_id: Annotated[str, typer.Argument(help="NodeId of the node to browse")],
    direction: Annotated[
        Direction, typer.Option("--direction", "-d", help="Reference direction")
    ] = Direction.BOTH,
    log_level: LogLevelOpt = None,
) -> None:
    """List the references of a node."""
    space = _build(config, log_level=log_level)
    try:
        node = _require_node(space, node_id)

        table = Table(title=f"References of {node_id}")
        table.add_column("ReferenceType", style="cyan")
        table.add_column("Forward")
        table.add_column("Target", style="magenta")
        table.add_column("BrowseName")
        for reference in space.browse(node.node_id, BROWSE_DIRECTIONS[direction]):
            target = space.find_node(reference.target_node_id)
            table.add_row(
                space.reference_type_name(reference.reference_type_id),
                "yes" if reference.is_forward else "no",
                str(reference.target_node_id),
                str(target.browse_name) if target else "?",
            )
        console.print(table)
    finally:
        space.dispose()


@app.command()
def export(
    config: ConfigArg,
    namespace_uri: Annotated[str, typer.Argument(help="URI of the namespace to export")],
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Output file path (.xml)"),
    ] = Path("nodeset.xml"),
    deterministic: Annotated[
        bool,
        typer.Option(
            "--deterministic",
            "-d",
            help="Generate deterministic output (fixed timestamps)",
        ),
    ] = False,
    log_level: LogLevelOpt = None,
) -> None:
    """Export one namespace as NodeSet2 XML."""
    space = _build(config, log_level=log_level)
    try:
        try:
            generator = NodeSetGenerator(space, namespace_uri, deterministic=deterministic)
        except ValueError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(code=1) from e

        output = output.with_suffix(".xml")
        generator.generate(output)
        console.print(f"[bold green]NodeSet2 XML generated:[/bold green] {output}")
    finally:
        space.dispose()


@app.command()
def validate(
    config: ConfigArg,
    override: OverrideOpt = None,
    log_level: LogLevelOpt = None,
) -> None:
    """Validate configuration, load all documents and check graph consistency."""
    console.print(f"[bold]Validating:[/bold] {config}")
    problems = validate_config_file(config, override_path=override)
    if problems:
        console.print("[bold red]Invalid configuration:[/bold red]")
        for problem in problems:
            console.print(problem)
        raise typer.Exit(code=1)

    space = _build(config, override, log_level)

    problems = find_inconsistencies(space)
    space.dispose()
    if problems:
        console.print(f"[bold red]{len(problems)} consistency problem(s):[/bold red]")
        for problem in problems:
            console.print(f"  - {problem}")
        raise typer.Exit(code=1)
    console.print("[bold green]Address space valid![/bold green]")


@app.command("init-config")
def init_config(
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to file instead of stdout"),
    ] = None,
) -> None:
    """Print an example configuration."""
    content = generate_example_config()
    if output:
        output.write_text(content, encoding="utf-8")
        console.print(f"[bold green]Example configuration written:[/bold green] {output}")
    else:
        typer.echo(content)
