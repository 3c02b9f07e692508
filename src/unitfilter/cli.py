"""Command-line interface for unitfilter.

Provides commands to query units with filter expressions, list units and
saved filters, and inspect how an expression compiles.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from unitfilter import __version__

if TYPE_CHECKING:
    from unitfilter.config import Settings
    from unitfilter.units.models import UnitConfig
    from unitfilter.units.registry import UnitRegistry

# Create Typer app
app = typer.Typer(
    name="unitfilter",
    help="Select smart-home unit configurations with AND/OR/NOT filter expressions.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()

ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
]
UnitsFileOption = Annotated[
    Optional[Path],
    typer.Option(
        "--units",
        "-u",
        help="Units file to load (overrides registry.units_file).",
    ),
]
IncludeDisabledOption = Annotated[
    Optional[bool],
    typer.Option(
        "--include-disabled/--exclude-disabled",
        help="Also consider disabled units (defaults to registry.include_disabled).",
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]unitfilter[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """unitfilter - Select smart-home units with filter expressions."""
    pass


def _load_settings(config_path: Path) -> Settings:
    """Load settings and set up logging, exiting on invalid configuration."""
    import yaml
    from pydantic import ValidationError

    from unitfilter.config import get_settings
    from unitfilter.logging import setup_logging

    try:
        settings = get_settings(config_path, reload=True)
    except (ValidationError, OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid configuration in {escape(str(config_path))}:[/red]\n{escape(str(e))}")
        raise typer.Exit(1)

    setup_logging(settings.logging)
    return settings


def _load_registry(settings: Settings, units_file: Path | None) -> UnitRegistry:
    """Load the unit registry, exiting with an error message on failure."""
    from unitfilter.logging import get_logger
    from unitfilter.units.registry import RegistryLoadError, UnitRegistry

    log = get_logger("unitfilter.cli")
    path = units_file if units_file is not None else settings.registry.units_file

    try:
        return UnitRegistry.from_file(path)
    except RegistryLoadError as e:
        log.error("Failed to load unit registry", path=str(path), error=str(e))
        console.print(f"[red]Error loading units: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _print_units(units: list[UnitConfig], title: str, as_json: bool) -> None:
    """Print units as a table or as JSON."""
    if as_json:
        console.print_json(
            data=[unit.model_dump(mode="json", by_alias=True) for unit in units],
            highlight=False,
        )
        return

    if not units:
        console.print("[yellow]No units matched.[/yellow]")
        return

    table = Table(title=f"{title} ({len(units)})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Label", style="green")
    table.add_column("Type", style="blue")
    table.add_column("Location", style="dim")
    table.add_column("Enabled", style="yellow")

    for unit in units:
        table.add_row(
            unit.id,
            unit.label,
            unit.unit_type.value,
            unit.placement_config.location_id or "-",
            "Yes" if unit.is_enabled else "No",
        )

    console.print(table)


@app.command()
def query(
    expression: Annotated[
        Optional[str],
        typer.Argument(help="Filter expression, e.g. 'type = LIGHT AND location = kitchen'."),
    ] = None,
    saved: Annotated[
        Optional[str],
        typer.Option(
            "--saved",
            "-s",
            help="Run a saved filter from the configuration instead.",
        ),
    ] = None,
    config_path: ConfigOption = Path("config.yaml"),
    units_file: UnitsFileOption = None,
    include_disabled: IncludeDisabledOption = None,
    as_json: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Print matching units as JSON.",
        ),
    ] = False,
) -> None:
    """Show the units matching a filter expression."""
    from unitfilter.logging import bind_context, clear_context, get_logger
    from unitfilter.matcher.parser import FilterParseError, parse_expression

    clear_context()
    settings = _load_settings(config_path)
    log = get_logger("unitfilter.cli")

    if (expression is None) == (saved is None):
        console.print("[red]Give either an EXPRESSION or --saved NAME.[/red]")
        raise typer.Exit(1)

    if saved is not None:
        saved_filter = settings.get_saved_filter(saved)
        if saved_filter is None:
            console.print(f"[red]Unknown saved filter: {saved}[/red]")
            console.print("Run [bold]unitfilter filters[/bold] to list saved filters.")
            raise typer.Exit(1)
        if not saved_filter.enabled:
            console.print(f"[yellow]Saved filter '{saved}' is disabled.[/yellow]")
            raise typer.Exit(1)
        expression = saved_filter.expression
        bind_context(saved_filter=saved)

    try:
        unit_filter = parse_expression(expression)
    except FilterParseError as e:
        log.warning("Invalid filter expression", expression=expression, error=e.reason)
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    if include_disabled is None:
        include_disabled = settings.registry.include_disabled

    registry = _load_registry(settings, units_file)
    units = registry.query(unit_filter, include_disabled=include_disabled)
    log.info(
        "Query complete",
        expression=expression,
        include_disabled=include_disabled,
        matched=len(units),
    )

    _print_units(units, "Matching Units", as_json)


@app.command("units")
def list_units(
    config_path: ConfigOption = Path("config.yaml"),
    units_file: UnitsFileOption = None,
    include_disabled: IncludeDisabledOption = None,
    as_json: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Print units as JSON.",
        ),
    ] = False,
) -> None:
    """List the units in the registry."""
    settings = _load_settings(config_path)

    if include_disabled is None:
        include_disabled = settings.registry.include_disabled

    registry = _load_registry(settings, units_file)
    _print_units(registry.get_unit_configs(include_disabled), "Units", as_json)


@app.command("filters")
def list_filters(
    config_path: ConfigOption = Path("config.yaml"),
) -> None:
    """List saved filters from the configuration."""
    settings = _load_settings(config_path)

    if not settings.saved_filters:
        console.print("[yellow]No saved filters configured.[/yellow]")
        console.print("Add saved_filters to your config.yaml file.")
        return

    table = Table(title="Saved Filters")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Expression", style="green")
    table.add_column("Description", style="blue")
    table.add_column("Enabled", style="yellow")

    for saved in settings.saved_filters:
        table.add_row(
            saved.name,
            escape(saved.expression),
            saved.description,
            "Yes" if saved.enabled else "No",
        )

    console.print(table)


@app.command()
def explain(
    expression: Annotated[
        str,
        typer.Argument(help="Filter expression to compile."),
    ],
) -> None:
    """Show the filter tree an expression compiles to."""
    from unitfilter.matcher.parser import FilterParseError, format_filter, parse_expression

    try:
        unit_filter = parse_expression(expression)
    except FilterParseError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]Normalized:[/bold] {escape(format_filter(unit_filter))}", highlight=False)
    console.print_json(data=unit_filter.to_wire(), highlight=False)


if __name__ == "__main__":
    app()
