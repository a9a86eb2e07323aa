"""CLI commands for termthumbs."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from termthumbs.detect import GraphicsProtocol, ProtocolDetector
from termthumbs.errors import ThumbnailError
from termthumbs.thumbnails import ThumbnailConfig, ThumbnailGenerator

console = Console()

PROTOCOL_CHOICES = [protocol.value for protocol in GraphicsProtocol]


def load_config(config_path: str | None) -> ThumbnailConfig:
    if config_path is None:
        return ThumbnailConfig()
    return ThumbnailConfig.from_yaml(Path(config_path))


@click.group()
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False),
              help="YAML configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """termthumbs - Image thumbnails in the terminal."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path)


@main.command()
def info() -> None:
    """Show the detected graphics protocol and terminal environment."""
    detector = ProtocolDetector()
    protocol = detector.detect()

    table = Table(title="Terminal Graphics")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Protocol", protocol.label)
    table.add_row("TERM", detector.term or "-")
    table.add_row("TERM_PROGRAM", detector.term_program or "-")
    table.add_row("COLORTERM", detector.colorterm or "-")
    table.add_row("Kitty window", detector.kitty_window_id or "-")
    table.add_row("Truecolor", "yes" if detector.supports_truecolor() else "no")

    console.print(table)


@main.command()
@click.argument("path", type=click.Path())
@click.option("--width", "-w", type=int, default=None, help="Width in character columns")
@click.option("--height", "-h", type=int, default=None, help="Height in character rows")
@click.option("--protocol", "-p", type=click.Choice(PROTOCOL_CHOICES), default=None,
              help="Force a graphics protocol instead of detecting one")
@click.option("--color/--no-color", default=None, help="Colour output for mosaic and ASCII")
@click.pass_context
def render(
    ctx: click.Context,
    path: str,
    width: int | None,
    height: int | None,
    protocol: str | None,
    color: bool | None,
) -> None:
    """Render an image thumbnail to stdout."""
    config: ThumbnailConfig = ctx.obj["config"]

    updates: dict[str, object] = {}
    if width is not None:
        updates["width"] = width
    if height is not None:
        updates["height"] = height
    if protocol is not None:
        updates["protocol"] = GraphicsProtocol(protocol)
    if color is not None:
        updates["colored"] = color
    config = ThumbnailConfig.model_validate({**config.model_dump(), **updates})

    generator = ThumbnailGenerator.from_config(config)
    try:
        output = generator.generate(path)
    except ThumbnailError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    # Escape sequences must reach stdout untouched: no rich markup, no ANSI stripping
    click.echo(output, nl=not output.endswith("\n"), color=True)


@main.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.pass_context
def validate(ctx: click.Context, paths: tuple[str, ...]) -> None:
    """Check that files are supported, readable images."""
    config: ThumbnailConfig = ctx.obj["config"]
    generator = ThumbnailGenerator(
        width=config.width,
        height=config.height,
        protocol=config.protocol or GraphicsProtocol.ASCII,
        cache_size=config.cache_size,
    )

    table = Table(title="Validation")
    table.add_column("Path", style="cyan")
    table.add_column("Status")
    table.add_column("Details", style="dim")

    invalid = 0
    for path in paths:
        ok, error = generator.validate(path)
        if ok:
            table.add_row(path, "[green]ok[/green]", "")
        else:
            invalid += 1
            table.add_row(path, "[red]invalid[/red]", str(error))

    console.print(table)
    if invalid:
        console.print(f"[red]{invalid} of {len(paths)} file(s) invalid[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
