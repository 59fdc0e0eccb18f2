"""Command-line interface for easydraft."""

import logging
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import INSUNITS, NATIVE_FILE_EXTENSION
from .core.commands import CommandResult, export_dxf, import_dxf, load_file, save_file
from .core.errors import TokenizeError
from .core.models import Drawing
from .io.dxf_tokenizer import tokenize


def _echo_warnings(result: CommandResult, verbose: bool) -> None:
    if not result.warnings:
        return
    click.echo(f"  Warnings: {len(result.warnings)}")
    shown = result.warnings if verbose else result.warnings[:10]
    for warning in shown:
        click.echo(f"    ! {warning}")
    if len(shown) < len(result.warnings):
        click.echo(f"    ... {len(result.warnings) - len(shown)} more (use -v)")


def _load_any(file_path: str) -> CommandResult[Drawing]:
    """Load a drawing from a DXF file or a native document, by extension."""
    if Path(file_path).suffix.lower() == ".dxf":
        return import_dxf(file_path)
    return load_file(file_path)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Easy Draft - Drawing documents with DXF import and export."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("import-dxf")
@click.argument("dxf_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    help=f"Output document (default: DXF name with {NATIVE_FILE_EXTENSION})",
)
@click.pass_context
def import_dxf_command(
    ctx: click.Context, dxf_file: str, output: Optional[str]
) -> None:
    """Import a DXF file and save it as a native document."""
    verbose = ctx.obj["verbose"]
    if verbose:
        click.echo(f"Importing DXF file: {dxf_file}")

    result = import_dxf(dxf_file)
    if not result.ok or result.value is None:
        click.echo(f"✗ {result.error}")
        _echo_warnings(result, verbose)
        raise click.ClickException("Failed to import DXF file")

    drawing = result.value
    click.echo(f"✓ Imported {dxf_file}")
    click.echo(f"  Entities: {drawing.entity_count}")
    click.echo(f"  Layers: {len(drawing.layers)}")
    click.echo(f"  Blocks: {len(drawing.blocks)}")
    _echo_warnings(result, verbose)

    output_path = output or str(Path(dxf_file).with_suffix(NATIVE_FILE_EXTENSION))
    saved = save_file(drawing, output_path)
    if not saved.ok:
        click.echo(f"✗ {saved.error}")
        raise click.ClickException("Failed to save document")
    click.echo(f"✓ Document saved to: {output_path}")


@main.command("export-dxf")
@click.argument("document_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    help="Output DXF file (default: document name with .dxf)",
)
def export_dxf_command(document_file: str, output: Optional[str]) -> None:
    """Export a native document to DXF."""
    loaded = load_file(document_file)
    if not loaded.ok or loaded.value is None:
        click.echo(f"✗ {loaded.error}")
        raise click.ClickException("Failed to load document")

    output_path = output or str(Path(document_file).with_suffix(".dxf"))
    exported = export_dxf(loaded.value, output_path)
    if not exported.ok:
        click.echo(f"✗ {exported.error}")
        raise click.ClickException("Failed to export DXF file")
    click.echo(f"✓ DXF saved to: {output_path}")
    click.echo(f"  Entities: {loaded.value.entity_count}")


@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def info(ctx: click.Context, input_file: str) -> None:
    """Show the contents of a DXF file or native document."""
    result = _load_any(input_file)
    if not result.ok or result.value is None:
        click.echo(f"✗ {result.error}")
        _echo_warnings(result, ctx.obj["verbose"])
        raise click.ClickException("Failed to read drawing")

    drawing = result.value
    click.echo(f"Drawing: {input_file}")
    click.echo(f"  Units: {INSUNITS.get(drawing.units, f'code {drawing.units}')}")

    click.echo(f"  Layers ({len(drawing.layers)}):")
    for layer in drawing.layers:
        state = "" if layer.visible else " (off)"
        click.echo(f"    {layer.name}: color {layer.color}, {layer.linetype}{state}")

    click.echo(f"  Entities ({drawing.entity_count}):")
    for name, count in sorted(drawing.entity_counts().items()):
        click.echo(f"    {name}: {count}")

    if drawing.blocks:
        click.echo(f"  Blocks ({len(drawing.blocks)}):")
        for block in drawing.blocks:
            click.echo(f"    {block.name}: {len(block.entities)} entities")

    extents = drawing.extents()
    if extents is not None:
        low, high = extents
        click.echo(
            f"  Extents: ({low[0]:.3f}, {low[1]:.3f}) - ({high[0]:.3f}, {high[1]:.3f})"
        )
    _echo_warnings(result, ctx.obj["verbose"])


@main.command()
@click.argument("dxf_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--limit", type=int, default=None, help="Maximum tokens to show")
def tokens(dxf_file: str, limit: Optional[int]) -> None:
    """Dump the group code/value pairs of a DXF file."""
    shown = 0
    try:
        for token in tokenize(Path(dxf_file).read_bytes()):
            if limit is not None and shown >= limit:
                break
            click.echo(f"{token.line:>6}  {token.code:>4}  {token.value!r}")
            shown += 1
    except TokenizeError as e:
        click.echo(f"✗ {e.user_message()}")
        raise click.ClickException("Failed to tokenize DXF file")
    click.echo(f"✓ {shown} tokens")


if __name__ == "__main__":
    main()
