"""
Command-line interface for pdfcomposex.
"""

import asyncio
import os
import sys

import click
from rich.console import Console
from rich.table import Table

from pdfcomposex import __version__
from pdfcomposex.config import Limits, PreviewSettings
from pdfcomposex.exceptions import CompositionError
from pdfcomposex.session import DocumentSession
from pdfcomposex.types import Orientation, PageSize, Quality, RawFile
from pdfcomposex.utils import configure_logging, ensure_directory, format_file_size

console = Console()


def _parse_rotation(value):
    try:
        index, degrees = value.split(":", 1)
        index, degrees = int(index), int(degrees)
    except ValueError:
        raise click.BadParameter(f"Expected INDEX:DEGREES, got '{value}'", param_hint="--rotate")
    if degrees % 90:
        raise click.BadParameter("Rotation must be a multiple of 90 degrees", param_hint="--rotate")
    return index, degrees


def _raw_files(inputs):
    return [RawFile.from_path(path) for path in inputs]


def _print_rejected(session):
    if not session.rejected:
        return
    table = Table(title="Rejected Files")
    table.add_column("File", style="cyan")
    table.add_column("Reasons", style="red")
    for rejected in session.rejected:
        table.add_row(rejected.name, "\n".join(rejected.reasons))
    console.print(table)


def _print_files(session):
    table = Table(title="Accepted Files")
    table.add_column("#", justify="right")
    table.add_column("File", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Pages", justify="right")
    table.add_column("Size", justify="right")
    for position, file in enumerate(session.files, start=1):
        table.add_row(
            str(position), file.name, file.kind.value, str(file.page_count), format_file_size(file.size)
        )
    console.print(table)
    console.print(
        f"[dim]{len(session.files)} file(s), {session.total_pages} page(s), "
        f"{format_file_size(session.total_size)}[/dim]"
    )


def _new_session():
    return DocumentSession(Limits.from_env(), PreviewSettings.from_env())


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """
    pdfcomposex - Assemble PDFs and images into a single PDF document.
    """
    configure_logging(verbose)


@cli.command(name="assemble")
@click.argument('inputs', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('--output-dir', '-o', default='./output', type=click.Path(), help='Output directory')
@click.option('--name', '-n', default='merged-document', help='Output file name (without extension)')
@click.option(
    '--page-size', '-s',
    type=click.Choice([size.value for size in PageSize]),
    default=PageSize.ORIGINAL.value,
    help='Target page size'
)
@click.option(
    '--orientation',
    type=click.Choice([item.value for item in Orientation]),
    default=Orientation.AUTO.value,
    help='Target page orientation'
)
@click.option(
    '--quality', '-q',
    type=click.Choice([item.value for item in Quality]),
    default=Quality.HIGH.value,
    help='Image quality tier'
)
@click.option(
    '--rotate', '-r',
    multiple=True,
    help="Rotate a page, e.g. '2:90' rotates page 2 by 90 degrees"
)
def assemble(inputs, output_dir, name, page_size, orientation, quality, rotate):
    """
    Combine INPUTS (PDF, JPG, PNG, WEBP) into one PDF.

    Examples:

        pdfcomposex assemble a.pdf scan.jpg -o out -n report

        pdfcomposex assemble a.pdf b.pdf -s a4 --orientation landscape -r 1:90
    """
    rotations = [_parse_rotation(value) for value in rotate]

    async def _run():
        session = _new_session()
        try:
            await session.add_files(_raw_files(inputs))
            _print_rejected(session)
            if not session.has_pages:
                console.print("[bold red]✗ Error:[/bold red] No valid files to assemble.")
                return None

            for index, degrees in rotations:
                if not 1 <= index <= session.total_pages:
                    raise click.BadParameter(f"Page {index} is out of range", param_hint="--rotate")
                session.rotate_page(session.pages[index - 1].id, degrees)

            session.set_file_name(name)
            session.set_page_size(page_size)
            session.set_orientation(orientation)
            session.set_quality(quality)
            return await session.export(output_dir)
        finally:
            session.close()

    try:
        destination = asyncio.run(_run())
    except CompositionError as e:
        console.print(f"\n[bold red]✗ Export failed:[/bold red] {e}")
        sys.exit(1)

    if destination is None:
        sys.exit(1)
    console.print(f"\n[bold green]✓ Successfully created:[/bold green] {destination}")


@cli.command(name="inspect")
@click.argument('inputs', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
def inspect(inputs):
    """
    Validate INPUTS and show the resulting files and pages.

    Example:

        pdfcomposex inspect a.pdf b.png
    """
    async def _run():
        session = _new_session()
        try:
            await session.add_files(_raw_files(inputs))
            _print_files(session)
            _print_rejected(session)
            return session.has_files
        finally:
            session.close()

    if not asyncio.run(_run()):
        sys.exit(1)


@cli.command(name="preview")
@click.argument('inputs', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('--output-dir', '-o', default='./preview', type=click.Path(), help='Directory for preview images')
@click.option('--pages', '-p', 'page_cap', default=1, type=int, help='Number of pages to preview')
@click.option('--scale', default=0.75, type=float, help='Render scale')
def preview(inputs, output_dir, page_cap, scale):
    """
    Render JPEG previews of the first pages of the assembled document.

    Example:

        pdfcomposex preview a.pdf scan.jpg --pages 3
    """
    async def _run():
        session = _new_session()
        try:
            await session.add_files(_raw_files(inputs))
            _print_rejected(session)
            if not session.has_pages:
                return []
            data = await session.compose(page_cap=page_cap)
            handles = await session.previews.render_composed_preview(
                data, scale=scale, page_cap=page_cap
            )
            directory = ensure_directory(output_dir)
            written = []
            for position, handle in enumerate(handles, start=1):
                target = directory / f"preview-{position:03d}.jpg"
                target.write_bytes(handle.data)
                handle.release()
                written.append(target)
            return written
        finally:
            session.close()

    try:
        written = asyncio.run(_run())
    except CompositionError as e:
        console.print(f"\n[bold red]✗ Preview failed:[/bold red] {e}")
        sys.exit(1)

    if not written:
        console.print("[bold red]✗ Error:[/bold red] Preview not available for the current file set.")
        sys.exit(1)
    for target in written:
        console.print(f"  • {os.path.basename(target)}")


if __name__ == "__main__":  # pragma: no cover
    cli()
