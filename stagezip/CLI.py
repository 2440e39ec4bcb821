"""stagezip CLI entrypoint.

This module provides the `cli` click group with three commands:

    stagezip pack <source> <archive>       archive a directory or a single file
    stagezip list <archive>                show the entries of an archive
    stagezip unpack <archive> -o <dir>     extract an archive

The commands delegate all archive handling to `Archiver`, `Lister` and
`Extractor`; this module only deals with user interaction, progress
reporting and logging setup.
"""

import logging
import os
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, DownloadColumn, Progress, SpinnerColumn, TextColumn, TransferSpeedColumn
from rich.table import Table

from .Archiver import Archiver
from .EntryPaths import UNSAFE_PATH_POLICIES
from .Errors import StageZipError
from .Extractor import Extractor
from .FileIO import BUFFER_SIZE
from .Lister import Lister

# Create a single console instance for the CLI UI (rich console handles colors/formatting)
console = Console()


def _progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        console=console,
    )


def _tree_size(path: Path) -> int:
    if path.is_file():
        return path.stat().st_size
    return sum(os.path.getsize(os.path.join(root, name)) for root, _, names in os.walk(path) for name in names)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("--verbose", "-v", is_flag=True, help="Log every entry processed")
def cli(verbose: bool):
    """Stage, ship and restore test artifacts as ZIP or TAR archives."""
    package_logger = logging.getLogger("stagezip")
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(handler, RichHandler) for handler in package_logger.handlers):
        package_logger.addHandler(RichHandler(console=console, show_path=False))
        # Root handlers of a host application would print every record twice
        package_logger.propagate = False


@cli.command()
@click.argument("source", type=click.Path(exists=True, path_type=Path))
@click.argument("archive", type=click.Path(dir_okay=False, writable=True, path_type=Path))
@click.option("--buffer-size", type=click.IntRange(min=1), default=BUFFER_SIZE, show_default=True,
              help="Transfer buffer size in bytes")
def pack(source: Path, archive: Path, buffer_size: int):
    """Archive SOURCE (a directory or a single file) into ARCHIVE.

    The format follows the ARCHIVE suffix: .tar, .tar.gz, .tgz, .tar.bz2 and
    .tar.xz produce tar archives, anything else a ZIP archive.
    """
    with _progress() as progress:
        task = progress.add_task(f"Packing {source}...", total=_tree_size(source))
        archiver = Archiver(buffer_size=buffer_size,
                            progress_callback=lambda count: progress.update(task, advance=count))
        try:
            if source.is_dir():
                archiver.archive_directory(archive, source)
            else:
                archiver.archive_file(source, archive)
        except StageZipError as e:
            raise click.ClickException(str(e)) from e
    console.print(f"Archive written to {archive}")


@cli.command("list")
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def list_command(archive: Path):
    """List the entries of ARCHIVE without extracting it."""
    try:
        entries = Lister().list_entry_details(archive)
    except StageZipError as e:
        raise click.ClickException(str(e)) from e

    table = Table(title="Archive Contents")
    table.add_column("Entry", justify="left")
    table.add_column("Size", justify="right")
    for entry in entries:
        table.add_row(entry.name, "" if entry.is_dir else str(entry.size))
    console.print(table)


@cli.command()
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "-o",
              type=click.Path(file_okay=False, dir_okay=True, writable=True, path_type=Path),
              default=Path("extracted"), show_default=True,
              help="Output directory for extracted files")
@click.option("--unsafe-paths", type=click.Choice(UNSAFE_PATH_POLICIES), default="reject", show_default=True,
              help="How to handle entries pointing outside the output directory")
@click.option("--buffer-size", type=click.IntRange(min=1), default=BUFFER_SIZE, show_default=True,
              help="Transfer buffer size in bytes")
def unpack(archive: Path, output: Path, unsafe_paths: str, buffer_size: int):
    """Extract ARCHIVE into the output directory, overwriting existing files."""
    with _progress() as progress:
        task = progress.add_task(f"Extracting {archive}...", total=None)
        extractor = Extractor(buffer_size=buffer_size, unsafe_paths=unsafe_paths,
                              progress_callback=lambda count: progress.update(task, advance=count))
        try:
            extractor.extract(archive, output)
        except StageZipError as e:
            raise click.ClickException(str(e)) from e
    console.print("Extraction complete.")
