"""Command-line interface for Gorgon.

This module defines the CLI commands using Click framework.

Commands:
- build: Build the site from an input directory into an output directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from . import __version__
from .errors import BuildError


@click.group()
@click.version_option(version=__version__, prog_name="gorgon")
def cli():
    """Gorgon static blog generator."""


@cli.command()
@click.option(
    "-i",
    "--input",
    "input_root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    required=True,
    help="Site sources (must contain posts/)",
)
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
    help="Output directory (deleted and recreated)",
)
@click.option(
    "--optimize/--no-optimize",
    default=None,
    help="Add AVIF and WebP renditions of images (overrides gorgon.yaml)",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
def build(input_root: Path, output_dir: Path, optimize: bool | None, verbose: bool):
    """Build the site into the output directory."""
    _configure_logging(verbose)
    from .build import build_site

    try:
        result = build_site(input_root, output_dir, optimize=optimize)
    except BuildError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {exc.source_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        for cause in _iter_causes(exc):
            click.echo(f"  Caused by: {cause}", err=True)
        raise SystemExit(1) from None
    click.echo(
        f"Built {len(result.posts)} posts and {len(result.static_files)} static files "
        f"into {result.output_dir}"
    )


def _iter_causes(exc: BaseException):
    """Yield the chain of exceptions behind ``exc``, outermost first."""
    cause = exc.__cause__
    while cause is not None:
        yield cause
        cause = cause.__cause__


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main():
    """Entry point for the CLI application."""
    cli()
