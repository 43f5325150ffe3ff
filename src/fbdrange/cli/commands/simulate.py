"""Simulate-ranges command implementation."""

from pathlib import Path
from typing import Optional

import typer

from fbdrange.io.taxa import read_taxa, write_ranges
from fbdrange.simulate.ranges import initial_ranges


def run_simulate_ranges(
    taxa: Path,
    output: Path,
    seed: Optional[int],
    quiet: bool,
):
    """Write random starting range values for a taxon table."""
    try:
        taxa_list = read_taxa(taxa)
    except (OSError, ValueError) as e:
        typer.echo(f"Error: Could not load taxa from {taxa}", err=True)
        typer.echo(f"Details: {e}", err=True)
        raise typer.Exit(code=1)

    if not quiet:
        typer.echo(f"Loaded {len(taxa_list)} taxa from {taxa}")

    ranges = initial_ranges(taxa_list, seed=seed)
    write_ranges(output, taxa_list, ranges)

    if not quiet:
        typer.echo(f"Wrote range values to {output}")
