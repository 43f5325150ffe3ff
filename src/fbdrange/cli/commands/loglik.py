"""Loglik command implementation."""

from pathlib import Path
from typing import Optional

import typer

from fbdrange.api import range_log_likelihood
from fbdrange.exceptions import ConfigurationError
from fbdrange.io.taxa import read_counts, read_ranges, read_taxa


def parse_values(text: str, name: str):
    """Parse a single number or a comma-separated list of numbers."""
    parts = [part.strip() for part in text.split(',') if part.strip()]
    try:
        values = [float(part) for part in parts]
    except ValueError:
        typer.echo(f"Error: Could not parse {name} '{text}'", err=True)
        raise typer.Exit(code=1)

    if not values:
        typer.echo(f"Error: No values given for {name}", err=True)
        raise typer.Exit(code=1)

    return values[0] if len(values) == 1 else values


def run_loglik(
    taxa: Path,
    ranges: Path,
    speciation: str,
    extinction: str,
    fossilization: str,
    rho: float,
    timeline: Optional[str],
    counts: Optional[Path],
    presence_absence: bool,
    condition: str,
    output: Optional[Path],
    format: str,
    quiet: bool,
):
    """Evaluate the log-likelihood of a range table."""
    try:
        taxa_list = read_taxa(taxa)
        range_values = read_ranges(ranges, taxa_list)
        count_values = read_counts(counts, taxa_list) if counts is not None else None
    except (OSError, ValueError) as e:
        typer.echo("Error: Could not load input tables", err=True)
        typer.echo(f"Details: {e}", err=True)
        raise typer.Exit(code=1)

    if not quiet:
        typer.echo(f"Taxa:   {taxa} ({len(taxa_list)} taxa)", err=True)
        typer.echo(f"Ranges: {ranges}", err=True)
        if counts is not None:
            typer.echo(f"Counts: {counts}", err=True)
        typer.echo("", err=True)

    timeline_values = None
    if timeline is not None:
        timeline_values = parse_values(timeline, "timeline")
        if isinstance(timeline_values, float):
            timeline_values = [timeline_values]

    try:
        result = range_log_likelihood(
            taxa_list,
            range_values,
            speciation=parse_values(speciation, "speciation"),
            extinction=parse_values(extinction, "extinction"),
            fossilization=parse_values(fossilization, "fossilization"),
            rho=rho,
            timeline=timeline_values,
            condition=condition,
            taxon_interval_counts=count_values,
            presence_absence=presence_absence,
        )
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if format == "json":
        text = result.to_json()
    else:
        text = result.summary()

    if output is not None:
        with open(output, 'w') as f:
            f.write(text + "\n")
        if not quiet:
            typer.echo(f"Results written to {output}", err=True)
    else:
        typer.echo(text)
