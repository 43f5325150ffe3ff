"""Main CLI application for fbdrange."""

import typer
from pathlib import Path
from typing import Optional
from enum import Enum

app = typer.Typer(
    name="fbdrange",
    help="Likelihood of fossil stratigraphic ranges under the fossilized birth-death range process",
    no_args_is_help=True,
)


class ConditionType(str, Enum):
    """What the process is conditioned on."""
    NONE = "none"
    SURVIVAL = "survival"


class OutputFormat(str, Enum):
    """Output format."""
    TEXT = "text"
    JSON = "json"


@app.command(name="loglik")
def loglik(
    taxa: Path = typer.Option(
        ...,
        "--taxa", "-x",
        help="Taxon table with columns 'taxon min max'",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    ranges: Path = typer.Option(
        ...,
        "--ranges", "-r",
        help="Range table with columns 'taxon start end'",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    speciation: str = typer.Option(
        ...,
        "--speciation", "-l",
        help="Speciation rate, or comma-separated rates per interval",
    ),
    extinction: str = typer.Option(
        ...,
        "--extinction", "-m",
        help="Extinction rate, or comma-separated rates per interval",
    ),
    fossilization: str = typer.Option(
        ...,
        "--fossilization", "-p",
        help="Fossil sampling rate, or comma-separated rates per interval",
    ),
    rho: float = typer.Option(
        1.0,
        "--rho",
        help="Probability of sampling extant lineages",
        min=0.0,
        max=1.0,
    ),
    timeline: Optional[str] = typer.Option(
        None,
        "--timeline", "-t",
        help="Comma-separated rate-change times (ascending or descending)",
    ),
    counts: Optional[Path] = typer.Option(
        None,
        "--counts", "-k",
        help="Fossil counts per taxon and interval (default: marginalize counts)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    presence_absence: bool = typer.Option(
        False,
        "--presence-absence",
        help="Treat fossil counts as presence/absence data",
    ),
    condition: ConditionType = typer.Option(
        ConditionType.NONE,
        "--condition",
        help="Condition on survival of the process",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Output file (default: stdout)",
    ),
    format: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--format",
        help="Output format",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet", "-q",
        help="Minimal output",
    ),
):
    """
    Compute the log-likelihood of range values given observed fossil ages.

    Example:
        fbdrange loglik -x taxa.tsv -r ranges.tsv -l 1.0 -m 0.5 -p 0.2
        fbdrange loglik -x taxa.tsv -r ranges.tsv -l 1,2 -m 0.5 -p 0.2 -t 10 -k counts.tsv
    """
    from .commands.loglik import run_loglik

    run_loglik(
        taxa=taxa,
        ranges=ranges,
        speciation=speciation,
        extinction=extinction,
        fossilization=fossilization,
        rho=rho,
        timeline=timeline,
        counts=counts,
        presence_absence=presence_absence,
        condition=condition.value,
        output=output,
        format=format.value,
        quiet=quiet,
    )


@app.command(name="simulate-ranges")
def simulate_ranges(
    taxa: Path = typer.Option(
        ...,
        "--taxa", "-x",
        help="Taxon table with columns 'taxon min max'",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    output: Path = typer.Option(
        ...,
        "--output", "-o",
        help="Output range table",
    ),
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        help="Random seed for reproducibility",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet", "-q",
        help="Suppress progress messages",
    ),
):
    """
    Draw starting range values consistent with the observed fossil ages.

    Example:
        fbdrange simulate-ranges -x taxa.tsv -o ranges.tsv --seed 42
    """
    from .commands.simulate import run_simulate_ranges

    run_simulate_ranges(taxa=taxa, output=output, seed=seed, quiet=quiet)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
