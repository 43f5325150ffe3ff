"""
Taxon tables, range values and fossil count tables.

All files are plain text tables separated by tabs or spaces. The first
non-comment line is a header; lines starting with ``#`` are ignored.
"""

from dataclasses import dataclass
from pathlib import Path

import numpy as np


@dataclass(frozen=True)
class Taxon:
    """
    A fossil taxon with its observed stratigraphic span.

    Attributes
    ----------
    name : str
        Taxon name
    min_age : float
        Age of the youngest observation (last appearance). Zero for taxa
        sampled at the present.
    max_age : float
        Age of the oldest observation (first appearance)
    """

    name: str
    min_age: float
    max_age: float

    def __post_init__(self):
        if self.min_age < 0.0:
            raise ValueError(f"Taxon {self.name} has negative minimum age {self.min_age}")
        if self.max_age < self.min_age:
            raise ValueError(
                f"Taxon {self.name} has maximum age {self.max_age} "
                f"younger than minimum age {self.min_age}"
            )

    @property
    def is_extant(self) -> bool:
        """Check if the taxon was observed at the present."""
        return self.min_age == 0.0


def _read_table(filepath: Path | str) -> tuple[list[str], list[list[str]]]:
    """Read a header and whitespace-separated rows, skipping comments."""
    filepath = Path(filepath)

    with open(filepath, 'r') as f:
        lines = [line.strip() for line in f.readlines()]

    lines = [line for line in lines if line and not line.startswith('#')]
    if not lines:
        raise ValueError(f"No data found in {filepath}")

    header = lines[0].split()
    rows = [line.split() for line in lines[1:]]

    for row in rows:
        if len(row) != len(header):
            raise ValueError(
                f"Row '{' '.join(row)}' in {filepath} has {len(row)} columns, "
                f"expected {len(header)}"
            )

    return header, rows


def read_taxa(filepath: Path | str) -> list[Taxon]:
    """
    Read a taxon table.

    The table has three columns: taxon name, minimum age and maximum age.

    Parameters
    ----------
    filepath : Path or str
        Path to taxon table

    Returns
    -------
    list[Taxon]
        Taxa in file order

    Examples
    --------
    >>> taxa = read_taxa("taxa.tsv")
    >>> taxa[0].max_age
    12.5
    """
    header, rows = _read_table(filepath)
    if len(header) != 3:
        raise ValueError(
            f"Taxon table must have columns 'taxon min max', got {len(header)} columns"
        )

    taxa = [Taxon(name=row[0], min_age=float(row[1]), max_age=float(row[2])) for row in rows]

    names = [taxon.name for taxon in taxa]
    if len(set(names)) != len(names):
        duplicates = sorted({name for name in names if names.count(name) > 1})
        raise ValueError(f"Duplicate taxon names: {duplicates}")

    return taxa


def _rows_by_taxon(rows: list[list[str]], taxa: list[Taxon], filepath) -> list[list[str]]:
    """Order table rows to match the taxon list."""
    by_name = {row[0]: row[1:] for row in rows}

    missing = [taxon.name for taxon in taxa if taxon.name not in by_name]
    if missing:
        raise ValueError(f"Taxa missing from {filepath}: {missing}")

    extra = set(by_name) - {taxon.name for taxon in taxa}
    if extra:
        raise ValueError(f"Unknown taxa in {filepath}: {sorted(extra)}")

    return [by_name[taxon.name] for taxon in taxa]


def read_ranges(filepath: Path | str, taxa: list[Taxon]) -> np.ndarray:
    """
    Read range values (origination and extinction times) for each taxon.

    Parameters
    ----------
    filepath : Path or str
        Table with columns ``taxon start end``
    taxa : list[Taxon]
        Taxa defining the row order of the result

    Returns
    -------
    np.ndarray, shape (n_taxa, 2)
        Start times in column 0, end times in column 1
    """
    header, rows = _read_table(filepath)
    if len(header) != 3:
        raise ValueError(
            f"Range table must have columns 'taxon start end', got {len(header)} columns"
        )

    ordered = _rows_by_taxon(rows, taxa, filepath)
    return np.array([[float(row[0]), float(row[1])] for row in ordered], dtype=np.float64)


def read_counts(filepath: Path | str, taxa: list[Taxon]) -> np.ndarray:
    """
    Read per-taxon, per-interval fossil counts.

    The header names the taxon column followed by one column per interval,
    in the same order as the interval times given to the process.

    Parameters
    ----------
    filepath : Path or str
        Count table
    taxa : list[Taxon]
        Taxa defining the row order of the result

    Returns
    -------
    np.ndarray, shape (n_taxa, n_intervals)
        Integer fossil counts
    """
    header, rows = _read_table(filepath)
    if len(header) < 2:
        raise ValueError("Count table must have a taxon column and at least one interval")

    ordered = _rows_by_taxon(rows, taxa, filepath)
    return np.array([[int(value) for value in row] for row in ordered], dtype=np.int64)


def write_ranges(filepath: Path | str, taxa: list[Taxon], ranges: np.ndarray) -> None:
    """Write range values as a ``taxon start end`` table."""
    filepath = Path(filepath)

    with open(filepath, 'w') as f:
        f.write("taxon\tstart\tend\n")
        for taxon, (start, end) in zip(taxa, ranges):
            f.write(f"{taxon.name}\t{start:.10g}\t{end:.10g}\n")
