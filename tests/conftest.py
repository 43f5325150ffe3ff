"""
Pytest configuration and shared fixtures.
"""

import numpy as np
import pytest
from typer.testing import CliRunner

from fbdrange.io.taxa import Taxon


@pytest.fixture
def cli_runner():
    """CLI test runner for Typer apps."""
    return CliRunner()


@pytest.fixture
def three_taxa():
    """Three taxa observed at the present with different first appearances."""
    return [
        Taxon("Alpha", min_age=0.0, max_age=1.0),
        Taxon("Beta", min_age=0.0, max_age=0.5),
        Taxon("Gamma", min_age=0.0, max_age=1.5),
    ]


@pytest.fixture
def three_ranges():
    """Ranges for ``three_taxa``, all surviving to the present."""
    return np.array([[2.0, 0.0], [1.2, 0.0], [3.0, 0.0]])


@pytest.fixture
def mixed_taxa():
    """An extant taxon, an extinct taxon, and a singleton."""
    return [
        Taxon("Extant", min_age=0.0, max_age=1.0),
        Taxon("Extinct", min_age=2.5, max_age=4.0),
        Taxon("Singleton", min_age=0.5, max_age=0.5),
    ]


@pytest.fixture
def mixed_ranges():
    """Ranges for ``mixed_taxa`` spanning the rate-change times 1 and 5."""
    return np.array([[2.0, 0.0], [6.0, 1.5], [3.0, 0.2]])


@pytest.fixture
def taxa_file(tmp_path):
    """Taxon table matching ``mixed_taxa``."""
    content = (
        "taxon\tmin\tmax\n"
        "# comment lines are ignored\n"
        "Extant\t0.0\t1.0\n"
        "Extinct\t2.5\t4.0\n"
        "Singleton\t0.5\t0.5\n"
    )
    path = tmp_path / "taxa.tsv"
    path.write_text(content)
    return path


@pytest.fixture
def ranges_file(tmp_path):
    """Range table matching ``mixed_ranges``, rows in a different order."""
    content = (
        "taxon\tstart\tend\n"
        "Singleton\t3.0\t0.2\n"
        "Extant\t2.0\t0.0\n"
        "Extinct\t6.0\t1.5\n"
    )
    path = tmp_path / "ranges.tsv"
    path.write_text(content)
    return path


@pytest.fixture
def counts_file(tmp_path):
    """Fossil counts for ``mixed_taxa`` over three intervals (oldest first)."""
    content = (
        "taxon\tearly\tmiddle\tlate\n"
        "Extant\t0\t1\t2\n"
        "Extinct\t0\t3\t0\n"
        "Singleton\t0\t0\t1\n"
    )
    path = tmp_path / "counts.tsv"
    path.write_text(content)
    return path
