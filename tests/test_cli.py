"""
Unit tests for CLI commands.
"""

import json

import numpy as np
import pytest

from fbdrange.cli.commands.loglik import parse_values
from fbdrange.cli.main import app
from fbdrange.io.taxa import read_ranges, read_taxa


RATE_ARGS = ["-l", "1.0", "-m", "0.5", "-p", "0.2"]


class TestCLIHelp:
    """Test help messages and basic CLI functionality."""

    def test_main_help(self, cli_runner):
        """Test main CLI help message."""
        result = cli_runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "loglik" in result.stdout
        assert "simulate-ranges" in result.stdout

    def test_loglik_help(self, cli_runner):
        """Test 'loglik' command help message."""
        result = cli_runner.invoke(app, ["loglik", "--help"])
        assert result.exit_code == 0
        assert "--taxa" in result.stdout
        assert "--ranges" in result.stdout
        assert "--timeline" in result.stdout

    def test_simulate_ranges_help(self, cli_runner):
        """Test 'simulate-ranges' command help message."""
        result = cli_runner.invoke(app, ["simulate-ranges", "--help"])
        assert result.exit_code == 0
        assert "--seed" in result.stdout


class TestParseValues:
    """Test parsing of rate and time arguments."""

    def test_single_value(self):
        assert parse_values("0.5", "speciation") == 0.5

    def test_list(self):
        assert parse_values("1, 2,3", "speciation") == [1.0, 2.0, 3.0]


class TestLoglikCommand:
    """Test the 'loglik' command."""

    def test_text_output(self, cli_runner, taxa_file, ranges_file):
        result = cli_runner.invoke(app, [
            "loglik", "-x", str(taxa_file), "-r", str(ranges_file), *RATE_ARGS, "--quiet",
        ])

        assert result.exit_code == 0
        assert "Log-likelihood:" in result.stdout
        assert "marginalized" in result.stdout

    def test_json_output(self, cli_runner, taxa_file, ranges_file, mixed_taxa, mixed_ranges):
        from fbdrange import range_log_likelihood

        result = cli_runner.invoke(app, [
            "loglik", "-x", str(taxa_file), "-r", str(ranges_file), *RATE_ARGS,
            "--format", "json", "--quiet",
        ])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        expected = range_log_likelihood(mixed_taxa, mixed_ranges, speciation=1.0,
                                        extinction=0.5, fossilization=0.2)
        assert data['lnL'] == pytest.approx(expected.lnL)
        assert data['n_taxa'] == 3

    def test_timeline_and_counts(self, cli_runner, taxa_file, ranges_file, counts_file):
        result = cli_runner.invoke(app, [
            "loglik", "-x", str(taxa_file), "-r", str(ranges_file),
            "-l", "1.0,1.5,2.0", "-m", "0.5", "-p", "0.2", "-t", "5,1",
            "-k", str(counts_file), "--format", "json", "--quiet",
        ])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data['regime'] == "taxon_interval"
        assert data['n_intervals'] == 3
        assert data['lnL'] is not None

    def test_output_file(self, cli_runner, taxa_file, ranges_file, tmp_path):
        output = tmp_path / "result.json"
        result = cli_runner.invoke(app, [
            "loglik", "-x", str(taxa_file), "-r", str(ranges_file), *RATE_ARGS,
            "--format", "json", "-o", str(output), "--quiet",
        ])

        assert result.exit_code == 0
        assert json.loads(output.read_text())['condition'] == "none"

    def test_unparseable_rate(self, cli_runner, taxa_file, ranges_file):
        result = cli_runner.invoke(app, [
            "loglik", "-x", str(taxa_file), "-r", str(ranges_file),
            "-l", "fast", "-m", "0.5", "-p", "0.2",
        ])

        assert result.exit_code == 1
        assert "Could not parse speciation" in result.output

    def test_rates_without_timeline(self, cli_runner, taxa_file, ranges_file):
        result = cli_runner.invoke(app, [
            "loglik", "-x", str(taxa_file), "-r", str(ranges_file),
            "-l", "1.0,2.0", "-m", "0.5", "-p", "0.2",
        ])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_unreadable_ranges(self, cli_runner, taxa_file, tmp_path):
        bad = tmp_path / "ranges.tsv"
        bad.write_text("taxon\tstart\tend\nExtant\t2.0\t0.0\n")

        result = cli_runner.invoke(app, [
            "loglik", "-x", str(taxa_file), "-r", str(bad), *RATE_ARGS,
        ])

        assert result.exit_code == 1
        assert "Could not load input tables" in result.output

    def test_missing_file(self, cli_runner, taxa_file, tmp_path):
        result = cli_runner.invoke(app, [
            "loglik", "-x", str(taxa_file), "-r", str(tmp_path / "missing.tsv"), *RATE_ARGS,
        ])

        assert result.exit_code != 0


class TestSimulateRangesCommand:
    """Test the 'simulate-ranges' command."""

    def test_writes_valid_ranges(self, cli_runner, taxa_file, tmp_path):
        output = tmp_path / "start.tsv"
        result = cli_runner.invoke(app, [
            "simulate-ranges", "-x", str(taxa_file), "-o", str(output), "--seed", "42",
        ])

        assert result.exit_code == 0
        assert "Loaded 3 taxa" in result.stdout

        taxa = read_taxa(taxa_file)
        ranges = read_ranges(output, taxa)
        assert np.all(ranges[:, 0] >= [t.max_age for t in taxa])
        assert np.all(ranges[:, 1] <= [t.min_age for t in taxa])

    def test_seed_reproducibility(self, cli_runner, taxa_file, tmp_path):
        first = tmp_path / "first.tsv"
        second = tmp_path / "second.tsv"
        for path in (first, second):
            cli_runner.invoke(app, [
                "simulate-ranges", "-x", str(taxa_file), "-o", str(path),
                "--seed", "7", "--quiet",
            ])

        assert first.read_text() == second.read_text()

    def test_then_loglik(self, cli_runner, taxa_file, tmp_path):
        start = tmp_path / "start.tsv"
        cli_runner.invoke(app, [
            "simulate-ranges", "-x", str(taxa_file), "-o", str(start), "--seed", "1", "-q",
        ])

        result = cli_runner.invoke(app, [
            "loglik", "-x", str(taxa_file), "-r", str(start), *RATE_ARGS,
            "--format", "json", "--quiet",
        ])

        assert result.exit_code == 0
        assert json.loads(result.stdout)['lnL'] is not None
