"""Tests for the CLI module."""

import json

from click.testing import CliRunner

from plotrecon.cli import cli
from plotrecon.store import FileRecordStore


class TestCli:
    def setup_method(self):
        self.runner = CliRunner()

    def test_version(self):
        result = self.runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.4.0" in result.output

    def test_help(self):
        result = self.runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("canonicalize", "dedupe", "dedupe-deceased", "gap-fill", "purge-unplaced"):
            assert command in result.output

    def test_canonicalize(self):
        result = self.runner.invoke(cli, ["canonicalize", "A1-07"])
        assert result.exit_code == 0
        assert "107" in result.output
        assert "a1_prefix" in result.output

    def test_canonicalize_row_label(self):
        result = self.runner.invoke(cli, ["canonicalize", "7", "--row", "A-107"])
        assert result.exit_code == 0
        assert "107" in result.output
        assert "row_label" in result.output

    def test_canonicalize_no_match(self):
        result = self.runner.invoke(cli, ["canonicalize", "N/A"])
        assert result.exit_code == 0
        assert "No match" in result.output

    def test_dedupe(self, plots_csv):
        result = self.runner.invoke(cli, ["dedupe", plots_csv])
        assert result.exit_code == 0
        assert "Saved to" in result.output
        assert len(FileRecordStore(plots_csv)) == 7

    def test_dedupe_dry_run(self, plots_csv):
        result = self.runner.invoke(cli, ["dedupe", plots_csv, "--variant", "strict", "--dry-run"])
        assert result.exit_code == 0
        assert "Dry run" in result.output
        assert len(FileRecordStore(plots_csv)) == 10

    def test_dedupe_output(self, plots_csv, tmp_path):
        out = str(tmp_path / "clean.csv")
        result = self.runner.invoke(cli, ["dedupe", plots_csv, "--variant", "exact", "-o", out])
        assert result.exit_code == 0
        assert len(FileRecordStore(out)) == 9
        assert len(FileRecordStore(plots_csv)) == 10

    def test_dedupe_deceased(self, deceased_json):
        result = self.runner.invoke(cli, ["dedupe-deceased", deceased_json])
        assert result.exit_code == 0
        assert "Found 1 sets of duplicates" in result.output
        assert "Unique records: 2" in result.output

    def test_gap_fill(self, a1_plots_csv, staging_csv):
        result = self.runner.invoke(cli, ["gap-fill", a1_plots_csv, staging_csv])
        assert result.exit_code == 0
        assert "Still missing" in result.output
        assert "132" in result.output
        assert len(FileRecordStore(a1_plots_csv)) == 31

    def test_gap_fill_json(self, a1_plots_csv, staging_csv):
        result = self.runner.invoke(cli, ["gap-fill", a1_plots_csv, staging_csv, "--json", "--dry-run"])
        assert result.exit_code == 0
        report = json.loads(result.output)
        assert report["filled_numbers"] == [131]
        assert report["still_missing"] == [132]
        assert len(FileRecordStore(a1_plots_csv)) == 30

    def test_gap_fill_json_writes_quietly(self, a1_plots_csv, staging_csv):
        result = self.runner.invoke(cli, ["gap-fill", a1_plots_csv, staging_csv, "--json"])
        assert result.exit_code == 0
        report = json.loads(result.output)
        assert report["created"] == 1
        assert len(FileRecordStore(a1_plots_csv)) == 31

    def test_gap_fill_bad_range(self, a1_plots_csv, staging_csv):
        result = self.runner.invoke(cli, ["gap-fill", a1_plots_csv, staging_csv, "--lo", "140", "--hi", "120"])
        assert result.exit_code != 0
        assert "must not exceed" in result.output

    def test_purge_unplaced(self, staging_csv):
        result = self.runner.invoke(cli, ["purge-unplaced", staging_csv, "--dry-run"])
        assert result.exit_code == 0
        assert "Would delete 0 unplaced staging row(s)" in result.output
        assert len(FileRecordStore(staging_csv)) == 4

    def test_missing_file(self):
        result = self.runner.invoke(cli, ["dedupe", "/no/such/plots.csv"])
        assert result.exit_code != 0
