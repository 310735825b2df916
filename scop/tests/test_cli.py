#!/usr/bin/env python3
"""
Tests for the scop command line interface
"""
import json
from unittest.mock import Mock, patch

import pandas as pd
import pytest

from scop.cli.main import build_parser, main, run_command
from scop.error_handlers import EXIT_USAGE
from scop.models.classification import Level
from scop.tests.conftest import make_raf_line, observed


@pytest.fixture
def cli_store(release_pair):
    """Release 2 has one fully covered chain and one with a stray residue"""
    s = release_pair
    s.add_chain(1, "1abc", "A")
    s.set_raf(1, 2, make_raf_line("1abc", "A", observed(40)))
    s.add_domain(110, 2, 1, "d1abca_", "1abc A:")
    s.add_chain(2, "1xyz", "A")
    s.set_raf(2, 2, make_raf_line("1xyz", "A", observed(40)))
    s.add_domain(111, 2, 2, "d1xyza_", "1xyz A:1-39")

    s.add_node(10, 1, Level.DOMAIN, sid="d1abca_", sunid=500, description="1abc A:")
    return s


def run(argv, store, config):
    return run_command(build_parser().parse_args(argv), store, config)


class TestRunCommand:

    def test_check_coverage_prints_anomalies(self, cli_store, test_config, capsys):
        status = run(["check-coverage", "2.02"], cli_store, test_config)

        out = capsys.readouterr().out.splitlines()
        assert status == 0
        assert out == ["WARNING incomplete_coverage: chain 1xyzA not fully covered by domains; "
                       "missing 1 residues"]

    def test_check_coverage_json_summary(self, cli_store, test_config, capsys):
        run(["--json", "check-coverage", "2"], cli_store, test_config)

        out = capsys.readouterr().out
        summary = json.loads(out[out.index("{"):])
        assert summary["chains_checked"] == 2
        assert summary["anomalies"] == {"incomplete_coverage": 1}
        assert summary["chains_fully_covered"] == 1
        assert summary["pct_covered"] == 98.75

    def test_check_coverage_csv(self, cli_store, test_config, tmp_path):
        path = tmp_path / "anomalies.csv"

        run(["--csv", str(path), "check-coverage", "2.02"], cli_store, test_config)

        df = pd.read_csv(path)
        assert list(df["kind"]) == ["incomplete_coverage"]
        assert list(df["chain"]) == ["1xyzA"]

    def test_stable_px_writes(self, cli_store, test_config, capsys):
        status = run(["stable-px", "2.01", "2.02"], cli_store, test_config)

        assert status == 0
        assert cli_store.nodes[110].sunid == 500
        assert cli_store.nodes[111].sunid == 501
        assert capsys.readouterr().out == ""

    def test_check_only_flag(self, cli_store, test_config, capsys):
        run(["stable-px", "--check-only", "2.01", "2.02"], cli_store, test_config)

        out = capsys.readouterr().out
        assert "DEFECT sunid_mismatch" in out
        assert cli_store.writes == []


class TestMain:

    @pytest.fixture
    def context(self, cli_store, test_config):
        ctx = Mock()
        ctx.store = cli_store
        ctx.config_manager.config = test_config
        with patch('scop.cli.main.ApplicationContext', return_value=ctx), \
                patch('scop.cli.main.LoggingManager'):
            yield ctx

    def test_no_command(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_check_coverage(self, context, capsys):
        assert main(["check-coverage", "2.02"]) == 0
        context.update_config.assert_not_called()

    def test_drift_threshold_option(self, context):
        main(["check-coverage", "--drift-threshold", "3", "2.02"])
        context.update_config.assert_called_once_with('coverage', 'length_drift_threshold', 3)

    def test_release_error_exit_status(self, context, capsys):
        status = main(["stable-px", "9.99", "2.02"])

        assert status == EXIT_USAGE
        err = capsys.readouterr().err
        assert "ReleaseError" in err
        assert "Check the release versions" in err
