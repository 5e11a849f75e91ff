"""Tests for the rac-benefits CLI."""

import json
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest


def run_cli(*args, module="rac_benefits.cli"):
    """Run CLI and return output."""
    result = subprocess.run(
        [sys.executable, "-m", module, *args],
        capture_output=True,
        text=True,
        env={"PYTHONPATH": "src"},
        cwd=Path(__file__).parent.parent,
    )
    return result


class TestCLI:
    """Tests for command-line interface."""

    def test_help(self):
        """--help shows usage."""
        result = run_cli("--help")
        assert result.returncode == 0
        assert "rac-benefits" in result.stdout
        assert "snap" in result.stdout

    def test_version(self):
        result = run_cli("--version")
        assert result.returncode == 0
        assert "0.1.0" in result.stdout

    def test_no_command_shows_help(self):
        """No command shows help and exits 1."""
        result = run_cli()
        assert result.returncode == 1

    def test_snap_scenario(self):
        result = run_cli(
            "snap", "--size", "3", "--earned", "2500", "--shelter", "900",
            "--utility-allowance", "200", "--fiscal-year", "2024", "--resources-ok",
        )
        assert result.returncode == 0
        data = json.loads(result.stdout)
        assert data["eligible"] is True
        assert data["net_income"] == "1603.00"
        assert data["benefit"] == "285.00"

    def test_snap_unknown_year_exits_2(self):
        result = run_cli("snap", "--size", "1", "--fiscal-year", "2010")
        assert result.returncode == 2
        assert "FY2010" in result.stderr

    def test_tables(self):
        result = run_cli("tables")
        assert result.returncode == 0
        assert "FY2024" in result.stdout
        assert "FY2025" in result.stdout


class TestCLIInProcess:
    """Run main() directly with patched argv."""

    def test_snap_trace(self, capsys):
        from rac_benefits.cli import main

        argv = [
            "rac-benefits", "snap", "--size", "1", "--unearned", "500", "--resources-ok", "--trace",
        ]
        with patch("sys.argv", argv):
            main()
        data = json.loads(capsys.readouterr().out)
        assert data["eligible"] is True
        assert data["calculation_trace"][0] == "Household size: 1"
        assert any(c["source"] == "7 USC 2017" for c in data["citations"])

    def test_snap_prorated(self, capsys):
        from rac_benefits.cli import main

        argv = [
            "rac-benefits", "snap", "--size", "3", "--earned", "2500", "--shelter", "900",
            "--utility-allowance", "200", "--days-remaining", "17", "--total-days", "30",
            "--resources-ok",
        ]
        with patch("sys.argv", argv):
            main()
        assert json.loads(capsys.readouterr().out)["benefit"] == "164.00"

    def test_snap_without_resource_gate_is_pending(self, capsys):
        """Income tests alone never make a household eligible."""
        from rac_benefits.cli import main

        argv = ["rac-benefits", "snap", "--size", "1", "--unearned", "500"]
        with patch("sys.argv", argv):
            main()
        data = json.loads(capsys.readouterr().out)
        assert data["eligible"] is False
        assert data["status"] == "pending"
        assert data["resource_test"] == "not_evaluated"
        assert data["benefit"] == "0.00"

    def test_snap_resources_exceed(self, capsys):
        from rac_benefits.cli import main

        argv = ["rac-benefits", "snap", "--size", "1", "--unearned", "500", "--resources-exceed"]
        with patch("sys.argv", argv):
            main()
        data = json.loads(capsys.readouterr().out)
        assert data["status"] == "ineligible"
        assert data["reason"] == "resources exceed limit"
        assert data["resource_test"] == "failed"

    def test_snap_resource_flags_exclusive(self):
        from rac_benefits.cli import main

        argv = [
            "rac-benefits", "snap", "--size", "1", "--resources-ok", "--resources-exceed",
        ]
        with patch("sys.argv", argv), pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 2

    def test_snap_member_count_mismatch(self, capsys):
        from rac_benefits.cli import main

        argv = ["rac-benefits", "snap", "--size", "2", "--member-ages", "30"]
        with patch("sys.argv", argv), pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 2
        assert "does not match" in capsys.readouterr().err

    def test_snap_custom_rules(self, capsys, tmp_path, small_table):
        from rac_benefits.cli import main

        rules = tmp_path / "rules.json"
        rules.write_text(small_table.to_json())
        argv = [
            "rac-benefits", "snap", "--size", "1", "--unearned", "500",
            "--rules", str(rules), "--jurisdiction", "TEST", "--fiscal-year", "2030",
            "--resources-ok",
        ]
        with patch("sys.argv", argv):
            main()
        assert json.loads(capsys.readouterr().out)["benefit"] == "80.00"

    def test_tax(self, capsys, tmp_path):
        from rac_benefits.cli import main

        docs = tmp_path / "docs.json"
        docs.write_text(json.dumps([
            {"document_type": "W2", "fields": {"wages": 30000, "federal_withholding": 1000}},
        ]))
        argv = [
            "rac-benefits", "tax", "--documents", str(docs),
            "--filing-status", "head_of_household", "--dependent-ages", "4,9",
        ]
        with patch("sys.argv", argv):
            main()
        data = json.loads(capsys.readouterr().out)
        assert data["figures"]["refund"] == "10152.00"
        assert data["figures"]["eitc"] == "5752.00"

    def test_tax_missing_file(self, capsys, tmp_path):
        from rac_benefits.cli import main

        argv = ["rac-benefits", "tax", "--documents", str(tmp_path / "nope.json")]
        with patch("sys.argv", argv), pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 2
