"""Integration tests for the command-line interface."""

import json
from unittest import mock

import pytest

from optimizator_pkg.cli import (
    EXIT_DID_NOT_CONVERGE,
    EXIT_INVALID_INPUT,
    EXIT_OK,
    main_entry,
)
from optimizator_pkg.config import VERSION


class TestSingleFunction:
    """Test optimizing one function from the command line."""

    def test_json_output(self, capsys):
        code = main_entry(["-f", "x1^2+x2^2", "-t", "1e-6", "-n", "1000", "--format", "json"])
        assert code == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["ok"] is True
        assert [v["name"] for v in data["variables"]] == ["x1", "x2"]
        assert abs(data["function_value"]) < 1e-4

    def test_human_output(self, capsys):
        code = main_entry(["-f", "(x1-2)^2", "-t", "1e-12"])
        assert code == EXIT_OK
        out = capsys.readouterr().out
        assert "Optimum:" in out
        assert "x1 = 2" in out

    def test_integer_display(self, capsys):
        code = main_entry(["-f", "(x1-2.7)^2", "-t", "1e-12", "--integer"])
        assert code == EXIT_OK
        assert "x1 = 2\n" in capsys.readouterr().out

    def test_did_not_converge(self, capsys):
        code = main_entry(["-f", "x1^2+x2^2", "-n", "1"])
        assert code == EXIT_DID_NOT_CONVERGE
        assert "DID_NOT_CONVERGE" in capsys.readouterr().out

    def test_invalid_function(self, capsys):
        code = main_entry(["-f", "x1+(x2", "--format", "json"])
        assert code == EXIT_INVALID_INPUT
        data = json.loads(capsys.readouterr().out)
        assert data["error_code"] == "INVALID_FUNCTION"
        assert data["parse_code"] == "UNBALANCED_PARENTHESES"

    def test_missing_function(self, capsys):
        assert main_entry([]) == EXIT_INVALID_INPUT
        assert "Empty input" in capsys.readouterr().out

    def test_invalid_tolerance(self):
        assert main_entry(["-f", "x1^2", "-t", "0"]) == EXIT_INVALID_INPUT

    def test_invalid_step(self, capsys):
        assert main_entry(["-f", "x1^2", "--step", "0"]) == EXIT_INVALID_INPUT
        assert "initial_step" in capsys.readouterr().err

    def test_custom_start(self, capsys):
        code = main_entry(["-f", "(x1+5)^2", "-t", "1e-12", "--start", "-4", "--format", "json"])
        assert code == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["variables"][0]["value"] == pytest.approx(-5.0, abs=1e-3)

    def test_show_expr(self, capsys):
        main_entry(["-f", "x1^2 + x2^2", "--show-expr"])
        assert "f = x1² + x2²" in capsys.readouterr().out

    def test_show_expr_with_overflowing_literal(self, capsys):
        code = main_entry(["-f", "x1*" + "9" * 400, "--show-expr", "-n", "5"])
        out = capsys.readouterr().out
        assert "f = oo*x1" in out
        assert code == EXIT_DID_NOT_CONVERGE

    def test_show_expr_failure_does_not_stop_run(self, capsys):
        with mock.patch("optimizator_pkg.cli.describe_function", side_effect=RuntimeError("boom")):
            code = main_entry(["-f", "(x1-2)^2", "-t", "1e-12", "--show-expr"])
        assert code == EXIT_OK
        out = capsys.readouterr().out
        assert not any(line.startswith("f = ") for line in out.splitlines())
        assert "x1 = 2" in out

    def test_version(self, capsys):
        assert main_entry(["--version"]) == EXIT_OK
        assert capsys.readouterr().out.strip() == VERSION


class TestPlots:
    """Test convergence plot options."""

    def test_ascii_plot(self, capsys):
        code = main_entry(["-f", "(x1-1)^2 + (x2-3)^2", "-t", "1e-8", "--ascii-plot"])
        assert code == EXIT_OK
        assert "iterations: 0.." in capsys.readouterr().out

    def test_png_plot(self, tmp_path, capsys):
        target = tmp_path / "convergence.png"
        code = main_entry(["-f", "(x1-1)^2 + (x2-3)^2", "-t", "1e-8", "--plot", str(target)])
        assert code == EXIT_OK
        assert target.exists()
        assert str(target) in capsys.readouterr().out


class TestBatch:
    """Test JSON-lines batch mode."""

    def test_batch_json(self, tmp_path, capsys):
        batch = tmp_path / "queries.jsonl"
        batch.write_text(
            "\n".join(
                [
                    '{"function": "(x1-1)^2", "tolerance": 1e-10, "max_iterations": 1000}',
                    "# comment lines are skipped",
                    '{"function": "(x1+2)^2 + x2^2", "tolerance": 1e-10, "iter": 1000}',
                ]
            ),
            encoding="utf-8",
        )
        code = main_entry(["--batch", str(batch), "--format", "json", "-w", "2"])
        assert code == EXIT_OK
        lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert [line["function"] for line in lines] == ["(x1-1)^2", "(x1+2)^2 + x2^2"]
        assert all(line["ok"] for line in lines)

    def test_batch_reports_worst_exit_code(self, tmp_path, capsys):
        batch = tmp_path / "queries.jsonl"
        batch.write_text(
            '{"function": "(x1-1)^2", "tolerance": 1e-10, "max_iterations": 1000}\n'
            '{"function": "x1^2+x2^2", "tolerance": 1e-6, "max_iterations": 1}\n',
            encoding="utf-8",
        )
        assert main_entry(["--batch", str(batch)]) == EXIT_DID_NOT_CONVERGE

    def test_batch_bad_json(self, tmp_path, capsys):
        batch = tmp_path / "queries.jsonl"
        batch.write_text("{not json}\n", encoding="utf-8")
        assert main_entry(["--batch", str(batch)]) == EXIT_INVALID_INPUT
        assert "line 1" in capsys.readouterr().err

    def test_batch_missing_file(self, tmp_path):
        assert main_entry(["--batch", str(tmp_path / "missing.jsonl")]) == EXIT_INVALID_INPUT


def test_health_check(capsys):
    assert main_entry(["--health-check"]) == 0
    assert "All health checks passed" in capsys.readouterr().out
