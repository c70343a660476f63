"""Tests for the command-line interface."""

import json
from pathlib import Path

import pytest

from typers.cli import build_parser, main


class TestMain:
    def test_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["\\x -> iszero x"]) == 0
        out = capsys.readouterr().out
        assert "[Abs]  ⊢ \\x -> iszero x :: t0" in out
        assert "  t0 = t1 -> t2" in out
        assert out.rstrip().endswith("result: t0 = Int -> Bool")

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--json", "fst (1, true)"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["solution"]["result_text"] == "Int"

    def test_build_failure(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["x"]) == 1
        assert "x not found!" in capsys.readouterr().err

    def test_parse_failure(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["(1"]) == 1
        assert "expected RPAREN" in capsys.readouterr().err

    def test_solver_failure(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["iszero true"]) == 1
        captured = capsys.readouterr()
        assert "error: impossible to combine these rules" in captured.out
        assert "impossible to combine these rules" in captured.err

    def test_trivial_pairs_are_solved(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--json", "1 + 2"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert len(data["rules"]) == 5

    def test_config_file(
        self,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "typers.json"
        path.write_text(json.dumps({"max_steps": 1}))
        assert main(["--config", str(path), "\\x -> iszero x"]) == 1
        assert "gave up after 1" in capsys.readouterr().err

    def test_goal_cannot_be_configured(
        self,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "typers.json"
        path.write_text(json.dumps({"goal": 1}))
        assert main(["--config", str(path), "1"]) == 1
        assert "Unknown configuration keys: goal" in capsys.readouterr().err

    def test_missing_config(
        self,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert main(["--config", str(tmp_path / "nope.json"), "1"]) == 1
        assert "configuration file not found" in capsys.readouterr().err


class TestArgumentParser:
    def test_expression_is_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_flags(self) -> None:
        args = build_parser().parse_args(["-v", "--json", "1"])
        assert args.verbose
        assert args.json
        assert args.expression == "1"
