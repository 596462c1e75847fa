import json
from pathlib import Path

import pytest

from beamwand.cli import main


def test_no_arguments_prints_usage(capsys) -> None:
    assert main([]) == 0
    out = capsys.readouterr().out
    assert "usage: beamwand" in out


def test_missing_file(tmp_path: Path, capsys) -> None:
    assert main([str(tmp_path / "absent.beam"), "--parser-only"]) == 1
    assert "doesn't exist" in capsys.readouterr().err


def test_compiler_mode_is_not_supported(sample_module_path: Path, capsys) -> None:
    assert main([str(sample_module_path)]) == 1
    assert "not supported" in capsys.readouterr().err


def test_parser_only_prints_text_dump(sample_module_path: Path, capsys) -> None:
    assert main([str(sample_module_path), "--parser-only"]) == 0
    out = capsys.readouterr().out
    assert "Code (code," in out
    assert "func_info {atom,sample}, {atom,run}, 1" in out


def test_parser_only_json(sample_module_path: Path, capsys) -> None:
    assert main([str(sample_module_path), "--parser-only", "--format", "json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert [chunk["tag"] for chunk in payload["chunks"]][:2] == ["AtU8", "Code"]


def test_json_out_writes_report(sample_module_path: Path, tmp_path: Path) -> None:
    report = tmp_path / "reports" / "sample.json"
    assert main([str(sample_module_path), "--json-out", str(report)]) == 0
    payload = json.loads(report.read_text(encoding="utf8"))
    assert payload["chunks"][1]["body"]["labels"]["2"][-1]["name"] == "int_code_end"


def test_parse_failure_exit_code(tmp_path: Path, capsys) -> None:
    bad = tmp_path / "bad.beam"
    bad.write_bytes(b"FOR1\x00\x00\x00\x04BEAN")
    assert main([str(bad), "--parser-only"]) == 2
    assert "MalformedMagic" in capsys.readouterr().err


def test_log_file_receives_records(sample_module_path: Path, tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "run.log"
    assert main([str(sample_module_path), "--parser-only", "--verbose", "--log-file", str(log_file)]) == 0
    text = log_file.read_text(encoding="utf-8")
    assert "Decoded 9 chunk(s)" in text
    assert "sealed label 2" in text


def test_invalid_limits_are_rejected(sample_module_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main([str(sample_module_path), "--parser-only", "--max-depth", "0"])
    assert excinfo.value.code == 2
