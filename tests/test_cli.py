from pathlib import Path

import orjson
from typer.testing import CliRunner

from runzip.cli import app
from zip_helpers import Member, make_zip, read_members

runner = CliRunner()

PRIVET_1251 = "Привет.txt".encode("cp1251")


def _archive(tmp_path: Path, monkeypatch) -> Path:
    # Relative paths keep the printed lines short enough not to wrap.
    monkeypatch.chdir(tmp_path)
    return make_zip(tmp_path / "win.zip", [Member(PRIVET_1251, b"x"), Member(b"a.txt", b"y")])


def test_fix_dry_run_reports_without_writing(tmp_path: Path, monkeypatch):
    path = _archive(tmp_path, monkeypatch)
    before = path.read_bytes()
    result = runner.invoke(app, ["fix", "--dry-run", "win.zip"])
    assert result.exit_code == 0, result.output
    assert "win.zip contains 2 files" in result.output
    assert "WOULD FIX" in result.output
    assert "windows-1251 -> utf-8" in result.output
    assert "a.txt: OK" in result.output
    assert path.read_bytes() == before


def test_fix_rewrites_archive(tmp_path: Path, monkeypatch):
    path = _archive(tmp_path, monkeypatch)
    result = runner.invoke(app, ["fix", "win.zip"])
    assert result.exit_code == 0, result.output
    assert "Привет.txt: FIXED" in result.output
    assert read_members(path)[0][0] == "Привет.txt".encode()


def test_fix_cp866_mode(tmp_path: Path, monkeypatch):
    path = _archive(tmp_path, monkeypatch)
    result = runner.invoke(app, ["fix", "--cp866", "win.zip"])
    assert result.exit_code == 0, result.output
    assert "windows-1251 -> cp866" in result.output
    assert read_members(path)[0][0] == "Привет.txt".encode("cp866")


def test_fix_help_mentions_recompression():
    result = runner.invoke(app, ["fix", "--help"])
    assert result.exit_code == 0, result.output
    assert "recompressed" in result.output


def test_fix_continues_past_missing_archive_and_exits_nonzero(tmp_path: Path, monkeypatch):
    path = _archive(tmp_path, monkeypatch)
    result = runner.invoke(app, ["fix", "missing.zip", "win.zip"])
    assert result.exit_code == 1
    assert "Error processing" in result.output
    assert "FIXED" in result.output
    assert read_members(path)[0][0] == "Привет.txt".encode()


def test_fix_rejects_unknown_encoding(tmp_path: Path, monkeypatch):
    _archive(tmp_path, monkeypatch)
    result = runner.invoke(app, ["fix", "--source", "latin-1", "win.zip"])
    assert result.exit_code == 2


def test_fix_reads_config_and_writes_report(tmp_path: Path, monkeypatch):
    _archive(tmp_path, monkeypatch)
    (tmp_path / "runzip.yaml").write_text("source: windows-1251\nreport: log.jsonl\n")
    result = runner.invoke(app, ["fix", "--config", "runzip.yaml", "-n", "win.zip"])
    assert result.exit_code == 0, result.output

    rows = [orjson.loads(line) for line in (tmp_path / "log.jsonl").read_bytes().splitlines()]
    assert len(rows) == 1
    row = rows[0]
    assert row["archive"] == "win.zip"
    assert row["status_counts"]["would-fix"] == 1
    assert row["entry_details"][0]["source"] == "windows-1251"
    assert row["entry_details"][0]["original"] == PRIVET_1251.hex()

    summary = runner.invoke(app, ["summarize", "log.jsonl"])
    assert summary.exit_code == 0, summary.output
    assert '"archives": 1' in summary.output


def test_detect_command_explains_the_choice():
    result = runner.invoke(app, ["detect", "Привет.txt"])
    assert result.exit_code == 0, result.output
    assert "windows-1251 via frequency" in result.output
    assert "Candidates" in result.output


def test_detect_command_accepts_hex():
    raw = "Привет".encode("koi8_r").hex()
    result = runner.invoke(app, ["detect", "--hex", raw])
    assert result.exit_code == 0, result.output
    assert "koi8-r via frequency" in result.output


def test_eval_command_writes_report(tmp_path: Path):
    out = tmp_path / "eval.json"
    result = runner.invoke(app, ["eval", "--count", "4", "--output", str(out)])
    assert result.exit_code == 0, result.output
    payload = orjson.loads(out.read_bytes())
    assert payload["generator"] == {"count": 4, "seed": 1234}
    assert payload["evaluation"]["samples"] == 16
