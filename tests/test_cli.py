"""Behavior tests for CLI argument dispatch and exit semantics."""

import json
from pathlib import Path

import pytest

import replaysync.__main__ as cli

_ISOLATED_ENV = (
    "CALL_AUDIO_URL",
    "SESSION_START_TIME",
    "CALL_START_TIME",
    "CALL_END_TIME",
    "CALL_DURATION",
    "REPLAY_SESSION_ID",
)


def _patch_common_cli_dependencies(monkeypatch: pytest.MonkeyPatch) -> list[str | int | None]:
    """Patches shared CLI dependencies to keep tests deterministic."""
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    configured_levels: list[str | int | None] = []

    def _capture_log_level(level: str | int | None = None) -> int:
        configured_levels.append(level)
        return 0

    monkeypatch.setattr(cli, "configure_logging", _capture_log_level)
    return configured_levels


def _write_session(root: Path) -> Path:
    session_dir = root / "sid"
    session_dir.mkdir(parents=True)
    (session_dir / "000.jsonl").write_text(
        "\n".join(
            json.dumps(["sid", event])
            for event in (
                {"type": 4, "timestamp": 1000, "data": {"width": 390, "height": 699}},
                {"type": 2, "timestamp": 1000, "data": {"node": {"id": 1}}, "cv": "2024-10"},
                {"type": 3, "timestamp": 62000, "data": {"source": 2}, "delay": 4},
            )
        )
    )
    return root


def test_cli_log_level_flag_overrides_environment_level(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """`--log-level` should override LOG_LEVEL for the command invocation."""
    configured_levels = _patch_common_cli_dependencies(monkeypatch)
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    chunks = _write_session(tmp_path)
    monkeypatch.setattr(
        cli.sys,
        "argv",
        ["replaysync", "--chunks", str(chunks), "--session-id", "sid", "--no-summary", "--log-level", "DEBUG"],
    )

    cli.main()

    assert configured_levels[-1] == "DEBUG"


def test_cli_exits_with_error_when_chunks_are_missing(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """The CLI should return exit code 1 when the session cannot be loaded."""
    _patch_common_cli_dependencies(monkeypatch)
    monkeypatch.setattr(
        cli.sys,
        "argv",
        ["replaysync", "--chunks", str(tmp_path / "nowhere"), "--session-id", "sid"],
    )

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 1


def test_cli_exits_with_error_without_full_snapshot(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    _patch_common_cli_dependencies(monkeypatch)
    (tmp_path / "000.json").write_text(json.dumps([{"type": 3, "timestamp": 1}]))
    monkeypatch.setattr(cli.sys, "argv", ["replaysync", "--chunks", str(tmp_path)])

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 1


def test_cli_writes_assembled_events(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """`--output` should save events in replay wire shape without transport fields."""
    _patch_common_cli_dependencies(monkeypatch)
    chunks = _write_session(tmp_path / "chunks")
    output = tmp_path / "out" / "events.json"
    monkeypatch.setattr(
        cli.sys,
        "argv",
        ["replaysync", "--chunks", str(chunks), "--session-id", "sid", "--output", str(output), "--no-summary"],
    )

    cli.main()

    saved = json.loads(output.read_text())
    assert [event["type"] for event in saved] == [4, 2, 3]
    assert "cv" not in saved[1]
    assert "delay" not in saved[2]


def test_cli_prints_recording_overview_with_call_window(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _patch_common_cli_dependencies(monkeypatch)
    monkeypatch.setenv("CALL_AUDIO_URL", "https://calls.example/rec.mp3")
    monkeypatch.setenv("SESSION_START_TIME", "2025-09-02 20:00:00.000+00")
    monkeypatch.setenv("CALL_START_TIME", "2025-09-02 20:00:10.000")
    monkeypatch.setenv("CALL_DURATION", "30000")
    chunks = _write_session(tmp_path)
    monkeypatch.setattr(cli.sys, "argv", ["replaysync", "--chunks", str(chunks), "--session-id", "sid"])

    cli.main()

    out = capsys.readouterr().out
    assert "Recording length 1:01" in out
    assert "Call window 0:10 - 0:40 (https://calls.example/rec.mp3)" in out
    assert "Recording end" in out
    assert "full_state" in out


def test_cli_exits_with_error_for_unknown_session(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """A session id without its own chunk directory should not fall back to the root."""
    _patch_common_cli_dependencies(monkeypatch)
    chunks = _write_session(tmp_path)
    (chunks / "stray.json").write_text(json.dumps([{"type": 2, "timestamp": 1}]))
    monkeypatch.setattr(
        cli.sys, "argv", ["replaysync", "--chunks", str(chunks), "--session-id", "sdi"]
    )

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 1


def test_cli_recording_length_ignores_untimed_events(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _patch_common_cli_dependencies(monkeypatch)
    chunks = _write_session(tmp_path)
    (chunks / "sid" / "001.json").write_text(json.dumps([{"type": 5, "data": {"tag": "late"}}]))
    monkeypatch.setattr(cli.sys, "argv", ["replaysync", "--chunks", str(chunks), "--session-id", "sid"])

    cli.main()

    assert "Recording length 1:01" in capsys.readouterr().out
