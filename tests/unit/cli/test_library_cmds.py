"""Tests for speakit history, bookmarks and voices."""

from __future__ import annotations

from unittest.mock import patch

import yaml
from typer.testing import CliRunner

from speakit.cli.main import app
from speakit.config import StorageCfg
from speakit.db.models import Bookmark, HistoryRecord, SourceType
from speakit.speech import SpeechError, TimedEngine, VoiceDescriptor
from speakit.storage import open_store

runner = CliRunner()


def _store(cli_env, user=None):
    cfg = StorageCfg(guest_path=str(cli_env / "guest.json"), db_path=str(cli_env / "speakit.db"))
    return open_store(cfg, user)


def _record(id="h1", title="Fox Story"):
    return HistoryRecord(id=id, title=title, source_type=SourceType.URL, source_url="https://x.io")


# ---------------------------------------------------------------------------
# history
# ---------------------------------------------------------------------------


def test_history_empty(cli_env):
    result = runner.invoke(app, ["history"])
    assert result.exit_code == 0
    assert "No reading history yet" in result.output


def test_history_rejects_zero_history_limit(cli_env):
    settings = yaml.safe_load((cli_env / "speakit.yaml").read_text(encoding="utf-8"))
    settings["storage"]["history_limit"] = 0
    (cli_env / "speakit.yaml").write_text(yaml.dump(settings), encoding="utf-8")
    result = runner.invoke(app, ["history"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_history_lists_guest_entries(cli_env):
    store = _store(cli_env)
    store.add_history(_record("h1", "First"))
    store.add_history(_record("h2", "Second"))
    store.save_bookmark(Bookmark(content_key="h1", position=3, total_units=10))

    result = runner.invoke(app, ["history"])
    assert result.exit_code == 0, result.output
    assert "Guest" in result.output
    assert "First" in result.output
    assert "Second" in result.output
    assert "30%" in result.output
    assert result.output.index("Second") < result.output.index("First")


def test_history_limit(cli_env):
    store = _store(cli_env)
    for i in range(3):
        store.add_history(_record(f"h{i}", f"Title{i}"))
    result = runner.invoke(app, ["history", "-n", "1"])
    assert "Title2" in result.output
    assert "Title0" not in result.output


def test_history_scoped_to_account(cli_env):
    alice = _store(cli_env, "alice")
    alice.add_history(_record("h1", "AliceOnly"))
    alice.close()

    result = runner.invoke(app, ["history", "--user", "bob"])
    assert "AliceOnly" not in result.output
    result = runner.invoke(app, ["history", "--user", "alice"])
    assert "AliceOnly" in result.output
    assert "Account alice" in result.output


def test_history_user_from_env(cli_env, monkeypatch):
    alice = _store(cli_env, "alice")
    alice.add_history(_record("h1", "AliceOnly"))
    alice.close()
    monkeypatch.setenv("SPEAKIT_USER", "alice")
    result = runner.invoke(app, ["history"])
    assert "AliceOnly" in result.output


def test_history_delete_account_entry(cli_env):
    alice = _store(cli_env, "alice")
    alice.add_history(_record("h1"))
    alice.save_bookmark(Bookmark(content_key="h1", position=1, total_units=2))
    alice.close()

    result = runner.invoke(app, ["history", "--user", "alice", "--delete", "h1"])
    assert result.exit_code == 0, result.output
    assert "Deleted" in result.output

    alice = _store(cli_env, "alice")
    assert alice.get_history("h1") is None
    assert alice.get_bookmark("h1") is None
    alice.close()


def test_history_delete_unknown(cli_env):
    result = runner.invoke(app, ["history", "--user", "alice", "--delete", "nope"])
    assert result.exit_code == 1
    assert "No history entry 'nope'" in result.output


def test_history_delete_needs_account(cli_env):
    _store(cli_env).add_history(_record("h1"))
    result = runner.invoke(app, ["history", "--delete", "h1"])
    assert result.exit_code == 1
    assert "requires an account" in result.output
    assert _store(cli_env).get_history("h1") is not None


def test_history_corrupt_guest_file(cli_env):
    (cli_env / "guest.json").write_text("{broken")
    result = runner.invoke(app, ["history"])
    assert result.exit_code == 1
    assert "Cannot read guest store" in result.output


# ---------------------------------------------------------------------------
# bookmarks
# ---------------------------------------------------------------------------


def test_bookmarks_empty(cli_env):
    result = runner.invoke(app, ["bookmarks"])
    assert result.exit_code == 0
    assert "No bookmarks yet" in result.output


def test_bookmarks_listed(cli_env):
    _store(cli_env).save_bookmark(Bookmark(content_key="h1", position=3, total_units=10))
    result = runner.invoke(app, ["bookmarks"])
    assert result.exit_code == 0, result.output
    assert "3/10" in result.output
    assert "30%" in result.output


# ---------------------------------------------------------------------------
# voices
# ---------------------------------------------------------------------------


def test_voices_marks_default(cli_env):
    voices = [
        VoiceDescriptor(id="alex", name="Alex", language="en_US"),
        VoiceDescriptor(id="samantha", name="Samantha", language="en_US"),
    ]
    with patch("speakit.cli.library.build_engine", return_value=TimedEngine(voices=voices)):
        result = runner.invoke(app, ["voices"])
    assert result.exit_code == 0, result.output
    line = next(l for l in result.output.splitlines() if "Samantha" in l)
    assert "*" in line
    alex = next(l for l in result.output.splitlines() if "Alex" in l)
    assert "*" not in alex


def test_voices_timed_engine(cli_env):
    result = runner.invoke(app, ["voices", "--engine", "timed"])
    assert result.exit_code == 0, result.output
    assert "Silent" in result.output


def test_voices_none_reported(cli_env):
    with patch("speakit.cli.library.build_engine", return_value=TimedEngine(voices=[])):
        result = runner.invoke(app, ["voices"])
    assert result.exit_code == 0
    assert "No voices" in result.output


def test_voices_listing_failure(cli_env):
    engine = TimedEngine()
    with patch.object(engine, "list_voices", side_effect=SpeechError("espeak broke")), patch(
        "speakit.cli.library.build_engine", return_value=engine
    ):
        result = runner.invoke(app, ["voices"])
    assert result.exit_code == 1
    assert "espeak broke" in result.output


def test_unknown_engine(cli_env):
    result = runner.invoke(app, ["voices", "--engine", "festival"])
    assert result.exit_code == 1
    assert "Unknown engine" in result.output
