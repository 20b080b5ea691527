"""Tests for the memoria CLI."""

import json
from pathlib import Path

import pytest

from memoria.cli import create_parser, run_cli

SINK = "He once tried to fix a leaky sink and flooded the kitchen"


@pytest.fixture
def cli(tmp_path: Path, monkeypatch):
    """Run the CLI against a temporary database without an API key."""
    monkeypatch.setenv("MEMORIA_DB_PATH", str(tmp_path / "memoria.db"))
    monkeypatch.setenv("MEMORIA_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.delenv("MEMORIA_COOLDOWN_SECONDS", raising=False)
    config_path = str(tmp_path / "config.json")

    def run(*argv: str) -> int:
        return run_cli(["--config", config_path, *argv])

    return run


def last_word(out: str) -> str:
    return out.strip().splitlines()[-1].split()[-1]


@pytest.fixture
def memorial_id(cli, capsys) -> str:
    assert cli("memorial", "create", "--name", "Chris Doe", "--owner", "owner-1",
               "--tone", "humorous") == 0
    return last_word(capsys.readouterr().out)


class TestParser:
    """Tests for argument parsing."""

    def test_no_command_prints_help(self, capsys):
        assert run_cli([]) == 0
        assert "usage: memoria" in capsys.readouterr().out

    def test_group_without_action_fails(self, cli):
        assert cli("memory") == 1

    def test_rejects_unknown_tone(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(
                ["memorial", "create", "--name", "A", "--owner", "u", "--tone", "sarcastic"]
            )


class TestMemorialCommands:
    """Tests for memorial subcommands."""

    def test_init(self, cli, tmp_path: Path, capsys):
        assert cli("init") == 0
        assert (tmp_path / "memoria.db").exists()
        assert "Initialized database" in capsys.readouterr().out

    def test_create_and_show(self, cli, memorial_id, capsys):
        assert cli("memorial", "show", memorial_id) == 0

        out = capsys.readouterr().out
        assert "Memorial: Chris Doe" in out
        assert "Tone: humorous" in out
        assert "No narrative yet." in out

    def test_show_missing(self, cli, capsys):
        assert cli("memorial", "show", "missing") == 1
        assert "not found" in capsys.readouterr().out

    def test_voice_by_owner(self, cli, memorial_id, capsys):
        assert cli("memorial", "voice", memorial_id, "--user", "owner-1", "--style", "poetic") == 0
        assert "humorous, poetic" in capsys.readouterr().out

    def test_voice_by_stranger(self, cli, memorial_id, capsys):
        assert cli("memorial", "voice", memorial_id, "--user", "eve", "--tone", "warm") == 1
        assert "permission" in capsys.readouterr().out

    def test_voice_needs_an_option(self, cli, memorial_id):
        assert cli("memorial", "voice", memorial_id, "--user", "owner-1") == 1


class TestMemoryCommands:
    """Tests for memory subcommands."""

    def test_add_and_list(self, cli, memorial_id, capsys):
        assert cli("memory", "add", memorial_id, "--content", SINK, "--contributor", "Chris",
                   "--relationship", "cousin", "--emotion", "funny") == 0
        capsys.readouterr()

        assert cli("memory", "list", memorial_id) == 0
        out = capsys.readouterr().out
        assert "Chris" in out
        assert "Total: 1 memory(ies)" in out

    def test_add_to_missing_memorial(self, cli, capsys):
        assert cli("memory", "add", "missing", "--content", "text") == 1

    def test_list_empty(self, cli, memorial_id, capsys):
        assert cli("memory", "list", memorial_id) == 0
        assert "No memories yet." in capsys.readouterr().out

    def test_delete_by_contributor(self, cli, memorial_id, capsys):
        cli("memory", "add", memorial_id, "--content", "text", "--contributor-id", "sam")
        memory_id = last_word(capsys.readouterr().out)

        assert cli("memory", "delete", memory_id, "--user", "sam") == 0
        assert cli("memory", "delete", memory_id, "--user", "sam") == 1


class TestNarrateCommand:
    """Tests for narrate."""

    def test_narrate_without_key_uses_fallback(self, cli, memorial_id, capsys):
        cli("memory", "add", memorial_id, "--content", SINK, "--contributor", "Chris")
        capsys.readouterr()

        assert cli("narrate", memorial_id, "--user", "owner-1") == 0

        out = capsys.readouterr().out
        assert f'"{SINK}"' in out
        assert "Chris" in out

    def test_narrate_json_and_rate_limit(self, cli, memorial_id, capsys):
        cli("memory", "add", memorial_id, "--content", SINK)
        cli("narrate", memorial_id, "--user", "owner-1")
        capsys.readouterr()

        assert cli("narrate", memorial_id, "--user", "owner-1", "--json") == 1

        data = json.loads(capsys.readouterr().out)
        assert data["success"] is False
        assert data["errorKind"] == "rate_limited"
        assert 0 < data["timeRemaining"] <= 300

    def test_narrate_without_memories(self, cli, memorial_id, capsys):
        assert cli("narrate", memorial_id, "--user", "owner-1") == 1
        assert "add memories" in capsys.readouterr().out

    def test_narrate_saves_narrative(self, cli, memorial_id, capsys):
        cli("memory", "add", memorial_id, "--content", SINK)
        cli("narrate", memorial_id, "--user", "owner-1")
        capsys.readouterr()

        cli("memorial", "show", memorial_id)
        assert "No narrative yet." not in capsys.readouterr().out

    def test_narrate_writes_event_log(self, cli, memorial_id, tmp_path: Path):
        cli("memory", "add", memorial_id, "--content", SINK)
        cli("narrate", memorial_id, "--user", "owner-1")

        lines = (tmp_path / "logs" / "logs.jsonl").read_text(encoding="utf-8").splitlines()
        events = [json.loads(line)["event"] for line in lines]
        assert "narrative_generated" in events
        assert "provider_error" in events
