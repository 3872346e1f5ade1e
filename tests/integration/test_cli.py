import asyncio
import json

import pytest
from typer.testing import CliRunner

from archivist.analysis import format
from archivist.archives.api import lifecycle, records
from archivist.cli import app
from archivist.lib.store import MemoryRecordStore, default_store
from archivist.models import ArchiveRecord, ChannelRef

runner = CliRunner()


@pytest.fixture
def seeded():
    record = ArchiveRecord(
        name="Alice",
        author_id="111",
        channels=[ChannelRef("1", "block-examples")],
        created_at="2024-01-01T00:00:00+00:00",
    )
    asyncio.run(records.save_archive(default_store(), record))
    return record


def test_no_args_shows_help():
    result = runner.invoke(app, [])

    assert result.exit_code == 0
    assert "archives" in result.output


def test_init_creates_config(archivist_home):
    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0
    assert (archivist_home / "config.yaml").exists()
    assert "Next steps:" in result.output


def test_invalid_config_is_reported(archivist_home):
    archivist_home.mkdir(parents=True)
    (archivist_home / "config.yaml").write_text("mute_max_days: soon\n")

    result = runner.invoke(app, ["archives", "list"])

    assert result.exit_code == 1
    assert "Invalid config at" in result.output


def test_archives_defaults_to_list():
    result = runner.invoke(app, ["archives"])

    assert result.exit_code == 0
    assert "No archives found" in result.output


def test_archives_list_json(seeded):
    result = runner.invoke(app, ["--json", "archives", "list"])

    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data[0]["name"] == "Alice"
    assert data[0]["authorId"] == "111"


def test_archives_show(seeded):
    result = runner.invoke(app, ["archives", "show", "alice"])

    assert result.exit_code == 0
    assert "Alice (enabled)" in result.output
    assert "#block-examples (1)" in result.output


def test_archives_show_missing():
    result = runner.invoke(app, ["archives", "show", "nope"])

    assert result.exit_code == 1
    assert "No archive named 'nope'" in result.output


def test_archives_search(seeded):
    hit = runner.invoke(app, ["archives", "search", "BLOCK"])
    miss = runner.invoke(app, ["archives", "search", "entity"])

    assert "Alice" in hit.output
    assert "No archives match 'entity'" in miss.output


def test_archives_info(seeded):
    result = runner.invoke(app, ["archives", "info", "--author", "111"])

    assert result.exit_code == 0
    assert "Examples: 1" in result.output
    assert "Categories: block" in result.output
    assert "Alice's Archive" in result.output


def test_archives_info_json(seeded):
    result = runner.invoke(app, ["archives", "--json", "info", "--name", "Alice"])

    data = json.loads(result.stdout)
    assert data["archives"] == ["Alice"]
    assert data["stats"]["total_archives"] == 1


def test_delete_requires_yes(seeded):
    result = runner.invoke(app, ["archives", "delete", "Alice"])

    assert result.exit_code == 1
    assert "Refusing to delete 'Alice' without --yes" in result.output


def test_remote_commands_need_token():
    result = runner.invoke(app, ["archives", "create", "111"])

    assert result.exit_code == 1
    assert "Set ARCHIVIST_TOKEN to the bot token" in result.output


def test_create_disable_delete(fake_gateway):
    created = runner.invoke(app, ["archives", "create", "111"])
    assert created.exit_code == 0
    assert "✓ Created Alice's Archive with 17 topic channels" in created.output

    disabled = runner.invoke(app, ["archives", "disable", "Alice"])
    assert disabled.exit_code == 0
    shown = runner.invoke(app, ["--json", "archives", "show", "Alice"])
    assert json.loads(shown.stdout)["enabled"] is False

    deleted = runner.invoke(app, ["archives", "delete", "Alice", "--yes"])
    assert deleted.exit_code == 0
    assert "✓ delete 'Alice' completed" in deleted.output
    assert fake_gateway.channels == {}
    assert "No archives found" in runner.invoke(app, ["archives", "list"]).output


def test_create_unknown_member(fake_gateway):
    result = runner.invoke(app, ["archives", "create", "404"])

    assert result.exit_code == 1
    assert "Member 404 is not in this guild" in result.output


def test_scan_and_sync(fake_gateway, alice):
    asyncio.run(lifecycle.create(MemoryRecordStore(), fake_gateway, alice))

    dry = runner.invoke(app, ["archives", "scan"])
    assert "+ Alice (on server, not stored)" in dry.output

    synced = runner.invoke(app, ["archives", "scan", "--sync"])
    assert "Synced 1, removed 0, updated 0" in synced.output

    again = runner.invoke(app, ["archives", "scan"])
    assert "✓ Store is in sync with the server" in again.output


def test_analyze_reports_warnings(tmp_path):
    script = tmp_path / "main.js"
    script.write_text("var x = 1\n")

    result = runner.invoke(app, ["analyze", str(script)])

    assert result.exit_code == 0
    assert "⚠️ Warnings" in result.output
    assert "instead of 'var'" in result.output


def test_analyze_syntax_error_exits_nonzero(tmp_path):
    script = tmp_path / "broken.js"
    script.write_text("function (\n")

    result = runner.invoke(app, ["analyze", str(script)])

    assert result.exit_code == 1
    assert "❌ Syntax Errors" in result.output


def test_analyze_json(tmp_path):
    script = tmp_path / "main.js"
    script.write_text('import { world } from "@minecraft/server";\nworld.sendMessage("hi");\n')

    result = runner.invoke(app, ["analyze", str(script), "--json"])

    data = json.loads(result.stdout)
    assert data["errors"] == []
    assert "World API usage detected" in data["domainNotes"]


def test_analyze_chat_message(tmp_path):
    message = tmp_path / "message.txt"
    message.write_text("can someone check this?\n```js\nconst a = 1;\n```\n")

    result = runner.invoke(app, ["analyze", "--message", str(message)])

    assert result.exit_code == 0
    assert format.ALL_CLEAR in result.output


def test_analyze_stdin():
    result = runner.invoke(app, ["analyze", "-", "--preview"], input="const a = 1;\n")

    assert result.exit_code == 0
    assert "📝 Code Preview" in result.output


def test_analyze_empty_input(tmp_path):
    script = tmp_path / "empty.js"
    script.write_text("   \n")

    result = runner.invoke(app, ["analyze", str(script)])

    assert result.exit_code == 1
    assert "No code found in the input" in result.output


def test_fix_prints_fixed_source(tmp_path):
    script = tmp_path / "main.js"
    script.write_text("var x = 1\n")

    assert runner.invoke(app, ["fix", str(script)]).stdout == "let x = 1;\n"
    assert runner.invoke(app, ["fix", str(script), "--no-modernize"]).stdout == "var x = 1;\n"


def test_fix_write(tmp_path):
    script = tmp_path / "main.js"
    script.write_text("var x = 1\n")

    first = runner.invoke(app, ["fix", str(script), "--write"])
    second = runner.invoke(app, ["fix", str(script), "--write"])

    assert script.read_text() == "let x = 1;\n"
    assert "updated" in first.output
    assert "already clean" in second.output


def test_mute_invalid_duration():
    result = runner.invoke(app, ["mute", "222", "soon"])

    assert result.exit_code == 1
    assert "Invalid time format" in result.output


def test_mute_needs_token():
    result = runner.invoke(app, ["mute", "222", "10m"])

    assert result.exit_code == 1
    assert "Set ARCHIVIST_TOKEN" in result.output


def test_mute(fake_gateway):
    result = runner.invoke(app, ["mute", "222", "10m", "--reason", "spam"])

    assert result.exit_code == 0
    assert "Successfully muted bob_builder\nReason: spam\nTime: 10m." in result.output
    assert fake_gateway.timeouts[0][0] == "222"


def test_mute_server_owner(fake_gateway):
    fake_gateway.owner = "222"

    result = runner.invoke(app, ["mute", "222", "10m"])

    assert result.exit_code == 1
    assert "You cannot mute the server owner." in result.output
