"""Tests for the paced-chat command line."""

from __future__ import annotations

import json

import pytest
import yaml

from paced_chat.cli.main import build_parser, main
from paced_chat.core.session import Session
from paced_chat.storage import FilesystemStore
from paced_chat.types import Message, Origin


@pytest.fixture
def state_root(tmp_path):
    return tmp_path / "state"


@pytest.fixture
def config_file(tmp_path, state_root):
    path = tmp_path / "paced-chat.yaml"
    path.write_text(yaml.safe_dump({
        # nothing listens on the discard port, so every exchange fails fast
        "gateway": {"url": "http://127.0.0.1:9/webhook/chat", "timeout": 2},
        "pacing": {
            "segment_typing_delay": 0,
            "inter_segment_delay": 0,
            "inter_turn_delay": 0,
        },
        "storage": {"backend": "filesystem", "root": str(state_root)},
    }))
    return str(path)


def seed_history(state_root) -> str:
    session = Session.open(FilesystemStore(root=state_root))
    session.log_store.save(session.id, [
        Message(Origin.USER, "Do you offer financing?"),
        Message(Origin.AGENT, "Yes! We have flexible options."),
    ])
    return session.id


class TestParser:
    def test_chat_flags(self):
        args = build_parser().parse_args(
            ["chat", "--replay", "p.txt", "--headless", "--burst", "-o", "out"]
        )
        assert args.command == "chat"
        assert args.replay == "p.txt"
        assert args.headless and args.burst
        assert args.output == "out"

    def test_no_command(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1


class TestRender:
    def test_render_argument(self, capsys):
        main(["render", "**x** and *y*"])
        assert capsys.readouterr().out == "<strong>x</strong> and <em>y</em>\n"

    def test_render_stdin(self, capsys, monkeypatch):
        import io

        monkeypatch.setattr("sys.stdin", io.StringIO("a\nb"))
        main(["render"])
        assert capsys.readouterr().out == "a<br />b\n"


class TestHistory:
    def test_empty(self, config_file, capsys):
        main(["--config", config_file, "history"])
        assert "No conversation stored" in capsys.readouterr().out

    def test_lists_messages(self, config_file, state_root, capsys):
        session_id = seed_history(state_root)
        main(["--config", config_file, "history"])
        out = capsys.readouterr().out
        assert f"Session: {session_id} (2 messages)" in out
        assert "You: Do you offer financing?" in out
        assert "Agent: Yes! We have flexible options." in out

    def test_json(self, config_file, state_root, capsys):
        seed_history(state_root)
        main(["--config", config_file, "history", "--json"])
        data = json.loads(capsys.readouterr().out)
        assert [m["type"] for m in data] == ["user", "bot"]

    def test_undecodable_state_file(self, config_file, state_root, capsys):
        state_root.mkdir()
        (state_root / "session.json").write_bytes(b"\xff\xfe\x00garbage")
        main(["--config", config_file, "history"])
        assert "No conversation stored" in capsys.readouterr().out


class TestReset:
    def test_reset_clears_session(self, config_file, state_root, capsys):
        session_id = seed_history(state_root)
        main(["--config", config_file, "reset"])
        assert f"Session {session_id} cleared." in capsys.readouterr().out
        assert not (state_root / "session.json").exists()


class TestConfigValidate:
    def test_valid(self, config_file, capsys):
        main(["--config", config_file, "config", "validate"])
        out = capsys.readouterr().out
        assert "Config is valid." in out
        assert "Storage:   filesystem" in out

    def test_invalid(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("gateway:\n  url: ftp://nowhere\n  timeout: 0\n")
        with pytest.raises(SystemExit) as exc:
            main(["--config", str(path), "config", "validate"])
        assert exc.value.code == 1
        out = capsys.readouterr().out
        assert "gateway.url" in out
        assert "gateway.timeout" in out

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--config", str(tmp_path / "nope.yaml"), "config", "validate"])
        assert exc.value.code == 1
        assert "Error loading config" in capsys.readouterr().err

    def test_empty_yaml_sections_validate(self, tmp_path, capsys):
        path = tmp_path / "paced-chat.yaml"
        path.write_text("gateway:\nquick_questions:\n")
        main(["--config", str(path), "config", "validate"])
        assert "Config is valid." in capsys.readouterr().out

    def test_non_mapping_config_reported(self, tmp_path, capsys):
        path = tmp_path / "paced-chat.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(SystemExit) as exc:
            main(["--config", str(path), "config", "validate"])
        assert exc.value.code == 1
        assert "must contain a mapping" in capsys.readouterr().err


class TestHeadlessChat:
    def test_requires_replay(self, config_file):
        with pytest.raises(SystemExit) as exc:
            main(["--config", config_file, "chat", "--headless"])
        assert exc.value.code == 1

    def test_replay_with_unreachable_gateway(self, config_file, tmp_path):
        prompts = tmp_path / "prompts.txt"
        prompts.write_text("Do you offer financing?\n")
        out_dir = tmp_path / "out"
        out_dir.mkdir()

        main([
            "--config", config_file, "chat",
            "--replay", str(prompts), "--headless", "-o", str(out_dir),
        ])

        data = json.loads((out_dir / "chat-transcript.json").read_text())
        texts = [m["text"] for m in data["messages"]]
        assert texts[1] == "Do you offer financing?"
        assert "(615)-285-6193" in texts[2]
