"""Tests for the headless replay runner and transcript helpers."""

from __future__ import annotations

import json

import pytest

from conftest import FakeGateway
from paced_chat.tui.headless import HeadlessRunner
from paced_chat.tui.state import TRANSCRIPT_FILENAME, load_replay_prompts, save_transcript
from paced_chat.types import Message, Origin


class TestHeadlessSequential:
    @pytest.mark.asyncio
    async def test_each_prompt_gets_its_reply(self, make_engine, config):
        gateway = FakeGateway(["Reply A.", "Reply B."], config=config)
        engine = make_engine(gateway)
        messages = await HeadlessRunner(engine, echo=False).run(["hello", "goodbye"])

        assert [(m.origin, m.text) for m in messages] == [
            (Origin.AGENT, config.replies.welcome),
            (Origin.USER, "hello"),
            (Origin.AGENT, "Reply A."),
            (Origin.USER, "goodbye"),
            (Origin.AGENT, "Reply B."),
        ]

    @pytest.mark.asyncio
    async def test_no_cooldown_between_turns(self, make_engine, config, sleep):
        engine = make_engine(FakeGateway(["ok"], config=config))
        await HeadlessRunner(engine, echo=False).run(["a", "b", "c"])
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_timings_recorded(self, make_engine):
        runner = HeadlessRunner(make_engine(), echo=False)
        await runner.run(["a", "b"])
        assert len(runner.timings) == 2

    @pytest.mark.asyncio
    async def test_echo_to_stderr(self, make_engine, capsys):
        await HeadlessRunner(make_engine()).run(["hello"])
        err = capsys.readouterr().err
        assert "You: hello" in err
        assert "Agent: Hello! I'm a test agent." in err


class TestHeadlessBurst:
    @pytest.mark.asyncio
    async def test_burst_queues_behind_first(self, make_engine, config, sleep):
        gateway = FakeGateway(["Reply A.", "Reply B."], config=config)
        engine = make_engine(gateway)
        messages = await HeadlessRunner(engine, burst=True, echo=False).run(["a", "b"])

        assert [m.text for m in messages[1:]] == ["a", "b", "Reply A.", "Reply B."]
        assert gateway.texts == ["a", "b"]
        assert gateway.max_in_flight == 1
        assert sleep.calls == [config.pacing.inter_turn_delay]


class TestHeadlessTranscript:
    @pytest.mark.asyncio
    async def test_transcript_written(self, make_engine, tmp_path):
        engine = make_engine()
        await HeadlessRunner(engine, echo=False).run(["hello"], output=tmp_path)

        data = json.loads((tmp_path / TRANSCRIPT_FILENAME).read_text())
        assert data["session_id"] == engine.session.id
        assert data["total_messages"] == 3
        assert data["messages"][1] == {
            "type": "user",
            "text": "hello",
            "timestamp": data["messages"][1]["timestamp"],
        }

    @pytest.mark.asyncio
    async def test_no_output_no_file(self, make_engine, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        await HeadlessRunner(make_engine(), echo=False).run(["hello"])
        assert not (tmp_path / TRANSCRIPT_FILENAME).exists()


class TestLoadReplayPrompts:
    def test_from_transcript(self, tmp_path):
        messages = [
            Message(Origin.AGENT, "Welcome"),
            Message(Origin.USER, "first"),
            Message(Origin.AGENT, "reply"),
            Message(Origin.USER, "second"),
        ]
        path = save_transcript(messages, "user_abc", directory=tmp_path)
        assert load_replay_prompts(path) == ["first", "second"]

    def test_from_text_file(self, tmp_path):
        path = tmp_path / "prompts.txt"
        path.write_text("hello\n\n  how are you  \ngoodbye\n")
        assert load_replay_prompts(path) == ["hello", "how are you", "goodbye"]

    def test_from_json_list(self, tmp_path):
        path = tmp_path / "prompts.json"
        path.write_text(json.dumps(["a", "", "b", 3]))
        assert load_replay_prompts(path) == ["a", "b"]
