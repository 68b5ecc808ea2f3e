"""Tests for the errlens command line and interactive shell."""

import asyncio
from datetime import datetime, timezone

import pytest

from errlens import main as cli
from errlens.catalog import ExplanationStyle, SnippetCatalog
from errlens.prompts import PromptFormatter
from errlens.session.cache import ExplanationCache
from errlens.session.controller import SessionController
from errlens.session.feedback import FeedbackRecord, FeedbackStore
from errlens.session.identity import Identity
from errlens.session.state import ResultView


@pytest.fixture(autouse=True)
def plain_env(monkeypatch):
    for name in ("LLM_PROVIDER", "ERRLENS_FEEDBACK_PATH", "ERRLENS_LOCK_POLICY", "ERRLENS_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ERRLENS_RICH", "0")


class CannedClient:

    def __init__(self):
        self.calls = 0

    async def generate(self, model, system_instruction, user_prompt, options=None):
        self.calls += 1
        return f"**Explanation** for {model}"


def scripted_input(monkeypatch, commands):
    remaining = list(commands)

    def fake_input(prompt=""):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    monkeypatch.setattr(cli.console, "input", fake_input)


def make_controller(tmp_path, client):
    return SessionController(
        catalog=SnippetCatalog(),
        formatter=PromptFormatter(),
        client=client,
        cache=ExplanationCache(),
        store=FeedbackStore(tmp_path / "feedback.json"),
    )


def make_record():
    return FeedbackRecord(
        identity=Identity("snippet-2", ExplanationStyle.CONTINGENT, "phi3:latest"),
        snippet_name="division_zero.py",
        answers={"comprehensible": True, "correct": False},
        submitted_at=datetime(2026, 2, 1, tzinfo=timezone.utc),
    )


class TestSubcommands:

    def test_snippets(self, capsys):
        assert cli.main(["snippets"]) == 0
        out = capsys.readouterr().out
        assert "list_index.py" in out
        assert "pragmatic" in out

    def test_export_empty(self, tmp_path, capsys):
        out_file = tmp_path / "out.csv"
        code = cli.main(["--feedback-path", str(tmp_path / "fb.json"), "export", str(out_file)])

        assert code == 0
        assert not out_file.exists()
        assert "No feedback" in capsys.readouterr().out

    def test_export_records(self, tmp_path, monkeypatch):
        feedback = tmp_path / "fb.json"
        FeedbackStore(feedback).append(make_record())
        monkeypatch.setenv("ERRLENS_FEEDBACK_PATH", str(feedback))
        out_file = tmp_path / "out.csv"

        assert cli.main(["export", str(out_file)]) == 0

        lines = out_file.read_text().splitlines()
        assert lines[0].endswith("comprehensible,correct")
        assert lines[1].startswith("snippet-2,division_zero.py,contingent,phi3:latest,")
        assert lines[1].endswith("true,false")

    def test_export_unwritable_target(self, tmp_path, capsys):
        feedback = tmp_path / "fb.json"
        FeedbackStore(feedback).append(make_record())
        target = tmp_path / "nope" / "out.csv"

        code = cli.main(["--feedback-path", str(feedback), "export", str(target)])

        assert code == 1
        assert not target.exists()
        assert "Export failed" in capsys.readouterr().out

    def test_corrupt_feedback_file(self, tmp_path):
        feedback = tmp_path / "fb.json"
        feedback.write_text("not json at all")
        assert cli.main(["--feedback-path", str(feedback), "export"]) == 1
        assert feedback.read_text() == "not json at all"

    def test_bad_configuration(self, monkeypatch):
        monkeypatch.setenv("ERRLENS_LOCK_POLICY", "sometimes")
        assert cli.main(["snippets"]) == 1


class TestSession:

    @pytest.mark.asyncio
    async def test_improve_then_quit_waits(self, tmp_path, monkeypatch):
        client = CannedClient()
        controller = make_controller(tmp_path, client)
        scripted_input(monkeypatch, ["improve", "quit"])

        assert await cli.run_session(controller) == 0

        assert client.calls == 1
        view = controller.view()
        assert view.explanation is not None
        assert view.active_tab is ResultView.IMPROVED

    @pytest.mark.asyncio
    async def test_selection_commands(self, tmp_path, monkeypatch):
        controller = make_controller(tmp_path, CannedClient())
        scripted_input(monkeypatch, [
            "tab 3",
            "style contingent",
            "model 2",
            "error",
            "view sideways",
            "dance",
            "",
        ])

        assert await cli.run_session(controller) == 0

        state = controller.state
        assert state.snippet_id == "snippet-3"
        assert state.style.value == "contingent"
        assert state.model == controller.models[1]
        assert state.error_panel_visible

    @pytest.mark.asyncio
    async def test_feedback_flow(self, tmp_path, monkeypatch):
        controller = make_controller(tmp_path, CannedClient())
        await controller.request_generation()
        replies = iter(["y", "n", "y", "y", "n"])
        monkeypatch.setattr(cli.Prompt, "ask", lambda *a, **kw: next(replies))
        scripted_input(monkeypatch, ["feedback"])

        await cli.run_session(controller)

        [record] = controller.store.records
        assert record.answers == {
            "comprehensible": True,
            "correct": False,
            "improvement": True,
            "hasHint": True,
            "hintCorrect": False,
        }
        assert controller.view().can_generate

    @pytest.mark.asyncio
    async def test_failed_export_keeps_session(self, tmp_path, monkeypatch, capsys):
        controller = make_controller(tmp_path, CannedClient())
        await controller.request_generation()
        controller.store.append(make_record())
        scripted_input(monkeypatch, [f"export {tmp_path}", "tab 2"])

        assert await cli.run_session(controller) == 0

        assert "Export failed" in capsys.readouterr().out
        assert controller.state.snippet_id == "snippet-2"
        assert len(controller.cache) == 1

    @pytest.mark.asyncio
    async def test_generation_render_waits_for_console(self, tmp_path, monkeypatch):
        controller = make_controller(tmp_path, CannedClient())
        rendered = []
        monkeypatch.setattr(cli, "render_view", lambda c: rendered.append(c.view()))
        console_lock = asyncio.Lock()

        async with console_lock:
            task = asyncio.create_task(cli._generate(controller, console_lock))
            for _ in range(10):
                await asyncio.sleep(0)
            assert controller.view().explanation is not None
            assert rendered == []

        await task
        assert len(rendered) == 1

    @pytest.mark.asyncio
    async def test_feedback_cancel(self, tmp_path, monkeypatch):
        controller = make_controller(tmp_path, CannedClient())
        await controller.request_generation()
        replies = iter(["y", "c"])
        monkeypatch.setattr(cli.Prompt, "ask", lambda *a, **kw: next(replies))
        scripted_input(monkeypatch, ["feedback"])

        await cli.run_session(controller)

        assert len(controller.store) == 0
        assert not controller.state.feedback_open
        assert not controller.view().can_generate


class TestResolve:

    def test_snippet_by_number_name_or_id(self, tmp_path):
        controller = make_controller(tmp_path, CannedClient())
        assert cli._resolve_snippet(controller, "2") == "snippet-2"
        assert cli._resolve_snippet(controller, "key_error.py") == "snippet-3"
        assert cli._resolve_snippet(controller, "snippet-4") == "snippet-4"
        assert cli._resolve_snippet(controller, "9") == "9"

    def test_model_by_number(self, tmp_path):
        controller = make_controller(tmp_path, CannedClient())
        assert cli._resolve_model(controller, "1") == controller.models[0]
        assert cli._resolve_model(controller, "phi3:latest") == "phi3:latest"
