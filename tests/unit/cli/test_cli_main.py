"""Unit tests for subtl-cli."""

from __future__ import annotations

import ast
import inspect
import json
import textwrap
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

import subtl_cli.main as cli_main
from subtl_cli.main import app
from subtl_core.ports.llm import TranslationClientProtocol
from subtl_schemas.events import CommandEvent, JobEvent
from subtl_schemas.exit_codes import ExitCode
from subtl_schemas.llm import LlmPromptRequest, LlmPromptResponse
from subtl_schemas.logs import LogEntry
from tests.helpers.fakes import EchoTranslationClient

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)


def _write_config(tmp_path: Path, *, file_logs: bool = False) -> Path:
    sinks = '[{ type = "file" }]' if file_logs else '[{ type = "noop" }]'
    config_path = tmp_path / "subtl.toml"
    config_path.write_text(
        textwrap.dedent(
            f"""
            [language]
            target_language = "ja"

            [retry]
            max_retries = 0
            min_delay_s = 0.0

            [endpoint]
            base_url = "http://localhost:8045/v1"
            api_key_env = "SUBTL_TEST_KEY"

            [logging]
            sinks = {sinks}
            logs_dir = "logs"
            """
        ),
        encoding="utf-8",
    )
    return config_path


def _read_log_entries(path: Path) -> list[LogEntry]:
    entries: list[LogEntry] = []
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            if not line.strip():
                continue
            entries.append(LogEntry.model_validate_json(line))
    return entries


class _GarbageClient(TranslationClientProtocol):
    async def run_prompt(self, request: LlmPromptRequest) -> LlmPromptResponse:
        return LlmPromptResponse(model_id="broken", output_text="no list here")


def test_version_command() -> None:
    """Version command prints the package version."""
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "subtl v0.1.0" in result.stdout


def test_inspect_reports_structure(sample_srt_path: Path) -> None:
    """Inspect prints cue count, newline style and batch plan as JSON."""
    result = runner.invoke(
        app, ["inspect", str(sample_srt_path), "--batch-size", "1"]
    )

    assert result.exit_code == 0
    response = json.loads(result.stdout)
    assert response["error"] is None
    data = response["data"]
    assert data["cue_count"] == 2
    assert data["newline"] == "lf"
    assert data["batch_count"] == 2
    assert data["first_timing"] == "00:00:01,000 --> 00:00:02,000"


def test_inspect_malformed_file_exits_with_ingest_code(tmp_path: Path) -> None:
    """A file that is not SRT exits with the ingest error code."""
    path = tmp_path / "broken.srt"
    path.write_text("just some text\n", encoding="utf-8")

    result = runner.invoke(app, ["inspect", str(path)])

    assert result.exit_code == ExitCode.INGEST_ERROR
    response = json.loads(result.stdout)
    assert response["error"]["code"] == "format_error"


def test_translate_writes_output(
    tmp_path: Path, sample_srt_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Translate writes the translated copy and reports it."""
    config_path = _write_config(tmp_path, file_logs=True)
    monkeypatch.setenv("SUBTL_TEST_KEY", "secret")
    fake = EchoTranslationClient()

    with patch.object(
        cli_main, "OpenAICompatibleClient", MagicMock(return_value=fake)
    ) as client_cls:
        result = runner.invoke(
            app,
            [
                "translate",
                str(sample_srt_path),
                "--config",
                str(config_path),
                "--threads",
                "2",
            ],
        )

    assert result.exit_code == 0, result.stdout
    response = json.loads(result.stdout)
    data = response["data"]
    assert data["status"] == "done"
    assert data["cue_count"] == 2
    output = Path(data["output_path"])
    assert output.name == "episode_translated.srt"
    assert "T:Hello" in output.read_text(encoding="utf-8")
    assert client_cls.call_args.kwargs["api_key"] == "secret"
    assert "to Japanese" in fake.requests[0].prompt

    log_entries = _read_log_entries(Path(data["log_file"]))
    events = [entry.event for entry in log_entries]
    assert events[0] == CommandEvent.STARTED
    assert events[-1] == CommandEvent.COMPLETED
    assert JobEvent.COMPLETED in events
    job_ids = {str(entry.job_id) for entry in log_entries if entry.job_id}
    assert job_ids == {data["job_id"]}
    assert Path(data["progress_file"]).exists()


def test_translate_without_api_key_is_config_error(
    tmp_path: Path, sample_srt_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A missing API key exits with the config error code."""
    config_path = _write_config(tmp_path)
    monkeypatch.delenv("SUBTL_TEST_KEY", raising=False)

    result = runner.invoke(
        app, ["translate", str(sample_srt_path), "--config", str(config_path)]
    )

    assert result.exit_code == ExitCode.CONFIG_ERROR
    response = json.loads(result.stdout)
    assert response["error"]["code"] == "config_error"
    assert "SUBTL_TEST_KEY" in response["error"]["message"]
    assert not (tmp_path / "episode_translated.srt").exists()


def test_translate_reads_api_key_from_dotenv(
    tmp_path: Path, sample_srt_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """The API key may come from a .env file beside the config."""
    config_path = _write_config(tmp_path)
    # Registers the variable so teardown removes the value load_dotenv sets.
    monkeypatch.setenv("SUBTL_TEST_KEY", "placeholder")
    monkeypatch.delenv("SUBTL_TEST_KEY")
    (tmp_path / ".env").write_text("SUBTL_TEST_KEY=from-dotenv\n", encoding="utf-8")

    with patch.object(
        cli_main,
        "OpenAICompatibleClient",
        MagicMock(return_value=EchoTranslationClient()),
    ) as client_cls:
        result = runner.invoke(
            app, ["translate", str(sample_srt_path), "--config", str(config_path)]
        )
    assert result.exit_code == 0, result.stdout
    assert client_cls.call_args.kwargs["api_key"] == "from-dotenv"


def test_translate_rejects_invalid_batch_size(sample_srt_path: Path) -> None:
    """An out-of-range override exits with the validation error code."""
    result = runner.invoke(
        app, ["translate", str(sample_srt_path), "--batch-size", "0"]
    )

    assert result.exit_code == ExitCode.VALIDATION_ERROR
    response = json.loads(result.stdout)
    assert response["error"]["code"] == "validation_error"
    assert "batch.batch_size" in response["error"]["message"]


def test_translate_missing_explicit_config(
    tmp_path: Path, sample_srt_path: Path
) -> None:
    """An explicit config path that does not exist is a config error."""
    result = runner.invoke(
        app,
        [
            "translate",
            str(sample_srt_path),
            "--config",
            str(tmp_path / "missing.toml"),
        ],
    )

    assert result.exit_code == ExitCode.CONFIG_ERROR
    assert "Config not found" in json.loads(result.stdout)["error"]["message"]


def test_translate_failure_exits_with_translation_code(
    tmp_path: Path, sample_srt_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A batch that never parses fails the command with exit code 20."""
    config_path = _write_config(tmp_path)
    monkeypatch.setenv("SUBTL_TEST_KEY", "secret")
    with patch.object(
        cli_main, "OpenAICompatibleClient", MagicMock(return_value=_GarbageClient())
    ):
        result = runner.invoke(
            app, ["translate", str(sample_srt_path), "--config", str(config_path)]
        )

    assert result.exit_code == ExitCode.TRANSLATION_ERROR
    response = json.loads(result.stdout)
    assert response["error"]["code"] == "parse_error"
    assert response["error"]["message"].startswith("Batch 0 failed")
    assert not (tmp_path / "episode_translated.srt").exists()


def test_no_hardcoded_exit_codes() -> None:
    """CLI exits only through ExitCode values or response exit codes."""
    tree = ast.parse(inspect.getsource(cli_main))
    hardcoded_exits: list[int] = []

    class ExitCodeVisitor(ast.NodeVisitor):
        def visit_Call(self, node: ast.Call) -> None:
            if (
                isinstance(node.func, ast.Attribute)
                and isinstance(node.func.value, ast.Name)
                and node.func.value.id == "typer"
                and node.func.attr == "Exit"
            ):
                hardcoded_exits.extend(
                    node.lineno
                    for keyword in node.keywords
                    if keyword.arg == "code"
                    and isinstance(keyword.value, ast.Constant)
                    and isinstance(keyword.value.value, int)
                )
            self.generic_visit(node)

    ExitCodeVisitor().visit(tree)

    assert not hardcoded_exits, f"Hardcoded exit codes at lines {hardcoded_exits}"


def test_module_entrypoint_routes_to_app() -> None:
    """``python -m subtl`` runs the same Typer application."""
    import subtl.__main__ as module_entry

    assert module_entry.app is app
