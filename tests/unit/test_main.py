"""Tests for __main__.py: flag overrides, config errors, chat startup."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from confab.config import AIConfig, AppConfig, AppSettings, ChatConfig

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_config(tmp_path: Path, **chat) -> AppConfig:
    return AppConfig(
        ai=AIConfig(base_url="http://localhost:1234/v1", api_key="k", model="test-model"),
        chat=ChatConfig(user="alice", **chat),
        app=AppSettings(data_dir=tmp_path),
    )


def _run_main(argv: list[str]) -> None:
    from confab.__main__ import main

    with patch.object(sys, "argv", ["confab", *argv]):
        main()


class TestOverrides:
    def test_flags_override_config(self, tmp_path: Path) -> None:
        config = _make_config(tmp_path)
        with (
            patch("confab.__main__.load_config", return_value=config),
            patch("confab.__main__._configure_logging"),
            patch("confab.__main__._run_chat") as run_chat,
        ):
            _run_main(["-m", "gpt-4o", "--no-format", "-s", "native", "--multiline", "-t", ";;", "-u", "bob"])
        run_chat.assert_called_once_with(config)
        assert config.ai.model == "gpt-4o"
        assert config.chat.format_output is False
        assert config.chat.style == "native"
        assert config.chat.multiline is True
        assert config.chat.terminator == ";;"
        assert config.chat.user == "bob"

    def test_no_flags_keep_config(self, tmp_path: Path) -> None:
        config = _make_config(tmp_path, format_output=False)
        with (
            patch("confab.__main__.load_config", return_value=config),
            patch("confab.__main__._configure_logging"),
            patch("confab.__main__._run_chat"),
        ):
            _run_main([])
        assert config.ai.model == "test-model"
        assert config.chat.format_output is False

    def test_multiline_with_empty_terminator_exits(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config = _make_config(tmp_path)
        with (
            patch("confab.__main__.load_config", return_value=config),
            patch("confab.__main__._run_chat") as run_chat,
            pytest.raises(SystemExit) as exc_info,
        ):
            _run_main(["--multiline", "-t", ""])
        assert exc_info.value.code == 1
        run_chat.assert_not_called()
        assert "terminator" in capsys.readouterr().err


class TestConfigErrors:
    def test_config_error_prints_guide_and_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        with (
            patch("confab.__main__.load_config", side_effect=ValueError("AI base_url is required.")),
            pytest.raises(SystemExit) as exc_info,
        ):
            _run_main([])
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "Configuration error: AI base_url is required." in err
        assert "AI_CHAT_BASE_URL" in err

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        config = _make_config(tmp_path)
        cfg = tmp_path / "custom.yaml"
        with (
            patch("confab.__main__.load_config", return_value=config) as load,
            patch("confab.__main__._configure_logging"),
            patch("confab.__main__._run_chat"),
        ):
            _run_main(["--config", str(cfg)])
        load.assert_called_once_with(cfg)


class TestRunChat:
    def test_builds_chat_and_starts(self, tmp_path: Path) -> None:
        from confab.__main__ import _run_chat

        config = _make_config(tmp_path, multiline=True, terminator=";;")
        with (
            patch("confab.services.ai_service.AIService") as service_cls,
            patch("confab.cli.chat.Chat") as chat_cls,
            patch("confab.cli.renderer.render_welcome"),
        ):
            chat = chat_cls.return_value
            chat.__enter__.return_value = chat
            _run_chat(config)
        args, kwargs = chat_cls.call_args
        assert args[0] == "alice"
        options = args[2]
        assert options.model_id == "test-model"
        assert options.multiline is True
        assert options.terminator == ";;"
        assert kwargs["system_prefix"] == "!"
        assert kwargs["history_path"] == tmp_path / "cli_history"
        chat.start.assert_called_once()
        service_cls.return_value.close.assert_called_once()

    def test_history_file_disabled(self, tmp_path: Path) -> None:
        from confab.__main__ import _run_chat

        config = _make_config(tmp_path, history=False)
        with (
            patch("confab.services.ai_service.AIService"),
            patch("confab.cli.chat.Chat") as chat_cls,
            patch("confab.cli.renderer.render_welcome"),
        ):
            chat_cls.return_value.__enter__.return_value = chat_cls.return_value
            _run_chat(config)
        assert chat_cls.call_args.kwargs["history_path"] is None

    def test_editor_failure_exits(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        from confab.__main__ import _run_chat

        config = _make_config(tmp_path)
        with (
            patch("confab.services.ai_service.AIService") as service_cls,
            patch("confab.cli.chat.Chat", side_effect=OSError("not a terminal")),
            pytest.raises(SystemExit) as exc_info,
        ):
            _run_chat(config)
        assert exc_info.value.code == 1
        assert "not a terminal" in capsys.readouterr().err
        service_cls.return_value.close.assert_called_once()

    def test_unknown_style_exits(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        from confab.__main__ import _run_chat

        config = _make_config(tmp_path, style="no-such-style")
        with pytest.raises(SystemExit) as exc_info:
            _run_chat(config)
        assert exc_info.value.code == 1
        assert "no-such-style" in capsys.readouterr().err


class TestConnectionTest:
    def test_success(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        from confab.__main__ import _test_connection

        service = MagicMock()
        service.validate_connection.return_value = (True, "Connected successfully", ["test-model"])
        service.complete.return_value = "Hello there."
        with patch("confab.services.ai_service.AIService", return_value=service):
            _test_connection(_make_config(tmp_path))
        out = capsys.readouterr().out
        assert "OK - 1 model(s) available" in out
        assert "Hello there." in out
        assert "All checks passed." in out

    def test_failure_exits(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        from confab.__main__ import _test_connection

        service = MagicMock()
        service.validate_connection.return_value = (False, "Authentication failed. Check your API key.", [])
        with (
            patch("confab.services.ai_service.AIService", return_value=service),
            pytest.raises(SystemExit) as exc_info,
        ):
            _test_connection(_make_config(tmp_path))
        assert exc_info.value.code == 1
        assert "FAILED - Authentication failed" in capsys.readouterr().out


class TestLogging:
    def test_log_file_in_data_dir(self, tmp_path: Path) -> None:
        from confab.__main__ import _configure_logging

        with patch("confab.__main__.logging.basicConfig") as basic:
            _configure_logging(_make_config(tmp_path), debug=True)
        kwargs = basic.call_args.kwargs
        assert kwargs["filename"] == str(tmp_path / "confab.log")
        assert kwargs["level"] == logging.DEBUG
