"""Unit tests for the ``streamchat`` runner."""

import sys
from unittest.mock import MagicMock, patch

from streamchat import main as runner_main
from streamchat.settings import RunMode, RunnerConfig, ServerConfig


def make_configs() -> tuple[RunnerConfig, ServerConfig]:
    runner = RunnerConfig(mode=RunMode.SEPARATE, host="0.0.0.0", port=9000, ui_port=9001, log_level="debug")
    server = ServerConfig(database_url="sqlite+aiosqlite:///srv/chats.db", stream_idle_timeout=15, cors_origins=["*"])
    return runner, server


class TestChildProcesses:
    """Tests for the separate-mode process layout."""

    def test_api_process(self) -> None:
        """The API child binds the configured host and port and gets the server settings."""
        runner, server = make_configs()

        [(name, cmd, env), _] = runner_main.child_processes(runner, server)

        assert name == "api"
        assert cmd[:3] == [sys.executable, "-m", "uvicorn"]
        assert cmd[cmd.index("--port") + 1] == "9000"
        assert env["DATABASE_URL"] == "sqlite+aiosqlite:///srv/chats.db"
        assert env["STREAM_IDLE_TIMEOUT"] == "15.0"
        assert env["LOG_LEVEL"] == "DEBUG"

    def test_ui_process(self) -> None:
        """The UI child gets its port and the URL of the API child."""
        runner, server = make_configs()

        [_, (name, cmd, env)] = runner_main.child_processes(runner, server)

        assert name == "ui"
        assert cmd == [sys.executable, "-m", "streamchat.ui.chat_page"]
        assert env["UI_PORT"] == "9001"
        assert env["API_BASE_URL"] == "http://localhost:9000"


class TestRunSeparate:
    """Tests for supervising the child processes."""

    @patch("streamchat.main.subprocess.Popen")
    def test_stops_all_children_when_one_exits(self, mock_popen: MagicMock) -> None:
        """When one child exits the other is terminated and both are reaped."""
        api, ui = MagicMock(), MagicMock()
        api.poll.return_value = None
        api.returncode = None
        ui.poll.return_value = 1
        ui.returncode = 1
        mock_popen.side_effect = [api, ui]

        runner_main.run_separate(*make_configs())

        assert mock_popen.call_count == 2
        assert mock_popen.call_args_list[0].kwargs["env"]["DATABASE_URL"] == "sqlite+aiosqlite:///srv/chats.db"
        for proc in (api, ui):
            proc.terminate.assert_called_once()
            proc.wait.assert_called_once()


class TestMain:
    """Tests for mode selection."""

    def test_dispatches_on_run_mode(self) -> None:
        """RUN_MODE picks the runner, which receives both configs."""
        separate = MagicMock()

        with (
            patch.dict("os.environ", {"RUN_MODE": "separate", "DATABASE_URL": "memory://"}, clear=True),
            patch.dict(runner_main.RUNNERS, {RunMode.SEPARATE: separate}),
            patch.object(runner_main, "configure_logging") as mock_logging,
        ):
            runner_main.main()

        mock_logging.assert_called_once_with("INFO")
        runner, server = separate.call_args.args
        assert runner.mode is RunMode.SEPARATE
        assert server.database_url == "memory://"
