"""``streamchat`` command: serve the chat API and the web UI.

RUN_MODE=integrated (default) mounts the NiceGUI page on the FastAPI app and
serves both from one uvicorn server. RUN_MODE=separate starts the API and the
UI as two child processes; the children receive the server settings and the
API URL through their environment.
"""

import logging
import os
import subprocess
import sys
import time
from collections.abc import Callable

from streamchat.settings import (
    RunMode,
    RunnerConfig,
    ServerConfig,
    get_runner_config,
    get_server_config,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[logging.StreamHandler(sys.stdout)])


def run_integrated(runner: RunnerConfig, server: ServerConfig) -> None:
    """Serve API and UI from one process on ``runner.port``."""
    import uvicorn
    from nicegui import ui

    from streamchat.api.app import create_app
    from streamchat.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    app = create_app(config=server)
    ui.run_with(
        app,
        title="StreamChat",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "streamchat-secret"),
    )

    logger.info(f"Chat UI and API on {runner.resolved_api_base_url} (docs at /docs)")
    uvicorn.run(app, host=runner.host, port=runner.port, log_level=runner.log_level.lower())


ChildSpec = tuple[str, list[str], dict[str, str]]


def child_processes(runner: RunnerConfig, server: ServerConfig) -> list[ChildSpec]:
    """Name, command and environment of each process in separate mode."""
    env = {**os.environ, **server.to_env(), "LOG_LEVEL": runner.log_level}
    api_cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        "streamchat.api.app:app",
        "--host",
        runner.host,
        "--port",
        str(runner.port),
    ]
    ui_env = {
        **env,
        "HOST": runner.host,
        "UI_PORT": str(runner.ui_port),
        "API_BASE_URL": runner.resolved_api_base_url,
    }
    ui_cmd = [sys.executable, "-m", "streamchat.ui.chat_page"]
    return [("api", api_cmd, env), ("ui", ui_cmd, ui_env)]


def run_separate(runner: RunnerConfig, server: ServerConfig) -> None:
    """Run API and UI as child processes until either exits."""
    logger.info(f"API on port {runner.port}, UI on port {runner.ui_port}")
    procs = [(name, subprocess.Popen(cmd, env=env)) for name, cmd, env in child_processes(runner, server)]

    try:
        while all(proc.poll() is None for _, proc in procs):
            time.sleep(1)
        for name, proc in procs:
            if proc.returncode is not None:
                logger.warning(f"{name} process exited with code {proc.returncode}")
    except KeyboardInterrupt:
        logger.info("Shutting down servers...")
    finally:
        for _, proc in procs:
            proc.terminate()
        for _, proc in procs:
            proc.wait()


RUNNERS: dict[RunMode, Callable[[RunnerConfig, ServerConfig], None]] = {
    RunMode.INTEGRATED: run_integrated,
    RunMode.SEPARATE: run_separate,
}


def main() -> None:
    """Application entry point."""
    runner = get_runner_config()
    configure_logging(runner.log_level)

    logger.info(f"Starting StreamChat in {runner.mode.value} mode")
    RUNNERS[runner.mode](runner, get_server_config())


if __name__ == "__main__":
    main()
