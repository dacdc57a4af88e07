# src/headmap_shell/app.py
from __future__ import annotations

import asyncio
import logging
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import NestedCompleter
from prompt_toolkit.history import FileHistory

from headmap_shell.core.command_registry import COMMAND_HIERARCHY, register_all_commands
from headmap_shell.core.context.shell_context import ShellContext
from headmap_shell.core.engine import EXIT_QUIT, execute_command, execute_line
from headmap_shell.core.loop_runner import ensure_background_loop, stop_background_loop
from headmap_shell.core.managers.config_manager import config_manager
from headmap_shell.core.utils.configure_logging import configure_logger
from headmap_shell.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    configure_logger(
        config_manager.get_nested("debug.level", "WARNING"),
        config_manager.get_nested("debug.module_levels", {}),
        config_manager.get_nested("debug.silenced_loggers", {}),
    )


def _setup_windows_event_loop_if_needed() -> None:
    """Installs the selector event loop policy on Windows, which aiohttp needs."""
    if not sys.platform.startswith("win"):
        return
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    logger.info("Using WindowsSelectorEventLoopPolicy for asyncio on Windows.")


def start_shell() -> None:
    """Starts the interactive REPL."""
    ctx = ShellContext(interactive=True)

    print("Welcome to Headmap Shell 1.0 (type 'help' for commands)")

    history_path = PathUtils.get_shell_history_file(
        config_manager.get_nested("shell.history_file", ".headmap_shell_history")
    )
    session = PromptSession(
        history=FileHistory(str(history_path)),
        completer=NestedCompleter.from_nested_dict(COMMAND_HIERARCHY),
        complete_while_typing=True
    )
    ctx.prompt_session = session
    prompt = config_manager.get_nested("shell.prompt", "headmap>> ")
    logger.info("Shell startup; history file at: %s", history_path)

    try:
        while True:
            try:
                line = session.prompt(prompt).strip()
            except (EOFError, KeyboardInterrupt):
                break

            if not line:
                continue

            try:
                code = execute_line(line, ctx)
            except Exception as e:
                logger.error("Command failed: %s", e, exc_info=True)
                print(f"❌ {e}")
                continue
            if code == EXIT_QUIT:
                break
    finally:
        if ctx.batch_active:
            execute_command("quit", [], ctx)
        print("Bye!")


def main(argv: list[str] | None = None) -> int:
    """
    Entrypoint. With arguments, runs that single command and exits with its
    code (e.g. `headmap analyze page.html`); without, starts the shell.
    """
    argv = sys.argv[1:] if argv is None else argv

    _configure_logging()
    _setup_windows_event_loop_if_needed()
    register_all_commands()
    ensure_background_loop()

    try:
        if argv:
            ctx = ShellContext(interactive=False)
            code = execute_command(argv[0], argv[1:], ctx)
            return 0 if code == EXIT_QUIT else code
        start_shell()
        return 0
    finally:
        stop_background_loop()


if __name__ == "__main__":
    sys.exit(main())
