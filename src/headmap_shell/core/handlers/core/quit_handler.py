# src/headmap_shell/core/handlers/core/quit_handler.py
import logging

from headmap_shell.core.context.shell_context import ShellContext
from headmap_shell.core.engine import EXIT_QUIT
from headmap_shell.core.loop_runner import call_on_main_loop

logger = logging.getLogger(__name__)


def handle_quit(_args, ctx: ShellContext, _stdin=None) -> int:
    """Signals the shell to stop, cancelling a batch that is still running."""
    if ctx.batch_active:
        print("🛑 Cancelling running batch...")
        call_on_main_loop(ctx.batch_controller.cancel)
        ctx.batch_future.result(timeout=30)
    return EXIT_QUIT
