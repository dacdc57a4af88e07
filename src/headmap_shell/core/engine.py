# src/headmap_shell/core/engine.py
from __future__ import annotations

import inspect
import logging
import shlex
from typing import List, Optional

from headmap_shell.core.command_registry import CommandRegistry
from headmap_shell.core.context.shell_context import ShellContext

logger = logging.getLogger(__name__)

# Exit code a handler returns to end the session.
EXIT_QUIT = 130
EXIT_NOT_FOUND = 127


def parse_command_line(line: str) -> List[str]:
    """Splits a command line into tokens, honouring quotes."""
    s = (line or "").strip()
    if not s:
        return []
    try:
        return shlex.split(s, posix=True)
    except ValueError:
        # Unbalanced quotes; fall back to plain whitespace splitting
        return s.split()


def execute_command(name: str, args: List[str], ctx: ShellContext, stdin: Optional[str] = None) -> int:
    """Runs one registered command and returns its exit code."""
    handler = CommandRegistry.get(name)
    if handler is None:
        print(f"command not found: {name}")
        return EXIT_NOT_FOUND

    sig = inspect.signature(handler)
    if len(sig.parameters) >= 3:
        return int(handler(args, ctx, stdin))
    return int(handler(args, ctx))


def execute_line(line: str, ctx: ShellContext) -> int:
    tokens = parse_command_line(line)
    if not tokens:
        return 0
    return execute_command(tokens[0], tokens[1:], ctx)
