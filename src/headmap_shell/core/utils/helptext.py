# src/headmap_shell/core/utils/helptext.py
from headmap_shell.core.command_registry import COMMAND_HELP_TEXTS

HEADER_HELP_TEXT = """
Headmap Shell - Help

Audits the heading outline (H1-H6) of HTML documents for structure,
accessibility, landmark usage and SEO readability.

---
COMMANDS
---
GENERAL:
  help                Show this help text.
  quit                Exit the shell (cancels a running batch).
""".strip()


def get_help_text() -> str:
    """Header plus the help fragments of every discovered command, sorted by name."""
    full_help_parts = [HEADER_HELP_TEXT]
    for command_name in sorted(COMMAND_HELP_TEXTS.keys()):
        full_help_parts.append(COMMAND_HELP_TEXTS[command_name])
    return "\n\n".join(full_help_parts)
