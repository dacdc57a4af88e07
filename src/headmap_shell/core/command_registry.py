# src/headmap_shell/core/command_registry.py
import importlib
import logging
from typing import Any, Callable, Dict, Tuple

from headmap_shell.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

# The central registries, populated dynamically.
CommandRegistry: Dict[str, Callable[..., int]] = {}
COMMAND_HIERARCHY: Dict[str, Any] = {}
COMMAND_HELP_TEXTS: Dict[str, str] = {}

HANDLERS_PACKAGE = "headmap_shell.core.handlers"


def discover_handlers() -> Tuple[Dict[str, Any], Dict[str, Any], Dict[str, str]]:
    """
    Imports every *_handler.py module under core/handlers and returns:
    1. A map of command names to their handler function.
    2. A map of command names to their hierarchy definition (for completion).
    3. A map of command names to their help text string.
    """
    discovered_handlers: Dict[str, Any] = {}
    discovered_hierarchies: Dict[str, Any] = {}
    discovered_help_texts: Dict[str, str] = {}

    handlers_dir = PathUtils.get_handlers_dir()
    logger.debug("Scanning for handlers in: '%s'", handlers_dir)

    for file_path in sorted(handlers_dir.glob("**/*_handler.py")):
        relative_parts = list(file_path.relative_to(handlers_dir).with_suffix("").parts)
        module = importlib.import_module(".".join([HANDLERS_PACKAGE, *relative_parts]))

        hierarchy = getattr(module, "COMMAND_HIERARCHY", None)

        for attr_name in dir(module):
            if attr_name.startswith("handle_"):
                handler_func = getattr(module, attr_name)
                if callable(handler_func):
                    command_name = attr_name.replace("handle_", "", 1)
                    discovered_handlers[command_name] = handler_func
                    if hierarchy is not None:
                        discovered_hierarchies[command_name] = hierarchy
                    logger.debug("Discovered command '%s'", command_name)

            elif attr_name.endswith("_help_text"):
                help_text_var = getattr(module, attr_name)
                if isinstance(help_text_var, str):
                    discovered_help_texts[attr_name[:-len("_help_text")]] = help_text_var

    return discovered_handlers, discovered_hierarchies, discovered_help_texts


def register_command(name: str, handler: Callable[..., int]) -> None:
    """Adds a command and its handler function to the registry."""
    CommandRegistry[name] = handler
    logger.debug("Registered command '%s'", name)


def register_all_commands() -> None:
    """Discovers all handlers, hierarchies and help texts, then registers them."""
    if CommandRegistry:
        return

    handlers, hierarchies, help_texts = discover_handlers()
    for name, handler in handlers.items():
        register_command(name, handler)

    COMMAND_HIERARCHY.update(hierarchies)
    COMMAND_HELP_TEXTS.update(help_texts)

    # Commands without subcommands still need an entry for the completer
    for name in CommandRegistry:
        COMMAND_HIERARCHY.setdefault(name, None)

    logger.debug("Registered %d handlers.", len(CommandRegistry))
