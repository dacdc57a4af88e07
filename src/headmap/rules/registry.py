# src/headmap/rules/registry.py
import importlib
import pkgutil
import logging
from typing import List, Set

from .core import RulePass

logger = logging.getLogger(__name__)


class RuleRegistry:
    """
    Central registry for validation passes.

    Dynamically discovers RulePass definitions from the 'headmap.rules.passes'
    package and keeps them sorted by their declared order, so the engine
    always emits issues in the same pass sequence.
    """

    _passes: List[RulePass] = []
    _all_codes: Set[str] = set()
    _loaded: bool = False

    @classmethod
    def discover(cls) -> None:
        """
        Discovers and registers all pass definitions found in 'headmap.rules.passes'.

        Every module exposing a `DEFINITION` attribute (instance of `RulePass`)
        is registered together with the issue codes it declares.
        """
        if cls._loaded:
            return

        import headmap.rules.passes as passes_pkg

        found: List[RulePass] = []
        for _, name, _ in pkgutil.iter_modules(passes_pkg.__path__):
            full_name = f"headmap.rules.passes.{name}"
            module = importlib.import_module(full_name)
            definition = getattr(module, "DEFINITION", None)
            if isinstance(definition, RulePass):
                found.append(definition)
                cls._all_codes.update(definition.codes)
                logger.debug("Rule pass loaded: %s (%d codes)", definition.name, len(definition.codes))

        cls._passes = sorted(found, key=lambda p: p.order)
        cls._loaded = True

    @classmethod
    def get_passes(cls) -> List[RulePass]:
        """Returns the registered passes in execution order."""
        cls.discover()
        return list(cls._passes)

    @classmethod
    def get_pass(cls, name: str) -> RulePass:
        for rule_pass in cls.get_passes():
            if rule_pass.name == name:
                return rule_pass
        raise KeyError(f"Unknown rule pass: {name}")

    @classmethod
    def get_all_possible_codes(cls) -> List[str]:
        """Returns every issue code any registered pass can emit."""
        cls.discover()
        return sorted(cls._all_codes)
