# src/headmap/rules/engine.py
import logging
from typing import Any, Dict, List, Optional, Sequence

from headmap.model import HeadingRecord, ValidationResult
from .core import RulePass
from .registry import RuleRegistry

logger = logging.getLogger(__name__)


class ValidationEngine:
    """
    Runs every registered rule pass over a heading list.

    Passes execute in registry order (structure, accessibility, semantics,
    heuristics) and their results are concatenated, so the output is fully
    determined by the input.
    """

    def __init__(self, options: Optional[Dict[str, Any]] = None, passes: Optional[List[str]] = None):
        """
        Args:
            options: Rule options forwarded to document rules
                     (e.g. 'max_pairwise_headings').
            passes: Optional subset of pass names to run.
        """
        RuleRegistry.discover()
        self.options = dict(options or {})
        all_passes = RuleRegistry.get_passes()
        if passes is None:
            self.passes: List[RulePass] = all_passes
        else:
            self.passes = [p for p in all_passes if p.name in passes]

    def run(self, headings: Sequence[HeadingRecord]) -> ValidationResult:
        result = ValidationResult()
        for rule_pass in self.passes:
            partial = rule_pass.run(headings, self.options)
            logger.debug("Pass '%s' produced %d issues.", rule_pass.name, partial.count)
            result.merge(partial)
        return result
