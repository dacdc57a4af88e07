# src/headmap/rules/core.py
from typing import Any, Callable, List, Mapping, Optional, Sequence, Set

from headmap.model import HeadingRecord, Issue, ValidationResult

# Rule signatures:
#   heading rule:  (heading, index) -> issues for that heading
#   document rule: (headings, options) -> issues for the whole document
HeadingRule = Callable[[HeadingRecord, int], List[Issue]]
DocumentRule = Callable[[Sequence[HeadingRecord], Mapping[str, Any]], List[Issue]]


def audit_spec(codes: List[str]):
    """
    Decorator to declare which issue codes a specific rule function returns.
    Facilitates auto-discovery by the RuleRegistry.
    """
    def decorator(func):
        func.defined_codes = codes
        return func
    return decorator


class RulePass:
    """
    Configuration object binding a named validation pass to its rules.

    Heading rules run first, heading by heading in document order, each rule
    in declaration order. Document rules run afterwards over the full list.
    """

    def __init__(
            self,
            name: str,
            order: int,
            heading_rules: Optional[List[HeadingRule]] = None,
            document_rules: Optional[List[DocumentRule]] = None,
            possible_codes: Optional[List[str]] = None
    ):
        self.name = name
        self.order = order
        self.heading_rules = heading_rules or []
        self.document_rules = document_rules or []

        # --- Auto-Discovery of Issue Codes ---
        final_codes: Set[str] = set(possible_codes or [])
        for rule in [*self.heading_rules, *self.document_rules]:
            if hasattr(rule, 'defined_codes'):
                final_codes.update(rule.defined_codes)

        self.codes = sorted(final_codes)

    def run(
            self,
            headings: Sequence[HeadingRecord],
            options: Optional[Mapping[str, Any]] = None
    ) -> ValidationResult:
        """Applies every rule of this pass and returns the partial result."""
        result = ValidationResult()
        opts = options or {}

        for index, heading in enumerate(headings):
            for rule in self.heading_rules:
                result.extend(rule(heading, index))

        for rule in self.document_rules:
            result.extend(rule(headings, opts))

        return result

    def __repr__(self) -> str:
        return f"<RulePass {self.name} order={self.order} codes={len(self.codes)}>"
