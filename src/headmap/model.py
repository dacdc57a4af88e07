# src/headmap/model.py
from enum import Enum
from typing import Any, Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

HiddenMethod = Literal["display-none", "visibility-hidden", "aria-hidden", "opacity-0", "off-screen"]

# HTML sectioning tags that map onto an ARIA landmark role.
LANDMARK_ALIASES: Dict[str, str] = {
    "nav": "navigation",
    "header": "banner",
    "aside": "complementary",
    "footer": "contentinfo",
}


class Severity(str, Enum):
    """Issue severity: critical (must fix), warning (should fix), info (advisory)."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class HeadingRecord(BaseModel):
    """
    Normalized representation of one H1-H6 element as delivered by an extractor.

    Carries the structural data (level, text, position) plus optional
    accessibility and landmark metadata. Records are immutable; nothing in the
    analysis pipeline mutates them.
    """
    model_config = ConfigDict(frozen=True)

    tag: str = ""
    level: int = Field(ge=1, le=6)
    text: str = ""
    raw_markup: str = ""
    position: int = Field(default=0, ge=0)
    depth: int = Field(default=0, ge=0)

    # Accessibility metadata
    aria_label: Optional[str] = None
    aria_labelledby: Optional[str] = None
    aria_hidden: bool = False
    aria_level: Optional[int] = None
    role: Optional[str] = None
    is_hidden: bool = False
    hidden_method: Optional[HiddenMethod] = None

    # Semantic / landmark metadata
    parent_tag: Optional[str] = None
    parent_semantic_tag: Optional[str] = None
    is_in_landmark: bool = False
    landmark_type: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _derive_tag(cls, data: Any) -> Any:
        """Fills in 'tag' from 'level' when the extractor did not supply it."""
        if isinstance(data, dict) and not data.get("tag") and data.get("level") is not None:
            data = {**data, "tag": f"h{data['level']}"}
        return data

    @field_validator("text", mode="before")
    @classmethod
    def _strip_text(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("tag", "parent_tag", "parent_semantic_tag", "role", mode="before")
    @classmethod
    def _lower(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        s = str(v).strip().lower()
        return s or None

    @field_validator("landmark_type", mode="before")
    @classmethod
    def _normalize_landmark(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        s = str(v).strip().lower()
        if not s:
            return None
        return LANDMARK_ALIASES.get(s, s)

    @property
    def hidden(self) -> bool:
        """True when the heading is hidden by any mechanism, including aria-hidden."""
        return self.is_hidden or self.aria_hidden

    @property
    def label(self) -> str:
        """Upper-case tag name used in issue messages (e.g. 'H2')."""
        return self.tag.upper()


class Issue(BaseModel):
    """A single finding. Value object: two issues with equal fields are equal."""
    model_config = ConfigDict(frozen=True)

    type: str
    severity: Severity
    message: str
    recommendation: Optional[str] = None


class HeadingNode(BaseModel):
    """
    A node of the heading outline.

    The synthetic root carries level 0 and is never a heading itself. Children
    are kept in document order.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    level: int = Field(ge=0, le=6)
    id: str
    raw_markup: str = ""
    children: List['HeadingNode'] = Field(default_factory=list)
    issues: List[Issue] = Field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.level == 0


class ValidationResult(BaseModel):
    """
    Issues bucketed by severity, each bucket in emission order.
    Fields cannot be reassigned; the buckets are filled in place by add() and merge().
    """
    model_config = ConfigDict(frozen=True)

    errors: List[Issue] = Field(default_factory=list)
    warnings: List[Issue] = Field(default_factory=list)
    info: List[Issue] = Field(default_factory=list)

    def add(self, issue: Issue) -> None:
        """Routes an issue into the bucket matching its severity."""
        if issue.severity == Severity.CRITICAL:
            self.errors.append(issue)
        elif issue.severity == Severity.WARNING:
            self.warnings.append(issue)
        else:
            self.info.append(issue)

    def extend(self, issues: Iterable[Issue]) -> None:
        for issue in issues:
            self.add(issue)

    def merge(self, other: "ValidationResult") -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.info.extend(other.info)

    def all_issues(self) -> List[Issue]:
        return [*self.errors, *self.warnings, *self.info]

    def codes(self) -> List[str]:
        return [issue.type for issue in self.all_issues()]

    @property
    def count(self) -> int:
        return len(self.errors) + len(self.warnings) + len(self.info)


class HeadingMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_headings: int = 0
    h1_count: int = 0
    h2_count: int = 0
    h3_count: int = 0
    h4_count: int = 0
    h5_count: int = 0
    h6_count: int = 0
    max_depth: int = 0

    def counts_by_level(self) -> Dict[int, int]:
        return {level: getattr(self, f"h{level}_count") for level in range(1, 7)}


class AnalysisResult(BaseModel):
    """
    Complete outcome of analyzing one document: the original records, the
    outline, the validation issues and the metrics.

    No field can be reassigned at any depth, but the lists are not copied on
    the way in: readers must treat them as read-only.
    """
    model_config = ConfigDict(frozen=True)

    headings: List[HeadingRecord] = Field(default_factory=list)
    hierarchy: HeadingNode
    validation: ValidationResult
    metrics: HeadingMetrics
