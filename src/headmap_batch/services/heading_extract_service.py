# src/headmap_batch/services/heading_extract_service.py
import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag
from pydantic import ValidationError

from headmap.model import HeadingRecord

logger = logging.getLogger(__name__)

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

# Nearest-ancestor lookup for parent_semantic_tag.
SECTIONING_ELEMENTS = ("article", "section", "nav", "aside", "header", "footer", "main")

# HTML elements that implicitly define an ARIA landmark.
LANDMARK_TAGS = {
    "main": "main",
    "nav": "navigation",
    "header": "banner",
    "footer": "contentinfo",
    "aside": "complementary",
    "search": "search",
}
LANDMARK_ROLES = frozenset({
    "main", "navigation", "banner", "complementary", "contentinfo", "search", "form", "region",
})

SR_ONLY_CLASSES = frozenset({"sr-only", "visually-hidden", "visuallyhidden", "screen-reader-text"})

_DISPLAY_NONE = re.compile(r'display\s*:\s*none', re.IGNORECASE)
_VISIBILITY_HIDDEN = re.compile(r'visibility\s*:\s*hidden', re.IGNORECASE)
_OPACITY_ZERO = re.compile(r'(?<![\w-])opacity\s*:\s*0*(?:\.0+)?\s*(?:;|$|!)', re.IGNORECASE)


class HeadingExtractService:
    """
    Turns an HTML document into HeadingRecords, including the accessibility
    and landmark metadata the validation passes read.

    This is a stateless service. Visibility is derived from markup only
    (inline styles, attributes and well-known screen-reader classes); no CSS
    is evaluated.
    """

    def __init__(self, parser: str = "html.parser"):
        self.parser = parser

    def extract(self, html: str, container: str = "body") -> List[HeadingRecord]:
        """
        Extracts every H1-H6 inside the container, in document order.

        Args:
            html: The HTML document or fragment.
            container: CSS selector of the element to search. A fragment
                without <body> is searched as a whole when the default is used.

        Returns:
            List[HeadingRecord]: Records with positions 0..n-1. Empty when the
            container does not exist.
        """
        if not html:
            return []

        soup = BeautifulSoup(html, self.parser)
        root = soup.select_one(container)
        if root is None:
            if container != "body":
                logger.debug("Container '%s' not found; no headings extracted.", container)
                return []
            root = soup

        records = []
        for position, element in enumerate(root.find_all(HEADING_TAGS)):
            try:
                records.append(self._build_record(element, position))
            except ValidationError as e:
                logger.warning("Skipping malformed <%s> at position %d: %s", element.name, position, e)

        logger.debug("Extracted %d headings.", len(records))
        return records

    # -------- Record Construction --------

    def _build_record(self, element: Tag, position: int) -> HeadingRecord:
        hidden_method = self._hidden_method(element)
        landmark_type = self._landmark_type(element)
        parent = element.parent if isinstance(element.parent, Tag) else None

        return HeadingRecord(
            tag=element.name,
            level=int(element.name[1]),
            text=" ".join(element.get_text().split()),
            raw_markup=str(element),
            position=position,
            depth=self._depth(element),
            aria_label=self._attr(element, "aria-label"),
            aria_labelledby=self._attr(element, "aria-labelledby"),
            aria_hidden=self._is_aria_hidden(element),
            aria_level=self._parse_int(self._attr(element, "aria-level")),
            role=self._attr(element, "role"),
            is_hidden=hidden_method is not None,
            hidden_method=hidden_method,
            parent_tag=parent.name if parent is not None and parent.name != "[document]" else None,
            parent_semantic_tag=self._parent_semantic_tag(element),
            is_in_landmark=landmark_type is not None,
            landmark_type=landmark_type,
        )

    @staticmethod
    def _attr(element: Tag, name: str) -> Optional[str]:
        value = element.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        if value is None:
            return None
        value = value.strip()
        return value or None

    @staticmethod
    def _parse_int(val: Optional[str]) -> Optional[int]:
        if not val:
            return None
        try:
            return int(val)
        except ValueError:
            return None

    @staticmethod
    def _ancestors(element: Tag) -> List[Tag]:
        """The element's parents, nearest first, excluding the document itself."""
        return [p for p in element.parents if isinstance(p, Tag) and p.name != "[document]"]

    def _depth(self, element: Tag) -> int:
        return len(self._ancestors(element))

    # -------- Visibility --------

    def _is_aria_hidden(self, element: Tag) -> bool:
        for node in [element, *self._ancestors(element)]:
            if (self._attr(node, "aria-hidden") or "").lower() == "true":
                return True
        return False

    def _hidden_method(self, element: Tag) -> Optional[str]:
        """
        The first hiding mechanism found on the heading or, failing that, on
        its nearest hidden ancestor.
        """
        for node in [element, *self._ancestors(element)]:
            method = self._own_hidden_method(node)
            if method:
                return method
        return None

    def _own_hidden_method(self, node: Tag) -> Optional[str]:
        if (self._attr(node, "aria-hidden") or "").lower() == "true":
            return "aria-hidden"

        style = self._attr(node, "style") or ""
        if node.has_attr("hidden") or _DISPLAY_NONE.search(style):
            return "display-none"
        if _VISIBILITY_HIDDEN.search(style):
            return "visibility-hidden"
        if _OPACITY_ZERO.search(style):
            return "opacity-0"

        classes = node.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        if any(c.lower() in SR_ONLY_CLASSES for c in classes):
            return "off-screen"
        return None

    # -------- Landmarks & Sectioning --------

    def _parent_semantic_tag(self, element: Tag) -> Optional[str]:
        """
        Nearest sectioning ancestor. When there is none but the heading sits
        directly in a <div>, 'div' is reported so generic containers can be
        flagged.
        """
        for ancestor in self._ancestors(element):
            if ancestor.name in SECTIONING_ELEMENTS:
                return ancestor.name
        parent = element.parent
        if isinstance(parent, Tag) and parent.name == "div":
            return "div"
        return None

    def _landmark_type(self, element: Tag) -> Optional[str]:
        for ancestor in self._ancestors(element):
            role = (self._attr(ancestor, "role") or "").lower()
            if role in LANDMARK_ROLES:
                return role
            landmark = self._implicit_landmark(ancestor)
            if landmark:
                return landmark
        return None

    def _implicit_landmark(self, node: Tag) -> Optional[str]:
        """
        Landmark implied by the tag name. <section> and <form> only count
        when they carry an accessible name.
        """
        if node.name in LANDMARK_TAGS:
            return LANDMARK_TAGS[node.name]
        if node.name in ("section", "form"):
            if self._attr(node, "aria-label") or self._attr(node, "aria-labelledby"):
                return "region" if node.name == "section" else "form"
        return None
