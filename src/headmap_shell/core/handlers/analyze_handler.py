# src/headmap_shell/core/handlers/analyze_handler.py
import argparse
import logging
from typing import Any, Dict, List, Optional

from headmap.model import AnalysisResult, HeadingNode, Issue
from headmap_batch.exceptions import FetchError
from headmap_batch.services.analysis_service import analyze_html, describe_content
from headmap_batch.services.async_page_fetcher_service import PageFetcher
from headmap_batch.utils.url_utils import UrlUtils
from headmap_shell.core.context.shell_context import ShellContext
from headmap_shell.core.loop_runner import run_on_main_loop
from headmap_shell.core.managers.config_manager import config_manager
from headmap_shell.core.services.dataframe_service import DataFrameService
from headmap_shell.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

analyze_help_text = """
  analyze <file|url> [--json] [--container <css>] [--table]
                      Audits the heading outline of one HTML document.
                      --json prints the full result as JSON, --table lists
                      the extracted headings.
""".strip()

SEVERITY_MARKERS = {"critical": "❌", "warning": "⚠️ ", "info": "ℹ️ "}
DEFAULT_MAX_PAIRWISE_HEADINGS = 500
_DISABLED_STRINGS = {"none", "null", "off", ""}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="analyze", add_help=False)
    parser.add_argument("target")
    parser.add_argument("--json", action="store_true")
    parser.add_argument("--table", action="store_true")
    parser.add_argument("--container", default="body")
    return parser


def _pairwise_limit_setting() -> Optional[int]:
    """
    Reads validation.max_pairwise_headings. null (or 'none'/'off' typed at the
    prompt) disables the cap; anything that is not a non-negative integer
    falls back to the default.
    """
    validation = config_manager.get_nested("validation", {})
    if not isinstance(validation, dict):
        validation = {}
    value = validation.get("max_pairwise_headings", DEFAULT_MAX_PAIRWISE_HEADINGS)
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _DISABLED_STRINGS:
            return None
        value = int(text) if text.isdigit() else value
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    logger.warning(
        "Invalid validation.max_pairwise_headings %r; using %d.", value, DEFAULT_MAX_PAIRWISE_HEADINGS
    )
    return DEFAULT_MAX_PAIRWISE_HEADINGS


def analysis_options() -> Dict[str, Any]:
    return {"max_pairwise_headings": _pairwise_limit_setting()}


async def _fetch_html(url: str) -> str:
    async with PageFetcher() as fetcher:
        return await fetcher.fetch_document(url)


def _load_html(target: str) -> str:
    """Reads a local file, or fetches the target as a URL."""
    path = PathUtils.resolve_input_file(target)
    if path is not None:
        return path.read_text(encoding="utf-8", errors="replace")

    url = UrlUtils.normalize_input_url(target)
    if not UrlUtils.is_valid_url(url):
        raise FetchError(target, "Not an existing file or a valid URL")
    return run_on_main_loop(_fetch_html(url))


# --- RENDERING ---

def render_tree(node: HeadingNode, indent: int = 0) -> List[str]:
    lines = []
    for child in node.children:
        marker = " (!)" if child.issues else ""
        lines.append(f"{'  ' * indent}H{child.level} {child.text or '<empty>'}{marker}")
        lines.extend(render_tree(child, indent + 1))
    return lines


def render_issue(issue: Issue) -> str:
    line = f"{SEVERITY_MARKERS.get(issue.severity.value, '-')} [{issue.type}] {issue.message}"
    if issue.recommendation:
        line += f"\n      → {issue.recommendation}"
    return line


def print_report(result: AnalysisResult) -> None:
    m = result.metrics
    counts = "  ".join(f"H{level}:{count}" for level, count in m.counts_by_level().items())
    print(f"Headings: {m.total_headings}   Max depth: {m.max_depth}")
    print(f"  {counts}")

    print("\nOutline:")
    tree = render_tree(result.hierarchy)
    print("\n".join(f"  {line}" for line in tree) if tree else "  (no headings)")

    v = result.validation
    print(f"\nIssues: {len(v.errors)} errors, {len(v.warnings)} warnings, {len(v.info)} info")
    for issue in v.all_issues():
        print(f"  {render_issue(issue)}")


# --- HANDLER ---

def handle_analyze(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    """Handles 'analyze <file|url>'."""
    parser = _build_parser()
    try:
        parsed = parser.parse_args(args)
    except SystemExit:
        print(analyze_help_text)
        return 1

    try:
        html = _load_html(parsed.target)
        result = analyze_html(html, container=parsed.container, options=analysis_options())
    except FetchError as e:
        print(f"❌ {e}")
        return 1
    except OSError as e:
        print(f"❌ Could not read '{parsed.target}': {e}")
        return 1

    ctx.last_result = result

    if parsed.json:
        print(result.model_dump_json(indent=2))
        return 0

    print_report(result)

    content = describe_content(html, result.headings)
    print(
        f"\nContent: ~{content.average_words_per_section:.0f} words per section "
        f"({content.content_density}), {content.reading_time_minutes} min read"
    )

    if parsed.table:
        print()
        print(DataFrameService.headings_frame(result).to_string(index=False))
    return 0
