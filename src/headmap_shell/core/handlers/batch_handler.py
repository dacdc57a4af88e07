# src/headmap_shell/core/handlers/batch_handler.py
import argparse
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from headmap_batch.controllers.batch_controller import BatchController
from headmap_batch.model import BatchSettings, BatchState
from headmap_batch.services.async_page_fetcher_service import PageFetcher
from headmap_batch.services.heading_extract_service import HeadingExtractService
from headmap_batch.utils.url_utils import UrlUtils
from headmap_shell.core.context.shell_context import ShellContext
from headmap_shell.core.handlers.analyze_handler import analysis_options
from headmap_shell.core.loop_runner import call_on_main_loop, read_on_main_loop, submit_to_main_loop
from headmap_shell.core.managers.config_manager import config_manager
from headmap_shell.core.services.dataframe_service import DataFrameService
from headmap_shell.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

COMMAND_HIERARCHY: Dict[str, Optional[Dict[str, Any]]] = {
    "start": None,
    "pause": None,
    "resume": None,
    "cancel": None,
    "status": None,
    "stats": None,
}

batch_help_text = """
  batch start <file|url...> [--concurrency <n>] [--delay <s>] [--wait]
                      Audits many URLs in the background. A file argument is
                      read as a URL list (one per line, '#' comments allowed).
  batch pause | resume | cancel
                      Controls the running batch. Pause and cancel never
                      interrupt pages that are already being analyzed.
  batch status        Shows the state of every job.
  batch stats [--top <n>]
                      Shows aggregate statistics and the most common issues.
""".strip()


def _build_start_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="batch start", add_help=False)
    parser.add_argument("targets", nargs="+")
    parser.add_argument("--concurrency", type=int, default=None)
    parser.add_argument("--delay", type=float, default=None)
    parser.add_argument("--wait", action="store_true")
    return parser


def collect_urls(targets: List[str]) -> List[str]:
    """Expands URL-list files, normalizes every URL and drops invalid ones."""
    raw: List[str] = []
    for target in targets:
        path = PathUtils.resolve_input_file(target)
        if path is not None:
            raw.extend(UrlUtils.read_url_list(path.read_text(encoding="utf-8").splitlines()))
        else:
            raw.append(target)

    urls: List[str] = []
    for candidate in raw:
        url = UrlUtils.normalize_input_url(candidate)
        if not UrlUtils.is_valid_url(url):
            print(f"⚠️  Skipping invalid URL: {candidate}")
            continue
        if url not in urls:
            urls.append(url)
    return urls


async def _run_batch(controller: BatchController, fetcher: PageFetcher, urls: List[str]) -> BatchState:
    try:
        return await controller.run(urls)
    finally:
        await fetcher.close()


def _print_summary(ctx: ShellContext) -> None:
    controller = ctx.batch_controller
    state = read_on_main_loop(lambda: controller.state)
    stats = read_on_main_loop(controller.get_stats)
    print(
        f"Batch {state.mode.value}: {state.completed_jobs} completed, "
        f"{state.failed_jobs} failed, {state.total_jobs} total."
    )
    print(f"   Headings/page: {stats.avg_headings_per_page}")
    print(f"   Pages with issues: {stats.pages_with_issues} ({stats.pages_with_issues_pct}%)")


def _wait_for_batch(ctx: ShellContext) -> int:
    try:
        ctx.batch_future.result()
    except KeyboardInterrupt:
        print("\n🛑 Cancelling batch...")
        call_on_main_loop(ctx.batch_controller.cancel)
        ctx.batch_future.result()
    except Exception as e:
        logger.error("Batch failed: %s", e, exc_info=True)
        print(f"❌ Batch failed: {e}")
        return 1
    _print_summary(ctx)
    return 0


# --- SUBCOMMANDS ---

def _handle_start(args: List[str], ctx: ShellContext) -> int:
    try:
        parsed = _build_start_parser().parse_args(args)
    except SystemExit:
        print(batch_help_text)
        return 1

    if ctx.batch_active:
        print("❌ A batch is already running. Use 'batch cancel' first.")
        return 1

    try:
        urls = collect_urls(parsed.targets)
    except OSError as e:
        print(f"❌ Could not read URL list: {e}")
        return 1
    if not urls:
        print("❌ No valid URLs to analyze.")
        return 1

    try:
        settings = BatchSettings(
            concurrency=parsed.concurrency or config_manager.get_nested("batch.concurrency", 3),
            admission_delay=(
                parsed.delay if parsed.delay is not None
                else config_manager.get_nested("batch.admission_delay", 0.5)
            ),
        )
    except ValidationError as e:
        print(f"❌ Invalid batch settings: {e.errors()[0]['msg']}")
        return 1
    wait = parsed.wait or not ctx.interactive

    fetcher = PageFetcher()
    controller = BatchController(
        fetch=fetcher.fetch_document,
        extract=HeadingExtractService().extract,
        settings=settings,
        analysis_options=analysis_options(),
        show_progress=wait,
    )
    ctx.batch_controller = controller
    ctx.batch_future = submit_to_main_loop(_run_batch(controller, fetcher, urls))

    print(f"🚀 Batch started: {len(urls)} URL(s), concurrency {settings.concurrency}.")
    if wait:
        return _wait_for_batch(ctx)
    print("   Use 'batch status' to follow progress.")
    return 0


def _require_controller(ctx: ShellContext) -> Optional[BatchController]:
    if ctx.batch_controller is None:
        print("❌ No batch has been started in this session.")
        return None
    return ctx.batch_controller


def _handle_control(action: str, ctx: ShellContext) -> int:
    controller = _require_controller(ctx)
    if controller is None:
        return 1
    if not ctx.batch_active:
        print("❌ The batch has already finished.")
        return 1
    call_on_main_loop(getattr(controller, action))
    print(f"✅ Batch {action} requested.")
    return 0


def _handle_status(ctx: ShellContext) -> int:
    controller = _require_controller(ctx)
    if controller is None:
        return 1
    state = read_on_main_loop(lambda: controller.state)
    settled = state.completed_jobs + state.failed_jobs
    print(f"Mode: {state.mode.value}   Progress: {settled}/{state.total_jobs}   Failed: {state.failed_jobs}")
    print(DataFrameService.jobs_frame(state).to_string(index=False))
    return 0


def _handle_stats(args: List[str], ctx: ShellContext) -> int:
    controller = _require_controller(ctx)
    if controller is None:
        return 1

    top = 10
    if "--top" in args:
        try:
            top = int(args[args.index("--top") + 1])
        except (IndexError, ValueError):
            print("Usage: batch stats [--top <n>]")
            return 1

    state = read_on_main_loop(lambda: controller.state)
    stats = read_on_main_loop(controller.get_stats)
    print(DataFrameService.stats_frame(stats).to_string(index=False))

    issues = DataFrameService.issues_frame(state)
    if issues.empty:
        print("\nNo issues recorded.")
    else:
        print("\nMost common issues:")
        print(issues.head(top).to_string(index=False))
    return 0


# --- HANDLER ---

def handle_batch(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    """Handles the 'batch' command and its subcommands."""
    if not args:
        print(batch_help_text)
        return 1

    command, rest = args[0], args[1:]

    if command == "start":
        return _handle_start(rest, ctx)
    if command in ("pause", "resume", "cancel"):
        return _handle_control(command, ctx)
    if command == "status":
        return _handle_status(ctx)
    if command == "stats":
        return _handle_stats(rest, ctx)

    print(f"Unknown command: 'batch {command}'.")
    return 1
