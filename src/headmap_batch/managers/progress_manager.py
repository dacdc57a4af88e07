# src/headmap_batch/managers/progress_manager.py
import sys
import logging

from tqdm import tqdm

logger = logging.getLogger(__name__)


class ProgressManager:
    """
    Owns the tqdm bar of one batch run. One step per settled job.
    """

    def __init__(self, total: int, desc: str = "Analyzing", unit: str = "page"):
        self.pbar = tqdm(
            total=max(total, 1),
            desc=desc,
            unit=f" {unit}",
            dynamic_ncols=True,
            smoothing=0.1,
            mininterval=0.5,
            postfix={"done": 0, "failed": 0},
            bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}] {postfix}",
            file=sys.stdout
        )

    def advance(self, completed: int, failed: int, steps: int = 1) -> None:
        """Moves the bar forward and refreshes the completed/failed counters."""
        if not self.pbar:
            return
        self.pbar.update(steps)
        self.pbar.set_postfix({"done": completed, "failed": failed}, refresh=False)

    def set_paused(self, paused: bool) -> None:
        if self.pbar:
            self.pbar.set_description_str("Paused" if paused else "Analyzing")

    def close(self, completed: int, failed: int, cancelled: bool = False) -> None:
        if not self.pbar:
            return

        done_str = f"{completed}/cancelled" if cancelled else str(completed)
        self.pbar.set_postfix({"done": done_str, "failed": failed}, refresh=True)
        self.pbar.close()
        self.pbar = None
        logger.debug("ProgressManager: Progress bar closed.")
