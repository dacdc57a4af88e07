# src/headmap_shell/core/context/shell_context.py
import concurrent.futures
import logging
from typing import Any, Optional, TYPE_CHECKING

# Type hints only; the batch layer is imported lazily by its handler.
if TYPE_CHECKING:
    from headmap.model import AnalysisResult
    from headmap_batch.controllers.batch_controller import BatchController

logger = logging.getLogger(__name__)


class ShellContext:
    """
    Session state of the shell: the last single-document analysis and the
    batch that is running (or last ran) on the background loop.
    """

    def __init__(self, interactive: bool = True):
        self.interactive = interactive
        self.prompt_session: Optional[Any] = None

        self.last_result: Optional['AnalysisResult'] = None
        self.batch_controller: Optional['BatchController'] = None
        self.batch_future: Optional[concurrent.futures.Future] = None

    @property
    def batch_active(self) -> bool:
        """True while a submitted batch has not finished on the background loop."""
        return self.batch_future is not None and not self.batch_future.done()

    def __repr__(self) -> str:
        return f"<ShellContext interactive={self.interactive} batch_active={self.batch_active}>"
