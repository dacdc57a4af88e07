# src/headmap_shell/core/utils/configure_logging.py
import logging
import sys
from typing import Dict, Optional, Union

from tqdm import tqdm

Level = Union[str, int]


class LogWithTqdm(logging.Handler):
    """
    Logging handler that writes through `tqdm.write()`, so log lines do not
    break a running progress bar.
    """
    def emit(self, record):
        try:
            msg = self.format(record)
            tqdm.write(msg, file=sys.stderr)
            self.flush()
        except Exception:
            self.handleError(record)


def _to_level(level: Optional[Level], fallback: int) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), fallback)
    return level if level is not None else fallback


def configure_logger(
        general_level: Optional[Level] = 'INFO',
        module_specific_levels: Optional[Dict[str, Level]] = None,
        silenced_loggers: Optional[Dict[str, Level]] = None
) -> None:
    """
    Configures the root logger with a tqdm-friendly handler, then applies
    per-module levels and mutes noisy third-party loggers.
    """
    handler = LogWithTqdm()
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"
    ))

    root_logger = logging.getLogger()
    root_logger.setLevel(_to_level(general_level, logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name, level in (module_specific_levels or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.INFO))

    for name, level in (silenced_loggers or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.CRITICAL))
