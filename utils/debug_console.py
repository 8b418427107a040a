"""Console and logging setup for the rotator CLI.

With --debug, log records go to a debug log file and stderr, and a Rich
console copies the plain text of everything it prints into the same file
so a run can be reconstructed from the log alone.
"""

import io
import logging
import re
from typing import Optional

from rich.console import Console as RichConsole

_ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class DebugCapturingConsole(RichConsole):
    """Rich console that also writes a plain-text copy to a logger"""

    def __init__(self, debug_logger: Optional[logging.Logger] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.debug_logger = debug_logger
        self._log_prefix = "[CONSOLE] "

    def print(self, *objects, **kwargs):
        super().print(*objects, **kwargs)

        if self.debug_logger and self.debug_logger.isEnabledFor(logging.DEBUG):
            plain_text = self._render_to_plain_text(*objects, **kwargs)
            if plain_text.strip():
                self.debug_logger.debug(f"{self._log_prefix}{plain_text}")

    def _render_to_plain_text(self, *objects, **kwargs) -> str:
        buffer = io.StringIO()
        RichConsole(file=buffer, force_terminal=False, width=self.width).print(*objects, **kwargs)
        return _ANSI_ESCAPE.sub('', buffer.getvalue()).rstrip()


def setup_debug_logger(log_file: str) -> logging.Logger:
    """Dedicated logger receiving console transcripts"""
    logger = logging.getLogger("debug_console")
    logger.setLevel(logging.DEBUG)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(message)s'))
    logger.addHandler(file_handler)

    # Keep transcripts out of the root handlers
    logger.propagate = False
    return logger


def configure_logging(debug: bool, log_file: str, level: str = "warning") -> RichConsole:
    """Configure root logging and return the console the CLI should print to

    Args:
        debug: Append DEBUG records to log_file and stderr
        log_file: Debug log path
        level: Root level name used when debug is off
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if not debug:
        root_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
        return RichConsole()

    root_logger.setLevel(logging.DEBUG)
    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    console = DebugCapturingConsole(debug_logger=setup_debug_logger(log_file))
    logging.getLogger(__name__).info(f"Debug logging enabled - appending to {log_file}")
    return console
