# Colored, tqdm-aware logging for patchwork kriging
# Author: Shengning Wang

import sys
import logging

from tqdm.auto import tqdm


class HueLogger:
    """
    A colorful logging utility with ANSI escape code support.

    Records are routed through tqdm.write() so that messages emitted while
    group models are being fitted land above the progress bar instead of
    tearing it apart. Re-initialization clears existing handlers, which keeps
    repeated imports in notebooks from duplicating every line.

    Attributes:
        logger (logging.Logger): The configured logger instance.
    """

    # ANSI Color Codes
    b = "\033[1;34m"    # major key/parameter:      bold blue
    c = "\033[1;36m"    # minor key/parameter:      bold cyan
    m = "\033[1;35m"    # value/reading:            bold magenta
    y = "\033[1;33m"    # warning/highlighting:     bold yellow
    g = "\033[1;32m"    # success/save:             bold green
    r = "\033[1;31m"    # error/critical:           bold red

    q = "\033[0m"      # quit/reset

    def __init__(self, name: str = "patchwork", level: int = logging.INFO) -> None:
        """
        Args:
            name (str): The name of the logger.
            level (int): Logging level (e.g., logging.INFO, logging.DEBUG).
        """
        self.logger: logging.Logger = logging.getLogger(name)
        self.logger.setLevel(level)

        # the library logger owns its output, the root logger would print twice
        self.logger.propagate = False

        if self.logger.hasHandlers():
            self.logger.handlers.clear()

        self.logger.addHandler(self._get_handler())

    def _get_handler(self) -> logging.StreamHandler:
        """
        Constructs a StreamHandler that writes through tqdm.

        Returns:
            logging.StreamHandler: Configured handler with ANSI color support.
        """
        log_format: str = f"\033[90m%(asctime)s{self.q} - {self.b}%(levelname)s{self.q} - %(message)s"
        formatter: logging.Formatter = logging.Formatter(log_format, "%H:%M:%S")

        handler: logging.StreamHandler = logging.StreamHandler(sys.stdout)
        handler.emit = lambda record: tqdm.write(formatter.format(record))
        handler.setFormatter(formatter)
        return handler

    def set_level(self, level: int) -> None:
        """
        Changes the verbosity of the library logger.

        Args:
            level (int): Logging level, e.g. logging.DEBUG to see per-group sizes.
        """
        self.logger.setLevel(level)


hue = HueLogger()
logger: logging.Logger = hue.logger
