import logging
import re
import sys
from datetime import datetime
from pathlib import Path

from colorama import Fore, Style, just_fix_windows_console

ROOT_LOGGER = "todo_api"

format_string_console = (
    f"{Style.BRIGHT}%(levelname)-10s "
    + f"{Style.DIM}%(name)-30s "
    + "%(module)s.%(funcName)-30s "
    + f"{Style.RESET_ALL}%(message)s"
)
format_string_file = re.sub(
    r"\x1b\[[0-9;]*m", "", "%(asctime)s - " + format_string_console
)


class ColorFormatter(logging.Formatter):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.color_map = {
            logging.DEBUG: Fore.CYAN,
            logging.INFO: Fore.GREEN,
            logging.WARNING: Fore.YELLOW,
            logging.ERROR: Fore.RED,
            logging.CRITICAL: Fore.MAGENTA,
        }

    def format(self, record):
        color = self.color_map.get(record.levelno, Fore.WHITE)
        message = super().format(record)
        return f"{color}{message}{Style.RESET_ALL}"


class Logger:
    """Named logger inside the ``todo_api`` hierarchy.

    Handlers live on the package root logger (see ``setup_logging``), so
    module loggers can be created at import time before any configuration
    has been loaded.
    """

    def __init__(self, name, level=None):
        if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
            name = f"{ROOT_LOGGER}.{name}"

        self.logger = logging.getLogger(name)
        if level is not None:
            self.logger.setLevel(level)

    def get_logger(self):
        return self.logger


def setup_logging(level=logging.INFO, log_dir: str | None = None) -> logging.Logger:
    """Install console (and optionally daily file) handlers on the root logger.

    Calling this more than once replaces the previously installed handlers.
    """
    just_fix_windows_console()

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ColorFormatter(format_string_console))
    root.addHandler(console_handler)

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(
            Path(log_dir) / f"{datetime.now().strftime('%Y-%m-%d')}.log"
        )
        file_handler.setFormatter(logging.Formatter(format_string_file))
        root.addHandler(file_handler)

    return root
