from __future__ import annotations
import datetime
import logging
import os
import sys


class CustomFormatter(logging.Formatter):
    """Level-colored records prefixed with time since startup."""

    white = "\x1b[97;20m"
    grey = "\x1b[38;20m"
    green = "\x1b[32;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"
    fmt = "%(delta)s - %(levelname)s - %(name)s.%(funcName)s - %(message)s"
    cfmt = (
        f"{white}%(delta)s{reset} - "
        f"{{}}%(levelname)s{{}} - "
        f"{white}%(name)s.%(funcName)s{reset} - "
        f"{grey}%(message)s{reset}"
    )

    FORMATS = {
        logging.DEBUG: cfmt.format(grey, reset),
        logging.INFO: cfmt.format(green, reset),
        logging.WARNING: cfmt.format(yellow, reset),
        logging.ERROR: cfmt.format(red, reset),
        logging.CRITICAL: cfmt.format(bold_red, reset),
    }

    def __init__(self, use_color: bool = True) -> None:
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color:
            log_fmt = self.fmt
        else:
            log_fmt = self.FORMATS.get(record.levelno, self.fmt)
        duration = datetime.datetime.fromtimestamp(record.relativeCreated / 1000, datetime.timezone.utc)
        record.delta = duration.strftime("%H:%M:%S")
        return logging.Formatter(log_fmt).format(record)


def use_color_default() -> bool:
    return sys.stderr.isatty() and os.environ.get("NO_COLOR") is None


def setup_logging(verbose: bool = False, use_color: bool = True) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(CustomFormatter(use_color=use_color))
    root = logging.getLogger("bundlebench")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.propagate = False
