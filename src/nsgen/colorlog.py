"""
nsgen Color Log Formatter - ANSI Color-Coded Log Message Formatting

PURPOSE:
    Provides color-coded log output for the console. Colors are only
    emitted when the handler writes to a terminal; redirected output (for
    example `nsgen ... 2>run.log`) stays plain.

WHO READS ME:
    - main.py: setup_logging() installs CustomFormatter on the root handlers

COLOR SCHEME:
    - DEBUG: Grey
    - INFO: Cyan
    - WARNING: Yellow
    - ERROR: Red
    - CRITICAL: Bold Red

LOG FORMAT:
    %(asctime)s - %(levelname)s - %(message)s - (%(filename)s:%(lineno)d)

ATTRIBUTION:
    Based on: https://stackoverflow.com/questions/384076/how-can-i-color-python-logging-output
"""

import logging

TEMPLATE = "%(asctime)s - %(levelname)s - %(message)s - (%(filename)s:%(lineno)d)"

COLORS = {
    logging.DEBUG: "\x1b[38;20m",
    logging.INFO: "\x1b[36;20m",
    logging.WARNING: "\x1b[33;20m",
    logging.ERROR: "\x1b[31;20m",
    logging.CRITICAL: "\x1b[31;1m",
}
RESET = "\x1b[0m"


class CustomFormatter(logging.Formatter):
    """return a formatter that prints log messages with color"""

    def __init__(self, use_color: bool = True):
        super().__init__(TEMPLATE)
        self.use_color = use_color
        self._formatters = {
            level: logging.Formatter(color + TEMPLATE + RESET) for level, color in COLORS.items()
        }

    def format(self, record):
        if not self.use_color:
            return super().format(record)
        formatter = self._formatters.get(record.levelno, self)
        if formatter is self:
            return super().format(record)
        return formatter.format(record)


def stream_is_tty(handler: logging.Handler) -> bool:
    stream = getattr(handler, "stream", None)
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())
