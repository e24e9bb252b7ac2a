"""
Logger factory. Every component gets its own named logger that writes
coloured lines to the terminal and forwards errors to Sentry when enabled.
"""

import logging
import sys
from typing import Dict, Optional, TextIO

import sentry_sdk
from sentry_sdk.integrations.logging import EventHandler

from .config import DEBUG_ENABLED, SENTRY_DSN, SENTRY_ENV
from .constants import RELEASE

DATE_FMT_STR = '%Y-%m-%d %H:%M:%S'
LOG_FMT_STR = '{0}%(asctime)s.%(msecs)03d {1}[%(levelname)s]{2} %(name)s: %(message)s (%(filename)s:%(lineno)d)' # pylint: disable=line-too-long
LEVEL_NAMES = {
  logging.DEBUG: 'DBUG',
  logging.INFO: 'INFO',
  logging.WARNING: 'WARN',
  logging.ERROR: 'ERR!',
  logging.CRITICAL: 'CRIT',
}

# ANSI terminal colors
ANSI_BLUE = '\x1b[36;20m'
ANSI_GREEN = '\x1b[32;20m'
ANSI_GREY = '\x1b[37;1m'
ANSI_RED = '\x1b[31;20m'
ANSI_RED_BOLD = '\x1b[41;1m'
ANSI_YELLOW = '\x1b[33;20m'
ANSI_RESET = '\x1b[0m'
LEVEL_COLORS = {
  logging.DEBUG: (ANSI_GREY, ANSI_GREEN),
  logging.INFO: (ANSI_GREY, ANSI_BLUE),
  logging.WARNING: (ANSI_GREY, ANSI_YELLOW),
  logging.ERROR: (ANSI_GREY, ANSI_RED),
  logging.CRITICAL: (ANSI_RED_BOLD, ANSI_RED_BOLD),
}

_sentry_initialized = False


class ColorFormatter(logging.Formatter):
  """
  Formatter that colours the timestamp and level of each line.
  Colours are dropped when the output is not a terminal.
  """

  def __init__(self, use_color: bool = True):
    super().__init__(datefmt=DATE_FMT_STR)
    self._formatters: Dict[int, logging.Formatter] = {}
    for level, (time_color, level_color) in LEVEL_COLORS.items():
      if use_color:
        fmt = LOG_FMT_STR.format(time_color, level_color, ANSI_RESET)
      else:
        fmt = LOG_FMT_STR.format('', '', '')
      self._formatters[level] = logging.Formatter(fmt=fmt, datefmt=DATE_FMT_STR)

  def format(self, record: logging.LogRecord) -> str:
    formatter = self._formatters.get(record.levelno, self._formatters[logging.INFO])
    return formatter.format(record)


def _init_sentry() -> bool:
  global _sentry_initialized # pylint: disable=global-statement
  if SENTRY_DSN is None or SENTRY_ENV is None:
    return False

  if not _sentry_initialized:
    sentry_sdk.init(
      dsn=SENTRY_DSN,
      environment=SENTRY_ENV,
      release=RELEASE,
      traces_sample_rate=1.0
    )
    _sentry_initialized = True
  return True


def create_logger(name: str, stream: Optional[TextIO] = None) -> logging.Logger:
  """
  Creates a logger with the given name and returns it.

  :param name: Name of the logger, usually the owning class
  :param stream: Stream to write to. Defaults to stderr.
  :return: Logger object
  """
  logger = logging.getLogger(name)
  if logger.hasHandlers():
    logger.handlers.clear()
  logger.setLevel(logging.DEBUG if DEBUG_ENABLED else logging.INFO)

  for level, level_name in LEVEL_NAMES.items():
    logging.addLevelName(level, level_name)

  stream = stream or sys.stderr
  handler = logging.StreamHandler(stream)
  handler.setFormatter(ColorFormatter(use_color=stream.isatty()))
  logger.addHandler(handler)

  if _init_sentry():
    sentry_handler = EventHandler()
    sentry_handler.setLevel(logging.ERROR)
    logger.addHandler(sentry_handler)

  return logger
