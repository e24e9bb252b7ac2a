"""
Utility methods for converting between human and machine readable time formats.
"""

from math import floor, isnan
from typing import Optional, Union


def format_time(seconds: Optional[Union[int, float]]) -> str:
  """
  Turn a number of seconds into a m:ss string, e.g. 125 -> "2:05".
  Missing or invalid values are rendered as "0:00".
  """
  if not seconds or isnan(seconds):
    return '0:00'

  minute, sec = divmod(floor(seconds), 60)
  return f'{minute}:{sec:02d}'
