"""
Dataclass for the state of the active playback session.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from jukebox.utils.constants import VOLUME_DEFAULT
from jukebox.utils.time import format_time

from .track import Artist, Track


class PlaybackState(Enum):
  """
  Coarse playback state, with the status text shown to listeners.
  """
  STOPPED = 'STOPPED'
  LOADING = 'LOADING'
  PLAYING = 'PLAYING'


@dataclass
class PlaybackSession:
  """
  Mutable state of the single active playback session.
  """
  track: Optional[Track] = None
  state: PlaybackState = PlaybackState.STOPPED

  # Timers, in seconds, and progress as a percentage of the duration
  elapsed: int = 0
  duration: int = 0
  progress: float = 0.0

  # Volume (0-100)
  volume: int = VOLUME_DEFAULT
  muted: bool = False

  # Last user-visible error
  error: str = ''

  # Tracks by the current artist, fetched on a best-effort basis
  related_tracks: List[Track] = field(default_factory=list)

  @property
  def is_playing(self) -> bool:
    return self.state == PlaybackState.PLAYING

  @property
  def is_loading(self) -> bool:
    return self.state == PlaybackState.LOADING

  @property
  def is_active(self) -> bool:
    """
    Returns whether playback is running or about to start.
    """
    return self.state in (PlaybackState.PLAYING, PlaybackState.LOADING)

  @property
  def status_text(self) -> str:
    return self.state.value

  @property
  def artist(self) -> Optional[Artist]:
    return self.track.artist if self.track is not None else None

  @property
  def elapsed_text(self) -> str:
    return format_time(self.elapsed)

  @property
  def duration_text(self) -> str:
    return format_time(self.duration)

  @property
  def effective_volume(self) -> int:
    return 0 if self.muted else self.volume

  def reset_timers(self):
    """
    Resets the elapsed time, duration and progress.
    """
    self.elapsed = 0
    self.duration = 0
    self.progress = 0.0
