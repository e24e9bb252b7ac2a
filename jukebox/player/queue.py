"""
Queue manager for the playback controller.
"""

from typing import List, Optional, Sequence, Tuple

from jukebox.models.track import Track
from jukebox.utils.exceptions import EmptyQueueError, EndOfQueueError
from jukebox.utils.logger import create_logger


class QueueManager:
  """
  Holds the ordered track list being played and the position within it.
  The queue wraps around: the track after the last one is the first one.
  """

  def __init__(self):
    self._queue: List[Track] = []

    # The current track index, or -1 if the current track
    # has no known position in the queue.
    self._i = -1

    # Logger
    self._logger = create_logger(self.__class__.__name__)

  @property
  def queue(self) -> List[Track]:
    """
    Returns the queue.
    """
    return self._queue

  @property
  def size(self) -> int:
    """
    Returns the size of the queue.
    """
    return len(self._queue)

  @property
  def has_position(self) -> bool:
    """
    Returns whether the current track has a known position in the queue.
    """
    return 0 <= self._i < self.size

  @property
  def current_index(self) -> int:
    """
    Returns the current track index, or -1 if there is none.
    """
    return self._i

  @property
  def current(self) -> Track:
    """
    Returns the current track in the queue.

    Raises:
        EmptyQueueError: If the queue is empty.
        EndOfQueueError: If there is no current position.
    """
    if self.size == 0:
      raise EmptyQueueError
    if not self.has_position:
      raise EndOfQueueError('No track is at the current position.')
    return self._queue[self._i]

  @property
  def next_track(self) -> Tuple[int, Track]:
    """
    Returns a tuple containing the index of the next track in the queue
    and the track itself.

    Raises:
        EmptyQueueError: If the queue is empty.
        EndOfQueueError: If there is no current position to advance from.
    """
    i = self.calc_next_index()
    return i, self._queue[i]

  def index_of(self, track: Track) -> int:
    """
    Returns the index of a track in the queue by identifier, or -1.
    """
    for i, item in enumerate(self._queue):
      if item.id is not None and item.id == track.id:
        return i
    return -1

  def load(self, tracks: Sequence[Track], current: Optional[Track] = None):
    """
    Replaces the queue and positions it at the given track.
    If the track is not in the new queue, the position is unknown (-1).
    """
    self._queue = list(tracks)
    self._i = self.index_of(current) if current is not None else -1
    self._logger.debug(
      'Loaded queue of %d track(s), current index %d',
      self.size,
      self._i
    )

  def locate(self, track: Track) -> int:
    """
    Moves the position to a track already in the queue.

    :return: The new current index, -1 if the track is not queued.
    """
    self._i = self.index_of(track)
    return self._i

  def calc_next_index(self, *, delta: int = 1) -> int:
    """
    Calculate the next track index as (current + delta) mod size.

    Raises:
        EmptyQueueError: If the queue is empty.
        EndOfQueueError: If there is no current position.
    """
    if self.size == 0:
      raise EmptyQueueError
    if not self.has_position:
      raise EndOfQueueError('No current position in queue.')
    return (self._i + delta) % self.size

  def skip(self) -> Track:
    """
    Returns the next track in the queue and adjusts the current
    track index.

    Raises:
        EmptyQueueError: If the queue is empty.
        EndOfQueueError: If there is no current position.
    """
    i, track = self.next_track
    self._i = i
    return track

  def clear(self):
    """
    Empties the queue.
    """
    self._queue = []
    self._i = -1
