"""
Playback controller for Audius tracks.

Drives an AudioOutput through the proxy: starting a track supersedes
whatever was playing, failed starts are retried with backoff, and tracks
that end naturally advance to the next one in the queue.
"""

from asyncio import Task, gather, get_event_loop, sleep as asyncio_sleep
from math import floor
from typing import TYPE_CHECKING, List, Optional, Sequence

from jukebox.models.config import PlayerConfig
from jukebox.models.session import PlaybackState
from jukebox.models.track import Track
from jukebox.utils.constants import DEFAULT_TRENDING_LIMIT
from jukebox.utils.exceptions import JukeboxException, PlaybackError

from .audio import (EVENT_ENDED, EVENT_ERROR, EVENT_LOADED_METADATA,
                    EVENT_TIME_UPDATE)
from .base import BasePlayer
from .queue import QueueManager
from .retry import RetryEngine, SleepFn

if TYPE_CHECKING:
  from jukebox.catalog.presence import PresenceService

  from .audio import AudioOutput
  from .client import ProxyClient


class PlaybackController(BasePlayer):
  """
  Plays Audius tracks streamed through the proxy.
  """

  def __init__(
    self,
    audio: 'AudioOutput',
    client: 'ProxyClient',
    *,
    config: Optional[PlayerConfig] = None,
    retry: Optional[RetryEngine] = None,
    sleep: Optional[SleepFn] = None,
    presence: Optional['PresenceService'] = None,
    session_id: Optional[str] = None
  ):
    super().__init__(audio, presence=presence, session_id=session_id)
    if config is None:
      config = PlayerConfig()

    self._client = client
    self._sleep = sleep or asyncio_sleep
    self._start_delay = config.start_delay
    self._advance_on_failure = config.advance_on_failure
    self._retry = retry or RetryEngine(
      config.max_retries,
      config.retry_base_delay,
      sleep=self._sleep
    )

    # Queue and browsing lists
    self._queue = QueueManager()
    self._tracks: List[Track] = []
    self._top_tracks: List[Track] = []

    # Background tasks
    self._start_task: Optional[Task] = None
    self._related_task: Optional[Task] = None
    self._advance_task: Optional[Task] = None

    # Audio events
    audio.add_listener(EVENT_TIME_UPDATE, self._on_time_update)
    audio.add_listener(EVENT_LOADED_METADATA, self._on_loaded_metadata)
    audio.add_listener(EVENT_ENDED, self._on_ended)
    audio.add_listener(EVENT_ERROR, self._on_error)

  @property
  def current_track(self) -> Optional[Track]:
    return self._session.track

  @property
  def queue(self) -> QueueManager:
    return self._queue

  @property
  def tracks(self) -> List[Track]:
    """
    Returns the tracks currently listed, from trending or from a search.
    """
    return self._tracks

  @property
  def top_tracks(self) -> List[Track]:
    """
    Returns the most recently loaded trending tracks.
    """
    return self._top_tracks

  @property
  def retry_attempts(self) -> int:
    return self._retry.attempts

  @property
  def retry_status(self) -> str:
    return self._retry.status

  @property
  def status_text(self) -> str:
    if self._retry.status:
      return self._retry.status
    return self._session.status_text

  ############
  # Playback #
  ############

  async def play(self, track: Track, queue: Optional[Sequence[Track]] = None):
    """
    Starts playing a track, superseding whatever was playing.

    :param track: The track to play.
    :param queue: The list the track was picked from. If omitted, the
        track is looked up in the current queue.
    """
    if not track.id:
      self._session.error = 'This track cannot be streamed - no ID available.'
      self._logger.error('Refusing to play `%s\': no track ID', track.title)
      return

    # Nothing from the previous track may fire after this point
    self._cancel_pending()
    self._audio.stop()

    self._session.track = track
    if queue is not None:
      self._queue.load(queue, track)
    else:
      self._queue.locate(track)
    self._fetch_related(track)

    self._session.state = PlaybackState.LOADING
    self._retry.reset()
    self._session.reset_timers()
    self._load_source(track)
    self._session.error = ''

    self._logger.info('Playing `%s\' by %s', track.title, track.artist.name)
    self._start_task = get_event_loop().create_task(self._start(track))
    await self._join_presence()

  async def pause(self):
    """
    Pauses playback and drops any pending retry.
    """
    self._cancel_start()
    self._retry.cancel()
    self._retry.reset()
    self._audio.pause()
    self._session.state = PlaybackState.STOPPED
    await self._leave_presence()

  async def resume(self):
    """
    Resumes the current track. A failure to resume is retried.
    """
    track = self._session.track
    if track is None:
      return

    self._session.state = PlaybackState.LOADING
    try:
      await self._audio.play()
    except PlaybackError as err:
      self._logger.warning('Could not resume `%s\': %s', track.title, err)
      self._schedule_retry(track)
    else:
      self._retry.reset()
      self._session.state = PlaybackState.PLAYING
      self._session.error = ''
    await self._join_presence()

  async def toggle(self):
    """
    Pauses if playing or starting, resumes otherwise.
    """
    if self._session.is_active:
      await self.pause()
    else:
      await self.resume()

  async def next(self) -> Optional[Track]:
    """
    Skips to the next track. Returns the track now playing, if any.
    """
    return await self.advance()

  async def advance(self) -> Optional[Track]:
    """
    Starts the next track in the queue, wrapping around at the end.
    If the current track is not in the queue, starts the first trending
    track instead. Does nothing if the queue is empty.
    """
    if self._queue.size == 0:
      return None

    if self._queue.has_position:
      track = self._queue.skip()
      await self.play(track, self._queue.queue)
      return track

    if len(self._top_tracks) > 0:
      track = self._top_tracks[0]
      await self.play(track, self._top_tracks)
      return track
    return None

  def _load_source(self, track: Track):
    self._audio.src = self._client.stream_url(track.id)
    self._audio.load()

  async def _start(self, track: Track):
    # Give the output a moment to load the source before starting
    await self._sleep(self._start_delay)
    try:
      await self._audio.play()
    except Exception as exc: # pylint: disable=broad-exception-caught
      self._logger.warning('Could not start `%s\': %s', track.title, exc)
      self._schedule_retry(track)
    else:
      self._session.state = PlaybackState.PLAYING

  def _schedule_retry(self, track: Track):
    self._retry.schedule(track, self._attempt, self._give_up)

  async def _attempt(self, track: Track):
    self._load_source(track)
    await self._sleep(self._start_delay)
    await self._audio.play()
    self._session.state = PlaybackState.PLAYING
    self._session.error = ''

  def _give_up(self, track: Track, _: Exception):
    self._session.error = f'Failed to stream track after {self._retry.max_attempts} attempts.'
    self._session.state = PlaybackState.STOPPED

    if self._advance_on_failure:
      # Runs after the retry task has finished, so play() cannot cancel it mid-flight
      self._logger.info('Skipping `%s\' after failed retries', track.title)
      self._advance_task = get_event_loop().create_task(self.advance())

  def _cancel_start(self):
    if self._start_task is not None and not self._start_task.done():
      self._start_task.cancel()
    self._start_task = None

  def _cancel_pending(self):
    self._cancel_start()
    self._retry.cancel()
    if self._related_task is not None and not self._related_task.done():
      self._related_task.cancel()
    self._related_task = None

  def _fetch_related(self, track: Track):
    self._session.related_tracks = []
    if track.artist.id is None:
      return
    self._related_task = get_event_loop().create_task(self._load_related(track.artist.id))

  async def _load_related(self, user_id: str):
    try:
      self._session.related_tracks = await self._client.user_tracks(user_id)
    except JukeboxException as err:
      self._logger.warning('Could not fetch tracks by user %s: %s', user_id, err)

  ################
  # Audio events #
  ################

  def _on_time_update(self):
    current_time = self._audio.current_time
    duration = self._audio.duration
    if duration:
      self._session.progress = min(current_time / duration * 100, 100.0)
    self._session.elapsed = floor(current_time)

  def _on_loaded_metadata(self):
    if self._audio.duration:
      self._session.duration = floor(self._audio.duration)

  async def _on_ended(self):
    self._session.progress = 0.0
    self._session.elapsed = 0
    await self.advance()

  def _on_error(self):
    track = self._session.track
    if self._session.is_active and track is not None and not self._retry.exhausted:
      if not self._retry.pending:
        self._logger.warning('Output reported an error for `%s\'', track.title)
        self._schedule_retry(track)
      return

    self._logger.error('Playback failed for %s', track.title if track is not None else 'no track')
    self._session.error = 'Playback failed. Try another track.'
    self._session.state = PlaybackState.STOPPED

  ############
  # Browsing #
  ############

  async def load_trending(self, limit: int = DEFAULT_TRENDING_LIMIT) -> List[Track]:
    """
    Loads trending tracks into the listing and the default list.
    """
    try:
      tracks = await self._client.trending(limit)
    except JukeboxException as err:
      self._logger.error('Could not load trending tracks: %s', err)
      self._session.error = 'Failed to load tracks. Please refresh the page.'
      return []

    if len(tracks) == 0:
      self._session.error = 'No tracks available'
      return tracks

    self._top_tracks = tracks
    self._tracks = tracks
    self._session.error = ''
    return tracks

  async def search(self, query: str) -> List[Track]:
    """
    Replaces the listing with tracks matching a query. Blank queries
    are ignored.
    """
    if not query.strip():
      return []

    try:
      tracks = await self._client.search(query)
    except JukeboxException as err:
      self._logger.error('Search for `%s\' failed: %s', query, err)
      self._session.error = f'Search failed: {err}'
      self._tracks = []
      return []

    self._tracks = tracks
    if len(tracks) == 0:
      self._session.error = 'No tracks found. Try another search.'
    else:
      self._session.error = ''
    return tracks

  ############
  # Teardown #
  ############

  async def join(self):
    """
    Waits for the background work of the current track to settle.
    """
    tasks = [t for t in (self._start_task, self._related_task) if t is not None]
    await gather(*tasks, return_exceptions=True)
    await gather(self._retry.wait(), return_exceptions=True)
    advance_task, self._advance_task = self._advance_task, None
    if advance_task is not None:
      await gather(advance_task, return_exceptions=True)
      await self.join()

  async def close(self):
    self._cancel_pending()
    if self._advance_task is not None and not self._advance_task.done():
      self._advance_task.cancel()
    self._advance_task = None

    self._audio.remove_listener(EVENT_TIME_UPDATE, self._on_time_update)
    self._audio.remove_listener(EVENT_LOADED_METADATA, self._on_loaded_metadata)
    self._audio.remove_listener(EVENT_ENDED, self._on_ended)
    self._audio.remove_listener(EVENT_ERROR, self._on_error)
    self._session.state = PlaybackState.STOPPED
    await super().close()
