"""
Base class for players. Owns the audio output, the playback session,
the volume model and the listener's presence.
"""

from asyncio import get_event_loop
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Callable, Optional
from uuid import uuid4

from requests.exceptions import RequestException

from jukebox.models.session import PlaybackSession
from jukebox.utils.constants import VOLUME_STEP
from jukebox.utils.logger import create_logger

if TYPE_CHECKING:
  from jukebox.catalog.presence import PresenceService

  from .audio import AudioOutput


def clamp(value: int, minimum: int, maximum: int) -> int:
  return max(minimum, min(maximum, value))


class BasePlayer:
  """
  Common state and controls shared by the Audius and retro players.
  """

  def __init__(
    self,
    audio: 'AudioOutput',
    *,
    presence: Optional['PresenceService'] = None,
    session_id: Optional[str] = None
  ):
    self._audio = audio
    self._session = PlaybackSession()

    # Presence
    self._presence = presence
    self._session_id = session_id or uuid4().hex
    self._joined = False

    # Executor for blocking collaborator calls
    self._executor = ThreadPoolExecutor(max_workers=1)

    # Logger
    self._logger = create_logger(self.__class__.__name__)

    self._apply_volume()

  @property
  def audio(self) -> 'AudioOutput':
    """
    Returns the audio output driven by this player.
    """
    return self._audio

  @property
  def session(self) -> PlaybackSession:
    """
    Returns the playback session.
    """
    return self._session

  @property
  def session_id(self) -> str:
    """
    Returns the ID this player uses with the presence service.
    """
    return self._session_id

  @property
  def error(self) -> str:
    """
    Returns the last user-visible error, or an empty string.
    """
    return self._session.error

  @property
  def is_playing(self) -> bool:
    return self._session.is_playing

  @property
  def status_text(self) -> str:
    return self._session.status_text

  ##########
  # Volume #
  ##########

  def set_volume(self, volume: int):
    """
    Sets the volume, clamped to 0-100.
    """
    self._session.volume = clamp(volume, 0, 100)
    self._apply_volume()

  def volume_up(self):
    """
    Unmutes and raises the volume by one step.
    """
    self._session.muted = False
    self.set_volume(self._session.volume + VOLUME_STEP)

  def volume_down(self):
    """
    Unmutes and lowers the volume by one step.
    """
    self._session.muted = False
    self.set_volume(self._session.volume - VOLUME_STEP)

  def mute(self):
    self._session.muted = True
    self._apply_volume()

  def unmute(self):
    self._session.muted = False
    self._apply_volume()

  def toggle_mute(self):
    self._session.muted = not self._session.muted
    self._apply_volume()

  def _apply_volume(self):
    self._audio.volume = self._session.effective_volume / 100

  ############
  # Presence #
  ############

  async def _run_blocking(self, func: Callable[..., Any], *args: Any) -> Any:
    return await get_event_loop().run_in_executor(self._executor, func, *args)

  async def _join_presence(self):
    if self._presence is None or self._joined:
      return

    try:
      await self._run_blocking(self._presence.join, self._session_id)
    except RequestException as err:
      self._logger.warning('Could not join presence as %s: %s', self._session_id, err)
      return
    self._joined = True

  async def _leave_presence(self):
    if self._presence is None or not self._joined:
      return

    self._joined = False
    try:
      await self._run_blocking(self._presence.leave, self._session_id)
    except RequestException as err:
      self._logger.warning('Could not leave presence as %s: %s', self._session_id, err)

  async def close(self):
    """
    Stops playback and releases the player's resources.
    """
    self._audio.stop()
    await self._leave_presence()
    self._executor.shutdown(wait=False)
