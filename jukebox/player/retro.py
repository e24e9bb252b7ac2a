"""
Retro radio player. Plays random recordings from a category-tagged
catalog instead of Audius tracks.
"""

from random import Random
from typing import TYPE_CHECKING, Dict, Optional

from requests.exceptions import RequestException
from tenacity import RetryError

from jukebox.models.session import PlaybackState
from jukebox.utils.exceptions import (CatalogConfigError, CatalogEmptyError,
                                      PlaybackError)

from .audio import EVENT_ENDED
from .base import BasePlayer

if TYPE_CHECKING:
  from jukebox.catalog.presence import PresenceService
  from jukebox.catalog.provider import CatalogProvider
  from jukebox.models.catalog_entry import CatalogEntry

  from .audio import AudioOutput


CATEGORIES: Dict[str, str] = {
  'chill': 'CHILL',
  'retro': 'RETRO',
  'lofi': 'LOFI',
  'work': 'WORK',
}
DEFAULT_CATEGORY = 'chill'


class RetroPlayer(BasePlayer):
  """
  Plays a random URL from a random catalog entry of the selected category.
  """

  def __init__(
    self,
    audio: 'AudioOutput',
    catalog: Optional['CatalogProvider'],
    *,
    category: str = DEFAULT_CATEGORY,
    rng: Optional[Random] = None,
    presence: Optional['PresenceService'] = None,
    session_id: Optional[str] = None
  ):
    super().__init__(audio, presence=presence, session_id=session_id)
    self._catalog = catalog
    self._rng = rng or Random()
    self._category = category
    self._loaded_category: Optional[str] = None
    audio.add_listener(EVENT_ENDED, self._on_ended)

  @property
  def category(self) -> str:
    return self._category

  @property
  def category_label(self) -> str:
    return CATEGORIES.get(self._category, self._category.upper())

  @property
  def loaded_category(self) -> Optional[str]:
    """
    Returns the category of the loaded source, if any.
    """
    return self._loaded_category

  def _pick_entry(self, category: str) -> Optional['CatalogEntry']:
    if self._catalog is None:
      raise CatalogConfigError()

    entries = self._catalog.list_entries(category)
    if len(entries) > 0:
      return self._rng.choice(entries)
    return self._catalog.fallback_entry()

  async def load_audio_for_category(self, category: str) -> bool:
    """
    Loads a random recording for a category into the output.

    :return: Whether a source was loaded. On failure, the reason is
        available as the player's error.
    """
    try:
      entry = await self._run_blocking(self._pick_entry, category)
      if entry is None:
        self._logger.warning('Catalog has no entries for %s', category)
        self._session.error = f'No track found for {category}.'
        return False
      url = entry.pick_url(self._rng)
    except CatalogEmptyError:
      self._logger.warning('Catalog entry for %s has no audio URLs', category)
      self._session.error = f'No audio URL for {category}.'
      return False
    except CatalogConfigError as err:
      self._logger.error('Catalog is not configured: %s', err)
      self._session.error = str(err)
      return False
    except (RequestException, RetryError, ValueError) as err:
      self._logger.error('Could not load audio for %s: %s', category, err)
      self._session.error = 'Failed to load audio.'
      return False

    self._logger.info('Loading %s recording %s', category, url)
    self._audio.src = url
    self._audio.load()
    self._loaded_category = category
    self._session.error = ''
    return True

  async def _start(self):
    self._session.state = PlaybackState.LOADING
    if self._loaded_category != self._category or not self._audio.src:
      if not await self.load_audio_for_category(self._category):
        self._session.state = PlaybackState.STOPPED
        return

    try:
      await self._audio.play()
    except PlaybackError as err:
      self._logger.error('Could not start playback: %s', err)
      self._session.error = 'Unable to start playback.'
      self._session.state = PlaybackState.STOPPED
      return

    self._session.state = PlaybackState.PLAYING
    await self._join_presence()

  async def pause(self):
    self._audio.pause()
    self._session.state = PlaybackState.STOPPED
    await self._leave_presence()

  async def toggle(self):
    """
    Pauses if playing. Otherwise starts playback, loading a recording
    first if the category changed or nothing is loaded.
    """
    if self._session.is_playing:
      await self.pause()
    else:
      await self._start()

  async def set_category(self, category: str):
    """
    Selects a category. If playing, swaps to a recording of the new one.
    """
    if category == self._category:
      return

    self._category = category
    if self._session.is_playing:
      self._audio.pause()
      await self._start()

  def _on_ended(self):
    self._session.state = PlaybackState.STOPPED

  async def close(self):
    self._audio.remove_listener(EVENT_ENDED, self._on_ended)
    self._session.state = PlaybackState.STOPPED
    await super().close()
