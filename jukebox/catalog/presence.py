"""
Presence services, which count the listeners that are currently tuned in.
Sessions join and leave by an opaque session ID, and subscribers are
notified whenever the live count changes.
"""

from abc import ABC, abstractmethod
from threading import Event, Lock, Thread, current_thread
from typing import TYPE_CHECKING, Callable, List, Optional, Set

import requests
from requests.exceptions import RequestException
from yarl import URL

from jukebox.utils.constants import PRESENCE_POLL_INTERVAL, USER_AGENT
from jukebox.utils.logger import create_logger

if TYPE_CHECKING:
  from jukebox.models.config import SupabaseConfig


CountListener = Callable[[int], None]
REQUEST_TIMEOUT = 5


class PresenceService(ABC):
  """
  Base class for presence services.
  """

  def __init__(self):
    self._listeners: List[CountListener] = []
    self._last_count: Optional[int] = None
    self._count_lock = Lock()
    self._logger = create_logger(self.__class__.__name__)

  @abstractmethod
  def join(self, session_id: str):
    """
    Marks a session as listening.
    """

  @abstractmethod
  def leave(self, session_id: str):
    """
    Marks a session as no longer listening.
    """

  @abstractmethod
  def count(self) -> int:
    """
    Returns the number of sessions currently listening.
    """

  def subscribe(self, listener: CountListener) -> Callable[[], None]:
    """
    Registers a listener that is called with the new count on every change.

    :return: A function that unregisters the listener.
    """
    self._listeners.append(listener)
    self._subscribers_changed()

    def unsubscribe():
      if listener in self._listeners:
        self._listeners.remove(listener)
        self._subscribers_changed()

    return unsubscribe

  def _subscribers_changed(self):
    """
    Called after a listener is added or removed.
    """

  def close(self):
    """
    Releases any background resources held by the service.
    """

  def _notify(self, count: int):
    with self._count_lock:
      if count == self._last_count:
        return
      self._last_count = count

    self._logger.debug('Listener count is now %d', count)
    for listener in list(self._listeners):
      listener(count)


class InMemoryPresence(PresenceService):
  """
  Presence service that only counts sessions within this process.
  """

  def __init__(self):
    super().__init__()
    self._sessions: Set[str] = set()
    self._lock = Lock()

  def join(self, session_id: str):
    with self._lock:
      self._sessions.add(session_id)
      count = len(self._sessions)
    self._notify(count)

  def leave(self, session_id: str):
    with self._lock:
      self._sessions.discard(session_id)
      count = len(self._sessions)
    self._notify(count)

  def count(self) -> int:
    with self._lock:
      return len(self._sessions)


class SupabasePresence(PresenceService):
  """
  Presence service backed by a Supabase table with one row per session.
  Changes made through this service are pushed to subscribers immediately.
  Changes made by other listeners are picked up by a background poller that
  runs while anyone is subscribed.
  """

  def __init__(self, config: 'SupabaseConfig', poll_interval: float = PRESENCE_POLL_INTERVAL):
    super().__init__()
    self._poll_interval = poll_interval
    self._poller: Optional[Thread] = None
    self._stop_polling = Event()
    if not config.enabled:
      raise ValueError('Supabase URL and anon key must be specified')

    assert config.url is not None and config.anon_key is not None
    self._url = URL(config.url.rstrip('/')) / 'rest' / 'v1' / config.listening_table
    self._headers = {
      'User-Agent': USER_AGENT,
      'apikey': config.anon_key,
      'Authorization': f'Bearer {config.anon_key}',
    }

  def join(self, session_id: str):
    response = requests.post(
      str(self._url),
      json={'session_id': session_id},
      headers={**self._headers, 'Prefer': 'return=minimal'},
      timeout=REQUEST_TIMEOUT
    )
    response.raise_for_status()
    self.refresh()

  def leave(self, session_id: str):
    response = requests.delete(
      str(self._url),
      params={'session_id': f'eq.{session_id}'},
      headers=self._headers,
      timeout=REQUEST_TIMEOUT
    )
    response.raise_for_status()
    self.refresh()

  def count(self) -> int:
    response = requests.head(
      str(self._url),
      params={'select': 'session_id'},
      headers={**self._headers, 'Prefer': 'count=exact'},
      timeout=REQUEST_TIMEOUT
    )
    response.raise_for_status()

    # Content-Range looks like "0-4/5", or "*/0" for an empty table
    content_range = response.headers.get('Content-Range', '*/0')
    try:
      return int(content_range.rsplit('/', 1)[-1])
    except ValueError:
      self._logger.warning('Unexpected Content-Range header: %s', content_range)
      return 0

  def refresh(self) -> int:
    """
    Fetches the live count and notifies subscribers if it changed.
    """
    count = self.count()
    self._notify(count)
    return count

  @property
  def polling(self) -> bool:
    """
    Returns whether the background poller is running.
    """
    return self._poller is not None and self._poller.is_alive()

  def _subscribers_changed(self):
    if len(self._listeners) > 0:
      self._start_poller()
    else:
      self._stop_poller()

  def _start_poller(self):
    if self.polling:
      return

    self._stop_polling = Event()
    self._poller = Thread(
      target=self._poll,
      args=(self._stop_polling,),
      name='presence-poller',
      daemon=True
    )
    self._poller.start()
    self._logger.debug('Started polling listener count every %.1f s', self._poll_interval)

  def _stop_poller(self):
    self._stop_polling.set()
    poller, self._poller = self._poller, None
    if poller is not None and poller is not current_thread():
      poller.join(timeout=REQUEST_TIMEOUT)
      self._logger.debug('Stopped polling listener count')

  def _poll(self, stop: Event):
    while not stop.is_set():
      try:
        self.refresh()
      except RequestException as err:
        self._logger.warning('Could not refresh listener count: %s', err)
      stop.wait(self._poll_interval)

  def close(self):
    self._listeners.clear()
    self._stop_poller()
