"""
Discovery node selection. Audius discovery nodes are independently operated
and come and go, so the node used for a process is picked from a live list
when possible and from a static list of known-stable nodes otherwise.
"""

from asyncio import TimeoutError as AsyncioTimeoutError
from random import Random
from typing import TYPE_CHECKING, List, Optional, Sequence

from aiohttp import ClientError

from jukebox.utils.constants import USER_AGENT
from jukebox.utils.logger import create_logger

if TYPE_CHECKING:
  from aiohttp import ClientSession


class HostSelector:
  """
  Single-owner cache for the selected discovery node.

  The selected host is reused across requests until invalidate() is called,
  after which the next call to get() runs discovery again. Concurrent
  requests may race on this state; the worst outcome is a redundant discovery.
  """

  def __init__(
    self,
    session: 'ClientSession',
    sources: Sequence[str],
    fallback_hosts: Sequence[str],
    *,
    rng: Optional[Random] = None
  ):
    if len(fallback_hosts) == 0:
      raise ValueError('At least one fallback host must be specified')

    self._session = session
    self._sources = list(sources)
    self._fallback_hosts = [host.rstrip('/') for host in fallback_hosts]
    self._rng = rng or Random()
    self._selected: Optional[str] = None
    self._logger = create_logger(self.__class__.__name__)

  @property
  def selected(self) -> Optional[str]:
    """
    Returns the currently selected host, if any.
    """
    return self._selected

  async def get(self) -> str:
    """
    Returns the selected host, running discovery first if necessary.
    """
    if self._selected is None:
      return await self.select()
    return self._selected

  def invalidate(self):
    """
    Forgets the selected host so that the next request rediscovers one.
    """
    if self._selected is not None:
      self._logger.warning('Invalidating selected host %s', self._selected)
    self._selected = None

  async def select(self) -> str:
    """
    Picks a host uniformly at random from the first discovery source that
    returns a non-empty list, falling back to the static host list.
    This never fails.
    """
    for source in self._sources:
      hosts = await self._list_hosts(source)
      if len(hosts) > 0:
        self._selected = self._rng.choice(hosts).rstrip('/')
        self._logger.info('Selected Audius host %s', self._selected)
        return self._selected

    self._selected = self._rng.choice(self._fallback_hosts)
    self._logger.warning('Using fallback Audius host %s', self._selected)
    return self._selected

  async def _list_hosts(self, source: str) -> List[str]:
    try:
      async with self._session.get(
        source,
        headers={'User-Agent': USER_AGENT, 'Accept': 'application/json'}
      ) as response:
        if response.status < 200 or response.status >= 300:
          self._logger.debug('Discovery source %s returned %d', source, response.status)
          return []
        payload = await response.json(content_type=None)
    except (ClientError, AsyncioTimeoutError, ValueError) as exc:
      self._logger.debug('Failed to list hosts from %s: %s', source, exc)
      return []

    hosts = payload.get('data') if isinstance(payload, dict) else None
    if not isinstance(hosts, list):
      return []
    return [host for host in hosts if isinstance(host, str) and host]
