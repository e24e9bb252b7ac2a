"""
HTTP client for the Audius proxy.
"""

import json
from asyncio import TimeoutError as AsyncioTimeoutError
from typing import Any, Dict, List, Optional

from aiohttp import ClientError, ClientSession
from yarl import URL

from jukebox.models.track import Track, parse_tracks
from jukebox.utils.constants import DEFAULT_TRENDING_LIMIT
from jukebox.utils.exceptions import (BadRequestError,
                                      InvalidUpstreamPayloadError, ProxyError,
                                      UpstreamUnavailableError)
from jukebox.utils.logger import create_logger


class ProxyClient:
  """
  Talks to the proxy's /api/audius route and parses its responses into tracks.
  """

  def __init__(self, proxy_url: str, session: Optional[ClientSession] = None):
    self._base = URL(proxy_url)
    self._session = session
    self._owns_session = session is None
    self._logger = create_logger(self.__class__.__name__)

  def _get_session(self) -> ClientSession:
    if self._session is None:
      self._session = ClientSession()
    return self._session

  def stream_url(self, track_id: str) -> str:
    """
    Returns the proxy URL that relays the audio of a track.
    """
    return str(self._base.with_query(endpoint=f'/tracks/{track_id}/stream'))

  async def trending(self, limit: int = DEFAULT_TRENDING_LIMIT) -> List[Track]:
    """
    Returns streamable trending tracks.
    """
    return parse_tracks(await self._get({'endpoint': '/trending', 'limit': str(limit)}))

  async def search(self, query: str) -> List[Track]:
    """
    Returns streamable tracks matching a query.
    """
    return parse_tracks(await self._get({'endpoint': '/tracks/search', 'q': query}))

  async def user_tracks(self, user_id: str) -> List[Track]:
    """
    Returns the streamable tracks of a user.
    """
    return parse_tracks(await self._get({'endpoint': f'/users/{user_id}/tracks'}))

  async def close(self):
    """
    Closes the underlying session if this client created it.
    """
    if self._owns_session and self._session is not None:
      await self._session.close()
      self._session = None

  async def _get(self, params: Dict[str, str]) -> Any:
    url = self._base.with_query(params)
    try:
      async with self._get_session().get(url) as response:
        status = response.status
        text = await response.text(errors='replace')
    except (ClientError, AsyncioTimeoutError) as exc:
      raise ProxyError(f'Could not reach proxy: {exc}') from exc

    try:
      data = json.loads(text)
    except ValueError:
      data = None

    if 200 <= status < 300:
      if data is None:
        raise InvalidUpstreamPayloadError('Proxy returned an empty or invalid body', details=text)
      return data

    error = data.get('error', text) if isinstance(data, dict) else text
    details = data.get('details') if isinstance(data, dict) else None
    self._logger.warning('Proxy returned %d for %s: %s', status, params.get('endpoint'), error)

    if status == 400:
      raise BadRequestError(error, details=details)
    if status == 502:
      raise InvalidUpstreamPayloadError(error, details=details)
    if status == 503:
      raise UpstreamUnavailableError(error, details=details)
    raise ProxyError(error, status=status, details=details)
