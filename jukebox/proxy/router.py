"""
Request router for the Audius proxy.

Every read path assumes that any single discovery node can be down, slow or
rate limiting, so trending, search and stream requests are failover loops
over an ordered list of candidate hosts. Candidates are tried strictly in
declared priority order (flagship hosts first, then the selected host) and
the first successful response wins.
"""

import json
import re
from asyncio import TimeoutError as AsyncioTimeoutError
from enum import Enum
from typing import (TYPE_CHECKING, Awaitable, Callable, Iterable, List,
                    Mapping, Optional, Tuple)

from aiohttp import ClientError, ClientTimeout
from yarl import URL

from jukebox.models.proxy_response import ProxyResponse
from jukebox.utils.constants import DEFAULT_TRENDING_LIMIT, USER_AGENT
from jukebox.utils.exceptions import UpstreamStatusError
from jukebox.utils.logger import create_logger

if TYPE_CHECKING:
  from aiohttp import ClientSession

  from jukebox.models.config import AudiusConfig

  from .host_selector import HostSelector


TRENDING_ENDPOINTS = ('/trending', '/tracks/trending')
SEARCH_PREFIX = '/tracks/search'
STREAM_PATTERN = re.compile(r'^/tracks/(?P<track_id>[^/?#]+)/stream$')

JSON_HEADERS = {
  'User-Agent': USER_AGENT,
  'Accept': 'application/json',
  'Accept-Language': 'en-US,en;q=0.9',
}
AUDIO_HEADERS = {
  'User-Agent': USER_AGENT,
  'Accept': 'audio/*',
  'Accept-Language': 'en-US,en;q=0.9',
}
DEFAULT_AUDIO_TYPE = 'audio/mpeg'


class RouteKind(Enum):
  """
  The request shapes handled by the router.
  """
  TRENDING = 'trending'
  SEARCH = 'search'
  STREAM = 'stream'
  PASSTHROUGH = 'passthrough'


def classify(endpoint: str) -> RouteKind:
  """
  Maps a logical endpoint to the request shape that serves it.
  """
  if endpoint in TRENDING_ENDPOINTS:
    return RouteKind.TRENDING
  if endpoint.startswith(SEARCH_PREFIX):
    return RouteKind.SEARCH
  if STREAM_PATTERN.match(endpoint) is not None:
    return RouteKind.STREAM
  return RouteKind.PASSTHROUGH


def build_candidates(fixed: Iterable[Optional[str]], selected: Optional[str]) -> List[str]:
  """
  Builds the ordered candidate host list: fixed hosts in their declared order,
  then the selected host. Empty entries and duplicates are dropped.
  """
  candidates: List[str] = []
  for host in [*fixed, selected]:
    if not host:
      continue
    host = host.rstrip('/')
    if host not in candidates:
      candidates.append(host)
  return candidates


def parse_limit(value: Optional[str], maximum: int) -> int:
  """
  Parses the trending limit, falling back to the default for missing or
  invalid values and capping it to the given maximum.
  """
  try:
    limit = int(value) if value is not None else DEFAULT_TRENDING_LIMIT
  except ValueError:
    limit = DEFAULT_TRENDING_LIMIT
  if limit < 1:
    limit = DEFAULT_TRENDING_LIMIT
  return min(limit, maximum)


def upstream_url(host: str, endpoint: str, params: Optional[Mapping[str, str]] = None) -> URL:
  """
  Builds ${host}/v1${endpoint}, merging params into any query the endpoint carries.
  """
  url = URL(f'{host.rstrip("/")}/v1{endpoint}')
  if params:
    url = url.update_query(dict(params))
  return url


class RequestRouter:
  """
  Resolves logical requests into one or more upstream calls.
  """

  def __init__(
    self,
    session: 'ClientSession',
    hosts: 'HostSelector',
    config: 'AudiusConfig'
  ):
    self._session = session
    self._hosts = hosts
    self._config = config
    self._logger = create_logger(self.__class__.__name__)

  @property
  def hosts(self) -> 'HostSelector':
    """
    Returns the host selector used by this router.
    """
    return self._hosts

  async def route(self, endpoint: Optional[str], params: Mapping[str, str]) -> ProxyResponse:
    """
    Serves a logical request and never raises. Any unexpected failure is
    reported as a 500 and invalidates the selected host, since it may be
    evidence that the cached host is bad.

    :param endpoint: The logical endpoint, e.g. '/trending' or '/tracks/123/stream'.
    :param params: The remaining query parameters of the request.
    """
    try:
      return await self._dispatch(endpoint, params)
    except Exception as exc: # pylint: disable=broad-exception-caught
      self._logger.exception('Proxy error while serving %s', endpoint)
      self._hosts.invalidate()
      return ProxyResponse.error(500, str(exc) or exc.__class__.__name__, details=repr(exc))

  async def _dispatch(self, endpoint: Optional[str], params: Mapping[str, str]) -> ProxyResponse:
    if not endpoint:
      return ProxyResponse.error(400, 'Missing endpoint parameter')

    kind = classify(endpoint)
    self._logger.debug('Routing %s as %s', endpoint, kind.value)

    # Validate before discovery so that bad input never touches the network
    if kind == RouteKind.SEARCH:
      query = params.get('q', '').strip()
      if not query:
        return ProxyResponse.error(400, 'Search query required')
      return await self.search(query)

    if kind == RouteKind.TRENDING:
      return await self.trending(parse_limit(params.get('limit'), self._config.max_limit))
    if kind == RouteKind.STREAM:
      return await self.stream(endpoint)
    return await self.passthrough(endpoint, params)

  async def trending(self, limit: int) -> ProxyResponse:
    """
    Fetches trending tracks from the first flagship or selected host that answers.
    """
    selected = await self._hosts.get()
    candidates = build_candidates(self._config.hosts, selected)
    params = {'limit': str(limit), 'app_name': self._config.app_name}

    response, last_error = await self._first_success(
      candidates,
      lambda host: self._fetch_json(host, '/tracks/trending', params)
    )
    if response is not None:
      return response

    self._logger.error('All trending hosts failed. Last error: %s', last_error)
    return ProxyResponse.error(503, 'Trending unavailable from all hosts', details=last_error)

  async def search(self, query: str) -> ProxyResponse:
    """
    Searches tracks on the API gateway, then on the selected host.
    """
    selected = await self._hosts.get()
    candidates = build_candidates([self._config.gateway], selected)
    params = {'query': query, 'app_name': self._config.app_name}

    response, last_error = await self._first_success(
      candidates,
      lambda host: self._fetch_json(host, '/tracks/search', params)
    )
    if response is not None:
      return response

    self._logger.error('Search for "%s" failed on all hosts. Last error: %s', query, last_error)
    return ProxyResponse.error(503, 'Search failed on all hosts')

  async def stream(self, endpoint: str) -> ProxyResponse:
    """
    Relays the audio bytes of a track from the first host that serves them,
    preserving the upstream content type.
    """
    selected = await self._hosts.get()
    candidates = build_candidates(self._config.hosts, selected)
    params = {'app_name': self._config.app_name}

    response, last_error = await self._first_success(
      candidates,
      lambda host: self._fetch_audio(host, endpoint, params)
    )
    if response is not None:
      return response

    self._logger.error('All stream hosts failed for %s. Last error: %s', endpoint, last_error)
    return ProxyResponse.error(503, 'Stream unavailable from all hosts', details=last_error)

  async def passthrough(self, endpoint: str, params: Mapping[str, str]) -> ProxyResponse:
    """
    Forwards any other endpoint once to the selected host.
    Network errors propagate to route(), which answers 500.
    """
    host = await self._hosts.get()
    url = upstream_url(host, endpoint, params)
    self._logger.debug('Fetching from %s', url)

    async with self._session.get(url, headers=JSON_HEADERS) as response:
      status = response.status
      text = await response.text(errors='replace')

    if status < 200 or status >= 300:
      self._logger.warning('Upstream %s returned %d', url, status)
      return ProxyResponse.error(status, f'API returned {status}', details=text)

    try:
      data = json.loads(text)
    except ValueError:
      self._logger.error('Invalid JSON from %s: %s', url, text[:200])
      return ProxyResponse.error(502, 'Invalid JSON response from API', details=text)

    return ProxyResponse.from_json(data)

  async def _first_success(
    self,
    candidates: List[str],
    fetch: Callable[[str], Awaitable[ProxyResponse]]
  ) -> Tuple[Optional[ProxyResponse], Optional[str]]:
    """
    Tries each candidate in order and returns the first successful response.
    If every candidate fails, returns None and the last observed error.
    """
    last_error = None
    for host in candidates:
      try:
        return await fetch(host), None
      except UpstreamStatusError as err:
        last_error = str(err)
      except (ClientError, AsyncioTimeoutError, ValueError) as exc:
        last_error = f'Failed to fetch from {host}: {exc or exc.__class__.__name__}'
      self._logger.warning('%s', last_error)

    return None, last_error

  async def _fetch_json(self, host: str, endpoint: str, params: Mapping[str, str]) -> ProxyResponse:
    url = upstream_url(host, endpoint, params)
    self._logger.debug('Trying %s', url)

    async with self._session.get(url, headers=JSON_HEADERS) as response:
      if response.status < 200 or response.status >= 300:
        raise UpstreamStatusError(host, response.status)
      data = await response.json(content_type=None)
      if data is None:
        raise ValueError('Empty response body')

    return ProxyResponse.from_json(data)

  async def _fetch_audio(self, host: str, endpoint: str, params: Mapping[str, str]) -> ProxyResponse:
    url = upstream_url(host, endpoint, params)
    self._logger.debug('Trying stream %s', url)

    async with self._session.get(
      url,
      headers=AUDIO_HEADERS,
      allow_redirects=True,
      timeout=ClientTimeout(total=self._config.stream_timeout)
    ) as response:
      if response.status < 200 or response.status >= 300:
        raise UpstreamStatusError(host, response.status)
      body = await response.read()
      content_type = response.headers.get('Content-Type', DEFAULT_AUDIO_TYPE)

    return ProxyResponse(status=200, body=body, content_type=content_type)
