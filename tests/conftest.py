"""
Shared fixtures: fake audio outputs, recorded sleeps and fake upstreams.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest
from aiohttp import web

from jukebox.models.track import Artist, Track
from jukebox.player.audio import AudioOutput
from jukebox.utils.exceptions import PlaybackError, ProxyError


class FakeAudioOutput(AudioOutput):
  """
  Audio output whose first `failures` calls to play() fail.
  """

  def __init__(self, failures: int = 0):
    super().__init__()
    self.failures = failures
    self.play_calls = 0
    self.loaded: List[str] = []

  def load(self):
    self.loaded.append(self.src)

  async def play(self):
    self.play_calls += 1
    if self.failures > 0:
      self.failures -= 1
      raise PlaybackError('NotAllowedError')
    self.paused = False

  def pause(self):
    self.paused = True


class RecordedSleep:
  """
  Sleep replacement that records every delay. Delays at or above
  `block_at` wait until release() is called.
  """

  def __init__(self, block_at: Optional[float] = None):
    self.delays: List[float] = []
    self.block_at = block_at
    self.blocked = asyncio.Event()
    self._release = asyncio.Event()

  async def __call__(self, delay: float):
    self.delays.append(delay)
    if self.block_at is not None and delay >= self.block_at:
      self.blocked.set()
      await self._release.wait()
    else:
      await asyncio.sleep(0)

  def release(self):
    self._release.set()


class FakeProxyClient:
  """
  Stands in for ProxyClient with canned results.
  """

  def __init__(self):
    self.trending_result: List[Track] = []
    self.search_result: List[Track] = []
    self.user_tracks_result: List[Track] = []
    self.error: Optional[ProxyError] = None
    self.calls: List[str] = []

  def stream_url(self, track_id: str) -> str:
    return f'http://proxy.test/api/audius?endpoint=/tracks/{track_id}/stream'

  async def trending(self, limit: int = 20) -> List[Track]:
    self.calls.append(f'trending:{limit}')
    if self.error is not None:
      raise self.error
    return self.trending_result

  async def search(self, query: str) -> List[Track]:
    self.calls.append(f'search:{query}')
    if self.error is not None:
      raise self.error
    return self.search_result

  async def user_tracks(self, user_id: str) -> List[Track]:
    self.calls.append(f'user_tracks:{user_id}')
    return self.user_tracks_result


def make_track(track_id: Optional[str], title: str = 'Track', artist_id: Optional[str] = None) -> Track:
  return Track(
    id=track_id,
    title=f'{title} {track_id}',
    artist=Artist(id=artist_id, name='Artist', handle='artist'),
    track_cid='cid'
  )


def track_json(track_id: str, **kwargs) -> Dict:
  data = {
    'id': track_id,
    'title': f'Track {track_id}',
    'user': {'id': 'u1', 'name': 'Artist', 'handle': 'artist'},
    'artwork': {'150x150': 'https://img.test/150.jpg'},
    'track_cid': 'Qm' + track_id,
    'duration': 180,
  }
  data.update(kwargs)
  return data


class FakeUpstream:
  """
  Serves several fake hosts from a single aiohttp test server. Each host
  lives under its own path prefix, e.g. http://127.0.0.1:1234/a, and
  answers with a canned response per upstream path. Unknown paths are 404s.
  """

  def __init__(self):
    self.responses: Dict[str, Dict[str, Dict[str, Any]]] = {}
    self.requests: List[web.Request] = []
    self.server = None

  def host(self, name: str) -> str:
    return str(self.server.make_url(f'/{name}'))

  def set(
    self,
    name: str,
    path: str,
    status: int = 200,
    *,
    json: Any = None,
    body: Optional[bytes] = None,
    content_type: Optional[str] = None,
    delay: float = 0
  ):
    self.responses.setdefault(name, {})[path] = {
      'status': status,
      'json': json,
      'body': body,
      'content_type': content_type,
      'delay': delay,
    }

  def hits(self, name: str, path: Optional[str] = None) -> List[web.Request]:
    if path is None:
      return [r for r in self.requests if r.path.startswith(f'/{name}/')]
    return [r for r in self.requests if r.path == f'/{name}{path}']

  async def handle(self, request: web.Request):
    self.requests.append(request)
    name, _, rest = request.path.lstrip('/').partition('/')
    canned = self.responses.get(name, {}).get(f'/{rest}')
    if canned is None:
      return web.json_response({'error': 'not found'}, status=404)

    if canned['delay']:
      await asyncio.sleep(canned['delay'])
    if canned['json'] is not None:
      return web.json_response(canned['json'], status=canned['status'])
    return web.Response(
      status=canned['status'],
      body=canned['body'] or b'',
      content_type=canned['content_type']
    )



@pytest.fixture
async def upstream(aiohttp_server):
  fake = FakeUpstream()
  app = web.Application()
  app.router.add_route('*', '/{tail:.*}', fake.handle)
  fake.server = await aiohttp_server(app)
  return fake


@pytest.fixture
def fake_audio():
  return FakeAudioOutput()


@pytest.fixture
def fake_client():
  return FakeProxyClient()
