"""
Tests for the HTTP surface of the proxy.
"""

from random import Random

from jukebox.models.config import AudiusConfig, Config
from jukebox.server.main import create_app

from .conftest import track_json


def make_config(upstream) -> Config:
  return Config(audius=AudiusConfig(
    gateway=upstream.host('g'),
    hosts=[upstream.host('a')],
    discovery_sources=[],
    fallback_hosts=[upstream.host('s')]
  ))


async def test_health(aiohttp_client, upstream):
  client = await aiohttp_client(create_app(make_config(upstream)))
  response = await client.get('/health')
  assert response.status == 200
  assert await response.json() == {'status': 'ok'}


async def test_preflight(aiohttp_client, upstream):
  client = await aiohttp_client(create_app(make_config(upstream)))
  response = await client.options('/api/audius')
  assert response.status == 200
  assert response.headers['Access-Control-Allow-Origin'] == '*'
  assert 'GET' in response.headers['Access-Control-Allow-Methods']
  assert upstream.requests == []


async def test_trending_response_has_cors_headers(aiohttp_client, upstream):
  payload = {'data': [track_json('1')]}
  upstream.set('a', '/v1/tracks/trending', json=payload)
  client = await aiohttp_client(create_app(make_config(upstream), rng=Random(0)))

  response = await client.get('/api/audius', params={'endpoint': '/trending', 'limit': '5'})
  assert response.status == 200
  assert response.headers['Access-Control-Allow-Origin'] == '*'
  assert response.headers['Content-Type'].startswith('application/json')
  assert await response.json() == payload


async def test_errors_have_cors_headers(aiohttp_client, upstream):
  client = await aiohttp_client(create_app(make_config(upstream)))

  response = await client.get('/api/audius', params={'endpoint': '/tracks/search', 'q': ' '})
  assert response.status == 400
  assert response.headers['Access-Control-Allow-Origin'] == '*'
  assert await response.json() == {'error': 'Search query required'}

  response = await client.get('/api/audius')
  assert response.status == 400
  assert response.headers['Access-Control-Allow-Origin'] == '*'


async def test_stream_is_relayed(aiohttp_client, upstream):
  upstream.set('a', '/v1/tracks/T1/stream', body=b'ID3audio', content_type='audio/mpeg')
  client = await aiohttp_client(create_app(make_config(upstream)))

  response = await client.get('/api/audius', params={'endpoint': '/tracks/T1/stream'})
  assert response.status == 200
  assert response.headers['Content-Type'] == 'audio/mpeg'
  assert await response.read() == b'ID3audio'
