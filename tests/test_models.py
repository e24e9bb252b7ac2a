"""
Tests for dataclasses and small helpers.
"""

from jukebox.models.proxy_response import ProxyResponse
from jukebox.models.session import PlaybackSession, PlaybackState
from jukebox.models.track import Track, parse_tracks
from jukebox.utils.time import format_time

from .conftest import track_json


def test_track_from_api():
  track = Track.from_api(track_json('42', artwork={'480x480': 'https://img.test/480.jpg', '1000x1000': ''}))
  assert track.id == '42'
  assert track.artist.id == 'u1'
  assert track.artist.name == 'Artist'
  assert track.get_artwork() == 'https://img.test/480.jpg'
  assert track.get_artwork('150x150') is None
  assert track.get_details() == 'Track 42 - Artist'
  assert track.duration == 180


def test_parse_tracks_drops_unstreamable():
  payload = {'data': [
    track_json('1'),
    track_json('2', track_cid=None),
    track_json('3', track_cid=None, preview_cid='Qmpreview'),
    'garbage',
  ]}
  assert [track.id for track in parse_tracks(payload)] == ['1', '3']
  assert parse_tracks({'data': None}) == []
  assert parse_tracks([]) == []


def test_track_without_id():
  assert Track.from_api(track_json('')).id is None


def test_proxy_response_error():
  response = ProxyResponse.error(503, 'Search failed on all hosts')
  assert not response.ok
  assert response.json() == {'error': 'Search failed on all hosts'}
  assert response.content_type == 'application/json'

  response = ProxyResponse.error(502, 'Invalid JSON response from API', details='<html>')
  assert response.json()['details'] == '<html>'


def test_session_status_and_volume():
  session = PlaybackSession()
  assert session.status_text == 'STOPPED'
  session.state = PlaybackState.LOADING
  assert session.is_loading
  assert session.status_text == 'LOADING'

  assert session.effective_volume == 50
  session.muted = True
  assert session.effective_volume == 0


def test_format_time():
  assert format_time(0) == '0:00'
  assert format_time(None) == '0:00'
  assert format_time(float('nan')) == '0:00'
  assert format_time(65) == '1:05'
  assert format_time(600.9) == '10:00'


def test_track_with_malformed_user():
  track = Track.from_api(track_json('5', user='someone'))
  assert track.id == '5'
  assert track.artist.id is None
  assert track.get_details() == 'Track 5 - Unknown artist'

  assert [t.id for t in parse_tracks({'data': [track_json('6', user=['x'])]})] == ['6']
