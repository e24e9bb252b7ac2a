"""
Tests for presence services.
"""

from threading import Event
from unittest.mock import MagicMock, patch

import pytest
from requests.exceptions import RequestException

from jukebox.catalog.presence import InMemoryPresence, SupabasePresence
from jukebox.models.config import SupabaseConfig


def test_in_memory_counts_sessions():
  presence = InMemoryPresence()
  counts = []
  unsubscribe = presence.subscribe(counts.append)

  presence.join('a')
  presence.join('b')
  presence.join('b')
  presence.leave('a')
  assert presence.count() == 1
  assert counts == [1, 2, 1]

  unsubscribe()
  presence.leave('b')
  assert counts == [1, 2, 1]


def test_supabase_requires_config():
  with pytest.raises(ValueError):
    SupabasePresence(SupabaseConfig())


@patch('jukebox.catalog.presence.requests')
def test_supabase_join_and_leave(mock_requests):
  head = MagicMock()
  head.headers = {'Content-Range': '0-2/3'}
  mock_requests.head.return_value = head
  presence = SupabasePresence(SupabaseConfig(url='https://supa.test/', anon_key='anon'))
  counts = []
  presence.subscribe(counts.append)

  presence.join('s1')
  args, kwargs = mock_requests.post.call_args
  assert args[0] == 'https://supa.test/rest/v1/listening_sessions'
  assert kwargs['json'] == {'session_id': 's1'}
  assert counts == [3]

  head.headers = {'Content-Range': '*/0'}
  presence.leave('s1')
  assert mock_requests.delete.call_args[1]['params'] == {'session_id': 'eq.s1'}
  assert counts == [3, 0]
  presence.close()
  assert not presence.polling


@patch('jukebox.catalog.presence.requests')
def test_supabase_polls_count_changes_from_other_listeners(mock_requests):
  ranges = ['0-0/1', '0-0/1', '0-1/2']

  def head(*_, **__):
    response = MagicMock()
    response.headers = {'Content-Range': ranges.pop(0) if len(ranges) > 1 else ranges[0]}
    return response

  mock_requests.head.side_effect = head
  presence = SupabasePresence(SupabaseConfig(url='https://supa.test', anon_key='anon'), poll_interval=0.01)
  counts = []
  changed = Event()

  def listener(count):
    counts.append(count)
    if count == 2:
      changed.set()

  unsubscribe = presence.subscribe(listener)
  assert presence.polling
  assert changed.wait(timeout=5)
  assert counts == [1, 2]
  mock_requests.post.assert_not_called()

  unsubscribe()
  assert not presence.polling
  presence.close()


@patch('jukebox.catalog.presence.requests')
def test_supabase_poll_failures_are_not_fatal(mock_requests):
  calls = Event()

  def head(*_, **__):
    if calls.is_set():
      response = MagicMock()
      response.headers = {'Content-Range': '*/4'}
      return response
    calls.set()
    raise RequestException('connection reset')

  mock_requests.head.side_effect = head
  presence = SupabasePresence(SupabaseConfig(url='https://supa.test', anon_key='anon'), poll_interval=0.01)
  counts = []
  got_count = Event()
  presence.subscribe(lambda count: (counts.append(count), got_count.set()))

  assert got_count.wait(timeout=5)
  assert counts[0] == 4
  presence.close()
  assert not presence.polling
