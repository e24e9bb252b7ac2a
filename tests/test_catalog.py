"""
Tests for catalog providers and catalog entries.
"""

import json
from random import Random
from unittest.mock import MagicMock, patch

import pytest

from jukebox.catalog import create_catalog, create_presence
from jukebox.catalog.presence import InMemoryPresence, SupabasePresence
from jukebox.catalog.provider import (AppwriteCatalog, StaticCatalog,
                                      SupabaseCatalog)
from jukebox.models.catalog_entry import CatalogEntry
from jukebox.models.config import AppwriteConfig, Config, SupabaseConfig
from jukebox.utils.exceptions import CatalogConfigError, CatalogEmptyError

APPWRITE = AppwriteConfig(
  endpoint='https://appwrite.test/v1',
  project_id='proj',
  database_id='db',
  document_id='doc1',
  api_key='secret'
)
SUPABASE = SupabaseConfig(url='https://supa.test', anon_key='anon')


def mock_response(payload, status: int = 200) -> MagicMock:
  response = MagicMock()
  response.status_code = status
  response.json.return_value = payload
  response.raise_for_status.return_value = None
  return response


def test_entry_aliases():
  entry = CatalogEntry.from_record({'$id': 'a', 'category': 'chill', 'songs': ['u1', '', 'u2']})
  assert entry.id == 'a'
  assert entry.urls == ['u1', 'u2']

  entry = CatalogEntry.from_record({'id': 7, 'audio_urls': [], 'song_url': 'u3'})
  assert entry.id == '7'
  assert entry.urls == ['u3']

  entry = CatalogEntry.from_record({'category': 'work'})
  assert entry.urls == []
  with pytest.raises(CatalogEmptyError):
    entry.pick_url()


def test_entry_pick_url_is_from_pool():
  entry = CatalogEntry(category='chill', urls=['u1', 'u2', 'u3'])
  rng = Random(3)
  assert {entry.pick_url(rng) for _ in range(50)} <= {'u1', 'u2', 'u3'}


def test_static_catalog_filters_by_category():
  catalog = StaticCatalog([
    {'category': 'chill', 'url': 'u1'},
    {'category': 'retro', 'url': 'u2'},
  ])
  assert [e.urls for e in catalog.list_entries('retro')] == [['u2']]
  assert len(catalog.list_entries()) == 2
  assert catalog.list_entries('jazz') == []
  assert catalog.fallback_entry() is None


@patch('jukebox.catalog.provider.requests.get')
def test_appwrite_list_entries(mock_get):
  mock_get.return_value = mock_response({'documents': [
    {'$id': 'd1', 'category': 'chill', 'song_urls': ['u1']},
  ]})
  catalog = AppwriteCatalog(APPWRITE)

  entries = catalog.list_entries('chill')
  assert entries == [CatalogEntry(category='chill', urls=['u1'], id='d1')]

  args, kwargs = mock_get.call_args
  assert args[0] == 'https://appwrite.test/v1/databases/db/collections/live_state/documents'
  assert kwargs['headers']['X-Appwrite-Project'] == 'proj'
  assert kwargs['headers']['X-Appwrite-Key'] == 'secret'
  queries = [json.loads(q) for q in kwargs['params']['queries[]']]
  assert queries[0] == {'method': 'equal', 'attribute': 'category', 'values': ['chill']}
  assert queries[1] == {'method': 'limit', 'values': [100]}


@patch('jukebox.catalog.provider.requests.get')
def test_appwrite_fallback_entry(mock_get):
  mock_get.return_value = mock_response({'$id': 'doc1', 'song_url': 'u9'})
  entry = AppwriteCatalog(APPWRITE).fallback_entry()
  assert entry is not None
  assert entry.urls == ['u9']
  assert mock_get.call_args[0][0].endswith('/documents/doc1')


def test_appwrite_missing_config():
  with pytest.raises(CatalogConfigError):
    AppwriteCatalog(AppwriteConfig()).list_entries('chill')


@patch('jukebox.catalog.provider.requests.get')
def test_supabase_list_entries(mock_get):
  mock_get.return_value = mock_response([{'id': 1, 'category': 'retro', 'audio_url': 'u1'}])
  entries = SupabaseCatalog(SUPABASE).list_entries('retro')
  assert entries == [CatalogEntry(category='retro', urls=['u1'], id='1')]

  args, kwargs = mock_get.call_args
  assert args[0] == 'https://supa.test/rest/v1/music_archive'
  assert kwargs['params']['category'] == 'eq.retro'
  assert kwargs['params']['limit'] == '100'
  assert kwargs['headers']['apikey'] == 'anon'


def test_supabase_missing_config():
  with pytest.raises(CatalogConfigError):
    SupabaseCatalog(SupabaseConfig()).list_entries('retro')


def test_factories():
  assert create_catalog(Config()) is None
  assert isinstance(create_presence(Config()), InMemoryPresence)

  config = Config(appwrite=APPWRITE, supabase=SUPABASE)
  assert isinstance(create_catalog(config), AppwriteCatalog)
  assert isinstance(create_presence(config), SupabasePresence)

  config = Config(supabase=SUPABASE)
  assert isinstance(create_catalog(config), SupabaseCatalog)
