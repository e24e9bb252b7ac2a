"""
Track catalog providers for the retro player. A provider returns the
catalog entries for a category; an empty result is a normal outcome.
"""

import json
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

import requests
from requests.exceptions import ConnectionError, HTTPError, Timeout
from tenacity import (retry, retry_if_exception_type, stop_after_attempt,
                      wait_fixed, wait_random)
from yarl import URL

from jukebox.models.catalog_entry import CatalogEntry
from jukebox.utils.constants import CATALOG_QUERY_LIMIT, USER_AGENT
from jukebox.utils.exceptions import CatalogConfigError
from jukebox.utils.logger import create_logger

if TYPE_CHECKING:
  from jukebox.models.config import AppwriteConfig, SupabaseConfig


REQUEST_TIMEOUT = 5


class CatalogProvider(ABC):
  """
  Base class for catalog providers.
  """

  @abstractmethod
  def list_entries(self, category: Optional[str] = None) -> List[CatalogEntry]:
    """
    Returns up to CATALOG_QUERY_LIMIT entries, filtered by category if given.
    """

  def fallback_entry(self) -> Optional[CatalogEntry]:
    """
    Returns a fixed entry to use when a category query is empty, if any.
    """
    return None


class StaticCatalog(CatalogProvider):
  """
  Catalog backed by an in-memory list of records.
  """

  def __init__(self, records: Sequence[Mapping[str, Any]], fallback: Optional[Mapping[str, Any]] = None):
    self._records = list(records)
    self._fallback = fallback

  def list_entries(self, category: Optional[str] = None) -> List[CatalogEntry]:
    records = [
      record for record in self._records
      if category is None or record.get('category') == category
    ]
    return [CatalogEntry.from_record(record) for record in records[:CATALOG_QUERY_LIMIT]]

  def fallback_entry(self) -> Optional[CatalogEntry]:
    if self._fallback is None:
      return None
    return CatalogEntry.from_record(self._fallback)


class AppwriteCatalog(CatalogProvider):
  """
  Catalog backed by an Appwrite document collection.
  """

  def __init__(self, config: 'AppwriteConfig'):
    self._config = config
    self._logger = create_logger(self.__class__.__name__)

  @property
  def _collection_url(self) -> URL:
    if not self._config.enabled:
      raise CatalogConfigError('Missing Appwrite configuration.')

    assert self._config.endpoint is not None and self._config.database_id is not None
    return (
      URL(self._config.endpoint.rstrip('/'))
      / 'databases' / self._config.database_id
      / 'collections' / self._config.collection_id
      / 'documents'
    )

  @property
  def _headers(self) -> Dict[str, str]:
    headers = {
      'User-Agent': USER_AGENT,
      'Content-Type': 'application/json',
      'X-Appwrite-Project': self._config.project_id or '',
    }
    if self._config.api_key is not None:
      headers['X-Appwrite-Key'] = self._config.api_key
    return headers

  @retry(
    retry=retry_if_exception_type(ConnectionError),
    stop=stop_after_attempt(3),
    wait=wait_fixed(1) + wait_random(0, 2)
  )
  def list_entries(self, category: Optional[str] = None) -> List[CatalogEntry]:
    queries = [json.dumps({'method': 'limit', 'values': [CATALOG_QUERY_LIMIT]})]
    if category:
      queries.insert(0, json.dumps({
        'method': 'equal',
        'attribute': 'category',
        'values': [category]
      }))

    response = requests.get(
      str(self._collection_url),
      params={'queries[]': queries},
      headers=self._headers,
      timeout=REQUEST_TIMEOUT
    )
    response.raise_for_status()

    documents = response.json().get('documents', [])
    self._logger.debug('Got %d document(s) for category %s', len(documents), category)
    return [CatalogEntry.from_record(document) for document in documents]

  def fallback_entry(self) -> Optional[CatalogEntry]:
    if self._config.document_id is None:
      return None

    try:
      response = requests.get(
        str(self._collection_url / self._config.document_id),
        headers=self._headers,
        timeout=REQUEST_TIMEOUT
      )
      response.raise_for_status()
    except (ConnectionError, HTTPError, Timeout) as err:
      self._logger.warning('Could not get fallback document %s: %s', self._config.document_id, err)
      return None

    return CatalogEntry.from_record(response.json())


class SupabaseCatalog(CatalogProvider):
  """
  Catalog backed by a Supabase (PostgREST) table.
  """

  def __init__(self, config: 'SupabaseConfig'):
    self._config = config
    self._logger = create_logger(self.__class__.__name__)

  @retry(
    retry=retry_if_exception_type(ConnectionError),
    stop=stop_after_attempt(3),
    wait=wait_fixed(1) + wait_random(0, 2)
  )
  def list_entries(self, category: Optional[str] = None) -> List[CatalogEntry]:
    if not self._config.enabled:
      raise CatalogConfigError('Missing Supabase configuration.')

    assert self._config.url is not None and self._config.anon_key is not None
    params = {'select': '*', 'limit': str(CATALOG_QUERY_LIMIT)}
    if category:
      params['category'] = f'eq.{category}'

    response = requests.get(
      str(URL(self._config.url.rstrip('/')) / 'rest' / 'v1' / self._config.songs_table),
      params=params,
      headers={
        'User-Agent': USER_AGENT,
        'apikey': self._config.anon_key,
        'Authorization': f'Bearer {self._config.anon_key}',
      },
      timeout=REQUEST_TIMEOUT
    )
    response.raise_for_status()

    rows = response.json()
    self._logger.debug('Got %d row(s) for category %s', len(rows), category)
    return [CatalogEntry.from_record(row) for row in rows]
