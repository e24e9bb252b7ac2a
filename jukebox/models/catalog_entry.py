"""
Dataclass for catalog records used by the retro player.
"""

from dataclasses import dataclass, field
from random import Random
from typing import Any, List, Mapping, Optional

from jukebox.utils.exceptions import CatalogEmptyError

# Field names under which catalog records store audio URLs, in order of preference
URL_POOL_ALIASES = ('song_urls', 'audio_urls', 'urls', 'songs')
URL_FIELD_ALIASES = ('song_url', 'audio_url', 'url')


@dataclass
class CatalogEntry:
  """
  A category-tagged record holding one or more candidate audio URLs.
  """
  category: Optional[str] = None
  urls: List[str] = field(default_factory=list)
  id: Optional[str] = None

  @classmethod
  def from_record(cls, record: Mapping[str, Any]) -> 'CatalogEntry':
    """
    Resolves a raw document or row into a CatalogEntry, using the
    first URL pool alias that holds a list, then the single URL aliases.
    """
    urls: List[str] = []
    for alias in URL_POOL_ALIASES:
      pool = record.get(alias)
      if isinstance(pool, list):
        urls = [url for url in pool if isinstance(url, str) and url]
        break

    # An empty pool falls through to the single URL fields
    if len(urls) == 0:
      for alias in URL_FIELD_ALIASES:
        url = record.get(alias)
        if isinstance(url, str) and url:
          urls = [url]
          break

    record_id = record.get('$id', record.get('id'))
    return cls(
      category=record.get('category'),
      urls=urls,
      id=str(record_id) if record_id is not None else None
    )

  def pick_url(self, rng: Optional[Random] = None) -> str:
    """
    Picks one URL from the pool uniformly at random.

    Raises:
      CatalogEmptyError: If the pool is empty.
    """
    if len(self.urls) == 0:
      raise CatalogEmptyError(self.category)
    return (rng or Random()).choice(self.urls)
