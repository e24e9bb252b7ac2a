"""
External collaborators: the track catalog behind the retro player and the
presence service that counts concurrent listeners.
"""

from typing import TYPE_CHECKING, Optional

from .presence import InMemoryPresence, PresenceService, SupabasePresence
from .provider import (AppwriteCatalog, CatalogProvider, StaticCatalog,
                       SupabaseCatalog)

if TYPE_CHECKING:
  from jukebox.models.config import Config


def create_catalog(config: 'Config') -> Optional[CatalogProvider]:
  """
  Returns the catalog provider for the configured backend, preferring the
  document store over the row store, or None if neither is configured.
  """
  if config.appwrite.enabled:
    return AppwriteCatalog(config.appwrite)
  if config.supabase.enabled:
    return SupabaseCatalog(config.supabase)
  return None


def create_presence(config: 'Config') -> PresenceService:
  """
  Returns the presence service for the configured backend,
  falling back to an in-process counter.
  """
  if config.supabase.enabled:
    return SupabasePresence(config.supabase)
  return InMemoryPresence()


__all__ = [
  'AppwriteCatalog',
  'CatalogProvider',
  'InMemoryPresence',
  'PresenceService',
  'StaticCatalog',
  'SupabaseCatalog',
  'SupabasePresence',
  'create_catalog',
  'create_presence',
]
