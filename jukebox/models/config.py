"""
Dataclasses for the synthesized configuration. See utils/config.py.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from jukebox.utils.constants import (APP_NAME, AUDIUS_GATEWAY, DISCOVERY_SOURCES,
                                     FALLBACK_HOSTS, FLAGSHIP_HOSTS, MAX_RETRIES,
                                     MAX_TRENDING_LIMIT, RETRY_BASE_DELAY,
                                     START_DELAY, STREAM_TIMEOUT)


@dataclass
class AudiusConfig:
  app_name: str = APP_NAME
  gateway: str = str(AUDIUS_GATEWAY)
  hosts: List[str] = field(default_factory=lambda: list(FLAGSHIP_HOSTS))
  discovery_sources: List[str] = field(default_factory=lambda: list(DISCOVERY_SOURCES))
  fallback_hosts: List[str] = field(default_factory=lambda: list(FALLBACK_HOSTS))
  stream_timeout: float = STREAM_TIMEOUT
  max_limit: int = MAX_TRENDING_LIMIT

  # Type checking
  def __post_init__(self):
    if not isinstance(self.hosts, list):
      raise TypeError('hosts must be a list')
    if not isinstance(self.discovery_sources, list):
      raise TypeError('discovery_sources must be a list')
    if not isinstance(self.fallback_hosts, list):
      raise TypeError('fallback_hosts must be a list')

    # The static fallback is what makes host selection infallible
    if len(self.fallback_hosts) == 0:
      raise ValueError('At least one fallback host must be specified')


@dataclass
class PlayerConfig:
  proxy_url: str = 'http://localhost:8080/api/audius'
  max_retries: int = MAX_RETRIES
  retry_base_delay: float = RETRY_BASE_DELAY
  start_delay: float = START_DELAY
  advance_on_failure: bool = False

  def __post_init__(self):
    if not isinstance(self.max_retries, int) or self.max_retries < 0:
      raise TypeError('max_retries must be a non-negative int')
    if self.max_retries > MAX_RETRIES:
      raise ValueError(f'max_retries must be at most {MAX_RETRIES}')


@dataclass
class AppwriteConfig:
  endpoint: Optional[str] = None
  project_id: Optional[str] = None
  database_id: Optional[str] = None
  collection_id: str = 'live_state'
  document_id: Optional[str] = None
  api_key: Optional[str] = None

  @property
  def enabled(self) -> bool:
    return bool(self.endpoint and self.project_id and self.database_id)


@dataclass
class SupabaseConfig:
  url: Optional[str] = None
  anon_key: Optional[str] = None
  songs_table: str = 'music_archive'
  listening_table: str = 'listening_sessions'

  @property
  def enabled(self) -> bool:
    return bool(self.url and self.anon_key)


@dataclass
class Config:
  # Server
  server_host: str = '0.0.0.0'
  server_port: int = 8080

  # Sections
  audius: AudiusConfig = field(default_factory=AudiusConfig)
  player: PlayerConfig = field(default_factory=PlayerConfig)
  appwrite: AppwriteConfig = field(default_factory=AppwriteConfig)
  supabase: SupabaseConfig = field(default_factory=SupabaseConfig)

  # Optional
  sentry_dsn: Optional[str] = None
  sentry_env: Optional[str] = None
  debug_enabled: bool = False
