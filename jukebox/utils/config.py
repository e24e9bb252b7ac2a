"""
Configuration parser.

This module parses the configuration file and environment variables and
provides a single object with the synthesized configuration values,
where the environment variables take precedence over the config file.
"""

from dataclasses import replace
from os import environ
from os.path import isfile
from typing import Any, Dict, List, Mapping, Optional

from yaml import safe_load

from jukebox.models.config import (AppwriteConfig, AudiusConfig, Config,
                                   PlayerConfig, SupabaseConfig)

ENV_PREFIX = 'JUKEBOX_'


def _split_list(value: str) -> List[str]:
  return [item.strip() for item in value.split(',') if item.strip()]


def _parse_bool(value: Any) -> bool:
  if isinstance(value, bool):
    return value
  return str(value).lower() == 'true'


def read_config_file(path: str) -> Dict[str, Any]:
  """
  Reads the YAML config file at the given path, if it exists.

  :param path: Path to the config file.
  :return: The parsed config file, or an empty dict if there is none.
  """
  if not isfile(path):
    return {}

  with open(path, encoding='UTF-8') as f:
    try:
      config_file = safe_load(f)
    except Exception as e:
      raise ValueError(f'Error parsing {path}: {e}') from e

  if config_file is None:
    return {}
  if not isinstance(config_file, dict):
    raise ValueError(f'Error parsing {path}: expected a mapping at the top level')
  return config_file


def _parse_file(config_file: Dict[str, Any]) -> Config:
  config = Config()

  try:
    if 'server' in config_file:
      config.server_host = config_file['server'].get('host', config.server_host)
      config.server_port = int(config_file['server'].get('port', config.server_port))

    if 'audius' in config_file:
      section = config_file['audius']
      config.audius = AudiusConfig(
        app_name=section.get('app_name', config.audius.app_name),
        gateway=section.get('gateway', config.audius.gateway),
        hosts=section.get('hosts', config.audius.hosts),
        discovery_sources=section.get('discovery_sources', config.audius.discovery_sources),
        fallback_hosts=section.get('fallback_hosts', config.audius.fallback_hosts),
        stream_timeout=float(section.get('stream_timeout', config.audius.stream_timeout)),
        max_limit=int(section.get('max_limit', config.audius.max_limit))
      )

    if 'player' in config_file:
      section = config_file['player']
      config.player = PlayerConfig(
        proxy_url=section.get('proxy_url', config.player.proxy_url),
        max_retries=section.get('max_retries', config.player.max_retries),
        retry_base_delay=float(section.get('retry_base_delay', config.player.retry_base_delay)),
        start_delay=float(section.get('start_delay', config.player.start_delay)),
        advance_on_failure=_parse_bool(
          section.get('advance_on_failure', config.player.advance_on_failure)
        )
      )

    if 'appwrite' in config_file:
      section = config_file['appwrite']
      config.appwrite = AppwriteConfig(
        endpoint=section['endpoint'],
        project_id=section['project_id'],
        database_id=section['database_id'],
        collection_id=section.get('collection_id', config.appwrite.collection_id),
        document_id=section.get('document_id', None),
        api_key=section.get('api_key', None)
      )

    if 'supabase' in config_file:
      section = config_file['supabase']
      config.supabase = SupabaseConfig(
        url=section['url'],
        anon_key=section['anon_key'],
        songs_table=section.get('songs_table', config.supabase.songs_table),
        listening_table=section.get('listening_table', config.supabase.listening_table)
      )

    if 'sentry' in config_file:
      config.sentry_dsn = config_file['sentry']['dsn']
      config.sentry_env = config_file['sentry']['environment']

    if 'debug' in config_file:
      config.debug_enabled = _parse_bool(config_file['debug'])
  except KeyError as e:
    raise RuntimeError(f'Config missing from config file: {e.args[0]}') from e

  return config


def _apply_env(config: Config, env: Mapping[str, str]):
  def get(key: str, default: Optional[str] = None) -> Optional[str]:
    return env.get(f'{ENV_PREFIX}{key}', default)

  config.server_host = get('SERVER_HOST', config.server_host)
  config.server_port = int(get('SERVER_PORT', str(config.server_port)))

  # Audius
  audius = config.audius
  audius.app_name = get('APP_NAME', audius.app_name)
  audius.gateway = get('GATEWAY', audius.gateway)
  audius.stream_timeout = float(get('STREAM_TIMEOUT', str(audius.stream_timeout)))
  if f'{ENV_PREFIX}DISCOVERY_SOURCES' in env:
    audius.discovery_sources = _split_list(env[f'{ENV_PREFIX}DISCOVERY_SOURCES'])
  if f'{ENV_PREFIX}FALLBACK_HOSTS' in env:
    audius.fallback_hosts = _split_list(env[f'{ENV_PREFIX}FALLBACK_HOSTS'])
    if len(audius.fallback_hosts) == 0:
      raise ValueError('At least one fallback host must be specified')

  # Parse flagship hosts from numbered environment variables
  hosts = []
  i = 1
  while f'{ENV_PREFIX}NODE_{i}' in env:
    hosts.append(env[f'{ENV_PREFIX}NODE_{i}'].rstrip('/'))
    i += 1
  if len(hosts) > 0:
    audius.hosts = hosts

  # Player
  player = config.player
  player.proxy_url = get('PROXY_URL', player.proxy_url)
  player.max_retries = int(get('MAX_RETRIES', str(player.max_retries)))
  player.start_delay = float(get('START_DELAY', str(player.start_delay)))
  if f'{ENV_PREFIX}ADVANCE_ON_FAILURE' in env:
    player.advance_on_failure = _parse_bool(env[f'{ENV_PREFIX}ADVANCE_ON_FAILURE'])

  # Validate the overridden values
  config.player = replace(player)

  # Catalog and presence backends
  appwrite = config.appwrite
  appwrite.endpoint = get('APPWRITE_ENDPOINT', appwrite.endpoint)
  appwrite.project_id = get('APPWRITE_PROJECT_ID', appwrite.project_id)
  appwrite.database_id = get('APPWRITE_DATABASE_ID', appwrite.database_id)
  appwrite.collection_id = get('APPWRITE_COLLECTION_ID', appwrite.collection_id)
  appwrite.document_id = get('APPWRITE_DOCUMENT_ID', appwrite.document_id)
  appwrite.api_key = get('APPWRITE_API_KEY', appwrite.api_key)

  supabase = config.supabase
  supabase.url = get('SUPABASE_URL', supabase.url)
  supabase.anon_key = get('SUPABASE_ANON_KEY', supabase.anon_key)
  supabase.songs_table = get('SUPABASE_SONGS_TABLE', supabase.songs_table)
  supabase.listening_table = get('SUPABASE_LISTENING_TABLE', supabase.listening_table)

  # Sentry and debug
  config.sentry_dsn = get('SENTRY_DSN', config.sentry_dsn)
  config.sentry_env = get('SENTRY_ENV', config.sentry_env)
  if f'{ENV_PREFIX}DEBUG' in env:
    config.debug_enabled = _parse_bool(env[f'{ENV_PREFIX}DEBUG'])


def load_config(path: str = 'config.yml', env: Optional[Mapping[str, str]] = None) -> Config:
  """
  Synthesizes the configuration from the config file and the environment.

  :param path: Path to the YAML config file. A missing file is not an error.
  :param env: Environment mapping to read overrides from. Defaults to os.environ.
  :return: The synthesized Config object.
  """
  config = _parse_file(read_config_file(path))
  _apply_env(config, environ if env is None else env)
  return config


# Create config object
config = load_config()
DEBUG_ENABLED = config.debug_enabled
SENTRY_DSN = config.sentry_dsn
SENTRY_ENV = config.sentry_env
