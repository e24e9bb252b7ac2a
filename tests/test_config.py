"""
Tests for the configuration parser.
"""

import pytest

from jukebox.utils.config import load_config
from jukebox.utils.constants import FALLBACK_HOSTS, FLAGSHIP_HOSTS

CONFIG_FILE = """
server:
  port: 9000
audius:
  app_name: my-player
  hosts:
    - https://node-a.test
  fallback_hosts:
    - https://node-b.test
player:
  max_retries: 3
  advance_on_failure: true
supabase:
  url: https://supa.test
  anon_key: anon
debug: true
"""


def test_defaults_without_file(tmp_path):
  config = load_config(str(tmp_path / 'missing.yml'), env={})
  assert config.server_port == 8080
  assert config.audius.hosts == FLAGSHIP_HOSTS
  assert config.audius.fallback_hosts == FALLBACK_HOSTS
  assert config.player.max_retries == 5
  assert not config.player.advance_on_failure
  assert not config.appwrite.enabled
  assert not config.supabase.enabled


def test_file_values(tmp_path):
  path = tmp_path / 'config.yml'
  path.write_text(CONFIG_FILE, encoding='UTF-8')

  config = load_config(str(path), env={})
  assert config.server_port == 9000
  assert config.audius.app_name == 'my-player'
  assert config.audius.hosts == ['https://node-a.test']
  assert config.audius.fallback_hosts == ['https://node-b.test']
  assert config.player.max_retries == 3
  assert config.player.advance_on_failure
  assert config.supabase.enabled
  assert config.debug_enabled


def test_env_overrides_file(tmp_path):
  path = tmp_path / 'config.yml'
  path.write_text(CONFIG_FILE, encoding='UTF-8')

  config = load_config(str(path), env={
    'JUKEBOX_SERVER_PORT': '7000',
    'JUKEBOX_NODE_1': 'https://one.test/',
    'JUKEBOX_NODE_2': 'https://two.test',
    'JUKEBOX_NODE_4': 'https://skipped.test',
    'JUKEBOX_FALLBACK_HOSTS': 'https://f1.test, https://f2.test',
    'JUKEBOX_ADVANCE_ON_FAILURE': 'false',
    'JUKEBOX_DEBUG': 'false',
  })
  assert config.server_port == 7000
  assert config.audius.hosts == ['https://one.test', 'https://two.test']
  assert config.audius.fallback_hosts == ['https://f1.test', 'https://f2.test']
  assert not config.player.advance_on_failure
  assert not config.debug_enabled


def test_empty_fallback_list_is_rejected(tmp_path):
  with pytest.raises(ValueError):
    load_config(str(tmp_path / 'missing.yml'), env={'JUKEBOX_FALLBACK_HOSTS': ' , '})


def test_incomplete_section_is_rejected(tmp_path):
  path = tmp_path / 'config.yml'
  path.write_text('appwrite:\n  endpoint: https://appwrite.test\n', encoding='UTF-8')
  with pytest.raises(RuntimeError):
    load_config(str(path), env={})


def test_malformed_file_is_rejected(tmp_path):
  path = tmp_path / 'config.yml'
  path.write_text('- just\n- a list\n', encoding='UTF-8')
  with pytest.raises(ValueError):
    load_config(str(path), env={})


def test_retry_budget_cannot_exceed_five(tmp_path):
  with pytest.raises(ValueError):
    load_config(str(tmp_path / 'missing.yml'), env={'JUKEBOX_MAX_RETRIES': '10'})

  path = tmp_path / 'config.yml'
  path.write_text('player:\n  max_retries: 6\n', encoding='UTF-8')
  with pytest.raises(ValueError):
    load_config(str(path), env={})

  config = load_config(str(tmp_path / 'missing.yml'), env={'JUKEBOX_MAX_RETRIES': '3'})
  assert config.player.max_retries == 3
