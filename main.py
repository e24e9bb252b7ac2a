"""
Runs the Audius proxy server.
"""

import asyncio

from jukebox.server.main import run_app
from jukebox.utils.config import SENTRY_DSN, SENTRY_ENV, config
from jukebox.utils.constants import RELEASE
from jukebox.utils.logger import create_logger


if __name__ == '__main__':
  logger = create_logger('main')

  # Print parsed config
  if config.debug_enabled:
    logger.debug('Parsed configuration:')
    logger.debug('  Listening on %s:%d', config.server_host, config.server_port)
    logger.debug('  App name: %s', config.audius.app_name)
    logger.debug('  Gateway: %s', config.audius.gateway)
    logger.debug('  Stream timeout: %.1f s', config.audius.stream_timeout)

    logger.debug('  Flagship hosts:')
    for host in config.audius.hosts:
      logger.debug('    - %s', host)
    logger.debug('  Discovery sources:')
    for source in config.audius.discovery_sources:
      logger.debug('    - %s', source)
    logger.debug('  Fallback hosts:')
    for host in config.audius.fallback_hosts:
      logger.debug('    - %s', host)

    if SENTRY_DSN is not None and SENTRY_ENV is not None:
      logger.debug('  Sentry DSN: %s...', SENTRY_DSN[:10])
      logger.debug('  Sentry environment: %s', SENTRY_ENV)
    else:
      logger.debug('  Sentry integration disabled')

  logger.info('Jukebox proxy release %s booting up...', RELEASE)
  loop = asyncio.new_event_loop()
  runner = loop.run_until_complete(run_app(config))
  try:
    loop.run_forever()
  except KeyboardInterrupt:
    logger.info('Shutting down')
  finally:
    loop.run_until_complete(runner.cleanup())
