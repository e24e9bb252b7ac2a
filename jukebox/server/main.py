"""
Main module for the web server.
"""

from random import Random
from typing import TYPE_CHECKING, AsyncIterator, Optional

from aiohttp import ClientSession, web
from aiohttp.abc import AbstractAccessLogger

from jukebox.proxy.host_selector import HostSelector
from jukebox.proxy.router import RequestRouter
from jukebox.utils.constants import USER_AGENT
from jukebox.utils.logger import create_logger

from .keys import CONFIG_KEY, ROUTER_KEY
from .routes import setup_routes

if TYPE_CHECKING:
  from jukebox.models.config import Config


class AccessLogger(AbstractAccessLogger):
  """
  Custom access logger that logs the response status code, request method,
  path, and time taken to process the request.
  """

  def log(self, request, response, time):
    log_fmt = 'Server: %s %s %s (took %.2f ms)'
    self.logger.info(
      log_fmt, response.status, request.method, request.path, time * 1000
    )


def create_app(config: 'Config', *, rng: Optional[Random] = None) -> web.Application:
  """
  Create the proxy application. The upstream HTTP session and the router
  live for as long as the application runs.

  :param config: The synthesized configuration.
  :param rng: Random number generator used for host selection.
  """
  app = web.Application()
  app[CONFIG_KEY] = config

  async def upstream_session(app: web.Application) -> AsyncIterator[None]:
    session = ClientSession(headers={'User-Agent': USER_AGENT})
    hosts = HostSelector(
      session,
      config.audius.discovery_sources,
      config.audius.fallback_hosts,
      rng=rng
    )
    app[ROUTER_KEY] = RequestRouter(session, hosts, config.audius)
    yield
    await session.close()

  app.cleanup_ctx.append(upstream_session)
  setup_routes(app)
  return app


async def run_app(config: 'Config') -> web.AppRunner:
  """
  Run the web server.
  """
  # Create logger
  logger = create_logger('server')

  # Create app
  app = create_app(config)

  # Run app
  runner = web.AppRunner(app, access_log=logger, access_log_class=AccessLogger)
  await runner.setup()
  site = web.TCPSite(runner, host=config.server_host, port=config.server_port)
  await site.start()

  logger.info('Web server listening on %s:%d', config.server_host, config.server_port)
  return runner
