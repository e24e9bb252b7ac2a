"""
Adds routes to the application.
"""

from typing import TYPE_CHECKING

from .views.health import health_check
from .views.proxy import audius_preflight, audius_proxy

if TYPE_CHECKING:
  from aiohttp.web import Application


PROXY_PATH = '/api/audius'


def setup_routes(app: 'Application'):
  """
  Add all available routes to the application.
  """
  app.router.add_get('/health', health_check)
  app.router.add_get(PROXY_PATH, audius_proxy)
  app.router.add_route('OPTIONS', PROXY_PATH, audius_preflight)
