"""
Audius proxy views. The logical endpoint is passed in the `endpoint` query
parameter, e.g. /api/audius?endpoint=/tracks/search&q=lofi
"""

from aiohttp import web

from jukebox.server.keys import ROUTER_KEY
from jukebox.utils.constants import CORS_HEADERS


async def audius_proxy(request: web.Request):
  """
  Serve a logical request through the router, relaying its status,
  content type and body unchanged.
  """
  router = request.app[ROUTER_KEY]
  endpoint = request.query.get('endpoint')
  params = {key: value for key, value in request.query.items() if key != 'endpoint'}

  result = await router.route(endpoint, params)
  return web.Response(
    status=result.status,
    body=result.body,
    headers={'Content-Type': result.content_type, **CORS_HEADERS}
  )


async def audius_preflight(_: web.Request):
  """
  Answer CORS preflight requests.
  """
  return web.Response(status=200, headers=CORS_HEADERS)
