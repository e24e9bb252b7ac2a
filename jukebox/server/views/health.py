"""
Health check view.
"""

from aiohttp import web


async def health_check(_: web.Request):
  return web.json_response({'status': 'ok'})
