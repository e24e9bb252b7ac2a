"""
Typed application keys shared by the server and its views.
"""

from aiohttp import web

from jukebox.models.config import Config
from jukebox.proxy.router import RequestRouter

CONFIG_KEY = web.AppKey('config', Config)
ROUTER_KEY = web.AppKey('router', RequestRouter)
