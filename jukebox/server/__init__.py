"""
aiohttp web server exposing the request router over HTTP.
"""

from .main import create_app, run_app

__all__ = ['create_app', 'run_app']
