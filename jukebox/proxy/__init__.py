"""
Server-side core: discovery node selection and multi-host request routing.
"""

from .host_selector import HostSelector
from .router import RequestRouter

__all__ = ['HostSelector', 'RequestRouter']
