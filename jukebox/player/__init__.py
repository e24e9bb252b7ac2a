"""
Client-side core: playback control, retries and auto-advance.
"""

from .audio import AudioOutput
from .client import ProxyClient
from .controller import PlaybackController
from .queue import QueueManager
from .retro import RetroPlayer
from .retry import RetryEngine, RetryOutcome

__all__ = [
  'AudioOutput',
  'PlaybackController',
  'ProxyClient',
  'QueueManager',
  'RetroPlayer',
  'RetryEngine',
  'RetryOutcome',
]
