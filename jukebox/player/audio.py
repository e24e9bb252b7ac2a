"""
Audio output abstraction. Players drive an AudioOutput the same way a web
page drives an audio element: assign a source, load it, play and pause, and
react to the events the output dispatches.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from inspect import isawaitable
from typing import Any, Callable, DefaultDict, List

# Events dispatched by outputs
EVENT_TIME_UPDATE = 'timeupdate'
EVENT_LOADED_METADATA = 'loadedmetadata'
EVENT_ENDED = 'ended'
EVENT_ERROR = 'error'

Listener = Callable[..., Any]


class AudioOutput(ABC):
  """
  Base class for audio outputs.
  """

  def __init__(self):
    self.src = ''
    self.current_time = 0.0
    self.duration = 0.0
    self.volume = 1.0
    self.paused = True
    self._listeners: DefaultDict[str, List[Listener]] = defaultdict(list)

  def add_listener(self, event: str, listener: Listener):
    """
    Registers a listener for an event. Listeners may be coroutine functions.
    """
    self._listeners[event].append(listener)

  def remove_listener(self, event: str, listener: Listener):
    """
    Unregisters a listener. Unknown listeners are ignored.
    """
    try:
      self._listeners[event].remove(listener)
    except ValueError:
      pass

  async def dispatch(self, event: str, *args: Any):
    """
    Calls every listener registered for an event, in registration order.
    """
    for listener in list(self._listeners[event]):
      result = listener(*args)
      if isawaitable(result):
        await result

  def stop(self):
    """
    Fully stops the output: pause, rewind and clear the source.
    """
    self.pause()
    self.current_time = 0.0
    self.src = ''

  @abstractmethod
  def load(self):
    """
    Begins loading the current source.
    """

  @abstractmethod
  async def play(self):
    """
    Starts or resumes playback.

    Raises:
      PlaybackError: If playback could not be started.
    """

  @abstractmethod
  def pause(self):
    """
    Pauses playback.
    """
