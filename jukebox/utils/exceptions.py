"""
Custom exceptions for Jukebox
"""

from typing import Optional, Union


class JukeboxException(Exception):
  """
  Custom exception class for Jukebox.
  """

  def __init__(self, message: Union[str, Exception]):
    if isinstance(message, Exception):
      self.message = str(message)
    else:
      self.message = message

    super().__init__(self.message)

  def __str__(self) -> str:
    return self.message


class UpstreamStatusError(JukeboxException):
  """
  Raised when a single upstream host answers with a non-2xx status.
  """

  def __init__(self, host: str, status: int, body: str = ''):
    self.host = host
    self.status = status
    self.body = body
    self.message = f'Host {host} returned {status}'
    super().__init__(self.message)


class ProxyError(JukeboxException):
  """
  Raised when the streaming proxy answers with an error status.

  Args:
    - status (int): The HTTP status returned by the proxy.
    - details (str): Extra diagnostic information, if any.
  """

  def __init__(self, message: str, status: int = 500, details: Optional[str] = None):
    self.status = status
    self.details = details
    super().__init__(message)


class BadRequestError(ProxyError):
  """
  Raised when the proxy rejects a request as malformed (400).
  """

  def __init__(self, message: str, details: Optional[str] = None):
    super().__init__(message, status=400, details=details)


class UpstreamUnavailableError(ProxyError):
  """
  Raised when every candidate upstream host failed (503).
  """

  def __init__(self, message: str, details: Optional[str] = None):
    super().__init__(message, status=503, details=details)


class InvalidUpstreamPayloadError(ProxyError):
  """
  Raised when the upstream answered successfully with an unparseable body (502).
  """

  def __init__(self, message: str, details: Optional[str] = None):
    super().__init__(message, status=502, details=details)


class PlaybackError(JukeboxException):
  """
  Raised when the audio output refuses to start playback.
  """


class CatalogConfigError(JukeboxException):
  """
  Raised when the catalog backend is not configured.
  """

  def __init__(self, message: Optional[str] = None):
    self.message = message or 'Missing catalog configuration.'
    super().__init__(self.message)


class CatalogEmptyError(JukeboxException):
  """
  Raised when a catalog entry has no usable audio URL.
  """

  def __init__(self, category: Optional[str]):
    self.category = category
    self.message = f'No audio URL for {category}.'
    super().__init__(self.message)


class EmptyQueueError(JukeboxException):
  """
  Raised when the queue is empty.
  """

  def __init__(self):
    self.message = 'The queue is empty.'
    super().__init__(self.message)


class EndOfQueueError(JukeboxException):
  """
  Raised when the queue has no current position to advance from.
  """

  def __init__(self, message: Optional[str] = None):
    self.message = message or 'End of queue reached.'
    super().__init__(self.message)
