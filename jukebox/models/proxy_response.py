"""
Dataclass for responses produced by the request router.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional

JSON_CONTENT_TYPE = 'application/json'


@dataclass(frozen=True)
class ProxyResponse:
  """
  A transport-agnostic response: status, content type and raw body.
  """
  status: int
  body: bytes = b''
  content_type: str = JSON_CONTENT_TYPE

  @property
  def ok(self) -> bool:
    return 200 <= self.status < 300

  def json(self) -> Any:
    """
    Decodes the body as JSON.
    """
    return json.loads(self.body)

  @classmethod
  def from_json(cls, data: Any, status: int = 200) -> 'ProxyResponse':
    return cls(status=status, body=json.dumps(data).encode('utf-8'))

  @classmethod
  def error(cls, status: int, error: str, details: Optional[str] = None) -> 'ProxyResponse':
    """
    Builds an error response of the form {"error": ..., "details": ...}.
    The details key is omitted when there are none.
    """
    payload = {'error': error}
    if details is not None:
      payload['details'] = details
    return cls.from_json(payload, status=status)
