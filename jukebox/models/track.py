"""
Dataclasses for tracks returned by the Audius API.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Artist:
  """
  The user that owns a track.
  """
  id: Optional[str] = None
  name: Optional[str] = None
  handle: Optional[str] = None


@dataclass(frozen=True)
class Track:
  """
  Dataclass for a track fetched from a search, trending or listing response.
  Tracks are never mutated once fetched.
  """
  # Opaque track identifier; required for streaming
  id: Optional[str]

  title: Optional[str] = None
  artist: Artist = field(default_factory=Artist)

  # Artwork URLs keyed by resolution, e.g. '150x150', '480x480', '1000x1000'
  artwork: Dict[str, str] = field(default_factory=dict)

  # Content identifiers. At least one is present on streamable tracks.
  preview_cid: Optional[str] = None
  track_cid: Optional[str] = None

  # Duration in seconds, if known
  duration: Optional[int] = None

  @property
  def is_streamable(self) -> bool:
    """
    Returns whether the track has preview or full content.
    """
    return bool(self.preview_cid or self.track_cid)

  def get_artwork(self, *sizes: str) -> Optional[str]:
    """
    Returns the first available artwork URL among the given sizes,
    or the largest available artwork if no sizes are given.
    """
    if len(sizes) == 0:
      sizes = ('1000x1000', '480x480', '150x150')
    for size in sizes:
      if self.artwork.get(size):
        return self.artwork[size]
    return None

  def get_details(self) -> str:
    """
    Get a string of the form `title - artist` for the track.
    """
    title = self.title or 'Unknown title'
    artist = self.artist.name or 'Unknown artist'
    return f'{title} - {artist}'

  @classmethod
  def from_api(cls, data: Dict[str, Any]) -> 'Track':
    """
    Parses a track object from an Audius API response.
    """
    user = data.get('user')
    if not isinstance(user, dict):
      user = {}
    artwork = data.get('artwork') or {}
    track_id = data.get('id')

    return cls(
      id=str(track_id) if track_id not in (None, '') else None,
      title=data.get('title'),
      artist=Artist(
        id=str(user['id']) if user.get('id') is not None else None,
        name=user.get('name'),
        handle=user.get('handle')
      ),
      artwork={
        str(size): url
        for size, url in artwork.items()
        if isinstance(url, str) and url
      } if isinstance(artwork, dict) else {},
      preview_cid=data.get('preview_cid'),
      track_cid=data.get('track_cid'),
      duration=data.get('duration')
    )


def parse_tracks(payload: Any) -> List[Track]:
  """
  Parses the `data` list of an Audius API response into streamable tracks.
  Tracks without preview or full content are dropped.
  """
  if not isinstance(payload, dict):
    return []

  items = payload.get('data') or []
  if not isinstance(items, list):
    return []

  tracks = [Track.from_api(item) for item in items if isinstance(item, dict)]
  return [track for track in tracks if track.is_streamable]
