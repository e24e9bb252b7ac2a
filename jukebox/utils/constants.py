"""
Constants used for upstream requests and playback.
"""

from yarl import URL

RELEASE = '0.0.0-unknown' # This is replaced by the release tag during CI/CD

APP_NAME = 'audius-player'

# Some discovery nodes reject requests without a browser-like user agent
USER_AGENT = (
  'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
  '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)

AUDIUS_GATEWAY = URL.build(scheme='https', host='api.audius.co')

# Endpoints that return {"data": [<host>, ...]}
DISCOVERY_SOURCES = [
  str(AUDIUS_GATEWAY),
  f'https://cors-anywhere.herokuapp.com/{AUDIUS_GATEWAY}',
  f'https://api.codetabs.com/v1/proxy?quest={AUDIUS_GATEWAY}',
]

# Known-stable discovery nodes, used when every discovery source fails
FALLBACK_HOSTS = [
  'https://discoveryprovider.audius.co',
  'https://discoveryprovider1.audius.co',
  'https://audius-discovery-1.audius.co',
]

# Flagship hosts, tried in order before the selected host
FLAGSHIP_HOSTS = [str(AUDIUS_GATEWAY), *FALLBACK_HOSTS]

DEFAULT_TRENDING_LIMIT = 20
MAX_TRENDING_LIMIT = 100

# Seconds to wait for a stream relay before moving on to the next host
STREAM_TIMEOUT = 10

# Playback retries. The nth retry waits RETRY_BASE_DELAY * 2^(n-1) seconds.
MAX_RETRIES = 5
RETRY_BASE_DELAY = 1.0

# Seconds to wait after assigning a source before starting playback,
# so that the output can begin buffering.
START_DELAY = 0.5

VOLUME_DEFAULT = 50
VOLUME_STEP = 5

# Maximum number of catalog records fetched per category query
CATALOG_QUERY_LIMIT = 100

# Seconds between listener count polls while anyone is subscribed
PRESENCE_POLL_INTERVAL = 5.0

CORS_HEADERS = {
  'Access-Control-Allow-Origin': '*',
  'Access-Control-Allow-Methods': 'GET, OPTIONS',
  'Access-Control-Allow-Headers': 'Content-Type',
}
