from enum import Enum

# Application name used for default directories and the User-Agent
APP_NAME = 'satellite-tiles'
APP_VERSION = '0.1.0'

# Fixed User-Agent sent with every tile request (identifies client and project)
USER_AGENT = (
    f'{APP_NAME}/{APP_VERSION} (+https://github.com/gareth-cross/rviz_satellite)'
)

# --- Slippy map limits
# Highest supported zoom level (grid side is 2**zoom tiles)
MAX_ZOOM = 31
# Latitude limit of the spherical Mercator projection (degrees)
MAX_LATITUDE_DEG = 85.0511
# Longitude limit (degrees)
MAX_LONGITUDE_DEG = 180.0
WORLD_LNG_SPAN_DEG = 360.0
# Ground resolution at the equator for zoom 0 (metres per pixel, 256 px tiles)
EQUATOR_RESOLUTION_M = 156543.034

# --- Tile cache
# Cached tile file name pattern
CACHE_TILE_NAME = 'x{x}_y{y}_z{z}.jpg'
# Format passed to Pillow when persisting tiles
CACHE_TILE_FORMAT = 'JPEG'
# Size of the source template digest (bytes); 8 bytes -> unsigned 64-bit key
SOURCE_HASH_BYTES = 8
# Default cache root (relative paths are resolved from the working directory)
TILE_CACHE_DIR = '.cache/tiles'

# --- HTTP
# Status codes that carry a redirect target in the Location header
HTTP_REDIRECT_CODES = frozenset({301, 302, 303, 307, 308})
# First status code treated as a transport failure
HTTP_ERROR_MIN = 400
# Proxy scheme used for "host:port" proxy strings
PROXY_SCHEME = 'http'
MAX_PORT = 65535

# --- Configuration
# Prefix of environment variables overriding profile fields
ENV_PREFIX = 'SATTILES_'
# Dotenv file consulted by the CLI
DOTENV_FILE = '.env'
# Directory for log files
LOG_DIR = '.cache/log'
LOG_FILE = 'sattiles.log'


class ExitCode(int, Enum):
    """Process exit codes of the CLI."""

    COMPLETE = 0
    STALLED = 1
    INVALID_CONFIG = 2
