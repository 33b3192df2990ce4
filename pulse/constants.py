"""
Shared constants used across all pulse modules.

Centralises endpoints, default payload plans, and tunables so they live in
exactly one place.
"""

# ---------------------------------------------------------------------------
# HTTP headers
# ---------------------------------------------------------------------------

USER_AGENT = "netpulse/1.0 (+https://speed.cloudflare.com)"

COMMON_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "*/*",
    "Cache-Control": "no-store",
    "Pragma": "no-cache",
}

# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

DOWNLOAD_URL = "https://speed.cloudflare.com/__down"
UPLOAD_URL = "https://speed.cloudflare.com/__up"
LATENCY_URL = "https://www.cloudflare.com/cdn-cgi/trace"
INFO_URL = "https://ipapi.co/json/"
SERVER_LABEL = "Cloudflare"

# ---------------------------------------------------------------------------
# Latency phase
# ---------------------------------------------------------------------------

DEFAULT_PING_COUNT = 10
DEFAULT_PING_TIMEOUT_MS = 5000
DEFAULT_PING_DELAY_MS = 100
MIN_PING_COUNT = 1
MAX_PING_COUNT = 100
MIN_PING_TIMEOUT_MS = 100
MAX_PING_TIMEOUT_MS = 60_000

# ---------------------------------------------------------------------------
# Throughput phases
# ---------------------------------------------------------------------------

# Ascending so the small transfers warm the path before the large ones.
DOWNLOAD_SIZES = (1_000_000, 10_000_000, 25_000_000, 100_000_000)
UPLOAD_SIZES = (1_000_000, 5_000_000, 10_000_000, 25_000_000)
MAX_PAYLOAD_SIZE = 1_000_000_000  # 1 GB

CHUNK_SIZE = 64 * 1024
TRANSFER_CONNECT_TIMEOUT = 10.0  # seconds
TRANSFER_READ_TIMEOUT = 30.0     # seconds between socket reads

# ---------------------------------------------------------------------------
# Connection info
# ---------------------------------------------------------------------------

INFO_TIMEOUT = 5.0
UNKNOWN_CONNECTION_TYPE = "Unknown"

# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

MAX_HISTORY_ENTRIES = 50
