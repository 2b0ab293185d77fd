"""Application-wide constants."""

# API Configuration
API_VERSION = "v1"
API_PREFIX = f"/api/{API_VERSION}"

# Confessions
MAX_CONTENT_LENGTH = 500
MAX_REPLY_LENGTH = 500
MAX_PINNED_PER_RECEIVER = 3
EDIT_WINDOW_SECONDS = 300  # 5 minutes after creation
CONFESSION_PAGE_SIZE = 12
SENT_LIST_LIMIT = 20
PINNED_LIST_LIMIT = 20

# Live stream
STREAM_QUEUE_SIZE = 100  # events buffered per connection

# Reports
MAX_REPORT_DESCRIPTION_LENGTH = 500
REPORT_LIST_LIMIT = 50

# Profiles
MAX_BIO_LENGTH = 500
MAX_IMAGE_URL_LENGTH = 500
ALLOWED_IMAGE_URL_SCHEMES = ("http", "https")

# Accounts
MIN_USERNAME_LENGTH = 3
MAX_USERNAME_LENGTH = 30
USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"
MIN_PASSWORD_LENGTH = 6

# Search
MIN_SEARCH_QUERY_LENGTH = 2
SEARCH_RESULT_LIMIT = 5

# Admin listing
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Uploads (in bytes / pixels)
MAX_UPLOAD_SIZE_MB = 5
MAX_UPLOAD_SIZE_BYTES = MAX_UPLOAD_SIZE_MB * 1024 * 1024  # 5MB
MAX_IMAGE_DIMENSION = 4096
UPLOAD_KEY_PREFIX = "uploads"

ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

# Cache TTLs (in seconds)
PROFILE_CACHE_TTL = 120
SEARCH_CACHE_TTL = 60
ADMIN_USERS_CACHE_TTL = 30

# Addresses that are never rate limited
LOOPBACK_ADDRESSES = {"127.0.0.1", "::1", "localhost"}
