"""
Core Constants for Media Art Cache

Central place for on-disk layout values, digests and heuristics keywords.
The filename layout is shared with other media art cache implementations,
so none of these values may change.
"""

# Digests
EMPTY_STRING_DIGEST = "d41d8cd98f00b204e9800998ecf8427e"  # md5("")
SPACE_DIGEST = "7215ee9c7d9dc229d2921a40e899ec5f"         # md5(" "), stands in for an absent field
DIGEST_ALGORITHM = "md5"
CHECKSUM_CHUNK_SIZE = 64 * 1024

# Cache layout
CACHE_SUBDIRECTORY = "media-art"
LOCAL_SIDECAR_DIRECTORY = ".mediaartlocal"
DEFAULT_PREFIX = "album"
ARTIFACT_EXTENSION = ".jpeg"
CACHE_DIRECTORY_MODE = 0o700
TEMP_SUFFIX = ".tmp"

# Normalization
BRACKET_PAIRS = (
    ("(", ")"),
    ("{", "}"),
    ("[", "]"),
    ("<", ">"),
)
INVALID_CHARACTERS = "()[]<>{}_!@#$^&*+=|\\/\"'?~"

# JPEG detection
JPEG_SOI_MARKER = b"\xff\xd8\xff"
JPEG_MIME_TYPES = ("image/jpeg", "JPG")

# Directory heuristics
CANDIDATE_EXTENSIONS = (".jpeg", ".jpg", ".png")
JPEG_EXTENSIONS = (".jpeg", ".jpg")
ALBUM_EXACT_KEYWORDS = ("cover", "front", "folder")
ALBUM_ART_KEYWORD = "albumart"
ALBUM_ART_LARGE_KEYWORD = "large"
ALBUM_ART_SMALL_KEYWORD = "small"
VIDEO_EXACT_KEYWORDS = ("folder", "poster")

# Download requester (session bus)
ALBUMARTER_SERVICE = "com.nokia.albumart"
ALBUMARTER_PATH = "/com/nokia/albumart/Requester"
ALBUMARTER_INTERFACE = "com.nokia.albumart.Requester"
ALBUMARTER_METHOD = "Queue"
DBUS_SERVICE_UNKNOWN = "org.freedesktop.DBus.Error.ServiceUnknown"
DOWNLOAD_REQUEST_TIMEOUT = 5.0  # seconds

# Codec
DEFAULT_JPEG_QUALITY = 90
DEFAULT_BACKGROUND_COLOR = "#ffffff"

# Storage
OPTICAL_FILESYSTEMS = ("iso9660", "udf")
SYSFS_BLOCK_ROOT = "/sys/block"

# Performance & Threading
DEFAULT_WORKER_THREADS = 4
MAX_WORKER_THREADS = 16
