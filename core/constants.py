"""
Constants and configuration values for Circle Crop.
Centralizes all magic numbers and configuration constants.
"""


# Compositor Constants
class CompositorConstants:
    """Constants for the rotate/crop/mask pipeline."""

    # Output encoding
    DEFAULT_QUALITY = 0.92
    MIN_JPEG_QUALITY = 1
    MAX_JPEG_QUALITY = 100
    PNG_COMPRESS_LEVEL = 6

    # Geometry
    FULL_TURN_DEGREES = 360.0
    # Snap bounding box sizes and transform coefficients within this distance
    # of an integer
    SNAP_TOLERANCE = 1e-6

    # Mask edge width in pixels (coverage ramps from 1 to 0 over this band)
    MASK_EDGE_WIDTH = 1.0


# Object URL Constants
class ObjectURLConstants:
    """Constants for encoded image handles."""

    SCHEME = "blob:"
    ORIGIN = "circle-crop"
    DEFAULT_DOWNLOAD_BASENAME = "cropped-image"
    FALLBACK_EXTENSION = "png"


# Storage Constants
class StorageConstants:
    """Constants for crop settings persistence."""

    KEY_NAMESPACE = "cropSettings-"
    KEY_PREFIX_LENGTH = 50
    HASH_KEY_TAG = "sha256-"
    STORE_FILENAME = "crop_settings.json"

    # Session defaults
    DEFAULT_ZOOM = 1.0
    DEFAULT_ROTATION = 0.0


# System Constants
class SystemConstants:
    """Constants for system operations."""

    # Logging
    LOG_LEVEL_DEFAULT = "INFO"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# Color Constants (RGBA)
class Colors:
    """Standard colors for compositing (RGBA, 0-255)."""

    WHITE = (255, 255, 255, 255)
    TRANSPARENT = (0, 0, 0, 0)

    # Background used when flattening for formats without alpha
    FLATTEN_BACKGROUND = WHITE


# Error Messages
class ErrorMessages:
    """Standard error messages."""

    # Decode errors
    SOURCE_UNREADABLE = "Cannot read image source {source}: {error}"
    SOURCE_UNSUPPORTED = "Unsupported image data from {source}: {error}"
    SOURCE_REMOTE = "Remote source {source} is not reachable from a local pipeline"
    OBJECT_URL_UNKNOWN = "Object URL {url} is unknown or has been revoked"

    # Rect errors
    RECT_INVALID_SIZE = "Crop rectangle size is invalid: {width}x{height}"
    RECT_NOT_FINITE = "Crop rectangle has non-finite values: {rect}"

    # Encode errors
    ENCODE_EMPTY = "Cannot encode an empty {width}x{height} surface"
    ENCODE_FAILED = "Failed to encode image as {format}: {error}"

    # Session errors
    NO_IMAGE = "No image loaded"
    NO_CROP_AREA = "No crop area selected"
