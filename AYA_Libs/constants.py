"""
Constants and configuration values for Aya Image Edit.

This module centralizes all constant values, magic numbers, and
configuration settings used throughout the pipeline.
"""

# Provider identities
PROVIDER_DASHSCOPE = "dashscope"
PROVIDER_GEMINI = "gemini"
DEFAULT_PROVIDER = PROVIDER_DASHSCOPE

# Provider endpoints
DASHSCOPE_URL = (
    "https://dashscope.aliyuncs.com/api/v1/services/aigc/"
    "multimodal-generation/generation"
)
GEMINI_URL_TEMPLATE = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    "{model}:generateContent"
)

# Default models
DEFAULT_DASHSCOPE_MODEL = "qwen-image-edit-max"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash-image"
GEMINI_ASPECT_RATIOS = ["1:1", "2:3", "3:2", "3:4", "4:3", "4:5", "5:4", "9:16", "16:9", "21:9"]
GEMINI_IMAGE_SIZES = ["1K", "2K", "4K"]

# Environment variables consulted when a key is missing from settings
DASHSCOPE_KEY_ENV = "DASHSCOPE_API_KEY"
GEMINI_KEY_ENV = "GEMINI_API_KEY"

# Result count bounds
MIN_IMAGE_COUNT = 1
MAX_IMAGE_COUNT = 4

# Network timeouts (seconds)
PROVIDER_TIMEOUT_SECONDS = 120
DOWNLOAD_TIMEOUT_SECONDS = 30
DOWNLOAD_CHUNK_SIZE = 64 * 1024

# Codec
DEFAULT_MIME = "image/png"
ALPHA_FORMAT = "PNG"
FLAT_FORMAT = "JPEG"
FLAT_JPEG_QUALITY = 95
FORMAT_MIME_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
}
WHITE = 255

# Temporary / saved file naming
RESULT_FILE_PREFIX = "aya-result-"
PREVIEW_FILE_PREFIX = "aya-preview-"
RESULT_FILE_SUFFIX = ".png"

# Auto-placement modes
AUTO_SEND_OFF = "off"
AUTO_SEND_ORIGINAL = "original"
AUTO_SEND_SELECTION = "selection"
AUTO_SEND_MODES = (AUTO_SEND_OFF, AUTO_SEND_ORIGINAL, AUTO_SEND_SELECTION)

# Settings file
SETTINGS_FILE_NAME = "settings.json"
DATA_DIR_NAME = ".aya_image_edit"

# Logging
LOG_LEVELS = ("error", "warn", "info", "debug", "trace")
DEFAULT_LOG_LEVEL = "info"
DEFAULT_LOG_RETENTION_DAYS = 7
MAX_LOG_RETENTION_DAYS = 30
LOG_DIR_NAME = "logs"
PROMPT_LOG_LIMIT = 120
MESSAGE_LOG_LIMIT = 400
BASE64_LOG_THRESHOLD = 64
REDACTION_MAX_DEPTH = 6

# Placement
ANCHOR_TOPLEFT = "TOPLEFT"
CENTER_AVERAGE = "average"
PLACE_COMMAND_NAME = "Place AI Image"
CAPTURE_COMMAND_NAME = "Read Selection"
