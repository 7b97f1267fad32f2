"""
Application configuration package.

Re-exports all configuration values from sub-modules so that
``from config import X`` works for every setting.

Configuration is split into focused modules:
- paths: BASE_DIR, HOST, PORT
- tags: OSM_TAG_KEYS, HELPER_TAGS, delimiters, boolean tokens, TAG_DEFAULTS
- processing: LOG_LEVEL, COMPILE_WORKERS, MAX_WAYS_PER_REQUEST, rate limits
"""

# Paths & server
from config.paths import BASE_DIR, HOST, PORT

# Tag grammar and defaults
from config.tags import (
    OSM_TAG_KEYS, HELPER_TAGS,
    ARRAY_DELIMITER, DOUBLE_ARRAY_DELIMITER,
    BOOLEAN_TRUE, BOOLEAN_FALSE, NO_MARKING,
    TAG_DEFAULTS, ONEWAY_JUNCTIONS,
)

# Compilation & rate limiting
from config.processing import (
    LOG_LEVEL, COMPILE_WORKERS, MAX_WAYS_PER_REQUEST,
    RATE_LIMIT_REQUESTS_PER_MINUTE, RATE_LIMIT_BATCH_PER_MINUTE,
)
