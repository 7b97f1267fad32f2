"""Compilation, logging and rate-limit settings."""

import os

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Threads used when compiling a batch of ways (capped to keep small hosts responsive)
COMPILE_WORKERS = int(os.getenv("COMPILE_WORKERS", str(min(8, os.cpu_count() or 2))))

# Upper bound on ways accepted by one batch request
MAX_WAYS_PER_REQUEST = int(os.getenv("MAX_WAYS_PER_REQUEST", "5000"))

# Rate limiting (per client, sliding one-minute window)
RATE_LIMIT_REQUESTS_PER_MINUTE = int(os.getenv("RATE_LIMIT_REQUESTS_PER_MINUTE", "120"))
RATE_LIMIT_BATCH_PER_MINUTE = int(os.getenv("RATE_LIMIT_BATCH_PER_MINUTE", "20"))
