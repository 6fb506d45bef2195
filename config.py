"""Shared settings for the chunking and staging scripts.

Every value can be overridden through the environment so the same scripts
run against a personal bucket or the course bucket without edits.
"""

import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {raw!r}")


# AWS configuration
REVIEWS_BUCKET = os.environ.get("REVIEWS_BUCKET", "yelp-reviews-bucket")
STAGE_PREFIX = os.environ.get("STAGE_PREFIX", "yelp_chunks")
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")

# Partitioning
DEFAULT_CHUNK_COUNT = _env_int("DEFAULT_CHUNK_COUNT", 10)
MAX_UPLOAD_RETRIES = _env_int("MAX_UPLOAD_RETRIES", 3)

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
