"""Upload chunk files to the S3 prefix behind the warehouse's external stage."""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

import boto3

import config

logger = logging.getLogger(__name__)


def list_chunk_files(directory, pattern: str = "*.json") -> List[Path]:
    """Return chunk files in index order (zero-padded names sort correctly)."""
    return sorted(path for path in Path(directory).glob(pattern) if path.is_file())


def upload_file(s3_client, local_path, bucket: str, key: str, max_retries: int = 3):
    """Stage one chunk file under ``key`` and return the key.

    A throttled or dropped upload is retried after 1, 2, 4... seconds; the last
    failure is raised so the COPY never runs against a partial stage.
    """
    for attempt in range(max_retries):
        try:
            s3_client.upload_file(str(local_path), bucket, key)
            logger.info(f"Staged chunk {Path(local_path).name} at s3://{bucket}/{key}")
            return key
        except Exception as e:
            if attempt == max_retries - 1:
                logger.error(f"Giving up on chunk {Path(local_path).name} after {max_retries} attempts: {e}")
                raise
            delay = 2 ** attempt
            logger.warning(f"Staging chunk {Path(local_path).name} failed ({e}), retrying in {delay}s")
            time.sleep(delay)


def upload_chunks(directory, bucket: str = config.REVIEWS_BUCKET, prefix: str = config.STAGE_PREFIX,
                  s3_client=None, pattern: str = "*.json",
                  max_retries: int = config.MAX_UPLOAD_RETRIES) -> List[str]:
    """Upload every chunk file in ``directory`` and return the S3 keys in order."""
    files = list_chunk_files(directory, pattern)
    if not files:
        raise FileNotFoundError(f"No chunk files matching {pattern} in {directory}")

    if s3_client is None:
        s3_client = boto3.client('s3', region_name=config.AWS_REGION)

    prefix = prefix.strip("/")
    keys = []
    start_time = time.time()
    for path in files:
        key = f"{prefix}/{path.name}" if prefix else path.name
        keys.append(upload_file(s3_client, path, bucket, key, max_retries=max_retries))

    total_size_gb = sum(path.stat().st_size for path in files) / (1024 ** 3)
    logger.info(f"Uploaded {len(keys)} files ({total_size_gb:.2f} GB) in {time.time() - start_time:.2f} seconds")
    return keys


def main(argv: Optional[list] = None) -> int:
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    parser = argparse.ArgumentParser(description="Upload chunk files to the S3 staging prefix.")
    parser.add_argument("directory", type=Path, help="Directory holding the chunk files")
    parser.add_argument("--bucket", default=config.REVIEWS_BUCKET)
    parser.add_argument("--prefix", default=config.STAGE_PREFIX)
    parser.add_argument("--pattern", default="*.json", help="Glob for chunk files (default: *.json)")
    args = parser.parse_args(argv)

    try:
        upload_chunks(args.directory, args.bucket, args.prefix, pattern=args.pattern)
    except Exception as e:
        logger.error(f"Error during upload: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
