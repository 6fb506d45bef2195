"""Split a large line-delimited JSON file into smaller chunk files.

The Yelp review dump is several GB of one JSON object per line. Loading it
into the warehouse as one file serialises the COPY on a single worker, so it
is cut into N files first and each file is loaded in parallel.

Records are never parsed: only line boundaries matter, so every chunk is a
byte-exact, contiguous slice of the source and concatenating the chunks in
index order gives back the original file.
"""

import argparse
import errno
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Optional, Tuple, Union

import psutil

import config

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


class InvalidPartitionConfig(ValueError):
    """Raised when the requested chunk layout is not usable."""


@dataclass
class PartitionPlan:
    """How chunk boundaries are chosen. Exactly one sizing option is set."""

    chunk_count: Optional[int] = None
    lines_per_chunk: Optional[int] = None
    max_chunk_bytes: Optional[int] = None
    by_size: bool = False

    def __post_init__(self):
        settings = {
            name: value
            for name, value in (
                ("chunk_count", self.chunk_count),
                ("lines_per_chunk", self.lines_per_chunk),
                ("max_chunk_bytes", self.max_chunk_bytes),
            )
            if value is not None
        }
        if len(settings) != 1:
            raise InvalidPartitionConfig(
                "Exactly one of chunk_count, lines_per_chunk or max_chunk_bytes must be set, "
                f"got {sorted(settings) or 'none'}"
            )
        name, value = next(iter(settings.items()))
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidPartitionConfig(f"{name} must be an integer, got {value!r}")
        if value <= 0:
            raise InvalidPartitionConfig(f"{name} must be a positive integer, got {value}")
        if self.by_size and self.chunk_count is None:
            raise InvalidPartitionConfig("by_size balancing only applies to chunk_count")

    @property
    def fixed_count(self) -> bool:
        return self.chunk_count is not None


@dataclass
class ChunkInfo:
    index: int
    path: Path
    records: int = 0
    bytes: int = 0


@dataclass
class PartitionResult:
    source: Path
    chunks: List[ChunkInfo] = field(default_factory=list)

    @property
    def paths(self) -> List[Path]:
        return [chunk.path for chunk in self.chunks]

    @property
    def total_records(self) -> int:
        return sum(chunk.records for chunk in self.chunks)

    @property
    def total_bytes(self) -> int:
        return sum(chunk.bytes for chunk in self.chunks)


def iter_records(path: PathLike) -> Iterator[bytes]:
    """Yield raw lines (newline included) from a file, one at a time."""
    with open(path, "rb") as f:
        for line in f:
            yield line


def count_lines(path: PathLike) -> int:
    """Count records without holding them; a final line with no newline still counts."""
    return sum(1 for _ in iter_records(path))


def chunk_file_name(prefix: str, index: int, suffix: str = ".json") -> str:
    return f"{prefix}_{index:05d}{suffix}"


# Chunk assignment. Each helper maps a stream of lines to (chunk index, line)
# pairs; indexes start at 1 and never decrease.

def _balanced_by_size(lines: Iterable[bytes], file_size: int, chunk_count: int) -> Iterator[Tuple[int, bytes]]:
    size = max(file_size, 1)
    offset = 0
    current = 1
    for line in lines:
        target = offset * chunk_count // size + 1
        # never skip an index, never run past the last chunk
        current = min(max(current, min(target, current + 1)), chunk_count)
        yield current, line
        offset += len(line)


def _balanced_by_count(lines: Iterable[bytes], total_lines: int, chunk_count: int) -> Iterator[Tuple[int, bytes]]:
    base, extra = divmod(total_lines, chunk_count)
    index = 1
    left = base + 1 if extra else base
    for line in lines:
        while left <= 0 and index < chunk_count:
            index += 1
            left = base + 1 if index <= extra else base
        yield index, line
        left -= 1


def _fixed_lines(lines: Iterable[bytes], lines_per_chunk: int) -> Iterator[Tuple[int, bytes]]:
    for number, line in enumerate(lines):
        yield number // lines_per_chunk + 1, line


def _fixed_bytes(lines: Iterable[bytes], max_chunk_bytes: int) -> Iterator[Tuple[int, bytes]]:
    index, size = 1, 0
    for line in lines:
        if size and size + len(line) > max_chunk_bytes:
            index += 1
            size = 0
        yield index, line
        size += len(line)


def assign_chunks(lines: Iterable[bytes], plan: PartitionPlan, file_size: int = 0,
                  total_lines: Optional[int] = None) -> Iterator[Tuple[int, bytes]]:
    if plan.lines_per_chunk is not None:
        return _fixed_lines(lines, plan.lines_per_chunk)
    if plan.max_chunk_bytes is not None:
        return _fixed_bytes(lines, plan.max_chunk_bytes)
    if plan.by_size:
        return _balanced_by_size(lines, file_size, plan.chunk_count)
    if total_lines is None:
        raise InvalidPartitionConfig("record-count balancing needs the total line count")
    return _balanced_by_count(lines, total_lines, plan.chunk_count)


class _ChunkWriter:
    """Keeps at most one chunk file open; files are opened on their first record."""

    def __init__(self, output_dir: Path, prefix: str, suffix: str):
        self.output_dir = output_dir
        self.prefix = prefix
        self.suffix = suffix
        self.chunks: List[ChunkInfo] = []
        self._fh: Optional[BinaryIO] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def path_for(self, index: int) -> Path:
        return self.output_dir / chunk_file_name(self.prefix, index, self.suffix)

    def write(self, index: int, line: bytes):
        if self._fh is None or self.chunks[-1].index != index:
            self._open(index)
        self._fh.write(line)
        current = self.chunks[-1]
        current.records += 1
        current.bytes += len(line)

    def _open(self, index: int):
        self.close()
        path = self.path_for(index)
        self._fh = open(path, "wb")
        self.chunks.append(ChunkInfo(index=index, path=path))
        logger.debug(f"Opened chunk {path}")

    def close(self):
        if self._fh is None:
            return
        self._fh.close()
        self._fh = None
        current = self.chunks[-1]
        logger.info(f"Wrote {current.path.name}: {current.records} records, {current.bytes} bytes")

    def fill_missing(self, chunk_count: int):
        """Create empty files for chunk indexes that received no record."""
        self.close()
        written = {chunk.index for chunk in self.chunks}
        for index in range(1, chunk_count + 1):
            if index in written:
                continue
            path = self.path_for(index)
            with open(path, "wb"):
                pass
            self.chunks.append(ChunkInfo(index=index, path=path))
            logger.info(f"Wrote {path.name}: empty (no records left for this chunk)")
        self.chunks.sort(key=lambda chunk: chunk.index)


def split_file(source: PathLike, output_dir: PathLike, chunk_count: Optional[int] = None, *,
               lines_per_chunk: Optional[int] = None, max_chunk_bytes: Optional[int] = None,
               by_size: bool = False, prefix: Optional[str] = None) -> PartitionResult:
    """Split ``source`` into chunk files under ``output_dir``.

    With ``chunk_count`` exactly that many files are written. Records are
    counted in a streamed first pass and spread so chunk sizes differ by at
    most one record; a chunk is empty only when there are fewer records than
    chunks. ``by_size=True`` skips the counting pass and balances by bytes
    instead, which can leave trailing chunks empty when record sizes are
    skewed. With ``lines_per_chunk`` or ``max_chunk_bytes`` the number of files
    follows the data and the last file holds the remainder.

    Files already written are left in place if a write fails; clear the output
    directory before re-running.
    """
    plan = PartitionPlan(chunk_count=chunk_count, lines_per_chunk=lines_per_chunk,
                         max_chunk_bytes=max_chunk_bytes, by_size=by_size)

    source = Path(source)
    if not source.exists():
        raise FileNotFoundError(errno.ENOENT, "Source file not found", str(source))
    if source.is_dir():
        raise IsADirectoryError(errno.EISDIR, "Source is a directory", str(source))

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    file_size = source.stat().st_size
    total_lines = count_lines(source) if plan.needs_line_count else None
    logger.info(f"Splitting {source} ({file_size / (1024 ** 2):.2f} MB) into {output_dir} with {plan}")

    writer = _ChunkWriter(output_dir, prefix or source.stem, source.suffix or ".json")
    try:
        with open(source, "rb") as src, writer:
            for index, line in assign_chunks(src, plan, file_size=file_size, total_lines=total_lines):
                writer.write(index, line)
            if plan.fixed_count:
                writer.fill_missing(plan.chunk_count)
    except OSError as e:
        logger.error(f"Error while splitting {source} after {len(writer.chunks)} chunk(s): {e}")
        raise

    result = PartitionResult(source=source, chunks=writer.chunks)
    logger.info(f"Split {result.total_records} records ({result.total_bytes} bytes) into {len(result.chunks)} files")
    return result


def log_resource_usage():
    """Log process and system memory after a run."""
    rss_mb = psutil.Process().memory_info().rss / (1024 ** 2)
    memory_usage = psutil.virtual_memory().percent
    logger.info(f"Process memory: {rss_mb:.1f} MB resident, system memory usage {memory_usage:.1f}%")
    return {"rss_mb": rss_mb, "memory_usage_percent": memory_usage}


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Split a line-delimited JSON file into chunk files for parallel bulk loading.")
    parser.add_argument("source", type=Path, help="Line-delimited JSON file to split")
    parser.add_argument("output_dir", type=Path, help="Directory for the chunk files")
    sizing = parser.add_mutually_exclusive_group()
    sizing.add_argument("-n", "--chunks", dest="chunk_count", type=int,
                        help=f"Number of chunk files (default: {config.DEFAULT_CHUNK_COUNT})")
    sizing.add_argument("--lines-per-chunk", type=int, help="Records per chunk file")
    sizing.add_argument("--max-chunk-bytes", type=int, help="Upper bound on chunk file size")
    parser.add_argument("--by-size", action="store_true",
                        help="Single pass, balance chunks by bytes; chunks may be empty when record sizes are skewed")
    parser.add_argument("--prefix", help="File name prefix (default: source file stem)")
    args = parser.parse_args(argv)
    if args.chunk_count is None and args.lines_per_chunk is None and args.max_chunk_bytes is None:
        args.chunk_count = config.DEFAULT_CHUNK_COUNT
    return args


def main(argv=None) -> int:
    logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
    args = parse_args(argv)
    try:
        result = split_file(args.source, args.output_dir, args.chunk_count,
                            lines_per_chunk=args.lines_per_chunk, max_chunk_bytes=args.max_chunk_bytes,
                            by_size=args.by_size, prefix=args.prefix)
    except InvalidPartitionConfig as e:
        logger.error(f"Invalid partition settings: {e}")
        return 2
    except OSError as e:
        logger.error(f"Error during partitioning: {e}")
        return 1

    for chunk in result.chunks:
        logger.info(f"{chunk.path}: {chunk.records} records")
    log_resource_usage()
    return 0


if __name__ == "__main__":
    sys.exit(main())
