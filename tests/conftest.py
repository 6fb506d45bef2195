import json

import pytest


def review_line(i: int, text: str = "Great tacos, slow service.") -> bytes:
    record = {"review_id": f"r{i:06d}", "business_id": f"b{i % 7:03d}", "stars": i % 5 + 1, "text": text}
    return (json.dumps(record) + "\n").encode("utf-8")


@pytest.fixture
def make_source(tmp_path):
    """Write a line-delimited JSON file and return its path."""

    def _make(lines, name="yelp_academic_dataset_review.json"):
        path = tmp_path / name
        path.write_bytes(b"".join(lines))
        return path

    return _make


@pytest.fixture
def uniform_source(make_source):
    def _make(count, name="yelp_academic_dataset_review.json"):
        return make_source([review_line(i) for i in range(count)], name=name)

    return _make


def chunk_bytes(result):
    return b"".join(path.read_bytes() for path in result.paths)


def chunk_line_counts(result):
    return [len(path.read_bytes().splitlines()) for path in result.paths]
