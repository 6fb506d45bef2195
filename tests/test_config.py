import importlib

import pytest

import config


@pytest.fixture
def reload_config(monkeypatch):
    yield lambda: importlib.reload(config)
    monkeypatch.undo()
    importlib.reload(config)


def test_defaults(monkeypatch, reload_config):
    for name in ("REVIEWS_BUCKET", "STAGE_PREFIX", "DEFAULT_CHUNK_COUNT"):
        monkeypatch.delenv(name, raising=False)
    reloaded = reload_config()
    assert reloaded.REVIEWS_BUCKET == "yelp-reviews-bucket"
    assert reloaded.STAGE_PREFIX == "yelp_chunks"
    assert reloaded.DEFAULT_CHUNK_COUNT == 10


def test_environment_overrides(monkeypatch, reload_config):
    monkeypatch.setenv("REVIEWS_BUCKET", "my-bucket")
    monkeypatch.setenv("DEFAULT_CHUNK_COUNT", "32")
    reloaded = reload_config()
    assert reloaded.REVIEWS_BUCKET == "my-bucket"
    assert reloaded.DEFAULT_CHUNK_COUNT == 32


def test_invalid_integer(monkeypatch, reload_config):
    monkeypatch.setenv("DEFAULT_CHUNK_COUNT", "ten")
    with pytest.raises(ValueError, match="DEFAULT_CHUNK_COUNT"):
        reload_config()
