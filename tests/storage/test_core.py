"""Tests for storage initialization and path helpers."""

from backend import storage


def test_init_creates_subdirectories():
    assert storage.campaigns_dir().is_dir()
    assert storage.characters_dir().is_dir()
    assert storage.campaigns_dir().parent == storage.data_dir()


def test_new_id_is_unique_hex():
    ids = {storage.new_id() for _ in range(100)}
    assert len(ids) == 100
    assert all(len(i) == 32 and int(i, 16) >= 0 for i in ids)
