import pytest

from src.adapters.fs.filestore import FileSystemBlobStore


@pytest.fixture
def store(tmp_path):
    return FileSystemBlobStore(tmp_path / "store")


def test_save_returns_relative_reference(store):
    ref = store.save("icons/services/bird.svg", b"<svg/>")

    assert ref == "icons/services/bird.svg"
    assert store.get(ref) == b"<svg/>"


def test_overwrite(store):
    store.save("overwrite.svg", b"v1")
    store.save("overwrite.svg", b"v2")
    assert store.get("overwrite.svg") == b"v2"


def test_delete(store):
    store.save("zombie.svg", b"brains")
    store.delete("zombie.svg")
    with pytest.raises(FileNotFoundError):
        store.get("zombie.svg")


def test_delete_missing_is_noop(store):
    store.delete("never-written.svg")


def test_path_traversal(store):
    with pytest.raises(ValueError):
        store.save("../hack.svg", b"bad")

    with pytest.raises(ValueError):
        store.get("/etc/passwd")

    with pytest.raises(ValueError):
        store.get("user-icons/../../outside.svg")
