"""Shared fixtures: a Qt core application, fake music-tag files and a recording HTTP client."""

from pathlib import Path

import pytest
from PySide6.QtCore import QCoreApplication

from trackimport.core.tag_store import TaggedFile
from trackimport.net.http_client import HttpClient

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def fixture_bytes():
    def _read(name: str) -> bytes:
        return (FIXTURES_DIR / name).read_bytes()
    return _read


class FakeField:
    def __init__(self, value):
        self.value = value
        self.first = value


class FakeMusicFile:
    """Stands in for a music_tag file, keyed like music-tag."""

    def __init__(self, tags=None, length=0.0):
        self.tags = dict(tags or {})
        self.tags["#length"] = length
        self.saved = 0
        self.fail_on_save = False

    def __getitem__(self, key):
        return FakeField(self.tags.get(key))

    def __setitem__(self, key, value):
        self.tags[key] = value

    def save(self):
        if self.fail_on_save:
            raise OSError("file is locked")
        self.saved += 1


class FakeArtwork:
    def __init__(self, raw, fmt=None):
        self.raw = raw
        self.fmt = fmt


@pytest.fixture
def music_files(monkeypatch):
    """Path -> FakeMusicFile map served by a patched music_tag.load_file."""
    files = {}

    def _load(path):
        if path not in files:
            raise FileNotFoundError(f"No such file: {path}")
        return files[path]

    monkeypatch.setattr("trackimport.core.tag_store.music_tag.load_file", _load)
    monkeypatch.setattr("trackimport.core.tag_store.music_tag.Artwork", FakeArtwork)
    return files


@pytest.fixture
def make_tagged_file(music_files, tmp_path):
    """Create a TaggedFile below tmp_path whose tags are held in memory."""
    def _make(name, length=0, **tags):
        path = tmp_path / name
        music_files[str(path)] = FakeMusicFile(tags, length)
        return TaggedFile(path)
    return _make


class RecordingHttpClient(HttpClient):
    """HttpClient which records requests instead of sending them."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.requests = []

    def send_request(self, server, path, scheme="http", headers=None):
        self.requests.append((server, path, scheme, dict(headers or {})))

    def respond(self, data: bytes) -> None:
        self.bytes_received.emit(data)

    def fail(self, message: str) -> None:
        self.progress.emit(f"Error: {message}", -1, -1)


@pytest.fixture
def http_client():
    return RecordingHttpClient()
