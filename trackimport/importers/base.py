"""Common base of the importers querying music database servers."""

from __future__ import annotations

from enum import Enum, auto
import html
import logging
import re
from urllib.parse import quote, quote_plus

from PySide6.QtCore import QObject, Signal

from trackimport.config.settings import ServerImporterConfig
from trackimport.core.track_data import ImportTrackDataVector
from trackimport.net.http_client import HttpClient
from trackimport.ui.models.album_list_model import AlbumListModel
from trackimport.ui.models.track_data_model import TrackDataModel

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")
_CHARSET_RE = re.compile(rb"charset=[\"']?([A-Za-z0-9_-]+)", re.IGNORECASE)


class RequestType(Enum):
    NONE = auto()
    FIND = auto()
    TRACK_LIST = auto()


def encode_url_query(text: str) -> str:
    """Encode text for a URL query, spaces become "+"."""
    return quote_plus(text.strip())


def encode_path_segment(text: str) -> str:
    return quote(text, safe="/")


def replace_html_entities(text: str) -> str:
    return html.unescape(text)


def remove_html(text: str) -> str:
    """Strip tags and entities from an HTML fragment and trim it."""
    return replace_html_entities(_TAG_RE.sub("", text)).strip()


def decode_response(data: bytes, default: str = "utf-8") -> str:
    """Decode a response body using the charset it declares, if any."""
    match = _CHARSET_RE.search(data[:2048])
    encoding = match.group(1).decode("ascii").lower() if match else default
    try:
        return data.decode(encoding, errors="replace")
    except LookupError:
        return data.decode(default, errors="replace")


class ServerImporter(QObject):
    """Queries one server for album lists and track lists.

    Usage:
        importer.find_finished.connect(on_find_finished)
        importer.find(importer.config(), "Wizard", "Odin")
        # on_find_finished(data): importer.parse_find_results(data)
        # then importer.get_album_list_model() holds the albums found

    Only one request is outstanding at a time. A failed request is reported
    through ``progress`` with ``(-1, -1)`` as steps.
    """

    NAME = ""
    SERVER_LIST: tuple[str, ...] = ()
    DEFAULT_SERVER = ""
    DEFAULT_CGI_PATH = ""
    SUPPORTS_ADDITIONAL_TAGS = False

    find_finished = Signal(object)      # raw search response
    album_finished = Signal(object)     # raw track list response
    progress = Signal(str, int, int)    # text, step, total steps

    def __init__(
        self,
        track_data_model: TrackDataModel,
        config: ServerImporterConfig | None = None,
        http_client: HttpClient | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._track_data_model = track_data_model
        self._album_list_model = AlbumListModel(self)
        self._config = config if config is not None else self.default_config()
        self._client = http_client if http_client is not None else HttpClient(self)
        self._client.bytes_received.connect(self._on_bytes_received)
        self._client.progress.connect(self._on_client_progress)
        self._request_type = RequestType.NONE
        self.standard_tags_enabled = True
        self.additional_tags_enabled = False
        self.cover_art_enabled = False

    @classmethod
    def default_config(cls) -> ServerImporterConfig:
        return ServerImporterConfig(
            server=cls.DEFAULT_SERVER,
            cgi_path=cls.DEFAULT_CGI_PATH,
            additional_tags=cls.SUPPORTS_ADDITIONAL_TAGS,
            cover_art=cls.SUPPORTS_ADDITIONAL_TAGS,
        )

    def name(self) -> str:
        return self.NAME

    def server_list(self) -> list[str]:
        return list(self.SERVER_LIST)

    def default_server(self) -> str:
        return self.DEFAULT_SERVER

    def default_cgi_path(self) -> str:
        return self.DEFAULT_CGI_PATH

    def additional_tags(self) -> bool:
        """True if the server delivers more than the standard tags."""
        return self.SUPPORTS_ADDITIONAL_TAGS

    def config(self) -> ServerImporterConfig:
        return self._config

    def set_config(self, config: ServerImporterConfig) -> None:
        self._config = config

    def get_album_list_model(self) -> AlbumListModel:
        return self._album_list_model

    def track_data_model(self) -> TrackDataModel:
        return self._track_data_model

    @property
    def http_client(self) -> HttpClient:
        return self._client

    @property
    def request_type(self) -> RequestType:
        return self._request_type

    # -- requests --

    def find(self, cfg: ServerImporterConfig, artist: str, album: str) -> None:
        """Search the server for albums matching artist and album."""
        self._request_type = RequestType.FIND
        self.send_find_query(cfg, artist, album)

    def get_track_list(self, cfg: ServerImporterConfig, category: str, album_id: str) -> None:
        """Request the track list of an album found by :meth:`find`."""
        self._request_type = RequestType.TRACK_LIST
        self.send_track_list_query(cfg, category, album_id)

    def abort(self) -> None:
        self._client.abort()
        self._request_type = RequestType.NONE

    def send_find_query(self, cfg: ServerImporterConfig, artist: str, album: str) -> None:
        raise NotImplementedError

    def send_track_list_query(self, cfg: ServerImporterConfig, category: str,
                              album_id: str) -> None:
        raise NotImplementedError

    # -- response parsing --

    def parse_find_results(self, data: bytes) -> None:
        """Fill the album list model from a search response."""
        raise NotImplementedError

    def parse_album_results(self, data: bytes) -> None:
        """Write the tracks of an album response into the track data model."""
        raise NotImplementedError

    def _begin_album(self) -> ImportTrackDataVector:
        track_data = self._track_data_model.get_track_data()
        # the cover URL of an earlier album is never kept
        track_data.cover_art_url = ""
        return track_data

    def _end_album(self, track_data: ImportTrackDataVector) -> None:
        self._track_data_model.set_track_data(track_data)

    # -- transport callbacks --

    def _on_bytes_received(self, data: bytes) -> None:
        request_type = self._request_type
        self._request_type = RequestType.NONE
        if request_type is RequestType.FIND:
            self.find_finished.emit(data)
        elif request_type is RequestType.TRACK_LIST:
            self.album_finished.emit(data)
        else:
            logger.debug("%s: ignoring response without request", self.NAME)

    def _on_client_progress(self, text: str, step: int, total: int) -> None:
        if step == -1 and total == -1:
            logger.warning("%s: %s", self.NAME, text)
            self._request_type = RequestType.NONE
        self.progress.emit(text, step, total)
