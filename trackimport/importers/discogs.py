"""Discogs importer.

Two strategies are available: the JSON API, used when a token is
configured, and the web pages otherwise. The strategy is chosen from the
configuration passed with each request. Its response is parsed with the
same strategy; without a request the importer configuration decides.
"""

from __future__ import annotations

from types import ModuleType

from trackimport import __version__
from trackimport.config.settings import ServerImporterConfig
from trackimport.importers import discogs_html, discogs_json
from trackimport.importers.base import ServerImporter, encode_path_segment, encode_url_query


def _strategy(cfg: ServerImporterConfig) -> ModuleType:
    return discogs_json if cfg.token.strip() else discogs_html


class DiscogsImporter(ServerImporter):
    NAME = "Discogs"
    SERVER_LIST = (discogs_html.WEB_SERVER, discogs_json.API_SERVER)
    DEFAULT_SERVER = discogs_html.WEB_SERVER
    SUPPORTS_ADDITIONAL_TAGS = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._request_strategy: ModuleType | None = None

    def _response_strategy(self) -> ModuleType:
        if self._request_strategy is not None:
            return self._request_strategy
        return _strategy(self._config)

    @staticmethod
    def _headers(cfg: ServerImporterConfig) -> dict[str, str]:
        headers = {"User-Agent": f"TrackImport/{__version__} +https://pypi.org/project/trackimport/"}
        token = cfg.token.strip()
        if token:
            headers["Authorization"] = f"Discogs token={token}"
        return headers

    def send_find_query(self, cfg: ServerImporterConfig, artist: str, album: str) -> None:
        query = encode_url_query(f"{artist} {album}")
        self._request_strategy = _strategy(cfg)
        if self._request_strategy is discogs_json:
            # https://api.discogs.com/database/search?type=release&title&q=amon+amarth+avenger
            self._client.send_request(
                discogs_json.API_SERVER,
                "/database/search?type=release&title&q=" + query,
                scheme="https",
                headers=self._headers(cfg),
            )
        else:
            # https://www.discogs.com/search/?q=amon+amarth+avenger&type=release
            self._client.send_request(
                discogs_html.WEB_SERVER,
                f"/search/?q={query}&type=release",
                scheme="https",
                headers=self._headers(cfg),
            )

    def send_track_list_query(self, cfg: ServerImporterConfig, category: str,
                              album_id: str) -> None:
        # https://api.discogs.com/releases/2487778
        # https://www.discogs.com/Wizard-Odin/release/2487778
        self._request_strategy = _strategy(cfg)
        server = (discogs_json.API_SERVER if self._request_strategy is discogs_json
                  else discogs_html.WEB_SERVER)
        self._client.send_request(
            server,
            f"/{encode_path_segment(category)}/{album_id}",
            scheme="https",
            headers=self._headers(cfg),
        )

    def parse_find_results(self, data: bytes) -> None:
        self._response_strategy().parse_search(data, self._album_list_model)

    def parse_album_results(self, data: bytes) -> None:
        track_data = self._begin_album()
        self._response_strategy().parse_release(
            data,
            track_data,
            self.standard_tags_enabled,
            self.additional_tags_enabled,
            self.cover_art_enabled,
        )
        self._end_album(track_data)
