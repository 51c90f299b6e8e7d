"""TrackType.org importer, a CDDB server answering album commands."""

from __future__ import annotations

from trackimport.config.settings import ServerImporterConfig
from trackimport.importers.base import encode_url_query
from trackimport.importers.freedb import FreedbImporter, hello_query, parse_cddb_matches

TRACKTYPE_SERVER = "tracktype.org:80"


class TrackTypeImporter(FreedbImporter):
    NAME = "TrackType.org"
    SERVER_LIST = (TRACKTYPE_SERVER,)
    DEFAULT_SERVER = TRACKTYPE_SERVER

    def send_find_query(self, cfg: ServerImporterConfig, artist: str, album: str) -> None:
        # only TrackType.org recognizes cddb album commands
        self._client.send_request(
            TRACKTYPE_SERVER,
            f"{cfg.cgi_path}?cmd=cddb+album+{encode_url_query(f'{artist} / {album}')}"
            f"{hello_query()}",
        )

    def parse_find_results(self, data: bytes) -> None:
        parse_cddb_matches(data.decode("utf-8", errors="replace"), self._album_list_model)
