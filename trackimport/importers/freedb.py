"""gnudb.org / freedb importer for CDDB album records."""

from __future__ import annotations

import logging
import re

from trackimport import __version__
from trackimport.config.settings import ServerImporterConfig
from trackimport.core.frames import FrameCollection, FrameType
from trackimport.core.genres import genre_name
from trackimport.core.track_data import PositionalMerger
from trackimport.importers.base import ServerImporter, encode_url_query
from trackimport.ui.models.album_list_model import AlbumListModel

logger = logging.getLogger(__name__)

GNUDB_SERVER = "www.gnudb.org:80"
FRAMES_PER_SECOND = 75

_LINE_SPLIT_RE = re.compile(r"[\r\n]+")
_TITLE_LINK_RE = re.compile(r'<a href="[^"]+/cd/[^"]+"><b>([^<]+)</b></a>')
_CAT_ID_RE = re.compile(r"Discid: ([a-z]+)[\s/]+([0-9a-f]+)")
_CAT_ID_TITLE_RE = re.compile(r"([a-z]+)\s+([0-9a-f]+)\s+([^/]+ / .+)")
_DISC_LENGTH_RE = re.compile(r"Disc length:\s*(\d+)")
_OFFSET_RE = re.compile(r"#\s*(\d+)")
_DTITLE_RE = re.compile(r"DTITLE=\s*(\S[^\r\n]*\S)\s*/\s*(\S[^\r\n]*\S)[\r\n]")
_YEAR_RE = re.compile(r"EXTD=[^\r\n]*YEAR:\s*(\d+)\D")
_GENRE_RE = re.compile(r"EXTD=[^\r\n]*ID3G:\s*(\d+)\D")


def hello_query() -> str:
    return f"&hello=noname+localhost+TrackImport+{__version__}&proto=6"


def _decode_search_page(data: bytes) -> str:
    pos = data.find(b"charset=")
    if pos != -1 and data[pos + 8:pos + 13].lower() == b"utf-8":
        return data.decode("utf-8", errors="replace")
    return data.decode("latin-1")


def parse_cddb_matches(text: str, model: AlbumListModel) -> None:
    """Fill *model* from a CDDB query or album command response.

    Either a single "200 category discid Artist / Album" line or a match
    status line followed by "category discid Artist / Album" lines ending
    with ".".
    """
    model.clear()
    in_entries = False
    for line in _LINE_SPLIT_RE.split(text):
        line = line.strip()
        if line == ".":
            break
        if in_entries:
            match = _CAT_ID_TITLE_RE.fullmatch(line)
            if match:
                model.append_item(match.group(3), match.group(1), match.group(2))
        elif line.startswith("200 "):
            match = _CAT_ID_TITLE_RE.fullmatch(line[4:])
            if match:
                model.append_item(match.group(3), match.group(1), match.group(2))
            elif " match" in line:
                in_entries = True
        elif line.startswith("21") and " match" in line:
            in_entries = True


def parse_gnudb_search(text: str, model: AlbumListModel) -> bool:
    """Fill *model* from a gnudb search page.

    Returns False if *text* is not a search result page.
    """
    lines = _LINE_SPLIT_RE.split(text)
    for start, line in enumerate(lines):
        if " albums found:" in line:
            break
    else:
        return False
    model.clear()
    title = ""
    for line in lines[start + 1:]:
        match = _TITLE_LINK_RE.search(line)
        if match:
            title = match.group(1)
        match = _CAT_ID_RE.search(line)
        if match:
            model.append_item(title, match.group(1), match.group(2))
    return True


def parse_track_durations(text: str) -> list[int]:
    """Durations in seconds from the track frame offsets and disc length."""
    disc_length = _DISC_LENGTH_RE.search(text)
    if not disc_length or "Track frame offsets" not in text:
        return []
    durations = []
    last_offset = -1
    for match in _OFFSET_RE.finditer(text, 0, disc_length.start()):
        offset = int(match.group(1))
        if last_offset != -1:
            durations.append((offset - last_offset) // FRAMES_PER_SECOND)
        last_offset = offset
    if last_offset != -1:
        disc_frames = int(disc_length.group(1)) * FRAMES_PER_SECOND
        durations.append((disc_frames - last_offset) // FRAMES_PER_SECOND)
    return durations


def parse_album_data(text: str, frames: FrameCollection) -> None:
    match = _DTITLE_RE.search(text)
    if match:
        frames.set_value(FrameType.ARTIST, match.group(1))
        frames.set_value(FrameType.ALBUM, match.group(2))
    match = _YEAR_RE.search(text)
    if match:
        frames.set_value(FrameType.DATE, int(match.group(1)))
    match = _GENRE_RE.search(text)
    if match:
        frames.set_value(FrameType.GENRE, genre_name(int(match.group(1))))


class FreedbImporter(ServerImporter):
    NAME = "gnudb.org"
    SERVER_LIST = (
        "www.gnudb.org:80",
        "gnudb.gnudb.org:80",
        "freedb.org:80",
        "freedb.freedb.org:80",
        "at.freedb.org:80",
        "au.freedb.org:80",
        "ca.freedb.org:80",
        "es.freedb.org:80",
        "fi.freedb.org:80",
        "lu.freedb.org:80",
        "ru.freedb.org:80",
        "uk.freedb.org:80",
        "us.freedb.org:80",
    )
    DEFAULT_SERVER = GNUDB_SERVER
    DEFAULT_CGI_PATH = "/~cddb/cddb.cgi"

    def send_find_query(self, cfg: ServerImporterConfig, artist: str, album: str) -> None:
        # only www.gnudb.org has a working search
        self._client.send_request(GNUDB_SERVER,
                                  "/search/" + encode_url_query(f"{artist} {album}"))

    def send_track_list_query(self, cfg: ServerImporterConfig, category: str,
                              album_id: str) -> None:
        self._client.send_request(
            cfg.server,
            f"{cfg.cgi_path}?cmd=cddb+read+{category}+{album_id}{hello_query()}",
        )

    def parse_find_results(self, data: bytes) -> None:
        text = _decode_search_page(data)
        if not parse_gnudb_search(text, self._album_list_model):
            parse_cddb_matches(text, self._album_list_model)

    def parse_album_results(self, data: bytes) -> None:
        text = data.decode("utf-8", errors="replace")
        frames_hdr = FrameCollection()
        durations = parse_track_durations(text)
        parse_album_data(text, frames_hdr)

        track_data = self._begin_album()
        merger = PositionalMerger(track_data)
        track_nr = 0
        while True:
            parts = re.findall(rf"TTITLE{track_nr}=([^\r\n]+)[\r\n]", text)
            if not parts:
                break
            frames = frames_hdr.copy()
            frames.set_value(FrameType.TRACK_NUMBER, track_nr + 1)
            frames.set_value(FrameType.TITLE, "".join(parts))
            duration = durations[track_nr] if track_nr < len(durations) else 0
            merger.add(frames, duration)
            track_nr += 1
        merger.finish()
        self._end_album(track_data)
