"""Amazon importer scraping product search and product detail pages."""

from __future__ import annotations

import logging
import re

from trackimport.config.settings import ServerImporterConfig
from trackimport.core.frames import FrameCollection, FrameType
from trackimport.core.track_data import ImportTrackDataVector, PositionalMerger
from trackimport.importers.base import (
    ServerImporter,
    decode_response,
    encode_url_query,
    remove_html,
    replace_html_entities,
)

logger = logging.getLogger(__name__)

_PRODUCT_RE = re.compile(
    r'<a class="[^"]*s-access-detail-page[^"]*"[^>]+title="([^"]+)"[^>]+'
    r'href="[^"]+/(dp|ASIN|images|product|-)/([A-Z0-9]+)[^"]+">'
)
_NEXT_ELEMENT_RE = re.compile(r">\s*([^<\s][^<]*)<")
_PRODUCT_TITLE_RE = re.compile(r'id="productTitle"[^>]*>([^<]*)<')
_AUTHOR_RE = re.compile(r'class="author[^>]*>.*?<a[^>]*>([^<]*)<', re.DOTALL)
_YEAR_RE = re.compile(r"(\d{4})")
_LABEL_RE = re.compile(r">\s*([^<]+)<")
_ASIN_RE = re.compile(r'id="ASIN".*?value="([^"]*)"', re.DOTALL)
_DURATION_RE = re.compile(r"(\d+):(\d+)")
_LINK_TEXT_RE = re.compile(r"<a href=[^>]*>([^<]*)<")
_RUNTIME_RE = re.compile(r'class="runtimeCol"[^>]*>([^<]*)<')
_NR_TITLE_RE = re.compile(r"\s*\d+\.\s+(.*\S)", re.DOTALL)
_POPOVER_TITLE_RE = re.compile(r"<a[^>]*>([^<]*)<")
_POPOVER_DURATION_RE = re.compile(r'<td id="dmusic_tracklist_duration(.*?)</td>', re.DOTALL)

TITLE_COL = 'class="titleCol"'
LIST_ROW = 'class="listRow'
TRACK_TITLE_POPOVER = 'id="a-popover-trackTitlePopover'


def _duration(text: str) -> int:
    match = _DURATION_RE.search(text)
    return int(match.group(1)) * 60 + int(match.group(2)) if match else 0


def _detail(text: str, start: int, marker: str) -> str:
    """Text of the Product Details list item labelled by *marker*."""
    pos = text.find(marker, start)
    if pos < 0:
        return ""
    # keep the "<" closing the label so the rest of its tag is removed
    begin = pos + len(marker) - 1
    end = text.find("</li>", begin)
    if end <= begin + 1:
        return ""
    return remove_html(text[begin:end])


def _rest_of_line(text: str, pos: int) -> str:
    end = text.find("\n", pos)
    return text[pos:end] if end >= 0 else text[pos:]


class AmazonImporter(ServerImporter):
    NAME = "Amazon"
    SERVER_LIST = ("www.amazon.com:80", "www.amazon.co.uk:80")
    DEFAULT_SERVER = "www.amazon.com:80"
    SUPPORTS_ADDITIONAL_TAGS = True

    def send_find_query(self, cfg: ServerImporterConfig, artist: str, album: str) -> None:
        # http://www.amazon.com/gp/search/ref=sr_adv_m_pop/?search-alias=popular&field-artist=amon+amarth&field-title=the+avenger
        self._client.send_request(
            cfg.server,
            "/gp/search/ref=sr_adv_m_pop/?search-alias=popular&field-artist="
            + encode_url_query(artist) + "&field-title=" + encode_url_query(album),
        )

    def send_track_list_query(self, cfg: ServerImporterConfig, category: str,
                              album_id: str) -> None:
        # http://www.amazon.com/dp/B001VROVHO
        self._client.send_request(cfg.server, f"/{category}/{album_id}")

    def parse_find_results(self, data: bytes) -> None:
        text = decode_response(data).replace("\r", "")
        self._album_list_model.clear()
        pos = 0
        while True:
            product = _PRODUCT_RE.search(text, pos)
            if not product:
                break
            by_pos = text.find(">by <", product.end())
            if by_pos < 0:
                break
            artist = _NEXT_ELEMENT_RE.search(text, by_pos + 4)
            if not artist:
                break
            pos = artist.end()
            self._album_list_model.append_item(
                replace_html_entities(f"{artist.group(1).strip()} - {product.group(1)}"),
                product.group(2),
                product.group(3),
            )

    def _parse_header(self, text: str, frames: FrameCollection) -> str:
        """Fill header frames, return the album artist found in the details."""
        standard_tags = self.standard_tags_enabled
        if standard_tags:
            title = _PRODUCT_TITLE_RE.search(text)
            if title:
                frames.set_value(FrameType.ALBUM,
                                 replace_html_entities(title.group(1).split(" [", 1)[0]))
                author = _AUTHOR_RE.search(text, title.end())
                if author:
                    frames.set_value(FrameType.ARTIST, replace_html_entities(author.group(1)))

        album_artist = ""
        start = text.find(">Product Details<")
        if start < 0:
            return album_artist
        if standard_tags:
            marker = ">Original Release Date:<"
            detail = text.find(marker, start)
            if detail < 0:
                marker = ">Audio CD<"
                detail = text.find(marker, start)
            if detail >= 0:
                year = _YEAR_RE.search(_rest_of_line(text, detail + len(marker)))
                if year:
                    frames.set_value(FrameType.DATE, int(year.group(1)))
        if self.additional_tags_enabled:
            detail = text.find(">Label:<", start)
            if detail >= 0:
                label = _LABEL_RE.search(_rest_of_line(text, detail + len(">Label:")))
                if label:
                    frames.set_value(FrameType.PUBLISHER, remove_html(label.group(1)))
            frames.set_value(FrameType.PERFORMER, _detail(text, start, ">Performer:<"))
            album_artist = _detail(text, start, ">Orchestra:<")
            frames.set_value(FrameType.CONDUCTOR, _detail(text, start, ">Conductor:<"))
            frames.set_value(FrameType.COMPOSER, _detail(text, start, ">Composer:<"))
        return album_artist

    def _title_col_tracks(self, text: str, album_artist: str, header_artist: str):
        has_artist = "<td>Song Title</td><td>Artist</td>" in text
        start = text.find(TITLE_COL)
        while start >= 0:
            line = _rest_of_line(text, start)
            title = _LINK_TEXT_RE.search(line)
            if not title:
                break
            artist = ""
            if has_artist:
                artist_col = line.find(TITLE_COL, title.end())
                if artist_col >= 0:
                    artist_match = _LINK_TEXT_RE.search(line, artist_col)
                    if artist_match:
                        artist = artist_match.group(1)
                        if not album_artist:
                            album_artist = header_artist
            runtime = _RUNTIME_RE.search(line, title.end())
            duration = _duration(runtime.group(1)) if runtime else 0
            yield title.group(1), artist, duration, album_artist
            start = text.find(TITLE_COL, start + len(line))

    def _list_row_tracks(self, text: str, album_artist: str):
        start = text.find(LIST_ROW)
        while start >= 0:
            cell = text.find("<td>", start)
            if cell < 0:
                break
            end = text.find("</td>", cell)
            match = _NR_TITLE_RE.search(text, cell + 4, end) if end > cell else None
            if not match:
                break
            yield match.group(1), "", 0, album_artist
            start = text.find(LIST_ROW, end)

    def _popover_tracks(self, text: str, album_artist: str):
        start = text.find(TRACK_TITLE_POPOVER)
        while start >= 0:
            title = _POPOVER_TITLE_RE.search(text, start)
            if not title:
                break
            runtime = _POPOVER_DURATION_RE.search(text, title.end())
            duration = _duration(runtime.group(1).replace("\n", "")) if runtime else 0
            yield title.group(1), "", duration, album_artist
            start = text.find(TRACK_TITLE_POPOVER, title.end())

    def parse_album_results(self, data: bytes) -> None:
        text = decode_response(data)
        frames_hdr = FrameCollection()
        album_artist = self._parse_header(text, frames_hdr)

        track_data = self._begin_album()
        if self.cover_art_enabled:
            asin = _ASIN_RE.search(text)
            if asin:
                track_data.cover_art_url = "http://www.amazon.com/dp/" + asin.group(1)

        if TITLE_COL in text:
            tracks = self._title_col_tracks(text, album_artist, frames_hdr.artist)
        elif LIST_ROW in text:
            tracks = self._list_row_tracks(text, album_artist)
        elif TRACK_TITLE_POPOVER in text:
            tracks = self._popover_tracks(text, album_artist)
        else:
            tracks = None

        if tracks is not None:
            self._merge_tracks(track_data, frames_hdr, tracks)
        elif frames_hdr:
            # no track list, the header data is used for all tracks
            for track in track_data:
                if track.enabled:
                    track.frames = frames_hdr.copy()
        self._end_album(track_data)

    def _merge_tracks(self, track_data: ImportTrackDataVector, frames_hdr: FrameCollection,
                      tracks) -> None:
        merger = PositionalMerger(track_data)
        track_nr = 1
        for title, artist, duration, album_artist in tracks:
            title = replace_html_entities(title).strip()
            if not title:
                continue
            frames = frames_hdr.copy()
            if self.standard_tags_enabled:
                frames.set_value(FrameType.TITLE, title)
                if artist:
                    frames.set_value(FrameType.ARTIST, replace_html_entities(artist))
                frames.set_value(FrameType.TRACK_NUMBER, track_nr)
            if album_artist and self.additional_tags_enabled:
                frames.set_value(FrameType.ALBUM_ARTIST, album_artist)
            merger.add(frames, duration)
            track_nr += 1
        merger.finish()
