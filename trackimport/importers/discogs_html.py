"""Parsers for Discogs web pages, used when no API token is configured."""

from __future__ import annotations

import logging
import re

from trackimport.core.frames import FrameCollection, FrameType
from trackimport.core.genres import join_genres
from trackimport.core.track_data import ImportTrackDataVector, PositionalMerger
from trackimport.importers.base import decode_response, remove_html
from trackimport.importers.discogs_credits import add_role_credits, fix_up_artist
from trackimport.ui.models.album_list_model import AlbumListModel

logger = logging.getLogger(__name__)

WEB_SERVER = "www.discogs.com"

_CARD_RE = re.compile(
    r'<a href="/artist/[^>]+?>([^<]+?)</a>[^-]*?-\s*?'
    r'<a class="search_result_title[^"]*"[^>]*?href="/([^"/]*?/?release)/(\d+)"[^>]*?>([^<]+?)</a>'
    r"(.*?)(?=card_actions|<a href=\"/artist/|$)",
    re.DOTALL,
)
_CARD_YEAR_RE = re.compile(r'class="card_release_year"[^>]*>\s*(\d{4})\s*<')
_CARD_FORMAT_RE = re.compile(r'class="card_release_format"[^>]*>([^<]+)<')

_TITLE_RE = re.compile(r"<title>\s*(.*?)\s*</title>", re.DOTALL | re.IGNORECASE)
_TITLE_SUFFIX_RE = re.compile(r"\s*(?:\([^)]*\)\s*at Discogs|\|.*Discogs)\s*$")
_PROFILE_RE = r'<div class="head">\s*{}:?\s*</div>\s*<div class="content">(.*?)</div>'
_YEAR_RE = re.compile(r"(\d{4})")
_LIST_SEP_RE = re.compile(r",\s*")
_CREDIT_SEP_RE = re.compile(r"\s+[-–]\s+")
_LINE_BREAK_RE = re.compile(r"<br\s*/?>|</li>|</tr>", re.IGNORECASE)
_CREDITS_RE = re.compile(r">\s*Credits\s*</h\d>(.*?)(?:</div>|</section>)", re.DOTALL)
_COVER_RES = (
    re.compile(r'<meta property="og:image" content="([^"]+)"'),
    re.compile(r'<img src="(https?://(?:www|i)\.discogs\.com/[^"]+)"'),
)
_TRACKLIST_RE = re.compile(r">\s*Tracklist\s*</h\d>(.*?)</table>", re.DOTALL)
_ROW_RE = re.compile(r"<tr[^>]*>(.*?)</tr>", re.DOTALL)
_POS_RE = re.compile(r'class="(?:tracklist_)?track_pos"[^>]*>(?:<span[^>]*>)?\s*([^<]*?)\s*<')
_ROW_TITLE_RE = re.compile(
    r'class="(?:tracklist_)?track_title"[^>]*>(?:<a[^>]*>|<span[^>]*>)*\s*([^<]+?)\s*<')
_DURATION_RE = re.compile(
    r'class="(?:tracklist_)?track_duration"[^>]*>(?:<span[^>]*>)?\s*(\d+):(\d+)\s*<')
_ROW_ARTISTS_RE = re.compile(r'class="(?:tracklist_)?track_artists"[^>]*>(.*?)</td>', re.DOTALL)
_ARTIST_LINK_RE = re.compile(r'<a href="/artist/[^>]+>([^<]+)</a>')
_INDEX_RE = re.compile(
    r'class="(?:tracklist_)?track_(?:index|heading)"[^>]*>(?:<span[^>]*>)?\s*([^<]+?)\s*<')
_ROW_CREDITS_RE = re.compile(r"<blockquote[^>]*>(.*?)</blockquote>", re.DOTALL)


def parse_search(data: bytes, model: AlbumListModel) -> None:
    """Fill *model* from a search result page.

    Item texts look like "Artist - Title (Year) [Format]".
    """
    text = decode_response(data)
    model.clear()
    for match in _CARD_RE.finditer(text):
        artist = fix_up_artist(remove_html(match.group(1)))
        title = remove_html(match.group(4))
        if not title:
            continue
        item_text = f"{artist} - {title}" if artist else title
        tail = match.group(5)
        year = _CARD_YEAR_RE.search(tail)
        if year:
            item_text += f" ({year.group(1)})"
        fmt = _CARD_FORMAT_RE.search(tail)
        if fmt and remove_html(fmt.group(1)):
            item_text += f" [{remove_html(fmt.group(1))}]"
        model.append_item(item_text, match.group(2), match.group(3))


def _profile_value(text: str, head: str) -> str:
    match = re.search(_PROFILE_RE.format(re.escape(head)), text, re.DOTALL)
    return match.group(1) if match else ""


def _parse_credit_lines(frames: FrameCollection, html_block: str) -> None:
    """Add "Role - Name, Name" lines to *frames*."""
    for line in _LINE_BREAK_RE.split(html_block):
        line = remove_html(line)
        parts = _CREDIT_SEP_RE.split(line, maxsplit=1)
        if len(parts) != 2:
            continue
        role, names = parts
        for name in _LIST_SEP_RE.split(names):
            add_role_credits(frames, role.strip(), fix_up_artist(name))


def _parse_header(text: str, frames: FrameCollection, standard_tags: bool,
                  additional_tags: bool) -> None:
    if standard_tags:
        title = _TITLE_RE.search(text)
        if title:
            heading = _TITLE_SUFFIX_RE.sub("", remove_html(title.group(1)))
            parts = _CREDIT_SEP_RE.split(heading, maxsplit=1)
            if len(parts) == 2:
                frames.set_value(FrameType.ARTIST, fix_up_artist(parts[0]))
                frames.set_value(FrameType.ALBUM, parts[1].strip())
            else:
                frames.set_value(FrameType.ALBUM, heading)
        year = _YEAR_RE.search(remove_html(_profile_value(text, "Released")))
        if year:
            frames.set_value(FrameType.DATE, year.group(1))
        genres: list[str] = []
        for head in ("Style", "Genre"):
            value = remove_html(_profile_value(text, head))
            genres.extend(g for g in _LIST_SEP_RE.split(value) if g)
        frames.set_value(FrameType.GENRE, join_genres(genres))

    if additional_tags:
        label = remove_html(_profile_value(text, "Label"))
        if label:
            parts = _CREDIT_SEP_RE.split(label, maxsplit=1)
            publisher = fix_up_artist(parts[0])
            if publisher != "Not On Label":
                frames.set_value(FrameType.PUBLISHER, publisher)
            if len(parts) == 2 and parts[1].strip().lower() != "none":
                frames.set_value(FrameType.CATALOG_NUMBER, parts[1].strip())
        frames.set_value(FrameType.MEDIA, remove_html(_profile_value(text, "Format")))
        frames.set_value(FrameType.RELEASE_COUNTRY, remove_html(_profile_value(text, "Country")))
        credits = _CREDITS_RE.search(text)
        if credits:
            _parse_credit_lines(frames, credits.group(1))


def parse_release(
    data: bytes,
    track_data: ImportTrackDataVector,
    standard_tags: bool,
    additional_tags: bool,
    cover_art: bool,
) -> None:
    """Merge a release page into *track_data*."""
    text = decode_response(data)
    frames_hdr = FrameCollection()
    _parse_header(text, frames_hdr, standard_tags, additional_tags)

    if cover_art:
        for cover_re in _COVER_RES:
            match = cover_re.search(text)
            if match:
                track_data.cover_art_url = match.group(1)
                break

    merger = PositionalMerger(track_data)
    tracklist = _TRACKLIST_RE.search(text)
    rows = _ROW_RE.findall(tracklist.group(1)) if tracklist else []
    track_nr = 1
    for row in rows:
        title_match = _ROW_TITLE_RE.search(row)
        title = remove_html(title_match.group(1)) if title_match else ""
        index = _INDEX_RE.search(row)
        if index and not _POS_RE.search(row):
            if additional_tags:
                frames_hdr.set_value(FrameType.PART, remove_html(index.group(1)))
            continue
        duration_match = _DURATION_RE.search(row)
        duration = (int(duration_match.group(1)) * 60 + int(duration_match.group(2))
                    if duration_match else 0)
        if not title and not duration:
            continue
        pos_match = _POS_RE.search(row)
        position = pos_match.group(1) if pos_match else ""
        pos = int(position) if position.isdigit() else track_nr

        frames = frames_hdr.copy()
        if standard_tags:
            frames.set_value(FrameType.TRACK_NUMBER, pos)
            frames.set_value(FrameType.TITLE, title)
        artists_match = _ROW_ARTISTS_RE.search(row)
        if artists_match:
            names = [fix_up_artist(remove_html(n))
                     for n in _ARTIST_LINK_RE.findall(artists_match.group(1))]
            names = [n for n in names if n]
            if names:
                if standard_tags:
                    frames.set_value(FrameType.ARTIST, ", ".join(names))
                if additional_tags:
                    frames.set_value(FrameType.ALBUM_ARTIST, frames_hdr.artist)
        if additional_tags:
            for block in _ROW_CREDITS_RE.findall(row):
                _parse_credit_lines(frames, block)
        merger.add(frames, duration)
        track_nr += 1
    merger.finish()
