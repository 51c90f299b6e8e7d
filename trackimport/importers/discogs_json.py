"""Parsers for responses of the Discogs JSON API."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from trackimport.core.frames import FrameCollection, FrameType
from trackimport.core.genres import join_genres
from trackimport.core.track_data import ImportTrackDataVector, PositionalMerger
from trackimport.importers.discogs_credits import (
    ExtraArtist,
    artist_string,
    fix_up_artist,
)
from trackimport.ui.models.album_list_model import AlbumListModel

logger = logging.getLogger(__name__)

API_SERVER = "api.discogs.com"

_DISC_TRACK_POS_RE = re.compile(r"(\d+)-(\d+)")
_YEAR_RE = re.compile(r"^\d{4}-\d{2}")


def _load(data: bytes) -> dict[str, Any]:
    try:
        value = json.loads(data.decode("utf-8", errors="replace"))
    except ValueError as exc:
        logger.info("invalid Discogs JSON: %s", exc)
        return {}
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _parse_duration(text: str) -> int:
    duration = 0
    for part in text.split(":"):
        duration *= 60
        part = part.strip()
        if part.isdigit():
            duration += int(part)
    return duration


def parse_search(data: bytes, model: AlbumListModel) -> None:
    """Fill *model* from a database search response."""
    model.clear()
    for result in _list(_load(data).get("results")):
        if not isinstance(result, dict):
            continue
        title = fix_up_artist(str(result.get("title") or ""))
        if not title:
            continue
        try:
            release_id = str(int(result.get("id")))
        except (TypeError, ValueError):
            continue
        model.append_item(title, "releases", release_id)


def parse_release(
    data: bytes,
    track_data: ImportTrackDataVector,
    standard_tags: bool,
    additional_tags: bool,
    cover_art: bool,
) -> None:
    """Merge a release response into *track_data*."""
    release = _load(data)
    frames_hdr = FrameCollection()
    track_extra_artists: list[ExtraArtist] = []

    if standard_tags:
        frames_hdr.set_value(FrameType.ALBUM, str(release.get("title") or ""))
        frames_hdr.set_value(FrameType.ARTIST, artist_string(_list(release.get("artists"))))
        released = str(release.get("released") or "")
        if _YEAR_RE.match(released):
            released = released[:4]
        if released.isdigit():
            frames_hdr.set_value(FrameType.DATE, int(released))
        genres = [str(g) for g in _list(release.get("styles")) + _list(release.get("genres"))]
        frames_hdr.set_value(FrameType.GENRE, join_genres(genres))

    if cover_art:
        images = _list(release.get("images"))
        if images and isinstance(images[0], dict):
            track_data.cover_art_url = str(images[0].get("uri") or "")

    if additional_tags:
        labels = _list(release.get("labels"))
        if labels and isinstance(labels[0], dict):
            frames_hdr.set_value(FrameType.PUBLISHER,
                                 fix_up_artist(str(labels[0].get("name") or "")))
            cat_no = str(labels[0].get("catno") or "").strip()
            if cat_no and cat_no.lower() != "none":
                frames_hdr.set_value(FrameType.CATALOG_NUMBER, cat_no)
        formats = _list(release.get("formats"))
        if formats and isinstance(formats[0], dict):
            frames_hdr.set_value(FrameType.MEDIA, str(formats[0].get("name") or ""))
        for value in _list(release.get("extraartists")):
            if not isinstance(value, dict):
                continue
            extra_artist = ExtraArtist.from_json(value)
            if extra_artist.has_track_restriction:
                track_extra_artists.append(extra_artist)
            else:
                extra_artist.add_to_frames(frames_hdr)
        frames_hdr.set_value(FrameType.RELEASE_COUNTRY, str(release.get("country") or ""))

    tracks = [t for t in _list(release.get("tracklist")) if isinstance(t, dict)]
    all_positions_empty = all(not str(t.get("position") or "") for t in tracks)
    merger = PositionalMerger(track_data)
    frames = frames_hdr.copy()
    track_nr = 1
    for track in tracks:
        position = str(track.get("position") or "").strip()
        if position.isdigit():
            pos = int(position)
        else:
            match = _DISC_TRACK_POS_RE.fullmatch(position)
            if match:
                if additional_tags:
                    frames.set_value(FrameType.DISC_NUMBER, match.group(1))
                pos = int(match.group(2))
            else:
                pos = track_nr
        title = str(track.get("title") or "").strip()
        duration = _parse_duration(str(track.get("duration") or ""))

        if not all_positions_empty and not position:
            # heading row, names the following part of the release
            if additional_tags:
                frames_hdr.set_value(FrameType.PART, title)
        elif title or duration:
            if standard_tags:
                frames.set_value(FrameType.TRACK_NUMBER, pos)
                frames.set_value(FrameType.TITLE, title)
            artists = _list(track.get("artists"))
            if artists:
                if standard_tags:
                    frames.set_value(FrameType.ARTIST, artist_string(artists))
                if additional_tags:
                    frames.set_value(FrameType.ALBUM_ARTIST, frames_hdr.artist)
            if additional_tags:
                for value in _list(track.get("extraartists")):
                    if isinstance(value, dict):
                        ExtraArtist.from_json(value).add_to_frames(frames)
            for extra_artist in track_extra_artists:
                extra_artist.add_to_frames(frames, position)
            merger.add(frames, duration)
            track_nr += 1
        frames = frames_hdr.copy()
    merger.finish()
