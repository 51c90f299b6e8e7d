"""MusicBrainz release importer using the XML web service."""

from __future__ import annotations

import logging
import re
from urllib.parse import quote
import xml.etree.ElementTree as ET

from trackimport.config.settings import ServerImporterConfig
from trackimport.core.frames import FrameCollection, FrameType
from trackimport.core.track_data import PositionalMerger
from trackimport.importers.base import ServerImporter

logger = logging.getLogger(__name__)

SERVER = "musicbrainz.org"

_DATE_RE = re.compile(r"(\d{4})(?:-\d{2})?(?:-\d{2})?")
_AMAZON_PRODUCT_RE = re.compile(r"https://www\.amazon\.[^/]+/gp/product/")

# Relation types stored in a frame of their own, names are appended.
_CREDIT_TO_TYPE = {
    "composer": FrameType.COMPOSER,
    "conductor": FrameType.CONDUCTOR,
    "performing orchestra": FrameType.ALBUM_ARTIST,
    "lyricist": FrameType.LYRICIST,
    "publisher": FrameType.PUBLISHER,
    "remixer": FrameType.REMIXER,
}


def _capitalize_words(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" "))


def parse_xml(data: bytes) -> ET.Element | None:
    """Parse a web service response, dropping namespaces from the tags.

    Anything around the XML document is cut off. None is returned for
    documents which cannot be parsed.
    """
    start = data.find(b"<?xml")
    end = data.find(b"</metadata>")
    if start >= 0 and end > start:
        data = data[start:end + len(b"</metadata>")]
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        logger.info("invalid MusicBrainz XML: %s", exc)
        return None
    for element in root.iter():
        if "}" in element.tag:
            element.tag = element.tag.split("}", 1)[1]
    return root


def _int(text: str | None) -> int | None:
    text = (text or "").strip()
    return int(text) if text.isdigit() else None


def _credit_name(element: ET.Element | None) -> str:
    if element is None:
        return ""
    return element.findtext("artist-credit/name-credit/artist/name", "")


def parse_credits(relation_list: ET.Element, frames: FrameCollection) -> None:
    """Add the artist relations of *relation_list* to *frames*."""
    for relation in relation_list:
        artist = relation.findtext("artist/name", "")
        if not artist:
            continue
        rel_type = relation.get("type", "")
        if rel_type == "instrument":
            attribute_list = relation.find("attribute-list")
            if attribute_list is not None and len(attribute_list):
                frames.add_involved_people(
                    FrameType.PERFORMER,
                    _capitalize_words(attribute_list[0].text or ""),
                    artist,
                )
        elif rel_type == "vocal":
            frames.add_involved_people(FrameType.PERFORMER, "Vocal", artist)
        elif rel_type in _CREDIT_TO_TYPE:
            frames.add_credit(_CREDIT_TO_TYPE[rel_type], artist)
        elif rel_type != "tribute":
            frames.add_involved_people(FrameType.ARRANGER, _capitalize_words(rel_type), artist)


def _cover_art_url(relation_list: ET.Element) -> str:
    url = ""
    for relation in relation_list.findall("relation"):
        if relation.get("type") in ("cover art link", "amazon asin"):
            url = _AMAZON_PRODUCT_RE.sub("http://images.amazon.com/images/P/",
                                         relation.findtext("target", ""))
            if not url.endswith(".jpg"):
                url += ".jpg"
    return url


class MusicBrainzImporter(ServerImporter):
    NAME = "MusicBrainz Release"
    SERVER_LIST = (SERVER,)
    DEFAULT_SERVER = SERVER
    SUPPORTS_ADDITIONAL_TAGS = True

    def send_find_query(self, cfg: ServerImporterConfig, artist: str, album: str) -> None:
        # https://musicbrainz.org/ws/2/release?query=artist:wizard%20AND%20release:odin
        path = "/ws/2/release?query="
        if artist:
            artist_query = f'"{artist}"' if " " in artist else artist
            if album:
                artist_query += " AND "
            path += "artist:" + quote(artist_query, safe="")
        if album:
            album_query = f'"{album}"' if " " in album else album
            path += "release:" + quote(album_query, safe="")
        self._client.send_request(SERVER, path, scheme="https")

    def send_track_list_query(self, cfg: ServerImporterConfig, category: str,
                              album_id: str) -> None:
        # https://musicbrainz.org/ws/2/release/978c7ed1-...?inc=artists+recordings
        if cfg.additional_tags:
            inc = ("artist-credits+labels+recordings+media+isrcs+discids"
                   "+artist-rels+label-rels+recording-rels+release-rels")
        else:
            inc = "artists+recordings"
        if cfg.cover_art:
            inc += "+url-rels"
        if cfg.additional_tags:
            inc += "+work-rels+recording-level-rels+work-level-rels"
        self._client.send_request(SERVER, f"/ws/2/{category}/{album_id}?inc={inc}",
                                  scheme="https")

    def parse_find_results(self, data: bytes) -> None:
        root = parse_xml(data)
        if root is None:
            return
        self._album_list_model.clear()
        for release in root.findall("release-list/release"):
            name = _credit_name(release)
            title = release.findtext("title", "")
            self._album_list_model.append_item(f"{name} - {title}", "release",
                                               release.get("id", ""))

    def parse_album_results(self, data: bytes) -> None:
        root = parse_xml(data)
        if root is None:
            return
        release = root.find("release")
        if release is None:
            release = ET.Element("release")
        standard_tags = self.standard_tags_enabled
        additional_tags = self.additional_tags_enabled
        cover_art = self.cover_art_enabled
        track_data = self._begin_album()

        frames_hdr = FrameCollection()
        if standard_tags:
            frames_hdr.set_value(FrameType.ALBUM, release.findtext("title", ""))
            frames_hdr.set_value(FrameType.ARTIST, _credit_name(release))
            date = release.findtext("date", "").strip()
            if date:
                match = _DATE_RE.fullmatch(date)
                year = int(match.group(1)) if match else (_int(date) or 0)
                frames_hdr.set_value(FrameType.DATE, year)

        if cover_art:
            asin = release.findtext("asin", "").strip()
            if asin:
                track_data.cover_art_url = "http://www.amazon.com/dp/" + asin

        if additional_tags:
            label_info = release.find("label-info-list/label-info")
            if label_info is not None:
                frames_hdr.set_value(FrameType.PUBLISHER, label_info.findtext("label/name", ""))
                frames_hdr.set_value(FrameType.CATALOG_NUMBER,
                                     label_info.findtext("catalog-number", ""))
            frames_hdr.set_value(FrameType.RELEASE_COUNTRY, release.findtext("country", ""))

        if additional_tags or cover_art:
            for relation_list in release.findall("relation-list"):
                target_type = relation_list.get("target-type")
                if target_type == "artist" and additional_tags:
                    parse_credits(relation_list, frames_hdr)
                elif target_type == "url" and cover_art:
                    url = _cover_art_url(relation_list)
                    if url:
                        track_data.cover_art_url = url

        merger = PositionalMerger(track_data)
        medium_list = release.find("medium-list")
        mediums = medium_list.findall("medium") if medium_list is not None else []
        medium_count = _int(medium_list.get("count")) if medium_list is not None else None
        disc_nr = 1
        track_nr = 1
        for medium in mediums:
            position = _int(medium.findtext("position"))
            if position is not None:
                disc_nr = position
            for track in medium.findall("track-list/track"):
                frames = frames_hdr.copy()
                if (medium_count or 0) > 1 and additional_tags:
                    frames.set_value(FrameType.DISC_NUMBER, disc_nr)
                position = _int(track.findtext("position"))
                if position is not None:
                    track_nr = position
                if standard_tags:
                    frames.set_value(FrameType.TRACK_NUMBER, track_nr)
                duration = _int(track.findtext("length")) or 0
                recording = track.find("recording")
                if recording is not None:
                    self._parse_recording(recording, frames, frames_hdr)
                    length = _int(recording.findtext("length"))
                    if length is not None:
                        duration = length
                merger.add(frames, duration // 1000)
                track_nr += 1
            disc_nr += 1
        merger.finish()
        self._end_album(track_data)

    def _parse_recording(self, recording: ET.Element, frames: FrameCollection,
                         frames_hdr: FrameCollection) -> None:
        if self.standard_tags_enabled:
            frames.set_value(FrameType.TITLE, recording.findtext("title", ""))
        artist = _credit_name(recording)
        if artist:
            # track artist, the release artist becomes the album artist
            if self.standard_tags_enabled:
                frames.set_value(FrameType.ARTIST, artist)
            if self.additional_tags_enabled:
                frames.set_value(FrameType.ALBUM_ARTIST, frames_hdr.artist)
        if not self.additional_tags_enabled:
            return
        for relation_list in recording.findall("relation-list"):
            target_type = relation_list.get("target-type")
            if target_type == "artist":
                parse_credits(relation_list, frames)
            elif target_type == "work":
                work_relations = relation_list.find("relation/work/relation-list")
                if work_relations is not None:
                    parse_credits(work_relations, frames)
