"""Local audio files as tag containers, backed by music-tag."""

from __future__ import annotations

import logging
from pathlib import Path
import re
from typing import Any

import music_tag

from trackimport.core.frames import FrameCollection, FrameType
from trackimport.core.track_data import TagVersion
from trackimport.errors import (
    ErrorCode,
    TrackImportError,
    classify_exception,
)

logger = logging.getLogger(__name__)

# Frames music-tag can store, with the music-tag key used for each.
FRAME_KEYS: dict[FrameType, str] = {
    FrameType.TITLE: "tracktitle",
    FrameType.ARTIST: "artist",
    FrameType.ALBUM: "album",
    FrameType.ALBUM_ARTIST: "albumartist",
    FrameType.TRACK_NUMBER: "tracknumber",
    FrameType.DISC_NUMBER: "discnumber",
    FrameType.DATE: "year",
    FrameType.GENRE: "genre",
    FrameType.COMPOSER: "composer",
    FrameType.COMMENT: "comment",
}

_INT_FRAMES = {FrameType.TRACK_NUMBER, FrameType.DISC_NUMBER, FrameType.DATE}

_FORMAT_CODES = {
    "s": "title",
    "l": "album",
    "a": "artist",
    "c": "comment",
    "y": "date",
    "t": "track number",
    "g": "genre",
    "year": "date",
    "track": "track number",
    "tracknumber": "track number",
    "discnumber": "disc number",
}

_NUMERIC_CODES = {"track number", "date", "disc number"}
_NUMBER_CAPTURE = r"(\d{1,4})"
_TEXT_CAPTURE = r"([^-_\./ ](?:[^/]*[^-_/ ])?)"

# Patterns tried when the format does not match, most specific first.
_FALLBACK_PATTERNS: list[tuple[re.Pattern[str], tuple[FrameType, ...]]] = [
    (
        re.compile(r"([^/]+)/(\d{1,3})[-_\. ]+([^-_\./ ][^/]+)[_ ]-[_ ]([^-_\./ ][^/]+)\..{2,4}$"),
        (FrameType.ALBUM, FrameType.TRACK_NUMBER, FrameType.ARTIST, FrameType.TITLE),
    ),
    (
        re.compile(r"([^/]+)[_ ]-[_ ]([^/]+)[_ ]\((\d{4})\)/(\d{1,3})[-_\. ]+([^-_\./ ][^/]+)\..{2,4}$"),
        (FrameType.ARTIST, FrameType.ALBUM, FrameType.DATE, FrameType.TRACK_NUMBER, FrameType.TITLE),
    ),
    (
        re.compile(r"([^/]+)[_ ]-[_ ]([^/]+)/(\d{1,3})[-_\. ]+([^-_\./ ][^/]+)\..{2,4}$"),
        (FrameType.ARTIST, FrameType.ALBUM, FrameType.TRACK_NUMBER, FrameType.TITLE),
    ),
]


def _format_pattern(fmt: str) -> tuple[str, list[str]]:
    pattern = re.escape(fmt.replace("%{", "\x00").replace("}", "\x01"))
    pattern = pattern.replace("\x00", "%{").replace("\x01", "}")
    for code, name in _FORMAT_CODES.items():
        source = "%" + code if len(code) == 1 else "%{" + code + "}"
        pattern = pattern.replace(source, "%{" + name + "}")

    names: list[str] = []

    def _capture(match: re.Match[str]) -> str:
        name = match.group(1).replace("\\", "")
        names.append(name)
        return _NUMBER_CAPTURE if name in _NUMERIC_CODES else _TEXT_CAPTURE

    pattern = re.sub(r"%\{([^}]+)\}", _capture, pattern)
    return pattern + r"\..{2,4}$", names


def tags_from_filename(path: str, fmt: str) -> FrameCollection:
    """Derive frames from a file path using a format like "%{artist} - %{title}".

    Codes are written as ``%{name}`` or single-letter ``%a`` style. When the
    format does not match, a few common directory layouts are tried.
    """
    frames = FrameCollection()
    name = path.replace("\\", "/")
    if "_" not in fmt:
        name = name.replace("_", " ")

    pattern, names = _format_pattern(fmt)
    match = re.search(pattern, name)
    if match:
        for index, code in enumerate(names, start=1):
            value = match.group(index)
            frame_type = FrameType.from_name(code)
            if not value or frame_type is None:
                continue
            if code == "track number" and len(value) == 2 and value[0] == "0":
                value = value[1:]
            frames.set_value(frame_type, value)
        return frames

    for regex, frame_types in _FALLBACK_PATTERNS:
        match = regex.search(name)
        if match:
            for index, frame_type in enumerate(frame_types, start=1):
                value = match.group(index).strip()
                if frame_type in _INT_FRAMES:
                    value = str(int(value))
                frames.set_value(frame_type, value)
            break
    return frames


def _leading_int(value: str) -> int:
    head = value.split("/", 1)[0].strip()
    return int(head) if head.isdigit() else 0


def _infer_artwork_format(mime: str) -> str | None:
    normalized = mime.strip().lower()
    if normalized in {"image/jpeg", "image/jpg"}:
        return "jpeg"
    if normalized.startswith("image/"):
        return normalized.split("/", 1)[1]
    return None


def _build_artwork(raw: bytes, mime: str) -> Any:
    fmt = _infer_artwork_format(mime)
    if fmt is not None:
        try:
            return music_tag.Artwork(raw=raw, fmt=fmt)
        except TypeError:
            pass
    return music_tag.Artwork(raw=raw)


def _first(f: Any, key: str) -> str:
    try:
        value = f[key].first
    except (KeyError, ValueError, AttributeError, TypeError):
        return ""
    if value is None:
        return ""
    return str(value).strip()


class TaggedFile:
    """An audio file whose tags are read and written through music-tag."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._frames = FrameCollection()
        self._duration = 0
        self._loaded = False

    def __repr__(self) -> str:
        return f"TaggedFile({str(self.path)!r})"

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def abs_filename(self) -> str:
        return str(self.path.resolve())

    @property
    def frames(self) -> FrameCollection:
        if not self._loaded:
            self.read_tags()
        return self._frames

    @property
    def duration(self) -> int:
        if not self._loaded:
            self.read_tags()
        return self._duration

    def _load(self) -> Any:
        try:
            return music_tag.load_file(str(self.path))
        except Exception as exc:
            error = classify_exception(exc, self.path)
            if error.code not in (ErrorCode.FILE_ACCESS_DENIED, ErrorCode.FILE_LOCKED):
                error.code = ErrorCode.TAG_READ_FAILED
            error.message = f"Cannot open {self.path.name} for tagging"
            raise error from exc

    def read_tags(self, force: bool = False) -> FrameCollection:
        """Read the tags of the file.

        Unreadable files yield empty frames, like files without tags.
        """
        if self._loaded and not force:
            return self._frames
        self._loaded = True
        self._frames = FrameCollection()
        self._duration = 0
        try:
            f = self._load()
        except TrackImportError as exc:
            logger.info("no tags for %s: %s", self.path, exc.message)
            return self._frames
        if f is None:
            return self._frames
        for frame_type, key in FRAME_KEYS.items():
            value = _first(f, key)
            if frame_type in _INT_FRAMES and value == "0":
                continue
            self._frames.set_value(frame_type, value)
        length = _first(f, "#length")
        try:
            self._duration = int(round(float(length))) if length else 0
        except ValueError:
            self._duration = 0
        return self._frames

    def set_frames(self, tag_version: TagVersion, frames: FrameCollection) -> None:
        """Write frames to the file.

        music-tag keeps a single tag per file, so any non-empty tag version
        writes it. Frames music-tag has no key for, such as publisher,
        catalog number or the involved people lists, are not stored and only
        remain in the import track data.

        Raises:
            TrackImportError: If the file cannot be opened or saved.
        """
        if not tag_version:
            return
        unstored = [t.value for t in frames if t not in FRAME_KEYS]
        if unstored:
            logger.debug("%s: no music-tag key for %s", self.path.name, ", ".join(unstored))
        f = self._load()
        try:
            for frame_type, key in FRAME_KEYS.items():
                value = frames.get_value(frame_type)
                if not value:
                    continue
                if frame_type in _INT_FRAMES:
                    number = frames.year if frame_type is FrameType.DATE else _leading_int(value)
                    if not number:
                        continue
                    f[key] = number
                else:
                    f[key] = value
            f.save()
        except Exception as exc:
            error = classify_exception(exc, self.path)
            error.code = ErrorCode.TAG_WRITE_FAILED
            error.message = f"Failed to save tags for {self.path.name}"
            raise error from exc
        self._frames.merge(frames)

    def add_picture(self, data: bytes, mime: str, description: str = "") -> None:
        """Embed an image as front cover.

        Raises:
            TrackImportError: If the image cannot be embedded.
        """
        f = self._load()
        try:
            f["artwork"] = _build_artwork(data, mime or "image/jpeg")
            f.save()
        except Exception as exc:
            raise TrackImportError(
                ErrorCode.TAG_WRITE_FAILED,
                message=f"Failed to embed artwork for {self.path.name}",
                path=self.path,
                details={"original": str(exc), "source": description},
            ) from exc

    def get_tags_from_filename(self, frames: FrameCollection, fmt: str) -> None:
        """Set frames derived from the file path into *frames*."""
        frames.merge(tags_from_filename(str(self.path), fmt))
