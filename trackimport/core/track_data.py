"""Imported track data, track data vectors and the positional merge."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntFlag
from pathlib import PurePath
from typing import TYPE_CHECKING, Iterable
import unicodedata

from trackimport.core.frames import FrameCollection, FrameType

if TYPE_CHECKING:
    from trackimport.core.tag_store import TaggedFile


class TagVersion(IntFlag):
    NONE = 0
    V1 = 1
    V2 = 2
    V1_V2 = V1 | V2


def lower_case_words(text: str) -> set[str]:
    """Split text into a set of lower case words.

    Letters are kept, punctuation, separators and symbols split words, and
    everything else (digits, combining marks) is dropped.
    """
    normalized = unicodedata.normalize("NFD", text.lower())
    chars: list[str] = []
    for ch in normalized:
        category = unicodedata.category(ch)
        if category.startswith("L"):
            chars.append(ch)
        elif category[0] in ("P", "Z", "S") or ch.isspace():
            chars.append(" ")
    return set("".join(chars).split())


def format_time(seconds: int) -> str:
    """Format seconds as m:ss, or h:mm:ss from one hour on."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


@dataclass
class ImportTrackData:
    """One slot of a track data vector.

    A slot is either bound to a local file (``tagged_file``) or is a parsed
    track appended beyond the local files.
    """

    frames: FrameCollection = field(default_factory=FrameCollection)
    import_duration: int = 0
    enabled: bool = True
    tagged_file: TaggedFile | None = None

    @property
    def file_duration(self) -> int:
        if self.tagged_file is None:
            return 0
        return int(self.tagged_file.duration or 0)

    @property
    def filename(self) -> str:
        if self.tagged_file is None:
            return ""
        return self.tagged_file.filename

    def time_difference(self) -> int:
        """Absolute duration difference in seconds, -1 if one is unknown."""
        file_duration = self.file_duration
        if file_duration and self.import_duration:
            return abs(file_duration - self.import_duration)
        return -1

    def title_words(self) -> set[str]:
        return lower_case_words(self.frames.title)

    def filename_words(self) -> set[str]:
        name = self.filename
        if not name:
            return set()
        return lower_case_words(PurePath(name).stem)

    def copy(self) -> ImportTrackData:
        return ImportTrackData(
            frames=self.frames.copy(),
            import_duration=self.import_duration,
            enabled=self.enabled,
            tagged_file=self.tagged_file,
        )


class ImportTrackDataVector(list):
    """Ordered track slots plus album level import data."""

    def __init__(self, tracks: Iterable[ImportTrackData] = ()) -> None:
        super().__init__(tracks)
        self.cover_art_url = ""

    @classmethod
    def from_tagged_files(cls, tagged_files: Iterable[TaggedFile]) -> ImportTrackDataVector:
        """Build a vector with one slot per file, frames taken from its tags."""
        vector = cls()
        for tagged_file in tagged_files:
            vector.append(ImportTrackData(
                frames=tagged_file.frames.copy(),
                tagged_file=tagged_file,
            ))
        return vector

    def _first_value(self, frame_type: FrameType) -> str:
        if not self:
            return ""
        first = self[0]
        value = first.frames.get_value(frame_type)
        if not value and first.tagged_file is not None:
            value = first.tagged_file.frames.get_value(frame_type)
        return value

    @property
    def artist(self) -> str:
        return self._first_value(FrameType.ARTIST)

    @property
    def album(self) -> str:
        return self._first_value(FrameType.ALBUM)

    def read_tags(self) -> None:
        """Reload the frames of every bound slot from its file."""
        for track in self:
            if track.tagged_file is not None:
                track.frames = track.tagged_file.read_tags().copy()
                track.import_duration = 0

    def clear_data(self) -> None:
        self.clear()
        self.cover_art_url = ""

    def copy(self) -> ImportTrackDataVector:
        vector = ImportTrackDataVector(track.copy() for track in self)
        vector.cover_art_url = self.cover_art_url
        return vector


class PositionalMerger:
    """Overlay parsed tracks onto the slots of a vector in order.

    Disabled slots are skipped and never modified. A parsed track which finds
    only disabled slots left is dropped, the parsed tracks after it are
    appended beyond the last slot. ``finish()`` handles the slots no parsed
    track reached: unbound ones are removed, bound ones are cleared.
    """

    def __init__(self, track_data: ImportTrackDataVector) -> None:
        self._tracks = track_data
        self._pos = 0

    def add(self, frames: FrameCollection, import_duration: int = 0) -> None:
        if self._pos >= len(self._tracks):
            self._tracks.append(ImportTrackData(
                frames=frames.copy(),
                import_duration=import_duration,
            ))
            self._pos += 1
            return
        while self._pos < len(self._tracks) and not self._tracks[self._pos].enabled:
            self._pos += 1
        if self._pos < len(self._tracks):
            slot = self._tracks[self._pos]
            slot.frames = frames.copy()
            slot.import_duration = import_duration
            self._pos += 1

    def finish(self) -> None:
        pos = self._pos
        while pos < len(self._tracks):
            track = self._tracks[pos]
            if track.enabled:
                if track.file_duration == 0:
                    del self._tracks[pos]
                    continue
                track.frames = FrameCollection()
                track.import_duration = 0
            pos += 1
