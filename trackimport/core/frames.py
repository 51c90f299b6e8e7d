"""Tag frame types and the frame collection used by imported track data."""

from __future__ import annotations

from enum import Enum
from typing import Iterable

LIST_SEPARATOR = "|"


class FrameType(Enum):
    """Frame types an importer can fill."""

    TITLE = "title"
    ARTIST = "artist"
    ALBUM = "album"
    COMMENT = "comment"
    DATE = "date"
    TRACK_NUMBER = "track number"
    GENRE = "genre"
    ALBUM_ARTIST = "album artist"
    ARRANGER = "arranger"
    AUTHOR = "author"
    CATALOG_NUMBER = "catalog number"
    COMPOSER = "composer"
    CONDUCTOR = "conductor"
    DISC_NUMBER = "disc number"
    LYRICIST = "lyricist"
    MEDIA = "media"
    PERFORMER = "performer"
    PUBLISHER = "publisher"
    RELEASE_COUNTRY = "release country"
    REMIXER = "remixer"
    PART = "part"

    @classmethod
    def from_name(cls, name: str) -> FrameType | None:
        key = name.strip().lower()
        for frame_type in cls:
            if frame_type.value == key:
                return frame_type
        return None


def split_list(value: str) -> list[str]:
    if not value:
        return []
    return value.split(LIST_SEPARATOR)


def join_list(values: Iterable[str]) -> str:
    return LIST_SEPARATOR.join(values)


def _to_int(value: str) -> int:
    # "3/12" style values carry a total after the slash
    head = value.split("/", 1)[0].strip()
    return int(head) if head.isdigit() else 0


class FrameCollection(dict):
    """Mapping of FrameType to string value.

    Empty values are not stored, so ``frames.get_value(t) == ""`` means the
    frame is absent.
    """

    def get_value(self, frame_type: FrameType) -> str:
        return self.get(frame_type, "")

    def set_value(self, frame_type: FrameType, value: str | int) -> None:
        text = str(value).strip() if value is not None else ""
        if isinstance(value, int) and value == 0:
            text = ""
        if text:
            self[frame_type] = text
        else:
            self.pop(frame_type, None)

    def add_credit(self, frame_type: FrameType, name: str) -> None:
        """Append a credited name, keeping names already present."""
        name = name.strip()
        if not name:
            return
        existing = self.get_value(frame_type)
        self[frame_type] = f"{existing}, {name}" if existing else name

    def add_involved_people(
        self, frame_type: FrameType, involvement: str, involvee: str
    ) -> None:
        """Append an involvement/name pair to a separator list frame."""
        involvement = involvement.strip()
        involvee = involvee.strip()
        if not involvee:
            return
        pair = involvement + LIST_SEPARATOR + involvee
        existing = self.get_value(frame_type)
        self[frame_type] = existing + LIST_SEPARATOR + pair if existing else pair

    def merge(self, other: FrameCollection) -> None:
        """Set all non-empty frames of *other* in this collection."""
        for frame_type, value in other.items():
            if value:
                self[frame_type] = value

    def copy(self) -> FrameCollection:
        return FrameCollection(self)

    # -- convenience accessors --

    @property
    def title(self) -> str:
        return self.get_value(FrameType.TITLE)

    @property
    def artist(self) -> str:
        return self.get_value(FrameType.ARTIST)

    @property
    def album(self) -> str:
        return self.get_value(FrameType.ALBUM)

    @property
    def genre(self) -> str:
        return self.get_value(FrameType.GENRE)

    @property
    def track(self) -> int:
        return _to_int(self.get_value(FrameType.TRACK_NUMBER))

    @property
    def year(self) -> int:
        return _to_int(self.get_value(FrameType.DATE)[:4])
