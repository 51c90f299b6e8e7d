"""Artist name clean-up and credit role tables shared by the Discogs parsers."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Any

from trackimport.core.frames import FrameCollection, FrameType

_ARTIST_NUMBER_RE = re.compile(r"[*\s]*\(\d+\)")
_ARTIST_STAR_RE = re.compile(r"\*($| - |, | / )")
_TRACKS_SEP_RE = re.compile(r",\s*")

# Role substrings credited in a frame of their own.
CREDIT_ROLES: tuple[tuple[tuple[str, ...], FrameType], ...] = (
    (("Composed By", "Music By", "Songwriter"), FrameType.COMPOSER),
    (("Written-By", "Written By"), FrameType.AUTHOR),
    (("Lyrics By",), FrameType.LYRICIST),
    (("Conductor",), FrameType.CONDUCTOR),
    (("Orchestra",), FrameType.ALBUM_ARTIST),
    (("Remix",), FrameType.REMIXER),
)

# Role substrings added to the arranger list with a normalized involvement.
ARRANGER_ROLES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("Arranged By",), "Arranger"),
    (("Mixed By",), "Mixer"),
    (("DJ Mix", "Dj Mix"), "DJMixer"),
    (("Engineer", "Mastered By"), "Engineer"),
    (("Producer", "Co-producer", "Executive Producer"), "Producer"),
)

# Role substrings naming a performance, added to the performer list.
INSTRUMENTS: tuple[str, ...] = (
    "Performer", "Vocals", "Voice", "Featuring", "Choir", "Chorus",
    "Baritone", "Tenor", "Rap", "Scratches", "Drums", "Percussion",
    "Keyboards", "Cello", "Piano", "Organ", "Synthesizer", "Keys",
    "Wurlitzer", "Rhodes", "Harmonica", "Xylophone", "Guitar", "Bass",
    "Strings", "Violin", "Viola", "Banjo", "Harp", "Mandolin",
    "Clarinet", "Horn", "Cornet", "Flute", "Oboe", "Saxophone",
    "Trumpet", "Tuba", "Trombone",
)


def fix_up_artist(name: str) -> str:
    """Remove Discogs disambiguation numbers like "(2)" and trailing stars."""
    name = _ARTIST_NUMBER_RE.sub("", name)
    name = _ARTIST_STAR_RE.sub(r"\1", name)
    return name.strip()


def artist_string(artists: list[Any]) -> str:
    """Join a list of artist objects using their join words."""
    result = ""
    join = ""
    for entry in artists:
        if not isinstance(entry, dict):
            continue
        if result:
            result += join
        result += fix_up_artist(str(entry.get("name") or ""))
        join = str(entry.get("join") or "").strip()
        join = ", " if not join or join == "," else f" {join} "
    return result


def add_role_credits(frames: FrameCollection, role: str, name: str) -> None:
    """Add *name* to the frames matching the role description *role*."""
    if not name:
        return
    for substrings, frame_type in CREDIT_ROLES:
        if any(s in role for s in substrings):
            frames.add_credit(frame_type, name)
    for substrings, involvement in ARRANGER_ROLES:
        if any(s in role for s in substrings):
            frames.add_involved_people(FrameType.ARRANGER, involvement, name)
    for instrument in INSTRUMENTS:
        if instrument in role:
            frames.add_involved_people(FrameType.PERFORMER, role, name)
            break


@dataclass
class ExtraArtist:
    """A credited artist, optionally restricted to some track positions."""
    name: str
    role: str
    tracks: list[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, value: dict[str, Any]) -> ExtraArtist:
        tracks = str(value.get("tracks") or "").strip()
        return cls(
            name=fix_up_artist(str(value.get("name") or "")),
            role=str(value.get("role") or ""),
            tracks=_TRACKS_SEP_RE.split(tracks) if tracks else [],
        )

    @property
    def has_track_restriction(self) -> bool:
        return bool(self.tracks)

    def add_to_frames(self, frames: FrameCollection, track_pos: str = "") -> None:
        if track_pos and track_pos not in self.tracks:
            return
        add_role_credits(frames, self.role, self.name)
