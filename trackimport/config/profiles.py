"""Batch import profiles and their YAML storage."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path

import yaml

from trackimport.errors import ErrorCode, TrackImportError

logger = logging.getLogger(__name__)

DEFAULT_ACCURACY = 75

# Name and source expression of the preset profiles.
DEFAULT_PROFILES: tuple[tuple[str, str], ...] = (
    ("All", "MusicBrainz Release:75:SAC;Discogs:75:SAC;Amazon:75:SAC;"
            "gnudb.org:75:S;TrackType.org:75:S"),
    ("MusicBrainz", "MusicBrainz Release:75:SAC"),
    ("Discogs", "Discogs:75:SAC"),
    ("Cover Art", "Amazon:75:C;Discogs:75:C;MusicBrainz Release:75:C"),
    ("Custom Profile", ""),
)


@dataclass
class BatchImportSource:
    """A server to query and the data classes to take from it."""
    name: str
    required_accuracy: int = DEFAULT_ACCURACY
    standard_tags: bool = True
    additional_tags: bool = True
    cover_art: bool = True

    def as_string(self) -> str:
        flags = (
            ("S" if self.standard_tags else "s")
            + ("A" if self.additional_tags else "a")
            + ("C" if self.cover_art else "c")
        )
        return f"{self.name}:{self.required_accuracy}:{flags}"

    @classmethod
    def from_string(cls, text: str) -> BatchImportSource | None:
        """Parse "Name:accuracy:flags", flags being upper case S, A and C."""
        parts = text.strip().split(":")
        if len(parts) < 3 or not parts[0].strip():
            return None
        flags = parts[-1]
        accuracy_text = parts[-2].strip()
        # server names may contain colons
        name = ":".join(parts[:-2]).strip()
        try:
            accuracy = int(accuracy_text)
        except ValueError:
            accuracy = DEFAULT_ACCURACY
        return cls(
            name=name,
            required_accuracy=accuracy,
            standard_tags="S" in flags,
            additional_tags="A" in flags,
            cover_art="C" in flags,
        )


@dataclass
class BatchImportProfile:
    """Ordered list of sources used for a batch import."""
    name: str
    sources: list[BatchImportSource] = field(default_factory=list)

    def set_sources_from_string(self, text: str) -> None:
        self.sources = []
        for part in text.split(";"):
            source = BatchImportSource.from_string(part)
            if source is not None:
                self.sources.append(source)

    def sources_as_string(self) -> str:
        return ";".join(source.as_string() for source in self.sources)

    @classmethod
    def from_string(cls, name: str, text: str) -> BatchImportProfile:
        profile = cls(name=name)
        profile.set_sources_from_string(text)
        return profile


def default_profiles() -> list[BatchImportProfile]:
    return [BatchImportProfile.from_string(name, text) for name, text in DEFAULT_PROFILES]


class ProfileStore:
    """Loads and saves batch import profiles as YAML."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._profiles: list[BatchImportProfile] = default_profiles()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def profiles(self) -> list[BatchImportProfile]:
        return list(self._profiles)

    def names(self) -> list[str]:
        return [profile.name for profile in self._profiles]

    def get(self, name: str) -> BatchImportProfile | None:
        for profile in self._profiles:
            if profile.name == name:
                return profile
        return None

    def set_profile(self, profile: BatchImportProfile) -> None:
        for index, existing in enumerate(self._profiles):
            if existing.name == profile.name:
                self._profiles[index] = profile
                return
        self._profiles.append(profile)

    def remove(self, name: str) -> bool:
        before = len(self._profiles)
        self._profiles = [p for p in self._profiles if p.name != name]
        return len(self._profiles) != before

    def load(self) -> list[BatchImportProfile]:
        """Read profiles from the file; presets are kept if it does not exist.

        Raises:
            TrackImportError: If the file is not a valid profile list.
        """
        if not self._path.exists():
            logger.info("no profile file at %s, using presets", self._path)
            return self.profiles
        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise TrackImportError(
                ErrorCode.CONFIG_INVALID,
                message=f"Cannot read batch import profiles from {self._path.name}",
                path=self._path,
                details={"original": str(exc)},
            ) from exc

        entries = raw.get("profiles") if isinstance(raw, dict) else None
        if not isinstance(entries, list):
            raise TrackImportError(
                ErrorCode.CONFIG_INVALID,
                message=f"{self._path.name} has no profile list",
                path=self._path,
            )
        profiles: list[BatchImportProfile] = []
        for entry in entries:
            if not isinstance(entry, dict) or not str(entry.get("name") or "").strip():
                logger.warning("skipping invalid profile entry %r", entry)
                continue
            profiles.append(BatchImportProfile.from_string(
                str(entry["name"]).strip(), str(entry.get("sources") or "")))
        self._profiles = profiles
        return self.profiles

    def save(self) -> None:
        data = {
            "profiles": [
                {"name": profile.name, "sources": profile.sources_as_string()}
                for profile in self._profiles
            ]
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                yaml.dump(data, f, default_flow_style=False, sort_keys=False)
        except OSError as exc:
            raise TrackImportError(
                ErrorCode.CONFIG_PERMISSION_DENIED,
                path=self._path,
                details={"original": str(exc)},
            ) from exc
