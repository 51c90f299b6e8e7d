"""Application settings via QSettings."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from PySide6.QtCore import QSettings

from trackimport.core.track_data import TagVersion

DEFAULT_FROM_FILENAME_FORMAT = "%{artist} - %{album}/%{track} %{title}"


@dataclass
class ServerImporterConfig:
    """Connection and option settings of one importer."""
    server: str = ""
    cgi_path: str = ""
    additional_tags: bool = False
    cover_art: bool = False
    token: str = ""


def _group_name(importer_name: str) -> str:
    return "importers/" + "".join(
        ch if ch.isalnum() else "_" for ch in importer_name.strip().lower())


class AppSettings:
    """Wraps QSettings for persistent app configuration."""

    def __init__(self, qsettings: QSettings | None = None) -> None:
        self._qs = qsettings if qsettings is not None else QSettings("TrackImport", "TrackImport")

    # -- importers --

    def importer_config(self, name: str, defaults: ServerImporterConfig) -> ServerImporterConfig:
        group = _group_name(name)
        return ServerImporterConfig(
            server=self._qs.value(f"{group}/server", defaults.server, type=str),
            cgi_path=self._qs.value(f"{group}/cgi_path", defaults.cgi_path, type=str),
            additional_tags=self._qs.value(
                f"{group}/additional_tags", defaults.additional_tags, type=bool),
            cover_art=self._qs.value(f"{group}/cover_art", defaults.cover_art, type=bool),
            token=self._qs.value(f"{group}/token", defaults.token, type=str),
        )

    def set_importer_config(self, name: str, config: ServerImporterConfig) -> None:
        group = _group_name(name)
        self._qs.setValue(f"{group}/server", config.server)
        self._qs.setValue(f"{group}/cgi_path", config.cgi_path)
        self._qs.setValue(f"{group}/additional_tags", config.additional_tags)
        self._qs.setValue(f"{group}/cover_art", config.cover_art)
        self._qs.setValue(f"{group}/token", config.token)

    # -- discogs --

    @property
    def discogs_token(self) -> str:
        return self._qs.value(f"{_group_name('Discogs')}/token", "", type=str)

    @discogs_token.setter
    def discogs_token(self, value: str) -> None:
        self._qs.setValue(f"{_group_name('Discogs')}/token", value.strip())

    # -- file names --

    @property
    def from_filename_format(self) -> str:
        raw = self._qs.value("files/from_filename_format", DEFAULT_FROM_FILENAME_FORMAT, type=str)
        return (raw or "").strip() or DEFAULT_FROM_FILENAME_FORMAT

    @from_filename_format.setter
    def from_filename_format(self, value: str) -> None:
        self._qs.setValue("files/from_filename_format", value)

    # -- import --

    @property
    def tag_version(self) -> TagVersion:
        raw = self._qs.value("import/tag_version", int(TagVersion.V2), type=int)
        try:
            version = TagVersion(raw)
        except ValueError:
            return TagVersion.V2
        return version or TagVersion.V2

    @tag_version.setter
    def tag_version(self, value: TagVersion) -> None:
        self._qs.setValue("import/tag_version", int(value))

    @property
    def max_time_difference(self) -> int:
        return max(0, self._qs.value("import/max_time_difference", 3, type=int))

    @max_time_difference.setter
    def max_time_difference(self, value: int) -> None:
        self._qs.setValue("import/max_time_difference", max(0, int(value)))

    @property
    def enable_time_difference_check(self) -> bool:
        return self._qs.value("import/enable_time_difference_check", True, type=bool)

    @enable_time_difference_check.setter
    def enable_time_difference_check(self, value: bool) -> None:
        self._qs.setValue("import/enable_time_difference_check", bool(value))

    @property
    def batch_profile(self) -> str:
        return self._qs.value("batch/profile", "All", type=str)

    @batch_profile.setter
    def batch_profile(self, value: str) -> None:
        self._qs.setValue("batch/profile", value.strip())

    # -- helpers --

    def sync(self) -> None:
        self._qs.sync()

    @property
    def app_data_dir(self) -> Path:
        path = self._app_data_dir()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def log_dir(self) -> Path:
        path = self.app_data_dir / "logs"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def profiles_path(self) -> Path:
        return self.app_data_dir / "batch_profiles.yaml"

    @staticmethod
    def _app_data_dir() -> Path:
        base = Path(os.environ.get("APPDATA", Path.home() / ".config"))
        return base / "trackimport"
