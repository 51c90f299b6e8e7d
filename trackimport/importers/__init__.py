"""Registry of the available server importers."""

from __future__ import annotations

from trackimport.config.settings import AppSettings
from trackimport.importers.amazon import AmazonImporter
from trackimport.importers.base import ServerImporter
from trackimport.importers.discogs import DiscogsImporter
from trackimport.importers.freedb import FreedbImporter
from trackimport.importers.musicbrainz import MusicBrainzImporter
from trackimport.importers.tracktype import TrackTypeImporter
from trackimport.ui.models.track_data_model import TrackDataModel

IMPORTER_CLASSES: tuple[type[ServerImporter], ...] = (
    MusicBrainzImporter,
    DiscogsImporter,
    AmazonImporter,
    FreedbImporter,
    TrackTypeImporter,
)


def importer_names() -> list[str]:
    return [cls.NAME for cls in IMPORTER_CLASSES]


def importer_class(name: str) -> type[ServerImporter] | None:
    for cls in IMPORTER_CLASSES:
        if cls.NAME == name:
            return cls
    return None


def create_importers(track_data_model: TrackDataModel,
                     settings: AppSettings | None = None) -> list[ServerImporter]:
    """Create one importer of each kind sharing *track_data_model*.

    Configurations are read from *settings* when given, otherwise the
    defaults of each importer are used.
    """
    importers = []
    for cls in IMPORTER_CLASSES:
        config = cls.default_config()
        if settings is not None:
            config = settings.importer_config(cls.NAME, config)
        importers.append(cls(track_data_model, config))
    return importers
