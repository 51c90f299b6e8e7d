"""Batch import of several albums from a profile of servers."""

from __future__ import annotations

from enum import Enum, IntFlag, auto
import logging
from typing import Callable

from PySide6.QtCore import QObject, Signal, SignalInstance

from trackimport.config.profiles import BatchImportProfile, BatchImportSource
from trackimport.config.settings import DEFAULT_FROM_FILENAME_FORMAT
from trackimport.core.frames import FrameCollection
from trackimport.core.track_data import ImportTrackDataVector, TagVersion
from trackimport.errors import TrackImportError, format_error_for_user
from trackimport.importers.base import ServerImporter
from trackimport.net.http_client import DownloadClient
from trackimport.ui.models.album_list_model import AlbumListItem, AlbumListModel
from trackimport.ui.models.track_data_model import TrackDataModel

logger = logging.getLogger(__name__)

# Smaller images are placeholders, e.g. the 1x1 pixel GIF served by Amazon.
MIN_COVER_ART_SIZE = 1024


class State(Enum):
    IDLE = auto()
    CHECK_NEXT_TRACK_LIST = auto()
    CHECK_NEXT_SOURCE = auto()
    GETTING_ALBUM_LIST = auto()
    CHECK_NEXT_ALBUM = auto()
    GETTING_TRACKS = auto()
    GETTING_COVER = auto()
    CHECK_IF_DONE = auto()
    ABORTED = auto()


class ImportEventType(Enum):
    STARTED = auto()
    SOURCE_SELECTED = auto()
    QUERYING_ALBUM_LIST = auto()
    FETCHING_TRACK_LIST = auto()
    TRACK_LIST_RECEIVED = auto()
    FETCHING_COVER_ART = auto()
    COVER_ART_RECEIVED = auto()
    FINISHED = auto()
    ABORTED = auto()
    ERROR = auto()


class DataFlags(IntFlag):
    NONE = 0
    STANDARD_TAGS = 1
    ADDITIONAL_TAGS = 2
    COVER_ART = 4


class BatchImporter(QObject):
    """Imports tags and cover art for a list of albums without interaction.

    For each track list the sources of the profile are tried in order. The
    albums found by a source are fetched one after the other until every
    data class requested from the source was imported. A track list is only
    accepted if its accuracy reaches the one required by the source.

    Only one request is outstanding at any time. The state machine advances
    synchronously until it has to wait for a server response.
    """

    report_import_event = Signal(object, str)   # ImportEventType, text
    finished = Signal()

    def __init__(
        self,
        importers: list[ServerImporter],
        track_data_model: TrackDataModel,
        download_client: DownloadClient | None = None,
        from_filename_format: str = DEFAULT_FROM_FILENAME_FORMAT,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._importers = list(importers)
        self._track_data_model = track_data_model
        self._download_client = download_client if download_client is not None \
            else DownloadClient(self)
        self._download_client.download_finished.connect(self._on_image_downloaded)
        self._from_filename_format = from_filename_format

        self._state = State.IDLE
        self._in_transition = False
        self._reschedule = False
        self._track_lists: list[ImportTrackDataVector] = []
        self._profile = BatchImportProfile(name="")
        self._tag_version = TagVersion.NONE
        self._track_list_nr = -1
        self._source_nr = -1
        self._album_nr = -1
        self._current_importer: ServerImporter | None = None
        self._album_model: AlbumListModel | None = None
        self._album_item: AlbumListItem | None = None
        self._current_artist = ""
        self._current_album = ""
        self._requested = DataFlags.NONE
        self._imported = DataFlags.NONE
        # importer signals connected for the outstanding request
        self._connections: list[tuple[SignalInstance, Callable]] = []

        self._handlers = {
            State.IDLE: self._idle,
            State.CHECK_NEXT_TRACK_LIST: self._check_next_track_list,
            State.CHECK_NEXT_SOURCE: self._check_next_source,
            State.GETTING_ALBUM_LIST: self._get_album_list,
            State.CHECK_NEXT_ALBUM: self._check_next_album,
            State.GETTING_TRACKS: self._get_tracks,
            State.GETTING_COVER: self._get_cover,
            State.CHECK_IF_DONE: self._check_if_done,
            State.ABORTED: self._aborted,
        }

    @property
    def state(self) -> State:
        return self._state

    @property
    def track_lists(self) -> list[ImportTrackDataVector]:
        """The track lists, accepted imports replace the started ones."""
        return self._track_lists

    def importer(self, name: str) -> ServerImporter | None:
        for importer in self._importers:
            if importer.name() == name:
                return importer
        return None

    def start(self, track_lists: list[ImportTrackDataVector], profile: BatchImportProfile,
              tag_version: TagVersion) -> None:
        self._track_lists = list(track_lists)
        self._profile = profile
        self._tag_version = tag_version
        logger.info("batch import with profile %r for %d track lists",
                    profile.name, len(self._track_lists))
        self.report_import_event.emit(ImportEventType.STARTED, profile.name)
        self._track_list_nr = -1
        self._state = State.CHECK_NEXT_TRACK_LIST
        self._state_transition()

    def is_aborted(self) -> bool:
        return self._state is State.ABORTED

    def clear_aborted(self) -> None:
        if self._state is State.ABORTED:
            self._state = State.IDLE
            self._state_transition()

    def abort(self) -> None:
        """Stop the import, a running request is cancelled."""
        old_state = self._state
        self._state = State.ABORTED
        if old_state is State.IDLE:
            self._state_transition()
        elif old_state is State.GETTING_COVER:
            self._download_client.cancel_download()
            self._state_transition()
        elif old_state in (State.GETTING_ALBUM_LIST, State.GETTING_TRACKS):
            # the cancelled response never arrives, so report the abort now
            self._disconnect_importer()
            if self._current_importer is not None:
                self._current_importer.abort()
            self._state_transition()

    # -- state machine --

    def _advance(self, state: State) -> bool:
        if self._state is not State.ABORTED:
            self._state = state
        return True

    def _state_transition(self) -> None:
        if self._in_transition:
            self._reschedule = True
            return
        self._in_transition = True
        try:
            while True:
                self._reschedule = False
                proceed = self._handlers[self._state]()
                if not (proceed or self._reschedule):
                    break
        finally:
            self._in_transition = False

    def _idle(self) -> bool:
        self._track_list_nr = -1
        return False

    def _search_keys(self, track_list: ImportTrackDataVector) -> tuple[str, str]:
        artist = track_list.artist
        album = track_list.album
        if not artist and not album:
            tagged_file = track_list[0].tagged_file
            if tagged_file is not None:
                frames = FrameCollection()
                tagged_file.get_tags_from_filename(frames, self._from_filename_format)
                artist = frames.artist
                album = frames.album
        return artist, album

    def _check_next_track_list(self) -> bool:
        while True:
            self._track_list_nr += 1
            if not 0 <= self._track_list_nr < len(self._track_lists):
                break
            track_list = self._track_lists[self._track_list_nr]
            if not track_list:
                continue
            self._current_artist, self._current_album = self._search_keys(track_list)
            if self._current_artist or self._current_album:
                self._track_data_model.set_track_data(track_list)
                self._source_nr = -1
                self._imported = DataFlags.NONE
                return self._advance(State.CHECK_NEXT_SOURCE)
        logger.info("batch import finished")
        self.report_import_event.emit(ImportEventType.FINISHED, "")
        self.finished.emit()
        return self._advance(State.IDLE)

    def _requested_data(self, importer: ServerImporter, source: BatchImportSource) -> DataFlags:
        requested = DataFlags.NONE
        if source.standard_tags:
            requested |= DataFlags.STANDARD_TAGS
        if importer.additional_tags():
            if source.additional_tags:
                requested |= DataFlags.ADDITIONAL_TAGS
            if source.cover_art:
                requested |= DataFlags.COVER_ART
        return requested

    def _check_next_source(self) -> bool:
        self._current_importer = None
        sources = self._profile.sources
        while True:
            self._source_nr += 1
            if not 0 <= self._source_nr < len(sources):
                return self._advance(State.CHECK_NEXT_TRACK_LIST)
            importer = self.importer(sources[self._source_nr].name)
            if importer is not None:
                break
            logger.debug("no importer for source %r", sources[self._source_nr].name)
        self._current_importer = importer
        self._requested = self._requested_data(importer, sources[self._source_nr])
        self.report_import_event.emit(ImportEventType.SOURCE_SELECTED, importer.name())
        return self._advance(State.GETTING_ALBUM_LIST)

    def _get_album_list(self) -> bool:
        importer = self._current_importer
        if importer is None:
            return False
        self.report_import_event.emit(ImportEventType.QUERYING_ALBUM_LIST,
                                      f"{self._current_artist} - {self._current_album}")
        if self._state is not State.GETTING_ALBUM_LIST:
            return False
        self._album_nr = -1
        self._album_model = None
        self._connect_importer([
            (importer.find_finished, self._on_find_finished),
            (importer.progress, self._on_find_progress),
        ])
        importer.find(importer.config(), self._current_artist, self._current_album)
        return False

    def _check_next_album(self) -> bool:
        self._album_item = None
        while self._album_model is not None:
            self._album_nr += 1
            if not 0 <= self._album_nr < len(self._album_model):
                break
            item = self._album_model.item(self._album_nr)
            if item is not None and item.id:
                self._album_item = item
                break
        if self._album_item is not None:
            return self._advance(State.GETTING_TRACKS)
        return self._advance(State.CHECK_NEXT_SOURCE)

    def _get_tracks(self) -> bool:
        importer = self._current_importer
        item = self._album_item
        if importer is None or item is None:
            return False
        self.report_import_event.emit(ImportEventType.FETCHING_TRACK_LIST, item.text)
        if self._state is not State.GETTING_TRACKS:
            return False
        pending = self._requested & ~self._imported
        # standard tags are always needed to measure the accuracy
        importer.standard_tags_enabled = bool(pending)
        importer.additional_tags_enabled = bool(pending & DataFlags.ADDITIONAL_TAGS)
        importer.cover_art_enabled = bool(pending & DataFlags.COVER_ART)
        self._connect_importer([
            (importer.album_finished, self._on_album_finished),
            (importer.progress, self._on_album_progress),
        ])
        importer.get_track_list(importer.config(), item.category, item.id)
        return False

    def _get_cover(self) -> bool:
        image_url = ""
        pending = self._requested & ~self._imported
        if self._tag_version & TagVersion.V2 and pending & DataFlags.COVER_ART:
            cover_art_url = self._track_data_model.track_data().cover_art_url
            if cover_art_url:
                image_url = DownloadClient.get_image_url(cover_art_url)
                if image_url:
                    self.report_import_event.emit(ImportEventType.FETCHING_COVER_ART,
                                                  cover_art_url)
                    if self._state is not State.GETTING_COVER:
                        return False
                    self._download_client.start_download(image_url)
        if image_url:
            return False
        return self._advance(State.CHECK_IF_DONE)

    def _check_if_done(self) -> bool:
        if self._requested & ~self._imported:
            return self._advance(State.CHECK_NEXT_ALBUM)
        return self._advance(State.CHECK_NEXT_TRACK_LIST)

    def _aborted(self) -> bool:
        logger.info("batch import aborted")
        self.report_import_event.emit(ImportEventType.ABORTED, "")
        return False

    # -- callbacks --

    def _connect_importer(self, connections: list[tuple[SignalInstance, Callable]]) -> None:
        for signal, slot in connections:
            signal.connect(slot)
        self._connections.extend(connections)

    def _disconnect_importer(self) -> None:
        connections, self._connections = self._connections, []
        for signal, slot in connections:
            signal.disconnect(slot)

    def _on_find_finished(self, data: bytes) -> None:
        self._disconnect_importer()
        if self._state is State.ABORTED:
            self._state_transition()
            return
        importer = self._current_importer
        if importer is None:
            return
        importer.parse_find_results(data)
        self._album_model = importer.get_album_list_model()
        self._advance(State.CHECK_NEXT_ALBUM)
        self._state_transition()

    def _on_find_progress(self, text: str, step: int, total: int) -> None:
        if step == -1 and total == -1:
            self._disconnect_importer()
            self.report_import_event.emit(ImportEventType.ERROR, text)
            self._advance(State.CHECK_NEXT_ALBUM)
            self._state_transition()

    def _on_album_finished(self, data: bytes) -> None:
        self._disconnect_importer()
        if self._state is State.ABORTED:
            self._state_transition()
            return
        importer = self._current_importer
        if importer is None:
            return
        importer.parse_album_results(data)

        accuracy = self._track_data_model.calculate_accuracy()
        self.report_import_event.emit(
            ImportEventType.TRACK_LIST_RECEIVED,
            f"Accuracy {accuracy}%" if accuracy >= 0 else "Accuracy Unknown",
        )
        source = self._profile.sources[self._source_nr]
        if accuracy >= source.required_accuracy:
            if self._requested & (DataFlags.STANDARD_TAGS | DataFlags.ADDITIONAL_TAGS):
                self._write_tags()
            else:
                self._restore_track_list()
            if self._requested & DataFlags.STANDARD_TAGS:
                self._imported |= DataFlags.STANDARD_TAGS
            if self._requested & DataFlags.ADDITIONAL_TAGS:
                self._imported |= DataFlags.ADDITIONAL_TAGS
        else:
            logger.debug("accuracy %d below %d for %s", accuracy,
                         source.required_accuracy, self._album_item)
            self._restore_track_list()
        self._advance(State.GETTING_COVER)
        self._state_transition()

    def _write_tags(self) -> None:
        """Write the imported frames to the files, they become the new snapshot."""
        track_data = self._track_data_model.get_track_data()
        for track in track_data:
            if track.tagged_file is None or not track.enabled:
                continue
            try:
                track.tagged_file.set_frames(self._tag_version, track.frames)
            except TrackImportError as exc:
                logger.warning("tag write failed: %s", exc)
                self.report_import_event.emit(ImportEventType.ERROR,
                                              format_error_for_user(exc))
        snapshot = track_data.copy()
        snapshot.cover_art_url = ""
        self._track_lists[self._track_list_nr] = snapshot

    def _restore_track_list(self) -> None:
        """Revert to the snapshot, keeping the parsed cover art URL."""
        track_data = self._track_lists[self._track_list_nr].copy()
        track_data.cover_art_url = self._track_data_model.track_data().cover_art_url
        self._track_data_model.set_track_data(track_data)

    def _on_album_progress(self, text: str, step: int, total: int) -> None:
        if step == -1 and total == -1:
            self._disconnect_importer()
            self.report_import_event.emit(ImportEventType.ERROR, text)
            self._advance(State.GETTING_COVER)
            self._state_transition()

    def _on_image_downloaded(self, data: bytes, mime_type: str, url: str) -> None:
        if self._state is State.ABORTED:
            self._state_transition()
            return
        if self._state is not State.GETTING_COVER:
            return
        if len(data) >= MIN_COVER_ART_SIZE:
            if mime_type.startswith("image"):
                self.report_import_event.emit(ImportEventType.COVER_ART_RECEIVED, url)
                self._add_cover_art(data, mime_type, url)
                self._imported |= DataFlags.COVER_ART
        else:
            self.report_import_event.emit(ImportEventType.COVER_ART_RECEIVED, "Invalid File")
        self._advance(State.CHECK_IF_DONE)
        self._state_transition()

    def _add_cover_art(self, data: bytes, mime_type: str, url: str) -> None:
        for track in self._track_data_model.track_data():
            if track.tagged_file is None:
                continue
            try:
                track.tagged_file.add_picture(data, mime_type, url)
            except TrackImportError as exc:
                logger.warning("cover art not embedded: %s", exc)
                self.report_import_event.emit(ImportEventType.ERROR,
                                              format_error_for_user(exc))
