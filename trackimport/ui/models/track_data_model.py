"""QAbstractTableModel holding the track data being imported."""

from __future__ import annotations

from typing import Any

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt

from trackimport.core.frames import FrameType
from trackimport.core.track_data import ImportTrackDataVector, format_time

# Durations closer than this many seconds count as matching.
MATCHING_DURATION_DIFF = 3

FRAME_COLUMNS: list[tuple[str, FrameType]] = [
    ("Track", FrameType.TRACK_NUMBER),
    ("Title", FrameType.TITLE),
    ("Artist", FrameType.ARTIST),
    ("Album", FrameType.ALBUM),
    ("Year", FrameType.DATE),
    ("Genre", FrameType.GENRE),
    ("Album Artist", FrameType.ALBUM_ARTIST),
    ("Disc", FrameType.DISC_NUMBER),
    ("Catalog Number", FrameType.CATALOG_NUMBER),
    ("Media", FrameType.MEDIA),
    ("Publisher", FrameType.PUBLISHER),
    ("Country", FrameType.RELEASE_COUNTRY),
]

COLUMNS = ["Length", "File", "File Length"] + [title for title, _ in FRAME_COLUMNS]


class TrackDataModel(QAbstractTableModel):
    """Table model for the import track data vector.

    Importers write their parsed results into this model and the batch
    importer rates them with :meth:`calculate_accuracy`.
    """

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self._track_data = ImportTrackDataVector()

    def set_track_data(self, track_data: ImportTrackDataVector) -> None:
        self.beginResetModel()
        self._track_data = track_data.copy()
        self.endResetModel()

    def get_track_data(self) -> ImportTrackDataVector:
        return self._track_data.copy()

    def track_data(self) -> ImportTrackDataVector:
        """Return the stored vector itself, without copying."""
        return self._track_data

    def calculate_accuracy(self) -> int:
        """Rate how well the imported data fits the files, in percent.

        Durations, track numbers and title words are compared for the
        enabled tracks which carry imported data. The ratios of the criteria
        that could be evaluated are averaged. Returns -1 if none could.
        """
        num_durations = num_duration_matches = 0
        num_track_nrs = num_track_nr_matches = 0
        num_titles = 0
        title_ratio_sum = 0.0
        for track in self._track_data:
            if not track.enabled:
                continue
            if track.import_duration == 0 and not track.frames.title:
                continue

            diff = track.time_difference()
            if diff >= 0:
                num_durations += 1
                if diff <= MATCHING_DURATION_DIFF:
                    num_duration_matches += 1

            if track.tagged_file is not None:
                file_track = track.tagged_file.frames.track
                import_track = track.frames.track
                if file_track and import_track:
                    num_track_nrs += 1
                    if file_track == import_track:
                        num_track_nr_matches += 1

            title_words = track.title_words()
            file_words = track.filename_words()
            if title_words and file_words:
                num_titles += 1
                common = len(title_words & file_words)
                title_ratio_sum += common / min(len(title_words), len(file_words))

        ratios: list[float] = []
        if num_durations:
            ratios.append(num_duration_matches / num_durations)
        if num_track_nrs:
            ratios.append(num_track_nr_matches / num_track_nrs)
        if num_titles:
            ratios.append(title_ratio_sum / num_titles)
        if not ratios:
            return -1
        return int(round(100 * sum(ratios) / len(ratios)))

    # -- QAbstractTableModel overrides --

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._track_data)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return len(COLUMNS)

    def headerData(self, section: int, orientation: Qt.Orientation,
                   role: int = Qt.ItemDataRole.DisplayRole) -> Any:
        if role != Qt.ItemDataRole.DisplayRole:
            return None
        if orientation == Qt.Orientation.Horizontal:
            if 0 <= section < len(COLUMNS):
                return COLUMNS[section]
            return None
        return str(section + 1)

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole) -> Any:
        if not index.isValid():
            return None

        track = self._track_data[index.row()]
        col = index.column()

        if role == Qt.ItemDataRole.CheckStateRole and col == 0:
            return Qt.CheckState.Checked if track.enabled else Qt.CheckState.Unchecked
        if role != Qt.ItemDataRole.DisplayRole:
            return None

        if col == 0:
            return format_time(track.import_duration) if track.import_duration else ""
        elif col == 1:
            return track.filename
        elif col == 2:
            return format_time(track.file_duration) if track.file_duration else ""
        frame_col = col - 3
        if 0 <= frame_col < len(FRAME_COLUMNS):
            return track.frames.get_value(FRAME_COLUMNS[frame_col][1])
        return None

    def flags(self, index: QModelIndex) -> Qt.ItemFlag:
        flags = super().flags(index)
        if index.isValid() and index.column() == 0:
            flags |= Qt.ItemFlag.ItemIsUserCheckable
        return flags

    def setData(self, index: QModelIndex, value: Any,
                role: int = Qt.ItemDataRole.EditRole) -> bool:
        if not index.isValid() or index.column() != 0:
            return False
        if role != Qt.ItemDataRole.CheckStateRole:
            return False
        checked = value in (Qt.CheckState.Checked, Qt.CheckState.Checked.value, 2)
        self._track_data[index.row()].enabled = checked
        self.dataChanged.emit(index, index, [role])
        return True
