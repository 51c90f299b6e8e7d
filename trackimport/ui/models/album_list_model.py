"""QAbstractTableModel for album search results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt

COLUMNS = ["Album", "Category", "Id"]


@dataclass(frozen=True)
class AlbumListItem:
    """One search result.

    ``category`` and ``id`` are opaque tokens passed back unchanged in the
    track list request.
    """
    text: str
    category: str
    id: str


class AlbumListModel(QAbstractTableModel):
    """Table model holding the album list of the last search."""

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self._items: list[AlbumListItem] = []

    def clear(self) -> None:
        self.beginResetModel()
        self._items = []
        self.endResetModel()

    def append_item(self, text: str, category: str, album_id: str) -> None:
        row = len(self._items)
        self.beginInsertRows(QModelIndex(), row, row)
        self._items.append(AlbumListItem(text=text, category=category, id=album_id))
        self.endInsertRows()

    def item(self, row: int) -> AlbumListItem | None:
        if 0 <= row < len(self._items):
            return self._items[row]
        return None

    def items(self) -> list[AlbumListItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    # -- QAbstractTableModel overrides --

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._items)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:
        return len(COLUMNS)

    def headerData(self, section: int, orientation: Qt.Orientation,
                   role: int = Qt.ItemDataRole.DisplayRole) -> Any:
        if role == Qt.ItemDataRole.DisplayRole and orientation == Qt.Orientation.Horizontal:
            if 0 <= section < len(COLUMNS):
                return COLUMNS[section]
        return None

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole) -> Any:
        if not index.isValid() or role != Qt.ItemDataRole.DisplayRole:
            return None

        item = self._items[index.row()]
        col = index.column()

        if col == 0:
            return item.text
        elif col == 1:
            return item.category
        elif col == 2:
            return item.id
        return None
