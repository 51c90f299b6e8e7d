"""Walk directories and group their audio files into track lists."""

from __future__ import annotations

import os
from pathlib import Path

from trackimport.core.tag_store import TaggedFile
from trackimport.core.track_data import ImportTrackDataVector

AUDIO_EXTENSIONS = {".mp3", ".flac", ".ogg", ".m4a", ".wma", ".aiff", ".wav"}


class FileScanner:
    """Scans a directory tree for audio files, one track list per directory."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def scan_iter(self):
        """Yield (directory, tagged files) for each directory holding audio files."""
        for dirpath, dirnames, filenames in os.walk(self._root):
            dirnames.sort()
            files = [
                TaggedFile(Path(dirpath) / fname)
                for fname in sorted(filenames)
                if Path(fname).suffix.lower() in AUDIO_EXTENSIONS
            ]
            if files:
                yield Path(dirpath), files

    def scan(self) -> list[ImportTrackDataVector]:
        """Return a track list for each album directory under the root."""
        return [ImportTrackDataVector.from_tagged_files(files)
                for _directory, files in self.scan_iter()]
