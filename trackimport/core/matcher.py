"""Reorder imported track data so it lines up with the local files.

All three strategies are greedy: slots are visited in order and each takes
the first best candidate still free. Slots are only rewritten when every
slot could be assigned.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import sys

from trackimport.core.track_data import ImportTrackDataVector
from trackimport.ui.models.track_data_model import TrackDataModel

logger = logging.getLogger(__name__)

_UNASSIGNED = -1


@dataclass
class _Assignment:
    # index of the file slot this slot's import data is moved to
    assigned_to: int = _UNASSIGNED
    # index of the slot whose import data this file slot receives
    assigned_from: int = _UNASSIGNED

    def pin(self, index: int) -> None:
        self.assigned_to = index
        self.assigned_from = index


def _initial_assignments(track_data: ImportTrackDataVector) -> list[_Assignment]:
    assignments = [_Assignment() for _ in track_data]
    for index, track in enumerate(track_data):
        if not track.enabled:
            assignments[index].pin(index)
    return assignments


def _apply(model: TrackDataModel, track_data: ImportTrackDataVector,
           assignments: list[_Assignment]) -> None:
    old = track_data.copy()
    for index, assignment in enumerate(assignments):
        source = old[assignment.assigned_from]
        track_data[index].frames = source.frames.copy()
        track_data[index].import_duration = source.import_duration
    model.set_track_data(track_data)


def _greedy_assign(assignments: list[_Assignment], more_imports: bool, score) -> bool:
    """Assign free imports to free files, best score first.

    ``score(file_index, import_index)`` is minimized with a strict
    comparison, so among equal scores the first candidate wins.
    """
    count = len(assignments)
    for index in range(count):
        current = assignments[index]
        if (current.assigned_from if more_imports else current.assigned_to) != _UNASSIGNED:
            continue
        best_track = _UNASSIGNED
        best_score = sys.maxsize
        for compared in range(count):
            other = assignments[compared]
            if more_imports:
                if other.assigned_to != _UNASSIGNED:
                    continue
                compared_score = score(index, compared)
            else:
                if other.assigned_from != _UNASSIGNED:
                    continue
                compared_score = score(compared, index)
            if compared_score < best_score:
                best_score = compared_score
                best_track = compared
        if best_track == _UNASSIGNED:
            logger.debug("no match for track %d", index)
            return False
        if more_imports:
            current.assigned_from = best_track
            assignments[best_track].assigned_to = index
        else:
            current.assigned_to = best_track
            assignments[best_track].assigned_from = index
    return True


class TrackDataMatcher:
    """Matching strategies operating on a :class:`TrackDataModel`."""

    @staticmethod
    def match_with_length(model: TrackDataModel, diff_check_enable: bool,
                          max_diff: int) -> bool:
        """Match imports to files by duration.

        With *diff_check_enable*, slots whose durations already differ by at
        most *max_diff* seconds keep their data.
        """
        track_data = model.get_track_data()
        if not track_data:
            return True
        assignments = _initial_assignments(track_data)
        file_lengths = [track.file_duration for track in track_data]
        import_lengths = [track.import_duration for track in track_data]
        num_files = num_imports = 0
        for index, track in enumerate(track_data):
            if not track.enabled:
                continue
            if file_lengths[index] > 0:
                num_files += 1
            if import_lengths[index] > 0:
                num_imports += 1
            if diff_check_enable and file_lengths[index] and import_lengths[index]:
                if abs(file_lengths[index] - import_lengths[index]) <= max_diff:
                    assignments[index].pin(index)

        ok = _greedy_assign(
            assignments,
            num_files <= num_imports,
            lambda file_index, import_index: abs(
                file_lengths[file_index] - import_lengths[import_index]),
        )
        if ok:
            _apply(model, track_data, assignments)
        return ok

    @staticmethod
    def match_with_track(model: TrackDataModel) -> bool:
        """Match imports to files by their imported track numbers."""
        track_data = model.get_track_data()
        num_tracks = len(track_data)
        if not num_tracks:
            return True
        assignments = _initial_assignments(track_data)

        # Keep slots already at the position of their track number.
        wanted: list[int] = []
        for index, track in enumerate(track_data):
            track_nr = track.frames.track
            target = track_nr - 1 if 0 < track_nr <= num_tracks else _UNASSIGNED
            if not track.enabled:
                target = _UNASSIGNED
            wanted.append(target)
            if target == index:
                assignments[index].pin(index)

        # Move other imports to the slot of their track number if it is free.
        for index in range(num_tracks):
            target = wanted[index]
            if assignments[index].assigned_to == _UNASSIGNED and target >= 0:
                if assignments[target].assigned_from == _UNASSIGNED:
                    assignments[target].assigned_from = index
                    assignments[index].assigned_to = target

        # Fill the remaining slots with the remaining imports in order.
        ok = True
        unassigned = 0
        for index in range(num_tracks):
            if assignments[index].assigned_from != _UNASSIGNED:
                continue
            while unassigned < num_tracks:
                if assignments[unassigned].assigned_to == _UNASSIGNED:
                    assignments[index].assigned_from = unassigned
                    assignments[unassigned].assigned_to = index
                    unassigned += 1
                    break
                unassigned += 1
            if assignments[index].assigned_from == _UNASSIGNED:
                logger.debug("no track assigned to %d", index)
                ok = False

        if ok:
            _apply(model, track_data, assignments)
        return ok

    @staticmethod
    def match_with_title(model: TrackDataModel) -> bool:
        """Match imports to files by words shared by title and filename."""
        track_data = model.get_track_data()
        if not track_data:
            return True
        assignments = _initial_assignments(track_data)
        file_words = [track.filename_words() for track in track_data]
        title_words = [track.title_words() for track in track_data]
        num_files = sum(
            1 for index, track in enumerate(track_data) if track.enabled and file_words[index])
        num_imports = sum(
            1 for index, track in enumerate(track_data) if track.enabled and title_words[index])

        ok = _greedy_assign(
            assignments,
            num_files <= num_imports,
            # more common words is better, so minimize the negated count
            lambda file_index, import_index: -len(
                file_words[file_index] & title_words[import_index]),
        )
        if ok:
            _apply(model, track_data, assignments)
        return ok
