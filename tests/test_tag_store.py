"""Tests for trackimport.core.tag_store."""

import pytest

from trackimport.core.frames import FrameCollection, FrameType
from trackimport.core.tag_store import TaggedFile, tags_from_filename
from trackimport.core.track_data import TagVersion
from trackimport.errors import ErrorCode, TrackImportError


class TestTagsFromFilename:
    def test_directory_and_file_format(self):
        frames = tags_from_filename("/music/Wizard - Odin/01 The Prophecy.mp3",
                                    "%{artist} - %{album}/%{track} %{title}")
        assert frames.artist == "Wizard"
        assert frames.album == "Odin"
        assert frames.get_value(FrameType.TRACK_NUMBER) == "1"
        assert frames.title == "The Prophecy"

    def test_single_letter_codes(self):
        frames = tags_from_filename("/music/Wizard - Betrayer.mp3", "%a - %s")
        assert frames.artist == "Wizard"
        assert frames.title == "Betrayer"

    def test_underscores_are_spaces_unless_in_format(self):
        frames = tags_from_filename("/music/03_Dead_Hope.ogg", "%{track} %{title}")
        assert frames.get_value(FrameType.TRACK_NUMBER) == "3"
        assert frames.title == "Dead Hope"

    def test_windows_separators(self):
        frames = tags_from_filename("C:\\music\\Wizard - Odin\\02 Betrayer.flac",
                                    "%{artist} - %{album}/%{track} %{title}")
        assert frames.album == "Odin"
        assert frames.title == "Betrayer"

    def test_falls_back_to_year_directory_layout(self):
        frames = tags_from_filename("/music/Wizard - Odin (2003)/05 Lokis Punishment.mp3",
                                    "%{artist} - %{title}")
        assert frames.artist == "Wizard"
        assert frames.album == "Odin"
        assert frames.get_value(FrameType.DATE) == "2003"
        assert frames.get_value(FrameType.TRACK_NUMBER) == "5"
        assert frames.title == "Lokis Punishment"

    def test_no_match_gives_empty_frames(self):
        assert tags_from_filename("/music/song.mp3", "%{artist} - %{title}") == FrameCollection()


class TestTaggedFile:
    def test_read_tags(self, make_tagged_file):
        tagged = make_tagged_file("01 The Prophecy.mp3", length=319.4,
                                  tracktitle="The Prophecy", artist="Wizard", album="Odin",
                                  tracknumber=1, discnumber=0, year=2003, genre="Metal")
        frames = tagged.frames
        assert frames.title == "The Prophecy"
        assert frames.artist == "Wizard"
        assert frames.get_value(FrameType.TRACK_NUMBER) == "1"
        assert FrameType.DISC_NUMBER not in frames
        assert frames.get_value(FrameType.DATE) == "2003"
        assert frames.genre == "Metal"
        assert tagged.duration == 319
        assert tagged.filename == "01 The Prophecy.mp3"

    def test_unreadable_file_has_empty_tags(self, music_files, tmp_path):
        tagged = TaggedFile(tmp_path / "missing.mp3")
        assert tagged.frames == FrameCollection()
        assert tagged.duration == 0

    def test_read_tags_force_reloads(self, make_tagged_file, music_files):
        tagged = make_tagged_file("a.mp3", tracktitle="Before")
        assert tagged.frames.title == "Before"
        music_files[str(tagged.path)].tags["tracktitle"] = "After"
        assert tagged.read_tags().title == "Before"
        assert tagged.read_tags(force=True).title == "After"

    def test_set_frames_writes_supported_frames(self, make_tagged_file, music_files):
        tagged = make_tagged_file("a.mp3")
        frames = FrameCollection()
        frames.set_value(FrameType.TITLE, "Betrayer")
        frames.set_value(FrameType.ARTIST, "Wizard")
        frames.set_value(FrameType.TRACK_NUMBER, "2/11")
        frames.set_value(FrameType.DATE, "2003-08-19")
        frames.set_value(FrameType.PERFORMER, "Bass|Volker Leson")
        tagged.set_frames(TagVersion.V2, frames)

        fake = music_files[str(tagged.path)]
        assert fake.saved == 1
        assert fake.tags["tracktitle"] == "Betrayer"
        assert fake.tags["artist"] == "Wizard"
        assert fake.tags["tracknumber"] == 2
        assert fake.tags["year"] == 2003
        assert "performer" not in fake.tags
        assert tagged.frames.title == "Betrayer"

    def test_set_frames_logs_frames_without_key(self, make_tagged_file, music_files, caplog):
        tagged = make_tagged_file("a.mp3")
        frames = FrameCollection()
        frames.set_value(FrameType.TITLE, "Betrayer")
        frames.set_value(FrameType.PUBLISHER, "LMP")
        frames.set_value(FrameType.CATALOG_NUMBER, "LMP 0303-054 CD")
        with caplog.at_level("DEBUG", logger="trackimport.core.tag_store"):
            tagged.set_frames(TagVersion.V2, frames)
        assert "no music-tag key for" in caplog.text
        assert "publisher" in caplog.text
        assert "catalog number" in caplog.text
        assert "title" not in caplog.text.split("no music-tag key for", 1)[1]
        assert "publisher" not in music_files[str(tagged.path)].tags

    def test_set_frames_without_tag_version_does_nothing(self, make_tagged_file, music_files):
        tagged = make_tagged_file("a.mp3")
        frames = FrameCollection()
        frames.set_value(FrameType.TITLE, "Betrayer")
        tagged.set_frames(TagVersion.NONE, frames)
        assert music_files[str(tagged.path)].saved == 0

    def test_set_frames_on_missing_file_raises(self, music_files, tmp_path):
        tagged = TaggedFile(tmp_path / "missing.mp3")
        with pytest.raises(TrackImportError) as exc_info:
            tagged.set_frames(TagVersion.V1, FrameCollection())
        assert exc_info.value.code is ErrorCode.TAG_READ_FAILED
        assert exc_info.value.path == tmp_path / "missing.mp3"

    def test_set_frames_save_failure_raises_write_error(self, make_tagged_file, music_files):
        tagged = make_tagged_file("a.mp3")
        music_files[str(tagged.path)].fail_on_save = True
        frames = FrameCollection()
        frames.set_value(FrameType.TITLE, "Betrayer")
        with pytest.raises(TrackImportError) as exc_info:
            tagged.set_frames(TagVersion.V2, frames)
        assert exc_info.value.code is ErrorCode.TAG_WRITE_FAILED
        assert "a.mp3" in exc_info.value.message

    def test_add_picture(self, make_tagged_file, music_files):
        tagged = make_tagged_file("a.mp3")
        tagged.add_picture(b"\xff\xd8" * 600, "image/jpeg", "http://example.com/c.jpg")
        fake = music_files[str(tagged.path)]
        assert fake.tags["artwork"].raw == b"\xff\xd8" * 600
        assert fake.tags["artwork"].fmt == "jpeg"
        assert fake.saved == 1

    def test_add_picture_png(self, make_tagged_file, music_files):
        tagged = make_tagged_file("a.mp3")
        tagged.add_picture(b"\x89PNG", "image/png")
        assert music_files[str(tagged.path)].tags["artwork"].fmt == "png"

    def test_add_picture_failure(self, make_tagged_file, music_files):
        tagged = make_tagged_file("a.mp3")
        music_files[str(tagged.path)].fail_on_save = True
        with pytest.raises(TrackImportError) as exc_info:
            tagged.add_picture(b"data", "image/jpeg", "http://example.com/c.jpg")
        assert exc_info.value.code is ErrorCode.TAG_WRITE_FAILED
        assert exc_info.value.details["source"] == "http://example.com/c.jpg"

    def test_get_tags_from_filename(self, make_tagged_file):
        tagged = make_tagged_file("07 Thors Hammer.mp3")
        frames = FrameCollection()
        frames.set_value(FrameType.ARTIST, "Wizard")
        tagged.get_tags_from_filename(frames, "%{track} %{title}")
        assert frames.artist == "Wizard"
        assert frames.title == "Thors Hammer"
        assert frames.track == 7
