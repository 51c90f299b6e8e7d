"""Tests for trackimport.importers.freedb and trackimport.importers.tracktype."""

import pytest

from trackimport import __version__
from trackimport.core.frames import FrameCollection, FrameType
from trackimport.importers.freedb import (
    FreedbImporter,
    hello_query,
    parse_album_data,
    parse_cddb_matches,
    parse_gnudb_search,
    parse_track_durations,
)
from trackimport.importers.tracktype import TrackTypeImporter
from trackimport.ui.models.album_list_model import AlbumListModel
from trackimport.ui.models.track_data_model import TrackDataModel

GNUDB_SEARCH = b"""<html><head><meta http-equiv="Content-Type" content="text/html; charset=utf-8"></head>
<body>
<h2>Search Results, 2 albums found:</h2>
<br><br><a href="https://gnudb.org/cd/ro920b810c"><b>Catharsis / Imago</b></a><br>
Tracks: 3, total time: 15:00, year: 2001, genre: Metal<br>
<a href="https://gnudb.org/gnudb/rock/920b810c" target="_blank">Discid: rock / 920b810c</a><br>
<a href="https://gnudb.org/cd/bl9a0ba40c"><b>Catharsis / Imago (R\xc3\xa9\xc3\xa9dition)</b></a><br>
<a href="https://gnudb.org/gnudb/blues/9a0ba40c" target="_blank">Discid: blues / 9a0ba40c</a><br>
</body></html>
"""

CDDB_READ = b"""210 rock 920b810c CD database entry follows (until terminating `.')
# xmcd
#
# Track frame offsets:
#        150
#        22575
#        43875
#
# Disc length: 900 seconds
#
DISCID=920b810c
DTITLE=Catharsis / Imago
DYEAR=2001
DGENRE=Metal
TTITLE0=Imago
TTITLE1=The Long Way
TTITLE2=Part of a very long ti
TTITLE2=tle
EXTD= YEAR: 2001 ID3G: 9
EXTT0=
PLAYORDER=
.
"""


@pytest.fixture
def model():
    return TrackDataModel()


class TestCddbMatches:
    def test_single_exact_match(self):
        albums = AlbumListModel()
        parse_cddb_matches("200 rock 920b810c Catharsis / Imago\r\n", albums)
        assert [(i.text, i.category, i.id) for i in albums.items()] == [
            ("Catharsis / Imago", "rock", "920b810c")]

    def test_match_list(self):
        albums = AlbumListModel()
        parse_cddb_matches(
            "210 Found exact matches, list follows (until terminating `.')\n"
            "rock 920b810c Catharsis / Imago\n"
            "blues 9a0ba40c Catharsis / Imago\n"
            ".\n"
            "misc 00000000 Not / Listed\n",
            albums,
        )
        assert [i.id for i in albums.items()] == ["920b810c", "9a0ba40c"]

    def test_found_status_line(self):
        albums = AlbumListModel()
        parse_cddb_matches("200 Found 1 matches\nrock 920b810c Catharsis / Imago\n.", albums)
        assert len(albums) == 1
        assert albums.item(0).category == "rock"

    def test_no_match(self):
        albums = AlbumListModel()
        albums.append_item("old", "rock", "1")
        parse_cddb_matches("202 No match found\n", albums)
        assert len(albums) == 0


class TestGnudbSearch:
    def test_parse_search_page(self):
        albums = AlbumListModel()
        assert parse_gnudb_search(GNUDB_SEARCH.decode("utf-8"), albums)
        assert [(i.text, i.category, i.id) for i in albums.items()] == [
            ("Catharsis / Imago", "rock", "920b810c"),
            ("Catharsis / Imago (Réédition)", "blues", "9a0ba40c"),
        ]

    def test_other_text_is_not_a_search_page(self):
        assert not parse_gnudb_search("200 rock 920b810c Catharsis / Imago", AlbumListModel())


class TestAlbumRecord:
    def test_track_durations(self):
        assert parse_track_durations(CDDB_READ.decode()) == [299, 284, 315]

    def test_track_durations_without_offsets(self):
        assert parse_track_durations("DTITLE=A / B\n") == []

    def test_album_data(self):
        frames = FrameCollection()
        parse_album_data(CDDB_READ.decode(), frames)
        assert frames.artist == "Catharsis"
        assert frames.album == "Imago"
        assert frames.get_value(FrameType.DATE) == "2001"
        assert frames.genre == "Metal"


class TestFreedbImporter:
    def test_requests(self, model, http_client):
        importer = FreedbImporter(model, FreedbImporter.default_config(), http_client)
        importer.find(importer.config(), "Catharsis", "Imago")
        assert http_client.requests[-1][:3] == (
            "www.gnudb.org:80", "/search/Catharsis+Imago", "http")
        importer.get_track_list(importer.config(), "rock", "920b810c")
        assert http_client.requests[-1][:2] == (
            "www.gnudb.org:80",
            "/~cddb/cddb.cgi?cmd=cddb+read+rock+920b810c"
            f"&hello=noname+localhost+TrackImport+{__version__}&proto=6",
        )

    def test_hello_query(self):
        assert hello_query().startswith("&hello=noname+localhost+TrackImport+")
        assert hello_query().endswith("&proto=6")

    def test_parse_find_results_accepts_both_formats(self, model, http_client):
        importer = FreedbImporter(model, None, http_client)
        importer.parse_find_results(GNUDB_SEARCH)
        assert len(importer.get_album_list_model()) == 2
        importer.parse_find_results(b"200 rock 920b810c Catharsis / Imago\n")
        assert len(importer.get_album_list_model()) == 1

    def test_parse_find_results_latin1_page(self, model, http_client):
        importer = FreedbImporter(model, None, http_client)
        page = (b"<h2>1 albums found:</h2>\n"
                b'<a href="https://gnudb.org/cd/ro1"><b>Caf\xe9 / Noir</b></a>\n'
                b"Discid: rock / 0a0b0c0d\n")
        importer.parse_find_results(page)
        assert importer.get_album_list_model().item(0).text == "Café / Noir"

    def test_parse_album_results(self, model, http_client):
        importer = FreedbImporter(model, None, http_client)
        importer.parse_album_results(CDDB_READ)
        tracks = model.track_data()
        assert [t.frames.title for t in tracks] == [
            "Imago", "The Long Way", "Part of a very long title"]
        assert [t.frames.track for t in tracks] == [1, 2, 3]
        assert [t.import_duration for t in tracks] == [299, 284, 315]
        assert tracks[0].frames.artist == "Catharsis"
        assert tracks[2].frames.genre == "Metal"

    @pytest.mark.parametrize("data", [b"", b"\x00\xffgarbage\r\nTTITLE\r\n."])
    def test_garbage_album_record_yields_no_tracks(self, model, http_client, data):
        importer = FreedbImporter(model, None, http_client)
        importer.parse_album_results(data)
        assert len(model.track_data()) == 0


class TestTrackTypeImporter:
    def test_album_command_query(self, model, http_client):
        importer = TrackTypeImporter(model, TrackTypeImporter.default_config(), http_client)
        assert importer.name() == "TrackType.org"
        assert importer.default_server() == "tracktype.org:80"
        importer.find(importer.config(), "Catharsis", "Imago")
        server, path, _scheme, _headers = http_client.requests[-1]
        assert server == "tracktype.org:80"
        assert path == ("/~cddb/cddb.cgi?cmd=cddb+album+Catharsis+%2F+Imago" + hello_query())

    def test_parse_find_results_uses_cddb_only(self, model, http_client):
        importer = TrackTypeImporter(model, None, http_client)
        importer.parse_find_results(GNUDB_SEARCH)
        assert len(importer.get_album_list_model()) == 0
        importer.parse_find_results(
            b"211 Found inexact matches, list follows\nrock 920b810c Catharsis / Imago\n.\n")
        assert importer.get_album_list_model().item(0).id == "920b810c"

    def test_track_list_uses_cddb_read(self, model, http_client):
        importer = TrackTypeImporter(model, None, http_client)
        importer.get_track_list(importer.config(), "rock", "920b810c")
        assert http_client.requests[-1][0] == "tracktype.org:80"
        assert "cmd=cddb+read+rock+920b810c" in http_client.requests[-1][1]
