"""Tests for trackimport.importers.discogs and its parsers."""

import pytest

from trackimport.config.settings import ServerImporterConfig
from trackimport.core.frames import FrameCollection, FrameType, split_list
from trackimport.importers.discogs import DiscogsImporter
from trackimport.importers.discogs_credits import (
    ExtraArtist,
    add_role_credits,
    artist_string,
    fix_up_artist,
)
from trackimport.ui.models.track_data_model import TrackDataModel


@pytest.fixture
def model():
    return TrackDataModel()


def _importer(model, http_client, token=""):
    config = DiscogsImporter.default_config()
    config.token = token
    importer = DiscogsImporter(model, config, http_client)
    importer.additional_tags_enabled = True
    importer.cover_art_enabled = True
    return importer


class TestCredits:
    def test_fix_up_artist(self):
        assert fix_up_artist("Wizard (23)") == "Wizard"
        assert fix_up_artist("Michael Maass* (2)") == "Michael Maass"
        assert fix_up_artist("Sven*, Michael") == "Sven, Michael"

    def test_artist_string(self):
        artists = [
            {"name": "Enslaved", "join": "&"},
            {"name": "Einherjer (2)", "join": ","},
            {"name": "Wizard (23)", "join": ""},
        ]
        assert artist_string(artists) == "Enslaved & Einherjer, Wizard"

    def test_add_role_credits(self):
        frames = FrameCollection()
        add_role_credits(frames, "Written-By", "Sven D'Anna")
        add_role_credits(frames, "Mixed By, Mastered By", "Achim Köhler")
        add_role_credits(frames, "Lead Vocals", "Sven D'Anna")
        add_role_credits(frames, "Photography", "Nobody")
        assert frames.get_value(FrameType.AUTHOR) == "Sven D'Anna"
        assert split_list(frames.get_value(FrameType.ARRANGER)) == [
            "Mixer", "Achim Köhler", "Engineer", "Achim Köhler"]
        assert split_list(frames.get_value(FrameType.PERFORMER)) == [
            "Lead Vocals", "Sven D'Anna"]

    def test_extra_artist_track_restriction(self):
        extra = ExtraArtist.from_json({"name": "Dano Boland (2)", "role": "Guitar",
                                       "tracks": "2, 5"})
        assert extra.has_track_restriction
        frames = FrameCollection()
        extra.add_to_frames(frames, "3")
        assert FrameType.PERFORMER not in frames
        extra.add_to_frames(frames, "5")
        assert frames.get_value(FrameType.PERFORMER) == "Guitar|Dano Boland"


class TestDiscogsRequests:
    def test_web_search_without_token(self, model, http_client):
        importer = _importer(model, http_client)
        importer.find(importer.config(), "Wizard", "Odin")
        server, path, scheme, headers = http_client.requests[-1]
        assert (server, path, scheme) == (
            "www.discogs.com", "/search/?q=Wizard+Odin&type=release", "https")
        assert "Authorization" not in headers
        assert headers["User-Agent"].startswith("TrackImport/")

    def test_api_search_with_token(self, model, http_client):
        importer = _importer(model, http_client, token="secret")
        importer.find(importer.config(), "Wizard", "Odin")
        server, path, scheme, headers = http_client.requests[-1]
        assert (server, path, scheme) == (
            "api.discogs.com", "/database/search?type=release&title&q=Wizard+Odin", "https")
        assert headers["Authorization"] == "Discogs token=secret"

    def test_track_list_paths(self, model, http_client):
        importer = _importer(model, http_client)
        importer.get_track_list(importer.config(), "Wizard-Odin/release", "2487778")
        assert http_client.requests[-1][:2] == ("www.discogs.com", "/Wizard-Odin/release/2487778")

        importer.set_config(ServerImporterConfig(token="secret"))
        importer.get_track_list(importer.config(), "releases", "2487778")
        assert http_client.requests[-1][:2] == ("api.discogs.com", "/releases/2487778")

    def test_response_is_routed_by_request_type(self, model, http_client):
        importer = _importer(model, http_client)
        found, albums = [], []
        importer.find_finished.connect(found.append)
        importer.album_finished.connect(albums.append)
        importer.find(importer.config(), "Wizard", "Odin")
        http_client.respond(b"search")
        importer.get_track_list(importer.config(), "Wizard-Odin/release", "2487778")
        http_client.respond(b"album")
        http_client.respond(b"unexpected")
        assert found == [b"search"]
        assert albums == [b"album"]

    def test_response_parsed_with_strategy_of_request(self, model, http_client, fixture_bytes):
        importer = _importer(model, http_client)
        importer.find(ServerImporterConfig(token="secret"), "Wizard", "Odin")
        assert http_client.requests[-1][0] == "api.discogs.com"
        importer.parse_find_results(fixture_bytes("discogs_search.json"))
        albums = importer.get_album_list_model()
        assert len(albums) == 10
        assert albums.item(0).category == "releases"

    def test_failed_request_is_reported_as_progress(self, model, http_client):
        importer = _importer(model, http_client)
        progress = []
        importer.progress.connect(lambda *args: progress.append(args))
        importer.find(importer.config(), "Wizard", "Odin")
        http_client.fail("timed out")
        assert progress == [("Error: timed out", -1, -1)]
        http_client.respond(b"late")
        assert importer.get_album_list_model().items() == []


class TestDiscogsJson:
    def test_parse_search(self, model, http_client, fixture_bytes):
        importer = _importer(model, http_client, token="secret")
        importer.parse_find_results(fixture_bytes("discogs_search.json"))
        albums = importer.get_album_list_model()
        assert len(albums) == 10
        first = albums.item(0)
        assert (first.text, first.category, first.id) == ("Wizard - Odin", "releases", "2487778")
        assert albums.item(4).text == "Wizard - Thor"

    def test_parse_release(self, model, http_client, fixture_bytes):
        importer = _importer(model, http_client, token="secret")
        importer.parse_album_results(fixture_bytes("discogs_release.json"))
        tracks = model.track_data()
        assert len(tracks) == 14
        assert tracks.cover_art_url == "http://api.discogs.com/image/R-2487778-1293847958.jpeg"

        first = tracks[0].frames
        assert first.title == "The Prophecy"
        assert first.artist == "Wizard"
        assert first.album == "Odin"
        assert first.get_value(FrameType.DATE) == "2003"
        assert first.get_value(FrameType.TRACK_NUMBER) == "1"
        assert first.genre == "Heavy Metal|Rock"
        assert first.get_value(FrameType.PUBLISHER) == "LMP"
        assert first.get_value(FrameType.CATALOG_NUMBER) == "LMP 0303-054 Ltd. CD"
        assert first.get_value(FrameType.MEDIA) == "CD"
        assert first.get_value(FrameType.RELEASE_COUNTRY) == "Germany"
        assert tracks[0].import_duration == 319
        assert tracks[11].frames.title == "Ultimate War (Bonus Track)"
        assert tracks[11].import_duration == 292
        assert tracks[13].frames.title == "Betrayer"
        assert tracks[13].frames.get_value(FrameType.TRACK_NUMBER) == "14"
        assert tracks[13].import_duration == 0

    def test_standard_tags_only(self, model, http_client, fixture_bytes):
        importer = _importer(model, http_client, token="secret")
        importer.additional_tags_enabled = False
        importer.cover_art_enabled = False
        importer.parse_album_results(fixture_bytes("discogs_release.json"))
        first = model.track_data()[0].frames
        assert first.title == "The Prophecy"
        assert FrameType.PUBLISHER not in first
        assert model.track_data().cover_art_url == ""

    def test_overlays_files_and_keeps_disabled(self, model, http_client, fixture_bytes,
                                               make_tagged_file):
        from trackimport.core.track_data import ImportTrackDataVector
        vector = ImportTrackDataVector.from_tagged_files([
            make_tagged_file("01.mp3", length=320, tracktitle="Mine"),
            make_tagged_file("02.mp3", length=293),
        ])
        vector[0].enabled = False
        model.set_track_data(vector)
        importer = _importer(model, http_client, token="secret")
        importer.parse_album_results(fixture_bytes("discogs_release.json"))
        tracks = model.track_data()
        assert tracks[0].frames.title == "Mine"
        assert tracks[1].frames.title == "The Prophecy"
        assert tracks[1].tagged_file is not None
        assert len(tracks) == 15

    def test_invalid_json_yields_no_albums(self, model, http_client):
        importer = _importer(model, http_client, token="secret")
        importer.get_album_list_model().append_item("old", "releases", "1")
        importer.parse_find_results(b"<html>not json</html>")
        assert len(importer.get_album_list_model()) == 0


class TestDiscogsHtml:
    def test_parse_search(self, model, http_client, fixture_bytes):
        importer = _importer(model, http_client)
        importer.parse_find_results(fixture_bytes("discogs_search.html"))
        items = importer.get_album_list_model().items()
        assert [item.text for item in items] == [
            "Wizard - Odin (2003) [CD, Album, Enh, Ltd, Dig]",
            "Wizard - Odin (2003) [CD, Album, Enh]",
            "Wizard - Thor (2009)",
        ]
        assert (items[0].category, items[0].id) == ("Wizard-Odin/release", "2487778")

    def test_parse_release(self, model, http_client, fixture_bytes):
        importer = _importer(model, http_client)
        importer.parse_album_results(fixture_bytes("discogs_release.html"))
        tracks = model.track_data()
        assert len(tracks) == 14
        assert tracks.cover_art_url == "https://i.discogs.com/R-2487778-1293847958.jpeg"
        assert [t.import_duration for t in tracks] == [
            319, 293, 362, 343, 308, 241, 301, 306, 321, 340, 233, 292, 305, 0]

        first = tracks[0].frames
        assert first.title == "The Prophecy"
        assert first.artist == "Wizard"
        assert first.album == "Odin"
        assert first.get_value(FrameType.DATE) == "2003"
        assert first.genre == "Heavy Metal|Rock|Power Metal"
        assert first.get_value(FrameType.PUBLISHER) == "LMP"
        assert first.get_value(FrameType.CATALOG_NUMBER) == "LMP 0303-054 Ltd. CD"
        assert first.get_value(FrameType.MEDIA) == "CD, Album, Enhanced, Limited Edition, Digipak"
        assert first.get_value(FrameType.RELEASE_COUNTRY) == "Germany"
        assert first.get_value(FrameType.PERFORMER) == "Bass|Volker Leson"
        assert first.get_value(FrameType.ARRANGER) == "Producer|Achim Köhler"
        assert first.get_value(FrameType.LYRICIST) == "Sven D'Anna, Michael Maass"
        assert FrameType.PART not in first
        assert tracks[6].frames.title == "Thor's Hammer"

        video = tracks[13].frames
        assert video.title == "Betrayer"
        assert video.get_value(FrameType.TRACK_NUMBER) == "14"
        assert video.get_value(FrameType.PART) == "Video"
        assert split_list(video.get_value(FrameType.PERFORMER)) == [
            "Bass", "Volker Leson", "Guitar", "Dano Boland"]

    def test_page_without_tracklist_clears_slots(self, model, http_client, make_tagged_file):
        from trackimport.core.track_data import ImportTrackDataVector
        model.set_track_data(ImportTrackDataVector.from_tagged_files([
            make_tagged_file("01.mp3", length=100, tracktitle="Old"),
        ]))
        importer = _importer(model, http_client)
        importer.parse_album_results(b"<html><title>Nothing | Discogs</title></html>")
        tracks = model.track_data()
        assert len(tracks) == 1
        assert tracks[0].frames == FrameCollection()

    @pytest.mark.parametrize("data", [b"", b"\x00\xffgarbage<html><tr>"])
    def test_garbage_page_yields_no_tracks(self, model, http_client, data):
        importer = _importer(model, http_client)
        importer.parse_album_results(data)
        assert len(model.track_data()) == 0
        assert model.track_data().cover_art_url == ""
