"""Tests for the command line bootstrap in trackimport.app."""

import pytest

from trackimport import __version__
from trackimport.app import _print_event, build_parser
from trackimport.core.batch_importer import ImportEventType


class TestBuildParser:
    def test_directories_and_options(self):
        args = build_parser().parse_args(["a", "b", "--profile", "Discogs", "--tag-version", "3"])
        assert args.directories == ["a", "b"]
        assert args.profile == "Discogs"
        assert args.tag_version == 3

    def test_defaults(self):
        args = build_parser().parse_args(["music"])
        assert args.profile is None
        assert args.tag_version is None

    def test_directory_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_invalid_tag_version(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["music", "--tag-version", "4"])

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--version"])
        assert __version__ in capsys.readouterr().out


def test_print_event(capsys):
    _print_event(ImportEventType.TRACK_LIST_RECEIVED, "Accuracy 100%")
    _print_event(ImportEventType.FINISHED, "")
    assert capsys.readouterr().out == "Track list received: Accuracy 100%\nFinished\n"
