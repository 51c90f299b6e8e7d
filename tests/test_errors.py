"""Tests for trackimport.errors."""

import json
from pathlib import Path
from urllib.error import URLError

import pytest

from trackimport.errors import (
    ErrorCode,
    TrackImportError,
    classify_exception,
    format_error_for_user,
)


class TestTrackImportError:
    def test_default_message(self):
        err = TrackImportError(ErrorCode.NETWORK_TIMEOUT)
        assert "timed out" in err.message
        assert err.suggestion == err.message

    def test_str_with_path_and_details(self):
        err = TrackImportError(ErrorCode.TAG_WRITE_FAILED, message="Failed",
                               path=Path("/music/a.mp3"), details={"original": "boom"})
        text = str(err)
        assert text.startswith("Failed")
        assert "a.mp3" in text
        assert "original=boom" in text

    def test_to_dict(self):
        data = TrackImportError(ErrorCode.CONFIG_INVALID).to_dict()
        assert data["code"] == "CONFIG_INVALID"
        assert data["path"] is None


class TestClassifyException:
    @pytest.mark.parametrize("exc, code", [
        (FileNotFoundError("No such file: x.mp3"), ErrorCode.FILE_NOT_FOUND),
        (PermissionError("denied"), ErrorCode.FILE_ACCESS_DENIED),
        (OSError("file is locked"), ErrorCode.FILE_LOCKED),
        (TimeoutError("timed out"), ErrorCode.NETWORK_TIMEOUT),
        (RuntimeError("HTTP Error 401: Unauthorized"), ErrorCode.NETWORK_AUTH_FAILED),
        (RuntimeError("HTTP Error 404: Not Found"), ErrorCode.NETWORK_NOT_FOUND),
        (RuntimeError("HTTP Error 429: Too Many Requests"), ErrorCode.NETWORK_RATE_LIMITED),
        (RuntimeError("HTTP Error 503: Service Unavailable"), ErrorCode.NETWORK_SERVER_ERROR),
        (URLError("no route"), ErrorCode.NETWORK_UNAVAILABLE),
        (json.JSONDecodeError("Expecting value", "x", 0), ErrorCode.RESPONSE_UNPARSEABLE),
    ])
    def test_codes(self, exc, code):
        assert classify_exception(exc).code is code

    def test_unknown_exception(self):
        err = classify_exception(ValueError("odd"))
        assert err.code is ErrorCode.OPERATION_FAILED
        assert err.message == "ValueError: odd"

    def test_track_import_error_is_kept(self):
        err = TrackImportError(ErrorCode.CONFIG_MISSING)
        assert classify_exception(err) is err


class TestFormatErrorForUser:
    def test_with_path(self):
        err = TrackImportError(ErrorCode.TAG_WRITE_FAILED, message="Failed to save tags",
                               path=Path("/music/a.mp3"))
        text = format_error_for_user(err)
        assert text.startswith("Failed to save tags ")
        assert text.endswith("(File: a.mp3)")

    def test_plain_exception(self):
        assert format_error_for_user(TimeoutError("timed out")).startswith(
            "Network request timed out")
