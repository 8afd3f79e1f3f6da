"""
Unit tests for download requests over the session bus.
"""

import subprocess
from unittest.mock import patch

import pytest

from media_art_cache.collaborators.download import (
    DBusDownloadRequester,
    NullDownloadRequester,
    gvariant_string,
)
from media_art_cache.core.errors import DownloadServiceUnavailable
from media_art_cache.core.models import MediaArtType

RUN = "media_art_cache.collaborators.download.subprocess.run"


def _completed(returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout="", stderr=stderr)


class TestGVariantString:

    def test_plain(self):
        assert gvariant_string("Beatles") == "'Beatles'"

    def test_quotes_escaped(self):
        assert gvariant_string("Sgt. Pepper's") == "'Sgt. Pepper\\'s'"

    def test_none_is_empty(self):
        assert gvariant_string(None) == "''"


class TestDBusDownloadRequester:

    @pytest.fixture
    def requester(self):
        return DBusDownloadRequester()

    def test_build_command(self, requester):
        command = requester.build_command("Beatles", "Sgt. Pepper")

        assert command[:3] == ["gdbus", "call", "--session"]
        assert "com.nokia.albumart" in command
        assert "com.nokia.albumart.Requester.Queue" in command
        assert command[-4:] == ["'Beatles'", "'Sgt. Pepper'", "'album'", "uint32 0"]

    def test_request_queued(self, requester):
        with patch(RUN, return_value=_completed()) as run:
            assert requester.request_download(MediaArtType.ALBUM, "Beatles", "Sgt. Pepper") is True

        assert run.call_args.kwargs["timeout"] == requester.timeout

    def test_video_not_requested(self, requester):
        with patch(RUN) as run:
            assert requester.request_download(MediaArtType.VIDEO, None, "Alien") is False
        run.assert_not_called()

    def test_service_unknown(self, requester):
        stderr = "Error: GDBus.Error:org.freedesktop.DBus.Error.ServiceUnknown: The name is not activatable"
        with patch(RUN, return_value=_completed(1, stderr)):
            with pytest.raises(DownloadServiceUnavailable):
                requester.request_download(MediaArtType.ALBUM, "Beatles", "Sgt. Pepper")

    def test_missing_gdbus(self, requester):
        with patch(RUN, side_effect=FileNotFoundError(2, "No such file", "gdbus")):
            with pytest.raises(DownloadServiceUnavailable):
                requester.request_download(MediaArtType.ALBUM, "Beatles", "Sgt. Pepper")

    def test_other_failure_is_logged(self, requester):
        with patch(RUN, return_value=_completed(1, "Error: Timeout was reached")):
            assert requester.request_download(MediaArtType.ALBUM, "Beatles", "Sgt. Pepper") is False

    def test_timeout_is_logged(self, requester):
        with patch(RUN, side_effect=subprocess.TimeoutExpired("gdbus", 5)):
            assert requester.request_download(MediaArtType.ALBUM, "Beatles", "Sgt. Pepper") is False


def test_null_requester():
    assert NullDownloadRequester().request_download(MediaArtType.ALBUM, "Beatles", "Sgt. Pepper") is False
