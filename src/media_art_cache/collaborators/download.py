"""
Art download requests over the session bus.

Requests are fire-and-forget: the download service fetches the art and
drops it into the cache on its own schedule. Calls are made through the
``gdbus`` command line tool so no bus bindings are needed.
"""

import logging
import subprocess
from typing import List, Optional

from ..core.constants import (
    ALBUMARTER_INTERFACE,
    ALBUMARTER_METHOD,
    ALBUMARTER_PATH,
    ALBUMARTER_SERVICE,
    DBUS_SERVICE_UNKNOWN,
    DOWNLOAD_REQUEST_TIMEOUT,
)
from ..core.errors import DownloadServiceUnavailable
from ..core.models import MediaArtType
from ..utils.decorators import handle_errors


def gvariant_string(value: Optional[str]) -> str:
    """Quote a Python string as a GVariant text-format string literal"""
    value = value or ""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class DownloadRequester:
    """Interface for asking an external service to fetch missing art"""

    def request_download(self, art_type: MediaArtType, artist: Optional[str], album: Optional[str]) -> bool:
        raise NotImplementedError


class NullDownloadRequester(DownloadRequester):
    """Requester used when downloads are disabled in the configuration"""

    def request_download(self, art_type: MediaArtType, artist: Optional[str], album: Optional[str]) -> bool:
        return False


class DBusDownloadRequester(DownloadRequester):
    """
    Queues download requests with the album art service.

    Raises DownloadServiceUnavailable when the service is not present on the
    bus (or the bus tool is missing); every other failure is logged and
    reported as False.
    """

    def __init__(self,
                 service: str = ALBUMARTER_SERVICE,
                 object_path: str = ALBUMARTER_PATH,
                 interface: str = ALBUMARTER_INTERFACE,
                 method: str = ALBUMARTER_METHOD,
                 timeout: float = DOWNLOAD_REQUEST_TIMEOUT,
                 gdbus: str = "gdbus"):
        self.logger = logging.getLogger(__name__)
        self.service = service
        self.object_path = object_path
        self.interface = interface
        self.method = method
        self.timeout = timeout
        self.gdbus = gdbus

    def build_command(self, artist: Optional[str], album: Optional[str]) -> List[str]:
        return [
            self.gdbus, "call", "--session",
            "--dest", self.service,
            "--object-path", self.object_path,
            "--method", f"{self.interface}.{self.method}",
            gvariant_string(artist),
            gvariant_string(album),
            gvariant_string("album"),
            "uint32 0",
        ]

    @handle_errors(log_level="warning", return_on_error=False,
                   error_types=(subprocess.SubprocessError, OSError))
    def request_download(self, art_type: MediaArtType, artist: Optional[str], album: Optional[str]) -> bool:
        if art_type is not MediaArtType.ALBUM:
            return False

        try:
            completed = subprocess.run(
                self.build_command(artist, album),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise DownloadServiceUnavailable(f"{self.gdbus} is not available: {e}") from e

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            if DBUS_SERVICE_UNKNOWN in stderr:
                raise DownloadServiceUnavailable(stderr)
            self.logger.warning(f"Media art download request failed: {stderr}")
            return False

        self.logger.debug(f"Queued media art download for artist:'{artist or ''}', album:'{album or ''}'")
        return True
