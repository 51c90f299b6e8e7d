"""HTTP transport for importers and cover art downloads."""

from __future__ import annotations

import logging
import re
from urllib.parse import unquote

from PySide6.QtCore import QObject, QThread, Signal

from trackimport.workers.request_worker import HttpResponse, RequestWorker

logger = logging.getLogger(__name__)

# Patterns mapping page URLs to the URL of their cover image.
MATCH_PICTURE_URL_MAP: tuple[tuple[str, str], ...] = (
    (r"https?://images\.google\.com/.*imgurl=([^&]+)&.*", r"\1"),
    (r"https?://(?:www\.)?amazon\.(?:com|co\.uk|de|fr).*/(?:dp|ASIN|images|product|-)/([A-Z0-9]+).*",
     r"http://images.amazon.com/images/P/\1.01._SCLZZZZZZZ_.jpg"),
    (r"https?://musicbrainz\.org/misc/redirects/.*&asin=([A-Z0-9]+).*",
     r"http://images.amazon.com/images/P/\1.01._SCLZZZZZZZ_.jpg"),
    (r"https?://www\.freecovers\.net/view/(\d+)/([0-9a-f]+)/.*",
     r"http://www.freecovers.net/preview/\1/\2/big.jpg"),
    (r"https?://cdbaby\.com/cd/(\w)(\w)(\w+)", r"http://cdbaby.name/\1/\2/\1\2\3.jpg"),
    (r"https?://www\.jamendo\.com/en/album/(\d+)", r"http://imgjam.com/albums/\1/covers/1.0.jpg"),
)

_IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png")


class HttpClient(QObject):
    """Runs one GET request at a time in a worker thread.

    ``progress`` reports ``(text, received, total)``; ``(-1, -1)`` signals a
    failed request, in which case ``bytes_received`` is not emitted.
    """

    bytes_received = Signal(object)     # response body
    progress = Signal(str, int, int)    # text, step, total steps

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._worker: RequestWorker | None = None
        self._threads: set[QThread] = set()
        self._content_type = ""
        self._url = ""

    @property
    def content_type(self) -> str:
        """Content type of the last received response."""
        return self._content_type

    @property
    def url(self) -> str:
        return self._url

    @staticmethod
    def build_url(server: str, path: str, scheme: str = "http") -> str:
        host = server.strip()
        if host.endswith(":80") and scheme == "http":
            host = host[:-3]
        elif host.endswith(":443") and scheme == "https":
            host = host[:-4]
        if path and not path.startswith("/"):
            path = "/" + path
        return f"{scheme}://{host}{path}"

    def send_request(self, server: str, path: str, scheme: str = "http",
                     headers: dict[str, str] | None = None) -> None:
        """Send a GET request for *path* on *server* ("host[:port]")."""
        self.send_url_request(self.build_url(server, path, scheme), headers)

    def send_url_request(self, url: str, headers: dict[str, str] | None = None) -> None:
        self.abort()
        self._content_type = ""
        self._url = url
        logger.debug("GET %s", url)

        worker = RequestWorker(url, headers)
        thread = QThread()
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.progress.connect(self._on_worker_progress)
        worker.finished.connect(self._on_worker_finished)
        worker.error.connect(self._on_worker_error)
        worker.finished.connect(thread.quit)
        worker.error.connect(thread.quit)
        worker.cancelled.connect(thread.quit)
        thread.finished.connect(worker.deleteLater)
        thread.finished.connect(self._on_thread_finished)
        self._worker = worker
        self._threads.add(thread)
        thread.start()
        self.progress.emit("Request sent...", 0, 0)

    def abort(self) -> None:
        """Cancel the running request; its result is discarded."""
        if self._worker is not None:
            self._worker.cancel()
            self._worker = None

    def is_busy(self) -> bool:
        return self._worker is not None

    def _is_current(self) -> bool:
        sender = self.sender()
        return sender is not None and sender is self._worker

    def _on_worker_progress(self, received: int, total: int, _url: str) -> None:
        if self._is_current():
            self.progress.emit(f"Data received: {received}", received, total)

    def _on_worker_finished(self, response: HttpResponse) -> None:
        if not self._is_current():
            return
        self._worker = None
        self._content_type = response.content_type
        self.bytes_received.emit(response.data)
        size = len(response.data)
        self.progress.emit("Ready.", size, size)

    def _on_worker_error(self, message: str) -> None:
        if not self._is_current():
            return
        self._worker = None
        self.progress.emit(f"Error: {message}", -1, -1)

    def _on_thread_finished(self) -> None:
        thread = self.sender()
        if isinstance(thread, QThread):
            self._threads.discard(thread)
            thread.deleteLater()


class DownloadClient(HttpClient):
    """Downloads files such as cover images from complete URLs."""

    download_started = Signal(str)
    download_finished = Signal(object, str, str)    # data, content type, url
    aborted = Signal()

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._canceled = False
        self._download_url = ""
        self.bytes_received.connect(self._on_bytes_received)

    def start_download(self, url: str) -> None:
        self._canceled = False
        self._download_url = url
        self.download_started.emit(url)
        self.send_url_request(url)

    def cancel_download(self) -> None:
        self._canceled = True
        self.abort()
        self.progress.emit("Abort", 0, 0)
        self.aborted.emit()

    def _on_bytes_received(self, data: bytes) -> None:
        if not self._canceled:
            self.download_finished.emit(data, self.content_type, self._download_url)

    @staticmethod
    def get_image_url(url: str,
                      url_map: tuple[tuple[str, str], ...] = MATCH_PICTURE_URL_MAP) -> str:
        """Return the URL of the image for *url*, "" if there is none.

        Image URLs are returned unchanged, other URLs are mapped with the
        first matching pattern of *url_map*.
        """
        url = url.strip()
        if not url.startswith(("http://", "https://")):
            return ""
        if url.lower().endswith(_IMAGE_SUFFIXES):
            return url
        for pattern, replacement in url_map:
            match = re.fullmatch(pattern, url)
            if match:
                image_url = match.expand(replacement)
                if "%25" in image_url:
                    image_url = unquote(image_url)
                if "%2F" in image_url:
                    image_url = unquote(image_url)
                return image_url
        return ""
