"""Background HTTP GET request."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from threading import Event
import time
from urllib.request import Request, urlopen

from PySide6.QtCore import QObject, Signal

from trackimport import __version__
from trackimport.errors import classify_exception, format_error_for_user

logger = logging.getLogger(__name__)

USER_AGENT = f"TrackImport/{__version__}"
REQUEST_TIMEOUT = 20
MAX_ATTEMPTS = 3

_CHUNK_SIZE = 16384


@dataclass
class HttpResponse:
    url: str
    data: bytes
    content_type: str


def is_transient_network_error(exc: Exception) -> bool:
    text = " ".join(str(exc).lower().split())
    transient_markers = (
        "timed out",
        "timeout",
        "forcibly closed",
        "connection reset",
        "remote end closed",
        "temporarily unavailable",
        "try again",
        "service unavailable",
        "http error 429",
        "http error 502",
        "http error 503",
        "http error 504",
    )
    return any(marker in text for marker in transient_markers)


class RequestWorker(QObject):
    """Fetches one URL in a worker thread, retrying transient failures.

    Emits ``finished(HttpResponse)`` on success, ``error(str)`` with a user
    message on failure and ``cancelled()`` when cancelled while running.
    ``progress`` reports received and total bytes (total 0 if unknown).

    Usage:
        worker = RequestWorker(url, headers)
        thread = QThread()
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.finished.connect(thread.quit)
        thread.start()
    """

    started = Signal()
    progress = Signal(int, int, str)    # received, total, url
    finished = Signal(object)           # HttpResponse
    error = Signal(str)                 # error message
    cancelled = Signal()

    def __init__(self, url: str, headers: dict[str, str] | None = None) -> None:
        super().__init__()
        self._url = url
        self._headers = {"User-Agent": USER_AGENT}
        self._headers.update(headers or {})
        self._cancel_event = Event()

    @property
    def url(self) -> str:
        return self._url

    def cancel(self) -> None:
        """Request cancellation, the worker stops before the next chunk."""
        self._cancel_event.set()

    @property
    def _is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def run(self) -> None:
        self.started.emit()
        for attempt in range(MAX_ATTEMPTS):
            if self._is_cancelled:
                self.cancelled.emit()
                return
            try:
                response = self._fetch()
            except Exception as exc:
                if attempt < MAX_ATTEMPTS - 1 and is_transient_network_error(exc):
                    logger.info("retrying %s after %s", self._url, exc)
                    time.sleep(0.35 * (attempt + 1))
                    continue
                logger.warning("request to %s failed: %s", self._url, exc)
                self.error.emit(format_error_for_user(classify_exception(exc)))
                return
            if response is None:
                self.cancelled.emit()
            else:
                self.finished.emit(response)
            return

    def _fetch(self) -> HttpResponse | None:
        req = Request(self._url, headers=self._headers)
        with urlopen(req, timeout=REQUEST_TIMEOUT) as resp:
            total = int(resp.headers.get("Content-Length") or 0)
            chunks: list[bytes] = []
            received = 0
            while True:
                if self._is_cancelled:
                    return None
                chunk = resp.read(_CHUNK_SIZE)
                if not chunk:
                    break
                chunks.append(chunk)
                received += len(chunk)
                self.progress.emit(received, total, self._url)
            content_type = resp.headers.get("Content-Type", "") or ""
        return HttpResponse(url=self._url, data=b"".join(chunks), content_type=content_type)
