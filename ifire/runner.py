"""
Worker boundary for detection runs.

The pixel scan is CPU-bound and would block the UI thread, so it runs on a
single background worker. Only one detection may be in flight: a submission
made while another is running is rejected with DetectorBusy rather than
queued, so a stale result can never overwrite a newer one.
"""
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Hashable, Optional

from PIL import Image

from ifire.auxiliary import DetectionContext
from ifire.errors import DetectorBusy
from ifire.fire_detector import FireDetector
from ifire.logging_utils import get_logger
from ifire.models import DetectionResult

logger = get_logger(__name__)


class DetectionRunner:
    """Runs FireDetector.detect on one background thread."""

    def __init__(self, detector: Optional[FireDetector] = None,
                 context: Optional[DetectionContext] = None):
        self.detector = detector or FireDetector()
        self.context = context or DetectionContext()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ifire-detect")
        self._lock = threading.Lock()
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    def submit(self, image: Image.Image) -> "Future[DetectionResult]":
        """
        Start a detection in the background.

        Raises:
            DetectorBusy: If a detection is already running
        """
        with self._lock:
            if self._busy:
                raise DetectorBusy("A detection is already running")
            self._busy = True
        try:
            return self._executor.submit(self._run, image)
        except RuntimeError:
            self._release()
            raise

    def detect(self, image: Image.Image, timeout: Optional[float] = None) -> DetectionResult:
        """Submit and wait for the result; errors from the run are re-raised."""
        return self.submit(image).result(timeout=timeout)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    def _run(self, image: Image.Image) -> DetectionResult:
        try:
            self.context.load()
            return self.detector.detect(image, self.context)
        finally:
            self._release()

    def _release(self) -> None:
        with self._lock:
            self._busy = False


class LatestResult:
    """The most recent detection result, bound to the input it came from."""

    def __init__(self):
        self._key: Optional[Hashable] = None
        self._result: Optional[DetectionResult] = None

    def store(self, key: Hashable, result: DetectionResult) -> None:
        self._key, self._result = key, result

    def get(self, key: Hashable) -> Optional[DetectionResult]:
        """Result for ``key``; a result for any other input is discarded."""
        if self._result is not None and self._key != key:
            self._key, self._result = None, None
        return self._result
