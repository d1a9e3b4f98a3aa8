import threading
import time

import pytest

from ifire.auxiliary import DetectionContext
from ifire.errors import AuxiliaryDetectorError, DecodeError, DetectorBusy
from ifire.fire_detector import FireDetector
from ifire.models import DetectionType
from ifire.runner import DetectionRunner, LatestResult

from conftest import FakeAuxiliary


class BlockingDetector(FireDetector):
    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def detect(self, image, context=None):
        self.started.set()
        assert self.release.wait(timeout=5)
        return super().detect(image, context)


def test_runs_detection_in_background(fire_block_image):
    runner = DetectionRunner()
    try:
        result = runner.submit(fire_block_image).result(timeout=10)
        assert result.detection_type is DetectionType.FIRE
        assert not runner.busy
    finally:
        runner.shutdown()


def test_rejects_submission_while_busy(fire_block_image):
    detector = BlockingDetector()
    runner = DetectionRunner(detector)
    try:
        future = runner.submit(fire_block_image)
        assert detector.started.wait(timeout=5)
        with pytest.raises(DetectorBusy):
            runner.submit(fire_block_image)

        detector.release.set()
        assert future.result(timeout=10).detection_type is DetectionType.FIRE

        # Accepted again once the first run finished.
        assert runner.detect(fire_block_image, timeout=10).confidence == 40
    finally:
        detector.release.set()
        runner.shutdown()


def test_errors_propagate_and_release_the_worker(fire_block_image):
    class FailingDetector(FireDetector):
        def detect(self, image, context=None):
            raise DecodeError("unreadable")

    runner = DetectionRunner(FailingDetector())
    try:
        with pytest.raises(DecodeError):
            runner.detect(fire_block_image, timeout=10)
        assert not runner.busy
    finally:
        runner.shutdown()


def test_context_loads_once():
    auxiliary = FakeAuxiliary(labels=["person"])
    context = DetectionContext(auxiliary=auxiliary)
    assert not context.ready
    context.load()
    context.load()
    assert context.ready
    assert auxiliary.load_calls == 1
    assert context.auxiliary is auxiliary


def test_context_drops_auxiliary_that_fails_to_load(fire_block_image):
    context = DetectionContext(auxiliary=FakeAuxiliary(load_error=AuxiliaryDetectorError("no weights")))
    context.load()
    assert context.ready
    assert context.auxiliary is None

    runner = DetectionRunner(context=context)
    try:
        result = runner.detect(fire_block_image, timeout=10)
        assert result.context_labels == []
        assert result.detection_type is DetectionType.FIRE
    finally:
        runner.shutdown()


class SlowAuxiliary(FakeAuxiliary):
    """Records how many inferences overlap."""

    def __init__(self):
        super().__init__(labels=["person"])
        self.active = 0
        self.max_active = 0
        self._counter_lock = threading.Lock()

    def detect_labels(self, image):
        with self._counter_lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(0.05)
        with self._counter_lock:
            self.active -= 1
        return super().detect_labels(image)


def test_shared_context_runs_one_inference_at_a_time(fire_block_image):
    auxiliary = SlowAuxiliary()
    context = DetectionContext(auxiliary=auxiliary)
    runners = [DetectionRunner(context=context) for _ in range(3)]
    try:
        futures = [runner.submit(fire_block_image) for runner in runners]
        results = [future.result(timeout=30) for future in futures]
    finally:
        for runner in runners:
            runner.shutdown()

    assert all(result.context_labels == ["person"] for result in results)
    assert auxiliary.max_active == 1


def test_latest_result_is_bound_to_its_upload(fire_block_image):
    result = FireDetector().detect(fire_block_image)
    latest = LatestResult()
    assert latest.get("upload-a") is None

    latest.store("upload-a", result)
    assert latest.get("upload-a") is result
    # A different upload never sees the old verdict, and it is dropped.
    assert latest.get("upload-b") is None
    assert latest.get("upload-a") is None
