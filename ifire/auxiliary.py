"""
Auxiliary object detection and the model context passed to the detector.

A general-purpose pretrained detector (YOLO via ultralytics) supplies
contextual labels such as "person" or "car". Its output is informational;
the fire/smoke verdict comes from the color heuristic alone.
"""
import threading
from dataclasses import dataclass
from typing import List, Optional, Protocol

import numpy as np
from PIL import Image

from ifire.errors import AuxiliaryDetectorError
from ifire.logging_utils import get_logger

logger = get_logger(__name__)


class AuxiliaryObjectDetector(Protocol):
    """Anything that can label objects in an image."""

    def load(self) -> None:
        ...

    def detect_labels(self, image: Image.Image) -> List[str]:
        ...


class YoloObjectDetector:
    """Pretrained COCO detector backed by ultralytics YOLO."""

    def __init__(self, model_path: str = "yolov8n.pt", min_confidence: float = 0.4):
        self.model_path = model_path
        self.min_confidence = min_confidence
        self._model = None

    @property
    def loaded(self) -> bool:
        return self._model is not None

    def load(self) -> None:
        """
        Load the YOLO weights (downloaded by ultralytics on first use).

        Raises:
            AuxiliaryDetectorError: If the model cannot be loaded
        """
        if self._model is not None:
            return
        try:
            from ultralytics import YOLO
            self._model = YOLO(self.model_path)
        except Exception as e:
            raise AuxiliaryDetectorError(f"Cannot load {self.model_path}: {e}") from e
        logger.info("Auxiliary detector loaded: %s", self.model_path)

    def detect_labels(self, image: Image.Image) -> List[str]:
        """
        Run the detector and return distinct class names, most confident first.

        Raises:
            AuxiliaryDetectorError: If the model is missing or inference fails
        """
        if self._model is None:
            raise AuxiliaryDetectorError("Auxiliary detector not loaded")
        try:
            frame = np.asarray(image.convert('RGB'))
            results = self._model(frame, conf=self.min_confidence, verbose=False)
        except Exception as e:
            raise AuxiliaryDetectorError(f"Auxiliary detection failed: {e}") from e

        scored = []
        for r in results:
            for box in r.boxes:
                scored.append((float(box.conf), r.names[int(box.cls)]))
        labels: List[str] = []
        for _, name in sorted(scored, reverse=True):
            if name not in labels:
                labels.append(name)
        return labels


@dataclass
class DetectionContext:
    """
    Models used by a detection run, injected instead of held globally.

    ``load`` runs at most once; the ready flag only ever goes from False
    to True.
    """
    auxiliary: Optional[AuxiliaryObjectDetector] = None

    def __post_init__(self):
        self._ready = False
        self._lock = threading.Lock()
        self._inference_lock = threading.Lock()

    @property
    def ready(self) -> bool:
        return self._ready

    def load(self) -> None:
        """Load the auxiliary model. Failure leaves detection color-only."""
        with self._lock:
            if self._ready:
                return
            if self.auxiliary is not None:
                try:
                    self.auxiliary.load()
                except AuxiliaryDetectorError as e:
                    logger.warning("Auxiliary detector unavailable, continuing without it: %s", e)
                    self.auxiliary = None
            self._ready = True

    def detect_labels(self, image: Image.Image) -> List[str]:
        """Run the auxiliary detector; one inference at a time per context."""
        if self.auxiliary is None:
            return []
        with self._inference_lock:
            return self.auxiliary.detect_labels(image)
