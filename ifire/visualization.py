"""
Visualization module for detection results.
"""
import numpy as np
import cv2
from typing import List, Tuple

from ifire.models import BoundingBox


class DetectionVisualizer:
    """Draws detection boxes with color coding per class."""

    # RGB
    FIRE_COLOR = (255, 60, 0)
    SMOKE_COLOR = (128, 128, 128)
    TEXT_COLOR = (255, 255, 255)

    def __init__(self, alpha: float = 0.3, thickness: int = 3):
        self.alpha = alpha
        self.thickness = thickness

    def color_for(self, label: str) -> Tuple[int, int, int]:
        return self.FIRE_COLOR if label == "Fire" else self.SMOKE_COLOR

    def draw_detections(self, image: np.ndarray, boxes: List[BoundingBox]) -> np.ndarray:
        """
        Draw semi-transparent fills, outlines and labels for detection boxes.

        Args:
            image: Original image array (RGB or RGBA), full resolution
            boxes: Boxes in the image's pixel coordinates

        Returns:
            Annotated RGB image array
        """
        if image.ndim == 3 and image.shape[2] == 4:
            image = image[:, :, :3]
        annotated = np.ascontiguousarray(image, dtype=np.uint8).copy()
        height, width = annotated.shape[:2]

        # Translucent fill
        for box in boxes:
            x0, y0 = max(0, box.x), max(0, box.y)
            x1, y1 = min(width, box.x + box.width), min(height, box.y + box.height)
            if x1 <= x0 or y1 <= y0:
                continue
            patch = annotated[y0:y1, x0:x1].astype(np.float32)
            color = np.array(self.color_for(box.label), dtype=np.float32)
            annotated[y0:y1, x0:x1] = np.clip(
                patch * (1 - self.alpha) + color * self.alpha, 0, 255
            ).astype(np.uint8)

        # Outline and label (cv2 draws in whatever channel order it is given)
        for box in boxes:
            color = self.color_for(box.label)
            cv2.rectangle(annotated, (box.x, box.y), (box.x + box.width, box.y + box.height),
                          color, self.thickness)

            text = f"{box.label} {box.score}%"
            (text_w, text_h), baseline = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.6, 2)
            text_x = max(0, min(box.x, width - text_w - 4))
            text_y = max(text_h + baseline + 4, box.y)
            cv2.rectangle(annotated, (text_x, text_y - text_h - baseline - 4),
                          (text_x + text_w + 4, text_y), color, -1)
            cv2.putText(annotated, text, (text_x + 2, text_y - baseline - 2),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, self.TEXT_COLOR, 2, cv2.LINE_AA)

        return annotated

    def create_legend(self, width: int = 200, height: int = 100) -> np.ndarray:
        """
        Create a legend showing detection class colors.

        Args:
            width: Legend width
            height: Legend height

        Returns:
            Legend image array
        """
        legend = np.ones((height, width, 3), dtype=np.uint8) * 255

        box_size = 20
        y_offset = 20
        for label in ("Fire", "Smoke"):
            cv2.rectangle(legend, (10, y_offset), (10 + box_size, y_offset + box_size),
                          self.color_for(label), -1)
            cv2.putText(legend, label, (40, y_offset + 15),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 0, 0), 1)
            y_offset += 40

        return legend
