"""Shared fixtures: synthetic images and a stand-in auxiliary detector."""

from collections import namedtuple
from typing import List, Tuple

import numpy as np
import pytest
from PIL import Image

FIRE_RGB = (230, 150, 50)    # bright flame
GRAY_RGB = (200, 200, 200)   # light gray, smoke-like
DARK_RGB = (60, 60, 60)      # too dark for smoke
FOREST_RGB = (34, 139, 34)   # neither fire nor smoke

FakeUpload = namedtuple("FakeUpload", ["name", "size", "type"])


def solid_array(width: int, height: int, rgb: Tuple[int, int, int]) -> np.ndarray:
    array = np.empty((height, width, 3), dtype=np.uint8)
    array[:, :] = rgb
    return array


def paint_cells(array: np.ndarray, cells: List[Tuple[int, int]], rgb, grid_size: int = 10,
                rows_fraction: float = 1.0) -> np.ndarray:
    """Paint whole grid cells (or their top rows) of an array in place."""
    height, width = array.shape[:2]
    cell_w, cell_h = width // grid_size, height // grid_size
    painted_rows = int(cell_h * rows_fraction)
    for gx, gy in cells:
        array[gy * cell_h:gy * cell_h + painted_rows, gx * cell_w:(gx + 1) * cell_w] = rgb
    return array


def to_image(array: np.ndarray) -> Image.Image:
    return Image.fromarray(array)


class FakeAuxiliary:
    """Auxiliary detector double."""

    def __init__(self, labels=None, error=None, load_error=None):
        self.labels = labels or []
        self.error = error
        self.load_error = load_error
        self.load_calls = 0

    def load(self):
        self.load_calls += 1
        if self.load_error is not None:
            raise self.load_error

    def detect_labels(self, image):
        if self.error is not None:
            raise self.error
        return list(self.labels)


@pytest.fixture
def fire_block_image():
    """600x600 gray image with a fully burning 2x2 block of cells at (2..3, 4..5)."""
    array = solid_array(600, 600, GRAY_RGB)
    paint_cells(array, [(2, 4), (3, 4), (2, 5), (3, 5)], FIRE_RGB)
    return to_image(array)
